from __future__ import annotations

import json
from dataclasses import asdict
from datetime import date
from pathlib import Path
from typing import Dict, List, Optional

from .models import (
    Department,
    DependentProfile,
    Employee,
    EmployeeHistoryEvent,
    EventType,
    HistoricalPayrollRun,
    PayrollEntry,
    Period,
)

DEFAULT_ORGANIZATION_NAME = "Hotel Empire"
DEFAULT_CURRENCY = "MMK"


class DataStore:
    """Key/value JSON store for everything payledger persists between runs."""

    def __init__(
        self,
        path: Path,
        organization_name: str = DEFAULT_ORGANIZATION_NAME,
        selected_currency: str = DEFAULT_CURRENCY,
    ) -> None:
        self.path = path
        self.organization_name = organization_name
        self.selected_currency = selected_currency
        self.employees: List[Employee] = []
        self.employee_history: List[EmployeeHistoryEvent] = []
        self.historical_payroll: List[HistoricalPayrollRun] = []
        self.attendance_period: Optional[Period] = None
        self.attendance: Dict[str, List[str]] = {}
        if path.exists():
            self.load()

    def load(self) -> None:
        content = json.loads(self.path.read_text(encoding="utf-8"))
        self.organization_name = content.get("organization_name", self.organization_name)
        self.selected_currency = content.get("selected_currency", self.selected_currency)
        self.employees = [self._deserialize_employee(e) for e in content.get("employees", [])]
        self.employee_history = [self._deserialize_event(e) for e in content.get("employee_history", [])]
        self.historical_payroll = [self._deserialize_run(r) for r in content.get("historical_payroll", [])]
        attendance = content.get("attendance") or {}
        period = attendance.get("period")
        self.attendance_period = Period(period["year"], period["month"]) if period else None
        self.attendance = {employee_id: list(statuses) for employee_id, statuses in attendance.get("records", {}).items()}

    def save(self) -> None:
        payload = {
            "organization_name": self.organization_name,
            "selected_currency": self.selected_currency,
            "employees": [self._serialize_employee(e) for e in self.employees],
            "employee_history": [self._serialize_event(e) for e in self.employee_history],
            "historical_payroll": [self._serialize_run(r) for r in self.historical_payroll],
            "attendance": {
                "period": asdict(self.attendance_period) if self.attendance_period else None,
                "records": self.attendance,
            },
        }
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(payload, default=self._date_serializer, indent=2, ensure_ascii=False), encoding="utf-8")

    @staticmethod
    def _date_serializer(value):
        if isinstance(value, date):
            return value.isoformat()
        raise TypeError(f"Type {type(value)} not serializable")

    @staticmethod
    def _parse_date(value: Optional[str]) -> Optional[date]:
        return date.fromisoformat(value) if value else None

    def _serialize_employee(self, employee: Employee) -> dict:
        payload = asdict(employee)
        payload["department"] = employee.department.value
        payload["join_date"] = employee.join_date.isoformat() if employee.join_date else None
        return payload

    def _deserialize_employee(self, data: dict) -> Employee:
        data = dict(data)
        data["department"] = Department(data["department"])
        data["join_date"] = self._parse_date(data.get("join_date"))
        data["dependents"] = DependentProfile(**data.get("dependents", {}))
        return Employee(**data)

    def _serialize_event(self, event: EmployeeHistoryEvent) -> dict:
        payload = asdict(event)
        payload["date"] = event.date.isoformat()
        payload["type"] = event.type.value
        return payload

    def _deserialize_event(self, data: dict) -> EmployeeHistoryEvent:
        data = dict(data)
        data["date"] = self._parse_date(data["date"])
        data["type"] = EventType(data["type"])
        return EmployeeHistoryEvent(**data)

    def _serialize_run(self, run: HistoricalPayrollRun) -> dict:
        return {
            "year": run.period.year,
            "month": run.period.month,
            "finalized_at": run.finalized_at,
            "payroll_data": [asdict(entry) for entry in run.entries],
            "employees": [self._serialize_employee(e) for e in run.employees],
        }

    def _deserialize_run(self, data: dict) -> HistoricalPayrollRun:
        return HistoricalPayrollRun(
            period=Period(data["year"], data["month"]),
            entries=tuple(PayrollEntry(**entry) for entry in data.get("payroll_data", [])),
            employees=tuple(self._deserialize_employee(e) for e in data.get("employees", [])),
            finalized_at=data.get("finalized_at", ""),
        )
