from __future__ import annotations

from dataclasses import replace
from datetime import date
from typing import Dict, Iterable, List, Optional
from uuid import uuid4

from .attendance import DEFAULT_STATUS_TABLE, StatusTable, derive_summary, fit_attendance, new_attendance, set_day_status
from .calculator import PayrollEngine
from .core.logging import get_logger
from .exceptions import PayrollNotCalculatedError, RosterValidationError
from .ledger import HistoricalLedger
from .models import (
    Department,
    Employee,
    EmployeeAttendance,
    EmployeeHistoryEvent,
    EventType,
    HistoricalPayrollRun,
    ManualDeduction,
    PayrollEntry,
    PayrollRun,
    Period,
    PeriodConfig,
)
from .storage import DEFAULT_ORGANIZATION_NAME, DataStore
from .tax_tables import PayrollPolicy

logger = get_logger(__name__)

DEFAULT_SERVICE_RATE = 50_000.0


def new_employee_id() -> str:
    return f"EMP{uuid4().hex[:8].upper()}"


def validate_employee(employee: Employee) -> None:
    missing = [
        label
        for label, value in (("name", employee.name), ("position", employee.position), ("join date", employee.join_date))
        if not value or (isinstance(value, str) and not value.strip())
    ]
    if missing:
        raise RosterValidationError(f"Employee {employee.id or '<new>'} is missing required fields: {', '.join(missing)}")
    if not isinstance(employee.department, Department):
        raise RosterValidationError(f"Unknown department {employee.department!r}")
    if employee.base_salary < 0 or employee.service_points < 0:
        raise RosterValidationError("Base salary and service points cannot be negative")
    if employee.dependents.children < 0 or employee.dependents.parents < 0:
        raise RosterValidationError("Dependent counts cannot be negative")


class PayrollCoordinator:
    """Owns roster, attendance, period inputs, the current payroll and the ledger.

    Every mutation of a payroll input bumps ``input_version`` and drops the
    current run; entries are only readable while their version matches.
    """

    def __init__(
        self,
        policy: PayrollPolicy,
        store: Optional[DataStore] = None,
        period: Optional[Period] = None,
        service_rate: float = DEFAULT_SERVICE_RATE,
        status_table: StatusTable = DEFAULT_STATUS_TABLE,
    ):
        self.policy = policy
        self.store = store
        self.status_table = status_table
        self.engine = PayrollEngine(policy, status_table=status_table)
        self.converter = self.engine.converter

        self.organization_name = store.organization_name if store else DEFAULT_ORGANIZATION_NAME
        self.selected_currency = store.selected_currency if store else policy.canonical_currency
        if self.selected_currency not in self.converter.currencies:
            raise KeyError(f"Currency {self.selected_currency} not in rate table")
        self._saved_currency = self.selected_currency
        self.employees: List[Employee] = list(store.employees) if store else []
        self.history: List[EmployeeHistoryEvent] = list(store.employee_history) if store else []
        self.ledger = HistoricalLedger(store.historical_payroll if store else ())

        self.input_version = 0
        self._run: Optional[PayrollRun] = None
        self.attendance: Dict[str, EmployeeAttendance] = {}
        if store and store.attendance_period:
            for employee_id, statuses in store.attendance.items():
                self.attendance[employee_id] = EmployeeAttendance(
                    employee_id=employee_id,
                    daily_statuses=list(statuses),
                    summary=derive_summary(statuses, status_table),
                )
        if period is None:
            period = store.attendance_period if store and store.attendance_period else Period.containing(date.today())
        self.config = PeriodConfig(period=period, service_rate=service_rate, display_currency=self.selected_currency)
        self._sync_attendance()

    @property
    def period(self) -> Period:
        return self.config.period

    # -- roster ---------------------------------------------------------

    def employee(self, employee_id: str) -> Employee:
        for employee in self.employees:
            if employee.id == employee_id:
                return employee
        raise KeyError(f"Employee {employee_id} not found")

    def add_employee(self, employee: Employee) -> Employee:
        return self.bulk_add_employees([employee], source="form")[0]

    def bulk_add_employees(self, employees: Iterable[Employee], source: str = "CSV import") -> List[Employee]:
        added: List[Employee] = []
        for employee in employees:
            if not employee.id:
                employee = replace(employee, id=new_employee_id())
            validate_employee(employee)
            added.append(employee)
        existing = {e.id for e in self.employees}
        duplicate = [e.id for e in added if e.id in existing]
        if duplicate or len({e.id for e in added}) != len(added):
            raise RosterValidationError(f"Duplicate employee ids: {', '.join(duplicate) or 'within batch'}")

        for employee in added:
            description = f"Hired as {employee.position} in the {employee.department.value} department."
            if source != "form":
                description = f"Hired as {employee.position} via {source}."
            self.history.append(
                EmployeeHistoryEvent(
                    id=f"EVT{uuid4().hex[:8].upper()}",
                    employee_id=employee.id,
                    date=employee.join_date,
                    type=EventType.HIRED,
                    description=description,
                )
            )
        self.employees.extend(added)
        logger.info("employee_added", count=len(added), source=source)
        self._roster_changed()
        return added

    def update_employee(self, employee: Employee) -> Employee:
        validate_employee(employee)
        index = self.employees.index(self.employee(employee.id))
        self.employees[index] = employee
        self._roster_changed()
        return employee

    def delete_employee(self, employee_id: str) -> Employee:
        employee = self.employee(employee_id)
        self.employees.remove(employee)
        self.config.manual_deductions.pop(employee_id, None)
        self.config.overtime.pop(employee_id, None)
        logger.info("employee_deleted", employee_id=employee_id)
        self._roster_changed()
        return employee

    def add_history_event(
        self,
        employee_id: str,
        event_type: EventType,
        description: str,
        on: Optional[date] = None,
        amount: Optional[float] = None,
    ) -> EmployeeHistoryEvent:
        self.employee(employee_id)
        event = EmployeeHistoryEvent(
            id=f"EVT{uuid4().hex[:8].upper()}",
            employee_id=employee_id,
            date=on or date.today(),
            type=event_type,
            description=description,
            amount=amount,
        )
        self.history.append(event)
        self._persist()
        return event

    def history_for(self, employee_id: str) -> List[EmployeeHistoryEvent]:
        return sorted((e for e in self.history if e.employee_id == employee_id), key=lambda e: e.date)

    # -- attendance -----------------------------------------------------

    def set_period(self, period: Period) -> None:
        if period == self.config.period:
            return
        self.config = PeriodConfig(
            period=period,
            service_rate=self.config.service_rate,
            display_currency=self.config.display_currency,
        )
        self._sync_attendance()
        self._invalidate("period")

    def set_attendance(self, employee_id: str, day_index: int, code: str) -> EmployeeAttendance:
        self.employee(employee_id)
        record = set_day_status(self.attendance[employee_id], day_index, code, self.status_table)
        self.attendance[employee_id] = record
        self._invalidate("attendance")
        return record

    # -- payroll --------------------------------------------------------

    def set_service_rate(self, rate: float) -> None:
        if rate < 0:
            raise ValueError("Service money per point cannot be negative")
        self.config.service_rate = rate
        self._invalidate("service_rate")

    def set_manual_deduction(self, employee_id: str, amount: float, reason: str = "") -> None:
        self.employee(employee_id)
        self.config.manual_deductions[employee_id] = ManualDeduction(amount=amount, reason=reason)
        self._invalidate("deduction")

    def set_overtime(self, employee_id: str, amount: float) -> None:
        self.employee(employee_id)
        self.config.overtime[employee_id] = amount
        self._invalidate("overtime")

    def calculate(self) -> PayrollRun:
        entries = self.engine.compute_run(self.employees, self.attendance, self.config)
        self._run = PayrollRun(period=self.period, version=self.input_version, entries=tuple(entries))
        logger.info(
            "payroll_calculated",
            period=str(self.period),
            version=self.input_version,
            employees=len(entries),
            already_finalized=self.ledger.is_finalized(self.period),
        )
        return self._run

    def current_run(self) -> PayrollRun:
        if self._run is None or self._run.version != self.input_version:
            raise PayrollNotCalculatedError()
        return self._run

    def current_entries(self) -> List[PayrollEntry]:
        return list(self.current_run().entries)

    def payslip(self, employee_id: str) -> PayrollEntry:
        entry = self.current_run().entry_for(employee_id)
        if entry is None:
            raise KeyError(f"No payroll entry for employee {employee_id}")
        return entry

    # -- ledger ---------------------------------------------------------

    def finalize(self) -> HistoricalPayrollRun:
        run = self.current_run()
        replaced = self.ledger.is_finalized(run.period)
        snapshot = self.ledger.finalize(run.period, run.entries, self.employees)
        logger.info("payroll_finalized", period=str(run.period), replaced=replaced, employees=len(run.entries))
        self._persist()
        return snapshot

    # -- settings -------------------------------------------------------

    def set_currency(self, code: str, persist: bool = True) -> None:
        """Switch the display currency.

        Service rate and manual deduction amounts are read in the display
        currency, so the current payroll is invalidated. With
        ``persist=False`` the switch lasts for this session only and the
        store keeps its saved currency.
        """
        code = code.upper()
        if code not in self.converter.currencies:
            raise KeyError(f"Currency {code} not in rate table")
        if persist:
            self._saved_currency = code
        if code != self.selected_currency:
            self.selected_currency = code
            self.config.display_currency = code
            self._invalidate("currency")
        elif persist:
            self._persist()

    def set_organization_name(self, name: str) -> None:
        if not name.strip():
            raise RosterValidationError("Organization name cannot be empty")
        self.organization_name = name.strip()
        self._persist()

    def to_display(self, amount: float) -> float:
        return self.converter.from_canonical(amount, self.selected_currency)

    # -- internals ------------------------------------------------------

    def _sync_attendance(self) -> None:
        days = self.period.days
        synced: Dict[str, EmployeeAttendance] = {}
        for employee in self.employees:
            record = self.attendance.get(employee.id)
            if record is None:
                synced[employee.id] = new_attendance(employee.id, days, self.status_table)
            else:
                synced[employee.id] = fit_attendance(record, days, self.status_table)
        self.attendance = synced

    def _roster_changed(self) -> None:
        self._sync_attendance()
        self._invalidate("roster")

    def _invalidate(self, reason: str) -> None:
        self.input_version += 1
        if self._run is not None:
            logger.debug("payroll_invalidated", reason=reason, version=self.input_version)
        self._run = None
        self._persist()

    def _persist(self) -> None:
        if self.store is None:
            return
        self.store.organization_name = self.organization_name
        self.store.selected_currency = self._saved_currency
        self.store.employees = list(self.employees)
        self.store.employee_history = list(self.history)
        self.store.historical_payroll = self.ledger.runs()
        self.store.attendance_period = self.period
        self.store.attendance = {employee_id: list(r.daily_statuses) for employee_id, r in self.attendance.items()}
        self.store.save()
