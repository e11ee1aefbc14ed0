from __future__ import annotations

import csv
from datetime import date
from pathlib import Path
from typing import Dict, List

from pydantic import BaseModel, Field, ValidationError, field_validator

from .currency import CurrencyConverter
from .exceptions import RosterImportError
from .models import Department, DependentProfile, Employee, HistoricalPayrollRun

REQUIRED_COLUMNS = [
    "name",
    "department",
    "position",
    "join_date",
    "base_salary",
    "service_points",
    "has_spouse",
    "children",
    "parents",
]

RUN_HEADERS = [
    "employee_id",
    "name",
    "department",
    "position",
    "gross_pay",
    "total_deductions",
    "net_pay",
    "manual_deduction_reason",
]


class EmployeeRow(BaseModel):
    name: str = Field(min_length=1)
    department: Department
    position: str = Field(min_length=1)
    join_date: date
    base_salary: float = Field(ge=0)
    service_points: float = Field(ge=0)
    has_spouse: bool = False
    children: int = Field(default=0, ge=0)
    parents: int = Field(default=0, ge=0)

    @field_validator("name", "position", mode="before")
    @classmethod
    def strip_text(cls, value: str) -> str:
        return value.strip() if isinstance(value, str) else value

    @field_validator("has_spouse", mode="before")
    @classmethod
    def parse_flag(cls, value):
        if isinstance(value, str):
            return value.strip().lower() in ("true", "yes", "1", "y")
        return value

    def to_employee(self) -> Employee:
        return Employee(
            id="",
            name=self.name,
            department=self.department,
            position=self.position,
            join_date=self.join_date,
            base_salary=self.base_salary,
            service_points=self.service_points,
            dependents=DependentProfile(has_spouse=self.has_spouse, children=self.children, parents=self.parents),
        )


def _describe(error: ValidationError) -> str:
    return "; ".join(f"{'.'.join(str(p) for p in e['loc'])}: {e['msg']}" for e in error.errors())


def import_employees(path: Path) -> List[Employee]:
    """Parse a roster CSV. Any bad column or row rejects the whole file."""

    with path.open(newline="", encoding="utf-8-sig") as handle:
        reader = csv.DictReader(handle)
        headers = [h.strip() for h in (reader.fieldnames or [])]
        missing = [column for column in REQUIRED_COLUMNS if column not in headers]
        if missing:
            raise RosterImportError(
                f"CSV file is missing required columns: {', '.join(missing)}",
                missing_columns=missing,
            )

        employees: List[Employee] = []
        row_errors: Dict[int, str] = {}
        for line_number, row in enumerate(reader, start=2):
            # DictReader files surplus fields under the None key.
            if None in row:
                row_errors[line_number] = f"{len(row[None])} unexpected extra field(s)"
                continue
            values ={(key or "").strip(): (value or "").strip() for key, value in row.items()}
            if not any(values.values()):
                continue
            try:
                employees.append(EmployeeRow(**{column: values[column] for column in REQUIRED_COLUMNS}).to_employee())
            except ValidationError as exc:
                row_errors[line_number] = _describe(exc)

    if row_errors:
        details = "; ".join(f"row {number}: {message}" for number, message in row_errors.items())
        raise RosterImportError(f"CSV rows failed validation, nothing imported. {details}", row_errors=row_errors)
    return employees


def export_payroll_run(path: Path, run: HistoricalPayrollRun, converter: CurrencyConverter, currency: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", newline="", encoding="utf-8") as handle:
        writer = csv.DictWriter(handle, fieldnames=RUN_HEADERS)
        writer.writeheader()
        for entry in run.entries:
            employee = run.employee(entry.employee_id)
            writer.writerow(
                {
                    "employee_id": entry.employee_id,
                    "name": employee.name if employee else "N/A",
                    "department": employee.department.value if employee else "N/A",
                    "position": employee.position if employee else "N/A",
                    "gross_pay": f"{converter.from_canonical(entry.gross_pay, currency):.2f}",
                    "total_deductions": f"{converter.from_canonical(entry.total_deductions, currency):.2f}",
                    "net_pay": f"{converter.from_canonical(entry.net_pay, currency):.2f}",
                    "manual_deduction_reason": entry.manual_deduction_reason,
                }
            )
    return path
