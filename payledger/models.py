from __future__ import annotations

from calendar import monthrange
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Dict, List, Optional, Tuple


class Department(str, Enum):
    FRONT_OFFICE = "Front Office"
    HOUSEKEEPING = "Housekeeping"
    FOOD_AND_BEVERAGE = "Food & Beverage"
    MANAGEMENT = "Management"
    MAINTENANCE = "Maintenance"
    SECURITY = "Security"
    HR = "Human Resources"
    ADMIN_AND_GENERAL = "Admin & General"
    FINANCE = "Finance"


class EventType(str, Enum):
    PROMOTION = "Promotion"
    PENALTY = "Penalty / Fine"
    SALARY_CHANGE = "Salary Change"
    NOTE = "General Note"
    HIRED = "Hired"


@dataclass(frozen=True)
class DependentProfile:
    has_spouse: bool = False
    children: int = 0
    parents: int = 0


@dataclass(frozen=True)
class Employee:
    id: str
    name: str
    department: Department
    position: str
    join_date: Optional[date]
    base_salary: float  # reference currency (USD)
    service_points: float = 0.0
    dependents: DependentProfile = field(default_factory=DependentProfile)


@dataclass
class EmployeeHistoryEvent:
    id: str
    employee_id: str
    date: date
    type: EventType
    description: str
    amount: Optional[float] = None


@dataclass(frozen=True, order=True)
class Period:
    year: int
    month: int  # 1-12

    def __post_init__(self) -> None:
        if not 1 <= self.month <= 12:
            raise ValueError(f"Month must be between 1 and 12, got {self.month}")

    @property
    def days(self) -> int:
        return monthrange(self.year, self.month)[1]

    @classmethod
    def containing(cls, day: date) -> "Period":
        return cls(day.year, day.month)

    def label(self) -> str:
        return date(self.year, self.month, 1).strftime("%B %Y")

    def __str__(self) -> str:
        return f"{self.year}-{self.month:02d}"


@dataclass(frozen=True)
class AttendanceSummary:
    counts: Dict[str, int]
    total_paid_days: int

    def count(self, code: str) -> int:
        return self.counts.get(code, 0)


@dataclass
class EmployeeAttendance:
    employee_id: str
    daily_statuses: List[str]
    summary: AttendanceSummary


@dataclass
class ManualDeduction:
    amount: float = 0.0  # display currency
    reason: str = ""


@dataclass
class PeriodConfig:
    period: Period
    service_rate: float  # per service point, display currency
    display_currency: str
    manual_deductions: Dict[str, ManualDeduction] = field(default_factory=dict)
    overtime: Dict[str, float] = field(default_factory=dict)  # canonical currency

    def deduction_for(self, employee_id: str) -> ManualDeduction:
        return self.manual_deductions.get(employee_id) or ManualDeduction()


@dataclass(frozen=True)
class PayrollEntry:
    employee_id: str
    base_salary: float
    service_charge: float
    overtime: float
    unpaid_leave_deduction: float
    gross_pay: float
    tax: float
    social_security: float
    manual_deduction: float
    manual_deduction_reason: str
    total_deductions: float
    net_pay: float


@dataclass(frozen=True)
class PayrollRun:
    """Entry set computed from one version of the coordinator inputs."""

    period: Period
    version: int
    entries: Tuple[PayrollEntry, ...]

    def entry_for(self, employee_id: str) -> Optional[PayrollEntry]:
        for entry in self.entries:
            if entry.employee_id == employee_id:
                return entry
        return None


@dataclass(frozen=True)
class HistoricalPayrollRun:
    period: Period
    entries: Tuple[PayrollEntry, ...]
    employees: Tuple[Employee, ...]
    finalized_at: str = ""

    def entry_for(self, employee_id: str) -> Optional[PayrollEntry]:
        for entry in self.entries:
            if entry.employee_id == employee_id:
                return entry
        return None

    def employee(self, employee_id: str) -> Optional[Employee]:
        for employee in self.employees:
            if employee.id == employee_id:
                return employee
        return None
