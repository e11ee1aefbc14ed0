from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Mapping, Sequence

from .exceptions import ArithmeticGuardError, AttendanceValidationError
from .models import AttendanceSummary, EmployeeAttendance

PRESENT = "P"


@dataclass(frozen=True)
class StatusDefinition:
    label: str
    paid: bool


StatusTable = Mapping[str, StatusDefinition]

DEFAULT_STATUS_TABLE: Dict[str, StatusDefinition] = {
    "P": StatusDefinition("Present Day", paid=True),
    "O": StatusDefinition("Off Day", paid=True),
    "S": StatusDefinition("Sick Leave", paid=True),
    "L": StatusDefinition("Leave With Pay", paid=True),
    "LW": StatusDefinition("Leave Without Pay", paid=False),
    "A": StatusDefinition("Absent", paid=False),
}


def derive_summary(daily_statuses: Sequence[str], status_table: StatusTable = DEFAULT_STATUS_TABLE) -> AttendanceSummary:
    counts = {code: 0 for code in status_table}
    for index, code in enumerate(daily_statuses):
        if code not in status_table:
            raise AttendanceValidationError(f"Unknown attendance status {code!r} on day {index + 1}")
        counts[code] += 1
    paid = sum(count for code, count in counts.items() if status_table[code].paid)
    return AttendanceSummary(counts=counts, total_paid_days=paid)


def unpaid_days(summary: AttendanceSummary, status_table: StatusTable = DEFAULT_STATUS_TABLE) -> int:
    return sum(summary.count(code) for code, status in status_table.items() if not status.paid)


def resize_to_period(daily_statuses: Sequence[str], days: int, default: str = PRESENT) -> List[str]:
    """Fit a status sequence to ``days`` without moving existing entries."""

    if days <= 0:
        raise ArithmeticGuardError(f"Period must have at least one day, got {days}")
    kept = list(daily_statuses[:days])
    return kept + [default] * (days - len(kept))


def new_attendance(employee_id: str, days: int, status_table: StatusTable = DEFAULT_STATUS_TABLE) -> EmployeeAttendance:
    statuses = resize_to_period([], days)
    return EmployeeAttendance(employee_id=employee_id, daily_statuses=statuses, summary=derive_summary(statuses, status_table))


def fit_attendance(attendance: EmployeeAttendance, days: int, status_table: StatusTable = DEFAULT_STATUS_TABLE) -> EmployeeAttendance:
    if len(attendance.daily_statuses) == days:
        return attendance
    statuses = resize_to_period(attendance.daily_statuses, days)
    return EmployeeAttendance(
        employee_id=attendance.employee_id,
        daily_statuses=statuses,
        summary=derive_summary(statuses, status_table),
    )


def set_day_status(
    attendance: EmployeeAttendance,
    day_index: int,
    code: str,
    status_table: StatusTable = DEFAULT_STATUS_TABLE,
) -> EmployeeAttendance:
    if code not in status_table:
        raise AttendanceValidationError(f"Unknown attendance status {code!r}")
    if not 0 <= day_index < len(attendance.daily_statuses):
        raise AttendanceValidationError(
            f"Day index {day_index} outside period of {len(attendance.daily_statuses)} days"
        )
    statuses = list(attendance.daily_statuses)
    statuses[day_index] = code
    return EmployeeAttendance(
        employee_id=attendance.employee_id,
        daily_statuses=statuses,
        summary=derive_summary(statuses, status_table),
    )
