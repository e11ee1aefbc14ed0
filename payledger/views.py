from __future__ import annotations

from datetime import date
from typing import Callable, Iterable

from .currency import CurrencyConverter
from .models import Employee, EmployeeAttendance, PayrollEntry, Period
from .reports import TrendRow, run_totals


def _money(converter: CurrencyConverter, currency: str) -> Callable[[float], str]:
    def render(amount: float) -> str:
        return converter.format(converter.from_canonical(amount, currency), currency)

    return render


def format_payroll(
    entries: Iterable[PayrollEntry],
    employees: Iterable[Employee],
    converter: CurrencyConverter,
    currency: str,
    title: str = "Payroll",
) -> str:
    names = {employee.id: employee.name for employee in employees}
    money = _money(converter, currency)
    rows = [
        title,
        f"{'ID':<12} {'Name':<20} {'Gross':>14} {'Tax':>12} {'SSB':>12} {'Deductions':>14} {'Net':>14}",
    ]
    entry_list = list(entries)
    for entry in entry_list:
        rows.append(
            f"{entry.employee_id:<12} {names.get(entry.employee_id, '-'):<20} {money(entry.gross_pay):>14} "
            f"{money(entry.tax):>12} {money(entry.social_security):>12} {money(entry.total_deductions):>14} "
            f"{money(entry.net_pay):>14}"
        )
    totals = run_totals(entry_list)
    rows.append(f"Total net pay: {money(totals.net_pay)} for {totals.employee_count} employees")
    return "\n".join(rows)


def format_payslip(entry: PayrollEntry, employee: Employee, converter: CurrencyConverter, currency: str, organization: str) -> str:
    money = _money(converter, currency)
    lines = [
        organization,
        f"Payslip for {employee.name} ({employee.id}), {employee.position}",
        "Earnings",
        f"  Base salary          {money(entry.base_salary):>14}",
        f"  Service charge       {money(entry.service_charge):>14}",
        f"  Overtime             {money(entry.overtime):>14}",
        f"  Gross pay            {money(entry.gross_pay):>14}",
        "Deductions",
        f"  Income tax           {money(entry.tax):>14}",
        f"  Social security      {money(entry.social_security):>14}",
        f"  Unpaid leave         {money(entry.unpaid_leave_deduction):>14}",
        f"  Other                {money(entry.manual_deduction):>14}",
    ]
    if entry.manual_deduction_reason:
        lines.append(f"    ({entry.manual_deduction_reason})")
    lines.append(f"  Total deductions     {money(entry.total_deductions):>14}")
    lines.append(f"Net pay                {money(entry.net_pay):>14}")
    return "\n".join(lines)


def format_calendar(attendance: EmployeeAttendance, period: Period) -> str:
    rows = [f"Attendance {attendance.employee_id} {period}", "Date        Status"]
    for index, code in enumerate(attendance.daily_statuses):
        rows.append(f"{date(period.year, period.month, index + 1).isoformat()}  {code}")
    counts = ", ".join(f"{code}={count}" for code, count in attendance.summary.counts.items())
    rows.append(f"Summary: {counts}; paid days: {attendance.summary.total_paid_days}")
    return "\n".join(rows)


def format_trend(rows: Iterable[TrendRow], converter: CurrencyConverter, currency: str) -> str:
    money = _money(converter, currency)
    lines = [f"{'Period':<8} {'Employees':>9} {'Gross':>16} {'Deductions':>16} {'Net':>16}"]
    for row in rows:
        totals = row.totals
        lines.append(
            f"{str(row.period):<8} {totals.employee_count:>9} {money(totals.gross_pay):>16} "
            f"{money(totals.total_deductions):>16} {money(totals.net_pay):>16}"
        )
    return "\n".join(lines)


def format_employees(employees: Iterable[Employee], converter: CurrencyConverter, reference: str, currency: str) -> str:
    lines = []
    for employee in employees:
        salary = converter.format(converter.convert(employee.base_salary, reference, currency), currency)
        lines.append(
            f"{employee.id} {employee.name} (dept: {employee.department.value}, position: {employee.position}, "
            f"base: {salary}, points: {employee.service_points:g})"
        )
    return "\n".join(lines)

