from datetime import date

import pytest

from payledger.ledger import HistoricalLedger
from payledger.models import Department, Employee, PayrollEntry, Period
from payledger.reports import department_net_pay, employee_pay_history, payroll_trend, run_totals, yearly_totals


def build_entry(employee_id: str, gross: float, deductions: float) -> PayrollEntry:
    return PayrollEntry(
        employee_id=employee_id,
        base_salary=gross,
        service_charge=0.0,
        overtime=0.0,
        unpaid_leave_deduction=0.0,
        gross_pay=gross,
        tax=deductions,
        social_security=0.0,
        manual_deduction=0.0,
        manual_deduction_reason="",
        total_deductions=deductions,
        net_pay=gross - deductions,
    )


def build_employee(employee_id: str, department: Department) -> Employee:
    return Employee(
        id=employee_id,
        name=employee_id,
        department=department,
        position="Staff",
        join_date=date(2022, 1, 1),
        base_salary=400,
    )


def build_ledger() -> HistoricalLedger:
    ledger = HistoricalLedger()
    staff = [build_employee("a", Department.SECURITY), build_employee("b", Department.FINANCE)]
    ledger.finalize(Period(2024, 2), [build_entry("a", 1000, 100), build_entry("b", 2000, 300)], staff)
    ledger.finalize(Period(2023, 12), [build_entry("a", 900, 90)], staff[:1])
    ledger.finalize(Period(2024, 1), [build_entry("b", 2000, 250)], staff[1:])
    return ledger


def test_run_totals_sum_entries():
    totals = run_totals([build_entry("a", 1000, 100), build_entry("b", 2000, 300)])

    assert totals.gross_pay == 3000
    assert totals.total_deductions == 400
    assert totals.net_pay == 2600
    assert totals.employee_count == 2


def test_trend_follows_chronological_periods():
    rows = payroll_trend(build_ledger())

    assert [row.period for row in rows] == [Period(2023, 12), Period(2024, 1), Period(2024, 2)]
    assert [row.totals.net_pay for row in rows] == [810, 1750, 2600]


def test_trend_respects_bounds():
    rows = payroll_trend(build_ledger(), start=Period(2024, 1), end=Period(2024, 1))

    assert [row.period for row in rows] == [Period(2024, 1)]


def test_yearly_totals_only_include_that_year():
    totals = yearly_totals(build_ledger(), 2024)

    assert totals.gross_pay == 5000
    assert totals.net_pay == pytest.approx(4350)
    assert totals.employee_count == 2


def test_department_breakdown_uses_snapshot_roster():
    ledger = build_ledger()
    run = ledger.retrieve(Period(2024, 2))

    assert department_net_pay(run.entries, run.employees) == {"Security": 900, "Finance": 1700}


def test_employee_history_spans_runs():
    rows = employee_pay_history(build_ledger(), "a")

    assert [row.period for row in rows] == [Period(2023, 12), Period(2024, 2)]
    assert rows[-1].totals.net_pay == 900
