from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from .ledger import HistoricalLedger
from .models import Employee, PayrollEntry, Period


@dataclass
class RunTotals:
    gross_pay: float
    total_deductions: float
    tax: float
    social_security: float
    net_pay: float
    employee_count: int


@dataclass
class TrendRow:
    period: Period
    totals: RunTotals


def _round_dict(values: Dict[str, float]) -> Dict[str, float]:
    return {key: round(value, 2) for key, value in values.items()}


def run_totals(entries: Iterable[PayrollEntry]) -> RunTotals:
    entry_list = list(entries)
    return RunTotals(
        gross_pay=round(sum(e.gross_pay for e in entry_list), 2),
        total_deductions=round(sum(e.total_deductions for e in entry_list), 2),
        tax=round(sum(e.tax for e in entry_list), 2),
        social_security=round(sum(e.social_security for e in entry_list), 2),
        net_pay=round(sum(e.net_pay for e in entry_list), 2),
        employee_count=len({e.employee_id for e in entry_list}),
    )


def department_net_pay(entries: Iterable[PayrollEntry], employees: Iterable[Employee]) -> Dict[str, float]:
    """Net pay per department, using whatever roster the entries were computed with."""

    departments = {employee.id: employee.department.value for employee in employees}
    totals: Dict[str, float] = defaultdict(float)
    for entry in entries:
        totals[departments.get(entry.employee_id, "Unassigned")] += entry.net_pay
    return _round_dict({name: value for name, value in totals.items() if value})


def payroll_trend(
    ledger: HistoricalLedger,
    start: Optional[Period] = None,
    end: Optional[Period] = None,
) -> List[TrendRow]:
    rows: List[TrendRow] = []
    for period in ledger.list_periods():
        if start and period < start:
            continue
        if end and period > end:
            continue
        run = ledger.retrieve(period)
        rows.append(TrendRow(period=period, totals=run_totals(run.entries)))
    return rows


def yearly_totals(ledger: HistoricalLedger, year: int) -> RunTotals:
    entries: List[PayrollEntry] = []
    for period in ledger.list_periods():
        if period.year == year:
            entries.extend(ledger.retrieve(period).entries)
    return run_totals(entries)


def employee_pay_history(ledger: HistoricalLedger, employee_id: str) -> List[TrendRow]:
    """Per-period figures for one employee, including employees since removed from the roster."""

    rows: List[TrendRow] = []
    for run in ledger.runs():
        entry = run.entry_for(employee_id)
        if entry is not None:
            rows.append(TrendRow(period=run.period, totals=run_totals([entry])))
    return rows
