from __future__ import annotations

from typing import Iterable, List, Mapping, Optional

from .attendance import DEFAULT_STATUS_TABLE, StatusTable, unpaid_days
from .currency import CurrencyConverter
from .exceptions import ArithmeticGuardError
from .models import AttendanceSummary, Employee, EmployeeAttendance, PayrollEntry, PeriodConfig
from .tax import TaxCalculator
from .tax_tables import PayrollPolicy


class PayrollEngine:
    def __init__(
        self,
        policy: PayrollPolicy,
        converter: Optional[CurrencyConverter] = None,
        tax_calculator: Optional[TaxCalculator] = None,
        status_table: StatusTable = DEFAULT_STATUS_TABLE,
    ):
        self.policy = policy
        self.converter = converter or CurrencyConverter.from_policy(policy)
        self.tax_calculator = tax_calculator or TaxCalculator.from_policy(policy)
        self.status_table = status_table

    def compute_entry(
        self,
        employee: Employee,
        summary: Optional[AttendanceSummary],
        config: PeriodConfig,
        days_in_period: Optional[int] = None,
    ) -> PayrollEntry:
        days = config.period.days if days_in_period is None else days_in_period
        if days <= 0:
            raise ArithmeticGuardError(f"Cannot derive a daily rate from {days} days in period")

        to_canonical = self.converter.to_canonical
        base = to_canonical(employee.base_salary, self.policy.reference_currency)
        service_charge = to_canonical(employee.service_points * config.service_rate, config.display_currency)
        overtime = config.overtime.get(employee.id, 0.0)
        gross = base + service_charge + overtime

        unpaid = unpaid_days(summary, self.status_table) if summary is not None else 0
        daily_rate = base / days
        unpaid_deduction = daily_rate * unpaid
        contribution = base * self.policy.contribution_rate

        taxable_monthly = max(0.0, base - unpaid_deduction) + service_charge + overtime
        tax = self.tax_calculator.monthly_tax(taxable_monthly * 12, employee.dependents, contribution * 12)

        deduction = config.deduction_for(employee.id)
        manual = to_canonical(deduction.amount, config.display_currency)

        total_deductions = tax + contribution + unpaid_deduction + manual
        return PayrollEntry(
            employee_id=employee.id,
            base_salary=base,
            service_charge=service_charge,
            overtime=overtime,
            unpaid_leave_deduction=unpaid_deduction,
            gross_pay=gross,
            tax=tax,
            social_security=contribution,
            manual_deduction=manual,
            manual_deduction_reason=deduction.reason,
            total_deductions=total_deductions,
            net_pay=gross - total_deductions,
        )

    def compute_run(
        self,
        employees: Iterable[Employee],
        attendance: Mapping[str, EmployeeAttendance],
        config: PeriodConfig,
    ) -> List[PayrollEntry]:
        days = config.period.days
        entries: List[PayrollEntry] = []
        for employee in employees:
            record = attendance.get(employee.id)
            summary = record.summary if record is not None else None
            entries.append(self.compute_entry(employee, summary, config, days_in_period=days))
        return entries
