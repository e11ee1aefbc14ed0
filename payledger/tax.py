from __future__ import annotations

from dataclasses import dataclass
from typing import List

from .models import DependentProfile
from .tax_tables import AllowancePolicy, PayrollPolicy, TaxBracket


@dataclass(frozen=True)
class AllowanceBreakdown:
    personal: float
    spouse: float
    children: float
    parents: float
    contribution: float

    @property
    def total(self) -> float:
        return self.personal + self.spouse + self.children + self.parents + self.contribution


class TaxCalculator:
    """Progressive income tax on annual figures in the canonical currency."""

    def __init__(self, brackets: List[TaxBracket], allowances: AllowancePolicy):
        self.brackets = brackets
        self.allowance_policy = allowances

    @classmethod
    def from_policy(cls, policy: PayrollPolicy) -> "TaxCalculator":
        return cls(policy.brackets, policy.allowances)

    def allowances(self, annual_gross: float, dependents: DependentProfile, annual_contribution: float) -> AllowanceBreakdown:
        policy = self.allowance_policy
        return AllowanceBreakdown(
            personal=min(annual_gross * policy.personal_rate, policy.personal_cap),
            spouse=policy.spouse if dependents.has_spouse else 0.0,
            children=policy.per_child * dependents.children,
            parents=policy.per_parent * dependents.parents,
            contribution=annual_contribution,
        )

    def apply_brackets(self, taxable_income: float) -> float:
        remaining = taxable_income
        total_tax = 0.0
        for bracket in self.brackets:
            if remaining <= 0:
                break
            taxable_at_rate = remaining if bracket.width is None else min(remaining, bracket.width)
            total_tax += taxable_at_rate * bracket.rate
            remaining -= taxable_at_rate
        return total_tax

    def taxable_income(self, annual_gross: float, dependents: DependentProfile, annual_contribution: float) -> float:
        return annual_gross - self.allowances(annual_gross, dependents, annual_contribution).total

    def annual_tax(self, annual_gross: float, dependents: DependentProfile, annual_contribution: float = 0.0) -> float:
        if annual_gross <= 0:
            return 0.0
        taxable = self.taxable_income(annual_gross, dependents, annual_contribution)
        if taxable <= 0:
            return 0.0
        return self.apply_brackets(taxable)

    def monthly_tax(self, annual_gross: float, dependents: DependentProfile, annual_contribution: float = 0.0) -> float:
        return self.annual_tax(annual_gross, dependents, annual_contribution) / 12
