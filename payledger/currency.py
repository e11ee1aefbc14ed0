from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, List

from .exceptions import ArithmeticGuardError
from .tax_tables import Currency, PayrollPolicy


class CurrencyConverter:
    """Converts amounts through a rate table anchored to one reference unit.

    All payroll math happens in ``canonical``; other currencies only appear
    at the presentation boundary.
    """

    def __init__(self, currencies: Iterable[Currency], canonical: str):
        self.currencies: Dict[str, Currency] = {}
        for currency in currencies:
            if currency.rate <= 0:
                raise ArithmeticGuardError(f"Exchange rate for {currency.code} must be positive, got {currency.rate}")
            self.currencies[currency.code] = currency
        if canonical not in self.currencies:
            raise KeyError(f"Canonical currency {canonical} missing from rate table")
        self.canonical = canonical

    @classmethod
    def from_policy(cls, policy: PayrollPolicy) -> "CurrencyConverter":
        return cls(policy.currencies, canonical=policy.canonical_currency)

    @property
    def codes(self) -> List[str]:
        return list(self.currencies)

    def rate(self, code: str) -> float:
        try:
            return self.currencies[code].rate
        except KeyError:
            raise KeyError(f"Currency {code} not in rate table") from None

    def convert(self, amount: float, from_code: str, to_code: str) -> float:
        if from_code == to_code:
            return amount
        return amount / self.rate(from_code) * self.rate(to_code)

    def to_canonical(self, amount: float, code: str) -> float:
        return self.convert(amount, code, self.canonical)

    def from_canonical(self, amount: float, code: str) -> float:
        return self.convert(amount, self.canonical, code)

    def format(self, amount: float, code: str) -> str:
        symbol = self.currencies[code].symbol if code in self.currencies else code
        # Halves round away from zero.
        rounded = int(Decimal(str(amount)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
        sign = "-" if rounded < 0 else ""
        return f"{sign}{symbol}{abs(rounded):,}"
