from __future__ import annotations

import json
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

DEFAULT_POLICY_DIR = Path(__file__).resolve().parent / "data" / "policies"
DEFAULT_POLICY_VERSION = "mm_2024"


@dataclass(frozen=True)
class TaxBracket:
    width: Optional[float]  # None for the unbounded top bracket
    rate: float


@dataclass(frozen=True)
class AllowancePolicy:
    personal_rate: float
    personal_cap: float
    spouse: float
    per_child: float
    per_parent: float


@dataclass(frozen=True)
class Currency:
    code: str
    name: str
    symbol: str
    rate: float  # units per one reference-currency unit


@dataclass(frozen=True)
class PayrollPolicy:
    version: str
    canonical_currency: str
    reference_currency: str
    contribution_rate: float
    allowances: AllowancePolicy
    brackets: List[TaxBracket]
    currencies: List[Currency]

    def currency(self, code: str) -> Currency:
        for currency in self.currencies:
            if currency.code == code:
                return currency
        raise KeyError(f"Currency {code} not configured in policy {self.version}")


class PolicyRepository:
    def __init__(self, base_path: Path = DEFAULT_POLICY_DIR):
        self.base_path = base_path

    def available_versions(self) -> List[str]:
        return sorted([p.stem for p in self.base_path.glob("*.json")])

    def load(self, version: str) -> PayrollPolicy:
        file_path = self.base_path / f"{version}.json"
        if not file_path.exists():
            raise FileNotFoundError(f"Policy version {version} not found at {file_path}")
        with file_path.open("r", encoding="utf-8") as handle:
            data = json.load(handle)
        brackets = [TaxBracket(width=row["width"], rate=row["rate"]) for row in data["brackets"]]
        if not brackets or brackets[-1].width is not None:
            raise ValueError(f"Policy {version} must end with an unbounded bracket")
        if any(bracket.width is None for bracket in brackets[:-1]):
            raise ValueError(f"Policy {version} has an unbounded bracket before the last one")
        return PayrollPolicy(
            version=data["version"],
            canonical_currency=data["canonical_currency"],
            reference_currency=data["reference_currency"],
            contribution_rate=float(data["contribution_rate"]),
            allowances=AllowancePolicy(**data["allowances"]),
            brackets=brackets,
            currencies=[Currency(**row) for row in data.get("currencies", [])],
        )


@lru_cache
def load_policy(version: str = DEFAULT_POLICY_VERSION, base_path: Optional[Path] = None) -> PayrollPolicy:
    return PolicyRepository(base_path or DEFAULT_POLICY_DIR).load(version)
