from __future__ import annotations

import copy
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

from .models import Employee, HistoricalPayrollRun, PayrollEntry, Period


class HistoricalLedger:
    """Finalized payroll runs, at most one per period.

    Runs are deep copies taken at finalize time, so later edits or deletions
    in the live roster never reach them. A period's data only changes when it
    is finalized again.
    """

    def __init__(self, runs: Iterable[HistoricalPayrollRun] = ()):
        self._runs: Dict[Period, HistoricalPayrollRun] = {}
        for run in runs:
            self._runs[run.period] = run

    def finalize(
        self,
        period: Period,
        entries: Iterable[PayrollEntry],
        employees: Iterable[Employee],
    ) -> HistoricalPayrollRun:
        run = HistoricalPayrollRun(
            period=period,
            entries=tuple(copy.deepcopy(list(entries))),
            employees=tuple(copy.deepcopy(list(employees))),
            finalized_at=datetime.now(timezone.utc).isoformat(),
        )
        self._runs[period] = run
        return run

    def retrieve(self, period: Period) -> Optional[HistoricalPayrollRun]:
        return self._runs.get(period)

    def is_finalized(self, period: Period) -> bool:
        return period in self._runs

    def list_periods(self) -> List[Period]:
        return sorted(self._runs)

    def runs(self) -> List[HistoricalPayrollRun]:
        return [self._runs[period] for period in self.list_periods()]

    def __len__(self) -> int:
        return len(self._runs)
