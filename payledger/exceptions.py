from __future__ import annotations

from typing import Dict, List, Optional


class PayrollError(Exception):
    """Base class for errors raised by payledger."""


class RosterValidationError(PayrollError, ValueError):
    pass


class AttendanceValidationError(PayrollError, ValueError):
    pass


class RosterImportError(PayrollError, ValueError):
    def __init__(
        self,
        message: str,
        missing_columns: Optional[List[str]] = None,
        row_errors: Optional[Dict[int, str]] = None,
    ):
        super().__init__(message)
        self.missing_columns = missing_columns or []
        self.row_errors = row_errors or {}


class PayrollNotCalculatedError(PayrollError):
    def __init__(self, message: str = "Please calculate payroll first."):
        super().__init__(message)


class ArithmeticGuardError(PayrollError, ArithmeticError):
    pass
