"""Telegram bridge for the SpendWise expense tracker."""
from .parser import (
    BatchResult,
    CallerContext,
    ExpenseRecord,
    LineFailure,
    ParsedExpense,
    RejectionReason,
    aggregate,
    interpret,
)

__version__ = "1.0.0"
