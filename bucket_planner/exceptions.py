"""Exception types raised by the bucket planner."""

from __future__ import annotations


class BucketPlannerError(Exception):
    """Base class for all bucket planner errors."""


class MonthClosedError(BucketPlannerError):
    """Raised when an edit targets a month that has already been closed."""

    def __init__(self, year: int, month: int, action: str = "edit"):
        self.year = year
        self.month = month
        self.action = action
        super().__init__(
            f"Month {year}-{month:02d} is closed; reopen it to {action}."
        )


class InvalidMovementError(BucketPlannerError, ValueError):
    """Raised when a new movement fails creation-time validation."""


class MonthNotFoundError(BucketPlannerError, LookupError):
    """Raised when a month record cannot be located."""
