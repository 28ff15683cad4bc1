"""
Commission engine errors.

- ValidationError: the candidate breaks a business rule. Fix input, retry.
- ConflictError: another activation won the race. Re-read, retry.
- ConfigurationError: no rule can be resolved. Setup bug.
- PersistenceError: the database failed. Investigate.
"""

from typing import List, Optional


class CommissionError(Exception):
    """Base class for commission engine errors."""


class ValidationError(CommissionError):
    """Candidate settings failed validation. Nothing was written."""

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__(f"{len(self.errors)} validation error(s): " + "; ".join(self.errors))


class ConflictError(CommissionError):
    """The active version changed underneath an activation."""

    def __init__(
        self,
        message: str,
        expected_version: Optional[int] = None,
        actual_version: Optional[int] = None,
    ):
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(message)


class ConfigurationError(CommissionError):
    """No commission rule can be resolved for a computation."""


class PersistenceError(CommissionError):
    """The storage layer failed; the original error is chained as __cause__."""
