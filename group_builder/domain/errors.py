# group_builder/domain/errors.py
"""
Error taxonomy and the result wrapper returned by public engine operations.

Services raise these errors; the public operations catch them and hand them back
inside a Result, so callers branch on ``result.success`` instead of catching.
"""
from dataclasses import dataclass
from typing import Any, Optional


class GroupBuilderError(Exception):
    code = "group_builder_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message}


class NotFoundError(GroupBuilderError):
    code = "not_found"


class CapacityExceededError(GroupBuilderError):
    code = "capacity_exceeded"


class AlreadyAssignedError(GroupBuilderError):
    code = "already_assigned"


class ValidationError(GroupBuilderError):
    code = "validation_error"


class InvariantViolationError(GroupBuilderError):
    code = "invariant_violation"


class FetchError(GroupBuilderError):
    code = "fetch_error"


class OptimizationError(GroupBuilderError):
    code = "optimization_error"


class PersistenceError(GroupBuilderError):
    code = "persistence_error"


class CompatibilityComputeError(GroupBuilderError):
    """Non-fatal: the affected group falls back to a neutral score."""
    code = "compatibility_compute_error"


@dataclass
class Result:
    success: bool
    data: Any = None
    error: Optional[GroupBuilderError] = None

    @classmethod
    def ok(cls, data: Any = None) -> "Result":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: GroupBuilderError) -> "Result":
        return cls(success=False, error=error)

    @property
    def error_code(self) -> Optional[str]:
        return self.error.code if self.error else None
