"""Typed success/failure result returned by the pure decision functions."""

from dataclasses import dataclass
from typing import Any, Optional

from app.workflow.errors import WorkflowError


@dataclass(frozen=True)
class Outcome:
    value: Any = None
    error: Optional[WorkflowError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: Any) -> "Outcome":
        return cls(value=value)

    @classmethod
    def failure(cls, error: WorkflowError) -> "Outcome":
        return cls(error=error)

    def unwrap(self) -> Any:
        if self.error is not None:
            raise self.error
        return self.value
