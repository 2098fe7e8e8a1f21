"""Business error taxonomy of the workflow engine.

Decision functions return these inside an ``Outcome``; services raise them and
the application-level exception handler renders them as JSON.
"""

from typing import Any, Dict


class WorkflowError(Exception):
    code = "workflow_error"
    title = "Request cannot be processed"
    status_code = 400
    retryable = False

    def __init__(self, reason: str, **detail: Any):
        super().__init__(reason)
        self.reason = reason
        self.detail = detail

    def to_response(self) -> Dict[str, Any]:
        return {"error": self.title, "code": self.code, "reason": self.reason, **self.detail}

    def __eq__(self, other):
        return (
            type(self) is type(other)
            and self.reason == other.reason
            and self.detail == other.detail
        )

    def __hash__(self):
        return hash((type(self), self.reason))

    def __repr__(self):
        return f"{type(self).__name__}({self.reason!r})"


class InvalidTransition(WorkflowError):
    code = "invalid_transition"
    title = "Invalid transition"
    status_code = 400


class Forbidden(WorkflowError):
    code = "forbidden"
    title = "Forbidden"
    status_code = 403


class EditBlocked(WorkflowError):
    code = "edit_blocked"
    status_code = 403

    def __init__(self, decision, label: str = "course"):
        super().__init__(decision.reason)
        self.decision = decision
        self.label = label

    def to_response(self) -> Dict[str, Any]:
        return self.decision.to_response(self.label)


class StaleState(WorkflowError):
    code = "stale_state"
    title = "Record was modified concurrently; reload and retry"
    status_code = 409


class DuplicateEnrollment(WorkflowError):
    code = "duplicate_enrollment"
    title = "Enrollment already exists for this period"
    status_code = 409


class Unavailable(WorkflowError):
    code = "unavailable"
    title = "Service temporarily unavailable"
    status_code = 503
    retryable = True


class LineageIntegrityError(Exception):
    """Persisted rows violate the lineage invariants; treated as a fault."""
