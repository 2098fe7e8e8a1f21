"""Edit-eligibility decision for versioned entities."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from app.config import settings
from app.workflow import statuses as st
from app.workflow.lineage import newer_than


@dataclass(frozen=True)
class VersionSummary:
    entity_id: Any
    version: int
    status: str
    created_at: Optional[datetime] = None

    @classmethod
    def of(cls, row) -> "VersionSummary":
        return cls(
            entity_id=row.entity_id,
            version=row.version,
            status=row.status,
            created_at=getattr(row, "created_at", None),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.entity_id,
            "version": self.version,
            "status": self.status,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass(frozen=True)
class EditDecision:
    allowed: bool
    status: str
    version: int
    is_latest_version: bool
    reason: Optional[str] = None
    blocking_versions: Tuple[VersionSummary, ...] = ()
    newer_versions: Tuple[VersionSummary, ...] = field(default_factory=tuple)

    def to_response(self, label: str = "course") -> Dict[str, Any]:
        """Body shared by the can-edit endpoint and 403 denials."""
        body = {
            "canEdit": self.allowed,
            "reason": self.reason or "",
            "courseStatus": self.status,
            "isLatestVersion": self.is_latest_version,
            "version": self.version,
            "newerVersionsCount": len(self.newer_versions),
            "blockingVersions": [v.to_dict() for v in self.blocking_versions],
        }
        if not self.allowed:
            body = {"error": f"Cannot edit this {label}", **body}
        return body

    def newer_versions_payload(self) -> List[Dict[str, Any]]:
        return [v.to_dict() for v in sorted(self.newer_versions, key=lambda v: -v.version)]


def _distinct(statuses: Iterable[str]) -> List[str]:
    seen: Dict[str, None] = {}
    for status in statuses:
        seen.setdefault(status, None)
    return list(seen)


def can_edit(
    entity,
    lineage: Sequence,
    blocking_statuses: Optional[Iterable[str]] = None,
    label: str = "course",
) -> EditDecision:
    """Decide whether ``entity`` may be edited given its whole lineage.

    An active version stays editable until newer work in one of
    ``blocking_statuses`` exists. Any other version is frozen as soon as a
    newer version exists at all.
    """
    if blocking_statuses is None:
        blocking_statuses = settings.EDIT_BLOCKING_STATUSES
    blocking_statuses = tuple(blocking_statuses)

    newer = tuple(VersionSummary.of(row) for row in newer_than(lineage, entity.version))

    if entity.status == st.ACTIVE:
        blocking = tuple(v for v in newer if v.status in blocking_statuses)
    else:
        blocking = newer

    reason = None
    if blocking:
        statuses = ", ".join(_distinct(v.status for v in blocking))
        if entity.status == st.ACTIVE:
            reason = (
                f"Cannot edit this active {label} (version {entity.version}) because "
                f"{len(blocking)} newer version(s) exist with status: {statuses}. "
                "Please work with the latest version or wait for the newer version to be processed."
            )
        else:
            reason = (
                f"Cannot edit this {entity.status} {label} (version {entity.version}) because "
                f"{len(blocking)} newer version(s) exist (statuses: {statuses}). "
                "Superseded versions are frozen; please work with the latest version."
            )

    return EditDecision(
        allowed=not blocking,
        status=entity.status,
        version=entity.version,
        is_latest_version=bool(entity.is_latest_version),
        reason=reason,
        blocking_versions=blocking,
        newer_versions=newer,
    )
