"""Pure helpers over the ordered versions of one base code."""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence

from app.config import settings
from app.workflow import statuses as st
from app.workflow.errors import Forbidden, InvalidTransition, LineageIntegrityError
from app.workflow.kinds import ActorRole, COURSE, EntityKind
from app.workflow.outcome import Outcome

# Never carried from a source version into its fork.
FORK_BLACKLIST = frozenset({
    "version",
    "status",
    "parent_id",
    "is_latest_version",
    "created_by",
    "updated_by",
    "approved_by",
    "approved_at",
    "submitted_at",
    "rejection_reason",
    "activation_date",
    "created_at",
    "updated_at",
})

FORK_ROLES = frozenset({ActorRole.CREATOR, ActorRole.COLLABORATOR, ActorRole.ADMIN})


def newer_than(lineage: Iterable, version: int) -> List:
    return [row for row in lineage if row.version > version]


def latest_of(lineage: Sequence) -> Optional[Any]:
    flagged = [row for row in lineage if row.is_latest_version]
    if flagged:
        return flagged[0]
    return max(lineage, key=lambda row: row.version, default=None)


def validate_lineage(lineage: Sequence) -> None:
    """Raise ``LineageIntegrityError`` when persisted rows break the lineage shape.

    Expects rows ordered by version ascending, as returned by the store.
    """
    if not lineage:
        return
    code = lineage[0].code
    versions = [row.version for row in lineage]
    if len(set(versions)) != len(versions):
        raise LineageIntegrityError(f"Duplicate version numbers in lineage {code}: {versions}")
    if any(v < 1 for v in versions):
        raise LineageIntegrityError(f"Non-positive version number in lineage {code}: {versions}")

    flagged = [row for row in lineage if row.is_latest_version]
    if len(flagged) > 1:
        raise LineageIntegrityError(
            f"Lineage {code} has {len(flagged)} latest versions: {[row.version for row in flagged]}"
        )
    if flagged and flagged[0].version != max(versions):
        raise LineageIntegrityError(
            f"Latest flag of lineage {code} is on version {flagged[0].version}, not {max(versions)}"
        )

    by_id = {row.entity_id: row for row in lineage}
    children: Dict[Any, int] = {}
    for row in lineage:
        if row.parent_id is None:
            continue
        parent = by_id.get(row.parent_id)
        if parent is None:
            raise LineageIntegrityError(
                f"Version {row.version} of {code} points to a parent outside its lineage"
            )
        if parent.version >= row.version:
            raise LineageIntegrityError(
                f"Version {row.version} of {code} has parent version {parent.version}"
            )
        children[row.parent_id] = children.get(row.parent_id, 0) + 1
        if children[row.parent_id] > 1:
            raise LineageIntegrityError(f"Lineage {code} branches at version {parent.version}")


@dataclass(frozen=True)
class ForkPlan:
    source_id: Any
    version: int
    fields: Dict[str, Any]
    # Row that currently carries the latest flag and hands it to the fork.
    latest_id: Any = None
    latest_status: Optional[str] = None


def _resumable_from(source, lineage: Sequence) -> Optional[Any]:
    """Latest row of a lineage whose newest work was retired, when ``source`` may resume it.

    ``source`` must be the highest active version below a disabled or
    archived latest row.
    """
    latest = latest_of(lineage)
    if latest is None or latest.entity_id == source.entity_id:
        return None
    if latest.status not in st.RETIRED_STATUSES or source.status != st.ACTIVE:
        return None
    active = [row for row in lineage if row.status == st.ACTIVE]
    if max(row.version for row in active) != source.version:
        return None
    return latest


def plan_fork(
    source,
    source_values: Dict[str, Any],
    lineage: Sequence,
    actor_roles: Iterable[str],
    actor_id: Any,
    *,
    id_field: str,
    kind: EntityKind = COURSE,
    source_statuses: Optional[Iterable[str]] = None,
) -> Outcome:
    """Decide whether ``source`` may be forked and compute the new row's fields.

    The source is normally the latest version. When the latest version was
    disabled or archived, the highest active version may be forked instead;
    the new row then chains onto the retired latest row.
    """
    if source_statuses is None:
        source_statuses = settings.FORK_SOURCE_STATUSES
    source_statuses = tuple(source_statuses)
    roles = frozenset(actor_roles)

    latest = source
    if not source.is_latest_version:
        latest = _resumable_from(source, lineage)
        if latest is None:
            return Outcome.failure(InvalidTransition(
                f"Only the latest version of a {kind.name} can be forked; "
                f"version {source.version} has been superseded.",
                current_status=source.status,
                action="fork",
            ))
    if source.status not in source_statuses:
        return Outcome.failure(InvalidTransition(
            f"Cannot fork a {kind.name} in status '{source.status}'. "
            f"Allowed source statuses: {', '.join(source_statuses)}.",
            current_status=source.status,
            action="fork",
        ))
    live = [
        row for row in lineage
        if row.entity_id != source.entity_id and row.status in st.LIVE_STATUSES
    ]
    if live:
        return Outcome.failure(InvalidTransition(
            f"Version {live[0].version} of this {kind.name} is still {live[0].status}; "
            "finish or remove it before creating another version.",
            current_status=source.status,
            action="fork",
        ))
    if not roles & FORK_ROLES:
        return Outcome.failure(Forbidden(
            f"Creating a new {kind.name} version requires one of: {', '.join(sorted(FORK_ROLES))}.",
            current_status=source.status,
            action="fork",
        ))

    blacklist = FORK_BLACKLIST | {id_field}
    fields = {key: value for key, value in source_values.items() if key not in blacklist}
    next_version = max(row.version for row in lineage) + 1 if lineage else source.version + 1
    fields.update(
        version=next_version,
        status=st.DRAFT,
        parent_id=latest.entity_id,
        is_latest_version=True,
        created_by=actor_id,
        updated_by=actor_id,
    )
    return Outcome.success(ForkPlan(
        source_id=source.entity_id,
        version=next_version,
        fields=fields,
        latest_id=latest.entity_id,
        latest_status=latest.status,
    ))
