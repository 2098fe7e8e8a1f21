"""Per-kind workflow configuration for versioned entities.

Courses and degrees share one state machine; an ``EntityKind`` carries the rule
table so the few differences between kinds stay data instead of subclasses.
"""

from dataclasses import dataclass, field, replace
from typing import Dict, FrozenSet, Optional, Tuple

from app.workflow import statuses as st


class ActorRole:
    CREATOR = "creator"
    COLLABORATOR = "collaborator"
    DEPARTMENT_HEAD = "department_head"
    DEPARTMENT_FACULTY = "department_faculty"
    ADMIN = "admin"


class SideEffect:
    STAMP_SUBMISSION = "stamp_submission"
    CLEAR_REJECTION_REASON = "clear_rejection_reason"
    RECORD_APPROVAL = "record_approval"
    STORE_REJECTION_REASON = "store_rejection_reason"
    ARCHIVE_SUPERSEDED = "archive_superseded"
    NOTIFY_APPROVERS = "notify_approvers"
    NOTIFY_AUTHORS = "notify_authors"
    REMOVE_ENTITY = "remove_entity"
    RESTORE_PARENT_AS_LATEST = "restore_parent_as_latest"


AUTHORS = frozenset({ActorRole.CREATOR, ActorRole.COLLABORATOR})


@dataclass(frozen=True)
class TransitionRule:
    action: str
    sources: Tuple[str, ...]
    target: str
    roles: FrozenSet[str]
    requires_reason: bool = False
    side_effects: Tuple[str, ...] = ()
    # Target used instead of ``target`` while the entity's activation date lies ahead.
    deferred_target: Optional[str] = None
    # Only legal once the activation date has been reached.
    requires_activation_window: bool = False


@dataclass(frozen=True)
class EntityKind:
    name: str
    label: str
    rules: Tuple[TransitionRule, ...] = field(default_factory=tuple)

    def rules_for(self, action: str) -> Tuple[TransitionRule, ...]:
        return tuple(rule for rule in self.rules if rule.action == action)

    def rule(self, action: str, status: str) -> Optional[TransitionRule]:
        for rule in self.rules_for(action):
            if status in rule.sources:
                return rule
        return None

    def actions_from(self, status: str) -> Tuple[str, ...]:
        return tuple(rule.action for rule in self.rules if status in rule.sources)

    @property
    def actions(self) -> Tuple[str, ...]:
        seen: Dict[str, None] = {}
        for rule in self.rules:
            seen.setdefault(rule.action, None)
        return tuple(seen)


DEFAULT_RULES: Tuple[TransitionRule, ...] = (
    TransitionRule(
        action="submit",
        sources=(st.DRAFT,),
        target=st.PENDING_APPROVAL,
        roles=AUTHORS,
        side_effects=(
            SideEffect.STAMP_SUBMISSION,
            SideEffect.CLEAR_REJECTION_REASON,
            SideEffect.NOTIFY_APPROVERS,
        ),
    ),
    TransitionRule(
        action="delete",
        sources=(st.DRAFT,),
        target=st.REMOVED,
        roles=frozenset({ActorRole.CREATOR, ActorRole.ADMIN}),
        side_effects=(SideEffect.REMOVE_ENTITY, SideEffect.RESTORE_PARENT_AS_LATEST),
    ),
    TransitionRule(
        action="approve",
        sources=(st.PENDING_APPROVAL,),
        target=st.APPROVED,
        roles=frozenset({ActorRole.DEPARTMENT_HEAD}),
        side_effects=(SideEffect.RECORD_APPROVAL, SideEffect.NOTIFY_AUTHORS),
    ),
    TransitionRule(
        action="reject",
        sources=(st.PENDING_APPROVAL,),
        target=st.DRAFT,
        roles=frozenset({ActorRole.DEPARTMENT_HEAD}),
        requires_reason=True,
        side_effects=(SideEffect.STORE_REJECTION_REASON, SideEffect.NOTIFY_AUTHORS),
    ),
    TransitionRule(
        action="publish",
        sources=(st.APPROVED,),
        target=st.ACTIVE,
        roles=AUTHORS | {ActorRole.ADMIN},
        side_effects=(SideEffect.ARCHIVE_SUPERSEDED,),
        deferred_target=st.PENDING_ACTIVATION,
    ),
    TransitionRule(
        action="activate",
        sources=(st.PENDING_ACTIVATION,),
        target=st.ACTIVE,
        roles=AUTHORS | {ActorRole.ADMIN},
        side_effects=(SideEffect.ARCHIVE_SUPERSEDED,),
        requires_activation_window=True,
    ),
    TransitionRule(
        action="disable",
        sources=(st.ACTIVE,),
        target=st.DISABLED,
        roles=AUTHORS | {ActorRole.DEPARTMENT_HEAD, ActorRole.ADMIN},
    ),
    TransitionRule(
        action="archive",
        sources=(st.APPROVED, st.ACTIVE, st.DISABLED),
        target=st.ARCHIVED,
        roles=frozenset({ActorRole.DEPARTMENT_HEAD, ActorRole.ADMIN}),
    ),
)


def _widen_roles(rules: Tuple[TransitionRule, ...], action: str, extra: FrozenSet[str]) -> Tuple[TransitionRule, ...]:
    return tuple(
        replace(rule, roles=rule.roles | extra) if rule.action == action else rule
        for rule in rules
    )


COURSE = EntityKind(name="course", label="Course", rules=DEFAULT_RULES)

# Any faculty member of the owning department may submit a degree.
DEGREE = EntityKind(
    name="degree",
    label="Degree",
    rules=_widen_roles(DEFAULT_RULES, "submit", frozenset({ActorRole.DEPARTMENT_FACULTY})),
)

KINDS = {kind.name: kind for kind in (COURSE, DEGREE)}
