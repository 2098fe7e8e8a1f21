"""Status state machine for versioned entities."""

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional, Tuple

from app.config import settings
from app.workflow.errors import Forbidden, InvalidTransition
from app.workflow.kinds import COURSE, EntityKind
from app.workflow.outcome import Outcome


@dataclass(frozen=True)
class TransitionResult:
    action: str
    previous_status: str
    new_status: str
    side_effects: Tuple[str, ...]
    reason: Optional[str] = None


def _normalize_reason(reason: Optional[str]) -> Optional[str]:
    if reason is None:
        return None
    cleaned = reason.strip()
    return cleaned or None


def transition(
    entity,
    action: str,
    actor_roles: Iterable[str],
    *,
    reason: Optional[str] = None,
    now: Optional[datetime] = None,
    kind: EntityKind = COURSE,
) -> Outcome:
    """Compute the next status for ``action`` on ``entity``.

    ``entity`` only needs ``status`` and ``activation_date`` attributes and is
    never modified. The status is validated before the actor's roles, so an
    illegal action is reported as such whoever attempts it.
    """
    current = entity.status
    roles = frozenset([actor_roles] if isinstance(actor_roles, str) else actor_roles)

    if action not in kind.actions:
        return Outcome.failure(InvalidTransition(
            f"Unknown action '{action}' for {kind.name}.",
            current_status=current,
            action=action,
        ))

    rule = kind.rule(action, current)
    if rule is None:
        allowed = ", ".join(kind.actions_from(current)) or "none"
        return Outcome.failure(InvalidTransition(
            f"Cannot {action} a {kind.name} in status '{current}'. Allowed actions: {allowed}.",
            current_status=current,
            action=action,
        ))

    if not roles & rule.roles:
        required = ", ".join(sorted(rule.roles))
        return Outcome.failure(Forbidden(
            f"Action '{action}' on a {kind.name} requires one of: {required}.",
            current_status=current,
            action=action,
        ))

    cleaned_reason = _normalize_reason(reason)
    if rule.requires_reason:
        min_len = settings.REJECTION_REASON_MIN_LENGTH
        max_len = settings.REJECTION_REASON_MAX_LENGTH
        if cleaned_reason is None or not (min_len <= len(cleaned_reason) <= max_len):
            return Outcome.failure(InvalidTransition(
                f"A reason of {min_len}-{max_len} characters is required to {action} a {kind.name}.",
                current_status=current,
                action=action,
            ))

    activation_date = getattr(entity, "activation_date", None)
    window_pending = activation_date is not None and now is not None and activation_date > now

    if rule.requires_activation_window and window_pending:
        return Outcome.failure(InvalidTransition(
            f"The activation window of this {kind.name} opens at {activation_date.isoformat()}.",
            current_status=current,
            action=action,
        ))

    new_status = rule.target
    side_effects = rule.side_effects
    if rule.deferred_target and window_pending:
        new_status = rule.deferred_target
        side_effects = ()

    return Outcome.success(TransitionResult(
        action=action,
        previous_status=current,
        new_status=new_status,
        side_effects=side_effects,
        reason=cleaned_reason if rule.requires_reason else None,
    ))
