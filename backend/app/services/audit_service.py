"""Audit recorder: write-once log entries for every successful workflow change."""

import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import inspect
from sqlalchemy.orm import Session

from app.models.audit_log import AuditLog

logger = logging.getLogger(__name__)


def _json_safe(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        return [_json_safe(v) for v in value]
    if isinstance(value, dict):
        return {k: _json_safe(v) for k, v in value.items()}
    return value


def snapshot(row) -> Dict[str, Any]:
    """Column values of an ORM row, keyed by attribute name."""
    mapper = inspect(row).mapper
    return {attr.key: _json_safe(getattr(row, attr.key)) for attr in mapper.column_attrs}


def diff_snapshots(
    before: Dict[str, Any], after: Dict[str, Any]
) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    """Keep only the fields whose value differs between two snapshots."""
    old_values: Dict[str, Any] = {}
    new_values: Dict[str, Any] = {}
    for key in sorted(set(before) | set(after)):
        old = _json_safe(before.get(key))
        new = _json_safe(after.get(key))
        if old != new:
            old_values[key] = old
            new_values[key] = new
    return old_values, new_values


class AuditRecorder:
    """Adds audit rows to the caller's session.

    Entries join the caller's transaction and are committed with the change
    they describe, so a rolled back change leaves no entry behind.
    """

    def __init__(self, db: Session):
        self.db = db

    def record(
        self,
        *,
        actor_id: int,
        action: str,
        entity_type: str,
        entity_id: int,
        before: Optional[Dict[str, Any]] = None,
        after: Optional[Dict[str, Any]] = None,
        context: Optional[Dict[str, Any]] = None,
        description: Optional[str] = None,
    ) -> AuditLog:
        old_values, new_values = diff_snapshots(before or {}, after or {})
        entry = AuditLog(
            actor_id=actor_id,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            old_values=old_values or None,
            new_values=new_values or None,
            context=_json_safe(context) if context else None,
            description=(description or "")[:500] or None,
        )
        self.db.add(entry)
        logger.debug("[audit] %s %s#%s by user %s", action, entity_type, entity_id, actor_id)
        return entry


def list_for_entity(db: Session, entity_type: str, entity_id: int) -> List[AuditLog]:
    return (
        db.query(AuditLog)
        .filter(AuditLog.entity_type == entity_type, AuditLog.entity_id == entity_id)
        .order_by(AuditLog.created_at.asc(), AuditLog.audit_id.asc())
        .all()
    )
