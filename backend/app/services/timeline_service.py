"""Chronological history of a course, degree or enrollment."""

from typing import Any, Dict, List

from fastapi import HTTPException
from sqlalchemy.orm import Session

from app.services import audit_service, message_service

ENTITY_TYPES = ("course", "degree", "enrollment")


def build_timeline(db: Session, entity_type: str, entity_id: int) -> List[Dict[str, Any]]:
    if entity_type not in ENTITY_TYPES:
        raise HTTPException(status_code=400, detail=f"Unknown entity type '{entity_type}'.")

    items = [
        {
            "kind": "audit",
            "item_id": entry.audit_id,
            "actor_id": entry.actor_id,
            "action": entry.action,
            "message": entry.description,
            "old_values": entry.old_values,
            "new_values": entry.new_values,
            "context": entry.context,
            "created_at": entry.created_at,
        }
        for entry in audit_service.list_for_entity(db, entity_type, entity_id)
    ]
    items.extend(
        {
            "kind": "message",
            "item_id": row.message_id,
            "actor_id": row.sender_id,
            "message": row.message,
            "created_at": row.created_at,
        }
        for row in message_service.list_messages(db, entity_type, entity_id)
    )
    # Audit entries sort before the message written in the same transaction.
    items.sort(key=lambda item: (item["created_at"] is None, item["created_at"], item["kind"] != "audit", item["item_id"]))
    return items
