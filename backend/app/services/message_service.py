"""Notes attached to courses, degrees and enrollments."""

from typing import List
from sqlalchemy.orm import Session
from app.models.message import Message


def add_message(db: Session, *, entity_type: str, entity_id: int, sender_id: int, message: str) -> Message:
    """Stage a message in the caller's transaction."""
    row = Message(entity_type=entity_type, entity_id=entity_id, sender_id=sender_id, message=message)
    db.add(row)
    return row


def list_messages(db: Session, entity_type: str, entity_id: int) -> List[Message]:
    return (
        db.query(Message)
        .filter(Message.entity_type == entity_type, Message.entity_id == entity_id)
        .order_by(Message.created_at.asc(), Message.message_id.asc())
        .all()
    )
