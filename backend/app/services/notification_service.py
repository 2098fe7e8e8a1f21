"""In-app notifications written by workflow side effects."""

import logging
from sqlalchemy.orm import Session
from app.models.notification import Notification
from app.models.user import User
from typing import Iterable, List, Optional

logger = logging.getLogger(__name__)


def get_notifications(db: Session, user_id: int, unread_only: bool = False) -> List[Notification]:
    q = db.query(Notification).filter(Notification.user_id == user_id)
    if unread_only:
        q = q.filter(Notification.is_read == False)
    return q.order_by(Notification.created_at.desc(), Notification.noti_id.desc()).limit(50).all()


def mark_read(db: Session, noti_id: int, user_id: int) -> Optional[Notification]:
    noti = db.query(Notification).filter(
        Notification.noti_id == noti_id,
        Notification.user_id == user_id,
    ).first()
    if noti:
        noti.is_read = True
        db.commit()
        db.refresh(noti)
    return noti


def mark_all_read(db: Session, user_id: int):
    db.query(Notification).filter(
        Notification.user_id == user_id,
        Notification.is_read == False,
    ).update({"is_read": True})
    db.commit()


def create_notification(
    db: Session,
    user_id: int,
    noti_type: str,
    title: str,
    message: Optional[str] = None,
    link_url: Optional[str] = None,
) -> Notification:
    noti = Notification(
        user_id=user_id,
        noti_type=noti_type,
        title=title,
        message=message,
        link_url=link_url,
    )
    db.add(noti)
    db.commit()
    db.refresh(noti)
    return noti


def notify_users(
    db: Session,
    user_ids: Iterable[int],
    noti_type: str,
    title: str,
    message: Optional[str] = None,
    link_url: Optional[str] = None,
    exclude_user_id: Optional[int] = None,
) -> List[Notification]:
    created = []
    for user_id in dict.fromkeys(user_ids):
        if user_id is None or user_id == exclude_user_id:
            continue
        created.append(create_notification(db, user_id, noti_type, title, message, link_url))
    logger.debug("[notification] %s sent to %d user(s)", noti_type, len(created))
    return created


def department_head_ids(db: Session, department_code: str) -> List[int]:
    rows = (
        db.query(User.user_id)
        .filter(
            User.department_code == department_code,
            User.is_head_of_department == True,
            User.is_active == True,
        )
        .all()
    )
    return [row[0] for row in rows]


def office_user_ids(db: Session) -> List[int]:
    rows = db.query(User.user_id).filter(User.role == "office", User.is_active == True).all()
    return [row[0] for row in rows]
