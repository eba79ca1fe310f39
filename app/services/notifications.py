import logging
from typing import List, Optional

from models import db
from models.notification import Notification, NOTIFICATION_TYPES, RECIPIENT_ROLES
from app.services.exceptions import InvalidRequest, NotFound, Unauthorized

logger = logging.getLogger(__name__)


def create_notification(
    type: str,
    title: str,
    message: str,
    *,
    recipient_role: str,
    recipient_id: Optional[str] = None,
    related_id=None,
) -> Notification:
    """
    Stage a notification on the current session.
    Does NOT commit; it lands together with whatever caused it.
    """
    if type not in NOTIFICATION_TYPES:
        raise InvalidRequest(f"Unknown notification type {type}")
    if recipient_role not in RECIPIENT_ROLES:
        raise InvalidRequest(f"Unknown recipient role {recipient_role}")
    note = Notification(
        type=type,
        title=title,
        message=message,
        recipient_role=recipient_role,
        recipient_id=recipient_id,
        related_id=str(related_id) if related_id is not None else None,
    )
    db.session.add(note)
    return note


def list_for(recipient_role: str, recipient_id: Optional[str] = None, unread_only: bool = False) -> List[Notification]:
    query = Notification.query.filter_by(recipient_role=recipient_role)
    if recipient_id is not None:
        query = query.filter_by(recipient_id=recipient_id)
    if unread_only:
        query = query.filter_by(is_read=False)
    return query.order_by(Notification.created_at.desc(), Notification.id.desc()).all()


def mark_read(notification_id, recipient_role: str, recipient_id: Optional[str] = None) -> Notification:
    note = db.session.get(Notification, notification_id)
    if not note:
        raise NotFound("Notification not found")
    if note.recipient_role != recipient_role:
        raise Unauthorized("Notification belongs to another recipient")
    # Admin notices are shared by every admin; the rest are addressed
    if note.recipient_id is not None and note.recipient_id != recipient_id:
        raise Unauthorized("Notification belongs to another recipient")
    if not note.is_read:
        note.is_read = True
        logger.info({"event": "notification.read", "notification_id": note.id})
    return note


__all__ = ["create_notification", "list_for", "mark_read"]
