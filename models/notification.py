from models import db, BIGINT
from datetime import datetime

NOTIFICATION_TYPES = ("new_order", "order_status", "vendor_request", "other")
RECIPIENT_ROLES = ("ADMIN", "VENDOR", "USER")


class Notification(db.Model):
    __tablename__ = "notification"
    __table_args__ = (
        db.Index("ix_notification_recipient", "recipient_role", "recipient_id", "is_read"),
    )

    id = db.Column(BIGINT, primary_key=True)
    type = db.Column(db.String(30), nullable=False)
    title = db.Column(db.String(200), nullable=False)
    message = db.Column(db.Text, nullable=False)
    recipient_role = db.Column(db.String(10), nullable=False)
    recipient_id = db.Column(db.String(64), nullable=True)  # set for vendor/user scoped notices
    related_id = db.Column(db.String(64), nullable=True)  # order or request id, lookup only
    is_read = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "type": self.type,
            "title": self.title,
            "message": self.message,
            "recipient_role": self.recipient_role,
            "recipient_id": self.recipient_id,
            "related_id": self.related_id,
            "is_read": self.is_read,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
