from flask import request
from app.services import notifications
from app.utils import ok, transactional
from . import buyer_bp


@buyer_bp.route("/notifications", methods=["GET"])
def my_notifications():
    unread_only = request.args.get("unread") in ("1", "true")
    notes = notifications.list_for("USER", request.user.id, unread_only=unread_only)
    return ok({"notifications": [n.to_dict() for n in notes]})


@buyer_bp.route("/notifications/<int:notification_id>/read", methods=["POST"])
def mark_my_notification_read(notification_id):
    with transactional("Failed to mark notification read"):
        note = notifications.mark_read(notification_id, "USER", request.user.id)
    return ok({"notification": note.to_dict()})
