from flask import request
from app.services import notifications
from app.utils import ok, transactional
from . import admin_bp


@admin_bp.route("/notifications", methods=["GET"])
def admin_notifications():
    # The admin mailbox is shared
    unread_only = request.args.get("unread") in ("1", "true")
    notes = notifications.list_for("ADMIN", unread_only=unread_only)
    return ok({"notifications": [n.to_dict() for n in notes]})


@admin_bp.route("/notifications/<int:notification_id>/read", methods=["POST"])
def admin_mark_read(notification_id):
    with transactional("Failed to mark notification read"):
        note = notifications.mark_read(notification_id, "ADMIN", request.user.id)
    return ok({"notification": note.to_dict()})
