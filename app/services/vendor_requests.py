import logging

from models import db
from models.user import UserProfile
from models.vendor import VendorRequest
from app.services.exceptions import InvalidRequest, NotFound
from app.services.notifications import create_notification

logger = logging.getLogger(__name__)


def submit_request(user_id: str, business_name: str, note: str = None) -> VendorRequest:
    """Ask to become a vendor. Admins are notified in the same transaction. Does NOT commit."""
    user = db.session.get(UserProfile, user_id)
    if user is None:
        raise NotFound("User not found")
    if user.role != "user":
        raise InvalidRequest("Only regular users can request vendor access")
    if VendorRequest.query.filter_by(user_id=user_id, status="pending").first():
        raise InvalidRequest("A vendor request is already pending")

    req = VendorRequest(user_id=user_id, business_name=business_name, note=note)
    db.session.add(req)
    db.session.flush()
    create_notification(
        "vendor_request",
        "New vendor request",
        f"{user.name or user.email or user_id} asked to sell as {business_name}",
        recipient_role="ADMIN",
        related_id=req.id,
    )
    return req


def review_request(request_id, approve: bool, admin_id: str) -> VendorRequest:
    """
    Approve or reject a pending request. Approval changes the user's role
    immediately; roles are looked up per request, so it applies on their next call.
    """
    req = VendorRequest.query.filter_by(id=request_id).with_for_update().first()
    if req is None:
        raise NotFound("Vendor request not found")
    if req.status != "pending":
        raise InvalidRequest(f"Vendor request already {req.status}")

    req.status = "approved" if approve else "rejected"
    req.reviewed_by = admin_id
    if approve:
        user = db.session.get(UserProfile, req.user_id)
        user.role = "vendor"
    create_notification(
        "vendor_request",
        "Vendor request reviewed",
        f"Your vendor request was {req.status}",
        recipient_role="USER",
        recipient_id=req.user_id,
        related_id=req.id,
    )
    logger.info({"event": "vendor_request.reviewed", "request_id": req.id, "status": req.status})
    return req


__all__ = ["submit_request", "review_request"]
