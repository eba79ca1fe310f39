from flask import request
from models.vendor import VendorRequest
from app.services.exceptions import InvalidRequest
from app.services.vendor_requests import review_request
from app.utils import ok, transactional
from . import admin_bp

REQUEST_STATUSES = ("pending", "approved", "rejected")


@admin_bp.route("/vendor-requests", methods=["GET"])
def list_vendor_requests():
    status = request.args.get("status", "pending")
    if status not in REQUEST_STATUSES:
        raise InvalidRequest(f"Unknown request status {status}")
    reqs = (
        VendorRequest.query.filter_by(status=status)
        .order_by(VendorRequest.created_at.asc(), VendorRequest.id.asc())
        .all()
    )
    return ok({"requests": [r.to_dict() for r in reqs]})


def _review(request_id, approve):
    with transactional("Failed to review vendor request"):
        req = review_request(request_id, approve, request.user.id)
    return ok({"request": req.to_dict()}, message=f"Vendor request {req.status}")


@admin_bp.route("/vendor-requests/<int:request_id>/approve", methods=["POST"])
def approve_vendor_request(request_id):
    return _review(request_id, True)


@admin_bp.route("/vendor-requests/<int:request_id>/reject", methods=["POST"])
def reject_vendor_request(request_id):
    return _review(request_id, False)
