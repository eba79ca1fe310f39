from flask import request
from app.schemas.vendor import VendorRequestCreate
from app.services.vendor_requests import submit_request
from app.utils import ok, role_required, transactional, validate_schema
from . import buyer_bp


@buyer_bp.route("/vendor-request", methods=["POST"])
@role_required("user:request_vendor")
@validate_schema(VendorRequestCreate)
def request_vendor_access():
    data = request.validated_data
    with transactional("Failed to submit vendor request"):
        req = submit_request(request.user.id, data.business_name, data.note)
    return ok({"request": req.to_dict()}, message="Vendor request submitted", status=201)
