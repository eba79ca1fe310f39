from flask import request
from models import db
from models.order import Order, ORDER_STATUSES
from app.schemas.orders import StatusUpdateRequest
from app.services.exceptions import InvalidRequest, NotFound
from app.services.fulfillment import set_status, announce_status_change
from app.utils import ok, transactional, validate_schema
from . import admin_bp


@admin_bp.route("/orders", methods=["GET"])
def list_orders():
    """
    All orders, filterable by status and vendor.
    ---
    tags:
      - Admin
    """
    query = Order.query
    status = request.args.get("status")
    if status:
        if status not in ORDER_STATUSES:
            raise InvalidRequest(f"Unknown status {status}")
        query = query.filter_by(status=status)
    vendor_id = request.args.get("vendor_id")
    if vendor_id:
        query = query.filter_by(vendor_id=vendor_id)
    limit = min(request.args.get("limit", 50, type=int) or 50, 200)
    orders = query.order_by(Order.id.desc()).limit(limit).all()
    return ok({"orders": [o.to_dict() for o in orders]})


@admin_bp.route("/orders/<int:order_id>", methods=["GET"])
def order_detail(order_id):
    order = db.session.get(Order, order_id)
    if not order:
        raise NotFound("Order not found")
    return ok({"order": order.to_dict()})


@admin_bp.route("/orders/<int:order_id>", methods=["PATCH"])
@validate_schema(StatusUpdateRequest)
def update_status(order_id):
    new_status = request.validated_data.status
    with transactional("Failed to update order status"):
        order = set_status(order_id, new_status, request.user.id)
    announce_status_change(order_id)
    return ok({"order": order.to_dict()}, message=f"Order marked {new_status}")
