from flask import request, current_app
from flask_limiter.util import get_remote_address
from extensions import limiter
from models.order import Order
from app.schemas.orders import CheckoutRequest
from app.services import cart_store
from app.services.checkout import checkout
from app.services.exceptions import NotFound
from app.utils import ok, role_required, validate_schema
from . import buyer_bp


def _checkout_limit():
    return current_app.config.get("CHECKOUT_LIMIT_PER_IP", "10 per minute")


@buyer_bp.route("/orders", methods=["POST"])
@limiter.limit(_checkout_limit, key_func=get_remote_address, error_message="Too many checkouts, slow down")
@role_required(["user:checkout", "vendor:checkout", "admin"])
@validate_schema(CheckoutRequest)
def place_orders():
    """
    Check out. Lines come from the body when given, otherwise from the stored
    cart. Prices and vendors are always re-read from the catalog.
    ---
    tags:
      - Buyer
    responses:
      201:
        description: One order id per vendor in the cart
    """
    data = request.validated_data
    buyer_id = request.user.id
    if data.items is not None:
        items = [line.model_dump() for line in data.items]
    else:
        items = [
            {"product_id": line.product_id, "quantity": line.quantity}
            for line in cart_store.get_cart(buyer_id).lines
        ]
    order_ids = checkout(
        buyer_id,
        items,
        data.shipping_address.model_dump(exclude_none=True),
        data.payment_method,
        idempotency_key=data.idempotency_key,
        clear_cart=data.clear_cart,
        timeout=current_app.config.get("CHECKOUT_TIMEOUT_SECONDS"),
    )
    return ok({"order_ids": order_ids}, message="Order placed successfully", status=201)


@buyer_bp.route("/orders", methods=["GET"])
def order_history():
    orders = (
        Order.query.filter_by(buyer_id=request.user.id)
        .order_by(Order.created_at.desc(), Order.id.desc())
        .all()
    )
    return ok({"orders": [o.to_dict() for o in orders]})


@buyer_bp.route("/orders/<int:order_id>", methods=["GET"])
def order_detail(order_id):
    # Someone else's order looks exactly like a missing one
    order = Order.query.filter_by(id=order_id, buyer_id=request.user.id).first()
    if not order:
        raise NotFound("Order not found")
    return ok({"order": order.to_dict()})
