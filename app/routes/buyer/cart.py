from flask import request
from app.schemas.orders import CartUpsertRequest, CartQuantityRequest
from app.services import cart_store
from app.services.catalog import default_catalog
from app.utils import ok, transactional, validate_schema
from . import buyer_bp


def _snapshot(product_id):
    item = default_catalog.resolve_item(product_id)
    return cart_store.PriceSnapshot(
        unit_price=item.current_price,
        display_name=item.name,
        image_ref=item.image_ref,
    )


def _set_quantity(buyer_id, product_id, quantity):
    with transactional("Failed to update cart"):
        if quantity > 0:
            cart_store.upsert_item(buyer_id, product_id, quantity, _snapshot(product_id))
        else:
            cart_store.remove_item(buyer_id, product_id)
    return ok({"cart": cart_store.get_cart(buyer_id).to_dict()}, message="Cart updated")


@buyer_bp.route("/cart", methods=["GET"])
def view_cart():
    """
    Current cart with the prices captured when each line was added.
    ---
    tags:
      - Buyer
    """
    return ok({"cart": cart_store.get_cart(request.user.id).to_dict()})


@buyer_bp.route("/cart", methods=["POST"])
@validate_schema(CartUpsertRequest)
def upsert_cart_item():
    data = request.validated_data
    return _set_quantity(request.user.id, data.product_id, data.quantity)


@buyer_bp.route("/cart/<int:product_id>", methods=["PUT"])
@validate_schema(CartQuantityRequest)
def set_cart_quantity(product_id):
    return _set_quantity(request.user.id, product_id, request.validated_data.quantity)


@buyer_bp.route("/cart/<int:product_id>", methods=["DELETE"])
def remove_cart_item(product_id):
    buyer_id = request.user.id
    with transactional("Failed to remove cart item"):
        cart_store.remove_item(buyer_id, product_id)
    return ok({"cart": cart_store.get_cart(buyer_id).to_dict()}, message="Item removed")


@buyer_bp.route("/cart", methods=["DELETE"])
def clear_cart():
    with transactional("Failed to clear cart"):
        cart_store.clear(request.user.id)
    return ok(message="Cart cleared")
