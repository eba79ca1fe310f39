from flask import Blueprint, request
from decimal import Decimal as D
import logging
from app.utils.responses import ok
from app.utils.jwt import create_access_token
from models import db
from models.user import UserProfile
from models.product import Product


test_support_bp = Blueprint("test_support_bp", __name__)


@test_support_bp.route("/__ok", methods=["GET"])
def __ok():
    return ok({"ping": "pong"})


@test_support_bp.route("/__boom", methods=["GET"])
def __boom():
    raise RuntimeError("boom")


@test_support_bp.route("/__log", methods=["GET"])
def __log():
    logging.getLogger(__name__).info({"event": "test.log", "email": "someone@example.com"})
    return ok({"logged": True})


@test_support_bp.route("/__auth/login_stub", methods=["POST"])
def __login_stub():
    """
    Body: {"user_id": "u1", "role": "user", "email": "u1@example.com"}
    Creates the account on first use. An existing account keeps its stored role.
    """
    j = request.get_json() or {}
    user_id = j.get("user_id", "test")
    user = db.session.get(UserProfile, user_id)
    if user is None:
        user = UserProfile(
            id=user_id,
            role=j.get("role", "user"),
            email=j.get("email", f"{user_id}@example.com"),
            name=j.get("name"),
        )
        db.session.add(user)
        db.session.commit()
    return ok({"access": create_access_token(user.id, user.role)})


@test_support_bp.route("/__seed/product", methods=["POST"])
def __seed_product():
    """
    Body: {"vendor_id": "v1", "name": "Mug", "price": 10.0, "is_active": true}
    Creates the vendor account if missing. Returns {"product_id": ...}.
    """
    j = request.get_json() or {}
    vendor_id = j.get("vendor_id", "v1")
    if db.session.get(UserProfile, vendor_id) is None:
        db.session.add(UserProfile(id=vendor_id, role="vendor", email=f"{vendor_id}@example.com"))
        db.session.flush()
    product = Product(
        vendor_id=vendor_id,
        name=j.get("name", "Item"),
        price=D(str(j.get("price", "10.00"))),
        image_url=j.get("image_url"),
        is_active=j.get("is_active", True),
    )
    db.session.add(product)
    db.session.commit()
    return ok({"product_id": product.id})
