"""
Cart Store: a buyer's pending selections.

One cart per buyer, one line per product. Prices are snapshots taken by the
caller when the line was written and are allowed to go stale; checkout
re-resolves them. None of these functions commit.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import List

from models import db
from models.cart import Cart, CartItem

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PriceSnapshot:
    unit_price: Decimal
    display_name: str = None
    image_ref: str = None


@dataclass(frozen=True)
class CartLine:
    product_id: int
    quantity: int
    unit_price: Decimal
    display_name: str
    image_ref: str

    @property
    def subtotal(self) -> Decimal:
        return self.unit_price * self.quantity

    def to_dict(self):
        return {
            "product_id": self.product_id,
            "quantity": self.quantity,
            "unit_price": float(self.unit_price),
            "display_name": self.display_name,
            "image_ref": self.image_ref,
            "subtotal": float(self.subtotal),
        }


@dataclass(frozen=True)
class CartView:
    buyer_id: str
    lines: List[CartLine]
    total: Decimal

    def to_dict(self):
        return {
            "buyer_id": self.buyer_id,
            "items": [line.to_dict() for line in self.lines],
            "total": float(self.total),
        }


def _cart_for(buyer_id: str, create: bool = False):
    cart = Cart.query.filter_by(buyer_id=buyer_id).first()
    if cart is None and create:
        cart = Cart(buyer_id=buyer_id)
        db.session.add(cart)
        db.session.flush()
    return cart


def upsert_item(buyer_id: str, product_id: int, quantity: int, snapshot: PriceSnapshot) -> None:
    """Set the absolute quantity of ``product_id``; zero or less removes the line."""
    if quantity <= 0:
        remove_item(buyer_id, product_id)
        return
    cart = _cart_for(buyer_id, create=True)
    line = CartItem.query.filter_by(cart_id=cart.id, product_id=product_id).first()
    if line is None:
        line = CartItem(cart_id=cart.id, product_id=product_id)
        db.session.add(line)
    line.quantity = int(quantity)
    line.unit_price = Decimal(str(snapshot.unit_price))
    line.display_name = snapshot.display_name
    line.image_ref = snapshot.image_ref
    cart.updated_at = db.func.now()
    logger.debug({"event": "cart.upsert", "buyer_id": buyer_id, "product_id": product_id, "quantity": quantity})


def remove_item(buyer_id: str, product_id: int) -> None:
    cart = _cart_for(buyer_id)
    if cart is None:
        return
    removed = CartItem.query.filter_by(cart_id=cart.id, product_id=product_id).delete()
    if removed:
        cart.updated_at = db.func.now()


def get_cart(buyer_id: str) -> CartView:
    cart = _cart_for(buyer_id)
    if cart is None:
        return CartView(buyer_id=buyer_id, lines=[], total=Decimal("0.00"))
    rows = CartItem.query.filter_by(cart_id=cart.id).order_by(CartItem.id).all()
    lines = [
        CartLine(
            product_id=row.product_id,
            quantity=row.quantity,
            unit_price=Decimal(str(row.unit_price)),
            display_name=row.display_name,
            image_ref=row.image_ref,
        )
        for row in rows
    ]
    total = sum((line.subtotal for line in lines), Decimal("0.00"))
    return CartView(buyer_id=buyer_id, lines=lines, total=total)


def clear(buyer_id: str) -> None:
    cart = _cart_for(buyer_id)
    if cart is None:
        return
    CartItem.query.filter_by(cart_id=cart.id).delete()
    cart.updated_at = db.func.now()


__all__ = ["PriceSnapshot", "CartLine", "CartView", "upsert_item", "remove_item", "get_cart", "clear"]
