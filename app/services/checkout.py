"""
Order Orchestrator.

Turns one buyer checkout into an order group: one Order per vendor present
in the cart, each announced to its vendor by a ``new_order`` notification.
Orders, items and notifications are committed in a single transaction, so a
reader sees either the whole group or nothing.
"""
import logging
import time
from collections import OrderedDict
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List, Optional

from opentelemetry import trace
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from models import db
from models.order import Order, OrderGroup, OrderItem, OrderStatusLog, PAYMENT_METHODS
from models.user import UserProfile
from app.metrics import ORDERS_CREATED, CHECKOUT_FAILURES
from app.services import cart_store
from app.services.catalog import CatalogReader, default_catalog
from app.services.exceptions import InvalidRequest, ProductNotFound, TransientFailure
from app.services.notifications import create_notification
from app.tasks.notifications import enqueue_email
from app.utils.db import transactional

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

TWOPLACES = Decimal("0.01")


def _to_money(value) -> Decimal:
    return Decimal(str(value)).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


class _Deadline:
    def __init__(self, timeout: Optional[float]):
        self.timeout = timeout
        self.expires_at = time.monotonic() + timeout if timeout else None

    def remaining(self) -> Optional[float]:
        if self.expires_at is None:
            return None
        return self.expires_at - time.monotonic()

    def check(self, step: str) -> None:
        left = self.remaining()
        if left is not None and left <= 0:
            raise TransientFailure(f"Checkout timed out during {step}")


def _read_line(line):
    if isinstance(line, dict):
        return line.get("product_id"), line.get("quantity")
    return getattr(line, "product_id", None), getattr(line, "quantity", None)


def _validate_lines(cart_items) -> List[tuple]:
    lines = [_read_line(line) for line in (cart_items or [])]
    if not lines:
        raise InvalidRequest("Cart is empty")
    seen = set()
    for product_id, quantity in lines:
        if product_id is None:
            raise InvalidRequest("Every cart line needs a product_id")
        if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity < 1:
            raise InvalidRequest(f"Quantity for product {product_id} must be at least 1")
        if product_id in seen:
            raise InvalidRequest(f"Product {product_id} appears more than once")
        seen.add(product_id)
    return lines


def partition_by_vendor(resolved_lines) -> "OrderedDict[str, list]":
    """Group (ResolvedItem, quantity) pairs by vendor, keeping first-seen vendor order."""
    groups = OrderedDict()
    for item, quantity in resolved_lines:
        groups.setdefault(item.vendor_id, []).append((item, quantity))
    return groups


def _existing_group(buyer_id: str, idempotency_key: Optional[str]):
    if not idempotency_key:
        return None
    return OrderGroup.query.filter_by(buyer_id=buyer_id, idempotency_key=idempotency_key).first()


def _stage_group(buyer_id, groups, shipping_address, payment_method, idempotency_key) -> List[Order]:
    group = OrderGroup(buyer_id=buyer_id, idempotency_key=idempotency_key)
    db.session.add(group)
    db.session.flush()

    orders = []
    for vendor_id, lines in groups.items():
        total = sum((_to_money(item.current_price) * qty for item, qty in lines), Decimal("0.00"))
        order = Order(
            group_id=group.id,
            buyer_id=buyer_id,
            vendor_id=vendor_id,
            status="pending",
            payment_method=payment_method,
            payment_status="pending",
            total=total,
            shipping_address=dict(shipping_address),
        )
        db.session.add(order)
        db.session.flush()

        for item, qty in lines:
            price = _to_money(item.current_price)
            db.session.add(
                OrderItem(
                    order_id=order.id,
                    product_id=item.product_id,
                    vendor_id=item.vendor_id,
                    name=item.name,
                    unit_price=price,
                    quantity=qty,
                    subtotal=price * qty,
                )
            )
        db.session.add(OrderStatusLog(order_id=order.id, status="pending", updated_by=buyer_id))
        create_notification(
            "new_order",
            "New order received",
            f"Order #{order.id}: {len(lines)} item(s), total {total}",
            recipient_role="VENDOR",
            recipient_id=vendor_id,
            related_id=order.id,
        )
        orders.append(order)
    return orders


def checkout(
    buyer_id: str,
    cart_items: Iterable,
    shipping_address: dict,
    payment_method: str,
    *,
    idempotency_key: Optional[str] = None,
    clear_cart: bool = False,
    timeout: Optional[float] = None,
    catalog: CatalogReader = None,
) -> List[int]:
    """
    Place one order per vendor for ``cart_items`` and return their ids in
    vendor-group order.

    ``cart_items`` are (product_id, quantity) pairs as dicts or objects;
    any price or vendor they carry is ignored. Raises InvalidRequest for bad
    input and TransientFailure when storage fails or ``timeout`` expires,
    in both cases with nothing persisted.

    Without ``idempotency_key`` a retry after a lost response places the
    orders again. With it, a repeated call returns the original ids.
    """
    catalog = catalog or default_catalog
    deadline = _Deadline(timeout)

    with tracer.start_as_current_span("checkout") as span:
        span.set_attribute("buyer_id", buyer_id)
        try:
            if payment_method not in PAYMENT_METHODS:
                raise InvalidRequest(f"Unsupported payment method {payment_method}")
            if not shipping_address:
                raise InvalidRequest("Shipping address required")
            lines = _validate_lines(cart_items)

            previous = _existing_group(buyer_id, idempotency_key)
            if previous is not None:
                logger.info({"event": "checkout.replayed", "buyer_id": buyer_id, "group_id": previous.id})
                return [o.id for o in previous.orders]

            buyer = db.session.get(UserProfile, buyer_id)
            if buyer is None:
                raise InvalidRequest("Unknown buyer")

            resolved = []
            for product_id, quantity in lines:
                deadline.check("catalog lookup")
                try:
                    item = catalog.resolve_item(product_id, timeout=deadline.remaining())
                except ProductNotFound as e:
                    raise InvalidRequest(e.message) from e
                resolved.append((item, quantity))
            groups = partition_by_vendor(resolved)

            with transactional("Checkout failed"):
                orders = _stage_group(buyer_id, groups, shipping_address, payment_method, idempotency_key)
                if clear_cart:
                    cart_store.clear(buyer_id)
                order_ids = [o.id for o in orders]
                deadline.check("commit")
        except IntegrityError as e:
            # Same idempotency key committed by a concurrent request
            db.session.rollback()
            previous = _existing_group(buyer_id, idempotency_key)
            if previous is not None:
                return [o.id for o in previous.orders]
            CHECKOUT_FAILURES.labels("storage").inc()
            raise TransientFailure("Could not store orders, please retry") from e
        except SQLAlchemyError as e:
            db.session.rollback()
            CHECKOUT_FAILURES.labels("storage").inc()
            raise TransientFailure("Could not store orders, please retry") from e
        except TransientFailure:
            db.session.rollback()
            CHECKOUT_FAILURES.labels("timeout").inc()
            raise
        except InvalidRequest:
            db.session.rollback()
            CHECKOUT_FAILURES.labels("invalid").inc()
            raise

        span.set_attribute("order_count", len(order_ids))

    ORDERS_CREATED.labels(payment_method).inc(len(order_ids))
    logger.info({
        "event": "checkout.committed",
        "buyer_id": buyer_id,
        "order_ids": order_ids,
        "vendors": list(groups.keys()),
        "payment_method": payment_method,
    })
    _announce(groups.keys())
    return order_ids


def _announce(vendor_ids) -> None:
    # The orders are already committed; a failed lookup only costs the emails
    try:
        vendors = UserProfile.query.filter(UserProfile.id.in_(list(vendor_ids))).all()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.warning({"event": "checkout.announce_failed", "vendors": list(vendor_ids), "error": str(e)})
        return
    for vendor in vendors:
        enqueue_email(vendor.email, "New order received", "You have a new order waiting in your dashboard.")


__all__ = ["checkout", "partition_by_vendor"]
