"""
Order Fulfillment State Machine.

Status moves strictly forward along
``pending -> processing -> shipped -> out_for_delivery -> delivered``
(skipping ahead is fine); ``cancelled`` is reachable from pending or
processing only. Payment moves ``pending -> paid | failed``.

Every write is a conditional UPDATE guarded on the status and payment
status that were read, so a vendor status change racing a gateway payment
event can never overwrite the other's result; the loser gets InvalidRequest.
"""
import logging
from datetime import datetime
from decimal import Decimal

from opentelemetry import trace
from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError

from models import db
from models.order import Order, OrderStatusLog, STATUS_CHAIN, ORDER_STATUSES, PAYMENT_STATUSES
from models.user import UserProfile
from app.metrics import STATUS_TRANSITIONS
from app.services.exceptions import InvalidRequest, NotFound, Unauthorized
from app.services.notifications import create_notification
from app.tasks.notifications import enqueue_email

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

CANCELLABLE_FROM = ("pending", "processing")
PAYMENT_TRANSITIONS = {
    "pending": ("paid", "failed"),
    "paid": (),
    "failed": (),
}
PAYMENT_SOURCES = ("gateway", "cod", "admin")


def allowed_transitions(current: str):
    """Statuses reachable from ``current`` in one call."""
    if current not in STATUS_CHAIN:
        return ()
    idx = STATUS_CHAIN.index(current)
    targets = list(STATUS_CHAIN[idx + 1:])
    if current in CANCELLABLE_FROM:
        targets.append("cancelled")
    return tuple(targets)


def is_allowed(current: str, new_status: str) -> bool:
    return new_status in allowed_transitions(current)


def _load_order(order_id) -> Order:
    order = Order.query.filter_by(id=order_id).with_for_update().populate_existing().first()
    if not order:
        raise NotFound("Order not found")
    return order


def _resolve_actor(actor_id) -> UserProfile:
    # Always the stored role: a vendor demoted a second ago is no longer a vendor
    actor = db.session.get(UserProfile, actor_id) if actor_id else None
    if actor is None:
        raise Unauthorized("Unknown actor")
    return actor


def _authorize(actor: UserProfile, order: Order) -> None:
    if actor.role == "admin":
        return
    if actor.role == "vendor" and actor.id == order.vendor_id:
        return
    raise Unauthorized("Only the order's vendor or an administrator may change it")


def _compare_and_set(order: Order, values: dict) -> None:
    result = db.session.execute(
        update(Order)
        .where(
            Order.id == order.id,
            Order.status == order.status,
            Order.payment_status == order.payment_status,
        )
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise InvalidRequest("Order changed concurrently, reload and retry")
    db.session.expire(order)


def set_status(order_id, new_status: str, actor_id) -> Order:
    """
    Move an order to ``new_status`` on behalf of ``actor_id``.

    Delivering a cash-on-delivery order that is not yet paid also marks it
    paid, inside the same UPDATE. Does NOT commit.
    """
    if new_status not in ORDER_STATUSES:
        raise InvalidRequest(f"Unknown status {new_status}")

    with tracer.start_as_current_span("order.set_status") as span:
        span.set_attribute("order_id", str(order_id))
        actor = _resolve_actor(actor_id)
        order = _load_order(order_id)
        _authorize(actor, order)

        current = order.status
        if not is_allowed(current, new_status):
            raise InvalidRequest(f"Cannot move order from {current} to {new_status}")

        now = datetime.utcnow()
        values = {"status": new_status, "updated_at": now}
        cod_settled = (
            new_status == "delivered"
            and order.payment_method == "cod"
            and order.payment_status != "paid"
        )
        if cod_settled:
            values["payment_status"] = "paid"
            values["paid_at"] = now

        buyer_id = order.buyer_id
        _compare_and_set(order, values)

        db.session.add(OrderStatusLog(order_id=order_id, from_status=current, status=new_status, updated_by=actor.id))
        create_notification(
            "order_status",
            "Order status updated",
            f"Order #{order_id} is now {new_status.replace('_', ' ')}",
            recipient_role="USER",
            recipient_id=buyer_id,
            related_id=order_id,
        )

    STATUS_TRANSITIONS.labels(current, new_status).inc()
    logger.info({
        "event": "order.status_changed",
        "order_id": order_id,
        "from": current,
        "to": new_status,
        "actor_id": actor.id,
        "cod_settled": cod_settled,
    })
    return order


def update_payment_status(
    order_id,
    new_status: str,
    source: str,
    *,
    gateway_payment_id: str = None,
    amount=None,
    currency: str = None,
) -> bool:
    """
    Set the payment status of an order without touching its delivery status.

    Returns False when the order already has ``new_status`` (a replayed
    ``paid -> paid`` is a no-op, not an error). Does NOT commit.
    """
    if new_status not in PAYMENT_STATUSES:
        raise InvalidRequest(f"Unknown payment status {new_status}")
    if source not in PAYMENT_SOURCES:
        raise InvalidRequest(f"Unknown payment source {source}")

    with tracer.start_as_current_span("order.update_payment_status"):
        order = _load_order(order_id)
        current = order.payment_status
        if current == new_status:
            return False
        if source == "gateway" and order.payment_method == "cod":
            raise InvalidRequest("Cash-on-delivery orders are settled on delivery")
        if new_status not in PAYMENT_TRANSITIONS.get(current, ()):
            raise InvalidRequest(f"Cannot move payment from {current} to {new_status}")

        values = {"payment_status": new_status, "updated_at": datetime.utcnow()}
        if new_status == "paid":
            values["paid_at"] = values["updated_at"]
        if gateway_payment_id:
            values["gateway_payment_id"] = gateway_payment_id
        if amount is not None:
            values["settled_amount"] = Decimal(str(amount))
        if currency:
            values["settled_currency"] = currency
        _compare_and_set(order, values)

    logger.info({
        "event": "order.payment_status_changed",
        "order_id": order_id,
        "from": current,
        "to": new_status,
        "source": source,
    })
    return True


def announce_status_change(order_id) -> None:
    """Email the buyer about a committed status change. Never raises for lookup failures."""
    try:
        order = db.session.get(Order, order_id)
        buyer = db.session.get(UserProfile, order.buyer_id) if order is not None else None
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.warning({"event": "order.announce_failed", "order_id": order_id, "error": str(e)})
        return
    if order is None:
        return
    if buyer is not None:
        enqueue_email(
            buyer.email,
            f"Order #{order.id} update",
            f"Your order is now {order.status.replace('_', ' ')}.",
        )


__all__ = [
    "CANCELLABLE_FROM",
    "allowed_transitions",
    "is_allowed",
    "set_status",
    "update_payment_status",
    "announce_status_change",
]
