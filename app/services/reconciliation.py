"""
Payment Reconciliation Listener.

Consumes Stripe webhook deliveries. The signature over the raw body is
checked before anything else touches the database. Each (gateway payment
id, outcome) pair is applied at most once; the unique constraint on
``payment_event`` settles concurrent redeliveries.
"""
import json
import logging
from dataclasses import dataclass
from decimal import Decimal

import stripe
from opentelemetry import trace
from sqlalchemy.exc import IntegrityError

from models import db
from models.order import Order, PaymentEvent
from app.metrics import PAYMENT_EVENTS
from app.services.exceptions import DuplicateEvent, EventRejected, InvalidRequest
from app.services.fulfillment import update_payment_status
from app.utils.db import transactional

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

# event type -> payment outcome
HANDLED_EVENTS = {
    "checkout.session.completed": "paid",
    "payment_intent.succeeded": "paid",
    "payment_intent.payment_failed": "failed",
}

DEFAULT_TOLERANCE = 300


@dataclass(frozen=True)
class Ack:
    applied: bool
    reason: str = "applied"
    order_id: int = None


@dataclass(frozen=True)
class PaymentNotice:
    event_id: str
    event_type: str
    outcome: str
    order_ref: str
    gateway_payment_id: str
    amount: Decimal = None
    currency: str = None


def verify_signature(payload: bytes, signature: str, secret: str, tolerance: int = DEFAULT_TOLERANCE) -> dict:
    """Return the decoded event, or raise EventRejected if Stripe's signature does not hold."""
    if not secret:
        raise EventRejected("Webhook secret not configured")
    try:
        stripe.Webhook.construct_event(payload, signature or "", secret, tolerance=tolerance)
    except stripe.SignatureVerificationError as e:
        logger.warning("Webhook signature verification failed: %s", e)
        raise EventRejected("Invalid signature") from e
    except ValueError as e:
        raise EventRejected("Invalid payload") from e
    raw = payload.decode("utf-8") if isinstance(payload, (bytes, bytearray)) else payload
    return json.loads(raw)


def _cents(value):
    if value is None:
        return None
    return (Decimal(int(value)) / Decimal(100)).quantize(Decimal("0.01"))


def parse_notice(event: dict):
    """Pull the fields we act on out of a verified event; None for types we ignore."""
    event_type = event.get("type")
    outcome = HANDLED_EVENTS.get(event_type)
    if outcome is None:
        return None
    obj = (event.get("data") or {}).get("object") or {}
    metadata = obj.get("metadata") or {}
    order_ref = metadata.get("order_id") or metadata.get("orderId")

    if event_type == "checkout.session.completed":
        payment_id = obj.get("payment_intent") or obj.get("id")
        amount = obj.get("amount_total")
    else:
        payment_id = obj.get("id")
        amount = obj.get("amount_received") if outcome == "paid" else obj.get("amount")

    if not order_ref or not payment_id:
        raise EventRejected("Event carries no order reference")
    return PaymentNotice(
        event_id=event.get("id"),
        event_type=event_type,
        outcome=outcome,
        order_ref=str(order_ref),
        gateway_payment_id=str(payment_id),
        amount=_cents(amount),
        currency=obj.get("currency"),
    )


def apply_notice(notice: PaymentNotice) -> Ack:
    if not notice.order_ref.isdecimal():
        logger.warning({"event": "payment.unknown_order", "order_ref": notice.order_ref})
        return Ack(applied=False, reason="unknown_order")
    order_id = int(notice.order_ref)

    try:
        seen = PaymentEvent.query.filter_by(
            gateway_payment_id=notice.gateway_payment_id, outcome=notice.outcome
        ).first()
        if seen:
            raise DuplicateEvent(f"Payment {notice.gateway_payment_id} already recorded")
        with transactional("Payment reconciliation failed"):
            if db.session.get(Order, order_id) is None:
                logger.warning({"event": "payment.unknown_order", "order_ref": notice.order_ref})
                return Ack(applied=False, reason="unknown_order")

            changed = update_payment_status(
                order_id,
                notice.outcome,
                "gateway",
                gateway_payment_id=notice.gateway_payment_id,
                amount=notice.amount,
                currency=notice.currency,
            )
            db.session.add(
                PaymentEvent(
                    gateway_payment_id=notice.gateway_payment_id,
                    gateway_event_id=notice.event_id,
                    order_id=order_id,
                    event_type=notice.event_type,
                    outcome=notice.outcome,
                    amount=notice.amount,
                    currency=notice.currency,
                    applied=changed,
                    details=None if changed else f"payment already {notice.outcome}",
                )
            )
    except (DuplicateEvent, IntegrityError):
        db.session.rollback()
        logger.info({"event": "payment.duplicate", "gateway_payment_id": notice.gateway_payment_id})
        return Ack(applied=False, reason="duplicate", order_id=order_id)
    except InvalidRequest as e:
        # Verified but contradicts a settled state; retrying will not help the gateway
        logger.warning({"event": "payment.conflict", "order_id": order_id, "reason": e.message})
        return Ack(applied=False, reason="conflict", order_id=order_id)

    return Ack(applied=changed, reason="applied" if changed else "already_settled", order_id=order_id)


def on_payment_event(payload: bytes, signature: str, secret: str, tolerance: int = DEFAULT_TOLERANCE) -> Ack:
    """
    Handle one webhook delivery. Raises EventRejected for unverifiable or
    malformed events; everything else is acknowledged.
    """
    with tracer.start_as_current_span("payment.on_event"):
        try:
            event = verify_signature(payload, signature, secret, tolerance)
            notice = parse_notice(event)
        except EventRejected:
            PAYMENT_EVENTS.labels("rejected").inc()
            raise
        if notice is None:
            PAYMENT_EVENTS.labels("ignored").inc()
            logger.info({"event": "payment.ignored", "type": event.get("type")})
            return Ack(applied=False, reason="ignored")

        ack = apply_notice(notice)

    PAYMENT_EVENTS.labels(ack.reason).inc()
    logger.info({
        "event": "payment.handled",
        "type": notice.event_type,
        "order_id": ack.order_id,
        "reason": ack.reason,
    })
    return ack


__all__ = ["Ack", "PaymentNotice", "verify_signature", "parse_notice", "apply_notice", "on_payment_event"]
