from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Numeric, Boolean
from models import BIGINT
from sqlalchemy.sql import func
from models import db
from datetime import datetime

# Delivery lifecycle, in order. "cancelled" sits outside the chain.
STATUS_CHAIN = ("pending", "processing", "shipped", "out_for_delivery", "delivered")
ORDER_STATUSES = STATUS_CHAIN + ("cancelled",)
PAYMENT_STATUSES = ("pending", "paid", "failed")
PAYMENT_METHODS = ("cod", "stripe")


class OrderGroup(db.Model):
    __tablename__ = "order_group"
    __table_args__ = (
        db.UniqueConstraint("buyer_id", "idempotency_key", name="uq_order_group_idempotency"),
    )
    id = Column(BIGINT, primary_key=True)
    buyer_id = Column(String(64), ForeignKey("user_profile.id"), nullable=False)
    idempotency_key = Column(String(100), nullable=True)
    created_at = Column(DateTime, default=func.now())

    orders = db.relationship("Order", backref="group", lazy=True, order_by="Order.id")


class Order(db.Model):
    __tablename__ = "order"
    __table_args__ = (
        db.Index("ix_order_vendor_status", "vendor_id", "status"),
        db.Index("ix_order_buyer_created", "buyer_id", "created_at"),
    )
    id = Column(BIGINT, primary_key=True)
    group_id = Column(BIGINT, ForeignKey("order_group.id"), nullable=False)
    buyer_id = Column(String(64), ForeignKey("user_profile.id"), nullable=False)
    vendor_id = Column(String(64), ForeignKey("user_profile.id"), nullable=False)
    status = Column(String(30), nullable=False, default="pending")
    payment_method = Column(String(10), nullable=False)  # cod or stripe
    payment_status = Column(String(20), nullable=False, default="pending")  # pending, paid, failed
    total = Column(Numeric(10, 2), nullable=False)
    shipping_address = Column(db.JSON, nullable=False)
    paid_at = Column(DateTime, nullable=True)
    gateway_payment_id = Column(String(255), nullable=True)
    settled_amount = Column(Numeric(10, 2), nullable=True)
    settled_currency = Column(String(10), nullable=True)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    items = db.relationship(
        "OrderItem", backref="order", cascade="all, delete-orphan", lazy=True, order_by="OrderItem.id"
    )

    def to_dict(self):
        return {
            "order_id": self.id,
            "group_id": self.group_id,
            "buyer_id": self.buyer_id,
            "vendor_id": self.vendor_id,
            "status": self.status,
            "payment_method": self.payment_method,
            "payment_status": self.payment_status,
            "total": float(self.total),
            "shipping_address": self.shipping_address,
            "paid_at": self.paid_at.isoformat() if self.paid_at else None,
            "gateway_payment_id": self.gateway_payment_id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
            "items": [oi.to_dict() for oi in self.items],
        }


class OrderItem(db.Model):
    __tablename__ = "order_item"
    id = db.Column(BIGINT, primary_key=True)
    order_id = db.Column(BIGINT, db.ForeignKey("order.id"), nullable=False)
    product_id = db.Column(BIGINT, nullable=False)
    vendor_id = db.Column(db.String(64), nullable=False)

    # Copied from the catalog at checkout so later price edits never touch a placed order
    name = db.Column(db.String(200))
    unit_price = db.Column(db.Numeric(10, 2), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    subtotal = db.Column(db.Numeric(10, 2), nullable=False)

    def to_dict(self):
        return {
            "product_id": self.product_id,
            "vendor_id": self.vendor_id,
            "name": self.name,
            "unit_price": float(self.unit_price),
            "quantity": self.quantity,
            "subtotal": float(self.subtotal)
        }


class OrderStatusLog(db.Model):
    __tablename__ = "order_status_log"
    id = Column(BIGINT, primary_key=True)
    order_id = Column(BIGINT, ForeignKey("order.id"), nullable=False)
    from_status = Column(String(30), nullable=True)
    status = Column(String(30), nullable=False)
    updated_by = Column(String(64), nullable=False)
    timestamp = Column(DateTime, default=func.now())

    def to_dict(self):
        return {
            "order_id": self.order_id,
            "from_status": self.from_status,
            "status": self.status,
            "updated_by": self.updated_by,
            "timestamp": self.timestamp
        }


class PaymentEvent(db.Model):
    __tablename__ = "payment_event"
    __table_args__ = (
        db.UniqueConstraint("gateway_payment_id", "outcome", name="uq_payment_event_outcome"),
    )
    id = db.Column(BIGINT, primary_key=True)
    gateway_payment_id = db.Column(db.String(255), nullable=False)
    gateway_event_id = db.Column(db.String(255), nullable=True)
    order_id = db.Column(BIGINT, db.ForeignKey("order.id"), nullable=False)
    event_type = db.Column(db.String(100), nullable=False)
    outcome = db.Column(db.String(20), nullable=False)  # paid or failed
    amount = db.Column(db.Numeric(10, 2), nullable=True)
    currency = db.Column(db.String(10), nullable=True)
    applied = db.Column(Boolean, nullable=False, default=True)
    details = db.Column(Text, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
