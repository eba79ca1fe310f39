from models import db, BIGINT
from datetime import datetime


class Cart(db.Model):
    __tablename__ = "cart"

    id = db.Column(BIGINT, primary_key=True)
    buyer_id = db.Column(db.String(64), db.ForeignKey("user_profile.id"), unique=True, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    items = db.relationship(
        "CartItem", backref="cart", cascade="all, delete-orphan", lazy=True, order_by="CartItem.id"
    )


class CartItem(db.Model):
    __tablename__ = "cart_item"
    __table_args__ = (
        db.UniqueConstraint("cart_id", "product_id", name="uq_cart_item_product"),
    )

    id = db.Column(BIGINT, primary_key=True)
    cart_id = db.Column(BIGINT, db.ForeignKey("cart.id"), nullable=False)
    product_id = db.Column(BIGINT, nullable=False)
    quantity = db.Column(db.Integer, nullable=False, default=1)
    unit_price = db.Column(db.Numeric(10, 2), nullable=False)  # snapshot at add time, may go stale
    display_name = db.Column(db.String(200), nullable=True)
    image_ref = db.Column(db.String(255), nullable=True)
    added_at = db.Column(db.DateTime, default=datetime.utcnow)
    last_updated = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        return {
            "product_id": self.product_id,
            "quantity": self.quantity,
            "unit_price": float(self.unit_price),
            "display_name": self.display_name,
            "image_ref": self.image_ref,
            "subtotal": float(self.unit_price * self.quantity),
        }
