# --- models/product.py ---
from models import db, BIGINT
from datetime import datetime


class Product(db.Model):
    __tablename__ = "product"

    id = db.Column(BIGINT, primary_key=True)
    vendor_id = db.Column(db.String(64), db.ForeignKey("user_profile.id"), nullable=False, index=True)
    name = db.Column(db.String(200), nullable=False)
    price = db.Column(db.Numeric(10, 2), nullable=False)
    image_url = db.Column(db.String(255), nullable=True)
    is_active = db.Column(db.Boolean, default=True)  # soft delete
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    vendor = db.relationship("UserProfile")
