from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import BigInteger, Integer

# Use BigInteger in production but fall back to Integer for SQLite
BIGINT = BigInteger().with_variant(Integer, "sqlite")

db = SQLAlchemy()

# Re-export common models for convenience
from .user import UserProfile  # noqa: F401
from .vendor import VendorRequest  # noqa: F401
from .product import Product  # noqa: F401
from .cart import Cart, CartItem  # noqa: F401
from .order import Order, OrderGroup, OrderItem  # noqa: F401
from .notification import Notification  # noqa: F401
