"""Catalog Reader: authoritative price, name and vendor for a product.

The catalog itself is owned elsewhere; this module only reads it. Checkout
resolves every line through here so that neither price nor vendor
attribution is ever taken from client input.
"""
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal

from models import db
from models.product import Product
from models.user import UserProfile
from app.services.exceptions import ProductNotFound, TransientFailure


@dataclass(frozen=True)
class ResolvedItem:
    product_id: int
    current_price: Decimal
    vendor_id: str
    name: str
    image_ref: str = None


class CatalogReader(ABC):
    @abstractmethod
    def resolve_item(self, product_id, timeout: float = None) -> ResolvedItem:
        """Return the live catalog view of ``product_id`` or raise ProductNotFound."""
        ...


class SqlCatalogReader(CatalogReader):
    """Reads the ``product`` table.

    A product resolves only while it is active and its owner still holds the
    vendor role; a revoked vendor's products drop out of checkout at once.
    """

    def resolve_item(self, product_id, timeout: float = None) -> ResolvedItem:
        started = time.monotonic()
        product = Product.query.filter_by(id=product_id, is_active=True).first()
        if not product:
            raise ProductNotFound(product_id)
        owner = db.session.get(UserProfile, product.vendor_id)
        if not owner or owner.role != "vendor":
            raise ProductNotFound(product_id)
        if timeout is not None and time.monotonic() - started > timeout:
            raise TransientFailure("Catalog lookup timed out")
        return ResolvedItem(
            product_id=product.id,
            current_price=Decimal(str(product.price)),
            vendor_id=product.vendor_id,
            name=product.name,
            image_ref=product.image_url,
        )


default_catalog = SqlCatalogReader()
