from pydantic import BaseModel, Field, constr
from typing import List, Literal, Optional


class CartLineRequest(BaseModel):
    product_id: int
    quantity: int = Field(ge=1)


class CartUpsertRequest(BaseModel):
    product_id: int
    quantity: int = Field(default=1, ge=0)


class CartQuantityRequest(BaseModel):
    quantity: int = Field(ge=0)


class ShippingAddress(BaseModel):
    full_name: constr(min_length=1, max_length=120)
    street: constr(min_length=1, max_length=255)
    city: constr(min_length=1, max_length=100)
    state: constr(min_length=1, max_length=100)
    zip_code: constr(min_length=1, max_length=20)
    country: constr(min_length=2, max_length=60)
    phone: Optional[str] = None
    notes: Optional[str] = None


class CheckoutRequest(BaseModel):
    # Omitted items means "check out what is in my stored cart"
    items: Optional[List[CartLineRequest]] = None
    shipping_address: ShippingAddress
    payment_method: Literal["cod", "stripe"]
    idempotency_key: Optional[constr(min_length=8, max_length=100)] = None
    clear_cart: bool = False


class StatusUpdateRequest(BaseModel):
    status: Literal["pending", "processing", "shipped", "out_for_delivery", "delivered", "cancelled"]
