from pydantic import BaseModel, constr
from typing import Optional


class VendorRequestCreate(BaseModel):
    business_name: constr(min_length=2, max_length=150)
    note: Optional[str] = None
