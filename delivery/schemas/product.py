from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, ConfigDict


class ProductRead(BaseModel):
    id: int
    category_id: Optional[int] = None
    name: str
    description: Optional[str] = None
    price: Decimal
    active: bool

    model_config = ConfigDict(from_attributes=True)
