from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

SaleType = Literal["unit", "bale"]


class SaleCreate(BaseModel):
    # Rejects inf/nan; a JSON literal like 1e309 parses to inf.
    model_config = ConfigDict(allow_inf_nan=False)

    item_id: int = Field(gt=0)
    type: SaleType
    quantity: int = Field(gt=0)
    # Per unit, or per bale when ``type`` is "bale". Omitted/0 falls back to
    # the item's stored price when SALE_PRICE_FALLBACK is on.
    price: Optional[float] = Field(default=None, ge=0)


class SaleReceipt(BaseModel):
    sale_id: int
    item_id: int
    type: SaleType
    quantity: int
    price: float
    total_amount: float
    units_deducted: int
    message: str = "Sale recorded and stock updated successfully"


class SaleRow(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    item_id: int
    type: SaleType
    quantity: int
    price: float
    total_amount: float
    created_at: str


class SaleOut(SaleRow):
    item_name: Optional[str] = None
    subcategory_name: Optional[str] = None
    category_name: Optional[str] = None
