from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

STOCK_FIELDS = ("bales_count", "units_per_bale", "total_units")
PRICE_FIELDS = ("bale_price", "unit_price", "landing_price", "selling_price")
ITEM_NUMERIC_FIELDS = STOCK_FIELDS + PRICE_FIELDS


def _strip_name(value: object) -> object:
    if isinstance(value, str):
        return value.strip()
    return value


class CategoryCreate(BaseModel):
    name: str = Field(min_length=1)

    normalize_name = field_validator("name", mode="before")(_strip_name)


class CategoryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str


class SubcategoryCreate(BaseModel):
    category_id: int = Field(gt=0)
    name: str = Field(min_length=1)

    normalize_name = field_validator("name", mode="before")(_strip_name)


class SubcategoryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    category_id: int
    name: str
    category_name: Optional[str] = None


class ItemCreate(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    subcategory_id: int = Field(gt=0)
    name: str = Field(min_length=1)
    bales_count: int = Field(default=0, ge=0)
    units_per_bale: int = Field(default=0, ge=0)
    total_units: Optional[int] = Field(default=None, ge=0)
    bale_price: float = Field(default=0, ge=0)
    unit_price: float = Field(default=0, ge=0)
    landing_price: float = Field(default=0, ge=0)
    selling_price: float = Field(default=0, ge=0)

    normalize_name = field_validator("name", mode="before")(_strip_name)


class ItemUpdate(BaseModel):
    """Partial restock/pricing update. Unknown keys are ignored."""

    model_config = ConfigDict(allow_inf_nan=False)

    bales_count: Optional[int] = Field(default=None, ge=0)
    units_per_bale: Optional[int] = Field(default=None, ge=0)
    total_units: Optional[int] = Field(default=None, ge=0)
    bale_price: Optional[float] = Field(default=None, ge=0)
    unit_price: Optional[float] = Field(default=None, ge=0)
    landing_price: Optional[float] = Field(default=None, ge=0)
    selling_price: Optional[float] = Field(default=None, ge=0)


class ItemCreated(BaseModel):
    id: int


class ItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    subcategory_id: int
    name: str
    bales_count: int
    units_per_bale: int
    total_units: int
    bale_price: float
    unit_price: float
    landing_price: float
    selling_price: float
    health_status: str
    health_color: str
    health_percentage: str
    profit_margin: str
    category_name: Optional[str] = None
    subcategory_name: Optional[str] = None
    created_at: str
    updated_at: str
