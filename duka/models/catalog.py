"""Catalog tables: categories own subcategories, subcategories own items.

Deletes cascade at the database level (``ON DELETE CASCADE``) so removing a
category also clears its subcategories and their items.
"""

from __future__ import annotations

from sqlalchemy import Column, Float, ForeignKey, Integer, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from ..db.session import Base
from ..services.health import HealthReading, calculate_health, calculate_profit_margin


class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(Text, nullable=False, unique=True)
    created_at = Column(Text, nullable=False)

    subcategories = relationship(
        "Subcategory",
        back_populates="category",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class Subcategory(Base):
    __tablename__ = "subcategories"
    __table_args__ = (UniqueConstraint("category_id", "name", name="uq_subcategories_category_name"),)

    id = Column(Integer, primary_key=True, index=True)
    category_id = Column(Integer, ForeignKey("categories.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(Text, nullable=False)

    category = relationship("Category", back_populates="subcategories", lazy="joined")
    items = relationship(
        "Item",
        back_populates="subcategory",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def category_name(self) -> str | None:
        return self.category.name if self.category else None


class Item(Base):
    """A stocked product.

    ``total_units`` is the live count: sales decrement it, restocks set it.
    The ``health_status``/``health_color`` columns mirror the calculator for
    plain SQL readers; attribute access always recomputes from current counts.
    """

    __tablename__ = "items"
    __table_args__ = (UniqueConstraint("subcategory_id", "name", name="uq_items_subcategory_name"),)

    id = Column(Integer, primary_key=True, index=True)
    subcategory_id = Column(Integer, ForeignKey("subcategories.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(Text, nullable=False)
    bales_count = Column(Integer, nullable=False, default=0)
    units_per_bale = Column(Integer, nullable=False, default=0)
    total_units = Column(Integer, nullable=False, default=0)
    bale_price = Column(Float, nullable=False, default=0)
    unit_price = Column(Float, nullable=False, default=0)
    landing_price = Column(Float, nullable=False, default=0)
    selling_price = Column(Float, nullable=False, default=0)
    stored_health_status = Column("health_status", Text, nullable=False, default="unknown")
    stored_health_color = Column("health_color", Text, nullable=False, default="gray")
    created_at = Column(Text, nullable=False)
    updated_at = Column(Text, nullable=False)

    subcategory = relationship("Subcategory", back_populates="items", lazy="joined")

    @property
    def health(self) -> HealthReading:
        return calculate_health(self.total_units or 0, self.bales_count or 0, self.units_per_bale or 0)

    @property
    def health_status(self) -> str:
        return self.health.status

    @property
    def health_color(self) -> str:
        return self.health.color

    @property
    def health_percentage(self) -> str:
        return self.health.percentage

    @property
    def profit_margin(self) -> str:
        return calculate_profit_margin(self.selling_price or 0, self.landing_price or 0)

    @property
    def subcategory_name(self) -> str | None:
        return self.subcategory.name if self.subcategory else None

    @property
    def category_name(self) -> str | None:
        return self.subcategory.category_name if self.subcategory else None

    def refresh_stored_health(self) -> None:
        reading = self.health
        self.stored_health_status = reading.status
        self.stored_health_color = reading.color
