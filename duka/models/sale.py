from __future__ import annotations

from sqlalchemy import CheckConstraint, Column, Float, ForeignKey, Index, Integer, Text
from sqlalchemy.orm import relationship

from ..db.session import Base


class Sale(Base):
    """One line in the sales ledger. Rows are written once and never edited.

    ``price`` is per unit or per bale depending on ``type``; ``total_amount``
    is always ``quantity * price``.
    """

    __tablename__ = "sales"
    __table_args__ = (
        CheckConstraint("type IN ('unit', 'bale')", name="ck_sales_type"),
        CheckConstraint("quantity > 0", name="ck_sales_quantity_positive"),
        Index("ix_sales_item_created", "item_id", "created_at"),
    )

    id = Column(Integer, primary_key=True, index=True)
    # No ON DELETE here: an item with ledger history cannot be removed.
    item_id = Column(Integer, ForeignKey("items.id"), nullable=False, index=True)
    type = Column(Text, nullable=False)
    quantity = Column(Integer, nullable=False)
    price = Column(Float, nullable=False)
    total_amount = Column(Float, nullable=False)
    created_at = Column(Text, nullable=False)

    item = relationship("Item", lazy="joined")

    @property
    def item_name(self) -> str | None:
        return self.item.name if self.item else None

    @property
    def subcategory_name(self) -> str | None:
        return self.item.subcategory_name if self.item else None

    @property
    def category_name(self) -> str | None:
        return self.item.category_name if self.item else None
