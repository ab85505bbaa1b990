"""Default shop catalog inserted into an empty database."""

from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..crud.catalog import utc_timestamp
from ..models.catalog import Category, Subcategory

logger = logging.getLogger("duka.seed")

DEFAULT_CATALOG: dict[str, list[str]] = {
    "Books": ["A4", "A5", "Exercise Books", "Text Books", "Novels"],
    "Stationary": ["Pens", "Pencils", "Markers", "Notebooks", "Rulers", "Erasers"],
    "Flours": ["Self Raising", "All Purpose", "Maize Flour", "Cassava Flour"],
    "Cooking Oil": ["1L", "2L", "5L", "Sunflower", "Vegetable"],
    "Detergents": ["Laundry Powder", "Liquid Dishwash", "Bar Soap", "Toilet Cleaner"],
    "Beverages": ["Sodas", "Juices", "Water", "Energy Drinks"],
}


def seed_catalog(db: Session, catalog: dict[str, list[str]] | None = None) -> int:
    """Insert the default categories if none exist. Returns how many were added."""

    existing = db.scalar(select(func.count()).select_from(Category)) or 0
    if existing:
        logger.info("seed.skipped", extra={"extra_data": {"categories": existing}})
        return 0

    catalog = catalog if catalog is not None else DEFAULT_CATALOG
    now = utc_timestamp()
    try:
        for category_name, sub_names in catalog.items():
            category = Category(name=category_name, created_at=now)
            category.subcategories = [Subcategory(name=name) for name in sub_names]
            db.add(category)
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info("seed.completed", extra={"extra_data": {"categories": len(catalog)}})
    return len(catalog)
