"""Catalog CRUD helpers: categories, subcategories and items.

Every write commits on success and rolls the session back before re-raising,
so a failed request never leaves half-applied changes in the session.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, contains_eager

from ..core.errors import ConflictError, InvalidInputError, NotFoundError
from ..models.catalog import Category, Item, Subcategory
from ..schemas.catalog import ITEM_NUMERIC_FIELDS, STOCK_FIELDS

logger = logging.getLogger("duka.catalog")


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def _commit(db: Session, conflict_message: str) -> None:
    """Commit, translating unique/foreign-key violations into ``ConflictError``."""

    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError(conflict_message) from exc
    except Exception:
        db.rollback()
        raise


# ---------- Categories ----------


def list_categories(db: Session) -> list[Category]:
    return db.execute(select(Category).order_by(Category.name)).scalars().all()


def get_category(db: Session, category_id: int) -> Category | None:
    return db.get(Category, category_id)


def create_category(db: Session, name: str) -> Category:
    name = (name or "").strip()
    if not name:
        raise InvalidInputError("name is required")
    category = Category(name=name, created_at=utc_timestamp())
    db.add(category)
    _commit(db, f'Category "{name}" already exists')
    db.refresh(category)
    logger.info("category.created", extra={"extra_data": {"category_id": category.id}})
    return category


def delete_category(db: Session, category: Category) -> None:
    """Remove a category; the database cascades to its subcategories and items."""

    category_id = category.id
    db.delete(category)
    _commit(db, "Category has items with recorded sales and cannot be deleted")
    logger.info("category.deleted", extra={"extra_data": {"category_id": category_id}})


# ---------- Subcategories ----------


def list_subcategories(db: Session, category_id: int | None = None) -> list[Subcategory]:
    stmt = select(Subcategory).order_by(Subcategory.name)
    if category_id is not None:
        stmt = stmt.where(Subcategory.category_id == category_id)
    return db.execute(stmt).unique().scalars().all()


def get_subcategory(db: Session, subcategory_id: int) -> Subcategory | None:
    return db.get(Subcategory, subcategory_id)


def create_subcategory(db: Session, category_id: int, name: str) -> Subcategory:
    name = (name or "").strip()
    if not category_id or not name:
        raise InvalidInputError("category_id and name are required")
    if get_category(db, category_id) is None:
        raise NotFoundError("Category not found")
    subcategory = Subcategory(category_id=category_id, name=name)
    db.add(subcategory)
    _commit(db, f'Subcategory "{name}" already exists in this category')
    db.refresh(subcategory)
    return subcategory


def delete_subcategory(db: Session, subcategory: Subcategory) -> None:
    db.delete(subcategory)
    _commit(db, "Subcategory has items with recorded sales and cannot be deleted")


# ---------- Items ----------


def list_items(db: Session) -> list[Item]:
    """Every item with its hierarchy loaded, ordered category → subcategory → item."""

    stmt = (
        select(Item)
        .join(Item.subcategory)
        .join(Subcategory.category)
        .options(contains_eager(Item.subcategory).contains_eager(Subcategory.category))
        .order_by(Category.name, Subcategory.name, Item.name)
    )
    return db.execute(stmt).unique().scalars().all()


def get_item(db: Session, item_id: int) -> Item | None:
    return db.get(Item, item_id)


def create_item(db: Session, payload: dict) -> Item:
    """Create an item. ``total_units`` defaults to a full stock of bales."""

    data = payload.copy()
    name = (data.pop("name", None) or "").strip()
    subcategory_id = data.pop("subcategory_id", None)
    if not subcategory_id or not name:
        raise InvalidInputError("subcategory_id and name are required")
    if get_subcategory(db, subcategory_id) is None:
        raise NotFoundError("Subcategory not found")

    values = {field: data.get(field) or 0 for field in ITEM_NUMERIC_FIELDS}
    if data.get("total_units") is None:
        values["total_units"] = values["bales_count"] * values["units_per_bale"]

    now = utc_timestamp()
    item = Item(subcategory_id=subcategory_id, name=name, created_at=now, updated_at=now, **values)
    item.refresh_stored_health()
    db.add(item)
    _commit(db, f'Item "{name}" already exists in this subcategory')
    db.refresh(item)
    logger.info(
        "item.created",
        extra={"extra_data": {"item_id": item.id, "total_units": item.total_units}},
    )
    return item


def update_item(db: Session, item: Item, payload: dict) -> Item:
    """Apply a partial restock/pricing update and re-derive stored health.

    Only the numeric stock and price fields are recognised; anything else in
    ``payload`` is ignored. An update with no recognised field is rejected.
    """

    changes = {k: v for k, v in payload.items() if k in ITEM_NUMERIC_FIELDS and v is not None}
    if not changes:
        raise InvalidInputError("No valid fields to update")

    stock_changed = any(key in STOCK_FIELDS and getattr(item, key) != value for key, value in changes.items())
    for key, value in changes.items():
        setattr(item, key, value)
    if stock_changed:
        item.updated_at = utc_timestamp()
    item.refresh_stored_health()
    _commit(db, "Item update violates a constraint")
    # Re-read so the response reflects the stored row, not our in-memory copy.
    db.refresh(item)
    logger.info(
        "item.updated",
        extra={"extra_data": {"item_id": item.id, "fields": sorted(changes)}},
    )
    return item
