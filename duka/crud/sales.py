"""Sales ledger: recording a sale against stock, and reading the ledger back."""

from __future__ import annotations

import logging
import math
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator

from sqlalchemy import desc, select, update
from sqlalchemy.orm import Session, lazyload

from ..core.errors import InsufficientStockError, InvalidInputError, NotFoundError
from ..models.catalog import Item
from ..models.sale import Sale
from ..services.health import SALE_TYPES, effective_unit_price, units_to_deduct
from .catalog import utc_timestamp

logger = logging.getLogger("duka.sales")


@dataclass(frozen=True)
class SaleResult:
    sale_id: int
    item_id: int
    type: str
    quantity: int
    price: float
    total_amount: float
    units_deducted: int


class ItemLocks:
    """One mutex per item id, serialising sales of the same item in this process.

    The guarded UPDATE in ``record_sale`` already stops stock going negative
    across processes; the mutex makes same-process races resolve to a clean
    insufficient-stock answer instead of a SQLite "database is locked" error.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        # item id -> [lock, number of threads holding or waiting on it]
        self._locks: dict[int, list] = {}

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

    @contextmanager
    def hold(self, item_id: int) -> Iterator[None]:
        with self._guard:
            entry = self._locks.setdefault(item_id, [threading.Lock(), 0])
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[item_id]


item_locks = ItemLocks()


def _resolve_price(sale_type: str, item: Item, price: float | None, allow_fallback: bool) -> float:
    if price is not None and not (math.isfinite(price) and price >= 0):
        raise InvalidInputError("price must be a finite number, not negative")
    if price:
        return float(price)
    if not allow_fallback:
        raise InvalidInputError("price is required")
    return float(effective_unit_price(sale_type, item))


def record_sale(
    db: Session,
    *,
    item_id: int,
    sale_type: str,
    quantity: int,
    price: float | None = None,
    allow_price_fallback: bool = True,
) -> SaleResult:
    """Record a sale and deduct its units from stock as one transaction.

    The deduction is a guarded ``UPDATE ... WHERE total_units >= n``; if a
    concurrent sale consumed the stock after our read, no row matches and the
    whole transaction is rolled back with ``InsufficientStockError``.
    """

    if not item_id or sale_type not in SALE_TYPES or not quantity or quantity <= 0:
        raise InvalidInputError("Missing or invalid required fields: item_id, type, quantity, price")

    try:
        with item_locks.hold(item_id):
            stmt = (
                select(Item)
                .options(lazyload("*"))
                .where(Item.id == item_id)
                .with_for_update()
                .execution_options(populate_existing=True)
            )
            item = db.execute(stmt).scalars().first()
            if item is None:
                raise NotFoundError("Item not found")

            units = units_to_deduct(sale_type, quantity, item.units_per_bale)
            if units <= 0:
                raise InvalidInputError("Item has no units_per_bale configured; sell by unit instead")
            sale_price = _resolve_price(sale_type, item, price, allow_price_fallback)

            if item.total_units < units:
                raise InsufficientStockError(available=item.total_units, requested=units)

            now = utc_timestamp()
            result = db.execute(
                update(Item)
                .where(Item.id == item_id, Item.total_units >= units)
                .values(total_units=Item.total_units - units, updated_at=now)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                db.rollback()
                available = db.scalar(select(Item.total_units).where(Item.id == item_id)) or 0
                raise InsufficientStockError(available=available, requested=units)

            total_amount = quantity * sale_price
            sale = Sale(
                item_id=item_id,
                type=sale_type,
                quantity=quantity,
                price=sale_price,
                total_amount=total_amount,
                created_at=now,
            )
            db.add(sale)
            db.flush()
            sale_id = sale.id

            db.refresh(item)
            item.refresh_stored_health()
            db.commit()
    except InsufficientStockError as exc:
        db.rollback()
        logger.warning(
            "sale.rejected",
            extra={
                "extra_data": {
                    "item_id": item_id,
                    "type": sale_type,
                    "quantity": quantity,
                    "available": exc.available,
                    "requested": exc.requested,
                }
            },
        )
        raise
    except Exception:
        db.rollback()
        raise

    logger.info(
        "sale.recorded",
        extra={
            "extra_data": {
                "sale_id": sale_id,
                "item_id": item_id,
                "type": sale_type,
                "quantity": quantity,
                "units_deducted": units,
                "total_amount": total_amount,
            }
        },
    )
    return SaleResult(
        sale_id=sale_id,
        item_id=item_id,
        type=sale_type,
        quantity=quantity,
        price=sale_price,
        total_amount=total_amount,
        units_deducted=units,
    )


def list_sales(db: Session, item_id: int | None = None, limit: int = 50) -> list[Sale]:
    """Recent sales, newest first, with item/subcategory/category loaded."""

    stmt = select(Sale).order_by(desc(Sale.created_at), desc(Sale.id)).limit(limit)
    if item_id is not None:
        stmt = stmt.where(Sale.item_id == item_id)
    return db.execute(stmt).unique().scalars().all()


def get_sale(db: Session, sale_id: int) -> Sale | None:
    return db.get(Sale, sale_id)


def list_item_sales(db: Session, item_id: int, limit: int = 20) -> list[Sale]:
    stmt = (
        select(Sale)
        .options(lazyload(Sale.item))
        .where(Sale.item_id == item_id)
        .order_by(desc(Sale.created_at), desc(Sale.id))
        .limit(limit)
    )
    return db.execute(stmt).scalars().all()
