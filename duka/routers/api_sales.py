from __future__ import annotations

from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from ..core.errors import NotFoundError
from ..crud.sales import get_sale, list_item_sales, list_sales, record_sale
from ..db.session import get_db
from ..schemas.sale import SaleCreate, SaleOut, SaleReceipt, SaleRow

router = APIRouter(prefix="/api/sales", tags=["sales"])


@router.post("", response_model=SaleReceipt, status_code=201)
def api_record_sale(payload: SaleCreate, request: Request, db: Session = Depends(get_db)):
    result = record_sale(
        db,
        item_id=payload.item_id,
        sale_type=payload.type,
        quantity=payload.quantity,
        price=payload.price,
        allow_price_fallback=request.app.state.settings.SALE_PRICE_FALLBACK,
    )
    return SaleReceipt(**asdict(result))


@router.get("", response_model=list[SaleOut])
def api_list(
    item_id: Optional[int] = Query(default=None, gt=0),
    limit: int = Query(default=50, ge=1, le=500),
    db: Session = Depends(get_db),
):
    return list_sales(db, item_id=item_id, limit=limit)


@router.get("/item/{item_id}", response_model=list[SaleRow])
def api_item_sales(item_id: int, limit: int = Query(default=20, ge=1, le=500), db: Session = Depends(get_db)):
    return list_item_sales(db, item_id, limit=limit)


@router.get("/{sale_id}", response_model=SaleOut)
def api_get(sale_id: int, db: Session = Depends(get_db)):
    sale = get_sale(db, sale_id)
    if not sale:
        raise NotFoundError("Sale not found")
    return sale
