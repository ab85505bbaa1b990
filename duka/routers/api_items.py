from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..core.errors import NotFoundError
from ..crud.catalog import create_item, get_item, list_items, update_item
from ..db.session import get_db
from ..schemas.catalog import ItemCreate, ItemCreated, ItemOut, ItemUpdate

router = APIRouter(prefix="/api/items", tags=["items"])


@router.get("", response_model=list[ItemOut])
def api_list(db: Session = Depends(get_db)):
    return list_items(db)


@router.get("/{item_id}", response_model=ItemOut)
def api_get(item_id: int, db: Session = Depends(get_db)):
    item = get_item(db, item_id)
    if not item:
        raise NotFoundError("Item not found")
    return item


@router.post("", response_model=ItemCreated, status_code=201)
def api_create(payload: ItemCreate, db: Session = Depends(get_db)):
    item = create_item(db, payload.model_dump())
    return {"id": item.id}


@router.put("/{item_id}", response_model=ItemOut)
def api_update(item_id: int, payload: ItemUpdate, db: Session = Depends(get_db)):
    item = get_item(db, item_id)
    if not item:
        raise NotFoundError("Item not found")
    return update_item(db, item, payload.model_dump(exclude_none=True))
