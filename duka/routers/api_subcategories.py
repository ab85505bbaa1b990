from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..core.errors import NotFoundError
from ..crud.catalog import create_subcategory, delete_subcategory, get_subcategory, list_subcategories
from ..db.session import get_db
from ..schemas.catalog import SubcategoryCreate, SubcategoryOut

router = APIRouter(prefix="/api/subcategories", tags=["subcategories"])


@router.get("", response_model=list[SubcategoryOut])
def api_list(category_id: Optional[int] = Query(default=None, gt=0), db: Session = Depends(get_db)):
    return list_subcategories(db, category_id=category_id)


@router.get("/{subcategory_id}", response_model=SubcategoryOut)
def api_get(subcategory_id: int, db: Session = Depends(get_db)):
    subcategory = get_subcategory(db, subcategory_id)
    if not subcategory:
        raise NotFoundError("Subcategory not found")
    return subcategory


@router.post("", response_model=SubcategoryOut, status_code=201)
def api_create(payload: SubcategoryCreate, db: Session = Depends(get_db)):
    return create_subcategory(db, payload.category_id, payload.name)


@router.delete("/{subcategory_id}")
def api_delete(subcategory_id: int, db: Session = Depends(get_db)):
    subcategory = get_subcategory(db, subcategory_id)
    if not subcategory:
        raise NotFoundError("Subcategory not found")
    delete_subcategory(db, subcategory)
    return {"status": "deleted"}
