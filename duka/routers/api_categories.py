from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..core.errors import NotFoundError
from ..crud.catalog import create_category, delete_category, get_category, list_categories
from ..db.session import get_db
from ..schemas.catalog import CategoryCreate, CategoryOut

router = APIRouter(prefix="/api/categories", tags=["categories"])


@router.get("", response_model=list[CategoryOut])
def api_list(db: Session = Depends(get_db)):
    return list_categories(db)


@router.post("", response_model=CategoryOut, status_code=201)
def api_create(payload: CategoryCreate, db: Session = Depends(get_db)):
    return create_category(db, payload.name)


@router.delete("/{category_id}")
def api_delete(category_id: int, db: Session = Depends(get_db)):
    category = get_category(db, category_id)
    if not category:
        raise NotFoundError("Category not found")
    delete_category(db, category)
    return {"status": "deleted"}
