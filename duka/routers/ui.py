"""Server-rendered pages: the stock dashboard and the audit/sell page.

Pages render the current rows with Jinja; adding items and selling go through
the JSON API from ``static/script.js`` so failures surface as notifications
without reloading the page.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse
from sqlalchemy.orm import Session

from ..crud.catalog import list_categories, list_items
from ..crud.sales import list_sales
from ..db.session import get_db

router = APIRouter(include_in_schema=False)


@router.get("/", response_class=HTMLResponse)
def index_page(request: Request, db: Session = Depends(get_db)):
    items = list_items(db)
    stats = {
        "items_total": len(items),
        "units_total": sum(item.total_units or 0 for item in items),
        "weak_total": sum(1 for item in items if item.health_status == "weak"),
        "stock_value": sum((item.total_units or 0) * (item.unit_price or 0) for item in items),
    }
    context = {
        "request": request,
        "items": items,
        "categories": list_categories(db),
        "stats": stats,
    }
    return request.app.state.templates.TemplateResponse(request, "index.html", context)


@router.get("/audit", response_class=HTMLResponse)
def audit_page(request: Request, db: Session = Depends(get_db)):
    context = {
        "request": request,
        "items": list_items(db),
        "recent_sales": list_sales(db, limit=20),
    }
    return request.app.state.templates.TemplateResponse(request, "audit.html", context)
