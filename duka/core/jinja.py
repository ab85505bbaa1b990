"""Helper utilities for teaching Jinja2 how to format shop data.

Templates are the presentation layer. This module builds the templates
environment and registers the formatting filters the pages rely on.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from zoneinfo import ZoneInfo

from fastapi.templating import Jinja2Templates

from .config import AppSettings


def _to_dt(value: Any, tz: ZoneInfo | None) -> datetime | None:
    """Convert stored ISO strings into timezone-aware datetimes for display."""

    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str) and value:
        try:
            dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None

    if tz:
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=tz)
        dt = dt.astimezone(tz)
    return dt


def format_money(value: Any, label: str = "KSh") -> str:
    """Whole-shilling amounts with thousands separators, e.g. ``KSh 1,250``."""

    try:
        number = float(value)
    except (TypeError, ValueError):
        return f"{label} 0"
    return f"{label} {number:,.0f}"


def get_templates(settings: AppSettings) -> Jinja2Templates:
    """Create a ``Jinja2Templates`` instance with our standard filters registered."""

    local_tz = ZoneInfo(settings.TZ) if settings.TZ else None
    templates = Jinja2Templates(directory=str(settings.templates_dir))
    env = templates.env

    def fmt_dt(value: Any, fmt: str = "%Y-%m-%d %H:%M") -> str:
        dt = _to_dt(value, local_tz)
        return dt.strftime(fmt) if dt else ""

    def fmt_money(value: Any) -> str:
        return format_money(value, settings.CURRENCY_LABEL)

    env.filters["fmt_dt"] = fmt_dt
    env.filters["fmt_money"] = fmt_money
    env.globals["app_name"] = settings.APP_NAME
    env.globals["currency_label"] = settings.CURRENCY_LABEL
    return templates
