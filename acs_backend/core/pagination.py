"""Paging helpers for list endpoints."""

from __future__ import annotations

import os
from typing import Any, Optional

from pydantic import BaseModel
from sqlalchemy.orm import Query


DEFAULT_PAGE_SIZE = 50
DEFAULT_MAX_PAGE_SIZE = 200


def get_max_page_size() -> int:
    raw = os.getenv("API_MAX_PAGE_SIZE", str(DEFAULT_MAX_PAGE_SIZE))
    try:
        val = int(raw)
    except ValueError:
        val = DEFAULT_MAX_PAGE_SIZE
    if val < 1:
        return DEFAULT_MAX_PAGE_SIZE
    return val


def clamp_page_size(page_size: int) -> int:
    max_size = get_max_page_size()
    if page_size < 1:
        return 1
    return min(page_size, max_size)


def clamp_page(page: int) -> int:
    return page if page >= 1 else 1


class Page(BaseModel):
    items: list[Any]
    total: int
    page: int
    page_size: int


def paginate(query: Query, page: int, page_size: int, *, schema: Optional[type[BaseModel]] = None) -> Page:
    """Run ``query`` for one page; items are converted with ``schema`` when given."""
    page = clamp_page(page)
    page_size = clamp_page_size(page_size)
    total = query.order_by(None).count()
    rows = query.offset((page - 1) * page_size).limit(page_size).all()
    items = [schema.model_validate(row) for row in rows] if schema is not None else rows
    return Page(items=items, total=total, page=page, page_size=page_size)
