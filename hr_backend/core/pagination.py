"""Pagination helpers with hard caps."""

from __future__ import annotations

import os
from typing import Optional

from fastapi import Response


DEFAULT_PAGE_SIZE = 50
DEFAULT_MAX_PAGE_SIZE = 200


def get_max_page_size() -> int:
    raw = os.getenv("API_MAX_PAGE_SIZE", str(DEFAULT_MAX_PAGE_SIZE))
    try:
        val = int(raw)
    except Exception:
        val = DEFAULT_MAX_PAGE_SIZE
    return val if val >= 1 else DEFAULT_MAX_PAGE_SIZE


def clamp_page_size(page_size: int) -> int:
    return max(1, min(page_size, get_max_page_size()))


def paginate(query, *, page: int, page_size: int) -> tuple[list, int]:
    """Return one page of `query` results and the unpaged row count."""
    page_size = clamp_page_size(page_size)
    total = query.order_by(None).count()
    items = query.offset((max(page, 1) - 1) * page_size).limit(page_size).all()
    return items, total


def set_pagination_headers(
    response: Optional[Response],
    *,
    total: Optional[int],
    page: int,
    page_size: int,
) -> None:
    if not response:
        return
    if total is not None:
        response.headers["X-Total-Count"] = str(total)
    response.headers["X-Page"] = str(page)
    response.headers["X-Page-Size"] = str(clamp_page_size(page_size))
