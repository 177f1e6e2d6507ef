"""Offset pagination for list endpoints."""
import math
from collections import namedtuple

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100

Page = namedtuple('Page', ['items', 'total_pages'])


def _as_int(value, default):
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def clamp_page(page, limit, max_limit=MAX_PAGE_SIZE):
    """Normalize page/limit from a query string: both at least 1, limit capped."""
    page = max(_as_int(page, 1), 1)
    limit = max(_as_int(limit, DEFAULT_PAGE_SIZE), 1)
    return page, min(limit, max_limit)


def paginate(query, page, limit, max_limit=MAX_PAGE_SIZE) -> Page:
    """Run an ordered query for one page; total_pages is ceil(count / limit)."""
    page, limit = clamp_page(page, limit, max_limit)
    total = query.order_by(None).count()
    items = query.offset((page - 1) * limit).limit(limit).all()
    return Page(items, math.ceil(total / limit))
