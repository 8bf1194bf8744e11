"""Offset pagination over SQLAlchemy queries."""
import math

from sqlalchemy.orm import Query


def paginate(query: Query, page: int, per_page: int) -> tuple[list, int, int]:
    """Return ``(items, total, total_pages)`` for a 1-based page."""
    total = query.order_by(None).count()
    items = query.offset((page - 1) * per_page).limit(per_page).all()
    total_pages = math.ceil(total / per_page) if per_page else 0
    return items, total, total_pages
