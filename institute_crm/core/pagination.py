"""
Pagination utilities.
Every list action answers with the same envelope plus a pagination block.
"""
from typing import TypeVar, List

from sqlmodel import select, func
from sqlmodel.ext.asyncio.session import AsyncSession

T = TypeVar("T")


def create_pagination(total: int, page: int, limit: int) -> dict:
    """Pagination metadata for a page of results."""
    pages = (total + limit - 1) // limit if limit > 0 else 0
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "pages": pages,
    }


def create_paginated_response(
    items: List[T],
    total: int,
    page: int,
    limit: int,
    message: str = "Fetched successfully"
) -> dict:
    """
    Create a paginated action response.

    Args:
        items: List of items for current page
        total: Total count of all items
        page: Current page number
        limit: Items per page
        message: Human-readable status message

    Returns:
        Dictionary in the action response shape with pagination metadata
    """
    return {
        "success": True,
        "data": items,
        "message": message,
        "pagination": create_pagination(total, page, limit),
    }


async def paginate_query(
    session: AsyncSession,
    query,
    page: int = 1,
    limit: int = 20
) -> tuple:
    """
    Execute a paginated query.

    Args:
        session: Database session
        query: SQLModel select query, already ordered
        page: Page number (1-indexed)
        limit: Items per page

    Returns:
        (items, total) tuple
    """
    # Get total count
    count_query = select(func.count()).select_from(query.order_by(None).subquery())
    total_result = await session.exec(count_query)
    total = total_result.one()

    # Apply pagination
    offset = (page - 1) * limit
    paginated_query = query.offset(offset).limit(limit)

    # Execute query
    result = await session.exec(paginated_query)
    items = list(result.all())

    return items, total
