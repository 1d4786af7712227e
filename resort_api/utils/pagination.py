"""
Pagination utilities for API responses
"""
from math import ceil
from typing import Any, List, Optional, Tuple

from fastapi import Query
from pydantic import BaseModel, Field
from tortoise.queryset import QuerySet


class PageParams(BaseModel):
    """
    Pagination parameters for API requests (1-indexed pages)
    """
    page: int = Field(1, ge=1, description="Page number")
    limit: int = Field(10, ge=1, le=100, description="Items per page")

    def get_offset(self) -> int:
        """
        Get the offset for SQL LIMIT/OFFSET pagination

        Returns:
            Offset value
        """
        return (self.page - 1) * self.limit


def total_pages(total_items: int, limit: int) -> int:
    """Number of pages needed for total_items; zero when there are no items"""
    return ceil(total_items / limit) if total_items > 0 else 0


async def paginate_queryset(
    queryset: QuerySet,
    page_params: PageParams,
    order_by: str = "-created_at",
    prefetch_related: Optional[List[str]] = None,
) -> Tuple[List[Any], int]:
    """
    Paginate a Tortoise ORM queryset

    Args:
        queryset: Filtered Tortoise ORM queryset
        page_params: Pagination parameters
        order_by: Ordering applied before slicing
        prefetch_related: List of relations to prefetch

    Returns:
        The page of model instances and the total number of matching rows
    """
    total_items = await queryset.count()

    page_query = queryset.order_by(order_by).offset(page_params.get_offset()).limit(page_params.limit)
    if prefetch_related:
        page_query = page_query.prefetch_related(*prefetch_related)

    return await page_query, total_items


def get_page_params(
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(10, ge=1, le=100, description="Items per page"),
) -> PageParams:
    """
    Get pagination parameters from query parameters

    Use this as a FastAPI dependency for endpoints that need pagination
    """
    return PageParams(page=page, limit=limit)
