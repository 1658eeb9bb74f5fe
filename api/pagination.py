"""
Pagination envelope for API responses.

Listing endpoints answer with ``{"meta": {...}, "data": [...]}`` where the
metadata keys are camelCase (``pageSize``, ``totalPages``).
"""

from typing import Generic, List, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from app.models import ResultPage

T = TypeVar("T")


class PageMeta(BaseModel):
    """Pagination metadata of a listing response."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total: int
    page: int
    page_size: int
    total_pages: int


class PaginatedResponse(BaseModel, Generic[T]):
    """Generic paginated response model."""

    meta: PageMeta
    data: List[T]

    @classmethod
    def from_result_page(cls, result: ResultPage) -> "PaginatedResponse":
        """Wrap a query engine result page."""
        return cls(
            meta=PageMeta(
                total=result.total,
                page=result.page,
                page_size=result.page_size,
                total_pages=result.total_pages,
            ),
            data=result.data,
        )
