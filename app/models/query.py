"""
Models describing a sales query and its results.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .retail_sales import SalesRecord

DEFAULT_PAGE_SIZE = 10


class SortField(str, Enum):
    """Fields the sales listing can be ordered by."""

    DATE = "date"
    QUANTITY = "quantity"
    CUSTOMER_NAME = "customer_name"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


class FilterCriteria(BaseModel):
    """
    Search, filter, sort and page request for the sales listing.

    Set filters (regions, genders, categories, payment methods) admit a
    record whose value is any member of the set. The tag filter admits a
    record only when it carries every requested tag.
    """

    model_config = ConfigDict(frozen=True)

    search: Optional[str] = None
    regions: List[str] = Field(default_factory=list)
    genders: List[str] = Field(default_factory=list)
    categories: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    payment_methods: List[str] = Field(default_factory=list)
    age_min: Optional[float] = None
    age_max: Optional[float] = None
    date_from: Optional[str] = None
    date_to: Optional[str] = None
    sort_by: Optional[SortField] = SortField.DATE
    sort_dir: SortDirection = SortDirection.DESC
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE

    @property
    def has_age_range(self) -> bool:
        return self.age_min is not None or self.age_max is not None

    @property
    def has_date_range(self) -> bool:
        return bool(self.date_from) or bool(self.date_to)


class ResultPage(BaseModel):
    """One page of matching records plus pagination metadata."""

    data: List[SalesRecord]
    total: int
    page: int
    page_size: int
    total_pages: int


class AgeRange(BaseModel):
    min: int
    max: int


class DateRange(BaseModel):
    start: str
    end: str


class FilterOptions(BaseModel):
    """Distinct values available to each filter control."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    customer_regions: List[str] = Field(default_factory=list)
    genders: List[str] = Field(default_factory=list)
    product_categories: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    payment_methods: List[str] = Field(default_factory=list)
    age_range: Optional[AgeRange] = None
    date_range: Optional[DateRange] = None

    @property
    def is_empty(self) -> bool:
        return not (
            self.customer_regions
            or self.genders
            or self.product_categories
            or self.tags
            or self.payment_methods
        )
