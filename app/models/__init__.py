"""
Data models for the retail sales browser.
"""

from .query import (
    AgeRange,
    DateRange,
    FilterCriteria,
    FilterOptions,
    ResultPage,
    SortDirection,
    SortField,
)
from .retail_sales import SalesBatch, SalesRecord

__all__ = [
    "SalesRecord",
    "SalesBatch",
    "FilterCriteria",
    "FilterOptions",
    "ResultPage",
    "SortField",
    "SortDirection",
    "AgeRange",
    "DateRange",
]
