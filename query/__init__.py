"""Query module for searching, filtering and paging sales records."""

from .dates import parse_sale_date
from .engine import SalesQueryEngine, query_sales
from .filter_options import FilterOptionsAggregator, collect_filter_options

__all__ = [
    "SalesQueryEngine",
    "query_sales",
    "FilterOptionsAggregator",
    "collect_filter_options",
    "parse_sale_date",
]

__version__ = "0.1.0"
