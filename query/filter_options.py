"""
Distinct values for the sales filter controls.
"""

from typing import Iterable, List, Optional, Sequence

import structlog

from app.models import AgeRange, DateRange, FilterOptions, SalesRecord
from app.store import SalesStore

from .dates import parse_sale_date

logger = structlog.get_logger()


def distinct_sorted(values: Iterable[Optional[str]]) -> List[str]:
    """Sorted distinct values with nulls and blanks removed."""
    return sorted({value for value in values if value})


def collect_filter_options(records: Sequence[SalesRecord]) -> FilterOptions:
    """Scan ``records`` for the values each filter control can offer."""
    ages = [record.age for record in records if record.age is not None]
    dates = [d for d in (parse_sale_date(record.date) for record in records) if d]

    return FilterOptions(
        customer_regions=distinct_sorted(r.customer_region for r in records),
        genders=distinct_sorted(r.gender for r in records),
        product_categories=distinct_sorted(r.product_category for r in records),
        tags=distinct_sorted(tag for r in records for tag in r.tags),
        payment_methods=distinct_sorted(r.payment_method for r in records),
        age_range=AgeRange(min=min(ages), max=max(ages)) if ages else None,
        date_range=(
            DateRange(start=min(dates).isoformat(), end=max(dates).isoformat())
            if dates
            else None
        ),
    )


class FilterOptionsAggregator:
    """Derives filter options from the records currently in a store."""

    def __init__(self, store: SalesStore):
        self.store = store

    def collect(self) -> FilterOptions:
        options = collect_filter_options(self.store.all())
        if options.is_empty:
            logger.info("No sales data available for filter options")
        return options
