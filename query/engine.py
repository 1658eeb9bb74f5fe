"""
Sales query engine.

Applies free-text search, set filters, the tag filter, age and date ranges,
sorting and pagination to a snapshot of the sales store. Every stage is a pure
filter or reordering; the stored records are never modified.
"""

from math import ceil
from typing import Callable, List, Optional, Sequence

import structlog

from app.models import (
    FilterCriteria,
    ResultPage,
    SalesRecord,
    SortDirection,
    SortField,
)
from app.store import SalesStore

from .dates import FAR_FUTURE, FAR_PAST, parse_date_bound, parse_sale_date

logger = structlog.get_logger()

DEFAULT_AGE_MIN = 0
DEFAULT_AGE_MAX = 200

# (criteria attribute, record attribute) for the OR-within-set filters
SET_FILTERS = (
    ("regions", "customer_region"),
    ("genders", "gender"),
    ("categories", "product_category"),
    ("payment_methods", "payment_method"),
)


def matches_search(record: SalesRecord, term: str) -> bool:
    """Case-insensitive substring match on customer name or phone number."""
    needle = term.lower()
    name = (record.customer_name or "").lower()
    phone = (record.phone_number or "").lower()
    return needle in name or needle in phone


def filter_records(
    records: Sequence[SalesRecord], criteria: FilterCriteria
) -> List[SalesRecord]:
    """Return the records admitted by every filter in ``criteria``."""
    items = list(records)

    term = (criteria.search or "").strip()
    if term:
        items = [r for r in items if matches_search(r, term)]

    for criteria_attr, record_attr in SET_FILTERS:
        allowed = set(getattr(criteria, criteria_attr))
        if allowed:
            items = [r for r in items if getattr(r, record_attr) in allowed]

    if criteria.tags:
        items = [r for r in items if r.has_all_tags(criteria.tags)]

    if criteria.has_age_range:
        low = criteria.age_min if criteria.age_min is not None else DEFAULT_AGE_MIN
        high = criteria.age_max if criteria.age_max is not None else DEFAULT_AGE_MAX
        items = [r for r in items if low <= (r.age or 0) <= high]

    if criteria.has_date_range:
        start = parse_date_bound(criteria.date_from, FAR_PAST)
        end = parse_date_bound(criteria.date_to, FAR_FUTURE)
        kept = []
        for record in items:
            sold_on = parse_sale_date(record.date)
            if sold_on is not None and start <= sold_on <= end:
                kept.append(record)
        items = kept

    return items


def _date_key(record: SalesRecord):
    sold_on = parse_sale_date(record.date)
    # Unparseable dates sort below every real date.
    return (0, FAR_PAST) if sold_on is None else (1, sold_on)


SORT_KEYS = {
    SortField.DATE: _date_key,
    SortField.QUANTITY: lambda record: record.quantity or 0,
    SortField.CUSTOMER_NAME: lambda record: (record.customer_name or "").lower(),
}


def sort_records(
    records: Sequence[SalesRecord],
    sort_by: Optional[SortField],
    direction: SortDirection = SortDirection.DESC,
) -> List[SalesRecord]:
    """Stable sort by one of the supported fields; input order otherwise."""
    key: Optional[Callable] = SORT_KEYS.get(sort_by) if sort_by else None
    if key is None:
        return list(records)
    return sorted(records, key=key, reverse=direction != SortDirection.ASC)


def total_page_count(total: int, page_size: int) -> int:
    """Number of pages for ``total`` items; never less than one."""
    return max(1, ceil(total / page_size))


def paginate(records: Sequence[SalesRecord], page: int, page_size: int) -> ResultPage:
    """Slice one page out of ``records``; pages past the end are empty."""
    page = max(1, page)
    page_size = max(1, page_size)
    start = (page - 1) * page_size

    return ResultPage(
        data=list(records[start:start + page_size]),
        total=len(records),
        page=page,
        page_size=page_size,
        total_pages=total_page_count(len(records), page_size),
    )


def query_sales(records: Sequence[SalesRecord], criteria: FilterCriteria) -> ResultPage:
    """Run the full search / filter / sort / paginate pipeline over ``records``."""
    matched = filter_records(records, criteria)
    ordered = sort_records(matched, criteria.sort_by, criteria.sort_dir)
    return paginate(ordered, criteria.page, criteria.page_size)


class SalesQueryEngine:
    """Answers sales listing queries against a store."""

    def __init__(self, store: SalesStore):
        self.store = store

    def query(self, criteria: FilterCriteria) -> ResultPage:
        records = self.store.all()
        result = query_sales(records, criteria)

        logger.info(
            "Sales query completed",
            scanned=len(records),
            total=result.total,
            page=result.page,
            page_size=result.page_size,
            sort_by=criteria.sort_by.value if criteria.sort_by else None,
        )
        return result
