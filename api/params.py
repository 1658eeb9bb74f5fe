"""
Decoding of sales listing query parameters.

The listing endpoint takes flat, loosely typed query parameters. They are
turned into a ``FilterCriteria`` here so the query engine only ever sees
typed values. Malformed numbers fall back to their defaults instead of
failing the request.
"""

import math
import re
from typing import Iterable, List, Optional

from fastapi import Request
from starlette.datastructures import QueryParams

from api.config import settings
from app.models import FilterCriteria, SortDirection, SortField
from app.models.query import DEFAULT_PAGE_SIZE

SEARCH_KEYS = ("q", "search")
REGION_KEYS = ("regions", "region")
GENDER_KEYS = ("gender", "genders")
CATEGORY_KEYS = ("category", "categories")
TAG_KEYS = ("tags", "tag")
PAYMENT_KEYS = ("payment", "paymentMethod", "paymentMethods")

_SORT_FIELDS = {
    "date": SortField.DATE,
    "quantity": SortField.QUANTITY,
    "customername": SortField.CUSTOMER_NAME,
}
_SORT_KEY_NOISE = re.compile(r"[\s_-]")


def split_multi_value(values: Iterable[str]) -> List[str]:
    """Flatten repeated and comma-joined values, dropping blanks and repeats."""
    result: List[str] = []
    for raw in values:
        for piece in raw.split(","):
            value = piece.strip()
            if value and value not in result:
                result.append(value)
    return result


def _get_list(params: QueryParams, keys: Iterable[str]) -> List[str]:
    return split_multi_value(value for key in keys for value in params.getlist(key))


def _get_first(params: QueryParams, keys: Iterable[str]) -> Optional[str]:
    for key in keys:
        value = params.get(key)
        if value is not None and value.strip():
            return value.strip()
    return None


def parse_number(value: Optional[str]) -> Optional[float]:
    """Parse a finite number, or None when missing or malformed."""
    if value is None:
        return None
    try:
        number = float(value.strip())
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def parse_int(value: Optional[str], default: int) -> int:
    """Parse an integer parameter; missing, malformed or zero gives ``default``."""
    number = parse_number(value)
    if number is None or int(number) == 0:
        return default
    return int(number)


def parse_sort_field(value: Optional[str]) -> Optional[SortField]:
    """
    Map a ``sortBy`` value to a sort field.

    Missing means the default date sort; an unrecognised field means no
    sorting at all, leaving the records in store order.
    """
    if value is None or not value.strip():
        return SortField.DATE
    return _SORT_FIELDS.get(_SORT_KEY_NOISE.sub("", value).lower())


def parse_sort_direction(value: Optional[str]) -> SortDirection:
    if value is not None and value.strip().lower() == "asc":
        return SortDirection.ASC
    return SortDirection.DESC


def criteria_from_params(
    params: QueryParams, default_page_size: int = DEFAULT_PAGE_SIZE
) -> FilterCriteria:
    """Decode flat query parameters into filter criteria."""
    return FilterCriteria(
        search=_get_first(params, SEARCH_KEYS),
        regions=_get_list(params, REGION_KEYS),
        genders=_get_list(params, GENDER_KEYS),
        categories=_get_list(params, CATEGORY_KEYS),
        tags=_get_list(params, TAG_KEYS),
        payment_methods=_get_list(params, PAYMENT_KEYS),
        age_min=parse_number(params.get("ageMin")),
        age_max=parse_number(params.get("ageMax")),
        date_from=_get_first(params, ("dateFrom",)),
        date_to=_get_first(params, ("dateTo",)),
        sort_by=parse_sort_field(params.get("sortBy")),
        sort_dir=parse_sort_direction(params.get("sortDir")),
        page=parse_int(params.get("page"), 1),
        page_size=parse_int(params.get("pageSize"), default_page_size),
    )


def filter_criteria_params(request: Request) -> FilterCriteria:
    """FastAPI dependency decoding the listing query string."""
    return criteria_from_params(request.query_params, settings.default_page_size)
