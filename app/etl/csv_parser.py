"""
CSV parsing for sales exports.

Turns raw delimited text into partial sales record dicts. Parsing never
raises for bad input: malformed rows are skipped and unreadable numbers are
zero-filled.
"""

import re
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterator, List, Optional

import structlog

logger = structlog.get_logger()

HEADER_FIELD_MAP: Dict[str, str] = {
    "Customer ID": "customer_id",
    "Customer Name": "customer_name",
    "Phone Number": "phone_number",
    "Gender": "gender",
    "Age": "age",
    "Customer Region": "customer_region",
    "Customer Type": "customer_type",
    "Product ID": "product_id",
    "Product Name": "product_name",
    "Brand": "brand",
    "Product Category": "product_category",
    "Tags": "tags",
    "Quantity": "quantity",
    "Price per Unit": "price_per_unit",
    "Discount Percentage": "discount_percentage",
    "Total Amount": "total_amount",
    "Final Amount": "final_amount",
    "Date": "date",
    "Payment Method": "payment_method",
    "Order Status": "order_status",
    "Delivery Type": "delivery_type",
    "Store ID": "store_id",
    "Store Location": "store_location",
    "Salesperson ID": "salesperson_id",
    "Employee Name": "employee_name",
}

INTEGER_FIELDS = frozenset({"age", "quantity"})
DECIMAL_FIELDS = frozenset(
    {"price_per_unit", "discount_percentage", "total_amount", "final_amount"}
)
REQUIRED_FIELDS = ("customer_id", "product_id")

_INTEGER_PREFIX = re.compile(r"[+-]?\d+")
_DECIMAL_PREFIX = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def split_csv_line(line: str, delimiter: str = ",") -> List[str]:
    """
    Split one CSV line into trimmed tokens.

    A double quote toggles the quoted state and is dropped; the delimiter
    only separates fields outside quotes.
    """
    values = []
    current = []
    in_quotes = False

    for char in line:
        if char == '"':
            in_quotes = not in_quotes
        elif char == delimiter and not in_quotes:
            values.append("".join(current).strip())
            current = []
        else:
            current.append(char)

    values.append("".join(current).strip())
    return values


def map_header(header: str) -> Optional[str]:
    """Map a CSV header to a record field name, or None if unknown."""
    return HEADER_FIELD_MAP.get(header.strip().strip('"').strip())


def parse_integer(value: str) -> int:
    """Parse the leading integer of ``value``; 0 if there is none."""
    match = _INTEGER_PREFIX.match(value)
    return int(match.group()) if match else 0


def parse_decimal(value: str) -> Decimal:
    """Parse the leading decimal number of ``value``; 0 if there is none."""
    match = _DECIMAL_PREFIX.match(value)
    if not match:
        return Decimal(0)
    try:
        return Decimal(match.group())
    except InvalidOperation:
        return Decimal(0)


def coerce_value(field: str, value: str) -> Any:
    """Coerce a raw cell to the type of ``field``. Empty cells become None."""
    clean = value.strip().strip('"').strip()
    if not clean:
        return None
    if field in INTEGER_FIELDS:
        return parse_integer(clean)
    if field in DECIMAL_FIELDS:
        return parse_decimal(clean)
    # Dates stay as imported; they are interpreted at query time.
    return clean


def iter_sales_rows(text: str, delimiter: str = ",") -> Iterator[Dict[str, Any]]:
    """
    Lazily yield partial sales records from CSV ``text``.

    The first non-blank line is the header. Rows with a different number of
    tokens than the header, and rows without a customer and product id, are
    skipped. Columns missing from the header are absent from the records.
    """
    lines = [line for line in text.lstrip("\ufeff").split("\n") if line.strip()]
    if not lines:
        return

    fields = [map_header(h) for h in split_csv_line(lines[0], delimiter)]
    skipped = 0

    for line in lines[1:]:
        values = split_csv_line(line, delimiter)
        if len(values) != len(fields):
            skipped += 1
            continue

        record = {}
        for field, value in zip(fields, values):
            if field:
                record[field] = coerce_value(field, value)

        if all(record.get(name) for name in REQUIRED_FIELDS):
            yield record
        else:
            skipped += 1

    if skipped:
        logger.debug("Skipped malformed CSV rows", skipped=skipped)


def parse_sales_csv(text: str, delimiter: str = ",") -> List[Dict[str, Any]]:
    """Parse CSV ``text`` into a list of partial sales records."""
    return list(iter_sales_rows(text, delimiter))
