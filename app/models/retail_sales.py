"""
Pydantic models for retail sales data contract.

This module defines the data contract for imported sales transactions. A
record mirrors one row of the sales CSV export; only the customer and product
identifiers are mandatory, every other column may be missing from the file
and is then simply absent (``None``).
"""

from datetime import datetime
from decimal import Decimal
from typing import Annotated, List, Optional

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer, field_validator

# Amounts are exact decimals in Python and plain numbers on the wire.
Amount = Annotated[
    Decimal, PlainSerializer(float, return_type=float, when_used="json")
]

OPTIONAL_TEXT_FIELDS = (
    "store_id",
    "salesperson_id",
    "customer_name",
    "phone_number",
    "gender",
    "customer_region",
    "customer_type",
    "product_name",
    "brand",
    "product_category",
    "date",
    "payment_method",
    "order_status",
    "delivery_type",
    "store_location",
    "employee_name",
)


def split_tags(value) -> List[str]:
    """Normalise a tag value (comma-joined string or sequence) into a list."""
    if value is None:
        return []
    if isinstance(value, str):
        pieces = value.split(",")
    else:
        pieces = [str(item) for item in value]

    tags = []
    for piece in pieces:
        tag = piece.strip()
        if tag and tag not in tags:
            tags.append(tag)
    return tags


class SalesRecord(BaseModel):
    """
    Data contract for a single sales transaction.

    ``final_amount`` is expected to equal ``total_amount`` net of
    ``discount_percentage`` but is taken as imported and never recomputed.
    """

    model_config = ConfigDict(
        str_strip_whitespace=True,
        validate_assignment=True,
        extra="ignore",
    )

    id: Optional[str] = None

    # Identifiers
    customer_id: str = Field(min_length=1)
    product_id: str = Field(min_length=1)
    store_id: Optional[str] = None
    salesperson_id: Optional[str] = None

    # Customer
    customer_name: Optional[str] = None
    phone_number: Optional[str] = None
    gender: Optional[str] = None
    age: Optional[int] = None
    customer_region: Optional[str] = None
    customer_type: Optional[str] = None

    # Product
    product_name: Optional[str] = None
    brand: Optional[str] = None
    product_category: Optional[str] = None
    tags: List[str] = Field(default_factory=list)

    # Amounts
    quantity: Optional[int] = None
    price_per_unit: Optional[Amount] = None
    discount_percentage: Optional[Amount] = None
    total_amount: Optional[Amount] = None
    final_amount: Optional[Amount] = None

    # Order
    date: Optional[str] = None
    payment_method: Optional[str] = None
    order_status: Optional[str] = None
    delivery_type: Optional[str] = None
    store_location: Optional[str] = None
    employee_name: Optional[str] = None

    created_at: Optional[datetime] = None

    @field_validator(*OPTIONAL_TEXT_FIELDS, mode="before")
    @classmethod
    def blank_to_none(cls, v):
        """Treat empty cells as absent values."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("tags", mode="before")
    @classmethod
    def parse_tags(cls, v):
        """Accept the comma-joined tag column as well as a list."""
        return split_tags(v)

    def has_all_tags(self, tags) -> bool:
        """Check that every requested tag is present on this record."""
        return all(tag in self.tags for tag in tags)


class SalesBatch(BaseModel):
    """
    A batch of sales records submitted for import.

    Large imports are chunked by the caller, so a batch is bounded in size
    but is always accepted or rejected as a whole.
    """

    model_config = ConfigDict(extra="forbid")

    records: List[SalesRecord]
    batch_id: Optional[str] = None

    @field_validator("records")
    @classmethod
    def validate_records_not_empty(cls, v):
        """Validate that records list is not empty."""
        if not v:
            raise ValueError("Records list cannot be empty")
        return v

    def unique_customers(self) -> set:
        return {record.customer_id for record in self.records}
