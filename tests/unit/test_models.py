"""
Tests for the sales data models.
"""
from decimal import Decimal

import pytest
from pydantic import ValidationError

from app.models import FilterCriteria, FilterOptions, SalesBatch, SalesRecord
from app.models.retail_sales import split_tags


def test_valid_record():
    record = SalesRecord(
        customer_id=" C001 ",
        product_id="P001",
        quantity=2,
        price_per_unit="12.50",
        tags="a, b",
    )

    assert record.customer_id == "C001"
    assert record.price_per_unit == Decimal("12.50")
    assert record.tags == ["a", "b"]


def test_identifiers_are_required():
    with pytest.raises(ValidationError):
        SalesRecord(customer_id="C001")

    with pytest.raises(ValidationError):
        SalesRecord(customer_id="   ", product_id="P001")


def test_blank_text_becomes_none():
    record = SalesRecord(customer_id="C1", product_id="P1", gender="  ", brand="")

    assert record.gender is None
    assert record.brand is None


def test_amounts_serialise_as_numbers():
    record = SalesRecord(customer_id="C1", product_id="P1", final_amount=Decimal("26.97"))

    assert record.model_dump(mode="json")["final_amount"] == 26.97
    assert record.model_dump()["final_amount"] == Decimal("26.97")


def test_unknown_fields_are_ignored():
    record = SalesRecord(customer_id="C1", product_id="P1", loyalty_tier="Gold")

    assert not hasattr(record, "loyalty_tier")


@pytest.mark.parametrize(
    "value, expected",
    [
        (None, []),
        ("", []),
        ("a,b", ["a", "b"]),
        (" a , ,b,a ", ["a", "b"]),
        (["x", " y "], ["x", "y"]),
    ],
)
def test_split_tags(value, expected):
    assert split_tags(value) == expected


def test_has_all_tags():
    record = SalesRecord(customer_id="C1", product_id="P1", tags="a,b,c")

    assert record.has_all_tags(["a", "c"])
    assert record.has_all_tags([])
    assert not record.has_all_tags(["a", "d"])


def test_empty_batch_is_invalid():
    with pytest.raises(ValidationError, match="Records list cannot be empty"):
        SalesBatch(records=[])


def test_batch_unique_customers():
    batch = SalesBatch(
        records=[
            {"customer_id": "C1", "product_id": "P1"},
            {"customer_id": "C1", "product_id": "P2"},
            {"customer_id": "C2", "product_id": "P1"},
        ]
    )

    assert batch.unique_customers() == {"C1", "C2"}


def test_filter_criteria_defaults():
    criteria = FilterCriteria()

    assert criteria.page == 1
    assert criteria.page_size == 10
    assert not criteria.has_age_range
    assert not criteria.has_date_range


def test_filter_criteria_is_immutable():
    criteria = FilterCriteria()

    with pytest.raises(ValidationError):
        criteria.page = 2


def test_filter_options_accept_field_names():
    options = FilterOptions(customer_regions=["North"])

    assert options.model_dump(by_alias=True)["customerRegions"] == ["North"]
    assert not options.is_empty
