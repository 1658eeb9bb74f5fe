"""Pytest configuration and fixtures."""

import pytest
from fastapi.testclient import TestClient

from app.models import SalesRecord
from app.store import InMemorySalesStore

SAMPLE_CSV = """Customer ID,Customer Name,Phone Number,Gender,Age,Customer Region,Product ID,Product Category,Tags,Quantity,Price per Unit,Discount Percentage,Total Amount,Final Amount,Date,Payment Method
C001,Jane Doe,5550101,Female,35,North,P001,Electronics,"wireless,portable",3,9.99,10,29.97,26.97,15/03/2024,Card
C002,John Smith,5550102,Male,25,South,P002,Clothing,casual,1,20.00,0,20.00,20.00,2024-01-10,Cash
C003,Ann Lee,5550103,Female,45,North,P003,Electronics,"wireless,smart",5,99.50,5,497.50,472.63,01/02/2024,Card
"""


def make_record(**fields) -> SalesRecord:
    """Build a sales record with sensible identifiers."""
    fields.setdefault("customer_id", "C000")
    fields.setdefault("product_id", "P000")
    return SalesRecord(**fields)


@pytest.fixture
def sample_records():
    """Provide a small, varied set of sales records."""
    return [
        make_record(
            customer_id="C001",
            product_id="P001",
            customer_name="Jane Doe",
            phone_number="555-0101",
            gender="Female",
            age=35,
            customer_region="North",
            product_category="Electronics",
            tags="wireless,portable",
            quantity=5,
            date="15/03/2024",
            payment_method="Card",
        ),
        make_record(
            customer_id="C002",
            product_id="P002",
            customer_name="john smith",
            phone_number="555-0102",
            gender="Male",
            age=25,
            customer_region="South",
            product_category="Clothing",
            tags="casual",
            quantity=1,
            date="2024-01-10",
            payment_method="Cash",
        ),
        make_record(
            customer_id="C003",
            product_id="P003",
            customer_name="Ann Lee",
            phone_number="555-0199",
            gender="Female",
            age=45,
            customer_region="East",
            product_category="Electronics",
            tags="wireless, smart",
            quantity=3,
            date="01/02/2024",
            payment_method="UPI",
        ),
        make_record(
            customer_id="C004",
            product_id="P004",
            customer_name="Bob Stone",
            phone_number="555-0104",
            gender=None,
            age=None,
            customer_region=None,
            product_category="Home",
            tags=None,
            quantity=None,
            date="not a date",
            payment_method=None,
        ),
    ]


@pytest.fixture
def store(sample_records):
    """In-memory store seeded with the sample records."""
    return InMemorySalesStore(sample_records)


@pytest.fixture
def empty_store():
    return InMemorySalesStore()


@pytest.fixture
def sample_csv():
    return SAMPLE_CSV


@pytest.fixture
def client(store):
    """API test client bound to the seeded store."""
    from api.main import app

    app.state.store = store
    yield TestClient(app)
    del app.state.store
