"""
Tests for the sales API endpoints.
"""
import inspect

import pytest
from fastapi.testclient import TestClient

from api.main import (
    app,
    get_filter_options_aggregator,
    get_query_engine,
    get_store,
    import_sales,
    upload_sales_csv,
)
from app.etl.importer import NO_RECORDS_MESSAGE
from app.store import JsonFileSalesStore


class BrokenEngine:
    def query(self, criteria):
        raise RuntimeError("boom")

    def collect(self):
        raise RuntimeError("boom")


@pytest.fixture
def override():
    """Install dependency overrides for a single test."""
    yield app.dependency_overrides
    app.dependency_overrides.clear()


def customer_ids(response):
    return [row["customer_id"] for row in response.json()["data"]]


class TestListSales:
    def test_default_listing(self, client):
        response = client.get("/api/sales")

        assert response.status_code == 200
        body = response.json()
        assert body["meta"] == {"total": 4, "page": 1, "pageSize": 10, "totalPages": 1}
        assert customer_ids(response) == ["C001", "C003", "C002", "C004"]

    def test_record_shape(self, client):
        row = client.get("/api/sales?q=jane").json()["data"][0]

        assert row["customer_name"] == "Jane Doe"
        assert row["tags"] == ["wireless", "portable"]
        assert row["date"] == "15/03/2024"
        assert row["id"]

    def test_search(self, client):
        assert customer_ids(client.get("/api/sales?q=JOHN")) == ["C002"]
        assert customer_ids(client.get("/api/sales?search=0199")) == ["C003"]

    def test_comma_and_repeated_values_are_equivalent(self, client):
        joined = client.get("/api/sales?regions=North,East")
        repeated = client.get("/api/sales?regions=North&regions=East")

        assert customer_ids(joined) == customer_ids(repeated) == ["C001", "C003"]

    def test_tag_filter_requires_every_tag(self, client):
        assert customer_ids(client.get("/api/sales?tags=wireless,smart")) == ["C003"]
        assert customer_ids(client.get("/api/sales?tags=wireless")) == ["C001", "C003"]

    def test_payment_and_gender_filters(self, client):
        response = client.get("/api/sales?gender=Female&payment=UPI,Cash")

        assert customer_ids(response) == ["C003"]

    def test_age_range(self, client):
        assert customer_ids(client.get("/api/sales?ageMin=30&ageMax=40")) == ["C001"]

    def test_malformed_age_is_ignored(self, client):
        response = client.get("/api/sales?ageMin=abc")

        assert response.status_code == 200
        assert response.json()["meta"]["total"] == 4

    def test_date_range(self, client):
        response = client.get("/api/sales?dateFrom=2024-02-01&dateTo=2024-12-31")

        assert customer_ids(response) == ["C001", "C003"]

    def test_sort_by_quantity_ascending(self, client):
        response = client.get("/api/sales?sortBy=Quantity&sortDir=asc")

        assert [row["quantity"] for row in response.json()["data"]] == [None, 1, 3, 5]

    def test_sort_by_customer_name(self, client):
        response = client.get("/api/sales?sortBy=customerName&sortDir=asc")

        assert customer_ids(response) == ["C003", "C004", "C001", "C002"]

    def test_unknown_sort_keeps_store_order(self, client):
        response = client.get("/api/sales?sortBy=price")

        assert customer_ids(response) == ["C001", "C002", "C003", "C004"]

    def test_pagination(self, client):
        body = client.get("/api/sales?page=2&pageSize=3").json()

        assert body["meta"] == {"total": 4, "page": 2, "pageSize": 3, "totalPages": 2}
        assert len(body["data"]) == 1

    def test_malformed_page_uses_defaults(self, client):
        meta = client.get("/api/sales?page=x&pageSize=0").json()["meta"]

        assert meta["page"] == 1
        assert meta["pageSize"] == 10

    def test_page_past_the_end(self, client):
        body = client.get("/api/sales?page=5").json()

        assert body["data"] == []
        assert body["meta"]["total"] == 4

    def test_listing_is_not_cached(self, client):
        response = client.get("/api/sales")

        assert response.headers["Cache-Control"] == "no-store"
        assert "X-Request-ID" in response.headers

    def test_engine_failure_returns_server_error(self, client, override):
        override[get_query_engine] = BrokenEngine

        response = client.get("/api/sales")

        assert response.status_code == 500
        assert response.json() == {"error": "Server error"}


class TestFilterOptions:
    def test_filter_options(self, client):
        body = client.get("/api/sales/filter-options").json()

        assert body["customerRegions"] == ["East", "North", "South"]
        assert body["genders"] == ["Female", "Male"]
        assert body["productCategories"] == ["Clothing", "Electronics", "Home"]
        assert body["tags"] == ["casual", "portable", "smart", "wireless"]
        assert body["paymentMethods"] == ["Card", "Cash", "UPI"]
        assert body["ageRange"] == {"min": 25, "max": 45}
        assert body["dateRange"] == {"start": "2024-01-10", "end": "2024-03-15"}

    def test_aggregator_failure_returns_server_error(self, client, override):
        override[get_filter_options_aggregator] = BrokenEngine

        response = client.get("/api/sales/filter-options")

        assert response.status_code == 500
        assert response.json() == {"error": "Server error"}


class TestImport:
    def test_import_batch(self, client, store):
        payload = {
            "batch_id": "b-1",
            "records": [
                {"customer_id": "C100", "product_id": "P100", "price_per_unit": "9.99"},
                {"customer_id": "C101", "product_id": "P101", "tags": "new,promo"},
            ],
        }

        response = client.post("/api/sales/import", json=payload)

        assert response.status_code == 200
        assert response.json() == {"imported": 2, "total_records": 6, "batch_id": "b-1"}
        assert store.count() == 6

        listed = client.get("/api/sales?q=&sortBy=none").json()["data"]
        assert listed[4]["price_per_unit"] == 9.99
        assert listed[5]["tags"] == ["new", "promo"]

    def test_empty_batch_is_rejected(self, client, store):
        response = client.post("/api/sales/import", json={"records": []})

        assert response.status_code == 422
        assert store.count() == 4

    def test_invalid_record_rejects_whole_batch(self, client, store):
        payload = {
            "records": [
                {"customer_id": "C100", "product_id": "P100"},
                {"customer_id": "C101"},
            ]
        }

        response = client.post("/api/sales/import", json=payload)

        assert response.status_code == 422
        assert store.count() == 4

    def test_csv_upload(self, client, store, sample_csv):
        files = {"file": ("sales.csv", sample_csv.encode("utf-8"), "text/csv")}

        response = client.post("/api/sales/upload", files=files)

        assert response.status_code == 200
        body = response.json()
        assert body["records_imported"] == 3
        assert body["total_records"] == 7
        assert store.count() == 7

    def test_csv_upload_without_records(self, client, store):
        files = {"file": ("sales.csv", b"Customer ID,Product ID\n", "text/csv")}

        response = client.post("/api/sales/upload", files=files)

        assert response.status_code == 400
        assert response.json() == {"error": "Import failed", "detail": NO_RECORDS_MESSAGE}
        assert store.count() == 4

    def test_non_csv_upload_is_rejected(self, client):
        files = {"file": ("sales.xlsx", b"binary", "application/octet-stream")}

        response = client.post("/api/sales/upload", files=files)

        assert response.status_code == 400

    def test_store_failure_reports_underlying_error(self, client, override, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory", encoding="utf-8")
        failing_store = JsonFileSalesStore(blocker / "sales.json")
        override[get_store] = lambda: failing_store
        payload = {"records": [{"customer_id": "C1", "product_id": "P1"}]}

        response = client.post("/api/sales/import", json=payload)

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "Storage failure"
        assert "blocker" in body["detail"]
        assert failing_store.count() == 0

    def test_import_endpoints_run_in_threadpool(self):
        assert not inspect.iscoroutinefunction(import_sales)
        assert not inspect.iscoroutinefunction(upload_sales_csv)


class TestHealth:
    def test_health(self, client):
        body = client.get("/health").json()

        assert body["status"] == "healthy"
        assert body["records"] == 4
        assert body["services"] == {"store": "healthy"}

    def test_liveness(self, client):
        assert client.get("/health/liveness").json()["status"] == "alive"

    def test_readiness(self, client):
        body = client.get("/health/readiness").json()

        assert body["status"] == "ready"
        assert body["store_backend"] == "memory"

    def test_not_ready_without_store(self):
        response = TestClient(app).get("/health/readiness")

        assert response.status_code == 503

    def test_root(self, client):
        assert client.get("/").json()["version"]


def test_unexpected_error_is_generic(client, override):
    def failing_store():
        raise RuntimeError("store exploded")

    override[get_store] = failing_store
    payload = {"records": [{"customer_id": "C1", "product_id": "P1"}]}

    response = client.post("/api/sales/import", json=payload)

    assert response.status_code == 500
    assert response.json() == {"error": "Server error"}
