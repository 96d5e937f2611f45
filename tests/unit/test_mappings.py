"""
Tests unitarios para los mapeos Shopify -> filas locales.
"""
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from storesync.infrastructure.external.shopify.mappings import (
    customer_external_id,
    map_customer,
    map_order,
)
from storesync.infrastructure.external.shopify.types import parse_iso_datetime
from storesync.shared.exceptions.domain import RecordMappingError


def test_map_customer_keeps_store_and_stringifies_id() -> None:
    row = map_customer(
        {"id": 207119551, "email": "bob@example.com", "first_name": "Bob", "last_name": None},
        "store-1",
    )

    assert row == {
        "store_id": "store-1",
        "shopify_id": "207119551",
        "email": "bob@example.com",
        "first_name": "Bob",
        "last_name": None,
    }


def test_map_order_converts_money_and_dates() -> None:
    row = map_order(
        {
            "id": 450789469,
            "name": "#1001",
            "total_price": "409.94",
            "currency": "USD",
            "financial_status": "paid",
            "fulfillment_status": None,
            "processed_at": "2024-03-01T10:15:00-05:00",
        },
        "store-1",
        "local-customer",
    )

    assert row["shopify_id"] == "450789469"
    assert row["order_number"] == "#1001"
    assert row["total_price"] == Decimal("409.94")
    assert row["processed_at"] == datetime(2024, 3, 1, 15, 15, tzinfo=timezone.utc)
    assert row["fulfillment_status"] is None
    assert row["customer_id"] == "local-customer"


def test_map_order_defaults_missing_total_to_zero() -> None:
    row = map_order({"id": 1}, "store-1", None)

    assert row["total_price"] == Decimal("0.00")
    assert row["processed_at"] is None
    assert row["customer_id"] is None


def test_missing_id_is_a_mapping_error() -> None:
    with pytest.raises(RecordMappingError) as exc_info:
        map_customer({"email": "x@example.com"}, "store-1")

    assert exc_info.value.error_code == "INVALID_RECORD"
    assert exc_info.value.status_code == 400


def test_invalid_price_is_a_mapping_error() -> None:
    with pytest.raises(RecordMappingError, match="total_price"):
        map_order({"id": 1, "total_price": "gratis"}, "store-1", None)


@pytest.mark.parametrize("total", ["NaN", "-NaN", "Infinity"])
def test_non_finite_price_is_a_mapping_error(total) -> None:
    with pytest.raises(RecordMappingError, match="total_price") as exc_info:
        map_order({"id": 1, "total_price": total}, "store-1", None)

    assert exc_info.value.error_code == "INVALID_RECORD"
    assert exc_info.value.status_code == 400


def test_non_object_record_is_rejected() -> None:
    with pytest.raises(RecordMappingError):
        map_customer(["not", "a", "dict"], "store-1")


@pytest.mark.parametrize(
    "order, expected",
    [
        ({"id": 1, "customer": {"id": 99}}, "99"),
        ({"id": 1, "customer": None}, None),
        ({"id": 1}, None),
        ({"id": 1, "customer": {"email": "guest@example.com"}}, None),
    ],
)
def test_customer_external_id(order, expected) -> None:
    assert customer_external_id(order) == expected


def test_parse_iso_datetime_handles_zulu_and_empty() -> None:
    assert parse_iso_datetime("2024-01-02T03:04:05Z") == datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    assert parse_iso_datetime("") is None
    assert parse_iso_datetime(None) is None
