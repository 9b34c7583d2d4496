import pytest

from stocksense.models import ProductStatus
from stocksense.schemas import ProductRead
from stocksense.services.inventory import derive_status, filter_products, is_below_minimum


@pytest.mark.parametrize("quantity", [0, -1, -50])
@pytest.mark.parametrize("min_quantity", [0, 5, 100])
def test_non_positive_quantity_is_out_of_stock(quantity, min_quantity) -> None:
    assert derive_status(quantity, min_quantity) == ProductStatus.OUT_OF_STOCK


@pytest.mark.parametrize("quantity,min_quantity", [(1, 2), (8, 15), (7, 8)])
def test_quantity_below_minimum_is_low_stock(quantity, min_quantity) -> None:
    assert derive_status(quantity, min_quantity) == ProductStatus.LOW_STOCK


@pytest.mark.parametrize("quantity,min_quantity", [(10, 10), (24, 10), (1, 1), (5, 0)])
def test_quantity_at_or_above_minimum_is_in_stock(quantity, min_quantity) -> None:
    assert derive_status(quantity, min_quantity) == ProductStatus.IN_STOCK


def test_status_labels() -> None:
    assert derive_status(8, 15) == "Low Stock"
    assert derive_status(0, 5) == "Out of Stock"
    assert derive_status(0, 0) == "Out of Stock"


RECORDS = [
    {"name": "Wireless Headphones", "sku": "WH-001", "category": "Electronics"},
    {"name": "Yoga Mat", "sku": "YM-005", "category": "Sports"},
    {"name": "LED Desk Lamp", "sku": "DL-006", "category": "Lighting"},
]


def test_empty_query_keeps_every_record() -> None:
    assert filter_products(RECORDS, "") == RECORDS


def test_filter_is_case_insensitive() -> None:
    assert filter_products([{"name": "Yoga Mat"}], "yoga") == [{"name": "Yoga Mat"}]
    assert filter_products(RECORDS, "YOGA") == [RECORDS[1]]


def test_filter_matches_sku_and_category_in_order() -> None:
    assert filter_products(RECORDS, "wh-") == [RECORDS[0]]
    assert filter_products(RECORDS, "ing") == [RECORDS[2]]
    assert filter_products(RECORDS, "a") == RECORDS
    assert filter_products(RECORDS, "nothing here") == []


def test_filter_accepts_models(db) -> None:
    from stocksense.services.products import list_products

    products = list_products(db).items
    names = [product.name for product in filter_products(products, "desk")]
    assert names == ["LED Desk Lamp"]

    schemas = [ProductRead.model_validate(product) for product in products]
    assert [p.sku for p in filter_products(schemas, "furniture")] == ["OC-003"]


def test_is_below_minimum() -> None:
    assert is_below_minimum({"quantity": 7, "min_quantity": 8})
    assert not is_below_minimum({"quantity": 8, "min_quantity": 8})
