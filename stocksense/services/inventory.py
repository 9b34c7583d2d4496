from __future__ import annotations

from collections.abc import Iterable, Mapping

from stocksense.models import ProductStatus

SEARCH_FIELDS = ("name", "sku", "category")


def derive_status(quantity: int, min_quantity: int) -> ProductStatus:
    if quantity <= 0:
        return ProductStatus.OUT_OF_STOCK
    if quantity < min_quantity:
        return ProductStatus.LOW_STOCK
    return ProductStatus.IN_STOCK


def is_below_minimum(record: object) -> bool:
    return int(_field(record, "quantity") or 0) < int(_field(record, "min_quantity") or 0)


def _field(record: object, name: str) -> object:
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)


def _text(record: object, name: str) -> str:
    value = _field(record, name)
    return "" if value is None else str(value)


def filter_products(records: Iterable[object], query: str) -> list[object]:
    """Keep records whose name, SKU or category contains ``query``, ignoring case.

    Accepts ORM rows, pydantic models or plain mappings. Order is preserved and
    an empty query keeps everything.
    """
    records = list(records)
    if not query:
        return records

    needle = query.lower()
    return [
        record
        for record in records
        if any(needle in _text(record, name).lower() for name in SEARCH_FIELDS)
    ]
