"""State and validation for the two-step "Add New Product" form.

Step 1 collects the descriptive fields, step 2 the stock and pricing numbers.
The form never advances past a step whose fields fail validation; failures are
kept per field so the page can render them inline.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, field, fields

from stocksense.schemas import (
    CATEGORY_MAX_LENGTH,
    LOCATION_MAX_LENGTH,
    MAX_QUANTITY,
    NAME_MAX_LENGTH,
    SKU_MAX_LENGTH,
    ProductCreate,
)
from stocksense.services.inventory import derive_status

CATEGORIES = (
    "Electronics",
    "Food & Beverage",
    "Furniture",
    "Clothing",
    "Accessories",
    "Sports",
    "Books",
    "Toys",
    "Health & Beauty",
    "Other",
)

STEP_FIELDS: dict[int, tuple[str, ...]] = {
    1: ("name", "sku", "category", "location"),
    2: ("quantity", "min_quantity", "unit_cost", "selling_price"),
}

FIELD_LABELS = {
    "name": "Product name",
    "sku": "SKU",
    "category": "Category",
    "location": "Storage location",
    "quantity": "quantity",
    "min_quantity": "minimum quantity",
    "unit_cost": "unit cost",
    "selling_price": "selling price",
}

MAX_LENGTHS = {
    "name": NAME_MAX_LENGTH,
    "sku": SKU_MAX_LENGTH,
    "category": CATEGORY_MAX_LENGTH,
    "location": LOCATION_MAX_LENGTH,
}


class FormFieldError(ValueError):
    def __init__(self, field_name: str, message: str) -> None:
        super().__init__(message)
        self.field = field_name
        self.message = message

    @property
    def kind(self) -> str:
        return type(self).__name__


class RequiredFieldError(FormFieldError):
    def __init__(self, field_name: str) -> None:
        super().__init__(field_name, f"{FIELD_LABELS[field_name]} is required")


class InvalidFieldError(FormFieldError):
    def __init__(self, field_name: str, message: str | None = None) -> None:
        super().__init__(field_name, message or f"Valid {FIELD_LABELS[field_name]} is required")


def _check_length(field_name: str, value: str) -> str:
    limit = MAX_LENGTHS[field_name]
    if len(value) > limit:
        raise InvalidFieldError(field_name, f"{FIELD_LABELS[field_name]} must be at most {limit} characters")
    return value


def _require_text(field_name: str, value: str) -> str:
    value = value.strip()
    if not value:
        raise RequiredFieldError(field_name)
    return _check_length(field_name, value)


def _optional_text(field_name: str, value: str) -> str:
    return _check_length(field_name, value.strip())


def parse_non_negative_int(field_name: str, value: str) -> int:
    try:
        parsed = int(value.strip())
    except ValueError:
        raise InvalidFieldError(field_name) from None
    if parsed < 0 or parsed > MAX_QUANTITY:
        raise InvalidFieldError(field_name)
    return parsed


def parse_positive_number(field_name: str, value: str) -> float:
    try:
        parsed = float(value.strip())
    except ValueError:
        raise InvalidFieldError(field_name) from None
    if not math.isfinite(parsed) or parsed <= 0:
        raise InvalidFieldError(field_name)
    return parsed


_PARSERS = {
    "name": _require_text,
    "sku": _require_text,
    "category": _require_text,
    "location": _optional_text,
    "quantity": parse_non_negative_int,
    "min_quantity": parse_non_negative_int,
    "unit_cost": parse_positive_number,
    "selling_price": parse_positive_number,
}


def profit_margin(unit_cost: float, selling_price: float) -> float | None:
    if selling_price <= 0:
        return None
    return (selling_price - unit_cost) / selling_price * 100


def format_margin(margin: float) -> str:
    return f"{margin:.2f}%"


@dataclass
class ProductForm:
    name: str = ""
    sku: str = ""
    description: str = ""
    category: str = ""
    location: str = ""
    quantity: str = ""
    min_quantity: str = ""
    unit_cost: str = ""
    selling_price: str = ""
    step: int = 1
    errors: dict[str, FormFieldError] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, data: Mapping[str, object]) -> ProductForm:
        values = {name: str(data.get(name) or "") for name in cls.field_names()}
        try:
            step = int(str(data.get("step") or 1))
        except ValueError:
            step = 1
        return cls(**values, step=2 if step == 2 else 1)

    @staticmethod
    def field_names() -> tuple[str, ...]:
        return tuple(f.name for f in fields(ProductForm) if f.name not in {"step", "errors"})

    def update(self, field_name: str, value: str) -> None:
        setattr(self, field_name, value)
        self.errors.pop(field_name, None)

    def validate_step(self, step: int | None = None) -> bool:
        step = step or self.step
        self.errors = {}
        for field_name in STEP_FIELDS[step]:
            try:
                _PARSERS[field_name](field_name, getattr(self, field_name))
            except FormFieldError as exc:
                self.errors[field_name] = exc
        return not self.errors

    def next_step(self) -> bool:
        if self.step == 1 and self.validate_step(1):
            self.step = 2
            return True
        return False

    def previous_step(self) -> None:
        self.errors = {}
        self.step = 1

    @property
    def margin(self) -> float | None:
        try:
            unit_cost = parse_positive_number("unit_cost", self.unit_cost)
            selling_price = parse_positive_number("selling_price", self.selling_price)
        except FormFieldError:
            return None
        return profit_margin(unit_cost, selling_price)

    @property
    def formatted_margin(self) -> str | None:
        margin = self.margin
        return format_margin(margin) if margin is not None else None

    def preview(self) -> dict[str, object] | None:
        if not self.validate_step():
            return None

        summary: dict[str, object] = {
            "name": self.name.strip(),
            "sku": self.sku.strip(),
            "category": self.category.strip(),
            "description": self.description.strip() or None,
            "location": self.location.strip() or None,
        }
        if self.step == 2:
            quantity = parse_non_negative_int("quantity", self.quantity)
            min_quantity = parse_non_negative_int("min_quantity", self.min_quantity)
            summary.update(
                quantity=quantity,
                min_quantity=min_quantity,
                unit_cost=parse_positive_number("unit_cost", self.unit_cost),
                selling_price=parse_positive_number("selling_price", self.selling_price),
                status=derive_status(quantity, min_quantity),
                profit_margin=self.formatted_margin,
            )
        return summary

    def submit(self) -> ProductCreate | None:
        if self.step != 2 or not self.validate_step(1):
            self.step = 1
            return None
        if not self.validate_step(2):
            return None

        return ProductCreate(
            name=self.name.strip(),
            sku=self.sku.strip(),
            category=self.category.strip(),
            description=self.description.strip() or None,
            location=self.location.strip() or None,
            quantity=parse_non_negative_int("quantity", self.quantity),
            min_quantity=parse_non_negative_int("min_quantity", self.min_quantity),
            unit_cost=parse_positive_number("unit_cost", self.unit_cost),
            selling_price=parse_positive_number("selling_price", self.selling_price),
        )

    def reset(self) -> None:
        for name in self.field_names():
            setattr(self, name, "")
        self.step = 1
        self.errors = {}
