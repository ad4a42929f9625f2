"""Field validators for the product form.

Each validator factory returns a callable taking the raw field value and
returning ``None`` when valid or an error dict ``{key: details}`` otherwise.
``validation_message`` turns such a dict into the inline message shown next
to the field. Empty values pass every validator except ``required``.
"""

import re
from collections.abc import Callable
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any

from storefront.schemas.product import PRICE_MAX, PRICE_MIN, ProductRequest

Validator = Callable[[Any], dict[str, Any] | None]


def _is_empty(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


def _to_decimal(value: Any) -> Decimal | None:
    if isinstance(value, bool):
        return None
    try:
        number = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    return number if number.is_finite() else None


def required() -> Validator:
    def check(value: Any) -> dict[str, Any] | None:
        return {"required": True} if _is_empty(value) else None

    return check


def min_length(length: int) -> Validator:
    def check(value: Any) -> dict[str, Any] | None:
        if _is_empty(value) or len(str(value)) >= length:
            return None
        return {"minlength": {"required_length": length, "actual_length": len(str(value))}}

    return check


def max_length(length: int) -> Validator:
    def check(value: Any) -> dict[str, Any] | None:
        if _is_empty(value) or len(str(value)) <= length:
            return None
        return {"maxlength": {"required_length": length, "actual_length": len(str(value))}}

    return check


def price_validator(minimum: float = PRICE_MIN, maximum: float | None = None, max_decimals: int = 2) -> Validator:
    low = Decimal(str(minimum))
    high = Decimal(str(maximum)) if maximum is not None else None

    def check(value: Any) -> dict[str, Any] | None:
        if _is_empty(value):
            return None
        number = _to_decimal(value)
        if number is None:
            return {"invalid_price": {"message": "Price must be a valid number"}}
        if number < low:
            return {"min_price": {"min": minimum, "message": f"Price must be at least €{low:.2f}"}}
        if high is not None and number > high:
            return {"max_price": {"max": maximum, "message": f"Price cannot exceed €{high:.2f}"}}
        decimals = max(0, -number.as_tuple().exponent)
        if decimals > max_decimals:
            return {
                "max_decimals": {
                    "max_decimals": max_decimals,
                    "actual": decimals,
                    "message": f"Price can have maximum {max_decimals} decimal places",
                }
            }
        return None

    return check


def positive_number_validator(allow_zero: bool = False) -> Validator:
    def check(value: Any) -> dict[str, Any] | None:
        if _is_empty(value):
            return None
        number = _to_decimal(value)
        if number is None:
            return {"invalid_number": {"message": "Must be a valid number"}}
        if allow_zero and number < 0:
            return {"positive_number": {"message": "Must be a positive number or zero"}}
        if not allow_zero and number <= 0:
            return {"positive_number": {"message": "Must be a positive number greater than zero"}}
        return None

    return check


def integer_validator() -> Validator:
    def check(value: Any) -> dict[str, Any] | None:
        if _is_empty(value):
            return None
        number = _to_decimal(value)
        if number is None:
            return {"invalid_number": {"message": "Must be a valid number"}}
        if number != number.to_integral_value():
            return {"integer": {"message": "Must be a whole number (no decimals)"}}
        return None

    return check


def format_field_name(name: str) -> str:
    spaced = re.sub(r"([A-Z])", r" \1", name).replace("_", " ").strip()
    return spaced[:1].upper() + spaced[1:]


def validation_message(errors: dict[str, Any] | None, field_name: str | None = None) -> str:
    if not errors:
        return ""
    label = format_field_name(field_name) if field_name else "This field"
    if "required" in errors:
        return f"{label} is required"
    if "minlength" in errors:
        return f"{label} must be at least {errors['minlength']['required_length']} characters"
    if "maxlength" in errors:
        return f"{label} must not exceed {errors['maxlength']['required_length']} characters"
    for details in errors.values():
        if isinstance(details, dict) and details.get("message"):
            return details["message"]
    return f"{label} is invalid"


def run_validators(value: Any, validators: list[Validator]) -> dict[str, Any] | None:
    """Errors of the first failing validator, in declaration order."""
    for validator in validators:
        errors = validator(value)
        if errors:
            return errors
    return None


PRODUCT_FORM_RULES: dict[str, list[Validator]] = {
    "name": [required(), min_length(3), max_length(100)],
    "description": [required(), min_length(10), max_length(2000)],
    "price": [required(), price_validator(PRICE_MIN, PRICE_MAX, 2)],
    "quantity": [required(), integer_validator(), positive_number_validator(allow_zero=True)],
}


@dataclass
class ProductFormFields:
    name: str = ""
    description: str = ""
    price: Any = None
    quantity: Any = 0
    errors: dict[str, str] = field(default_factory=dict)

    def validate(self) -> bool:
        self.errors = {}
        for name, validators in PRODUCT_FORM_RULES.items():
            value = getattr(self, name)
            if isinstance(value, str) and name in ("name", "description"):
                value = value.strip()
            problem = run_validators(value, validators)
            if problem:
                self.errors[name] = validation_message(problem, name)
        return not self.errors

    def to_request(self) -> ProductRequest:
        return ProductRequest(
            name=self.name.strip(),
            description=self.description.strip(),
            price=float(Decimal(str(self.price).strip())),
            quantity=int(Decimal(str(self.quantity).strip())),
        )
