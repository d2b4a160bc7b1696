"""
Checkout schemas

Pydantic models for the order collection and the decoding of an incoming
checkout submission into them.

Collection: order
- products: list of LineItem (at least one)
- customer: embedded Customer
"""

import json
from typing import Any, List, Mapping, Optional, Union

from pydantic import BaseModel, Field, ValidationError

Number = Union[int, float]

REQUIRED_FIELDS_MESSAGE = "All fields are required"


class LineItem(BaseModel):
    productName: str = Field(..., min_length=1, description="Product name")
    price: Number = Field(..., description="Unit price, no currency rules")
    quantity: Number = Field(..., description="Units ordered")
    imageUrl: Optional[str] = Field(None, description="Stored image path")


class Customer(BaseModel):
    name: str = Field(..., min_length=1)
    # no format check on purpose, matches what the checkout form sends
    email: str = Field(..., min_length=1)
    address: str = Field(..., min_length=1)


class OrderIn(BaseModel):
    products: List[LineItem] = Field(..., min_length=1)
    customer: Customer

    def with_image(self, path: str) -> "OrderIn":
        """Copy one stored image path onto every line item."""
        products = [item.model_copy(update={"imageUrl": path}) for item in self.products]
        return self.model_copy(update={"products": products})


# ---------- Validation failures ----------

class OrderValidationError(ValueError):
    kind = "invalid_order"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class MalformedPayload(OrderValidationError):
    kind = "malformed_payload"

    def __init__(self, detail: str):
        super().__init__(f"Invalid order payload: {detail}")
        self.detail = detail


class MissingProducts(OrderValidationError):
    kind = "missing_products"

    def __init__(self):
        super().__init__(REQUIRED_FIELDS_MESSAGE)


class MissingCustomerField(OrderValidationError):
    kind = "missing_customer_field"

    def __init__(self, field: str):
        super().__init__(REQUIRED_FIELDS_MESSAGE)
        self.field = field


class InvalidLineItem(OrderValidationError):
    kind = "invalid_line_item"

    def __init__(self, index: int, field: Optional[str] = None):
        where = f"products[{index}]" + (f".{field}" if field else "")
        super().__init__(f"Invalid product at {where}")
        self.index = index
        self.field = field


def _classify(error: dict) -> OrderValidationError:
    loc = error["loc"]
    if not loc:
        return MalformedPayload(error["msg"])
    if loc[0] == "products":
        if len(loc) >= 2 and isinstance(loc[1], int):
            field = loc[2] if len(loc) >= 3 else None
            return InvalidLineItem(loc[1], field)
        return MissingProducts()
    if loc[0] == "customer":
        return MissingCustomerField(loc[1] if len(loc) >= 2 else "customer")
    return MalformedPayload(error["msg"])


def parse_order(payload: Any) -> OrderIn:
    """
    Decode an untyped payload into an OrderIn.

    Raises exactly one OrderValidationError variant, the first problem
    in field order (products before customer).
    """
    if not isinstance(payload, Mapping):
        raise MalformedPayload("expected an object")
    try:
        return OrderIn.model_validate(payload)
    except ValidationError as e:
        raise _classify(e.errors()[0]) from e


def decode_form_fields(form: Mapping[str, Any]) -> dict:
    """Multipart text fields carry products and customer as JSON strings."""
    payload = {}
    for key in ("products", "customer"):
        raw = form.get(key)
        if raw is None or not isinstance(raw, str):
            continue
        try:
            payload[key] = json.loads(raw)
        except json.JSONDecodeError as e:
            raise MalformedPayload(f"{key} is not valid JSON") from e
    return payload
