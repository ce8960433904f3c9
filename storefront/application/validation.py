"""Request body validation.

Each check raises ``ValidationError`` (or ``NotFoundError``) on the first
violation; message strings are part of the public API.

Routes take the raw JSON body instead of pydantic request models. Clients
depend on the exact message for each failure and on the order fields are
checked in (missing before mistyped before blank), which pydantic's
aggregated error list does not give.
"""

from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, Mapping, Optional

from sqlalchemy.orm import Session

from storefront.core.errors import NotFoundError, ValidationError
from storefront.domain.models import Product

MISSING_FIELDS = "Request body is missing required field(s)."
WRONG_TYPE = "Request body fields must all be in string format."
BLANK_FIELD = "Field(s) cannot be empty or blank."

# orders.total is NUMERIC(10, 2); ids and quantities are 32-bit INTEGER columns
CENTS = Decimal("0.01")
MAX_TOTAL = Decimal("100000000")
MAX_INTEGER = 2**31 - 1

SIGNUP_REQUIRED = ("username", "password", "name", "email")
SIGNUP_TYPED = SIGNUP_REQUIRED + ("phone", "avatar")
SSO_REQUIRED = ("name", "email", "authId", "provider")
SSO_TYPED = SSO_REQUIRED + ("thumbnail",)

ADDRESS_KINDS = ("billingAddress", "shippingAddress")
ADDRESS_REQUIRED = ("addressLine1", "city", "postcode")
ADDRESS_ACCEPTED = {
    "addressLine1": "address_line1",
    "addressLine2": "address_line2",
    "city": "city",
    "county": "county",
    "postcode": "postcode",
}

def validate_fields(body: Optional[Mapping[str, Any]], required: Iterable[str], typed: Iterable[str] = ()) -> Dict[str, Any]:
    """Check presence of ``required`` (in order) and string type of ``typed``."""
    body = body or {}
    for field in required:
        if not body.get(field):
            raise ValidationError(MISSING_FIELDS)
    for field in typed:
        value = body.get(field)
        if value is not None and not isinstance(value, str):
            raise ValidationError(WRONG_TYPE)
    return dict(body)

def _is_blank(value: Any) -> bool:
    return isinstance(value, str) and not value.strip()

def map_address(raw: Mapping[str, Any]) -> Dict[str, Optional[str]]:
    """Map an API address object onto Address columns, dropping unknown keys."""
    return {
        column: raw.get(field)
        for field, column in ADDRESS_ACCEPTED.items()
    }

def validate_addresses(body: Optional[Mapping[str, Any]], require_both: bool) -> Dict[str, Dict[str, Optional[str]]]:
    """Validate billing/shipping address submissions.

    The addresses endpoint needs at least one address; order creation needs
    both. Returns the accepted addresses keyed by kind, already mapped onto
    Address columns.
    """
    body = body or {}
    supplied = [kind for kind in ADDRESS_KINDS if body.get(kind)]
    if require_both and len(supplied) < len(ADDRESS_KINDS):
        raise ValidationError("Request must include billing and shipping addresses.")
    if not supplied:
        raise ValidationError("Request must include a billing or shipping address.")

    for kind in supplied:
        raw = body[kind]
        if not isinstance(raw, Mapping) or not all(field in raw for field in ADDRESS_REQUIRED):
            raise ValidationError(
                "Each address must contain at least `addressLine1`, `city` and `postcode`."
            )

    addresses = {}
    for kind in supplied:
        raw = body[kind]
        for field, value in raw.items():
            if value is None or _is_blank(value):
                raise ValidationError(BLANK_FIELD)
            if field in ADDRESS_ACCEPTED and not isinstance(value, str):
                raise ValidationError(WRONG_TYPE)
        addresses[kind] = map_address(raw)
    return addresses

def validate_payment(body: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    body = body or {}
    payment_method = body.get("paymentMethod")
    if not payment_method:
        raise ValidationError("New order must include payment method.")
    if not isinstance(payment_method, str):
        raise ValidationError(WRONG_TYPE)
    total = body.get("total")
    try:
        amount = Decimal(str(total)) if total is not None and not isinstance(total, bool) else None
    except InvalidOperation:
        amount = None
    if amount is None or not amount.is_finite() or not 0 < amount < MAX_TOTAL:
        raise ValidationError("New order must include total amount.")
    return {"payment_method": payment_method, "total": amount.quantize(CENTS)}

def positive_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        digits = value.strip()
        if not (digits.isascii() and digits.isdecimal()):
            return None
        value = int(digits)
    if isinstance(value, int) and 0 < value <= MAX_INTEGER:
        return value
    return None

def validate_order_item(body: Optional[Mapping[str, Any]], db: Session) -> Optional[Dict[str, int]]:
    """Validate the optional single ``item`` of an order.

    Returns ``None`` when no item was submitted (the cart is ordered instead).
    """
    item = (body or {}).get("item")
    if not item:
        return None
    if not isinstance(item, Mapping) or not item.get("productId"):
        raise ValidationError("Order item must contain product id.")
    quantity = positive_int(item.get("quantity"))
    if quantity is None:
        raise ValidationError("Order item must contain a valid quantity value (greater than 0).")
    product_id = positive_int(item.get("productId"))
    product = db.get(Product, product_id) if product_id else None
    if product is None:
        raise NotFoundError("Product id is invalid. Item does not exist.")
    if quantity > product.stock:
        raise ValidationError("Insufficient stock.")
    return {"product_id": product.id, "quantity": quantity}

def pick_fields(body: Optional[Mapping[str, Any]], allowed: Mapping[str, type]) -> Dict[str, Any]:
    """Keep only ``allowed`` fields, checking each value's type.

    ``allowed`` maps field name to the expected Python type; unknown fields are
    dropped and blank strings rejected.
    """
    picked = {}
    for field, expected in allowed.items():
        if field not in (body or {}):
            continue
        value = body[field]
        if expected is str:
            if not isinstance(value, str):
                raise ValidationError(WRONG_TYPE)
            if _is_blank(value):
                raise ValidationError(BLANK_FIELD)
        elif expected is int:
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValidationError(f"Field `{field}` must be an integer.")
        elif not isinstance(value, expected):
            raise ValidationError(f"Field `{field}` has an invalid type.")
        picked[field] = value
    return picked
