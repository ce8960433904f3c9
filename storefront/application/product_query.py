"""Product listing query construction.

``parse_product_query`` turns raw query-string values into a ``ProductQuery``
(defaults for absent fields, sort whitelist, pagination checks);
``ProductQuery`` then applies itself to a SQLAlchemy select.
"""

import difflib
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping, Optional

from sqlalchemy import Select, and_, func, select
from sqlalchemy.sql.elements import ColumnElement

from storefront.core.errors import ValidationError
from storefront.domain.models import OrderItem, Product

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 25
DEFAULT_MIN_PRICE = Decimal("0")
DEFAULT_MAX_PRICE = Decimal("100000")
TRUTHY = {"true", "1", "yes"}
# OFFSET and LIMIT are bound as signed 64-bit integers
MAX_BIGINT = 2**63 - 1

# API column name -> Product attribute
SORTABLE_COLUMNS = {
    "id": Product.id,
    "name": Product.name,
    "description": Product.description,
    "price": Product.price,
    "stock": Product.stock,
    "categoryName": Product.category_name,
    "supplierName": Product.supplier_name,
    "thumbnail": Product.thumbnail,
}

def query_error(info: str, msg_body: bool = True) -> ValidationError:
    return ValidationError(info, msg_body=msg_body)

def parse_pagination(params: Mapping[str, Any], msg_body: bool = True) -> tuple[int, int]:
    page = _parse_int(params.get("page"), DEFAULT_PAGE)
    if page is None or page < 1:
        raise query_error("Invalid query. Argument `skip` is missing.", msg_body)
    limit = _parse_int(params.get("limit"), DEFAULT_LIMIT)
    if limit is None or not 1 <= limit <= MAX_BIGINT:
        raise query_error("Invalid query. Argument `take` is missing.", msg_body)
    if (page - 1) * limit > MAX_BIGINT:
        raise query_error("Invalid query. Argument `skip` is missing.", msg_body)
    return page, limit

def suggest_column(name: str) -> Optional[str]:
    matches = difflib.get_close_matches(name, SORTABLE_COLUMNS, n=1, cutoff=0.6)
    if not matches:
        lowered = {column.lower(): column for column in SORTABLE_COLUMNS}
        matches = [lowered[name.lower()]] if name.lower() in lowered else []
    return matches[0] if matches else None

def _parse_int(raw: Any, default: int) -> Optional[int]:
    if raw is None or raw == "":
        return default
    try:
        return int(str(raw).strip())
    except ValueError:
        return None

def _parse_price(raw: Any, default: Decimal, name: str) -> Decimal:
    if raw is None or raw == "":
        return default
    try:
        value = Decimal(str(raw).strip())
    except InvalidOperation:
        value = None
    if value is None or not value.is_finite():
        raise query_error(f"Invalid query. Argument `{name}` must be a number.")
    return value

@dataclass(frozen=True)
class ProductQuery:
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT
    min_price: Decimal = DEFAULT_MIN_PRICE
    max_price: Decimal = DEFAULT_MAX_PRICE
    category: str = ""
    supplier: str = ""
    hide_out_of_stock: bool = False
    sort_by: str = "id"
    descending: bool = False

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit

    @property
    def take(self) -> int:
        return self.limit

    def predicate(self) -> ColumnElement[bool]:
        clauses = [
            Product.price >= self.min_price,
            Product.price <= self.max_price,
            Product.category_name.icontains(self.category, autoescape=True),
            Product.supplier_name.icontains(self.supplier, autoescape=True),
        ]
        if self.hide_out_of_stock:
            clauses.append(Product.stock != 0)
        return and_(*clauses)

    def ordering(self) -> tuple:
        column = SORTABLE_COLUMNS[self.sort_by]
        primary = column.desc() if self.descending else column.asc()
        if self.sort_by == "id":
            return (primary,)
        return (primary, Product.id.asc())

    def count_statement(self) -> Select:
        return select(func.count()).select_from(Product).where(self.predicate())

    def page_statement(self) -> Select:
        order_count = (
            select(func.count())
            .where(OrderItem.product_id == Product.id)
            .correlate(Product)
            .scalar_subquery()
            .label("num_of_times_ordered")
        )
        return (
            select(Product, order_count)
            .where(self.predicate())
            .order_by(*self.ordering())
            .offset(self.skip)
            .limit(self.take)
        )

def parse_product_query(params: Mapping[str, Any]) -> ProductQuery:
    page, limit = parse_pagination(params)

    sort_by = params.get("sortBy") or "id"
    if sort_by not in SORTABLE_COLUMNS:
        suggestion = suggest_column(sort_by)
        if suggestion:
            raise query_error(f"Unknown argument `{sort_by}`. Did you mean `{suggestion}`?")
        raise query_error(f"Unknown argument `{sort_by}`.")

    order = str(params.get("order") or "asc").lower()

    return ProductQuery(
        page=page,
        limit=limit,
        min_price=_parse_price(params.get("minPrice"), DEFAULT_MIN_PRICE, "minPrice"),
        max_price=_parse_price(params.get("maxPrice"), DEFAULT_MAX_PRICE, "maxPrice"),
        category=params.get("category") or "",
        supplier=params.get("supplier") or "",
        hide_out_of_stock=str(params.get("hideOutOfStock", "")).lower() in TRUTHY,
        sort_by=sort_by,
        # Unrecognised directions fall back to ascending
        descending=order == "desc",
    )
