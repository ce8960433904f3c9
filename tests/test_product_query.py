from decimal import Decimal

import pytest

from storefront.application.product_query import (
    ProductQuery,
    parse_pagination,
    parse_product_query,
    suggest_column,
)
from storefront.core.errors import ValidationError

class TestParseProductQuery:
    def test_defaults(self):
        assert parse_product_query({}) == ProductQuery()
        query = ProductQuery()
        assert (query.skip, query.take) == (0, 25)
        assert query.min_price == Decimal("0")
        assert query.max_price == Decimal("100000")

    def test_skip_and_take(self):
        query = parse_product_query({"page": "3", "limit": "10"})
        assert (query.skip, query.take) == (20, 10)

    @pytest.mark.parametrize("page", ["0", "-1", "abc", "1.5"])
    def test_bad_page(self, page):
        with pytest.raises(ValidationError) as exc:
            parse_product_query({"page": page})
        assert exc.value.info == "Invalid query. Argument `skip` is missing."
        assert exc.value.body() == {"msg": "Invalid query. Argument `skip` is missing."}

    @pytest.mark.parametrize("limit", ["0", "x"])
    def test_bad_limit(self, limit):
        with pytest.raises(ValidationError) as exc:
            parse_product_query({"limit": limit})
        assert exc.value.info == "Invalid query. Argument `take` is missing."

    def test_offset_beyond_bigint(self):
        with pytest.raises(ValidationError) as exc:
            parse_product_query({"page": "100000000000000000000"})
        assert exc.value.info == "Invalid query. Argument `skip` is missing."
        with pytest.raises(ValidationError) as exc:
            parse_product_query({"limit": str(2**63)})
        assert exc.value.info == "Invalid query. Argument `take` is missing."

    def test_largest_offset_accepted(self):
        assert parse_pagination({"page": str(2**62), "limit": "2"}) == (2**62, 2)

    def test_pagination_canonical_body(self):
        with pytest.raises(ValidationError) as exc:
            parse_pagination({"page": "0"}, msg_body=False)
        assert exc.value.body() == {
            "error": {"status": 400, "info": "Invalid query. Argument `skip` is missing."}
        }

    def test_non_numeric_price(self):
        with pytest.raises(ValidationError) as exc:
            parse_product_query({"minPrice": "cheap"})
        assert exc.value.info == "Invalid query. Argument `minPrice` must be a number."
        with pytest.raises(ValidationError) as exc:
            parse_product_query({"maxPrice": "nan"})
        assert exc.value.info == "Invalid query. Argument `maxPrice` must be a number."

    def test_unknown_sort_column_with_suggestion(self):
        with pytest.raises(ValidationError) as exc:
            parse_product_query({"sortBy": "prise"})
        assert exc.value.info == "Unknown argument `prise`. Did you mean `price`?"

    def test_unknown_sort_column_without_suggestion(self):
        with pytest.raises(ValidationError) as exc:
            parse_product_query({"sortBy": "zzzz"})
        assert exc.value.info == "Unknown argument `zzzz`."

    def test_order_falls_back_to_ascending(self):
        assert parse_product_query({"order": "sideways"}).descending is False
        assert parse_product_query({"order": "DESC"}).descending is True

    @pytest.mark.parametrize("flag,expected", [("true", True), ("1", True), ("Yes", True), ("false", False), ("", False)])
    def test_hide_out_of_stock(self, flag, expected):
        assert parse_product_query({"hideOutOfStock": flag}).hide_out_of_stock is expected

def test_suggest_column_ignores_case():
    assert suggest_column("CATEGORYNAME") == "categoryName"
    assert suggest_column("supplername") == "supplierName"

class TestProductQueryStatements:
    def test_ties_broken_by_id(self, db):
        query = parse_product_query({"sortBy": "categoryName"})
        rows = db.execute(query.page_statement()).all()
        assert [product.id for product, _ in rows] == [1, 2, 3, 5, 4]

    def test_count_ignores_pagination(self, db):
        query = parse_product_query({"limit": "2"})
        assert db.execute(query.count_statement()).scalar_one() == 5
        assert len(db.execute(query.page_statement()).all()) == 2

    def test_order_counts(self, db):
        rows = db.execute(parse_product_query({}).page_statement()).all()
        assert {product.id: count for product, count in rows} == {1: 2, 2: 0, 3: 1, 4: 2, 5: 0}
