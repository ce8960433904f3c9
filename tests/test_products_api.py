from decimal import Decimal

from storefront.domain.models import Product

class TestProductListing:
    def test_default_listing(self, client):
        resp = client.get("/api/products")
        assert resp.status_code == 200
        body = resp.json()
        assert body["page"] == 1
        assert body["count"] == len(body["products"]) == 5
        assert body["totalResults"] == 5
        assert [p["id"] for p in body["products"]] == [1, 2, 3, 4, 5]
        first = body["products"][0]
        assert first["price"] == "19.99"
        assert first["categoryName"] == "Electronics"
        assert first["numOfTimesOrdered"] == 2

    def test_total_ignores_pagination(self, client):
        body = client.get("/api/products", params={"page": 2, "limit": 2}).json()
        assert [p["id"] for p in body["products"]] == [3, 4]
        assert body["count"] == 2
        assert body["totalResults"] == 5

    def test_filters_are_case_insensitive_containment(self, client):
        body = client.get("/api/products", params={"category": "hOm", "supplier": "ACME"}).json()
        assert [p["id"] for p in body["products"]] == [3]

    def test_like_wildcards_match_literally(self, client, db):
        db.add(Product(id=6, name="Tote Bag", description="Canvas tote", price=Decimal("8.00"), stock=4,
                       category_name="100%_Cotton", supplier_name="Sew_Good"))
        db.commit()
        db.close()
        for params in ({"category": "_"}, {"category": "%"}, {"supplier": "w_g"}):
            body = client.get("/api/products", params=params).json()
            assert [p["id"] for p in body["products"]] == [6]
        body = client.get("/api/products", params={"category": "0%c"}).json()
        assert body["totalResults"] == 0

    def test_price_bounds_inclusive(self, client):
        body = client.get("/api/products", params={"minPrice": "19.99", "maxPrice": "49.50"}).json()
        assert [p["id"] for p in body["products"]] == [1, 2, 3]

    def test_hide_out_of_stock(self, client):
        body = client.get("/api/products", params={"hideOutOfStock": "true"}).json()
        assert [p["id"] for p in body["products"]] == [1, 3, 4, 5]
        assert all(p["stock"] > 0 for p in body["products"])

    def test_sort_descending(self, client):
        body = client.get("/api/products", params={"sortBy": "price", "order": "desc"}).json()
        prices = [Decimal(p["price"]) for p in body["products"]]
        assert prices == sorted(prices, reverse=True)

    def test_bad_order_sorts_ascending(self, client):
        body = client.get("/api/products", params={"sortBy": "stock", "order": "upwards"}).json()
        stocks = [p["stock"] for p in body["products"]]
        assert stocks == sorted(stocks)

    def test_unknown_sort_column(self, client):
        resp = client.get("/api/products", params={"sortBy": "prise"})
        assert resp.status_code == 400
        assert resp.json() == {"msg": "Unknown argument `prise`. Did you mean `price`?"}

    def test_bad_pagination(self, client):
        resp = client.get("/api/products", params={"page": 0})
        assert resp.status_code == 400
        assert resp.json() == {"msg": "Invalid query. Argument `skip` is missing."}
        resp = client.get("/api/products", params={"limit": "lots"})
        assert resp.json() == {"msg": "Invalid query. Argument `take` is missing."}

    def test_page_beyond_bigint(self, client):
        resp = client.get("/api/products", params={"page": "100000000000000000000"})
        assert resp.status_code == 400
        assert resp.json() == {"msg": "Invalid query. Argument `skip` is missing."}

    def test_bad_price(self, client):
        resp = client.get("/api/products", params={"minPrice": "free"})
        assert resp.status_code == 400
        assert resp.json() == {"msg": "Invalid query. Argument `minPrice` must be a number."}

class TestBestsellers:
    def test_report(self, client):
        resp = client.get("/api/products/bestsellers")
        assert resp.status_code == 200
        body = resp.json()
        assert body["totalResults"] == 2
        assert body["count"] == 2
        summary = [
            (p["id"], p["numOfTimesOrdered"], p["totalUnitsOrdered"], p["averageRating"])
            for p in body["bestSellers"]
        ]
        assert summary == [(1, 2, 3, "4.50"), (4, 2, 6, "3.67")]

    def test_filtered(self, client):
        body = client.get("/api/products/bestsellers", params={"supplier": "paper"}).json()
        assert [p["id"] for p in body["bestSellers"]] == [4]
        assert body["totalResults"] == 1

    def test_paginated(self, client):
        body = client.get("/api/products/bestsellers", params={"page": 2, "limit": 1}).json()
        assert [p["id"] for p in body["bestSellers"]] == [4]
        assert body["totalResults"] == 2

    def test_bad_pagination(self, client):
        resp = client.get("/api/products/bestsellers", params={"limit": 0})
        assert resp.status_code == 400
        assert resp.json() == {"msg": "Invalid query. Argument `take` is missing."}

class TestProductDetail:
    def test_detail_with_ratings(self, client):
        resp = client.get("/api/products/4")
        assert resp.status_code == 200
        product = resp.json()
        assert product["name"] == "Notebook"
        assert product["price"] == "3.25"
        assert product["totalRatings"] == 3
        assert product["averageRating"] == "3.7"
        assert product["numOfTimesOrdered"] == 2

    def test_detail_without_ratings(self, client):
        product = client.get("/api/products/3").json()
        assert product["totalRatings"] == 0
        assert "averageRating" not in product

    def test_not_found(self, client):
        resp = client.get("/api/products/999")
        assert resp.status_code == 404
        assert resp.json() == {"msg": "Not found."}

    def test_non_integer_id(self, client):
        resp = client.get("/api/products/abc")
        assert resp.status_code == 400
        assert resp.json()["error"]["status"] == 400

    def test_product_reviews(self, client):
        body = client.get("/api/products/4/reviews", params={"limit": 2}).json()
        assert [r["id"] for r in body["reviews"]] == [5, 4]
        assert body["totalResults"] == 3
        assert body["reviews"][0]["customer"]["username"] == "carol"
