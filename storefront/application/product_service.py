from decimal import Decimal
from typing import Any, Dict, Mapping

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from storefront.core.errors import NotFoundError
from storefront.domain.models import OrderItem, Product, Review
from .aggregates import BESTSELLERS, format_rating
from .product_query import parse_pagination, parse_product_query
from .schemas import ProductRead

class ProductService:
    def __init__(self, db: Session):
        self.db = db

    def list(self, params: Mapping[str, Any]) -> Dict[str, Any]:
        query = parse_product_query(params)
        total = self.db.execute(query.count_statement()).scalar_one()
        rows = self.db.execute(query.page_statement()).all()
        products = []
        for product, num_of_times_ordered in rows:
            item = ProductRead.model_validate(product).model_dump()
            item["num_of_times_ordered"] = num_of_times_ordered or 0
            products.append(item)
        return {"products": products, "page": query.page, "count": len(products), "total_results": total}

    def bestsellers(self, params: Mapping[str, Any]) -> Dict[str, Any]:
        page, limit = parse_pagination(params)
        report = BESTSELLERS.with_filters(
            category_name=params.get("category") or "",
            supplier_name=params.get("supplier") or "",
        )
        total = self.db.execute(report.compile_count()).scalar_one()
        rows = self.db.execute(report.compile_rows(offset=(page - 1) * limit, limit=limit)).all()
        best_sellers = []
        for product, num_of_times_ordered, total_units_ordered, average_rating in rows:
            item = ProductRead.model_validate(product).model_dump()
            item.update(
                num_of_times_ordered=num_of_times_ordered,
                total_units_ordered=int(total_units_ordered or 0),
                average_rating=format_rating(average_rating),
            )
            best_sellers.append(item)
        return {"best_sellers": best_sellers, "page": page, "count": len(best_sellers), "total_results": total}

    def get(self, product_id: int) -> Product:
        product = self.db.get(Product, product_id)
        if product is None:
            raise NotFoundError(msg_body=True)
        return product

    def detail(self, product_id: int) -> Dict[str, Any]:
        """Product with its rating and order statistics, camel-cased for the wire."""
        product = self.get(product_id)
        total_ratings, average = self.db.execute(
            select(func.count(Review.id), func.avg(Review.rating)).where(Review.product_id == product_id)
        ).one()
        num_of_times_ordered = self.db.execute(
            select(func.count()).select_from(OrderItem).where(OrderItem.product_id == product_id)
        ).scalar_one()

        detail = ProductRead.model_validate(product).model_dump(mode="json", by_alias=True)
        detail["totalRatings"] = total_ratings
        detail["numOfTimesOrdered"] = num_of_times_ordered
        if total_ratings:
            detail["averageRating"] = format_rating(Decimal(str(average)), places=1)
        return detail

    def reviews(self, product_id: int, params: Mapping[str, Any]) -> Dict[str, Any]:
        if self.db.get(Product, product_id) is None:
            raise NotFoundError("Product not found.")
        page, limit = parse_pagination(params, msg_body=False)
        total = self.db.execute(
            select(func.count()).select_from(Review).where(Review.product_id == product_id)
        ).scalar_one()
        reviews = self.db.execute(
            select(Review)
            .where(Review.product_id == product_id)
            .order_by(Review.created_at.desc(), Review.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        ).scalars().all()
        return {"reviews": reviews, "page": page, "count": len(reviews), "total_results": total}
