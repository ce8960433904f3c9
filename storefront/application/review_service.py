from typing import Any, Dict, Mapping, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from storefront.core.errors import NotFoundError, ValidationError
from storefront.core.logging_config import get_logger
from storefront.domain.models import Customer, Order, Product, Review
from .access import Principal
from .product_query import parse_pagination
from .validation import pick_fields, positive_int, validate_fields

logger = get_logger(__name__)

REVIEW_REQUIRED = ("productId", "title", "body", "rating")
REVIEW_TYPED = ("title", "body")
REVIEW_UPDATABLE = {
    "title": str,
    "body": str,
    "rating": int,
    "recommend": bool,
}
RATING_RANGE = range(1, 6)

def check_rating(rating: Any) -> int:
    if isinstance(rating, bool) or not isinstance(rating, int) or rating not in RATING_RANGE:
        raise ValidationError("Rating must be an integer between 1 and 5.")
    return rating

class ReviewService:
    def __init__(self, db: Session):
        self.db = db

    def get(self, review_id: int) -> Review:
        review = self.db.get(Review, review_id)
        if review is None:
            raise NotFoundError("Review not found.")
        return review

    def create(self, principal: Principal, body: Optional[Mapping[str, Any]]) -> Review:
        data = validate_fields(body, REVIEW_REQUIRED, REVIEW_TYPED)
        rating = check_rating(data["rating"])
        recommend = data.get("recommend", False)
        if not isinstance(recommend, bool):
            raise ValidationError("Field `recommend` must be a boolean.")

        product_id = positive_int(data["productId"])
        if product_id is None or self.db.get(Product, product_id) is None:
            raise NotFoundError("Product id is invalid. Item does not exist.")

        order_id = data.get("orderId")
        if order_id is not None:
            order_id = positive_int(order_id)
            order = self.db.get(Order, order_id) if order_id else None
            if order is None or order.customer_id != principal.id:
                raise NotFoundError("Order not found.")
            order_id = order.id

        review = Review(
            customer_id=principal.id,
            product_id=product_id,
            order_id=order_id,
            title=data["title"],
            body=data["body"],
            rating=rating,
            recommend=recommend,
        )
        self.db.add(review)
        self.db.commit()
        self.db.refresh(review)
        logger.info(f"Review {review.id} created by customer {principal.id} for product {product_id}")
        return review

    def update(self, review: Review, body: Optional[Mapping[str, Any]]) -> Review:
        changes = pick_fields(body, REVIEW_UPDATABLE)
        if "rating" in changes:
            check_rating(changes["rating"])
        for field, value in changes.items():
            setattr(review, field, value)
        self.db.commit()
        self.db.refresh(review)
        return review

    def delete(self, review: Review) -> None:
        self.db.delete(review)
        self.db.commit()
        logger.info(f"Review {review.id} deleted")

    def by_customer(self, customer_id: int, params: Mapping[str, Any]) -> Dict[str, Any]:
        if self.db.get(Customer, customer_id) is None:
            raise NotFoundError("Customer not found.")
        page, limit = parse_pagination(params, msg_body=False)
        total = self.db.execute(
            select(func.count()).select_from(Review).where(Review.customer_id == customer_id)
        ).scalar_one()
        reviews = self.db.execute(
            select(Review)
            .where(Review.customer_id == customer_id)
            .order_by(Review.created_at.desc(), Review.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        ).scalars().all()
        return {"reviews": reviews, "page": page, "count": len(reviews), "total_results": total}
