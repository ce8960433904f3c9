from typing import Any, Dict, Mapping, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from storefront.core.errors import NotFoundError
from storefront.core.logging_config import get_logger
from storefront.domain.models import Customer, Order, OrderItem, Product, Review
from storefront.infrastructure.security import hash_password
from .addresses import AddressReconciler
from .auth_service import AuthService
from .product_query import parse_pagination
from .validation import pick_fields, validate_addresses

logger = get_logger(__name__)

CUSTOMER_UPDATABLE = {
    "name": str,
    "username": str,
    "email": str,
    "phone": str,
    "avatar": str,
    "password": str,
}

class CustomerService:
    def __init__(self, db: Session):
        self.db = db

    def get(self, customer_id: int) -> Customer:
        customer = self.db.get(Customer, customer_id)
        if customer is None:
            raise NotFoundError("Customer not found.")
        return customer

    def update(self, customer_id: int, body: Optional[Mapping[str, Any]]) -> Customer:
        customer = self.get(customer_id)
        changes = pick_fields(body, CUSTOMER_UPDATABLE)
        if not changes:
            return customer

        AuthService(self.db).ensure_unique(
            changes.get("username"), changes.get("email"), exclude_id=customer.id
        )
        if "password" in changes:
            changes["password"] = hash_password(changes["password"])
        for field, value in changes.items():
            setattr(customer, field, value)
        self.db.commit()
        self.db.refresh(customer)
        logger.info(f"Customer {customer.id} updated fields: {', '.join(sorted(changes))}")
        return customer

    def delete(self, customer_id: int) -> None:
        customer = self.get(customer_id)
        self.db.delete(customer)
        self.db.commit()
        logger.info(f"Customer {customer_id} deleted")

    # Addresses

    def addresses(self, customer_id: int) -> Dict[str, Any]:
        customer = self.get(customer_id)
        return {
            "customer": customer,
            "billing_address": customer.billing_address,
            "shipping_address": customer.shipping_address,
        }

    def add_addresses(self, customer_id: int, body: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
        customer = self.get(customer_id)
        proposed = validate_addresses(body, require_both=False)
        resolved = AddressReconciler(self.db).reconcile(proposed)
        if "billingAddress" in resolved:
            customer.billing_address = resolved["billingAddress"]
        if "shippingAddress" in resolved:
            customer.shipping_address = resolved["shippingAddress"]
        self.db.commit()
        self.db.refresh(customer)
        return self.addresses(customer_id)

    def remove_address(self, customer_id: int, address_id: int) -> None:
        customer = self.get(customer_id)
        if address_id not in (customer.billing_address_id, customer.shipping_address_id):
            raise NotFoundError("Address not found.")
        # The row itself may be shared with orders or other customers
        if customer.billing_address_id == address_id:
            customer.billing_address_id = None
        if customer.shipping_address_id == address_id:
            customer.shipping_address_id = None
        self.db.commit()

    # Favourites and purchase history

    def favorites(self, customer_id: int, params: Mapping[str, Any]) -> Dict[str, Any]:
        self.get(customer_id)
        page, limit = parse_pagination(params, msg_body=False)
        recommended = (Review.customer_id == customer_id, Review.recommend.is_(True))
        total = self.db.execute(select(func.count()).select_from(Review).where(*recommended)).scalar_one()
        reviews = self.db.execute(
            select(Review)
            .where(*recommended)
            .order_by(Review.created_at.desc(), Review.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        ).scalars().all()
        favorites = [
            {
                "id": review.id,
                "added_at": review.created_at,
                "recommend": review.recommend,
                "rating": review.rating,
                "title": review.title,
                "product": review.product,
            }
            for review in reviews
        ]
        return {"favorites": favorites, "page": page, "count": len(favorites), "total_results": total}

    def order_history(self, customer_id: int, product_id: int) -> Dict[str, Any]:
        self.get(customer_id)
        if self.db.get(Product, product_id) is None:
            raise NotFoundError(f"Product with id {product_id} does not exist.")

        last_order = self.db.execute(
            select(Order)
            .join(OrderItem, OrderItem.order_id == Order.id)
            .where(Order.customer_id == customer_id, OrderItem.product_id == product_id)
            .order_by(Order.created_at.desc(), Order.id.desc())
            .limit(1)
        ).scalar_one_or_none()
        review = self.db.execute(
            select(Review)
            .where(Review.customer_id == customer_id, Review.product_id == product_id)
            .order_by(Review.id.desc())
            .limit(1)
        ).scalar_one_or_none()

        return {
            "product_id": product_id,
            "last_ordered": (
                {"order_id": last_order.id, "order_date": last_order.created_at}
                if last_order else None
            ),
            "review": review,
        }
