from typing import Any, Mapping, Optional

from sqlalchemy.orm import Session

from storefront.core.errors import NotFoundError, ValidationError
from storefront.core.logging_config import get_logger
from storefront.domain.models import CartItem, Customer, Product, WishlistItem
from .validation import positive_int

logger = get_logger(__name__)

class CartService:
    """Cart and wishlist membership for a single customer."""

    def __init__(self, db: Session):
        self.db = db

    def _product(self, raw_id: Any) -> Product:
        if raw_id is None or raw_id == "":
            raise ValidationError("Request must include product id.")
        product_id = positive_int(raw_id)
        product = self.db.get(Product, product_id) if product_id else None
        if product is None:
            raise NotFoundError("Product id is invalid. Item does not exist.")
        return product

    def put_cart_item(self, customer: Customer, body: Optional[Mapping[str, Any]]) -> Customer:
        body = body or {}
        product = self._product(body.get("productId"))
        raw_quantity = body.get("quantity", 1)
        removing = raw_quantity == "0" or (raw_quantity == 0 and not isinstance(raw_quantity, bool))
        quantity = 0 if removing else positive_int(raw_quantity)
        if quantity is None:
            raise ValidationError("Cart item must contain a valid quantity value.")

        entry = self.db.get(CartItem, (customer.id, product.id))
        if quantity == 0:
            if entry is not None:
                self.db.delete(entry)
        else:
            if quantity > product.stock:
                raise ValidationError("Insufficient stock.")
            if entry is None:
                self.db.add(CartItem(customer_id=customer.id, product_id=product.id, quantity=quantity))
            else:
                entry.quantity = quantity
        self.db.commit()
        self.db.refresh(customer)
        return customer

    def clear_cart(self, customer: Customer) -> None:
        for entry in list(customer.cart_items):
            self.db.delete(entry)
        self.db.commit()
        logger.info(f"Cart emptied for customer {customer.id}")

    def add_to_wishlist(self, customer: Customer, body: Optional[Mapping[str, Any]]) -> Customer:
        product = self._product((body or {}).get("productId"))
        if self.db.get(WishlistItem, (customer.id, product.id)) is None:
            self.db.add(WishlistItem(customer_id=customer.id, product_id=product.id))
            self.db.commit()
        self.db.refresh(customer)
        return customer

    def remove_from_wishlist(self, customer: Customer, product_id: int) -> None:
        entry = self.db.get(WishlistItem, (customer.id, product_id))
        if entry is None:
            raise NotFoundError("Product is not in the wishlist.")
        self.db.delete(entry)
        self.db.commit()
