from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from storefront.core.errors import NotFoundError, ValidationError
from storefront.core.logging_config import get_logger
from storefront.domain.models import CartItem, Customer, Order, OrderItem, Product
from .addresses import AddressReconciler
from .validation import validate_addresses, validate_order_item, validate_payment

logger = get_logger(__name__)

ORDER_STATUS_COMPLETED = "completed"

class OrderService:
    def __init__(self, db: Session):
        self.db = db

    def list(self, customer: Customer) -> List[Order]:
        return self.db.execute(
            select(Order).where(Order.customer_id == customer.id).order_by(Order.id)
        ).scalars().all()

    def get(self, customer: Customer, order_id: int) -> Order:
        order = self.db.get(Order, order_id)
        if order is None or order.customer_id != customer.id:
            raise NotFoundError("Order not found.")
        return order

    def _lines_from_cart(self, customer: Customer) -> List[Dict[str, int]]:
        cart = self.db.execute(
            select(CartItem).where(CartItem.customer_id == customer.id).order_by(CartItem.product_id)
        ).scalars().all()
        if not cart:
            raise ValidationError("Cart is empty.")
        for entry in cart:
            if entry.quantity > entry.product.stock:
                raise ValidationError("Insufficient stock.")
        return [{"product_id": entry.product_id, "quantity": entry.quantity} for entry in cart]

    def decrement_stock(self, product_id: int, quantity: int) -> None:
        """Guarded decrement; fails instead of letting stock go negative."""
        result = self.db.execute(
            update(Product)
            .where(Product.id == product_id, Product.stock >= quantity)
            .values(stock=Product.stock - quantity)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise ValidationError("Insufficient stock.")

    def place_order(self, customer: Customer, body: Optional[Mapping[str, Any]]) -> Order:
        addresses = validate_addresses(body, require_both=True)
        payment = validate_payment(body)
        item = validate_order_item(body, self.db)
        from_cart = item is None
        lines = self._lines_from_cart(customer) if from_cart else [item]

        try:
            resolved = AddressReconciler(self.db).reconcile(addresses)
            order = Order(
                customer_id=customer.id,
                billing_address_id=resolved["billingAddress"].id,
                shipping_address_id=resolved["shippingAddress"].id,
                status=ORDER_STATUS_COMPLETED,
                payment_method=payment["payment_method"],
                total=payment["total"],
            )
            self.db.add(order)
            self.db.flush()

            for line in lines:
                self.decrement_stock(line["product_id"], line["quantity"])
                self.db.add(OrderItem(order_id=order.id, **line))

            if from_cart:
                for entry in list(customer.cart_items):
                    self.db.delete(entry)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        # Stock was changed behind the identity map
        self.db.expire_all()
        logger.info(
            f"Order {order.id} placed by customer {customer.id}",
            extra={'extra_fields': {'order_id': order.id, 'items': len(lines), 'from_cart': from_cart}}
        )
        return self.get(customer, order.id)
