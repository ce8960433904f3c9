from typing import Optional

from fastapi import APIRouter, Body, Depends, Request, Response
from sqlalchemy.orm import Session

from storefront.api.dependencies import end_session, owned_customer, requires
from storefront.application.access import Capability
from storefront.application.cart_service import CartService
from storefront.application.customer_service import CustomerService
from storefront.application.order_service import OrderService
from storefront.application.review_service import ReviewService
from storefront.application.schemas import (
    AddressesRead,
    CartEnvelope,
    CustomerDetailEnvelope,
    CustomerOrders,
    FavoritePage,
    OrderEnvelope,
    OrderHistory,
    ReviewPage,
    WishlistEnvelope,
)
from storefront.domain.models import Customer
from storefront.infrastructure.db import get_db

router = APIRouter(prefix="/customers/{customer_id}", tags=["customers"])

# Account

@router.get("", response_model=CustomerDetailEnvelope)
def get_customer(customer: Customer = Depends(owned_customer)):
    return {"customer": customer}

@router.put("", response_model=CustomerDetailEnvelope)
def update_customer(
    payload: Optional[dict] = Body(default=None),
    customer: Customer = Depends(owned_customer),
    db: Session = Depends(get_db),
):
    return {"customer": CustomerService(db).update(customer.id, payload)}

@router.delete("", status_code=204)
def delete_customer(response: Response, customer: Customer = Depends(owned_customer), db: Session = Depends(get_db)):
    CustomerService(db).delete(customer.id)
    end_session(response)
    return None

# Orders

@router.get("/orders", response_model=CustomerOrders)
def list_orders(customer: Customer = Depends(owned_customer), db: Session = Depends(get_db)):
    return {
        "id": customer.id,
        "name": customer.name,
        "username": customer.username,
        "orders": OrderService(db).list(customer),
    }

@router.post("/orders", response_model=OrderEnvelope, status_code=201)
def place_order(
    payload: Optional[dict] = Body(default=None),
    customer: Customer = Depends(owned_customer),
    db: Session = Depends(get_db),
):
    """Order a single item, or the whole cart when no item is given."""
    return {"order": OrderService(db).place_order(customer, payload)}

@router.get("/orders/{order_id}", response_model=OrderEnvelope)
def get_order(order_id: int, customer: Customer = Depends(owned_customer), db: Session = Depends(get_db)):
    return {"order": OrderService(db).get(customer, order_id)}

# Cart

@router.get("/cart", response_model=CartEnvelope)
def get_cart(customer: Customer = Depends(owned_customer)):
    return {"cart": customer}

@router.put("/cart", response_model=CartEnvelope)
def put_cart_item(
    payload: Optional[dict] = Body(default=None),
    customer: Customer = Depends(owned_customer),
    db: Session = Depends(get_db),
):
    return {"cart": CartService(db).put_cart_item(customer, payload)}

@router.delete("/cart", status_code=204)
def clear_cart(customer: Customer = Depends(owned_customer), db: Session = Depends(get_db)):
    CartService(db).clear_cart(customer)
    return None

# Wishlist

@router.get("/wishlist", response_model=WishlistEnvelope)
def get_wishlist(customer: Customer = Depends(owned_customer)):
    return {"wishlist": customer}

@router.put("/wishlist", response_model=WishlistEnvelope)
def add_to_wishlist(
    payload: Optional[dict] = Body(default=None),
    customer: Customer = Depends(owned_customer),
    db: Session = Depends(get_db),
):
    return {"wishlist": CartService(db).add_to_wishlist(customer, payload)}

@router.delete("/wishlist/{product_id}", status_code=204)
def remove_from_wishlist(product_id: int, customer: Customer = Depends(owned_customer), db: Session = Depends(get_db)):
    CartService(db).remove_from_wishlist(customer, product_id)
    return None

# Favourites, addresses and history

@router.get("/favorites", response_model=FavoritePage)
def list_favorites(request: Request, customer: Customer = Depends(owned_customer), db: Session = Depends(get_db)):
    return CustomerService(db).favorites(customer.id, request.query_params)

@router.get("/addresses", response_model=AddressesRead)
def get_addresses(customer: Customer = Depends(owned_customer), db: Session = Depends(get_db)):
    return CustomerService(db).addresses(customer.id)

@router.post("/addresses", response_model=AddressesRead)
def add_addresses(
    payload: Optional[dict] = Body(default=None),
    customer: Customer = Depends(owned_customer),
    db: Session = Depends(get_db),
):
    return CustomerService(db).add_addresses(customer.id, payload)

@router.delete("/addresses/{address_id}", status_code=204)
def remove_address(address_id: int, customer: Customer = Depends(owned_customer), db: Session = Depends(get_db)):
    CustomerService(db).remove_address(customer.id, address_id)
    return None

@router.get("/order-history/{product_id}", response_model=OrderHistory)
def get_order_history(product_id: int, customer: Customer = Depends(owned_customer), db: Session = Depends(get_db)):
    return CustomerService(db).order_history(customer.id, product_id)

# Public

@router.get(
    "/reviews",
    response_model=ReviewPage,
    dependencies=[Depends(requires(Capability.PUBLIC_READ))],
)
def list_customer_reviews(customer_id: int, request: Request, db: Session = Depends(get_db)):
    return ReviewService(db).by_customer(customer_id, request.query_params)
