from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from storefront.api.dependencies import requires
from storefront.application.access import Capability
from storefront.application.product_service import ProductService
from storefront.application.schemas import BestSellerPage, ProductPage, ReviewPage
from storefront.infrastructure.db import get_db

router = APIRouter(
    prefix="/products",
    tags=["products"],
    dependencies=[Depends(requires(Capability.PUBLIC_READ))],
)

@router.get("", response_model=ProductPage)
def list_products(request: Request, db: Session = Depends(get_db)):
    """Filter, sort and paginate the catalogue."""
    return ProductService(db).list(request.query_params)

@router.get("/bestsellers", response_model=BestSellerPage)
def list_bestsellers(request: Request, db: Session = Depends(get_db)):
    return ProductService(db).bestsellers(request.query_params)

@router.get("/{product_id}")
def get_product(product_id: int, db: Session = Depends(get_db)):
    return ProductService(db).detail(product_id)

@router.get("/{product_id}/reviews", response_model=ReviewPage)
def list_product_reviews(product_id: int, request: Request, db: Session = Depends(get_db)):
    return ProductService(db).reviews(product_id, request.query_params)
