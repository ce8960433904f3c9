from typing import Optional

from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session

from storefront.api.dependencies import owned_review, requires
from storefront.application.access import Capability, Principal
from storefront.application.review_service import ReviewService
from storefront.application.schemas import ReviewEnvelope
from storefront.domain.models import Review
from storefront.infrastructure.db import get_db

router = APIRouter(prefix="/reviews", tags=["reviews"])

@router.get("/{review_id}", response_model=ReviewEnvelope, dependencies=[Depends(requires(Capability.PUBLIC_READ))])
def get_review(review_id: int, db: Session = Depends(get_db)):
    return {"review": ReviewService(db).get(review_id)}

@router.post("", response_model=ReviewEnvelope, status_code=201)
def create_review(
    payload: Optional[dict] = Body(default=None),
    principal: Principal = Depends(requires(Capability.AUTHENTICATED)),
    db: Session = Depends(get_db),
):
    return {"review": ReviewService(db).create(principal, payload)}

@router.put("/{review_id}", response_model=ReviewEnvelope)
def update_review(
    payload: Optional[dict] = Body(default=None),
    review: Review = Depends(owned_review),
    db: Session = Depends(get_db),
):
    return {"review": ReviewService(db).update(review, payload)}

@router.delete("/{review_id}", status_code=204)
def delete_review(review: Review = Depends(owned_review), db: Session = Depends(get_db)):
    ReviewService(db).delete(review)
    return None
