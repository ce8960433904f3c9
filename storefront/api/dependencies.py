"""Request-scoped principal, route capabilities and session cookie helpers."""

from typing import Callable, Optional

from fastapi import Depends, Request, Response
from sqlalchemy.orm import Session

from storefront.application.access import Capability, Principal, authorize, check_capability
from storefront.application.customer_service import CustomerService
from storefront.application.review_service import ReviewService
from storefront.core.logging_config import set_request_context
from storefront.core_settings import get_settings
from storefront.domain.models import Customer, Review
from storefront.infrastructure.db import get_db
from storefront.infrastructure.security import create_session_token, decode_session_token

settings = get_settings()

async def get_principal(request: Request) -> Optional[Principal]:
    token = request.cookies.get(settings.SESSION_COOKIE_NAME)
    if not token:
        return None
    claims = decode_session_token(token)
    if not claims or not str(claims.get("sub", "")).isdigit():
        return None
    principal = Principal(id=int(claims["sub"]), username=claims.get("username", ""))
    set_request_context(user_id=str(principal.id))
    return principal

def requires(capability: Capability) -> Callable[..., Optional[Principal]]:
    """Dependency enforcing ``capability`` for a route.

    Owner-only routes are mounted under ``/customers/{customer_id}`` and are
    checked against that path id.
    """
    if capability is Capability.OWNER_ONLY:
        def owner_guard(
            customer_id: int,
            principal: Optional[Principal] = Depends(get_principal),
            db: Session = Depends(get_db),
        ):
            return check_capability(capability, existing_principal(principal, db), customer_id)
        return owner_guard

    if capability is Capability.PUBLIC_READ:
        def public_guard(principal: Optional[Principal] = Depends(get_principal)):
            return check_capability(capability, principal)
        return public_guard

    def guard(principal: Optional[Principal] = Depends(get_principal), db: Session = Depends(get_db)):
        return check_capability(capability, existing_principal(principal, db))
    return guard

def existing_principal(principal: Optional[Principal], db: Session) -> Optional[Principal]:
    """Drop a principal whose account has since been deleted."""
    if principal is None or db.get(Customer, principal.id) is None:
        return None
    return principal

def owned_customer(
    customer_id: int,
    principal: Principal = Depends(requires(Capability.OWNER_ONLY)),
    db: Session = Depends(get_db),
) -> Customer:
    return CustomerService(db).get(customer_id)

def owned_review(
    review_id: int,
    principal: Principal = Depends(requires(Capability.AUTHENTICATED)),
    db: Session = Depends(get_db),
) -> Review:
    # Loaded first so a missing review is a 404 rather than a 403
    review = ReviewService(db).get(review_id)
    authorize(principal, review.customer_id)
    return review

def start_session(response: Response, customer: Customer) -> None:
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=create_session_token(customer.id, customer.username),
        max_age=settings.SESSION_TTL_MINUTES * 60,
        httponly=True,
        secure=settings.SESSION_COOKIE_SECURE,
        samesite="lax",
    )

def end_session(response: Response) -> None:
    response.delete_cookie(
        key=settings.SESSION_COOKIE_NAME,
        httponly=True,
        secure=settings.SESSION_COOKIE_SECURE,
        samesite="lax",
    )
