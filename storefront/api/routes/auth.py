from typing import Optional

from fastapi import APIRouter, Body, Depends, Response
from sqlalchemy.orm import Session

from storefront.api.dependencies import end_session, requires, start_session
from storefront.application.access import Capability, Principal
from storefront.application.auth_service import AuthService
from storefront.application.schemas import CustomerEnvelope, MessageRead
from storefront.infrastructure.db import get_db

router = APIRouter(tags=["auth"])

@router.post("/signup", response_model=CustomerEnvelope, status_code=201)
def signup(response: Response, payload: Optional[dict] = Body(default=None), db: Session = Depends(get_db)):
    customer = AuthService(db).signup(payload)
    start_session(response, customer)
    return {"customer": customer}

@router.post("/sso", response_model=CustomerEnvelope)
def sso(response: Response, payload: Optional[dict] = Body(default=None), db: Session = Depends(get_db)):
    """Single sign-on: 201 when the account is created, 200 when it already existed."""
    customer, created = AuthService(db).sso(payload)
    start_session(response, customer)
    response.status_code = 201 if created else 200
    return {"customer": customer}

@router.post("/login", response_model=CustomerEnvelope)
def login(response: Response, payload: Optional[dict] = Body(default=None), db: Session = Depends(get_db)):
    customer = AuthService(db).login(payload)
    start_session(response, customer)
    return {"customer": customer}

@router.post("/logout", response_model=MessageRead)
def logout(response: Response, principal: Principal = Depends(requires(Capability.AUTHENTICATED))):
    end_session(response)
    return {"msg": f"{principal.username} is now logged out."}
