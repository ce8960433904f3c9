from typing import Any, Mapping, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.core.errors import AuthenticationError, ConflictError
from storefront.core.logging_config import get_logger
from storefront.domain.models import Customer, OAuthProfile
from storefront.infrastructure.security import hash_password, verify_password
from .validation import SIGNUP_REQUIRED, SIGNUP_TYPED, SSO_REQUIRED, SSO_TYPED, validate_fields

logger = get_logger(__name__)

class AuthService:
    def __init__(self, db: Session):
        self.db = db

    def find_by_username(self, username: str) -> Optional[Customer]:
        return self.db.execute(
            select(Customer).where(Customer.username == username)
        ).scalar_one_or_none()

    def find_by_email(self, email: str) -> Optional[Customer]:
        return self.db.execute(
            select(Customer).where(Customer.email == email)
        ).scalar_one_or_none()

    def ensure_unique(self, username: Optional[str], email: Optional[str], exclude_id: Optional[int] = None) -> None:
        """Username is checked before email so the reported conflict is stable."""
        if username is not None:
            taken = self.find_by_username(username)
            if taken is not None and taken.id != exclude_id:
                raise ConflictError("That username is taken.")
        if email is not None:
            taken = self.find_by_email(email)
            if taken is not None and taken.id != exclude_id:
                raise ConflictError("Email already in use.")

    def _insert(self, customer: Customer) -> Customer:
        self.db.add(customer)
        try:
            self.db.commit()
        except IntegrityError:
            # Lost a race against a concurrent signup; report which field clashed
            self.db.rollback()
            self.ensure_unique(customer.username, customer.email)
            raise ConflictError("Username/email already in use.")
        self.db.refresh(customer)
        return customer

    def signup(self, body: Optional[Mapping[str, Any]]) -> Customer:
        data = validate_fields(body, SIGNUP_REQUIRED, SIGNUP_TYPED)
        self.ensure_unique(data["username"], data["email"])
        customer = Customer(
            name=data["name"],
            username=data["username"],
            email=data["email"],
            password=hash_password(data["password"]),
            phone=data.get("phone"),
            avatar=data.get("avatar"),
        )
        customer = self._insert(customer)
        logger.info(f"Customer {customer.id} signed up as {customer.username}")
        return customer

    def login(self, body: Optional[Mapping[str, Any]]) -> Customer:
        body = body or {}
        username, password = body.get("username"), body.get("password")
        customer = self.find_by_username(username) if isinstance(username, str) and username else None
        if customer is None:
            raise AuthenticationError("Invalid username.")
        if not isinstance(password, str) or not verify_password(password, customer.password):
            raise AuthenticationError("Invalid password.")
        logger.info(f"Customer {customer.id} logged in")
        return customer

    def sso(self, body: Optional[Mapping[str, Any]]) -> Tuple[Customer, bool]:
        """Sign in through an external identity, creating the account on first use.

        Returns the customer and whether it was created by this call.
        """
        data = validate_fields(body, SSO_REQUIRED, SSO_TYPED)
        profile = self.db.execute(
            select(OAuthProfile).where(
                OAuthProfile.auth_id == data["authId"],
                OAuthProfile.provider == data["provider"],
            )
        ).scalar_one_or_none()
        if profile is not None:
            logger.info(f"Customer {profile.customer_id} signed in with {profile.provider}")
            return profile.customer, False

        self.ensure_unique(data["email"], data["email"])
        customer = Customer(
            name=data["name"],
            username=data["email"],
            email=data["email"],
            avatar=data.get("thumbnail"),
            oauth=OAuthProfile(auth_id=data["authId"], provider=data["provider"]),
        )
        customer = self._insert(customer)
        logger.info(f"Customer {customer.id} signed up with {data['provider']}")
        return customer, True
