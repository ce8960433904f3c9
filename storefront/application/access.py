"""Access decisions over (principal, resource owner).

The principal is request-scoped and always passed in explicitly; nothing here
holds session state.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from storefront.core.errors import AuthenticationError, AuthorizationError


class Capability(str, Enum):
    """Access level a route declares when it is registered."""
    PUBLIC_READ = "public-read"
    AUTHENTICATED = "authenticated"
    OWNER_ONLY = "owner-only"


@dataclass(frozen=True)
class Principal:
    id: int
    username: str


def authenticate(principal: Optional[Principal]) -> Principal:
    if principal is None:
        raise AuthenticationError()
    return principal


def authorize(principal: Principal, owner_id: int) -> Principal:
    """Allow only the principal owning the (already loaded) resource."""
    if principal.id != owner_id:
        raise AuthorizationError()
    return principal


def check_capability(capability: Capability, principal: Optional[Principal], owner_id: Optional[int] = None) -> Optional[Principal]:
    if capability is Capability.PUBLIC_READ:
        return principal
    principal = authenticate(principal)
    if capability is Capability.OWNER_ONLY:
        if owner_id is None:
            raise ValueError("owner-only access needs the resource owner id")
        authorize(principal, owner_id)
    return principal
