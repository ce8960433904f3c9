import pytest

from storefront.application.access import (
    Capability,
    Principal,
    authenticate,
    authorize,
    check_capability,
)
from storefront.core.errors import AuthenticationError, AuthorizationError

ALICE = Principal(id=1, username="alice")

def test_authenticate_requires_principal():
    with pytest.raises(AuthenticationError) as exc:
        authenticate(None)
    assert exc.value.status_code == 401
    assert exc.value.info == "Unauthenticated."

def test_authorize_rejects_other_owner():
    with pytest.raises(AuthorizationError) as exc:
        authorize(ALICE, owner_id=2)
    assert exc.value.status_code == 403
    assert exc.value.info == "Unauthorised."

def test_authorize_allows_owner():
    assert authorize(ALICE, owner_id=1) is ALICE

def test_public_read_allows_anonymous():
    assert check_capability(Capability.PUBLIC_READ, None) is None

def test_authenticated_capability():
    assert check_capability(Capability.AUTHENTICATED, ALICE) is ALICE
    with pytest.raises(AuthenticationError):
        check_capability(Capability.AUTHENTICATED, None)

def test_owner_only_checks_authentication_first():
    with pytest.raises(AuthenticationError):
        check_capability(Capability.OWNER_ONLY, None, owner_id=2)

def test_owner_only_capability():
    assert check_capability(Capability.OWNER_ONLY, ALICE, owner_id=1) is ALICE
    with pytest.raises(AuthorizationError):
        check_capability(Capability.OWNER_ONLY, ALICE, owner_id=2)
