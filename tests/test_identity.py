import pytest

from triage.errors import IdentityError
from triage.identity import TokenOrAnonymousIdentityProvider


def test_no_identity_until_established():
    assert TokenOrAnonymousIdentityProvider().current_identity() is None


def test_token_identity_is_stable():
    first = TokenOrAnonymousIdentityProvider(auth_token="abc").establish_identity()
    second = TokenOrAnonymousIdentityProvider(auth_token="abc").establish_identity()
    assert first == second
    assert first.startswith("user-")


def test_anonymous_identity_is_kept():
    provider = TokenOrAnonymousIdentityProvider()
    user_id = provider.establish_identity()
    assert user_id.startswith("anon-")
    assert provider.current_identity() == user_id


def test_anonymous_disabled_without_token():
    provider = TokenOrAnonymousIdentityProvider(allow_anonymous=False)
    with pytest.raises(IdentityError):
        provider.establish_identity()
    assert provider.current_identity() is None
