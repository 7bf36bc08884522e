"""
Tests for host token resolution
"""

import pytest

from whispqr.services.errors import AuthorizationError
from whispqr.services.identity import StaticTokenIdentityGateway

@pytest.fixture
def gateway():
    return StaticTokenIdentityGateway("host-secret", "host-1", "Ada")

def test_configured_token_resolves_to_host(gateway):
    identity = gateway.resolve("host-secret")
    assert identity.host_id == "host-1"
    assert identity.display_name == "Ada"

@pytest.mark.parametrize("token", ["", "host-secret ", "wrong", "café", "cafÃ©", "日本語"])
def test_other_tokens_are_rejected(gateway, token):
    with pytest.raises(AuthorizationError):
        gateway.resolve(token)
