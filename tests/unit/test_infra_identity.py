import pytest
from unittest.mock import MagicMock
from supabase import AuthApiError, AuthRetryableError

from curadoria.infra import identity

def _client(get_user):
    client = MagicMock()
    client.auth.get_user.side_effect = get_user
    return client

def test_resolve_user_id_from_object_user(monkeypatch):
    user = MagicMock(id="u1", email="u1@example.com", user_metadata={})
    monkeypatch.setattr("curadoria.infra.supabase_client.get_supabase", lambda: _client(lambda token: MagicMock(user=user)))
    assert identity.resolve_user_id("jwt") == "u1"

def test_no_token_no_call(monkeypatch):
    client = _client(lambda token: None)
    monkeypatch.setattr("curadoria.infra.supabase_client.get_supabase", lambda: client)
    assert identity.resolve_user_id(None) is None
    client.auth.get_user.assert_not_called()

def test_rejected_token_is_anonymous(monkeypatch):
    def _reject(token):
        raise AuthApiError("invalid JWT", 401, "bad_jwt")
    monkeypatch.setattr("curadoria.infra.supabase_client.get_supabase", lambda: _client(_reject))
    assert identity.resolve_user_id("expired") is None

def test_provider_down_is_an_error(monkeypatch):
    def _down(token):
        raise AuthRetryableError("upstream unavailable", 503)
    monkeypatch.setattr("curadoria.infra.supabase_client.get_supabase", lambda: _client(_down))
    with pytest.raises(identity.IdentityError):
        identity.resolve_user_id("jwt")
