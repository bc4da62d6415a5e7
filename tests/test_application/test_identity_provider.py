"""Tests for the password identity provider"""
import pytest

from workhub.infrastructure.db.models import AuthUser
from workhub.infrastructure.identity import (
    EMAIL_EXISTS, INVALID_CREDENTIALS, INVALID_EMAIL, WEAK_PASSWORD,
    IdentityProvider, IdentityProviderError, hash_password, verify_password,
)


class TestPasswords:
    def test_hash_roundtrip(self):
        hashed = hash_password("secret123")
        assert hashed.startswith("$pbkdf2-sha256$")
        assert verify_password("secret123", hashed)
        assert not verify_password("wrong", hashed)


class TestSignUp:
    def test_normalizes_email(self, db_session):
        user_id = IdentityProvider(db_session).sign_up("  Taro@Example.COM ", "secret123")
        assert db_session.get(AuthUser, user_id).email == "taro@example.com"

    def test_duplicate_email(self, db_session):
        provider = IdentityProvider(db_session)
        provider.sign_up("taro@example.com", "secret123")
        with pytest.raises(IdentityProviderError) as exc_info:
            provider.sign_up("TARO@example.com", "secret456")
        assert exc_info.value.code == EMAIL_EXISTS

    @pytest.mark.parametrize("email, password, code", [
        ("not-an-email", "secret123", INVALID_EMAIL),
        ("taro@example.com", "12345", WEAK_PASSWORD),
    ])
    def test_rejected_input(self, db_session, email, password, code):
        with pytest.raises(IdentityProviderError) as exc_info:
            IdentityProvider(db_session).sign_up(email, password)
        assert exc_info.value.code == code


class TestSignIn:
    def test_valid_credentials(self, db_session):
        provider = IdentityProvider(db_session)
        user_id = provider.sign_up("taro@example.com", "secret123")
        assert provider.sign_in_with_password("Taro@example.com", "secret123") == user_id

    def test_wrong_password(self, db_session):
        provider = IdentityProvider(db_session)
        provider.sign_up("taro@example.com", "secret123")
        with pytest.raises(IdentityProviderError) as exc_info:
            provider.sign_in_with_password("taro@example.com", "nope")
        assert exc_info.value.code == INVALID_CREDENTIALS


class TestSessions:
    def test_establish_replaces_previous_session(self):
        session = {"user_id": "old", "google_access_token": "tok"}
        IdentityProvider.establish_session(session, "new")
        assert session == {"user_id": "new"}

    def test_clear(self):
        session = {"user_id": "old"}
        IdentityProvider.clear_session(session)
        assert session == {}


def test_delete_missing_user(db_session):
    with pytest.raises(IdentityProviderError):
        IdentityProvider(db_session).delete_user("missing")
