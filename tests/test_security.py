"""Tests for password hashing and access tokens."""
from datetime import timedelta
from jose import jwt
from quarry_ledger.core.auth import create_access_token
from quarry_ledger.core.config import settings
from quarry_ledger.core.security import hash_password, verify_password


class TestPasswordHashing:
    """Test password hashing and verification."""

    def test_hash_password_returns_string(self):
        hashed = hash_password("GatePass2024")

        assert isinstance(hashed, str)
        assert hashed != "GatePass2024"

    def test_hash_password_different_outputs(self):
        """Same password hashes differently (different salts)."""
        assert hash_password("GatePass2024") != hash_password("GatePass2024")

    def test_verify_password_correct(self):
        hashed = hash_password("GatePass2024")

        assert verify_password("GatePass2024", hashed) is True

    def test_verify_password_incorrect(self):
        hashed = hash_password("GatePass2024")

        assert verify_password("WrongPass", hashed) is False
        assert verify_password("", hashed) is False

    def test_hash_password_unicode(self):
        hashed = hash_password("पासवर्ड123")

        assert verify_password("पासवर्ड123", hashed) is True
        assert verify_password("पासवर्ड", hashed) is False


class TestAccessToken:
    def test_token_carries_identity_and_role(self, admin_user):
        token = create_access_token(admin_user)

        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        assert payload["sub"] == str(admin_user.id)
        assert payload["username"] == "admin"
        assert payload["role"] == "admin"
        assert payload["exp"] > payload["iat"]

    def test_custom_expiry(self, clerk_user):
        token = create_access_token(clerk_user, expires_delta=timedelta(minutes=5))

        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        assert payload["exp"] - payload["iat"] == 300
