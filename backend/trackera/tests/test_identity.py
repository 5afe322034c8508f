"""
Identity store and token handler tests.
"""
from uuid import uuid4
import pytest

from trackera.auth.identity import IdentityError
from trackera.auth.jwt_handler import JWTHandler, PasswordHandler


class TestIdentityStore:

    def test_create_and_authenticate(self, identity_store):
        identity = identity_store.create_user("ada@acme.example.com", "Secret123", email_confirm=True)

        assert identity.email_confirmed_at is not None
        assert identity.encrypted_password != "Secret123"
        assert identity_store.authenticate("ada@acme.example.com", "Secret123").id == identity.id
        assert identity_store.authenticate("ada@acme.example.com", "wrong") is None
        assert identity_store.authenticate("nobody@acme.example.com", "Secret123") is None

    def test_duplicate_email(self, identity_store):
        identity_store.create_user("ada@acme.example.com", "Secret123")

        with pytest.raises(IdentityError, match="already been registered"):
            identity_store.create_user("ada@acme.example.com", "Other456")

    def test_update_merges_metadata(self, identity_store):
        identity = identity_store.create_user("ada@acme.example.com", "Secret123", user_metadata={"tenant_id": "t1"})

        identity_store.update_user_by_id(identity.id, email="ada@new.example.com", user_metadata={"employee_id": "e1"})

        updated = identity_store.get_user_by_id(identity.id)
        assert updated.email == "ada@new.example.com"
        assert updated.user_metadata == {"tenant_id": "t1", "employee_id": "e1"}

    def test_update_password(self, identity_store):
        identity = identity_store.create_user("ada@acme.example.com", "Secret123")

        identity_store.update_user_by_id(identity.id, password="Changed789")

        assert identity_store.authenticate("ada@acme.example.com", "Changed789") is not None

    def test_update_unknown(self, identity_store):
        with pytest.raises(IdentityError):
            identity_store.update_user_by_id(uuid4(), password="whatever")

    def test_delete(self, identity_store):
        identity = identity_store.create_user("ada@acme.example.com", "Secret123")

        identity_store.delete_user(identity.id)

        assert identity_store.get_user_by_email("ada@acme.example.com") is None
        with pytest.raises(IdentityError):
            identity_store.delete_user(identity.id)


class TestTokens:

    @pytest.fixture
    def payload(self):
        return JWTHandler.build_payload(
            user_id=uuid4(),
            tenant_id=uuid4(),
            email="ada@acme.example.com",
            username="ada@acme.example.com",
            roles=[{"role": "EMPLOYEE", "scope_type": "TENANT", "scope_id": None}]
        )

    def test_access_token_round_trip(self, payload):
        decoded = JWTHandler.verify_access_token(JWTHandler.create_access_token(payload))

        assert decoded["sub"] == payload["sub"]
        assert decoded["tenant_id"] == payload["tenant_id"]
        assert decoded["employee_id"] is None
        assert decoded["type"] == "access"

    def test_token_types_are_not_interchangeable(self, payload):
        access = JWTHandler.create_access_token(payload)
        refresh = JWTHandler.create_refresh_token(payload)

        assert JWTHandler.verify_refresh_token(access) is None
        assert JWTHandler.verify_access_token(refresh) is None

    def test_tampered_token(self, payload):
        assert JWTHandler.verify_access_token(JWTHandler.create_access_token(payload) + "x") is None


def test_generated_passwords_are_alphanumeric():
    password = PasswordHandler.generate_password()

    assert len(password) == 12
    assert password.isalnum()
    assert PasswordHandler.generate_password() != password
