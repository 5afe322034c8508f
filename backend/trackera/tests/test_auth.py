"""
Authentication and authorization tests.

Tests cover tenant-scoped login, token refresh, the current user profile and
the tenant guard applied to tenant routes.
"""
from uuid import uuid4
from fastapi import status

from trackera.auth.jwt_handler import JWTHandler
from trackera.database.models import Role, UserStatus
from trackera.schemas.admin import UpdateUserRequest

from .test_base import BaseAPITest


class TestAuthentication(BaseAPITest):
    """Test cases for login, refresh and profile."""

    def _login(self, client, tenant_id, **body):
        return client.post("/api/v1/auth/login", json=body, headers={"X-Tenant-ID": str(tenant_id)})

    def test_login_success(self, client, factory, tenant):
        """Login returns a token pair and the user profile."""
        employee = factory.employee(tenant, "Ada", "Lovelace", "ada@acme.example.com")
        user = factory.user(tenant, employee)

        result = self._login(client, tenant.id, email="ada@acme.example.com", password=user.password)

        self.assert_success_response(result)
        data = result.json()
        assert data["accessToken"]
        assert data["refreshToken"]
        assert data["tokenType"] == "bearer"
        assert data["user"]["id"] == str(user.id)
        assert data["user"]["tenantId"] == str(tenant.id)
        assert data["user"]["employeeId"] == str(employee.id)
        assert [r["role"] for r in data["user"]["roles"]] == ["EMPLOYEE"]

        payload = JWTHandler.verify_access_token(data["accessToken"])
        assert payload["sub"] == str(user.id)
        assert payload["tenant_id"] == str(tenant.id)
        assert payload["employee_id"] == str(employee.id)

    def test_login_with_username(self, client, factory, tenant):
        """The username (defaults to the email) identifies the user too."""
        employee = factory.employee(tenant, "Ada", "Lovelace", "ada@acme.example.com")
        user = factory.user(tenant, employee)

        result = self._login(client, tenant.id, username="ada@acme.example.com", password=user.password)

        self.assert_success_response(result)

    def test_login_requires_tenant_header(self, client, factory, tenant):
        employee = factory.employee(tenant, "Ada", "Lovelace", "ada@acme.example.com")
        user = factory.user(tenant, employee)

        result = client.post("/api/v1/auth/login", json={"email": user.email, "password": user.password})

        self.assert_unauthorized(result, "Tenant ID header (x-tenant-id) required for login")

    def test_login_invalid_password(self, client, factory, tenant):
        employee = factory.employee(tenant, "Ada", "Lovelace", "ada@acme.example.com")
        factory.user(tenant, employee)

        result = self._login(client, tenant.id, email="ada@acme.example.com", password="wrong-password")

        self.assert_unauthorized(result, "Invalid credentials")

    def test_login_other_tenant(self, client, factory, tenant):
        """A user cannot log in to a tenant it does not belong to."""
        other = factory.tenant("Globex")
        employee = factory.employee(tenant, "Ada", "Lovelace", "ada@acme.example.com")
        user = factory.user(tenant, employee)

        result = self._login(client, other.id, email=user.email, password=user.password)

        self.assert_unauthorized(result, "Invalid credentials")

    def test_login_disabled_user(self, client, factory, admin_service, tenant):
        employee = factory.employee(tenant, "Ada", "Lovelace", "ada@acme.example.com")
        user = factory.user(tenant, employee)
        admin_service.update_user(user.id, UpdateUserRequest(status=UserStatus.DISABLED))

        result = self._login(client, tenant.id, email=user.email, password=user.password)

        self.assert_unauthorized(result, "Invalid credentials")

    def test_login_short_password(self, client, tenant):
        result = self._login(client, tenant.id, email="ada@acme.example.com", password="short")

        self.assert_validation_error(result, "password")

    def test_login_requires_email_or_username(self, client, tenant):
        result = self._login(client, tenant.id, password="long-enough-password")

        self.assert_validation_error(result)

    def test_refresh_issues_new_pair(self, client, factory, tenant):
        employee = factory.employee(tenant, "Ada", "Lovelace", "ada@acme.example.com")
        user = factory.user(tenant, employee)
        tokens = self._login(client, tenant.id, email=user.email, password=user.password).json()

        result = client.post("/api/v1/auth/refresh", json={"refreshToken": tokens["refreshToken"]})

        self.assert_success_response(result)
        refreshed = result.json()
        me = client.get(
            "/api/v1/auth/me",
            headers={"Authorization": f"Bearer {refreshed['accessToken']}"}
        )
        self.assert_success_response(me)
        assert me.json()["email"] == "ada@acme.example.com"

    def test_refresh_picks_up_role_change(self, client, factory, admin_service, tenant):
        employee = factory.employee(tenant, "Ada", "Lovelace", "ada@acme.example.com")
        user = factory.user(tenant, employee)
        tokens = self._login(client, tenant.id, email=user.email, password=user.password).json()
        admin_service.update_user(user.id, UpdateUserRequest(role=Role.ADMIN))

        result = client.post("/api/v1/auth/refresh", json={"refreshToken": tokens["refreshToken"]})

        self.assert_success_response(result)
        assert [r["role"] for r in result.json()["user"]["roles"]] == ["ADMIN"]

    def test_refresh_rejects_access_token(self, client, factory, tenant):
        employee = factory.employee(tenant, "Ada", "Lovelace", "ada@acme.example.com")
        user = factory.user(tenant, employee)
        tokens = self._login(client, tenant.id, email=user.email, password=user.password).json()

        result = client.post("/api/v1/auth/refresh", json={"refreshToken": tokens["accessToken"]})

        self.assert_unauthorized(result, "Invalid refresh token")

    def test_get_current_user(self, client, worker):
        employee, headers = worker

        result = client.get("/api/v1/auth/me", headers=headers)

        self.assert_success_response(result)
        data = result.json()
        assert data["email"] == "walt@acme.example.com"
        assert data["employeeId"] == str(employee.id)


class TestAuthorization(BaseAPITest):
    """Test cases for the tenant guard and role checks."""

    def test_access_with_valid_token(self, client, worker):
        result = client.get("/api/v1/projects/", headers=worker[1])

        self.assert_success_response(result)

    def test_access_without_token(self, client, tenant):
        result = client.get("/api/v1/projects/", headers={"X-Tenant-ID": str(tenant.id)})

        assert result.status_code in (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN)

    def test_access_with_invalid_token(self, client, tenant):
        result = client.get(
            "/api/v1/projects/",
            headers={"Authorization": "Bearer not-a-jwt", "X-Tenant-ID": str(tenant.id)}
        )

        self.assert_unauthorized(result, "Could not validate credentials")

    def test_tenant_header_required(self, client, worker):
        headers = {"Authorization": worker[1]["Authorization"]}

        result = client.get("/api/v1/projects/", headers=headers)

        self.assert_forbidden(result, "x-tenant-id header is required")

    def test_tenant_header_must_match_token(self, client, factory, worker):
        other = factory.tenant("Globex")
        headers = {**worker[1], "X-Tenant-ID": str(other.id)}

        result = client.get("/api/v1/projects/", headers=headers)

        self.assert_forbidden(result, "Tenant ID mismatch between Token and Header")

    def test_token_for_unknown_tenant(self, client, worker):
        """A valid user whose token names a tenant that no longer exists."""
        token = worker[1]["Authorization"].split(" ", 1)[1]
        tenant_id = uuid4()
        payload = JWTHandler.build_payload(
            JWTHandler.verify_access_token(token)["sub"], tenant_id, "walt@acme.example.com", None, []
        )
        headers = {
            "Authorization": f"Bearer {JWTHandler.create_access_token(payload)}",
            "X-Tenant-ID": str(tenant_id)
        }

        result = client.get("/api/v1/projects/", headers=headers)

        self.assert_not_found(result, "Tenant not found")

    def test_token_for_unknown_user(self, client, tenant):
        payload = JWTHandler.build_payload(uuid4(), tenant.id, "ghost@acme.example.com", None, [])
        headers = {
            "Authorization": f"Bearer {JWTHandler.create_access_token(payload)}",
            "X-Tenant-ID": str(tenant.id)
        }

        result = client.get("/api/v1/projects/", headers=headers)

        self.assert_unauthorized(result, "User account is disabled or no longer exists")

    def test_disabled_user_loses_access(self, client, factory, admin_service, tenant):
        """Disabling a user revokes its outstanding access tokens."""
        employee = factory.employee(tenant, "Ada", "Lovelace", "ada@acme.example.com")
        user = factory.user(tenant, employee)
        headers = factory.login_headers(tenant, user)
        admin_service.update_user(user.id, UpdateUserRequest(status=UserStatus.DISABLED))

        me = client.get("/api/v1/auth/me", headers=headers)
        projects = client.get("/api/v1/projects/", headers=headers)

        self.assert_unauthorized(me, "User account is disabled or no longer exists")
        self.assert_unauthorized(projects, "User account is disabled or no longer exists")

    def test_deleted_user_loses_access(self, client, factory, admin_service, tenant):
        employee = factory.employee(tenant, "Ada", "Lovelace", "ada@acme.example.com")
        user = factory.user(tenant, employee)
        headers = factory.login_headers(tenant, user)
        admin_service.delete_user(user.id)

        result = client.get("/api/v1/projects/", headers=headers)

        self.assert_unauthorized(result, "User account is disabled or no longer exists")

    def test_role_required(self, client, worker, sample_project_data):
        result = client.post("/api/v1/projects/", json=sample_project_data, headers=worker[1])

        self.assert_forbidden(result, "Insufficient permissions")
