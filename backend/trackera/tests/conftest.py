"""
Pytest configuration and fixtures for backend testing.

Every test gets its own in-memory SQLite database. Tenant schemas are
attached in-memory databases on the same connection, so tenant provisioning
and schema routing run exactly as in production.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_ACCESS_SECRET", "test-access-secret")
os.environ.setdefault("JWT_REFRESH_SECRET", "test-refresh-secret")

import pytest
from typing import Dict, Generator, Tuple
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session, sessionmaker

from trackera.api.admin_main import app as admin_app
from trackera.api.main import app
from trackera.auth.identity import IdentityStore
from trackera.database.connection import build_engine, create_tables, get_db
from trackera.database.models import Role
from trackera.schemas.admin import (
    AdminEmployeeCreateRequest, AdminEmployeeResponse, CreatedUserResponse,
    CreateUserRequest, TenantResponse, UpdateUserRequest
)
from trackera.services.admin_users import AdminUsersService


@pytest.fixture
def engine():
    """Fresh in-memory database with the shared tables."""
    test_engine = build_engine("sqlite://")
    create_tables(test_engine)
    yield test_engine
    test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory) -> Generator[Session, None, None]:
    """Session for arranging and inspecting test data."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def identity_store(engine) -> IdentityStore:
    return IdentityStore(engine)


@pytest.fixture
def admin_service(db_session, identity_store) -> AdminUsersService:
    return AdminUsersService(db_session, identity_store)


def _override_get_db(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()
    return override_get_db


@pytest.fixture
def client(session_factory) -> Generator[TestClient, None, None]:
    """Public API client backed by the test database."""
    app.dependency_overrides[get_db] = _override_get_db(session_factory)
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def admin_client(session_factory, monkeypatch) -> Generator[TestClient, None, None]:
    """Admin API client backed by the test database, without an admin key."""
    monkeypatch.delenv("ADMIN_API_KEY", raising=False)
    admin_app.dependency_overrides[get_db] = _override_get_db(session_factory)
    yield TestClient(admin_app)
    admin_app.dependency_overrides.clear()


class TrackeraFactory:
    """Builds tenants, employees and logged-in users for tests."""

    def __init__(self, service: AdminUsersService, client: TestClient):
        self.service = service
        self.client = client

    def tenant(self, name: str = "Acme Corp") -> TenantResponse:
        return self.service.create_tenant(name)

    def employee(
        self,
        tenant: TenantResponse,
        first_name: str = "Ada",
        last_name: str = "Lovelace",
        email: str = None
    ) -> AdminEmployeeResponse:
        return self.service.create_employee(
            tenant.id,
            AdminEmployeeCreateRequest(first_name=first_name, last_name=last_name, email=email)
        )

    def user(self, tenant: TenantResponse, employee: AdminEmployeeResponse,
             role: Role = Role.EMPLOYEE) -> CreatedUserResponse:
        created = self.service.create_user(CreateUserRequest(tenant_id=tenant.id, employee_id=employee.id))
        if role != Role.EMPLOYEE:
            self.service.update_user(created.id, UpdateUserRequest(role=role))
        return created

    def login_headers(self, tenant: TenantResponse, user: CreatedUserResponse) -> Dict[str, str]:
        response = self.client.post(
            "/api/v1/auth/login",
            json={"email": user.email, "password": user.password},
            headers={"X-Tenant-ID": str(tenant.id)}
        )
        assert response.status_code == 200, response.text
        return {
            "Authorization": f"Bearer {response.json()['accessToken']}",
            "X-Tenant-ID": str(tenant.id)
        }

    def member(
        self,
        tenant: TenantResponse,
        role: Role,
        first_name: str,
        last_name: str,
        email: str
    ) -> Tuple[AdminEmployeeResponse, Dict[str, str]]:
        """Employee with a login holding ``role``, plus its auth headers."""
        employee = self.employee(tenant, first_name, last_name, email)
        user = self.user(tenant, employee, role)
        return employee, self.login_headers(tenant, user)


@pytest.fixture
def factory(admin_service, client) -> TrackeraFactory:
    return TrackeraFactory(admin_service, client)


@pytest.fixture
def tenant(factory) -> TenantResponse:
    return factory.tenant()


@pytest.fixture
def sample_employee_data() -> Dict:
    """Sample employee data for testing."""
    return {
        "firstName": "Grace",
        "lastName": "Hopper",
        "email": "grace@acme.example.com",
        "employeeCode": "E-001"
    }


@pytest.fixture
def sample_project_data() -> Dict:
    """Sample project data for testing."""
    return {
        "name": "Website Relaunch",
        "code": "WEB",
        "description": "New marketing site"
    }


@pytest.fixture
def manager(factory, tenant):
    """Manager employee and auth headers."""
    return factory.member(tenant, Role.MANAGER, "Mary", "Manager", "mary@acme.example.com")


@pytest.fixture
def worker(factory, tenant):
    """Plain employee and auth headers."""
    return factory.member(tenant, Role.EMPLOYEE, "Walt", "Worker", "walt@acme.example.com")


@pytest.fixture
def auth_headers(manager) -> Dict[str, str]:
    """Authentication headers of a manager."""
    return manager[1]
