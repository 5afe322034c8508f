"""
Authentication dependencies for FastAPI endpoints.

Provides dependency functions for extracting user information, resolving the
tenant context and its schema session, and enforcing role and admin-key
requirements.
"""
import os
import secrets
from typing import Optional, Iterable, List, Dict, Any, Generator
from fastapi import Depends, HTTPException, status, Header
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials, APIKeyHeader
from sqlalchemy.orm import Session
from uuid import UUID

from ..database.connection import get_db
from ..database.models import Tenant, Role, User, UserStatus, PRIVILEGED_ROLES
from ..database.tenant_schema import tenant_session
from .identity import IdentityStore
from .jwt_handler import JWTHandler

security = HTTPBearer()
admin_key_header = APIKeyHeader(name="X-Admin-Key", auto_error=False)


class CurrentUser:
    """Current user information from JWT token."""

    def __init__(
        self,
        user_id: UUID,
        tenant_id: UUID,
        email: str,
        username: Optional[str],
        roles: List[Dict[str, Any]],
        employee_id: Optional[UUID] = None
    ):
        self.user_id = user_id
        self.tenant_id = tenant_id
        self.email = email
        self.username = username
        self.roles = roles
        self.employee_id = employee_id

    @property
    def role_names(self) -> set:
        return {str(r.get("role", "")).upper() for r in self.roles}

    def has_any_role(self, roles: Iterable[Role]) -> bool:
        return any(role.value in self.role_names for role in roles)

    @property
    def is_privileged(self) -> bool:
        """Owners, admins and managers may act on behalf of other employees."""
        return self.has_any_role(PRIVILEGED_ROLES)


class TenantContext:
    """Tenant resolved for the current request."""

    def __init__(self, tenant: Tenant):
        self.tenant = tenant
        self.tenant_id = tenant.id
        self.schema_name = tenant.schema_name


# PUBLIC_INTERFACE
async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> CurrentUser:
    """
    Get current authenticated user from JWT token.

    Args:
        credentials: HTTP authorization credentials

    Returns:
        CurrentUser: Current user information

    Raises:
        HTTPException: If token is invalid
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    payload = JWTHandler.verify_access_token(credentials.credentials)
    if payload is None:
        raise credentials_exception

    user_id = payload.get("sub")
    tenant_id = payload.get("tenant_id")
    if user_id is None or tenant_id is None:
        raise credentials_exception

    employee_id = payload.get("employee_id")
    try:
        return CurrentUser(
            user_id=UUID(user_id),
            tenant_id=UUID(tenant_id),
            email=payload.get("email"),
            username=payload.get("username"),
            roles=payload.get("roles") or [],
            employee_id=UUID(employee_id) if employee_id else None
        )
    except (TypeError, ValueError):
        raise credentials_exception


# PUBLIC_INTERFACE
async def get_active_user(
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> CurrentUser:
    """
    Current user, provided the account still exists and is active.

    Tokens stay valid until they expire; this check makes disabling or
    deleting a user take effect on the next request.

    Raises:
        HTTPException: 401 if the user is gone or not ACTIVE
    """
    user = db.get(User, current_user.user_id)
    if not user or user.status != UserStatus.ACTIVE:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User account is disabled or no longer exists",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return current_user


# PUBLIC_INTERFACE
def require_roles(*roles: Role):
    """
    Build a dependency that admits only users holding one of ``roles``.

    Returns:
        Callable: FastAPI dependency resolving to the CurrentUser
    """
    async def role_checker(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if not current_user.has_any_role(roles):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions"
            )
        return current_user

    return role_checker


# PUBLIC_INTERFACE
async def get_tenant_context(
    x_tenant_id: Optional[str] = Header(None, alias="X-Tenant-ID"),
    current_user: CurrentUser = Depends(get_active_user),
    db: Session = Depends(get_db)
) -> TenantContext:
    """
    Resolve the tenant for an authenticated request.

    The ``X-Tenant-ID`` header is required and must match the tenant in the
    token.

    Raises:
        HTTPException: 401 for an inactive user, 403 on a missing or mismatched header,
            404 if the tenant is gone
    """
    if not x_tenant_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="x-tenant-id header is required"
        )

    try:
        header_tenant_id = UUID(x_tenant_id)
    except ValueError:
        header_tenant_id = None

    if header_tenant_id != current_user.tenant_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Tenant ID mismatch between Token and Header"
        )

    tenant = db.get(Tenant, header_tenant_id)
    if not tenant:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Tenant not found"
        )

    return TenantContext(tenant)


# PUBLIC_INTERFACE
def get_tenant_db(
    context: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db)
) -> Generator[Session, None, None]:
    """
    Dependency yielding a session routed to the request tenant's schema.
    """
    tenant_db = tenant_session(db, context.schema_name)
    try:
        yield tenant_db
    finally:
        tenant_db.close()


# PUBLIC_INTERFACE
def get_identity_store(db: Session = Depends(get_db)) -> IdentityStore:
    """Identity store sharing the request's database bind."""
    return IdentityStore(db.get_bind())


# PUBLIC_INTERFACE
async def require_admin_key(api_key: Optional[str] = Depends(admin_key_header)) -> None:
    """
    Guard for the admin API.

    When ``ADMIN_API_KEY`` is configured the ``X-Admin-Key`` header must
    match it; without it the admin API is open (local development).
    """
    expected = os.getenv("ADMIN_API_KEY")
    if not expected:
        return
    if not api_key or not secrets.compare_digest(api_key, expected):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid admin API key"
        )
