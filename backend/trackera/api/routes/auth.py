"""
Authentication API routes.

Provides endpoints for tenant-scoped login, token refresh and the current
user profile.
"""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status, Header
from sqlalchemy.orm import Session
from uuid import UUID

from ...database.connection import get_db
from ...database.models import Employee, User, UserStatus
from ...database.tenant_schema import tenant_session
from ...schemas.admin import RoleInfo
from ...schemas.auth import LoginRequest, RefreshRequest, MeResponse, AuthTokensResponse
from ...auth.dependencies import get_active_user, get_identity_store, CurrentUser
from ...auth.identity import IdentityStore
from ...auth.jwt_handler import JWTHandler

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


def _invalid_credentials() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )


def _build_profile(db: Session, user: User) -> MeResponse:
    """Profile of ``user`` including roles and the linked employee in its tenant schema."""
    employee_id = None
    with tenant_session(db, user.tenant.schema_name) as tenant_db:
        employee = tenant_db.query(Employee).filter(Employee.user_id == user.id).first()
        if employee:
            employee_id = employee.id

    return MeResponse(
        id=user.id,
        tenant_id=user.tenant_id,
        email=user.email,
        username=user.username,
        employee_id=employee_id,
        roles=[RoleInfo.model_validate(role) for role in user.roles]
    )


def _issue_tokens(profile: MeResponse) -> AuthTokensResponse:
    payload = JWTHandler.build_payload(
        user_id=profile.id,
        tenant_id=profile.tenant_id,
        email=profile.email,
        username=profile.username,
        roles=[role.model_dump(mode="json") for role in profile.roles],
        employee_id=profile.employee_id
    )
    return AuthTokensResponse(
        access_token=JWTHandler.create_access_token(payload),
        refresh_token=JWTHandler.create_refresh_token(payload),
        user=profile
    )


# PUBLIC_INTERFACE
@router.post("/login", response_model=AuthTokensResponse,
            summary="User login",
            description="Authenticate with email or username and password within the tenant given by the X-Tenant-ID header.")
async def login_user(
    request: LoginRequest,
    x_tenant_id: Optional[str] = Header(None, alias="X-Tenant-ID"),
    db: Session = Depends(get_db),
    identity: IdentityStore = Depends(get_identity_store)
):
    """
    Authenticate user and return an access/refresh token pair.

    The password is checked against the identity store. The user must belong
    to the requested tenant and be active.
    """
    if not x_tenant_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Tenant ID header (x-tenant-id) required for login"
        )

    try:
        tenant_id = UUID(x_tenant_id)
    except ValueError:
        raise _invalid_credentials()

    query = db.query(User).filter(User.tenant_id == tenant_id)
    if request.email:
        user = query.filter(User.email == request.email).first()
    else:
        user = query.filter(User.username == request.username).first()

    if not user or user.status != UserStatus.ACTIVE:
        logger.info(f"Rejected login for {request.email or request.username} in tenant {tenant_id}")
        raise _invalid_credentials()

    if identity.authenticate(user.email, request.password) is None:
        logger.info(f"Invalid password for {user.email}")
        raise _invalid_credentials()

    logger.info(f"User {user.id} logged in to tenant {tenant_id}")
    return _issue_tokens(_build_profile(db, user))


# PUBLIC_INTERFACE
@router.post("/refresh", response_model=AuthTokensResponse,
            summary="Refresh tokens",
            description="Exchange a refresh token for a new access/refresh token pair.")
async def refresh_tokens(
    request: RefreshRequest,
    db: Session = Depends(get_db)
):
    """
    Issue a new token pair.

    The user is reloaded so that role changes and deactivation take effect.
    """
    refresh_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid refresh token",
        headers={"WWW-Authenticate": "Bearer"},
    )

    payload = JWTHandler.verify_refresh_token(request.refresh_token)
    if payload is None or payload.get("sub") is None:
        raise refresh_exception

    try:
        user_id = UUID(payload["sub"])
    except ValueError:
        raise refresh_exception

    user = db.get(User, user_id)
    if not user or user.status != UserStatus.ACTIVE:
        raise refresh_exception

    return _issue_tokens(_build_profile(db, user))


# PUBLIC_INTERFACE
@router.get("/me", response_model=MeResponse,
           summary="Get current user",
           description="Get information about the currently authenticated user.")
async def get_current_user_info(
    current_user: CurrentUser = Depends(get_active_user),
    db: Session = Depends(get_db)
):
    """
    Get current authenticated user information.
    """
    user = db.get(User, current_user.user_id)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )

    return _build_profile(db, user)
