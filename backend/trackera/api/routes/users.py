"""
User management API routes.

Login users of the current tenant. Owners and admins create and update
users; managers may also list them. Any member may look up a single user of
their own tenant.
"""
import logging
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from uuid import UUID

from ...auth.dependencies import get_tenant_context, require_roles, CurrentUser, TenantContext
from ...database.connection import get_db
from ...database.models import Role, User
from ...schemas.admin import UpdateUserRequest, UserResponse
from ...schemas.user import TenantUserCreateRequest, TenantUserUpdateRequest
from ...services.admin_users import AdminUsersService
from .admin import get_admin_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])


def _get_user_or_404(db: Session, user_id: UUID, tenant_id: UUID) -> User:
    user = db.get(User, user_id)
    if not user or user.tenant_id != tenant_id:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )
    return user


def _ensure_email_free(db: Session, email: str, user_id: Optional[UUID] = None) -> None:
    query = db.query(User).filter(User.email == email)
    if user_id:
        query = query.filter(User.id != user_id)
    if query.first():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="User with this email already exists"
        )


# PUBLIC_INTERFACE
@router.post("/", response_model=UserResponse, status_code=status.HTTP_201_CREATED,
            summary="Create new user",
            description="Create a login user within the current tenant. Requires OWNER or ADMIN.")
async def create_user(
    request: TenantUserCreateRequest,
    current_user: CurrentUser = Depends(require_roles(Role.OWNER, Role.ADMIN)),
    context: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db),
    service: AdminUsersService = Depends(get_admin_service)
):
    """
    Create a new user within the tenant.

    The user gets the EMPLOYEE role. When first and last name are given an
    employee record linked to the user is created as well.
    """
    _ensure_email_free(db, request.email)

    user = service.create_login_user(context.tenant_id, request)
    logger.info(f"User {current_user.user_id} created user {user.id}")
    return user


# PUBLIC_INTERFACE
@router.get("/", response_model=List[UserResponse],
           summary="List users",
           description="Get the users of the current tenant. Requires OWNER, ADMIN or MANAGER.")
async def list_users(
    current_user: CurrentUser = Depends(require_roles(Role.OWNER, Role.ADMIN, Role.MANAGER)),
    context: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db)
):
    users = db.query(User).filter(User.tenant_id == context.tenant_id).order_by(User.email).all()
    return [UserResponse.model_validate(user) for user in users]


# PUBLIC_INTERFACE
@router.get("/{user_id}", response_model=UserResponse,
           summary="Get user",
           description="Get a single user of the current tenant.")
async def get_user(
    user_id: UUID,
    context: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db)
):
    return UserResponse.model_validate(_get_user_or_404(db, user_id, context.tenant_id))


# PUBLIC_INTERFACE
@router.patch("/{user_id}", response_model=UserResponse,
             summary="Update user",
             description="Update email, username or status of a user. Requires OWNER or ADMIN.")
async def update_user(
    user_id: UUID,
    request: TenantUserUpdateRequest,
    current_user: CurrentUser = Depends(require_roles(Role.OWNER, Role.ADMIN)),
    context: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db),
    service: AdminUsersService = Depends(get_admin_service)
):
    """
    Update a user.

    A new email is also applied to the identity record so the user can log in
    with it.
    """
    _get_user_or_404(db, user_id, context.tenant_id)
    if request.email:
        _ensure_email_free(db, request.email, user_id)

    user = service.update_user(user_id, UpdateUserRequest(**request.model_dump(exclude_none=True)))
    logger.info(f"User {current_user.user_id} updated user {user_id}")
    return user
