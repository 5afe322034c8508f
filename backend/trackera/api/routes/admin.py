"""
Admin API routes.

Cross-tenant administration: tenant provisioning, employee listing and
creation per tenant, and login user provisioning (create, update, delete,
password reset). Mounted only on the admin application.
"""
import logging
from typing import List
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from uuid import UUID

from ...auth.dependencies import get_identity_store, require_admin_key
from ...auth.identity import IdentityStore
from ...database.connection import get_db
from ...schemas.admin import (
    AdminEmployeeCreateRequest, AdminEmployeeResponse, AdminUserResponse,
    CreatedUserResponse, CreateUserRequest, DeleteUserResponse,
    ResetPasswordResponse, TenantCreateRequest, TenantResponse,
    UpdateUserRequest, UserResponse
)
from ...services.admin_users import AdminUsersService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"], dependencies=[Depends(require_admin_key)])


def get_admin_service(
    db: Session = Depends(get_db),
    identity: IdentityStore = Depends(get_identity_store)
) -> AdminUsersService:
    return AdminUsersService(db, identity)


# PUBLIC_INTERFACE
@router.get("/tenants", response_model=List[TenantResponse],
           summary="List tenants",
           description="Get all tenants ordered by name.")
async def get_all_tenants(service: AdminUsersService = Depends(get_admin_service)):
    logger.info("Fetching all tenants")
    return service.get_all_tenants()


# PUBLIC_INTERFACE
@router.post("/tenants", response_model=TenantResponse, status_code=status.HTTP_201_CREATED,
            summary="Create tenant",
            description="Register a tenant and provision its database schema.")
async def create_tenant(
    request: TenantCreateRequest,
    service: AdminUsersService = Depends(get_admin_service)
):
    """
    Create a new tenant.

    The tenant's schema is created together with the tenant tables. A
    duplicate name is rejected with 400.
    """
    logger.info(f"Creating tenant: {request.name}")
    return service.create_tenant(request.name)


# PUBLIC_INTERFACE
@router.get("/employees/{tenant_id}", response_model=List[AdminEmployeeResponse],
           summary="List tenant employees",
           description="Get the employees of a tenant ordered by first name.")
async def get_employees_by_tenant(
    tenant_id: UUID,
    service: AdminUsersService = Depends(get_admin_service)
):
    logger.info(f"Fetching employees for tenant: {tenant_id}")
    return service.get_employees_by_tenant(tenant_id)


# PUBLIC_INTERFACE
@router.post("/employees/{tenant_id}", response_model=AdminEmployeeResponse,
            status_code=status.HTTP_201_CREATED,
            summary="Create employee",
            description="Add an employee record to a tenant.")
async def create_employee(
    tenant_id: UUID,
    request: AdminEmployeeCreateRequest,
    service: AdminUsersService = Depends(get_admin_service)
):
    logger.info(f"Creating employee for tenant: {tenant_id}")
    return service.create_employee(tenant_id, request)


# PUBLIC_INTERFACE
@router.get("/users", response_model=List[AdminUserResponse],
           summary="List users",
           description="Get all users with tenant, employee and role information, newest first.")
async def get_all_users(service: AdminUsersService = Depends(get_admin_service)):
    logger.info("Fetching all users")
    return service.get_all_users()


# PUBLIC_INTERFACE
@router.post("/users", response_model=CreatedUserResponse, status_code=status.HTTP_201_CREATED,
            summary="Create user for employee",
            description="Create a login user for an employee. The generated password is returned once.")
async def create_user(
    request: CreateUserRequest,
    service: AdminUsersService = Depends(get_admin_service)
):
    """
    Provision a login user for an existing employee.

    Creates the identity, the user row and a default EMPLOYEE role, then
    links the employee to the new user.

    Raises:
        NotFoundError: Unknown tenant or employee
        BadRequestError: Employee already linked or without email
        ServiceError: Identity or user creation failed
    """
    logger.info(f"Creating user for employee: {request.employee_id}")
    return service.create_user(request)


# PUBLIC_INTERFACE
@router.put("/users/{user_id}", response_model=UserResponse,
           summary="Update user",
           description="Update email, username, status, tenant or role of a user.")
async def update_user(
    user_id: UUID,
    request: UpdateUserRequest,
    service: AdminUsersService = Depends(get_admin_service)
):
    logger.info(f"Updating user: {user_id}")
    return service.update_user(user_id, request)


# PUBLIC_INTERFACE
@router.delete("/users/{user_id}", response_model=DeleteUserResponse,
              summary="Delete user",
              description="Delete a user, its roles and its identity, and unlink its employee.")
async def delete_user(
    user_id: UUID,
    service: AdminUsersService = Depends(get_admin_service)
):
    logger.info(f"Deleting user: {user_id}")
    return service.delete_user(user_id)


# PUBLIC_INTERFACE
@router.post("/users/{user_id}/reset-password", response_model=ResetPasswordResponse,
            summary="Reset user password",
            description="Generate a new password for a user. The password is returned once.")
async def reset_password(
    user_id: UUID,
    service: AdminUsersService = Depends(get_admin_service)
):
    logger.info(f"Resetting password for user: {user_id}")
    return service.reset_password(user_id)
