"""
Admin API schemas.

Defines request/response models for tenant listing and provisioning,
per-tenant employee listing, and user provisioning (create, update, delete,
password reset).
"""
from datetime import datetime
from typing import Optional, List
from pydantic import EmailStr, Field
from uuid import UUID

from ..database.models import EmployeeStatus, Role, RoleScopeType, UserStatus
from .base import CamelModel


class TenantCreateRequest(CamelModel):
    """Tenant creation request schema."""
    name: str = Field(..., min_length=1, max_length=255, description="Tenant name")


class TenantResponse(CamelModel):
    """Tenant response schema."""
    id: UUID = Field(..., description="Tenant ID")
    name: str = Field(..., description="Tenant name")
    schema_name: str = Field(..., description="Database schema holding the tenant's data")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: Optional[datetime] = Field(None, description="Last update timestamp")


class AdminEmployeeCreateRequest(CamelModel):
    """Employee creation request schema (admin)."""
    first_name: str = Field(..., min_length=1, max_length=100, description="Employee first name")
    last_name: str = Field(..., min_length=1, max_length=100, description="Employee last name")
    email: Optional[EmailStr] = Field(None, description="Employee email address")
    employee_code: Optional[str] = Field(None, max_length=50, description="Internal employee code")


class AdminEmployeeResponse(CamelModel):
    """Employee as listed by the admin API."""
    id: UUID = Field(..., description="Employee ID")
    first_name: str = Field(..., description="Employee first name")
    last_name: str = Field(..., description="Employee last name")
    email: Optional[str] = Field(None, description="Employee email address")
    user_id: Optional[UUID] = Field(None, description="Linked user ID")
    status: EmployeeStatus = Field(..., description="Employee status")


class EmployeeSummary(CamelModel):
    """Short employee reference embedded in user responses."""
    id: UUID
    first_name: str
    last_name: str
    email: Optional[str] = None


class RoleInfo(CamelModel):
    """Role assignment."""
    role: Role
    scope_type: RoleScopeType
    scope_id: Optional[str] = None


class CreateUserRequest(CamelModel):
    """User provisioning request. The password is generated."""
    tenant_id: UUID = Field(..., description="Tenant the employee belongs to")
    employee_id: UUID = Field(..., description="Employee to create a login for")
    email: Optional[EmailStr] = Field(None, description="Only needed if the employee has no email")


class UpdateUserRequest(CamelModel):
    """User update request; every field is optional."""
    email: Optional[EmailStr] = Field(None, description="New email, also used as username")
    username: Optional[str] = Field(None, min_length=1, max_length=255, description="New username")
    status: Optional[UserStatus] = Field(None, description="Account status")
    tenant_id: Optional[UUID] = Field(None, description="Move the user to another tenant")
    role: Optional[Role] = Field(None, description="Replaces all current roles")


class AdminUserResponse(CamelModel):
    """User enriched with tenant, employee and role information."""
    id: UUID
    email: str
    username: Optional[str] = None
    status: UserStatus
    tenant_id: UUID
    tenant_name: str
    employee: Optional[EmployeeSummary] = None
    roles: List[RoleInfo] = Field(default_factory=list)
    created_at: datetime
    updated_at: Optional[datetime] = None


class CreatedUserResponse(CamelModel):
    """Result of user provisioning; the only time the password is returned besides a reset."""
    id: UUID
    email: str
    username: Optional[str] = None
    status: UserStatus
    tenant_id: UUID
    tenant_name: str
    employee: EmployeeSummary
    password: str
    created_at: datetime


class UserResponse(CamelModel):
    """Plain user row."""
    id: UUID
    email: str
    username: Optional[str] = None
    status: UserStatus
    tenant_id: UUID
    created_at: datetime
    updated_at: Optional[datetime] = None


class DeleteUserResponse(CamelModel):
    success: bool
    message: str


class ResetPasswordResponse(CamelModel):
    id: UUID
    email: str
    password: str
    message: str
