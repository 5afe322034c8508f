"""
User schemas for the tenant-scoped users API.

Responses reuse ``UserResponse`` from the admin schemas; the password hash is
never part of a response.
"""
from typing import Optional
from pydantic import EmailStr, Field

from ..database.models import UserStatus
from .base import CamelModel


class TenantUserCreateRequest(CamelModel):
    """User creation request schema."""
    email: EmailStr = Field(..., description="Login email, unique across all tenants")
    username: Optional[str] = Field(None, min_length=1, max_length=255, description="Defaults to the email")
    password: str = Field(..., min_length=8, max_length=128, description="Initial password")
    first_name: Optional[str] = Field(None, min_length=1, max_length=100, description="Employee first name")
    last_name: Optional[str] = Field(None, min_length=1, max_length=100, description="Employee last name")


class TenantUserUpdateRequest(CamelModel):
    """User update request schema."""
    email: Optional[EmailStr] = Field(None, description="New email, also used as username")
    username: Optional[str] = Field(None, min_length=1, max_length=255, description="New username")
    status: Optional[UserStatus] = Field(None, description="Account status")
