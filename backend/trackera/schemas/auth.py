"""
Authentication schemas.

Defines request/response models for login, token refresh and the current
user profile.
"""
from typing import Optional, List
from pydantic import EmailStr, Field, model_validator
from uuid import UUID

from .admin import RoleInfo
from .base import CamelModel


class LoginRequest(CamelModel):
    """Login request schema; either email or username identifies the user."""
    email: Optional[EmailStr] = Field(None, description="User email address")
    username: Optional[str] = Field(None, description="User name")
    password: str = Field(..., min_length=8, description="User password (minimum 8 characters)")

    @model_validator(mode="after")
    def check_identifier(self):
        """Require an email or a username."""
        if not self.email and not self.username:
            raise ValueError("email or username is required")
        return self


class RefreshRequest(CamelModel):
    """Token refresh request schema."""
    refresh_token: str = Field(..., description="Refresh token issued at login")


class MeResponse(CamelModel):
    """Authenticated user profile."""
    id: UUID = Field(..., description="User ID")
    tenant_id: UUID = Field(..., description="Tenant ID")
    email: str = Field(..., description="User email address")
    username: Optional[str] = Field(None, description="User name")
    employee_id: Optional[UUID] = Field(None, description="Linked employee ID")
    roles: List[RoleInfo] = Field(default_factory=list, description="Role assignments")


class AuthTokensResponse(CamelModel):
    """Authentication response schema."""
    access_token: str = Field(..., description="JWT access token")
    refresh_token: str = Field(..., description="JWT refresh token")
    token_type: str = Field(default="bearer", description="Token type")
    user: Optional[MeResponse] = Field(None, description="User information")
