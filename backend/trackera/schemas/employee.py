"""
Employee schemas for the tenant-scoped API.
"""
from datetime import datetime
from typing import Optional
from pydantic import EmailStr, Field
from uuid import UUID

from ..database.models import EmployeeStatus
from .base import CamelModel


class EmployeeCreateRequest(CamelModel):
    """Employee creation request schema."""
    first_name: str = Field(..., min_length=1, max_length=100, description="Employee first name")
    last_name: str = Field(..., min_length=1, max_length=100, description="Employee last name")
    email: Optional[EmailStr] = Field(None, description="Employee email address")
    employee_code: Optional[str] = Field(None, max_length=50, description="Internal employee code")


class EmployeeUpdateRequest(CamelModel):
    """Employee update request schema."""
    first_name: Optional[str] = Field(None, min_length=1, max_length=100, description="Employee first name")
    last_name: Optional[str] = Field(None, min_length=1, max_length=100, description="Employee last name")
    email: Optional[EmailStr] = Field(None, description="Employee email address")
    status: Optional[EmployeeStatus] = Field(None, description="Employee status")


class EmployeeResponse(CamelModel):
    """Employee response schema."""
    id: UUID = Field(..., description="Employee ID")
    tenant_id: UUID = Field(..., description="Tenant ID")
    user_id: Optional[UUID] = Field(None, description="Linked user ID")
    first_name: str = Field(..., description="Employee first name")
    last_name: str = Field(..., description="Employee last name")
    email: Optional[str] = Field(None, description="Employee email address")
    employee_code: Optional[str] = Field(None, description="Internal employee code")
    status: EmployeeStatus = Field(..., description="Employee status")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: Optional[datetime] = Field(None, description="Last update timestamp")
