"""
Project schemas for the tenant-scoped API.
"""
from datetime import datetime
from typing import Optional
from pydantic import Field
from uuid import UUID

from ..database.models import ProjectStatus
from .base import CamelModel


class ProjectCreateRequest(CamelModel):
    """Project creation request schema."""
    name: str = Field(..., min_length=1, max_length=255, description="Project name")
    code: Optional[str] = Field(None, min_length=1, max_length=50, description="Short project code, unique per tenant")
    description: Optional[str] = Field(None, description="Project description")


class ProjectUpdateRequest(CamelModel):
    """Project update request schema."""
    name: Optional[str] = Field(None, min_length=1, max_length=255, description="Project name")
    code: Optional[str] = Field(None, min_length=1, max_length=50, description="Short project code")
    description: Optional[str] = Field(None, description="Project description")
    status: Optional[ProjectStatus] = Field(None, description="Project status")


class ProjectResponse(CamelModel):
    """Project response schema."""
    id: UUID = Field(..., description="Project ID")
    tenant_id: UUID = Field(..., description="Tenant ID")
    name: str = Field(..., description="Project name")
    code: Optional[str] = Field(None, description="Short project code")
    description: Optional[str] = Field(None, description="Project description")
    status: ProjectStatus = Field(..., description="Project status")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: Optional[datetime] = Field(None, description="Last update timestamp")
