"""
Time tracking-related Pydantic schemas.

Defines request/response models for time entries.
"""
import datetime as dt
from datetime import datetime
from typing import Optional, List
from pydantic import Field, model_validator
from uuid import UUID

from ..database.models import TimeEntrySource
from .base import CamelModel


class TimeEntryCreateRequest(CamelModel):
    """Time entry creation request schema."""
    employee_id: UUID = Field(..., description="Employee the time is booked for")
    project_id: UUID = Field(..., description="Project ID")
    date: Optional[dt.date] = Field(None, description="Work date; defaults to the start time's date")
    start_time: datetime = Field(..., description="Start time")
    end_time: Optional[datetime] = Field(None, description="End time")
    duration_minutes: int = Field(..., ge=1, description="Duration in minutes")
    billable: bool = Field(default=True, description="Whether time is billable")
    description: Optional[str] = Field(None, description="Work description")
    source: TimeEntrySource = Field(default=TimeEntrySource.MANUAL, description="Where the entry came from")
    calendar_event_id: Optional[str] = Field(None, description="Originating calendar event")

    @model_validator(mode="after")
    def check_times(self):
        """End time may not precede start time."""
        if self.end_time is None:
            return self
        if (self.end_time.tzinfo is None) != (self.start_time.tzinfo is None):
            raise ValueError("startTime and endTime must both carry a timezone or neither")
        if self.end_time < self.start_time:
            raise ValueError("endTime must not be before startTime")
        return self


class TimeEntryUpdateRequest(CamelModel):
    """Time entry update request schema."""
    project_id: Optional[UUID] = Field(None, description="Project ID")
    date: Optional[dt.date] = Field(None, description="Work date")
    start_time: Optional[datetime] = Field(None, description="Start time")
    end_time: Optional[datetime] = Field(None, description="End time")
    duration_minutes: Optional[int] = Field(None, ge=1, description="Duration in minutes")
    billable: Optional[bool] = Field(None, description="Whether time is billable")
    description: Optional[str] = Field(None, description="Work description")


class TimeEntryResponse(CamelModel):
    """Time entry response schema."""
    id: UUID = Field(..., description="Time entry ID")
    tenant_id: UUID = Field(..., description="Tenant ID")
    employee_id: UUID = Field(..., description="Employee ID")
    employee_name: Optional[str] = Field(None, description="Employee full name")
    project_id: UUID = Field(..., description="Project ID")
    project_name: Optional[str] = Field(None, description="Project name")
    date: dt.date = Field(..., description="Work date")
    start_time: Optional[datetime] = Field(None, description="Start time")
    end_time: Optional[datetime] = Field(None, description="End time")
    minutes: int = Field(..., description="Duration in minutes")
    billable: bool = Field(..., description="Whether time is billable")
    description: Optional[str] = Field(None, description="Work description")
    source: TimeEntrySource = Field(..., description="Where the entry came from")
    calendar_event_id: Optional[str] = Field(None, description="Originating calendar event")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: Optional[datetime] = Field(None, description="Last update timestamp")


class TimeEntriesListResponse(CamelModel):
    """Time entries list response schema."""
    entries: List[TimeEntryResponse] = Field(..., description="List of time entries")
    total: int = Field(..., description="Total number of entries")
    total_minutes: int = Field(..., description="Sum of minutes over the listed entries")
