"""
Dashboard statistics schema.
"""
import datetime as dt
from typing import Optional, List
from pydantic import Field
from uuid import UUID

from .base import CamelModel


class BillableSplit(CamelModel):
    billable: bool
    minutes: int


class RecentEntry(CamelModel):
    id: UUID
    description: Optional[str] = None
    project: str
    minutes: int
    date: dt.date


class DistributionItem(CamelModel):
    name: str
    value: int


class DailyActivity(CamelModel):
    date: dt.date
    minutes: int


class DashboardStatsResponse(CamelModel):
    """Time statistics for the caller plus tenant-wide breakdowns."""
    today_minutes: int = Field(0, description="Minutes booked today by the caller")
    week_minutes: int = Field(0, description="Minutes booked this week (Mon-Sun) by the caller")
    billable_split: List[BillableSplit] = Field(default_factory=list, description="This week's minutes by billable flag")
    recent_entries: List[RecentEntry] = Field(default_factory=list, description="Caller's latest entries")
    active_projects_count: int = Field(0, description="Active projects in the tenant")
    project_distribution: List[DistributionItem] = Field(default_factory=list, description="Minutes per project")
    employee_distribution: List[DistributionItem] = Field(default_factory=list, description="Minutes per employee")
    daily_activity: List[DailyActivity] = Field(default_factory=list, description="Minutes per day over the last 7 days")
