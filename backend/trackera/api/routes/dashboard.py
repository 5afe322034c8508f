"""
Dashboard API routes.

Summarizes the caller's booked time and the tenant's overall activity.
"""
import datetime as dt
from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlalchemy.orm import Session

from ...database.models import Employee, Project, ProjectStatus, TimeEntry
from ...schemas.dashboard import (
    BillableSplit, DailyActivity, DashboardStatsResponse, DistributionItem, RecentEntry
)
from ...auth.dependencies import get_current_user, get_tenant_db, CurrentUser

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])

RECENT_ENTRIES_LIMIT = 5
ACTIVITY_DAYS = 7


def _minutes_between(tenant_db: Session, employee_id, start: dt.date, end: dt.date) -> int:
    total = tenant_db.query(func.sum(TimeEntry.minutes)).filter(
        TimeEntry.employee_id == employee_id,
        TimeEntry.date >= start,
        TimeEntry.date <= end
    ).scalar()
    return total or 0


# PUBLIC_INTERFACE
@router.get("/stats", response_model=DashboardStatsResponse,
           summary="Get dashboard statistics",
           description="Time booked by the caller today and this week, plus tenant-wide project and employee breakdowns.")
async def get_dashboard_stats(
    current_user: CurrentUser = Depends(get_current_user),
    tenant_db: Session = Depends(get_tenant_db)
):
    """
    Get dashboard statistics.

    Weeks run Monday to Sunday. A user without an employee record gets an
    all-zero response.
    """
    employee = tenant_db.query(Employee).filter(Employee.user_id == current_user.user_id).first()
    if not employee:
        return DashboardStatsResponse()

    today = dt.date.today()
    week_start = today - dt.timedelta(days=today.weekday())
    week_end = week_start + dt.timedelta(days=6)

    billable_rows = tenant_db.query(TimeEntry.billable, func.sum(TimeEntry.minutes)).filter(
        TimeEntry.employee_id == employee.id,
        TimeEntry.date >= week_start,
        TimeEntry.date <= week_end
    ).group_by(TimeEntry.billable).all()

    recent = tenant_db.query(TimeEntry).filter(
        TimeEntry.employee_id == employee.id
    ).order_by(TimeEntry.date.desc(), TimeEntry.created_at.desc()).limit(RECENT_ENTRIES_LIMIT).all()

    active_projects = tenant_db.query(func.count(Project.id)).filter(
        Project.status == ProjectStatus.ACTIVE
    ).scalar()

    project_rows = tenant_db.query(Project.name, func.sum(TimeEntry.minutes)).join(
        TimeEntry, TimeEntry.project_id == Project.id
    ).group_by(Project.id, Project.name).all()

    employee_rows = tenant_db.query(Employee.first_name, Employee.last_name, func.sum(TimeEntry.minutes)).join(
        TimeEntry, TimeEntry.employee_id == Employee.id
    ).group_by(Employee.id, Employee.first_name, Employee.last_name).all()

    # Last 7 days including today, oldest first
    first_day = today - dt.timedelta(days=ACTIVITY_DAYS - 1)
    daily_minutes = {first_day + dt.timedelta(days=offset): 0 for offset in range(ACTIVITY_DAYS)}
    daily_rows = tenant_db.query(TimeEntry.date, func.sum(TimeEntry.minutes)).filter(
        TimeEntry.date >= first_day,
        TimeEntry.date <= today
    ).group_by(TimeEntry.date).all()
    for day, minutes in daily_rows:
        daily_minutes[day] = minutes or 0

    return DashboardStatsResponse(
        today_minutes=_minutes_between(tenant_db, employee.id, today, today),
        week_minutes=_minutes_between(tenant_db, employee.id, week_start, week_end),
        billable_split=[BillableSplit(billable=billable, minutes=minutes or 0) for billable, minutes in billable_rows],
        recent_entries=[
            RecentEntry(
                id=entry.id,
                description=entry.description,
                project=entry.project.name,
                minutes=entry.minutes,
                date=entry.date
            )
            for entry in recent
        ],
        active_projects_count=active_projects or 0,
        project_distribution=[DistributionItem(name=name, value=minutes or 0) for name, minutes in project_rows],
        employee_distribution=[
            DistributionItem(name=f"{first_name} {last_name}", value=minutes or 0)
            for first_name, last_name, minutes in employee_rows
        ],
        daily_activity=[DailyActivity(date=day, minutes=minutes) for day, minutes in sorted(daily_minutes.items())]
    )
