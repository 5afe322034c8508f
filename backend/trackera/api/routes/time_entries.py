"""
Time entry API routes.

Owners, admins and managers book and manage time for any employee of the
tenant. Everybody else only sees and changes the entries of the employee
record linked to their own user.
"""
import datetime as dt
import logging
from datetime import timezone
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from uuid import UUID, uuid4

from ...database.models import Employee, Project, ProjectStatus, TimeEntry
from ...schemas.time_tracking import (
    TimeEntryCreateRequest, TimeEntryUpdateRequest, TimeEntryResponse,
    TimeEntriesListResponse
)
from ...auth.dependencies import (
    get_current_user, get_tenant_context, get_tenant_db, CurrentUser, TenantContext
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/time-entries", tags=["Time Entries"])


def _as_utc(value: Optional[dt.datetime]) -> Optional[dt.datetime]:
    # SQLite hands back naive datetimes; treat them as UTC
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _own_employee(current_user: CurrentUser, tenant_db: Session) -> Employee:
    """Employee record linked to the caller."""
    employee = tenant_db.query(Employee).filter(Employee.user_id == current_user.user_id).first()
    if not employee:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="User is not linked to an Employee profile"
        )
    return employee


def _get_visible_entry(entry_id: UUID, current_user: CurrentUser, tenant_db: Session) -> TimeEntry:
    """Load an entry, hiding entries of other employees from non-privileged users."""
    not_found = HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail="Time entry not found"
    )
    entry = tenant_db.get(TimeEntry, entry_id)
    if not entry:
        raise not_found
    if not current_user.is_privileged and entry.employee_id != _own_employee(current_user, tenant_db).id:
        raise not_found
    return entry


def _get_bookable_project(tenant_db: Session, project_id: UUID) -> Project:
    project = tenant_db.get(Project, project_id)
    if not project:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Project not found"
        )
    if project.status != ProjectStatus.ACTIVE:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot book time on an archived project"
        )
    return project


def _to_response(entry: TimeEntry, tenant_id: UUID) -> TimeEntryResponse:
    return TimeEntryResponse(
        id=entry.id,
        tenant_id=tenant_id,
        employee_id=entry.employee_id,
        employee_name=entry.employee.full_name if entry.employee else None,
        project_id=entry.project_id,
        project_name=entry.project.name if entry.project else None,
        date=entry.date,
        start_time=entry.start_time,
        end_time=entry.end_time,
        minutes=entry.minutes,
        billable=entry.billable,
        description=entry.description,
        source=entry.source,
        calendar_event_id=entry.calendar_event_id,
        created_at=entry.created_at,
        updated_at=entry.updated_at
    )


# PUBLIC_INTERFACE
@router.post("/", response_model=TimeEntryResponse, status_code=status.HTTP_201_CREATED,
            summary="Create time entry",
            description="Book time for an employee on a project.")
async def create_time_entry(
    request: TimeEntryCreateRequest,
    current_user: CurrentUser = Depends(get_current_user),
    context: TenantContext = Depends(get_tenant_context),
    tenant_db: Session = Depends(get_tenant_db)
):
    """
    Create a new time entry.

    The work date defaults to the date of the start time. Users without a
    privileged role may only book time for themselves.

    Raises:
        HTTPException: 400 when booking for someone else, 404 for an unknown
            employee or project
    """
    if not current_user.is_privileged:
        own = _own_employee(current_user, tenant_db)
        if request.employee_id != own.id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="You can only create time entries for yourself"
            )

    if not tenant_db.get(Employee, request.employee_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Employee not found"
        )
    _get_bookable_project(tenant_db, request.project_id)

    entry = TimeEntry(
        id=uuid4(),
        employee_id=request.employee_id,
        project_id=request.project_id,
        date=request.date or request.start_time.date(),
        start_time=request.start_time,
        end_time=request.end_time,
        minutes=request.duration_minutes,
        billable=request.billable,
        description=request.description,
        source=request.source,
        calendar_event_id=request.calendar_event_id,
        created_by_user_id=current_user.user_id,
        updated_by_user_id=current_user.user_id
    )

    tenant_db.add(entry)
    tenant_db.commit()
    tenant_db.refresh(entry)

    logger.info(f"User {current_user.user_id} booked {entry.minutes} minutes for employee {entry.employee_id}")
    return _to_response(entry, context.tenant_id)


# PUBLIC_INTERFACE
@router.get("/", response_model=TimeEntriesListResponse,
           summary="List time entries",
           description="List time entries, newest first, with optional employee, project and date filters.")
async def list_time_entries(
    employee_id: Optional[UUID] = Query(None, alias="employeeId", description="Filter by employee"),
    project_id: Optional[UUID] = Query(None, alias="projectId", description="Filter by project"),
    date_from: Optional[dt.date] = Query(None, alias="from", description="First work date (inclusive)"),
    date_to: Optional[dt.date] = Query(None, alias="to", description="Last work date (inclusive)"),
    current_user: CurrentUser = Depends(get_current_user),
    context: TenantContext = Depends(get_tenant_context),
    tenant_db: Session = Depends(get_tenant_db)
):
    """
    List time entries.

    Non-privileged users always get only their own entries, whatever
    ``employeeId`` says.
    """
    query = tenant_db.query(TimeEntry)

    if not current_user.is_privileged:
        query = query.filter(TimeEntry.employee_id == _own_employee(current_user, tenant_db).id)
    elif employee_id:
        query = query.filter(TimeEntry.employee_id == employee_id)

    if project_id:
        query = query.filter(TimeEntry.project_id == project_id)
    if date_from:
        query = query.filter(TimeEntry.date >= date_from)
    if date_to:
        query = query.filter(TimeEntry.date <= date_to)

    entries = query.order_by(TimeEntry.date.desc(), TimeEntry.start_time.desc()).all()

    return TimeEntriesListResponse(
        entries=[_to_response(entry, context.tenant_id) for entry in entries],
        total=len(entries),
        total_minutes=sum(entry.minutes for entry in entries)
    )


# PUBLIC_INTERFACE
@router.get("/{entry_id}", response_model=TimeEntryResponse,
           summary="Get time entry",
           description="Get a single time entry.")
async def get_time_entry(
    entry_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    context: TenantContext = Depends(get_tenant_context),
    tenant_db: Session = Depends(get_tenant_db)
):
    return _to_response(_get_visible_entry(entry_id, current_user, tenant_db), context.tenant_id)


# PUBLIC_INTERFACE
@router.patch("/{entry_id}", response_model=TimeEntryResponse,
             summary="Update time entry",
             description="Update a time entry. Only provided fields are changed.")
async def update_time_entry(
    entry_id: UUID,
    request: TimeEntryUpdateRequest,
    current_user: CurrentUser = Depends(get_current_user),
    context: TenantContext = Depends(get_tenant_context),
    tenant_db: Session = Depends(get_tenant_db)
):
    """
    Update a time entry.

    Raises:
        HTTPException: 404 for unknown or foreign entries, 400 when the end
            time would precede the start time
    """
    entry = _get_visible_entry(entry_id, current_user, tenant_db)
    update_data = request.model_dump(exclude_unset=True, exclude_none=True)

    if "project_id" in update_data and update_data["project_id"] != entry.project_id:
        _get_bookable_project(tenant_db, update_data["project_id"])

    start_time = _as_utc(update_data.get("start_time", entry.start_time))
    end_time = _as_utc(update_data.get("end_time", entry.end_time))
    if start_time and end_time and end_time < start_time:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="endTime must not be before startTime"
        )

    if "duration_minutes" in update_data:
        update_data["minutes"] = update_data.pop("duration_minutes")

    for field, value in update_data.items():
        setattr(entry, field, value)
    entry.updated_by_user_id = current_user.user_id

    tenant_db.commit()
    tenant_db.refresh(entry)
    return _to_response(entry, context.tenant_id)


# PUBLIC_INTERFACE
@router.delete("/{entry_id}", status_code=status.HTTP_204_NO_CONTENT,
              summary="Delete time entry",
              description="Delete a time entry.")
async def delete_time_entry(
    entry_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    tenant_db: Session = Depends(get_tenant_db)
):
    entry = _get_visible_entry(entry_id, current_user, tenant_db)
    tenant_db.delete(entry)
    tenant_db.commit()
    logger.info(f"User {current_user.user_id} deleted time entry {entry_id}")
