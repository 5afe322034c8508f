"""
Project management API routes.

Provides endpoints for project CRUD operations within the tenant schema.
Every member may read projects (time entries need one); owners, admins and
managers may change them.
"""
import logging
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from uuid import UUID, uuid4

from ...database.models import Project, ProjectStatus, Role, TimeEntry
from ...schemas.project import ProjectCreateRequest, ProjectUpdateRequest, ProjectResponse
from ...auth.dependencies import (
    get_tenant_context, get_tenant_db, require_roles, CurrentUser, TenantContext
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/projects", tags=["Projects"])

project_editors = require_roles(Role.OWNER, Role.ADMIN, Role.MANAGER)


def _to_response(project: Project, tenant_id: UUID) -> ProjectResponse:
    return ProjectResponse(
        id=project.id,
        tenant_id=tenant_id,
        name=project.name,
        code=project.code,
        description=project.description,
        status=project.status,
        created_at=project.created_at,
        updated_at=project.updated_at
    )


def _get_project_or_404(tenant_db: Session, project_id: UUID) -> Project:
    project = tenant_db.get(Project, project_id)
    if not project:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Project not found"
        )
    return project


def _ensure_code_free(tenant_db: Session, code: str, project_id: Optional[UUID] = None) -> None:
    query = tenant_db.query(Project).filter(Project.code == code)
    if project_id:
        query = query.filter(Project.id != project_id)
    if query.first():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Project with this code already exists"
        )


# PUBLIC_INTERFACE
@router.post("/", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED,
            summary="Create new project",
            description="Create a new project within the current tenant. Requires OWNER, ADMIN or MANAGER.")
async def create_project(
    request: ProjectCreateRequest,
    current_user: CurrentUser = Depends(project_editors),
    context: TenantContext = Depends(get_tenant_context),
    tenant_db: Session = Depends(get_tenant_db)
):
    """
    Create a new project.

    New projects start ACTIVE. Project codes must be unique within the tenant.
    """
    if request.code:
        _ensure_code_free(tenant_db, request.code)

    project = Project(
        id=uuid4(),
        name=request.name,
        code=request.code,
        description=request.description,
        status=ProjectStatus.ACTIVE
    )

    tenant_db.add(project)
    tenant_db.commit()
    tenant_db.refresh(project)

    logger.info(f"User {current_user.user_id} created project {project.id}")
    return _to_response(project, context.tenant_id)


# PUBLIC_INTERFACE
@router.get("/", response_model=List[ProjectResponse],
           summary="List projects",
           description="Get the projects of the current tenant, optionally filtered by status.")
async def list_projects(
    project_status: Optional[ProjectStatus] = Query(None, alias="status", description="Filter by project status"),
    context: TenantContext = Depends(get_tenant_context),
    tenant_db: Session = Depends(get_tenant_db)
):
    query = tenant_db.query(Project)
    if project_status:
        query = query.filter(Project.status == project_status)
    projects = query.order_by(Project.name).all()
    return [_to_response(project, context.tenant_id) for project in projects]


# PUBLIC_INTERFACE
@router.get("/{project_id}", response_model=ProjectResponse,
           summary="Get project",
           description="Get a single project of the current tenant.")
async def get_project(
    project_id: UUID,
    context: TenantContext = Depends(get_tenant_context),
    tenant_db: Session = Depends(get_tenant_db)
):
    return _to_response(_get_project_or_404(tenant_db, project_id), context.tenant_id)


# PUBLIC_INTERFACE
@router.patch("/{project_id}", response_model=ProjectResponse,
             summary="Update project",
             description="Update project information. Only provided fields are changed.")
async def update_project(
    project_id: UUID,
    request: ProjectUpdateRequest,
    current_user: CurrentUser = Depends(project_editors),
    context: TenantContext = Depends(get_tenant_context),
    tenant_db: Session = Depends(get_tenant_db)
):
    project = _get_project_or_404(tenant_db, project_id)

    update_data = request.model_dump(exclude_unset=True, exclude_none=True)
    if update_data.get("code") and update_data["code"] != project.code:
        _ensure_code_free(tenant_db, update_data["code"], project_id)

    for field, value in update_data.items():
        setattr(project, field, value)

    tenant_db.commit()
    tenant_db.refresh(project)
    return _to_response(project, context.tenant_id)


# PUBLIC_INTERFACE
@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT,
              summary="Delete project",
              description="Delete a project without time entries. Projects with booked time should be archived.")
async def delete_project(
    project_id: UUID,
    current_user: CurrentUser = Depends(project_editors),
    tenant_db: Session = Depends(get_tenant_db)
):
    project = _get_project_or_404(tenant_db, project_id)

    has_entries = tenant_db.query(TimeEntry.id).filter(TimeEntry.project_id == project_id).first()
    if has_entries:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Project has time entries; archive it instead"
        )

    tenant_db.delete(project)
    tenant_db.commit()
    logger.info(f"User {current_user.user_id} deleted project {project_id}")
