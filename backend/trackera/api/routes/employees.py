"""
Employee API routes.

Employees live in the tenant's schema. Every member of a tenant may read
them; owners and admins may create and update them.
"""
import logging
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from uuid import UUID, uuid4

from ...database.models import Employee, EmployeeStatus, Role
from ...schemas.employee import EmployeeCreateRequest, EmployeeUpdateRequest, EmployeeResponse
from ...auth.dependencies import (
    get_tenant_context, get_tenant_db, require_roles, CurrentUser, TenantContext
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/employees", tags=["Employees"])


def _to_response(employee: Employee, tenant_id: UUID) -> EmployeeResponse:
    return EmployeeResponse(
        id=employee.id,
        tenant_id=tenant_id,
        user_id=employee.user_id,
        first_name=employee.first_name,
        last_name=employee.last_name,
        email=employee.email,
        employee_code=employee.employee_code,
        status=employee.status,
        created_at=employee.created_at,
        updated_at=employee.updated_at
    )


def _get_employee_or_404(tenant_db: Session, employee_id: UUID) -> Employee:
    employee = tenant_db.get(Employee, employee_id)
    if not employee:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Employee not found"
        )
    return employee


# PUBLIC_INTERFACE
@router.get("/", response_model=List[EmployeeResponse],
           summary="List employees",
           description="Get the employees of the current tenant ordered by name.")
async def list_employees(
    employee_status: Optional[EmployeeStatus] = Query(None, alias="status", description="Filter by status"),
    context: TenantContext = Depends(get_tenant_context),
    tenant_db: Session = Depends(get_tenant_db)
):
    query = tenant_db.query(Employee)
    if employee_status:
        query = query.filter(Employee.status == employee_status)
    employees = query.order_by(Employee.first_name, Employee.last_name).all()
    return [_to_response(employee, context.tenant_id) for employee in employees]


# PUBLIC_INTERFACE
@router.get("/{employee_id}", response_model=EmployeeResponse,
           summary="Get employee",
           description="Get a single employee of the current tenant.")
async def get_employee(
    employee_id: UUID,
    context: TenantContext = Depends(get_tenant_context),
    tenant_db: Session = Depends(get_tenant_db)
):
    return _to_response(_get_employee_or_404(tenant_db, employee_id), context.tenant_id)


# PUBLIC_INTERFACE
@router.post("/", response_model=EmployeeResponse, status_code=status.HTTP_201_CREATED,
            summary="Create employee",
            description="Add an employee to the current tenant. Requires OWNER or ADMIN.")
async def create_employee(
    request: EmployeeCreateRequest,
    current_user: CurrentUser = Depends(require_roles(Role.OWNER, Role.ADMIN)),
    context: TenantContext = Depends(get_tenant_context),
    tenant_db: Session = Depends(get_tenant_db)
):
    """
    Create a new employee.

    The employee has no login until an administrator provisions a user for it.
    """
    employee = Employee(
        id=uuid4(),
        first_name=request.first_name,
        last_name=request.last_name,
        email=request.email,
        employee_code=request.employee_code
    )
    tenant_db.add(employee)
    tenant_db.commit()
    tenant_db.refresh(employee)

    logger.info(f"User {current_user.user_id} created employee {employee.id}")
    return _to_response(employee, context.tenant_id)


# PUBLIC_INTERFACE
@router.patch("/{employee_id}", response_model=EmployeeResponse,
             summary="Update employee",
             description="Update an employee of the current tenant. Requires OWNER or ADMIN.")
async def update_employee(
    employee_id: UUID,
    request: EmployeeUpdateRequest,
    current_user: CurrentUser = Depends(require_roles(Role.OWNER, Role.ADMIN)),
    context: TenantContext = Depends(get_tenant_context),
    tenant_db: Session = Depends(get_tenant_db)
):
    employee = _get_employee_or_404(tenant_db, employee_id)

    for field, value in request.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(employee, field, value)

    tenant_db.commit()
    tenant_db.refresh(employee)
    return _to_response(employee, context.tenant_id)
