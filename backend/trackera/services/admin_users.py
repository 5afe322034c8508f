"""
Admin provisioning of tenants, employees and login users.

A login user spans three stores: the identity store (credentials), the shared
``users``/``user_roles`` tables, and the tenant schema's ``employees`` table.
Writes to them happen one after another; when a later write fails the
earlier ones are undone on a best-effort basis and the failure is logged,
never retried.
"""
import logging
from collections import defaultdict
from typing import Dict, List, Optional
from uuid import UUID, uuid4
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..auth.identity import IdentityError, IdentityStore
from ..auth.jwt_handler import PasswordHandler
from ..database.models import (
    AuthIdentity, Employee, Role, RoleScopeType, Tenant, User, UserRole, UserStatus
)
from ..database.tenant_schema import provision_tenant_schema, schema_name_for, tenant_session
from ..errors import BadRequestError, NotFoundError, ServiceError, db_error_message
from ..schemas.admin import (
    AdminEmployeeCreateRequest, AdminEmployeeResponse, AdminUserResponse,
    CreatedUserResponse, CreateUserRequest, DeleteUserResponse, EmployeeSummary,
    ResetPasswordResponse, RoleInfo, TenantResponse, UpdateUserRequest, UserResponse
)
from ..schemas.user import TenantUserCreateRequest

logger = logging.getLogger(__name__)


class AdminUsersService:
    """Tenant, employee and user administration across all tenants."""

    def __init__(self, db: Session, identity: IdentityStore):
        self.db = db
        self.identity = identity

    def _get_tenant(self, tenant_id: UUID) -> Tenant:
        tenant = self.db.get(Tenant, tenant_id)
        if not tenant:
            logger.error(f"Tenant not found: {tenant_id}")
            raise NotFoundError(f"Tenant not found: {tenant_id}")
        return tenant

    def _get_user(self, user_id: UUID) -> User:
        user = self.db.get(User, user_id)
        if not user:
            logger.error(f"User not found: {user_id}")
            raise NotFoundError(f"User not found: {user_id}")
        return user

    # Tenants

    def get_all_tenants(self) -> List[TenantResponse]:
        """All tenants ordered by name."""
        tenants = self.db.query(Tenant).order_by(Tenant.name).all()
        return [TenantResponse.model_validate(tenant) for tenant in tenants]

    def create_tenant(self, name: str) -> TenantResponse:
        """
        Register a tenant and provision its schema.

        Raises:
            BadRequestError: If a tenant with this name exists
            ServiceError: If the schema cannot be provisioned
        """
        if self.db.query(Tenant).filter(Tenant.name == name).first():
            raise BadRequestError(f"Tenant already exists: {name}")

        tenant_id = uuid4()
        tenant = Tenant(id=tenant_id, name=name, schema_name=schema_name_for(tenant_id))
        self.db.add(tenant)
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to create tenant: {db_error_message(e)}")
            raise ServiceError(f"Failed to create tenant: {db_error_message(e)}") from e
        self.db.refresh(tenant)

        try:
            provision_tenant_schema(self.db.get_bind(), tenant.schema_name)
        except SQLAlchemyError as e:
            logger.error(f"Failed to provision schema {tenant.schema_name}: {db_error_message(e)}")
            try:
                self.db.delete(tenant)
                self.db.commit()
            except SQLAlchemyError as cleanup_error:
                self.db.rollback()
                logger.warning(
                    f"Could not remove tenant {tenant_id} after failed provisioning: {db_error_message(cleanup_error)}"
                )
            raise ServiceError(f"Failed to provision tenant schema: {db_error_message(e)}") from e

        logger.info(f"Created tenant {tenant.name} ({tenant.schema_name})")
        return TenantResponse.model_validate(tenant)

    # Employees

    def get_employees_by_tenant(self, tenant_id: UUID) -> List[AdminEmployeeResponse]:
        """Employees of a tenant ordered by first name."""
        tenant = self._get_tenant(tenant_id)
        with tenant_session(self.db, tenant.schema_name) as tenant_db:
            employees = tenant_db.query(Employee).order_by(Employee.first_name).all()
            return [AdminEmployeeResponse.model_validate(employee) for employee in employees]

    def create_employee(self, tenant_id: UUID, request: AdminEmployeeCreateRequest) -> AdminEmployeeResponse:
        """Add an employee to a tenant's schema."""
        tenant = self._get_tenant(tenant_id)
        with tenant_session(self.db, tenant.schema_name) as tenant_db:
            employee = Employee(
                id=uuid4(),
                first_name=request.first_name,
                last_name=request.last_name,
                email=request.email,
                employee_code=request.employee_code
            )
            tenant_db.add(employee)
            try:
                tenant_db.commit()
            except SQLAlchemyError as e:
                tenant_db.rollback()
                logger.error(f"Failed to create employee in {tenant.schema_name}: {db_error_message(e)}")
                raise ServiceError(f"Failed to create employee: {db_error_message(e)}") from e
            tenant_db.refresh(employee)
            logger.info(f"Created employee {employee.full_name} in tenant {tenant.name}")
            return AdminEmployeeResponse.model_validate(employee)

    # Users

    def get_all_users(self) -> List[AdminUserResponse]:
        """
        All users, newest first, with tenant name, linked employee and roles.

        Employee lookups that fail are skipped; the user is still listed.
        """
        users = self.db.query(User).order_by(User.created_at.desc()).all()
        tenants: Dict[UUID, Tenant] = {tenant.id: tenant for tenant in self.db.query(Tenant).all()}

        roles_by_user: Dict[UUID, List[RoleInfo]] = defaultdict(list)
        for role in self.db.query(UserRole).all():
            roles_by_user[role.user_id].append(RoleInfo.model_validate(role))

        user_ids_by_tenant: Dict[UUID, List[UUID]] = defaultdict(list)
        for user in users:
            user_ids_by_tenant[user.tenant_id].append(user.id)

        employees_by_user: Dict[UUID, EmployeeSummary] = {}
        for tenant_id, user_ids in user_ids_by_tenant.items():
            tenant = tenants.get(tenant_id)
            if tenant is None:
                continue
            try:
                with tenant_session(self.db, tenant.schema_name) as tenant_db:
                    linked = tenant_db.query(Employee).filter(Employee.user_id.in_(user_ids)).all()
                    for employee in linked:
                        employees_by_user[employee.user_id] = EmployeeSummary.model_validate(employee)
            except SQLAlchemyError as e:
                logger.warning(f"Could not load employees for tenant {tenant_id}: {db_error_message(e)}")

        return [
            AdminUserResponse(
                id=user.id,
                email=user.email,
                username=user.username,
                status=user.status,
                tenant_id=user.tenant_id,
                tenant_name=tenants[user.tenant_id].name if user.tenant_id in tenants else "Unknown",
                employee=employees_by_user.get(user.id),
                roles=roles_by_user.get(user.id, []),
                created_at=user.created_at,
                updated_at=user.updated_at
            )
            for user in users
        ]

    def create_user(self, request: CreateUserRequest) -> CreatedUserResponse:
        """
        Create a login user for an existing employee.

        Order of writes: identity record, ``users`` row, default role,
        employee link. If the ``users`` insert fails the identity record is
        deleted again.

        Raises:
            NotFoundError: Unknown tenant or employee
            BadRequestError: Employee already linked, or no email available
            ServiceError: Identity or user creation failed
        """
        tenant = self._get_tenant(request.tenant_id)

        with tenant_session(self.db, tenant.schema_name) as tenant_db:
            employee = tenant_db.get(Employee, request.employee_id)
            if not employee:
                raise NotFoundError(f"Employee not found: {request.employee_id}")
            if employee.user_id:
                raise BadRequestError("Employee already has a user account")

            user_email = employee.email or request.email
            if not user_email:
                raise BadRequestError("Employee does not have an email address. Please provide one.")

            employee_summary = EmployeeSummary.model_validate(employee)
            plain_password = PasswordHandler.generate_password()

            try:
                identity = self.identity.create_user(
                    email=user_email,
                    password=plain_password,
                    email_confirm=True,
                    user_metadata={"tenant_id": str(tenant.id), "employee_id": str(employee.id)}
                )
            except IdentityError as e:
                logger.error(f"Failed to create auth user: {e}")
                raise ServiceError(f"Failed to create auth user: {e}") from e

            user = User(
                id=identity.id,
                email=user_email,
                username=user_email,
                password_hash=PasswordHandler.hash_password(plain_password),
                tenant_id=tenant.id,
                status=UserStatus.ACTIVE
            )
            self.db.add(user)
            try:
                self.db.commit()
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.error(f"Failed to create user in users table: {db_error_message(e)}")
                self._discard_identity(identity.id)
                raise ServiceError(f"Failed to create user: {db_error_message(e)}") from e
            self.db.refresh(user)

            self._add_role(user.id, Role.EMPLOYEE)

            employee.user_id = user.id
            try:
                tenant_db.commit()
            except SQLAlchemyError as e:
                tenant_db.rollback()
                logger.warning(
                    f"Failed to link employee {employee_summary.id} to user {user.id}: {db_error_message(e)}"
                )

        logger.info(f"Created user for employee {employee_summary.first_name} {employee_summary.last_name}")

        return CreatedUserResponse(
            id=user.id,
            email=user.email,
            username=user.username,
            status=user.status,
            tenant_id=user.tenant_id,
            tenant_name=tenant.name,
            employee=employee_summary,
            password=plain_password,
            created_at=user.created_at
        )

    def create_login_user(self, tenant_id: UUID, request: TenantUserCreateRequest) -> UserResponse:
        """
        Create a login user with a chosen password.

        Same order of writes as ``create_user``. An employee record is added
        and linked only when both names are given; failing to do so is logged
        and the user is kept.

        Raises:
            NotFoundError: Unknown tenant
            ServiceError: Identity or user creation failed
        """
        tenant = self._get_tenant(tenant_id)

        try:
            identity = self.identity.create_user(
                email=request.email,
                password=request.password,
                email_confirm=True,
                user_metadata={"tenant_id": str(tenant.id)}
            )
        except IdentityError as e:
            logger.error(f"Failed to create auth user: {e}")
            raise ServiceError(f"Failed to create auth user: {e}") from e

        user = User(
            id=identity.id,
            email=request.email,
            username=request.username or request.email,
            password_hash=PasswordHandler.hash_password(request.password),
            tenant_id=tenant.id,
            status=UserStatus.ACTIVE
        )
        self.db.add(user)
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to create user in users table: {db_error_message(e)}")
            self._discard_identity(identity.id)
            raise ServiceError(f"Failed to create user: {db_error_message(e)}") from e
        self.db.refresh(user)

        self._add_role(user.id, Role.EMPLOYEE)

        if request.first_name and request.last_name:
            with tenant_session(self.db, tenant.schema_name) as tenant_db:
                tenant_db.add(Employee(
                    id=uuid4(),
                    first_name=request.first_name,
                    last_name=request.last_name,
                    email=request.email,
                    user_id=user.id
                ))
                try:
                    tenant_db.commit()
                except SQLAlchemyError as e:
                    tenant_db.rollback()
                    logger.warning(f"Failed to create employee for user {user.id}: {db_error_message(e)}")

        logger.info(f"Created user {user.email} in tenant {tenant.name}")
        return UserResponse.model_validate(user)

    def update_user(self, user_id: UUID, request: UpdateUserRequest) -> UserResponse:
        """
        Update user fields and, optionally, replace its roles.

        A new email also becomes the username unless a username is given.
        """
        user = self._get_user(user_id)

        changes = {}
        if request.email:
            changes["email"] = request.email
            changes["username"] = request.email
        if request.username:
            changes["username"] = request.username
        if request.status:
            changes["status"] = request.status
        if request.tenant_id:
            self._get_tenant(request.tenant_id)
            changes["tenant_id"] = request.tenant_id

        if changes:
            previous_email = user.email
            for field, value in changes.items():
                setattr(user, field, value)
            try:
                self.db.commit()
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.error(f"Failed to update user {user_id}: {db_error_message(e)}")
                raise ServiceError(f"Failed to update user: {db_error_message(e)}") from e
            if changes.get("email") and changes["email"] != previous_email:
                self._sync_identity_email(previous_email, changes["email"])

        if request.role:
            self._replace_roles(user_id, request.role)

        self.db.refresh(user)
        logger.info(f"Updated user: {user_id}")
        return UserResponse.model_validate(user)

    def delete_user(self, user_id: UUID) -> DeleteUserResponse:
        """
        Delete a user from every store.

        Only the ``users`` delete is mandatory; unlinking the employee and
        removing the identity are best-effort.
        """
        user = self._get_user(user_id)
        email = user.email
        tenant = self.db.get(Tenant, user.tenant_id)

        if tenant:
            try:
                with tenant_session(self.db, tenant.schema_name) as tenant_db:
                    tenant_db.query(Employee).filter(Employee.user_id == user_id).update(
                        {Employee.user_id: None}, synchronize_session=False
                    )
                    tenant_db.commit()
            except SQLAlchemyError as e:
                logger.warning(f"Could not unlink employee from user {user_id}: {db_error_message(e)}")

        try:
            self.db.query(UserRole).filter(UserRole.user_id == user_id).delete(synchronize_session=False)
            self.db.query(User).filter(User.id == user_id).delete(synchronize_session=False)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to delete user {user_id}: {db_error_message(e)}")
            raise ServiceError(f"Failed to delete user: {db_error_message(e)}") from e
        self.db.expunge_all()

        identity = self.identity.get_user_by_id(user_id) or self.identity.get_user_by_email(email)
        if identity is None:
            logger.warning(f"No auth identity found for deleted user {user_id}")
        else:
            try:
                self.identity.delete_user(identity.id)
            except IdentityError as e:
                logger.warning(f"Failed to delete auth identity for user {user_id}: {e}")

        logger.info(f"Deleted user: {user_id}")
        return DeleteUserResponse(success=True, message="User deleted successfully")

    def reset_password(self, user_id: UUID) -> ResetPasswordResponse:
        """
        Generate a new password for a user.

        The ``users`` hash is updated first and must succeed. The identity
        store is then updated best-effort: an identity is created if none
        exists, otherwise the existing one gets the new password.
        """
        logger.info(f"Looking up user with ID: {user_id}")
        user = self._get_user(user_id)
        logger.info(f"Found user: {user.email}")

        plain_password = PasswordHandler.generate_password()
        user.password_hash = PasswordHandler.hash_password(plain_password)
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to update password hash for {user_id}: {db_error_message(e)}")
            raise ServiceError(f"Failed to update password in database: {db_error_message(e)}") from e
        self.db.refresh(user)

        self._sync_identity_password(user, plain_password)

        logger.info(f"Password reset complete for user: {user.email}")
        return ResetPasswordResponse(
            id=user.id,
            email=user.email,
            password=plain_password,
            message="Password reset successfully"
        )

    # Best-effort helpers

    def _discard_identity(self, identity_id: UUID) -> None:
        try:
            self.identity.delete_user(identity_id)
            logger.info(f"Removed auth identity {identity_id} after failed user creation")
        except (IdentityError, SQLAlchemyError) as e:
            logger.warning(f"Could not remove auth identity {identity_id}: {db_error_message(e)}")

    def _add_role(self, user_id: UUID, role: Role) -> None:
        self.db.add(UserRole(user_id=user_id, role=role, scope_type=RoleScopeType.TENANT))
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.warning(f"Failed to assign role {role.value} to user {user_id}: {db_error_message(e)}")

    def _replace_roles(self, user_id: UUID, role: Role) -> None:
        try:
            self.db.query(UserRole).filter(UserRole.user_id == user_id).delete(synchronize_session=False)
            self.db.add(UserRole(user_id=user_id, role=role, scope_type=RoleScopeType.TENANT))
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to replace roles of user {user_id}: {db_error_message(e)}")
            raise ServiceError(f"Failed to update user roles: {db_error_message(e)}") from e

    def _sync_identity_email(self, previous_email: str, new_email: str) -> None:
        try:
            identity = self.identity.get_user_by_email(previous_email)
            if identity is None:
                logger.warning(f"No auth identity found for {previous_email}")
                return
            self.identity.update_user_by_id(identity.id, email=new_email)
        except (IdentityError, SQLAlchemyError) as e:
            logger.warning(f"Failed to update auth identity email: {db_error_message(e)}")

    def _sync_identity_password(self, user: User, password: str) -> None:
        try:
            created = self.identity.create_user(
                email=user.email,
                password=password,
                email_confirm=True,
                user_metadata={"tenant_id": str(user.tenant_id)}
            )
            logger.info(f"Created new auth user: {created.id}")
            return
        except IdentityError as e:
            logger.info(f"Auth user create failed ({e}), trying to find and update existing...")

        try:
            identity: Optional[AuthIdentity] = self.identity.get_user_by_email(user.email)
            if identity is None:
                logger.warning("Could not find auth user by email")
                return
            self.identity.update_user_by_id(identity.id, password=password)
            logger.info("Updated auth user password successfully")
        except (IdentityError, SQLAlchemyError) as e:
            logger.warning(f"Failed to update auth password: {db_error_message(e)}")
