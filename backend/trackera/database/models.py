"""
SQLAlchemy database models for Trackera.

Shared tables (tenants, users, roles, identities) live on ``Base`` in the
default schema. Tenant-owned tables (employees, projects, time entries) live
on ``TenantBase`` under the ``TENANT_SCHEMA`` placeholder, which is translated
to the tenant's real schema at execution time.
"""
import uuid
from datetime import datetime, timezone
from sqlalchemy import (
    Column, String, Integer, Boolean, Date, DateTime, Text,
    ForeignKey, JSON, MetaData, UniqueConstraint, Index, Enum
)
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.dialects.postgresql import UUID
import enum

# Placeholder schema name for tenant tables, see database.tenant_schema
TENANT_SCHEMA = "tenant"

Base = declarative_base()
TenantBase = declarative_base(metadata=MetaData(schema=TENANT_SCHEMA))


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class UserStatus(str, enum.Enum):
    """Login account status."""
    ACTIVE = "ACTIVE"
    DISABLED = "DISABLED"


class Role(str, enum.Enum):
    """Access-level tags attached to a user."""
    OWNER = "OWNER"
    ADMIN = "ADMIN"
    MANAGER = "MANAGER"
    EMPLOYEE = "EMPLOYEE"
    FINANCE_READONLY = "FINANCE_READONLY"


class RoleScopeType(str, enum.Enum):
    """Scope a role applies to."""
    TENANT = "TENANT"
    PROJECT = "PROJECT"
    TEAM = "TEAM"


class EmployeeStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class ProjectStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    ARCHIVED = "ARCHIVED"


class TimeEntrySource(str, enum.Enum):
    MANUAL = "MANUAL"
    CALENDAR_SUGGESTION = "CALENDAR_SUGGESTION"
    IMPORT = "IMPORT"


# Roles allowed to act on behalf of other employees
PRIVILEGED_ROLES = (Role.OWNER, Role.ADMIN, Role.MANAGER)


class Tenant(Base):
    """Customer organization, isolated in its own schema."""
    __tablename__ = "tenants"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False, unique=True)
    schema_name = Column(String(63), nullable=False, unique=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=utc_now)

    # Relationships
    users = relationship("User", back_populates="tenant")

    def __repr__(self):
        return f"<Tenant(id={self.id}, name='{self.name}', schema='{self.schema_name}')>"


class User(Base):
    """Application user; shares its id with the identity record."""
    __tablename__ = "users"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    tenant_id = Column(UUID(as_uuid=True), ForeignKey("tenants.id"), nullable=False)
    email = Column(String(255), nullable=False, unique=True)
    username = Column(String(255), nullable=True)
    password_hash = Column(String(255), nullable=False)
    status = Column(Enum(UserStatus, native_enum=False), nullable=False, default=UserStatus.ACTIVE)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=utc_now)

    # Relationships
    tenant = relationship("Tenant", back_populates="users")
    roles = relationship("UserRole", back_populates="user")

    __table_args__ = (
        Index('idx_user_tenant_email', 'tenant_id', 'email'),
    )

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', tenant_id={self.tenant_id})>"


class UserRole(Base):
    """Role granted to a user within a scope."""
    __tablename__ = "user_roles"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False)
    role = Column(Enum(Role, native_enum=False), nullable=False, default=Role.EMPLOYEE)
    scope_type = Column(Enum(RoleScopeType, native_enum=False), nullable=False, default=RoleScopeType.TENANT)
    scope_id = Column(String(64), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    # Relationships
    user = relationship("User", back_populates="roles")

    __table_args__ = (
        Index('idx_user_role_user', 'user_id'),
    )

    def __repr__(self):
        return f"<UserRole(user_id={self.user_id}, role='{self.role}', scope='{self.scope_type}')>"


class AuthIdentity(Base):
    """Login-capable credential record owned by the identity store."""
    __tablename__ = "auth_identities"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email = Column(String(255), nullable=False, unique=True)
    encrypted_password = Column(String(255), nullable=False)
    email_confirmed_at = Column(DateTime(timezone=True), nullable=True)
    user_metadata = Column(JSON, nullable=False, default=dict)
    last_sign_in_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=utc_now)

    def __repr__(self):
        return f"<AuthIdentity(id={self.id}, email='{self.email}')>"


class Employee(TenantBase):
    """Person record within a tenant, optionally linked to a user."""
    __tablename__ = "employees"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=True)
    employee_code = Column(String(50), nullable=True)
    # users live in the shared schema, so no foreign key here
    user_id = Column(UUID(as_uuid=True), nullable=True)
    status = Column(Enum(EmployeeStatus, native_enum=False), nullable=False, default=EmployeeStatus.ACTIVE)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=utc_now)

    # Relationships
    time_entries = relationship("TimeEntry", back_populates="employee")

    __table_args__ = (
        UniqueConstraint('user_id', name='uq_employee_user'),
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def __repr__(self):
        return f"<Employee(id={self.id}, name='{self.full_name}', user_id={self.user_id})>"


class Project(TenantBase):
    """Project that time is booked against."""
    __tablename__ = "projects"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    code = Column(String(50), nullable=True)
    description = Column(Text, nullable=True)
    status = Column(Enum(ProjectStatus, native_enum=False), nullable=False, default=ProjectStatus.ACTIVE)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=utc_now)

    # Relationships
    time_entries = relationship("TimeEntry", back_populates="project")

    __table_args__ = (
        UniqueConstraint('code', name='uq_project_code'),
    )

    def __repr__(self):
        return f"<Project(id={self.id}, name='{self.name}')>"


class TimeEntry(TenantBase):
    """Booked working time of an employee on a project."""
    __tablename__ = "time_entries"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    employee_id = Column(UUID(as_uuid=True), ForeignKey(f"{TENANT_SCHEMA}.employees.id"), nullable=False)
    project_id = Column(UUID(as_uuid=True), ForeignKey(f"{TENANT_SCHEMA}.projects.id"), nullable=False)
    date = Column(Date, nullable=False)
    start_time = Column(DateTime(timezone=True), nullable=True)
    end_time = Column(DateTime(timezone=True), nullable=True)
    minutes = Column(Integer, nullable=False)
    billable = Column(Boolean, nullable=False, default=True)
    description = Column(Text, nullable=True)
    source = Column(Enum(TimeEntrySource, native_enum=False), nullable=False, default=TimeEntrySource.MANUAL)
    calendar_event_id = Column(String(255), nullable=True)
    created_by_user_id = Column(UUID(as_uuid=True), nullable=True)
    updated_by_user_id = Column(UUID(as_uuid=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=utc_now)

    # Relationships
    employee = relationship("Employee", back_populates="time_entries")
    project = relationship("Project", back_populates="time_entries")

    def __repr__(self):
        return f"<TimeEntry(id={self.id}, employee_id={self.employee_id}, project_id={self.project_id})>"
