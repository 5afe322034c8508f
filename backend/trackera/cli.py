"""
Maintenance commands for operators.

Usage: ``trackera-admin <command>``. Tenants may be given by id or by name.
"""
import argparse
import json
import logging
import sys
from typing import Callable, List, Optional
from uuid import UUID
from pydantic import ValidationError
from sqlalchemy.orm import Session

from .auth.identity import IdentityStore
from .database.connection import SessionLocal
from .database.models import Tenant
from .database.tenant_schema import missing_tenant_tables
from .errors import TrackeraError
from .schemas.admin import AdminEmployeeCreateRequest
from .services.admin_users import AdminUsersService


class TenantNotFound(Exception):
    pass


def _print_json(data) -> None:
    print(json.dumps(data, default=str, indent=2))


def _dump(models) -> list:
    return [model.model_dump(mode="json", by_alias=True) for model in models]


def resolve_tenant(db: Session, reference: str) -> Tenant:
    """Find a tenant by id or by exact name."""
    try:
        tenant = db.get(Tenant, UUID(reference))
    except ValueError:
        tenant = db.query(Tenant).filter(Tenant.name == reference).first()
    if tenant is None:
        raise TenantNotFound(reference)
    return tenant


def _service(db: Session) -> AdminUsersService:
    return AdminUsersService(db, IdentityStore(db.get_bind()))


def list_tenants(db: Session, _: argparse.Namespace) -> int:
    _print_json(_dump(_service(db).get_all_tenants()))
    return 0


def find_schema(db: Session, args: argparse.Namespace) -> int:
    tenant = resolve_tenant(db, args.tenant)
    missing = missing_tenant_tables(db.get_bind(), tenant.schema_name)
    _print_json({
        "tenantId": str(tenant.id),
        "name": tenant.name,
        "schemaName": tenant.schema_name,
        "provisioned": not missing
    })
    return 0


def check_tables(db: Session, args: argparse.Namespace) -> int:
    tenants = [resolve_tenant(db, args.tenant)] if args.tenant else db.query(Tenant).order_by(Tenant.name).all()
    exit_code = 0
    for tenant in tenants:
        missing = missing_tenant_tables(db.get_bind(), tenant.schema_name)
        if missing:
            print(f"MISSING {tenant.schema_name} ({tenant.name}): {', '.join(missing)}")
            exit_code = 1
        else:
            print(f"OK {tenant.schema_name} ({tenant.name})")
    return exit_code


def list_employees(db: Session, args: argparse.Namespace) -> int:
    tenant = resolve_tenant(db, args.tenant)
    _print_json(_dump(_service(db).get_employees_by_tenant(tenant.id)))
    return 0


def list_users(db: Session, _: argparse.Namespace) -> int:
    _print_json(_dump(_service(db).get_all_users()))
    return 0


def create_employee(db: Session, args: argparse.Namespace) -> int:
    tenant = resolve_tenant(db, args.tenant)
    request = AdminEmployeeCreateRequest(
        first_name=args.first_name,
        last_name=args.last_name,
        email=args.email,
        employee_code=args.code
    )
    employee = _service(db).create_employee(tenant.id, request)
    _print_json(employee.model_dump(mode="json", by_alias=True))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="trackera-admin", description="Trackera maintenance utility")
    subparsers = parser.add_subparsers(dest="command", required=True)

    tenants_cmd = subparsers.add_parser("tenants", help="List tenants")
    tenants_cmd.set_defaults(func=list_tenants)

    schema_cmd = subparsers.add_parser("find-schema", help="Show the schema of a tenant")
    schema_cmd.add_argument("tenant", help="Tenant id or name")
    schema_cmd.set_defaults(func=find_schema)

    check_cmd = subparsers.add_parser("check-tables", help="Check tenant schemas for missing tables")
    check_cmd.add_argument("tenant", nargs="?", help="Tenant id or name; all tenants when omitted")
    check_cmd.set_defaults(func=check_tables)

    employees_cmd = subparsers.add_parser("employees", help="List employees of a tenant")
    employees_cmd.add_argument("tenant", help="Tenant id or name")
    employees_cmd.set_defaults(func=list_employees)

    users_cmd = subparsers.add_parser("users", help="List all users")
    users_cmd.set_defaults(func=list_users)

    create_cmd = subparsers.add_parser("create-employee", help="Add an employee to a tenant")
    create_cmd.add_argument("tenant", help="Tenant id or name")
    create_cmd.add_argument("--first-name", required=True)
    create_cmd.add_argument("--last-name", required=True)
    create_cmd.add_argument("--email")
    create_cmd.add_argument("--code", help="Employee code")
    create_cmd.set_defaults(func=create_employee)

    return parser


def main(argv: Optional[List[str]] = None, session_factory: Callable[[], Session] = SessionLocal) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.WARNING)

    db = session_factory()
    try:
        return args.func(db, args)
    except TenantNotFound as e:
        print(f"Tenant not found: {e}", file=sys.stderr)
        return 1
    except TrackeraError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1
    except ValidationError as e:
        print(f"Invalid input: {e}", file=sys.stderr)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
