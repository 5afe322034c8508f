"""
Schema-per-tenant routing.

Tenant tables are declared under the ``TENANT_SCHEMA`` placeholder. Sessions
returned by ``tenant_session`` rewrite that placeholder to the tenant's own
schema on every statement via SQLAlchemy's ``schema_translate_map``.
"""
import logging
from typing import List
from uuid import UUID
from sqlalchemy import inspect
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session
from sqlalchemy.schema import CreateSchema

from .models import TENANT_SCHEMA, TenantBase

logger = logging.getLogger(__name__)

SCHEMA_PREFIX = "company_"


# PUBLIC_INTERFACE
def schema_name_for(tenant_id) -> str:
    """
    Derive the schema name for a tenant.

    Args:
        tenant_id: Tenant UUID (or its string form)

    Returns:
        str: ``company_`` followed by the hex form of the id
    """
    return f"{SCHEMA_PREFIX}{UUID(str(tenant_id)).hex}"


def _translated(bind, schema_name: str):
    return bind.execution_options(schema_translate_map={TENANT_SCHEMA: schema_name})


# PUBLIC_INTERFACE
def provision_tenant_schema(bind: Engine, schema_name: str) -> None:
    """
    Create a tenant schema and the tenant tables inside it.

    SQLite has no schemas, so the tenant schema is an attached in-memory
    database there; this is what the test suite runs on.
    """
    with bind.connect() as conn:
        if conn.dialect.name == "sqlite":
            attached = {row[1] for row in conn.exec_driver_sql("PRAGMA database_list")}
            if schema_name not in attached:
                conn.exec_driver_sql(f"ATTACH DATABASE ':memory:' AS \"{schema_name}\"")
        else:
            conn.execute(CreateSchema(schema_name, if_not_exists=True))
        TenantBase.metadata.create_all(_translated(conn, schema_name))
        conn.commit()
    logger.info(f"Provisioned tenant schema: {schema_name}")


# PUBLIC_INTERFACE
def tenant_session(db: Session, schema_name: str) -> Session:
    """
    Open a session routed to a tenant schema.

    The session shares the bind of ``db`` but commits independently of it.
    Callers own the returned session and must close it.
    """
    logger.debug(f"Opening session for tenant schema: {schema_name}")
    return Session(bind=_translated(db.get_bind(), schema_name), autoflush=False)


def missing_tenant_tables(bind: Engine, schema_name: str) -> List[str]:
    """Return the tenant table names absent from a schema."""
    inspector = inspect(bind)
    if schema_name not in inspector.get_schema_names():
        return [table.name for table in TenantBase.metadata.sorted_tables]
    existing = set(inspector.get_table_names(schema=schema_name))
    return [table.name for table in TenantBase.metadata.sorted_tables if table.name not in existing]
