"""
Schema-per-tenant routing tests.
"""
from uuid import UUID, uuid4

from trackera.database.models import Employee, Project
from trackera.database.tenant_schema import (
    missing_tenant_tables, provision_tenant_schema, schema_name_for, tenant_session
)


def test_schema_name_uses_uuid_hex():
    tenant_id = UUID("0f8fad5b-d9cb-469f-a165-70867728950e")

    assert schema_name_for(tenant_id) == "company_0f8fad5bd9cb469fa16570867728950e"
    assert schema_name_for(str(tenant_id)) == schema_name_for(tenant_id)


def test_unprovisioned_schema_misses_every_table(engine):
    missing = missing_tenant_tables(engine, schema_name_for(uuid4()))

    assert set(missing) == {"employees", "projects", "time_entries"}


def test_provisioning_is_idempotent(engine):
    schema = schema_name_for(uuid4())

    provision_tenant_schema(engine, schema)
    provision_tenant_schema(engine, schema)

    assert missing_tenant_tables(engine, schema) == []


def test_tenant_sessions_are_isolated(db_session, factory):
    acme = factory.tenant("Acme Corp")
    globex = factory.tenant("Globex")

    with tenant_session(db_session, acme.schema_name) as acme_db:
        acme_db.add(Employee(id=uuid4(), first_name="Ada", last_name="Lovelace"))
        acme_db.add(Project(id=uuid4(), name="Analytical Engine", code="AE"))
        acme_db.commit()

    with tenant_session(db_session, globex.schema_name) as globex_db:
        assert globex_db.query(Employee).count() == 0
        assert globex_db.query(Project).count() == 0

    with tenant_session(db_session, acme.schema_name) as acme_db:
        assert [e.first_name for e in acme_db.query(Employee).all()] == ["Ada"]


def test_same_project_code_in_two_tenants(db_session, factory):
    for name in ("Acme Corp", "Globex"):
        tenant = factory.tenant(name)
        with tenant_session(db_session, tenant.schema_name) as tenant_db:
            tenant_db.add(Project(id=uuid4(), name="Website", code="WEB"))
            tenant_db.commit()
            assert tenant_db.query(Project).filter(Project.code == "WEB").count() == 1
