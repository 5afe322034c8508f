"""
Test suite for the Trackera backend.

Covers the admin API and CLI, tenant-scoped authentication, schema-per-tenant
isolation, and the public employee, project, time entry and dashboard APIs.
"""
