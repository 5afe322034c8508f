"""
Pydantic schemas for API request/response validation.

Provides data models for the admin API (tenants, employees, user
provisioning) and the public API (authentication, users, employees, projects,
time entries, dashboard). JSON fields are camelCase.
"""
