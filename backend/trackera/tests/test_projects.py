"""
Project management API tests.
"""
from datetime import datetime, timezone
from uuid import uuid4
from fastapi import status

from trackera.database.models import Role

from .test_base import BaseAPITest


class TestProjectManagement(BaseAPITest):
    """Project CRUD within a tenant."""

    base_url = "/api/v1/projects/"

    def test_create_project_success(self, client, auth_headers, tenant, sample_project_data):
        result = client.post(self.base_url, json=sample_project_data, headers=auth_headers)

        self.assert_success_response(result, status.HTTP_201_CREATED)
        data = result.json()
        assert data["name"] == "Website Relaunch"
        assert data["code"] == "WEB"
        assert data["status"] == "ACTIVE"
        assert data["tenantId"] == str(tenant.id)

    def test_create_project_duplicate_code(self, client, auth_headers, sample_project_data):
        client.post(self.base_url, json=sample_project_data, headers=auth_headers)

        result = client.post(self.base_url, json={**sample_project_data, "name": "Other"}, headers=auth_headers)

        self.assert_conflict(result, "Project with this code already exists")

    def test_create_project_missing_name(self, client, auth_headers):
        result = client.post(self.base_url, json={"code": "X"}, headers=auth_headers)

        self.assert_validation_error(result, "name")

    def test_employee_reads_projects(self, client, auth_headers, worker, sample_project_data):
        created = client.post(self.base_url, json=sample_project_data, headers=auth_headers).json()

        listed = client.get(self.base_url, headers=worker[1])
        single = client.get(f"{self.base_url}{created['id']}", headers=worker[1])

        self.assert_success_response(listed)
        assert [p["id"] for p in listed.json()] == [created["id"]]
        self.assert_success_response(single)
        assert single.json()["name"] == "Website Relaunch"

    def test_get_unknown_project(self, client, auth_headers):
        result = client.get(f"{self.base_url}{uuid4()}", headers=auth_headers)

        self.assert_not_found(result, "Project not found")

    def test_archive_project(self, client, auth_headers, sample_project_data):
        created = client.post(self.base_url, json=sample_project_data, headers=auth_headers).json()

        result = client.patch(f"{self.base_url}{created['id']}", json={"status": "ARCHIVED"}, headers=auth_headers)

        self.assert_success_response(result)
        assert result.json()["status"] == "ARCHIVED"
        active = client.get(self.base_url, params={"status": "ACTIVE"}, headers=auth_headers)
        assert active.json() == []

    def test_employee_cannot_update(self, client, auth_headers, worker, sample_project_data):
        created = client.post(self.base_url, json=sample_project_data, headers=auth_headers).json()

        result = client.patch(f"{self.base_url}{created['id']}", json={"name": "Renamed"}, headers=worker[1])

        self.assert_forbidden(result, "Insufficient permissions")

    def test_delete_project(self, client, auth_headers, sample_project_data):
        created = client.post(self.base_url, json=sample_project_data, headers=auth_headers).json()

        result = client.delete(f"{self.base_url}{created['id']}", headers=auth_headers)

        self.assert_success_response(result, status.HTTP_204_NO_CONTENT)
        self.assert_not_found(client.get(f"{self.base_url}{created['id']}", headers=auth_headers))

    def test_delete_project_with_time_entries(self, client, auth_headers, manager, sample_project_data):
        employee, _ = manager
        created = client.post(self.base_url, json=sample_project_data, headers=auth_headers).json()
        client.post(
            "/api/v1/time-entries/",
            json={
                "employeeId": str(employee.id),
                "projectId": created["id"],
                "startTime": datetime(2024, 3, 4, 9, tzinfo=timezone.utc).isoformat(),
                "durationMinutes": 60
            },
            headers=auth_headers
        )

        result = client.delete(f"{self.base_url}{created['id']}", headers=auth_headers)

        self.assert_bad_request(result, "Project has time entries")

    def test_projects_are_isolated_per_tenant(self, client, factory, auth_headers, sample_project_data):
        client.post(self.base_url, json=sample_project_data, headers=auth_headers)
        other = factory.tenant("Globex")
        _, other_headers = factory.member(other, Role.MANAGER, "Gus", "Globex", "gus@globex.example.com")

        result = client.get(self.base_url, headers=other_headers)

        self.assert_success_response(result)
        assert result.json() == []
