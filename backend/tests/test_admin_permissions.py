"""
Tests for admin authentication, role checks and school/branch scoping.
"""

import pytest

from rest_api.models import Department, DepartmentSchool
from rest_api.services.permissions import PermissionContext, Scope, UNRESTRICTED
from shared.utils.exceptions import ForbiddenError


class TestPermissionContext:
    def test_entity_admin_is_unrestricted(self):
        ctx = PermissionContext({"sub": "1", "company_id": "c", "roles": ["ENTITY_ADMIN"]})
        assert ctx.scope == UNRESTRICTED
        assert ctx.can_write_config

    def test_school_admin_scope(self):
        ctx = PermissionContext(
            {"sub": "1", "company_id": "c", "roles": ["SCHOOL_ADMIN"], "school_ids": ["s1"]}
        )
        assert ctx.scope == Scope(school_ids=frozenset({"s1"}))
        assert ctx.scope.allows_branch("any-branch")

    def test_branch_admin_scope_is_read_only(self):
        ctx = PermissionContext(
            {
                "sub": "1",
                "company_id": "c",
                "roles": ["BRANCH_ADMIN"],
                "school_ids": ["s1"],
                "branch_ids": ["b1"],
            }
        )
        assert ctx.scope.allows_branch("b1")
        assert not ctx.scope.allows_branch("b2")
        with pytest.raises(ForbiddenError):
            ctx.require_config_write()

    def test_unknown_role_sees_nothing(self):
        ctx = PermissionContext({"sub": "1", "company_id": "c", "roles": ["JANITOR"]})
        assert ctx.scope.school_ids == frozenset()
        with pytest.raises(ForbiddenError):
            ctx.require_any_role()

    def test_scope_cache_key_is_order_independent(self):
        first = Scope(school_ids=frozenset({"b", "a"}))
        second = Scope(school_ids=frozenset({"a", "b"}))
        assert first.cache_key() == second.cache_key() == (("a", "b"), None)


class TestAuthentication:
    def test_missing_token(self, client):
        response = client.get("/api/admin/departments")
        assert response.status_code == 401

    def test_garbage_token(self, client):
        response = client.get(
            "/api/admin/departments", headers={"Authorization": "Bearer not-a-jwt"}
        )
        assert response.status_code == 401

    def test_unknown_role_is_forbidden(self, client, make_headers, seed_company):
        response = client.get("/api/admin/schools", headers=make_headers(["JANITOR"]))
        assert response.status_code == 403
        assert response.json()["detail"] == "Not authorized to access the administration console"


class TestRoleChecks:
    def test_branch_admin_cannot_create_department(
        self, client, branch_admin_headers, seed_schools
    ):
        response = client.post(
            "/api/admin/departments",
            headers=branch_admin_headers,
            json={"name": "Science", "school_ids": ["school-1"]},
        )
        assert response.status_code == 403
        assert response.json()["detail"] == "Not authorized to modify configuration"

    def test_branch_admin_can_read(self, client, branch_admin_headers, seed_branches):
        response = client.get("/api/admin/branches", headers=branch_admin_headers)
        assert response.status_code == 200
        assert [b["id"] for b in response.json()] == ["branch-1"]

    def test_school_admin_cannot_create_school(self, client, school_admin_headers, seed_company):
        response = client.post(
            "/api/admin/schools",
            headers=school_admin_headers,
            json={"name": "East Campus", "code": "EST"},
        )
        assert response.status_code == 403

    def test_school_admin_cannot_toggle_company(self, client, school_admin_headers, seed_company):
        response = client.post("/api/admin/company/toggle-status", headers=school_admin_headers)
        assert response.status_code == 403


class TestScoping:
    def test_school_admin_lists_only_own_schools(self, client, school_admin_headers, seed_schools):
        response = client.get("/api/admin/schools", headers=school_admin_headers)
        assert [s["id"] for s in response.json()] == ["school-1"]

    def test_school_admin_cannot_read_other_school(
        self, client, school_admin_headers, seed_schools
    ):
        response = client.get("/api/admin/schools/school-2", headers=school_admin_headers)
        assert response.status_code == 404

    def test_out_of_scope_school_reference(self, client, school_admin_headers, seed_schools):
        response = client.post(
            "/api/admin/departments",
            headers=school_admin_headers,
            json={"name": "Science", "school_ids": ["school-1", "school-2"]},
        )
        assert response.status_code == 403
        assert response.json()["detail"] == "Not authorized to reference these schools"

    def test_school_admin_creates_department_in_own_school(
        self, client, school_admin_headers, seed_schools
    ):
        response = client.post(
            "/api/admin/departments",
            headers=school_admin_headers,
            json={"name": "Science", "school_ids": ["school-1"]},
        )
        assert response.status_code == 201

    def test_scoped_list_of_departments(
        self, client, db_session, school_admin_headers, seed_schools
    ):
        db_session.add_all(
            [
                Department(id="dept-1", company_id="company-1", name="Science"),
                Department(id="dept-2", company_id="company-1", name="Finance"),
            ]
        )
        db_session.flush()
        db_session.add_all(
            [
                DepartmentSchool(department_id="dept-1", school_id="school-1"),
                DepartmentSchool(department_id="dept-2", school_id="school-2"),
            ]
        )
        db_session.commit()

        response = client.get("/api/admin/departments", headers=school_admin_headers)

        assert [d["name"] for d in response.json()] == ["Science"]


class TestTenantIsolation:
    def test_other_company_gets_404(self, client, make_headers, seed_schools, seed_other_company):
        headers = make_headers(company_id=seed_other_company.id)

        response = client.get("/api/admin/schools/school-1", headers=headers)

        assert response.status_code == 404
        assert response.json()["detail"] == "School with ID school-1 not found"

    def test_other_company_lists_nothing(
        self, client, make_headers, seed_schools, seed_other_company
    ):
        headers = make_headers(company_id=seed_other_company.id)
        assert client.get("/api/admin/schools", headers=headers).json() == []

    def test_other_company_cannot_reference_schools(
        self, client, make_headers, seed_schools, seed_other_company
    ):
        headers = make_headers(company_id=seed_other_company.id)
        response = client.post(
            "/api/admin/departments",
            headers=headers,
            json={"name": "Science", "school_ids": ["school-1"]},
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Unknown school ids: school-1"
