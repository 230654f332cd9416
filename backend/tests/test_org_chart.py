"""
Tests for the organization chart and the org-tree CLI.
"""

from typer.testing import CliRunner

import cli
from rest_api.models import Department, DepartmentSchool


def _add_department(db_session, dept_id, name, school_id, parent_id=None):
    db_session.add(
        Department(id=dept_id, company_id="company-1", name=name, parent_department_id=parent_id)
    )
    db_session.flush()
    db_session.add(DepartmentSchool(department_id=dept_id, school_id=school_id))
    db_session.commit()


class TestOrganizationChart:
    def test_company_schools_branches(self, client, auth_headers, seed_branches):
        response = client.get("/api/admin/organization/chart", headers=auth_headers)

        assert response.status_code == 200
        chart = response.json()
        assert len(chart["roots"]) == 1
        company = chart["roots"][0]
        assert company["type"] == "company"
        assert company["name"] == "Acme Schools"
        assert [s["name"] for s in company["children"]] == ["North Campus", "South Campus"]
        assert [b["name"] for b in company["children"][0]["children"]] == ["North Primary"]
        assert chart["totals"] == {
            "company": 1,
            "school": 2,
            "branch": 2,
            "department": 0,
            "nodes": 5,
        }

    def test_departments_are_nested(self, client, db_session, auth_headers, seed_schools):
        _add_department(db_session, "dept-1", "Science", "school-1")
        _add_department(db_session, "dept-2", "Physics", "school-1", parent_id="dept-1")

        chart = client.get("/api/admin/organization/chart", headers=auth_headers).json()

        assert chart["totals"]["department"] == 2
        assert chart["departments"][0]["name"] == "Science"
        assert [c["name"] for c in chart["departments"][0]["children"]] == ["Physics"]

    def test_scoped_user_sees_own_school(self, client, school_admin_headers, seed_branches):
        chart = client.get("/api/admin/organization/chart", headers=school_admin_headers).json()

        schools = chart["roots"][0]["children"]
        assert [s["id"] for s in schools] == ["school-1"]
        assert chart["totals"]["branch"] == 1

    def test_chart_refreshes_after_branch_toggle(self, client, auth_headers, seed_branches):
        client.get("/api/admin/organization/chart", headers=auth_headers)

        client.post("/api/admin/branches/branch-1/toggle-status", headers=auth_headers)
        chart = client.get("/api/admin/organization/chart", headers=auth_headers).json()

        north = chart["roots"][0]["children"][0]
        assert north["children"][0]["status"] == "inactive"

    def test_department_tree_endpoint(self, client, db_session, auth_headers, seed_schools):
        _add_department(db_session, "dept-1", "Science", "school-1")
        _add_department(db_session, "dept-2", "Physics", "school-1", parent_id="dept-1")

        response = client.get("/api/admin/departments/tree", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["depth"] == 2
        assert response.json()["total"] == 2


class TestCli:
    def test_version(self):
        result = CliRunner().invoke(cli.app, ["version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.stdout
