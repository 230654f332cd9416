"""
Tests for the company/school/branch wizard endpoints.
"""

from sqlalchemy import func, select

from rest_api.models import Company, School, SchoolAdditional


SCHOOL_RECORD = {
    "name": "West Campus",
    "code": "WST",
    "status": "active",
    "curriculum_type": "national, ib",
    "principal_name": "Ana Rojas",
    "principal_email": "ana.rojas@acme.cl",
    "teachers_count": "40",
    "active_teachers_count": "35",
    "total_capacity": "900",
    "student_count": "640",
    "has_library": True,
}


def _create_school(client, headers, record=None):
    return client.post(
        "/api/admin/wizard/school",
        headers=headers,
        json={"record": record or SCHOOL_RECORD},
    )


class TestWizardSteps:
    def test_school_steps(self, client, auth_headers):
        response = client.get("/api/admin/wizard/school/steps", headers=auth_headers)

        assert response.status_code == 200
        steps = response.json()
        assert [s["step_id"] for s in steps] == [
            "basic",
            "leadership",
            "location",
            "capacity",
            "facilities",
        ]
        assert steps[0]["index"] == 0
        assert "name" in steps[0]["fields"]

    def test_unknown_entity_type(self, client, auth_headers):
        response = client.get("/api/admin/wizard/campus/steps", headers=auth_headers)
        assert response.status_code == 404

    def test_validate_step_returns_errors_in_body(self, client, auth_headers):
        response = client.post(
            "/api/admin/wizard/school/validate-step",
            headers=auth_headers,
            json={"step": 0, "record": {"name": "West", "code": "WS", "status": "active"}},
        )

        assert response.status_code == 200
        assert response.json() == {
            "step": 0,
            "valid": False,
            "errors": {"code": "Code must be at least 3 characters"},
        }

    def test_validate_step_valid(self, client, auth_headers):
        response = client.post(
            "/api/admin/wizard/school/validate-step",
            headers=auth_headers,
            json={"step": 1, "record": {"principal_email": "ana@acme.cl"}},
        )
        assert response.json()["valid"] is True

    def test_validate_step_out_of_range(self, client, auth_headers):
        response = client.post(
            "/api/admin/wizard/school/validate-step",
            headers=auth_headers,
            json={"step": 9, "record": {}},
        )
        assert response.status_code == 400


class TestSchoolWizard:
    def test_create_then_read_merged_record(self, client, auth_headers, seed_company):
        created = _create_school(client, auth_headers)

        assert created.status_code == 201
        school_id = created.json()["id"]
        assert created.json()["entity_type"] == "school"

        response = client.get(f"/api/admin/wizard/school/{school_id}", headers=auth_headers)

        assert response.status_code == 200
        record = response.json()["record"]
        assert record["name"] == "West Campus"
        assert record["company_id"] == "company-1"
        assert record["teachers_count"] == 40
        assert record["curriculum_type"] == ["national", "ib"]
        assert record["has_library"] is True
        assert record["campus_city"] is None

    def test_failing_step_returns_422_with_step(self, client, auth_headers, seed_company):
        response = _create_school(
            client, auth_headers, {**SCHOOL_RECORD, "principal_email": "ana.rojas"}
        )

        assert response.status_code == 422
        detail = response.json()["detail"]
        assert detail["step"] == 1
        assert detail["errors"] == {"principal_email": "Invalid email address"}

    def test_cross_field_rule_reports_capacity_step(self, client, auth_headers, seed_company):
        response = _create_school(
            client, auth_headers, {**SCHOOL_RECORD, "student_count": "1000"}
        )

        assert response.status_code == 422
        assert response.json()["detail"]["step"] == 3

    def test_duplicate_code_is_a_form_error(self, client, auth_headers, seed_schools):
        response = _create_school(client, auth_headers, {**SCHOOL_RECORD, "code": "NTH"})

        assert response.status_code == 400
        assert response.json()["detail"] == "School with identifier 'NTH' already exists"

    def test_scoped_admin_cannot_create_schools(self, client, school_admin_headers, seed_company):
        response = _create_school(client, school_admin_headers)
        assert response.status_code == 403

    def test_edit_upserts_single_extension_row(self, client, db_session, auth_headers, seed_schools):
        record = {"name": "North Campus", "code": "NTH", "status": "active", "teachers_count": 20}

        first = client.put("/api/admin/wizard/school/school-1", headers=auth_headers, json={"record": record})
        second = client.put(
            "/api/admin/wizard/school/school-1",
            headers=auth_headers,
            json={"record": {**record, "teachers_count": 25}},
        )

        assert first.status_code == 200
        assert second.status_code == 200
        rows = db_session.scalar(select(func.count()).select_from(SchoolAdditional))
        assert rows == 1
        db_session.expire_all()
        assert db_session.get(SchoolAdditional, "school-1").teachers_count == 25
        assert db_session.get(School, "school-1").updated_at is not None

    def test_edit_unknown_school(self, client, auth_headers, seed_schools):
        response = client.put(
            "/api/admin/wizard/school/ghost",
            headers=auth_headers,
            json={"record": SCHOOL_RECORD},
        )
        assert response.status_code == 404
        assert response.json()["detail"] == "School with ID ghost not found"

    def test_unknown_fields_are_dropped(self, client, auth_headers, seed_company):
        created = _create_school(client, auth_headers, {**SCHOOL_RECORD, "mascot": "Condor"})
        assert created.status_code == 201

        record = client.get(
            f"/api/admin/wizard/school/{created.json()['id']}", headers=auth_headers
        ).json()["record"]
        assert "mascot" not in record


class TestBranchWizard:
    def test_parent_id_sets_school(self, client, auth_headers, seed_schools):
        response = client.post(
            "/api/admin/wizard/branch",
            headers=auth_headers,
            json={
                "record": {
                    "name": "North Secondary",
                    "code": "NTH-S",
                    "status": "active",
                    "student_capacity": "300",
                    "current_students": "120",
                    "working_days": ["mon", "tue", "wed"],
                },
                "parent_id": "school-1",
            },
        )

        assert response.status_code == 201
        branch_id = response.json()["id"]

        branch = client.get(f"/api/admin/branches/{branch_id}", headers=auth_headers).json()
        assert branch["school_id"] == "school-1"
        assert branch["school_name"] == "North Campus"

        record = client.get(f"/api/admin/wizard/branch/{branch_id}", headers=auth_headers).json()
        assert record["record"]["working_days"] == ["mon", "tue", "wed"]
        assert record["record"]["student_capacity"] == 300

    def test_branch_requires_school(self, client, auth_headers, seed_schools):
        response = client.post(
            "/api/admin/wizard/branch",
            headers=auth_headers,
            json={"record": {"name": "Orphan", "code": "ORP", "status": "active"}},
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Branch school is required"

    def test_branch_admin_is_read_only(self, client, branch_admin_headers, seed_schools):
        response = client.post(
            "/api/admin/wizard/branch",
            headers=branch_admin_headers,
            json={"record": {"name": "New", "code": "NEW", "status": "active"}, "parent_id": "school-1"},
        )
        assert response.status_code == 403


class TestCompanyWizard:
    RECORD = {"name": "New Group", "code": "NEWG", "status": "active", "fiscal_year_start": "3"}

    def test_only_system_admin_creates_companies(self, client, auth_headers, seed_company):
        response = client.post(
            "/api/admin/wizard/company", headers=auth_headers, json={"record": self.RECORD}
        )
        assert response.status_code == 403

    def test_system_admin_creates_company(self, client, db_session, make_headers, seed_company):
        headers = make_headers(["SYSTEM_ADMIN"])

        response = client.post(
            "/api/admin/wizard/company", headers=headers, json={"record": self.RECORD}
        )

        assert response.status_code == 201
        company = db_session.get(Company, response.json()["id"])
        assert company.code == "NEWG"

    def test_company_edits_only_itself(self, client, auth_headers, seed_company, seed_other_company):
        record = {"name": "Renamed", "code": "OTHER", "status": "active"}

        response = client.put(
            f"/api/admin/wizard/company/{seed_other_company.id}",
            headers=auth_headers,
            json={"record": record},
        )

        assert response.status_code == 404

    def test_edit_own_company(self, client, auth_headers, seed_company):
        response = client.put(
            "/api/admin/wizard/company/company-1",
            headers=auth_headers,
            json={"record": {"name": "Acme Education", "code": "ACME", "status": "active"}},
        )

        assert response.status_code == 200
        company = client.get("/api/admin/company", headers=auth_headers).json()
        assert company["name"] == "Acme Education"
