"""
Tests for wizard step validators and the core/extension record split.
"""

import pytest

from rest_api.services.domain import partition_record
from rest_api.services.domain.wizard_service import steps_for
from rest_api.services.wizard import BRANCH_STEPS, COMPANY_STEPS, CORE_FIELDS, WIZARD_STEPS
from shared.utils.exceptions import NotFoundError, ValidationError


class TestCompanySteps:
    def test_contact_rules(self):
        errors = COMPANY_STEPS[2].run(
            {
                "main_email": "info@acme",
                "main_phone": "12345",
                "website": "acme.cl",
                "ceo_email": "ceo@acme.cl",
                "ceo_phone": "+56 9 1234 5678",
            }
        )
        assert errors == {
            "main_email": "Invalid email address",
            "main_phone": "Invalid phone number",
            "website": "URL must start with http:// or https://",
        }

    def test_blank_optional_fields_pass(self):
        assert COMPANY_STEPS[2].run({"main_email": "", "website": None}) == {}

    def test_fiscal_year_start_month(self):
        assert COMPANY_STEPS[1].run({"fiscal_year_start": "0"}) == {
            "fiscal_year_start": "Month must be between 1 and 12"
        }
        assert COMPANY_STEPS[1].run({"fiscal_year_start": 3}) == {}

    def test_basic_step_labels_the_entity(self):
        errors = COMPANY_STEPS[0].run({"code": "AC", "status": ""})
        assert errors == {
            "name": "Company name is required",
            "code": "Code must be at least 3 characters",
            "status": "Status is required",
        }


class TestBranchSteps:
    def test_current_students_cannot_exceed_capacity(self):
        errors = BRANCH_STEPS[2].run({"student_capacity": "200", "current_students": "201"})
        assert errors == {"current_students": "Cannot exceed student capacity"}

    def test_schedule_step_has_no_rules(self):
        assert BRANCH_STEPS[3].run({"opening_time": "whenever"}) == {}


class TestStepDefinitions:
    def test_every_entity_has_steps(self):
        assert set(WIZARD_STEPS) == {"company", "school", "branch"}
        assert [step.step_id for step in WIZARD_STEPS["school"]] == [
            "basic",
            "leadership",
            "location",
            "capacity",
            "facilities",
        ]

    def test_step_ids_are_unique(self):
        for steps in WIZARD_STEPS.values():
            ids = [step.step_id for step in steps]
            assert len(ids) == len(set(ids))

    def test_unknown_entity_type(self):
        with pytest.raises(NotFoundError):
            steps_for("campus")


class TestPartitionRecord:
    def test_splits_core_and_extension(self):
        core, extension, dropped = partition_record(
            "school",
            {
                "name": "North Campus",
                "code": "NTH",
                "status": "active",
                "principal_name": "Ana Rojas",
                "total_capacity": "800",
                "favourite_colour": "blue",
                "id": "ignored",
                "created_at": "ignored",
            },
        )
        assert core == {"name": "North Campus", "code": "NTH", "status": "active"}
        assert extension == {"principal_name": "Ana Rojas", "total_capacity": 800}
        assert dropped == ["favourite_colour"]

    def test_core_keys_follow_the_allow_list(self):
        core, _, _ = partition_record("branch", {name: None for name in CORE_FIELDS["branch"]})
        assert set(core) == set(CORE_FIELDS["branch"])

    def test_coerces_form_values(self):
        _, extension, _ = partition_record(
            "school",
            {
                "has_library": "true",
                "has_cafeteria": "no",
                "latitude": "-33.45",
                "curriculum_type": "national, ib",
                "campus_city": "  Santiago ",
                "student_count": "",
            },
        )
        assert extension == {
            "has_library": True,
            "has_cafeteria": False,
            "latitude": -33.45,
            "curriculum_type": ["national", "ib"],
            "campus_city": "Santiago",
            "student_count": None,
        }

    def test_working_days_list_is_kept(self):
        _, extension, _ = partition_record("branch", {"working_days": ["mon", "tue"]})
        assert extension == {"working_days": ["mon", "tue"]}

    def test_non_numeric_integer_field(self):
        with pytest.raises(ValidationError):
            partition_record("school", {"teachers_count": "many"})

    def test_company_extension(self):
        core, extension, dropped = partition_record(
            "company", {"name": "Acme", "fiscal_year_start": "4", "tax_id": "76.123.456-7"}
        )
        assert core == {"name": "Acme"}
        assert extension == {"fiscal_year_start": 4, "tax_id": "76.123.456-7"}
        assert dropped == []
