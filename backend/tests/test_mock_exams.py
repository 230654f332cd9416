"""
Tests for mock exam scheduling and the status lifecycle.
"""

from datetime import date, timedelta

import pytest

from rest_api.models import GradeLevel, MockExam, MockExamSchool, MockExamStatusHistory
from rest_api.services.domain import MockExamService
from shared.config.constants import MockExamStatus
from shared.utils.exceptions import InvalidStateError, ValidationError


NEXT_WEEK = date.today() + timedelta(days=7)


@pytest.fixture
def seed_grade_levels(db_session, seed_branches):
    grades = [
        GradeLevel(
            id="grade-11",
            company_id="company-1",
            name="Grade 11",
            code="G11",
            grade_order=11,
            education_level="senior",
        ),
        GradeLevel(
            id="grade-12",
            company_id="company-1",
            name="Grade 12",
            code="G12",
            grade_order=12,
            education_level="senior",
        ),
    ]
    db_session.add_all(grades)
    db_session.commit()
    return grades


def _create(client, headers, **overrides):
    payload = {
        "title": "Mathematics Paper 1 Mock",
        "subject": "Mathematics",
        "scheduled_date": NEXT_WEEK.isoformat(),
        "duration_minutes": 120,
        "school_ids": ["school-1"],
        "grade_level_ids": ["grade-12"],
    }
    payload.update(overrides)
    return client.post("/api/admin/mock-exams", headers=headers, json=payload)


def _transition(client, headers, exam_id, target, reason=None):
    return client.post(
        f"/api/admin/mock-exams/{exam_id}/transition",
        headers=headers,
        json={"status": target, "reason": reason},
    )


class TestScheduleMockExam:
    def test_create_resolves_link_names(self, client, auth_headers, seed_grade_levels):
        response = _create(
            client,
            auth_headers,
            school_ids=["school-1", "school-2"],
            branch_ids=["branch-2"],
            grade_level_ids=["grade-11", "grade-12"],
        )

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "planned"
        assert data["school_names"] == ["North Campus", "South Campus"]
        assert data["branch_names"] == ["South Primary"]
        assert data["grade_level_names"] == ["Grade 11", "Grade 12"]
        assert data["delivery_mode"] == "In-person"
        assert data["exam_window"] == "Term 1"
        assert data["allowed_transitions"] == ["draft", "scheduled", "cancelled"]

    def test_past_date_is_refused(self, client, auth_headers, seed_grade_levels):
        yesterday = date.today() - timedelta(days=1)
        response = _create(client, auth_headers, scheduled_date=yesterday.isoformat())

        assert response.status_code == 400
        assert response.json()["detail"] == "Cannot schedule exam in the past"

    def test_short_title(self, client, auth_headers, seed_grade_levels):
        response = _create(client, auth_headers, title="Maths")
        assert response.status_code == 400
        assert "at least 10 characters" in response.json()["detail"]

    @pytest.mark.parametrize("duration", [29, 301])
    def test_duration_bounds(self, client, auth_headers, seed_grade_levels, duration):
        response = _create(client, auth_headers, duration_minutes=duration)
        assert response.status_code == 400

    def test_requires_a_grade_level(self, client, auth_headers, seed_grade_levels):
        response = _create(client, auth_headers, grade_level_ids=[])
        assert response.status_code == 400
        assert response.json()["detail"] == "At least one grade level is required"

    def test_unknown_grade_level(self, client, auth_headers, seed_grade_levels):
        response = _create(client, auth_headers, grade_level_ids=["grade-99"])
        assert response.status_code == 400
        assert response.json()["detail"] == "Unknown grade level ids: grade-99"

    def test_branch_outside_selected_schools(self, client, auth_headers, seed_grade_levels):
        response = _create(client, auth_headers, branch_ids=["branch-2"])
        assert response.status_code == 400
        assert response.json()["detail"] == "Branches must belong to one of the selected schools"

    def test_invalid_delivery_mode(self, client, auth_headers, seed_grade_levels):
        response = _create(client, auth_headers, delivery_mode="Carrier pigeon")
        assert response.status_code == 400
        assert "delivery_mode" in response.json()["detail"]

    def test_cannot_start_past_planned(self, client, auth_headers, seed_grade_levels):
        response = _create(client, auth_headers, status="in_progress")
        assert response.status_code == 400

    def test_school_admin_cannot_schedule_for_other_school(
        self, client, school_admin_headers, seed_grade_levels
    ):
        response = _create(client, school_admin_headers, school_ids=["school-2"])
        assert response.status_code == 403

    def test_branch_admin_is_read_only(self, client, branch_admin_headers, seed_grade_levels):
        response = _create(client, branch_admin_headers)
        assert response.status_code == 403


class TestListMockExams:
    def test_latest_date_first(self, client, auth_headers, seed_grade_levels):
        _create(client, auth_headers, title="Physics Paper 1 Mock")
        _create(
            client,
            auth_headers,
            title="Chemistry Paper 1 Mock",
            scheduled_date=(NEXT_WEEK + timedelta(days=3)).isoformat(),
        )

        response = client.get("/api/admin/mock-exams", headers=auth_headers)

        assert [e["title"] for e in response.json()] == [
            "Chemistry Paper 1 Mock",
            "Physics Paper 1 Mock",
        ]

    def test_school_admin_sees_own_school_only(
        self, client, auth_headers, school_admin_headers, seed_grade_levels
    ):
        _create(client, auth_headers, title="North Campus Mock Exam")
        _create(client, auth_headers, title="South Campus Mock Exam", school_ids=["school-2"])

        response = client.get("/api/admin/mock-exams", headers=school_admin_headers)

        assert [e["title"] for e in response.json()] == ["North Campus Mock Exam"]

    def test_grade_level_and_date_filters(self, client, auth_headers, seed_grade_levels):
        _create(client, auth_headers, title="Grade 11 Biology Mock", grade_level_ids=["grade-11"])
        _create(
            client,
            auth_headers,
            title="Grade 12 Biology Mock",
            scheduled_date=(NEXT_WEEK + timedelta(days=30)).isoformat(),
        )

        by_grade = client.get(
            "/api/admin/mock-exams?grade_level_ids=grade-11", headers=auth_headers
        )
        by_date = client.get(
            f"/api/admin/mock-exams?date_from={(NEXT_WEEK + timedelta(days=1)).isoformat()}",
            headers=auth_headers,
        )

        assert [e["title"] for e in by_grade.json()] == ["Grade 11 Biology Mock"]
        assert [e["title"] for e in by_date.json()] == ["Grade 12 Biology Mock"]

    def test_list_reflects_transition(self, client, auth_headers, seed_grade_levels):
        exam_id = _create(client, auth_headers).json()["id"]
        client.get("/api/admin/mock-exams", headers=auth_headers)

        _transition(client, auth_headers, exam_id, "scheduled")
        response = client.get("/api/admin/mock-exams?status=scheduled", headers=auth_headers)

        assert [e["id"] for e in response.json()] == [exam_id]


class TestUpdateMockExam:
    def test_grade_levels_replace_the_set(self, client, auth_headers, seed_grade_levels):
        exam_id = _create(client, auth_headers).json()["id"]

        response = client.patch(
            f"/api/admin/mock-exams/{exam_id}",
            headers=auth_headers,
            json={"grade_level_ids": ["grade-11"]},
        )

        assert response.status_code == 200
        assert response.json()["grade_level_names"] == ["Grade 11"]

    def test_status_is_not_patchable(self, client, auth_headers, seed_grade_levels):
        exam_id = _create(client, auth_headers).json()["id"]

        response = client.patch(
            f"/api/admin/mock-exams/{exam_id}",
            headers=auth_headers,
            json={"status": "completed"},
        )

        # Not part of the update schema, so the status stays as it was
        assert response.status_code == 200
        assert response.json()["status"] == "planned"

    def test_cancelled_exam_is_read_only(self, client, auth_headers, seed_grade_levels):
        exam_id = _create(client, auth_headers).json()["id"]
        _transition(client, auth_headers, exam_id, "cancelled", reason="Venue unavailable")

        response = client.patch(
            f"/api/admin/mock-exams/{exam_id}",
            headers=auth_headers,
            json={"notes": "Rescheduled"},
        )

        assert response.status_code == 400


class TestStatusTransitions:
    def test_walks_the_lifecycle(self, client, auth_headers, seed_grade_levels):
        exam_id = _create(client, auth_headers).json()["id"]

        for target in (
            "scheduled",
            "in_progress",
            "grading",
            "moderation",
            "analytics_released",
            "completed",
        ):
            response = _transition(client, auth_headers, exam_id, target)
            assert response.status_code == 200, target
            assert response.json()["status"] == target

        assert response.json()["allowed_transitions"] == []

    def test_skipping_a_step_is_refused(self, client, auth_headers, seed_grade_levels):
        exam_id = _create(client, auth_headers).json()["id"]

        response = _transition(client, auth_headers, exam_id, "grading")

        assert response.status_code == 400
        assert response.json()["detail"] == (
            "Mock exam is in state 'planned', expected one of: in_progress, moderation"
        )

    def test_cancel_requires_reason(self, client, auth_headers, seed_grade_levels):
        exam_id = _create(client, auth_headers).json()["id"]

        response = _transition(client, auth_headers, exam_id, "cancelled", reason="   ")

        assert response.status_code == 400
        assert response.json()["detail"] == "A reason is required to cancel a mock exam"

    def test_unknown_status(self, client, auth_headers, seed_grade_levels):
        exam_id = _create(client, auth_headers).json()["id"]
        response = _transition(client, auth_headers, exam_id, "archived")
        assert response.status_code == 400

    def test_history_newest_first(self, client, auth_headers, seed_grade_levels):
        exam_id = _create(client, auth_headers).json()["id"]
        _transition(client, auth_headers, exam_id, "scheduled")
        _transition(client, auth_headers, exam_id, "cancelled", reason="Strike day")

        response = client.get(f"/api/admin/mock-exams/{exam_id}/history", headers=auth_headers)

        history = response.json()
        assert [(h["old_status"], h["new_status"]) for h in history] == [
            ("scheduled", "cancelled"),
            ("planned", "scheduled"),
        ]
        assert history[0]["change_reason"] == "Strike day"
        assert history[0]["changed_by"] == "admin@acme.test"

    def test_every_status_has_transition_rules(self):
        assert set(MockExamStatus.TRANSITIONS) == set(MockExamStatus.ALL)
        for targets in MockExamStatus.TRANSITIONS.values():
            assert set(targets) <= set(MockExamStatus.ALL)


class TestDeleteMockExam:
    def test_delete_removes_history(self, client, db_session, auth_headers, seed_grade_levels):
        exam_id = _create(client, auth_headers).json()["id"]
        _transition(client, auth_headers, exam_id, "scheduled")

        response = client.post(
            "/api/admin/mock-exams/delete", headers=auth_headers, json={"ids": [exam_id]}
        )

        assert response.json() == {"deleted": 1}
        assert db_session.query(MockExamStatusHistory).count() == 0
        assert db_session.query(MockExamSchool).count() == 0


class TestMockExamService:
    def _add(self, db_session, exam_id, scheduled, **fields):
        db_session.add(
            MockExam(
                id=exam_id,
                company_id="company-1",
                title=f"Mock exam {exam_id}",
                scheduled_date=scheduled,
                **fields,
            )
        )
        db_session.add(MockExamSchool(mock_exam_id=exam_id, school_id="school-1"))
        db_session.commit()

    def test_statistics(self, db_session, seed_grade_levels):
        today = date(2026, 10, 1)
        self._add(
            db_session, "past", date(2026, 9, 1), status="completed",
            readiness_score=90, registered_students_count=40, flagged_students_count=2,
        )
        self._add(
            db_session, "soon", date(2026, 10, 1), readiness_score=45,
            registered_students_count=30, ai_proctoring_enabled=True,
        )
        self._add(
            db_session, "dropped", date(2026, 11, 1), status="cancelled", readiness_score=0,
        )

        stats = MockExamService(db_session).statistics("company-1", today=today)

        assert stats.total == 3
        assert stats.upcoming == 1
        assert stats.total_students == 70
        assert stats.total_flagged == 2
        assert stats.ai_enabled == 1
        assert stats.avg_readiness == 45

    def test_statistics_empty(self, db_session, seed_company):
        stats = MockExamService(db_session).statistics("company-1")
        assert stats.total == 0
        assert stats.avg_readiness == 0

    def test_past_exam_may_keep_its_date(self, db_session, seed_grade_levels):
        self._add(db_session, "old", date(2020, 1, 1))

        updated = MockExamService(db_session).update(
            "old", {"scheduled_date": date(2020, 1, 1), "notes": "Marks entered"}, "company-1"
        )

        assert updated.notes == "Marks entered"

    def test_transition_errors_are_validation_errors(self, db_session, seed_grade_levels):
        self._add(db_session, "done", date(2026, 9, 1), status="completed")
        service = MockExamService(db_session)

        with pytest.raises(InvalidStateError):
            service.transition("done", "planned", "company-1")
        assert issubclass(InvalidStateError, ValidationError)
