"""
Tests for junction table reconciliation.
"""

from sqlalchemy import func, select

from rest_api.models import Department, DepartmentSchool
from rest_api.services.crud.junction import JunctionReconciler, unique_in_order


SCHOOLS = JunctionReconciler(DepartmentSchool, "department_id", "school_id")


def _department(db_session, company_id, dept_id="dept-1", name="Science"):
    department = Department(id=dept_id, company_id=company_id, name=name)
    db_session.add(department)
    db_session.commit()
    return department


def _row_count(db_session):
    return db_session.scalar(select(func.count()).select_from(DepartmentSchool))


class TestUniqueInOrder:
    def test_drops_duplicates_and_blanks(self):
        assert unique_in_order(["b", "a", "", "b", None, "c"]) == ["b", "a", "c"]

    def test_none_input(self):
        assert unique_in_order(None) == []


class TestJunctionReconciler:
    def test_replace_writes_distinct_rows(self, db_session, seed_schools):
        north, south = seed_schools
        department = _department(db_session, north.company_id)

        written = SCHOOLS.replace(db_session, department.id, [north.id, south.id, north.id])
        db_session.commit()

        assert written == [north.id, south.id]
        assert _row_count(db_session) == 2
        assert SCHOOLS.current(db_session, department.id) == sorted([north.id, south.id])

    def test_replace_is_idempotent(self, db_session, seed_schools):
        north, south = seed_schools
        department = _department(db_session, north.company_id)

        SCHOOLS.replace(db_session, department.id, [north.id, south.id])
        SCHOOLS.replace(db_session, department.id, [north.id, south.id])
        db_session.commit()

        assert _row_count(db_session) == 2

    def test_replace_shrinks_the_set(self, db_session, seed_schools):
        north, south = seed_schools
        department = _department(db_session, north.company_id)

        SCHOOLS.replace(db_session, department.id, [north.id, south.id])
        SCHOOLS.replace(db_session, department.id, [south.id])
        db_session.commit()

        assert SCHOOLS.current(db_session, department.id) == [south.id]

    def test_replace_with_empty_set_removes_rows(self, db_session, seed_schools):
        north, _ = seed_schools
        department = _department(db_session, north.company_id)

        SCHOOLS.replace(db_session, department.id, [north.id])
        SCHOOLS.replace(db_session, department.id, [])
        db_session.commit()

        assert _row_count(db_session) == 0

    def test_other_owners_are_untouched(self, db_session, seed_schools):
        north, south = seed_schools
        science = _department(db_session, north.company_id, "dept-1", "Science")
        arts = _department(db_session, north.company_id, "dept-2", "Arts")

        SCHOOLS.replace(db_session, science.id, [north.id])
        SCHOOLS.replace(db_session, arts.id, [north.id, south.id])
        SCHOOLS.replace(db_session, science.id, [south.id])
        db_session.commit()

        links = SCHOOLS.current_for(db_session, [science.id, arts.id])
        assert links == {science.id: [south.id], arts.id: sorted([north.id, south.id])}

    def test_clear_removes_rows_of_given_owners(self, db_session, seed_schools):
        north, south = seed_schools
        science = _department(db_session, north.company_id, "dept-1", "Science")
        arts = _department(db_session, north.company_id, "dept-2", "Arts")
        SCHOOLS.replace(db_session, science.id, [north.id, south.id])
        SCHOOLS.replace(db_session, arts.id, [north.id])

        SCHOOLS.clear(db_session, [science.id])
        db_session.commit()

        assert SCHOOLS.current_for(db_session, [science.id, arts.id]) == {
            science.id: [],
            arts.id: [north.id],
        }
