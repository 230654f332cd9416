"""
Tests for DepartmentService: junction writes, hierarchy rules and scope.
"""

import pytest
from sqlalchemy import func, select

from rest_api.models import Department, DepartmentBranch, DepartmentSchool
from rest_api.services.domain import DepartmentService
from rest_api.services.permissions import Scope, UNRESTRICTED
from shared.utils.exceptions import ForbiddenError, NotFoundError, ValidationError
from tests.conftest import COMPANY_ID


def _count(db_session, model):
    return db_session.scalar(select(func.count()).select_from(model))


@pytest.fixture
def service(db_session):
    return DepartmentService(db_session)


class TestCreateDepartment:
    def test_one_row_plus_one_junction_row_per_school(self, db_session, service, seed_schools):
        north, south = seed_schools

        created = service.create(
            {"name": "Science", "school_ids": [north.id, south.id]}, COMPANY_ID
        )

        assert _count(db_session, Department) == 1
        assert _count(db_session, DepartmentSchool) == 2
        assert created.school_ids == [north.id, south.id]
        assert created.school_names == ["North Campus", "South Campus"]
        assert created.branch_ids == []
        assert created.status == "active"

    def test_duplicate_school_ids_are_collapsed(self, db_session, service, seed_schools):
        north, _ = seed_schools
        service.create({"name": "Science", "school_ids": [north.id, north.id]}, COMPANY_ID)
        assert _count(db_session, DepartmentSchool) == 1

    def test_requires_a_school(self, db_session, service, seed_schools):
        with pytest.raises(ValidationError, match="At least one school is required"):
            service.create({"name": "Science", "school_ids": []}, COMPANY_ID)
        assert _count(db_session, Department) == 0

    def test_unknown_school(self, service, seed_schools):
        with pytest.raises(ValidationError, match="Unknown school ids"):
            service.create({"name": "Science", "school_ids": ["nope"]}, COMPANY_ID)

    def test_branches_must_belong_to_selected_schools(self, db_session, service, seed_branches):
        _, south_branch = seed_branches
        with pytest.raises(ValidationError, match="selected schools"):
            service.create(
                {"name": "Science", "school_ids": ["school-1"], "branch_ids": [south_branch.id]},
                COMPANY_ID,
            )
        assert _count(db_session, DepartmentBranch) == 0

    def test_branch_links_and_names(self, service, seed_branches):
        north_branch, _ = seed_branches
        created = service.create(
            {"name": "Science", "school_ids": ["school-1"], "branch_ids": [north_branch.id]},
            COMPANY_ID,
        )
        assert created.branch_ids == [north_branch.id]
        assert created.branch_names == ["North Primary"]

    def test_invalid_type_and_email(self, service, seed_schools):
        with pytest.raises(ValidationError):
            service.create(
                {"name": "Science", "school_ids": ["school-1"], "department_type": "magic"},
                COMPANY_ID,
            )
        with pytest.raises(ValidationError, match="Invalid email"):
            service.create(
                {"name": "Science", "school_ids": ["school-1"], "head_email": "nobody"},
                COMPANY_ID,
            )

    def test_scoped_user_cannot_link_other_school(self, service, seed_schools):
        scope = Scope(school_ids=frozenset({"school-1"}))
        with pytest.raises(ForbiddenError):
            service.create(
                {"name": "Science", "school_ids": ["school-1", "school-2"]}, COMPANY_ID, scope
            )


class TestUpdateDepartment:
    def test_school_set_is_replaced(self, db_session, service, seed_schools):
        created = service.create(
            {"name": "Science", "school_ids": ["school-1", "school-2"]}, COMPANY_ID
        )

        updated = service.update(created.id, {"school_ids": ["school-2"]}, COMPANY_ID)

        assert updated.school_ids == ["school-2"]
        assert _count(db_session, DepartmentSchool) == 1
        assert updated.updated_at is not None

    def test_absent_school_ids_leave_links_alone(self, service, seed_schools):
        created = service.create({"name": "Science", "school_ids": ["school-1"]}, COMPANY_ID)
        updated = service.update(created.id, {"name": "Sciences"}, COMPANY_ID)
        assert updated.name == "Sciences"
        assert updated.school_ids == ["school-1"]

    def test_dropping_a_school_rechecks_branches(self, service, seed_branches):
        created = service.create(
            {"name": "Science", "school_ids": ["school-1", "school-2"], "branch_ids": ["branch-2"]},
            COMPANY_ID,
        )
        with pytest.raises(ValidationError, match="selected schools"):
            service.update(created.id, {"school_ids": ["school-1"]}, COMPANY_ID)

    def test_cannot_be_own_parent(self, service, seed_schools):
        created = service.create({"name": "Science", "school_ids": ["school-1"]}, COMPANY_ID)
        with pytest.raises(ValidationError, match="own parent"):
            service.update(created.id, {"parent_department_id": created.id}, COMPANY_ID)

    def test_cannot_move_under_descendant(self, service, seed_schools):
        science = service.create({"name": "Science", "school_ids": ["school-1"]}, COMPANY_ID)
        physics = service.create(
            {"name": "Physics", "school_ids": ["school-1"], "parent_department_id": science.id},
            COMPANY_ID,
        )
        lab = service.create(
            {"name": "Lab", "school_ids": ["school-1"], "parent_department_id": physics.id},
            COMPANY_ID,
        )

        with pytest.raises(ValidationError, match="sub-departments"):
            service.update(science.id, {"parent_department_id": lab.id}, COMPANY_ID)

        moved = service.update(lab.id, {"parent_department_id": science.id}, COMPANY_ID)
        assert moved.parent_department_name == "Science"

    def test_unknown_parent(self, service, seed_schools):
        with pytest.raises(ValidationError, match="Unknown parent"):
            service.create(
                {"name": "Physics", "school_ids": ["school-1"], "parent_department_id": "ghost"},
                COMPANY_ID,
            )


class TestDeleteDepartment:
    def test_children_move_to_root(self, db_session, service, seed_schools):
        science = service.create({"name": "Science", "school_ids": ["school-1"]}, COMPANY_ID)
        physics = service.create(
            {"name": "Physics", "school_ids": ["school-1"], "parent_department_id": science.id},
            COMPANY_ID,
        )

        service.delete(science.id, COMPANY_ID)

        assert db_session.get(Department, physics.id).parent_department_id is None
        assert _count(db_session, DepartmentSchool) == 1

    def test_delete_many_ignores_unknown_ids(self, service, seed_schools):
        science = service.create({"name": "Science", "school_ids": ["school-1"]}, COMPANY_ID)
        assert service.delete_many([science.id, "ghost"], COMPANY_ID) == 1

    def test_delete_nothing_found(self, service, seed_schools):
        with pytest.raises(NotFoundError):
            service.delete_many(["ghost"], COMPANY_ID)


class TestDepartmentQueries:
    @pytest.fixture
    def departments(self, service, seed_branches):
        science = service.create(
            {
                "name": "Science",
                "school_ids": ["school-1", "school-2"],
                "department_type": "academic",
            },
            COMPANY_ID,
        )
        physics = service.create(
            {
                "name": "Physics",
                "school_ids": ["school-1"],
                "branch_ids": ["branch-1"],
                "parent_department_id": science.id,
                "department_type": "academic",
            },
            COMPANY_ID,
        )
        finance = service.create(
            {"name": "Finance", "school_ids": ["school-2"], "department_type": "administrative"},
            COMPANY_ID,
        )
        return science, physics, finance

    def test_list_sorted_by_name(self, service, departments):
        names = [d.name for d in service.list_all(COMPANY_ID)]
        assert names == ["Finance", "Physics", "Science"]

    def test_filters(self, service, departments):
        by_type = service.list_all(COMPANY_ID, UNRESTRICTED, {"department_type": ["administrative"]})
        assert [d.name for d in by_type] == ["Finance"]

        by_branch = service.list_all(COMPANY_ID, UNRESTRICTED, {"branch_ids": ["branch-1"]})
        assert [d.name for d in by_branch] == ["Physics"]

        by_search = service.list_all(COMPANY_ID, UNRESTRICTED, {"search": "SCI"})
        assert [d.name for d in by_search] == ["Science"]

    def test_scope_limits_to_linked_schools(self, service, departments):
        scope = Scope(school_ids=frozenset({"school-1"}))
        assert [d.name for d in service.list_all(COMPANY_ID, scope)] == ["Physics", "Science"]

        nothing = Scope(school_ids=frozenset())
        assert service.list_all(COMPANY_ID, nothing) == []

    def test_other_tenant_sees_nothing(self, service, departments, seed_other_company):
        assert service.list_all(seed_other_company.id) == []
        science, _, _ = departments
        with pytest.raises(NotFoundError):
            service.get_by_id(science.id, seed_other_company.id)

    def test_tree(self, service, departments):
        tree = service.tree(COMPANY_ID, UNRESTRICTED)

        assert tree.total == 3
        assert tree.depth == 2
        assert [root.name for root in tree.roots] == ["Finance", "Science"]
        science = tree.roots[1]
        assert [child.name for child in science.children] == ["Physics"]

    def test_tree_with_hidden_parent(self, service, departments):
        scope = Scope(school_ids=frozenset({"school-2"}))
        tree = service.tree(COMPANY_ID, scope)
        assert [root.name for root in tree.roots] == ["Finance", "Science"]
        assert tree.total == 2
