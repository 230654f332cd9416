"""
Permission Context - role checks and the school/branch scope of a user.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable

from shared.config.constants import Roles, UNSCOPED_ROLES, CONFIG_WRITE_ROLES
from shared.utils.exceptions import ForbiddenError


@dataclass(frozen=True)
class Scope:
    """
    School/branch restriction applied to reads and writes.

    None means unrestricted; an empty set means the user can see nothing.
    """

    school_ids: frozenset[str] | None = None
    branch_ids: frozenset[str] | None = None

    @property
    def is_unrestricted(self) -> bool:
        return self.school_ids is None and self.branch_ids is None

    def allows_school(self, school_id: str) -> bool:
        return self.school_ids is None or school_id in self.school_ids

    def allows_branch(self, branch_id: str) -> bool:
        return self.branch_ids is None or branch_id in self.branch_ids

    def cache_key(self) -> tuple:
        return (
            None if self.school_ids is None else tuple(sorted(self.school_ids)),
            None if self.branch_ids is None else tuple(sorted(self.branch_ids)),
        )


UNRESTRICTED = Scope()


class PermissionContext:
    """
    Wraps the decoded JWT claims of the current user.

    Usage:
        ctx = PermissionContext(user)
        ctx.require_config_write()
        service.list_all(ctx.company_id, ctx.scope, filters)
    """

    def __init__(self, user: dict[str, Any]):
        self._user = user
        self._roles = list(user.get("roles", []))

    @property
    def user(self) -> dict:
        return self._user

    @property
    def user_id(self) -> str:
        return str(self._user.get("sub", ""))

    @property
    def user_email(self) -> str:
        return self._user.get("email", "")

    @property
    def company_id(self) -> str:
        return self._user["company_id"]

    @property
    def roles(self) -> list[str]:
        return self._roles

    @property
    def is_system_admin(self) -> bool:
        return Roles.SYSTEM_ADMIN in self._roles

    @property
    def is_unscoped(self) -> bool:
        """ENTITY_ADMIN / SUB_ENTITY_ADMIN (and SYSTEM_ADMIN) see the whole tenant."""
        return bool(UNSCOPED_ROLES.intersection(self._roles))

    @property
    def can_write_config(self) -> bool:
        return bool(CONFIG_WRITE_ROLES.intersection(self._roles))

    @property
    def scope(self) -> Scope:
        """
        Scope derived from roles and claims.

        SCHOOL_ADMIN is limited to its schools (and every branch of them).
        BRANCH_ADMIN is limited to its schools and its branches.
        """
        if self.is_unscoped:
            return UNRESTRICTED

        school_ids = frozenset(self._user.get("school_ids", []))
        if Roles.SCHOOL_ADMIN in self._roles:
            return Scope(school_ids=school_ids)
        if Roles.BRANCH_ADMIN in self._roles:
            return Scope(
                school_ids=school_ids,
                branch_ids=frozenset(self._user.get("branch_ids", [])),
            )
        # Unknown roles see nothing
        return Scope(school_ids=frozenset(), branch_ids=frozenset())

    def require_any_role(self) -> None:
        if not set(Roles.ALL).intersection(self._roles):
            raise ForbiddenError("access the administration console", user_id=self.user_id)

    def require_config_write(self) -> None:
        if not self.can_write_config:
            raise ForbiddenError("modify configuration", user_id=self.user_id, roles=self._roles)

    def require_unscoped(self) -> None:
        if not self.is_unscoped:
            raise ForbiddenError("manage the company", user_id=self.user_id, roles=self._roles)

    def require_system_admin(self) -> None:
        if not self.is_system_admin:
            raise ForbiddenError("create companies", user_id=self.user_id, roles=self._roles)


def require_schools_in_scope(scope: Scope, school_ids: Iterable[str]) -> None:
    """Raise ForbiddenError when a write references a school outside the scope."""
    outside = [school_id for school_id in school_ids if not scope.allows_school(school_id)]
    if outside:
        raise ForbiddenError("reference these schools", school_ids=outside)


def require_branches_in_scope(scope: Scope, branch_ids: Iterable[str]) -> None:
    outside = [branch_id for branch_id in branch_ids if not scope.allows_branch(branch_id)]
    if outside:
        raise ForbiddenError("reference these branches", branch_ids=outside)
