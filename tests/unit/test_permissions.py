import pytest

from wallmag_auth.domain.errors import Forbidden
from wallmag_auth.domain.permissions import (
    ROLE_PERMISSIONS,
    Permission,
    Role,
    authorize,
    has_permission,
    permissions_for,
)


def test_roles_are_nested():
    order = [Role.STUDENT, Role.PROFESSOR, Role.EDITOR, Role.PUBLISHER, Role.ADMIN]
    for lower, higher in zip(order, order[1:]):
        assert ROLE_PERMISSIONS[lower] <= ROLE_PERMISSIONS[higher]


def test_admin_has_everything():
    assert permissions_for("admin") == frozenset(Permission)


def test_student_cannot_manage_users():
    assert has_permission("student", Permission.CREATE_POST)
    assert not has_permission("student", Permission.MANAGE_USERS)
    with pytest.raises(Forbidden, match="Insufficient permissions"):
        authorize("student", Permission.MANAGE_USERS)


def test_unknown_role_has_no_permissions():
    assert permissions_for("janitor") == frozenset()
    assert permissions_for(None) == frozenset()
    with pytest.raises(Forbidden):
        authorize(None, Permission.VIEW_PUBLISHED)


def test_editor_and_publisher_capabilities():
    authorize("editor", Permission.REGISTER_USERS)
    authorize("publisher", Permission.PUBLISH_POST)
    assert not has_permission("editor", Permission.PUBLISH_POST)
