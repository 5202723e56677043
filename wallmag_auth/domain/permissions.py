from __future__ import annotations

from enum import Enum

from wallmag_auth.domain.errors import Forbidden


class Role(str, Enum):
    STUDENT = "student"
    PROFESSOR = "professor"
    EDITOR = "editor"
    PUBLISHER = "publisher"
    ADMIN = "admin"


class Permission(str, Enum):
    CREATE_POST = "create_post"
    VIEW_OWN_POSTS = "view_own_posts"
    VIEW_PUBLISHED = "view_published"
    LIKE_POST = "like_post"
    COMMENT_POST = "comment_post"
    VIEW_PENDING_SUBMISSIONS = "view_pending_submissions"
    ACCEPT_REJECT_SUBMISSIONS = "accept_reject_submissions"
    DOWNLOAD_ORIGINAL_FILES = "download_original_files"
    UPLOAD_DESIGNED_VERSION = "upload_designed_version"
    VIEW_ALL_POSTS = "view_all_posts"
    REGISTER_USERS = "register_users"
    PUBLISH_POST = "publish_post"
    UNPUBLISH_POST = "unpublish_post"
    FEATURE_POST = "feature_post"
    APPROVE_DESIGNS = "approve_designs"
    REJECT_DESIGNS = "reject_designs"
    ASSIGN_EDITORS = "assign_editors"
    ASSIGN_PUBLISHERS = "assign_publishers"
    DELETE_POST = "delete_post"
    VIEW_ANALYTICS = "view_analytics"
    MANAGE_USERS = "manage_users"


_MEMBER = frozenset(
    {
        Permission.CREATE_POST,
        Permission.VIEW_OWN_POSTS,
        Permission.VIEW_PUBLISHED,
        Permission.LIKE_POST,
        Permission.COMMENT_POST,
    }
)
_REVIEWER = _MEMBER | {Permission.VIEW_PENDING_SUBMISSIONS}
_EDITOR = _REVIEWER | {
    Permission.ACCEPT_REJECT_SUBMISSIONS,
    Permission.DOWNLOAD_ORIGINAL_FILES,
    Permission.UPLOAD_DESIGNED_VERSION,
    Permission.VIEW_ALL_POSTS,
    Permission.REGISTER_USERS,
}
_PUBLISHER = _EDITOR | {
    Permission.PUBLISH_POST,
    Permission.UNPUBLISH_POST,
    Permission.FEATURE_POST,
}

# Each role's capability set is a superset of the one before it.
ROLE_PERMISSIONS: dict[Role, frozenset[Permission]] = {
    Role.STUDENT: _MEMBER,
    Role.PROFESSOR: frozenset(_REVIEWER),
    Role.EDITOR: frozenset(_EDITOR),
    Role.PUBLISHER: frozenset(_PUBLISHER),
    Role.ADMIN: frozenset(Permission),
}


def permissions_for(role: str | None) -> frozenset[Permission]:
    try:
        return ROLE_PERMISSIONS[Role(role)]
    except ValueError:
        return frozenset()


def has_permission(role: str | None, permission: Permission) -> bool:
    return permission in permissions_for(role)


def authorize(role: str | None, permission: Permission) -> None:
    """Single authorization check consulted once per request."""
    if not has_permission(role, permission):
        raise Forbidden("Insufficient permissions")
