# projects/policies.py
"""
Centralized project policy layer.

Every permission check for project and task actions goes through here.
A caller's role on a project is resolved once, then looked up in
ROLE_CAPABILITIES. Views use ProjectPolicy.require() which raises
ProjectPermissionDenied; the API exception handler turns that into a 403.
"""
from typing import Optional
import logging

from rest_framework.exceptions import PermissionDenied

from .models import Project, ProjectMember

logger = logging.getLogger("taskboard.projects.policy")


CAPABILITY_VIEW = "view"
CAPABILITY_EDIT = "edit"
CAPABILITY_DELETE = "delete"
CAPABILITY_MANAGE_MEMBERS = "manage_members"

ROLE_CAPABILITIES = {
    ProjectMember.ROLE_OWNER: frozenset({
        CAPABILITY_VIEW,
        CAPABILITY_EDIT,
        CAPABILITY_DELETE,
        CAPABILITY_MANAGE_MEMBERS,
    }),
    ProjectMember.ROLE_EDITOR: frozenset({CAPABILITY_VIEW, CAPABILITY_EDIT}),
    ProjectMember.ROLE_VIEWER: frozenset({CAPABILITY_VIEW}),
}


class ProjectPermissionDenied(PermissionDenied):
    default_detail = "You do not have permission to perform this action on this project"
    default_code = "project_permission_denied"


def is_allowed(role: Optional[str], capability: str) -> bool:
    """Pure (role, capability) -> allow/deny lookup. No role means no access."""
    if role is None:
        return False
    return capability in ROLE_CAPABILITIES.get(role, frozenset())


def _caller_id(caller):
    if caller is None:
        return None
    if hasattr(caller, "is_authenticated"):
        return caller.pk if caller.is_authenticated else None
    return caller


class ProjectPolicy:
    """
    Capability predicates over (caller, project_id).
    `caller` is a user instance or a plain user id.
    """

    @staticmethod
    def resolve_role(caller, project_id) -> Optional[str]:
        """The caller's role on the project, or None when not a member."""
        user_id = _caller_id(caller)
        if user_id is None or project_id is None:
            return None

        owner_id = (
            Project.objects
            .filter(pk=project_id)
            .values_list("owner_id", flat=True)
            .first()
        )
        if owner_id is None:
            return None
        if owner_id == user_id:
            return ProjectMember.ROLE_OWNER

        return (
            ProjectMember.objects
            .filter(project_id=project_id, user_id=user_id)
            .values_list("role", flat=True)
            .first()
        )

    @staticmethod
    def has_capability(caller, project_id, capability: str) -> bool:
        role = ProjectPolicy.resolve_role(caller, project_id)
        return is_allowed(role, capability)

    @staticmethod
    def can_view(caller, project_id) -> bool:
        return ProjectPolicy.has_capability(caller, project_id, CAPABILITY_VIEW)

    @staticmethod
    def can_edit(caller, project_id) -> bool:
        return ProjectPolicy.has_capability(caller, project_id, CAPABILITY_EDIT)

    @staticmethod
    def can_delete(caller, project_id) -> bool:
        return ProjectPolicy.has_capability(caller, project_id, CAPABILITY_DELETE)

    @staticmethod
    def can_manage_members(caller, project_id) -> bool:
        return ProjectPolicy.has_capability(caller, project_id, CAPABILITY_MANAGE_MEMBERS)

    @staticmethod
    def require(caller, project_id, capability: str) -> None:
        """Raise ProjectPermissionDenied unless the caller holds `capability`."""
        if ProjectPolicy.has_capability(caller, project_id, capability):
            return

        logger.warning(
            "Permission denied: user=%s, project=%s, capability=%s",
            _caller_id(caller), project_id, capability,
        )
        raise ProjectPermissionDenied()
