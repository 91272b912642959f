# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Membership rules: pure functions over a Project's member list.
Nothing here touches storage; the project service persists the result.
"""

from typing import Mapping, Optional

from tracker.models.domain import Function, Project, ProjectMember, User

MSG_NEED_ADMIN = "need an admin"
MSG_NO_MEMBERS = "can't be empty"
MSG_DUPLICATE_MEMBER = "not several same member in project"
MSG_UNKNOWN_USER = "references an unknown user"
MSG_UNKNOWN_FUNCTION = "references an unknown function"
MSG_NAME_BLANK = "can't be blank"


def has_member(project: Project, user_id: str) -> bool:
    return any(m.user_id == user_id for m in project.project_members)


def membership_of(project: Project, user_id: str) -> Optional[ProjectMember]:
    return next((m for m in project.project_members if m.user_id == user_id), None)


def add_member(project: Project, user: User, function: Function) -> bool:
    """Append a membership unless the user already has one. Returns True if added."""
    if has_member(project, user.id):
        return False
    project.project_members.append(ProjectMember(
        user_id=user.id,
        user_name=user.login,
        function_id=function.id,
        function_name=function.name,
        is_admin=function.is_admin,
    ))
    return True


def remove_member(project: Project, member_id: str) -> ProjectMember:
    member = project.member(member_id)
    if member is None:
        raise KeyError(f"Member {member_id} not found in project {project.id}")
    project.project_members = [m for m in project.project_members if m.id != member_id]
    return member


def apply_assignments(project: Project, assignments: Mapping[str, str]) -> None:
    """Point each addressed member at its new function id. Ids must be resolved first."""
    for member_id, function_id in assignments.items():
        project.member(member_id).function_id = function_id


def normalize_member(member: ProjectMember, function: Function, user: User) -> ProjectMember:
    """Copy of ``member`` with role and user denormalizations refreshed."""
    return member.model_copy(update={
        "function_name": function.name,
        "is_admin": function.is_admin,
        "user_name": user.login,
    })


def collect_errors(project: Project, name_taken: bool,
                   unknown_users: set[str], unknown_functions: set[str]) -> dict[str, list[str]]:
    """Run every project invariant in one pass; empty dict means valid."""
    errors: dict[str, list[str]] = {}

    def add(field: str, message: str) -> None:
        errors.setdefault(field, []).append(message)

    if not project.name or not project.name.strip():
        add("name", MSG_NAME_BLANK)
    elif name_taken:
        add("name", "has already been taken")

    members = project.project_members
    if not members:
        add("project_members", MSG_NO_MEMBERS)
    if not project.has_admin():
        add("project_members", MSG_NEED_ADMIN)
    if unknown_users:
        add("project_members", MSG_UNKNOWN_USER)
    if unknown_functions:
        add("project_members", MSG_UNKNOWN_FUNCTION)

    user_ids = [m.user_id for m in members]
    if len(user_ids) != len(set(user_ids)):
        add("same_project_members", MSG_DUPLICATE_MEMBER)
    return errors
