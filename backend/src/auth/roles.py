"""Role to rights table used by `require_right`."""

from src.users.models import UserRole


_USER_RIGHTS = ["getUsers", "manageUsers"]

ROLE_RIGHTS: dict[str, frozenset[str]] = {
    UserRole.SUPER_ADMIN.value: frozenset([*_USER_RIGHTS, "notification"]),
    UserRole.ADMIN.value: frozenset(
        [
            "getUsers",
            "manageUsers",
            "createUser",
            "manageSkills",
            "manageCategories",
            "manageFreelancers",
            "freelancerData",
            "projectRequest",
            "tasks",
            "documents",
            "manageLibrary",
            "project",
            "chat",
            "notification",
            "deliverables",
            "kanban",
            "meetings",
        ]
    ),
    UserRole.PROJECT_MANAGER.value: frozenset(
        [
            *_USER_RIGHTS,
            "tasks",
            "manageTasks",
            "documents",
            "project",
            "chat",
            "notification",
            "deliverables",
            "kanban",
            "meetings",
        ]
    ),
    UserRole.FREELANCER.value: frozenset(
        [
            *_USER_RIGHTS,
            "tasks",
            "documents",
            "manageLibrary",
            "project",
            "chat",
            "notification",
            "deliverables",
            "kanban",
            "meetings",
        ]
    ),
    UserRole.CLIENT.value: frozenset(
        ["projectRequest", "documents", "project", "chat", "notification", "deliverables", "meetings"]
    ),
    UserRole.SUPPORT.value: frozenset([*_USER_RIGHTS, "notification"]),
    UserRole.INVESTOR.value: frozenset([*_USER_RIGHTS, "notification"]),
}


def role_has_right(role: str, right: str) -> bool:
    """Return True when `role` grants `right`; unknown roles grant nothing."""
    return right in ROLE_RIGHTS.get(role, frozenset())
