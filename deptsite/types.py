"""
Closed enumerations shared by the schemas, the gateway and the auth layer.
"""

from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    USER = "user"
    ADMIN = "admin"
    FACULTY = "faculty"


class Capability(str, Enum):
    """Permissions checked by the auth dependencies."""

    MANAGE_CONTENT = "manage_content"
    VIEW_UNPUBLISHED = "view_unpublished"
    MANAGE_USERS = "manage_users"


ROLE_CAPABILITIES: dict[Role, frozenset[Capability]] = {
    Role.USER: frozenset(),
    Role.FACULTY: frozenset(),
    Role.ADMIN: frozenset(
        {
            Capability.MANAGE_CONTENT,
            Capability.VIEW_UNPUBLISHED,
            Capability.MANAGE_USERS,
        }
    ),
}


def role_has_capability(role: Role | str, capability: Capability) -> bool:
    try:
        resolved = Role(role)
    except ValueError:
        return False
    return capability in ROLE_CAPABILITIES[resolved]


class ContactStatus(str, Enum):
    UNREAD = "unread"
    READ = "read"
    REPLIED = "replied"


class MediaType(str, Enum):
    IMAGE = "image"
    VIDEO = "video"


# Values offered by the admin dashboard. The API stores free text.
SEMESTERS = tuple(f"Semester {n}" for n in range(1, 9))
NOTE_FILE_TYPES = (
    "application/pdf",
    "application/vnd.ms-powerpoint",
    "application/msword",
    "text/plain",
)
MEDIA_CATEGORIES = ("Events", "Workshops", "Campus Life", "Awards", "Faculty")
EVENT_CATEGORIES = ("Workshop", "Seminar", "Competition", "Conference")
