from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union


class Role(str, Enum):
    ADMIN = "admin"
    PROJECT_MANAGER = "project_manager"
    TEAM_MEMBER = "team_member"
    VIEWER = "viewer"


@dataclass(frozen=True)
class Capabilities:
    """What a session may do, computed once and passed around as data."""

    can_create: bool = False
    can_edit: bool = False
    can_delete: bool = False
    can_optimize: bool = False
    can_manage_roles: bool = False
    can_manage_resources: bool = False
    can_use_smart_assignment: bool = False


_CAPABILITIES = {
    Role.PROJECT_MANAGER: Capabilities(
        can_create=True,
        can_edit=True,
        can_delete=True,
        can_optimize=True,
        can_manage_resources=True,
        can_use_smart_assignment=True,
    ),
    Role.TEAM_MEMBER: Capabilities(can_create=True),
    Role.ADMIN: Capabilities(can_manage_roles=True),
    Role.VIEWER: Capabilities(),
}


def capabilities_for(role: Optional[Union[Role, str]]) -> Capabilities:
    try:
        return _CAPABILITIES[Role(role)]
    except ValueError:
        return _CAPABILITIES[Role.VIEWER]
