"""
Role-Based Access Control – answering authorization questions.

Every decision is a pure function of (user, permission table). Anything that
cannot be read as a known role degrades to "no access".
"""

from collections.abc import Mapping
from typing import Dict, Iterable, List, Optional, Tuple

from volunteerflow.permissions import CAPABILITIES, ROLES, PermissionTable

# Canonical section order; the first visible one is the redirect target.
SECTIONS: Tuple[Tuple[str, str], ...] = (
    ("leads", "view_leads"),
    ("positions", "view_positions"),
    ("applications", "view_applications"),
    ("medical-screening", "view_medical_screenings"),
    ("placements", "view_placements"),
    ("reports", "view_reports"),
)

# Activity-log reference column → capability needed to see an entry that
# mentions that record.
ACTIVITY_REFERENCES: Tuple[Tuple[str, str], ...] = (
    ("volunteer_id", "view_leads"),
    ("position_id", "view_positions"),
    ("application_id", "view_applications"),
)


def role_of(user) -> Optional[str]:
    """Return the user's role if it is a recognised one, else None."""
    if user is None:
        return None
    if isinstance(user, Mapping):
        role = user.get("role")
    else:
        role = getattr(user, "role", None)
    if not isinstance(role, str) or role not in ROLES:
        return None
    return role


class PermissionEvaluator:
    """Answers capability and role questions against one PermissionTable."""

    def __init__(self, table: PermissionTable):
        self.table = table

    def has_capability(self, user, capability: str) -> bool:
        role = role_of(user)
        if role is None:
            return False
        return self.table.lookup(role, capability)

    def has_all_capabilities(self, user, capabilities: Optional[Iterable[str]]) -> bool:
        """AND over ``capabilities``; an empty requirement always passes."""
        required = _requirement(capabilities)
        if required is None:
            return False
        if not required:
            return True
        return all(self.has_capability(user, cap) for cap in required)

    def has_any_role(self, user, roles: Optional[Iterable[str]]) -> bool:
        """OR over ``roles``; an empty requirement always passes."""
        accepted = _requirement(roles)
        if accepted is None:
            return False
        if not accepted:
            return True
        role = role_of(user)
        return role is not None and role in accepted

    def allows(self, user, capabilities=(), roles=()) -> bool:
        return self.has_any_role(user, roles) and self.has_all_capabilities(user, capabilities)

    def visible_sections(self, user) -> List[str]:
        return [name for name, cap in SECTIONS if self.has_capability(user, cap)]

    def hidden_activity_references(self, user) -> List[str]:
        """Reference columns the user may not see; entries using them are hidden."""
        return [col for col, cap in ACTIVITY_REFERENCES if not self.has_capability(user, cap)]

    def capabilities_for(self, user) -> Dict[str, bool]:
        return {cap: self.has_capability(user, cap) for cap in CAPABILITIES}


def _requirement(values) -> Optional[Tuple]:
    """Normalise a requirement list; None signals a malformed one."""
    if values is None:
        return ()
    try:
        return tuple(values)
    except TypeError:
        return None


def section_capability(section: str) -> Optional[str]:
    for name, cap in SECTIONS:
        if name == section:
            return cap
    return None
