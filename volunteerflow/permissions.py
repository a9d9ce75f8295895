"""
Role → capability table.

This is the only place the table is written down. ``create_app`` builds a
single :class:`PermissionTable` from it and hands that instance to both the
API gate and the UI gate.
"""

from types import MappingProxyType
from typing import Dict, Mapping, Tuple

ROLES: Tuple[str, ...] = (
    "recruiter",
    "placement_officer",
    "medical_screener",
    "country_officer",
)

CAPABILITIES: Tuple[str, ...] = (
    "view_leads",
    "manage_leads",
    "view_positions",
    "manage_positions",
    "view_applications",
    "manage_applications",
    "view_medical_screenings",
    "manage_medical_screenings",
    "view_medical_details",
    "view_placements",
    "manage_placements",
    "view_reports",
)

# (view, manage) pairs; manage must imply view for every role.
CAPABILITY_PAIRS: Tuple[Tuple[str, str], ...] = (
    ("view_leads", "manage_leads"),
    ("view_positions", "manage_positions"),
    ("view_applications", "manage_applications"),
    ("view_medical_screenings", "manage_medical_screenings"),
    ("view_placements", "manage_placements"),
)

ROLE_DISPLAY_NAMES = {
    "recruiter": "Recruiter",
    "placement_officer": "Placement Officer",
    "medical_screener": "Medical Screener",
    "country_officer": "Country Officer",
}

ROLE_PERMISSIONS: Dict[str, Dict[str, bool]] = {
    "recruiter": {
        "view_leads": True,
        "manage_leads": True,
        "view_positions": True,
        "manage_positions": False,
        "view_applications": True,
        "manage_applications": True,
        "view_medical_screenings": True,    # outcomes only
        "manage_medical_screenings": False,
        "view_medical_details": False,
        "view_placements": True,
        "manage_placements": False,
        "view_reports": True,
    },
    "placement_officer": {
        "view_leads": True,
        "manage_leads": False,
        "view_positions": True,
        "manage_positions": False,
        "view_applications": True,
        "manage_applications": True,
        "view_medical_screenings": True,    # outcomes only
        "manage_medical_screenings": False,
        "view_medical_details": False,
        "view_placements": True,
        "manage_placements": True,
        "view_reports": True,
    },
    "medical_screener": {
        "view_leads": False,
        "manage_leads": False,
        "view_positions": False,
        "manage_positions": False,
        "view_applications": True,
        "manage_applications": False,
        "view_medical_screenings": True,
        "manage_medical_screenings": True,
        "view_medical_details": True,       # the only role with details
        "view_placements": False,
        "manage_placements": False,
        "view_reports": False,
    },
    "country_officer": {
        "view_leads": False,
        "manage_leads": False,
        "view_positions": True,
        "manage_positions": True,           # demand side
        "view_applications": True,
        "manage_applications": False,
        "view_medical_screenings": True,    # outcomes only
        "manage_medical_screenings": False,
        "view_medical_details": False,
        "view_placements": True,
        "manage_placements": True,
        "view_reports": True,
    },
}


class PermissionTable:
    """Immutable, total mapping role → capability → bool."""

    def __init__(self, grants: Mapping[str, Mapping[str, bool]]):
        rows = {}
        for role in ROLES:
            if role not in grants:
                raise ValueError(f"Permission table has no entry for role '{role}'.")
            row = grants[role]
            missing = [c for c in CAPABILITIES if c not in row]
            if missing:
                raise ValueError(
                    f"Role '{role}' is missing capabilities: {', '.join(missing)}."
                )
            unknown = [c for c in row if c not in CAPABILITIES]
            if unknown:
                raise ValueError(
                    f"Role '{role}' lists unknown capabilities: {', '.join(unknown)}."
                )
            for cap in CAPABILITIES:
                if not isinstance(row[cap], bool):
                    raise ValueError(f"Entry ({role}, {cap}) must be a bool.")
            rows[role] = MappingProxyType({c: row[c] for c in CAPABILITIES})

        extra = [r for r in grants if r not in ROLES]
        if extra:
            raise ValueError(f"Permission table lists unknown roles: {', '.join(extra)}.")

        self._rows = MappingProxyType(rows)

    @property
    def roles(self) -> Tuple[str, ...]:
        return ROLES

    @property
    def capabilities(self) -> Tuple[str, ...]:
        return CAPABILITIES

    def lookup(self, role, capability) -> bool:
        """Unknown role or capability answers False."""
        row = self._rows.get(role) if isinstance(role, str) else None
        if row is None:
            return False
        return row.get(capability, False) if isinstance(capability, str) else False

    def capabilities_for(self, role) -> Dict[str, bool]:
        return {cap: self.lookup(role, cap) for cap in CAPABILITIES}


def build_permission_table() -> PermissionTable:
    """Build the process-wide table; called once from ``create_app``."""
    return PermissionTable(ROLE_PERMISSIONS)


def role_display_name(role) -> str:
    return ROLE_DISPLAY_NAMES.get(role, "No role") if isinstance(role, str) else "No role"
