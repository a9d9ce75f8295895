"""
Domain dataclasses and enumerations used across the application.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class User:
    """An authenticated identity as supplied by the identity provider."""
    id: str
    role: Optional[str] = None   # None means "no permissions"
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None

    @property
    def display_name(self) -> str:
        parts = [p for p in (self.first_name, self.last_name) if p]
        return " ".join(parts) or (self.email or self.id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "email": self.email,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "role": self.role,
        }


# ── Pipeline enumerations ────────────────────────────────────────────

VOLUNTEER_STATUSES = (
    "interested",
    "applied",
    "screening",
    "medical_screening",
    "selected",
    "placed",
    "onboarded",
    "rejected",
    "withdrawn",
)

SECTORS = (
    "education",
    "healthcare",
    "agriculture",
    "environment",
    "technology",
    "community_development",
)

MEDICAL_STATUSES = ("not_started", "in_progress", "completed", "expired", "failed")

PRIORITIES = ("low", "medium", "high", "urgent")

PLACEMENT_STATUSES = ("placed", "active", "completed", "terminated")
