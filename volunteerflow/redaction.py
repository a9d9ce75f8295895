"""
Field-level redaction for medical screenings.

A screening has a public layer (status, dates, clearance flags, outcome
notes) and a restricted sub-record (medical history, clearance reasoning).
The restricted record is only read or written here, and every call
re-checks the capability even when the caller's route is already gated.
"""

import sys
from typing import Any, Dict, Optional

from volunteerflow.errors import Forbidden
from volunteerflow.rbac import PermissionEvaluator

PUBLIC_SCREENING_FIELDS = (
    "id",
    "volunteer_id",
    "status",
    "started_at",
    "completed_at",
    "expires_at",
    "vaccinations_complete",
    "medical_clearance",
    "mental_health_clearance",
    "background_check",
    "outcome_notes",
    "created_at",
    "updated_at",
)


class MedicalDetailsPolicy:
    """Gatekeeper for the restricted medical sub-record."""

    def __init__(self, evaluator: PermissionEvaluator, storage):
        self.evaluator = evaluator
        self.storage = storage

    @staticmethod
    def public_view(screening: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        """Project a screening onto its public fields only."""
        if screening is None:
            return None
        return {k: screening.get(k) for k in PUBLIC_SCREENING_FIELDS}

    def _deny(self, user, screening_id: str, action: str):
        user_id = getattr(user, "id", None)
        print(
            f"[rbac] denied {action} of medical details for screening {screening_id} "
            f"(user={user_id})",
            file=sys.stderr,
        )
        raise Forbidden(
            "Detailed medical information is restricted to medical screeners.",
            reason="missing view_medical_details",
        )

    def fetch_medical_details(self, user, screening_id: str) -> Optional[Dict[str, Any]]:
        """Return the restricted record, or None if none has been recorded.

        Raises Forbidden when *user* lacks ``view_medical_details``; a denial
        is never reported as missing data.
        """
        if not self.evaluator.has_capability(user, "view_medical_details"):
            self._deny(user, screening_id, "read")
        return self.storage.get_medical_screening_details(screening_id)

    def save_medical_details(self, user, screening_id: str, values: Dict[str, Any]) -> Dict[str, Any]:
        required = ("manage_medical_screenings", "view_medical_details")
        if not self.evaluator.has_all_capabilities(user, required):
            self._deny(user, screening_id, "write")
        return self.storage.save_medical_screening_details(screening_id, values)
