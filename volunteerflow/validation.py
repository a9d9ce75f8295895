"""
Payload validation for create/update requests.

Each entity declares its writable fields as ``name -> (kind, required)``.
Unknown fields are dropped; ``kind`` is a type name or a tuple of allowed
values.
"""

from datetime import date, datetime
from typing import Any, Dict

from volunteerflow.errors import ValidationError
from volunteerflow.models import (
    MEDICAL_STATUSES,
    PLACEMENT_STATUSES,
    PRIORITIES,
    SECTORS,
    VOLUNTEER_STATUSES,
)

VOLUNTEER_FIELDS = {
    "first_name": ("str", True),
    "last_name": ("str", True),
    "email": ("str", True),
    "phone": ("str", False),
    "date_of_birth": ("date", False),
    "nationality": ("str", False),
    "current_country": ("str", False),
    "education": ("str", False),
    "experience": ("str", False),
    "skills": ("list", False),
    "languages": ("list", False),
    "motivation": ("str", False),
    "availability": ("date", False),
    "status": (VOLUNTEER_STATUSES, False),
    "source": ("str", False),
    "notes": ("str", False),
}

POSITION_FIELDS = {
    "title": ("str", True),
    "description": ("str", True),
    "sector": (SECTORS, True),
    "country": ("str", True),
    "location": ("str", False),
    "start_date": ("date", True),
    "end_date": ("date", False),
    "requirements": ("list", False),
    "responsibilities": ("list", False),
    "is_open": ("bool", False),
    "max_volunteers": ("int", False),
    "current_volunteers": ("int", False),
    "priority": (PRIORITIES, False),
}

APPLICATION_FIELDS = {
    "volunteer_id": ("str", True),
    "position_id": ("str", True),
    "status": (VOLUNTEER_STATUSES, False),
    "interview_date": ("datetime", False),
    "interview_notes": ("str", False),
    "score": ("int", False),
    "rejection_reason": ("str", False),
    "notes": ("str", False),
}

MEDICAL_SCREENING_FIELDS = {
    "volunteer_id": ("str", True),
    "status": (MEDICAL_STATUSES, False),
    "started_at": ("datetime", False),
    "completed_at": ("datetime", False),
    "expires_at": ("datetime", False),
    "vaccinations_complete": ("bool", False),
    "medical_clearance": ("bool", False),
    "mental_health_clearance": ("bool", False),
    "background_check": ("bool", False),
    "outcome_notes": ("str", False),
}

MEDICAL_DETAILS_FIELDS = {
    "medical_history": ("str", False),
    "clearance_reasoning": ("str", False),
    "restrictions": ("str", False),
    "medications": ("str", False),
    "examiner_notes": ("str", False),
    "emergency_contact": ("dict", False),
}

PLACEMENT_FIELDS = {
    "volunteer_id": ("str", True),
    "position_id": ("str", True),
    "start_date": ("date", True),
    "end_date": ("date", True),
    "actual_end_date": ("date", False),
    "status": (PLACEMENT_STATUSES, False),
    "onboarding_completed": ("bool", False),
    "onboarding_date": ("date", False),
    "supervisor": ("str", False),
    "supervisor_contact": ("str", False),
    "notes": ("str", False),
}


def _coerce(kind, value):
    """Return the cleaned value or raise ValueError with a short reason."""
    if value is None:
        return None
    if isinstance(kind, tuple):
        if value not in kind:
            raise ValueError(f"must be one of: {', '.join(kind)}")
        return value
    if kind == "str":
        if not isinstance(value, str):
            raise ValueError("must be a string")
        return value.strip()
    if kind == "int":
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError("must be an integer")
        return value
    if kind == "bool":
        if not isinstance(value, bool):
            raise ValueError("must be a boolean")
        return value
    if kind == "list":
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            raise ValueError("must be a list of strings")
        return value
    if kind == "dict":
        if not isinstance(value, dict):
            raise ValueError("must be an object")
        return value
    if kind == "date":
        if isinstance(value, date) and not isinstance(value, datetime):
            return value
        try:
            return date.fromisoformat(str(value)[:10])
        except ValueError:
            raise ValueError("must be an ISO date (YYYY-MM-DD)")
    if kind == "datetime":
        if isinstance(value, datetime):
            return value
        try:
            return datetime.fromisoformat(str(value).replace("Z", "+00:00")).replace(tzinfo=None)
        except ValueError:
            raise ValueError("must be an ISO datetime")
    raise ValueError(f"unsupported field kind {kind!r}")


def validate(fields: Dict[str, tuple], data: Any, partial: bool = False) -> Dict[str, Any]:
    """Validate *data* against *fields*; ``partial`` skips required checks."""
    if not isinstance(data, dict):
        raise ValidationError("Invalid data", {"_": "request body must be a JSON object"})

    cleaned = {}
    errors = {}
    for name, (kind, required) in fields.items():
        if name not in data:
            if required and not partial:
                errors[name] = "is required"
            continue
        value = data[name]
        if value is None and required:
            errors[name] = "must not be null"
            continue
        try:
            cleaned[name] = _coerce(kind, value)
        except ValueError as e:
            errors[name] = str(e)
        else:
            if required and cleaned[name] == "":
                errors[name] = "must not be empty"

    if errors:
        raise ValidationError("Invalid data", errors)
    return cleaned
