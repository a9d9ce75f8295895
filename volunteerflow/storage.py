"""
Relational storage for the recruitment pipeline.

Plain CRUD over the SQLAlchemy Core tables in ``volunteerflow.database``.
Storage never makes authorization decisions; callers reach it only through
the API gate. The restricted medical sub-record is read and written here but
is only ever called from ``volunteerflow.redaction``.
"""

import uuid
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

import pandas as pd
from sqlalchemy import and_, delete, desc, insert, or_, select, update
from sqlalchemy.exc import IntegrityError

from volunteerflow.config import DEFAULT_PAGE_LIMIT, POSITION_TERM_MONTHS
from volunteerflow.database import (
    activities,
    applications,
    medical_screening_details,
    medical_screenings,
    placements,
    positions,
    users,
    volunteers,
)
from volunteerflow.errors import ValidationError
from volunteerflow.models import User


def utcnow() -> datetime:
    """Naive UTC timestamp, as stored in DateTime columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_id() -> str:
    return str(uuid.uuid4())


def serialize(row) -> Optional[Dict[str, Any]]:
    """Turn a result mapping into a JSON-ready dict."""
    if row is None:
        return None
    out = {}
    for key, value in dict(row).items():
        if isinstance(value, (date, datetime)):
            out[key] = value.isoformat()
        else:
            out[key] = value
    return out


def default_end_date(start: date, months: int = POSITION_TERM_MONTHS) -> date:
    """Service term end: *months* after *start*, clamped to month end."""
    return (pd.Timestamp(start) + pd.DateOffset(months=months)).date()


class Storage:
    """CRUD collaborator over one SQLAlchemy engine."""

    def __init__(self, engine, page_limit: int = DEFAULT_PAGE_LIMIT):
        self.engine = engine
        self.page_limit = page_limit

    # ── helpers ──────────────────────────────────────────────────────

    def _fetch_one(self, stmt) -> Optional[Dict[str, Any]]:
        with self.engine.connect() as conn:
            return serialize(conn.execute(stmt).mappings().first())

    def _fetch_all(self, stmt) -> List[Dict[str, Any]]:
        with self.engine.connect() as conn:
            return [serialize(r) for r in conn.execute(stmt).mappings().all()]

    def _exists(self, table, record_id) -> bool:
        with self.engine.connect() as conn:
            return conn.execute(
                select(table.c.id).where(table.c.id == record_id)
            ).first() is not None

    def _insert(self, table, values: Dict[str, Any]) -> Dict[str, Any]:
        now = utcnow()
        row = dict(values)
        row.setdefault("id", new_id())
        if "created_at" in table.c:
            row.setdefault("created_at", now)
        if "updated_at" in table.c:
            row.setdefault("updated_at", now)
        with self.engine.begin() as conn:
            conn.execute(insert(table).values(**row))
        return self._fetch_one(select(table).where(table.c.id == row["id"]))

    def _update(self, table, record_id: str, values: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        row = dict(values)
        if "updated_at" in table.c:
            row["updated_at"] = utcnow()
        with self.engine.begin() as conn:
            updated = conn.execute(
                update(table).where(table.c.id == record_id).values(**row)
            ).rowcount
        if updated == 0:
            return None
        return self._fetch_one(select(table).where(table.c.id == record_id))

    def _delete(self, table, record_id: str) -> bool:
        with self.engine.begin() as conn:
            deleted = conn.execute(delete(table).where(table.c.id == record_id)).rowcount
        return deleted > 0

    def _require(self, table, record_id, field: str) -> None:
        if not self._exists(table, record_id):
            raise ValidationError("Invalid data", {field: "does not reference an existing record"})

    def _page(self, stmt, limit: Optional[int], offset: Optional[int]):
        return stmt.limit(limit or self.page_limit).offset(offset or 0)

    # ── users ────────────────────────────────────────────────────────

    @staticmethod
    def _to_user(row) -> Optional[User]:
        if row is None:
            return None
        return User(
            id=str(row["id"]),
            role=row["role"],
            email=row["email"],
            first_name=row["first_name"],
            last_name=row["last_name"],
        )

    def get_user(self, user_id: str) -> Optional[User]:
        with self.engine.connect() as conn:
            row = conn.execute(
                select(users).where(and_(users.c.id == user_id, users.c.is_active.is_(True)))
            ).mappings().first()
        return self._to_user(row)

    def get_user_by_api_key(self, api_key: str) -> Optional[User]:
        with self.engine.connect() as conn:
            row = conn.execute(
                select(users).where(and_(users.c.api_key == api_key, users.c.is_active.is_(True)))
            ).mappings().first()
        return self._to_user(row)

    def upsert_user(self, values: Dict[str, Any]) -> User:
        """Insert or update a user keyed by ``id``."""
        row = dict(values)
        now = utcnow()
        row["updated_at"] = now
        with self.engine.begin() as conn:
            exists = conn.execute(
                select(users.c.id).where(users.c.id == row["id"])
            ).first() is not None
            if exists:
                conn.execute(update(users).where(users.c.id == row["id"]).values(**row))
            else:
                row.setdefault("created_at", now)
                row.setdefault("is_active", True)
                conn.execute(insert(users).values(**row))
        return self.get_user(row["id"])

    # ── volunteers (leads) ───────────────────────────────────────────

    def list_volunteers(self, status=None, search=None, limit=None, offset=None):
        stmt = select(volunteers)
        if status:
            stmt = stmt.where(volunteers.c.status == status)
        if search:
            pattern = f"%{search}%"
            stmt = stmt.where(or_(
                volunteers.c.first_name.ilike(pattern),
                volunteers.c.last_name.ilike(pattern),
                volunteers.c.email.ilike(pattern),
            ))
        stmt = stmt.order_by(desc(volunteers.c.created_at))
        return self._fetch_all(self._page(stmt, limit, offset))

    def get_volunteer(self, volunteer_id: str):
        return self._fetch_one(select(volunteers).where(volunteers.c.id == volunteer_id))

    def create_volunteer(self, values: Dict[str, Any], user_id: Optional[str] = None):
        try:
            volunteer = self._insert(volunteers, values)
        except IntegrityError:
            raise ValidationError("Invalid data", {"email": "is already registered"})
        self.create_activity({
            "type": "volunteer_created",
            "description": (
                f"New volunteer {volunteer['first_name']} {volunteer['last_name']} added to system"
            ),
            "volunteer_id": volunteer["id"],
            "user_id": user_id,
        })
        return volunteer

    def update_volunteer(self, volunteer_id: str, values: Dict[str, Any]):
        try:
            return self._update(volunteers, volunteer_id, values)
        except IntegrityError:
            raise ValidationError("Invalid data", {"email": "is already registered"})

    def delete_volunteer(self, volunteer_id: str) -> bool:
        return self._delete(volunteers, volunteer_id)

    # ── positions ────────────────────────────────────────────────────

    def list_positions(self, sector=None, country=None, is_open=None, search=None,
                       limit=None, offset=None):
        stmt = select(positions)
        if sector:
            stmt = stmt.where(positions.c.sector == sector)
        if country:
            stmt = stmt.where(positions.c.country == country)
        if is_open is not None:
            stmt = stmt.where(positions.c.is_open.is_(is_open))
        if search:
            pattern = f"%{search}%"
            stmt = stmt.where(or_(
                positions.c.title.ilike(pattern),
                positions.c.description.ilike(pattern),
                positions.c.location.ilike(pattern),
            ))
        stmt = stmt.order_by(desc(positions.c.created_at))
        return self._fetch_all(self._page(stmt, limit, offset))

    def get_position(self, position_id: str):
        return self._fetch_one(select(positions).where(positions.c.id == position_id))

    def create_position(self, values: Dict[str, Any], user_id: Optional[str] = None,
                        term_months: int = POSITION_TERM_MONTHS):
        row = dict(values)
        if row.get("start_date") and not row.get("end_date"):
            row["end_date"] = default_end_date(row["start_date"], term_months)
        position = self._insert(positions, row)
        self.create_activity({
            "type": "position_created",
            "description": f"New position \"{position['title']}\" created in {position['country']}",
            "position_id": position["id"],
            "user_id": user_id,
        })
        return position

    def update_position(self, position_id: str, values: Dict[str, Any]):
        return self._update(positions, position_id, values)

    def delete_position(self, position_id: str) -> bool:
        return self._delete(positions, position_id)

    # ── applications ─────────────────────────────────────────────────

    def list_applications(self, volunteer_id=None, position_id=None, status=None,
                          limit=None, offset=None):
        stmt = select(applications)
        if volunteer_id:
            stmt = stmt.where(applications.c.volunteer_id == volunteer_id)
        if position_id:
            stmt = stmt.where(applications.c.position_id == position_id)
        if status:
            stmt = stmt.where(applications.c.status == status)
        stmt = stmt.order_by(desc(applications.c.applied_at))
        return self._fetch_all(self._page(stmt, limit, offset))

    def get_application(self, application_id: str):
        return self._fetch_one(select(applications).where(applications.c.id == application_id))

    def create_application(self, values: Dict[str, Any], user_id: Optional[str] = None):
        self._require(volunteers, values.get("volunteer_id"), "volunteer_id")
        self._require(positions, values.get("position_id"), "position_id")
        row = dict(values)
        row.setdefault("applied_at", utcnow())
        application = self._insert(applications, row)
        self.create_activity({
            "type": "application_submitted",
            "description": "Application submitted",
            "volunteer_id": application["volunteer_id"],
            "position_id": application["position_id"],
            "application_id": application["id"],
            "user_id": user_id,
        })
        return application

    def update_application(self, application_id: str, values: Dict[str, Any]):
        return self._update(applications, application_id, values)

    # ── medical screenings (public layer) ────────────────────────────

    def list_medical_screenings(self, volunteer_id=None, status=None):
        stmt = select(medical_screenings)
        if volunteer_id:
            stmt = stmt.where(medical_screenings.c.volunteer_id == volunteer_id)
        if status:
            stmt = stmt.where(medical_screenings.c.status == status)
        stmt = stmt.order_by(desc(medical_screenings.c.created_at))
        return self._fetch_all(stmt)

    def get_medical_screening(self, screening_id: str):
        return self._fetch_one(
            select(medical_screenings).where(medical_screenings.c.id == screening_id)
        )

    def create_medical_screening(self, values: Dict[str, Any]):
        self._require(volunteers, values.get("volunteer_id"), "volunteer_id")
        return self._insert(medical_screenings, values)

    def update_medical_screening(self, screening_id: str, values: Dict[str, Any]):
        return self._update(medical_screenings, screening_id, values)

    # ── medical screening details (restricted layer) ─────────────────

    def get_medical_screening_details(self, screening_id: str):
        return self._fetch_one(
            select(medical_screening_details)
            .where(medical_screening_details.c.medical_screening_id == screening_id)
        )

    def save_medical_screening_details(self, screening_id: str, values: Dict[str, Any]):
        """Create the restricted record for a screening, or update it."""
        existing = self.get_medical_screening_details(screening_id)
        if existing is None:
            row = dict(values)
            row["medical_screening_id"] = screening_id
            return self._insert(medical_screening_details, row)
        return self._update(medical_screening_details, existing["id"], values)

    # ── placements ───────────────────────────────────────────────────

    def list_placements(self, volunteer_id=None, position_id=None, status=None):
        stmt = select(placements)
        if volunteer_id:
            stmt = stmt.where(placements.c.volunteer_id == volunteer_id)
        if position_id:
            stmt = stmt.where(placements.c.position_id == position_id)
        if status:
            stmt = stmt.where(placements.c.status == status)
        stmt = stmt.order_by(desc(placements.c.created_at))
        return self._fetch_all(stmt)

    def get_placement(self, placement_id: str):
        return self._fetch_one(select(placements).where(placements.c.id == placement_id))

    def create_placement(self, values: Dict[str, Any]):
        self._require(volunteers, values.get("volunteer_id"), "volunteer_id")
        self._require(positions, values.get("position_id"), "position_id")
        return self._insert(placements, values)

    def update_placement(self, placement_id: str, values: Dict[str, Any]):
        return self._update(placements, placement_id, values)

    # ── activities ───────────────────────────────────────────────────

    def list_activities(self, volunteer_id=None, position_id=None, application_id=None,
                        limit: int = 20, hidden_references=()):
        """Newest first. Entries referencing any column in *hidden_references* are left out."""
        stmt = select(activities)
        for column in hidden_references:
            stmt = stmt.where(activities.c[column].is_(None))
        if volunteer_id:
            stmt = stmt.where(activities.c.volunteer_id == volunteer_id)
        if position_id:
            stmt = stmt.where(activities.c.position_id == position_id)
        if application_id:
            stmt = stmt.where(activities.c.application_id == application_id)
        stmt = stmt.order_by(desc(activities.c.created_at)).limit(limit)
        return self._fetch_all(stmt)

    def create_activity(self, values: Dict[str, Any]):
        return self._insert(activities, values)
