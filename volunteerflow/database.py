"""
Database engine initialisation and the relational schema.
"""

import sys

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    create_engine,
    text,
)

from volunteerflow.config import get_env

metadata = MetaData()

users = Table(
    "users", metadata,
    Column("id", String(64), primary_key=True),
    Column("email", String(255), unique=True),
    Column("first_name", String(120)),
    Column("last_name", String(120)),
    Column("role", String(40)),
    Column("api_key", String(128), unique=True),
    Column("is_active", Boolean, nullable=False, default=True),
    Column("created_at", DateTime),
    Column("updated_at", DateTime),
)

volunteers = Table(
    "volunteers", metadata,
    Column("id", String(64), primary_key=True),
    Column("first_name", String(120), nullable=False),
    Column("last_name", String(120), nullable=False),
    Column("email", String(255), nullable=False, unique=True),
    Column("phone", String(60)),
    Column("date_of_birth", Date),
    Column("nationality", String(120)),
    Column("current_country", String(120)),
    Column("education", Text),
    Column("experience", Text),
    Column("skills", JSON),
    Column("languages", JSON),
    Column("motivation", Text),
    Column("availability", Date),
    Column("status", String(40), nullable=False, default="interested"),
    Column("source", String(120)),
    Column("notes", Text),
    Column("created_at", DateTime),
    Column("updated_at", DateTime),
)

positions = Table(
    "positions", metadata,
    Column("id", String(64), primary_key=True),
    Column("title", String(255), nullable=False),
    Column("description", Text, nullable=False),
    Column("sector", String(40), nullable=False),
    Column("country", String(120), nullable=False),
    Column("location", String(255)),
    Column("start_date", Date, nullable=False),
    Column("end_date", Date, nullable=False),
    Column("requirements", JSON),
    Column("responsibilities", JSON),
    Column("is_open", Boolean, nullable=False, default=True),
    Column("max_volunteers", Integer, nullable=False, default=1),
    Column("current_volunteers", Integer, nullable=False, default=0),
    Column("priority", String(20), nullable=False, default="medium"),
    Column("created_at", DateTime),
    Column("updated_at", DateTime),
)

applications = Table(
    "applications", metadata,
    Column("id", String(64), primary_key=True),
    Column("volunteer_id", String(64), ForeignKey("volunteers.id"), nullable=False),
    Column("position_id", String(64), ForeignKey("positions.id"), nullable=False),
    Column("status", String(40), nullable=False, default="applied"),
    Column("applied_at", DateTime),
    Column("interview_date", DateTime),
    Column("interview_notes", Text),
    Column("score", Integer),
    Column("rejection_reason", Text),
    Column("notes", Text),
    Column("created_at", DateTime),
    Column("updated_at", DateTime),
)

# Public layer of a screening: status, dates, clearance flags, outcome notes.
medical_screenings = Table(
    "medical_screenings", metadata,
    Column("id", String(64), primary_key=True),
    Column("volunteer_id", String(64), ForeignKey("volunteers.id"), nullable=False),
    Column("status", String(40), nullable=False, default="not_started"),
    Column("started_at", DateTime),
    Column("completed_at", DateTime),
    Column("expires_at", DateTime),
    Column("vaccinations_complete", Boolean, nullable=False, default=False),
    Column("medical_clearance", Boolean, nullable=False, default=False),
    Column("mental_health_clearance", Boolean, nullable=False, default=False),
    Column("background_check", Boolean, nullable=False, default=False),
    Column("outcome_notes", Text),
    Column("created_at", DateTime),
    Column("updated_at", DateTime),
)

# Restricted layer; only read through redaction.MedicalDetailsPolicy.
medical_screening_details = Table(
    "medical_screening_details", metadata,
    Column("id", String(64), primary_key=True),
    Column(
        "medical_screening_id", String(64),
        ForeignKey("medical_screenings.id"), nullable=False, unique=True,
    ),
    Column("medical_history", Text),
    Column("clearance_reasoning", Text),
    Column("restrictions", Text),
    Column("medications", Text),
    Column("examiner_notes", Text),
    Column("emergency_contact", JSON),
    Column("created_at", DateTime),
    Column("updated_at", DateTime),
)

placements = Table(
    "placements", metadata,
    Column("id", String(64), primary_key=True),
    Column("volunteer_id", String(64), ForeignKey("volunteers.id"), nullable=False),
    Column("position_id", String(64), ForeignKey("positions.id"), nullable=False),
    Column("start_date", Date, nullable=False),
    Column("end_date", Date, nullable=False),
    Column("actual_end_date", Date),
    Column("status", String(40), nullable=False, default="placed"),
    Column("onboarding_completed", Boolean, nullable=False, default=False),
    Column("onboarding_date", Date),
    Column("supervisor", String(255)),
    Column("supervisor_contact", String(255)),
    Column("notes", Text),
    Column("created_at", DateTime),
    Column("updated_at", DateTime),
)

activities = Table(
    "activities", metadata,
    Column("id", String(64), primary_key=True),
    Column("type", String(60), nullable=False),
    Column("description", Text, nullable=False),
    Column("volunteer_id", String(64), ForeignKey("volunteers.id")),
    Column("position_id", String(64), ForeignKey("positions.id")),
    Column("application_id", String(64), ForeignKey("applications.id")),
    Column("user_id", String(64), ForeignKey("users.id")),
    Column("payload", JSON),
    Column("created_at", DateTime),
)


def init_engine(db_uri: str = None):
    """Create a SQLAlchemy engine, verify the connection and create tables."""
    db_uri = db_uri or get_env("DB_URI")
    engine = create_engine(db_uri, echo=False, future=True)
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except Exception as e:
        print("ERROR: could not connect to DB:", e, file=sys.stderr)
        sys.exit(1)
    print("[init] Connected to DB.")
    create_schema(engine)
    return engine


def create_schema(engine) -> None:
    """Create any missing tables."""
    metadata.create_all(engine)
