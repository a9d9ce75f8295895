#!/usr/bin/env python3
"""
Fill an empty database with fake volunteers, positions and their pipeline.

    DB_URI=sqlite:///volunteerflow.db python scripts/seed_demo_data.py
"""

import random
from datetime import date, datetime, timedelta

from faker import Faker
from sqlalchemy import select

from volunteerflow.api.dev_auth import DEV_USERS
from volunteerflow.database import (
    activities,
    applications,
    init_engine,
    medical_screening_details,
    medical_screenings,
    placements,
    positions,
    users,
    volunteers,
)
from volunteerflow.models import MEDICAL_STATUSES, PRIORITIES, SECTORS, VOLUNTEER_STATUSES
from volunteerflow.storage import default_end_date, new_id

# --------------------------------------------------------------------
# CONFIG
# --------------------------------------------------------------------
NUM_VOLUNTEERS = 60
NUM_POSITIONS = 15

PER_VOLUNTEER = {
    "applications": (0, 2),        # min, max per volunteer
    "medical_screenings": (0, 1),
    "activities": (0, 3),
}

COUNTRIES = ["Kenya", "Peru", "Nepal", "Ghana", "Cambodia", "Tanzania", "Guatemala", "Malawi"]
APPLICATION_STATUSES = ["applied", "screening", "medical_screening", "selected", "rejected"]

# --------------------------------------------------------------------
# SETUP
# --------------------------------------------------------------------
fake = Faker()
random.seed(42)
Faker.seed(42)


# --------------------------------------------------------------------
# HELPERS
# --------------------------------------------------------------------
def random_bool(p_true=0.5):
    return random.random() < p_true


def random_datetime_within(days_back=365):
    now = datetime.utcnow()
    delta = timedelta(days=random.randint(0, days_back), seconds=random.randint(0, 86400))
    return now - delta


def per_volunteer_count(table_name):
    lo, hi = PER_VOLUNTEER.get(table_name, (0, 0))
    if hi <= 0:
        return 0
    return random.randint(lo, hi)


def stamped(row):
    now = datetime.utcnow()
    row.setdefault("id", new_id())
    row.setdefault("created_at", now)
    row.setdefault("updated_at", now)
    return row


# --------------------------------------------------------------------
# SEED FUNCTIONS
# --------------------------------------------------------------------
def seed_users(conn):
    existing = set(conn.execute(select(users.c.id)).scalars().all())
    rows = [stamped(dict(u, is_active=True)) for u in DEV_USERS if u["id"] not in existing]
    if rows:
        conn.execute(users.insert(), rows)
    return [u["id"] for u in DEV_USERS]


def seed_volunteers(conn, n=NUM_VOLUNTEERS):
    rows = []
    for _ in range(n):
        first = fake.first_name()
        last = fake.last_name()
        rows.append(stamped({
            "first_name": first,
            "last_name": last,
            "email": f"{first}.{last}.{fake.random_int(100, 999)}@example.org".lower(),
            "phone": fake.phone_number(),
            "date_of_birth": fake.date_of_birth(minimum_age=21, maximum_age=70),
            "nationality": fake.country(),
            "current_country": fake.country(),
            "education": random.choice(["Bachelor's", "Master's", "Diploma", "PhD"]),
            "experience": fake.text(max_nb_chars=120),
            "skills": fake.words(nb=3),
            "languages": random.sample(["English", "French", "Spanish", "Swahili", "Portuguese"], 2),
            "motivation": fake.text(max_nb_chars=150),
            "status": random.choice(VOLUNTEER_STATUSES),
            "source": random.choice(["website", "referral", "university fair", "social media"]),
        }))
    conn.execute(volunteers.insert(), rows)
    return [r["id"] for r in rows]


def seed_positions(conn, n=NUM_POSITIONS):
    rows = []
    for _ in range(n):
        start = date.today() + timedelta(days=random.randint(-180, 240))
        rows.append(stamped({
            "title": fake.job(),
            "description": fake.text(max_nb_chars=200),
            "sector": random.choice(SECTORS),
            "country": random.choice(COUNTRIES),
            "location": fake.city(),
            "start_date": start,
            "end_date": default_end_date(start),
            "requirements": fake.words(nb=3),
            "responsibilities": fake.words(nb=3),
            "is_open": random_bool(0.7),
            "max_volunteers": random.randint(1, 4),
            "current_volunteers": 0,
            "priority": random.choice(PRIORITIES),
        }))
    conn.execute(positions.insert(), rows)
    return rows


def seed_applications(conn, volunteer_ids, position_rows):
    rows = []
    for vid in volunteer_ids:
        for position in random.sample(position_rows, per_volunteer_count("applications")):
            status = random.choice(APPLICATION_STATUSES)
            rows.append(stamped({
                "volunteer_id": vid,
                "position_id": position["id"],
                "status": status,
                "applied_at": random_datetime_within(120),
                "interview_date": (
                    datetime.utcnow() + timedelta(days=random.randint(1, 21))
                    if status == "screening" else None
                ),
                "score": random.randint(40, 100) if random_bool(0.6) else None,
                "notes": fake.sentence() if random_bool(0.3) else None,
            }))
    if rows:
        conn.execute(applications.insert(), rows)
    return rows


def seed_medical_screenings(conn, volunteer_ids):
    screenings = []
    details = []
    for vid in volunteer_ids:
        for _ in range(per_volunteer_count("medical_screenings")):
            status = random.choice(MEDICAL_STATUSES)
            completed = random_datetime_within(300) if status in ("completed", "expired") else None
            screening = stamped({
                "volunteer_id": vid,
                "status": status,
                "started_at": random_datetime_within(330),
                "completed_at": completed,
                "expires_at": completed + timedelta(days=365) if completed else None,
                "vaccinations_complete": random_bool(0.7),
                "medical_clearance": status == "completed",
                "mental_health_clearance": status == "completed" and random_bool(0.9),
                "background_check": random_bool(0.8),
                "outcome_notes": fake.sentence(),
            })
            screenings.append(screening)
            if completed:
                details.append(stamped({
                    "medical_screening_id": screening["id"],
                    "medical_history": fake.text(max_nb_chars=150),
                    "clearance_reasoning": fake.sentence(),
                    "restrictions": random.choice([None, "No high-altitude postings"]),
                    "medications": random.choice([None, "Antimalarial prophylaxis"]),
                    "examiner_notes": fake.text(max_nb_chars=100),
                    "emergency_contact": {
                        "name": fake.name(),
                        "phone": fake.phone_number(),
                        "relationship": random.choice(["parent", "partner", "sibling"]),
                    },
                }))
    if screenings:
        conn.execute(medical_screenings.insert(), screenings)
    if details:
        conn.execute(medical_screening_details.insert(), details)


def seed_placements(conn, application_rows, position_rows):
    by_id = {p["id"]: p for p in position_rows}
    rows = []
    for app in application_rows:
        if app["status"] != "selected":
            continue
        position = by_id[app["position_id"]]
        rows.append(stamped({
            "volunteer_id": app["volunteer_id"],
            "position_id": position["id"],
            "start_date": position["start_date"],
            "end_date": position["end_date"],
            "status": random.choice(["placed", "active"]),
            "onboarding_completed": random_bool(0.5),
            "supervisor": fake.name(),
            "supervisor_contact": fake.email(),
        }))
    if rows:
        conn.execute(placements.insert(), rows)


def seed_activities(conn, volunteer_ids, user_ids):
    rows = []
    for vid in volunteer_ids:
        for _ in range(per_volunteer_count("activities")):
            rows.append({
                "id": new_id(),
                "type": random.choice(["call", "email", "note", "status_change"]),
                "description": fake.sentence(),
                "volunteer_id": vid,
                "user_id": random.choice(user_ids),
                "created_at": random_datetime_within(60),
            })
    if rows:
        conn.execute(activities.insert(), rows)


# --------------------------------------------------------------------
# MAIN
# --------------------------------------------------------------------
def main():
    engine = init_engine()
    with engine.begin() as conn:
        print("Seeding users...")
        user_ids = seed_users(conn)

        print("Seeding volunteers...")
        volunteer_ids = seed_volunteers(conn)

        print("Seeding positions...")
        position_rows = seed_positions(conn)

        print("Seeding dependent tables...")
        application_rows = seed_applications(conn, volunteer_ids, position_rows)
        seed_medical_screenings(conn, volunteer_ids)
        seed_placements(conn, application_rows, position_rows)
        seed_activities(conn, volunteer_ids, user_ids)

        print("Done!")


if __name__ == "__main__":
    main()
