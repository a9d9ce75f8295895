#!/usr/bin/env python3
"""
Generate API keys for staff users and a JWT secret for the .env file.
Keys go into the users.api_key column; each user carries one role.
"""

import argparse
import secrets
import string

ROLES = ("recruiter", "placement_officer", "medical_screener", "country_officer")


def generate_api_key(prefix="vf", length=32):
    """Generate a secure random API key."""
    chars = string.ascii_letters + string.digits
    random_part = "".join(secrets.choice(chars) for _ in range(length))
    return f"{prefix}_{random_part}"


def generate_secret_key():
    return secrets.token_hex(32)


def insert_statement(user_id, email, first_name, last_name, role, api_key):
    return f"""INSERT INTO users
    (id, email, first_name, last_name, role, api_key, is_active)
VALUES
    ('{user_id}', '{email}', '{first_name}', '{last_name}', '{role}', '{api_key}', 1);"""


def main():
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--count", type=int, default=1, help="number of keys per role")
    args = parser.parse_args()

    print("=" * 70)
    print("VolunteerFlow API Key Generator")
    print("=" * 70)
    print()

    print("JWT secret (copy to .env):")
    print("-" * 70)
    print(f"  JWT_SECRET_KEY={generate_secret_key()}")
    print()

    print("SQL Insert Examples:")
    print("-" * 70)
    for role in ROLES:
        for i in range(1, args.count + 1):
            name = role.replace("_", "")
            print(f"\n-- {role} #{i}")
            print(insert_statement(
                f"{name}_{i}", f"{name}{i}@volunteerflow.org",
                "First", "Last", role, generate_api_key(),
            ))
    print()
    print("=" * 70)
    print("A user with an empty role can log in but sees only the landing page.")
    print("=" * 70)


if __name__ == "__main__":
    main()
