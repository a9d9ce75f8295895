"""
Command-line access inspector.

Prints the role/capability matrix, or the effective access of one user
looked up by API key or user id.
"""

import argparse

import pandas as pd

from volunteerflow.database import init_engine
from volunteerflow.permissions import build_permission_table, role_display_name
from volunteerflow.rbac import PermissionEvaluator, role_of
from volunteerflow.storage import Storage


def permission_matrix(table) -> pd.DataFrame:
    """Capabilities as rows, roles as columns, cells are 'yes' / '-'."""
    df = pd.DataFrame(
        {role: table.capabilities_for(role) for role in table.roles},
        index=list(table.capabilities),
    )
    return df.apply(lambda col: col.map({True: "yes", False: "-"}))


def describe_access(evaluator: PermissionEvaluator, user) -> str:
    role = role_of(user)
    lines = [
        f"User:     {user.display_name} ({user.id})",
        f"Role:     {role_display_name(role)}",
        f"Sections: {', '.join(evaluator.visible_sections(user)) or '(none)'}",
        "Capabilities:",
    ]
    for capability, granted in evaluator.capabilities_for(user).items():
        lines.append(f"  [{'x' if granted else ' '}] {capability}")
    return "\n".join(lines)


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog="volunteerflow-access",
        description="Inspect role-based access for VolunteerFlow.",
    )
    who = parser.add_mutually_exclusive_group()
    who.add_argument("--api-key", help="show the effective access of the user owning this key")
    who.add_argument("--user-id", help="show the effective access of this user id")
    args = parser.parse_args(argv)

    table = build_permission_table()
    evaluator = PermissionEvaluator(table)

    if not args.api_key and not args.user_id:
        print("=== VolunteerFlow permission matrix ===\n")
        print(permission_matrix(table).to_string())
        return 0

    storage = Storage(init_engine())
    try:
        if args.api_key:
            user = storage.get_user_by_api_key(args.api_key.strip())
        else:
            user = storage.get_user(args.user_id)
    except Exception as e:
        print("\n[ERROR] Lookup failed.")
        print("Details:", e)
        return 1

    if user is None:
        print("\n[ERROR] No active user found.")
        return 1

    print(describe_access(evaluator, user))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
