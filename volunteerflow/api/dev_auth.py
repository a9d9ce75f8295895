"""
Development-only identity provider.

Logs in one of four fixed seed identities without an API key. Registered by
``create_app`` only when ``AUTH_PROVIDER == "dev"``; in that mode the real
API-key login route is not registered, and production refuses this mode.
"""

from flask import jsonify, request

from volunteerflow.api.auth import close_session, get_services, open_session, request_token

DEV_USERS = (
    {
        "id": "user_1",
        "email": "recruiter@volunteerflow.org",
        "first_name": "Sarah",
        "last_name": "Johnson",
        "role": "recruiter",
    },
    {
        "id": "user_2",
        "email": "placement@volunteerflow.org",
        "first_name": "Michael",
        "last_name": "Chen",
        "role": "placement_officer",
    },
    {
        "id": "user_3",
        "email": "medical@volunteerflow.org",
        "first_name": "Emily",
        "last_name": "Rodriguez",
        "role": "medical_screener",
    },
    {
        "id": "user_4",
        "email": "country@volunteerflow.org",
        "first_name": "James",
        "last_name": "Okoye",
        "role": "country_officer",
    },
)


class DevAuthNotAllowed(RuntimeError):
    """The development identity provider was requested where it must not run."""


def check_dev_auth_allowed(config) -> None:
    if config["AUTH_PROVIDER"] != "dev":
        raise DevAuthNotAllowed("Development login requires AUTH_PROVIDER=dev.")
    if config["APP_ENV"] == "production":
        raise DevAuthNotAllowed("Development login cannot be enabled when APP_ENV=production.")


def seed_dev_users(storage) -> None:
    for user in DEV_USERS:
        storage.upsert_user(dict(user))


def find_dev_user(storage, user_id):
    """Return the stored seed identity for *user_id*, or None."""
    if not isinstance(user_id, str) or user_id not in {u["id"] for u in DEV_USERS}:
        return None
    return storage.get_user(user_id)


def register_dev_auth(app):
    """Register the /api/dev/* routes and seed the dev identities."""
    check_dev_auth_allowed(app.config)
    seed_dev_users(app.extensions["volunteerflow"].storage)
    print("[init] WARNING: development login enabled – do not use in production")

    @app.route("/api/dev/users", methods=["GET"])
    def dev_users():
        return jsonify(list(DEV_USERS))

    @app.route("/api/dev/login", methods=["POST"])
    def dev_login():
        data = request.get_json(silent=True) or {}
        services = get_services()
        user = find_dev_user(services.storage, data.get("user_id"))
        if user is None:
            return jsonify({"error": "Invalid user ID"}), 400

        token = open_session(services, user)
        print(f"[auth] dev login as {user.id} (role={user.role})")
        return jsonify({
            "message": "Logged in successfully",
            "token": token,
            "user": user.to_dict(),
        })

    @app.route("/api/dev/logout", methods=["POST"])
    def dev_logout():
        close_session(get_services(), request_token())
        return jsonify({"message": "Logged out successfully"})
