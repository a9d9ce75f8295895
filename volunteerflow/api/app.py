"""
Flask application factory and server entry-point.
"""

import os
import sys
import traceback

from flask import Flask
from flask_cors import CORS

from volunteerflow.api.auth import Services
from volunteerflow.api.dev_auth import register_dev_auth
from volunteerflow.api.routes import register_routes
from volunteerflow.config import load_settings
from volunteerflow.database import create_schema, init_engine
from volunteerflow.permissions import build_permission_table
from volunteerflow.rbac import PermissionEvaluator
from volunteerflow.redaction import MedicalDetailsPolicy
from volunteerflow.storage import Storage
from volunteerflow.ui.views import bp as ui_blueprint

AUTH_PROVIDERS = ("api_key", "dev")


def create_app(config=None, engine=None):
    """Build and return a fully configured Flask application.

    *engine* may be injected (tests); otherwise one is created from DB_URI.
    """
    app = Flask(__name__)
    app.config.update(load_settings(config))
    CORS(app, origins=app.config["CORS_ORIGINS"], supports_credentials=True)

    provider = app.config["AUTH_PROVIDER"]
    if provider not in AUTH_PROVIDERS:
        raise ValueError(f"Unknown AUTH_PROVIDER '{provider}' (expected one of {AUTH_PROVIDERS}).")

    # ── Initialise shared resources ──────────────────────────────────
    if engine is None:
        try:
            print("[init] Initializing database connection...")
            engine = init_engine()
        except Exception as e:
            print(f"[FATAL] Failed to initialize: {e}", file=sys.stderr)
            traceback.print_exc()
            sys.exit(1)
    else:
        create_schema(engine)

    # One table, one evaluator: shared by the API gate and the UI gate.
    evaluator = PermissionEvaluator(build_permission_table())
    storage = Storage(engine, page_limit=app.config["DEFAULT_PAGE_LIMIT"])
    app.extensions["volunteerflow"] = Services(
        engine=engine,
        storage=storage,
        evaluator=evaluator,
        medical_details=MedicalDetailsPolicy(evaluator, storage),
    )

    # ── Register routes ──────────────────────────────────────────────
    register_routes(app)
    if provider == "dev":
        register_dev_auth(app)
    app.register_blueprint(ui_blueprint)

    print(f"[init] ✓ API server ready (auth provider: {provider})")
    return app


def main():
    """Run the development server."""
    print("=" * 60)
    print("VolunteerFlow – REST API Server")
    print("=" * 60)

    app = create_app()

    host = os.getenv("API_HOST", "0.0.0.0")
    port = int(os.getenv("API_PORT", "8000"))
    debug = app.config["APP_ENV"] == "development"

    print(f"\n[server] Starting Flask API on {host}:{port}")
    print(f"[server] Debug mode: {debug}")
    print(f"[server] Session expiry: {app.config['TOKEN_EXPIRY_HOURS']} hours")
    print("\nAPI Endpoints:")
    for rule in sorted(app.url_map.iter_rules(), key=lambda r: r.rule):
        if rule.rule.startswith("/api"):
            methods = ",".join(sorted(m for m in rule.methods if m not in ("HEAD", "OPTIONS")))
            print(f"  - {methods:<12} http://{host}:{port}{rule.rule}")
    print("\n" + "=" * 60)

    app.run(host=host, port=port, debug=debug, threaded=True)


if __name__ == "__main__":
    main()
