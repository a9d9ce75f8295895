"""
Flask route handlers for the REST API.

Every handler that exposes or mutates pipeline data is wrapped by a gate
decorator from ``volunteerflow.api.auth``. Handlers do not check access
themselves; the any-role feeds narrow their rows through the evaluator.
"""

import sys
import traceback

from flask import current_app, g, jsonify, request
from sqlalchemy import text as sa_text

from volunteerflow import reports
from volunteerflow.api.auth import (
    close_session,
    get_services,
    login_required,
    open_session,
    request_token,
    require_capabilities,
    require_roles,
)
from volunteerflow.errors import AccessError, ValidationError
from volunteerflow.permissions import role_display_name
from volunteerflow.validation import (
    APPLICATION_FIELDS,
    MEDICAL_DETAILS_FIELDS,
    MEDICAL_SCREENING_FIELDS,
    PLACEMENT_FIELDS,
    POSITION_FIELDS,
    VOLUNTEER_FIELDS,
    validate,
)


def _int_arg(name):
    value = request.args.get(name)
    if value is None or value == "":
        return None
    try:
        return int(value)
    except ValueError:
        raise ValidationError("Invalid data", {name: "must be an integer"})


def _bool_arg(name):
    value = request.args.get(name)
    if value is None or value == "":
        return None
    return value.lower() == "true"


def _json_body():
    if not request.is_json:
        raise ValidationError("Content-Type must be application/json")
    return request.get_json(silent=True)


def _handle(action: str, fn):
    """Run *fn* and translate failures into JSON responses."""
    try:
        return fn()
    except ValidationError as e:
        body = {"error": str(e)}
        if e.errors:
            body["errors"] = e.errors
        return jsonify(body), 400
    except AccessError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        print(f"[ERROR] Failed to {action}: {e}", file=sys.stderr)
        traceback.print_exc()
        return jsonify({"error": f"Failed to {action}"}), 500


def _not_found(what: str):
    return jsonify({"error": f"{what} not found"}), 404


def register_routes(app):
    """Register all API routes on the Flask *app*."""

    # ── Health / info ────────────────────────────────────────────────

    @app.route("/api", methods=["GET"])
    def index():
        return jsonify({
            "service": "VolunteerFlow API",
            "version": "1.0.0",
            "status": "running",
            "auth_provider": current_app.config["AUTH_PROVIDER"],
        })

    @app.route("/health", methods=["GET"])
    def health():
        services = get_services()
        checks = {"database": False}
        try:
            with services.engine.connect() as conn:
                conn.execute(sa_text("SELECT 1"))
            checks["database"] = True
        except Exception as e:
            print(f"[WARN] Health check database probe failed: {e}", file=sys.stderr)

        healthy = all(checks.values())
        return jsonify({
            "status": "healthy" if healthy else "unhealthy",
            "checks": checks,
            "active_sessions": len(services.sessions),
        }), 200 if healthy else 503

    # ── Auth ─────────────────────────────────────────────────────────

    if app.config["AUTH_PROVIDER"] == "api_key":

        @app.route("/api/auth/login", methods=["POST"])
        def login():
            if not request.is_json:
                return jsonify({"error": "Content-Type must be application/json"}), 400

            data = request.get_json(silent=True) or {}
            api_key = str(data.get("api_key", "")).strip()
            if not api_key:
                return jsonify({"error": "api_key is required"}), 400

            services = get_services()
            try:
                user = services.storage.get_user_by_api_key(api_key)
            except Exception as e:
                print(f"[ERROR] Login error: {e}", file=sys.stderr)
                traceback.print_exc()
                return jsonify({"error": "Internal server error during login"}), 500

            if user is None:
                return jsonify({"error": "Authentication failed: invalid or inactive key"}), 401

            token = open_session(services, user)
            print(f"[auth] {user.id} logged in (role={user.role})")
            return jsonify({
                "success": True,
                "token": token,
                "user": user.to_dict(),
            }), 200

    @app.route("/api/auth/logout", methods=["POST"])
    @login_required
    def logout():
        close_session(get_services(), request_token())
        return jsonify({"success": True, "message": "Logged out successfully"}), 200

    @app.route("/api/auth/user", methods=["GET"])
    @require_capabilities()
    def current_user():
        evaluator = get_services().evaluator
        user = g.current_user
        return jsonify({
            **user.to_dict(),
            "role_display_name": role_display_name(user.role),
            "capabilities": evaluator.capabilities_for(user),
            "sections": evaluator.visible_sections(user),
        }), 200

    # ── Dashboard ────────────────────────────────────────────────────

    @app.route("/api/dashboard/metrics", methods=["GET"])
    @require_capabilities()
    def dashboard_metrics():
        return _handle(
            "fetch dashboard metrics",
            lambda: jsonify(reports.dashboard_metrics(get_services().engine)),
        )

    @app.route("/api/dashboard/urgent-items", methods=["GET"])
    @require_capabilities()
    def dashboard_urgent_items():
        return _handle(
            "fetch urgent items",
            lambda: jsonify(reports.urgent_items(
                get_services().engine,
                warning_days=current_app.config["MEDICAL_EXPIRY_WARNING_DAYS"],
            )),
        )

    @app.route("/api/dashboard/recent-activities", methods=["GET"])
    @require_capabilities()
    def dashboard_recent_activities():
        def run():
            services = get_services()
            return jsonify(services.storage.list_activities(
                limit=current_app.config["RECENT_ACTIVITY_LIMIT"],
                hidden_references=services.evaluator.hidden_activity_references(g.current_user),
            ))
        return _handle("fetch recent activities", run)

    @app.route("/api/dashboard/screening-queue", methods=["GET"])
    @require_roles("medical_screener")
    def dashboard_screening_queue():
        def run():
            services = get_services()
            queue = []
            for status in ("not_started", "in_progress"):
                queue.extend(services.storage.list_medical_screenings(status=status))
            return jsonify([services.medical_details.public_view(s) for s in queue])
        return _handle("fetch screening queue", run)

    # ── Volunteers (leads) ───────────────────────────────────────────

    @app.route("/api/volunteers", methods=["GET"])
    @require_capabilities("view_leads")
    def list_volunteers():
        return _handle("fetch volunteers", lambda: jsonify(get_services().storage.list_volunteers(
            status=request.args.get("status"),
            search=request.args.get("search"),
            limit=_int_arg("limit"),
            offset=_int_arg("offset"),
        )))

    @app.route("/api/volunteers/<volunteer_id>", methods=["GET"])
    @require_capabilities("view_leads")
    def get_volunteer(volunteer_id):
        def run():
            volunteer = get_services().storage.get_volunteer(volunteer_id)
            if volunteer is None:
                return _not_found("Volunteer")
            return jsonify(volunteer)
        return _handle("fetch volunteer", run)

    @app.route("/api/volunteers", methods=["POST"])
    @require_capabilities("manage_leads")
    def create_volunteer():
        def run():
            data = validate(VOLUNTEER_FIELDS, _json_body())
            volunteer = get_services().storage.create_volunteer(data, user_id=g.current_user.id)
            return jsonify(volunteer), 201
        return _handle("create volunteer", run)

    @app.route("/api/volunteers/<volunteer_id>", methods=["PATCH"])
    @require_capabilities("manage_leads")
    def update_volunteer(volunteer_id):
        def run():
            data = validate(VOLUNTEER_FIELDS, _json_body(), partial=True)
            volunteer = get_services().storage.update_volunteer(volunteer_id, data)
            if volunteer is None:
                return _not_found("Volunteer")
            return jsonify(volunteer)
        return _handle("update volunteer", run)

    @app.route("/api/volunteers/<volunteer_id>", methods=["DELETE"])
    @require_capabilities("manage_leads")
    def delete_volunteer(volunteer_id):
        def run():
            if not get_services().storage.delete_volunteer(volunteer_id):
                return _not_found("Volunteer")
            return jsonify({"message": "Volunteer deleted successfully"})
        return _handle("delete volunteer", run)

    # ── Positions ────────────────────────────────────────────────────

    @app.route("/api/positions", methods=["GET"])
    @require_capabilities("view_positions")
    def list_positions():
        return _handle("fetch positions", lambda: jsonify(get_services().storage.list_positions(
            sector=request.args.get("sector"),
            country=request.args.get("country"),
            is_open=_bool_arg("is_open"),
            search=request.args.get("search"),
            limit=_int_arg("limit"),
            offset=_int_arg("offset"),
        )))

    @app.route("/api/positions/<position_id>", methods=["GET"])
    @require_capabilities("view_positions")
    def get_position(position_id):
        def run():
            position = get_services().storage.get_position(position_id)
            if position is None:
                return _not_found("Position")
            return jsonify(position)
        return _handle("fetch position", run)

    @app.route("/api/positions", methods=["POST"])
    @require_capabilities("manage_positions")
    def create_position():
        def run():
            data = validate(POSITION_FIELDS, _json_body())
            position = get_services().storage.create_position(
                data,
                user_id=g.current_user.id,
                term_months=current_app.config["POSITION_TERM_MONTHS"],
            )
            return jsonify(position), 201
        return _handle("create position", run)

    @app.route("/api/positions/<position_id>", methods=["PATCH"])
    @require_capabilities("manage_positions")
    def update_position(position_id):
        def run():
            data = validate(POSITION_FIELDS, _json_body(), partial=True)
            position = get_services().storage.update_position(position_id, data)
            if position is None:
                return _not_found("Position")
            return jsonify(position)
        return _handle("update position", run)

    @app.route("/api/positions/<position_id>", methods=["DELETE"])
    @require_capabilities("manage_positions")
    def delete_position(position_id):
        def run():
            if not get_services().storage.delete_position(position_id):
                return _not_found("Position")
            return jsonify({"message": "Position deleted successfully"})
        return _handle("delete position", run)

    # ── Applications ─────────────────────────────────────────────────

    @app.route("/api/applications", methods=["GET"])
    @require_capabilities("view_applications")
    def list_applications():
        return _handle("fetch applications", lambda: jsonify(get_services().storage.list_applications(
            volunteer_id=request.args.get("volunteer_id"),
            position_id=request.args.get("position_id"),
            status=request.args.get("status"),
            limit=_int_arg("limit"),
            offset=_int_arg("offset"),
        )))

    @app.route("/api/applications/<application_id>", methods=["GET"])
    @require_capabilities("view_applications")
    def get_application(application_id):
        def run():
            application = get_services().storage.get_application(application_id)
            if application is None:
                return _not_found("Application")
            return jsonify(application)
        return _handle("fetch application", run)

    @app.route("/api/applications", methods=["POST"])
    @require_capabilities("manage_applications")
    def create_application():
        def run():
            data = validate(APPLICATION_FIELDS, _json_body())
            application = get_services().storage.create_application(data, user_id=g.current_user.id)
            return jsonify(application), 201
        return _handle("create application", run)

    @app.route("/api/applications/<application_id>", methods=["PATCH"])
    @require_capabilities("manage_applications")
    def update_application(application_id):
        def run():
            data = validate(APPLICATION_FIELDS, _json_body(), partial=True)
            application = get_services().storage.update_application(application_id, data)
            if application is None:
                return _not_found("Application")
            return jsonify(application)
        return _handle("update application", run)

    # ── Medical screenings ───────────────────────────────────────────

    @app.route("/api/medical-screenings", methods=["GET"])
    @require_capabilities("view_medical_screenings")
    def list_medical_screenings():
        def run():
            services = get_services()
            screenings = services.storage.list_medical_screenings(
                volunteer_id=request.args.get("volunteer_id"),
                status=request.args.get("status"),
            )
            return jsonify([services.medical_details.public_view(s) for s in screenings])
        return _handle("fetch medical screenings", run)

    @app.route("/api/medical-screenings/<screening_id>", methods=["GET"])
    @require_capabilities("view_medical_screenings")
    def get_medical_screening(screening_id):
        def run():
            services = get_services()
            screening = services.storage.get_medical_screening(screening_id)
            if screening is None:
                return _not_found("Medical screening")
            return jsonify(services.medical_details.public_view(screening))
        return _handle("fetch medical screening", run)

    @app.route("/api/medical-screenings", methods=["POST"])
    @require_capabilities("manage_medical_screenings")
    def create_medical_screening():
        def run():
            services = get_services()
            data = validate(MEDICAL_SCREENING_FIELDS, _json_body())
            screening = services.storage.create_medical_screening(data)
            return jsonify(services.medical_details.public_view(screening)), 201
        return _handle("create medical screening", run)

    @app.route("/api/medical-screenings/<screening_id>", methods=["PATCH"])
    @require_capabilities("manage_medical_screenings")
    def update_medical_screening(screening_id):
        def run():
            services = get_services()
            data = validate(MEDICAL_SCREENING_FIELDS, _json_body(), partial=True)
            screening = services.storage.update_medical_screening(screening_id, data)
            if screening is None:
                return _not_found("Medical screening")
            return jsonify(services.medical_details.public_view(screening))
        return _handle("update medical screening", run)

    @app.route("/api/medical-screenings/<screening_id>/details", methods=["GET"])
    @require_capabilities("view_medical_screenings", "view_medical_details")
    def get_medical_screening_details(screening_id):
        def run():
            services = get_services()
            if services.storage.get_medical_screening(screening_id) is None:
                return _not_found("Medical screening")
            details = services.medical_details.fetch_medical_details(g.current_user, screening_id)
            if details is None:
                return _not_found("Medical details")
            return jsonify(details)
        return _handle("fetch medical details", run)

    @app.route("/api/medical-screenings/<screening_id>/details", methods=["PUT"])
    @require_capabilities("manage_medical_screenings", "view_medical_details")
    def save_medical_screening_details(screening_id):
        def run():
            services = get_services()
            if services.storage.get_medical_screening(screening_id) is None:
                return _not_found("Medical screening")
            data = validate(MEDICAL_DETAILS_FIELDS, _json_body())
            details = services.medical_details.save_medical_details(
                g.current_user, screening_id, data,
            )
            return jsonify(details)
        return _handle("save medical details", run)

    # ── Placements ───────────────────────────────────────────────────

    @app.route("/api/placements", methods=["GET"])
    @require_capabilities("view_placements")
    def list_placements():
        return _handle("fetch placements", lambda: jsonify(get_services().storage.list_placements(
            volunteer_id=request.args.get("volunteer_id"),
            position_id=request.args.get("position_id"),
            status=request.args.get("status"),
        )))

    @app.route("/api/placements/<placement_id>", methods=["GET"])
    @require_capabilities("view_placements")
    def get_placement(placement_id):
        def run():
            placement = get_services().storage.get_placement(placement_id)
            if placement is None:
                return _not_found("Placement")
            return jsonify(placement)
        return _handle("fetch placement", run)

    @app.route("/api/placements", methods=["POST"])
    @require_capabilities("manage_placements")
    def create_placement():
        def run():
            data = validate(PLACEMENT_FIELDS, _json_body())
            return jsonify(get_services().storage.create_placement(data)), 201
        return _handle("create placement", run)

    @app.route("/api/placements/<placement_id>", methods=["PATCH"])
    @require_capabilities("manage_placements")
    def update_placement(placement_id):
        def run():
            data = validate(PLACEMENT_FIELDS, _json_body(), partial=True)
            placement = get_services().storage.update_placement(placement_id, data)
            if placement is None:
                return _not_found("Placement")
            return jsonify(placement)
        return _handle("update placement", run)

    # ── Reports ──────────────────────────────────────────────────────

    @app.route("/api/reports/summary", methods=["GET"])
    @require_capabilities("view_reports")
    def reports_summary():
        return _handle(
            "build report",
            lambda: jsonify(reports.summary_report(get_services().engine)),
        )

    # ── Error handlers ───────────────────────────────────────────────

    @app.errorhandler(404)
    def not_found(e):
        if request.path.startswith("/api/"):
            return jsonify({"error": "Endpoint not found", "message": str(e)}), 404
        return e.get_response()

    @app.errorhandler(405)
    def method_not_allowed(e):
        return jsonify({"error": "Method not allowed", "message": str(e)}), 405

    @app.errorhandler(500)
    def internal_error(e):
        return jsonify({"error": "Internal server error"}), 500
