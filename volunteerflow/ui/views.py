"""
Server-rendered pages for the role-scoped dashboard.

Identity comes from the same session cookie/token as the API. Section pages
are protected by the navigation guard before any data is read; manage
actions inside a page are wrapped in ``guard`` blocks.
"""

import sys
import traceback

from flask import (
    Blueprint,
    abort,
    current_app,
    g,
    make_response,
    redirect,
    render_template,
    request,
)

from volunteerflow import reports
from volunteerflow.api.auth import close_session, get_services, open_session, request_token, resolve_identity
from volunteerflow.api.dev_auth import DEV_USERS, find_dev_user
from volunteerflow.errors import Forbidden
from volunteerflow.permissions import role_display_name
from volunteerflow.rbac import role_of
from volunteerflow.ui.guard import AuthState, guard_helper, landing_path, navigation_redirect

bp = Blueprint("ui", __name__, template_folder="templates")

NAVIGATION = (
    ("leads", "Lead Management"),
    ("positions", "Positions"),
    ("applications", "Applications"),
    ("medical-screening", "Medical Screening"),
    ("placements", "Placements"),
    ("reports", "Reports"),
)


@bp.before_request
def load_auth_state():
    services = get_services()
    try:
        user = resolve_identity(services)
    except Exception as e:
        print(f"[ERROR] Identity lookup failed: {e}", file=sys.stderr)
        traceback.print_exc()
        abort(500)
    g.auth_state = AuthState(user=user)

    target = navigation_redirect(services.evaluator, g.auth_state, request.path)
    if target is not None:
        print(f"[rbac] redirecting {request.path} → {target} (user={getattr(user, 'id', None)})")
        return redirect(target)


@bp.app_context_processor
def inject_guard():
    state = g.get("auth_state")
    if state is None:
        return {}
    evaluator = get_services().evaluator
    visible = evaluator.visible_sections(state.user)
    return {
        "guard": guard_helper(evaluator, state),
        "current_user": state.user,
        "role_name": role_display_name(role_of(state.user)),
        "nav_items": [(name, label) for name, label in NAVIGATION if name in visible],
        "back_path": landing_path(evaluator, state.user),
    }


# ── Home / login ─────────────────────────────────────────────────────

@bp.route("/", methods=["GET"])
def home():
    user = g.auth_state.user
    if user is None:
        return render_template("landing.html")
    return render_template("dashboard.html")


@bp.route("/login", methods=["GET", "POST"])
def login():
    dev_mode = current_app.config["AUTH_PROVIDER"] == "dev"
    if request.method == "GET":
        return render_template("login.html", dev_mode=dev_mode, dev_users=DEV_USERS if dev_mode else ())

    services = get_services()
    if dev_mode:
        user = find_dev_user(services.storage, request.form.get("user_id"))
    else:
        user = services.storage.get_user_by_api_key(request.form.get("api_key", "").strip())

    if user is None:
        return render_template(
            "login.html", dev_mode=dev_mode, dev_users=DEV_USERS if dev_mode else (),
            error="Login failed.",
        ), 401

    token = open_session(services, user)
    response = make_response(redirect("/"))
    response.set_cookie(
        current_app.config["TOKEN_COOKIE_NAME"], token,
        httponly=True, samesite="Lax",
        max_age=current_app.config["TOKEN_EXPIRY_HOURS"] * 3600,
    )
    return response


@bp.route("/logout", methods=["GET", "POST"])
def logout():
    close_session(get_services(), request_token())
    response = make_response(redirect("/"))
    response.delete_cookie(current_app.config["TOKEN_COOKIE_NAME"])
    return response


# ── Sections ─────────────────────────────────────────────────────────

@bp.route("/leads", methods=["GET"])
def leads():
    rows = get_services().storage.list_volunteers(search=request.args.get("search"))
    return render_template(
        "section.html",
        title="Lead Management",
        columns=[("first_name", "First name"), ("last_name", "Last name"),
                 ("email", "Email"), ("status", "Status"), ("source", "Source")],
        rows=rows,
        manage_capability="manage_leads",
        manage_label="Add lead",
        manage_anchor="new-lead",
    )


@bp.route("/positions", methods=["GET"])
def positions():
    rows = get_services().storage.list_positions(search=request.args.get("search"))
    return render_template(
        "section.html",
        title="Positions",
        columns=[("title", "Title"), ("sector", "Sector"), ("country", "Country"),
                 ("start_date", "Start"), ("end_date", "End"), ("priority", "Priority")],
        rows=rows,
        manage_capability="manage_positions",
        manage_label="Create position",
        manage_anchor="new-position",
    )


@bp.route("/applications", methods=["GET"])
def applications():
    rows = get_services().storage.list_applications(status=request.args.get("status"))
    return render_template(
        "section.html",
        title="Applications",
        columns=[("volunteer_id", "Volunteer"), ("position_id", "Position"),
                 ("status", "Status"), ("applied_at", "Applied"), ("score", "Score")],
        rows=rows,
        manage_capability="manage_applications",
        manage_label="New application",
        manage_anchor="new-application",
    )


@bp.route("/medical-screening", methods=["GET"])
def medical_screening():
    services = get_services()
    rows = [
        services.medical_details.public_view(s)
        for s in services.storage.list_medical_screenings(status=request.args.get("status"))
    ]
    return render_template(
        "section.html",
        title="Medical Screening",
        columns=[("volunteer_id", "Volunteer"), ("status", "Status"),
                 ("completed_at", "Completed"), ("expires_at", "Expires"),
                 ("medical_clearance", "Medical clearance")],
        rows=rows,
        detail_base="/medical-screening/",
        manage_capability="manage_medical_screenings",
        manage_label="Record screening",
        manage_anchor="new-screening",
    )


@bp.route("/medical-screening/<screening_id>", methods=["GET"])
def medical_screening_detail(screening_id):
    services = get_services()
    screening = services.storage.get_medical_screening(screening_id)
    if screening is None:
        abort(404)

    details = None
    details_denied = False
    try:
        details = services.medical_details.fetch_medical_details(g.auth_state.user, screening_id)
    except Forbidden:
        details_denied = True

    return render_template(
        "screening_detail.html",
        screening=services.medical_details.public_view(screening),
        details=details,
        details_denied=details_denied,
    )


@bp.route("/placements", methods=["GET"])
def placements():
    rows = get_services().storage.list_placements(status=request.args.get("status"))
    return render_template(
        "section.html",
        title="Placements",
        columns=[("volunteer_id", "Volunteer"), ("position_id", "Position"),
                 ("start_date", "Start"), ("end_date", "End"), ("status", "Status")],
        rows=rows,
        manage_capability="manage_placements",
        manage_label="Create placement",
        manage_anchor="new-placement",
    )


@bp.route("/reports", methods=["GET"])
def reports_page():
    return render_template("reports.html", report=reports.summary_report(get_services().engine))
