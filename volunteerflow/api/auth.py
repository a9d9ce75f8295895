"""
JWT identity helpers and the server-side enforcement gate for the Flask API.

Per request the gate moves Unauthenticated → Authenticated-No-Role →
Authorized and then calls the view unchanged. Any failed step ends the
request; nothing downstream runs.
"""

import sys
import traceback
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from functools import wraps
from typing import Any, Dict, Optional

import jwt
from flask import current_app, g, jsonify, request

from volunteerflow.errors import AccessError, Forbidden, Unauthenticated, Unauthorized
from volunteerflow.models import User
from volunteerflow.rbac import PermissionEvaluator, role_of
from volunteerflow.redaction import MedicalDetailsPolicy
from volunteerflow.storage import Storage, utcnow


@dataclass
class Services:
    """Per-app collaborators, stored on ``app.extensions["volunteerflow"]``."""
    engine: Any
    storage: Storage
    evaluator: PermissionEvaluator
    medical_details: MedicalDetailsPolicy
    # In-memory session store: {token: {"user_id", "created_at", "last_activity"}}
    sessions: Dict[str, Dict[str, Any]] = field(default_factory=dict)


def get_services() -> Services:
    return current_app.extensions["volunteerflow"]


# ── Tokens / sessions ────────────────────────────────────────────────

def generate_token(user: User, secret_key: str, expiry_hours: int) -> str:
    """Generate a JWT for an authenticated user. The role is not embedded."""
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user.id),
        "jti": uuid.uuid4().hex,
        "iat": now,
        "exp": now + timedelta(hours=expiry_hours),
    }
    return jwt.encode(payload, secret_key, algorithm="HS256")


def verify_token(token: str, secret_key: str) -> Optional[Dict[str, Any]]:
    """Verify a JWT and return the decoded payload (or None)."""
    try:
        return jwt.decode(token, secret_key, algorithms=["HS256"])
    except jwt.ExpiredSignatureError:
        return None
    except jwt.InvalidTokenError:
        return None


def open_session(services: Services, user: User) -> str:
    """Issue a token for *user* and register it in the session store."""
    expiry_hours = current_app.config["TOKEN_EXPIRY_HOURS"]
    cleanup_expired_sessions(services, expiry_hours)
    token = generate_token(user, current_app.config["SECRET_KEY"], expiry_hours)
    now = utcnow()
    services.sessions[token] = {
        "user_id": user.id,
        "created_at": now,
        "last_activity": now,
    }
    return token


def close_session(services: Services, token: Optional[str]) -> None:
    if token:
        services.sessions.pop(token, None)


def cleanup_expired_sessions(services: Services, expiry_hours: int) -> int:
    """Remove sessions inactive beyond *expiry_hours*; return how many."""
    now = utcnow()
    expired = [
        tok for tok, data in services.sessions.items()
        if (now - data["last_activity"]).total_seconds() > expiry_hours * 3600
    ]
    for tok in expired:
        del services.sessions[tok]
    if expired:
        print(f"[cleanup] Removed {len(expired)} expired sessions")
    return len(expired)


def request_token() -> Optional[str]:
    """Bearer header first, then the session cookie."""
    auth_header = request.headers.get("Authorization", "")
    if auth_header:
        parts = auth_header.split(" ")
        if len(parts) == 2 and parts[0].lower() == "bearer" and parts[1]:
            return parts[1]
        return None
    return request.cookies.get(current_app.config["TOKEN_COOKIE_NAME"]) or None


def resolve_identity(services: Services) -> Optional[User]:
    """Map the current request to a stored user, or None.

    Storage errors propagate; callers turn them into a 500.
    """
    token = request_token()
    if not token:
        return None
    payload = verify_token(token, current_app.config["SECRET_KEY"])
    if not payload or token not in services.sessions:
        return None
    session = services.sessions[token]
    if str(session["user_id"]) != str(payload.get("sub")):
        return None
    user = services.storage.get_user(str(payload["sub"]))
    if user is not None:
        session["last_activity"] = utcnow()
    return user


# ── Gate ─────────────────────────────────────────────────────────────

def authorize(services: Services, capabilities=(), roles=(), require_role: bool = True) -> User:
    """Run the gate's checks for the current request and return the user."""
    user = resolve_identity(services)
    if user is None:
        raise Unauthenticated(reason="no valid session")
    if not require_role:
        return user
    if role_of(user) is None:
        raise Unauthorized(reason=f"user {user.id} has no recognised role ({user.role!r})")
    if not services.evaluator.allows(user, capabilities=capabilities, roles=roles):
        raise Forbidden(
            reason=f"user {user.id} (role={user.role}) lacks "
                   f"capabilities={list(capabilities)} roles={list(roles)}"
        )
    return user


def access_denied(e: AccessError):
    if isinstance(e, Unauthorized):
        print(f"[rbac] no role: {e.reason} on {request.method} {request.path}", file=sys.stderr)
    elif isinstance(e, Forbidden):
        print(f"[rbac] forbidden: {e.reason} on {request.method} {request.path}", file=sys.stderr)
    else:
        print(f"[auth] unauthenticated {request.method} {request.path}", file=sys.stderr)
    return jsonify(e.to_dict()), e.status_code


def _gate(capabilities=(), roles=(), require_role: bool = True):
    def decorator(f):
        @wraps(f)
        def decorated(*args, **kwargs):
            services = get_services()
            try:
                g.current_user = authorize(
                    services, capabilities=capabilities, roles=roles, require_role=require_role,
                )
            except AccessError as e:
                return access_denied(e)
            except Exception as e:
                print(f"[ERROR] Authorization check failed: {e}", file=sys.stderr)
                traceback.print_exc()
                return jsonify({"error": "Internal server error"}), 500
            return f(*args, **kwargs)

        decorated.required_capabilities = tuple(capabilities)
        decorated.required_roles = tuple(roles)
        decorated.requires_role = require_role
        return decorated

    return decorator


def require_capabilities(*capabilities: str):
    """Protect a view: caller needs a role and every listed capability.

    With no arguments the caller only needs to be authenticated with a role.
    """
    return _gate(capabilities=capabilities)


def require_roles(*roles: str):
    """Protect a view: caller's role must be one of *roles*."""
    return _gate(roles=roles)


def login_required(f):
    """Protect a view that any authenticated identity may use, role or not."""
    return _gate(require_role=False)(f)
