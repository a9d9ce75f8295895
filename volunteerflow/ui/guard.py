"""
UI-side capability gate.

Mirrors the API gate for rendering decisions only: it hides what a user may
not use and steers navigation away from sections they cannot view. It is not
a security boundary; the API gate is.
"""

from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Union

from markupsafe import Markup, escape

from volunteerflow.models import User
from volunteerflow.rbac import PermissionEvaluator, role_of, section_capability

HOME_PATH = "/"


@dataclass(frozen=True)
class AuthState:
    """Identity as seen by the rendering layer."""
    user: Optional[User] = None
    is_loading: bool = False


class RoleGuard:
    """Render children only when every requirement holds.

    Both requirement lists default to empty, meaning unrestricted. While the
    identity is loading nothing is rendered; a user without a role sees the
    fallback.
    """

    def __init__(self, evaluator: PermissionEvaluator,
                 required_capabilities: Iterable[str] = (),
                 required_roles: Iterable[str] = (),
                 fallback: Union[str, Markup] = ""):
        self.evaluator = evaluator
        self.required_capabilities = tuple(required_capabilities or ())
        self.required_roles = tuple(required_roles or ())
        self.fallback = fallback

    def allows(self, state: AuthState) -> Optional[bool]:
        """None while loading, else the grant decision."""
        if state.is_loading:
            return None
        if role_of(state.user) is None:
            return False
        return self.evaluator.allows(
            state.user,
            capabilities=self.required_capabilities,
            roles=self.required_roles,
        )

    def render(self, state: AuthState, children: Union[str, Markup, Callable[[], str]]) -> Markup:
        decision = self.allows(state)
        if decision is None:
            return Markup("")
        if not decision:
            return escape(self.fallback)
        return escape(children() if callable(children) else children)


def landing_path(evaluator: PermissionEvaluator, user) -> str:
    """First visible section, or home when there is none."""
    sections = evaluator.visible_sections(user)
    return f"/{sections[0]}" if sections else HOME_PATH


def navigation_redirect(evaluator: PermissionEvaluator, state: AuthState, path: str) -> Optional[str]:
    """Where to send a user who opened *path*, or None to stay.

    Only section routes (``/leads``, ``/medical-screening/<id>`` …) are
    guarded. The target is either home or a section the user can view, so
    following it never redirects again.
    """
    if state.is_loading:
        return None
    section = path.strip("/").split("/")[0]
    capability = section_capability(section)
    if capability is None:
        return None
    if evaluator.has_capability(state.user, capability):
        return None
    target = landing_path(evaluator, state.user)
    return None if target == path else target


def guard_helper(evaluator: PermissionEvaluator, state: AuthState):
    """Build the ``guard`` callable exposed to templates.

    Usage::

        {% call guard(required_capabilities=["manage_leads"]) %}
          <a href="#new-lead">Add lead</a>
        {% endcall %}
    """
    def guard(required_capabilities=(), required_roles=(), fallback="", caller=None):
        role_guard = RoleGuard(evaluator, required_capabilities, required_roles, fallback)
        return role_guard.render(state, caller if caller is not None else "")

    return guard
