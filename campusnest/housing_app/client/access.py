"""
Authorization gate shared by every protected view.

`evaluate_access` is a pure function of its inputs; the same tuple always
gives the same decision.
"""

from typing import Iterable, NamedTuple

from housing_app.models import ROLE_ADMIN, ROLE_MERCHANT, ROLE_STUDENT

LOGIN_ROUTE = "/auth/login/"
HOME_ROUTE = "/"

DASHBOARD_ROUTES = {
    ROLE_STUDENT: "/dashboard/student/",
    ROLE_MERCHANT: "/dashboard/merchant/",
    ROLE_ADMIN: "/dashboard/admin/",
}

LOADING = "loading"
RENDER = "render"
REDIRECT_LOGIN = "redirect_login"
REDIRECT_DASHBOARD = "redirect_dashboard"


class AccessDecision(NamedTuple):
    action: str
    location: str | None = None
    # path the user asked for; login sends them back here
    from_path: str | None = None

    @property
    def allowed(self) -> bool:
        return self.action == RENDER


def dashboard_route_for(role: str | None) -> str:
    return DASHBOARD_ROUTES.get(role, HOME_ROUTE)


def evaluate_access(
    is_loading: bool,
    is_authenticated: bool,
    role: str | None,
    allowed_roles: Iterable[str] = (),
    requested_path: str | None = None,
) -> AccessDecision:
    if is_loading:
        return AccessDecision(LOADING)
    if not is_authenticated:
        return AccessDecision(REDIRECT_LOGIN, LOGIN_ROUTE, requested_path)
    allowed = tuple(allowed_roles or ())
    if allowed and role not in allowed:
        return AccessDecision(REDIRECT_DASHBOARD, dashboard_route_for(role))
    return AccessDecision(RENDER)
