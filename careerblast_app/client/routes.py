"""
Client-side route table and the guard that decides whether a route renders.
"""
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from .session import AuthSession

LOGIN_PATH = "/login"
HOME_PATH = "/"
APPLY_PATH = "/recruiter/apply"

EMPLOYER_FEATURES = ("post_job", "pricing", "team", "review_applicants")


@dataclass(frozen=True)
class Route:
    path: str
    roles: Tuple[str, ...] = ()
    require_auth: bool = True
    require_approval: bool = False


@dataclass(frozen=True)
class GuardDecision:
    allowed: bool
    redirect_to: Optional[str] = None


ROUTES: Dict[str, Route] = {
    route.path: route
    for route in (
        Route("/", require_auth=False),
        Route(LOGIN_PATH, require_auth=False),
        Route("/signup", require_auth=False),
        Route("/jobs", roles=("candidate", "employer", "admin")),
        Route(APPLY_PATH, roles=("employer",)),
        Route("/employer/dashboard", roles=("employer",), require_approval=True),
        Route("/employer/post-job", roles=("employer",), require_approval=True),
        Route("/employer/pricing", roles=("employer",), require_approval=True),
        Route("/employer/team", roles=("employer",), require_approval=True),
        Route("/admin/recruiters", roles=("admin",)),
    )
}


class RouteGuard:
    def __init__(self, session: AuthSession):
        self.session = session

    def check(self, route: Route) -> GuardDecision:
        """Unauthenticated -> login, wrong role -> home, unapproved employer -> apply page."""
        if not route.require_auth:
            return GuardDecision(True)
        if not self.session.is_authenticated:
            return GuardDecision(False, LOGIN_PATH)
        if route.roles and self.session.role not in route.roles:
            return GuardDecision(False, HOME_PATH)
        if route.require_approval and self.session.role == "employer" and not self.session.is_approved:
            return GuardDecision(False, APPLY_PATH)
        return GuardDecision(True)

    def check_path(self, path: str) -> GuardDecision:
        route = ROUTES.get(path)
        if route is None:
            return GuardDecision(False, HOME_PATH)
        return self.check(route)


def employer_affordances(user: Optional[Dict[str, Any]]) -> List[str]:
    """Employer-only navigation entries; empty until the account is approved."""
    if not user or user.get("role") != "employer" or not user.get("is_approved"):
        return []
    return list(EMPLOYER_FEATURES)
