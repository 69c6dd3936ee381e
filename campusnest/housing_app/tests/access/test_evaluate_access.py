import itertools

import pytest

from housing_app.client.access import (
    LOADING,
    REDIRECT_DASHBOARD,
    REDIRECT_LOGIN,
    RENDER,
    dashboard_route_for,
    evaluate_access,
)

ROLES = [None, "student", "merchant", "admin"]
ALLOWED = [(), ("student",), ("merchant",), ("admin",), ("merchant", "admin")]


def test_loading_wins_over_everything():
    assert evaluate_access(True, False, None, ("admin",)).action == LOADING
    assert evaluate_access(True, True, "admin", ("admin",)).action == LOADING


def test_anonymous_goes_to_login_carrying_requested_path():
    decision = evaluate_access(False, False, None, ("student",), "/dashboard/student/")
    assert decision.action == REDIRECT_LOGIN
    assert decision.location == "/auth/login/"
    assert decision.from_path == "/dashboard/student/"


def test_student_on_merchant_page_goes_to_own_dashboard():
    decision = evaluate_access(False, True, "student", ["merchant"])
    assert decision.action == REDIRECT_DASHBOARD
    assert decision.location == "/dashboard/student/"
    assert not decision.allowed


def test_matching_role_renders():
    assert evaluate_access(False, True, "merchant", ("merchant", "admin")).action == RENDER


def test_no_allowed_roles_admits_any_signed_in_user():
    assert evaluate_access(False, True, None, ()).allowed
    assert evaluate_access(False, True, "student", None).allowed


def test_missing_role_with_restriction_goes_home():
    decision = evaluate_access(False, True, None, ("admin",))
    assert decision.action == REDIRECT_DASHBOARD
    assert decision.location == "/"


@pytest.mark.parametrize("role,expected", [
    ("student", "/dashboard/student/"),
    ("merchant", "/dashboard/merchant/"),
    ("admin", "/dashboard/admin/"),
    ("landlord", "/"),
    (None, "/"),
])
def test_dashboard_routes(role, expected):
    assert dashboard_route_for(role) == expected


@pytest.mark.parametrize(
    "is_authenticated,role,allowed",
    list(itertools.product([True, False], ROLES, ALLOWED)),
)
def test_decision_is_pure(is_authenticated, role, allowed):
    first = evaluate_access(False, is_authenticated, role, allowed, "/x/")
    for _ in range(3):
        assert evaluate_access(False, is_authenticated, role, allowed, "/x/") == first
