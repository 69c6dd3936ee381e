from functools import wraps

from django.shortcuts import redirect
from rest_framework import permissions
from rest_framework.exceptions import AuthenticationFailed
from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework_simplejwt.exceptions import InvalidToken

from housing_app.client.access import REDIRECT_DASHBOARD, REDIRECT_LOGIN, evaluate_access


def role_of(user):
    if not user or not user.is_authenticated:
        return None
    profile = getattr(user, "profile", None)
    return profile.role if profile is not None else None


class HasAllowedRole(permissions.BasePermission):
    """
    Gate a DRF view on `allowed_roles` (attribute on the view).
    An empty tuple admits any signed-in user.
    """
    message = "Your role does not have access to this resource."

    def has_permission(self, request, view):
        user = request.user
        decision = evaluate_access(
            False,
            bool(user and user.is_authenticated),
            role_of(user),
            getattr(view, "allowed_roles", ()),
            request.get_full_path(),
        )
        return decision.allowed


class IsReviewerOrReadOnly(permissions.BasePermission):
    """Read for all; write only by the review's author or staff."""
    def has_object_permission(self, request, view, obj):
        if request.method in permissions.SAFE_METHODS:
            return True
        return obj.user == request.user or request.user.is_staff


def _request_user(request):
    """Session user, or the bearer of a valid JWT on a plain Django view."""
    user = request.user
    if user.is_authenticated:
        return user
    try:
        result = JWTAuthentication().authenticate(request)
    except (InvalidToken, AuthenticationFailed):
        return user
    if result is None:
        return user
    request.user = result[0]
    return result[0]


def role_required(*allowed_roles):
    """
    Plain-view decorator: 302 to the login route (carrying ?next=) for anonymous
    users, 302 to the user's own dashboard on a role mismatch.
    """
    def decorator(view_func):
        @wraps(view_func)
        def _wrapped(request, *args, **kwargs):
            user = _request_user(request)
            decision = evaluate_access(
                False,
                user.is_authenticated,
                role_of(user),
                allowed_roles,
                request.get_full_path(),
            )
            if decision.action == REDIRECT_LOGIN:
                return redirect(f"{decision.location}?next={decision.from_path}")
            if decision.action == REDIRECT_DASHBOARD:
                return redirect(decision.location)
            return view_func(request, *args, **kwargs)
        return _wrapped
    return decorator
