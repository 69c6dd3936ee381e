"""
Stateless account operations: registration and confirmation, password
sign-in, JWT session issue/refresh/revoke, password reset and the OAuth
authorize URL. Both the auth client and the HTTP views build on these.
"""

import logging
from urllib.parse import urlencode

from django.conf import settings
from django.contrib.auth import authenticate, get_user_model
from django.contrib.auth.password_validation import validate_password
from django.contrib.auth.tokens import default_token_generator
from django.core import signing
from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils.encoding import force_bytes, force_str
from django.utils.http import urlsafe_base64_decode, urlsafe_base64_encode
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.settings import api_settings as jwt_settings
from rest_framework_simplejwt.tokens import RefreshToken

from housing_app.models import Profile, ROLE_CHOICES, ROLE_STUDENT
from notifications.services import queue_email

from .errors import AuthError
from .records import AuthSession, Identity

logger = logging.getLogger(__name__)

SIGNUP_ROLES = {value for value, _ in ROLE_CHOICES}
OAUTH_STATE_SALT = "campusnest.oauth.state"


def _frontend(path: str, **params) -> str:
    base = settings.FRONTEND_URL.rstrip("/")
    query = f"?{urlencode(params)}" if params else ""
    return f"{base}{path}{query}"


def _uid(user) -> str:
    return urlsafe_base64_encode(force_bytes(user.pk))


def _user_from_uid(uid: str):
    User = get_user_model()
    try:
        pk = force_str(urlsafe_base64_decode(uid))
        return User.objects.get(pk=pk)
    except (TypeError, ValueError, OverflowError, User.DoesNotExist):
        return None


def _check_password_strength(password: str, user=None):
    try:
        validate_password(password, user=user)
    except ValidationError as exc:
        raise AuthError(" ".join(exc.messages), code="weak_password") from exc


def find_user_by_email(email: str):
    return get_user_model().objects.filter(email__iexact=(email or "").strip()).first()


def identity_for(user) -> Identity:
    return Identity(id=user.pk, email=user.email or "")


# --------------------
# Registration
# --------------------
def register_account(email: str, password: str, data: dict | None = None, redirect_to: str | None = None):
    """
    Create an unconfirmed account with its profile row and queue the
    confirmation email. Password sign-in is refused until confirmed.
    """
    data = data or {}
    email = (email or "").strip().lower()
    if not email or "@" not in email:
        raise AuthError("Unable to validate email address: invalid format", code="validation_failed")
    if find_user_by_email(email):
        raise AuthError("User already registered", code="user_already_exists")

    role = data.get("role") or ROLE_STUDENT
    if role not in SIGNUP_ROLES:
        raise AuthError(f"Invalid role: {role}", code="validation_failed")

    User = get_user_model()
    _check_password_strength(password, user=User(username=email, email=email))

    full_name = (data.get("full_name") or "").strip()
    with transaction.atomic():
        user = User(username=email, email=email, first_name=full_name.split(" ")[0] if full_name else "")
        user.set_password(password)
        user.save()
        Profile.objects.create(user=user, email=email, full_name=full_name, role=role)

    token = default_token_generator.make_token(user)
    confirm_url = _frontend("/auth/confirm", uid=_uid(user), token=token, redirect_to=redirect_to or "")
    queue_email(
        user=user,
        template_key="auth.confirm_signup",
        context={"user": {"full_name": full_name or email}, "confirm_url": confirm_url},
    )
    logger.info("registered user %s as %s", user.pk, role)
    return user


def confirm_account(uid: str, token: str):
    user = _user_from_uid(uid)
    if user is None or not default_token_generator.check_token(user, token):
        raise AuthError("Email link is invalid or has expired", code="otp_expired")
    profile, _ = Profile.objects.get_or_create(user=user, defaults={"email": user.email})
    if not profile.email_confirmed:
        profile.email_confirmed = True
        profile.save(update_fields=["email_confirmed", "updated_at"])
    return user


# --------------------
# Sessions
# --------------------
def authenticate_password(email: str, password: str):
    user = find_user_by_email(email)
    if user is not None:
        user = authenticate(username=user.get_username(), password=password)
    if user is None:
        raise AuthError("Invalid login credentials", code="invalid_credentials")
    profile = getattr(user, "profile", None)
    if profile is None or not profile.email_confirmed:
        raise AuthError("Email not confirmed", code="email_not_confirmed")
    return user


def issue_session(user) -> AuthSession:
    refresh = RefreshToken.for_user(user)
    access = refresh.access_token
    return AuthSession(
        access_token=str(access),
        refresh_token=str(refresh),
        expires_at=int(access["exp"]),
        user=identity_for(user),
    )


def refresh_session(refresh_token: str) -> AuthSession:
    try:
        token = RefreshToken(refresh_token)
        user_id = token[jwt_settings.USER_ID_CLAIM]
    except (TokenError, KeyError) as exc:
        raise AuthError("Invalid Refresh Token", code="refresh_token_not_found") from exc

    user = get_user_model().objects.filter(pk=user_id, is_active=True).first()
    if user is None:
        raise AuthError("User not found", code="user_not_found")

    if jwt_settings.ROTATE_REFRESH_TOKENS and jwt_settings.BLACKLIST_AFTER_ROTATION:
        try:
            token.blacklist()
        except TokenError as exc:
            raise AuthError("Invalid Refresh Token", code="refresh_token_not_found") from exc
    return issue_session(user)


def revoke(refresh_token: str) -> None:
    try:
        RefreshToken(refresh_token).blacklist()
    except TokenError as exc:
        raise AuthError("Invalid or expired refresh token", code="invalid_token") from exc


# --------------------
# Passwords
# --------------------
def send_password_reset(email: str, redirect_to: str | None = None) -> None:
    """
    Queue a reset link when the address is known. Unknown addresses are
    accepted silently so the endpoint does not reveal which emails exist.
    """
    user = find_user_by_email(email)
    if user is None:
        logger.info("password reset requested for unknown address")
        return
    token = default_token_generator.make_token(user)
    reset_url = _frontend(
        "/auth/reset-password", uid=_uid(user), token=token, redirect_to=redirect_to or ""
    )
    profile = getattr(user, "profile", None)
    queue_email(
        user=user,
        template_key="auth.password_reset",
        context={"user": {"full_name": (profile.full_name if profile else "") or user.email}, "reset_url": reset_url},
    )


def reset_password(uid: str, token: str, new_password: str):
    user = _user_from_uid(uid)
    if user is None or not default_token_generator.check_token(user, token):
        raise AuthError("Password reset link is invalid or has expired", code="otp_expired")
    _check_password_strength(new_password, user=user)
    user.set_password(new_password)
    user.save(update_fields=["password"])
    return user


def change_password(user, new_password: str):
    _check_password_strength(new_password, user=user)
    user.set_password(new_password)
    user.save(update_fields=["password"])
    return user


# --------------------
# OAuth
# --------------------
def oauth_authorize_url(provider: str, redirect_to: str | None = None) -> str:
    config = getattr(settings, "OAUTH_PROVIDERS", {}).get(provider)
    if not config or not config.get("client_id"):
        raise AuthError("Unsupported provider: provider is not enabled", code="provider_disabled")

    redirect_uri = redirect_to or _frontend("/auth/callback")
    state = signing.dumps({"provider": provider, "redirect_to": redirect_uri}, salt=OAUTH_STATE_SALT)
    params = {
        "client_id": config["client_id"],
        "redirect_uri": redirect_uri,
        "response_type": "code",
        "scope": config.get("scope", ""),
        "state": state,
    }
    return f"{config['authorize_url']}?{urlencode(params)}"
