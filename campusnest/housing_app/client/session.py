"""
SessionStore: the one place that knows who is signed in and with which role.

Build it once per process (or per front-end session), call `start()`, and
treat its attributes as read-only everywhere else; only the methods below
change them.
"""

import logging

from django.core.exceptions import ValidationError

from housing_app.services.errors import AuthError, DataError, ServiceError, UploadError
from housing_app.services.mappers import map_profile
from housing_app.services.records import AuthSession, Identity, ProfileRecord
from housing_app.services.storage import store_avatar
from housing_app.validators.images import validate_avatar_image

from .access import HOME_ROUTE, evaluate_access
from .ui import Navigator, Toaster

logger = logging.getLogger(__name__)

INITIALIZING = "initializing"
UNAUTHENTICATED = "unauthenticated"
AUTHENTICATED = "authenticated"


class SessionStore:
    def __init__(self, client, toaster: Toaster | None = None, navigator: Navigator | None = None):
        self.client = client
        self.toaster = toaster or Toaster()
        self.navigator = navigator or Navigator()

        self.state = INITIALIZING
        self.session: AuthSession | None = None
        self.user: Identity | None = None
        self.profile: ProfileRecord | None = None
        self.role: str | None = None
        self.is_loading = True

        self._subscription = None
        self._started = False

    # ------------------------------------------------------------------
    # read accessors
    # ------------------------------------------------------------------
    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    @property
    def profile_loading(self) -> bool:
        return self.state == AUTHENTICATED and self.is_loading

    def check_access(self, allowed_roles=(), requested_path=None):
        return evaluate_access(
            self.is_loading,
            self.is_authenticated,
            self.role,
            allowed_roles,
            requested_path,
        )

    # ------------------------------------------------------------------
    # lifecycle
    # ------------------------------------------------------------------
    def start(self):
        if self._started:
            return self
        self._started = True
        self._resolve(self.client.auth.get_session())
        self._subscription = self.client.auth.on_auth_state_change(self._on_auth_event)
        return self

    def close(self):
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    def __enter__(self):
        return self.start()

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    def _on_auth_event(self, event: str, session: AuthSession | None):
        logger.debug("auth event %s", event)
        self._resolve(session)

    def _resolve(self, session: AuthSession | None):
        self.session = session
        self.user = session.user if session else None
        if session is None:
            self.profile = None
            self.role = None
            self.state = UNAUTHENTICATED
            self.is_loading = False
            return
        self.state = AUTHENTICATED
        if self.profile is not None and self.profile.id != session.user.id:
            self.profile = None
            self.role = None
        self._fetch_profile(session.user.id)

    def _fetch_profile(self, user_id: int):
        self.is_loading = True
        try:
            row = self.client.table("profiles").select().eq("id", user_id).single()
            self.profile = map_profile(row)
            self.role = self.profile.role
        except ServiceError:
            logger.exception("could not load profile for user %s", user_id)
            self.profile = None
            self.role = None
            self.toaster.error("Error", "Could not load user profile")
        finally:
            self.is_loading = False

    # ------------------------------------------------------------------
    # auth operations
    # ------------------------------------------------------------------
    def sign_up(self, email: str, password: str, full_name: str, role: str) -> Identity:
        try:
            ident = self.client.auth.sign_up(email, password, data={"full_name": full_name, "role": role})
        except AuthError as exc:
            logger.warning("sign-up failed for %s: %s", email, exc.message)
            self.toaster.error("Sign-up failed", exc.message or "An error occurred during sign up")
            raise
        self.toaster.toast("Account created!", "Please check your email to confirm your account")
        return ident

    def sign_in(self, email: str, password: str) -> None:
        # state is filled in by the auth feed, not here
        try:
            self.client.auth.sign_in_with_password(email, password)
        except AuthError as exc:
            logger.warning("sign-in failed: %s", exc.message)
            self.toaster.error("Sign-in failed", exc.message or "Invalid email or password")
            raise
        self.toaster.toast("Welcome back!", "You have successfully signed in")

    def sign_in_with_oauth(self, provider: str, redirect_to: str | None = None) -> str:
        try:
            result = self.client.auth.sign_in_with_oauth(provider, redirect_to=redirect_to)
        except AuthError as exc:
            label = provider.capitalize()
            self.toaster.error(f"{label} sign-in failed", exc.message or f"An error occurred during {label} sign in")
            raise
        self.navigator.redirect(result["url"])
        return result["url"]

    def sign_out(self) -> None:
        self.session = None
        self.user = None
        self.profile = None
        self.role = None
        self.state = UNAUTHENTICATED
        self.is_loading = False
        try:
            self.client.auth.sign_out()
        except ServiceError as exc:
            logger.warning("sign-out call failed: %s", exc.message)
            self.toaster.error("Sign-out failed", exc.message or "An error occurred during sign out")
        else:
            self.toaster.toast("Signed out", "You have been successfully signed out")
        finally:
            self.navigator.redirect(HOME_ROUTE)

    def send_password_reset_email(self, email: str, redirect_to: str | None = None) -> None:
        try:
            self.client.auth.reset_password_for_email(email, redirect_to=redirect_to)
        except ServiceError as exc:
            logger.warning("password reset request failed: %s", exc.message)
            self.toaster.error("Error", exc.message or "Could not send password reset email")
            return
        self.toaster.toast("Check your email", "We sent you a link to reset your password")

    def update_password(self, new_password: str) -> None:
        try:
            self.client.auth.update_user(password=new_password)
        except AuthError as exc:
            self.toaster.error("Password update failed", exc.message)
            raise
        self.toaster.toast("Password updated", "Your password has been changed")

    # ------------------------------------------------------------------
    # profile
    # ------------------------------------------------------------------
    def update_profile(self, changes: dict) -> ProfileRecord | None:
        if self.user is None:
            raise AuthError("Not signed in", code="session_missing")
        changes = {k: v for k, v in changes.items() if k not in ("id", "role", "created_at", "updated_at")}
        try:
            row = self.client.table("profiles").update(changes).eq("id", self.user.id).single()
        except DataError as exc:
            self.toaster.error("Profile update failed", exc.message)
            raise
        merged = (self.profile.model_dump() if self.profile else {}) | map_profile(row).model_dump(include=set(changes))
        merged["id"] = self.user.id
        self.profile = ProfileRecord(**merged)
        self.role = self.profile.role
        return self.profile

    def refresh_profile(self) -> None:
        if self.user is None:
            return
        self._fetch_profile(self.user.id)

    def upload_avatar(self, file) -> str:
        """`file` is an uploaded file object (name, content_type, size)."""
        if self.user is None:
            raise AuthError("Not signed in", code="session_missing")
        try:
            validate_avatar_image(file)
        except ValidationError as exc:
            self.toaster.error("Upload failed", " ".join(exc.messages))
            raise UploadError(" ".join(exc.messages), code="invalid_file") from exc

        try:
            url = store_avatar(self.client.storage, self.user.id, file)
        except UploadError as exc:
            logger.warning("avatar upload failed for user %s: %s", self.user.id, exc.message)
            self.toaster.error("Upload failed", exc.message)
            raise

        self.update_profile({"avatar_url": url})
        self.toaster.toast("Avatar updated", "Your profile picture has been updated")
        return url
