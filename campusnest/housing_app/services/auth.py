"""
Stateful auth client: holds the current session and notifies listeners
whenever it changes.

    sub = client.auth.on_auth_state_change(lambda event, session: ...)
    client.auth.sign_in_with_password(email, password)   # -> SIGNED_IN
    sub.unsubscribe()
"""

import logging
import threading

from django.contrib.auth import get_user_model

from . import identity
from .errors import AuthError
from .records import AuthSession, Identity

logger = logging.getLogger(__name__)

INITIAL_SESSION = "INITIAL_SESSION"
SIGNED_IN = "SIGNED_IN"
SIGNED_OUT = "SIGNED_OUT"
TOKEN_REFRESHED = "TOKEN_REFRESHED"
USER_UPDATED = "USER_UPDATED"


class Subscription:
    def __init__(self, client: "AuthClient", listener):
        self._client = client
        self.listener = listener
        self.active = True

    def unsubscribe(self):
        if self.active:
            self._client._remove_listener(self)
            self.active = False


class AuthClient:
    def __init__(self):
        self._session: AuthSession | None = None
        self._subscriptions = []
        self._lock = threading.RLock()

    # ---- session ----
    def get_session(self) -> AuthSession | None:
        return self._session

    def get_user(self) -> Identity | None:
        return self._session.user if self._session else None

    def set_session(self, session: AuthSession | None):
        """Adopt a session obtained elsewhere (e.g. from stored tokens)."""
        self._session = session
        self._emit(SIGNED_IN if session else SIGNED_OUT)

    # ---- feed ----
    def on_auth_state_change(self, listener) -> Subscription:
        """
        Register `listener(event, session)`. It is called once right away
        with INITIAL_SESSION, then on every change.
        """
        sub = Subscription(self, listener)
        with self._lock:
            self._subscriptions.append(sub)
        self._notify(sub, INITIAL_SESSION, self._session)
        return sub

    def _remove_listener(self, sub: Subscription):
        with self._lock:
            if sub in self._subscriptions:
                self._subscriptions.remove(sub)

    def _notify(self, sub: Subscription, event: str, session):
        try:
            sub.listener(event, session)
        except Exception:
            logger.exception("auth listener failed on %s", event)

    def _emit(self, event: str):
        with self._lock:
            subs = list(self._subscriptions)
        for sub in subs:
            self._notify(sub, event, self._session)

    # ---- operations ----
    def sign_up(self, email: str, password: str, data: dict | None = None, redirect_to: str | None = None) -> Identity:
        user = identity.register_account(email, password, data=data, redirect_to=redirect_to)
        return identity.identity_for(user)

    def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        user = identity.authenticate_password(email, password)
        self._session = identity.issue_session(user)
        self._emit(SIGNED_IN)
        return self._session

    def sign_in_with_oauth(self, provider: str, redirect_to: str | None = None) -> dict:
        return {"provider": provider, "url": identity.oauth_authorize_url(provider, redirect_to)}

    def sign_out(self) -> None:
        """
        Drop the local session first, then revoke the refresh token.
        A revocation failure is raised after local state is already gone.
        """
        session = self._session
        self._session = None
        self._emit(SIGNED_OUT)
        if session is not None:
            identity.revoke(session.refresh_token)

    def refresh_session(self) -> AuthSession:
        if self._session is None:
            raise AuthError("Auth session missing!", code="session_missing")
        self._session = identity.refresh_session(self._session.refresh_token)
        self._emit(TOKEN_REFRESHED)
        return self._session

    def reset_password_for_email(self, email: str, redirect_to: str | None = None) -> None:
        identity.send_password_reset(email, redirect_to=redirect_to)

    def update_user(self, password: str | None = None, email: str | None = None) -> Identity:
        if self._session is None:
            raise AuthError("Auth session missing!", code="session_missing")
        user = get_user_model().objects.filter(pk=self._session.user.id).first()
        if user is None:
            raise AuthError("User not found", code="user_not_found")
        if password:
            identity.change_password(user, password)
        if email and email.lower() != (user.email or "").lower():
            if identity.find_user_by_email(email):
                raise AuthError("A user with this email address has already been registered", code="email_exists")
            user.email = email.lower()
            user.save(update_fields=["email"])
        self._session = self._session.model_copy(update={"user": identity.identity_for(user)})
        self._emit(USER_UPDATED)
        return self._session.user
