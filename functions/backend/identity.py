"""
Identity gate: one authoritative "current user or none" signal per session.

The identity provider can report a sign-in from several asynchronous sources.
The gate consumes exactly one of them, the provider's change subscription.
Identity resolution is a single-assignment future resolved by the first change
notification; sign_in() only starts the provider flow and never writes state
itself, so there is a single writer for the current user.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future
from dataclasses import dataclass
from enum import StrEnum
from typing import Callable, Dict, Optional, Protocol, Sequence

from firebase_admin import auth

from backend.notifications import Notification, NotificationLog, error_notification

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    uid: str
    display_name: Optional[str] = None
    email: Optional[str] = None
    photo_url: Optional[str] = None

    @classmethod
    def from_claims(cls, claims: dict) -> "Identity":
        return cls(
            uid=claims["uid"] if "uid" in claims else claims["sub"],
            display_name=claims.get("name"),
            email=claims.get("email"),
            photo_url=claims.get("picture"),
        )


IdentityListener = Callable[[Optional[Identity]], None]
Unsubscribe = Callable[[], None]


class AuthErrorKind(StrEnum):
    CANCELLED = "cancelled"
    BLOCKED = "blocked"
    MISCONFIGURED = "misconfigured"
    UNKNOWN = "unknown"


_ERROR_KINDS_BY_CODE = {
    "auth/popup-closed-by-user": AuthErrorKind.CANCELLED,
    "auth/cancelled-popup-request": AuthErrorKind.CANCELLED,
    "auth/user-cancelled": AuthErrorKind.CANCELLED,
    "auth/redirect-cancelled-by-user": AuthErrorKind.CANCELLED,
    "auth/missing-credential": AuthErrorKind.CANCELLED,
    "auth/popup-blocked": AuthErrorKind.BLOCKED,
    "auth/web-storage-unsupported": AuthErrorKind.BLOCKED,
    "auth/unauthorized-domain": AuthErrorKind.MISCONFIGURED,
    "auth/operation-not-allowed": AuthErrorKind.MISCONFIGURED,
    "auth/invalid-api-key": AuthErrorKind.MISCONFIGURED,
    "auth/api-key-not-valid": AuthErrorKind.MISCONFIGURED,
    "auth/configuration-not-found": AuthErrorKind.MISCONFIGURED,
    "auth/not-configured": AuthErrorKind.MISCONFIGURED,
}

_MESSAGES = {
    AuthErrorKind.CANCELLED: (
        "Sign-in Cancelled",
        "The sign-in popup was closed before finishing. Please try again.",
    ),
    AuthErrorKind.BLOCKED: (
        "Popup Blocked",
        "The sign-in popup was blocked by your browser. Please allow popups "
        "for this site and try again.",
    ),
    AuthErrorKind.MISCONFIGURED: (
        "Sign-in Unavailable",
        "Sign-in is not configured for this site. Check the Firebase "
        "authentication settings and authorized domains.",
    ),
    AuthErrorKind.UNKNOWN: (
        "Sign-in Failed",
        "An unknown error occurred during sign-in.",
    ),
}

SIGN_OUT_FAILED = error_notification("Sign-out Failed", "Could not sign out.")


def classify_auth_error(code: Optional[str]) -> AuthErrorKind:
    return _ERROR_KINDS_BY_CODE.get(code or "", AuthErrorKind.UNKNOWN)


def auth_error_notification(kind: AuthErrorKind) -> Notification:
    title, description = _MESSAGES[kind]
    return error_notification(title, description)


class IdentityError(Exception):
    """A sign-in or sign-out attempt failed inside the identity provider."""

    def __init__(self, code: str, message: str = ""):
        self.code = code
        self.kind = classify_auth_error(code)
        super().__init__(message or code)


class IdentityProvider(Protocol):
    """Capability consumed from the third-party identity SDK."""

    def subscribe(self, on_change: IdentityListener) -> Unsubscribe:
        """Registers a listener and reports the ambient state to it at once."""
        ...

    def sign_in_interactive(self, credential: Optional[str] = None) -> None:
        ...

    def sign_out(self) -> None:
        ...


class _ListenerRegistry:
    """Shared subscribe/emit plumbing for the providers below."""

    def __init__(self):
        self._listeners: list[IdentityListener] = []
        self._current: Optional[Identity] = None
        self._lock = threading.Lock()

    def _restore(self) -> Optional[Identity]:
        return None

    def subscribe(self, on_change: IdentityListener) -> Unsubscribe:
        with self._lock:
            self._listeners.append(on_change)
        on_change(self._restore())

        def unsubscribe() -> None:
            with self._lock:
                if on_change in self._listeners:
                    self._listeners.remove(on_change)

        return unsubscribe

    def _emit(self, identity: Optional[Identity]) -> None:
        with self._lock:
            self._current = identity
            listeners = list(self._listeners)
        for listener in listeners:
            listener(identity)


class FirebaseIdentityProvider(_ListenerRegistry):
    """
    Verifies Firebase ID tokens produced by the web client's popup sign-in.

    `id_token` is the persisted session (the request's bearer token); it is
    verified when a listener subscribes, mirroring how the client SDK reports
    a restored session on its first state change.

    sign_out() revokes the user's refresh tokens, so a provider built with
    check_revoked=True treats the signed-out bearer token as no session.
    """

    def __init__(self, id_token: Optional[str] = None, app=None, check_revoked: bool = False):
        super().__init__()
        self._id_token = id_token
        self._app = app
        self._check_revoked = check_revoked

    def _verify(self, token: str) -> Identity:
        try:
            claims = auth.verify_id_token(
                token, app=self._app, check_revoked=self._check_revoked
            )
        except (auth.ExpiredIdTokenError, auth.RevokedIdTokenError) as e:
            raise IdentityError("auth/user-token-expired", str(e)) from e
        except auth.UserDisabledError as e:
            raise IdentityError("auth/user-disabled", str(e)) from e
        except auth.InvalidIdTokenError as e:
            raise IdentityError("auth/invalid-credential", str(e)) from e
        except auth.CertificateFetchError as e:
            raise IdentityError("auth/network-request-failed", str(e)) from e
        except ValueError as e:
            # Raised when the Firebase app is missing or has no project id.
            raise IdentityError("auth/configuration-not-found", str(e)) from e
        return Identity.from_claims(claims)

    def _restore(self) -> Optional[Identity]:
        if self._current or not self._id_token:
            return self._current
        try:
            self._current = self._verify(self._id_token)
        except IdentityError as e:
            logger.warning("Could not restore session: %s", e)
            self._current = None
        return self._current

    def sign_in_interactive(self, credential: Optional[str] = None) -> None:
        if not credential:
            raise IdentityError("auth/missing-credential", "No ID token provided.")
        self._emit(self._verify(credential))

    def sign_out(self) -> None:
        identity = self._current
        if identity:
            try:
                auth.revoke_refresh_tokens(identity.uid, app=self._app)
            except (auth.UserNotFoundError, ValueError) as e:
                raise IdentityError("auth/sign-out-failed", str(e)) from e
        self._emit(None)


class InMemoryIdentityProvider(_ListenerRegistry):
    """Token directory backed provider for development and tests."""

    def __init__(self, directory: Dict[str, Identity], id_token: Optional[str] = None):
        super().__init__()
        self._directory = directory
        self._id_token = id_token

    def _restore(self) -> Optional[Identity]:
        if self._current is None and self._id_token:
            self._current = self._directory.get(self._id_token)
        return self._current

    def sign_in_interactive(self, credential: Optional[str] = None) -> None:
        if not credential:
            raise IdentityError("auth/missing-credential", "No ID token provided.")
        identity = self._directory.get(credential)
        if identity is None:
            raise IdentityError("auth/invalid-credential", "Unknown token.")
        self._id_token = credential
        self._emit(identity)

    def sign_out(self) -> None:
        # Revoke the session token so later requests carrying it are signed out.
        if self._id_token:
            self._directory.pop(self._id_token, None)
            self._id_token = None
        self._emit(None)


class UnconfiguredIdentityProvider(_ListenerRegistry):
    """Used in offline mode: nobody is signed in and sign-in cannot start."""

    def __init__(self, missing_keys: Sequence[str] = ()):
        super().__init__()
        self.missing_keys = list(missing_keys)

    def sign_in_interactive(self, credential: Optional[str] = None) -> None:
        raise IdentityError(
            "auth/not-configured",
            f"Firebase not configured. Missing keys: {', '.join(self.missing_keys)}",
        )

    def sign_out(self) -> None:
        self._emit(None)


class SessionView(StrEnum):
    LOADING = "loading"
    LOGIN = "login"
    SHELL = "shell"


class IdentityGate:
    """
    Session-scoped identity state over an IdentityProvider.

    Created when a session starts (start()) and torn down on close(). While
    loading, view() is LOADING so callers render neither the login screen nor
    the authenticated shell.
    """

    def __init__(
        self, provider: IdentityProvider, notifications: Optional[NotificationLog] = None
    ):
        self._provider = provider
        self.notifications = notifications if notifications is not None else NotificationLog()
        self._lock = threading.Lock()
        self._current_user: Optional[Identity] = None
        self._resolved: Future = Future()
        self._unsubscribe: Optional[Unsubscribe] = None

    def start(self) -> "IdentityGate":
        if self._unsubscribe is None:
            self._unsubscribe = self._provider.subscribe(self._on_change)
        return self

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def __enter__(self) -> "IdentityGate":
        return self.start()

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _on_change(self, identity: Optional[Identity]) -> None:
        with self._lock:
            self._current_user = identity
            if not self._resolved.done():
                self._resolved.set_result(identity)

    @property
    def is_loading(self) -> bool:
        return not self._resolved.done()

    @property
    def current_user(self) -> Optional[Identity]:
        with self._lock:
            return None if self.is_loading else self._current_user

    def view(self) -> SessionView:
        if self.is_loading:
            return SessionView.LOADING
        return SessionView.SHELL if self.current_user else SessionView.LOGIN

    def wait_until_resolved(self, timeout: Optional[float] = None) -> Optional[Identity]:
        """
        Blocks until the first change notification, then returns the current
        user. Raises concurrent.futures.TimeoutError if it never arrives.
        """
        self._resolved.result(timeout=timeout)
        return self.current_user

    def sign_in(self, credential: Optional[str] = None) -> None:
        try:
            self._provider.sign_in_interactive(credential)
        except IdentityError as e:
            logger.warning("Sign-in failed (%s): %s", e.code, e)
            self.notifications.push(auth_error_notification(e.kind))
        except Exception:
            logger.exception("Unexpected error during sign-in")
            self.notifications.push(auth_error_notification(AuthErrorKind.UNKNOWN))

    def report_sign_in_failure(self, code: str) -> AuthErrorKind:
        """Classifies an error the client's popup flow reported."""
        kind = classify_auth_error(code)
        logger.info("Client reported sign-in failure %s (%s)", code, kind)
        self.notifications.push(auth_error_notification(kind))
        return kind

    def sign_out(self) -> None:
        with self._lock:
            self._current_user = None
        try:
            self._provider.sign_out()
        except Exception as e:
            logger.warning("Error signing out: %s", e)
            self.notifications.push(SIGN_OUT_FAILED)
