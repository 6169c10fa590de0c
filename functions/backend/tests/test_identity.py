import concurrent.futures
import unittest
from unittest.mock import patch

from firebase_admin import auth

from backend.dependencies import get_identity_provider
from backend.identity import (
    AuthErrorKind,
    FirebaseIdentityProvider,
    Identity,
    IdentityError,
    IdentityGate,
    InMemoryIdentityProvider,
    SessionView,
    UnconfiguredIdentityProvider,
    classify_auth_error,
)

ADA = Identity(uid="ada", display_name="Ada Lovelace", email="ada@example.com")


class DeferredProvider:
    """Reports state only when told to, like a slow identity SDK."""

    def __init__(self):
        self.listeners = []

    def subscribe(self, on_change):
        self.listeners.append(on_change)
        return lambda: self.listeners.remove(on_change)

    def emit(self, identity):
        for listener in list(self.listeners):
            listener(identity)

    def sign_in_interactive(self, credential=None):
        pass

    def sign_out(self):
        raise IdentityError("auth/network-request-failed", "offline")


class ClassifyAuthErrorTests(unittest.TestCase):
    def test_known_codes(self):
        self.assertEqual(
            classify_auth_error("auth/popup-closed-by-user"), AuthErrorKind.CANCELLED
        )
        self.assertEqual(classify_auth_error("auth/popup-blocked"), AuthErrorKind.BLOCKED)
        self.assertEqual(
            classify_auth_error("auth/unauthorized-domain"), AuthErrorKind.MISCONFIGURED
        )

    def test_unknown_codes(self):
        self.assertEqual(classify_auth_error("auth/whatever"), AuthErrorKind.UNKNOWN)
        self.assertEqual(classify_auth_error(None), AuthErrorKind.UNKNOWN)


class IdentityGateTests(unittest.TestCase):
    def test_loading_until_first_notification(self):
        provider = DeferredProvider()
        gate = IdentityGate(provider).start()

        self.assertTrue(gate.is_loading)
        self.assertEqual(gate.view(), SessionView.LOADING)
        self.assertIsNone(gate.current_user)

        provider.emit(ADA)
        self.assertFalse(gate.is_loading)
        self.assertEqual(gate.view(), SessionView.SHELL)
        self.assertEqual(gate.current_user, ADA)

    def test_wait_times_out_without_notification(self):
        gate = IdentityGate(DeferredProvider()).start()
        with self.assertRaises(concurrent.futures.TimeoutError):
            gate.wait_until_resolved(timeout=0.01)

    def test_resolves_to_none_when_nobody_signed_in(self):
        with IdentityGate(InMemoryIdentityProvider({})) as gate:
            self.assertIsNone(gate.wait_until_resolved(timeout=1))
            self.assertEqual(gate.view(), SessionView.LOGIN)

    def test_restored_session(self):
        provider = InMemoryIdentityProvider({"tok": ADA}, id_token="tok")
        with IdentityGate(provider) as gate:
            self.assertEqual(gate.wait_until_resolved(timeout=1), ADA)

    def test_sign_in_goes_through_the_subscription(self):
        provider = InMemoryIdentityProvider({"tok": ADA})
        with IdentityGate(provider) as gate:
            gate.sign_in("tok")
            self.assertEqual(gate.current_user, ADA)
            self.assertEqual(len(gate.notifications), 0)

    def test_failed_sign_in_notifies_and_keeps_state(self):
        provider = InMemoryIdentityProvider({"tok": ADA})
        with IdentityGate(provider) as gate:
            gate.sign_in("bad")
            self.assertIsNone(gate.current_user)
            notifications = gate.notifications.drain()
            self.assertEqual(notifications[0].title, "Sign-in Failed")

    def test_sign_in_when_unconfigured(self):
        with IdentityGate(UnconfiguredIdentityProvider(["FIREBASE_PROJECT_ID"])) as gate:
            gate.sign_in("tok")
            self.assertEqual(gate.notifications.drain()[0].title, "Sign-in Unavailable")

    def test_reported_popup_failure(self):
        with IdentityGate(InMemoryIdentityProvider({})) as gate:
            kind = gate.report_sign_in_failure("auth/popup-blocked")
            self.assertEqual(kind, AuthErrorKind.BLOCKED)
            self.assertEqual(gate.notifications.drain()[0].title, "Popup Blocked")

    def test_sign_out_failure_still_clears_user(self):
        provider = DeferredProvider()
        gate = IdentityGate(provider).start()
        provider.emit(ADA)

        gate.sign_out()

        self.assertIsNone(gate.current_user)
        self.assertEqual(gate.notifications.drain()[0].title, "Sign-out Failed")

    def test_closed_gate_ignores_later_changes(self):
        provider = InMemoryIdentityProvider({"tok": ADA})
        gate = IdentityGate(provider).start()
        gate.close()

        provider.sign_in_interactive("tok")

        self.assertIsNone(gate.current_user)


class FirebaseIdentityProviderTests(unittest.TestCase):
    @patch("backend.identity.auth.verify_id_token")
    def test_restores_session_from_token(self, mock_verify):
        mock_verify.return_value = {
            "uid": "ada",
            "name": "Ada Lovelace",
            "email": "ada@example.com",
            "picture": "https://example.com/ada.png",
        }
        with IdentityGate(FirebaseIdentityProvider(id_token="tok")) as gate:
            user = gate.wait_until_resolved(timeout=1)
        self.assertEqual(user.uid, "ada")
        self.assertEqual(user.photo_url, "https://example.com/ada.png")

    @patch("backend.identity.auth.verify_id_token")
    def test_invalid_token_means_signed_out(self, mock_verify):
        mock_verify.side_effect = auth.InvalidIdTokenError("bad token")
        with IdentityGate(FirebaseIdentityProvider(id_token="tok")) as gate:
            self.assertIsNone(gate.wait_until_resolved(timeout=1))
            self.assertEqual(gate.view(), SessionView.LOGIN)

    @patch("backend.identity.auth.verify_id_token")
    def test_sign_in_without_token(self, mock_verify):
        with IdentityGate(FirebaseIdentityProvider()) as gate:
            gate.sign_in(None)
            self.assertEqual(gate.notifications.drain()[0].title, "Sign-in Cancelled")
        mock_verify.assert_not_called()

    @patch("backend.identity.auth.revoke_refresh_tokens")
    @patch("backend.identity.auth.verify_id_token")
    def test_sign_out_revokes_tokens(self, mock_verify, mock_revoke):
        mock_verify.return_value = {"uid": "ada"}
        with IdentityGate(FirebaseIdentityProvider(id_token="tok")) as gate:
            gate.wait_until_resolved(timeout=1)
            gate.sign_out()
            self.assertIsNone(gate.current_user)
        mock_revoke.assert_called_once_with("ada", app=None)

    @patch("backend.identity.auth.verify_id_token")
    def test_revoked_token_means_signed_out(self, mock_verify):
        mock_verify.side_effect = auth.RevokedIdTokenError("revoked")
        provider = FirebaseIdentityProvider(id_token="tok", check_revoked=True)
        with IdentityGate(provider) as gate:
            self.assertIsNone(gate.wait_until_resolved(timeout=1))
            self.assertEqual(gate.view(), SessionView.LOGIN)
        mock_verify.assert_called_once_with("tok", app=None, check_revoked=True)

    @patch("backend.dependencies._get_firebase_app")
    @patch("backend.dependencies.get_settings")
    def test_request_provider_checks_revocation(self, mock_settings, mock_app):
        mock_settings.return_value.honors_use_in_memory_backends = False
        mock_settings.return_value.firebase_configured = True

        provider = get_identity_provider("Bearer tok")

        self.assertIsInstance(provider, FirebaseIdentityProvider)
        self.assertTrue(provider._check_revoked)
        self.assertIs(provider._app, mock_app.return_value)


class InMemoryIdentityProviderTests(unittest.TestCase):
    def test_sign_out_revokes_the_session_token(self):
        directory = {"token-ada": ADA}
        provider = InMemoryIdentityProvider(directory, id_token="token-ada")
        with IdentityGate(provider) as gate:
            self.assertEqual(gate.wait_until_resolved(timeout=1), ADA)
            gate.sign_out()
        self.assertNotIn("token-ada", directory)

        provider = InMemoryIdentityProvider(directory, id_token="token-ada")
        with IdentityGate(provider) as gate:
            self.assertIsNone(gate.wait_until_resolved(timeout=1))


if __name__ == "__main__":
    unittest.main()
