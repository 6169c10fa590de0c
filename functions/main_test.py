# Copyright 2025 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# ==============================================================================
# Standard library imports
import os
import unittest
from unittest.mock import patch, MagicMock

# Third-party library imports
from functions_framework import create_app
from firebase_functions import https_fn

# Local application imports
# This patch must be applied before importing 'main'
with patch("firebase_admin.initialize_app"):
    import main
from backend.errors import SuggestionUnavailableError
from backend.proposals import ProposalService
from backend.store import InMemoryDocumentStore
from backend.suggestions import OptimizeProposalOutput
from shared.api import SetProposalStatusRequest
from shared.firebase_constants import engagements_path, user_path
from shared.types import ProposalStatus

MAIN_SOURCE = os.path.join(os.path.dirname(os.path.abspath(__file__)), "main.py")

VALID_OPTIMIZE_PAYLOAD = {
    "proposalText": "A monthly repair cafe where neighbors fix bikes, lamps and "
    "clothes together, with volunteers teaching basic skills.",
    "userEngagementData": "Members attend hands-on workshops most often.",
    "communityNeeds": "Residents want cheaper ways to keep things working.",
    "apiKey": "",
}


class TestMainOptimizeProposal(unittest.TestCase):

    @patch("firebase_admin.initialize_app")
    def setUp(self, initialize_app_mock):
        # Create a test client for the function using functions-framework.
        self.client = create_app("optimize_proposal", MAIN_SOURCE).test_client()

    @patch("main.suggestions.optimize_proposal")
    def test_optimize_proposal(self, mock_optimize):
        mock_optimize.return_value = OptimizeProposalOutput(
            suggestions="Partner with the library.",
            revised_proposal="A monthly repair cafe hosted at the library.",
        )

        response = self.client.post("/", json={"data": VALID_OPTIMIZE_PAYLOAD})

        self.assertEqual(
            response.status_code,
            200,
            f"Request failed with status {response.status_code}. Body: {response.get_data(as_text=True)}",
        )
        mock_optimize.assert_called_once()
        payload, api_key = mock_optimize.call_args.args
        self.assertTrue(payload.proposal_text.startswith("A monthly repair cafe"))
        self.assertEqual(api_key, "")

        # Note: @on_call wraps successful responses in a `result` key.
        self.assertEqual(
            response.get_json()["result"],
            {
                "suggestions": "Partner with the library.",
                "revisedProposal": "A monthly repair cafe hosted at the library.",
            },
        )

    @patch("main.suggestions.optimize_proposal")
    def test_short_proposal_is_rejected_before_model_call(self, mock_optimize):
        payload = dict(VALID_OPTIMIZE_PAYLOAD, proposalText="Too short.")

        response = self.client.post("/", json={"data": payload})

        self.assertEqual(response.status_code, 400)
        error = response.get_json()["error"]
        self.assertEqual(error["status"], "INVALID_ARGUMENT")
        self.assertIn("proposal_text", error["message"])
        mock_optimize.assert_not_called()

    @patch("main.suggestions.optimize_proposal")
    def test_quota_exceeded(self, mock_optimize):
        mock_optimize.side_effect = SuggestionUnavailableError(
            "quota", quota_exceeded=True
        )

        response = self.client.post("/", json={"data": VALID_OPTIMIZE_PAYLOAD})

        self.assertEqual(response.status_code, 429)
        self.assertEqual(response.get_json()["error"]["status"], "RESOURCE_EXHAUSTED")

    @patch("main.suggestions.optimize_proposal")
    def test_model_failure(self, mock_optimize):
        mock_optimize.side_effect = SuggestionUnavailableError("network down")

        response = self.client.post("/", json={"data": VALID_OPTIMIZE_PAYLOAD})

        self.assertEqual(response.status_code, 503)
        self.assertEqual(response.get_json()["error"]["status"], "UNAVAILABLE")


class TestMainSetProposalStatus(unittest.TestCase):

    @patch("firebase_admin.initialize_app")
    def setUp(self, initialize_app_mock):
        self.client = create_app("set_proposal_status", MAIN_SOURCE).test_client()
        self.store = InMemoryDocumentStore()
        ProposalService(self.store).ensure_seeded()

    def test_requires_sign_in(self):
        response = self.client.post(
            "/", json={"data": {"proposal_id": "p3", "status": "Approved"}}
        )

        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.get_json()["error"]["status"], "UNAUTHENTICATED")

    def test_change_proposal_status(self):
        result = main.change_proposal_status(
            SetProposalStatusRequest(proposal_id="p3", status=ProposalStatus.APPROVED),
            store=self.store,
        )

        self.assertEqual(
            result, {"proposalId": "p3", "status": "Approved", "changed": True}
        )
        self.assertEqual(self.store.get_document("proposals/p3")["status"], "Approved")

    def test_change_to_current_status_is_a_no_op(self):
        result = main.change_proposal_status(
            SetProposalStatusRequest(proposal_id="p1", status=ProposalStatus.APPROVED),
            store=self.store,
        )

        self.assertFalse(result["changed"])

    def test_illegal_transition(self):
        with self.assertRaises(https_fn.HttpsError) as context:
            main.change_proposal_status(
                SetProposalStatusRequest(
                    proposal_id="p4", status=ProposalStatus.UNDER_REVIEW
                ),
                store=self.store,
            )
        self.assertEqual(
            context.exception.code, https_fn.FunctionsErrorCode.FAILED_PRECONDITION
        )

    def test_unknown_proposal(self):
        with self.assertRaises(https_fn.HttpsError) as context:
            main.change_proposal_status(
                SetProposalStatusRequest(
                    proposal_id="missing", status=ProposalStatus.APPROVED
                ),
                store=self.store,
            )
        self.assertEqual(context.exception.code, https_fn.FunctionsErrorCode.NOT_FOUND)

    def test_status_request_from_callable_data(self):
        request = main._status_request_from({"proposal_id": "p3", "status": "Rejected"})
        self.assertEqual(request.proposal_id, "p3")
        self.assertEqual(request.status, ProposalStatus.REJECTED)

    def test_status_request_rejects_bad_data(self):
        for data in (
            None,
            {},
            {"status": "Approved"},
            {"proposal_id": 3, "status": "Approved"},
            {"proposal_id": "p" * 300, "status": "Approved"},
            {"proposal_id": "p3", "status": "Archived"},
        ):
            with self.subTest(data=data):
                with self.assertRaises(https_fn.HttpsError) as context:
                    main._status_request_from(data)
                self.assertEqual(
                    context.exception.code,
                    https_fn.FunctionsErrorCode.INVALID_ARGUMENT,
                )


class TestMainOnEngagementWritten(unittest.TestCase):

    def setUp(self):
        self.store = InMemoryDocumentStore()
        self.store.set_document(
            user_path("u1"),
            {"name": "Ada", "email": "", "joinedDate": "2024-01-01", "honorsPoints": 0},
        )
        for engagement_id, points in (("e1", 40), ("e2", 25)):
            self.store.set_document(
                f"{engagements_path('u1')}/{engagement_id}",
                {
                    "title": "Cleanup",
                    "type": "Event Attendance",
                    "date": "2024-06-01",
                    "details": "",
                    "points": points,
                },
            )

    def _event(self, uid):
        event = MagicMock()
        event.params = {"uid": uid, "engagementId": "e1"}
        return event

    def test_recalculates_points(self):
        with patch.object(main, "_get_store", return_value=self.store):
            main.on_engagement_written.__wrapped__(self._event("u1"))

        self.assertEqual(self.store.get_document(user_path("u1"))["honorsPoints"], 65)

    def test_missing_profile_is_skipped(self):
        with patch.object(main, "_get_store", return_value=self.store):
            main.on_engagement_written.__wrapped__(self._event("nobody"))

        self.assertIsNone(self.store.get_document(user_path("nobody")))


if __name__ == "__main__":
    unittest.main()
