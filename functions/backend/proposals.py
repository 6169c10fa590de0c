"""
Proposal store accessor.

Status changes follow an explicit transition table; anything else is
rejected before it reaches the store.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import replace
from datetime import datetime, timezone
from typing import Mapping, Optional

from backend.errors import (
    ConfigurationError,
    DocumentNotFoundError,
    InvalidStatusTransitionError,
    ValidationError,
)
from backend.seed_data import DEMO_PROPOSALS
from backend.store import DocumentStore, Write
from shared.constants import (
    DATE_FORMAT,
    MAX_PROPOSAL_FIELD_LENGTH,
    MAX_PROPOSAL_TITLE_LENGTH,
)
from shared.firebase_constants import PROPOSALS_COLLECTION, proposal_path
from shared.types import (
    Proposal,
    ProposalEventType,
    ProposalStatus,
    from_document,
    to_document,
)

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: Mapping[ProposalStatus, frozenset[ProposalStatus]] = {
    ProposalStatus.UNDER_REVIEW: frozenset(
        {ProposalStatus.APPROVED, ProposalStatus.REJECTED}
    ),
    ProposalStatus.APPROVED: frozenset({ProposalStatus.IN_PROGRESS}),
    ProposalStatus.IN_PROGRESS: frozenset({ProposalStatus.COMPLETED}),
    ProposalStatus.COMPLETED: frozenset(),
    ProposalStatus.REJECTED: frozenset(),
}

REQUIRED_FIELDS = ("title", "description", "goals")
OPTIONAL_FIELDS = ("resources", "target_audience")


def can_transition(current: ProposalStatus, requested: ProposalStatus) -> bool:
    return current == requested or requested in ALLOWED_TRANSITIONS[current]


def allowed_next_statuses(current: ProposalStatus) -> list[ProposalStatus]:
    return sorted(ALLOWED_TRANSITIONS[current], key=list(ProposalStatus).index)


class ProposalService:
    def __init__(self, store: DocumentStore):
        self.store = store
        self._seed_lock = threading.Lock()

    def ensure_seeded(self) -> bool:
        """
        Writes the demo proposals if the collection is empty. Returns True if
        it seeded anything.
        """
        with self._seed_lock:
            if self.store.query_collection(PROPOSALS_COLLECTION, limit=1):
                return False

            logger.info("Seeding proposals data...")
            self.store.commit(
                [
                    Write(proposal_path(proposal.id), to_document(proposal))
                    for proposal in DEMO_PROPOSALS
                ]
            )
            return True

    def list_proposals(self) -> list[Proposal]:
        try:
            self.ensure_seeded()
        except ConfigurationError:
            logger.warning("Document store is offline; serving demo proposals.")
            return sorted(
                (replace(p) for p in DEMO_PROPOSALS),
                key=lambda p: p.submitted_date,
                reverse=True,
            )

        docs = self.store.query_collection(
            PROPOSALS_COLLECTION, order_by="submittedDate", descending=True
        )
        return [from_document(Proposal, doc_id, data) for doc_id, data in docs]

    def get_proposal(self, proposal_id: str) -> Proposal:
        """
        Reads one proposal. A miss seeds an empty collection first, and an
        offline store answers from the demo set like list_proposals does.
        """
        path = proposal_path(proposal_id)
        data = self.store.get_document(path)
        if data is None:
            try:
                seeded = self.ensure_seeded()
            except ConfigurationError:
                for demo in DEMO_PROPOSALS:
                    if demo.id == proposal_id:
                        return replace(demo)
                raise DocumentNotFoundError(path)
            if seeded:
                data = self.store.get_document(path)
        if data is None:
            raise DocumentNotFoundError(path)
        return from_document(Proposal, proposal_id, data)

    def submit_proposal(self, fields: Mapping[str, str], submitter_name: str) -> Proposal:
        """
        Creates a proposal in Under Review status, stamped with the submitter
        and today's UTC date.
        """
        for name in REQUIRED_FIELDS:
            if not (fields.get(name) or "").strip():
                raise ValidationError(f"{name} is required.")
        if len(fields["title"]) > MAX_PROPOSAL_TITLE_LENGTH:
            raise ValidationError("title exceeds max length.")
        for name in REQUIRED_FIELDS + OPTIONAL_FIELDS:
            if len(fields.get(name) or "") > MAX_PROPOSAL_FIELD_LENGTH:
                raise ValidationError(f"{name} exceeds max length.")

        try:
            event_type = ProposalEventType(fields.get("event_type"))
        except ValueError as e:
            raise ValidationError(
                f"event_type must be one of: {', '.join(t.value for t in ProposalEventType)}."
            ) from e

        proposal = Proposal(
            id="",
            title=fields["title"].strip(),
            event_type=event_type,
            description=fields["description"].strip(),
            goals=fields["goals"].strip(),
            resources=(fields.get("resources") or "").strip(),
            target_audience=(fields.get("target_audience") or "").strip(),
            status=ProposalStatus.UNDER_REVIEW,
            submitted_by=submitter_name,
            submitted_date=datetime.now(timezone.utc).strftime(DATE_FORMAT),
        )
        proposal.id = self.store.add_document(PROPOSALS_COLLECTION, to_document(proposal))
        logger.info("Proposal %s submitted by %s", proposal.id, submitter_name)
        return proposal

    def set_status(
        self, proposal_id: str, new_status: ProposalStatus | str
    ) -> tuple[Proposal, bool]:
        """
        Moves a proposal to `new_status`. Returns the proposal and whether a
        write happened; repeating the current status is a no-op.
        """
        new_status = parse_status(new_status)
        proposal = self.get_proposal(proposal_id)
        if proposal.status == new_status:
            return proposal, False
        if not can_transition(proposal.status, new_status):
            raise InvalidStatusTransitionError(
                proposal.status.value,
                new_status.value,
                [s.value for s in allowed_next_statuses(proposal.status)],
            )

        self.store.update_document(proposal_path(proposal_id), {"status": new_status.value})
        logger.info(
            "Proposal %s status %s -> %s", proposal_id, proposal.status, new_status
        )
        proposal.status = new_status
        return proposal, True


def parse_status(value: Optional[str]) -> ProposalStatus:
    try:
        return ProposalStatus(value)
    except ValueError as e:
        raise ValidationError(f"Unknown proposal status: {value}") from e
