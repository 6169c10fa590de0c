"""
Profile bootstrap and engagement bookkeeping.

A profile is created exactly once per identity, together with its starter
engagement records, in a single conditional write. Bootstraps for the same
uid are additionally serialized in-process so one session never races
another for the same new identity.
"""

from __future__ import annotations

import contextlib
import logging
import threading
import uuid
from datetime import datetime, timezone
from typing import Dict, Iterator, Optional

from backend.errors import DocumentNotFoundError, ValidationError
from backend.identity import Identity, IdentityGate
from backend.seed_data import STARTER_ENGAGEMENTS, starter_points
from backend.store import DocumentStore, Increment, Write
from shared.constants import DATE_FORMAT, DEFAULT_PROFILE_NAME, MAX_PROFILE_NAME_LENGTH
from shared.firebase_constants import engagements_path, user_path
from shared.types import Engagement, UserProfile, from_document, to_document

logger = logging.getLogger(__name__)


def today() -> str:
    return datetime.now(timezone.utc).strftime(DATE_FORMAT)


class ProfileService:
    def __init__(self, store: DocumentStore):
        self.store = store
        # uid -> [lock, number of callers holding or waiting on it]
        self._locks: Dict[str, list] = {}
        self._locks_guard = threading.Lock()

    @contextlib.contextmanager
    def _lock_for(self, uid: str) -> Iterator[None]:
        """Serializes callers for one uid; the entry is dropped when unused."""
        with self._locks_guard:
            entry = self._locks.setdefault(uid, [threading.Lock(), 0])
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._locks_guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[uid]

    def _new_profile(self, identity: Identity) -> UserProfile:
        return UserProfile(
            id=identity.uid,
            name=identity.display_name or DEFAULT_PROFILE_NAME,
            email=identity.email or "",
            photo_url=identity.photo_url or "",
            joined_date=today(),
            honors_points=starter_points(),
        )

    def load_or_create_profile(self, identity: Identity) -> UserProfile:
        """
        Returns the profile for `identity`, creating it with the starter
        engagements when absent. Calling it again returns the same profile and
        never re-seeds engagements.
        """
        with self._lock_for(identity.uid):
            profile = self._new_profile(identity)
            children = {
                f"{engagements_path(identity.uid)}/{engagement.id}": to_document(engagement)
                for engagement in STARTER_ENGAGEMENTS
            }
            data, created = self.store.create_if_absent(
                user_path(identity.uid), to_document(profile), children=children
            )
        if created:
            logger.info(
                "Created profile for %s with %d starter engagements",
                identity.uid,
                len(children),
            )
        return from_document(UserProfile, identity.uid, data)

    def get_profile(self, uid: str) -> Optional[UserProfile]:
        data = self.store.get_document(user_path(uid))
        if data is None:
            return None
        return from_document(UserProfile, uid, data)

    def update_profile(
        self, uid: str, *, name: Optional[str] = None, email: Optional[str] = None
    ) -> UserProfile:
        changes = {}
        if name is not None:
            name = name.strip()
            if not name:
                raise ValidationError("Name must not be empty.")
            if len(name) > MAX_PROFILE_NAME_LENGTH:
                raise ValidationError("Name exceeds max length.")
            changes["name"] = name
        if email is not None:
            changes["email"] = email.strip()

        if changes:
            self.store.update_document(user_path(uid), changes)
        profile = self.get_profile(uid)
        if profile is None:
            raise DocumentNotFoundError(user_path(uid))
        return profile

    def list_engagements(self, uid: str) -> list[Engagement]:
        docs = self.store.query_collection(
            engagements_path(uid), order_by="date", descending=True
        )
        return [from_document(Engagement, doc_id, data) for doc_id, data in docs]

    def record_engagement(self, uid: str, engagement: Engagement) -> Engagement:
        """Stores a new engagement and adds its points to the profile total."""
        if not engagement.id:
            engagement.id = uuid.uuid4().hex
        self.store.commit(
            [
                Write(
                    f"{engagements_path(uid)}/{engagement.id}", to_document(engagement)
                ),
                Write(
                    user_path(uid),
                    {"honorsPoints": Increment(engagement.points)},
                    op="update",
                ),
            ]
        )
        return engagement

    def recalculate_honors_points(self, uid: str) -> int:
        """Rewrites the profile total as the sum of its engagement points."""
        total = sum(engagement.points for engagement in self.list_engagements(uid))
        profile = self.get_profile(uid)
        if profile is None:
            raise DocumentNotFoundError(user_path(uid))
        if profile.honors_points != total:
            logger.info(
                "Correcting honors points for %s: %d -> %d",
                uid,
                profile.honors_points,
                total,
            )
            self.store.update_document(user_path(uid), {"honorsPoints": total})
        return total


def bootstrap_session(
    gate: IdentityGate, profiles: ProfileService, timeout: Optional[float] = None
) -> Optional[UserProfile]:
    """
    Waits for the gate's identity to resolve and then loads or creates the
    profile for it. Returns None when nobody is signed in.
    """
    identity = gate.wait_until_resolved(timeout=timeout)
    if identity is None:
        return None
    return profiles.load_or_create_profile(identity)
