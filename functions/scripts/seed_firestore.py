"""
Seed the proposals collection and repair honors point totals.

Uses the same backend selection as the API (DATABASE_URL, FIREBASE_PROJECT_ID
or the in-memory backend), so run it with the service's environment:

  python scripts/seed_firestore.py
  python scripts/seed_firestore.py --recalculate-points
"""

from __future__ import annotations

import argparse
import logging
from typing import Optional, Sequence

from backend.dependencies import (
    get_document_store,
    get_profile_service,
    get_proposal_service,
)
from backend.errors import HonorsError
from backend.profiles import ProfileService
from backend.store import DocumentStore
from shared.firebase_constants import USERS_COLLECTION


logger = logging.getLogger(__name__)


def recalculate_all_points(store: DocumentStore, profiles: ProfileService) -> int:
    """Recomputes every profile's total; returns how many were corrected."""
    corrected = 0
    for uid, data in store.query_collection(USERS_COLLECTION):
        before = data.get("honorsPoints", 0)
        if profiles.recalculate_honors_points(uid) != before:
            corrected += 1
    return corrected


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument(
        "--recalculate-points",
        action="store_true",
        help="Also rewrite every user's honorsPoints as the sum of their engagements.",
    )
    parser.add_argument("--log-level", default="INFO")
    args = parser.parse_args(argv)

    logging.basicConfig(level=args.log_level.upper())

    try:
        if get_proposal_service().ensure_seeded():
            logger.info("Seeded demo proposals.")
        else:
            logger.info("Proposals collection already has data; nothing to seed.")

        if args.recalculate_points:
            corrected = recalculate_all_points(
                get_document_store(), get_profile_service()
            )
            logger.info("Corrected honors points for %d users.", corrected)
    except HonorsError as e:
        logger.error("%s", e)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
