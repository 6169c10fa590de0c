"""
Dependency wiring for the FastAPI app.

Process-wide singletons (document store, services) live here, along with the
per-request identity gate. Backend choice:

- HONORS_USE_IN_MEMORY_BACKENDS: in-memory store + token directory identities.
- DATABASE_URL: SQL document store (identities still come from Firebase).
- FIREBASE_PROJECT_ID: Firestore + Firebase Auth.
- none of the above: offline mode, read-only demo data and no sign-in.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterator, Optional

import firebase_admin
from fastapi import Depends, Header
from firebase_admin import credentials, firestore

from backend.config import Settings, get_settings
from backend.identity import (
    FirebaseIdentityProvider,
    Identity,
    IdentityGate,
    IdentityProvider,
    InMemoryIdentityProvider,
    UnconfiguredIdentityProvider,
)
from backend.profiles import ProfileService
from backend.proposals import ProposalService
from backend.store import (
    DocumentStore,
    FirestoreDocumentStore,
    InMemoryDocumentStore,
    SqlDocumentStore,
)

logger = logging.getLogger(__name__)

_firebase_app: firebase_admin.App | None = None
_document_store: DocumentStore | None = None
_profile_service: ProfileService | None = None
_proposal_service: ProposalService | None = None
_identity_directory: Dict[str, Identity] = {}


def _get_firebase_app(settings: Settings) -> firebase_admin.App:
    global _firebase_app
    if _firebase_app:
        return _firebase_app

    if settings.google_application_credentials:
        credential = credentials.Certificate(settings.google_application_credentials)
    else:
        credential = credentials.ApplicationDefault()
    _firebase_app = firebase_admin.initialize_app(
        credential, {"projectId": settings.firebase_project_id}
    )
    return _firebase_app


def is_offline(settings: Settings) -> bool:
    return not (
        settings.honors_use_in_memory_backends
        or settings.database_url
        or settings.firebase_configured
    )


def get_document_store() -> DocumentStore:
    """
    Return a singleton store so seeded and written data persists across
    requests.
    """
    global _document_store
    if _document_store:
        return _document_store

    settings = get_settings()
    if settings.honors_use_in_memory_backends:
        _document_store = InMemoryDocumentStore()
    elif settings.database_url:
        _document_store = SqlDocumentStore(settings.database_url)
    elif settings.firebase_configured:
        app = _get_firebase_app(settings)
        _document_store = FirestoreDocumentStore(firestore.client(app))
    else:
        missing = settings.missing_firebase_keys()
        logger.warning(
            "Firebase is not configured. Missing environment variables: %s. "
            "Running in offline mode.",
            ", ".join(missing),
        )
        _document_store = InMemoryDocumentStore(read_only=True, missing_keys=missing)
    return _document_store


def get_profile_service() -> ProfileService:
    global _profile_service
    if _profile_service:
        return _profile_service
    _profile_service = ProfileService(get_document_store())
    return _profile_service


def get_proposal_service() -> ProposalService:
    global _proposal_service
    if _proposal_service:
        return _proposal_service
    _proposal_service = ProposalService(get_document_store())
    return _proposal_service


def get_identity_directory() -> Dict[str, Identity]:
    """Token -> identity map used by the in-memory identity provider."""
    return _identity_directory


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def get_identity_provider(
    authorization: Optional[str] = Header(default=None),
) -> IdentityProvider:
    settings = get_settings()
    token = _bearer_token(authorization)
    if settings.honors_use_in_memory_backends:
        return InMemoryIdentityProvider(get_identity_directory(), id_token=token)
    if settings.firebase_configured:
        return FirebaseIdentityProvider(
            id_token=token, app=_get_firebase_app(settings), check_revoked=True
        )
    return UnconfiguredIdentityProvider(settings.missing_firebase_keys())


def get_identity_gate(
    provider: IdentityProvider = Depends(get_identity_provider),
) -> Iterator[IdentityGate]:
    """Session-scoped gate: subscribed for the request, closed afterwards."""
    gate = IdentityGate(provider)
    gate.start()
    try:
        yield gate
    finally:
        gate.close()


def reset_dependencies() -> None:
    """Drop singletons so the next request rebuilds them (useful in tests)."""
    global _document_store, _profile_service, _proposal_service
    _document_store = None
    _profile_service = None
    _proposal_service = None
    _identity_directory.clear()
