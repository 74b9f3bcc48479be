"""Firestore access for tournament documents."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, cast

from firebase_admin import firestore
from flask import current_app, has_app_context
from google.api_core import exceptions as gcp_exceptions

from bracketeer.core.constants import TOURNAMENTS_COLLECTION
from bracketeer.errors import PersistenceError, TournamentNotFoundError

if TYPE_CHECKING:
    from google.cloud.firestore_v1.base_document import DocumentSnapshot
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.collection import CollectionReference
    from google.cloud.firestore_v1.document import DocumentReference

logger = logging.getLogger(__name__)


@contextmanager
def store_errors(action: str, tournament_id: str | None = None) -> Iterator[None]:
    """Translate Firestore client failures into application errors."""
    try:
        yield
    except gcp_exceptions.NotFound as e:
        raise TournamentNotFoundError(tournament_id or "?") from e
    except gcp_exceptions.GoogleAPICallError as e:
        logger.error("Failed to %s %s: %s", action, tournament_id or "", e)
        raise PersistenceError() from e


class TournamentStore:
    """Create, read, update, delete and query tournament documents."""

    @staticmethod
    def collection_name() -> str:
        if has_app_context():
            return current_app.config.get("TOURNAMENTS_COLLECTION") or TOURNAMENTS_COLLECTION
        return TOURNAMENTS_COLLECTION

    @staticmethod
    def collection(db: Client) -> CollectionReference:
        return db.collection(TournamentStore.collection_name())

    @staticmethod
    def document(db: Client, tournament_id: str) -> DocumentReference:
        return TournamentStore.collection(db).document(tournament_id)

    @staticmethod
    def create(db: Client, record: dict[str, Any]) -> str:
        """Add a tournament document and return its ID."""
        with store_errors("create tournament"):
            _, ref = TournamentStore.collection(db).add(record)
        return str(ref.id)

    @staticmethod
    def get(db: Client, tournament_id: str) -> dict[str, Any]:
        """Fetch a tournament document as a dict including its ID.

        Raises:
            TournamentNotFoundError: If the document does not exist.
        """
        with store_errors("read tournament", tournament_id):
            doc = cast("DocumentSnapshot", TournamentStore.document(db, tournament_id).get())
        if not doc.exists:
            raise TournamentNotFoundError(tournament_id)
        data = doc.to_dict() or {}
        data["id"] = doc.id
        return data

    @staticmethod
    def update(db: Client, tournament_id: str, fields: dict[str, Any]) -> None:
        """Apply a partial update to an existing tournament document."""
        with store_errors("update tournament", tournament_id):
            TournamentStore.document(db, tournament_id).update(fields)

    @staticmethod
    def delete(db: Client, tournament_id: str) -> None:
        """Delete a tournament document."""
        with store_errors("delete tournament", tournament_id):
            TournamentStore.document(db, tournament_id).delete()

    @staticmethod
    def query(db: Client, **filters: Any) -> list[dict[str, Any]]:
        """Return tournaments whose fields equal every non-None filter value."""
        query: Any = TournamentStore.collection(db)
        for field_path, value in filters.items():
            if value is not None:
                query = query.where(filter=firestore.FieldFilter(field_path, "==", value))

        results = []
        with store_errors("query tournaments"):
            for doc in query.stream():
                data = doc.to_dict()
                if data:
                    data["id"] = doc.id
                    results.append(data)
        return results
