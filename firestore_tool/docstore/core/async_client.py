"""
Asyncio Firestore client exposing the purge capabilities.
"""

from typing import Any, NoReturn

from google.cloud import firestore
from google.cloud.firestore_v1.async_batch import AsyncWriteBatch
from google.cloud.firestore_v1.async_collection import AsyncCollectionReference
from google.cloud.firestore_v1.async_document import AsyncDocumentReference

from ..constants import DEFAULT_DATABASE
from .client import SERVICE_ERRORS, handle_service_error


class AsyncFirestoreClient:
    """AsyncClient wrapper; each round trip is one awaited call."""

    def __init__(
        self,
        project: str | None = None,
        database: str | None = None,
        db: Any = None,
    ):
        """
        Initialize async Firestore client.

        Args:
            project: Google Cloud project (optional, uses ADC default)
            database: Firestore database id (optional, uses "(default)")
            db: Pre-built AsyncClient to wrap instead of creating one

        Raises:
            PermissionDeniedError: If no usable credentials are found
        """
        self.project = project
        self.database = database or DEFAULT_DATABASE
        if db is not None:
            self.db = db
            return
        try:
            self.db = firestore.AsyncClient(project=project, database=self.database)
        except SERVICE_ERRORS as e:
            self._handle_error(e)

    def collection(self, path: str) -> AsyncCollectionReference:
        """Return a collection reference for a slash-separated path."""
        return self.db.collection(path)

    async def list_page(
        self, collection: AsyncCollectionReference, page_size: int
    ) -> list[AsyncDocumentReference]:
        """
        List up to page_size document references of a collection.

        Raises:
            DocStoreError: For Firestore errors
        """
        try:
            return [snapshot.reference async for snapshot in collection.limit(page_size).stream()]
        except SERVICE_ERRORS as e:
            self._handle_error(e)

    def new_batch(self) -> AsyncWriteBatch:
        """Create an empty write batch."""
        return self.db.batch()

    def stage_delete(self, batch: AsyncWriteBatch, ref: AsyncDocumentReference) -> None:
        """Record a delete in batch; no round trip."""
        batch.delete(ref)

    async def commit(self, batch: AsyncWriteBatch) -> Any:
        """
        Apply every write staged in batch atomically.

        Raises:
            DocStoreError: For Firestore errors
        """
        try:
            return await batch.commit()
        except SERVICE_ERRORS as e:
            self._handle_error(e)

    def _handle_error(self, error: Exception, path: str | None = None) -> NoReturn:
        """Convert SDK errors to docstore exceptions."""
        handle_service_error(error, self.project, self.database, path)
