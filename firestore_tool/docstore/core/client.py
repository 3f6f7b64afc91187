"""
Firestore client wrapper with error handling.
"""

from collections.abc import Callable
from typing import Any, NoReturn, TypeVar

from google.api_core import exceptions as api_exceptions
from google.auth import exceptions as auth_exceptions
from google.cloud import firestore
from google.cloud.firestore_v1.batch import WriteBatch
from google.cloud.firestore_v1.collection import CollectionReference
from google.cloud.firestore_v1.document import DocumentReference
from google.cloud.firestore_v1.transaction import Transaction

from ..constants import DEFAULT_DATABASE, DEFAULT_TRANSACTION_ATTEMPTS
from ..exceptions import (
    ConditionFailedError,
    DocStoreError,
    DocumentExistsError,
    DocumentNotFoundError,
    PermissionDeniedError,
    ThrottlingError,
    TransactionAbortedError,
)

T = TypeVar("T")

# Errors raised by the SDK: service responses and credential lookup/refresh
SERVICE_ERRORS = (api_exceptions.GoogleAPIError, auth_exceptions.GoogleAuthError)


class FirestoreClient:
    """Firestore client wrapper with error handling."""

    def __init__(
        self,
        project: str | None = None,
        database: str | None = None,
        db: Any = None,
    ):
        """
        Initialize Firestore client.

        Args:
            project: Google Cloud project (optional, uses ADC default)
            database: Firestore database id (optional, uses "(default)")
            db: Pre-built client to wrap instead of creating one

        Raises:
            PermissionDeniedError: If no usable credentials are found
        """
        self.project = project
        self.database = database or DEFAULT_DATABASE
        if db is not None:
            self.db = db
            return
        try:
            self.db = firestore.Client(project=project, database=self.database)
        except SERVICE_ERRORS as e:
            self._handle_error(e)

    def collection(self, path: str) -> CollectionReference:
        """Return a collection reference for a slash-separated path."""
        return self.db.collection(path)

    def document(self, collection: str, document_id: str | None = None) -> DocumentReference:
        """
        Return a document reference.

        Args:
            collection: Collection path
            document_id: Document id, or None for an auto-generated id
        """
        if document_id is None:
            return self.collection(collection).document()
        return self.collection(collection).document(document_id)

    def set(self, ref: DocumentReference, data: dict[str, Any], merge: bool = False) -> Any:
        """
        Write a document, replacing it unless merge is set.

        Raises:
            DocStoreError: For Firestore errors
        """
        try:
            return ref.set(data, merge=merge)
        except SERVICE_ERRORS as e:
            self._handle_error(e, ref.path)

    def create(self, ref: DocumentReference, data: dict[str, Any]) -> Any:
        """
        Create a document that must not exist yet.

        Raises:
            DocumentExistsError: If the document already exists
            DocStoreError: For other Firestore errors
        """
        try:
            return ref.create(data)
        except SERVICE_ERRORS as e:
            self._handle_error(e, ref.path)

    def update(self, ref: DocumentReference, data: dict[str, Any]) -> Any:
        """
        Update fields of an existing document.

        Raises:
            DocumentNotFoundError: If the document does not exist
            DocStoreError: For other Firestore errors
        """
        try:
            return ref.update(data)
        except SERVICE_ERRORS as e:
            self._handle_error(e, ref.path)

    def delete(self, ref: DocumentReference) -> Any:
        """
        Delete a document. Deleting a missing document succeeds.

        Raises:
            DocStoreError: For Firestore errors
        """
        try:
            return ref.delete()
        except SERVICE_ERRORS as e:
            self._handle_error(e, ref.path)

    def get(self, ref: DocumentReference) -> Any:
        """
        Read a document snapshot (which may not exist).

        Raises:
            DocStoreError: For Firestore errors
        """
        try:
            return ref.get()
        except SERVICE_ERRORS as e:
            self._handle_error(e, ref.path)

    def run_transaction(
        self,
        callback: Callable[[Transaction], T],
        max_attempts: int = DEFAULT_TRANSACTION_ATTEMPTS,
    ) -> T:
        """
        Run callback inside a transaction, retried by the SDK on contention.

        The callback must read through the transaction before writing.

        Raises:
            TransactionAbortedError: If contention persists past max_attempts
            DocStoreError: For other Firestore errors; errors raised by the
                callback itself propagate unchanged
        """
        transaction = self.db.transaction(max_attempts=max_attempts)

        @firestore.transactional
        def _run(tx: Transaction) -> T:
            return callback(tx)

        try:
            return _run(transaction)
        except ValueError as e:
            # The SDK reports exhausted attempts as a ValueError
            if "attempts" in str(e):
                raise TransactionAbortedError(
                    f"Transaction aborted after {max_attempts} attempts"
                ) from e
            raise
        except SERVICE_ERRORS as e:
            self._handle_error(e)

    # Purge capabilities

    def list_page(self, collection: CollectionReference, page_size: int) -> list[DocumentReference]:
        """
        List up to page_size document references of a collection.

        Raises:
            DocStoreError: For Firestore errors
        """
        try:
            return [snapshot.reference for snapshot in collection.limit(page_size).stream()]
        except SERVICE_ERRORS as e:
            self._handle_error(e)

    def new_batch(self) -> WriteBatch:
        """Create an empty write batch."""
        return self.db.batch()

    def stage_delete(self, batch: WriteBatch, ref: DocumentReference) -> None:
        """Record a delete in batch; no round trip."""
        batch.delete(ref)

    def commit(self, batch: WriteBatch) -> Any:
        """
        Apply every write staged in batch atomically.

        Raises:
            DocStoreError: For Firestore errors
        """
        try:
            return batch.commit()
        except SERVICE_ERRORS as e:
            self._handle_error(e)

    def _handle_error(self, error: Exception, path: str | None = None) -> NoReturn:
        """Convert SDK errors to docstore exceptions."""
        handle_service_error(error, self.project, self.database, path)


def handle_service_error(
    error: Exception,
    project: str | None,
    database: str,
    path: str | None = None,
) -> NoReturn:
    """
    Convert google-api-core and google-auth errors to docstore exceptions.

    Args:
        error: Error raised by the Firestore SDK
        project: Project the client was built for, for messages
        database: Database id, for messages
        path: Document path involved, for messages

    Raises:
        DocumentNotFoundError: If the document was not found
        DocumentExistsError: If the document already exists
        ConditionFailedError: If a precondition failed
        TransactionAbortedError: If the transaction was aborted
        ThrottlingError: If quota was exhausted
        PermissionDeniedError: If permission was denied or credentials are unusable
        DocStoreError: For other errors
    """
    target = f"'{path}'" if path else "request"

    if isinstance(error, auth_exceptions.GoogleAuthError):
        raise PermissionDeniedError(
            f"Google Cloud credentials unavailable or expired: {error}. "
            "Run 'gcloud auth application-default login' or set GOOGLE_APPLICATION_CREDENTIALS"
        )
    elif isinstance(error, api_exceptions.NotFound):
        raise DocumentNotFoundError(f"Document {target} not found")
    elif isinstance(error, api_exceptions.AlreadyExists):
        raise DocumentExistsError(f"Document {target} already exists")
    elif isinstance(error, api_exceptions.FailedPrecondition):
        raise ConditionFailedError(f"Precondition failed for {target}: {error}")
    elif isinstance(error, api_exceptions.Aborted):
        raise TransactionAbortedError(f"Transaction aborted: {error}")
    elif isinstance(error, (api_exceptions.ResourceExhausted, api_exceptions.TooManyRequests)):
        raise ThrottlingError("Firestore quota exhausted - retry with backoff")
    elif isinstance(error, (api_exceptions.PermissionDenied, api_exceptions.Unauthenticated)):
        raise PermissionDeniedError(
            f"Permission denied on project '{project}', database '{database}'"
        )
    else:
        raise DocStoreError(f"Firestore error: {error}")
