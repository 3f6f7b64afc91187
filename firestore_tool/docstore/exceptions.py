"""
Custom exceptions for docstore operations.
"""


class DocStoreError(Exception):
    """Base exception for docstore operations."""

    pass


class DocumentNotFoundError(DocStoreError):
    """Document does not exist."""

    pass


class DocumentExistsError(DocStoreError):
    """Document already exists (create condition failed)."""

    pass


class ConditionFailedError(DocStoreError):
    """Precondition on the write failed."""

    pass


class TransactionAbortedError(DocStoreError):
    """Transaction aborted by contention after all attempts."""

    pass


class ThrottlingError(DocStoreError):
    """Firestore quota or rate limit exhausted."""

    pass


class PermissionDeniedError(DocStoreError):
    """Caller lacks permission on the project or database."""

    pass


class InvalidValueError(DocStoreError):
    """Document data cannot be encoded for this write."""

    pass


class LimitExceededError(DocStoreError):
    """Transactional update refused because the result exceeds its ceiling."""

    pass


class PurgeError(DocStoreError):
    """Collection purge stopped before the collection was empty."""

    def __init__(self, message: str, collection: str, page: int, deleted: int):
        super().__init__(message)
        self.collection = collection
        self.page = page
        self.deleted = deleted


class ListError(PurgeError):
    """Listing a page of documents failed."""

    pass


class CommitError(PurgeError):
    """Committing a page's delete batch failed."""

    pass


class PurgeCancelledError(PurgeError):
    """Purge cancelled or past its deadline at a page boundary."""

    pass
