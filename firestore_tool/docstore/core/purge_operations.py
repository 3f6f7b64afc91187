"""
Collection purge: delete every document in bounded pages, one atomic batch per page.

The loop re-lists the collection on every iteration and stops only when a
listing comes back empty, so it never holds more than one page of references
and never assumes how many pages there are. Documents inserted concurrently
may or may not be removed by a given run.
"""

import threading
import time
from typing import Any, Protocol

from ..exceptions import CommitError, ListError, PurgeCancelledError
from ..logging_config import get_logger
from ..models import PurgeResult
from ..utils import validate_page_size

logger = get_logger(__name__)


class PurgeBackend(Protocol):
    """Service capabilities the purge loop needs."""

    def list_page(self, collection: Any, page_size: int) -> list[Any]: ...

    def new_batch(self) -> Any: ...

    def stage_delete(self, batch: Any, ref: Any) -> None: ...

    def commit(self, batch: Any) -> Any: ...


class AsyncPurgeBackend(Protocol):
    """Async service capabilities; list_page and commit are the round trips."""

    async def list_page(self, collection: Any, page_size: int) -> list[Any]: ...

    def new_batch(self) -> Any: ...

    def stage_delete(self, batch: Any, ref: Any) -> None: ...

    async def commit(self, batch: Any) -> Any: ...


def purge_collection(
    backend: PurgeBackend,
    collection: Any,
    page_size: int,
    cancel_event: threading.Event | None = None,
    deadline: float | None = None,
) -> PurgeResult:
    """
    Delete every document of a collection, page_size documents per batch.

    Args:
        backend: Service capabilities (FirestoreClient or a test double)
        collection: Collection reference handed to backend.list_page
        page_size: Maximum documents listed and deleted per round trip (>= 1)
        cancel_event: Checked before each page; when set the purge stops
        deadline: time.monotonic() value after which the purge stops

    Returns:
        PurgeResult with counts of deleted documents, commits and listings

    Raises:
        ValueError: If page_size is not a positive integer
        ListError: If listing a page fails
        CommitError: If committing a batch fails
        PurgeCancelledError: If cancelled or past deadline at a page boundary
    """
    validate_page_size(page_size)
    result = PurgeResult(collection=_collection_name(collection))

    while True:
        _check_cancelled(result, cancel_event, deadline)

        try:
            page = backend.list_page(collection, page_size)
        except Exception as e:
            raise _failure(ListError, "List", result, e) from e
        result.pages += 1

        if not page:
            logger.info(
                f"Purged '{result.collection}': {result.deleted} document(s) "
                f"in {result.batches} batch(es)"
            )
            return result

        batch = backend.new_batch()
        for ref in page:
            backend.stage_delete(batch, ref)

        try:
            backend.commit(batch)
        except Exception as e:
            raise _failure(CommitError, "Commit", result, e) from e

        result.batches += 1
        result.deleted += len(page)
        logger.debug(
            f"Page {result.pages}: deleted {len(page)} document(s), {result.deleted} so far"
        )


async def purge_collection_async(
    backend: AsyncPurgeBackend,
    collection: Any,
    page_size: int,
    cancel_event: threading.Event | None = None,
    deadline: float | None = None,
) -> PurgeResult:
    """
    Async variant of purge_collection with identical semantics.

    Suspends only at list_page and commit. Task cancellation propagates
    as asyncio.CancelledError.
    """
    validate_page_size(page_size)
    result = PurgeResult(collection=_collection_name(collection))

    while True:
        _check_cancelled(result, cancel_event, deadline)

        try:
            page = await backend.list_page(collection, page_size)
        except Exception as e:
            raise _failure(ListError, "List", result, e) from e
        result.pages += 1

        if not page:
            logger.info(
                f"Purged '{result.collection}': {result.deleted} document(s) "
                f"in {result.batches} batch(es)"
            )
            return result

        batch = backend.new_batch()
        for ref in page:
            backend.stage_delete(batch, ref)

        try:
            await backend.commit(batch)
        except Exception as e:
            raise _failure(CommitError, "Commit", result, e) from e

        result.batches += 1
        result.deleted += len(page)
        logger.debug(
            f"Page {result.pages}: deleted {len(page)} document(s), {result.deleted} so far"
        )


def _check_cancelled(
    result: PurgeResult,
    cancel_event: threading.Event | None,
    deadline: float | None,
) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise PurgeCancelledError(
            f"Purge of '{result.collection}' cancelled after {result.deleted} document(s)",
            result.collection,
            result.pages + 1,
            result.deleted,
        )
    if deadline is not None and time.monotonic() >= deadline:
        raise PurgeCancelledError(
            f"Purge of '{result.collection}' hit its deadline after {result.deleted} document(s)",
            result.collection,
            result.pages + 1,
            result.deleted,
        )


def _failure(error_class: type, step: str, result: PurgeResult, cause: Exception) -> Exception:
    page = result.pages + 1 if error_class is ListError else result.pages
    logger.error(f"{step} failed on page {page} of '{result.collection}': {cause}")
    return error_class(
        f"{step} failed on page {page} of '{result.collection}' "
        f"after {result.deleted} deleted document(s): {cause}",
        result.collection,
        page,
        result.deleted,
    )


def _collection_name(collection: Any) -> str:
    # CollectionReference exposes its path through _path
    path = getattr(collection, "_path", None)
    if path:
        return "/".join(path)
    return getattr(collection, "id", None) or str(collection)
