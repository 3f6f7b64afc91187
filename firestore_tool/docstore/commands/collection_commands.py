"""
Collection purge commands for docstore.
"""

import signal
import threading
import time
from typing import Any

import click

from ..constants import (
    DEFAULT_DATABASE,
    DEFAULT_PAGE_SIZE,
    ENV_DATABASE,
    ENV_PROJECT,
    MAX_BATCH_WRITES,
)
from ..core.client import FirestoreClient
from ..core.purge_operations import purge_collection
from ..exceptions import CommitError, DocStoreError, ListError, PurgeCancelledError
from ..logging_config import get_logger, setup_logging
from ..utils import exit_with_error, output_json, output_text, validate_collection_path

logger = get_logger(__name__)


@click.command("purge")
@click.argument("collection")
@click.option(
    "--page-size",
    type=click.IntRange(1, MAX_BATCH_WRITES),
    default=DEFAULT_PAGE_SIZE,
    show_default=True,
    help="Documents listed and deleted per batch",
)
@click.option("--timeout", type=float, help="Stop at the next page boundary after SECONDS")
@click.option(
    "--approve",
    is_flag=True,
    help="Required flag to confirm deletion",
)
@click.option("--project", envvar=ENV_PROJECT, help="Google Cloud project")
@click.option(
    "--database",
    envvar=ENV_DATABASE,
    default=DEFAULT_DATABASE,
    help="Firestore database id",
)
@click.option("--text", is_flag=True, help="Output as human-readable text")
@click.option(
    "--verbose",
    "-v",
    count=True,
    help="Increase verbosity (-v INFO, -vv DEBUG, -vvv TRACE)",
)
@click.pass_context
def purge_command(
    ctx: click.Context,
    collection: str,
    page_size: int,
    timeout: float | None,
    approve: bool,
    project: str | None,
    database: str,
    text: bool,
    verbose: int,
) -> None:
    """Delete every document in a collection, one batch per page.

    WARNING: This permanently deletes ALL documents in the collection.
    Subcollections of the deleted documents are left in place.

    Pages of --page-size documents are listed and deleted in one atomic
    batch each, until a listing comes back empty. Failures are not retried;
    running the command again picks up where it stopped. Ctrl-C stops at
    the next page boundary.

    \b
    Exit Codes:
        0 = collection empty
        2 = approval missing or invalid collection
        3 = listing or commit failed
        130 = cancelled or timed out

    Examples:

    \b
        # Attempt without approval (shows warning)
        firestore-tool docstore purge cities

    \b
        # Purge in batches of 25
        firestore-tool docstore purge cities --page-size 25 --approve

    \b
        # Purge a subcollection, giving up after five minutes
        firestore-tool docstore purge cities/SF/landmarks --timeout 300 --approve

    \b
    Output Format:
        {"collection": "cities", "deleted": 1234, "batches": 13, "pages": 14}
    """
    setup_logging(verbose)

    if not approve:
        cmd = f"firestore-tool docstore purge {collection} --approve"
        if text:
            click.echo("⚠️  WARNING: Collection purge requires approval", err=True)
            click.echo(
                f"\nThis will permanently delete ALL documents in '{collection}'.", err=True
            )
            click.echo(f"\nTo proceed, use: {cmd}", err=True)
            ctx.exit(2)
        exit_with_error(
            ctx, text, "Collection purge requires approval", f"Add --approve flag: {cmd}", 2
        )

    try:
        validate_collection_path(collection)
    except ValueError as e:
        exit_with_error(ctx, text, str(e), "Pass a valid collection path", 2)

    cancel_event = threading.Event()
    deadline = time.monotonic() + timeout if timeout is not None else None
    previous_handler = signal.signal(signal.SIGINT, _cancel_on_interrupt(cancel_event))

    try:
        logger.info(f"Purging collection '{collection}' in pages of {page_size}")
        logger.debug(f"Project: {project}, Database: {database}, Timeout: {timeout}")

        client = FirestoreClient(project, database)
        result = purge_collection(
            client,
            client.collection(collection),
            page_size,
            cancel_event=cancel_event,
            deadline=deadline,
        )

        if text:
            output_text(
                f"✅ Purged '{collection}': {result.deleted} document(s) "
                f"in {result.batches} batch(es)"
            )
        else:
            output_json(result.to_dict())

    except PurgeCancelledError as e:
        exit_with_error(ctx, text, str(e), "Run the command again to continue", 130)

    except (ListError, CommitError) as e:
        exit_with_error(
            ctx, text, str(e), f"{e.deleted} document(s) were deleted; run again to resume", 3
        )

    except DocStoreError as e:
        exit_with_error(ctx, text, str(e), "Check project, database and credentials", 3)

    finally:
        signal.signal(signal.SIGINT, previous_handler)


# Alias: delete-collection is the same as purge
@click.command("delete-collection")
@click.argument("collection")
@click.option(
    "--page-size",
    type=click.IntRange(1, MAX_BATCH_WRITES),
    default=DEFAULT_PAGE_SIZE,
    help="Documents listed and deleted per batch",
)
@click.option("--timeout", type=float, help="Stop at the next page boundary after SECONDS")
@click.option("--approve", is_flag=True, help="Required flag to confirm deletion")
@click.option("--project", envvar=ENV_PROJECT, help="Google Cloud project")
@click.option(
    "--database",
    envvar=ENV_DATABASE,
    default=DEFAULT_DATABASE,
    help="Firestore database id",
)
@click.option("--text", is_flag=True, help="Output as human-readable text")
@click.option("--verbose", "-v", count=True, help="Increase verbosity")
@click.pass_context
def delete_collection_command(ctx: click.Context, **kwargs: Any) -> None:
    """Alias for purge command.

    See 'firestore-tool docstore purge --help' for full documentation.
    """
    ctx.invoke(purge_command, **kwargs)


def _cancel_on_interrupt(cancel_event: threading.Event) -> Any:
    def _handler(signum: int, frame: Any) -> None:
        if cancel_event.is_set():
            raise KeyboardInterrupt
        logger.warning("Interrupted; stopping after the current page (Ctrl-C again to abort)")
        cancel_event.set()

    return _handler
