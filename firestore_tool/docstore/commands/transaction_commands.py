"""
CLI commands for transaction operations.
"""

import click

from ..constants import DEFAULT_DATABASE, ENV_DATABASE, ENV_PROJECT
from ..core.client import FirestoreClient
from ..core.transaction_operations import increment_field
from ..exceptions import (
    DocStoreError,
    DocumentNotFoundError,
    InvalidValueError,
    LimitExceededError,
    TransactionAbortedError,
)
from ..logging_config import get_logger, setup_logging
from ..utils import (
    exit_with_error,
    output_json,
    output_text,
    validate_collection_path,
    validate_document_id,
)

logger = get_logger(__name__)


@click.command("increment")
@click.argument("collection")
@click.argument("document_id")
@click.argument("field")
@click.option("--by", "amount", type=float, default=1, show_default=True, help="Amount to add")
@click.option("--max", "max_value", type=float, help="Abort if the new value would exceed this")
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
def increment_command(
    ctx: click.Context,
    collection: str,
    document_id: str,
    field: str,
    amount: float,
    max_value: float | None,
    project: str | None,
    database: str,
    text: bool,
    verbose: int,
) -> None:
    """Increment a numeric field inside a transaction.

    The field is read and written in one transaction; Firestore retries
    it when another writer interferes. With --max the transaction is
    abandoned, writing nothing, if the result would exceed the limit.

    \b
    Exit Codes:
        0 = success
        1 = document not found
        2 = field not numeric, or limit exceeded
        3 = transaction aborted or Firestore error

    Examples:

    \b
        # Add one to the population of SF
        firestore-tool docstore increment cities SF population

    \b
        # Refuse to go past one million
        firestore-tool docstore increment cities SF population --max 1000000

    \b
    Output Format:
        {"collection": "cities", "id": "SF", "field": "population",
         "previous": 860000, "value": 860001, "timestamp": 1234567890}
    """
    setup_logging(verbose)

    try:
        validate_collection_path(collection)
        validate_document_id(document_id)

        logger.info(f"Incrementing '{collection}/{document_id}.{field}' by {amount}")
        logger.debug(f"Project: {project}, Database: {database}, Max: {max_value}")

        client = FirestoreClient(project, database)
        result = increment_field(
            client,
            collection,
            document_id,
            field,
            _as_number(amount),
            None if max_value is None else _as_number(max_value),
        )

        if text:
            output_text(
                f"✅ {collection}/{document_id}.{field}: {result['previous']} -> {result['value']}"
            )
        else:
            output_json(result)

    except ValueError as e:
        exit_with_error(ctx, text, str(e), "Pass a valid collection and document id", 2)

    except DocumentNotFoundError as e:
        solution = f"Create it with 'firestore-tool docstore set {collection} {document_id}'"
        exit_with_error(ctx, text, str(e), solution, 1)

    except LimitExceededError as e:
        exit_with_error(ctx, text, str(e), "Raise --max or lower --by", 2)

    except InvalidValueError as e:
        exit_with_error(ctx, text, str(e), f"Make sure '{field}' holds a number", 2)

    except TransactionAbortedError as e:
        exit_with_error(ctx, text, str(e), "Retry when there is less write contention", 3)

    except DocStoreError as e:
        exit_with_error(ctx, text, str(e), "Check project, database and credentials", 3)


def _as_number(value: float) -> int | float:
    # Keep integer fields integral
    return int(value) if float(value).is_integer() else value
