"""
CLI commands for batched writes.
"""

import click

from ..constants import DEFAULT_DATABASE, ENV_DATABASE, ENV_PROJECT
from ..core.batch_operations import execute_batch, load_batch_file
from ..core.client import FirestoreClient
from ..exceptions import DocStoreError
from ..logging_config import get_logger, setup_logging
from ..utils import output_error, output_json, output_text

logger = get_logger(__name__)


@click.command("batch")
@click.option(
    "--file",
    "-f",
    "file_path",
    required=True,
    type=click.Path(exists=True),
    help="Path to JSON file containing batch operations",
)
@click.option("--project", envvar=ENV_PROJECT, help="Google Cloud project")
@click.option(
    "--database",
    envvar=ENV_DATABASE,
    default=DEFAULT_DATABASE,
    help="Firestore database id",
)
@click.option("--text", is_flag=True, help="Output as human-readable text")
@click.option("--quiet", is_flag=True, help="Suppress output")
@click.option(
    "--verbose",
    "-v",
    count=True,
    help="Increase verbosity (-v INFO, -vv DEBUG, -vvv TRACE)",
)
def batch_command(
    file_path: str,
    project: str | None,
    database: str,
    text: bool,
    quiet: bool,
    verbose: int,
) -> None:
    """Apply several writes atomically in one write batch.

    Batches hold up to 500 writes; either all are applied or none.
    Unlike transactions, batches do not read, so they cannot fail on
    contention.

    \b
    Batch File Format (JSON):
        {
          "operations": [
            {"action": "set", "collection": "cities", "id": "NYC",
             "data": {"name": "New York City"}},
            {"action": "merge", "collection": "cities", "id": "SF",
             "data": {"population": 1000000}},
            {"action": "delete", "collection": "cities", "id": "LA"}
          ]
        }

    \b
    Operation Fields:
        - action: "set", "merge", "update", or "delete" (required)
        - collection: Collection path (required)
        - id: Document id (required)
        - data: Fields for set/merge/update; values may use
          {"$serverTimestamp": true}, {"$timestamp": "..."} and,
          for merge/update, {"$delete": true}

    \b
    Exit Codes:
        0 = success
        3 = validation or commit failed

    Examples:

    \b
        firestore-tool docstore batch --file cities.json

    \b
    Output Format:
        {
          "success": true,
          "operations_count": 3,
          "timestamp": 1234567890
        }
    """
    setup_logging(verbose)

    try:
        operations = load_batch_file(file_path)
        logger.info(f"Committing batch of {len(operations)} operation(s) from '{file_path}'")

        client = FirestoreClient(project, database)
        result = execute_batch(client, operations)

        if text:
            output_text(
                f"✅ Batch committed: {result['operations_count']} operations applied",
                quiet,
            )
        else:
            output_json(result, quiet)

    except DocStoreError as e:
        output_error(str(e), "Check batch file and credentials", 3, text)
