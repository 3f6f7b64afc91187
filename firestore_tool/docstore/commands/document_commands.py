"""
Single-document commands for docstore.
"""

import click

from ..constants import DEFAULT_DATABASE, ENV_DATABASE, ENV_PROJECT
from ..core.client import FirestoreClient
from ..core.document_operations import (
    add_document,
    delete_document,
    delete_fields,
    get_document,
    set_document,
    set_server_timestamp,
    update_document,
)
from ..exceptions import DocStoreError, DocumentNotFoundError, InvalidValueError
from ..logging_config import get_logger, setup_logging
from ..utils import (
    exit_with_error,
    output_json,
    output_text,
    parse_json_object,
    validate_collection_path,
    validate_document_id,
)
from ..values import decode_document

logger = get_logger(__name__)


@click.command("set")
@click.argument("collection")
@click.argument("document_id")
@click.argument("data")
@click.option("--merge", is_flag=True, help="Merge into the existing document")
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
def set_command(
    ctx: click.Context,
    collection: str,
    document_id: str,
    data: str,
    merge: bool,
    project: str | None,
    database: str,
    text: bool,
    verbose: int,
) -> None:
    """Write a document under a known id.

    DATA is a JSON object. Values may use markers:
    {"$serverTimestamp": true}, {"$timestamp": "2024-01-01T00:00:00Z"},
    and with --merge {"$delete": true}.

    Examples:

    \b
        # Create or replace a document
        firestore-tool docstore set cities LA '{"name": "Los Angeles", "state": "CA"}'

    \b
        # Merge a single field into an existing document
        firestore-tool docstore set cities DC '{"capital": true}' --merge

    \b
    Output Format:
        Returns JSON:
        {"collection": "cities", "id": "LA", "merge": false, "update_time": "..."}
    """
    setup_logging(verbose)

    try:
        validate_collection_path(collection)
        validate_document_id(document_id)
        fields = decode_document(parse_json_object(data))

        logger.info(f"Setting document '{collection}/{document_id}' (merge={merge})")
        logger.debug(f"Project: {project}, Database: {database}")

        client = FirestoreClient(project, database)
        result = set_document(client, collection, document_id, fields, merge=merge)

        if text:
            output_text(f"✅ Set {collection}/{result['id']}")
        else:
            output_json(result)

    except (ValueError, InvalidValueError) as e:
        exit_with_error(ctx, text, str(e), "Pass a valid path and JSON object", 2)

    except DocStoreError as e:
        exit_with_error(ctx, text, str(e), "Check project, database and credentials", 3)


@click.command("add")
@click.argument("collection")
@click.argument("data")
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
def add_command(
    ctx: click.Context,
    collection: str,
    data: str,
    project: str | None,
    database: str,
    text: bool,
    verbose: int,
) -> None:
    """Add a document with an auto-generated id.

    Examples:

    \b
        firestore-tool docstore add cities '{"name": "Tokyo", "country": "Japan"}'

    \b
        # Capture the generated id
        firestore-tool docstore add cities '{"name": "Tokyo"}' | jq -r '.id'

    \b
    Output Format:
        Returns JSON:
        {"collection": "cities", "id": "<generated>", "update_time": "..."}
    """
    setup_logging(verbose)

    try:
        validate_collection_path(collection)
        fields = decode_document(parse_json_object(data))

        logger.info(f"Adding document to '{collection}'")
        logger.debug(f"Project: {project}, Database: {database}")

        client = FirestoreClient(project, database)
        result = add_document(client, collection, fields)

        if text:
            output_text(f"✅ Added {collection}/{result['id']}")
        else:
            output_json(result)

    except (ValueError, InvalidValueError) as e:
        exit_with_error(ctx, text, str(e), "Pass a valid collection and JSON object", 2)

    except DocStoreError as e:
        exit_with_error(ctx, text, str(e), "Check project, database and credentials", 3)


@click.command("get")
@click.argument("collection")
@click.argument("document_id")
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
def get_command(
    ctx: click.Context,
    collection: str,
    document_id: str,
    project: str | None,
    database: str,
    text: bool,
    verbose: int,
) -> None:
    """Read a document.

    Exit codes:
    - 0: Document found
    - 1: Document does not exist
    - 3: Firestore error

    Examples:

    \b
        firestore-tool docstore get cities LA

    \b
        firestore-tool docstore get cities LA | jq '.data.population'

    \b
    Output Format:
        Returns JSON:
        {"collection": "cities", "id": "LA", "data": {...}, "create_time": "...", "update_time": "..."}
    """  # noqa: E501
    setup_logging(verbose)

    try:
        validate_collection_path(collection)
        validate_document_id(document_id)

        logger.info(f"Getting document '{collection}/{document_id}'")
        logger.debug(f"Project: {project}, Database: {database}")

        client = FirestoreClient(project, database)
        result = get_document(client, collection, document_id)

        if text:
            output_text(f"{collection}/{result['id']}")
            for name, value in sorted(result["data"].items()):
                output_text(f"  {name} = {value}")
        else:
            output_json(result)

    except ValueError as e:
        exit_with_error(ctx, text, str(e), "Pass a valid collection and document id", 2)

    except DocumentNotFoundError as e:
        solution = f"Create it with 'firestore-tool docstore set {collection} {document_id}'"
        exit_with_error(ctx, text, str(e), solution, 1)

    except DocStoreError as e:
        exit_with_error(ctx, text, str(e), "Check project, database and credentials", 3)


@click.command("update")
@click.argument("collection")
@click.argument("document_id")
@click.argument("data")
@click.option(
    "--no-create",
    is_flag=True,
    help="Fail if the document does not exist instead of creating it",
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
def update_command(
    ctx: click.Context,
    collection: str,
    document_id: str,
    data: str,
    no_create: bool,
    project: str | None,
    database: str,
    text: bool,
    verbose: int,
) -> None:
    """Update fields of a document.

    Nested objects are merged key by key; fields not mentioned are kept.
    By default a missing document is created.

    Examples:

    \b
        # Update several fields at once
        firestore-tool docstore update cities Delhi \\
            '{"capital": true, "country": "India", "population": 16787941}'

    \b
        # Update a nested field, keeping its siblings
        firestore-tool docstore update users frank '{"age": 13, "favorites": {"color": "Red"}}'

    \b
        # Remove a field while updating another
        firestore-tool docstore update cities BJ '{"capital": {"$delete": true}, "name": "Beijing"}'

    \b
    Output Format:
        Returns JSON:
        {"collection": "cities", "id": "Delhi", "fields": [...], "update_time": "..."}
    """
    setup_logging(verbose)

    try:
        validate_collection_path(collection)
        validate_document_id(document_id)
        fields = decode_document(parse_json_object(data))

        logger.info(f"Updating document '{collection}/{document_id}'")
        logger.debug(f"Project: {project}, Database: {database}, Create: {not no_create}")

        client = FirestoreClient(project, database)
        result = update_document(
            client, collection, document_id, fields, create_if_missing=not no_create
        )

        if text:
            output_text(f"✅ Updated {collection}/{result['id']}: {', '.join(result['fields'])}")
        else:
            output_json(result)

    except (ValueError, InvalidValueError) as e:
        exit_with_error(ctx, text, str(e), "Pass a valid path and JSON object", 2)

    except DocumentNotFoundError as e:
        exit_with_error(ctx, text, str(e), "Drop --no-create to create the document", 1)

    except DocStoreError as e:
        exit_with_error(ctx, text, str(e), "Check project, database and credentials", 3)


@click.command("server-timestamp")
@click.argument("collection")
@click.argument("document_id")
@click.option("--field", default="timestamp", show_default=True, help="Field to set")
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
def server_timestamp_command(
    ctx: click.Context,
    collection: str,
    document_id: str,
    field: str,
    project: str | None,
    database: str,
    text: bool,
    verbose: int,
) -> None:
    """Set a field to the server's commit time.

    Examples:

    \b
        firestore-tool docstore server-timestamp objects some-id

    \b
        firestore-tool docstore server-timestamp objects some-id --field last_seen
    """
    setup_logging(verbose)

    try:
        validate_collection_path(collection)
        validate_document_id(document_id)

        logger.info(f"Setting server timestamp on '{collection}/{document_id}.{field}'")

        client = FirestoreClient(project, database)
        result = set_server_timestamp(client, collection, document_id, field)

        if text:
            output_text(f"✅ {collection}/{result['id']}.{field} set to server time")
        else:
            output_json(result)

    except ValueError as e:
        exit_with_error(ctx, text, str(e), "Pass a valid collection and document id", 2)

    except DocStoreError as e:
        exit_with_error(ctx, text, str(e), "Check project, database and credentials", 3)


@click.command("delete")
@click.argument("collection")
@click.argument("document_id")
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
def delete_command(
    ctx: click.Context,
    collection: str,
    document_id: str,
    project: str | None,
    database: str,
    text: bool,
    verbose: int,
) -> None:
    """Delete a document.

    Deletion is idempotent - deleting a missing document succeeds.
    Subcollections of the document are not deleted.

    Examples:

    \b
        firestore-tool docstore delete cities DC

    \b
    Output Format:
        Returns JSON:
        {"collection": "cities", "id": "DC", "deleted": true}
    """
    setup_logging(verbose)

    try:
        validate_collection_path(collection)
        validate_document_id(document_id)

        logger.info(f"Deleting document '{collection}/{document_id}'")

        client = FirestoreClient(project, database)
        result = delete_document(client, collection, document_id)

        if text:
            output_text(f"✅ Deleted {collection}/{result['id']}")
        else:
            output_json(result)

    except ValueError as e:
        exit_with_error(ctx, text, str(e), "Pass a valid collection and document id", 2)

    except DocStoreError as e:
        exit_with_error(ctx, text, str(e), "Check project, database and credentials", 3)


@click.command("delete-field")
@click.argument("collection")
@click.argument("document_id")
@click.argument("fields", nargs=-1, required=True)
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
def delete_field_command(
    ctx: click.Context,
    collection: str,
    document_id: str,
    fields: tuple[str, ...],
    project: str | None,
    database: str,
    text: bool,
    verbose: int,
) -> None:
    """Remove fields from an existing document.

    FIELDS are field paths; use dots for nested fields. Quote a name that
    itself contains dots or other special characters with backticks.

    Examples:

    \b
        firestore-tool docstore delete-field cities BJ capital

    \b
        firestore-tool docstore delete-field users frank favorites.color age

    \b
        # Remove the top-level field literally named "a.b"
        firestore-tool docstore delete-field cities BJ '`a.b`'
    """
    setup_logging(verbose)

    try:
        validate_collection_path(collection)
        validate_document_id(document_id)

        logger.info(f"Deleting fields {list(fields)} from '{collection}/{document_id}'")

        client = FirestoreClient(project, database)
        result = delete_fields(client, collection, document_id, list(fields))

        if text:
            output_text(f"✅ Removed {', '.join(fields)} from {collection}/{result['id']}")
        else:
            output_json(result)

    except (ValueError, InvalidValueError) as e:
        exit_with_error(ctx, text, str(e), "Pass a valid path and field names", 2)

    except DocumentNotFoundError as e:
        exit_with_error(ctx, text, str(e), "Create the document first", 1)

    except DocStoreError as e:
        exit_with_error(ctx, text, str(e), "Check project, database and credentials", 3)
