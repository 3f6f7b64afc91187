"""CLI entry point for firestore-tool."""

import click

from firestore_tool.docstore.commands.batch_commands import batch_command
from firestore_tool.docstore.commands.collection_commands import (
    delete_collection_command,
    purge_command,
)
from firestore_tool.docstore.commands.document_commands import (
    add_command,
    delete_command,
    delete_field_command,
    get_command,
    server_timestamp_command,
    set_command,
    update_command,
)
from firestore_tool.docstore.commands.transaction_commands import increment_command


@click.group()
@click.version_option(version="0.1.0")
def main() -> None:
    """A CLI for reading and writing Cloud Firestore documents"""
    pass


@main.group("docstore")
def docstore() -> None:
    """Firestore document, transaction, batch and purge operations"""
    pass


# Register document commands
docstore.add_command(set_command)
docstore.add_command(add_command)
docstore.add_command(get_command)
docstore.add_command(update_command)
docstore.add_command(server_timestamp_command)
docstore.add_command(delete_command)
docstore.add_command(delete_field_command)

# Register transaction commands
docstore.add_command(increment_command)

# Register batch commands
docstore.add_command(batch_command)

# Register collection commands
docstore.add_command(purge_command)
docstore.add_command(delete_collection_command)  # Alias for purge

if __name__ == "__main__":
    main()
