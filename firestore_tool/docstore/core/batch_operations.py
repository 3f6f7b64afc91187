"""
Atomic write batches for docstore.
"""

import json
import time
from typing import Any

from ..constants import MAX_BATCH_WRITES
from ..exceptions import DocStoreError, InvalidValueError
from ..models import WriteAction, WriteOperation
from ..utils import validate_collection_path, validate_document_id
from ..values import decode_document, encode_document, field_paths
from .client import FirestoreClient


def execute_batch(
    client: FirestoreClient,
    operations: list[WriteOperation],
) -> dict[str, Any]:
    """
    Apply several writes atomically in one write batch.

    Either every write is applied or none is. Maximum 500 writes per batch.

    Args:
        client: Firestore client
        operations: Writes to stage, in order

    Returns:
        Dictionary with batch result:
        {
            "success": True,
            "operations_count": 3,
            "timestamp": 1234567890
        }

    Raises:
        DocStoreError: If validation fails or the commit fails
    """
    if not operations:
        raise DocStoreError("Batch requires at least one operation")

    if len(operations) > MAX_BATCH_WRITES:
        raise DocStoreError(f"Batch cannot exceed {MAX_BATCH_WRITES} operations")

    batch = client.new_batch()
    for idx, op in enumerate(operations):
        try:
            _stage(client, batch, op)
        except (DocStoreError, ValueError) as e:
            raise DocStoreError(f"Error building operation {idx}: {e}")

    client.commit(batch)

    return {
        "success": True,
        "operations_count": len(operations),
        "timestamp": int(time.time()),
    }


def _stage(client: FirestoreClient, batch: Any, op: WriteOperation) -> None:
    """Stage one operation on the batch."""
    ref = client.document(op.collection, op.document_id)

    if op.action is WriteAction.DELETE:
        batch.delete(ref)
        return

    if not op.data:
        raise InvalidValueError(f"'{op.action.value}' operation requires 'data'")

    if op.action is WriteAction.SET:
        batch.set(ref, encode_document(op.data, allow_delete=False))
    elif op.action is WriteAction.MERGE:
        batch.set(ref, encode_document(op.data), merge=True)
    elif op.action is WriteAction.UPDATE:
        batch.update(ref, field_paths(encode_document(op.data)))
    else:
        raise DocStoreError(f"Unsupported action: {op.action}")


def parse_operations(raw: list[dict[str, Any]]) -> list[WriteOperation]:
    """
    Build WriteOperations from decoded JSON.

    Raises:
        DocStoreError: If an operation is malformed
    """
    operations: list[WriteOperation] = []
    for idx, entry in enumerate(raw):
        if not isinstance(entry, dict):
            raise DocStoreError(f"Operation {idx} must be an object")

        action = entry.get("action")
        collection = entry.get("collection")
        document_id = entry.get("id")
        if not action or not collection or not document_id:
            raise DocStoreError(f"Operation {idx} must specify action, collection, and id")

        try:
            write_action = WriteAction(str(action).lower())
            validate_collection_path(collection)
            validate_document_id(document_id)
        except ValueError as e:
            raise DocStoreError(f"Operation {idx}: {e}")

        data = entry.get("data") or {}
        if not isinstance(data, dict):
            raise DocStoreError(f"Operation {idx}: 'data' must be an object")

        operations.append(
            WriteOperation(
                action=write_action,
                collection=collection,
                document_id=document_id,
                data=decode_document(data),
            )
        )
    return operations


def load_batch_file(file_path: str) -> list[WriteOperation]:
    """
    Load batch operations from a JSON file.

    Args:
        file_path: Path to JSON file with an "operations" array

    Returns:
        List of operations

    Raises:
        DocStoreError: If file cannot be loaded or is invalid
    """
    try:
        with open(file_path) as f:
            data: dict[str, Any] = json.load(f)
    except json.JSONDecodeError as e:
        raise DocStoreError(f"Invalid JSON in batch file: {e}")
    except FileNotFoundError:
        raise DocStoreError(f"Batch file not found: {file_path}")
    except OSError as e:
        raise DocStoreError(f"Error loading batch file: {e}")

    operations = data.get("operations") if isinstance(data, dict) else None
    if not operations or not isinstance(operations, list):
        raise DocStoreError("Batch file must contain 'operations' array")

    return parse_operations(operations)
