"""
Transactional read-modify-write operations for docstore.
"""

import time
from typing import Any

from google.cloud.firestore_v1.transaction import Transaction

from ..exceptions import DocumentNotFoundError, InvalidValueError, LimitExceededError
from .client import FirestoreClient


def increment_field(
    client: FirestoreClient,
    collection: str,
    document_id: str,
    field: str,
    amount: int | float = 1,
    max_value: int | float | None = None,
) -> dict[str, Any]:
    """
    Atomically add amount to a numeric field.

    The document is read through the transaction, so concurrent writers cause
    the SDK to retry the whole read-modify-write. If max_value is given and
    the new value would exceed it, nothing is written and the transaction is
    rolled back.

    Args:
        client: Firestore client
        collection: Collection path
        document_id: Document id
        field: Field path of the number to increment
        amount: Amount to add (negative to decrement)
        max_value: Ceiling the new value may not exceed (optional)

    Returns:
        Dictionary with the previous and new value:
        {
            "collection": "cities",
            "id": "SF",
            "field": "population",
            "previous": 860000,
            "value": 860001,
            "timestamp": 1234567890
        }

    Raises:
        DocumentNotFoundError: If the document does not exist
        InvalidValueError: If the field is missing or not a number
        LimitExceededError: If the new value exceeds max_value
        TransactionAbortedError: If contention persists
    """
    ref = client.document(collection, document_id)

    def _increment(transaction: Transaction) -> tuple[Any, Any]:
        snapshot = ref.get(transaction=transaction)
        if not snapshot.exists:
            raise DocumentNotFoundError(f"Document '{collection}/{document_id}' not found")

        data = snapshot.to_dict() or {}
        current = _lookup(data, field)
        if isinstance(current, bool) or not isinstance(current, (int, float)):
            raise InvalidValueError(
                f"Field '{field}' of '{collection}/{document_id}' is not a number: {current!r}"
            )

        new_value = current + amount
        if max_value is not None and new_value > max_value:
            raise LimitExceededError(
                f"Field '{field}' would become {new_value}, exceeding the limit of {max_value}"
            )

        transaction.update(ref, {field: new_value})
        return current, new_value

    previous, value = client.run_transaction(_increment)

    return {
        "collection": collection,
        "id": document_id,
        "field": field,
        "previous": previous,
        "value": value,
        "timestamp": int(time.time()),
    }


def _lookup(data: dict[str, Any], field: str) -> Any:
    current: Any = data
    for part in field.split("."):
        if not isinstance(current, dict) or part not in current:
            return None
        current = current[part]
    return current
