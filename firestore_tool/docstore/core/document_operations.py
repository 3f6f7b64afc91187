"""
Single-document operations for docstore.
"""

from typing import Any

from google.cloud import firestore

from ..exceptions import DocumentNotFoundError, InvalidValueError
from ..values import encode_document, field_paths, to_json
from .client import FirestoreClient


def set_document(
    client: FirestoreClient,
    collection: str,
    document_id: str,
    data: Any,
    merge: bool = False,
) -> dict[str, Any]:
    """
    Write a document under a known id.

    Without merge the document is replaced entirely (created if missing).
    Data may be a mapping or a dataclass entity.

    Args:
        client: Firestore client
        collection: Collection path
        document_id: Document id
        data: Document data
        merge: Merge into the existing document instead of replacing it

    Returns:
        Write result data

    Raises:
        InvalidValueError: If data holds a delete marker without merge
    """
    payload = encode_document(data, allow_delete=merge)
    ref = client.document(collection, document_id)
    result = client.set(ref, payload, merge=merge)

    return {
        "collection": collection,
        "id": ref.id,
        "merge": merge,
        "update_time": _update_time(result),
    }


def add_document(client: FirestoreClient, collection: str, data: Any) -> dict[str, Any]:
    """
    Create a document with an auto-generated id.

    Returns:
        Write result data including the generated id
    """
    payload = encode_document(data, allow_delete=False)
    ref = client.document(collection)
    result = client.create(ref, payload)

    return {"collection": collection, "id": ref.id, "update_time": _update_time(result)}


def new_document_id(client: FirestoreClient, collection: str) -> str:
    """Reserve an auto-generated document id without writing anything."""
    return client.document(collection).id


def update_document(
    client: FirestoreClient,
    collection: str,
    document_id: str,
    data: Any,
    create_if_missing: bool = True,
) -> dict[str, Any]:
    """
    Update fields of a document.

    Nested mappings are merged field by field, so untouched nested keys
    survive. With create_if_missing the document is created when absent;
    otherwise a missing document is an error.

    Raises:
        DocumentNotFoundError: If create_if_missing is False and the document is missing
    """
    payload = encode_document(data, allow_delete=True)
    if not payload:
        raise InvalidValueError("Update requires at least one field")

    ref = client.document(collection, document_id)
    if create_if_missing:
        result = client.set(ref, payload, merge=True)
    else:
        result = client.update(ref, field_paths(payload))

    return {
        "collection": collection,
        "id": ref.id,
        "fields": sorted(payload),
        "update_time": _update_time(result),
    }


def set_server_timestamp(
    client: FirestoreClient, collection: str, document_id: str, field: str
) -> dict[str, Any]:
    """Set one field to the server's commit time, creating the document if needed."""
    ref = client.document(collection, document_id)
    result = client.set(ref, {field: firestore.SERVER_TIMESTAMP}, merge=True)

    return {
        "collection": collection,
        "id": ref.id,
        "field": field,
        "update_time": _update_time(result),
    }


def delete_fields(
    client: FirestoreClient, collection: str, document_id: str, fields: list[str]
) -> dict[str, Any]:
    """
    Remove fields from an existing document.

    Each entry is a field path: "stats.visits" removes a nested field, and a
    name containing dots or other special characters is removed literally
    when backtick-quoted ("`a.b`", see values.quote_field).

    Raises:
        DocumentNotFoundError: If the document does not exist
    """
    if not fields:
        raise InvalidValueError("At least one field is required")

    ref = client.document(collection, document_id)
    result = client.update(ref, {field: firestore.DELETE_FIELD for field in fields})

    return {
        "collection": collection,
        "id": ref.id,
        "deleted_fields": list(fields),
        "update_time": _update_time(result),
    }


def delete_document(client: FirestoreClient, collection: str, document_id: str) -> dict[str, Any]:
    """
    Delete a document.

    Deletion is idempotent - deleting a missing document succeeds.
    """
    ref = client.document(collection, document_id)
    client.delete(ref)

    return {"collection": collection, "id": ref.id, "deleted": True}


def get_document(client: FirestoreClient, collection: str, document_id: str) -> dict[str, Any]:
    """
    Read a document.

    Raises:
        DocumentNotFoundError: If the document does not exist
    """
    ref = client.document(collection, document_id)
    snapshot = client.get(ref)

    if not snapshot.exists:
        raise DocumentNotFoundError(
            f"Document '{collection}/{document_id}' not found. "
            f"Use 'firestore-tool docstore set {collection} {document_id} <json>' to create it."
        )

    return {
        "collection": collection,
        "id": snapshot.id,
        "data": to_json(snapshot.to_dict() or {}),
        "create_time": _timestamp(snapshot.create_time),
        "update_time": _timestamp(snapshot.update_time),
    }


def _update_time(result: Any) -> str | None:
    return _timestamp(getattr(result, "update_time", None))


def _timestamp(value: Any) -> str | None:
    if value is None:
        return None
    return value.isoformat() if hasattr(value, "isoformat") else str(value)
