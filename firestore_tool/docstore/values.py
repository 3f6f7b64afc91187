"""
Tagged document values and their conversion to and from Firestore payloads.

Documents are open-ended mappings, but every value written through this tool
is first normalized into one of the variants below so that encoding for the
SDK is checked in one place.
"""

import dataclasses
import re
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Union

from google.cloud import firestore

from .constants import MARKER_DELETE, MARKER_SERVER_TIMESTAMP, MARKER_TIMESTAMP
from .exceptions import InvalidValueError

_SIMPLE_FIELD = re.compile(r"^[_a-zA-Z][_a-zA-Z0-9]*$")


@dataclass(frozen=True)
class NullValue:
    pass


@dataclass(frozen=True)
class BoolValue:
    value: bool


@dataclass(frozen=True)
class NumberValue:
    value: int | float


@dataclass(frozen=True)
class TextValue:
    value: str


@dataclass(frozen=True)
class TimestampValue:
    value: datetime


@dataclass(frozen=True)
class SequenceValue:
    items: tuple["Value", ...]


@dataclass(frozen=True)
class MappingValue:
    fields: dict[str, "Value"]


@dataclass(frozen=True)
class DeleteMarker:
    """Removes the field it is assigned to."""


@dataclass(frozen=True)
class ServerTimestampMarker:
    """Replaced by the commit time on the server."""


Value = Union[
    NullValue,
    BoolValue,
    NumberValue,
    TextValue,
    TimestampValue,
    SequenceValue,
    MappingValue,
    DeleteMarker,
    ServerTimestampMarker,
]

DELETE = DeleteMarker()
SERVER_TIMESTAMP = ServerTimestampMarker()

_VALUE_TYPES = (
    NullValue,
    BoolValue,
    NumberValue,
    TextValue,
    TimestampValue,
    SequenceValue,
    MappingValue,
    DeleteMarker,
    ServerTimestampMarker,
)


def from_python(obj: Any) -> Value:
    """
    Normalize a native Python object into a Value.

    Dataclass instances are treated as entities and converted field by field.

    Raises:
        InvalidValueError: If the object has no document representation
    """
    if isinstance(obj, _VALUE_TYPES):
        return obj
    if obj is None:
        return NullValue()
    # bool is an int subclass
    if isinstance(obj, bool):
        return BoolValue(obj)
    if isinstance(obj, (int, float)):
        return NumberValue(obj)
    if isinstance(obj, str):
        return TextValue(obj)
    if isinstance(obj, datetime):
        return TimestampValue(obj)
    if isinstance(obj, date):
        return TimestampValue(datetime(obj.year, obj.month, obj.day, tzinfo=timezone.utc))
    if isinstance(obj, (list, tuple)):
        return SequenceValue(tuple(from_python(item) for item in obj))
    if isinstance(obj, Mapping):
        return MappingValue({_field_name(k): from_python(v) for k, v in obj.items()})
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return from_python(dataclasses.asdict(obj))
    raise InvalidValueError(f"Unsupported value type: {type(obj).__name__}")


def from_json(obj: Any) -> Value:
    """
    Decode a JSON value, recognizing marker objects.

    Marker objects have exactly one key:
        {"$delete": true}, {"$serverTimestamp": true},
        {"$timestamp": "2024-01-01T00:00:00Z"}
    """
    if isinstance(obj, dict):
        if len(obj) == 1:
            key, marker = next(iter(obj.items()))
            if key == MARKER_DELETE and marker is True:
                return DELETE
            if key == MARKER_SERVER_TIMESTAMP and marker is True:
                return SERVER_TIMESTAMP
            if key == MARKER_TIMESTAMP:
                return TimestampValue(_parse_timestamp(marker))
        return MappingValue({_field_name(k): from_json(v) for k, v in obj.items()})
    if isinstance(obj, list):
        return SequenceValue(tuple(from_json(item) for item in obj))
    return from_python(obj)


def decode_document(obj: dict[str, Any]) -> dict[str, Value]:
    """Decode a JSON object into document fields; the top level is never a marker."""
    return {_field_name(name): from_json(value) for name, value in obj.items()}


def to_firestore(value: Value, allow_delete: bool = True, in_sequence: bool = False) -> Any:
    """
    Encode a Value as the payload the Firestore SDK expects.

    Raises:
        InvalidValueError: If a marker appears where Firestore rejects it
        TypeError: If value is not a Value variant
    """
    if isinstance(value, NullValue):
        return None
    if isinstance(value, (BoolValue, NumberValue, TextValue, TimestampValue)):
        return value.value
    if isinstance(value, SequenceValue):
        return [to_firestore(item, allow_delete, in_sequence=True) for item in value.items]
    if isinstance(value, MappingValue):
        return {
            name: to_firestore(item, allow_delete, in_sequence)
            for name, item in value.fields.items()
        }
    if isinstance(value, DeleteMarker):
        if in_sequence:
            raise InvalidValueError("Delete marker cannot appear inside an array")
        if not allow_delete:
            raise InvalidValueError("Delete marker is only allowed in merge or update writes")
        return firestore.DELETE_FIELD
    if isinstance(value, ServerTimestampMarker):
        if in_sequence:
            raise InvalidValueError("Server timestamp cannot appear inside an array")
        return firestore.SERVER_TIMESTAMP
    raise TypeError(f"Not a document value: {value!r}")


def encode_document(data: Any, allow_delete: bool = True) -> dict[str, Any]:
    """
    Encode document data (mapping, Value mapping or dataclass entity).

    Raises:
        InvalidValueError: If data is not a mapping or holds misplaced markers
    """
    value = from_python(data)
    if not isinstance(value, MappingValue):
        raise InvalidValueError("Document data must be a mapping of field names to values")
    encoded: dict[str, Any] = to_firestore(value, allow_delete=allow_delete)
    return encoded


def to_json(obj: Any) -> Any:
    """Convert document data read from Firestore into JSON-serializable data."""
    if isinstance(obj, datetime):
        return obj.isoformat()
    if isinstance(obj, Mapping):
        return {k: to_json(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [to_json(item) for item in obj]
    if isinstance(obj, bytes):
        return obj.decode("utf-8", errors="replace")
    # DocumentReference
    if hasattr(obj, "path"):
        return obj.path
    if obj is None or isinstance(obj, (bool, int, float, str)):
        return obj
    return str(obj)


def _field_name(key: Any) -> str:
    if not isinstance(key, str) or not key:
        raise InvalidValueError(f"Field names must be non-empty strings, got {key!r}")
    return key


def _parse_timestamp(raw: Any) -> datetime:
    if not isinstance(raw, str):
        raise InvalidValueError(f"{MARKER_TIMESTAMP} expects an ISO-8601 string")
    try:
        parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError as e:
        raise InvalidValueError(f"Invalid timestamp '{raw}': {e}")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def field_paths(payload: dict[str, Any], prefix: str = "") -> dict[str, Any]:
    """
    Flatten an encoded payload into update() field paths.

    update() replaces nested maps wholesale, so nested keys are expanded to
    dotted paths and merge the way set(merge=True) does. Keys that are not
    plain identifiers (such as "a.b" or "zip-code") are backtick-quoted and
    stay literal field names.
    """
    paths: dict[str, Any] = {}
    for name, value in payload.items():
        path = f"{prefix}{quote_field(name)}"
        if isinstance(value, dict) and value:
            paths.update(field_paths(value, f"{path}."))
        else:
            paths[path] = value
    return paths


def quote_field(name: str) -> str:
    """Quote one field name for use as a field path segment."""
    if _SIMPLE_FIELD.match(name):
        return name
    escaped = name.replace("\\", "\\\\").replace("`", "\\`")
    return f"`{escaped}`"
