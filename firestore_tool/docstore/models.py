"""
Type models for docstore operations.
"""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any


class WriteAction(Enum):
    """Kinds of writes that can be staged in a batch."""

    SET = "set"
    MERGE = "merge"
    UPDATE = "update"
    DELETE = "delete"


@dataclass
class WriteOperation:
    """One write staged in an atomic batch."""

    action: WriteAction
    collection: str
    document_id: str
    data: dict[str, Any] = field(default_factory=dict)


@dataclass
class PurgeResult:
    """Outcome of a completed collection purge."""

    collection: str
    deleted: int = 0
    batches: int = 0
    pages: int = 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
