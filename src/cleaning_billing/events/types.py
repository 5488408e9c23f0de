"""Change events published by the record store.

Events are immutable and carry just enough to route them: the entity kind,
the operation, the record id and the owning user. Subscribers re-read the
store rather than trusting event payloads.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from cleaning_billing.models.base import EntityKind, utcnow


class ChangeOperation(str, Enum):
    """Kind of write that produced the event."""

    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True)
class ChangeEvent:
    """A committed write against one record."""

    kind: EntityKind
    operation: ChangeOperation
    record_id: UUID
    owner_id: UUID | None = None
    changed_fields: tuple[str, ...] = ()
    event_id: UUID = field(default_factory=uuid4)
    timestamp: datetime = field(default_factory=utcnow)

    @property
    def event_type(self) -> str:
        """Routing name, e.g. ``hours_worked.update``."""
        return f"{self.kind.value}.{self.operation.value}"

    def to_dict(self) -> dict[str, Any]:
        """Serialize event to dictionary."""
        return _serialize_dict(asdict(self))

    def to_json(self) -> str:
        """Serialize event to JSON string."""
        return json.dumps(self.to_dict(), default=str)


def _serialize_dict(obj: Any) -> Any:
    """Recursively serialize objects for JSON compatibility."""
    if isinstance(obj, dict):
        return {k: _serialize_dict(v) for k, v in obj.items()}
    elif isinstance(obj, (list, tuple)):
        return [_serialize_dict(v) for v in obj]
    elif isinstance(obj, UUID):
        return str(obj)
    elif isinstance(obj, (datetime, date)):
        return obj.isoformat()
    elif isinstance(obj, Decimal):
        return str(obj)
    elif isinstance(obj, Enum):
        return obj.value
    return obj
