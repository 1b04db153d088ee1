"""Envelope — the {data, status} wire container returned for every command.

Invariants:
    - Wire shape is exactly {"data":<value-or-null>,"status":<true|false|null>}
    - data and status are set together by whoever builds the Envelope
    - status=None is reserved for "never reached the server" (client-side only);
      no server code path produces it

Design Decisions:
    - pydantic BaseModel over hand-assembled strings: model_dump_json() emits
      compact JSON in field order and already knows datetimes, UUIDs, enums,
      dataclasses and nested models (ADR: no string concatenation on the wire)
"""

from typing import Any

from pydantic import BaseModel


class Envelope(BaseModel):
    """Result of one command call."""

    data: Any = None
    status: bool | None = None

    @classmethod
    def success(cls, data: Any = None) -> "Envelope":
        return cls(data=data, status=True)

    @classmethod
    def failure(cls, message: Any) -> "Envelope":
        return cls(data=message, status=False)

    def to_json_bytes(self) -> bytes:
        """Serialize to the UTF-8 wire format."""
        return self.model_dump_json().encode("utf-8")
