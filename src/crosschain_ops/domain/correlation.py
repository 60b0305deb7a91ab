"""Correlation handle — the key that links shard transactions into one operation."""

from __future__ import annotations

from typing import Any, NewType

import pydantic
from pydantic import Field

from ..primitives.exceptions import ValidationError
from .value_object import ValueObject

OperationId = NewType("OperationId", str)
"""Opaque identifier assigned by the sequencer once it has observed the shards."""


class CorrelationHandle(ValueObject):
    """``(caller, shards_key, shard_count)`` shared by every shard of an operation.

    The handle is the only thing a caller needs to persist to re-resolve an
    operation after a restart: dump it with :meth:`to_wire` and load it back
    with :meth:`from_wire`.
    """

    caller: str = Field(min_length=1)
    shards_key: str = Field(min_length=1)
    shard_count: int = Field(ge=1, strict=True)

    @classmethod
    def from_wire(cls, data: dict[str, Any]) -> CorrelationHandle:
        """Rebuild a handle from its persisted camelCase form."""
        try:
            return cls.model_validate(data)
        except pydantic.ValidationError as exc:
            raise ValidationError(_errors_by_field(exc)) from exc

    def __str__(self) -> str:
        return f"{self.caller}:{self.shards_key}/{self.shard_count}"


def _errors_by_field(exc: pydantic.ValidationError) -> dict[str, list[str]]:
    errors: dict[str, list[str]] = {}
    for err in exc.errors():
        field = ".".join(str(part) for part in err["loc"]) or "__root__"
        errors.setdefault(field, []).append(err["msg"])
    return errors
