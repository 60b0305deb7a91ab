"""Wire models for the sequencer status API (camelCase JSON)."""

from __future__ import annotations

from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ...domain.stages import ExecutionStage, StageHistory

T = TypeVar("T")


class WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class Envelope(WireModel, Generic[T]):
    """Every endpoint wraps its payload as ``{"response": ...}``."""

    response: T


class HandleQuery(WireModel):
    caller: str
    shards_key: str


class OperationIdsRequest(WireModel):
    items: list[HandleQuery]


class OperationIdEntry(WireModel):
    caller: str
    shards_key: str
    operation_id: str | None = None


class StageHistoryPayload(WireModel):
    operation_id: str
    stages: list[ExecutionStage] = Field(default_factory=list)

    def to_domain(self) -> StageHistory:
        return StageHistory(operation_id=self.operation_id, stages=tuple(self.stages))


class StageHistoriesRequest(WireModel):
    operation_ids: list[str]


def dump(model: BaseModel) -> dict[str, Any]:
    return model.model_dump(mode="json", by_alias=True)
