"""Execution stages reported by the sequencer for a resolved operation."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from enum import Enum

from pydantic import Field, field_validator

from .correlation import OperationId
from .value_object import ValueObject


class StageName(str, Enum):
    """Stages of the execution state machine, in protocol order.

    ``COLLECTING_SHARDS -> VALIDATED_BY_SEQUENCERS -> CONSENSUS_REACHED ->
    EXECUTED_ON_TARGET -> {TERMINAL_SUCCESS | RETURNED_TO_ORIGIN | ROLLED_BACK}``
    """

    COLLECTING_SHARDS = "COLLECTING_SHARDS"
    VALIDATED_BY_SEQUENCERS = "VALIDATED_BY_SEQUENCERS"
    CONSENSUS_REACHED = "CONSENSUS_REACHED"
    EXECUTED_ON_TARGET = "EXECUTED_ON_TARGET"
    TERMINAL_SUCCESS = "TERMINAL_SUCCESS"
    RETURNED_TO_ORIGIN = "RETURNED_TO_ORIGIN"
    ROLLED_BACK = "ROLLED_BACK"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STAGES

    @property
    def is_origin_side(self) -> bool:
        return self in ORIGIN_SIDE_STAGES


TERMINAL_STAGES = frozenset(
    {StageName.TERMINAL_SUCCESS, StageName.RETURNED_TO_ORIGIN, StageName.ROLLED_BACK}
)
SUCCESS_STAGES = frozenset({StageName.TERMINAL_SUCCESS, StageName.RETURNED_TO_ORIGIN})
ORIGIN_SIDE_STAGES = frozenset(
    {
        StageName.COLLECTING_SHARDS,
        StageName.VALIDATED_BY_SEQUENCERS,
        StageName.CONSENSUS_REACHED,
    }
)


class StageNote(ValueObject):
    """Structured failure detail attached to a stage."""

    error_name: str | None = None
    message: str | None = None


class ExecutionStage(ValueObject):
    """One entry of an operation's append-only progress history."""

    name: StageName = Field(alias="stageName")
    timestamp: datetime
    note: StageNote | None = None
    transactions: tuple[str, ...] = ()

    @field_validator("timestamp")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @field_validator("transactions", mode="before")
    @classmethod
    def _none_is_empty(cls, value: object) -> object:
        return () if value is None else value

    def same_event(self, other: ExecutionStage) -> bool:
        """Two reports describe the same stage if name and timestamp agree."""
        return self.name is other.name and self.timestamp == other.timestamp


class StageHistory(ValueObject):
    """Stages observed so far for one operation, oldest first."""

    operation_id: OperationId
    stages: tuple[ExecutionStage, ...] = ()

    @field_validator("stages")
    @classmethod
    def _oldest_first(
        cls, value: tuple[ExecutionStage, ...]
    ) -> tuple[ExecutionStage, ...]:
        # sorted() is stable, so equal timestamps keep the reported order.
        return tuple(sorted(value, key=lambda stage: stage.timestamp))

    @property
    def latest(self) -> ExecutionStage | None:
        return self.stages[-1] if self.stages else None

    @property
    def names(self) -> tuple[StageName, ...]:
        return tuple(stage.name for stage in self.stages)

    @property
    def terminal_stage(self) -> ExecutionStage | None:
        """Latest terminal stage reported, if any."""
        for stage in reversed(self.stages):
            if stage.name.is_terminal:
                return stage
        return None

    def last(self, name: StageName) -> ExecutionStage | None:
        """Latest stage called ``name``, if any."""
        for stage in reversed(self.stages):
            if stage.name is name:
                return stage
        return None

    @property
    def is_terminal(self) -> bool:
        return self.terminal_stage is not None

    def has(self, name: StageName) -> bool:
        return name in self.names

    def extends(self, previous: StageHistory) -> bool:
        """True if this history keeps every stage of ``previous`` as its prefix."""
        if len(self.stages) < len(previous.stages):
            return False
        return all(
            mine.same_event(theirs)
            for mine, theirs in zip(self.stages, previous.stages)
        )


def stage_durations(history: StageHistory) -> list[tuple[StageName, timedelta]]:
    """Time spent reaching each stage from the one before it.

    The first stage has no predecessor and is reported with a zero duration.
    """
    durations: list[tuple[StageName, timedelta]] = []
    previous: datetime | None = None
    for stage in history.stages:
        elapsed = timedelta(0) if previous is None else stage.timestamp - previous
        durations.append((stage.name, elapsed))
        previous = stage.timestamp
    return durations
