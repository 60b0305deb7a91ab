"""Derived operation status and traffic-pattern classification."""

from __future__ import annotations

from enum import Enum

from .correlation import OperationId
from .stages import SUCCESS_STAGES, ExecutionStage, StageHistory, StageName, StageNote
from .value_object import ValueObject


class SimplifiedStatus(str, Enum):
    """UI-level projection of an operation's progress."""

    PENDING = "PENDING"
    SUCCESSFUL = "SUCCESSFUL"
    FAILED = "FAILED"
    # Only produced by by-handle queries whose handle has not resolved yet.
    OPERATION_ID_NOT_FOUND = "OPERATION_ID_NOT_FOUND"

    @property
    def is_terminal(self) -> bool:
        return self in (SimplifiedStatus.SUCCESSFUL, SimplifiedStatus.FAILED)


class OperationType(str, Enum):
    """Traffic pattern of a resolved operation."""

    ORIGIN_TO_TARGET = "ORIGIN_TO_TARGET"
    ORIGIN_TO_TARGET_TO_ORIGIN = "ORIGIN_TO_TARGET_TO_ORIGIN"
    RETURN = "RETURN"
    ROLLBACK = "ROLLBACK"
    UNDETERMINED = "UNDETERMINED"


class OperationStatus(ValueObject):
    """Status of one operation as seen in its latest stage history."""

    operation_id: OperationId
    stage: ExecutionStage | None = None
    success: bool = False
    simplified: SimplifiedStatus = SimplifiedStatus.PENDING
    note: StageNote | None = None

    @property
    def is_terminal(self) -> bool:
        return self.simplified.is_terminal

    @property
    def error_name(self) -> str | None:
        return self.note.error_name if self.note else None

    @classmethod
    def from_history(cls, history: StageHistory) -> OperationStatus:
        """Project a stage history onto the simplified status.

        ``stage`` is always the latest stage. ROLLED_BACK anywhere -> FAILED
        with the rollback note, matching :func:`classify_history`; otherwise
        TERMINAL_SUCCESS or RETURNED_TO_ORIGIN -> SUCCESSFUL; otherwise
        PENDING. A non-terminal stage reported after a terminal one never
        turns the status back into PENDING.
        """
        rollback = history.last(StageName.ROLLED_BACK)
        if rollback is not None:
            return cls(
                operation_id=history.operation_id,
                stage=history.latest,
                success=False,
                simplified=SimplifiedStatus.FAILED,
                note=rollback.note,
            )
        if any(name in SUCCESS_STAGES for name in history.names):
            return cls(
                operation_id=history.operation_id,
                stage=history.latest,
                success=True,
                simplified=SimplifiedStatus.SUCCESSFUL,
            )
        return cls(operation_id=history.operation_id, stage=history.latest)


def classify_history(history: StageHistory) -> OperationType:
    """Derive the traffic pattern from the stages observed so far.

    ROLLED_BACK wins over everything else. Otherwise nothing can be said
    before EXECUTED_ON_TARGET, and a one-way operation is only recognised once
    it reports TERMINAL_SUCCESS. A RETURNED_TO_ORIGIN history without any
    origin-side stage is the return leg observed on its own.
    """
    if history.has(StageName.ROLLED_BACK):
        return OperationType.ROLLBACK
    if not history.has(StageName.EXECUTED_ON_TARGET):
        return OperationType.UNDETERMINED
    if history.has(StageName.RETURNED_TO_ORIGIN):
        if any(name.is_origin_side for name in history.names):
            return OperationType.ORIGIN_TO_TARGET_TO_ORIGIN
        return OperationType.RETURN
    if history.has(StageName.TERMINAL_SUCCESS):
        return OperationType.ORIGIN_TO_TARGET
    return OperationType.UNDETERMINED
