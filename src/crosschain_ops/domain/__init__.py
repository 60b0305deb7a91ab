from .correlation import CorrelationHandle, OperationId
from .results import NOT_YET_AVAILABLE, BatchItemResult, Maybe, NotYetAvailable
from .stages import (
    ORIGIN_SIDE_STAGES,
    SUCCESS_STAGES,
    TERMINAL_STAGES,
    ExecutionStage,
    StageHistory,
    StageName,
    StageNote,
    stage_durations,
)
from .status import OperationStatus, OperationType, SimplifiedStatus, classify_history
from .value_object import ValueObject

__all__ = [
    "BatchItemResult",
    "CorrelationHandle",
    "ExecutionStage",
    "Maybe",
    "NOT_YET_AVAILABLE",
    "NotYetAvailable",
    "ORIGIN_SIDE_STAGES",
    "OperationId",
    "OperationStatus",
    "OperationType",
    "SUCCESS_STAGES",
    "SimplifiedStatus",
    "StageHistory",
    "StageName",
    "StageNote",
    "TERMINAL_STAGES",
    "ValueObject",
    "classify_history",
    "stage_durations",
]
