"""crosschain-ops — correlation and status tracking for sharded cross-chain operations.

Depends on pydantic for value objects and httpx for the HTTP status adapter.
"""

from __future__ import annotations

# ── Adapters ────────────────────────────────────────────────────
from .adapters.http import HttpStatusService
from .adapters.memory import InMemoryShardTransport, InMemoryStatusService

# ── Components ──────────────────────────────────────────────────
from .batch import BatchQueryCoordinator
from .classifier import OperationTypeClassifier
from .client import OperationTracker
from .config import SequencerConfig

# ── Domain ───────────────────────────────────────────────────────
from .domain import (
    NOT_YET_AVAILABLE,
    BatchItemResult,
    CorrelationHandle,
    ExecutionStage,
    NotYetAvailable,
    OperationId,
    OperationStatus,
    OperationType,
    SimplifiedStatus,
    StageHistory,
    StageName,
    StageNote,
    classify_history,
    stage_durations,
)
from .linker import ShardLinker

# ── Ports ────────────────────────────────────────────────────────
from .ports import IShardTransport, IStatusService, ShardAcceptance

# ── Primitives ──────────────────────────────────────────────────
from .primitives import (
    CrossChainOpsError,
    ErrorKind,
    FetchError,
    IShardsKeyGenerator,
    OperationAbortedError,
    RandomShardsKeyGenerator,
    TrackingTimeoutError,
    ValidationError,
)
from .resolver import OperationResolver
from .retry import RetryPolicy, poll
from .tracker import StageTracker

__all__: list[str] = [
    # Domain
    "BatchItemResult",
    "CorrelationHandle",
    "ExecutionStage",
    "NOT_YET_AVAILABLE",
    "NotYetAvailable",
    "OperationId",
    "OperationStatus",
    "OperationType",
    "SimplifiedStatus",
    "StageHistory",
    "StageName",
    "StageNote",
    "classify_history",
    "stage_durations",
    # Components
    "BatchQueryCoordinator",
    "OperationResolver",
    "OperationTracker",
    "OperationTypeClassifier",
    "SequencerConfig",
    "ShardLinker",
    "StageTracker",
    "RetryPolicy",
    "poll",
    # Ports
    "IShardTransport",
    "IStatusService",
    "ShardAcceptance",
    # Primitives
    "CrossChainOpsError",
    "ErrorKind",
    "FetchError",
    "IShardsKeyGenerator",
    "OperationAbortedError",
    "RandomShardsKeyGenerator",
    "TrackingTimeoutError",
    "ValidationError",
    # Adapters
    "HttpStatusService",
    "InMemoryShardTransport",
    "InMemoryStatusService",
]
