"""Tests for operation-type classification."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from crosschain_ops import (
    ExecutionStage,
    InMemoryStatusService,
    OperationId,
    OperationType,
    OperationTypeClassifier,
    StageHistory,
    StageName,
    StageTracker,
    classify_history,
)

T0 = datetime(2025, 1, 1, tzinfo=timezone.utc)

S = StageName


def _history(*names: StageName) -> StageHistory:
    return StageHistory(
        operation_id="op-1",
        stages=tuple(
            ExecutionStage(name=name, timestamp=T0 + timedelta(seconds=i))
            for i, name in enumerate(names)
        ),
    )


@pytest.mark.parametrize(
    ("names", "expected"),
    [
        ((), OperationType.UNDETERMINED),
        ((S.COLLECTING_SHARDS, S.CONSENSUS_REACHED), OperationType.UNDETERMINED),
        (
            (S.COLLECTING_SHARDS, S.EXECUTED_ON_TARGET),
            OperationType.UNDETERMINED,
        ),
        (
            (S.COLLECTING_SHARDS, S.EXECUTED_ON_TARGET, S.TERMINAL_SUCCESS),
            OperationType.ORIGIN_TO_TARGET,
        ),
        (
            (
                S.COLLECTING_SHARDS,
                S.VALIDATED_BY_SEQUENCERS,
                S.EXECUTED_ON_TARGET,
                S.RETURNED_TO_ORIGIN,
            ),
            OperationType.ORIGIN_TO_TARGET_TO_ORIGIN,
        ),
        ((S.EXECUTED_ON_TARGET, S.RETURNED_TO_ORIGIN), OperationType.RETURN),
        (
            (S.COLLECTING_SHARDS, S.EXECUTED_ON_TARGET, S.ROLLED_BACK),
            OperationType.ROLLBACK,
        ),
        ((S.COLLECTING_SHARDS, S.ROLLED_BACK), OperationType.ROLLBACK),
    ],
)
def test_classify_history(
    names: tuple[StageName, ...], expected: OperationType
) -> None:
    assert classify_history(_history(*names)) is expected


@pytest.mark.asyncio
async def test_classifier_follows_live_progress(
    sequencer: InMemoryStatusService,
) -> None:
    op = OperationId("op-1")
    classifier = OperationTypeClassifier(StageTracker(sequencer))
    sequencer.assign("c", "k", op)
    assert await classifier.classify(op) is OperationType.UNDETERMINED
    sequencer.advance(op, S.VALIDATED_BY_SEQUENCERS, S.EXECUTED_ON_TARGET)
    assert await classifier.classify(op) is OperationType.UNDETERMINED
    sequencer.advance(op, S.RETURNED_TO_ORIGIN)
    assert await classifier.classify(op) is OperationType.ORIGIN_TO_TARGET_TO_ORIGIN


@pytest.mark.asyncio
async def test_unknown_operation_is_undetermined(
    sequencer: InMemoryStatusService,
) -> None:
    classifier = OperationTypeClassifier(StageTracker(sequencer))
    assert await classifier.classify(OperationId("nope")) is OperationType.UNDETERMINED
