"""Tests for BatchQueryCoordinator."""

from __future__ import annotations

import pytest

from crosschain_ops import (
    NOT_YET_AVAILABLE,
    BatchItemResult,
    CorrelationHandle,
    FetchError,
    InMemoryStatusService,
    OperationId,
    OperationTracker,
    SimplifiedStatus,
    StageHistory,
    StageName,
)


def _handle(key: str) -> CorrelationHandle:
    return CorrelationHandle(caller="c", shards_key=key, shard_count=1)


class TestBatchItemResult:
    def test_ok(self) -> None:
        result = BatchItemResult.ok("op-1")
        assert result.available
        assert result.unwrap() == "op-1"

    def test_pending(self) -> None:
        result: BatchItemResult[str] = BatchItemResult.pending()
        assert not result.available
        assert result.value is NOT_YET_AVAILABLE
        with pytest.raises(LookupError):
            result.unwrap()

    def test_failed(self) -> None:
        error = FetchError("down")
        result: BatchItemResult[str] = BatchItemResult.failed(error)
        assert not result.available
        with pytest.raises(FetchError):
            result.unwrap()


class TestResolveMany:
    @pytest.mark.asyncio
    async def test_each_handle_gets_its_own_result(
        self, ops: OperationTracker, sequencer: InMemoryStatusService
    ) -> None:
        sequencer.assign("c", "known")
        results = await ops.resolve_many([_handle("known"), _handle("unknown")])
        assert results[_handle("known")].unwrap() == "op-1"
        assert results[_handle("unknown")].value is NOT_YET_AVAILABLE
        assert results[_handle("unknown")].error is None

    @pytest.mark.asyncio
    async def test_single_round_trip_and_dedup(
        self, ops: OperationTracker, sequencer: InMemoryStatusService
    ) -> None:
        sequencer.assign("c", "a")
        handles = [_handle("a"), _handle("b"), _handle("a")]
        results = await ops.resolve_many(handles)
        assert list(results) == [_handle("a"), _handle("b")]
        assert sequencer.calls["get_operation_ids"] == 1

    @pytest.mark.asyncio
    async def test_memoized_handles_are_not_refetched(
        self, ops: OperationTracker, sequencer: InMemoryStatusService
    ) -> None:
        sequencer.assign("c", "a")
        await ops.resolve_operation_id(_handle("a"))
        results = await ops.resolve_many([_handle("a")])
        assert results[_handle("a")].unwrap() == "op-1"
        assert sequencer.calls["get_operation_ids"] == 0

    @pytest.mark.asyncio
    async def test_failed_round_trip_marks_every_key(
        self, ops: OperationTracker, sequencer: InMemoryStatusService
    ) -> None:
        sequencer.fail_next(error=FetchError("sequencer down"))
        results = await ops.resolve_many([_handle("a"), _handle("b")])
        assert len(results) == 2
        for result in results.values():
            assert isinstance(result.error, FetchError)

    @pytest.mark.asyncio
    async def test_batch_answers_feed_the_memo(
        self, ops: OperationTracker, sequencer: InMemoryStatusService
    ) -> None:
        sequencer.assign("c", "a")
        await ops.resolve_many([_handle("a")])
        assert ops.resolver.cached(_handle("a")) == "op-1"


class TestStageHistories:
    @pytest.mark.asyncio
    async def test_known_and_unknown_ids(
        self, ops: OperationTracker, sequencer: InMemoryStatusService
    ) -> None:
        op = sequencer.assign("c", "a")
        results = await ops.get_stage_histories([op, OperationId("missing")])
        history = results[op].unwrap()
        assert isinstance(history, StageHistory)
        assert history.names == (StageName.COLLECTING_SHARDS,)
        assert results[OperationId("missing")].value is NOT_YET_AVAILABLE

    @pytest.mark.asyncio
    async def test_omitted_id_falls_back_to_held_view(
        self, ops: OperationTracker, sequencer: InMemoryStatusService
    ) -> None:
        op = sequencer.assign("c", "a")
        await ops.get_stage_history(op)
        sequencer.clear()
        results = await ops.get_stage_histories([op])
        assert results[op].unwrap().names == (StageName.COLLECTING_SHARDS,)

    @pytest.mark.asyncio
    async def test_batch_reads_never_shrink_the_held_view(
        self, ops: OperationTracker, sequencer: InMemoryStatusService
    ) -> None:
        op = sequencer.assign("c", "a")
        sequencer.advance(
            op, StageName.VALIDATED_BY_SEQUENCERS, StageName.CONSENSUS_REACHED
        )
        await ops.get_stage_history(op)
        sequencer.set_history(op, (await ops.get_stage_history(op)).stages[:1])
        results = await ops.get_stage_histories([op])
        assert len(results[op].unwrap().stages) == 3
        assert ops.tracker.last_observed(op) == results[op].unwrap()

    @pytest.mark.asyncio
    async def test_failed_round_trip_marks_every_id(
        self, ops: OperationTracker, sequencer: InMemoryStatusService
    ) -> None:
        sequencer.fail_next()
        ids = [OperationId("op-a"), OperationId("op-b")]
        results = await ops.get_stage_histories(ids)
        assert set(results) == set(ids)
        assert all(r.error is not None for r in results.values())

    @pytest.mark.asyncio
    async def test_empty_input(self, ops: OperationTracker) -> None:
        assert await ops.get_stage_histories([]) == {}

    @pytest.mark.asyncio
    async def test_statuses(
        self, ops: OperationTracker, sequencer: InMemoryStatusService
    ) -> None:
        done = sequencer.assign("c", "a")
        sequencer.advance(
            done, StageName.EXECUTED_ON_TARGET, StageName.TERMINAL_SUCCESS
        )
        running = sequencer.assign("c", "b")
        results = await ops.get_statuses([done, running, OperationId("missing")])
        assert results[done].unwrap().simplified is SimplifiedStatus.SUCCESSFUL
        assert results[running].unwrap().simplified is SimplifiedStatus.PENDING
        assert not results[OperationId("missing")].available
