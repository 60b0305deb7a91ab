"""End-to-end tests for OperationTracker over the in-memory adapters."""

from __future__ import annotations

import asyncio
import logging

import pytest

from crosschain_ops import (
    CorrelationHandle,
    CrossChainOpsError,
    ErrorKind,
    InMemoryShardTransport,
    InMemoryStatusService,
    OperationAbortedError,
    OperationTracker,
    OperationType,
    RetryPolicy,
    SimplifiedStatus,
    StageName,
    StageNote,
    TrackingTimeoutError,
    ValidationError,
)

CALLER = "EQCallerAddress"
PAYLOADS = [b"approve", b"bridge-jetton", b"bridge-ton"]


@pytest.fixture
def transport(sequencer: InMemoryStatusService) -> InMemoryShardTransport:
    return InMemoryShardTransport(sequencer)


class TestSend:
    @pytest.mark.asyncio
    async def test_every_shard_carries_the_same_handle(
        self, ops: OperationTracker, transport: InMemoryShardTransport
    ) -> None:
        handle = ops.link(CALLER, len(PAYLOADS))
        acceptances = await ops.send(handle, PAYLOADS, transport)
        assert [a.index for a in acceptances] == [0, 1, 2]
        assert all(a.accepted and a.tx_hash for a in acceptances)
        assert {sent[0] for sent in transport.sent} == {handle}

    @pytest.mark.asyncio
    async def test_payload_count_must_match(
        self, ops: OperationTracker, transport: InMemoryShardTransport
    ) -> None:
        handle = ops.link(CALLER, 2)
        with pytest.raises(ValidationError) as exc_info:
            await ops.send(handle, PAYLOADS, transport)
        assert "payloads" in exc_info.value.errors
        assert transport.sent == []

    @pytest.mark.asyncio
    async def test_rejected_shard_is_reported(
        self,
        ops: OperationTracker,
        sequencer: InMemoryStatusService,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        transport = InMemoryShardTransport(sequencer, reject={1})
        handle = ops.link(CALLER, len(PAYLOADS))
        with caplog.at_level(logging.WARNING, logger="crosschain_ops.client"):
            acceptances = await ops.send(handle, PAYLOADS, transport)
        assert [a.accepted for a in acceptances] == [True, False, True]
        assert "1 of 3 shard(s)" in caplog.text
        # The sequencer never sees a complete shard set.
        assert (
            await ops.get_simplified_status_by_handle(handle)
            is SimplifiedStatus.OPERATION_ID_NOT_FOUND
        )


class TestTrack:
    @pytest.mark.asyncio
    async def test_link_send_track_success(
        self,
        ops: OperationTracker,
        sequencer: InMemoryStatusService,
        transport: InMemoryShardTransport,
    ) -> None:
        handle = ops.link(CALLER, len(PAYLOADS))
        await ops.send(handle, PAYLOADS, transport)
        op = await ops.resolve_operation_id(handle)
        assert await ops.get_operation_type(op) is OperationType.UNDETERMINED

        sequencer.advance(
            op,
            StageName.VALIDATED_BY_SEQUENCERS,
            StageName.CONSENSUS_REACHED,
            StageName.EXECUTED_ON_TARGET,
            StageName.TERMINAL_SUCCESS,
        )
        status = await ops.track(handle)
        assert status.success is True
        assert status.operation_id == op
        assert await ops.get_operation_type(op) is OperationType.ORIGIN_TO_TARGET
        history = await ops.get_stage_history(op)
        assert history.names[0] is StageName.COLLECTING_SHARDS

    @pytest.mark.asyncio
    async def test_rollback_is_a_failed_status(
        self,
        ops: OperationTracker,
        sequencer: InMemoryStatusService,
        transport: InMemoryShardTransport,
    ) -> None:
        handle = ops.link(CALLER, 1)
        await ops.send(handle, [b"swap"], transport)
        op = await ops.resolve_operation_id(handle)
        sequencer.advance(
            op,
            StageName.EXECUTED_ON_TARGET,
            StageName.ROLLED_BACK,
            note=StageNote(error_name="InsufficientBalance", message="not enough"),
        )
        status = await ops.track(handle)
        assert status.simplified is SimplifiedStatus.FAILED
        assert status.error_name == "InsufficientBalance"
        assert await ops.get_operation_type(op) is OperationType.ROLLBACK

    @pytest.mark.asyncio
    async def test_unsent_handle_times_out(self, ops: OperationTracker) -> None:
        handle = ops.link(CALLER, 1)
        with pytest.raises(TrackingTimeoutError) as exc_info:
            await ops.track(handle)
        assert exc_info.value.kind is ErrorKind.TIMEOUT

    @pytest.mark.asyncio
    async def test_cancelled_track_is_aborted(self, ops: OperationTracker) -> None:
        cancel = asyncio.Event()
        cancel.set()
        with pytest.raises(OperationAbortedError):
            await ops.track(ops.link(CALLER, 1), cancel_event=cancel)

    @pytest.mark.asyncio
    async def test_persisted_handle_resolves_after_restart(
        self,
        sequencer: InMemoryStatusService,
        transport: InMemoryShardTransport,
        fast_policy: RetryPolicy,
    ) -> None:
        first = OperationTracker(sequencer, resolve_policy=fast_policy)
        handle = first.link(CALLER, 2)
        await first.send(handle, [b"a", b"b"], transport)
        stored = handle.to_wire()

        restarted = OperationTracker(sequencer, resolve_policy=fast_policy)
        restored = CorrelationHandle.from_wire(stored)
        assert await restarted.resolve_operation_id(
            restored
        ) == await first.resolve_operation_id(handle)

    def test_errors_share_one_root(self, ops: OperationTracker) -> None:
        with pytest.raises(CrossChainOpsError):
            ops.link(CALLER, 0)
