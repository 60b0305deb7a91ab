"""OperationTracker — the caller-facing entry point.

Wires the linker, resolver, tracker, classifier and batch coordinator around
one explicitly supplied status service. There is no module-level instance:
create one per service, or let :meth:`OperationTracker.connect` own an HTTP
service for the duration of an ``async with`` block.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from .adapters.http import HttpStatusService
from .batch import BatchQueryCoordinator
from .classifier import OperationTypeClassifier
from .linker import ShardLinker
from .primitives.exceptions import ValidationError
from .resolver import OperationResolver
from .tracker import StageTracker

if TYPE_CHECKING:
    import asyncio
    from collections.abc import AsyncIterator, Iterable, Sequence

    import httpx

    from .config import SequencerConfig
    from .domain.correlation import CorrelationHandle, OperationId
    from .domain.results import BatchItemResult
    from .domain.stages import StageHistory
    from .domain.status import OperationStatus, OperationType, SimplifiedStatus
    from .ports.status_service import IStatusService
    from .ports.transport import IShardTransport, ShardAcceptance
    from .primitives.id_generator import IShardsKeyGenerator
    from .retry import RetryPolicy

logger = logging.getLogger(__name__)


class OperationTracker:
    """Link, resolve and observe sharded cross-chain operations.

    Example:
        ```python
        async with OperationTracker.connect(config) as ops:
            handle = ops.link(caller, shard_count=len(payloads))
            await ops.send(handle, payloads, transport)
            status = await ops.track(handle)
            if not status.success:
                show_error(status.error_name)
        ```
    """

    def __init__(
        self,
        service: IStatusService,
        *,
        resolve_policy: RetryPolicy | None = None,
        terminal_policy: RetryPolicy | None = None,
        key_generator: IShardsKeyGenerator | None = None,
    ) -> None:
        self.service = service
        self.linker = ShardLinker(key_generator)
        self.resolver = OperationResolver(service, resolve_policy)
        self.tracker = StageTracker(service, terminal_policy)
        self.classifier = OperationTypeClassifier(self.tracker)
        self.batch = BatchQueryCoordinator(service, self.resolver, self.tracker)

    @classmethod
    @asynccontextmanager
    async def connect(
        cls,
        config: SequencerConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        key_generator: IShardsKeyGenerator | None = None,
    ) -> AsyncIterator[OperationTracker]:
        """Open an HTTP-backed tracker; the connection closes when the block exits."""
        async with HttpStatusService(config, transport=transport) as service:
            yield cls(
                service,
                resolve_policy=config.resolve_policy,
                terminal_policy=config.terminal_policy,
                key_generator=key_generator,
            )

    # ── Correlation ──────────────────────────────────────────────

    def link(self, caller: str, shard_count: int) -> CorrelationHandle:
        return self.linker.link(caller, shard_count)

    async def send(
        self,
        handle: CorrelationHandle,
        payloads: Sequence[Any],
        transport: IShardTransport,
    ) -> list[ShardAcceptance]:
        """Hand one payload per shard to the broadcast layer.

        Raises:
            ValidationError: the payload count differs from ``shard_count``.
        """
        if len(payloads) != handle.shard_count:
            raise ValidationError(
                {
                    "payloads": [
                        f"expected {handle.shard_count} payload(s), "
                        f"got {len(payloads)}"
                    ]
                }
            )
        acceptances = await transport.broadcast(handle, payloads)
        rejected = [a.index for a in acceptances if not a.accepted]
        if rejected:
            logger.warning(
                "%d of %d shard(s) of %s were not accepted: %s",
                len(rejected),
                handle.shard_count,
                handle,
                rejected,
            )
        return acceptances

    # ── Resolution ───────────────────────────────────────────────

    async def resolve_operation_id(
        self,
        handle: CorrelationHandle,
        policy: RetryPolicy | None = None,
        *,
        deadline: float | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> OperationId:
        return await self.resolver.resolve(
            handle, policy, deadline=deadline, cancel_event=cancel_event
        )

    async def resolve_many(
        self, handles: Iterable[CorrelationHandle]
    ) -> dict[CorrelationHandle, BatchItemResult[OperationId]]:
        return await self.batch.resolve_many(handles)

    # ── Status ───────────────────────────────────────────────────

    async def get_status(self, operation_id: OperationId) -> OperationStatus:
        return await self.tracker.get_status(operation_id)

    async def get_simplified_status(
        self, operation_id: OperationId
    ) -> SimplifiedStatus:
        return await self.tracker.get_simplified_status(operation_id)

    async def get_simplified_status_by_handle(
        self, handle: CorrelationHandle
    ) -> SimplifiedStatus:
        return await self.tracker.get_simplified_status_by_handle(handle, self.resolver)

    async def get_stage_history(self, operation_id: OperationId) -> StageHistory:
        return await self.tracker.get_stage_history(operation_id)

    async def get_operation_type(self, operation_id: OperationId) -> OperationType:
        return await self.classifier.classify(operation_id)

    async def get_statuses(
        self, operation_ids: Iterable[OperationId]
    ) -> dict[OperationId, BatchItemResult[OperationStatus]]:
        return await self.batch.get_statuses(operation_ids)

    async def get_stage_histories(
        self, operation_ids: Iterable[OperationId]
    ) -> dict[OperationId, BatchItemResult[StageHistory]]:
        return await self.batch.get_stage_histories(operation_ids)

    # ── Waiting ──────────────────────────────────────────────────

    async def wait_until_terminal(
        self,
        operation_id: OperationId,
        policy: RetryPolicy | None = None,
        *,
        deadline: float | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> OperationStatus:
        return await self.tracker.wait_until_terminal(
            operation_id, policy, deadline=deadline, cancel_event=cancel_event
        )

    async def track(
        self,
        handle: CorrelationHandle,
        *,
        resolve_policy: RetryPolicy | None = None,
        terminal_policy: RetryPolicy | None = None,
        deadline: float | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> OperationStatus:
        """Resolve ``handle`` and wait for its terminal status.

        One ``deadline`` and ``cancel_event`` bound both phases.
        """
        operation_id = await self.resolve_operation_id(
            handle, resolve_policy, deadline=deadline, cancel_event=cancel_event
        )
        return await self.wait_until_terminal(
            operation_id, terminal_policy, deadline=deadline, cancel_event=cancel_event
        )
