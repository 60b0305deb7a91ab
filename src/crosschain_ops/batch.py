"""BatchQueryCoordinator — many lookups in one round trip, results kept per key."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .domain.results import BatchItemResult
from .domain.stages import StageHistory
from .domain.status import OperationStatus
from .primitives.exceptions import CrossChainOpsError

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .domain.correlation import CorrelationHandle, OperationId
    from .ports.status_service import IStatusService
    from .resolver import OperationResolver
    from .tracker import StageTracker

logger = logging.getLogger(__name__)


class BatchQueryCoordinator:
    """Batch resolution and status reads.

    Every input key appears in the output with its own result. Keys the
    service omits are ``NOT_YET_AVAILABLE``; a failed round trip marks every
    key with that error instead of raising. Answers go through the resolver
    memo and the tracker's high-water view, like single reads.
    """

    def __init__(
        self,
        service: IStatusService,
        resolver: OperationResolver,
        tracker: StageTracker,
    ) -> None:
        self._service = service
        self._resolver = resolver
        self._tracker = tracker

    async def resolve_many(
        self, handles: Iterable[CorrelationHandle]
    ) -> dict[CorrelationHandle, BatchItemResult[OperationId]]:
        wanted = list(dict.fromkeys(handles))
        results: dict[CorrelationHandle, BatchItemResult[OperationId]] = {}
        to_fetch: list[CorrelationHandle] = []
        for handle in wanted:
            known = self._resolver.cached(handle)
            if known is not None:
                results[handle] = BatchItemResult.ok(known)
            else:
                to_fetch.append(handle)

        if to_fetch:
            try:
                answers = await self._service.get_operation_ids(to_fetch)
            except CrossChainOpsError as exc:
                logger.warning(
                    "Batch resolution of %d handle(s) failed: %s", len(to_fetch), exc
                )
                for handle in to_fetch:
                    results[handle] = BatchItemResult.failed(exc)
            else:
                for handle in to_fetch:
                    operation_id = answers.get(handle)
                    if operation_id:
                        results[handle] = BatchItemResult.ok(
                            self._resolver.remember(handle, operation_id)
                        )
                    else:
                        results[handle] = BatchItemResult.pending()

        return {handle: results[handle] for handle in wanted}

    async def get_stage_histories(
        self, operation_ids: Iterable[OperationId]
    ) -> dict[OperationId, BatchItemResult[StageHistory]]:
        wanted = list(dict.fromkeys(operation_ids))
        if not wanted:
            return {}
        try:
            answers = await self._service.get_stage_histories(wanted)
        except CrossChainOpsError as exc:
            logger.warning(
                "Batch stage query of %d operation(s) failed: %s", len(wanted), exc
            )
            return {op_id: BatchItemResult.failed(exc) for op_id in wanted}

        observed = self._tracker.observe_many(
            {
                op_id: answer
                for op_id, answer in answers.items()
                if isinstance(answer, StageHistory)
            }
        )
        results: dict[OperationId, BatchItemResult[StageHistory]] = {}
        for op_id in wanted:
            answer = answers.get(op_id)
            if op_id in observed:
                results[op_id] = BatchItemResult.ok(observed[op_id])
            elif isinstance(answer, Exception):
                results[op_id] = BatchItemResult.failed(answer)
            else:
                held = self._tracker.last_observed(op_id)
                results[op_id] = (
                    BatchItemResult.ok(held) if held else BatchItemResult.pending()
                )
        return results

    async def get_statuses(
        self, operation_ids: Iterable[OperationId]
    ) -> dict[OperationId, BatchItemResult[OperationStatus]]:
        histories = await self.get_stage_histories(operation_ids)
        statuses: dict[OperationId, BatchItemResult[OperationStatus]] = {}
        for op_id, result in histories.items():
            if result.available:
                statuses[op_id] = BatchItemResult.ok(
                    OperationStatus.from_history(result.unwrap())
                )
            elif result.error is not None:
                statuses[op_id] = BatchItemResult.failed(result.error)
            else:
                statuses[op_id] = BatchItemResult.pending()
        return statuses
