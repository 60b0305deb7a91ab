"""InMemoryStatusService — dict-backed sequencer fake for tests and local runs."""

from __future__ import annotations

import uuid
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

from ...domain.correlation import CorrelationHandle, OperationId
from ...domain.stages import ExecutionStage, StageHistory, StageName, StageNote
from ...primitives.exceptions import FetchError
from ...ports.status_service import IStatusService

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Mapping, Sequence


@dataclass
class _ShardSet:
    shard_count: int
    seen: set[int] = field(default_factory=set)
    conflicting: bool = False


class InMemoryStatusService(IStatusService):
    """In-memory implementation of ``IStatusService``.

    Mimics the sequencer: shards are recorded per ``(caller, shards_key)``
    and an operation id is assigned once every shard of the set has been
    seen. Shards of one key that disagree on ``shard_count`` never resolve.
    Stages are appended by tests through :meth:`advance`.
    """

    def __init__(self, id_factory: Callable[[], str] | None = None) -> None:
        self._id_factory = id_factory or (lambda: f"op-{uuid.uuid4().hex}")
        self._shard_sets: dict[tuple[str, str], _ShardSet] = {}
        self._operation_ids: dict[tuple[str, str], OperationId] = {}
        self._stages: dict[OperationId, list[ExecutionStage]] = {}
        self._failures: list[Exception] = []
        self.calls: Counter[str] = Counter()

    # ── IStatusService ───────────────────────────────────────────

    async def get_operation_id(
        self, caller: str, shards_key: str
    ) -> OperationId | None:
        self._enter("get_operation_id")
        return self._operation_ids.get((caller, shards_key))

    async def get_operation_ids(
        self, handles: Sequence[CorrelationHandle]
    ) -> Mapping[CorrelationHandle, OperationId | None]:
        self._enter("get_operation_ids")
        return {
            handle: self._operation_ids[(handle.caller, handle.shards_key)]
            for handle in handles
            if (handle.caller, handle.shards_key) in self._operation_ids
        }

    async def get_stage_history(self, operation_id: OperationId) -> StageHistory | None:
        self._enter("get_stage_history")
        return self._history(operation_id)

    async def get_stage_histories(
        self, operation_ids: Sequence[OperationId]
    ) -> Mapping[OperationId, StageHistory | Exception]:
        self._enter("get_stage_histories")
        result: dict[OperationId, StageHistory | Exception] = {}
        for op_id in operation_ids:
            history = self._history(op_id)
            if history is not None:
                result[op_id] = history
        return result

    # ── Sequencer simulation ─────────────────────────────────────

    def record_shard(self, handle: CorrelationHandle, index: int) -> OperationId | None:
        """Observe one shard transaction; returns the id once the set is complete."""
        key = (handle.caller, handle.shards_key)
        shard_set = self._shard_sets.setdefault(key, _ShardSet(handle.shard_count))
        if shard_set.shard_count != handle.shard_count:
            shard_set.conflicting = True
        shard_set.seen.add(index)
        if shard_set.conflicting or key in self._operation_ids:
            return self._operation_ids.get(key)
        if len(shard_set.seen) >= shard_set.shard_count:
            return self.assign(handle.caller, handle.shards_key)
        return None

    def assign(
        self,
        caller: str,
        shards_key: str,
        operation_id: str | None = None,
    ) -> OperationId:
        """Assign an operation id directly and enter ``COLLECTING_SHARDS``."""
        op_id = OperationId(operation_id or self._id_factory())
        self._operation_ids[(caller, shards_key)] = op_id
        self._stages.setdefault(op_id, [])
        if not self._stages[op_id]:
            self.advance(op_id, StageName.COLLECTING_SHARDS)
        return op_id

    def advance(
        self,
        operation_id: OperationId,
        *stage_names: StageName,
        note: StageNote | None = None,
        at: datetime | None = None,
    ) -> StageHistory:
        """Append stages; ``note`` is attached to the last one."""
        stages = self._stages.setdefault(operation_id, [])
        for i, name in enumerate(stage_names):
            timestamp = at or datetime.now(timezone.utc)
            if stages and timestamp <= stages[-1].timestamp:
                timestamp = stages[-1].timestamp + timedelta(milliseconds=1)
            last = i == len(stage_names) - 1
            stages.append(
                ExecutionStage(
                    name=name,
                    timestamp=timestamp,
                    note=note if last else None,
                )
            )
        return StageHistory(operation_id=operation_id, stages=tuple(stages))

    def set_history(
        self, operation_id: OperationId, stages: Iterable[ExecutionStage]
    ) -> None:
        """Replace the reported history wholesale (simulates an inconsistent node)."""
        self._stages[operation_id] = list(stages)

    def fail_next(self, times: int = 1, error: Exception | None = None) -> None:
        """Make the next ``times`` calls raise ``error`` (default ``FetchError``)."""
        for _ in range(times):
            self._failures.append(error or FetchError("injected failure"))

    # ── Test helpers ─────────────────────────────────────────────

    def _enter(self, method: str) -> None:
        self.calls[method] += 1
        if self._failures:
            raise self._failures.pop(0)

    def _history(self, operation_id: OperationId) -> StageHistory | None:
        if operation_id not in self._stages:
            return None
        return StageHistory(
            operation_id=operation_id, stages=tuple(self._stages[operation_id])
        )

    def clear(self) -> None:
        self._shard_sets.clear()
        self._operation_ids.clear()
        self._stages.clear()
        self._failures.clear()
        self.calls.clear()
