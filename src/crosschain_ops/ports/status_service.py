"""IStatusService — port to the sequencer's status API."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from ..domain.correlation import CorrelationHandle, OperationId
    from ..domain.stages import StageHistory


@runtime_checkable
class IStatusService(Protocol):
    """
    Read-only access to what the sequencer has observed.

    "Not found" is a normal answer: single lookups return ``None`` and batch
    lookups omit the key. Transport failures raise ``FetchError``.
    Implementations must not mutate sequencer state.
    """

    async def get_operation_id(
        self, caller: str, shards_key: str
    ) -> OperationId | None:
        """Operation id assigned to ``(caller, shards_key)``, or ``None``."""
        ...

    async def get_operation_ids(
        self, handles: Sequence[CorrelationHandle]
    ) -> Mapping[CorrelationHandle, OperationId | None]:
        """Resolve many handles in one round trip. Unknown handles may be omitted."""
        ...

    async def get_stage_history(self, operation_id: OperationId) -> StageHistory | None:
        """Stages observed so far, oldest first, or ``None`` for an unknown id."""
        ...

    async def get_stage_histories(
        self, operation_ids: Sequence[OperationId]
    ) -> Mapping[OperationId, StageHistory | Exception]:
        """Histories for many ids in one round trip.

        Unknown ids may be omitted. An entry the service returned but that
        could not be decoded is reported as the exception for that id only.
        """
        ...
