"""InMemoryShardTransport — feeds shards straight into an in-memory sequencer."""

from __future__ import annotations

import hashlib
from typing import TYPE_CHECKING, Any

from ...ports.transport import IShardTransport, ShardAcceptance

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ...domain.correlation import CorrelationHandle
    from .status_service import InMemoryStatusService


class InMemoryShardTransport(IShardTransport):
    """In-memory implementation of ``IShardTransport``.

    Indices listed in ``reject`` are refused and never reach the sequencer,
    which leaves the shard set incomplete.
    """

    def __init__(
        self,
        sequencer: InMemoryStatusService,
        reject: set[int] | None = None,
    ) -> None:
        self._sequencer = sequencer
        self._reject = reject or set()
        self.sent: list[tuple[CorrelationHandle, int, Any]] = []

    async def broadcast(
        self, handle: CorrelationHandle, payloads: Sequence[Any]
    ) -> list[ShardAcceptance]:
        acceptances: list[ShardAcceptance] = []
        for index, payload in enumerate(payloads):
            if index in self._reject:
                acceptances.append(
                    ShardAcceptance(index=index, accepted=False, error="rejected")
                )
                continue
            self.sent.append((handle, index, payload))
            self._sequencer.record_shard(handle, index)
            digest = hashlib.sha256(f"{handle}:{index}".encode()).hexdigest()
            acceptances.append(
                ShardAcceptance(index=index, accepted=True, tx_hash=f"0x{digest}")
            )
        return acceptances
