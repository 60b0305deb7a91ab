"""IShardTransport — port to the origin-chain broadcast layer."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ..domain.correlation import CorrelationHandle


@dataclass(frozen=True)
class ShardAcceptance:
    """Broadcast outcome for one shard transaction."""

    index: int
    accepted: bool
    tx_hash: str | None = None
    error: str | None = None


@runtime_checkable
class IShardTransport(Protocol):
    """
    Port for broadcasting shard transactions on the origin chain.

    The adapter owns transaction construction and signing; it must stamp every
    shard with the handle's ``caller``, ``shards_key`` and ``shard_count``.
    """

    async def broadcast(
        self, handle: CorrelationHandle, payloads: Sequence[Any]
    ) -> list[ShardAcceptance]:
        """Broadcast one transaction per payload, returning one acceptance each."""
        ...
