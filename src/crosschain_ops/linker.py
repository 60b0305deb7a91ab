"""ShardLinker — creates the correlation handle shared by every shard."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from .domain.correlation import CorrelationHandle
from .primitives.exceptions import ValidationError
from .primitives.id_generator import IShardsKeyGenerator, RandomShardsKeyGenerator

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger(__name__)


class ShardLinker:
    """Produces correlation handles. Pure: no network, no shared state."""

    def __init__(self, key_generator: IShardsKeyGenerator | None = None) -> None:
        self._keys = key_generator or RandomShardsKeyGenerator()

    def link(self, caller: str, shard_count: int) -> CorrelationHandle:
        """Create a handle for an operation split into ``shard_count`` shards.

        Raises:
            ValidationError: ``shard_count`` is not a positive integer or
                ``caller`` is empty.
        """
        errors: dict[str, list[str]] = {}
        if not isinstance(caller, str) or not caller.strip():
            errors["caller"] = ["caller must be a non-empty address"]
        if isinstance(shard_count, bool) or not isinstance(shard_count, int):
            errors["shard_count"] = ["shard_count must be an integer"]
        elif shard_count <= 0:
            errors["shard_count"] = [f"shard_count must be >= 1, got {shard_count}"]
        if errors:
            raise ValidationError(errors)

        handle = CorrelationHandle(
            caller=caller,
            shards_key=self._keys.next_key(),
            shard_count=shard_count,
        )
        logger.debug("Linked %d shard(s) for %s as %s", shard_count, caller, handle)
        return handle

    def link_payloads(self, caller: str, payloads: Sequence[Any]) -> CorrelationHandle:
        """Create a handle sized to one shard per payload."""
        return self.link(caller, len(payloads))
