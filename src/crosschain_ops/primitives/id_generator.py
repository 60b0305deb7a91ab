import secrets
import time
from typing import Protocol


class IShardsKeyGenerator(Protocol):
    """
    Protocol for shards-key generation strategies.
    A key must be unique among all operations of one caller; swap in a
    deterministic generator in tests or a caller-coordinated one in services
    that already own a sequence.
    """

    def next_key(self) -> str:
        """Generates the next shards key."""
        ...


class RandomShardsKeyGenerator(IShardsKeyGenerator):
    """
    Default generator: millisecond timestamp followed by 64 random bits.
    The timestamp prefix keeps keys roughly sortable by creation time.
    """

    def next_key(self) -> str:
        """Returns ``<ms-timestamp><16 hex chars>`` as a decimal-safe string."""
        return f"{time.time_ns() // 1_000_000}{secrets.token_hex(8)}"
