from .memory import InMemoryShardTransport, InMemoryStatusService

__all__ = [
    "InMemoryShardTransport",
    "InMemoryStatusService",
]
