from .status_service import InMemoryStatusService
from .transport import InMemoryShardTransport

__all__ = [
    "InMemoryShardTransport",
    "InMemoryStatusService",
]
