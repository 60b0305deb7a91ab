from .status_service import IStatusService
from .transport import IShardTransport, ShardAcceptance

__all__ = [
    "IShardTransport",
    "IStatusService",
    "ShardAcceptance",
]
