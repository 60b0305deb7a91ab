from .exceptions import (
    CrossChainOpsError,
    ErrorKind,
    FetchError,
    OperationAbortedError,
    TrackingTimeoutError,
    ValidationError,
)
from .id_generator import IShardsKeyGenerator, RandomShardsKeyGenerator

__all__ = [
    "CrossChainOpsError",
    "ErrorKind",
    "FetchError",
    "IShardsKeyGenerator",
    "OperationAbortedError",
    "RandomShardsKeyGenerator",
    "TrackingTimeoutError",
    "ValidationError",
]
