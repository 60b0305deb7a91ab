from .client import HttpStatusService

__all__ = ["HttpStatusService"]
