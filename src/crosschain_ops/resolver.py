"""OperationResolver — maps correlation handles to sequencer operation ids."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .domain.results import NOT_YET_AVAILABLE
from .retry import RetryPolicy, poll

if TYPE_CHECKING:
    import asyncio

    from .domain.correlation import CorrelationHandle, OperationId
    from .domain.results import Maybe
    from .ports.status_service import IStatusService

logger = logging.getLogger(__name__)


class OperationResolver:
    """Resolves handles, remembering every successful answer.

    The sequencer assigns an operation id once per shard set, so the first id
    seen for a handle is final. Later answers never replace it.
    """

    def __init__(
        self,
        service: IStatusService,
        default_policy: RetryPolicy | None = None,
    ) -> None:
        self._service = service
        self._policy = default_policy or RetryPolicy.fixed(max_attempts=10, delay=3.0)
        self._resolved: dict[CorrelationHandle, OperationId] = {}

    def cached(self, handle: CorrelationHandle) -> OperationId | None:
        """Operation id already resolved for ``handle`` in this process."""
        return self._resolved.get(handle)

    def remember(
        self, handle: CorrelationHandle, operation_id: OperationId
    ) -> OperationId:
        """Record a resolution; the first id recorded for a handle wins."""
        known = self._resolved.get(handle)
        if known is None:
            self._resolved[handle] = operation_id
            logger.info("Resolved %s to operation %s", handle, operation_id)
            return operation_id
        if known != operation_id:
            logger.warning(
                "Status service returned %s for %s, keeping previously resolved %s",
                operation_id,
                handle,
                known,
            )
        return known

    async def try_resolve(self, handle: CorrelationHandle) -> Maybe[OperationId]:
        """Single lookup. Returns ``NOT_YET_AVAILABLE`` when the id does not exist yet.

        Raises:
            FetchError: the status service could not be reached.
        """
        known = self._resolved.get(handle)
        if known is not None:
            return known
        operation_id = await self._service.get_operation_id(
            handle.caller, handle.shards_key
        )
        if not operation_id:
            return NOT_YET_AVAILABLE
        return self.remember(handle, operation_id)

    async def resolve(
        self,
        handle: CorrelationHandle,
        policy: RetryPolicy | None = None,
        *,
        deadline: float | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> OperationId:
        """Poll until the sequencer has assigned an operation id.

        Raises:
            TrackingTimeoutError: the policy or deadline ran out first.
            FetchError: the final attempt failed on transport.
            OperationAbortedError: ``cancel_event`` was set.
        """
        return await poll(
            lambda: self.try_resolve(handle),
            policy or self._policy,
            operation=f"resolve {handle}",
            deadline=deadline,
            cancel_event=cancel_event,
        )
