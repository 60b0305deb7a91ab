"""StageTracker — reads stage histories and projects them onto a status."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .domain.results import NOT_YET_AVAILABLE, NotYetAvailable
from .domain.stages import StageHistory
from .domain.status import OperationStatus, SimplifiedStatus
from .retry import RetryPolicy, poll

if TYPE_CHECKING:
    import asyncio
    from collections.abc import Mapping

    from .domain.correlation import CorrelationHandle, OperationId
    from .domain.results import Maybe
    from .ports.status_service import IStatusService
    from .resolver import OperationResolver

logger = logging.getLogger(__name__)


class StageTracker:
    """Observes operation progress without ever inferring a transition.

    Each operation keeps a high-water history: a fresh answer replaces it when
    it extends it with the same prefix, or when it rewrites a non-terminal
    view with something terminal or longer. Histories therefore never shrink,
    and a terminal status never turns back into PENDING.
    """

    def __init__(
        self,
        service: IStatusService,
        default_policy: RetryPolicy | None = None,
    ) -> None:
        self._service = service
        self._policy = default_policy or RetryPolicy.fixed(max_attempts=30, delay=10.0)
        self._observed: dict[OperationId, StageHistory] = {}

    def observe(self, history: StageHistory) -> StageHistory:
        """Merge a fresh history into the high-water view and return the view.

        A fresh answer that rewrites the held prefix is still taken while the
        held view is not terminal, provided it is terminal or strictly longer.
        Shorter answers and answers replacing a terminal view are dropped.
        """
        previous = self._observed.get(history.operation_id)
        if previous is None or history.extends(previous):
            self._observed[history.operation_id] = history
            return history
        if not previous.is_terminal and (
            history.is_terminal or len(history.stages) > len(previous.stages)
        ):
            logger.warning(
                "Stage history for %s diverges from the %d stage(s) already "
                "observed; taking the %d reported now",
                history.operation_id,
                len(previous.stages),
                len(history.stages),
            )
            self._observed[history.operation_id] = history
            return history
        logger.warning(
            "Ignoring stage history for %s: %d stage(s) do not extend the %d "
            "already observed",
            history.operation_id,
            len(history.stages),
            len(previous.stages),
        )
        return previous

    def last_observed(self, operation_id: OperationId) -> StageHistory | None:
        """Highest history seen for ``operation_id`` in this process, if any."""
        return self._observed.get(operation_id)

    def observe_many(
        self, histories: Mapping[OperationId, StageHistory]
    ) -> dict[OperationId, StageHistory]:
        return {op_id: self.observe(h) for op_id, h in histories.items()}

    async def get_stage_history(self, operation_id: OperationId) -> StageHistory:
        """Stages observed so far, oldest first. Safe to call repeatedly.

        An id the service does not know yet yields the last history seen for
        it, or an empty one.

        Raises:
            FetchError: the status service could not be reached.
        """
        fresh = await self._service.get_stage_history(operation_id)
        if fresh is None:
            return self.last_observed(operation_id) or StageHistory(
                operation_id=operation_id
            )
        return self.observe(fresh)

    async def get_status(self, operation_id: OperationId) -> OperationStatus:
        history = await self.get_stage_history(operation_id)
        status = OperationStatus.from_history(history)
        if status.simplified is SimplifiedStatus.FAILED:
            logger.info(
                "Operation %s rolled back (%s)",
                operation_id,
                status.error_name or "no error detail",
            )
        return status

    async def get_simplified_status(
        self, operation_id: OperationId
    ) -> SimplifiedStatus:
        return (await self.get_status(operation_id)).simplified

    async def get_simplified_status_by_handle(
        self, handle: CorrelationHandle, resolver: OperationResolver
    ) -> SimplifiedStatus:
        """Single-attempt status for a handle.

        Returns ``OPERATION_ID_NOT_FOUND`` while the handle does not resolve.
        """
        operation_id = await resolver.try_resolve(handle)
        if isinstance(operation_id, NotYetAvailable):
            return SimplifiedStatus.OPERATION_ID_NOT_FOUND
        return await self.get_simplified_status(operation_id)

    async def try_terminal_status(
        self, operation_id: OperationId
    ) -> Maybe[OperationStatus]:
        """Single attempt: the terminal status, or ``NOT_YET_AVAILABLE``."""
        status = await self.get_status(operation_id)
        if status.is_terminal:
            return status
        return NOT_YET_AVAILABLE

    async def wait_until_terminal(
        self,
        operation_id: OperationId,
        policy: RetryPolicy | None = None,
        *,
        deadline: float | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> OperationStatus:
        """Poll until the operation reaches a terminal stage.

        A rollback is returned as a FAILED status, not raised.

        Raises:
            TrackingTimeoutError: the policy or deadline ran out first.
            FetchError: the final attempt failed on transport.
            OperationAbortedError: ``cancel_event`` was set.
        """
        status = await poll(
            lambda: self.try_terminal_status(operation_id),
            policy or self._policy,
            operation=f"wait for terminal stage of {operation_id}",
            deadline=deadline,
            cancel_event=cancel_event,
        )
        logger.info("Operation %s finished: %s", operation_id, status.simplified.value)
        return status
