"""OperationTypeClassifier — traffic pattern of a resolved operation."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .domain.status import OperationType, classify_history

if TYPE_CHECKING:
    from .domain.correlation import OperationId
    from .tracker import StageTracker

logger = logging.getLogger(__name__)


class OperationTypeClassifier:
    """Classifies operations from the tracker's view of their stages.

    Returns ``OperationType.UNDETERMINED`` until enough stages exist; callers
    use the answer to decide whether to keep waiting for a return leg.
    """

    def __init__(self, tracker: StageTracker) -> None:
        self._tracker = tracker

    async def classify(self, operation_id: OperationId) -> OperationType:
        history = await self._tracker.get_stage_history(operation_id)
        operation_type = classify_history(history)
        logger.debug(
            "Operation %s classified as %s", operation_id, operation_type.value
        )
        return operation_type
