from __future__ import annotations

import itertools

import pytest

from crosschain_ops import InMemoryStatusService, OperationTracker, RetryPolicy


@pytest.fixture
def fast_policy() -> RetryPolicy:
    return RetryPolicy.fixed(max_attempts=3, delay=0.0)


@pytest.fixture
def sequencer() -> InMemoryStatusService:
    counter = itertools.count(1)
    return InMemoryStatusService(id_factory=lambda: f"op-{next(counter)}")


@pytest.fixture
def ops(sequencer: InMemoryStatusService, fast_policy: RetryPolicy) -> OperationTracker:
    return OperationTracker(
        sequencer,
        resolve_policy=fast_policy,
        terminal_policy=fast_policy,
    )
