"""Configuration for talking to the sequencer status service."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from .primitives.exceptions import ValidationError
from .retry import RetryPolicy

if TYPE_CHECKING:
    from collections.abc import Mapping


def default_resolve_policy() -> RetryPolicy:
    return RetryPolicy.fixed(max_attempts=10, delay=3.0)


def default_terminal_policy() -> RetryPolicy:
    return RetryPolicy.fixed(max_attempts=30, delay=10.0)


@dataclass(frozen=True)
class SequencerConfig:
    """Configuration for the sequencer status API.

    Attributes:
        endpoints: Base URLs tried in order; later ones are failovers.
        request_timeout: Per-request timeout in seconds.
        headers: Extra headers sent with every request (API keys, …).
        resolve_policy: Polling policy for operation-id resolution.
        terminal_policy: Polling policy for waiting on a terminal stage.
    """

    endpoints: tuple[str, ...]
    request_timeout: float = 10.0
    headers: Mapping[str, str] = field(default_factory=dict)
    resolve_policy: RetryPolicy = field(default_factory=default_resolve_policy)
    terminal_policy: RetryPolicy = field(default_factory=default_terminal_policy)

    def __post_init__(self) -> None:
        if isinstance(self.endpoints, str):
            object.__setattr__(self, "endpoints", (self.endpoints,))
        else:
            object.__setattr__(self, "endpoints", tuple(self.endpoints))
        errors: dict[str, list[str]] = {}
        if not self.endpoints:
            errors["endpoints"] = ["at least one endpoint is required"]
        bad = [e for e in self.endpoints if not e.startswith(("http://", "https://"))]
        if bad:
            errors.setdefault("endpoints", []).append(
                f"endpoints must be http(s) URLs: {bad}"
            )
        if self.request_timeout <= 0:
            errors["request_timeout"] = ["request_timeout must be > 0"]
        if errors:
            raise ValidationError(errors)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> SequencerConfig:
        """Build a config from a plain mapping (parsed JSON/YAML, …).

        Policies may be given as ``{"max_attempts": .., "delay": ..}`` or with
        the full :class:`RetryPolicy` keyword set.
        """
        if "endpoints" not in data:
            raise ValidationError({"endpoints": ["field required"]})
        kwargs: dict[str, Any] = {"endpoints": data["endpoints"]}
        if "request_timeout" in data:
            kwargs["request_timeout"] = float(data["request_timeout"])
        if "headers" in data:
            kwargs["headers"] = dict(data["headers"])
        for key in ("resolve_policy", "terminal_policy"):
            if key in data:
                kwargs[key] = _policy_from_mapping(key, data[key])
        return cls(**kwargs)


def _policy_from_mapping(name: str, raw: Mapping[str, Any]) -> RetryPolicy:
    options = dict(raw)
    try:
        if "delay" in options:
            delay = float(options.pop("delay"))
            options.setdefault("base_delay", delay)
            options.setdefault("max_delay", delay)
        return RetryPolicy(**options)
    except (TypeError, ValueError) as exc:
        raise ValidationError({name: [str(exc)]}) from exc
