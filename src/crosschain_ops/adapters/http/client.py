"""HttpStatusService — httpx client for the sequencer status API."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import httpx
import pydantic

from ...domain.correlation import CorrelationHandle, OperationId
from ...primitives.exceptions import FetchError, ValidationError
from ...ports.status_service import IStatusService
from .schemas import (
    Envelope,
    HandleQuery,
    OperationIdEntry,
    OperationIdsRequest,
    StageHistoriesRequest,
    StageHistoryPayload,
    dump,
)

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence
    from types import TracebackType

    from ...config import SequencerConfig
    from ...domain.stages import StageHistory

logger = logging.getLogger(__name__)

_CLIENT_ERRORS = (400, 422)


class HttpStatusService(IStatusService):
    """
    Status service over HTTP with ordered endpoint failover.

    Each request tries the configured endpoints in order. A transport error
    or a 5xx moves on to the next endpoint; 404 is a definitive "not found";
    400/422 mean the request itself is malformed. Use as an async context
    manager: a client created here is closed on exit, an injected one is left
    to its owner.
    """

    def __init__(
        self,
        config: SequencerConfig,
        *,
        client: httpx.AsyncClient | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=config.request_timeout,
            headers={"Accept": "application/json", **config.headers},
            transport=transport,
        )

    async def __aenter__(self) -> HttpStatusService:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    # ── Requests ─────────────────────────────────────────────────

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        json: dict[str, Any] | None = None,
    ) -> Any | None:
        """Send to each endpoint until one answers; ``None`` means 404."""
        last_error: FetchError | None = None
        for endpoint in self.config.endpoints:
            url = f"{endpoint.rstrip('/')}/{path.lstrip('/')}"
            try:
                response = await self._client.request(
                    method, url, params=params, json=json
                )
            except httpx.TransportError as exc:
                last_error = FetchError(
                    f"{method} {url} failed: {exc!r}", endpoint=endpoint
                )
                logger.warning("Sequencer endpoint %s unreachable: %s", endpoint, exc)
                continue

            if response.status_code == 404:
                return None
            if response.status_code in _CLIENT_ERRORS:
                raise ValidationError(
                    {path: [f"HTTP {response.status_code}: {response.text}"]}
                )
            if response.is_error:
                last_error = FetchError(
                    f"{method} {url} returned HTTP {response.status_code}",
                    endpoint=endpoint,
                    status_code=response.status_code,
                )
                logger.warning(
                    "Sequencer endpoint %s answered HTTP %d",
                    endpoint,
                    response.status_code,
                )
                continue

            try:
                return response.json()
            except ValueError as exc:
                last_error = FetchError(
                    f"{method} {url} returned invalid JSON",
                    endpoint=endpoint,
                    status_code=response.status_code,
                )
                logger.warning(
                    "Sequencer endpoint %s sent invalid JSON: %s", endpoint, exc
                )

        raise last_error or FetchError("No sequencer endpoint configured")

    @staticmethod
    def _unwrap(model: type[Envelope[Any]], body: Any, what: str) -> Any:
        try:
            return model.model_validate(body).response
        except pydantic.ValidationError as exc:
            raise FetchError(f"Malformed {what} response: {exc}") from exc

    # ── IStatusService ───────────────────────────────────────────

    async def get_operation_id(
        self, caller: str, shards_key: str
    ) -> OperationId | None:
        body = await self._request(
            "GET",
            "operation-id",
            params={"caller": caller, "shardsKey": shards_key},
        )
        if body is None:
            return None
        operation_id = self._unwrap(Envelope[str | None], body, "operation-id")
        return OperationId(operation_id) if operation_id else None

    async def get_operation_ids(
        self, handles: Sequence[CorrelationHandle]
    ) -> Mapping[CorrelationHandle, OperationId | None]:
        if not handles:
            return {}
        request = OperationIdsRequest(
            items=[
                HandleQuery(caller=h.caller, shards_key=h.shards_key) for h in handles
            ]
        )
        body = await self._request("POST", "operation-ids", json=dump(request))
        if body is None:
            return {}
        entries: list[OperationIdEntry] = self._unwrap(
            Envelope[list[OperationIdEntry]], body, "operation-ids"
        )
        by_key = {(e.caller, e.shards_key): e.operation_id for e in entries}
        result: dict[CorrelationHandle, OperationId | None] = {}
        for handle in handles:
            found = by_key.get((handle.caller, handle.shards_key))
            if found:
                result[handle] = OperationId(found)
        return result

    async def get_stage_history(self, operation_id: OperationId) -> StageHistory | None:
        body = await self._request(
            "GET", "stage-history", params={"operationId": operation_id}
        )
        if body is None:
            return None
        payload: StageHistoryPayload = self._unwrap(
            Envelope[StageHistoryPayload], body, "stage-history"
        )
        return payload.to_domain()

    async def get_stage_histories(
        self, operation_ids: Sequence[OperationId]
    ) -> Mapping[OperationId, StageHistory | Exception]:
        if not operation_ids:
            return {}
        request = StageHistoriesRequest(operation_ids=list(operation_ids))
        body = await self._request("POST", "stage-histories", json=dump(request))
        if body is None:
            return {}
        raw: dict[str, Any] = self._unwrap(
            Envelope[dict[str, Any]], body, "stage-histories"
        )
        result: dict[OperationId, StageHistory | Exception] = {}
        for op_id in operation_ids:
            if op_id not in raw or raw[op_id] is None:
                continue
            entry = raw[op_id]
            if isinstance(entry, dict):
                entry = {"operationId": op_id, **entry}
            try:
                result[op_id] = StageHistoryPayload.model_validate(entry).to_domain()
            except pydantic.ValidationError as exc:
                logger.warning("Malformed stage history for %s: %s", op_id, exc)
                result[op_id] = FetchError(f"Malformed stage history for {op_id}")
        return result
