"""
Outbound delivery of aggregated events.

Delivery is at-most-once: a response with any HTTP status counts as a
completed attempt, and transport failures are reported, never retried.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict
import httpx
import orjson
import structlog
from ..event_models import DispatchOutcome

log = structlog.get_logger()

DEFAULT_TIMEOUT_SECONDS = 8.0
MAX_RESPONSE_BODY_SIZE = 10 * 1024  # 10KB (truncated response storage)


class Dispatcher(ABC):
    """Delivers one aggregate to the downstream consumer."""

    @abstractmethod
    async def send(self, aggregate: Dict[str, Any]) -> DispatchOutcome:
        """
        Deliver an aggregate.

        Args:
            aggregate: Merged payload produced by a flush

        Returns:
            Outcome of the attempt; implementations must not raise for
            transport errors
        """
        pass

    async def close(self) -> None:
        return None


class HttpDispatcher(Dispatcher):
    """POSTs aggregates as JSON with a bounded timeout."""

    def __init__(
        self,
        url: str,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        client: httpx.AsyncClient | None = None,
    ):
        self.url = url
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def send(self, aggregate: Dict[str, Any]) -> DispatchOutcome:
        try:
            response = await self._client.post(
                self.url,
                content=orjson.dumps(aggregate),
                headers={"Content-Type": "application/json"},
            )
        except httpx.TimeoutException as e:
            log.warning("dispatch.timeout", url=self.url, key=aggregate.get("key"), error=str(e))
            return DispatchOutcome(success=False, error_detail=f"Timeout: {e}")
        except httpx.HTTPError as e:
            log.warning("dispatch.failed", url=self.url, key=aggregate.get("key"), error=str(e))
            return DispatchOutcome(success=False, error_detail=f"{type(e).__name__}: {e}")

        log.info(
            "dispatch.completed",
            url=self.url,
            key=aggregate.get("key"),
            http_status=response.status_code,
        )
        return DispatchOutcome(
            success=True,
            status_code=response.status_code,
            body=_response_body(response),
        )

    async def close(self) -> None:
        await self._client.aclose()


def _response_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text[:MAX_RESPONSE_BODY_SIZE]
