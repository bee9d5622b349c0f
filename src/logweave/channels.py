"""
Request/acknowledge channels used by network transports.

A channel sends one payload to a named address and resolves with the peer's
reply. Multi-part replies carry a continuation that fetches the next part.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Optional

import httpx

from .diagnostics import get_logger
from .errors import ConfigurationError, TransportIOError

logger = get_logger("logweave.channels")

Continuation = Callable[[Dict[str, Any]], Awaitable["ChannelReply"]]


@dataclass(frozen=True)
class ChannelReply:
    """One reply from the peer."""

    body: Dict[str, Any] = field(default_factory=dict)
    continuation: Optional[Continuation] = None


class MessageChannel(ABC):
    """Asynchronous request/acknowledge channel."""

    @abstractmethod
    async def request(self, address: str, payload: Dict[str, Any]) -> ChannelReply:
        """Send ``payload`` to ``address`` and wait for one reply.

        Raises:
            TransportIOError: the payload could not be delivered.
        """
        ...

    async def aclose(self) -> None:
        pass


class HttpMessageChannel(MessageChannel):
    """Channel that POSTs JSON payloads to ``<base_url>/<address>``.

    Args:
        base_url: Root URL of the service exposing the addresses.
        timeout: Request timeout in seconds.
        headers: Extra headers sent with every request.
        client: Pre-built ``httpx.AsyncClient`` (its base_url is left untouched).
    """

    def __init__(
        self,
        base_url: str = "",
        *,
        timeout: float = 30.0,
        headers: Optional[Dict[str, str]] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        if client is None and not base_url:
            raise ConfigurationError("HttpMessageChannel needs a base_url or a client")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            headers={"Content-Type": "application/json", **(headers or {})},
        )

    async def request(self, address: str, payload: Dict[str, Any]) -> ChannelReply:
        url = "/" + address.lstrip("/")
        try:
            response = await self._client.post(url, json=payload)
            response.raise_for_status()
            body = response.json() if response.content else {}
        except httpx.HTTPStatusError as exc:
            raise TransportIOError(
                f"{address} replied with HTTP {exc.response.status_code}",
                details={"address": address, "status_code": exc.response.status_code},
            ) from exc
        except (httpx.HTTPError, ValueError) as exc:
            logger.debug("channel_request_failed", address=address, error=str(exc))
            raise TransportIOError(f"Request to {address} failed: {exc}", details={"address": address}) from exc

        if not isinstance(body, dict):
            body = {"results": body}

        cursor = body.get("cursor")
        continuation: Optional[Continuation] = None
        if cursor is not None:

            async def continuation(extra: Dict[str, Any]) -> ChannelReply:
                return await self.request(address, {**extra, "cursor": cursor})

        return ChannelReply(body=body, continuation=continuation)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
