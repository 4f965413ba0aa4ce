"""
Slack Web API gateway.

Posts messages with chat.postMessage. The `ts` Slack returns for a
top-level message is the thread identifier replies carry, so it becomes
the pie's correlation token verbatim.
"""

import logging
from typing import Any

import httpx

from app.core.exceptions import GatewayFailure
from app.gateways.base import PostedMessage
from app.models.base import CorrelationToken

logger = logging.getLogger(__name__)


class SlackGateway:
    """
    MessagingGateway implementation backed by the Slack Web API.

    Usage:
        gateway = SlackGateway(token="xoxb-...")
        posted = await gateway.post_message("C123", "Pie p1 has been added")
        await gateway.post_message("C123", "Slice added", thread_token=posted.token)
    """

    def __init__(
        self,
        token: str,
        api_url: str = "https://slack.com/api",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.token = token
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """HTTP client, created on first use."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def post_message(
        self,
        channel: str,
        text: str,
        thread_token: CorrelationToken | None = None,
    ) -> PostedMessage:
        payload: dict[str, Any] = {"channel": channel, "text": text}
        if thread_token is not None:
            payload["thread_ts"] = str(thread_token)

        data = await self._call("chat.postMessage", payload)

        ts = data.get("ts")
        if not isinstance(ts, str) or not ts:
            raise GatewayFailure("Slack did not return a message timestamp")
        return PostedMessage(
            token=CorrelationToken(ts),
            channel=data.get("channel") or channel,
        )

    async def _call(self, method: str, payload: dict[str, Any]) -> dict[str, Any]:
        client = await self._get_client()
        try:
            response = await client.post(
                f"{self.api_url}/{method}",
                json=payload,
                headers={"Authorization": f"Bearer {self.token}"},
            )
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            logger.error(f"Slack {method} failed: {e}")
            raise GatewayFailure(f"Could not reach Slack ({method})") from e
        except ValueError as e:
            logger.error(f"Slack {method} returned invalid JSON: {e}")
            raise GatewayFailure(f"Slack returned an invalid response ({method})") from e

        if not data.get("ok"):
            error = data.get("error", "unknown_error")
            logger.error(f"Slack {method} rejected the request: {error}")
            raise GatewayFailure(f"Slack rejected the message: {error}")
        return data
