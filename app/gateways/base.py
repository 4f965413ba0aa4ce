"""Messaging gateway interface used by the ledger services."""

from dataclasses import dataclass
from typing import Protocol

from app.models.base import CorrelationToken


@dataclass(frozen=True)
class PostedMessage:
    """A message the platform accepted. `token` identifies its thread."""
    token: CorrelationToken
    channel: str


class MessagingGateway(Protocol):
    async def post_message(
        self,
        channel: str,
        text: str,
        thread_token: CorrelationToken | None = None,
    ) -> PostedMessage:
        """
        Post `text` to `channel`, as a thread reply when `thread_token` is set.

        Raises GatewayFailure if the platform did not accept the message.
        """
        ...
