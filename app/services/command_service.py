"""
Command dispatcher.

Routes chat commands and thread-reply events to the ledger services and
shapes their results into short chat responses. No ledger rules live here.
"""

import logging
from typing import Awaitable, Callable, Dict

from motor.motor_asyncio import AsyncIOMotorDatabase

from app.core.exceptions import (
    GatewayFailure,
    LedgerError,
    MalformedCommand,
    PieNotFound,
    UnrecognizedCommand,
)
from app.gateways.base import MessagingGateway
from app.schemas.command import CommandContext, CommandResponse, ThreadEvent
from app.services.admin_service import AdminService
from app.services.locks import PieLocks
from app.services.pie_service import PieService
from app.services.settlement_service import SettlementService
from app.services.slice_service import SliceService

logger = logging.getLogger(__name__)

# Legacy slash command names map onto the canonical ones
COMMAND_ALIASES: Dict[str, str] = {
    "create": "create",
    "pie": "create",
    "slice": "slice",
    "slicepie": "slice",
    "settle": "settle",
    "eatpie": "settle",
    "clear": "clear",
    "clearpie": "clear",
}


def normalize_command(command_name: str) -> str:
    name = (command_name or "").strip().lower().lstrip("/")
    return COMMAND_ALIASES.get(name, "")


def split_id_and_amount(args_text: str, usage: str) -> tuple[str, str]:
    """Split "<pie_id> <value>"; a missing value is left empty for amount validation."""
    parts = (args_text or "").split()
    if not parts or len(parts) > 2:
        raise MalformedCommand(f"Usage: {usage}")
    pie_id = parts[0]
    raw_value = parts[1] if len(parts) == 2 else ""
    return pie_id, raw_value


class CommandService:
    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        gateway: MessagingGateway,
        locks: PieLocks,
        channel: str = "",
        confirmations: bool = True
    ):
        self.gateway = gateway
        self.pie_service = PieService(db, gateway, channel)
        self.slice_service = SliceService(db, gateway, locks, confirmations=confirmations)
        self.settlement_service = SettlementService(db, locks)
        self.admin_service = AdminService(db, locks)

        self._handlers: Dict[str, Callable[[str, CommandContext], Awaitable[CommandResponse]]] = {
            "create": self._create,
            "slice": self._slice,
            "settle": self._settle,
            "clear": self._clear,
        }

    async def dispatch(self, command_name: str, args_text: str, context: CommandContext) -> CommandResponse:
        """Run a command; ledger errors come back as a failed response, never raised."""
        handler = self._handlers.get(normalize_command(command_name))
        try:
            if handler is None:
                raise UnrecognizedCommand(command_name)
            return await handler(args_text or "", context)
        except LedgerError as e:
            logger.info(f"Command {command_name!r} from {context.user_name} failed: {e.message}")
            return CommandResponse(text=e.message, ok=False)

    async def handle_event(self, event: ThreadEvent) -> CommandResponse | None:
        """
        Record a thread reply as a slice.

        Returns None for events that are not human replies inside a pie's
        thread. Failures are posted back into the thread best-effort.
        """
        if event.type != "message" or event.is_from_bot or event.thread_token is None:
            return None

        try:
            slice_ = await self.slice_service.record_slice(
                event.user,
                event.text,
                correlation_token=event.thread_token
            )
        except PieNotFound:
            # A thread that is not a pie announcement
            return None
        except LedgerError as e:
            logger.info(f"Reply from {event.user} in thread {event.thread_token} rejected: {e.message}")
            await self._reply(event, e.message)
            return CommandResponse(text=e.message, ok=False)

        return CommandResponse(
            text=f"Slice for pie {slice_.pie_id} has been added by {slice_.claimant}"
        )

    async def _create(self, args_text: str, context: CommandContext) -> CommandResponse:
        pie_id, raw_value = split_id_and_amount(args_text, "create <pie_id> <value>")
        pie = await self.pie_service.create_pie(context.user_name, pie_id, raw_value)
        return CommandResponse(text=f"Pie {pie.pie_id} has been added by {pie.owner}")

    async def _slice(self, args_text: str, context: CommandContext) -> CommandResponse:
        pie_id, raw_value = split_id_and_amount(args_text, "slice <pie_id> <value>")
        slice_ = await self.slice_service.record_slice(context.user_name, raw_value, pie_id=pie_id)
        return CommandResponse(
            text=f"Slice for pie {slice_.pie_id} has been added by {slice_.claimant}"
        )

    async def _settle(self, args_text: str, context: CommandContext) -> CommandResponse:
        report = await self.settlement_service.settle()
        return CommandResponse(text=report.to_text(), ok=not report.failures)

    async def _clear(self, args_text: str, context: CommandContext) -> CommandResponse:
        result = await self.admin_service.clear_all()
        return CommandResponse(
            text=f"Cleared {result.pies} pies, {result.slices} slices and {result.settlements} settlements"
        )

    async def _reply(self, event: ThreadEvent, text: str) -> None:
        try:
            await self.gateway.post_message(event.channel, text, thread_token=event.thread_token)
        except GatewayFailure as e:
            logger.warning(f"Could not reply in thread {event.thread_token}: {e.message}")
