import logging

from motor.motor_asyncio import AsyncIOMotorDatabase

from app.core.exceptions import GatewayFailure, PieAlreadySettled, PieNotFound
from app.gateways.base import MessagingGateway
from app.models.base import CorrelationToken
from app.models.pie import Pie
from app.models.slice import Slice
from app.repositories.pie_repo import PieRepository
from app.repositories.slice_repo import SliceRepository
from app.services.locks import PieLocks
from app.utils.amount_validation import parse_amount

logger = logging.getLogger(__name__)


class SliceService:
    """Records slices against open pies."""

    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        gateway: MessagingGateway,
        locks: PieLocks,
        confirmations: bool = True
    ):
        self.pies = PieRepository(db)
        self.slices = SliceRepository(db)
        self.gateway = gateway
        self.locks = locks
        self.confirmations = confirmations

    async def resolve_pie(
        self,
        pie_id: str | None = None,
        correlation_token: CorrelationToken | None = None
    ) -> Pie:
        """Find a pie by id (command path) or by thread token (reply path)."""
        if (pie_id is None) == (correlation_token is None):
            raise ValueError("Exactly one of pie_id or correlation_token is required")

        if pie_id is not None:
            pie = await self.pies.get_by_id(pie_id)
            reference = pie_id
        else:
            pie = await self.pies.get_by_token(correlation_token)
            reference = f"thread {correlation_token}"

        if pie is None:
            raise PieNotFound(reference)
        return pie

    async def record_slice(
        self,
        claimant: str,
        raw_value,
        *,
        pie_id: str | None = None,
        correlation_token: CorrelationToken | None = None
    ) -> Slice:
        """
        Record a claim of `raw_value` by `claimant`.

        A slice against a settled pie is rejected with PieAlreadySettled.
        If a settlement lands between the insert and the re-check, the slice
        is withdrawn unless that settlement already counted it, so it is
        never both uncounted and silently kept.
        """
        value = parse_amount(raw_value)
        pie = await self.resolve_pie(pie_id, correlation_token)
        if pie.settled:
            raise PieAlreadySettled(pie.pie_id)

        async with self.locks.hold(pie.pie_id):
            slice_ = await self.slices.insert(
                Slice(pie_id=pie.pie_id, claimant=claimant, value=value)
            )

            current = await self.pies.get_by_id(pie.pie_id)
            if current is None:
                # Cleared concurrently
                await self.slices.withdraw(slice_.id)
                raise PieNotFound(pie.pie_id)
            if current.settled:
                if await self.slices.withdraw(slice_.id):
                    logger.info(f"Slice by {claimant} withdrawn: pie {pie.pie_id} settled concurrently")
                    raise PieAlreadySettled(pie.pie_id)
                slice_ = slice_.model_copy(update={"counted": True})

        logger.info(f"Slice of {value} for pie {pie.pie_id} recorded by {claimant}")
        await self._confirm(pie, slice_)
        return slice_

    async def list_slices(self, pie_id: str) -> list[Slice]:
        pie = await self.resolve_pie(pie_id=pie_id)
        return await self.slices.list_for_pie(pie.pie_id)

    async def _confirm(self, pie: Pie, slice_: Slice) -> None:
        """Best-effort thread confirmation; the slice stays recorded either way."""
        if not self.confirmations or not pie.channel:
            return
        try:
            await self.gateway.post_message(
                pie.channel,
                f"Slice of {slice_.value:g} for pie {pie.pie_id} has been added by {slice_.claimant}",
                thread_token=pie.correlation_token
            )
        except GatewayFailure as e:
            logger.warning(f"Could not confirm slice for pie {pie.pie_id}: {e.message}")
