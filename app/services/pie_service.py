import logging

from motor.motor_asyncio import AsyncIOMotorDatabase

from app.core.exceptions import DuplicatePie, MalformedCommand, StoreFailure
from app.gateways.base import MessagingGateway
from app.models.pie import Pie
from app.repositories.pie_repo import PieRepository
from app.utils.amount_validation import parse_amount

logger = logging.getLogger(__name__)


class PieService:
    """Registers pies: announce in the channel, then persist under the thread token."""

    def __init__(self, db: AsyncIOMotorDatabase, gateway: MessagingGateway, channel: str):
        self.pies = PieRepository(db)
        self.gateway = gateway
        self.channel = channel

    async def create_pie(self, owner: str, pie_id: str, declared_value) -> Pie:
        """
        Create an open pie.

        Steps:
        1. Validate the amount and the id (no side effects on failure)
        2. Refuse ids that already exist
        3. Post the announcement; its thread token becomes the correlation token
        4. Persist the pie

        If step 3 fails nothing is stored. If step 4 fails the announcement
        is left behind without a pie; that is logged and re-raised.
        """
        value = parse_amount(declared_value)
        pie_id = (pie_id or "").strip()
        if not pie_id:
            raise MalformedCommand("A pie ID is required")

        if await self.pies.exists(pie_id):
            raise DuplicatePie(pie_id)

        posted = await self.gateway.post_message(
            self.channel,
            f"Pie {pie_id} has been added by {owner} (declared value {value:g})"
        )

        pie = Pie(
            pie_id=pie_id,
            owner=owner,
            correlation_token=posted.token,
            channel=posted.channel,
            declared_value=value
        )
        try:
            pie = await self.pies.insert(pie)
        except (StoreFailure, DuplicatePie):
            logger.error(
                f"Pie {pie_id} was announced in thread {posted.token} "
                f"but could not be saved; the announcement is orphaned"
            )
            raise

        logger.info(f"Pie {pie_id} created by {owner} with value {value} (thread {pie.correlation_token})")
        return pie

    async def get_pie(self, pie_id: str) -> Pie | None:
        return await self.pies.get_by_id(pie_id)
