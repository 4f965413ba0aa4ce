from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.api import health, slack
from app.api.v1.api import api_router
from app.core.config import settings
from app.core.logging import setup_logging
from app.db.mongo import MongoDatabase
from app.gateways.slack import SlackGateway
from app.services.command_service import CommandService
from app.services.event_channel import InboundEventChannel
from app.services.locks import PieLocks


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the store and gateway for the life of the process."""
    setup_logging(settings.LOG_LEVEL)

    mongodb = MongoDatabase(settings.MONGODB_URI, settings.DATABASE_NAME)
    db = await mongodb.connect()
    gateway = SlackGateway(
        token=settings.SLACK_TOKEN,
        api_url=settings.SLACK_API_URL,
        timeout=settings.SLACK_TIMEOUT
    )
    locks = PieLocks()
    commands = CommandService(
        db,
        gateway,
        locks,
        channel=settings.CHANNEL_ID,
        confirmations=settings.SLICE_CONFIRMATIONS
    )
    events = InboundEventChannel(commands.handle_event)

    app.state.mongodb = mongodb
    app.state.gateway = gateway
    app.state.locks = locks
    app.state.events = events
    try:
        yield
    finally:
        await events.close()
        await gateway.close()
        await mongodb.close()


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.PROJECT_VERSION,
    description=settings.DESCRIPTION,
    lifespan=lifespan
)

@app.get("/")
async def root():
    return {"message": "Welcome to Pie Ledger"}

app.include_router(slack.router, prefix="/slack")
app.include_router(health.router, prefix="/health")
app.include_router(api_router, prefix=settings.API_V1_STR)
