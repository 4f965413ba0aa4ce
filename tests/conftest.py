import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from mongomock_motor import AsyncMongoMockClient

from app.api.deps import get_command_service
from app.core.exceptions import GatewayFailure
from app.db.mongo import MongoDatabase, create_indexes
from app.gateways.base import PostedMessage
from app.main import app
from app.models.base import CorrelationToken
from app.services.command_service import CommandService
from app.services.event_channel import InboundEventChannel
from app.services.locks import PieLocks

TEST_CHANNEL = "C0PIE"
TEST_MONGODB_DB = "pie_test"


class RecordingGateway:
    """Messaging gateway double that records every post."""

    def __init__(self):
        self.messages = []
        self.fail_announcements = False
        self.fail_replies = False
        self._counter = 0

    async def post_message(self, channel, text, thread_token=None):
        if thread_token is None and self.fail_announcements:
            raise GatewayFailure("Slack is unavailable")
        if thread_token is not None and self.fail_replies:
            raise GatewayFailure("Slack is unavailable")

        self._counter += 1
        channel = channel or TEST_CHANNEL
        self.messages.append({
            "channel": channel,
            "text": text,
            "thread_token": thread_token
        })
        token = thread_token or CorrelationToken(f"1700000000.{self._counter:06d}")
        return PostedMessage(token=token, channel=channel)

    @property
    def announcements(self):
        return [m for m in self.messages if m["thread_token"] is None]

    @property
    def replies(self):
        return [m for m in self.messages if m["thread_token"] is not None]


@pytest_asyncio.fixture
async def test_db():
    """In-memory MongoDB database with the production indexes."""
    client = AsyncMongoMockClient()
    db = client[TEST_MONGODB_DB]
    await create_indexes(db)
    yield db


@pytest.fixture
def gateway():
    return RecordingGateway()


@pytest.fixture
def locks():
    return PieLocks()


@pytest.fixture
def command_service(test_db, gateway, locks):
    return CommandService(test_db, gateway, locks, channel=TEST_CHANNEL)


@pytest_asyncio.fixture
async def event_channel(command_service):
    channel = InboundEventChannel(command_service.handle_event)
    yield channel
    await channel.close()


@pytest_asyncio.fixture
async def test_client(test_db, gateway, locks, command_service, event_channel):
    """API client wired to the in-memory store and recording gateway."""
    mongodb = MongoDatabase("mongodb://localhost:27017", TEST_MONGODB_DB)
    mongodb.db = test_db

    app.state.mongodb = mongodb
    app.state.gateway = gateway
    app.state.locks = locks
    app.state.events = event_channel
    app.dependency_overrides[get_command_service] = lambda: command_service

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
