import pytest
from unittest.mock import AsyncMock, MagicMock

from app.main import app


@pytest.mark.asyncio
@pytest.mark.parametrize("reachable, status_code, body", [
    (True, 200, {"database": "ok"}),
    (False, 503, {"database": "unavailable"}),
])
async def test_database_health(test_client, reachable, status_code, body):
    mongodb = MagicMock()
    mongodb.ping = AsyncMock(return_value=reachable)
    app.state.mongodb = mongodb

    response = await test_client.get("/health/db")

    assert response.status_code == status_code
    assert response.json() == body
