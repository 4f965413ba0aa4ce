import pytest


async def slash(client, command, text, user="alice"):
    return await client.post(
        "/slack/commands",
        data={"command": command, "text": text, "user_name": user, "channel_id": "C0PIE"}
    )


@pytest.mark.asyncio
async def test_slash_commands_round_trip(test_client):
    created = await slash(test_client, "/pie", "p1 10")
    assert created.status_code == 200
    assert created.text == "Pie p1 has been added by alice"

    sliced = await slash(test_client, "/slicepie", "p1 5", user="bob")
    assert sliced.text == "Slice for pie p1 has been added by bob"

    eaten = await slash(test_client, "/eatpie", "")
    assert eaten.text.startswith("Settlement report\nPie p1 (alice): average 7.50, 100.00%")


@pytest.mark.asyncio
async def test_unknown_slash_command(test_client):
    response = await slash(test_client, "/bake", "")
    assert response.status_code == 200
    assert response.text == "Unrecognized command"


@pytest.mark.asyncio
async def test_url_verification(test_client):
    response = await test_client.post(
        "/slack/events",
        json={"type": "url_verification", "challenge": "abc123"}
    )
    assert response.json() == {"challenge": "abc123"}


@pytest.mark.asyncio
async def test_thread_reply_event_records_slice(test_client, event_channel):
    await slash(test_client, "/pie", "p1 10")
    thread_ts = (await test_client.get("/api/v1/pies/p1")).json()["correlation_token"]

    response = await test_client.post("/slack/events", json={
        "type": "event_callback",
        "event": {
            "type": "message",
            "text": "2",
            "user": "carol",
            "channel": "C0PIE",
            "ts": "1700000005.000000",
            "thread_ts": thread_ts,
        }
    })
    assert response.json() == {"ok": True}

    await event_channel.join()
    listed = await test_client.get("/api/v1/pies/p1/slices")
    assert [(s["claimant"], s["value"]) for s in listed.json()] == [("carol", 2.0)]
