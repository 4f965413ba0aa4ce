"""
Slack-facing routes.

/slack/commands receives slash commands (form encoded) and answers with
plain text. /slack/events receives the Events API; thread replies are
queued on the inbound event channel and acknowledged right away.
"""

from fastapi import APIRouter, Depends, Form
from fastapi.responses import PlainTextResponse

from app.api.deps import get_command_service, get_event_channel
from app.schemas.command import CommandContext, ThreadEvent
from app.services.command_service import CommandService
from app.services.event_channel import InboundEventChannel

router = APIRouter(tags=["slack"])


@router.post("/commands", response_class=PlainTextResponse)
async def slash_command(
    command: str = Form(...),
    text: str = Form(""),
    user_name: str = Form(...),
    channel_id: str = Form(""),
    service: CommandService = Depends(get_command_service)
):
    context = CommandContext(user_name=user_name, channel=channel_id)
    response = await service.dispatch(command, text, context)
    return response.text


@router.post("/events")
async def events(
    payload: dict,
    channel: InboundEventChannel = Depends(get_event_channel)
):
    if payload.get("type") == "url_verification":
        return {"challenge": payload.get("challenge")}

    if payload.get("type") == "event_callback":
        event = payload.get("event") or {}
        if event.get("type") == "message":
            channel.submit(ThreadEvent.from_slack(event))

    return {"ok": True}
