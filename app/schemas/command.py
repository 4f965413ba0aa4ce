from pydantic import BaseModel, Field, ConfigDict

from app.models.base import CorrelationToken


class CommandContext(BaseModel):
    """Who issued a command and where."""
    user_name: str
    channel: str = ""


class CommandResponse(BaseModel):
    text: str
    ok: bool = True


class ThreadEvent(BaseModel):
    """
    Inbound chat event.

    Built from a Slack `message` event: `ts` of the parent message arrives
    as `thread_ts` and becomes `thread_token`.
    """
    model_config = ConfigDict(populate_by_name=True)

    type: str
    text: str = ""
    user: str = ""
    channel: str = ""
    thread_token: CorrelationToken | None = Field(default=None, alias="thread_ts")
    is_from_bot: bool = False

    @classmethod
    def from_slack(cls, event: dict) -> "ThreadEvent":
        subtype = event.get("subtype")
        event_type = event.get("type", "")
        # Edits, deletions, joins etc. are not new replies
        if subtype and subtype != "bot_message":
            event_type = f"{event_type}.{subtype}"

        thread_ts = event.get("thread_ts") or None
        # The parent message itself carries thread_ts == ts
        if thread_ts is not None and thread_ts == event.get("ts"):
            thread_ts = None

        return cls(
            type=event_type,
            text=event.get("text") or "",
            user=event.get("user") or event.get("username") or "",
            channel=event.get("channel") or "",
            thread_ts=thread_ts,
            is_from_bot=bool(event.get("bot_id")) or subtype == "bot_message",
        )
