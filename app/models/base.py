from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field, ConfigDict


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CorrelationToken(str):
    """
    Opaque identifier of the chat thread a pie was announced in.

    Slack hands these out as strings like "1700000000.000100". They are
    compared by exact string match and never converted to numbers.
    """

    @classmethod
    def __get_pydantic_core_schema__(cls, source_type: Any, handler: Any):
        from pydantic_core import core_schema

        return core_schema.no_info_after_validator_function(
            cls.validate,
            core_schema.str_schema(),
            serialization=core_schema.plain_serializer_function_ser_schema(str),
        )

    @classmethod
    def validate(cls, value: Any) -> "CorrelationToken":
        if isinstance(value, cls):
            return value
        if isinstance(value, str) and value.strip():
            return cls(value)
        raise ValueError("Correlation token must be a non-empty string")


class MongoModel(BaseModel):
    id: str | None = Field(default=None, validation_alias="_id", serialization_alias="_id")
    created_at: datetime = Field(default_factory=_utcnow)

    model_config = ConfigDict(
        populate_by_name=True,
        from_attributes=True
    )

    def to_document(self) -> dict:
        """Dump for insertion; Mongo assigns _id."""
        return self.model_dump(exclude={"id"})
