from datetime import datetime
from typing import Optional, Union

from pydantic import BaseModel, Field, ConfigDict

from app.models.pie import Pie
from app.models.slice import Slice


class PieCreate(BaseModel):
    """Pie creation request. declared_value is validated by the registrar."""
    pie_id: str = Field(..., min_length=1, max_length=100)
    owner: str = Field(..., min_length=1)
    declared_value: Union[float, str]


class PieResponse(BaseModel):
    pie_id: str
    owner: str
    correlation_token: str
    channel: str
    declared_value: float
    settled: bool
    created_at: datetime
    settled_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def from_pie(cls, pie: Pie) -> "PieResponse":
        return cls(
            pie_id=pie.pie_id,
            owner=pie.owner,
            correlation_token=str(pie.correlation_token),
            channel=pie.channel,
            declared_value=pie.declared_value,
            settled=pie.settled,
            created_at=pie.created_at,
            settled_at=pie.settled_at
        )


class SliceCreate(BaseModel):
    claimant: str = Field(..., min_length=1)
    value: Union[float, str]


class SliceResponse(BaseModel):
    id: str
    pie_id: str
    claimant: str
    value: float
    created_at: datetime

    @classmethod
    def from_slice(cls, slice_: Slice) -> "SliceResponse":
        return cls(
            id=slice_.id,
            pie_id=slice_.pie_id,
            claimant=slice_.claimant,
            value=slice_.value,
            created_at=slice_.created_at
        )
