from datetime import datetime

from pydantic import Field

from app.models.base import MongoModel, _utcnow


class SettlementRecord(MongoModel):
    """
    Per-pie settlement result ("average").

    total   = declared value + sum of slice values
    average = total / (slice_count + 1), the declared value counting as the
              first contribution
    percentage is the share of the grand total across all records and is
    recomputed on every report.
    """
    pie_id: str
    claimant: str
    slice_count: int = Field(..., ge=0)
    total: float = Field(..., ge=0)
    average: float = Field(..., ge=0)
    percentage: float = 0.0
    updated_at: datetime = Field(default_factory=_utcnow)
