"""
Pie model - a shared claim pool with a declared base value.

Lifecycle:
- Created open by the pie registrar, bound to the chat thread it was announced in
- Only the settlement engine changes it (settled flag), exactly once
- Deleted only by clear-all
"""

from datetime import datetime
from typing import Optional

from pydantic import Field

from app.models.base import MongoModel, CorrelationToken


class Pie(MongoModel):
    """
    Invariants:
    - correlation_token is unique across all pies
    - pie_id is unique across all stored pies (join key for slices)
    - declared_value >= 0
    """
    pie_id: str = Field(..., min_length=1)
    owner: str
    correlation_token: CorrelationToken
    channel: str = ""
    declared_value: float = Field(..., ge=0)

    settled: bool = False
    settled_at: Optional[datetime] = None
