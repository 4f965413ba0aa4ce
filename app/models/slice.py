from pydantic import Field

from app.models.base import MongoModel


class Slice(MongoModel):
    """
    A claim recorded against a pie.

    pie_id, claimant and value never change after insert. `counted` flips
    to True when a settlement pass takes the slice into account; until then
    the recorder may still withdraw it.
    """
    pie_id: str
    claimant: str
    value: float = Field(..., ge=0)
    counted: bool = False
