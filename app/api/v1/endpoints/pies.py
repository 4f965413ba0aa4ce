from typing import List

from fastapi import APIRouter, Depends, status

from app.api.deps import get_command_service
from app.api.errors import to_http_exception
from app.core.exceptions import LedgerError, PieNotFound
from app.schemas.pie import PieCreate, PieResponse, SliceCreate, SliceResponse
from app.services.command_service import CommandService

router = APIRouter()


@router.post("", response_model=PieResponse, status_code=status.HTTP_201_CREATED)
async def create_pie(
    pie_in: PieCreate,
    service: CommandService = Depends(get_command_service)
):
    """Announce and register a new pie."""
    try:
        pie = await service.pie_service.create_pie(pie_in.owner, pie_in.pie_id, pie_in.declared_value)
    except LedgerError as e:
        raise to_http_exception(e)
    return PieResponse.from_pie(pie)


@router.get("/{pie_id}", response_model=PieResponse)
async def get_pie(
    pie_id: str,
    service: CommandService = Depends(get_command_service)
):
    try:
        pie = await service.pie_service.get_pie(pie_id)
        if pie is None:
            raise PieNotFound(pie_id)
    except LedgerError as e:
        raise to_http_exception(e)
    return PieResponse.from_pie(pie)


@router.post("/{pie_id}/slices", response_model=SliceResponse, status_code=status.HTTP_201_CREATED)
async def record_slice(
    pie_id: str,
    slice_in: SliceCreate,
    service: CommandService = Depends(get_command_service)
):
    """Record a slice against an open pie."""
    try:
        slice_ = await service.slice_service.record_slice(slice_in.claimant, slice_in.value, pie_id=pie_id)
    except LedgerError as e:
        raise to_http_exception(e)
    return SliceResponse.from_slice(slice_)


@router.get("/{pie_id}/slices", response_model=List[SliceResponse])
async def list_slices(
    pie_id: str,
    service: CommandService = Depends(get_command_service)
):
    try:
        slices = await service.slice_service.list_slices(pie_id)
    except LedgerError as e:
        raise to_http_exception(e)
    return [SliceResponse.from_slice(slice_) for slice_ in slices]
