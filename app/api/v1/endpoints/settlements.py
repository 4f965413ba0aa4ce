from fastapi import APIRouter, Depends

from app.api.deps import get_command_service
from app.api.errors import to_http_exception
from app.core.exceptions import LedgerError
from app.schemas.settlement import SettlementReport
from app.services.command_service import CommandService

router = APIRouter()


@router.post("", response_model=SettlementReport)
async def settle(service: CommandService = Depends(get_command_service)):
    """Settle every open pie and return the cumulative report."""
    try:
        return await service.settlement_service.settle()
    except LedgerError as e:
        raise to_http_exception(e)


@router.get("", response_model=SettlementReport)
async def get_report(service: CommandService = Depends(get_command_service)):
    """Cumulative report without settling anything."""
    try:
        return await service.settlement_service.report()
    except LedgerError as e:
        raise to_http_exception(e)
