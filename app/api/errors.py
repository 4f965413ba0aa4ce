from fastapi import HTTPException, status

from app.core.exceptions import (
    DuplicatePie,
    GatewayFailure,
    InvalidAmount,
    LedgerError,
    MalformedCommand,
    PieAlreadySettled,
    PieNotFound,
    StoreFailure,
)

STATUS_BY_ERROR = {
    InvalidAmount: status.HTTP_422_UNPROCESSABLE_CONTENT,
    MalformedCommand: status.HTTP_422_UNPROCESSABLE_CONTENT,
    PieNotFound: status.HTTP_404_NOT_FOUND,
    PieAlreadySettled: status.HTTP_409_CONFLICT,
    DuplicatePie: status.HTTP_409_CONFLICT,
    GatewayFailure: status.HTTP_502_BAD_GATEWAY,
    StoreFailure: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def to_http_exception(error: LedgerError) -> HTTPException:
    status_code = STATUS_BY_ERROR.get(type(error), status.HTTP_400_BAD_REQUEST)
    return HTTPException(status_code=status_code, detail=error.message)
