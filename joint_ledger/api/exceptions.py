from __future__ import annotations

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from ..core.errors import (
    AlreadyApproved,
    AlreadyExecuted,
    InsufficientBalance,
    InvalidAmount,
    InvalidOwnerSet,
    LedgerError,
    NotApproved,
    OwnerLimitExceeded,
    PayoutFailed,
    Unauthenticated,
    Unauthorized,
    UnknownAccount,
    UnknownRequest,
)

STATUS_BY_ERROR: dict[type[LedgerError], int] = {
    Unauthenticated: status.HTTP_401_UNAUTHORIZED,
    Unauthorized: status.HTTP_403_FORBIDDEN,
    UnknownAccount: status.HTTP_404_NOT_FOUND,
    UnknownRequest: status.HTTP_404_NOT_FOUND,
    InvalidOwnerSet: status.HTTP_400_BAD_REQUEST,
    InvalidAmount: status.HTTP_400_BAD_REQUEST,
    OwnerLimitExceeded: status.HTTP_409_CONFLICT,
    AlreadyApproved: status.HTTP_409_CONFLICT,
    AlreadyExecuted: status.HTTP_409_CONFLICT,
    NotApproved: status.HTTP_409_CONFLICT,
    InsufficientBalance: status.HTTP_409_CONFLICT,
    PayoutFailed: status.HTTP_502_BAD_GATEWAY,
}


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(LedgerError)
    async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
        status_code = STATUS_BY_ERROR.get(type(exc), status.HTTP_400_BAD_REQUEST)
        return JSONResponse(status_code=status_code, content={"detail": str(exc)})

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})
