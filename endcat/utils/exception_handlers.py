from typing import cast

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger

from endcat.core.enums import OutcomeStatus
from endcat.core.exceptions import EndcatError, PreconditionError
from endcat.schemas.common import APIResponse


def http_exception_handler(_request: Request, exc: Exception) -> JSONResponse:
    exc = cast(HTTPException, exc)
    return JSONResponse(
        status_code=exc.status_code,
        content=APIResponse(status=OutcomeStatus.ERROR, message=exc.detail).model_dump(
            mode="json"
        ),
    )


def validation_exception_handler(_request: Request, exc: Exception) -> JSONResponse:
    exc = cast(RequestValidationError, exc)
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=APIResponse(
            status=OutcomeStatus.ERROR,
            message="参数错误",
            data=[
                {"loc": err["loc"], "msg": err["msg"], "type": err["type"]} for err in exc.errors()
            ],
        ).model_dump(mode="json"),
    )


def endcat_exception_handler(_request: Request, exc: Exception) -> JSONResponse:
    exc = cast(EndcatError, exc)
    if isinstance(exc, PreconditionError):
        code = status.HTTP_409_CONFLICT
    else:
        code = status.HTTP_502_BAD_GATEWAY
    return JSONResponse(
        status_code=code,
        content=APIResponse(status=OutcomeStatus.ERROR, message=str(exc)).model_dump(mode="json"),
    )


def general_exception_handler(_request: Request, exc: Exception) -> JSONResponse:
    logger.opt(exception=exc).error("Unhandled error")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=APIResponse(status=OutcomeStatus.ERROR, message=str(exc)).model_dump(mode="json"),
    )
