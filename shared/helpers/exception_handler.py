import logging

from fastapi import FastAPI, Request, HTTPException
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

from shared.core.schemas import JsonOutResult
from shared.utils.app_status_code import AppStatusCode

logger = logging.getLogger(__name__)


def format_validation_errors(exc: RequestValidationError) -> str:
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        messages.append(f"{location}: {error.get('msg')}" if location else error.get("msg"))
    return "; ".join(messages) or "Validation error"


def setup_exception_handlers(app: FastAPI):

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        # error_response() already built the envelope
        if isinstance(exc.detail, dict) and {"status", "status_code", "message"}.issubset(exc.detail.keys()):
            wrapped = exc.detail
        else:
            wrapped = JsonOutResult(
                data=None,
                status="Failure",
                status_code=str(exc.status_code or AppStatusCode.OPERATION_FAILED),
                message=str(exc.detail)
            ).model_dump()
        return JSONResponse(
            content=jsonable_encoder(wrapped),
            status_code=exc.status_code or 400,
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        message = format_validation_errors(exc)
        logger.info("Validation error on %s %s: %s", request.method, request.url.path, message)
        wrapped = JsonOutResult(
            data=None,
            status="Failure",
            status_code=AppStatusCode.INVALID_INPUT,
            message=f"Validation error: {message}"
        ).model_dump()
        return JSONResponse(content=jsonable_encoder(wrapped), status_code=400)

    @app.exception_handler(IntegrityError)
    async def integrity_exception_handler(request: Request, exc: IntegrityError):
        logger.warning("Integrity error on %s %s: %s", request.method, request.url.path, exc.orig)
        wrapped = JsonOutResult(
            data=None,
            status="Failure",
            status_code=AppStatusCode.DUPLICATE_ADD_ERROR,
            message="Record conflicts with an existing record"
        ).model_dump()
        return JSONResponse(content=wrapped, status_code=400)

    # Catch all unhandled exceptions
    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception on %s %s", request.method, request.url.path)

        wrapped = JsonOutResult(
            data=None,
            status="Failure",
            status_code=AppStatusCode.OPERATION_FAILED,
            message="Internal server error"
        ).model_dump()
        return JSONResponse(content=wrapped, status_code=500)
