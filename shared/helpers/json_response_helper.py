# shared/helpers/json_response_helper.py
from fastapi import HTTPException
from typing import Any, Optional

from shared.utils.app_status_code import AppStatusCode
from shared.core.schemas import JsonOutResult


def error_response(message: str, status_code: str = AppStatusCode.OPERATION_FAILED, http_status: int = 400, data: Optional[Any] = None):
    raise HTTPException(
        status_code=http_status,
        detail=JsonOutResult(
            data=data,
            status="Failure",
            status_code=status_code,
            message=message
        ).model_dump()
    )


def not_found_response(entity: str):
    return error_response(
        message=f"{entity} not found",
        status_code=AppStatusCode.NOT_FOUND,
        http_status=404
    )
