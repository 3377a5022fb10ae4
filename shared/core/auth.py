from datetime import datetime, timedelta, timezone
from typing import Optional
from fastapi import Depends, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
from pydantic import ValidationError

from shared.core.config import settings
from shared.core.schemas import UserToken
from shared.helpers.json_response_helper import error_response
from shared.utils.app_status_code import AppStatusCode

security = HTTPBearer(auto_error=False)


def create_access_token(data: dict, expires_minutes: Optional[int] = None):
    payload = data.copy()
    expires = datetime.now(timezone.utc) + timedelta(
        minutes=expires_minutes or settings.JWT_EXPIRE_MINUTES)
    payload["exp"] = expires

    # company and user ids travel as strings
    for key in ("user_id", "company_id"):
        if key in payload and payload[key] is not None:
            payload[key] = str(payload[key])

    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def verify_token(token: str) -> UserToken:
    """Verify and decode a JWT token."""
    try:
        payload = jwt.decode(token, settings.JWT_SECRET,
                             algorithms=[settings.JWT_ALGORITHM])
        return UserToken(**payload)
    except (JWTError, ValidationError):
        return error_response(
            message="Invalid or expired token",
            status_code=AppStatusCode.AUTHENTICATION_TOKEN_INVALID,
            http_status=status.HTTP_401_UNAUTHORIZED
        )


def validate_current_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> UserToken:
    if credentials is None or not credentials.credentials:
        return error_response(
            message="Unauthorized",
            status_code=AppStatusCode.AUTHENTICATION_TOKEN_INVALID,
            http_status=status.HTTP_401_UNAUTHORIZED
        )
    return verify_token(credentials.credentials)
