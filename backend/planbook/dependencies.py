"""
Request-scoped dependencies.

Authentication happens upstream; the gateway forwards the caller identity in
``settings.USER_ID_HEADER`` and this module only turns it into a ``CurrentUser``.
"""
from fastapi import Depends, HTTPException, status
from fastapi.security import APIKeyHeader
from pydantic import BaseModel

from planbook.config import settings

user_id_header = APIKeyHeader(name=settings.USER_ID_HEADER, auto_error=False)


class CurrentUser(BaseModel):
    id: str


def get_current_user(user_id: str = Depends(user_id_header)) -> CurrentUser:
    if not user_id or not user_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Missing caller identity header {settings.USER_ID_HEADER}",
        )
    return CurrentUser(id=user_id.strip())
