from typing import Optional

from fastapi import Depends, Header, HTTPException, status, Request
from sqlalchemy.ext.asyncio import AsyncSession
from .db import get_session
from .security import extract_credential, is_admin


async def get_db(session: AsyncSession = Depends(get_session)) -> AsyncSession:
    return session


async def require_admin(request: Request) -> None:
    credential = extract_credential(
        request.headers.get("X-Admin-Secret"),
        request.headers.get("Authorization"),
    )
    if not is_admin(credential):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")


async def get_actor(x_actor: Optional[str] = Header(None, alias="X-Actor")) -> Optional[str]:
    if x_actor is None or not x_actor.strip():
        return None
    return x_actor.strip()[:120]
