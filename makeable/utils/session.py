from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from fastapi import Depends, HTTPException, Request, Response
from jose import JWTError, jwt

from makeable.config import get_settings
from makeable.services import auth

ALGORITHM = "HS256"
TOKEN_COOKIE = "token"


def create_access_token(user_id: Any) -> str:
    settings = get_settings()
    expire = datetime.now(timezone.utc) + timedelta(days=settings.token_ttl_days)
    return jwt.encode({"sub": str(user_id), "exp": expire}, settings.jwt_secret, algorithm=ALGORITHM)


def decode_access_token(token: str) -> Optional[str]:
    try:
        payload = jwt.decode(token, get_settings().jwt_secret, algorithms=[ALGORITHM])
    except JWTError:
        return None
    return payload.get("sub")


def set_token_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        TOKEN_COOKIE,
        token,
        httponly=True,
        max_age=get_settings().token_ttl_days * 24 * 60 * 60,
        samesite="lax",
    )


def request_token(request: Request) -> Optional[str]:
    token = request.cookies.get(TOKEN_COOKIE)
    if token:
        return token
    authorization = request.headers.get("authorization", "")
    if authorization.startswith("Bearer "):
        return authorization[len("Bearer ") :]
    return None


def require_user(request: Request) -> Dict[str, Any]:
    token = request_token(request)
    if not token:
        raise HTTPException(status_code=401, detail="Not authenticated")
    user_id = decode_access_token(token)
    if not user_id or not user_id.isdigit():
        raise HTTPException(status_code=401, detail="Invalid token")
    user = auth.get_user_by_id(int(user_id))
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


def require_admin(user: Dict[str, Any] = Depends(require_user)) -> Dict[str, Any]:
    if user["role"] != "admin":
        raise HTTPException(status_code=403, detail="Admin access required")
    return user
