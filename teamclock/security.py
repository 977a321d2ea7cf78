from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import uuid4

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from teamclock.db import get_db
from teamclock.errors import ApiError
from teamclock.models import User
from teamclock.settings import get_settings

bearer_scheme = HTTPBearer(auto_error=False)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def create_access_token(user_id: int) -> tuple[str, int]:
    settings = get_settings()
    now = _utcnow()
    expires_in = settings.access_token_minutes * 60
    claims = {
        "sub": str(user_id),
        "iss": settings.jwt_issuer,
        "aud": settings.jwt_audience,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(seconds=expires_in)).timestamp()),
        "jti": str(uuid4()),
        "typ": "access",
    }
    return jwt.encode(claims, settings.jwt_secret, algorithm="HS256"), expires_in


def decode_token(token: str) -> dict[str, Any]:
    settings = get_settings()
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=["HS256"],
            audience=settings.jwt_audience,
            issuer=settings.jwt_issuer,
            options={"require_sub": True, "require_iat": True, "require_exp": True},
        )
    except JWTError as exc:
        raise ApiError(status_code=401, code="INVALID_TOKEN", message="Token is invalid.") from exc

    if payload.get("typ") != "access":
        raise ApiError(status_code=401, code="INVALID_TOKEN", message="Token type is invalid.")

    subject = payload.get("sub")
    if not isinstance(subject, str) or not subject.isdigit():
        raise ApiError(status_code=401, code="INVALID_TOKEN", message="Token subject is invalid.")
    return payload


def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise ApiError(status_code=401, code="INVALID_TOKEN", message="Missing bearer token.")

    payload = decode_token(credentials.credentials)
    user = db.get(User, int(payload["sub"]))
    if user is None:
        raise ApiError(status_code=401, code="INVALID_TOKEN", message="Token user no longer exists.")

    request.state.actor_id = str(user.id)
    return user
