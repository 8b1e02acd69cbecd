from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Final

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from core.errors import auth_invalid_token
from core.settings import get_settings
from security.principal import AuthPrincipal

token_auth_scheme = HTTPBearer(auto_error=True)

ALGORITHM: Final[str] = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES: Final[int] = 60


def _secret_key() -> str:
    secret_key = get_settings().secret_key
    if not secret_key:
        raise RuntimeError("SECRET_KEY is not configured")
    return secret_key


def create_access_token(user_id: str, *, expires_in_minutes: int = ACCESS_TOKEN_EXPIRE_MINUTES) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": user_id,
        "iat": now,
        "exp": now + timedelta(minutes=expires_in_minutes),
    }
    return jwt.encode(payload, _secret_key(), algorithm=ALGORITHM)


def decode_access_token(token: str) -> AuthPrincipal:
    try:
        claims = jwt.decode(
            token,
            _secret_key(),
            algorithms=[ALGORITHM],
            options={"require": ["sub", "exp"]},
        )
    except jwt.ExpiredSignatureError as err:
        raise auth_invalid_token(details={"reason": "expired"}) from err
    except jwt.InvalidTokenError as err:
        raise auth_invalid_token(details={"reason": str(err)}) from err

    user_id = claims.get("sub")
    if not isinstance(user_id, str) or not user_id:
        raise auth_invalid_token(details={"reason": "missing subject"})

    issued_at = claims.get("iat")
    return AuthPrincipal(
        user_id=user_id,
        jwt_token=token,
        token_created_at=int(issued_at) if isinstance(issued_at, (int, float)) else None,
    )


async def verify_any_token(
    credentials: HTTPAuthorizationCredentials = Depends(token_auth_scheme),
) -> AuthPrincipal:
    return decode_access_token(credentials.credentials)
