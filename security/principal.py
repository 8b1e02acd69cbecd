from __future__ import annotations

from pydantic import BaseModel


class AuthPrincipal(BaseModel):
    user_id: str
    jwt_token: str
    token_created_at: int | None = None
