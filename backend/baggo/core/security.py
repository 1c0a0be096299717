# backend/baggo/core/security.py

import jwt
from typing import Optional

from baggo.core.config_loader import settings


ALGORITHM = "HS256"


# ---------------------------------------------------------------------------
# JWT VERIFY
# ---------------------------------------------------------------------------
def decode_token(token: str) -> Optional[dict]:
    try:
        decoded = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[ALGORITHM])
        return decoded
    except jwt.PyJWTError:
        return None


# ---------------------------------------------------------------------------
# USER KEY: authenticated id or the anonymous sentinel
# ---------------------------------------------------------------------------
def user_key_from_header(authorization: Optional[str]) -> str:
    if not authorization or not authorization.startswith("Bearer "):
        return settings.anonymous_user_key

    payload = decode_token(authorization.split(" ", 1)[1])
    if not payload or not payload.get("sub"):
        return settings.anonymous_user_key

    return str(payload["sub"])
