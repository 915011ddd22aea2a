"""
Identity provider: resolves a bearer JWT to a stable principal string.

Tokens are issued elsewhere (the account service); this module only verifies
them. The principal is read from settings.PRINCIPAL_CLAIM, falling back to
the standard "sub" claim.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from signups.core.config import get_settings
from signups.core.exceptions import Unauthenticated
from signups.core.logging import get_logger

logger = get_logger(__name__)
settings = get_settings()

bearer_scheme = HTTPBearer(auto_error=False)


def create_access_token(principal: str, expires_delta: Optional[timedelta] = None) -> str:
    """Issue a token for `principal`. Used by tests and local tooling."""
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    payload = {
        "sub": principal,
        settings.PRINCIPAL_CLAIM: principal,
        "iat": now,
        "exp": expire,
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def resolve_principal(token: str) -> str:
    """Verify `token` and return its principal, or raise Unauthenticated."""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except jwt.ExpiredSignatureError:
        logger.warning("token_rejected", reason="expired")
        raise Unauthenticated("Token has expired")
    except jwt.InvalidTokenError as e:
        logger.warning("token_rejected", reason="invalid", error=str(e))
        raise Unauthenticated("Invalid authentication token")

    principal = payload.get(settings.PRINCIPAL_CLAIM) or payload.get("sub")
    if not isinstance(principal, str) or not principal.strip():
        logger.warning("token_rejected", reason="missing_principal")
        raise Unauthenticated("Token does not identify a principal")
    return principal


async def get_current_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> str:
    """FastAPI dependency: principal of the calling user."""
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise Unauthenticated()
    return resolve_principal(credentials.credentials)
