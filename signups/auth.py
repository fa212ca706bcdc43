"""Bearer-token guard for the ``/api/channels`` admin endpoints.

The admin API lets an operator inspect and edit every channel's signup
list without going through Discord, so it is locked behind ADMIN_API_KEY:

  key set, request carries it        → allow
  key set, token wrong or absent     → 401 Unauthorized
  key unset, DEBUG=true              → allow (local development)
  key unset, DEBUG=false             → 403 Forbidden

Slash-command traffic on ``/interactions`` never passes through here; it
is authenticated by its Ed25519 signature (``signups.discord.signature``).
"""

from __future__ import annotations

import logging
import secrets

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from signups.config import settings

log = logging.getLogger("signups.auth")

_bearer_scheme = HTTPBearer(auto_error=False)


async def require_admin_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer_scheme),
) -> None:
    """Reject admin API calls that do not present ADMIN_API_KEY."""
    key = settings.admin_api_key

    if not key:
        if settings.debug:
            return
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin API key not configured. Set ADMIN_API_KEY in .env.",
        )

    if credentials is None or not secrets.compare_digest(credentials.credentials, key):
        log.warning("Rejected admin request with missing or invalid token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing admin token.",
            headers={"WWW-Authenticate": "Bearer"},
        )
