from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .errors import AuthenticationRequired
from .settings import get_settings

logger = logging.getLogger(__name__)

_security = HTTPBearer(auto_error=False)


# PUBLIC_INTERFACE
@dataclass(frozen=True)
class Principal:
    """The authenticated caller. ``id`` is what gets stored as a todo's owner."""

    id: str


def _lookup_token(token: str) -> Optional[str]:
    match: Optional[str] = None
    for known, user_id in get_settings().api_tokens.items():
        # No early exit: every entry is compared
        if secrets.compare_digest(known.encode("utf-8"), token.encode("utf-8")):
            match = user_id
    return match


# PUBLIC_INTERFACE
def get_current_user(
    creds: Optional[HTTPAuthorizationCredentials] = Depends(_security),
) -> Principal:
    """
    FastAPI dependency resolving the caller from ``Authorization: Bearer <token>``.

    The token table comes from the API_TOKENS setting.

    Raises:
        AuthenticationRequired if the header is missing, uses another scheme,
        or carries an unknown token.
    """
    if creds is None or not creds.credentials:
        raise AuthenticationRequired()

    user_id = _lookup_token(creds.credentials)
    if user_id is None:
        logger.warning("Rejected request with unknown bearer token")
        raise AuthenticationRequired("Invalid authentication credentials")
    return Principal(id=user_id)
