"""
Request authorization.

`authorize` is a pure decision: raw token in, authenticated identity out, or
AuthorizationError. It runs as a dependency ahead of every protected route.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from .errors import AuthorizationError
from .security import TokenError, TokenService

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
@dataclass(frozen=True)
class AuthenticatedIdentity:
    user_id: int


# PUBLIC_INTERFACE
def authorize(raw_token: Optional[str], verifier: TokenService, now: Optional[float] = None) -> AuthenticatedIdentity:
    if not raw_token:
        logger.info("Request rejected: missing token")
        raise AuthorizationError(reason="missing token")
    try:
        user_id = verifier.verify(raw_token, now=now)
    except TokenError as exc:
        logger.info("Request rejected: %s", exc.reason)
        raise AuthorizationError(reason=exc.reason) from exc
    return AuthenticatedIdentity(user_id=user_id)
