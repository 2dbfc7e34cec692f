"""JWT access-token handling.

Sessions are issued by the platform's auth service; this service only
verifies them. Tokens are HS256 with the shared JWT_SECRET and carry
{"sub": <user id>, "type": "access"}.

create_access_token exists for operators and tests that need to mint a
session for a known user id.
"""

from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt

from config.settings import settings
from src.arena_common.errors import InvalidCredentialsError

_ALGORITHM = settings.JWT_ALGORITHM  # "HS256"
_ACCESS_EXPIRE = timedelta(minutes=settings.JWT_EXPIRE_MINUTES)


def create_access_token(user_id: str) -> str:
    """Issue a short-lived access token (default: 30 min)."""
    now = datetime.now(UTC)
    payload = {
        "sub": user_id,
        "type": "access",
        "iat": now,
        "exp": now + _ACCESS_EXPIRE,
    }
    return str(jwt.encode(payload, settings.JWT_SECRET, algorithm=_ALGORITHM))


def decode_access_token(token: str) -> str:
    """Validate an access token and return its subject (user id).

    Raises:
        InvalidCredentialsError: signature/expiry invalid, wrong token type,
            or missing subject.
    """
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[_ALGORITHM],  # Explicit list prevents algorithm confusion
        )
    except JWTError:
        raise InvalidCredentialsError() from None

    if payload.get("type") != "access":
        raise InvalidCredentialsError()
    user_id = payload.get("sub")
    if not user_id:
        raise InvalidCredentialsError()
    return str(user_id)
