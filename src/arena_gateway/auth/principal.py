"""Caller capability resolution.

Every request resolves to exactly one Principal kind:

    ANONYMOUS     no credential, or a credential that checks out as nothing
    AUTOMATION    bearer equals the configured CRON_SECRET
    ADMIN_USER    valid access token, profile.is_admin is true
    REGULAR_USER  valid access token, any other profile

Privileged operations gate on the kind, never on the raw credential.
"""

import hmac
import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.arena_common.enums import PrincipalKind
from src.arena_common.errors import InvalidCredentialsError
from src.arena_gateway.auth.jwt_handler import decode_access_token
from src.arena_gateway.user.repository import ProfileRepository

logger = logging.getLogger(__name__)

_CORRECTION_KINDS = frozenset({PrincipalKind.AUTOMATION, PrincipalKind.ADMIN_USER})


@dataclass(frozen=True)
class Principal:
    kind: PrincipalKind
    user_id: str | None = None

    @property
    def label(self) -> str:
        """Stable identifier recorded on correction intents."""
        if self.kind is PrincipalKind.AUTOMATION:
            return "automation"
        return self.user_id or "anonymous"


ANONYMOUS = Principal(PrincipalKind.ANONYMOUS)
AUTOMATION = Principal(PrincipalKind.AUTOMATION)


@dataclass(frozen=True)
class Authorization:
    allowed: bool
    principal: Principal


def _matches_cron_secret(credential: str) -> bool:
    secret = settings.CRON_SECRET
    if not secret:
        return False
    return hmac.compare_digest(credential.encode("utf-8"), secret.encode("utf-8"))


async def resolve_principal(
    credential: str | None,
    db: AsyncSession,
    profiles: ProfileRepository | None = None,
) -> Principal:
    """Map a bearer credential to a Principal. Never raises on bad credentials."""
    if not credential:
        return ANONYMOUS
    if _matches_cron_secret(credential):
        return AUTOMATION

    try:
        user_id = decode_access_token(credential)
    except InvalidCredentialsError:
        return ANONYMOUS

    profile = await (profiles or ProfileRepository()).get_profile(db, user_id)
    if profile is None:
        logger.info("Token subject %s has no profile", user_id)
        return ANONYMOUS
    if profile.is_admin is True:
        return Principal(PrincipalKind.ADMIN_USER, user_id)
    return Principal(PrincipalKind.REGULAR_USER, user_id)


def authorize(principal: Principal) -> Authorization:
    """May this principal correct or resolve markets?"""
    return Authorization(allowed=principal.kind in _CORRECTION_KINDS, principal=principal)
