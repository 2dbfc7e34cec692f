"""FastAPI dependencies built on the Principal resolution.

Usage in any protected router:
    from src.arena_gateway.auth.dependencies import require_settlement_operator

    @router.post("/privileged")
    async def privileged(principal: Principal = Depends(require_settlement_operator)):
        ...
"""

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from src.arena_common.database import get_db_session
from src.arena_common.enums import PrincipalKind
from src.arena_common.errors import AdminRequiredError, AuthorizationError
from src.arena_gateway.auth.principal import Principal, authorize, resolve_principal

# auto_error=False: a missing header resolves to ANONYMOUS instead of a bare 403
bearer_scheme = HTTPBearer(auto_error=False)


async def get_principal(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db_session),
) -> Principal:
    credential = credentials.credentials if credentials else None
    return await resolve_principal(credential, db)


async def require_settlement_operator(
    principal: Principal = Depends(get_principal),
) -> Principal:
    """Automation secret or admin session; everyone else gets 401."""
    if not authorize(principal).allowed:
        raise AuthorizationError()
    return principal


async def require_user(
    principal: Principal = Depends(get_principal),
) -> Principal:
    """Any logged-in user (admin or regular)."""
    if principal.kind not in (PrincipalKind.ADMIN_USER, PrincipalKind.REGULAR_USER):
        raise AuthorizationError(1001, "Unauthorized")
    return principal


async def require_admin(
    principal: Principal = Depends(require_user),
) -> Principal:
    if principal.kind is not PrincipalKind.ADMIN_USER:
        raise AdminRequiredError()
    return principal
