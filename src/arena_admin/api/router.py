"""Admin REST API."""
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.arena_admin.application.service import AdminService
from src.arena_common.database import get_db_session
from src.arena_common.enums import PrincipalKind
from src.arena_common.response import ApiResponse, success_response
from src.arena_gateway.auth.dependencies import (
    require_admin,
    require_settlement_operator,
    require_user,
)
from src.arena_gateway.auth.principal import Principal
from src.arena_settlement.application.resolution_service import ResolutionService
from src.arena_settlement.application.schemas import ResolveMarketRequest

router = APIRouter(prefix="/admin", tags=["admin"])
_service = AdminService()
_resolution = ResolutionService()


@router.get("/check")
async def check_admin(
    request: Request,
    principal: Annotated[Principal, Depends(require_user)],
) -> ApiResponse:
    return success_response(
        {
            "user_id": principal.user_id,
            "is_admin": principal.kind is PrincipalKind.ADMIN_USER,
        },
        request,
    )


@router.post("/markets/{market_id}/resolve")
async def resolve_market(
    market_id: str,
    body: ResolveMarketRequest,
    request: Request,
    principal: Annotated[Principal, Depends(require_settlement_operator)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _resolution.resolve(db, market_id, body.outcome, body.price_at_resolution)
    return success_response(result, request)


@router.get("/markets/{market_id}/bets")
async def get_market_bets(
    market_id: str,
    request: Request,
    principal: Annotated[Principal, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.get_market_bets(db, market_id)
    return success_response(result, request)


@router.get("/invariants")
async def verify_invariants(
    request: Request,
    principal: Annotated[Principal, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.verify_all_invariants(db)
    return success_response(result, request)
