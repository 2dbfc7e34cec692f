"""Arena points REST endpoints.

GET /arena-bets/points — the caller's ledger account and recent journal entries
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.arena_common.database import get_db_session
from src.arena_common.response import ApiResponse, success_response
from src.arena_gateway.auth.dependencies import require_user
from src.arena_gateway.auth.principal import Principal
from src.arena_points.application.service import PointsApplicationService

router = APIRouter(prefix="/arena-bets", tags=["arena-points"])

_service = PointsApplicationService()


@router.get("/points")
async def get_points(
    request: Request,
    principal: Annotated[Principal, Depends(require_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.get_points(db, str(principal.user_id))
    return success_response(result.model_dump(), request)
