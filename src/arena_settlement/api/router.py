"""Settlement correction REST endpoints.

POST /arena-bets/fix-market          — reverse and re-settle a resolved market
POST /arena-bets/fix-market/recover  — drive unfinished corrections to completion

Both require the automation secret or an admin session. A recovery pass that
leaves any intent open answers 500 with code 9005 and the per-intent report.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from src.arena_common.database import get_db_session
from src.arena_common.errors import RecoveryIncompleteError
from src.arena_common.response import ApiResponse, error_response, success_response
from src.arena_gateway.auth.dependencies import require_settlement_operator
from src.arena_gateway.auth.principal import Principal
from src.arena_settlement.application.correction_service import CorrectionService
from src.arena_settlement.application.schemas import (
    CorrectionResponse,
    FixMarketRequest,
    RecoveryResponse,
)

router = APIRouter(prefix="/arena-bets", tags=["arena-settlement"])

_service = CorrectionService()


@router.post("/fix-market")
async def fix_market(
    body: FixMarketRequest,
    request: Request,
    principal: Annotated[Principal, Depends(require_settlement_operator)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.correct(
        db, body.market_id, body.correct_outcome, requested_by=principal.label
    )
    return success_response(CorrectionResponse.from_domain(result).model_dump(), request)


@router.post("/fix-market/recover", response_model=None)
async def recover_corrections(
    request: Request,
    principal: Annotated[Principal, Depends(require_settlement_operator)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse | JSONResponse:
    results = await _service.resume_pending(db)
    report = RecoveryResponse.from_report(results)
    if report.all_succeeded:
        return success_response(report.model_dump(), request)

    err = RecoveryIncompleteError(report.failed, report.resumed)
    resp = error_response(err.code, err.message, report.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return JSONResponse(status_code=err.http_status, content=resp.model_dump())
