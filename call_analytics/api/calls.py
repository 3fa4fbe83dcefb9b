from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from call_analytics.core.deps import get_db
from call_analytics.models import CallSuccessful
from call_analytics.schemas import CallDetailOut, CallDetailResponse, CallListResponse, CallOut, PaginationOut
from call_analytics.services import calls as call_service

router = APIRouter(prefix="/api", tags=["calls"])


@router.get("/calls", response_model=CallListResponse)
async def list_calls(
    page: Optional[int] = None,
    page_size: Optional[int] = Query(default=None, alias="pageSize"),
    from_date: Optional[str] = Query(default=None, alias="fromDate"),
    until_date: Optional[str] = Query(default=None, alias="untilDate"),
    state: Optional[str] = None,
    agent_id: Optional[str] = Query(default=None, alias="agentId"),
    user_id: Optional[str] = Query(default=None, alias="userId"),
    call_successful: Optional[CallSuccessful] = Query(default=None, alias="callSuccessful"),
    db: AsyncSession = Depends(get_db),
):
    filters = call_service.CallFilters(
        date_range=call_service.validate_date_range(from_date, until_date),
        status=state,
        agent_id=agent_id,
        user_id=user_id,
        call_successful=call_successful,
    )
    pagination = call_service.validate_pagination(page, page_size)
    calls, page_info = await call_service.list_calls(db, filters, pagination)
    return CallListResponse(
        calls=[CallOut.model_validate(call) for call in calls],
        pagination=PaginationOut.model_validate(page_info),
    )


@router.get("/call/{call_id}", response_model=CallDetailResponse)
async def get_call(call_id: str, db: AsyncSession = Depends(get_db)):
    call = await call_service.get_call(db, call_id)
    return CallDetailResponse(call=CallDetailOut.model_validate(call))
