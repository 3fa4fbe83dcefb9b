from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from call_analytics.core.deps import get_db
from call_analytics.schemas import KPIResponse
from call_analytics.services.kpi import calculate_kpis

router = APIRouter(prefix="/api", tags=["kpis"])


@router.get("/kpis", response_model=KPIResponse)
async def get_kpis(
    from_date: Optional[str] = Query(default=None, alias="fromDate"),
    until_date: Optional[str] = Query(default=None, alias="untilDate"),
    db: AsyncSession = Depends(get_db),
):
    metrics = await calculate_kpis(db, from_date, until_date)
    return KPIResponse(
        total_calls=metrics.total_calls,
        avg_call_duration=metrics.avg_call_duration,
        avg_call_rating=metrics.avg_call_rating,
    )
