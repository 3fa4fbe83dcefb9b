import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from call_analytics.core.errors import ValidationError
from call_analytics.core.transaction import translate_storage_errors
from call_analytics.models import CallRecord, Feedback
from call_analytics.services.calls import validate_date_range

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class KPIMetrics:
    total_calls: int
    avg_call_duration: Optional[float]
    avg_call_rating: Optional[float]


async def calculate_kpis(db: AsyncSession, from_date: Optional[str], until_date: Optional[str]) -> KPIMetrics:
    if not from_date or not until_date:
        raise ValidationError("Both fromDate and untilDate query parameters are required")
    date_range = validate_date_range(from_date, until_date)
    in_range = (
        CallRecord.start_time >= date_range.from_date,
        CallRecord.start_time <= date_range.until_date,
    )

    with translate_storage_errors("calculate_kpis"):
        total_calls = await db.scalar(select(func.count(CallRecord.id)).where(*in_range)) or 0
        avg_duration = await db.scalar(select(func.avg(CallRecord.call_duration_secs)).where(*in_range))
        call_ids = select(CallRecord.id).where(*in_range)
        avg_rating = await db.scalar(select(func.avg(Feedback.rating)).where(Feedback.call_id.in_(call_ids)))

    metrics = KPIMetrics(
        total_calls=total_calls,
        avg_call_duration=float(avg_duration) if total_calls and avg_duration is not None else None,
        avg_call_rating=float(avg_rating) if avg_rating is not None else None,
    )
    logger.info(
        "KPIs calculated from=%s until=%s total_calls=%s avg_duration=%s avg_rating=%s",
        date_range.from_date.isoformat(),
        date_range.until_date.isoformat(),
        metrics.total_calls,
        metrics.avg_call_duration,
        metrics.avg_call_rating,
    )
    return metrics
