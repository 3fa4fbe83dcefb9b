import logging
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from call_analytics.core.errors import NotFoundError, ValidationError
from call_analytics.core.transaction import translate_storage_errors
from call_analytics.models import CallRecord, CallSuccessful

logger = logging.getLogger(__name__)

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100
MIN_PAGE = 1
MIN_PAGE_SIZE = 1
ISO_8601_HINT = "Use ISO 8601 format (e.g., 2024-01-01T00:00:00Z)"


@dataclass(frozen=True)
class Pagination:
    page: int
    page_size: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


@dataclass(frozen=True)
class DateRange:
    from_date: Optional[datetime] = None
    until_date: Optional[datetime] = None


@dataclass(frozen=True)
class CallFilters:
    date_range: DateRange = DateRange()
    status: Optional[str] = None
    agent_id: Optional[str] = None
    user_id: Optional[str] = None
    call_successful: Optional[CallSuccessful] = None


@dataclass(frozen=True)
class PageInfo:
    page: int
    page_size: int
    total_items: int
    total_pages: int
    has_next: bool
    has_previous: bool


def validate_pagination(page: Optional[int] = None, page_size: Optional[int] = None) -> Pagination:
    page = max(MIN_PAGE, page or DEFAULT_PAGE)
    page_size = min(max(MIN_PAGE_SIZE, page_size or DEFAULT_PAGE_SIZE), MAX_PAGE_SIZE)
    return Pagination(page=page, page_size=page_size)


def parse_iso_datetime(value: str, field_name: str) -> datetime:
    try:
        parsed = datetime.fromisoformat(value.strip())
    except ValueError:
        raise ValidationError(f"Invalid date format for {field_name}. {ISO_8601_HINT}") from None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def validate_date_range(from_date: Optional[str] = None, until_date: Optional[str] = None) -> DateRange:
    start = parse_iso_datetime(from_date, "fromDate") if from_date else None
    end = parse_iso_datetime(until_date, "untilDate") if until_date else None
    if start and end and start > end:
        raise ValidationError("fromDate must be before untilDate")
    return DateRange(from_date=start, until_date=end)


def build_conditions(filters: CallFilters) -> list:
    conditions = []
    if filters.date_range.from_date:
        conditions.append(CallRecord.start_time >= filters.date_range.from_date)
    if filters.date_range.until_date:
        conditions.append(CallRecord.start_time <= filters.date_range.until_date)
    if filters.status:
        conditions.append(CallRecord.status == filters.status)
    if filters.agent_id:
        conditions.append(CallRecord.agent_id == filters.agent_id)
    if filters.user_id:
        conditions.append(CallRecord.user_id == filters.user_id)
    if filters.call_successful:
        conditions.append(CallRecord.call_successful == filters.call_successful)
    return conditions


def build_page_info(pagination: Pagination, total_items: int) -> PageInfo:
    total_pages = math.ceil(total_items / pagination.page_size)
    return PageInfo(
        page=pagination.page,
        page_size=pagination.page_size,
        total_items=total_items,
        total_pages=total_pages,
        has_next=pagination.page < total_pages,
        has_previous=pagination.page > 1,
    )


async def list_calls(
    db: AsyncSession, filters: CallFilters, pagination: Pagination
) -> tuple[list[CallRecord], PageInfo]:
    conditions = build_conditions(filters)
    logger.debug("Fetching calls filters=%s page=%s page_size=%s", filters, pagination.page, pagination.page_size)
    with translate_storage_errors("list_calls"):
        total = await db.scalar(select(func.count(CallRecord.id)).where(*conditions))
        result = await db.scalars(
            select(CallRecord)
            .where(*conditions)
            .order_by(CallRecord.start_time.desc())
            .offset(pagination.offset)
            .limit(pagination.page_size)
        )
        calls = list(result.all())
    page_info = build_page_info(pagination, total or 0)
    logger.info("Calls fetched count=%s total_items=%s page=%s", len(calls), page_info.total_items, page_info.page)
    return calls, page_info


async def get_call(db: AsyncSession, call_id: str) -> CallRecord:
    with translate_storage_errors("get_call"):
        result = await db.execute(
            select(CallRecord).options(selectinload(CallRecord.feedback)).where(CallRecord.id == call_id)
        )
        call = result.scalar_one_or_none()
    if call is None:
        logger.warning("Call not found call_id=%s", call_id)
        raise NotFoundError("Call not found")
    return call
