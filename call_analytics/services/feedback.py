import logging
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from call_analytics.core.database import Database
from call_analytics.core.errors import NotFoundError, ValidationError
from call_analytics.core.transaction import TransactionOptions, run_in_transaction, translate_storage_errors
from call_analytics.models import CallRecord, Feedback

logger = logging.getLogger(__name__)

RATING_MIN = 1
RATING_MAX = 5


def validate_feedback_input(rating: Any, comment: Any = None) -> None:
    if rating is None or isinstance(rating, bool) or not isinstance(rating, int):
        raise ValidationError("Rating is required and must be a number")
    if rating < RATING_MIN or rating > RATING_MAX:
        raise ValidationError(f"Rating must be between {RATING_MIN} and {RATING_MAX}")
    if comment is not None and not isinstance(comment, str):
        raise ValidationError("Comment must be a string")


async def create_feedback(
    database: Database,
    call_id: str,
    rating: Any,
    comment: Optional[str] = None,
    options: Optional[TransactionOptions] = None,
) -> Feedback:
    validate_feedback_input(rating, comment)

    # The existence check and the insert share one transaction.
    async def _create(session: AsyncSession) -> Feedback:
        call = await session.get(CallRecord, call_id)
        if call is None:
            logger.warning("Call not found for feedback call_id=%s", call_id)
            raise NotFoundError("Call not found")
        feedback = Feedback(call_id=call_id, rating=rating, comment=comment or None)
        session.add(feedback)
        await session.flush()
        return feedback

    feedback = await run_in_transaction(database, _create, options)
    logger.info("Feedback created feedback_id=%s call_id=%s rating=%s", feedback.id, call_id, rating)
    return feedback


async def delete_feedback(db: AsyncSession, feedback_id: str) -> None:
    with translate_storage_errors("delete_feedback"):
        feedback = await db.get(Feedback, feedback_id)
        if feedback is None:
            logger.warning("Feedback not found for deletion feedback_id=%s", feedback_id)
            raise NotFoundError("Feedback not found")
        call_id = feedback.call_id
        await db.delete(feedback)
        await db.commit()
    logger.info("Feedback deleted feedback_id=%s call_id=%s", feedback_id, call_id)
