from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from call_analytics.core.database import Database
from call_analytics.core.deps import get_database, get_db, get_transaction_options
from call_analytics.core.transaction import TransactionOptions
from call_analytics.schemas import FeedbackCreate, FeedbackOut, FeedbackResponse, MessageResponse
from call_analytics.services import feedback as feedback_service

router = APIRouter(prefix="/api/feedback", tags=["feedback"])


@router.post(
    "/{call_id}",
    response_model=FeedbackResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_feedback(
    call_id: str,
    data: FeedbackCreate,
    database: Database = Depends(get_database),
    options: TransactionOptions = Depends(get_transaction_options),
):
    feedback = await feedback_service.create_feedback(database, call_id, data.rating, data.comment, options)
    return FeedbackResponse(feedback=FeedbackOut.model_validate(feedback))


@router.delete("/action/{feedback_id}", response_model=MessageResponse)
async def delete_feedback(feedback_id: str, db: AsyncSession = Depends(get_db)):
    await feedback_service.delete_feedback(db, feedback_id)
    return MessageResponse(message="Feedback deleted successfully")
