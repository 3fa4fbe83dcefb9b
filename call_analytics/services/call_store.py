import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from call_analytics.core.database import Database
from call_analytics.core.transaction import TransactionOptions, run_in_transaction, translate_storage_errors
from call_analytics.models import CallRecord

logger = logging.getLogger(__name__)


class CallStore:
    def __init__(self, database: Database, transaction_options: Optional[TransactionOptions] = None) -> None:
        self.database = database
        self.transaction_options = transaction_options or TransactionOptions()

    async def find_by_conversation_id(self, conversation_id: str) -> Optional[CallRecord]:
        with translate_storage_errors("find_call_by_conversation_id"):
            async with self.database.session() as session:
                result = await session.execute(
                    select(CallRecord).where(CallRecord.conversation_id == conversation_id)
                )
                return result.scalar_one_or_none()

    async def create(self, call: CallRecord) -> CallRecord:
        async def _create(session: AsyncSession) -> CallRecord:
            session.add(call)
            await session.flush()
            return call

        created = await run_in_transaction(self.database, _create, self.transaction_options)
        logger.info("Call created call_id=%s conversation_id=%s", created.id, created.conversation_id)
        return created
