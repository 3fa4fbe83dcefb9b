from collections.abc import AsyncIterator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from call_analytics.core.config import Settings
from call_analytics.core.database import Database
from call_analytics.core.transaction import TransactionOptions
from call_analytics.services.agent_directory import AgentDirectory
from call_analytics.services.call_store import CallStore
from call_analytics.services.ingestion import WebhookIngestor
from call_analytics.services.knowledge import KnowledgeService
from call_analytics.services.vector_index import KnowledgeIndex


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_database(request: Request) -> Database:
    return request.app.state.database


async def get_db(database: Database = Depends(get_database)) -> AsyncIterator[AsyncSession]:
    async with database.session() as session:
        yield session


def get_transaction_options(settings: Settings = Depends(get_app_settings)) -> TransactionOptions:
    return TransactionOptions(
        timeout=settings.transaction_timeout_seconds,
        isolation_level=settings.db_isolation_level,
    )


def get_agent_directory(request: Request) -> AgentDirectory:
    return request.app.state.agent_directory


def get_knowledge_index(request: Request) -> KnowledgeIndex:
    return request.app.state.knowledge_index


def get_ingestor(
    settings: Settings = Depends(get_app_settings),
    database: Database = Depends(get_database),
    options: TransactionOptions = Depends(get_transaction_options),
    agent_directory: AgentDirectory = Depends(get_agent_directory),
) -> WebhookIngestor:
    return WebhookIngestor(
        store=CallStore(database, options),
        agent_directory=agent_directory,
        secret=settings.elevenlabs_webhook_secret,
        tolerance_seconds=settings.webhook_tolerance_seconds,
    )


def get_knowledge_service(index: KnowledgeIndex = Depends(get_knowledge_index)) -> KnowledgeService:
    return KnowledgeService(index)
