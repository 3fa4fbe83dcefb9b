import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from call_analytics.api import calls, feedback, health, knowledge, kpis, webhooks
from call_analytics.core.config import Settings, get_settings
from call_analytics.core.database import Database
from call_analytics.core.errors import AppError, TransientStorageError
from call_analytics.core.logging import configure_logging
from call_analytics.core.retry import retry_async
from call_analytics.core.transaction import translate_storage_errors
from call_analytics.services.agent_directory import ElevenLabsAgentDirectory
from call_analytics.services.vector_index import PineconeKnowledgeIndex

logger = logging.getLogger(__name__)


async def wait_for_database(database: Database, max_attempts: int = 8, delay_seconds: float = 1.5) -> None:
    async def _ping() -> None:
        with translate_storage_errors("startup_ping"):
            await database.ping()

    try:
        await retry_async(_ping, max_attempts=max_attempts, base_delay=delay_seconds, factor=1.5)
    except TransientStorageError:
        logger.error("Database connection failed after %s attempts.", max_attempts)
        raise


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def handle_app_error(request: Request, exc: AppError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("Request failed path=%s error=%s", request.url.path, exc.message)
        return error_response(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
        first = exc.errors()[0]
        field = first["loc"][-1] if first.get("loc") else "request"
        return error_response(400, f"Invalid value for {field}: {first['msg']}")

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error path=%s", request.url.path)
        return error_response(500, "An unexpected error occurred")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(settings.log_level)
        database = Database.from_settings(settings)
        await wait_for_database(database)
        if settings.create_tables_on_startup:
            await database.create_all()
        agent_directory = ElevenLabsAgentDirectory(
            settings.elevenlabs_api_key,
            base_url=settings.elevenlabs_base_url,
            timeout=settings.elevenlabs_timeout_seconds,
        )
        knowledge_index = PineconeKnowledgeIndex(
            settings.pinecone_api_key,
            settings.pinecone_host,
            namespace=settings.pinecone_namespace,
            api_version=settings.pinecone_api_version,
            timeout=settings.pinecone_timeout_seconds,
        )
        app.state.settings = settings
        app.state.database = database
        app.state.agent_directory = agent_directory
        app.state.knowledge_index = knowledge_index
        logger.info("Application started environment=%s", settings.environment)
        try:
            yield
        finally:
            await knowledge_index.aclose()
            await agent_directory.aclose()
            await database.dispose()
            logger.info("Application stopped")

    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)
    app.include_router(health.router)
    app.include_router(webhooks.router)
    app.include_router(calls.router)
    app.include_router(kpis.router)
    app.include_router(feedback.router)
    app.include_router(knowledge.router)
    return app


app = create_app()
