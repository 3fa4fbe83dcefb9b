from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from call_analytics.core.database import Database
from call_analytics.core.deps import get_database
from call_analytics.core.errors import TransientStorageError
from call_analytics.core.transaction import translate_storage_errors

router = APIRouter(tags=["health"])


@router.get("/health")
async def health():
    return {"status": "ok"}


@router.get("/ready")
async def ready(database: Database = Depends(get_database)):
    try:
        with translate_storage_errors("readiness_check"):
            await database.ping()
    except TransientStorageError:
        return JSONResponse(status_code=503, content={"status": "unavailable"})
    return {"status": "ready"}
