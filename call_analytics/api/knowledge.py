from fastapi import APIRouter, Depends

from call_analytics.core.deps import get_knowledge_service
from call_analytics.schemas import KnowledgeRequest, KnowledgeResponse
from call_analytics.services.knowledge import KnowledgeService

router = APIRouter(prefix="/api", tags=["knowledge"])


@router.post("/knowledge", response_model=KnowledgeResponse)
async def search_knowledge(
    data: KnowledgeRequest,
    service: KnowledgeService = Depends(get_knowledge_service),
):
    return await service.search(data)
