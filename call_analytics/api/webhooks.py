from fastapi import APIRouter, Depends, Request

from call_analytics.core.config import Settings
from call_analytics.core.deps import get_app_settings, get_ingestor
from call_analytics.schemas import WebhookResponse
from call_analytics.services.ingestion import SUPPORTED_WEBHOOK_TYPE, WebhookIngestor

router = APIRouter(prefix="/api/webhooks", tags=["webhooks"])


@router.post("/elevenlabs", response_model=WebhookResponse)
async def receive_elevenlabs_webhook(
    request: Request,
    ingestor: WebhookIngestor = Depends(get_ingestor),
    settings: Settings = Depends(get_app_settings),
):
    # The signature covers the exact bytes received.
    raw_body = await request.body()
    result = await ingestor.ingest(raw_body, request.headers.get(settings.webhook_signature_header))
    message = "Call already processed" if result.already_processed else "Webhook processed successfully"
    return WebhookResponse(message=message, call_id=result.call_id)


@router.get("/elevenlabs")
async def webhook_status():
    return {
        "message": "Elevenlabs webhook endpoint is active",
        "method": "POST",
        "events": [SUPPORTED_WEBHOOK_TYPE],
    }
