import logging

from fastapi import FastAPI, Header, HTTPException, Request
from fastapi.responses import JSONResponse

from inbound_reply.config import get_settings
from inbound_reply.services.email_parser import EmailBodyNotFound
from inbound_reply.services.logging_config import configure_logging
from inbound_reply.services.processor import load_processor
from inbound_reply.webhooks.inbound_handler import (
    UnsupportedPayload,
    handle_inbound_email,
    parse_form_fields,
)

settings = get_settings()
configure_logging(settings.log_level)
logger = logging.getLogger(__name__)

processor = load_processor(settings.processor)

app = FastAPI(title="Inbound Reply Parser", version="0.1.0")


@app.on_event("startup")
def startup() -> None:
    logger.info(
        "Application startup complete",
        extra={"event": "startup_complete", "to_format": settings.to_format, "from_format": settings.from_format},
    )


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok", "env": settings.app_env}


@app.post("/webhooks/inbound")
async def inbound_webhook(
    request: Request,
    content_type: str = Header(default=""),
) -> JSONResponse:
    raw_payload = await request.body()
    logger.info(
        "Received inbound email webhook",
        extra={"event": "inbound_webhook_received", "bytes": len(raw_payload)},
    )
    if len(raw_payload) > settings.max_body_bytes:
        logger.warning("Rejected oversized inbound payload", extra={"event": "inbound_payload_too_large"})
        raise HTTPException(status_code=413, detail="payload too large")

    try:
        fields = parse_form_fields(content_type, raw_payload)
    except UnsupportedPayload as exc:
        logger.warning("Invalid inbound payload", extra={"event": "inbound_payload_invalid", "error": str(exc)})
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    try:
        result = handle_inbound_email(fields, settings, processor)
    except EmailBodyNotFound as exc:
        logger.warning("Inbound email has no body", extra={"event": "inbound_body_missing"})
        raise HTTPException(status_code=422, detail="email body not found") from exc
    except Exception as exc:
        logger.exception("Unhandled exception while processing inbound email", extra={"event": "inbound_processing_error"})
        raise HTTPException(status_code=500, detail="inbound email processing error") from exc

    return JSONResponse(result)
