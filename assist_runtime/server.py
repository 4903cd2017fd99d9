"""
Assistant Runtime Server
========================

FastAPI server that exposes the generation actions and the extractors to
the trigger surface over HTTP.

Generation endpoints always answer 200 with a SuggestionResponse; failures
travel in its `error` field. Use run_assist_server.py to launch.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException
from fastapi.responses import JSONResponse

from assist_core.actions import AssistService
from assist_core.extractor import build_conversation_context, extract_post_context
from assist_core.surface import should_show_comment_trigger, should_show_reply_trigger
from assist_core.tools_api import KEY_TONE, STORE_KEYS, create_null_tools
from assist_runtime.config import get_config
from assist_runtime.models import (
    ConversationContext,
    DocumentPayload,
    GenerateCommentRequest,
    GenerateOutreachRequest,
    GenerateReplyRequest,
    OperatorSettingsPayload,
    PostContext,
    SuggestionResponse,
    Tone,
)
from assist_runtime.page_capture import to_document
from assist_runtime.redaction import redact_headers
from assist_runtime.rate_limiter import get_rate_limiter
from host_tools.factory import create_host_tools


# Setup logging
config = get_config()
logging.basicConfig(
    level=getattr(logging, config.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger("assist_runtime")


# Global service instance
_service: Optional[AssistService] = None


def get_service() -> AssistService:
    """Get the global assist service, building it from the host tools on first use."""
    global _service
    if _service is None:
        tools = create_host_tools()
        nulls = create_null_tools()
        _service = AssistService(
            completion=tools.completion or nulls.completion,
            store=tools.store or nulls.store,
            rate_limiter=get_rate_limiter(),
        )
    return _service


def set_service(service: Optional[AssistService]) -> None:
    """Replace the global assist service (None rebuilds it on next use)."""
    global _service
    _service = service


# Lifespan context manager for startup/shutdown
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage assist runtime lifecycle."""
    logger.info("Starting assist runtime...")
    service = get_service()
    logger.info("Assist runtime started (model %s)", service.config.model)

    yield

    logger.info("Shutting down assist runtime...")
    close = getattr(service.completion, "close", None)
    if close is not None:
        await close()
    logger.info("Assist runtime shut down")


# Create FastAPI app
app = FastAPI(
    title="LinkedIn Assist API",
    description="Reply, outreach and comment suggestions for LinkedIn",
    version="0.1.0",
    lifespan=lifespan,
)


# ============================================================================
# Health and Status Endpoints
# ============================================================================


@app.get("/")
async def root():
    """Root endpoint - health check."""
    return {"status": "ok", "service": "assist_runtime", "version": "0.1.0"}


@app.get("/health")
async def health():
    """Health check endpoint."""
    service = get_service()
    limiter = service.rate_limiter
    return {
        "status": "healthy",
        "rate_limit_available": limiter.can_make_request(),
        "rate_limit_wait_seconds": limiter.wait_seconds(),
    }


# ============================================================================
# Operator Settings
# ============================================================================


@app.get("/settings", response_model=OperatorSettingsPayload)
async def read_settings():
    """Current operator settings with the credential masked."""
    store = get_service().store
    values = {}
    for key in STORE_KEYS:
        value = store.get(key)
        if value is not None:
            values[key] = value
    if KEY_TONE in values:
        values[KEY_TONE] = Tone.parse(values[KEY_TONE])
    return OperatorSettingsPayload(**redact_headers(values))


@app.put("/settings", response_model=OperatorSettingsPayload)
async def write_settings(payload: OperatorSettingsPayload):
    """Store every field that was provided."""
    store = get_service().store
    for key, value in payload.model_dump(exclude_none=True, mode="json").items():
        store.set(key, value)
    logger.info("Updated settings: %s", ", ".join(payload.model_dump(exclude_none=True)) or "none")
    return await read_settings()


# ============================================================================
# Generation Endpoints
# ============================================================================


@app.post("/generate-reply", response_model=SuggestionResponse)
async def generate_reply(request: GenerateReplyRequest):
    """Reply, follow-up, meeting proposal or custom suggestions for a conversation."""
    return await get_service().generate_reply(request)


@app.post("/generate-outreach", response_model=SuggestionResponse)
async def generate_outreach(request: GenerateOutreachRequest):
    """First-message suggestions, with the research gathered for them."""
    return await get_service().generate_outreach(request)


@app.post("/generate-comment", response_model=SuggestionResponse)
async def generate_comment(request: GenerateCommentRequest):
    """One-liner comment suggestions for a feed post."""
    return await get_service().generate_comment(request)


# ============================================================================
# Extraction Endpoints
# ============================================================================


@app.post("/extract/conversation", response_model=ConversationContext)
async def extract_conversation(payload: DocumentPayload):
    """Extract the open conversation from a captured page."""
    try:
        return build_conversation_context(to_document(payload))
    except Exception as e:
        logger.error(f"Error extracting conversation: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))


@app.post("/extract/post", response_model=PostContext)
async def extract_post(payload: DocumentPayload):
    """Extract the post whose comment box is open."""
    post = extract_post_context(to_document(payload))
    if post is None:
        raise HTTPException(status_code=404, detail="No post with an open comment box found")
    return post


@app.post("/surface")
async def surface(payload: DocumentPayload):
    """Which triggers the page should currently offer."""
    document = to_document(payload)
    return {
        "reply_trigger": should_show_reply_trigger(document),
        "comment_trigger": should_show_comment_trigger(document),
    }


# ============================================================================
# Error Handlers
# ============================================================================


@app.exception_handler(HTTPException)
async def http_exception_handler(request, exc):
    """Handle HTTP exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
    )


@app.exception_handler(Exception)
async def general_exception_handler(request, exc):
    """Handle unexpected exceptions."""
    logger.error(f"Unexpected error: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "detail": str(exc)},
    )


# ============================================================================
# Main Entry Point
# ============================================================================


def run_server():
    """Run the assist runtime server."""
    import uvicorn

    config = get_config()
    logger.info(f"Starting server on {config.host}:{config.port}")

    uvicorn.run(
        "assist_runtime.server:app",
        host=config.host,
        port=config.port,
        log_level=config.log_level.lower(),
    )


if __name__ == "__main__":
    run_server()
