"""
CHATBOT MAIN API
================

FastAPI application in front of the completion gateway. The chat endpoint is a
single-shot proxy: the client sends the whole conversation, the server forwards
it once and answers with the reply or a classified error.

ENDPOINTS:
  GET  /          - Returns API name and list of endpoints.
  GET  /health    - Returns status of the services (for monitoring).
  POST /api/chat  - Body {"messages": [{"role", "content"}, ...]}.
                    200 {"message"} | 400 bad body | 401/402/429/500 {"error"}.
  *    /api/chat  - Any other method: 405 {"error": "Method not allowed"}.

The server keeps no conversation state; chat history lives in the client
(chatbot.services.chat_session).
"""

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError
import uvicorn

from chatbot.models import ChatRequest, ChatResponse, ErrorResponse
from chatbot.services.database import ConversationStore
from chatbot.services.gateway import CompletionGateway, GatewayError
from config import APP_TITLE, CHAT_MODEL, PORT, is_development


# -----------------------------------------------------------------------------
# LOGGING
# -----------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s | %(levelname)-8s | %(name)-20s | %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
logger = logging.getLogger("chatbot")


# -----------------------------------------------------------------------------
# GLOBAL SERVICE REFERENCES
# -----------------------------------------------------------------------------
# Set during startup (lifespan) and used by the route handlers.
gateway_service: CompletionGateway = None
conversation_store: ConversationStore = None


def _error(status_code: int, message: str, details: str = None, headers: dict = None) -> JSONResponse:
    body = ErrorResponse(error=message, details=details if is_development() else None)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True), headers=headers)


# -------------------------------------------------------------------------
# LIFESPAN (STARTUP / SHUTDOWN)
# -------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Build the completion gateway and the (optional) conversation store once.

    A missing OpenRouter key is not fatal here: the server starts, and each chat
    request answers 401 until the key is configured. Missing Supabase settings
    only disable archival.
    """
    global gateway_service, conversation_store

    logger.info("=" * 60)
    logger.info("%s - Starting Up...", APP_TITLE)
    logger.info("=" * 60)

    try:
        gateway_service = CompletionGateway()
        if not gateway_service.configured:
            logger.warning("OPENROUTER_API_KEY not set. Chat requests will fail with 401.")
        conversation_store = ConversationStore()

        logger.info("Service Status:")
        logger.info("    - Completion Gateway: %s", CHAT_MODEL)
        logger.info("    - Persistence: %s", "Ready" if conversation_store.enabled else "Disabled")
        logger.info("API: http://localhost:%s", PORT)
        logger.info("=" * 60)

        yield

        logger.info("Shutting down %s", APP_TITLE)

    except Exception as e:
        logger.error(f"Fatal error during startup: {e}", exc_info=True)
        raise


# -------------------------------------------------------------------------
# FASTAPI APP AND CORS
# -------------------------------------------------------------------------
app = FastAPI(
    title=APP_TITLE,
    description="Chat proxy to a hosted language model",
    lifespan=lifespan
)

# Allow any origin so a frontend on another port can call this API without CORS errors.
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =========================================================================
# API ENDPOINTS
# =========================================================================

@app.get("/")
async def root():
    """Return the API name and a short description of each endpoint (for discovery)."""
    return {
        "message": APP_TITLE,
        "endpoints": {
            "/api/chat": "POST the conversation, get the assistant's reply",
            "/health": "System health check"
        }
    }


@app.get("/health")
async def health():
    """Return 'healthy' and which services are initialized/configured."""
    return {
        "status": "healthy",
        "gateway": gateway_service is not None,
        "gateway_configured": bool(gateway_service and gateway_service.configured),
        "model": CHAT_MODEL,
        "persistence": bool(conversation_store and conversation_store.enabled)
    }


@app.post("/api/chat", response_model=ChatResponse)
async def chat(request: Request):
    """
    Forward a conversation to the completion gateway.

    REQUEST BODY:
    {
        "messages": [
            {"role": "assistant", "content": "Hello! How can I help you today?"},
            {"role": "user", "content": "Hello"}
        ]
    }

    RESPONSE:
    200 {"message": "Hi there!"}
    400 {"error": "Messages array is required"}
    401 {"error": "Invalid API key"}
    429 {"error": "Rate limit exceeded"}
    402 {"error": "Insufficient credits"}
    500 {"error": "Internal server error"}
    """
    try:
        body = await request.json()
    except ValueError:
        body = None

    messages = body.get("messages") if isinstance(body, dict) else None
    if not isinstance(messages, list):
        return _error(400, "Messages array is required")

    try:
        chat_request = ChatRequest(messages=messages)
    except ValidationError as e:
        logger.warning("Rejected chat request: %s", e)
        return _error(400, "Each message needs a role (system, user or assistant) and content", str(e))

    if not gateway_service:
        return _error(503, "Chat service not initialized")

    try:
        reply = await run_in_threadpool(gateway_service.complete, chat_request.messages)
    except GatewayError as e:
        if e.status_code >= 500:
            logger.error("Chat API error: %s (%s)", e.message, e.details)
        else:
            logger.warning("Chat API error: %s", e.message)
        return _error(e.status_code, e.message, e.details)

    return ChatResponse(message=reply)


@app.api_route("/api/chat", methods=["GET", "PUT", "PATCH", "DELETE"], include_in_schema=False)
async def chat_method_not_allowed():
    return _error(405, "Method not allowed", headers={"Allow": "POST"})


# -------------------------------------------------------------------------
# STANDALONE RUN (python -m chatbot.main)
# -------------------------------------------------------------------------
def run():
    """Start the uvicorn server (same as run.py); used if someone does python -m chatbot.main"""
    uvicorn.run(
        "chatbot.main:app",
        host="0.0.0.0",
        port=PORT,
        reload=True,
        log_level="info"
    )

if __name__ == "__main__":
    run()
