"""
CONFIGURATION MODULE
====================

PURPOSE:
  Central place for all chatbot settings: the OpenRouter credential and model,
  generation limits, optional Supabase connection parameters, and the small
  bits of text the client shows (greeting, assistant name).

WHAT THIS FILE DOES:
  - Loads environment variables from .env (so API keys stay out of code).
  - Exposes OPENROUTER_API_KEY, OPENROUTER_BASE_URL and CHAT_MODEL for the Completion Gateway.
  - Defines MAX_TOKENS and TEMPERATURE sent with every completion request.
  - Exposes SUPABASE_URL / SUPABASE_ANON_KEY / SUPABASE_SERVICE_ROLE_KEY for archival.
    Missing Supabase values simply disable persistence; the chat path never needs them.
  - Holds server settings (APP_ENV, PORT) and the CLI's API base URL.

USAGE:
  Import what you need: `from config import OPENROUTER_API_KEY, CHAT_MODEL`
  All services import from here so behaviour is consistent.
"""

import os
import logging
from pathlib import Path
from dotenv import load_dotenv


# -----------------------------------------------------------------------------
# LOGGING
# -----------------------------------------------------------------------------
logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# ENVIRONMENT
# -----------------------------------------------------------------------------
# Load environment variables from .env file (if it exists).
load_dotenv()


# -----------------------------------------------------------------------------
# BASE PATH
# -----------------------------------------------------------------------------
BASE_DIR = Path(__file__).parent
ENV_FILE = BASE_DIR / ".env"
ENV_TEMPLATE_FILE = BASE_DIR / ".env.example"


def _get_float(name: str, default):
    """Read a float from the environment; blank or invalid values fall back to default."""
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Ignoring invalid value for %s: %r", name, raw)
        return default


def _get_int(name: str, default: int) -> int:
    value = _get_float(name, default)
    return int(value) if value is not None else default


# ============================================================================
# COMPLETION GATEWAY (OPENROUTER)
# ============================================================================
# OpenRouter speaks the OpenAI chat-completions protocol, so the gateway client
# is an OpenAI-compatible chat model pointed at this base URL.
# MAX_TOKENS and TEMPERATURE go out with every request; nothing else is tunable per call.
# GATEWAY_TIMEOUT is unset by default: an exchange runs until the provider answers.

OPENROUTER_API_KEY = os.getenv("OPENROUTER_API_KEY", "").strip()
OPENROUTER_BASE_URL = os.getenv("OPENROUTER_BASE_URL", "https://openrouter.ai/api/v1")
CHAT_MODEL = os.getenv("CHAT_MODEL", "meta-llama/llama-3.2-3b-instruct:free")
MAX_TOKENS = _get_int("MAX_TOKENS", 500)
TEMPERATURE = _get_float("TEMPERATURE", 0.7)
GATEWAY_TIMEOUT = _get_float("GATEWAY_TIMEOUT", None)

# Placeholder shipped in .env.example; treated the same as a missing key.
API_KEY_PLACEHOLDER = "your_openrouter_api_key_here"

# Attribution headers OpenRouter shows on its dashboard.
APP_TITLE = os.getenv("APP_TITLE", "Chatbot Development")
SITE_URL = os.getenv("SITE_URL", "https://localhost:3333")

# ============================================================================
# PERSISTENCE SERVICE (SUPABASE)
# ============================================================================
# Optional. The anon key is what the app uses at runtime (row-level policies apply);
# the service-role key is only needed by the schema setup script.

SUPABASE_URL = os.getenv("SUPABASE_URL", "").strip()
SUPABASE_ANON_KEY = os.getenv("SUPABASE_ANON_KEY", "").strip()
SUPABASE_SERVICE_ROLE_KEY = os.getenv("SUPABASE_SERVICE_ROLE_KEY", "").strip()

# ============================================================================
# SERVER / CLIENT
# ============================================================================

APP_ENV = os.getenv("APP_ENV", "production").strip().lower()
PORT = _get_int("PORT", 3333)
CHAT_API_URL = os.getenv("CHAT_API_URL", f"http://localhost:{PORT}").rstrip("/")

ASSISTANT_NAME = (os.getenv("ASSISTANT_NAME", "").strip() or "Assistant")
CHAT_GREETING = (
    os.getenv("CHAT_GREETING", "").strip()
    or "Hello! I'm your chatbot assistant. How can I help you today?"
)


def is_development() -> bool:
    """True when error responses may carry internal details."""
    return APP_ENV in {"dev", "development", "local"}
