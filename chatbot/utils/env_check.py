"""
ENVIRONMENT CHECKS
==================

Run before starting the server during development. Each check logs what it
found; only problems that make the server unusable fail the run.

CHECKS:
  python_version  - interpreter is at least 3.10 (hard failure).
  env_file        - .env exists; copied from .env.example when missing (hard failure if it can't be).
  api_key         - OPENROUTER_API_KEY is set and not the template placeholder (warning).
  supabase        - Supabase URL/key present; absent only disables archival (info).
  port            - configured development port.
  dependencies    - required libraries are importable (warning).
  gateway         - optional (--ping): one tiny completion request to prove the key works.

USAGE:
  python -m chatbot.utils.env_check [--ping]
"""

import importlib.util
import logging
import shutil
import sys
from pathlib import Path
from typing import Dict, List, Optional

from dotenv import dotenv_values

import config
from chatbot.models import Role, Turn
from chatbot.services.gateway import CompletionGateway, GatewayError

logger = logging.getLogger("chatbot")

MIN_PYTHON = (3, 10)
REQUIRED_KEYS = ("OPENROUTER_API_KEY",)
REQUIRED_MODULES = ("fastapi", "uvicorn", "pydantic", "dotenv", "requests", "langchain_core", "langchain_openai")
OPTIONAL_MODULES = ("supabase",)

PING_PROMPT = 'Hello! Please respond with just "API test successful" to confirm you are working.'


class CheckFailed(Exception):
    """A check that makes starting the server pointless."""


def check_python_version(version=None) -> None:
    version = tuple(version or sys.version_info[:2])
    current = ".".join(str(v) for v in version)
    required = ".".join(str(v) for v in MIN_PYTHON)
    if version < MIN_PYTHON:
        raise CheckFailed(f"Python {current} is below required {required}")
    logger.info("Python version check passed: %s", current)


def check_env_file(env_path: Path = config.ENV_FILE, template_path: Path = config.ENV_TEMPLATE_FILE) -> Path:
    """Make sure an env file exists, creating it from the template if needed."""
    if env_path.exists():
        logger.info("%s exists", env_path.name)
        return env_path
    logger.warning("%s not found, copying from %s", env_path.name, template_path.name)
    try:
        shutil.copyfile(template_path, env_path)
    except OSError as e:
        raise CheckFailed(f"Could not create {env_path.name}: {e}") from e
    logger.info("Created %s from template", env_path.name)
    return env_path


def missing_keys(values: Dict[str, Optional[str]], required=REQUIRED_KEYS) -> List[str]:
    """Keys that are absent, empty, or still set to the template placeholder."""
    missing = []
    for key in required:
        value = (values.get(key) or "").strip()
        if not value or value == config.API_KEY_PLACEHOLDER:
            missing.append(key)
    return missing


def check_api_keys(env_path: Path = config.ENV_FILE) -> List[str]:
    values = dotenv_values(env_path) if env_path.exists() else {}
    missing = missing_keys(values)
    if missing:
        logger.warning("Missing or placeholder API keys: %s", ", ".join(missing))
        logger.warning("Update %s with real values before chatting", env_path.name)
    else:
        logger.info("All required API keys configured")
    return missing


def check_supabase() -> bool:
    configured = bool(config.SUPABASE_URL and config.SUPABASE_ANON_KEY)
    if configured:
        logger.info("Supabase configured: conversations can be archived")
    else:
        logger.info("Supabase not configured: archival disabled, chat unaffected")
    return configured


def check_port() -> int:
    logger.info("Development port: %s (API base URL %s)", config.PORT, config.CHAT_API_URL)
    return config.PORT


def check_dependencies(modules=REQUIRED_MODULES, optional=OPTIONAL_MODULES) -> List[str]:
    missing = [name for name in modules if importlib.util.find_spec(name) is None]
    if missing:
        logger.warning("Missing dependencies: %s (run 'pip install -e .')", ", ".join(missing))
    else:
        logger.info("Dependencies installed")
    for name in optional:
        if importlib.util.find_spec(name) is None:
            logger.info("Optional dependency not installed: %s", name)
    return missing


def ping_gateway(gateway: Optional[CompletionGateway] = None) -> bool:
    """Send one short prompt to the completion API; True if a reply came back."""
    gateway = gateway or CompletionGateway(max_tokens=50, temperature=0.1)
    logger.info("Testing OpenRouter connectivity (%s, model %s)...", gateway.base_url, gateway.model)
    try:
        reply = gateway.complete([Turn(role=Role.USER, content=PING_PROMPT)])
    except GatewayError as e:
        logger.error("Gateway test failed: %s (%s)", e.message, e.details or e.kind.value)
        return False
    logger.info("Gateway test successful: %s", reply.strip())
    return True


def run_checks(ping: bool = False) -> bool:
    try:
        check_python_version()
        env_path = check_env_file()
    except CheckFailed as e:
        logger.error("Pre-development checks failed: %s", e)
        return False

    check_api_keys(env_path)
    check_supabase()
    check_port()
    check_dependencies()

    if ping and not ping_gateway():
        return False
    logger.info("All pre-development checks completed")
    return True


def main(argv=None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(levelname)-8s | %(message)s")
    args = sys.argv[1:] if argv is None else argv
    return 0 if run_checks(ping="--ping" in args) else 1


if __name__ == "__main__":
    sys.exit(main())
