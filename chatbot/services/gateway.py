"""
COMPLETION GATEWAY MODULE
=========================

Boundary adapter for the hosted chat-completion API (OpenRouter). Translates a
conversation into chat messages, makes exactly one request, and normalizes the
outcome into either the reply text or a classified GatewayError.

OpenRouter is OpenAI-compatible, so the request goes through langchain-openai's
ChatOpenAI pointed at the OpenRouter base URL. Provider errors surface as openai
SDK exceptions; their HTTP status decides the failure kind:

  401 -> AUTHENTICATION        "Invalid API key"
  429 -> RATE_LIMIT            "Rate limit exceeded"
  402 -> INSUFFICIENT_CREDITS  "Insufficient credits"
  anything else              -> SERVER "Internal server error"

No retries (max_retries=0), no streaming. A timeout only applies when
GATEWAY_TIMEOUT is configured, and then counts as a SERVER failure.
"""

import logging
from enum import Enum
from typing import Iterable, List, Optional

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI

from config import (
    APP_TITLE,
    CHAT_MODEL,
    GATEWAY_TIMEOUT,
    MAX_TOKENS,
    OPENROUTER_API_KEY,
    OPENROUTER_BASE_URL,
    SITE_URL,
    TEMPERATURE,
)

logger = logging.getLogger("chatbot")


# ==============================================================================
# FAILURE CLASSIFICATION
# ==============================================================================

class FailureKind(str, Enum):
    AUTHENTICATION = "authentication"
    RATE_LIMIT = "rate_limit"
    INSUFFICIENT_CREDITS = "insufficient_credits"
    SERVER = "server"


# kind -> (HTTP status returned by /api/chat, user-facing message)
FAILURE_RESPONSES = {
    FailureKind.AUTHENTICATION: (401, "Invalid API key"),
    FailureKind.RATE_LIMIT: (429, "Rate limit exceeded"),
    FailureKind.INSUFFICIENT_CREDITS: (402, "Insufficient credits"),
    FailureKind.SERVER: (500, "Internal server error"),
}

_STATUS_TO_KIND = {
    401: FailureKind.AUTHENTICATION,
    429: FailureKind.RATE_LIMIT,
    402: FailureKind.INSUFFICIENT_CREDITS,
}

NO_REPLY_MESSAGE = "No response from API"


def classify_status(status_code: Optional[int]) -> FailureKind:
    """Map a transport status code to a failure kind; unknown or missing codes are SERVER."""
    return _STATUS_TO_KIND.get(status_code, FailureKind.SERVER)


class GatewayError(Exception):
    """
    A failed exchange with the completion API.

    kind     - FailureKind; decides the HTTP status of the proxy's answer.
    message  - Human-readable text shown to the user.
    details  - Raw provider error text (only exposed in development).
    """

    def __init__(self, kind: FailureKind, message: Optional[str] = None, details: Optional[str] = None):
        self.kind = kind
        self.message = message or FAILURE_RESPONSES[kind][1]
        self.details = details
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return FAILURE_RESPONSES[self.kind][0]

    @classmethod
    def from_exception(cls, exc: Exception) -> "GatewayError":
        """Classify any exception raised while talking to the provider."""
        # openai.APIStatusError carries status_code; connection errors and timeouts don't.
        status = getattr(exc, "status_code", None)
        return cls(classify_status(status), details=str(exc))


# ==============================================================================
# MESSAGE CONVERSION
# ==============================================================================

def to_lc_messages(turns: Iterable) -> List[BaseMessage]:
    """
    Convert turns (anything with .role and .content, or role/content dicts) into
    langchain-core messages. Only role and content are transmitted.
    """
    messages: List[BaseMessage] = []
    for turn in turns:
        if isinstance(turn, dict):
            role, content = turn.get("role"), turn.get("content", "")
        else:
            role, content = turn.role, turn.content
        role = getattr(role, "value", role)
        if role == "user":
            messages.append(HumanMessage(content=content))
        elif role == "assistant":
            messages.append(AIMessage(content=content))
        elif role == "system":
            messages.append(SystemMessage(content=content))
        else:
            raise ValueError(f"Unsupported message role: {role!r}")
    return messages


# ==============================================================================
# GATEWAY CLIENT
# ==============================================================================

class CompletionGateway:
    """
    One request, one response. The chat model is built on first use so a missing
    API key shows up as an authentication failure on the exchange, not at startup.
    """

    def __init__(
        self,
        api_key: str = OPENROUTER_API_KEY,
        model: str = CHAT_MODEL,
        base_url: str = OPENROUTER_BASE_URL,
        max_tokens: int = MAX_TOKENS,
        temperature: float = TEMPERATURE,
        timeout: Optional[float] = GATEWAY_TIMEOUT,
        llm=None,
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.timeout = timeout
        self._llm = llm

    @property
    def configured(self) -> bool:
        return self._llm is not None or bool(self.api_key)

    def _get_llm(self):
        if self._llm is None:
            if not self.api_key:
                raise GatewayError(
                    FailureKind.AUTHENTICATION,
                    details="OPENROUTER_API_KEY is not set",
                )
            self._llm = ChatOpenAI(
                api_key=self.api_key,
                base_url=self.base_url,
                model=self.model,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
                timeout=self.timeout,
                max_retries=0,
                default_headers={"HTTP-Referer": SITE_URL, "X-Title": APP_TITLE},
            )
            logger.info("Completion gateway ready (model=%s)", self.model)
        return self._llm

    def complete(self, turns: Iterable) -> str:
        """
        Send the whole message sequence and return the reply text.
        Raises GatewayError for every failure, including an empty reply.
        """
        messages = to_lc_messages(turns)
        llm = self._get_llm()

        try:
            response = llm.invoke(messages)
        except Exception as e:
            error = GatewayError.from_exception(e)
            logger.warning("Completion request failed (%s): %s", error.kind.value, e)
            raise error from e

        reply = getattr(response, "content", None)
        if not isinstance(reply, str) or not reply:
            logger.warning("Completion request returned no usable reply: %r", response)
            raise GatewayError(FailureKind.SERVER, NO_REPLY_MESSAGE)

        logger.info("Completion received (%d messages in, %d chars out)", len(messages), len(reply))
        return reply
