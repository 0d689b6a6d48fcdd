"""
CHAT SESSION MODULE
===================

The client-side state of one conversation: the ordered turn log, whether an
exchange is in flight, the input buffer, and the display preferences.

EXCHANGE STATE:
  idle --submit_turn--> pending --(reply | error)--> idle

  submit_turn() only starts an exchange from idle with non-empty text; anything
  else is silently ignored. While pending, further submissions are ignored, so
  there is never more than one request outstanding and replies need no
  correlation ids. Every accepted submission ends with exactly one assistant
  turn: the reply, or "Error: <diagnostic>".

TRANSPORTS:
  ApiChatTransport  - POST /api/chat on a running chatbot server (what chat_cli.py uses).
  GatewayTransport  - Calls the CompletionGateway in-process.
"""

import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Optional, Sequence, Tuple

import requests

from chatbot.models import Role, Turn
from chatbot.services.gateway import CompletionGateway, GatewayError
from chatbot.services.preferences import DisplayPreferences
from config import CHAT_API_URL, CHAT_GREETING

logger = logging.getLogger("chatbot")

ERROR_PREFIX = "Error: "
GENERIC_FAILURE = "Something went wrong"


class ExchangeError(Exception):
    """A failed exchange; str(exc) is the diagnostic shown after "Error: "."""


# ==============================================================================
# TRANSPORTS
# ==============================================================================

class ChatTransport(ABC):
    """Sends the full turn log and returns the reply text."""

    @abstractmethod
    def complete(self, turns: Sequence[Turn]) -> str:
        """
        Args:
            turns: The whole conversation log, including the newest user turn.

        Returns:
            Reply text.

        Raises:
            ExchangeError: On any failure.
        """
        pass


class ApiChatTransport(ChatTransport):
    """Talks to POST /api/chat over HTTP, the way a browser front-end would."""

    def __init__(self, base_url: str = CHAT_API_URL, session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.http = session or requests.Session()

    def complete(self, turns: Sequence[Turn]) -> str:
        payload = {"messages": [{"role": t.role, "content": t.content} for t in turns]}
        try:
            response = self.http.post(f"{self.base_url}/api/chat", json=payload)
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            raise ExchangeError(str(e) or GENERIC_FAILURE) from e

        if not isinstance(data, dict):
            raise ExchangeError(GENERIC_FAILURE)
        if not response.ok:
            raise ExchangeError(data.get("error") or GENERIC_FAILURE)

        reply = data.get("message")
        if not isinstance(reply, str) or not reply:
            raise ExchangeError(GENERIC_FAILURE)
        return reply


class GatewayTransport(ChatTransport):
    """Skips HTTP and calls the completion gateway directly."""

    def __init__(self, gateway: Optional[CompletionGateway] = None):
        self.gateway = gateway or CompletionGateway()

    def complete(self, turns: Sequence[Turn]) -> str:
        try:
            return self.gateway.complete(turns)
        except GatewayError as e:
            raise ExchangeError(e.message) from e


# ==============================================================================
# CHAT SESSION CONTROLLER
# ==============================================================================

class ExchangeState(str, Enum):
    IDLE = "idle"
    PENDING = "pending"


class ChatSession:
    """
    Owns one conversation log for the lifetime of a client session.
    Nothing here is shared between sessions; persistence is a separate, optional step.
    """

    def __init__(
        self,
        transport: ChatTransport,
        greeting: str = CHAT_GREETING,
        preferences: Optional[DisplayPreferences] = None,
    ):
        self.transport = transport
        self.preferences = preferences or DisplayPreferences()
        self.input_buffer = ""
        self._turns = [Turn(role=Role.ASSISTANT, content=greeting)]
        self._state = ExchangeState.IDLE

    @property
    def turns(self) -> Tuple[Turn, ...]:
        return tuple(self._turns)

    @property
    def state(self) -> ExchangeState:
        return self._state

    @property
    def pending(self) -> bool:
        return self._state is ExchangeState.PENDING

    def _begin_exchange(self) -> bool:
        """idle -> pending. Returns False (and changes nothing) if already pending."""
        if self._state is not ExchangeState.IDLE:
            return False
        self._state = ExchangeState.PENDING
        return True

    def _end_exchange(self) -> None:
        self._state = ExchangeState.IDLE

    def submit_turn(self, text: Optional[str] = None) -> Optional[Turn]:
        """
        Send one user turn and wait for its answer.

        Args:
            text: Message to send; defaults to the current input buffer.

        Returns:
            The assistant turn that closed the exchange (reply or "Error: ..."),
            or None when the call was ignored (blank text or an exchange in flight).
        """
        if text is None:
            text = self.input_buffer
        if not text or not text.strip():
            return None
        if not self._begin_exchange():
            return None

        try:
            self._turns.append(Turn(role=Role.USER, content=text))
            self.input_buffer = ""
            try:
                reply = self.transport.complete(self.turns)
                result = Turn(role=Role.ASSISTANT, content=reply)
            except Exception as e:
                logger.warning("Chat exchange failed: %s", e)
                result = Turn(role=Role.ASSISTANT, content=f"{ERROR_PREFIX}{str(e) or GENERIC_FAILURE}")
            self._turns.append(result)
        finally:
            self._end_exchange()
        return result
