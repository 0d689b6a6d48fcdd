"""
PERSISTENCE MODULE
==================

Best-effort archival of users, conversations and messages in Supabase (hosted
Postgres). The live chat path never depends on this: a store without credentials
is simply disabled, and a failed write never interrupts a conversation.

Every operation returns a PersistenceResult instead of raising:

  ok=True,  data=<row | rows>          the call succeeded
  ok=False, error="<reason>"           the call failed (already logged)
  ok=False, error="disabled"           Supabase is not configured

The caller decides whether a failure matters (surface it, retry it, ignore it).

TABLES:
  users          id, email, name, avatar_url, created_at, updated_at
  conversations  id, user_id -> users.id, title, created_at, updated_at
  messages       id, conversation_id -> conversations.id, role, content, created_at

Row-level policies on the Supabase side restrict every row to its owning user;
see chatbot.utils.setup_database.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional

from chatbot.models import Conversation, Message, User
from config import SUPABASE_ANON_KEY, SUPABASE_URL

logger = logging.getLogger("chatbot")


class Tables:
    USERS = "users"
    CONVERSATIONS = "conversations"
    MESSAGES = "messages"


DISABLED = "disabled"


@dataclass
class PersistenceResult:
    ok: bool
    data: Any = None
    error: Optional[str] = None

    @classmethod
    def success(cls, data: Any = None) -> "PersistenceResult":
        return cls(ok=True, data=data)

    @classmethod
    def failure(cls, error: str, data: Any = None) -> "PersistenceResult":
        return cls(ok=False, data=data, error=error)

    @classmethod
    def disabled(cls, data: Any = None) -> "PersistenceResult":
        return cls(ok=False, data=data, error=DISABLED)

    @property
    def is_disabled(self) -> bool:
        return self.error == DISABLED


def _dump(record) -> dict:
    """Row payload for insert/update: drop unset db-generated fields."""
    if isinstance(record, dict):
        return record
    return record.model_dump(mode="json", exclude_none=True)


def _first(rows):
    return rows[0] if rows else None


class ConversationStore:
    """Thin CRUD wrapper over a supabase client."""

    def __init__(self, url: str = SUPABASE_URL, key: str = SUPABASE_ANON_KEY, client=None):
        if client is None and url and key:
            from supabase import create_client

            client = create_client(url, key)
        self.client = client
        if self.client is None:
            logger.warning("Supabase credentials not found. Database features will be disabled.")

    @property
    def enabled(self) -> bool:
        return self.client is not None

    def run(self, action: str, query: Callable[[], Any], transform=None, empty: Any = None) -> PersistenceResult:
        """
        Execute one query builder chain and wrap the outcome.

        Args:
            action: Short description used in log lines ("saving message").
            query: Zero-arg callable returning the executed supabase response.
            transform: Optional function applied to response.data on success.
            empty: Value placed in data when disabled or failed ([] for list reads).
        """
        if not self.enabled:
            return PersistenceResult.disabled(empty)
        try:
            response = query()
            data = response.data
            return PersistenceResult.success(transform(data) if transform else data)
        except Exception as e:
            logger.error("Error %s: %s", action, e)
            return PersistenceResult.failure(str(e), empty)

    # -------------------------------------------------------------------------
    # CONVERSATIONS
    # -------------------------------------------------------------------------

    def save_conversation(self, conversation: Conversation) -> PersistenceResult:
        return self.run(
            "saving conversation",
            lambda: self.client.table(Tables.CONVERSATIONS).insert(_dump(conversation)).execute(),
            transform=_first,
        )

    def update_conversation(self, conversation_id: str, changes: dict) -> PersistenceResult:
        return self.run(
            "updating conversation",
            lambda: self.client.table(Tables.CONVERSATIONS)
            .update(changes)
            .eq("id", conversation_id)
            .execute(),
            transform=_first,
        )

    def get_user_conversations(self, user_id: str) -> PersistenceResult:
        """All conversations of a user, most recently updated first."""
        return self.run(
            "fetching user conversations",
            lambda: self.client.table(Tables.CONVERSATIONS)
            .select("*")
            .eq("user_id", user_id)
            .order("updated_at", desc=True)
            .execute(),
            transform=lambda rows: rows or [],
            empty=[],
        )

    # -------------------------------------------------------------------------
    # MESSAGES
    # -------------------------------------------------------------------------

    def save_message(self, message: Message) -> PersistenceResult:
        return self.run(
            "saving message",
            lambda: self.client.table(Tables.MESSAGES).insert(_dump(message)).execute(),
            transform=_first,
        )

    def get_conversation_history(self, conversation_id: str) -> PersistenceResult:
        """Messages of one conversation in the order they were written."""
        return self.run(
            "fetching conversation history",
            lambda: self.client.table(Tables.MESSAGES)
            .select("*")
            .eq("conversation_id", conversation_id)
            .order("created_at", desc=False)
            .execute(),
            transform=lambda rows: rows or [],
            empty=[],
        )

    # -------------------------------------------------------------------------
    # USERS
    # -------------------------------------------------------------------------

    def create_user(self, user: User) -> PersistenceResult:
        return self.run(
            "creating user",
            lambda: self.client.table(Tables.USERS).insert(_dump(user)).execute(),
            transform=_first,
        )

    def get_user_by_id(self, user_id: str) -> PersistenceResult:
        return self.run(
            "fetching user",
            lambda: self.client.table(Tables.USERS).select("*").eq("id", user_id).limit(1).execute(),
            transform=_first,
        )

    # -------------------------------------------------------------------------
    # SESSION ARCHIVAL
    # -------------------------------------------------------------------------

    def archive_session(self, user_id: str, turns: Iterable, title: Optional[str] = None) -> PersistenceResult:
        """
        Copy a finished chat log into a new conversation.

        Not transactional: if a message insert fails, the conversation and the
        messages written before it stay. The result reports how far it got:
        data = {"conversation": row, "saved": <messages written>}.
        """
        turns = list(turns)
        if title is None:
            first_user = next((t for t in turns if getattr(t.role, "value", t.role) == "user"), None)
            title = first_user.content[:255] if first_user else None

        created = self.save_conversation(Conversation(user_id=user_id, title=title))
        if not created.ok:
            return created
        conversation = created.data or {}
        conversation_id = conversation.get("id")
        if not conversation_id:
            return PersistenceResult.failure("conversation insert returned no id")

        saved = 0
        for turn in turns:
            result = self.save_message(
                Message(conversation_id=conversation_id, role=turn.role, content=turn.content)
            )
            if not result.ok:
                return PersistenceResult.failure(
                    result.error, {"conversation": conversation, "saved": saved}
                )
            saved += 1

        logger.info("Archived %d messages into conversation %s", saved, conversation_id)
        return PersistenceResult.success({"conversation": conversation, "saved": saved})

    def check_connection(self) -> PersistenceResult:
        """Cheap round trip against the users table."""
        return self.run(
            "checking Supabase connection",
            lambda: self.client.table(Tables.USERS).select("id").limit(1).execute(),
            transform=lambda rows: True,
        )
