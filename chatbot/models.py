"""
DATA MODELS MODULE
==================

Pydantic models shared by the API, the chat session and the persistence layer.

MODELS:
  Role          - Who produced a turn: "user" or "assistant".
  Turn          - One entry of the conversation log (role + content). Immutable.
  ChatMessage   - One message as accepted by POST /api/chat (also allows "system").
  ChatRequest   - Body of POST /api/chat: an ordered list of ChatMessage.
  ChatResponse  - Success body of POST /api/chat: the reply text.
  ErrorResponse - Failure body of POST /api/chat: error text (+ details in development).
  User, Conversation, Message - rows of the archived tables in Supabase.
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


# ==============================================================================
# CONVERSATION LOG
# ==============================================================================

class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class Turn(BaseModel):
    """
    A single entry in the conversation log.
    Frozen: once appended, a turn is never edited. Order in the log defines chronology.
    """
    model_config = ConfigDict(frozen=True, use_enum_values=True)

    role: Role
    content: str


# ==============================================================================
# REQUEST / RESPONSE MODELS
# ==============================================================================

class ChatMessage(BaseModel):
    """One message of the sequence forwarded to the gateway."""
    role: str = Field(..., pattern="^(system|user|assistant)$")
    content: str


class ChatRequest(BaseModel):
    messages: List[ChatMessage]


class ChatResponse(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    """
    Body of every non-200 answer from /api/chat.

    - error: Human-readable text; the chat client shows it after "Error: ".
    - details: Raw provider error, only filled in when APP_ENV is development.
    """
    error: str
    details: Optional[str] = None


# ==============================================================================
# ARCHIVED RECORDS (SUPABASE TABLES)
# ==============================================================================
# ids and timestamps are generated by the database; they are optional here so the
# same models can describe a row before insert and after select.

class User(BaseModel):
    id: Optional[str] = None
    email: str
    name: Optional[str] = None
    avatar_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Conversation(BaseModel):
    id: Optional[str] = None
    user_id: str
    title: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Message(BaseModel):
    id: Optional[str] = None
    conversation_id: str
    role: Role
    content: str
    created_at: Optional[datetime] = None

    model_config = ConfigDict(use_enum_values=True)
