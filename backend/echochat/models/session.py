"""
Session Models - Defines structures for chat sessions.
"""

import uuid
from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, Field

from .message import ChatMessage, utcnow

DEFAULT_SESSION_TITLE = "New Chat"


class ChatSession(BaseModel):
    """A conversation thread. Owns its messages (chronological order)."""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    title: str = DEFAULT_SESSION_TITLE
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    selected_model: str = "gpt-4"
    is_active: bool = False
    messages: List[ChatMessage] = Field(default_factory=list)

    @property
    def display_title(self) -> str:
        return self.title if self.title.strip() else DEFAULT_SESSION_TITLE

    @property
    def has_default_title(self) -> bool:
        return self.title == DEFAULT_SESSION_TITLE or not self.title.strip()

    @property
    def last_message(self) -> Optional[ChatMessage]:
        return self.messages[-1] if self.messages else None

    def update_timestamp(self) -> None:
        # updated_at never goes behind created_at, even with clock skew
        self.updated_at = max(utcnow(), self.created_at)

    def update_title(self, new_title: str) -> None:
        self.title = new_title
        self.update_timestamp()

    def to_summary(self) -> "SessionSummary":
        return SessionSummary(
            id=self.id,
            title=self.display_title,
            created_at=self.created_at,
            updated_at=self.updated_at,
            selected_model=self.selected_model,
            is_active=self.is_active,
            message_count=len(self.messages),
        )


class SessionSummary(BaseModel):
    """Chat session metadata for listings."""
    id: str
    title: str
    created_at: datetime
    updated_at: datetime
    selected_model: str
    is_active: bool
    message_count: int = 0


class SessionList(BaseModel):
    """List of session metadata."""
    sessions: List[SessionSummary]
