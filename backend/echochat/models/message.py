"""
Message Models - A single entry in a chat session.
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MessageSender(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class MessageType(str, Enum):
    TEXT = "text"
    IMAGE = "image"
    FILE = "file"


class MessageStatus(str, Enum):
    SENDING = "sending"
    SENT = "sent"
    FAILED = "failed"
    REGENERATING = "regenerating"


TRANSIENT_STATUSES = frozenset({MessageStatus.SENDING, MessageStatus.REGENERATING})


class Attachment(BaseModel):
    """Attachment descriptor (the file itself lives elsewhere)."""
    url: str
    name: Optional[str] = None


class ChatMessage(BaseModel):
    """
    Chat message model.

    Messages are mutated in place for their whole life: an assistant reply is
    created as an empty ``sending`` placeholder and later filled in, keeping
    its ``id``.
    """
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    session_id: Optional[str] = None  # back-reference to the owning session
    sender: MessageSender
    content: str = ""
    type: MessageType = MessageType.TEXT
    status: MessageStatus = MessageStatus.SENT
    timestamp: datetime = Field(default_factory=utcnow)

    # Editing
    is_editing: bool = False
    original_content: Optional[str] = None  # snapshot taken when editing starts
    edited_at: Optional[datetime] = None

    attachment: Optional[Attachment] = None

    @property
    def is_from_user(self) -> bool:
        return self.sender == MessageSender.USER

    @property
    def is_from_assistant(self) -> bool:
        return self.sender == MessageSender.ASSISTANT

    @property
    def has_attachment(self) -> bool:
        return self.attachment is not None

    @property
    def is_transient(self) -> bool:
        """True while the message is not a stable, displayable answer."""
        return self.status in TRANSIENT_STATUSES

    @property
    def is_edited(self) -> bool:
        return self.edited_at is not None

    @property
    def display_content(self) -> str:
        return self.content if self.content else "..."
