"""
Message State Machine - Lifecycle of a single message.

Status (delivery)::

    sending ------> sent | failed
    regenerating -> sent | failed
    sent ---------> regenerating
    failed -------> regenerating

A failed message is never moved back to ``sending``: resending creates a new
message. Editing is an orthogonal sub-state (``is_editing``) with a content
snapshot so a cancel restores the exact pre-edit text. A message is never
editing and transient at once.

All operations are synchronous mutations of the message record; no I/O.
"""

from typing import Dict, FrozenSet

from ..models import ChatMessage, ChatSession, MessageSender, MessageStatus
from ..models.message import utcnow


class InvalidTransitionError(ValueError):
    """Raised when an operation is not allowed in the message's current state."""


ALLOWED_TRANSITIONS: Dict[MessageStatus, FrozenSet[MessageStatus]] = {
    MessageStatus.SENDING: frozenset({MessageStatus.SENT, MessageStatus.FAILED}),
    MessageStatus.REGENERATING: frozenset({MessageStatus.SENT, MessageStatus.FAILED}),
    MessageStatus.SENT: frozenset({MessageStatus.REGENERATING}),
    MessageStatus.FAILED: frozenset({MessageStatus.REGENERATING}),
}


class MessageStateMachine:
    """Stateless helpers; every method takes the message it mutates."""

    @staticmethod
    def new_user_message(session: ChatSession, content: str) -> ChatMessage:
        """A user message is complete the moment it is submitted."""
        return ChatMessage(
            session_id=session.id,
            sender=MessageSender.USER,
            content=content,
            status=MessageStatus.SENT,
        )

    @staticmethod
    def new_placeholder(session: ChatSession) -> ChatMessage:
        """Empty assistant message waiting for a reply."""
        return ChatMessage(
            session_id=session.id,
            sender=MessageSender.ASSISTANT,
            content="",
            status=MessageStatus.SENDING,
        )

    @staticmethod
    def can_transition(message: ChatMessage, target: MessageStatus) -> bool:
        return target in ALLOWED_TRANSITIONS.get(message.status, frozenset())

    @staticmethod
    def _transition(message: ChatMessage, target: MessageStatus) -> None:
        if not MessageStateMachine.can_transition(message, target):
            raise InvalidTransitionError(
                f"Message {message.id} cannot go from {message.status.value} to {target.value}"
            )
        message.status = target

    @staticmethod
    def mark_sending(message: ChatMessage) -> None:
        # Only a fresh placeholder is ever "sending"; failed messages are resent as new ones
        if message.status != MessageStatus.SENDING:
            raise InvalidTransitionError(
                f"Message {message.id} is {message.status.value}; resend it as a new message instead"
            )

    @staticmethod
    def mark_sent(message: ChatMessage, content: str) -> None:
        MessageStateMachine._transition(message, MessageStatus.SENT)
        message.content = content

    @staticmethod
    def mark_failed(message: ChatMessage) -> None:
        MessageStateMachine._transition(message, MessageStatus.FAILED)

    @staticmethod
    def mark_regenerating(message: ChatMessage) -> None:
        if message.is_editing:
            raise InvalidTransitionError(f"Message {message.id} is being edited")
        MessageStateMachine._transition(message, MessageStatus.REGENERATING)
        message.content = ""

    @staticmethod
    def start_editing(message: ChatMessage) -> None:
        if message.is_transient:
            raise InvalidTransitionError(f"Message {message.id} is still {message.status.value}")
        if message.is_editing:
            return
        message.is_editing = True
        message.original_content = message.content

    @staticmethod
    def commit_edit(message: ChatMessage, new_content: str) -> bool:
        """
        Finish an edit.

        Returns:
            bool: False if the trimmed content is empty. The edit then stays
            open and the content is left untouched.
        """
        if message.is_transient:
            raise InvalidTransitionError(f"Message {message.id} is still {message.status.value}")
        if not message.is_editing:
            raise InvalidTransitionError(f"Message {message.id} is not being edited")

        trimmed = new_content.strip()
        if not trimmed:
            return False

        message.content = trimmed
        message.is_editing = False
        message.original_content = None
        message.edited_at = utcnow()
        return True

    @staticmethod
    def cancel_edit(message: ChatMessage) -> None:
        if not message.is_editing:
            return
        if message.original_content is not None:
            message.content = message.original_content
        message.is_editing = False
        message.original_content = None
