"""
Chat Orchestrator - Turns user input into messages and assistant replies.

Flow for one turn:
    input -> (create session) -> user message -> placeholder assistant message
    -> ChatBackend.generate (background task) -> placeholder resolved in place

The placeholder keeps its identity from creation to resolution. Network
failures never escape: they become a ``failed`` message plus an error string.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from ..llm.base import ChatBackend
from ..llm.errors import ChatAPIError, ProviderError
from ..llm.schemas import ChatAPIMessage, ChatRole
from ..models import ChatMessage, ChatSession, MessageSender, MessageStatus
from .logging_config import chat_log_context
from .message_state import MessageStateMachine
from .session_manager import SessionLifecycleManager

logger = logging.getLogger(__name__)

AUTO_TITLE_LENGTH = 30

SENDER_ROLES = {
    MessageSender.USER: ChatRole.USER,
    MessageSender.ASSISTANT: ChatRole.ASSISTANT,
    MessageSender.SYSTEM: ChatRole.SYSTEM,
}


@dataclass
class ReplyOutcome:
    message: ChatMessage
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


@dataclass
class ChatTurn:
    """A reply in progress. ``user_message`` is None for a regeneration."""
    session: ChatSession
    assistant_message: ChatMessage
    task: "asyncio.Task[ReplyOutcome]"
    user_message: Optional[ChatMessage] = None

    async def wait(self) -> ReplyOutcome:
        # Shielded: a caller giving up must not abort the reply itself
        return await asyncio.shield(self.task)


class ChatOrchestrator:
    """
    Glues the session manager, the message state machine and a chat backend.

    At most one reply is in flight at a time; ``can_send`` and
    ``can_regenerate`` turn away anything submitted meanwhile. Switching or
    deleting sessions does not cancel a pending reply: it still resolves into
    its own placeholder.
    """

    def __init__(self, lifecycle: SessionLifecycleManager, backend: ChatBackend):
        self.lifecycle = lifecycle
        self.backend = backend
        self._in_flight: Dict[str, "asyncio.Task[ReplyOutcome]"] = {}

    @property
    def state(self):
        return self.lifecycle.state

    # ------------------------------------------------------------------
    # Predicates (recomputed on every call)

    @property
    def is_loading(self) -> bool:
        return bool(self._in_flight)

    def can_send(self, input_text: Optional[str]) -> bool:
        return bool((input_text or "").strip()) and not self.is_loading

    def can_regenerate(self, session: Optional[ChatSession]) -> bool:
        if self.is_loading or session is None:
            return False
        last = session.last_message
        return (
            last is not None
            and last.is_from_assistant
            and not last.is_transient
            and not last.is_editing
        )

    # ------------------------------------------------------------------
    # Turns

    async def submit(self, session: Optional[ChatSession], raw_text: str) -> Optional[ChatTurn]:
        """
        Start a chat turn.

        Args:
            session: Target session, or None to start a new one
            raw_text: User input (trimmed before use)

        Returns:
            ChatTurn, or None if the input was blank, a reply is already in
            flight, or the session no longer exists
        """
        text = (raw_text or "").strip()
        if not text:
            return None

        async with self.state.lock:
            if not self.can_send(text):
                logger.info("Submit rejected: a reply is already in flight")
                return None

            if session is None:
                session = await self.lifecycle.create_session(self.state.settings.selected_model_id)
            elif self.lifecycle.find_session(session.id) is None:
                logger.warning(f"Submit rejected: session {session.id} no longer exists")
                return None

            logger.info(f"Submitting message to session {session.id}: {text[:100]}")

            user_message = MessageStateMachine.new_user_message(session, text)
            session.messages.append(user_message)
            self._auto_title(session, text)
            self.lifecycle.update_timestamp(session)
            await self.lifecycle.persist()

            placeholder = MessageStateMachine.new_placeholder(session)
            session.messages.append(placeholder)
            self.lifecycle.update_timestamp(session)
            await self.lifecycle.persist()

            task = self._start_reply(session, placeholder)

        return ChatTurn(session=session, assistant_message=placeholder, task=task, user_message=user_message)

    async def send(self, session: Optional[ChatSession], raw_text: str) -> Optional[ReplyOutcome]:
        """Submit and wait for the reply."""
        turn = await self.submit(session, raw_text)
        if turn is None:
            return None
        return await turn.wait()

    async def regenerate(self, session: ChatSession) -> Optional[ChatTurn]:
        """
        Ask again for the last assistant message, reusing its identity.

        Returns:
            ChatTurn, or None if regenerating is not currently allowed
        """
        async with self.state.lock:
            if not self.can_regenerate(session):
                return None

            target = session.last_message
            logger.info(f"Regenerating message {target.id} in session {session.id}")
            MessageStateMachine.mark_regenerating(target)
            self.lifecycle.update_timestamp(session)
            await self.lifecycle.persist()

            task = self._start_reply(session, target)

        return ChatTurn(session=session, assistant_message=target, task=task)

    async def resend(self, session: ChatSession, message: ChatMessage) -> Optional[ChatTurn]:
        """
        Re-submit content as a new user message.

        For a user message its own content is resent; for a failed assistant
        message, the user message that prompted it.
        """
        if message.is_from_user:
            return await self.submit(session, message.content)

        if message.is_from_assistant and message.status == MessageStatus.FAILED:
            prompt = self._preceding_user_message(session, message)
            if prompt is not None:
                return await self.submit(session, prompt.content)

        return None

    # ------------------------------------------------------------------
    # Message maintenance

    async def delete_message(self, session: ChatSession, message: ChatMessage) -> bool:
        async with self.state.lock:
            if message.is_transient or not any(m.id == message.id for m in session.messages):
                return False
            session.messages = [m for m in session.messages if m.id != message.id]
            self.lifecycle.update_timestamp(session)
            await self.lifecycle.persist()
            return True

    async def start_edit(self, session: ChatSession, message: ChatMessage) -> None:
        async with self.state.lock:
            MessageStateMachine.start_editing(message)
            await self.lifecycle.persist()

    async def commit_edit(self, session: ChatSession, message: ChatMessage, new_content: str) -> bool:
        """
        Returns:
            bool: False if the edit was rejected (blank content); the edit stays open
        """
        async with self.state.lock:
            if not MessageStateMachine.commit_edit(message, new_content):
                return False
            self.lifecycle.update_timestamp(session)
            await self.lifecycle.persist()
            return True

    async def cancel_edit(self, session: ChatSession, message: ChatMessage) -> None:
        async with self.state.lock:
            MessageStateMachine.cancel_edit(message)
            await self.lifecycle.persist()

    async def shutdown(self) -> None:
        """Abort pending replies, leaving their placeholders failed."""
        pending = dict(self._in_flight)
        for task in pending.values():
            task.cancel()
        if pending:
            await asyncio.gather(*pending.values(), return_exceptions=True)
            logger.info(f"Cancelled {len(pending)} pending replies")

        # A task cancelled before its first step never reaches its own handler
        for message_id in pending:
            _, message = self.lifecycle.find_message(message_id)
            if message is not None and message.is_transient:
                MessageStateMachine.mark_failed(message)
        self._in_flight.clear()
        await self.lifecycle.persist()

    # ------------------------------------------------------------------
    # Internals

    def _start_reply(self, session: ChatSession, message: ChatMessage) -> "asyncio.Task[ReplyOutcome]":
        history = self._build_history(session, message)
        task = asyncio.create_task(self._resolve(session, message, history))
        self._in_flight[message.id] = task
        return task

    async def _resolve(
        self,
        session: ChatSession,
        message: ChatMessage,
        history: List[ChatAPIMessage],
    ) -> ReplyOutcome:
        with chat_log_context(session_id=session.id, message_id=message.id):
            return await self._generate_into(session, message, history)

    async def _generate_into(
        self,
        session: ChatSession,
        message: ChatMessage,
        history: List[ChatAPIMessage],
    ) -> ReplyOutcome:
        try:
            reply = await self.backend.generate(session.selected_model, history)
        except asyncio.CancelledError:
            if message.is_transient:
                MessageStateMachine.mark_failed(message)
            self._in_flight.pop(message.id, None)
            raise
        except Exception as e:
            error = str(e) or type(e).__name__
            logger.warning(
                f"Reply for message {message.id} failed: {error}",
                exc_info=not isinstance(e, (ProviderError, ChatAPIError)),
                extra={"extra_fields": {"model": session.selected_model, "error": error}}
            )
            async with self.state.lock:
                if message.is_transient:
                    MessageStateMachine.mark_failed(message)
                await self._finish(session, message)
            return ReplyOutcome(message=message, error=error)

        async with self.state.lock:
            if message.is_transient:
                MessageStateMachine.mark_sent(message, reply.content)
            await self._finish(session, message)

        logger.info(
            f"Reply for message {message.id} completed",
            extra={"extra_fields": {
                "model": reply.model or session.selected_model,
                "content_length": len(reply.content),
                **reply.usage,
            }}
        )
        return ReplyOutcome(message=message)

    async def _finish(self, session: ChatSession, message: ChatMessage) -> None:
        self._in_flight.pop(message.id, None)
        if self.lifecycle.find_session(session.id) is None:
            logger.info(f"Session {session.id} was deleted before its reply arrived")
            return
        self.lifecycle.update_timestamp(session)
        await self.lifecycle.persist()

    @staticmethod
    def _build_history(session: ChatSession, upto: ChatMessage) -> List[ChatAPIMessage]:
        """Stable, non-empty messages before ``upto``, oldest first."""
        history: List[ChatAPIMessage] = []
        for message in session.messages:
            if message.id == upto.id:
                break
            if message.status == MessageStatus.SENT and message.content:
                history.append(ChatAPIMessage(role=SENDER_ROLES[message.sender], content=message.content))
        return history

    @staticmethod
    def _preceding_user_message(session: ChatSession, message: ChatMessage) -> Optional[ChatMessage]:
        previous: Optional[ChatMessage] = None
        for candidate in session.messages:
            if candidate.id == message.id:
                return previous
            if candidate.is_from_user:
                previous = candidate
        return None

    @staticmethod
    def _auto_title(session: ChatSession, text: str) -> None:
        if not session.has_default_title:
            return
        title = " ".join(text.split())
        if len(title) > AUTO_TITLE_LENGTH:
            title = title[:AUTO_TITLE_LENGTH].rstrip() + "..."
        session.title = title
