"""
Shared test fixtures and configuration.
"""

import asyncio
import os
from typing import List, Optional, Union

import pytest

# Set test environment variables before importing app modules
os.environ.setdefault("LOG_FILE_ENABLED", "false")
os.environ.setdefault("LOCAL_STORAGE_PATH", "/tmp/echochat_test_data")

from echochat.core import AppState, ChatOrchestrator, SessionLifecycleManager
from echochat.llm.base import ChatBackend, ChatReply
from echochat.llm.schemas import ChatAPIMessage
from echochat.storage import InMemorySessionStore


class ScriptedBackend(ChatBackend):
    """
    Chat backend that replays queued outcomes.

    Each queued item is either reply text or an exception to raise. When
    ``gate`` is set, every call blocks until the event fires.
    """

    def __init__(self):
        self.outcomes: List[Union[str, Exception]] = []
        self.calls: List[tuple] = []
        self.gate: Optional[asyncio.Event] = None

    async def generate(
        self,
        model_id: str,
        messages: List[ChatAPIMessage],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> ChatReply:
        self.calls.append((model_id, list(messages)))
        if self.gate is not None:
            await self.gate.wait()
        outcome = self.outcomes.pop(0) if self.outcomes else "reply"
        if isinstance(outcome, Exception):
            raise outcome
        return ChatReply(content=outcome, model=model_id)


@pytest.fixture
def app_state():
    return AppState()


@pytest.fixture
def store():
    return InMemorySessionStore()


@pytest.fixture
def lifecycle(store, app_state):
    return SessionLifecycleManager(store, app_state)


@pytest.fixture
def backend():
    return ScriptedBackend()


@pytest.fixture
def orchestrator(lifecycle, backend):
    return ChatOrchestrator(lifecycle, backend)
