"""
Application State - The one mutable context shared by the lifecycle manager
and the orchestrator.

Passed explicitly to constructors; there is no module-level instance.
Structural mutations of ``sessions`` and their messages happen while holding
``lock``.
"""

import asyncio
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, List, Optional

from ..models import AppSettings, ChatSession

MAX_STORAGE_WARNINGS = 20


@dataclass
class AppState:
    settings: AppSettings = field(default_factory=AppSettings)
    sessions: List[ChatSession] = field(default_factory=list)  # updated_at descending
    current_session: Optional[ChatSession] = None
    is_ready_for_new_chat: bool = False
    # Most recent persistence failures, oldest dropped first
    storage_warnings: Deque[str] = field(default_factory=lambda: deque(maxlen=MAX_STORAGE_WARNINGS))
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    def active_sessions(self) -> List[ChatSession]:
        return [session for session in self.sessions if session.is_active]
