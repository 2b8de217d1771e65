"""
Session Lifecycle Manager - Creation, selection, deletion and pruning of sessions.

Callers serialize access through ``AppState.lock``; the manager itself does not lock.
"""

import logging
from typing import Optional, Tuple

from ..models import AppSettings, ChatMessage, ChatSession
from ..storage import SessionStore, SettingsStorage, StorageError
from .app_state import AppState

logger = logging.getLogger(__name__)


class SessionLifecycleManager:
    """
    Owns the ordered session list and the notion of a "current" session.

    Invariants kept after every operation:
    - at most one session has ``is_active`` set
    - ``state.sessions`` is sorted by ``updated_at`` descending
    """

    def __init__(
        self,
        store: SessionStore,
        state: AppState,
        settings_storage: Optional[SettingsStorage] = None,
    ):
        self.store = store
        self.state = state
        self.settings_storage = settings_storage

    @property
    def sessions(self) -> list:
        return self.state.sessions

    @property
    def current_session(self) -> Optional[ChatSession]:
        return self.state.current_session

    # ------------------------------------------------------------------
    # Lookup

    def find_session(self, session_id: str) -> Optional[ChatSession]:
        return next((s for s in self.state.sessions if s.id == session_id), None)

    def find_message(self, message_id: str) -> Tuple[Optional[ChatSession], Optional[ChatMessage]]:
        for session in self.state.sessions:
            for message in session.messages:
                if message.id == message_id:
                    return session, message
        return None, None

    # ------------------------------------------------------------------
    # Startup

    async def attach(self) -> None:
        """
        Load sessions from the store, sweep empties left by an earlier crash,
        and select the most recent session if there is one.
        """
        self.state.sessions = list(await self.store.fetch_all())
        self.state.current_session = None
        self._resort()

        pruned = await self.prune_all_empty_sessions()
        if pruned:
            logger.info(f"Removed {pruned} empty sessions left from a previous run")

        if self.state.sessions:
            await self.select_session(self.state.sessions[0])

        logger.info(f"Session manager attached: {len(self.state.sessions)} sessions")

    # ------------------------------------------------------------------
    # Session operations

    async def create_session(self, model_id: Optional[str] = None) -> ChatSession:
        await self.prune_if_empty(self.state.current_session)

        for session in self.state.sessions:
            session.is_active = False

        new_session = ChatSession(
            selected_model=model_id or self.state.settings.selected_model_id,
            is_active=True,
        )
        await self.store.insert(new_session)
        self.state.sessions.insert(0, new_session)
        self.state.current_session = new_session
        self.state.is_ready_for_new_chat = False
        self._resort()

        logger.info(f"Created session {new_session.id} (model={new_session.selected_model})")
        await self.persist()
        return new_session

    async def select_session(self, session: ChatSession) -> None:
        previous = self.state.current_session
        if previous is not None and previous.id != session.id:
            await self.prune_if_empty(previous)

        for s in self.state.sessions:
            s.is_active = (s.id == session.id)

        self.state.current_session = session
        self.state.is_ready_for_new_chat = False
        await self.persist()

    async def delete_session(self, session: ChatSession) -> bool:
        """
        Delete a session and its messages.

        If it was the current session, the most recent remaining session is
        selected, or a fresh one is created when none remain.

        Returns:
            bool: False if the session is not known
        """
        if self.find_session(session.id) is None:
            return False

        was_current = self._is_current(session)
        await self._remove(session)
        logger.info(f"Deleted session {session.id}")

        if was_current:
            if self.state.sessions:
                await self.select_session(self.state.sessions[0])
            else:
                await self.create_session()

        await self.persist()
        return True

    async def prune_if_empty(self, session: Optional[ChatSession]) -> bool:
        """
        Silently delete a session that has no messages.

        Returns:
            bool: True if the session was removed
        """
        if session is None or session.messages:
            return False
        if self.find_session(session.id) is None:
            return False

        await self._remove(session)
        logger.debug(f"Pruned empty session {session.id}")
        await self.persist()
        return True

    async def prune_all_empty_sessions(self) -> int:
        empty_sessions = [s for s in self.state.sessions if not s.messages]
        for session in empty_sessions:
            await self.prune_if_empty(session)
        return len(empty_sessions)

    async def prepare_for_new_chat(self) -> None:
        """Leave the current session without creating a new one yet."""
        await self.prune_if_empty(self.state.current_session)

        for session in self.state.sessions:
            session.is_active = False
        self.state.current_session = None
        self.state.is_ready_for_new_chat = True
        await self.persist()

    def update_timestamp(self, session: ChatSession) -> None:
        """Call whenever a session's messages or title change."""
        session.update_timestamp()
        self._resort()

    async def rename_session(self, session: ChatSession, title: str) -> None:
        session.update_title(title)
        self._resort()
        await self.persist()

    async def select_model(self, model_id: str) -> bool:
        """
        Select a model for new chats and for the current session.

        Returns:
            bool: False if the model is not enabled
        """
        if not self.state.settings.update_selected_model(model_id):
            return False

        current = self.state.current_session
        if current is not None:
            current.selected_model = model_id
            self.update_timestamp(current)

        await self.persist_settings()
        await self.persist()
        return True

    async def reset_settings(self) -> AppSettings:
        """Replace the settings with defaults, API keys and fetched models included."""
        self.state.settings = AppSettings()
        await self.persist_settings()
        logger.info("Settings restored to defaults")
        return self.state.settings

    async def clear_all_data(self) -> None:
        """
        Delete every session and message and reset the settings.

        Afterwards no session is current and the next message starts a new one.
        """
        removed = len(self.state.sessions)
        await self.store.clear()
        self.state.sessions = []
        self.state.current_session = None
        self.state.is_ready_for_new_chat = True
        self.state.settings = AppSettings()

        if self.settings_storage is not None:
            try:
                await self.settings_storage.clear()
            except StorageError as e:
                self._record_storage_warning(e)
        await self.persist()
        logger.info(f"Cleared all data ({removed} sessions)")

    # ------------------------------------------------------------------
    # Persistence

    async def persist(self) -> bool:
        """
        Save the store. Failures are reported, never rolled back.

        Returns:
            bool: True if the write succeeded
        """
        try:
            await self.store.save()
        except StorageError as e:
            self._record_storage_warning(e)
            return False
        return True

    async def persist_settings(self) -> bool:
        if self.settings_storage is None:
            return True
        try:
            await self.settings_storage.save(self.state.settings)
        except StorageError as e:
            self._record_storage_warning(e)
            return False
        return True

    def _record_storage_warning(self, error: StorageError) -> None:
        logger.warning(f"Persistence failed, keeping in-memory state: {error}")
        self.state.storage_warnings.append(str(error))

    # ------------------------------------------------------------------
    # Internals

    def _is_current(self, session: ChatSession) -> bool:
        current = self.state.current_session
        return current is not None and current.id == session.id

    async def _remove(self, session: ChatSession) -> None:
        await self.store.delete(session)
        self.state.sessions = [s for s in self.state.sessions if s.id != session.id]
        if self._is_current(session):
            self.state.current_session = None

    def _resort(self) -> None:
        self.state.sessions.sort(key=lambda s: s.updated_at, reverse=True)
