"""
Unit tests for SessionLifecycleManager.
"""

from datetime import datetime, timedelta, timezone

import pytest

from echochat.core import MessageStateMachine, SessionLifecycleManager
from echochat.core.app_state import MAX_STORAGE_WARNINGS
from echochat.models import AppSettings, ChatSession
from echochat.storage import InMemorySessionStore, SettingsStorage, StorageError


def add_message(session: ChatSession, text: str = "hello") -> None:
    session.messages.append(MessageStateMachine.new_user_message(session, text))


def aged(session: ChatSession, days: int) -> ChatSession:
    stamp = datetime.now(timezone.utc) - timedelta(days=days)
    session.created_at = stamp
    session.updated_at = stamp
    return session


def assert_single_active(lifecycle: SessionLifecycleManager) -> None:
    active = lifecycle.state.active_sessions()
    current = lifecycle.current_session
    if current is None:
        assert active == []
    else:
        assert [s.id for s in active] == [current.id]


class FailingStore(InMemorySessionStore):
    async def save(self) -> None:
        raise StorageError("disk full")


class TestCreateSession:

    @pytest.mark.asyncio
    async def test_new_store_create(self, lifecycle, store):
        session = await lifecycle.create_session("gpt-4")

        assert lifecycle.sessions == [session]
        assert session.is_active
        assert session.messages == []
        assert session.selected_model == "gpt-4"
        assert lifecycle.current_session is session
        assert not lifecycle.state.is_ready_for_new_chat
        assert session in store

    @pytest.mark.asyncio
    async def test_defaults_to_selected_model(self, lifecycle, app_state):
        app_state.settings.selected_model_id = "claude-3-opus"
        session = await lifecycle.create_session()
        assert session.selected_model == "claude-3-opus"

    @pytest.mark.asyncio
    async def test_replaces_empty_current_session(self, lifecycle):
        first = await lifecycle.create_session()
        second = await lifecycle.create_session()

        assert lifecycle.find_session(first.id) is None
        assert lifecycle.sessions == [second]

    @pytest.mark.asyncio
    async def test_keeps_non_empty_current_session(self, lifecycle):
        first = await lifecycle.create_session()
        add_message(first)
        second = await lifecycle.create_session()

        assert [s.id for s in lifecycle.sessions] == [second.id, first.id]
        assert not first.is_active
        assert_single_active(lifecycle)


class TestSelectSession:

    @pytest.mark.asyncio
    async def test_only_target_is_active(self, lifecycle):
        first = await lifecycle.create_session()
        add_message(first)
        second = await lifecycle.create_session()
        add_message(second)

        await lifecycle.select_session(first)

        assert lifecycle.current_session is first
        assert first.is_active and not second.is_active
        assert_single_active(lifecycle)

    @pytest.mark.asyncio
    async def test_prunes_empty_previous_session(self, lifecycle):
        first = await lifecycle.create_session()
        add_message(first)
        empty = await lifecycle.create_session()

        await lifecycle.select_session(first)

        assert lifecycle.find_session(empty.id) is None
        assert lifecycle.sessions == [first]

    @pytest.mark.asyncio
    async def test_reselecting_empty_current_keeps_it(self, lifecycle):
        session = await lifecycle.create_session()
        await lifecycle.select_session(session)
        assert lifecycle.sessions == [session]


class TestDeleteSession:

    @pytest.mark.asyncio
    async def test_deleting_only_session_creates_new_one(self, lifecycle):
        only = await lifecycle.create_session()
        add_message(only)

        assert await lifecycle.delete_session(only)

        assert len(lifecycle.sessions) == 1
        replacement = lifecycle.sessions[0]
        assert replacement.id != only.id
        assert replacement.messages == []
        assert replacement.is_active
        assert lifecycle.current_session is replacement

    @pytest.mark.asyncio
    async def test_deleting_current_selects_most_recent(self, lifecycle):
        older = await lifecycle.create_session()
        add_message(older)
        aged(older, 2)
        newer = await lifecycle.create_session()
        add_message(newer)
        aged(newer, 1)
        current = await lifecycle.create_session()
        add_message(current)

        await lifecycle.delete_session(current)

        assert lifecycle.current_session is newer
        assert_single_active(lifecycle)

    @pytest.mark.asyncio
    async def test_deleting_other_session_keeps_current(self, lifecycle, store):
        other = await lifecycle.create_session()
        add_message(other)
        current = await lifecycle.create_session()
        add_message(current)

        await lifecycle.delete_session(other)

        assert lifecycle.current_session is current
        assert other not in store
        assert lifecycle.sessions == [current]

    @pytest.mark.asyncio
    async def test_unknown_session(self, lifecycle):
        assert not await lifecycle.delete_session(ChatSession())


class TestPruning:

    @pytest.mark.asyncio
    async def test_prune_all_is_idempotent(self, lifecycle, app_state):
        keep = ChatSession()
        add_message(keep)
        app_state.sessions = [keep, ChatSession(), ChatSession()]

        assert await lifecycle.prune_all_empty_sessions() == 2
        assert await lifecycle.prune_all_empty_sessions() == 0
        assert app_state.sessions == [keep]

    @pytest.mark.asyncio
    async def test_prune_if_empty_ignores_non_empty(self, lifecycle):
        session = await lifecycle.create_session()
        add_message(session)
        assert not await lifecycle.prune_if_empty(session)
        assert not await lifecycle.prune_if_empty(None)

    @pytest.mark.asyncio
    async def test_prepare_for_new_chat(self, lifecycle):
        empty = await lifecycle.create_session()

        await lifecycle.prepare_for_new_chat()

        assert lifecycle.current_session is None
        assert lifecycle.state.is_ready_for_new_chat
        assert lifecycle.find_session(empty.id) is None
        assert_single_active(lifecycle)


class TestOrdering:

    @pytest.mark.asyncio
    async def test_update_timestamp_moves_session_to_front(self, lifecycle):
        older = await lifecycle.create_session()
        add_message(older)
        aged(older, 3)
        newer = await lifecycle.create_session()
        add_message(newer)
        aged(newer, 1)
        assert lifecycle.sessions[0] is newer

        lifecycle.update_timestamp(older)

        assert [s.id for s in lifecycle.sessions] == [older.id, newer.id]

    @pytest.mark.asyncio
    async def test_updated_at_never_before_created_at(self, lifecycle):
        session = await lifecycle.create_session()
        session.created_at = datetime.now(timezone.utc) + timedelta(hours=1)
        lifecycle.update_timestamp(session)
        assert session.updated_at >= session.created_at

    @pytest.mark.asyncio
    async def test_rename(self, lifecycle):
        session = await lifecycle.create_session()
        await lifecycle.rename_session(session, "Trip plans")
        assert session.title == "Trip plans"
        assert not session.has_default_title


class TestAttach:

    @pytest.mark.asyncio
    async def test_selects_most_recent_and_sweeps_empties(self, store, app_state):
        recent = aged(ChatSession(), 1)
        add_message(recent)
        old = aged(ChatSession(), 5)
        add_message(old)
        empty = ChatSession()
        for session in (old, empty, recent):
            await store.insert(session)

        lifecycle = SessionLifecycleManager(store, app_state)
        await lifecycle.attach()

        assert [s.id for s in lifecycle.sessions] == [recent.id, old.id]
        assert lifecycle.current_session is recent
        assert empty not in store
        assert_single_active(lifecycle)

    @pytest.mark.asyncio
    async def test_empty_store(self, lifecycle):
        await lifecycle.attach()
        assert lifecycle.sessions == []
        assert lifecycle.current_session is None


class TestModelsAndPersistence:

    @pytest.mark.asyncio
    async def test_select_model_updates_current_session(self, lifecycle, app_state):
        session = await lifecycle.create_session("gpt-4")

        assert await lifecycle.select_model("claude-3-sonnet")

        assert app_state.settings.selected_model_id == "claude-3-sonnet"
        assert session.selected_model == "claude-3-sonnet"

    @pytest.mark.asyncio
    async def test_select_disabled_model(self, lifecycle, app_state):
        app_state.settings.toggle_model("gemini-1.5-pro")
        assert not await lifecycle.select_model("gemini-1.5-pro")
        assert app_state.settings.selected_model_id == "gpt-4"

    @pytest.mark.asyncio
    async def test_storage_failure_is_reported_not_rolled_back(self, app_state):
        lifecycle = SessionLifecycleManager(FailingStore(), app_state)

        session = await lifecycle.create_session()

        assert lifecycle.sessions == [session]
        assert app_state.storage_warnings
        assert "disk full" in app_state.storage_warnings[0]
        assert not await lifecycle.persist()

    @pytest.mark.asyncio
    async def test_storage_warnings_are_capped(self, app_state):
        lifecycle = SessionLifecycleManager(FailingStore(), app_state)

        for _ in range(MAX_STORAGE_WARNINGS + 5):
            await lifecycle.persist()

        assert len(app_state.storage_warnings) == MAX_STORAGE_WARNINGS

    @pytest.mark.asyncio
    async def test_find_message(self, lifecycle):
        session = await lifecycle.create_session()
        add_message(session, "needle")
        message = session.messages[0]

        assert lifecycle.find_message(message.id) == (session, message)
        assert lifecycle.find_message("missing") == (None, None)


class TestResetAndClear:

    @pytest.mark.asyncio
    async def test_reset_settings(self, lifecycle, app_state):
        app_state.settings.api_keys["openai"] = "sk-secret"
        app_state.settings.compact_mode = True

        restored = await lifecycle.reset_settings()

        assert restored == AppSettings()
        assert app_state.settings is restored

    @pytest.mark.asyncio
    async def test_clear_all_data(self, store, app_state, tmp_path):
        settings_storage = SettingsStorage(str(tmp_path))
        lifecycle = SessionLifecycleManager(store, app_state, settings_storage)
        for _ in range(2):
            add_message(await lifecycle.create_session())
        app_state.settings.font_size = 18
        await settings_storage.save(app_state.settings)

        await lifecycle.clear_all_data()

        assert lifecycle.sessions == []
        assert lifecycle.current_session is None
        assert app_state.is_ready_for_new_chat
        assert app_state.settings == AppSettings()
        assert len(store) == 0
        assert not settings_storage.path.exists()

        session = await lifecycle.create_session()
        assert lifecycle.sessions == [session]
