"""
Unit tests for AppSettings, the model catalog and process configuration.
"""

from echochat.config import Settings, get_default_base_url
from echochat.models import (
    DEFAULT_MODELS,
    AppSettings,
    ChatMessage,
    ChatSession,
    FetchedModel,
    MessageSender,
    provider_display_name,
    provider_key,
)


def fetched(model_id: str, provider: str = "OpenAI") -> FetchedModel:
    return FetchedModel(id=model_id, display_name=model_id, provider=provider)


class TestCatalog:

    def test_defaults(self):
        settings = AppSettings()
        assert settings.selected_model_id == "gpt-4"
        assert settings.selected_model.display_name == "GPT-4"
        assert {m.id for m in settings.available_models} == {m.id for m in DEFAULT_MODELS}
        assert settings.validate_settings() == []

    def test_find_model_uses_canonical_name(self):
        model = AppSettings().find_model("claude-3-opus")
        assert model.name == "claude-3-opus-20240229"
        assert model.provider == "Anthropic"

    def test_unknown_model(self):
        assert AppSettings().find_model("nope") is None

    def test_provider_helpers(self):
        assert provider_key(" OpenAI ") == "openai"
        assert provider_display_name("google") == "Google"
        assert provider_display_name("Mistral") == "Mistral"


class TestSelection:

    def test_select_enabled_model(self):
        settings = AppSettings()
        assert settings.update_selected_model("gemini-1.5-flash")
        assert settings.selected_model_id == "gemini-1.5-flash"

    def test_select_disabled_model_is_refused(self):
        settings = AppSettings()
        settings.toggle_model("gemini-1.5-flash")
        assert not settings.update_selected_model("gemini-1.5-flash")
        assert settings.selected_model_id == "gpt-4"

    def test_disabling_selected_model_moves_selection(self):
        settings = AppSettings()

        assert settings.toggle_model("gpt-4") is False

        assert settings.selected_model_id != "gpt-4"
        assert settings.selected_model_id in settings.enabled_models
        assert settings.validate_settings() == []

    def test_toggle_back_on(self):
        settings = AppSettings()
        settings.toggle_model("gpt-3.5-turbo")
        assert settings.toggle_model("gpt-3.5-turbo") is True
        assert "gpt-3.5-turbo" in settings.enabled_models


class TestFetchedModels:

    def test_fetched_models_are_enabled_and_available(self):
        settings = AppSettings()
        settings.update_fetched_models("OpenAI", [fetched("gpt-4o"), fetched("gpt-4o-mini")])

        ids = [m.id for m in settings.available_models]
        assert ids[-2:] == ["gpt-4o", "gpt-4o-mini"]
        assert settings.update_selected_model("gpt-4o")
        assert settings.selected_model.max_tokens == 4096

    def test_fetched_duplicate_of_catalog_is_listed_once(self):
        settings = AppSettings()
        settings.update_fetched_models("OpenAI", [fetched("gpt-4")])
        assert [m.id for m in settings.available_models].count("gpt-4") == 1

    def test_get_all_models_by_provider(self):
        settings = AppSettings()
        settings.update_fetched_models("Google", [fetched("gemini-2.0-flash", "Google")])
        ids = [m.id for m in settings.get_all_models("Google")]
        assert ids == ["gemini-1.5-pro", "gemini-1.5-flash", "gemini-2.0-flash"]

    def test_api_key_lookup_is_case_insensitive(self):
        settings = AppSettings(api_keys={"openai": "sk-test"})
        assert settings.api_key_for("OpenAI") == "sk-test"
        assert settings.api_key_for("Google") == ""


class TestValidation:

    def test_font_size_out_of_range(self):
        problems = AppSettings(font_size=40).validate_settings()
        assert any("Font size" in p for p in problems)

    def test_no_enabled_models(self):
        problems = AppSettings(enabled_models=set()).validate_settings()
        assert "At least one model must be enabled" in problems
        assert "The selected model is disabled" in problems

    def test_json_round_trip(self):
        settings = AppSettings(font_size=16, api_keys={"openai": "sk-test"})
        settings.update_fetched_models("OpenAI", [fetched("gpt-4o")])
        restored = AppSettings.model_validate_json(settings.model_dump_json())
        assert restored == settings


class TestSessionModel:

    def test_default_title_and_summary(self):
        session = ChatSession()
        session.messages.append(ChatMessage(sender=MessageSender.USER, content="hi"))

        summary = session.to_summary()

        assert session.has_default_title
        assert summary.title == "New Chat"
        assert summary.message_count == 1

    def test_blank_title_displays_default(self):
        assert ChatSession(title="  ").display_title == "New Chat"


class TestConfig:

    def test_default_base_urls(self):
        config = Settings(openai_base_url="https://proxy.example.com/v1")
        assert get_default_base_url("OpenAI", config) == "https://proxy.example.com/v1"
        assert get_default_base_url("anthropic", config) == "https://api.anthropic.com"
        assert get_default_base_url("mistral", config) is None
