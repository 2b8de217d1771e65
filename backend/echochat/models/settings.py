"""
Settings Models - User-facing application settings and the model catalog.
"""

from typing import Optional, List, Dict, Set
from pydantic import BaseModel, Field

FONT_SIZE_RANGE = (10.0, 24.0)
FETCHED_MODEL_MAX_TOKENS = 4096


class ModelConfig(BaseModel):
    """A chat model the user can pick."""
    id: str
    name: str  # canonical name sent to the provider
    display_name: str
    provider: str  # "OpenAI", "Anthropic", "Google", ...
    max_tokens: int
    supports_images: bool = False
    supports_files: bool = False
    is_enabled: bool = True


DEFAULT_MODELS: List[ModelConfig] = [
    ModelConfig(id="gpt-4", name="gpt-4", display_name="GPT-4", provider="OpenAI",
                max_tokens=8192, supports_images=True, supports_files=True),
    ModelConfig(id="gpt-3.5-turbo", name="gpt-3.5-turbo", display_name="GPT-3.5 Turbo",
                provider="OpenAI", max_tokens=4096),
    ModelConfig(id="claude-3-opus", name="claude-3-opus-20240229", display_name="Claude 3 Opus",
                provider="Anthropic", max_tokens=200000, supports_images=True, supports_files=True),
    ModelConfig(id="claude-3-sonnet", name="claude-3-sonnet-20240229", display_name="Claude 3 Sonnet",
                provider="Anthropic", max_tokens=200000, supports_images=True, supports_files=True),
    ModelConfig(id="gemini-1.5-pro", name="gemini-1.5-pro-latest", display_name="Gemini 1.5 Pro",
                provider="Google", max_tokens=1000000, supports_images=True, supports_files=True),
    ModelConfig(id="gemini-1.5-flash", name="gemini-1.5-flash-latest", display_name="Gemini 1.5 Flash",
                provider="Google", max_tokens=1000000, supports_images=True, supports_files=True),
]

DEFAULT_MODEL_ID = "gpt-4"


def default_model() -> ModelConfig:
    return next((m for m in DEFAULT_MODELS if m.id == DEFAULT_MODEL_ID), DEFAULT_MODELS[0])


def provider_key(provider: str) -> str:
    """Key used in api_keys / custom_endpoints ("OpenAI" -> "openai")."""
    return provider.strip().lower()


PROVIDER_DISPLAY_NAMES = {"openai": "OpenAI", "anthropic": "Anthropic", "google": "Google"}


def provider_display_name(provider: str) -> str:
    """Inverse of provider_key for known providers ("openai" -> "OpenAI")."""
    return PROVIDER_DISPLAY_NAMES.get(provider_key(provider), provider.strip())


class FetchedModel(BaseModel):
    """A model discovered through a provider's /models endpoint."""
    id: str
    display_name: str
    provider: str
    created: Optional[int] = None
    owned_by: Optional[str] = None

    def to_model_config(self) -> ModelConfig:
        return ModelConfig(
            id=self.id,
            name=self.id,
            display_name=self.display_name,
            provider=self.provider,
            max_tokens=FETCHED_MODEL_MAX_TOKENS,
        )


class AppSettings(BaseModel):
    """
    Persisted user settings.

    ``selected_model_id`` is expected to be a member of ``enabled_models``;
    ``toggle_model`` keeps that true when the selected model is disabled.
    """
    selected_model_id: str = DEFAULT_MODEL_ID
    font_size: float = 14.0
    enabled_models: Set[str] = Field(default_factory=lambda: {m.id for m in DEFAULT_MODELS})
    auto_save_chats: bool = True
    show_timestamps: bool = False
    compact_mode: bool = False

    api_keys: Dict[str, str] = Field(default_factory=dict)  # provider key -> API key
    custom_endpoints: Dict[str, str] = Field(default_factory=dict)  # provider key -> base URL
    fetched_models: Dict[str, List[FetchedModel]] = Field(default_factory=dict)  # provider -> models

    @property
    def available_models(self) -> List[ModelConfig]:
        """Enabled catalog models followed by enabled fetched models."""
        models = [m for m in DEFAULT_MODELS if m.id in self.enabled_models]
        seen = {m.id for m in models}
        for provider_models in self.fetched_models.values():
            for fetched in provider_models:
                if fetched.id in self.enabled_models and fetched.id not in seen:
                    models.append(fetched.to_model_config())
                    seen.add(fetched.id)
        return models

    @property
    def selected_model(self) -> ModelConfig:
        return self.find_model(self.selected_model_id) or default_model()

    def find_model(self, model_id: str) -> Optional[ModelConfig]:
        for model in DEFAULT_MODELS:
            if model.id == model_id:
                return model
        for provider_models in self.fetched_models.values():
            for fetched in provider_models:
                if fetched.id == model_id:
                    return fetched.to_model_config()
        return None

    def update_selected_model(self, model_id: str) -> bool:
        """Select a model. Only enabled models can be selected."""
        if model_id not in self.enabled_models:
            return False
        self.selected_model_id = model_id
        return True

    def toggle_model(self, model_id: str) -> bool:
        """
        Enable or disable a model.

        Returns:
            bool: True if the model is enabled after the call
        """
        if model_id in self.enabled_models:
            self.enabled_models.discard(model_id)
            if self.selected_model_id == model_id and self.enabled_models:
                self.selected_model_id = self._first_enabled_model_id()
            return False

        self.enabled_models.add(model_id)
        return True

    def _first_enabled_model_id(self) -> str:
        available = self.available_models
        if available:
            return available[0].id
        return sorted(self.enabled_models)[0]

    def update_fetched_models(self, provider: str, models: List[FetchedModel]) -> None:
        """Replace the fetched list for a provider and enable every model in it."""
        self.fetched_models[provider] = list(models)
        for model in models:
            self.enabled_models.add(model.id)

    def get_all_models(self, provider: str) -> List[ModelConfig]:
        """Catalog plus fetched models for one provider, enabled or not."""
        models = [m for m in DEFAULT_MODELS if m.provider == provider]
        models.extend(f.to_model_config() for f in self.fetched_models.get(provider, []))
        return models

    def api_key_for(self, provider: str) -> str:
        return self.api_keys.get(provider_key(provider), "")

    def validate_settings(self) -> List[str]:
        """Human-readable problems with the current values (empty when valid)."""
        errors: List[str] = []
        if not self.enabled_models:
            errors.append("At least one model must be enabled")
        if self.selected_model_id not in self.enabled_models:
            errors.append("The selected model is disabled")
        low, high = FONT_SIZE_RANGE
        if not low <= self.font_size <= high:
            errors.append(f"Font size must be between {low} and {high}")
        return errors
