"""
Settings API endpoints - User settings, the model catalog, provider keys and
data management (export, import, reset).
"""

import json
from typing import Any, Dict, List, Optional, Set

from fastapi import APIRouter, Body, Depends, HTTPException, Response, status
from pydantic import BaseModel, ValidationError

from ..llm.remote_backend import resolve_base_url
from ..models import (
    AppSettings,
    FetchedModel,
    PROVIDER_DISPLAY_NAMES,
    provider_display_name,
    provider_key,
)
from .deps import ChatServices, get_services

router = APIRouter(prefix="/settings", tags=["settings"])

MASKED_KEY = "***"


class SettingsUpdate(BaseModel):
    """Partial update; fields left out keep their current value."""
    selected_model_id: Optional[str] = None
    font_size: Optional[float] = None
    enabled_models: Optional[Set[str]] = None
    auto_save_chats: Optional[bool] = None
    show_timestamps: Optional[bool] = None
    compact_mode: Optional[bool] = None
    api_keys: Optional[Dict[str, str]] = None
    custom_endpoints: Optional[Dict[str, str]] = None


class ProviderTestRequest(BaseModel):
    api_key: Optional[str] = None
    base_url: Optional[str] = None


def _public_settings(app_settings: AppSettings) -> dict:
    data = app_settings.model_dump(mode="json")
    data["api_keys"] = {provider: MASKED_KEY for provider, key in app_settings.api_keys.items() if key}
    return data


def _merge_api_keys(current: AppSettings, api_keys: Dict[str, str]) -> Dict[str, str]:
    """Normalize provider names; a masked key keeps the stored one."""
    return {
        provider_key(provider): current.api_keys.get(provider_key(provider), "") if key == MASKED_KEY else key
        for provider, key in api_keys.items()
    }


async def _replace_settings(services: ChatServices, data: Dict[str, Any]) -> AppSettings:
    """
    Validate and store a complete settings document. Caller holds the state lock.

    Raises:
        HTTPException: 422 with the list of problems if the document is invalid
    """
    try:
        candidate = AppSettings.model_validate(data)
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=[err["msg"] for err in e.errors()]
        )

    problems = candidate.validate_settings()
    if problems:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=problems)

    services.state.settings = candidate
    await services.lifecycle.persist_settings()
    return candidate


@router.get("")
async def get_settings(services: ChatServices = Depends(get_services)):
    """Current settings with API keys masked."""
    return _public_settings(services.state.settings)


@router.put("")
async def update_settings(body: SettingsUpdate, services: ChatServices = Depends(get_services)):
    """
    Apply a partial settings update.

    Masked keys (``***``) sent back unchanged keep the stored key.

    Raises:
        HTTPException: 422 with the list of problems if the result is invalid
    """
    changes = body.model_dump(exclude_unset=True, exclude_none=True)

    async with services.state.lock:
        current = services.state.settings
        if "api_keys" in changes:
            changes["api_keys"] = _merge_api_keys(current, changes["api_keys"])
        if "custom_endpoints" in changes:
            changes["custom_endpoints"] = {
                provider_key(provider): url.strip()
                for provider, url in changes["custom_endpoints"].items()
                if url.strip()
            }
        candidate = await _replace_settings(services, {**current.model_dump(), **changes})

    return _public_settings(candidate)


@router.get("/export")
async def export_settings(services: ChatServices = Depends(get_services)):
    """Download the settings as JSON. API keys stay masked."""
    return Response(
        content=json.dumps(_public_settings(services.state.settings), indent=2),
        media_type="application/json",
        headers={"Content-Disposition": 'attachment; filename="echochat-settings.json"'},
    )


@router.post("/import")
async def import_settings(
    document: Dict[str, Any] = Body(...),
    services: ChatServices = Depends(get_services)
):
    """
    Replace the settings with an exported document.

    Fields missing from the document take their defaults; masked keys keep
    the stored key.

    Raises:
        HTTPException: 422 if the document is not valid settings
    """
    async with services.state.lock:
        data = dict(document)
        if isinstance(data.get("api_keys"), dict):
            data["api_keys"] = _merge_api_keys(services.state.settings, data["api_keys"])
        candidate = await _replace_settings(services, data)

    return _public_settings(candidate)


@router.post("/restore-defaults")
async def restore_defaults(services: ChatServices = Depends(get_services)):
    """Reset every setting, API keys included, to its default."""
    async with services.state.lock:
        app_settings = await services.lifecycle.reset_settings()
    return _public_settings(app_settings)


@router.delete("/data")
async def clear_all_data(services: ChatServices = Depends(get_services)):
    """
    Delete every session and message and reset the settings.

    Raises:
        HTTPException: 409 while a reply is in flight
    """
    async with services.state.lock:
        if services.orchestrator.is_loading:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="A reply is in progress"
            )
        await services.lifecycle.clear_all_data()

    return {
        "cleared": True,
        "settings": _public_settings(services.state.settings),
    }


@router.get("/models")
async def list_models(services: ChatServices = Depends(get_services)):
    """Enabled models plus the full per-provider catalog."""
    app_settings = services.state.settings
    providers: List[str] = list(PROVIDER_DISPLAY_NAMES.values())
    providers.extend(p for p in app_settings.fetched_models if p not in providers)

    return {
        "selected_model_id": app_settings.selected_model_id,
        "available": [m.model_dump() for m in app_settings.available_models],
        "providers": {
            provider: [
                {**m.model_dump(), "is_enabled": m.id in app_settings.enabled_models}
                for m in app_settings.get_all_models(provider)
            ]
            for provider in providers
        },
    }


@router.post("/models/{model_id}/select")
async def select_model(model_id: str, services: ChatServices = Depends(get_services)):
    """Select a model for new chats and for the current session."""
    async with services.state.lock:
        if not await services.lifecycle.select_model(model_id):
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail=f"Model {model_id} is not enabled"
            )
    return {"selected_model_id": services.state.settings.selected_model_id}


@router.post("/models/{model_id}/toggle")
async def toggle_model(model_id: str, services: ChatServices = Depends(get_services)):
    async with services.state.lock:
        app_settings = services.state.settings
        if app_settings.find_model(model_id) is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Model {model_id} not found"
            )
        enabled = app_settings.toggle_model(model_id)
        await services.lifecycle.persist_settings()

    return {
        "model_id": model_id,
        "enabled": enabled,
        "selected_model_id": app_settings.selected_model_id,
    }


@router.post("/providers/{provider}/test")
async def test_provider(
    provider: str,
    body: Optional[ProviderTestRequest] = None,
    services: ChatServices = Depends(get_services)
):
    """
    Probe a provider key by listing its models.

    On success the chat-capable models are stored as fetched models (and
    enabled), and a key given in the body is saved.

    Raises:
        HTTPException: 404 if the provider has no known or configured endpoint
    """
    app_settings = services.state.settings
    api_key = (body.api_key if body and body.api_key else app_settings.api_key_for(provider)).strip()
    base_url = (
        body.base_url.strip() if body and body.base_url
        else resolve_base_url(app_settings, provider, services.config)
    )
    if not base_url:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown provider: {provider}"
        )

    result = await services.chat_client.test_api_key(base_url, api_key)
    if not result.is_valid:
        return {"is_valid": False, "error": result.error, "models": []}

    display_name = provider_display_name(provider)
    fetched = [
        FetchedModel(
            id=model.id,
            display_name=model.id,
            provider=display_name,
            created=model.created,
            owned_by=model.owned_by,
        )
        for model in result.models or []
    ]

    async with services.state.lock:
        # A settings update may have replaced the object during the key check
        app_settings = services.state.settings
        app_settings.update_fetched_models(display_name, fetched)
        if body and body.api_key:
            app_settings.api_keys[provider_key(provider)] = api_key
        await services.lifecycle.persist_settings()

    return {
        "is_valid": True,
        "error": None,
        "models": [model.model_dump() for model in fetched],
    }
