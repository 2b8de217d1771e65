"""
Session API endpoints - List, create, select, rename, delete and export sessions.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from pydantic import BaseModel

from ..core import group_sessions_by_date, search_sessions
from ..models import ChatSession, SessionList
from .deps import ChatServices, get_services, require_session

router = APIRouter(prefix="/sessions", tags=["sessions"])


class CreateSessionRequest(BaseModel):
    model_id: Optional[str] = None


class RenameSessionRequest(BaseModel):
    title: str


def session_detail(services: ChatServices, session: ChatSession) -> dict:
    """Session with its messages plus the predicates a client needs to render it."""
    current = services.state.current_session
    return {
        "session": session.model_dump(mode="json"),
        "is_current": current is not None and current.id == session.id,
        "is_loading": services.orchestrator.is_loading,
        "can_regenerate": services.orchestrator.can_regenerate(session),
        "storage_warnings": list(services.state.storage_warnings),
    }


@router.get("", response_model=SessionList)
async def list_sessions(services: ChatServices = Depends(get_services)):
    """Session summaries, most recently updated first."""
    return SessionList(sessions=[s.to_summary() for s in services.state.sessions])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_session(
    body: Optional[CreateSessionRequest] = None,
    services: ChatServices = Depends(get_services)
):
    """
    Create a session and make it current.

    Args:
        body: Optional model id (defaults to the selected model)

    Returns:
        Session detail
    """
    model_id = body.model_id if body else None
    if model_id and services.state.settings.find_model(model_id) is None:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Unknown model: {model_id}"
        )

    async with services.state.lock:
        session = await services.lifecycle.create_session(model_id)
    return session_detail(services, session)


@router.get("/history")
async def session_history(
    q: str = Query("", description="Filter on title or model id"),
    services: ChatServices = Depends(get_services)
):
    """Search results bucketed by date (Today, Yesterday, ..., YYYY-MM)."""
    groups = group_sessions_by_date(search_sessions(services.state.sessions, q))
    return {
        "query": q,
        "groups": [
            {"title": group.title, "sessions": [s.to_summary() for s in group.sessions]}
            for group in groups
        ],
    }


@router.post("/new-chat")
async def new_chat(services: ChatServices = Depends(get_services)):
    """Leave the current session; the next message starts a new one."""
    async with services.state.lock:
        await services.lifecycle.prepare_for_new_chat()
    return {"is_ready_for_new_chat": services.state.is_ready_for_new_chat}


@router.get("/export")
async def export_all_sessions(services: ChatServices = Depends(get_services)):
    """Download every session, messages included, as one JSON document."""
    async with services.state.lock:
        content = await services.store.export_data()
    return Response(
        content=content,
        media_type="application/json",
        headers={"Content-Disposition": 'attachment; filename="echochat-sessions.json"'},
    )


@router.get("/{session_id}")
async def get_session(session_id: str, services: ChatServices = Depends(get_services)):
    return session_detail(services, require_session(services, session_id))


@router.post("/{session_id}/select")
async def select_session(session_id: str, services: ChatServices = Depends(get_services)):
    async with services.state.lock:
        session = require_session(services, session_id)
        await services.lifecycle.select_session(session)
    return session_detail(services, session)


@router.patch("/{session_id}")
async def rename_session(
    session_id: str,
    body: RenameSessionRequest,
    services: ChatServices = Depends(get_services)
):
    title = body.title.strip()
    if not title:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Title must not be blank"
        )

    async with services.state.lock:
        session = require_session(services, session_id)
        await services.lifecycle.rename_session(session, title)
    return session_detail(services, session)


@router.delete("/{session_id}")
async def delete_session(session_id: str, services: ChatServices = Depends(get_services)):
    """
    Delete a session and its messages.

    Returns:
        The id of the session that is current afterwards
    """
    async with services.state.lock:
        session = require_session(services, session_id)
        await services.lifecycle.delete_session(session)

    current = services.state.current_session
    return {
        "deleted": session_id,
        "current_session_id": current.id if current else None,
    }


@router.get("/{session_id}/export")
async def export_session(session_id: str, services: ChatServices = Depends(get_services)):
    """Download one session, messages included, as a JSON document."""
    session = require_session(services, session_id)
    return Response(
        content=session.model_dump_json(indent=2),
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="chat-{session.id}.json"'},
    )
