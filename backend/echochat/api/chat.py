"""
Chat API endpoints - Send, regenerate, resend, edit and delete messages.

Replies are produced in the background. With ``wait`` the request returns
once the reply has resolved; otherwise it returns the placeholder right away
and the client polls the session.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel

from ..core import ChatTurn, InvalidTransitionError
from .deps import ChatServices, get_services, require_message, require_session
from .sessions import session_detail

router = APIRouter(prefix="/chat", tags=["chat"])


class SendMessageRequest(BaseModel):
    content: str
    session_id: Optional[str] = None
    wait: bool = True


class EditMessageRequest(BaseModel):
    content: str


def _busy() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail="A reply is already in progress"
    )


async def _turn_response(turn: ChatTurn, wait: bool) -> dict:
    error = None
    if wait:
        outcome = await turn.wait()
        error = outcome.error

    return {
        "session_id": turn.session.id,
        "user_message": turn.user_message.model_dump(mode="json") if turn.user_message else None,
        "assistant_message": turn.assistant_message.model_dump(mode="json"),
        "pending": turn.assistant_message.is_transient,
        "error": error,
    }


@router.post("/messages")
async def send_message(body: SendMessageRequest, services: ChatServices = Depends(get_services)):
    """
    Send a user message and start the assistant reply.

    Args:
        body: Content, target session (current or a new one if omitted) and wait flag

    Returns:
        The user message, the assistant message and the reply error if any

    Raises:
        HTTPException: 400 blank content, 404 unknown session, 409 reply in progress
    """
    if not body.content.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Message content must not be blank"
        )

    if body.session_id:
        session = require_session(services, body.session_id)
    else:
        session = services.state.current_session

    if services.orchestrator.is_loading:
        raise _busy()

    turn = await services.orchestrator.submit(session, body.content)
    if turn is None:
        raise _busy()
    return await _turn_response(turn, body.wait)


@router.post("/sessions/{session_id}/regenerate")
async def regenerate(
    session_id: str,
    wait: bool = Query(True),
    services: ChatServices = Depends(get_services)
):
    """Replace the last assistant reply of a session in place."""
    session = require_session(services, session_id)
    turn = await services.orchestrator.regenerate(session)
    if turn is None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Nothing to regenerate right now"
        )
    return await _turn_response(turn, wait)


@router.post("/messages/{message_id}/resend")
async def resend(
    message_id: str,
    wait: bool = Query(True),
    services: ChatServices = Depends(get_services)
):
    """Send a user message (or the prompt of a failed reply) again as a new message."""
    session, message = require_message(services, message_id)
    turn = await services.orchestrator.resend(session, message)
    if turn is None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Message cannot be resent right now"
        )
    return await _turn_response(turn, wait)


@router.post("/messages/{message_id}/edit")
async def start_edit(message_id: str, services: ChatServices = Depends(get_services)):
    session, message = require_message(services, message_id)
    try:
        await services.orchestrator.start_edit(session, message)
    except InvalidTransitionError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return message.model_dump(mode="json")


@router.put("/messages/{message_id}/edit")
async def commit_edit(
    message_id: str,
    body: EditMessageRequest,
    services: ChatServices = Depends(get_services)
):
    """Raises 422 for blank content; the edit then stays open."""
    session, message = require_message(services, message_id)
    try:
        committed = await services.orchestrator.commit_edit(session, message, body.content)
    except InvalidTransitionError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    if not committed:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Edited content must not be blank"
        )
    return message.model_dump(mode="json")


@router.delete("/messages/{message_id}/edit")
async def cancel_edit(message_id: str, services: ChatServices = Depends(get_services)):
    session, message = require_message(services, message_id)
    await services.orchestrator.cancel_edit(session, message)
    return message.model_dump(mode="json")


@router.delete("/messages/{message_id}")
async def delete_message(message_id: str, services: ChatServices = Depends(get_services)):
    session, message = require_message(services, message_id)
    if not await services.orchestrator.delete_message(session, message):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="A message cannot be deleted while its reply is in progress"
        )
    return session_detail(services, session)


@router.get("/status")
async def chat_status(
    input_text: str = Query("", alias="input", description="Current composer text"),
    session_id: Optional[str] = Query(None),
    services: ChatServices = Depends(get_services)
):
    """Predicates for enabling the send and regenerate controls."""
    orchestrator = services.orchestrator
    if session_id:
        session = require_session(services, session_id)
    else:
        session = services.state.current_session

    return {
        "is_loading": orchestrator.is_loading,
        "can_send": orchestrator.can_send(input_text),
        "can_regenerate": orchestrator.can_regenerate(session),
        "current_session_id": services.state.current_session.id if services.state.current_session else None,
        "is_ready_for_new_chat": services.state.is_ready_for_new_chat,
        "storage_warnings": list(services.state.storage_warnings),
    }
