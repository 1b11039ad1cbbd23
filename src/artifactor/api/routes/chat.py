"""/api/chat routes."""

from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends, Query

from artifactor.api.deps import get_services
from artifactor.api.schemas import ChatSend, message_out
from artifactor.workspace.services import Services

router = APIRouter(prefix="/chat", tags=["chat"])


@router.post("/send")
def send(body: ChatSend, services: Services = Depends(get_services)):
    result = services.chat.send(body.project_id, body.message, body.context, body.mode)
    return {
        "success": True,
        "message": result.message,
        "generatedFiles": [asdict(f) for f in result.generated_files],
        "thinking": result.thinking,
        "sessionId": result.session_id,
    }


@router.get("/history/{project_id}")
def history(
    project_id: str,
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    services: Services = Depends(get_services),
):
    messages = services.chat.history(project_id, limit=limit, offset=offset)
    return {
        "success": True,
        "messages": [message_out(m) for m in messages],
        "total": len(messages),
    }


@router.delete("/session/{session_id}")
def delete_session(session_id: str, services: Services = Depends(get_services)):
    services.chat.delete_session(session_id)
    return {"success": True, "message": "Session deleted"}
