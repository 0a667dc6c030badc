# studyhall/api/chat.py
from fastapi import APIRouter, Depends
from pydantic import BaseModel

from studyhall.api.deps import dump, get_orchestrator, to_http
from studyhall.core.errors import StudyHallError
from studyhall.services.orchestrator import SessionOrchestrator

router = APIRouter()

class ChatRequest(BaseModel):
    text: str

def _history(orch: SessionOrchestrator) -> dict:
    tutor = orch.tutor
    return {
        "moduleId": tutor.module_id if tutor else None,
        "messages": [dump(m) for m in tutor.messages] if tutor else [],
        "busy": bool(tutor and tutor.busy),
    }

@router.get("/messages")
async def get_messages(orch: SessionOrchestrator = Depends(get_orchestrator)):
    """Conversation for the lesson currently open; empty outside a lesson"""
    return _history(orch)

@router.post("/messages")
async def send_message(req: ChatRequest, orch: SessionOrchestrator = Depends(get_orchestrator)):
    """Send one message to the tutor; failures come back as a flagged reply"""
    try:
        reply = await orch.send_chat(req.text)
    except StudyHallError as e:
        raise to_http(e)
    return {"reply": dump(reply), **_history(orch)}
