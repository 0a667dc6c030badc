# studyhall/api/research.py
from fastapi import APIRouter, Depends
from pydantic import BaseModel

from studyhall.api.deps import dump, get_orchestrator, to_http
from studyhall.core.errors import StudyHallError
from studyhall.services.orchestrator import SessionOrchestrator

router = APIRouter()

class ResearchRequest(BaseModel):
    query: str

def _slot(orch: SessionOrchestrator) -> dict:
    session = orch.research_session
    return {
        "query": session.query_text,
        "result": dump(session.result) if session.result else None,
        "busy": session.busy,
        "error": session.last_error,
    }

@router.get("/")
async def get_research(orch: SessionOrchestrator = Depends(get_orchestrator)):
    return _slot(orch)

@router.post("/")
async def run_research(req: ResearchRequest, orch: SessionOrchestrator = Depends(get_orchestrator)):
    """Grounded web research; a failed query leaves the result empty"""
    try:
        await orch.research(req.query)
    except StudyHallError as e:
        raise to_http(e)
    return _slot(orch)
