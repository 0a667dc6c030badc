# studyhall/api/session.py
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from studyhall.api.deps import dump, get_orchestrator, to_http
from studyhall.core.errors import StudyHallError
from studyhall.services.orchestrator import SessionOrchestrator

router = APIRouter()

STEM_SUBJECTS = [
    "Computer Science",
    "Physics",
    "Mathematics",
    "Chemistry",
    "Biology",
    "Electrical Engineering",
    "Mechanical Engineering",
    "Artificial Intelligence",
    "Data Science",
    "Astronomy",
    "Neuroscience",
    "Quantum Mechanics",
]

class GeneratorRequest(BaseModel):
    subject: Optional[str] = None

@router.get("/subjects")
async def list_subjects():
    """Curated subjects offered as one-click generator shortcuts"""
    return {"subjects": STEM_SUBJECTS}

@router.get("/state")
async def get_state(orch: SessionOrchestrator = Depends(get_orchestrator)):
    return orch.snapshot()

@router.post("/view/dashboard")
async def go_to_dashboard(orch: SessionOrchestrator = Depends(get_orchestrator)):
    orch.go_to_dashboard()
    return orch.snapshot()

@router.post("/view/generator")
async def open_generator(req: Optional[GeneratorRequest] = None, orch: SessionOrchestrator = Depends(get_orchestrator)):
    orch.start_course_generator(req.subject if req else None)
    return orch.snapshot()

@router.post("/view/back")
async def back_to_course(orch: SessionOrchestrator = Depends(get_orchestrator)):
    """Leave the lesson screen for the syllabus of the open course"""
    try:
        course = orch.back_to_course()
    except StudyHallError as e:
        raise to_http(e)
    return {"course": dump(course), "state": orch.snapshot()}
