# studyhall/api/courses.py
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from studyhall.api.deps import dump, get_orchestrator, to_http
from studyhall.core.errors import StudyHallError
from studyhall.services.orchestrator import SessionOrchestrator

router = APIRouter()

class GenerateCourseRequest(BaseModel):
    topic: str

@router.get("/")
async def list_courses(orch: SessionOrchestrator = Depends(get_orchestrator)):
    """All generated courses, most recent first"""
    return {"courses": [dump(c) for c in orch.courses.list_courses()]}

@router.post("/")
async def generate_course(req: GenerateCourseRequest, orch: SessionOrchestrator = Depends(get_orchestrator)):
    """Generate a syllabus from the generator screen and open it"""
    try:
        course = await orch.generate_course(req.topic)
    except StudyHallError as e:
        raise to_http(e)
    return {"course": dump(course), "state": orch.snapshot()}

@router.get("/{course_id}")
async def get_course(course_id: str, orch: SessionOrchestrator = Depends(get_orchestrator)):
    try:
        return {"course": dump(orch.courses.get_course(course_id))}
    except StudyHallError as e:
        raise to_http(e)

@router.delete("/{course_id}")
async def delete_course(course_id: str, orch: SessionOrchestrator = Depends(get_orchestrator)):
    try:
        course = orch.delete_course(course_id)
    except StudyHallError as e:
        raise to_http(e)
    return {"deleted": course.id, "state": orch.snapshot()}

@router.post("/{course_id}/open")
async def open_course(course_id: str, orch: SessionOrchestrator = Depends(get_orchestrator)):
    try:
        course = orch.open_course(course_id)
    except StudyHallError as e:
        raise to_http(e)
    return {"course": dump(course), "state": orch.snapshot()}

@router.post("/{course_id}/modules/{module_id}/open")
async def open_module(course_id: str, module_id: str, orch: SessionOrchestrator = Depends(get_orchestrator)):
    """Open a lesson, generating its content on the first visit"""
    try:
        if orch.state.active_course_id != course_id:
            raise HTTPException(status_code=409, detail=f"Course {course_id} is not the open course")
        module = await orch.open_module(module_id)
    except HTTPException:
        raise
    except StudyHallError as e:
        raise to_http(e)
    return {"module": dump(module), "state": orch.snapshot()}

@router.post("/{course_id}/modules/{module_id}/toggle")
async def toggle_module(course_id: str, module_id: str, orch: SessionOrchestrator = Depends(get_orchestrator)):
    try:
        if orch.state.active_course_id != course_id:
            raise HTTPException(status_code=409, detail=f"Course {course_id} is not the open course")
        course = orch.toggle_completion(module_id)
    except HTTPException:
        raise
    except StudyHallError as e:
        raise to_http(e)
    return {"course": dump(course)}
