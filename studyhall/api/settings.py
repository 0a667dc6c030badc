# studyhall/api/settings.py
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from studyhall.api.deps import dump, get_orchestrator, to_http
from studyhall.core.errors import StudyHallError
from studyhall.services.orchestrator import SessionOrchestrator

router = APIRouter()

class SettingsPatch(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    font_family: Optional[str] = None
    max_width: Optional[str] = None
    theme: Optional[str] = None
    zoom: Optional[int] = None

@router.get("/")
async def get_settings(orch: SessionOrchestrator = Depends(get_orchestrator)):
    return {"settings": dump(orch.display)}

@router.patch("/")
async def patch_settings(req: SettingsPatch, orch: SessionOrchestrator = Depends(get_orchestrator)):
    """Change display preferences; every change is written through immediately"""
    changes = {}
    if req.font_family is not None:
        changes["font_family"] = req.font_family
    if req.max_width is not None:
        changes["page_width"] = req.max_width
    if req.theme is not None:
        changes["theme"] = req.theme
    if req.zoom is not None:
        changes["zoom"] = req.zoom
    try:
        display = orch.update_settings(**changes)
    except StudyHallError as e:
        raise to_http(e)
    return {"settings": dump(display)}

@router.post("/reset")
async def reset_settings(orch: SessionOrchestrator = Depends(get_orchestrator)):
    return {"settings": dump(orch.reset_settings())}

@router.post("/zoom/in")
async def zoom_in(orch: SessionOrchestrator = Depends(get_orchestrator)):
    return {"settings": dump(orch.zoom_in())}

@router.post("/zoom/out")
async def zoom_out(orch: SessionOrchestrator = Depends(get_orchestrator)):
    return {"settings": dump(orch.zoom_out())}
