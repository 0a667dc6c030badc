# studyhall/main.py
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from studyhall.api import chat, courses, research, session, settings
from studyhall.api.deps import get_orchestrator
from studyhall.core import config
from studyhall.services.orchestrator import SessionOrchestrator
from studyhall.utils.generation_log import configure_logging

configure_logging()

app = FastAPI(
    title="StudyHall - Self-Study Session Orchestrator",
    description="Generated STEM syllabi, lazily generated lessons, a per-lesson tutor and grounded research",
    version="1.0.0",
    debug=config.settings.DEBUG,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(session.router, tags=["session"])
app.include_router(courses.router, prefix="/courses", tags=["courses"])
app.include_router(chat.router, prefix="/tutor", tags=["tutor"])
app.include_router(research.router, prefix="/research", tags=["research"])
app.include_router(settings.router, prefix="/settings", tags=["settings"])

@app.get("/")
async def root(orch: SessionOrchestrator = Depends(get_orchestrator)):
    return {
        "message": "StudyHall - Self-Study Session Orchestrator",
        "version": "1.0.0",
        "generation": orch.gateway.describe(),
        "endpoints": {
            "state": "/state, /view/dashboard, /view/generator, /view/back",
            "subjects": "/subjects - Curated STEM subjects",
            "courses": "/courses - Generate, open and track courses and lessons",
            "tutor": "/tutor/messages - Chat with the tutor about the open lesson",
            "research": "/research - Grounded web research with citations",
            "settings": "/settings - Display preferences"
        }
    }
