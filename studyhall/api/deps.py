# studyhall/api/deps.py
from fastapi import HTTPException

from studyhall.core.errors import (
    GenerationError,
    InvalidTransitionError,
    NotFoundError,
    StudyHallError,
    ValidationError,
)
from studyhall.core.kv_store import create_store
from studyhall.services.gateway import GenerationGateway
from studyhall.services.orchestrator import SessionOrchestrator

_STATUS_BY_ERROR = {
    ValidationError: 422,
    NotFoundError: 404,
    InvalidTransitionError: 409,
    GenerationError: 502,
}

# Global orchestrator (lazy initialization)
_orchestrator = None


def get_orchestrator() -> SessionOrchestrator:
    """Get or create the process-wide orchestrator"""
    global _orchestrator
    if _orchestrator is None:
        _orchestrator = SessionOrchestrator(GenerationGateway(), create_store())
    return _orchestrator


def to_http(error: StudyHallError) -> HTTPException:
    for error_type, status in _STATUS_BY_ERROR.items():
        if isinstance(error, error_type):
            return HTTPException(status_code=status, detail=str(error))
    return HTTPException(status_code=500, detail=str(error))


def dump(model) -> dict:
    return model.model_dump(mode="json", by_alias=True)
