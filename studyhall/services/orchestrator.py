# studyhall/services/orchestrator.py
"""
Session orchestrator - the single owner of application state.

Screens, active course/module, settings and the per-lesson tutor and research
sessions all live here. Subordinate components get narrow read/update access
through this object instead of mutating shared state themselves.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from pydantic import ValidationError as PydanticValidationError

from studyhall.core.errors import GenerationError, InvalidTransitionError, ValidationError
from studyhall.core.kv_store import KeyValueStore
from studyhall.core.models import (
    ChatMessage,
    Course,
    DEFAULT_DISPLAY_SETTINGS,
    DisplaySettings,
    Module,
    ResearchResult,
    ViewState,
)
from studyhall.core.persistence import CourseRepository, SettingsRepository
from studyhall.core.view_state import ViewStateMachine
from studyhall.services.course_store import CourseStore
from studyhall.services.gateway import GenerationGateway
from studyhall.services.research import ResearchSession
from studyhall.services.tutor import TutorSession

logger = logging.getLogger(__name__)


@dataclass
class AppState:
    active_course_id: Optional[str] = None
    active_module_id: Optional[str] = None
    generator_prefill: str = ""
    last_error: Optional[str] = None


class SessionOrchestrator:
    def __init__(self, gateway: GenerationGateway, store: KeyValueStore):
        self.name = "SessionOrchestrator"
        self.gateway = gateway
        self.settings_repository = SettingsRepository(store)
        self.courses = CourseStore(gateway, CourseRepository(store))
        self.display: DisplaySettings = self.settings_repository.load()
        self.view = ViewStateMachine()
        self.state = AppState()
        self.tutor: Optional[TutorSession] = None
        self.research_session = ResearchSession(gateway)

    # ===== Active entities =====

    def active_course(self) -> Course:
        if self.state.active_course_id is None:
            raise InvalidTransitionError("No active course")
        return self.courses.get_course(self.state.active_course_id)

    def active_module(self) -> Module:
        if self.state.active_module_id is None:
            raise InvalidTransitionError("No active module")
        return self.courses.get_module(self.active_course().id, self.state.active_module_id)

    def _require_view(self, *views: ViewState):
        if self.view.current not in views:
            allowed = ", ".join(v.value for v in views)
            raise InvalidTransitionError(f"Expected view {allowed}, currently {self.view.current.value}")

    def _leave_lesson(self):
        self.state.active_module_id = None
        self.tutor = None

    # ===== Navigation =====

    def go_to_dashboard(self) -> ViewState:
        self.view.transition(ViewState.DASHBOARD)
        self._leave_lesson()
        self.state.active_course_id = None
        return self.view.current

    def start_course_generator(self, subject: Optional[str] = None) -> ViewState:
        self.view.transition(ViewState.COURSE_GENERATOR)
        self._leave_lesson()
        self.state.active_course_id = None
        self.state.generator_prefill = (subject or "").strip()
        self.state.last_error = None
        return self.view.current

    def open_course(self, course_id: str) -> Course:
        course = self.courses.get_course(course_id)
        self.view.transition(ViewState.COURSE_VIEW)
        self._leave_lesson()
        self.state.active_course_id = course.id
        return course

    def back_to_course(self) -> Course:
        course = self.active_course()
        self.view.transition(ViewState.COURSE_VIEW)
        self._leave_lesson()
        return course

    # ===== Course store =====

    async def generate_course(self, topic: str) -> Course:
        """Generate a syllabus; stays on the generator screen when it fails"""
        self._require_view(ViewState.COURSE_GENERATOR)
        self.state.last_error = None
        try:
            course = await self.courses.generate_course(topic)
        except GenerationError as e:
            logger.error(f"[{self.name}] Course generation failed: {e}")
            self.state.last_error = "Failed to generate course. Please try again."
            raise

        self.view.finish_generation()
        self.state.active_course_id = course.id
        self.state.generator_prefill = ""
        return course

    async def open_module(self, module_id: str) -> Module:
        """Enter the lesson screen; content is generated on first visit.

        Failure leaves the module without content so a later visit can retry.
        A late response is still written to its own module, but never moves
        the view to it.
        """
        course = self.active_course()
        module = self.courses.get_module(course.id, module_id)
        self.view.transition(ViewState.LESSON_VIEW)

        self.state.active_module_id = module.id
        self.state.last_error = None
        self.tutor = TutorSession(self.gateway, self.courses, course.id, module.id)
        self.research_session = ResearchSession(self.gateway)

        try:
            return await self.courses.open_module(course.id, module.id)
        except GenerationError as e:
            logger.error(f"[{self.name}] Lesson generation failed for '{module.title}': {e}")
            if self.state.active_module_id == module.id:
                self.state.last_error = "Lesson content could not be generated. Open the module again to retry."
            return self.courses.get_module(course.id, module.id)

    def toggle_completion(self, module_id: str) -> Course:
        self._require_view(ViewState.COURSE_VIEW, ViewState.LESSON_VIEW)
        course = self.active_course()
        return self.courses.toggle_completion(course.id, module_id)

    def delete_course(self, course_id: str) -> Course:
        course = self.courses.delete_course(course_id)
        if self.state.active_course_id == course_id:
            self.go_to_dashboard()
        return course

    # ===== Tutor & research =====

    async def send_chat(self, text: str) -> ChatMessage:
        self._require_view(ViewState.LESSON_VIEW)
        if self.tutor is None:
            raise InvalidTransitionError("No tutor session for the current lesson")
        return await self.tutor.send(text)

    async def research(self, query: str) -> Optional[ResearchResult]:
        self._require_view(ViewState.LESSON_VIEW)
        return await self.research_session.query(query)

    # ===== Settings =====

    def _store_display(self, display: DisplaySettings) -> DisplaySettings:
        self.display = display
        self.settings_repository.save(display)
        return display

    def update_settings(self, **changes: Any) -> DisplaySettings:
        merged = self.display.model_dump(by_alias=True)
        fields = DisplaySettings.model_fields
        aliases = {f.alias: name for name, f in fields.items() if f.alias}
        for key, value in changes.items():
            name = aliases.get(key, key)
            if name not in fields:
                raise ValidationError(f"Unknown display setting: {key}")
            merged[fields[name].alias or name] = value
        try:
            display = DisplaySettings.model_validate(merged)
        except PydanticValidationError as e:
            raise ValidationError(str(e)) from e
        return self._store_display(display)

    def reset_settings(self) -> DisplaySettings:
        self.settings_repository.clear()
        self.display = DEFAULT_DISPLAY_SETTINGS
        return self.display

    def zoom_in(self) -> DisplaySettings:
        return self._store_display(self.display.zoom_in())

    def zoom_out(self) -> DisplaySettings:
        return self._store_display(self.display.zoom_out())

    # ===== Introspection =====

    def snapshot(self) -> Dict[str, Any]:
        module_id = self.state.active_module_id
        return {
            "view": self.view.current.value,
            "activeCourseId": self.state.active_course_id,
            "activeModuleId": module_id,
            "generatorPrefill": self.state.generator_prefill,
            "lessonGenerating": bool(module_id) and self.courses.is_generating(module_id),
            "chatBusy": bool(self.tutor and self.tutor.busy),
            "researchBusy": self.research_session.busy,
            "lastError": self.state.last_error,
        }
