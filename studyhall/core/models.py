# studyhall/core/models.py
"""
Domain models for courses, lessons, chat and display preferences.

All models are frozen snapshots. Updates produce new values via model_copy,
so a holder of an old Course never observes a half-updated one.
"""

import time
import uuid
from enum import Enum
from typing import Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator
from pydantic.alias_generators import to_camel


def new_id() -> str:
    return str(uuid.uuid4())


def now_ms() -> int:
    return int(time.time() * 1000)


class _Snapshot(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )


class Level(str, Enum):
    UNDERGRADUATE = "Undergraduate"
    MASTERS = "Masters"
    PHD = "PhD"


class ViewState(str, Enum):
    DASHBOARD = "dashboard"
    COURSE_GENERATOR = "course-generator"
    COURSE_VIEW = "course-view"
    LESSON_VIEW = "lesson-view"


class ChatRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class Module(_Snapshot):
    id: str = Field(default_factory=new_id)
    title: str
    description: str = ""
    topics: Tuple[str, ...] = ()
    is_completed: bool = False
    content: Optional[str] = None

    @property
    def has_content(self) -> bool:
        return bool(self.content)

    def with_content(self, content: str) -> "Module":
        # Lesson text is write-once for the lifetime of the module
        if self.has_content:
            raise ValueError(f"Module {self.id} already has content")
        return self.model_copy(update={"content": content})

    def toggled(self) -> "Module":
        return self.model_copy(update={"is_completed": not self.is_completed})


class Course(_Snapshot):
    id: str = Field(default_factory=new_id)
    title: str
    level: Level = Level.MASTERS
    description: str = ""
    modules: Tuple[Module, ...]
    created_at: int = Field(default_factory=now_ms)

    @field_validator("modules")
    @classmethod
    def _at_least_one_module(cls, modules):
        if not modules:
            raise ValueError("a course needs at least one module")
        return modules

    @computed_field
    @property
    def progress(self) -> int:
        total = len(self.modules)
        if total == 0:
            return 0
        completed = sum(1 for m in self.modules if m.is_completed)
        return round(100 * completed / total)

    def find_module(self, module_id: str) -> Optional[Module]:
        for module in self.modules:
            if module.id == module_id:
                return module
        return None

    def replace_module(self, module: Module) -> "Course":
        """Return a copy of this course with the module of the same id swapped in"""
        if self.find_module(module.id) is None:
            raise KeyError(module.id)
        modules = tuple(module if m.id == module.id else m for m in self.modules)
        return self.model_copy(update={"modules": modules})


class ChatMessage(_Snapshot):
    id: str = Field(default_factory=new_id)
    role: ChatRole
    text: str
    timestamp: int = Field(default_factory=now_ms)
    is_error: bool = False


class Citation(_Snapshot):
    uri: str
    title: str = ""


class ResearchResult(_Snapshot):
    text: str
    citations: Tuple[Citation, ...] = ()


FontFamily = Literal["serif", "sans", "mono"]
PageWidth = Literal["narrow", "medium", "wide"]
Theme = Literal["light", "dark", "sepia"]

ZOOM_MIN = 75
ZOOM_MAX = 150
ZOOM_STEP = 5


class DisplaySettings(_Snapshot):
    font_family: FontFamily = "serif"
    page_width: PageWidth = Field(default="medium", alias="maxWidth")
    theme: Theme = "dark"
    zoom: int = 100

    @field_validator("zoom")
    @classmethod
    def _zoom_on_grid(cls, zoom: int) -> int:
        if zoom < ZOOM_MIN or zoom > ZOOM_MAX:
            raise ValueError(f"zoom must be between {ZOOM_MIN} and {ZOOM_MAX}")
        if zoom % ZOOM_STEP:
            raise ValueError(f"zoom must be a multiple of {ZOOM_STEP}")
        return zoom

    def zoom_in(self) -> "DisplaySettings":
        return self.model_copy(update={"zoom": min(ZOOM_MAX, self.zoom + ZOOM_STEP)})

    def zoom_out(self) -> "DisplaySettings":
        return self.model_copy(update={"zoom": max(ZOOM_MIN, self.zoom - ZOOM_STEP)})


DEFAULT_DISPLAY_SETTINGS = DisplaySettings()
