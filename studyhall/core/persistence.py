# studyhall/core/persistence.py
"""
Load/save of display settings and course data over the key-value store.

Both records follow the same discipline: versioned blob on write,
explicit per-field default fill on read, write-through on every change.
"""

import json
import logging
from typing import Any, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from studyhall.core.errors import PersistenceParseError
from studyhall.core.kv_store import KeyValueStore
from studyhall.core.models import Course, DisplaySettings, DEFAULT_DISPLAY_SETTINGS, Level, new_id, now_ms

logger = logging.getLogger(__name__)

SETTINGS_KEY = "stem-masters-settings"
COURSES_KEY = "stem-masters-courses"
SCHEMA_VERSION = 1


def _read_blob(store: KeyValueStore, key: str) -> Optional[Any]:
    raw = store.get(key)
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except (TypeError, ValueError) as e:
        raise PersistenceParseError(key, str(e)) from e


def fill_settings_defaults(blob: Dict[str, Any]) -> DisplaySettings:
    """Default-fill pass: every field is taken from the blob only if it validates on its own"""
    values = {}
    for name, field in DisplaySettings.model_fields.items():
        key = field.alias or name
        if key in blob:
            candidate = blob[key]
        elif name in blob:
            candidate = blob[name]
        else:
            values[name] = getattr(DEFAULT_DISPLAY_SETTINGS, name)
            continue
        try:
            DisplaySettings.model_validate({key: candidate})
            values[name] = candidate
        except PydanticValidationError:
            logger.warning(f"[Settings] Ignoring invalid stored value for {key}: {candidate!r}")
            values[name] = getattr(DEFAULT_DISPLAY_SETTINGS, name)
    return DisplaySettings(**values)


class SettingsRepository:
    def __init__(self, store: KeyValueStore, key: str = SETTINGS_KEY):
        self.store = store
        self.key = key

    def load(self) -> DisplaySettings:
        """Never raises: unreadable or missing data yields defaults"""
        try:
            blob = _read_blob(self.store, self.key)
            if blob is None:
                return DEFAULT_DISPLAY_SETTINGS
            if not isinstance(blob, dict):
                raise PersistenceParseError(self.key, f"expected object, got {type(blob).__name__}")
        except PersistenceParseError as e:
            logger.error(f"[Settings] Failed to parse settings: {e}")
            return DEFAULT_DISPLAY_SETTINGS

        version = blob.get("version", 0)
        if isinstance(version, int) and version > SCHEMA_VERSION:
            logger.info(f"[Settings] Blob version {version} is newer than {SCHEMA_VERSION}, keeping known fields")
        return fill_settings_defaults(blob)

    def save(self, display: DisplaySettings) -> None:
        payload = {"version": SCHEMA_VERSION, **display.model_dump(mode="json", by_alias=True)}
        self.store.set(self.key, json.dumps(payload))

    def clear(self) -> None:
        """Forget stored preferences; the next load yields defaults"""
        self.store.delete(self.key)


def _fill_module_defaults(raw: Any) -> Dict[str, Any]:
    if not isinstance(raw, dict):
        raise ValueError("module record is not an object")
    if not raw.get("title"):
        raise ValueError("module record has no title")
    topics = raw.get("topics") or []
    return {
        "id": raw.get("id") or new_id(),
        "title": raw.get("title"),
        "description": raw.get("description") or "",
        "topics": [t for t in topics if isinstance(t, str)],
        "isCompleted": bool(raw.get("isCompleted", raw.get("is_completed", False))),
        "content": raw.get("content") or None,
    }


def _fill_course_defaults(raw: Any) -> Dict[str, Any]:
    if not isinstance(raw, dict):
        raise ValueError("course record is not an object")
    if not raw.get("title"):
        raise ValueError("course record has no title")
    level = raw.get("level")
    if level not in {lv.value for lv in Level}:
        level = Level.MASTERS.value
    return {
        "id": raw.get("id") or new_id(),
        "title": raw.get("title"),
        "level": level,
        "description": raw.get("description") or "",
        "modules": [_fill_module_defaults(m) for m in raw.get("modules") or []],
        "createdAt": raw.get("createdAt", raw.get("created_at")) or now_ms(),
    }


class CourseRepository:
    def __init__(self, store: KeyValueStore, key: str = COURSES_KEY):
        self.store = store
        self.key = key

    def load(self) -> List[Course]:
        """Load the stored course collection, dropping records that cannot be repaired"""
        try:
            blob = _read_blob(self.store, self.key)
        except PersistenceParseError as e:
            logger.error(f"[CourseRepository] Failed to parse courses: {e}")
            return []
        if blob is None:
            return []

        records = blob.get("courses") if isinstance(blob, dict) else blob
        if not isinstance(records, list):
            logger.error(f"[CourseRepository] Unexpected courses blob shape: {type(blob).__name__}")
            return []

        courses = []
        for raw in records:
            try:
                courses.append(Course.model_validate(_fill_course_defaults(raw)))
            except (ValueError, PydanticValidationError) as e:
                logger.warning(f"[CourseRepository] Dropping unreadable course record: {e}")
        logger.info(f"[CourseRepository] Loaded {len(courses)} courses")
        return courses

    def save(self, courses: List[Course]) -> None:
        payload = {
            "version": SCHEMA_VERSION,
            "courses": [
                c.model_dump(mode="json", by_alias=True, exclude={"progress"})
                for c in courses
            ],
        }
        self.store.set(self.key, json.dumps(payload))
