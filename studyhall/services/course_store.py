# studyhall/services/course_store.py
"""
Course/Module Store - generated curricula, lazy lesson cache, completion tracking.

Courses are immutable snapshots addressed by id. Every mutation replaces the
whole Course in the collection and writes the collection through to storage.
"""

import asyncio
import logging
from typing import Dict, List

from studyhall.core.errors import NotFoundError, require_text
from studyhall.core.models import Course, Level, Module
from studyhall.core.persistence import CourseRepository
from studyhall.services.gateway import GenerationGateway

logger = logging.getLogger(__name__)


class CourseStore:
    def __init__(self, gateway: GenerationGateway, repository: CourseRepository):
        self.name = "CourseStore"
        self.gateway = gateway
        self.repository = repository
        self._courses: List[Course] = repository.load()
        # In-flight marker: one pending lesson generation per module id
        self._in_flight: Dict[str, asyncio.Task] = {}

    # ===== Reads =====

    def list_courses(self) -> List[Course]:
        return list(self._courses)

    def get_course(self, course_id: str) -> Course:
        for course in self._courses:
            if course.id == course_id:
                return course
        raise NotFoundError(f"Unknown course: {course_id}")

    def get_module(self, course_id: str, module_id: str) -> Module:
        module = self.get_course(course_id).find_module(module_id)
        if module is None:
            raise NotFoundError(f"Unknown module {module_id} in course {course_id}")
        return module

    def is_generating(self, module_id: str) -> bool:
        return module_id in self._in_flight

    # ===== Writes =====

    def _replace_course(self, course: Course):
        self._courses = [course if c.id == course.id else c for c in self._courses]
        self.repository.save(self._courses)

    async def generate_course(self, topic: str) -> Course:
        """Generate a syllabus and prepend it; the store is untouched on failure"""
        topic = require_text(topic, "topic")
        logger.info(f"[{self.name}] Generating syllabus for '{topic}'")

        payload = await self.gateway.generate_syllabus(topic)
        course = Course(
            title=payload.title,
            level=Level.MASTERS,
            description=payload.description,
            modules=tuple(
                Module(title=m.title, description=m.description, topics=tuple(m.topics))
                for m in payload.modules
            ),
        )

        self._courses = [course] + self._courses
        self.repository.save(self._courses)
        logger.info(f"[{self.name}] Created course '{course.title}' with {len(course.modules)} modules")
        return course

    async def open_module(self, course_id: str, module_id: str) -> Module:
        """Return the module with content, generating it on first visit only"""
        module = self.get_module(course_id, module_id)
        if module.has_content:
            return module

        task = self._in_flight.get(module_id)
        if task is None:
            task = asyncio.ensure_future(self._generate_lesson(course_id, module_id))
            self._in_flight[module_id] = task
            task.add_done_callback(lambda _: self._in_flight.pop(module_id, None))
        else:
            logger.info(f"[{self.name}] Lesson for {module_id} already in flight, waiting on it")
        return await asyncio.shield(task)

    async def _generate_lesson(self, course_id: str, module_id: str) -> Module:
        course = self.get_course(course_id)
        module = self.get_module(course_id, module_id)
        logger.info(f"[{self.name}] Generating lesson '{module.title}'")

        content = await self.gateway.generate_lesson(course.title, module)

        # Re-read after the await: the course may have been toggled or deleted meanwhile
        try:
            latest = self.get_module(course_id, module_id)
        except NotFoundError:
            logger.warning(f"[{self.name}] Course {course_id} was removed while its lesson was generating")
            return module.with_content(content)
        if latest.has_content:
            return latest

        updated = latest.with_content(content)
        self._replace_course(self.get_course(course_id).replace_module(updated))
        return updated

    def toggle_completion(self, course_id: str, module_id: str) -> Course:
        module = self.get_module(course_id, module_id)
        course = self.get_course(course_id).replace_module(module.toggled())
        self._replace_course(course)
        return course

    def delete_course(self, course_id: str) -> Course:
        course = self.get_course(course_id)
        self._courses = [c for c in self._courses if c.id != course_id]
        self.repository.save(self._courses)
        logger.info(f"[{self.name}] Deleted course '{course.title}'")
        return course
