# studyhall/services/tutor.py
"""
Tutor Session - per-lesson conversation with the tutoring model.

A session is bound to one (course, module) pair. Opening another module
replaces the session, so history never leaks across lessons.
"""

import logging
from typing import List, Optional, Tuple

from studyhall.core.errors import GenerationError, ValidationError, require_text
from studyhall.core.models import ChatMessage, ChatRole, Course, Module
from studyhall.services.course_store import CourseStore
from studyhall.services.gateway import ChatTurn, GenerationGateway

logger = logging.getLogger(__name__)

CHAT_ERROR_TEXT = "I encountered an error trying to answer that. Please try again."


def context_statement(course: Course, module: Module, question: str) -> str:
    return (
        f'Context: I am studying "{module.title}" from the course "{course.title}". '
        f"\n\nMy Question: {question}"
    )


class TutorSession:
    def __init__(self, gateway: GenerationGateway, store: CourseStore, course_id: str, module_id: str):
        self.name = "TutorSession"
        self.gateway = gateway
        self.store = store
        self.course_id = course_id
        self.module_id = module_id
        self.busy = False
        self._messages: List[ChatMessage] = []

    @property
    def key(self) -> Tuple[str, str]:
        return (self.course_id, self.module_id)

    @property
    def messages(self) -> Tuple[ChatMessage, ...]:
        return tuple(self._messages)

    def _history(self) -> List[ChatTurn]:
        return [
            ChatTurn(role="user" if m.role == ChatRole.USER else "model", text=m.text)
            for m in self._messages
        ]

    def _outgoing(self, text: str, first_turn: bool) -> str:
        if not first_turn:
            return text
        # Module content may have arrived after the session was opened, so read it now
        course = self.store.get_course(self.course_id)
        module: Optional[Module] = course.find_module(self.module_id)
        if module is not None and module.has_content:
            return context_statement(course, module, text)
        return text

    async def send(self, text: str) -> ChatMessage:
        """Append the user's message, ask the tutor, and always append a reply"""
        text = require_text(text, "message")
        if self.busy:
            raise ValidationError("The tutor is still answering the previous message")

        history = self._history()
        outgoing = self._outgoing(text, first_turn=not self._messages)
        self._messages.append(ChatMessage(role=ChatRole.USER, text=text))

        self.busy = True
        try:
            reply = await self.gateway.chat(history, outgoing)
            answer = ChatMessage(role=ChatRole.ASSISTANT, text=reply)
        except GenerationError as e:
            logger.warning(f"[{self.name}] Chat turn failed for module {self.module_id}: {e}")
            answer = ChatMessage(role=ChatRole.ASSISTANT, text=CHAT_ERROR_TEXT, is_error=True)
        finally:
            self.busy = False

        self._messages.append(answer)
        return answer
