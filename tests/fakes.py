"""In-process fakes for the generation gateway and the chat model"""

import asyncio
from collections import Counter
from typing import List, Optional, Set, Tuple

from studyhall.core.errors import GenerationError
from studyhall.core.models import Citation, Module, ResearchResult
from studyhall.services.gateway import ChatTurn, SyllabusModule, SyllabusPayload


def make_syllabus(module_count: int = 9, title: str = "Algebraic Topology") -> SyllabusPayload:
    return SyllabusPayload(
        title=title,
        description="A rigorous graduate course.",
        modules=[
            SyllabusModule(
                title=f"Module {i + 1}",
                description=f"Description {i + 1}",
                topics=[f"Topic {i + 1}.{j + 1}" for j in range(3)],
            )
            for i in range(module_count)
        ],
    )


class FakeGateway:
    """Stand-in for GenerationGateway that records every call"""

    def __init__(self):
        self.calls = Counter()
        self.fail: Set[str] = set()
        self.syllabus = make_syllabus()
        self.lesson_gate: Optional[asyncio.Event] = None
        self.chat_calls: List[Tuple[List[ChatTurn], str]] = []
        self.research_queries: List[str] = []
        self.research_result = ResearchResult(
            text="Dark matter accounts for most of the matter in the universe.",
            citations=(Citation(uri="https://x", title="Paper"),),
        )

    def _maybe_fail(self, contract: str):
        if contract in self.fail:
            raise GenerationError(f"{contract} failed", contract=contract)

    async def generate_syllabus(self, topic: str) -> SyllabusPayload:
        self.calls["syllabus"] += 1
        self._maybe_fail("syllabus")
        return self.syllabus

    async def generate_lesson(self, course_title: str, module: Module) -> str:
        self.calls["lesson"] += 1
        if self.lesson_gate is not None:
            await self.lesson_gate.wait()
        self._maybe_fail("lesson")
        return f"# {module.title}\n\nChapter of {course_title}."

    async def chat(self, history, message: str) -> str:
        self.calls["chat"] += 1
        self.chat_calls.append((list(history), message))
        self._maybe_fail("chat")
        return f"Reply {self.calls['chat']}"

    async def research(self, query: str) -> ResearchResult:
        self.calls["research"] += 1
        self.research_queries.append(query)
        self._maybe_fail("research")
        return self.research_result

    def describe(self):
        return {"model": "fake", "credentials": True}


class FakeChatModel:
    """Mimics the chat model surface the gateway uses: ainvoke and bind_tools"""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []
        self.bound_tools = None

    async def ainvoke(self, messages):
        self.calls.append(messages)
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def bind_tools(self, tools):
        self.bound_tools = tools
        return self
