# studyhall/services/gateway.py
"""
Generation Gateway - typed contracts to the Gemini text service.

Four independent, stateless calls: syllabus, lesson, chat turn and grounded
research. The gateway keeps no session state; chat history is supplied by the
caller on every turn.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Literal, Optional, Sequence

from langchain_core.exceptions import OutputParserException
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from langchain_core.output_parsers import JsonOutputParser
from langchain_google_genai import ChatGoogleGenerativeAI
from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from studyhall.core.config import settings
from studyhall.core.errors import GenerationError
from studyhall.core.models import Citation, Module, ResearchResult
from studyhall.utils.generation_log import GenerationLog, get_generation_log

logger = logging.getLogger(__name__)

SYSTEM_INSTRUCTION_PROFESSOR = """
You are a distinguished professor at a top-tier technology institute (like MIT or Caltech) authoring a graduate-level textbook.
Your goal is to provide a rigorous, masters-level education in STEM subjects.
- Be precise, mathematical, and formal where necessary.
- Do not simplify concepts; explain them with necessary depth and complexity.
- Use LaTeX formatting for math (single $ for inline, double $$ for block).
- Provide code examples in modern languages (Python, Rust, C++, etc.) where applicable.
- Structure your response like a high-quality textbook chapter.
"""

CHAT_INSTRUCTION_SUFFIX = "\nBe concise but accurate. Answer the student's specific question based on the context of the course."

SYSTEM_INSTRUCTION_RESEARCH = (
    "You are a research assistant. Synthesize information from search results "
    "into a coherent academic summary."
)

NO_RESEARCH_RESULTS = "No results found."

MIN_MODULES, MAX_MODULES = 8, 12
MIN_TOPICS, MAX_TOPICS = 3, 5


class SyllabusModule(BaseModel):
    """Schema for one module of a generated syllabus"""
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(min_length=1, description="Title of the module")
    description: str = Field(description="What the module covers")
    topics: List[str] = Field(description="3-5 specific sub-topics")


class SyllabusPayload(BaseModel):
    """Schema for a generated syllabus"""
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(min_length=1, description="Formal title of the course")
    description: str = Field(min_length=1, description="A rigorous academic description of the course goals")
    modules: List[SyllabusModule] = Field(min_length=1, description="8-12 modules in teaching order")


@dataclass(frozen=True)
class ChatTurn:
    role: Literal["user", "model"]
    text: str


def message_text(message: Any) -> str:
    """Plain text of a chat model response; thinking models may return content parts"""
    content = getattr(message, "content", message)
    if isinstance(content, str):
        return content.strip()
    if isinstance(content, list):
        parts = []
        for part in content:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict) and part.get("type", "text") == "text":
                parts.append(part.get("text", ""))
        return "".join(parts).strip()
    return ""


def extract_citations(message: Any) -> List[Citation]:
    """Web citations from the grounding metadata; no metadata means no citations"""
    metadata = getattr(message, "response_metadata", None) or {}
    grounding = metadata.get("grounding_metadata") or metadata.get("groundingMetadata") or {}
    chunks = grounding.get("grounding_chunks") or grounding.get("groundingChunks") or []

    citations = []
    seen = set()
    for chunk in chunks:
        web = chunk.get("web") if isinstance(chunk, dict) else None
        if not web or not web.get("uri"):
            continue
        if web["uri"] in seen:
            continue
        seen.add(web["uri"])
        citations.append(Citation(uri=web["uri"], title=web.get("title") or web["uri"]))
    return citations


class GenerationGateway:
    """Request/response contracts addressed to the external content service"""

    def __init__(self, llm=None, lesson_llm=None, transcript: Optional[GenerationLog] = None):
        self.name = "GenerationGateway"
        self._llm = llm
        self._lesson_llm = lesson_llm
        self.transcript = transcript if transcript is not None else get_generation_log()

    # ===== Model construction =====

    def _require_credentials(self, contract: str):
        if not settings.has_api_key:
            raise GenerationError("GOOGLE_API_KEY is missing", contract=contract)

    def _chat_model(self, contract: str):
        if self._llm is None:
            self._require_credentials(contract)
            self._llm = ChatGoogleGenerativeAI(
                model=settings.GEMINI_MODEL,
                temperature=0.7,
                google_api_key=settings.GOOGLE_API_KEY
            )
        return self._llm

    def _lesson_model(self):
        if self._lesson_llm is None:
            if self._llm is not None:
                self._lesson_llm = self._llm
            else:
                self._require_credentials("lesson")
                self._lesson_llm = ChatGoogleGenerativeAI(
                    model=settings.GEMINI_MODEL,
                    google_api_key=settings.GOOGLE_API_KEY,
                    thinking_budget=settings.LESSON_THINKING_BUDGET,
                    max_output_tokens=settings.LESSON_MAX_OUTPUT_TOKENS
                )
        return self._lesson_llm

    # ===== Transport =====

    async def _invoke(self, contract: str, llm, messages: List[BaseMessage]):
        start = time.time()
        try:
            response = await llm.ainvoke(messages)
        except Exception as e:
            logger.error(f"[{self.name}] {contract} call failed: {e}")
            if self.transcript:
                self.transcript.log_error(contract, str(e))
            raise GenerationError(f"{contract} call failed: {e}", contract=contract) from e

        duration = time.time() - start
        logger.info(f"[{self.name}] {contract} call finished in {duration:.2f}s")
        if self.transcript:
            self.transcript.log_llm_call(
                contract,
                "\n\n".join(message_text(m) for m in messages),
                message_text(response),
                duration
            )
        return response

    # ===== Contracts =====

    async def generate_syllabus(self, topic: str) -> SyllabusPayload:
        """Syllabus contract: topic -> validated course skeleton"""
        parser = JsonOutputParser(pydantic_object=SyllabusPayload)
        prompt = f"""Create a comprehensive Masters-level syllabus for a course on: "{topic}".
The course should be structured logically, advancing from advanced fundamentals to state-of-the-art research topics.
Break it down into {MIN_MODULES}-{MAX_MODULES} distinct modules.
For each module, list {MIN_TOPICS}-{MAX_TOPICS} specific sub-topics.

{parser.get_format_instructions()}"""

        response = await self._invoke(
            "syllabus",
            self._chat_model("syllabus"),
            [SystemMessage(content=SYSTEM_INSTRUCTION_PROFESSOR), HumanMessage(content=prompt)]
        )

        text = message_text(response)
        if not text:
            raise GenerationError("No content generated", contract="syllabus")
        try:
            payload = SyllabusPayload.model_validate(parser.parse(text))
        except (OutputParserException, PydanticValidationError) as e:
            raise GenerationError(f"Malformed syllabus: {e}", contract="syllabus") from e

        if not MIN_MODULES <= len(payload.modules) <= MAX_MODULES:
            logger.info(f"[{self.name}] Syllabus has {len(payload.modules)} modules, outside {MIN_MODULES}-{MAX_MODULES}")
        return payload

    async def generate_lesson(self, course_title: str, module: Module) -> str:
        """Lesson contract: course + module -> one long-form markdown document"""
        prompt = f"""Write a comprehensive, graduate-level textbook chapter for the module: "{module.title}"
within the course "{course_title}".

Topics to cover: {", ".join(module.topics)}.

Formatting Requirements:
1. Title: Start with a # Heading 1 for the module title.
2. Structure: Use ## Heading 2 for main sections.
3. Definitions: Put formal definitions in blockquotes (> **Definition**: ...).
4. Math: Use LaTeX heavily ($...$ and $$...$$).
5. Code: Use syntax highlighted code blocks.
6. Tone: Authoritative, academic, clear.

Content Requirements:
1. Abstract/Introduction.
2. Theoretical foundations with proofs.
3. Real-world applications or case studies.
4. "Key Takeaways" summary at the end.
5. Bibliography/References.
"""
        response = await self._invoke(
            "lesson",
            self._lesson_model(),
            [SystemMessage(content=SYSTEM_INSTRUCTION_PROFESSOR), HumanMessage(content=prompt)]
        )
        document = message_text(response)
        if not document:
            raise GenerationError("Lesson generation returned an empty document", contract="lesson")
        return document

    async def chat(self, history: Sequence[ChatTurn], message: str) -> str:
        """Chat-turn contract: prior turns + new message -> assistant reply"""
        messages: List[BaseMessage] = [SystemMessage(content=SYSTEM_INSTRUCTION_PROFESSOR + CHAT_INSTRUCTION_SUFFIX)]
        for turn in history:
            if turn.role == "user":
                messages.append(HumanMessage(content=turn.text))
            else:
                messages.append(AIMessage(content=turn.text))
        messages.append(HumanMessage(content=message))

        response = await self._invoke("chat", self._chat_model("chat"), messages)
        reply = message_text(response)
        if not reply:
            raise GenerationError("Tutor returned an empty reply", contract="chat")
        return reply

    async def research(self, query: str) -> ResearchResult:
        """Grounded-research contract: query -> summary + web citations"""
        llm = self._chat_model("research").bind_tools([{"google_search": {}}])
        prompt = (
            f'Find the latest research, seminal papers, or real-world applications regarding: "{query}". '
            "Summarize the findings rigorously."
        )
        response = await self._invoke(
            "research",
            llm,
            [SystemMessage(content=SYSTEM_INSTRUCTION_RESEARCH), HumanMessage(content=prompt)]
        )

        citations = extract_citations(response)
        if self.transcript:
            self.transcript.log_data("research citations", [c.model_dump() for c in citations])
        return ResearchResult(text=message_text(response) or NO_RESEARCH_RESULTS, citations=tuple(citations))

    def describe(self) -> Dict[str, Any]:
        return {"model": settings.GEMINI_MODEL, "credentials": settings.has_api_key}
