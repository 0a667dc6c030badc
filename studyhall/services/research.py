# studyhall/services/research.py
"""
Research Session - single-slot grounded research.

A new query clears the slot before the call; the slot only ever holds a
complete result. Only the most recent query may fill it.
"""

import logging
from typing import Optional

from studyhall.core.errors import GenerationError, require_text
from studyhall.core.models import ResearchResult
from studyhall.services.gateway import GenerationGateway

logger = logging.getLogger(__name__)


class ResearchSession:
    def __init__(self, gateway: GenerationGateway):
        self.name = "ResearchSession"
        self.gateway = gateway
        self.result: Optional[ResearchResult] = None
        self.query_text: Optional[str] = None
        self.last_error: Optional[str] = None
        self.busy = False
        self._sequence = 0

    async def query(self, text: str) -> Optional[ResearchResult]:
        """Run a grounded query; returns None and leaves the slot empty on failure"""
        text = require_text(text, "query")

        self._sequence += 1
        ticket = self._sequence
        self.result = None
        self.last_error = None
        self.query_text = text
        self.busy = True

        try:
            result = await self.gateway.research(text)
        except GenerationError as e:
            logger.warning(f"[{self.name}] Research failed for '{text}': {e}")
            if ticket == self._sequence:
                self.last_error = str(e)
                self.busy = False
            return None

        if ticket != self._sequence:
            logger.info(f"[{self.name}] Dropping superseded result for '{text}'")
            return None

        self.result = result
        self.busy = False
        logger.info(f"[{self.name}] Stored result with {len(result.citations)} citations")
        return result
