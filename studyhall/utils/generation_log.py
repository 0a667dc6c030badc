"""
Transcript log for generation calls
Writes prompts, responses and failures to a per-process file when LLM_LOG_DIR is set
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from studyhall.core.config import settings


def configure_logging(level: Optional[str] = None):
    """Apply LOG_LEVEL to the root logger once at start-up"""
    logging.basicConfig(
        level=getattr(logging, (level or settings.LOG_LEVEL).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


class GenerationLog:
    def __init__(self, log_dir: str):
        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        self.log_file = self.log_dir / f"generation_{timestamp}.log"

        self._write_header()

    def _write_header(self):
        with open(self.log_file, 'w') as f:
            f.write("=" * 80 + "\n")
            f.write("GENERATION LOG\n")
            f.write(f"Model: {settings.GEMINI_MODEL}\n")
            f.write(f"Started: {datetime.now().isoformat()}\n")
            f.write("=" * 80 + "\n\n")

    def log_llm_call(self, contract: str, prompt: str, response: str, duration: float = 0):
        """Log prompt and response of one gateway call"""
        timestamp = datetime.now().strftime("%H:%M:%S")
        with open(self.log_file, 'a') as f:
            f.write(f"\n{'='*80}\n")
            f.write(f"[{timestamp}] CALL - {contract}\n")
            f.write(f"DURATION: {duration:.2f}s\n")
            f.write(f"{'='*80}\n\n")
            f.write("PROMPT:\n")
            f.write(f"{'-'*80}\n")
            f.write(f"{prompt}\n")
            f.write(f"{'-'*80}\n\n")
            f.write("RESPONSE:\n")
            f.write(f"{'-'*80}\n")
            f.write(f"{response}\n")
            f.write(f"{'-'*80}\n\n")

    def log_data(self, label: str, data: Any):
        with open(self.log_file, 'a') as f:
            f.write(f"\n{'='*80}\n")
            f.write(f"DATA: {label}\n")
            f.write(f"{'='*80}\n")
            if isinstance(data, (dict, list)):
                f.write(json.dumps(data, indent=2))
            else:
                f.write(str(data))
            f.write(f"\n{'='*80}\n\n")

    def log_error(self, contract: str, error: str):
        timestamp = datetime.now().strftime("%H:%M:%S")
        with open(self.log_file, 'a') as f:
            f.write(f"\n{'!'*80}\n")
            f.write(f"[{timestamp}] ERROR in {contract}\n")
            f.write(f"{'!'*80}\n")
            f.write(f"{error}\n")
            f.write(f"{'!'*80}\n\n")


# Global transcript instance
_current_log = None

def get_generation_log() -> Optional[GenerationLog]:
    """Transcript for this process, or None when LLM_LOG_DIR is unset"""
    global _current_log
    if _current_log is None and settings.LLM_LOG_DIR:
        _current_log = GenerationLog(settings.LLM_LOG_DIR)
    return _current_log
