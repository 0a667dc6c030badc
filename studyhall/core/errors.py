# studyhall/core/errors.py
"""
Error taxonomy for the session orchestrator.

Every failure here is locally contained: callers decide whether it becomes a
blocking notification, a flagged chat message or just an empty slot.
"""


class StudyHallError(Exception):
    """Base class for all domain errors"""


class GenerationError(StudyHallError):
    """Gateway call failed, or returned something that failed validation"""

    def __init__(self, message: str, contract: str = "unknown"):
        super().__init__(message)
        self.contract = contract


class PersistenceParseError(StudyHallError):
    """Stored blob could not be read; recovered by falling back to defaults"""

    def __init__(self, key: str, reason: str):
        super().__init__(f"Unreadable blob for '{key}': {reason}")
        self.key = key
        self.reason = reason


class ValidationError(StudyHallError):
    """Caller supplied an empty topic/message/query or an out-of-range value"""


class NotFoundError(StudyHallError):
    """Unknown course or module id"""


class InvalidTransitionError(StudyHallError):
    """View transition outside the allowed table, or missing active entity"""


def require_text(value: str, field: str) -> str:
    """Reject empty or whitespace-only input before any gateway call"""
    if value is None or not str(value).strip():
        raise ValidationError(f"{field} must not be empty")
    return str(value).strip()
