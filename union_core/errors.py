"""
Union Ladder error hierarchy.

Every engine failure is a local, recoverable condition. Callers catch
UnionError (or a subclass) and map ``code`` onto their own transport.
"""
from __future__ import annotations

from typing import Any, Dict


class UnionError(Exception):
    """Base exception for all engine errors."""

    def __init__(self, message: str, code: str = "UNION_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {"success": False, "error": self.message, "code": self.code}


# ---- Session errors ----

class SessionNotFound(UnionError):
    def __init__(self, session_id: str):
        super().__init__(f"Session {session_id} not found", "SESSION_NOT_FOUND")
        self.session_id = session_id


class SessionAlreadyCompleted(UnionError):
    def __init__(self, session_id: str):
        super().__init__(f"Session {session_id} is already completed", "SESSION_ALREADY_COMPLETED")
        self.session_id = session_id


class DuplicateAnswer(UnionError):
    def __init__(self, session_id: str, question_id: str):
        super().__init__(
            f"Question {question_id} was already answered in session {session_id}",
            "DUPLICATE_ANSWER",
        )
        self.session_id = session_id
        self.question_id = question_id


# ---- Catalog / result errors ----

class QuestionNotFound(UnionError):
    def __init__(self, question_id: str):
        super().__init__(f"Question {question_id} not found", "QUESTION_NOT_FOUND")
        self.question_id = question_id


class ResultNotAvailable(UnionError):
    """The session exists but has not been completed yet."""

    def __init__(self, session_id: str):
        super().__init__(f"Result for session {session_id} is not available yet", "RESULT_NOT_AVAILABLE")
        self.session_id = session_id


class ResultNotFound(UnionError):
    def __init__(self, result_id: str):
        super().__init__(f"Result {result_id} not found", "RESULT_NOT_FOUND")
        self.result_id = result_id


# ---- Input errors ----

class InvalidInput(UnionError):
    def __init__(self, message: str, code: str = "INVALID_INPUT"):
        super().__init__(message, code)


class InvalidOptionLevel(InvalidInput):
    def __init__(self, level: Any):
        super().__init__(f"Option level {level!r} is outside 1..12", "INVALID_OPTION_LEVEL")
        self.level = level


__all__ = [
    "UnionError",
    "SessionNotFound",
    "SessionAlreadyCompleted",
    "DuplicateAnswer",
    "QuestionNotFound",
    "ResultNotAvailable",
    "ResultNotFound",
    "InvalidInput",
    "InvalidOptionLevel",
]
