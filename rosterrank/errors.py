"""
rosterrank.errors — Ranking Error Taxonomy
===========================================

Every failure a caller can act on maps to exactly one class here:

* :class:`ScoreValidationError` — bad score input, re-prompt the user.
* :class:`ConfigurationError`   — unknown domain, bad format or team size.
* :class:`ConflictError`        — already recorded / already corrected.
* :class:`NotFoundError`        — missing or foreign-definition entity.
* :class:`PersistenceError`     — storage failed, nothing was applied.
"""

from __future__ import annotations


class RankingError(Exception):
    """Base exception for ranking-engine errors."""

    def __init__(self, message: str, user_message: str | None = None):
        super().__init__(message)
        self.message = message
        self.user_message = user_message or message


class ScoreValidationError(RankingError):
    """Raised when a raw score (or stat delta) is malformed or illegal."""

    def __init__(self, reason: str):
        super().__init__(f"Invalid score: {reason}", reason)
        self.reason = reason


class NegativeStatError(ScoreValidationError):
    """Raised when a delta would drive an accumulated stat below zero."""

    def __init__(self, user_id: str, detail: str = ""):
        reason = f"Stat update would make a cumulative stat negative for user {user_id}"
        if detail:
            reason = f"{reason} ({detail})"
        super().__init__(reason)
        self.user_id = user_id


class ConfigurationError(RankingError):
    """Raised for unknown domains, unsupported formats and bad team shapes."""


class ConflictError(RankingError):
    """Raised when a write collides with an existing record."""


class DuplicateSubmissionError(ConflictError):
    """Raised when a session-linked entry was already recorded for a member."""

    def __init__(self, definition_id: int, user_id: str, session_id: str):
        super().__init__(
            f"Stats for user {user_id} in session {session_id} "
            f"were already recorded (definition {definition_id})",
            "This result has already been recorded.",
        )
        self.definition_id = definition_id
        self.user_id = user_id
        self.session_id = session_id


class NotFoundError(RankingError):
    """Raised when a referenced entity does not exist in the given scope."""


class PersistenceError(RankingError):
    """Raised when the storage layer fails; the unit of work was rolled back."""

    def __init__(self, operation: str, details: str | None = None):
        super().__init__(
            f"Database error during {operation}: {details}",
            "Operation failed and no changes were applied. Please try again.",
        )
        self.operation = operation
