"""
Exceptions raised by the orchestrator for problems it can fix locally.

Backend failures are not exceptions: they travel as ``ApiResult.error``
values so every call site decides how to render them.
"""

from __future__ import annotations


class OrchestratorError(Exception):
    """Base class for user-correctable failures."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class UserInputError(OrchestratorError):
    """Bad arity or malformed value. Answered with a usage text, no backend call."""


class TradeValidationError(OrchestratorError):
    """Input is well-formed but violates a trading rule (balance, grid bounds)."""
