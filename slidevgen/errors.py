from __future__ import annotations

from typing import Optional


class SlidevGenError(Exception):
    """
    Base error for slidev-gen.

    Every error carries a human-readable message and, optionally, the
    lower-level exception that caused it.
    """

    kind = "SlidevGenError"

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause

    def __str__(self) -> str:
        return self.message


class InvalidProjectStructure(SlidevGenError):
    kind = "InvalidProjectStructure"


class APIKeyMissing(SlidevGenError):
    kind = "APIKeyMissing"


class LLMGenerationFailed(SlidevGenError):
    kind = "LLMGenerationFailed"


class DeploymentFailed(SlidevGenError):
    kind = "DeploymentFailed"


class InvalidConfiguration(SlidevGenError):
    kind = "InvalidConfiguration"
