"""
Application-level exception types.

Every failure raised by the composition engine is local and recoverable:
callers abort a single panel (or fall back to an un-optimized prompt) rather
than the whole storyboard.
"""

from __future__ import annotations


class AppError(Exception):
    """Base exception for all panelcraft errors."""

    def __init__(self, message: str, *, detail: str | None = None) -> None:
        self.detail = detail or message
        super().__init__(message)


class NotFoundError(AppError):
    """Raised when a character or style guide id is unknown."""

    def __init__(self, entity_type: str, entity_id: object) -> None:
        super().__init__(
            f"{entity_type} not found: {entity_id}",
            detail=f"{entity_type} not found",
        )
        self.entity_type = entity_type
        self.entity_id = entity_id


class EmptyPromptError(AppError):
    """Raised when a panel has neither a visual prompt nor a description."""

    def __init__(self, panel_id: str | None = None) -> None:
        label = panel_id or "<unnamed>"
        super().__init__(
            f"Nothing to compose for panel {label}",
            detail="Panel has no visual prompt or description",
        )
        self.panel_id = panel_id


class UnsupportedModelError(AppError):
    """Raised when no optimization profile exists for a target model."""

    def __init__(self, model: str) -> None:
        super().__init__(
            f"No optimization profile for model: {model}",
            detail="Unsupported model",
        )
        self.model = model


class ConfigurationError(AppError):
    """Raised when static configuration or prompt data is missing or invalid."""


class GenerationError(AppError):
    """Raised when a generation backend call fails."""
