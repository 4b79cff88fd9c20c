"""
Exception hierarchy for the story engine orchestrator.

Only configuration and context errors ever reach the caller; everything raised
by a backend is absorbed by the execution wrapper and turned into fallback
content.
"""


class StoryEngineError(Exception):
    """Base class for all story engine errors."""
    pass


class ConfigurationError(StoryEngineError):
    """Invalid engine registry configuration. Raised at startup only."""
    pass


class EngineNotFoundError(StoryEngineError, KeyError):
    """Lookup of an engine id that the registry does not know."""

    def __init__(self, engine_id: str):
        self.engine_id = engine_id
        super().__init__(f"Engine configuration not found: {engine_id}")

    def __str__(self) -> str:
        return self.args[0]


class MissingContextError(StoryEngineError):
    """Required subject fields are absent; the run cannot start."""

    def __init__(self, missing_fields):
        self.missing_fields = list(missing_fields)
        super().__init__(
            f"Missing required context fields: {', '.join(self.missing_fields)}"
        )


class BackendUnavailableError(StoryEngineError):
    """No generation backend is configured for the requested run mode."""
    pass


class EmptyGenerationError(StoryEngineError):
    """The backend answered with no usable text."""
    pass
