"""
Story Engines - Comprehensive Enhancement Engine Orchestrator

Runs independently configured story enhancement engines against an episode
and its story bible, phase by phase, and returns one structured result even
when engines fail, time out or no backend is reachable.
"""

from .core import (
    EngineOrchestrator,
    EngineRegistry,
    MissingContextError,
    ConfigurationError,
    default_registry,
    run_comprehensive_engines,
)
from .models import EngineId, RunMode, RunOptions, RunResult

__version__ = "1.0.0"

__all__ = [
    "EngineOrchestrator",
    "EngineRegistry",
    "EngineId",
    "RunMode",
    "RunOptions",
    "RunResult",
    "MissingContextError",
    "ConfigurationError",
    "default_registry",
    "run_comprehensive_engines",
]
