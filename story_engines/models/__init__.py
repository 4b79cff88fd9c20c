"""
Story Engines Data Models Module
Pydantic schemas for engine configuration, run context and run results.
"""

from .schemas import (
    RESULT_SLOTS,
    # Context Models
    CharacterContext,
    # Enums
    EngineCategory,
    # Configuration Models
    EngineConfig,
    EngineId,
    # Result Models
    EngineMetadata,
    GenerationParams,
    LocationContext,
    NarrativeElements,
    RunContext,
    RunMetadata,
    RunMode,
    RunOptions,
    RunResult,
    SceneContext,
    TaskOutcome,
    WorldContext,
)

__all__ = [
    "EngineId",
    "EngineCategory",
    "RunMode",
    "RESULT_SLOTS",
    "GenerationParams",
    "EngineConfig",
    "CharacterContext",
    "SceneContext",
    "LocationContext",
    "WorldContext",
    "NarrativeElements",
    "RunContext",
    "RunOptions",
    "TaskOutcome",
    "EngineMetadata",
    "RunMetadata",
    "RunResult",
]
