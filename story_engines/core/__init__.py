"""
Story Engines Core Module
Registry, context building, selection, execution, scheduling and aggregation.
"""

from .aggregator import RunAggregator
from .context import ContextBuilder, build_run_context, render_context_json
from .errors import (
    BackendUnavailableError,
    ConfigurationError,
    EmptyGenerationError,
    EngineNotFoundError,
    MissingContextError,
    StoryEngineError,
)
from .executor import EngineExecutor, ExecutionState, build_engine_prompt
from .orchestrator import EngineOrchestrator, configure_logging, run_comprehensive_engines
from .registry import (
    CONDITIONAL_PHASE,
    ENGINE_CONFIGURATIONS,
    ENGINE_PHASES,
    GENERIC_FALLBACK_TEXT,
    PHASE_ORDER,
    EngineRegistry,
    default_registry,
)
from .scheduler import PhaseResult, PhaseScheduler
from .scoring import FALLBACK_QUALITY_SCORE, calculate_overall_quality, score_output
from .selector import GENRE_TRIGGERS, GenreTrigger, TaskSelector, determine_genre_engines

__all__ = [
    # Errors
    "StoryEngineError",
    "ConfigurationError",
    "EngineNotFoundError",
    "MissingContextError",
    "BackendUnavailableError",
    "EmptyGenerationError",
    # Registry
    "PHASE_ORDER",
    "CONDITIONAL_PHASE",
    "ENGINE_PHASES",
    "ENGINE_CONFIGURATIONS",
    "GENERIC_FALLBACK_TEXT",
    "EngineRegistry",
    "default_registry",
    # Context
    "ContextBuilder",
    "build_run_context",
    "render_context_json",
    # Selection
    "GenreTrigger",
    "GENRE_TRIGGERS",
    "TaskSelector",
    "determine_genre_engines",
    # Execution
    "ExecutionState",
    "EngineExecutor",
    "build_engine_prompt",
    "PhaseResult",
    "PhaseScheduler",
    # Aggregation
    "FALLBACK_QUALITY_SCORE",
    "score_output",
    "calculate_overall_quality",
    "RunAggregator",
    # Orchestration
    "EngineOrchestrator",
    "configure_logging",
    "run_comprehensive_engines",
]
