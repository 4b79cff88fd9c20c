"""
Run Aggregator for the story engines.

Folds each phase's outcomes into the final RunResult: notes keyed by engine
id, per-engine metadata, per-phase timings and the overall quality score.
"""

import logging
from typing import Dict, Iterable, List, Optional, Sequence

from ..models import (
    EngineId,
    EngineMetadata,
    RunMetadata,
    RunMode,
    RunResult,
    TaskOutcome,
)
from .errors import EngineNotFoundError
from .registry import GENERIC_FALLBACK_TEXT, EngineRegistry
from .scheduler import PhaseResult
from .scoring import calculate_overall_quality

logger = logging.getLogger("story_engines")


class RunAggregator:
    """Accumulates phase results for one run."""

    def __init__(self, registry: EngineRegistry, mode: RunMode = RunMode.BEAST):
        self.registry = registry
        self.mode = mode
        self._notes: Dict[str, str] = {}
        self._task_metadata: Dict[str, EngineMetadata] = {}
        self._phase_timings: List[int] = []
        self._errors: List[str] = []

    def add_phase(self, phase_result: PhaseResult) -> None:
        """Record one settled phase. Phases must be added in execution order."""
        for engine_id, outcome in phase_result.outcomes.items():
            self._add_outcome(phase_result.phase, engine_id, outcome)
        self._phase_timings.append(phase_result.elapsed_ms)

    def _add_outcome(self, phase: int, engine_id: EngineId, outcome: TaskOutcome) -> None:
        key = engine_id.value
        if key in self._notes:
            raise AssertionError(f"Engine {key} produced more than one outcome")

        self._notes[key] = outcome.content
        self._task_metadata[key] = EngineMetadata(
            success=outcome.success,
            execution_time_ms=outcome.execution_time_ms,
            retries_used=outcome.retries_used,
            quality_score=outcome.quality_score,
            output_length=len(outcome.content),
            phase=phase,
            error=outcome.error_message,
        )
        if not outcome.success:
            self._errors.append(f"{key}: {outcome.error_message or 'Unknown error'}")

    def finish(
        self,
        total_execution_time_ms: int,
        expected_engines: Optional[Iterable[EngineId]] = None,
    ) -> RunResult:
        """Build the immutable RunResult."""
        if expected_engines is not None:
            expected = {engine_id.value for engine_id in expected_engines}
            if expected != set(self._notes):
                missing = sorted(expected - set(self._notes))
                unexpected = sorted(set(self._notes) - expected)
                raise AssertionError(
                    f"Result mapping does not match selection (missing={missing}, unexpected={unexpected})"
                )

        performance = list(self._task_metadata.values())
        total = len(performance)
        succeeded = sum(1 for meta in performance if meta.success)

        metadata = RunMetadata(
            total_tasks=total,
            succeeded_tasks=succeeded,
            failed_tasks=total - succeeded,
            per_phase_timings_ms=list(self._phase_timings),
            overall_quality_score=calculate_overall_quality(
                (meta.quality_score for meta in performance),
                (meta.success for meta in performance),
            ),
            per_task_metadata=dict(self._task_metadata),
            total_execution_time_ms=total_execution_time_ms,
            success_rate=round(succeeded / total * 100, 1) if total else 0.0,
            errors=list(self._errors),
            mode=self.mode,
        )
        return RunResult(notes=dict(self._notes), metadata=metadata)

    @classmethod
    def aborted(
        cls,
        registry: EngineRegistry,
        engine_ids: Sequence[EngineId],
        reason: str,
        mode: RunMode = RunMode.BEAST,
        total_execution_time_ms: int = 0,
    ) -> RunResult:
        """
        Result for a run that stopped before or outside any engine.

        Every engine is present with its fallback text and marked not run;
        the overall quality score is 0.
        """
        notes: Dict[str, str] = {}
        task_metadata: Dict[str, EngineMetadata] = {}
        error = f"not run: {reason}"

        for engine_id in dict.fromkeys(engine_ids):
            try:
                config = registry.get(engine_id)
                fallback_text, phase = config.fallback_text, config.phase
            except EngineNotFoundError:
                fallback_text, phase = GENERIC_FALLBACK_TEXT, 0
            notes[engine_id.value] = fallback_text
            task_metadata[engine_id.value] = EngineMetadata(
                success=False,
                execution_time_ms=0,
                retries_used=0,
                quality_score=0,
                output_length=len(fallback_text),
                phase=phase,
                error=error,
            )

        metadata = RunMetadata(
            total_tasks=len(notes),
            succeeded_tasks=0,
            failed_tasks=len(notes),
            per_phase_timings_ms=[0] * len(registry.phase_order),
            overall_quality_score=0,
            per_task_metadata=task_metadata,
            total_execution_time_ms=total_execution_time_ms,
            success_rate=0.0,
            errors=[f"Run aborted: {reason}"],
            mode=mode,
            aborted=True,
            abort_reason=reason,
        )
        logger.error(f"[aborted] Run aborted, {len(notes)} engines not run: {reason}")
        return RunResult(notes=notes, metadata=metadata)
