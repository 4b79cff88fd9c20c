"""
Phase Scheduler for the story engines.

Runs every engine of one phase concurrently and waits for all of them to
settle. One engine failing never cancels or delays its siblings.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Dict, Optional, Sequence

from ..models import EngineId, RunContext, TaskOutcome
from .context import render_context_json
from .errors import EngineNotFoundError
from .executor import EngineExecutor
from .registry import GENERIC_FALLBACK_TEXT, EngineRegistry
from .scoring import FALLBACK_QUALITY_SCORE

logger = logging.getLogger("story_engines")


@dataclass
class PhaseResult:
    """Settled outcomes of one phase."""
    phase: int
    outcomes: Dict[EngineId, TaskOutcome] = field(default_factory=dict)
    elapsed_ms: int = 0

    @property
    def succeeded(self) -> int:
        return sum(1 for outcome in self.outcomes.values() if outcome.success)

    @property
    def failed(self) -> int:
        return len(self.outcomes) - self.succeeded


class PhaseScheduler:
    """
    Launches the executor for every engine of a phase at once.

    `max_concurrency` caps the number of engines in flight inside a phase;
    None means the whole phase runs at once.
    """

    def __init__(
        self,
        executor: EngineExecutor,
        registry: EngineRegistry,
        max_concurrency: Optional[int] = None,
    ):
        self.executor = executor
        self.registry = registry
        self.max_concurrency = max_concurrency

    async def run_phase(
        self,
        phase: int,
        engine_ids: Sequence[EngineId],
        context: RunContext,
        context_json: Optional[str] = None,
    ) -> PhaseResult:
        # Each engine runs once per phase even if listed twice
        engine_ids = list(dict.fromkeys(engine_ids))
        if not engine_ids:
            logger.info(f"[run_phase] PHASE {phase}: No engines to execute")
            return PhaseResult(phase=phase)

        if context_json is None:
            context_json = render_context_json(context)

        logger.info(f"[run_phase] PHASE {phase}: Executing {len(engine_ids)} engines in parallel")
        started = time.perf_counter()

        semaphore = asyncio.Semaphore(self.max_concurrency) if self.max_concurrency else None
        settled = await asyncio.gather(
            *(self._run_engine(engine_id, context, context_json, semaphore) for engine_id in engine_ids),
            return_exceptions=True,
        )

        outcomes: Dict[EngineId, TaskOutcome] = {}
        for engine_id, result in zip(engine_ids, settled):
            if isinstance(result, BaseException):
                logger.error(f"[run_phase] Engine {engine_id.value} did not settle cleanly: {result!r}")
                outcomes[engine_id] = self._defect_outcome(engine_id, result)
            else:
                outcomes[engine_id] = result

        elapsed_ms = int(round((time.perf_counter() - started) * 1000))
        phase_result = PhaseResult(phase=phase, outcomes=outcomes, elapsed_ms=elapsed_ms)
        logger.info(
            f"[run_phase] PHASE {phase}: Completed in {elapsed_ms}ms "
            f"({phase_result.succeeded} succeeded, {phase_result.failed} failed)"
        )
        return phase_result

    async def _run_engine(
        self,
        engine_id: EngineId,
        context: RunContext,
        context_json: str,
        semaphore: Optional[asyncio.Semaphore],
    ) -> TaskOutcome:
        config = self.registry.get(engine_id)
        if semaphore is None:
            return await self.executor.execute(config, context, context_json)
        async with semaphore:
            return await self.executor.execute(config, context, context_json)

    def _defect_outcome(self, engine_id: EngineId, error: BaseException) -> TaskOutcome:
        try:
            fallback_text = self.registry.get(engine_id).fallback_text
        except EngineNotFoundError:
            fallback_text = GENERIC_FALLBACK_TEXT
        return TaskOutcome(
            engine_id=engine_id,
            success=False,
            content=fallback_text,
            quality_score=FALLBACK_QUALITY_SCORE,
            error_message=str(error) or type(error).__name__,
        )
