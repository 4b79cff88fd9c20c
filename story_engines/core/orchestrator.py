"""
Comprehensive Engine Orchestrator.

Runs every enhancement engine selected for an episode, phase by phase, and
always returns a complete RunResult:

1. Build the shared RunContext (fails fast on missing subject fields)
2. For each declared phase, select engines and run them concurrently
3. Fold each settled phase into the result before starting the next

run() never raises. Context failures and unexpected errors outside a single
engine produce an aborted result in which every engine is present with its
fallback text.
"""

import logging
import time
from typing import Any, Dict, List, Mapping, Optional, Union

from ..backends import LLMClient, create_mode_backends
from ..config import LLMConfiguration, create_default_config_from_env
from ..models import EngineId, RunContext, RunMode, RunOptions, RunResult
from ..services import EngineSessionLog
from .aggregator import RunAggregator
from .context import ContextBuilder, render_context_json
from .errors import MissingContextError
from .executor import EngineExecutor
from .registry import EngineRegistry, default_registry
from .scheduler import PhaseScheduler
from .selector import TaskSelector

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

logger = logging.getLogger("story_engines")


def configure_logging(level: Union[int, str] = logging.INFO) -> logging.Logger:
    """Attach a single stream handler to the story_engines logger."""
    logger.setLevel(level)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
    return logger


def _elapsed_ms(started: float) -> int:
    return int(round((time.perf_counter() - started) * 1000))


class EngineOrchestrator:
    """
    Coordinates context building, selection, scheduling and aggregation.

    `backends` is either one client used for every run mode or a mapping of
    run mode to client. A mode without a client behaves like an unreachable
    backend: every engine of the run resolves to its fallback text.
    """

    def __init__(
        self,
        backends: Union[LLMClient, Mapping[RunMode, LLMClient], None] = None,
        registry: Optional[EngineRegistry] = None,
        context_builder: Optional[ContextBuilder] = None,
        selector: Optional[TaskSelector] = None,
    ):
        if isinstance(backends, LLMClient):
            backends = {mode: backends for mode in RunMode}
        self.backends: Dict[RunMode, LLMClient] = dict(backends or {})
        self.registry = registry or default_registry()
        self.context_builder = context_builder or ContextBuilder()
        self.selector = selector or TaskSelector(self.registry)

    @classmethod
    def from_config(cls, config: LLMConfiguration, **kwargs: Any) -> "EngineOrchestrator":
        return cls(backends=create_mode_backends(config), **kwargs)

    @classmethod
    def from_env(cls, **kwargs: Any) -> "EngineOrchestrator":
        """Orchestrator with backends built from *_API_KEY environment variables."""
        return cls.from_config(create_default_config_from_env(), **kwargs)

    def backend_for(self, mode: RunMode) -> Optional[LLMClient]:
        return self.backends.get(mode)

    async def run(
        self,
        episode: Any,
        story_bible: Any,
        options: Optional[RunOptions] = None,
        session_log: Optional[EngineSessionLog] = None,
    ) -> RunResult:
        """Run all selected engines for one episode. Never raises."""
        options = options or RunOptions()
        started = time.perf_counter()
        logger.info(
            f"[run] Starting comprehensive engines (mode={options.mode.value}, "
            f"include_conditional={options.include_conditional_tasks})"
        )

        try:
            context = self.context_builder.build(episode, story_bible)
        except MissingContextError as e:
            logger.error(f"[run] Context error: {e}")
            return self._aborted(options, str(e), started, session_log)

        if session_log is not None and session_log.episode_title is None:
            session_log.episode_title = context.title

        try:
            return await self._run_phases(context, options, started, session_log)
        except Exception as e:
            logger.error(f"[run] Critical failure: {e}", exc_info=True)
            return self._aborted(options, str(e) or type(e).__name__, started, session_log)

    async def _run_phases(
        self,
        context: RunContext,
        options: RunOptions,
        started: float,
        session_log: Optional[EngineSessionLog],
    ) -> RunResult:
        backend = self.backend_for(options.mode)
        if backend is None:
            logger.warning(
                f"[run] No backend configured for mode '{options.mode.value}'; engines will use fallback content"
            )

        executor = EngineExecutor(
            backend,
            timeout_override_ms=options.timeout_override_ms,
            mode=options.mode,
            session_log=session_log,
        )
        scheduler = PhaseScheduler(executor, self.registry, max_concurrency=options.max_concurrency)
        aggregator = RunAggregator(self.registry, mode=options.mode)

        # Serialised once; every engine receives the same full context
        context_json = render_context_json(context)
        selected: List[EngineId] = []

        for phase in self.selector.phase_order:
            engine_ids = self.selector.engines_for_phase(
                phase, context, include_conditional=options.include_conditional_tasks
            )
            selected.extend(engine_ids)
            phase_result = await scheduler.run_phase(phase, engine_ids, context, context_json)
            aggregator.add_phase(phase_result)

        result = aggregator.finish(_elapsed_ms(started), expected_engines=selected)
        if session_log is not None:
            session_log.complete()

        metadata = result.metadata
        logger.info(
            f"[run] Completed {metadata.succeeded_tasks}/{metadata.total_tasks} engines "
            f"in {metadata.total_execution_time_ms}ms"
        )
        logger.info(f"[run] Quality Score: {metadata.overall_quality_score}/100")
        return result

    def _aborted(
        self,
        options: RunOptions,
        reason: str,
        started: float,
        session_log: Optional[EngineSessionLog],
    ) -> RunResult:
        if session_log is not None:
            session_log.complete()
        return RunAggregator.aborted(
            self.registry,
            self.selector.selectable_engines(options.include_conditional_tasks),
            reason,
            mode=options.mode,
            total_execution_time_ms=_elapsed_ms(started),
        )


async def run_comprehensive_engines(
    episode: Any,
    story_bible: Any,
    backends: Union[LLMClient, Mapping[RunMode, LLMClient], None] = None,
    include_genre_engines: bool = True,
    timeout_override_ms: Optional[int] = None,
    mode: RunMode = RunMode.BEAST,
    max_concurrency: Optional[int] = None,
    session_log: Optional[EngineSessionLog] = None,
) -> RunResult:
    """One-shot run with the default registry."""
    orchestrator = EngineOrchestrator(backends=backends)
    options = RunOptions(
        include_conditional_tasks=include_genre_engines,
        timeout_override_ms=timeout_override_ms,
        mode=mode,
        max_concurrency=max_concurrency,
    )
    return await orchestrator.run(episode, story_bible, options, session_log=session_log)
