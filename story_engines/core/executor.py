"""
Execution Wrapper for a single story engine.

One call of EngineExecutor.execute runs one engine to a terminal state:

    PENDING -> ATTEMPTING -> SUCCEEDED
                          -> RETRYING -> ATTEMPTING ...
                          -> FAILED_FINAL

Every backend call is raced against the engine timeout. A call still running
when the timeout elapses is not cancelled; the attempt fails at once and the
late result is discarded. A failed or timed out attempt is retried
immediately until the retry budget is spent, after which the engine's
fallback text is used. execute() always returns a TaskOutcome and never
raises an Exception to its caller.
"""

import asyncio
import logging
import time
from enum import Enum
from typing import Optional

from ..backends import LLMClient
from ..models import EngineConfig, RunContext, RunMode, TaskOutcome
from ..prompts import ENGINE_USER_PROMPT_TEMPLATE
from ..services import EngineSessionLog, EngineStatus
from .context import render_context_json
from .errors import BackendUnavailableError, EmptyGenerationError
from .scoring import FALLBACK_QUALITY_SCORE, score_output

logger = logging.getLogger("story_engines")


class ExecutionState(str, Enum):
    PENDING = "pending"
    ATTEMPTING = "attempting"
    SUCCEEDED = "succeeded"
    RETRYING = "retrying"
    FAILED_FINAL = "failed_final"


def build_engine_prompt(config: EngineConfig, context: RunContext, context_json: Optional[str] = None) -> str:
    """Fill the shared prompt envelope with the engine's instructions and the full context."""
    if context_json is None:
        context_json = render_context_json(context)
    return ENGINE_USER_PROMPT_TEMPLATE.format(
        task_prompt=config.task_prompt,
        context_json=context_json,
        specific_instructions=config.specific_instructions,
        episode_title=context.title,
        series_title=context.series_title,
    )


def _elapsed_ms(started: float) -> int:
    return int(round((time.perf_counter() - started) * 1000))


def _discard_late_result(task: "asyncio.Future[str]") -> None:
    """Retrieve the outcome of a call that finished after its timeout."""
    if task.cancelled():
        return
    error = task.exception()
    if error is not None:
        logger.debug(f"[execute] Late backend call failed after timeout: {error}")
    else:
        logger.debug("[execute] Discarded late backend result")


class EngineExecutor:
    """
    Runs engines against one generation backend.

    A missing backend is treated as an unreachable one: every attempt fails
    and the engine resolves to its fallback text.
    """

    def __init__(
        self,
        backend: Optional[LLMClient],
        timeout_override_ms: Optional[int] = None,
        mode: RunMode = RunMode.BEAST,
        session_log: Optional[EngineSessionLog] = None,
    ):
        self.backend = backend
        self.timeout_override_ms = timeout_override_ms
        self.mode = mode
        self.session_log = session_log

    def timeout_for(self, config: EngineConfig) -> int:
        """Effective timeout in milliseconds."""
        return self.timeout_override_ms or config.timeout_ms

    async def execute(
        self,
        config: EngineConfig,
        context: RunContext,
        context_json: Optional[str] = None,
    ) -> TaskOutcome:
        started = time.perf_counter()
        self._transition(config, ExecutionState.PENDING)
        self._record(config, EngineStatus.INITIALIZING)

        try:
            return await self._run_attempts(config, context, context_json, started)
        except Exception as e:
            # Anything escaping the attempt loop (prompt assembly, scoring) still resolves
            logger.error(f"[execute] {config.id.value}: Unexpected error: {e}", exc_info=True)
            return self._fallback_outcome(config, started, attempts=0, error=str(e) or type(e).__name__)

    async def _run_attempts(
        self,
        config: EngineConfig,
        context: RunContext,
        context_json: Optional[str],
        started: float,
    ) -> TaskOutcome:
        prompt = build_engine_prompt(config, context, context_json)
        timeout_ms = self.timeout_for(config)
        max_attempts = config.max_retries + 1
        attempts = 0
        last_error = "No attempt made"

        while attempts < max_attempts:
            attempts += 1
            self._transition(config, ExecutionState.ATTEMPTING)
            logger.info(f"[execute] {config.id.value}: Attempt {attempts}/{max_attempts}")
            self._record(config, EngineStatus.PROCESSING, details=f"attempt {attempts}/{max_attempts}")

            task = asyncio.ensure_future(self._generate(config, prompt))
            try:
                done, _ = await asyncio.wait({task}, timeout=timeout_ms / 1000)
            except asyncio.CancelledError:
                task.cancel()
                raise

            if task not in done:
                # The call is left running; whatever it returns later is dropped
                task.add_done_callback(_discard_late_result)
                content = None
                last_error = f"Timeout after {timeout_ms}ms"
            else:
                try:
                    content = task.result()
                except Exception as e:
                    content = None
                    last_error = str(e) or type(e).__name__

            if content is not None:
                execution_time_ms = _elapsed_ms(started)
                quality_score = score_output(content, config)
                self._transition(config, ExecutionState.SUCCEEDED)
                logger.info(
                    f"[execute] {config.id.value}: Success in {execution_time_ms}ms "
                    f"(quality: {quality_score}/100)"
                )
                self._record(
                    config,
                    EngineStatus.COMPLETED,
                    duration_ms=execution_time_ms,
                    output_size=len(content),
                )
                return TaskOutcome(
                    engine_id=config.id,
                    success=True,
                    content=content,
                    execution_time_ms=execution_time_ms,
                    attempts_used=attempts,
                    quality_score=quality_score,
                )

            logger.warning(f"[execute] {config.id.value}: Attempt {attempts} failed: {last_error}")
            if attempts < max_attempts:
                self._transition(config, ExecutionState.RETRYING)

        return self._fallback_outcome(config, started, attempts=attempts, error=last_error)

    async def _generate(self, config: EngineConfig, prompt: str) -> str:
        if self.backend is None:
            raise BackendUnavailableError(f"No generation backend configured for mode '{self.mode.value}'")

        content = await self.backend.generate(
            system_prompt=config.system_prompt,
            user_prompt=prompt,
            temperature=config.generation.temperature,
            max_tokens=config.generation.max_tokens,
            model=config.generation.model,
        )
        if not isinstance(content, str):
            raise EmptyGenerationError(f"Backend returned {type(content).__name__} instead of text")
        if not content.strip():
            raise EmptyGenerationError("Backend returned empty content")
        return content

    def _fallback_outcome(self, config: EngineConfig, started: float, attempts: int, error: str) -> TaskOutcome:
        execution_time_ms = _elapsed_ms(started)
        self._transition(config, ExecutionState.FAILED_FINAL)
        logger.warning(f"[execute] {config.id.value}: Using fallback content ({error})")
        self._record(
            config,
            EngineStatus.FAILED,
            duration_ms=execution_time_ms,
            output_size=len(config.fallback_text),
            details=error,
        )
        return TaskOutcome(
            engine_id=config.id,
            success=False,
            content=config.fallback_text,
            execution_time_ms=execution_time_ms,
            attempts_used=attempts,
            quality_score=FALLBACK_QUALITY_SCORE,
            error_message=error,
        )

    def _transition(self, config: EngineConfig, state: ExecutionState) -> None:
        logger.debug(f"[execute] {config.id.value} -> {state.value}")

    def _record(
        self,
        config: EngineConfig,
        status: EngineStatus,
        duration_ms: Optional[int] = None,
        output_size: Optional[int] = None,
        details: Optional[str] = None,
    ) -> None:
        if self.session_log is None:
            return
        self.session_log.log_engine(
            engine=config.id.value,
            phase=config.phase,
            status=status,
            mode=self.mode.value,
            duration_ms=duration_ms,
            output_size=output_size,
            details=details,
        )
