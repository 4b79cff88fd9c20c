"""
Unit tests for the phase scheduler.
"""

import pytest

from story_engines.core import (
    FALLBACK_QUALITY_SCORE,
    EngineExecutor,
    PhaseScheduler,
    build_run_context,
    default_registry,
)
from story_engines.models import EngineId, TaskOutcome

PHASE_ONE = [
    EngineId.FRACTAL_NARRATIVE,
    EngineId.EPISODE_COHESION,
    EngineId.CONFLICT_ARCHITECTURE,
    EngineId.TENSION_ESCALATION,
    EngineId.PACING_RHYTHM,
    EngineId.FIVE_MINUTE_CANVAS,
]


@pytest.fixture
def context(sample_episode, sample_story_bible):
    return build_run_context(sample_episode, sample_story_bible)


def _scheduler(backend, max_concurrency=None):
    return PhaseScheduler(EngineExecutor(backend), default_registry(), max_concurrency=max_concurrency)


class TestRunPhase:
    """Tests for concurrent execution of one phase."""

    @pytest.mark.asyncio
    async def test_empty_phase_is_a_no_op(self, context, scripted_backend):
        backend = scripted_backend()
        result = await _scheduler(backend).run_phase(5, [], context)

        assert result.phase == 5
        assert result.outcomes == {}
        assert result.elapsed_ms == 0
        assert backend.calls == []

    @pytest.mark.asyncio
    async def test_every_engine_settles(self, context, scripted_backend):
        result = await _scheduler(scripted_backend()).run_phase(1, PHASE_ONE, context)

        assert list(result.outcomes) == PHASE_ONE
        assert result.succeeded == 6
        assert result.failed == 0

    @pytest.mark.asyncio
    async def test_engines_run_concurrently(self, context, scripted_backend):
        backend = scripted_backend(default_delay=0.05)
        await _scheduler(backend).run_phase(1, PHASE_ONE, context)

        assert backend.max_in_flight == len(PHASE_ONE)

    @pytest.mark.asyncio
    async def test_max_concurrency_bounds_in_flight(self, context, scripted_backend):
        backend = scripted_backend(default_delay=0.02)
        result = await _scheduler(backend, max_concurrency=2).run_phase(1, PHASE_ONE, context)

        assert backend.max_in_flight == 2
        assert result.succeeded == 6

    @pytest.mark.asyncio
    async def test_failure_does_not_affect_siblings(self, context, scripted_backend, failing_script):
        backend = scripted_backend(script=failing_script([EngineId.EPISODE_COHESION]))
        result = await _scheduler(backend).run_phase(1, PHASE_ONE, context)

        failed = result.outcomes[EngineId.EPISODE_COHESION]
        assert failed.success is False
        assert failed.quality_score == FALLBACK_QUALITY_SCORE
        for engine_id in PHASE_ONE:
            if engine_id != EngineId.EPISODE_COHESION:
                assert result.outcomes[engine_id].success is True
                assert result.outcomes[engine_id].quality_score == 100

    @pytest.mark.asyncio
    async def test_duplicate_ids_run_once(self, context, scripted_backend):
        backend = scripted_backend()
        result = await _scheduler(backend).run_phase(
            2, [EngineId.CHARACTER, EngineId.CHARACTER], context
        )

        assert list(result.outcomes) == [EngineId.CHARACTER]
        assert len(backend.calls) == 1

    @pytest.mark.asyncio
    async def test_executor_defect_becomes_fallback(self, context, scripted_backend):
        class BrokenExecutor(EngineExecutor):
            async def execute(self, config, context, context_json=None) -> TaskOutcome:
                if config.id == EngineId.CHARACTER:
                    raise RuntimeError("executor defect")
                return await super().execute(config, context, context_json)

        scheduler = PhaseScheduler(BrokenExecutor(scripted_backend()), default_registry())
        result = await scheduler.run_phase(2, [EngineId.STRATEGIC_DIALOGUE, EngineId.CHARACTER], context)

        broken = result.outcomes[EngineId.CHARACTER]
        assert broken.success is False
        assert broken.content == default_registry().get(EngineId.CHARACTER).fallback_text
        assert broken.error_message == "executor defect"
        assert result.outcomes[EngineId.STRATEGIC_DIALOGUE].success is True
