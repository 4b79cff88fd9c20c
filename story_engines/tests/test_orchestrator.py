"""
End-to-end tests for the engine orchestrator.

Tests cover:
- Totality of the result mapping
- Failure isolation between engines
- Genre-driven selection scenarios
- All-backend-down and missing-backend runs
- Aborted runs on context errors and unexpected errors
"""

import pytest

from story_engines.core import (
    FALLBACK_QUALITY_SCORE,
    EngineOrchestrator,
    TaskSelector,
    build_run_context,
    default_registry,
    run_comprehensive_engines,
)
from story_engines.models import EngineId, RunMode, RunOptions
from story_engines.services import EngineSessionLog, EngineStatus

GENRE_ENGINES = {
    EngineId.COMEDY_TIMING,
    EngineId.HORROR_ATMOSPHERE,
    EngineId.ROMANCE_CHEMISTRY,
    EngineId.MYSTERY_CONSTRUCTION,
}


def _with_genre(story_bible, genre):
    bible = dict(story_bible)
    bible["genre"] = genre
    return bible


class TestTotality:
    """The result holds exactly the selected engines."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("genre", ["drama", "comedy", ["comedy", "horror"], ["romance", "mystery", "noir"]])
    async def test_notes_match_selection(self, scripted_backend, sample_episode, sample_story_bible, genre):
        bible = _with_genre(sample_story_bible, genre)
        orchestrator = EngineOrchestrator(scripted_backend())

        result = await orchestrator.run(sample_episode, bible)

        expected = TaskSelector().selected_engines(build_run_context(sample_episode, bible))
        assert set(result.notes) == {engine.value for engine in expected}
        assert len(result.notes) == len(expected)
        assert set(result.metadata.per_task_metadata) == set(result.notes)
        assert result.metadata.total_tasks == len(expected)
        assert len(result.metadata.per_phase_timings_ms) == 5

    @pytest.mark.asyncio
    async def test_full_success(self, scripted_backend, sample_episode, sample_story_bible, good_output):
        result = await EngineOrchestrator(scripted_backend()).run(sample_episode, sample_story_bible)

        assert result.metadata.succeeded_tasks == 15
        assert result.metadata.failed_tasks == 0
        assert result.metadata.overall_quality_score == 100
        assert all(note == good_output for note in result.notes.values())
        assert result.metadata.aborted is False
        # drama selects no genre engines; the conditional phase is empty
        assert result.metadata.per_phase_timings_ms[4] == 0

    @pytest.mark.asyncio
    async def test_conditional_tasks_disabled(self, scripted_backend, sample_episode, sample_story_bible):
        bible = _with_genre(sample_story_bible, ["comedy", "horror"])
        options = RunOptions(include_conditional_tasks=False)

        result = await EngineOrchestrator(scripted_backend()).run(sample_episode, bible, options)

        assert len(result.notes) == 15
        assert not GENRE_ENGINES & {EngineId(engine) for engine in result.notes}


class TestFailureIsolation:
    """One failing engine leaves the others untouched."""

    @pytest.mark.asyncio
    async def test_single_engine_failure(self, scripted_backend, failing_script, sample_episode, sample_story_bible):
        baseline = await EngineOrchestrator(scripted_backend()).run(sample_episode, sample_story_bible)
        backend = scripted_backend(script=failing_script([EngineId.WORLD_BUILDING]))

        result = await EngineOrchestrator(backend).run(sample_episode, sample_story_bible)

        failed = result.metadata.per_task_metadata[EngineId.WORLD_BUILDING.value]
        assert failed.success is False
        assert failed.quality_score == FALLBACK_QUALITY_SCORE
        assert result.notes[EngineId.WORLD_BUILDING.value] == (
            default_registry().get(EngineId.WORLD_BUILDING).fallback_text
        )
        assert len(backend.calls_for(EngineId.WORLD_BUILDING)) == 3

        for engine, meta in result.metadata.per_task_metadata.items():
            if engine == EngineId.WORLD_BUILDING.value:
                continue
            assert meta.success is True
            assert meta.quality_score == baseline.metadata.per_task_metadata[engine].quality_score
            assert result.notes[engine] == baseline.notes[engine]

        assert result.metadata.failed_tasks == 1
        assert result.metadata.errors == ["WorldBuildingEngineV2: Backend unreachable"]


class TestGenreScenarios:
    """Conditional phase selection through a full run."""

    @pytest.mark.asyncio
    async def test_comedy(self, scripted_backend, sample_episode, sample_story_bible):
        backend = scripted_backend()
        result = await EngineOrchestrator(backend).run(sample_episode, _with_genre(sample_story_bible, "comedy"))

        assert EngineId.COMEDY_TIMING.value in result.notes
        for engine in GENRE_ENGINES - {EngineId.COMEDY_TIMING}:
            assert engine.value not in result.notes
        assert len(backend.calls_for(EngineId.COMEDY_TIMING)) == 1
        assert result.slot_notes()["comedyTiming"] == result.notes[EngineId.COMEDY_TIMING.value]

    @pytest.mark.asyncio
    async def test_comedy_and_horror(self, scripted_backend, sample_episode, sample_story_bible):
        backend = scripted_backend()
        bible = _with_genre(sample_story_bible, ["comedy", "horror"])

        result = await EngineOrchestrator(backend).run(sample_episode, bible)

        assert len(backend.calls_for(EngineId.COMEDY_TIMING)) == 1
        assert len(backend.calls_for(EngineId.HORROR_ATMOSPHERE)) == 1
        assert EngineId.ROMANCE_CHEMISTRY.value not in result.notes
        assert EngineId.MYSTERY_CONSTRUCTION.value not in result.notes
        assert result.metadata.per_task_metadata[EngineId.HORROR_ATMOSPHERE.value].phase == 5
        assert result.metadata.total_tasks == 17


class TestBackendDown:
    """Runs with no reachable backend still return every engine."""

    @pytest.mark.asyncio
    async def test_all_engines_fail(self, scripted_backend, sample_episode, sample_story_bible):
        backend = scripted_backend(default=ConnectionError("Backend unreachable"))
        registry = default_registry()

        result = await EngineOrchestrator(backend).run(sample_episode, sample_story_bible)
        metadata = result.metadata

        assert metadata.succeeded_tasks == 0
        assert metadata.failed_tasks == metadata.total_tasks == 15
        for engine, note in result.notes.items():
            assert note == registry.get(engine).fallback_text
            assert metadata.per_task_metadata[engine].quality_score == FALLBACK_QUALITY_SCORE
        # 0.7 * 25 + 0.3 * 0
        assert metadata.overall_quality_score == 18
        assert len(backend.calls) == 15 * 3

    @pytest.mark.asyncio
    async def test_no_backend_for_mode(self, scripted_backend, sample_episode, sample_story_bible):
        backend = scripted_backend()
        orchestrator = EngineOrchestrator({RunMode.BEAST: backend})

        result = await orchestrator.run(sample_episode, sample_story_bible, RunOptions(mode=RunMode.STABLE))

        assert backend.calls == []
        assert result.metadata.succeeded_tasks == 0
        assert result.metadata.failed_tasks == 15
        assert result.metadata.mode == RunMode.STABLE
        assert result.metadata.aborted is False

    @pytest.mark.asyncio
    async def test_mode_picks_backend(self, scripted_backend, sample_episode, sample_story_bible):
        beast = scripted_backend()
        stable = scripted_backend()
        orchestrator = EngineOrchestrator({RunMode.BEAST: beast, RunMode.STABLE: stable})

        await orchestrator.run(sample_episode, sample_story_bible, RunOptions(mode=RunMode.STABLE))

        assert beast.calls == []
        assert len(stable.calls) == 15


class TestAbortedRuns:
    """Context and unexpected errors produce an aborted, complete result."""

    @pytest.mark.asyncio
    async def test_missing_title_aborts_before_any_engine(self, scripted_backend, sample_story_bible):
        backend = scripted_backend()

        result = await EngineOrchestrator(backend).run({"scenes": []}, sample_story_bible)

        assert backend.calls == []
        assert result.metadata.aborted is True
        assert result.metadata.overall_quality_score == 0
        assert len(result.notes) == 19
        assert "episode.title" in result.metadata.abort_reason
        for meta in result.metadata.per_task_metadata.values():
            assert meta.success is False
            assert meta.error.startswith("not run: ")

    @pytest.mark.asyncio
    async def test_abort_respects_conditional_flag(self, scripted_backend):
        result = await EngineOrchestrator(scripted_backend()).run(
            None, None, RunOptions(include_conditional_tasks=False)
        )

        assert len(result.notes) == 15
        assert result.metadata.aborted is True

    @pytest.mark.asyncio
    async def test_unexpected_error_outside_engines(self, scripted_backend, sample_episode, sample_story_bible):
        class BrokenSelector(TaskSelector):
            def engines_for_phase(self, phase, context, include_conditional=True):
                if phase == 3:
                    raise RuntimeError("selector defect")
                return super().engines_for_phase(phase, context, include_conditional)

        orchestrator = EngineOrchestrator(scripted_backend(), selector=BrokenSelector())

        result = await orchestrator.run(sample_episode, sample_story_bible)

        assert result.metadata.aborted is True
        assert result.metadata.abort_reason == "selector defect"
        assert result.metadata.overall_quality_score == 0
        assert len(result.notes) == 19


class TestSessionLogAndHelpers:
    """Session log integration and the one-shot helper."""

    @pytest.mark.asyncio
    async def test_session_log_filled(self, scripted_backend, sample_episode, sample_story_bible):
        log = EngineSessionLog()
        await EngineOrchestrator(scripted_backend()).run(sample_episode, sample_story_bible, session_log=log)

        summary = log.summary()
        assert log.episode_title == "The Keeper's Light"
        assert summary["total_engines"] == 15
        assert summary["status_counts"][EngineStatus.COMPLETED.value] == 15
        assert log.completed_at is not None

    @pytest.mark.asyncio
    async def test_run_comprehensive_engines(self, scripted_backend, sample_episode, sample_story_bible):
        bible = _with_genre(sample_story_bible, "mystery")
        result = await run_comprehensive_engines(
            sample_episode,
            bible,
            backends=scripted_backend(),
            include_genre_engines=True,
            mode=RunMode.STABLE,
            max_concurrency=3,
        )

        assert EngineId.MYSTERY_CONSTRUCTION.value in result.notes
        assert result.metadata.succeeded_tasks == 16
        assert result.metadata.mode == RunMode.STABLE
