"""
Tests for the command line entry point.
"""

import json

import pytest

from story_engines.main import main, parse_args


@pytest.fixture
def episode_files(tmp_path, sample_episode, sample_story_bible):
    episode_path = tmp_path / "episode.json"
    bible_path = tmp_path / "story_bible.json"
    episode_path.write_text(json.dumps(sample_episode), encoding="utf-8")
    bible_path.write_text(json.dumps(sample_story_bible), encoding="utf-8")
    return str(episode_path), str(bible_path)


@pytest.fixture
def no_provider_keys(monkeypatch):
    for name in ("OPENAI_API_KEY", "OPENROUTER_API_KEY", "GEMINI_API_KEY", "ANTHROPIC_API_KEY", "DEEPSEEK_API_KEY"):
        monkeypatch.setenv(name, "")
    monkeypatch.delenv("STORY_ENGINES_MODE", raising=False)
    monkeypatch.delenv("STORY_ENGINES_INCLUDE_GENRE", raising=False)


class TestParseArgs:
    def test_flags(self):
        args = parse_args(["e.json", "b.json", "--mode", "stable", "--no-genre", "--timeout-ms", "500"])
        assert args.episode == "e.json"
        assert args.mode == "stable"
        assert args.no_genre is True
        assert args.timeout_ms == 500


class TestMain:
    @pytest.mark.asyncio
    async def test_run_without_providers_prints_fallbacks(self, episode_files, no_provider_keys, capsys):
        exit_code = await main([*episode_files, "--mode", "stable", "--slot-notes", "--session-log"])

        output = json.loads(capsys.readouterr().out)
        assert exit_code == 0
        assert output["metadata"]["mode"] == "stable"
        assert output["metadata"]["succeeded_tasks"] == 0
        assert output["metadata"]["failed_tasks"] == 15
        assert "characterDepth" in output["notes"]
        assert output["session_log"]["total_engines"] == 15

    @pytest.mark.asyncio
    async def test_aborted_run_exit_code(self, tmp_path, no_provider_keys, capsys):
        episode_path = tmp_path / "episode.json"
        bible_path = tmp_path / "bible.json"
        episode_path.write_text(json.dumps({"scenes": []}), encoding="utf-8")
        bible_path.write_text(json.dumps({}), encoding="utf-8")

        exit_code = await main([str(episode_path), str(bible_path)])

        output = json.loads(capsys.readouterr().out)
        assert exit_code == 1
        assert output["metadata"]["aborted"] is True
