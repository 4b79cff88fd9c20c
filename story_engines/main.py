"""
Story Engines - Main Entry Point
Runs the comprehensive engines for one episode from the command line.

    python -m story_engines.main episode.json story_bible.json [--mode stable]
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any, List, Optional

from dotenv import load_dotenv

from .backends import create_mode_backends
from .config import EngineSettings, create_default_config_from_env
from .core import EngineOrchestrator, configure_logging
from .models import RunMode
from .services import EngineSessionLog


def _load_json(path: str) -> Any:
    with Path(path).open(encoding="utf-8") as f:
        return json.load(f)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run story enhancement engines for one episode.")
    parser.add_argument("episode", help="Path to the episode JSON file")
    parser.add_argument("story_bible", help="Path to the story bible JSON file")
    parser.add_argument("--mode", choices=[mode.value for mode in RunMode], default=None)
    parser.add_argument("--no-genre", action="store_true", help="Skip the genre-specific engines")
    parser.add_argument("--timeout-ms", type=int, default=None, help="Override every engine timeout")
    parser.add_argument("--max-concurrency", type=int, default=None)
    parser.add_argument("--session-log", action="store_true", help="Include the engine session log in the output")
    parser.add_argument("--slot-notes", action="store_true", help="Key notes by result slot instead of engine id")
    return parser.parse_args(argv)


async def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    load_dotenv()
    args = parse_args(argv)

    settings = EngineSettings.from_env()
    configure_logging(settings.log_level)

    # Command line flags win over environment settings
    updates = {}
    if args.mode:
        updates["mode"] = RunMode(args.mode)
    if args.no_genre:
        updates["include_genre_engines"] = False
    if args.timeout_ms is not None:
        updates["timeout_override_ms"] = args.timeout_ms
    if args.max_concurrency is not None:
        updates["max_concurrency"] = args.max_concurrency
    settings = EngineSettings(**{**settings.model_dump(), **updates})

    config = create_default_config_from_env()
    errors = config.validate_engine_models()
    if errors:
        print("Configuration warnings:", file=sys.stderr)
        for error in errors:
            print(f"  - {error}", file=sys.stderr)

    orchestrator = EngineOrchestrator(backends=create_mode_backends(config))
    session_log = EngineSessionLog() if args.session_log else None

    result = await orchestrator.run(
        _load_json(args.episode),
        _load_json(args.story_bible),
        settings.to_run_options(),
        session_log=session_log,
    )

    output = result.model_dump(mode="json")
    if args.slot_notes:
        output["notes"] = result.slot_notes()
    if session_log is not None:
        output["session_log"] = session_log.to_dict()
    print(json.dumps(output, indent=2, ensure_ascii=False))

    return 1 if result.metadata.aborted else 0


def cli() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
