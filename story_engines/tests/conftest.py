"""
Pytest configuration and fixtures for story engine tests.

This module provides:
- Network blocking fixture to prevent accidental API calls in CI
- A scripted in-memory generation backend
- Sample episode and story bible records
"""

import asyncio
import socket
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional
from unittest.mock import patch

import pytest

from story_engines.backends import LLMClient
from story_engines.core import default_registry
from story_engines.models import EngineId


class NetworkBlockedError(Exception):
    """Raised when a test attempts to make a network connection."""
    pass


def _block_socket_connect(*args, **kwargs):
    """Block all socket connections to prevent accidental API calls."""
    raise NetworkBlockedError(
        "Network access is blocked in unit tests. "
        "Use the scripted backend instead of a real provider client."
    )


@pytest.fixture(autouse=True)
def block_network():
    """
    Automatically block all network connections in tests.

    Generation backends are always replaced by ScriptedBackend; a real
    provider call would cost money and make tests flaky.
    """
    with patch.object(socket.socket, 'connect', _block_socket_connect):
        with patch.object(socket, 'create_connection', _block_socket_connect):
            yield


# Well-formed output: long, bulleted, multi-line, no placeholder phrases
GOOD_OUTPUT = (
    "• Open on the empty lighthouse so the first image mirrors the final scene\n"
    "• Let Maya's refusal in scene two echo the series-level refusal to leave home\n"
    "• Plant the broken compass early and pay it off in the closing beat\n"
    "• Give the storm its own rhythm: three rising gusts matching the three act turns\n"
    "• End on a question the next episode must answer"
)


@dataclass
class BackendCall:
    engine_id: Optional[EngineId]
    system_prompt: str
    user_prompt: str
    temperature: float
    max_tokens: Optional[int]
    model: Optional[str]


class ScriptedBackend(LLMClient):
    """
    In-memory backend keyed on the engine's system prompt.

    `script` maps an engine to a list of per-call behaviours: a string is
    returned, an exception instance is raised. The last behaviour repeats.
    Engines without a script return `default`. `delays` are seconds slept
    before answering.
    """

    def __init__(
        self,
        default: Any = GOOD_OUTPUT,
        script: Optional[Dict[EngineId, List[Any]]] = None,
        delays: Optional[Dict[EngineId, float]] = None,
        default_delay: float = 0.0,
    ):
        self.default = default
        self.script = {engine_id: list(steps) for engine_id, steps in (script or {}).items()}
        self.delays = delays or {}
        self.default_delay = default_delay
        self.calls: List[BackendCall] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self._engines_by_prompt = {
            config.system_prompt: config.id for config in default_registry()
        }

    def calls_for(self, engine_id: EngineId) -> List[BackendCall]:
        return [call for call in self.calls if call.engine_id == engine_id]

    def called_engines(self) -> List[EngineId]:
        return [call.engine_id for call in self.calls]

    async def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
        model: Optional[str] = None,
    ) -> str:
        engine_id = self._engines_by_prompt.get(system_prompt)
        self.calls.append(BackendCall(engine_id, system_prompt, user_prompt, temperature, max_tokens, model))

        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            delay = self.delays.get(engine_id, self.default_delay)
            if delay:
                await asyncio.sleep(delay)

            steps = self.script.get(engine_id)
            if steps:
                behaviour = steps.pop(0) if len(steps) > 1 else steps[0]
            else:
                behaviour = self.default

            if isinstance(behaviour, BaseException):
                raise behaviour
            return behaviour
        finally:
            self.in_flight -= 1


def failing(engine_ids: Iterable[EngineId], error: Optional[Exception] = None) -> Dict[EngineId, List[Any]]:
    """Script in which the given engines always fail."""
    return {engine_id: [error or ConnectionError("Backend unreachable")] for engine_id in engine_ids}


@pytest.fixture
def scripted_backend():
    """Factory for ScriptedBackend instances."""
    return ScriptedBackend


@pytest.fixture
def failing_script():
    return failing


@pytest.fixture
def good_output():
    return GOOD_OUTPUT


@pytest.fixture
def sample_episode() -> Dict[str, Any]:
    return {
        "title": "The Keeper's Light",
        "episodeNumber": 3,
        "synopsis": "Maya returns to the lighthouse the night of the storm.",
        "scenes": [
            {"title": "Arrival", "content": "Maya climbs the cliff path in the rain.", "location": "Cliff path"},
            {"title": "The Lamp Room", "content": "The lamp will not light; the compass is broken."},
        ],
        "branchingOptions": [
            {"text": "Repair the lamp", "consequence": "The ship finds the harbour"},
            {"text": "Go after the stranger", "consequence": "The lamp stays dark"},
        ],
    }


@pytest.fixture
def sample_story_bible() -> Dict[str, Any]:
    return {
        "seriesTitle": "Harbour Lights",
        "premise": "A lighthouse keeper's daughter inherits a light nobody else can see.",
        "genre": "drama",
        "tone": "quiet",
        "theme": "inheritance",
        "mainCharacters": [
            {
                "name": "Maya",
                "archetype": "Reluctant Heir",
                "description": "Came home for a funeral and stayed for the storm.",
                "internalConflict": "Duty against escape",
                "favoriteColor": "grey",
            },
            {"name": "Tomas", "archetype": "Mentor"},
        ],
        "worldBuilding": {
            "setting": "A fishing village on a northern coast",
            "culturalContext": "Old maritime superstitions",
            "locations": [{"name": "Lighthouse", "atmosphere": "Salt and rust"}],
        },
        "narrativeElements": {
            "callbacks": ["The keeper's last log entry"],
            "recurringMotifs": ["Broken compass"],
        },
    }
