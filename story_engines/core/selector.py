"""
Task Selector for the story engines.

Static phases run a fixed engine list. The conditional genre phase is computed
from the story bible's genre and tone so engines irrelevant to the content are
never run.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple, Union

from ..models import EngineId, RunContext
from .registry import EngineRegistry, default_registry

logger = logging.getLogger("story_engines")


@dataclass(frozen=True)
class GenreTrigger:
    """Keywords that pull a conditional engine into a run."""
    engine_id: EngineId
    genre_keywords: Tuple[str, ...]
    tone_keywords: Tuple[str, ...]

    def matches(self, genre: str, tone: str) -> bool:
        return any(keyword in genre for keyword in self.genre_keywords) or any(
            keyword in tone for keyword in self.tone_keywords
        )


# Order of this table is the order engines appear in the conditional phase
GENRE_TRIGGERS: Tuple[GenreTrigger, ...] = (
    GenreTrigger(
        engine_id=EngineId.COMEDY_TIMING,
        genre_keywords=("comedy", "humor", "funny"),
        tone_keywords=("humorous", "comedic", "lighthearted"),
    ),
    GenreTrigger(
        engine_id=EngineId.HORROR_ATMOSPHERE,
        genre_keywords=("horror", "thriller", "suspense", "scary"),
        tone_keywords=("dark", "ominous", "suspenseful", "eerie"),
    ),
    GenreTrigger(
        engine_id=EngineId.ROMANCE_CHEMISTRY,
        genre_keywords=("romance", "romantic", "love"),
        tone_keywords=("romantic", "intimate", "passionate"),
    ),
    GenreTrigger(
        engine_id=EngineId.MYSTERY_CONSTRUCTION,
        genre_keywords=("mystery", "detective", "investigation", "noir", "crime"),
        tone_keywords=("mysterious", "enigmatic", "puzzling"),
    ),
)


def determine_genre_engines(
    genre: Union[str, Iterable[str], None],
    tone: Optional[str] = None,
    triggers: Tuple[GenreTrigger, ...] = GENRE_TRIGGERS,
) -> List[EngineId]:
    """
    Conditional engines whose trigger keywords match genre or tone.

    Matching is case-insensitive substring matching. Each engine appears at
    most once, in trigger-table order, whatever order the genres come in.
    A tone match applies even when no genre is given.
    """
    if genre is None:
        genres: List[str] = []
    elif isinstance(genre, str):
        genres = [genre]
    else:
        genres = [g for g in genre if g is not None]

    tone_text = (tone or "").lower()
    genre_texts = [str(g).lower() for g in genres] or [""]

    return [
        trigger.engine_id
        for trigger in triggers
        if any(trigger.matches(genre_text, tone_text) for genre_text in genre_texts)
    ]


class TaskSelector:
    """Computes the engine list for each declared phase of a run."""

    def __init__(
        self,
        registry: Optional[EngineRegistry] = None,
        triggers: Tuple[GenreTrigger, ...] = GENRE_TRIGGERS,
    ):
        self.registry = registry or default_registry()
        self.triggers = triggers

    @property
    def phase_order(self) -> Tuple[int, ...]:
        return self.registry.phase_order

    def engines_for_phase(
        self,
        phase: int,
        context: RunContext,
        include_conditional: bool = True,
    ) -> List[EngineId]:
        if phase != self.registry.conditional_phase:
            return list(self.registry.static_engines(phase))

        if not include_conditional:
            return []

        matched = determine_genre_engines(context.genres, context.tone, self.triggers)
        # Only engines the registry actually knows can run
        selected = [engine_id for engine_id in matched if engine_id in self.registry]
        if selected:
            logger.info(
                f"[engines_for_phase] Genre engines for {list(context.genres)} / "
                f"tone '{context.tone}': {[e.value for e in selected]}"
            )
        return selected

    def plan(self, context: RunContext, include_conditional: bool = True) -> Dict[int, List[EngineId]]:
        """Engine list per phase, in declared phase order."""
        return {
            phase: self.engines_for_phase(phase, context, include_conditional)
            for phase in self.phase_order
        }

    def selected_engines(self, context: RunContext, include_conditional: bool = True) -> List[EngineId]:
        """Every engine selected for the run, flattened in execution order."""
        return [
            engine_id
            for engines in self.plan(context, include_conditional).values()
            for engine_id in engines
        ]

    def selectable_engines(self, include_conditional: bool = True) -> List[EngineId]:
        """
        Engines that could be selected without a context.
        Used when a run aborts before its context exists.
        """
        engines: List[EngineId] = []
        for phase in self.phase_order:
            if phase == self.registry.conditional_phase:
                if include_conditional:
                    engines.extend(config.id for config in self.registry.conditional_engines())
            else:
                engines.extend(self.registry.static_engines(phase))
        return engines
