"""
Context Builder for the story engines.

Turns the caller's episode and story bible records into the single RunContext
every engine prompt is built from. Reference data is never truncated: all
characters, scenes and world details are carried through, and keys the models
do not name are kept as extra fields.

Both camelCase (as stored by the frontend) and snake_case keys are accepted.
"""

import json
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from ..models import (
    CharacterContext,
    LocationContext,
    NarrativeElements,
    RunContext,
    SceneContext,
    WorldContext,
)
from .errors import MissingContextError

logger = logging.getLogger("story_engines")


DEFAULT_GENRE = "drama"


def _pick(source: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    """First present, non-empty value among `keys`."""
    for key in keys:
        value = source.get(key)
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        return value
    return default


def _text(value: Any, default: str = "") -> str:
    if value is None:
        return default
    if isinstance(value, str):
        return value if value.strip() else default
    if isinstance(value, (list, tuple)):
        return ", ".join(str(item) for item in value if item is not None) or default
    return str(value)


def _extras(source: Mapping[str, Any], known: Iterable[str]) -> Dict[str, Any]:
    """Keys not mapped onto a model field, kept verbatim."""
    known = set(known)
    return {
        key: value
        for key, value in source.items()
        if isinstance(key, str) and key not in known
    }


def _as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


# ============================================================================
# Sub-record builders
# ============================================================================

_CHARACTER_KEYS = (
    "name", "archetype", "description", "arc", "relationships",
    "motivation", "internalConflict", "internal_conflict", "voice",
)


def _build_character(raw: Any) -> CharacterContext:
    if not isinstance(raw, Mapping):
        return CharacterContext(name=_text(raw, "Character"))

    return CharacterContext(
        **_extras(raw, _CHARACTER_KEYS),
        name=_text(_pick(raw, "name"), "Character"),
        archetype=_text(_pick(raw, "archetype"), "Character"),
        description=_text(_pick(raw, "description"), "Character development in progress"),
        arc=_text(_pick(raw, "arc"), "Arc to be developed"),
        relationships=_pick(raw, "relationships", default="Relationships to be explored"),
        motivation=_text(_pick(raw, "motivation"), "Motivation to be established"),
        internal_conflict=_text(
            _pick(raw, "internalConflict", "internal_conflict"), "Internal journey to unfold"
        ),
        voice=_text(_pick(raw, "voice"), "Voice to be developed"),
    )


def _build_scene(raw: Any, index: int) -> SceneContext:
    default_title = f"Scene {index + 1}"
    if not isinstance(raw, Mapping):
        return SceneContext(title=default_title, content=_text(raw, "Scene content to be developed"))

    return SceneContext(
        **_extras(raw, ("title", "content")),
        title=_text(_pick(raw, "title"), default_title),
        content=_text(_pick(raw, "content"), "Scene content to be developed"),
    )


def _build_location(raw: Any) -> LocationContext:
    if not isinstance(raw, Mapping):
        return LocationContext(name=_text(raw, "Location"))

    return LocationContext(
        **_extras(raw, ("name", "description", "atmosphere")),
        name=_text(_pick(raw, "name"), "Location"),
        description=_text(_pick(raw, "description")),
        atmosphere=_text(_pick(raw, "atmosphere")),
    )


_WORLD_KEYS = ("setting", "culturalContext", "cultural_context", "locations")


def _build_world(story_bible: Mapping[str, Any]) -> WorldContext:
    raw = _pick(story_bible, "worldBuilding", "world_building", default={})
    if not isinstance(raw, Mapping):
        raw = {"setting": raw}

    # Older bibles keep setting and locations at the top level
    setting = _pick(raw, "setting") or _pick(story_bible, "setting")
    locations = _pick(raw, "locations") or _pick(story_bible, "locations")

    return WorldContext(
        **_extras(raw, _WORLD_KEYS),
        setting=_text(setting, "Contemporary setting"),
        cultural_context=_text(_pick(raw, "culturalContext", "cultural_context"), "Modern society"),
        locations=tuple(_build_location(location) for location in _as_list(locations)),
    )


_NARRATIVE_KEYS = ("callbacks", "foreshadowing", "recurringMotifs", "recurring_motifs")


def _build_narrative_elements(story_bible: Mapping[str, Any]) -> NarrativeElements:
    raw = _pick(story_bible, "narrativeElements", "narrative_elements", default={})
    if not isinstance(raw, Mapping):
        return NarrativeElements()

    return NarrativeElements(
        **_extras(raw, _NARRATIVE_KEYS),
        callbacks=_pick(raw, "callbacks", default="To be established"),
        foreshadowing=_pick(raw, "foreshadowing", default="To be woven in"),
        recurring_motifs=_pick(raw, "recurringMotifs", "recurring_motifs", default="To be developed"),
    )


def _build_genres(story_bible: Mapping[str, Any]) -> Tuple[str, ...]:
    raw = _pick(story_bible, "genre", "genres")
    genres = tuple(
        str(genre).strip()
        for genre in _as_list(raw)
        if genre is not None and str(genre).strip()
    )
    return genres or (DEFAULT_GENRE,)


def _episode_number(episode: Mapping[str, Any]) -> int:
    raw = _pick(episode, "episodeNumber", "episode_number", default=1)
    try:
        return int(raw)
    except (TypeError, ValueError):
        logger.warning(f"[_episode_number] Non-numeric episode number {raw!r}, using 1")
        return 1


# ============================================================================
# Context Builder
# ============================================================================

class ContextBuilder:
    """
    Builds the shared, read-only RunContext for one orchestration run.

    Required subject fields: the episode must be a mapping with a non-empty
    title and the story bible must be a mapping. Anything else falls back to
    a default rather than failing.
    """

    def __init__(
        self,
        target_runtime: str = "5 minutes",
        format: str = "episodic series",
        audience: str = "general",
        platform: str = "streaming",
    ):
        self.target_runtime = target_runtime
        self.format = format
        self.audience = audience
        self.platform = platform

    @staticmethod
    def missing_fields(episode: Any, story_bible: Any) -> List[str]:
        missing = []
        if not isinstance(episode, Mapping):
            missing.append("episode")
        elif not _text(episode.get("title")).strip():
            missing.append("episode.title")
        if not isinstance(story_bible, Mapping):
            missing.append("story_bible")
        return missing

    def build(self, episode: Any, story_bible: Any) -> RunContext:
        """Assemble the context; raises MissingContextError when subject fields are absent."""
        missing = self.missing_fields(episode, story_bible)
        if missing:
            raise MissingContextError(missing)

        scenes = tuple(
            _build_scene(scene, index) for index, scene in enumerate(_as_list(episode.get("scenes")))
        )
        characters = tuple(
            _build_character(character)
            for character in _as_list(
                _pick(story_bible, "mainCharacters", "main_characters", "characters")
            )
        )

        context = RunContext(
            series_title=_text(_pick(story_bible, "seriesTitle", "series_title", "title"), "Series"),
            title=_text(episode.get("title")),
            episode_number=_episode_number(episode),
            synopsis=_text(_pick(episode, "synopsis", "logline")),
            premise=_text(_pick(story_bible, "premise")),
            genres=_build_genres(story_bible),
            tone=_text(_pick(story_bible, "tone")),
            theme=_text(_pick(story_bible, "theme", "themes")),
            scene_count=len(scenes) or 1,
            scenes=scenes,
            characters=characters,
            relationships=_pick(story_bible, "relationships"),
            world_building=_build_world(story_bible),
            narrative_elements=_build_narrative_elements(story_bible),
            branching_options=_pick(episode, "branchingOptions", "branching_options"),
            target_runtime=self.target_runtime,
            format=self.format,
            audience=self.audience,
            platform=self.platform,
        )

        logger.info(
            f"[build] Context for '{context.title}' (episode {context.episode_number}): "
            f"{len(context.scenes)} scenes, {len(context.characters)} characters, "
            f"genres={list(context.genres)}"
        )
        return context


def build_run_context(episode: Any, story_bible: Any) -> RunContext:
    """Build a RunContext with the default delivery format."""
    return ContextBuilder().build(episode, story_bible)


def render_context_json(context: RunContext, indent: Optional[int] = 2) -> str:
    """Serialise the full context for embedding in an engine prompt."""
    return json.dumps(context.model_dump(mode="json"), indent=indent, ensure_ascii=False)
