"""
Engine Registry for the story engines.

Static table of every enhancement engine: category, phase, timeout, retry
budget, generation parameters, instruction template and fallback text.
The table is validated when the registry is built, so a bad entry stops the
process at startup instead of surfacing in the middle of a run.
"""

import logging
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple, Union

from ..models import (
    RESULT_SLOTS,
    EngineCategory,
    EngineConfig,
    EngineId,
    GenerationParams,
)
from .errors import ConfigurationError, EngineNotFoundError

logger = logging.getLogger("story_engines")


# Declared execution order; phase 5 is selected per run from genre and tone
PHASE_ORDER: Tuple[int, ...] = (1, 2, 3, 4, 5)
CONDITIONAL_PHASE = 5

# Used only when an engine's own configuration cannot be resolved
GENERIC_FALLBACK_TEXT = (
    "• General enhancement recommendations\n"
    "• Consider narrative improvements\n"
    "• Focus on story quality"
)


ENGINE_PHASES: Dict[int, Tuple[EngineId, ...]] = {
    1: (
        EngineId.FRACTAL_NARRATIVE,
        EngineId.EPISODE_COHESION,
        EngineId.CONFLICT_ARCHITECTURE,
        EngineId.TENSION_ESCALATION,
        EngineId.PACING_RHYTHM,
        EngineId.FIVE_MINUTE_CANVAS,
    ),
    2: (
        EngineId.STRATEGIC_DIALOGUE,
        EngineId.CHARACTER,
    ),
    3: (
        EngineId.WORLD_BUILDING,
        EngineId.LIVING_WORLD,
        EngineId.THEME_INTEGRATION,
    ),
    4: (
        EngineId.INTERACTIVE_CHOICE,
        EngineId.SERIALIZED_CONTINUITY,
        EngineId.STORYBOARD,
        EngineId.LANGUAGE,
    ),
    5: (),
}


# ============================================================================
# Engine Configurations
# ============================================================================

ENGINE_CONFIGURATIONS: Tuple[EngineConfig, ...] = (
    # ===== PHASE 1: NARRATIVE ARCHITECTURE =====
    EngineConfig(
        id=EngineId.FRACTAL_NARRATIVE,
        category=EngineCategory.NARRATIVE,
        phase=1,
        priority=1,
        timeout_ms=30000,
        max_retries=2,
        generation=GenerationParams(temperature=0.85, max_tokens=1500),
        system_prompt=(
            "You are a master narrative architect specializing in fractal story structures where "
            "each part reflects the whole. Expert in recursive themes, nested conflicts, and "
            "structural elegance."
        ),
        task_prompt=(
            "Analyze the narrative structure and suggest 3-5 sophisticated structural "
            "enhancements using fractal narrative principles."
        ),
        specific_instructions="""Focus on:
• Recursive themes that appear at scene, episode, and series levels
• Nested conflicts that mirror the overall story arc
• Structural elegance where each scene reflects the episode's core conflict
• Pattern recognition in character behavior and story beats
• Thematic resonance across different story scales

Return format: Bullet points with specific structural recommendations.""",
        fallback_text=(
            "• Consider recursive themes across scenes\n"
            "• Mirror episode conflicts in character arcs\n"
            "• Ensure structural consistency"
        ),
    ),
    EngineConfig(
        id=EngineId.EPISODE_COHESION,
        category=EngineCategory.NARRATIVE,
        phase=1,
        priority=2,
        timeout_ms=25000,
        max_retries=2,
        generation=GenerationParams(temperature=0.8, max_tokens=1200),
        system_prompt=(
            "You are a series continuity expert ensuring perfect episode-to-episode flow and "
            "series coherence."
        ),
        task_prompt=(
            "Analyze episode cohesion and suggest 3-5 enhancements for series continuity and flow."
        ),
        specific_instructions="""Focus on:
• Character development consistency across episodes
• Plot thread continuity and resolution
• Thematic progression and series arc advancement
• Callbacks and references to previous episodes
• Setup for future episode developments

Return format: Numbered continuity recommendations.""",
        fallback_text=(
            "• Maintain character continuity\n"
            "• Reference previous episodes\n"
            "• Set up future developments"
        ),
    ),
    EngineConfig(
        id=EngineId.CONFLICT_ARCHITECTURE,
        category=EngineCategory.NARRATIVE,
        phase=1,
        priority=3,
        timeout_ms=25000,
        max_retries=2,
        generation=GenerationParams(temperature=0.85, max_tokens=1300),
        system_prompt=(
            "You are a conflict architecture specialist designing multi-layered dramatic tensions "
            "and character conflicts."
        ),
        task_prompt=(
            "Analyze the conflict structure and suggest 3-5 enhancements for dramatic tension and "
            "character conflict."
        ),
        specific_instructions="""Focus on:
• Internal vs external conflicts for each character
• Conflict escalation throughout the episode
• Character motivations driving conflict
• Resolution approaches that maintain tension
• Multi-layered conflicts that intersect meaningfully

Return format: Conflict enhancement bullet points.""",
        fallback_text=(
            "• Escalate internal conflicts\n"
            "• Layer external pressures\n"
            "• Build toward climax"
        ),
    ),
    EngineConfig(
        id=EngineId.TENSION_ESCALATION,
        category=EngineCategory.NARRATIVE,
        phase=1,
        priority=4,
        timeout_ms=20000,
        max_retries=2,
        generation=GenerationParams(temperature=0.8, max_tokens=1000),
        system_prompt=(
            "You are a tension escalation expert creating mounting dramatic pressure and emotional "
            "stakes."
        ),
        task_prompt=(
            "Analyze dramatic tension and suggest 3-5 specific escalation techniques for maximum "
            "emotional impact."
        ),
        specific_instructions="""Focus on:
• Scene-by-scene tension building
• Emotional stakes escalation
• Conflict pressure points
• Dramatic reveals and surprises
• Sustained tension without exhausting audience

Return format: Tension escalation techniques.""",
        fallback_text=(
            "• Increase stakes gradually\n"
            "• Use dramatic reveals\n"
            "• Maintain emotional pressure"
        ),
    ),
    EngineConfig(
        id=EngineId.PACING_RHYTHM,
        category=EngineCategory.NARRATIVE,
        phase=1,
        priority=5,
        timeout_ms=20000,
        max_retries=2,
        generation=GenerationParams(temperature=0.75, max_tokens=1000),
        system_prompt=(
            "You are a pacing and rhythm specialist optimizing the flow and timing of narrative beats."
        ),
        task_prompt=(
            "Analyze episode pacing and suggest 3-5 rhythm adjustments for optimal flow and timing."
        ),
        specific_instructions="""Focus on:
• Scene length and transition timing
• Dialogue rhythm and breathing space
• Action vs quiet moment balance
• Emotional beat spacing
• 5-minute runtime optimization

Return format: Pacing adjustment recommendations.""",
        fallback_text=(
            "• Balance action and dialogue\n"
            "• Vary scene lengths\n"
            "• Optimize for 5-minute format"
        ),
    ),
    EngineConfig(
        id=EngineId.FIVE_MINUTE_CANVAS,
        category=EngineCategory.NARRATIVE,
        phase=1,
        priority=6,
        timeout_ms=20000,
        max_retries=2,
        generation=GenerationParams(temperature=0.8, max_tokens=1100),
        system_prompt=(
            "You are a five-minute format specialist maximizing storytelling impact within strict "
            "time constraints."
        ),
        task_prompt=(
            "Analyze the episode for 5-minute format optimization and suggest 3-5 structural "
            "refinements."
        ),
        specific_instructions="""Focus on:
• Maximum story impact in minimal time
• Efficient scene transitions
• Compressed character development
• Quick audience engagement
• Complete narrative arc within constraints

Return format: Format optimization suggestions.""",
        fallback_text=(
            "• Compress narrative efficiently\n"
            "• Focus on core conflict\n"
            "• Ensure complete arc"
        ),
    ),

    # ===== PHASE 2: DIALOGUE & CHARACTER =====
    EngineConfig(
        id=EngineId.STRATEGIC_DIALOGUE,
        category=EngineCategory.DIALOGUE,
        phase=2,
        priority=1,
        timeout_ms=25000,
        max_retries=2,
        generation=GenerationParams(temperature=0.9, max_tokens=1400),
        system_prompt=(
            "You are a dialogue master crafting character-specific voices with layered subtext and "
            "natural flow."
        ),
        task_prompt=(
            "Analyze dialogue and suggest 4-6 strategic enhancements for character voice and subtext."
        ),
        specific_instructions="""Focus on:
• Unique voice patterns for each character
• Subtext and underlying emotions
• Conflict revelation through dialogue
• Natural conversation flow
• Cultural authenticity and speech patterns

Return format: Character-specific dialogue improvements.""",
        fallback_text=(
            "• Develop character voices\n"
            "• Add subtext layers\n"
            "• Ensure natural flow"
        ),
    ),
    EngineConfig(
        id=EngineId.CHARACTER,
        category=EngineCategory.CHARACTER,
        phase=2,
        priority=2,
        timeout_ms=30000,
        max_retries=2,
        generation=GenerationParams(temperature=0.85, max_tokens=1500),
        system_prompt=(
            "You are a character development expert creating deep psychological profiles and "
            "authentic character arcs."
        ),
        task_prompt=(
            "Analyze character development and suggest 4-6 enhancements for psychological depth "
            "and authenticity."
        ),
        specific_instructions="""Focus on:
• Psychological motivation consistency
• Character arc progression
• Authentic behavioral patterns
• Relationship dynamics
• Internal/external character conflicts

Return format: Character development recommendations.""",
        fallback_text=(
            "• Deepen motivations\n"
            "• Show character growth\n"
            "• Maintain consistency"
        ),
    ),

    # ===== PHASE 3: WORLD & ENVIRONMENT =====
    EngineConfig(
        id=EngineId.WORLD_BUILDING,
        category=EngineCategory.WORLD,
        phase=3,
        priority=1,
        timeout_ms=25000,
        max_retries=2,
        generation=GenerationParams(temperature=0.85, max_tokens=1300),
        system_prompt=(
            "You are a world-building expert creating immersive, consistent environments with rich "
            "detail."
        ),
        task_prompt=(
            "Analyze world-building elements and suggest 3-5 enhancements for environmental immersion."
        ),
        specific_instructions="""Focus on:
• Environmental consistency and logic
• Sensory details and atmosphere
• Cultural authenticity
• Location-specific mood and tone
• World rules and constraints

Return format: World-building enhancement suggestions.""",
        fallback_text=(
            "• Enhance environmental details\n"
            "• Ensure world consistency\n"
            "• Add atmospheric elements"
        ),
    ),
    EngineConfig(
        id=EngineId.LIVING_WORLD,
        category=EngineCategory.WORLD,
        phase=3,
        priority=2,
        timeout_ms=25000,
        max_retries=2,
        generation=GenerationParams(temperature=0.8, max_tokens=1200),
        system_prompt=(
            "You are a living world specialist making environments dynamic and responsive to "
            "character actions."
        ),
        task_prompt=(
            "Analyze world dynamism and suggest 3-5 enhancements for interactive, responsive "
            "environments."
        ),
        specific_instructions="""Focus on:
• Environmental response to character actions
• Background activity and life
• Ambient storytelling through environment
• World state changes and consequences
• Ecosystem relationships and dynamics

Return format: Dynamic world suggestions.""",
        fallback_text=(
            "• Make environment responsive\n"
            "• Add background life\n"
            "• Create dynamic interactions"
        ),
    ),
    EngineConfig(
        id=EngineId.THEME_INTEGRATION,
        category=EngineCategory.THEME,
        phase=3,
        priority=3,
        timeout_ms=20000,
        max_retries=2,
        generation=GenerationParams(temperature=0.85, max_tokens=1100),
        system_prompt=(
            "You are a thematic specialist weaving deep themes seamlessly through narrative, "
            "character, and environment."
        ),
        task_prompt=(
            "Analyze thematic integration and suggest 3-5 enhancements for deeper theme resonance."
        ),
        specific_instructions="""Focus on:
• Thematic consistency across all elements
• Subtle theme integration in action and dialogue
• Symbolic representation and metaphor
• Theme-driven character decisions
• Universal themes in specific contexts

Return format: Thematic enhancement recommendations.""",
        fallback_text=(
            "• Weave themes subtly\n"
            "• Use symbolic elements\n"
            "• Maintain thematic consistency"
        ),
    ),

    # ===== PHASE 4: FORMAT & ENGAGEMENT =====
    EngineConfig(
        id=EngineId.INTERACTIVE_CHOICE,
        category=EngineCategory.ENGAGEMENT,
        phase=4,
        priority=1,
        timeout_ms=25000,
        max_retries=2,
        generation=GenerationParams(temperature=0.85, max_tokens=1200),
        system_prompt=(
            "You are an interactive choice architect creating meaningful decisions that impact "
            "story direction."
        ),
        task_prompt=(
            "Analyze branching choices and suggest 3 enhanced options with clear consequences and "
            "stakes."
        ),
        specific_instructions="""Focus on:
• Meaningful choice differentiation
• Clear consequence implications
• Character agency and motivation
• Series impact and progression
• Balanced choice difficulty and appeal

Return format: Three enhanced choice options with stakes.""",
        fallback_text=(
            "• Create meaningful choices\n"
            "• Ensure clear consequences\n"
            "• Balance difficulty"
        ),
    ),
    EngineConfig(
        id=EngineId.SERIALIZED_CONTINUITY,
        category=EngineCategory.CONTINUITY,
        phase=4,
        priority=2,
        timeout_ms=20000,
        max_retries=2,
        generation=GenerationParams(temperature=0.75, max_tokens=1000),
        system_prompt=(
            "You are a serialization expert ensuring perfect continuity across episodes and story "
            "arcs."
        ),
        task_prompt=(
            "Analyze series continuity and suggest 3-5 enhancements for episode-to-episode "
            "consistency."
        ),
        specific_instructions="""Focus on:
• Character trait consistency
• Plot thread tracking
• World state continuity
• Reference and callback opportunities
• Series progression tracking

Return format: Continuity improvement suggestions.""",
        fallback_text=(
            "• Track character development\n"
            "• Maintain plot consistency\n"
            "• Reference series history"
        ),
    ),
    EngineConfig(
        id=EngineId.STORYBOARD,
        category=EngineCategory.VISUAL,
        phase=4,
        priority=3,
        timeout_ms=25000,
        max_retries=2,
        generation=GenerationParams(temperature=0.8, max_tokens=1300),
        system_prompt=(
            "You are a visual storytelling expert translating narrative into cinematic sequences "
            "and shot compositions."
        ),
        task_prompt=(
            "Analyze visual storytelling and suggest 4-6 enhancements for cinematic presentation."
        ),
        specific_instructions="""Focus on:
• Visual narrative flow
• Shot composition suggestions
• Visual metaphor and symbolism
• Cinematic transitions
• Emotional visual storytelling

Return format: Visual storytelling recommendations.""",
        fallback_text=(
            "• Plan visual sequences\n"
            "• Consider shot composition\n"
            "• Enhance cinematic flow"
        ),
    ),
    EngineConfig(
        id=EngineId.LANGUAGE,
        category=EngineCategory.LANGUAGE,
        phase=4,
        priority=4,
        timeout_ms=20000,
        max_retries=2,
        generation=GenerationParams(temperature=0.8, max_tokens=1000),
        system_prompt=(
            "You are a language specialist optimizing prose style, rhythm, and cultural authenticity."
        ),
        task_prompt=(
            "Analyze language style and suggest 3-5 enhancements for prose quality and cultural "
            "authenticity."
        ),
        specific_instructions="""Focus on:
• Prose rhythm and flow
• Cultural language authenticity
• Sensory language and imagery
• Emotional resonance through word choice
• Consistent narrative voice

Return format: Language enhancement suggestions.""",
        fallback_text=(
            "• Improve prose rhythm\n"
            "• Enhance cultural authenticity\n"
            "• Strengthen narrative voice"
        ),
    ),

    # ===== PHASE 5: GENRE-SPECIFIC (CONDITIONAL) =====
    EngineConfig(
        id=EngineId.COMEDY_TIMING,
        category=EngineCategory.GENRE,
        phase=5,
        priority=1,
        timeout_ms=20000,
        max_retries=2,
        generation=GenerationParams(temperature=0.9, max_tokens=1000),
        system_prompt=(
            "You are a comedy timing expert optimizing humor beats, setup-payoff structures, and "
            "comedic pacing."
        ),
        task_prompt=(
            "Analyze comedic elements and suggest 3-5 timing enhancements for maximum humor impact."
        ),
        specific_instructions="""Focus on:
• Comedy beat timing and rhythm
• Setup and payoff structures
• Character-based humor authenticity
• Subversive comedy opportunities
• Comedic relief balance

Return format: Comedy timing improvements.""",
        fallback_text=(
            "• Perfect comedic timing\n"
            "• Setup-punchline structure\n"
            "• Character-based humor"
        ),
        conditional=True,
    ),
    EngineConfig(
        id=EngineId.HORROR_ATMOSPHERE,
        category=EngineCategory.GENRE,
        phase=5,
        priority=2,
        timeout_ms=25000,
        max_retries=2,
        generation=GenerationParams(temperature=0.85, max_tokens=1200),
        system_prompt=(
            "You are a horror atmosphere specialist creating psychological tension and unsettling "
            "environments."
        ),
        task_prompt=(
            "Analyze horror elements and suggest 3-5 atmospheric enhancements for psychological "
            "impact."
        ),
        specific_instructions="""Focus on:
• Psychological tension building
• Atmospheric detail and mood
• Dread escalation techniques
• Horror element subtlety
• Fear psychology and anticipation

Return format: Horror atmosphere enhancements.""",
        fallback_text=(
            "• Build atmospheric dread\n"
            "• Layer psychological tension\n"
            "• Use environmental horror"
        ),
        conditional=True,
    ),
    EngineConfig(
        id=EngineId.ROMANCE_CHEMISTRY,
        category=EngineCategory.GENRE,
        phase=5,
        priority=3,
        timeout_ms=25000,
        max_retries=2,
        generation=GenerationParams(temperature=0.9, max_tokens=1200),
        system_prompt=(
            "You are a romance chemistry expert crafting authentic emotional connections and "
            "relationship dynamics."
        ),
        task_prompt=(
            "Analyze romantic elements and suggest 3-5 chemistry enhancements for emotional "
            "authenticity."
        ),
        specific_instructions="""Focus on:
• Authentic emotional connection
• Romantic tension building
• Chemistry through dialogue and action
• Relationship progression authenticity
• Romantic moment timing

Return format: Romance chemistry improvements.""",
        fallback_text=(
            "• Build authentic emotional connection\n"
            "• Progress the relationship naturally\n"
            "• Show chemistry through interaction"
        ),
        conditional=True,
    ),
    EngineConfig(
        id=EngineId.MYSTERY_CONSTRUCTION,
        category=EngineCategory.GENRE,
        phase=5,
        priority=4,
        timeout_ms=25000,
        max_retries=2,
        generation=GenerationParams(temperature=0.8, max_tokens=1300),
        system_prompt=(
            "You are a mystery construction expert designing clues, red herrings, and revelation "
            "structures."
        ),
        task_prompt=(
            "Analyze mystery elements and suggest 3-5 construction enhancements for intrigue and "
            "revelation."
        ),
        specific_instructions="""Focus on:
• Clue placement and discovery
• Red herring balance
• Mystery revelation pacing
• Logical deduction pathways
• Suspense maintenance

Return format: Mystery construction improvements.""",
        fallback_text=(
            "• Place clues fairly\n"
            "• Build logical deduction paths\n"
            "• Deliver satisfying revelations"
        ),
        conditional=True,
    ),
)


# ============================================================================
# Registry
# ============================================================================

class EngineRegistry:
    """
    Validated lookup over engine configurations.

    Holds the configs, the static phase lists and the declared phase order.
    Construction fails with ConfigurationError if anything is inconsistent.
    """

    def __init__(
        self,
        configs: Iterable[EngineConfig],
        phases: Optional[Mapping[int, Sequence[EngineId]]] = None,
        phase_order: Sequence[int] = PHASE_ORDER,
        conditional_phase: Optional[int] = CONDITIONAL_PHASE,
        require_complete: bool = False,
    ):
        configs = list(configs)
        self._configs: Dict[EngineId, EngineConfig] = {c.id: c for c in configs}
        self._duplicate_ids = sorted(
            {c.id.value for c in configs if sum(1 for other in configs if other.id == c.id) > 1}
        )
        if phases is None:
            phases = ENGINE_PHASES
        self._phases: Dict[int, Tuple[EngineId, ...]] = {
            phase: tuple(engine_ids) for phase, engine_ids in phases.items()
        }
        self.phase_order: Tuple[int, ...] = tuple(phase_order)
        self.conditional_phase = conditional_phase
        self.require_complete = require_complete
        self.validate()

    def get(self, engine_id: Union[EngineId, str]) -> EngineConfig:
        """Look up an engine configuration; unknown ids raise EngineNotFoundError."""
        try:
            key = EngineId(engine_id)
        except ValueError:
            raise EngineNotFoundError(str(engine_id)) from None
        config = self._configs.get(key)
        if config is None:
            raise EngineNotFoundError(key.value)
        return config

    def __contains__(self, engine_id: object) -> bool:
        try:
            return EngineId(engine_id) in self._configs
        except ValueError:
            return False

    def __iter__(self) -> Iterator[EngineConfig]:
        return iter(self._configs.values())

    def __len__(self) -> int:
        return len(self._configs)

    def static_engines(self, phase: int) -> Tuple[EngineId, ...]:
        """Fixed engine list of a static phase (empty for the conditional phase)."""
        return self._phases.get(phase, ())

    def conditional_engines(self) -> Tuple[EngineConfig, ...]:
        """Conditional engines in priority order."""
        members = [c for c in self._configs.values() if c.conditional]
        order = list(EngineId)
        return tuple(sorted(members, key=lambda c: (c.priority, order.index(c.id))))

    def with_overrides(self, *configs: EngineConfig) -> "EngineRegistry":
        """New registry with the given configs replacing entries of the same id."""
        merged = dict(self._configs)
        for config in configs:
            merged[config.id] = config
        return EngineRegistry(
            merged.values(),
            phases=self._phases,
            phase_order=self.phase_order,
            conditional_phase=self.conditional_phase,
            require_complete=self.require_complete,
        )

    def validate(self) -> None:
        """Check the whole table; raise ConfigurationError listing every problem."""
        errors: List[str] = []

        missing_slots = [engine_id.value for engine_id in EngineId if engine_id not in RESULT_SLOTS]
        if missing_slots:
            errors.append(f"Engines without result slot: {', '.join(missing_slots)}")

        if self._duplicate_ids:
            errors.append(f"Duplicate engine configurations: {', '.join(self._duplicate_ids)}")

        if not self.phase_order:
            errors.append("Phase order is empty")
        if any(phase < 1 for phase in self.phase_order):
            errors.append(f"Phase numbers must be >= 1: {self.phase_order}")
        if list(self.phase_order) != sorted(set(self.phase_order)):
            errors.append(f"Phase order must be strictly ascending: {self.phase_order}")
        if self.conditional_phase is not None and self.conditional_phase not in self.phase_order:
            errors.append(f"Conditional phase {self.conditional_phase} is not a declared phase")

        if self.require_complete:
            absent = [engine_id.value for engine_id in EngineId if engine_id not in self._configs]
            if absent:
                errors.append(f"Engines without configuration: {', '.join(absent)}")

        for config in self._configs.values():
            name = config.id.value
            if config.timeout_ms <= 0:
                errors.append(f"{name}: timeout_ms must be > 0 (got {config.timeout_ms})")
            if config.priority < 1:
                errors.append(f"{name}: priority must be >= 1 (got {config.priority})")
            if config.max_retries < 0:
                errors.append(f"{name}: max_retries must be >= 0 (got {config.max_retries})")
            if config.phase < 1:
                errors.append(f"{name}: phase must be >= 1 (got {config.phase})")
            elif config.phase not in self.phase_order:
                errors.append(f"{name}: phase {config.phase} is not a declared phase")
            if config.conditional and config.phase != self.conditional_phase:
                errors.append(f"{name}: conditional engine outside conditional phase")
            if not config.conditional and config.phase == self.conditional_phase:
                errors.append(f"{name}: static engine inside conditional phase")
            if not config.fallback_text.strip():
                errors.append(f"{name}: fallback_text is empty")

        seen: Dict[EngineId, int] = {}
        for phase, engine_ids in self._phases.items():
            if phase not in self.phase_order:
                errors.append(f"Phase list {phase} is not a declared phase")
            if phase == self.conditional_phase and engine_ids:
                errors.append(f"Conditional phase {phase} must not have a static engine list")
            for engine_id in engine_ids:
                if engine_id in seen:
                    errors.append(
                        f"{engine_id.value}: listed in phase {seen[engine_id]} and phase {phase}"
                    )
                    continue
                seen[engine_id] = phase
                config = self._configs.get(engine_id)
                if config is None:
                    errors.append(f"{engine_id.value}: listed in phase {phase} but not configured")
                elif config.phase != phase:
                    errors.append(
                        f"{engine_id.value}: listed in phase {phase} but configured for phase {config.phase}"
                    )

        if errors:
            raise ConfigurationError("Invalid engine registry: " + "; ".join(errors))


# Validated on import so a broken table fails at startup
_DEFAULT_REGISTRY = EngineRegistry(ENGINE_CONFIGURATIONS, require_complete=True)
logger.debug(f"[registry] Loaded {len(_DEFAULT_REGISTRY)} engine configurations")


def default_registry() -> EngineRegistry:
    """The process-wide registry built from ENGINE_CONFIGURATIONS."""
    return _DEFAULT_REGISTRY
