"""
Pydantic data models for the story engine orchestrator.
Engine configuration, the shared run context and the structured run result.
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class EngineId(str, Enum):
    """
    Closed set of enhancement engines.
    Every member must have a configuration and a result slot.
    """
    # Phase 1 - narrative architecture
    FRACTAL_NARRATIVE = "FractalNarrativeEngineV2"
    EPISODE_COHESION = "EpisodeCohesionEngineV2"
    CONFLICT_ARCHITECTURE = "ConflictArchitectureEngineV2"
    TENSION_ESCALATION = "TensionEscalationEngine"
    PACING_RHYTHM = "PacingRhythmEngineV2"
    FIVE_MINUTE_CANVAS = "FiveMinuteCanvasEngineV2"
    # Phase 2 - dialogue & character
    STRATEGIC_DIALOGUE = "StrategicDialogueEngine"
    CHARACTER = "CharacterEngineV2"
    # Phase 3 - world & environment
    WORLD_BUILDING = "WorldBuildingEngineV2"
    LIVING_WORLD = "LivingWorldEngineV2"
    THEME_INTEGRATION = "ThemeIntegrationEngineV2"
    # Phase 4 - format & engagement
    INTERACTIVE_CHOICE = "InteractiveChoiceEngineV2"
    SERIALIZED_CONTINUITY = "SerializedContinuityEngineV2"
    STORYBOARD = "StoryboardEngineV2"
    LANGUAGE = "LanguageEngineV2"
    # Phase 5 - genre specific (conditional)
    COMEDY_TIMING = "ComedyTimingEngineV2"
    HORROR_ATMOSPHERE = "HorrorAtmosphereEngineV2"
    ROMANCE_CHEMISTRY = "RomanceChemistryEngineV2"
    MYSTERY_CONSTRUCTION = "MysteryConstructionEngineV2"


# Destination slot of each engine in the consumer-facing notes structure.
RESULT_SLOTS: Dict[EngineId, str] = {
    EngineId.FRACTAL_NARRATIVE: "fractalNarrative",
    EngineId.EPISODE_COHESION: "episodeCohesion",
    EngineId.CONFLICT_ARCHITECTURE: "conflictArchitecture",
    EngineId.TENSION_ESCALATION: "tensionEscalation",
    EngineId.PACING_RHYTHM: "pacingRhythm",
    EngineId.FIVE_MINUTE_CANVAS: "fiveMinuteCanvas",
    EngineId.STRATEGIC_DIALOGUE: "strategicDialogue",
    EngineId.CHARACTER: "characterDepth",
    EngineId.WORLD_BUILDING: "worldBuilding",
    EngineId.LIVING_WORLD: "livingWorld",
    EngineId.THEME_INTEGRATION: "themeIntegration",
    EngineId.INTERACTIVE_CHOICE: "interactiveChoice",
    EngineId.SERIALIZED_CONTINUITY: "serializedContinuity",
    EngineId.STORYBOARD: "storyboard",
    EngineId.LANGUAGE: "languageStyle",
    EngineId.COMEDY_TIMING: "comedyTiming",
    EngineId.HORROR_ATMOSPHERE: "horrorAtmosphere",
    EngineId.ROMANCE_CHEMISTRY: "romanceChemistry",
    EngineId.MYSTERY_CONSTRUCTION: "mysteryConstruction",
}


class EngineCategory(str, Enum):
    """Functional grouping of engines."""
    NARRATIVE = "narrative"
    DIALOGUE = "dialogue"
    CHARACTER = "character"
    WORLD = "world"
    THEME = "theme"
    ENGAGEMENT = "engagement"
    CONTINUITY = "continuity"
    VISUAL = "visual"
    LANGUAGE = "language"
    GENRE = "genre"


class RunMode(str, Enum):
    """
    Run mode selects which configured backend serves the run.
    BEAST favours the strongest model, STABLE the cheaper, steadier one.
    """
    BEAST = "beast"
    STABLE = "stable"


# ============================================================================
# Engine Configuration
# ============================================================================

class GenerationParams(BaseModel):
    """Model parameters forwarded verbatim to the generation backend."""
    model_config = ConfigDict(frozen=True, protected_namespaces=())

    temperature: float = Field(default=0.8, ge=0.0, le=2.0)
    max_tokens: int = Field(default=1200, gt=0)
    model: Optional[str] = Field(
        default=None,
        description="Per-engine model override; backend default when None"
    )


class EngineConfig(BaseModel):
    """
    Static configuration of one enhancement engine.
    Created once from the registry table and never mutated.
    """
    model_config = ConfigDict(frozen=True)

    id: EngineId
    category: EngineCategory
    phase: int = Field(..., description="Execution order; phases run ascending")
    priority: int = Field(default=1, description="Informational ordering within a phase")
    timeout_ms: int
    max_retries: int
    generation: GenerationParams = Field(default_factory=GenerationParams)
    system_prompt: str
    task_prompt: str = Field(..., description="Task framing half of the instruction template")
    specific_instructions: str = Field(..., description="Specific guidance half of the instruction template")
    fallback_text: str = Field(..., min_length=1)
    conditional: bool = Field(
        default=False,
        description="Selected per run from genre/tone instead of statically"
    )

    @property
    def slot(self) -> str:
        return RESULT_SLOTS[self.id]


# ============================================================================
# Run Context
# ============================================================================

class CharacterContext(BaseModel):
    """Character reference data. Unknown keys are kept, never dropped."""
    model_config = ConfigDict(frozen=True, extra="allow")

    name: str = "Character"
    archetype: str = "Character"
    description: str = "Character development in progress"
    arc: str = "Arc to be developed"
    relationships: Any = "Relationships to be explored"
    motivation: str = "Motivation to be established"
    internal_conflict: str = "Internal journey to unfold"
    voice: str = "Voice to be developed"


class SceneContext(BaseModel):
    """One scene of the subject episode."""
    model_config = ConfigDict(frozen=True, extra="allow")

    title: str = "Untitled Scene"
    content: str = "Scene content to be developed"


class LocationContext(BaseModel):
    model_config = ConfigDict(frozen=True, extra="allow")

    name: str = "Location"
    description: str = ""
    atmosphere: str = ""


class WorldContext(BaseModel):
    model_config = ConfigDict(frozen=True, extra="allow")

    setting: str = "Contemporary setting"
    cultural_context: str = "Modern society"
    locations: Tuple[LocationContext, ...] = ()


class NarrativeElements(BaseModel):
    model_config = ConfigDict(frozen=True, extra="allow")

    callbacks: Any = "To be established"
    foreshadowing: Any = "To be woven in"
    recurring_motifs: Any = "To be developed"


class RunContext(BaseModel):
    """
    Everything every engine prompt needs, assembled once per run.
    Shared read-only by all engines of the run.
    """
    model_config = ConfigDict(frozen=True)

    series_title: str = "Series"
    title: str
    episode_number: int = 1
    synopsis: str = ""
    premise: str = ""
    genres: Tuple[str, ...] = ("drama",)
    tone: str = ""
    theme: str = ""
    scene_count: int = 1
    scenes: Tuple[SceneContext, ...] = ()
    characters: Tuple[CharacterContext, ...] = ()
    relationships: Any = None
    world_building: WorldContext = Field(default_factory=WorldContext)
    narrative_elements: NarrativeElements = Field(default_factory=NarrativeElements)
    branching_options: Any = None

    # Delivery format
    target_runtime: str = "5 minutes"
    format: str = "episodic series"
    audience: str = "general"
    platform: str = "streaming"


# ============================================================================
# Run Options and Results
# ============================================================================

class RunOptions(BaseModel):
    """Caller options for a single orchestration run."""
    include_conditional_tasks: bool = True
    timeout_override_ms: Optional[int] = Field(default=None, gt=0)
    mode: RunMode = RunMode.BEAST
    max_concurrency: Optional[int] = Field(
        default=None,
        ge=1,
        description="Upper bound on in-flight engines within one phase"
    )


class TaskOutcome(BaseModel):
    """Terminal outcome of one engine execution."""
    engine_id: EngineId
    success: bool
    content: str
    execution_time_ms: int = Field(default=0, ge=0)
    attempts_used: int = Field(default=0, ge=0)
    quality_score: int = Field(default=0, ge=0, le=100)
    error_message: Optional[str] = None

    @property
    def retries_used(self) -> int:
        """Failed attempts before the terminal state."""
        if self.success:
            return max(self.attempts_used - 1, 0)
        return self.attempts_used


class EngineMetadata(BaseModel):
    """Per-engine performance record kept in the run metadata."""
    success: bool
    execution_time_ms: int
    retries_used: int
    quality_score: int = Field(..., ge=0, le=100)
    output_length: int
    phase: int
    error: Optional[str] = None


class RunMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_tasks: int = 0
    succeeded_tasks: int = 0
    failed_tasks: int = 0
    per_phase_timings_ms: List[int] = Field(default_factory=list)
    overall_quality_score: int = Field(default=0, ge=0, le=100)
    per_task_metadata: Dict[str, EngineMetadata] = Field(default_factory=dict)
    total_execution_time_ms: int = 0
    success_rate: float = 0.0
    errors: List[str] = Field(default_factory=list)
    mode: RunMode = RunMode.BEAST
    aborted: bool = False
    abort_reason: Optional[str] = None


class RunResult(BaseModel):
    """
    Complete output of one orchestration run.
    `notes` holds exactly one entry per selected engine id.
    """
    model_config = ConfigDict(frozen=True)

    notes: Dict[str, str] = Field(default_factory=dict)
    metadata: RunMetadata = Field(default_factory=RunMetadata)

    def slot_notes(self) -> Dict[str, str]:
        """Notes keyed by result slot name instead of engine id."""
        return {RESULT_SLOTS[EngineId(engine_id)]: text for engine_id, text in self.notes.items()}

    @property
    def has_failures(self) -> bool:
        return self.metadata.failed_tasks > 0
