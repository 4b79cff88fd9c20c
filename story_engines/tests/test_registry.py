"""
Unit tests for the engine registry.

Tests cover:
- Completeness of the default engine table
- Lookup and EngineNotFoundError
- Load-time validation of timeouts, retries and phases
- Overrides
"""

import pytest

from story_engines.core import (
    CONDITIONAL_PHASE,
    ENGINE_CONFIGURATIONS,
    ENGINE_PHASES,
    PHASE_ORDER,
    ConfigurationError,
    EngineNotFoundError,
    EngineRegistry,
    default_registry,
)
from story_engines.models import RESULT_SLOTS, EngineCategory, EngineConfig, EngineId


def _config(engine_id: EngineId = EngineId.FRACTAL_NARRATIVE, **overrides) -> EngineConfig:
    values = dict(
        id=engine_id,
        category=EngineCategory.NARRATIVE,
        phase=1,
        timeout_ms=1000,
        max_retries=1,
        system_prompt="system",
        task_prompt="task",
        specific_instructions="instructions",
        fallback_text="• fallback",
    )
    values.update(overrides)
    return EngineConfig(**values)


class TestDefaultRegistry:
    """Tests for the built-in engine table."""

    def test_every_engine_is_configured(self):
        registry = default_registry()
        assert len(registry) == len(EngineId)
        for engine_id in EngineId:
            assert registry.get(engine_id).id == engine_id

    def test_every_engine_has_a_slot(self):
        assert set(RESULT_SLOTS) == set(EngineId)
        assert len(set(RESULT_SLOTS.values())) == len(EngineId)

    def test_fallbacks_are_attached_and_non_empty(self):
        for config in ENGINE_CONFIGURATIONS:
            assert config.fallback_text.strip()

    def test_static_phases_match_configs(self):
        registry = default_registry()
        for phase, engine_ids in ENGINE_PHASES.items():
            for engine_id in engine_ids:
                assert registry.get(engine_id).phase == phase

    def test_conditional_phase_holds_genre_engines(self):
        registry = default_registry()
        conditional = [config.id for config in registry.conditional_engines()]
        assert conditional == [
            EngineId.COMEDY_TIMING,
            EngineId.HORROR_ATMOSPHERE,
            EngineId.ROMANCE_CHEMISTRY,
            EngineId.MYSTERY_CONSTRUCTION,
        ]
        assert registry.static_engines(CONDITIONAL_PHASE) == ()
        assert all(config.phase == CONDITIONAL_PHASE for config in registry.conditional_engines())

    def test_phase_order(self):
        assert default_registry().phase_order == PHASE_ORDER == (1, 2, 3, 4, 5)

    def test_original_timeouts_and_retries(self):
        registry = default_registry()
        assert registry.get(EngineId.FRACTAL_NARRATIVE).timeout_ms == 30000
        assert registry.get(EngineId.TENSION_ESCALATION).timeout_ms == 20000
        assert all(config.max_retries == 2 for config in registry)

    def test_slot_property(self):
        assert default_registry().get(EngineId.CHARACTER).slot == "characterDepth"
        assert default_registry().get(EngineId.LANGUAGE).slot == "languageStyle"

    def test_default_registry_is_cached(self):
        assert default_registry() is default_registry()

    def test_default_registry_built_on_import(self):
        from story_engines.core import registry as registry_module

        assert isinstance(registry_module._DEFAULT_REGISTRY, EngineRegistry)
        assert registry_module._DEFAULT_REGISTRY is default_registry()
        assert len(registry_module._DEFAULT_REGISTRY) == len(EngineId)


class TestLookup:
    """Tests for EngineRegistry.get."""

    def test_get_by_string_value(self):
        config = default_registry().get("CharacterEngineV2")
        assert config.id == EngineId.CHARACTER

    def test_unknown_id_raises(self):
        with pytest.raises(EngineNotFoundError) as exc_info:
            default_registry().get("NoSuchEngine")
        assert exc_info.value.engine_id == "NoSuchEngine"
        assert "Engine configuration not found: NoSuchEngine" in str(exc_info.value)

    def test_not_found_is_a_key_error(self):
        with pytest.raises(KeyError):
            default_registry().get("NoSuchEngine")

    def test_known_but_unconfigured_id_raises(self):
        registry = EngineRegistry([_config()], phases={1: (EngineId.FRACTAL_NARRATIVE,)})
        with pytest.raises(EngineNotFoundError):
            registry.get(EngineId.CHARACTER)

    def test_contains(self):
        registry = default_registry()
        assert EngineId.STORYBOARD in registry
        assert "StoryboardEngineV2" in registry
        assert "NoSuchEngine" not in registry


class TestValidation:
    """Tests for load-time configuration validation."""

    def _registry(self, config: EngineConfig) -> EngineRegistry:
        return EngineRegistry([config], phases={1: (config.id,)} if config.phase == 1 else {})

    def test_valid_minimal_registry(self):
        registry = self._registry(_config())
        assert len(registry) == 1

    def test_zero_timeout_rejected(self):
        with pytest.raises(ConfigurationError, match="timeout_ms"):
            self._registry(_config(timeout_ms=0))

    def test_negative_retries_rejected(self):
        with pytest.raises(ConfigurationError, match="max_retries"):
            self._registry(_config(max_retries=-1))

    def test_zero_retries_allowed(self):
        assert len(self._registry(_config(max_retries=0))) == 1

    def test_phase_below_one_rejected(self):
        with pytest.raises(ConfigurationError, match="phase must be >= 1"):
            self._registry(_config(phase=0))

    def test_undeclared_phase_rejected(self):
        with pytest.raises(ConfigurationError, match="not a declared phase"):
            self._registry(_config(phase=9))

    def test_blank_fallback_rejected(self):
        with pytest.raises(ConfigurationError, match="fallback_text"):
            self._registry(_config(fallback_text="   "))

    def test_phase_list_mismatch_rejected(self):
        config = _config(phase=2)
        with pytest.raises(ConfigurationError, match="configured for phase 2"):
            EngineRegistry([config], phases={1: (config.id,)})

    def test_unconfigured_phase_member_rejected(self):
        with pytest.raises(ConfigurationError, match="not configured"):
            EngineRegistry([_config()], phases={1: (EngineId.FRACTAL_NARRATIVE, EngineId.CHARACTER)})

    def test_engine_listed_twice_rejected(self):
        with pytest.raises(ConfigurationError, match="listed in phase"):
            EngineRegistry(
                [_config()],
                phases={1: (EngineId.FRACTAL_NARRATIVE, EngineId.FRACTAL_NARRATIVE)},
            )

    def test_conditional_outside_conditional_phase_rejected(self):
        with pytest.raises(ConfigurationError, match="conditional engine outside"):
            self._registry(_config(conditional=True))

    def test_duplicate_configuration_rejected(self):
        with pytest.raises(ConfigurationError, match="Duplicate"):
            EngineRegistry([_config(), _config()], phases={1: (EngineId.FRACTAL_NARRATIVE,)})

    def test_require_complete(self):
        with pytest.raises(ConfigurationError, match="without configuration"):
            EngineRegistry(
                [_config()],
                phases={1: (EngineId.FRACTAL_NARRATIVE,)},
                require_complete=True,
            )

    def test_all_problems_reported_together(self):
        with pytest.raises(ConfigurationError) as exc_info:
            self._registry(_config(timeout_ms=-5, max_retries=-1))
        message = str(exc_info.value)
        assert "timeout_ms" in message
        assert "max_retries" in message


class TestOverrides:
    """Tests for EngineRegistry.with_overrides."""

    def test_override_replaces_entry(self):
        registry = default_registry()
        original = registry.get(EngineId.CHARACTER)
        tuned = original.model_copy(update={"timeout_ms": 50})

        overridden = registry.with_overrides(tuned)

        assert overridden.get(EngineId.CHARACTER).timeout_ms == 50
        assert registry.get(EngineId.CHARACTER).timeout_ms == original.timeout_ms
        assert len(overridden) == len(registry)

    def test_override_is_revalidated(self):
        bad = default_registry().get(EngineId.CHARACTER).model_copy(update={"timeout_ms": 0})
        with pytest.raises(ConfigurationError):
            default_registry().with_overrides(bad)
