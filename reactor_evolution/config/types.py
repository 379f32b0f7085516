"""Configuration dataclasses for reactor layout search.

All frozen dataclasses that parameterise the grid, the evolution loop,
speciation, fitness, and mutation live here. Every dataclass validates its
own fields in ``__post_init__`` and raises :class:`ConfigError`, so an
invalid configuration never reaches the simulator or the optimizer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from reactor_evolution.config.constants import (
    DEFAULT_OFF_PULSE,
    DEFAULT_ON_PULSE,
    DEFAULT_RESUME_TEMP,
    DEFAULT_SUSPEND_TEMP,
    EMPTY_CELL,
    FUEL_CELL,
    GRID_COLS,
    GRID_ROWS,
    MAX_BLUEPRINT_SETTING,
    MAX_GRID_DIMENSION,
    MAX_SAFE_TEMPERATURE,
    MAX_SIMULATION_TICKS,
)
from reactor_evolution.domain.components import Ruleset
from reactor_evolution.errors import ConfigError

__all__ = [
    "EvolutionConfig",
    "FitnessConfig",
    "GAConfig",
    "MutationConfig",
    "MutationProbabilities",
    "ReactorConfig",
    "SpeciationConfig",
]


def _require_probability(value: float, name: str) -> None:
    if not 0.0 <= value <= 1.0:
        raise ConfigError(f"{name} must be in [0.0, 1.0]")


# ---------------------------------------------------------------------------
# Section dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ReactorConfig:
    """Grid dimensions and operating mode applied to every candidate grid."""

    row_count: int = GRID_ROWS
    col_count: int = GRID_COLS
    max_simulation_ticks: int = MAX_SIMULATION_TICKS
    fluid: bool = False
    pulsed: bool = False
    automated: bool = False
    using_coolant_injectors: bool = False
    on_pulse: int = DEFAULT_ON_PULSE
    off_pulse: int = DEFAULT_OFF_PULSE
    suspend_temp: int = DEFAULT_SUSPEND_TEMP
    resume_temp: int = DEFAULT_RESUME_TEMP

    def __post_init__(self) -> None:
        # Ranges a blueprint code can carry.
        if not 1 <= self.row_count <= MAX_GRID_DIMENSION:
            raise ConfigError(f"row_count must be in [1, {MAX_GRID_DIMENSION}]")
        if not 1 <= self.col_count <= MAX_GRID_DIMENSION:
            raise ConfigError(f"col_count must be in [1, {MAX_GRID_DIMENSION}]")
        if not 1 <= self.max_simulation_ticks <= MAX_BLUEPRINT_SETTING:
            raise ConfigError(f"max_simulation_ticks must be in [1, {MAX_BLUEPRINT_SETTING}]")
        for name in ("on_pulse", "off_pulse", "suspend_temp", "resume_temp"):
            if not 0 <= getattr(self, name) <= MAX_BLUEPRINT_SETTING:
                raise ConfigError(f"{name} must be in [0, {MAX_BLUEPRINT_SETTING}]")
        if self.pulsed and self.on_pulse + self.off_pulse < 1:
            raise ConfigError("pulsed reactors need on_pulse + off_pulse >= 1")

    @property
    def layout_size(self) -> int:
        return self.row_count * self.col_count


@dataclass(frozen=True)
class EvolutionConfig:
    """Population sizing, generation count, phases, and selection pressure."""

    population_size: int = 100
    max_generation: int = 50
    phase_length_generations: int = 10
    alpha_count: int = 2
    tournament_size_k: int = 3
    low_diversity_threshold: float = 0.2
    low_diversity_culling_ratio: float = 0.1
    seed_file: Path | None = None

    def __post_init__(self) -> None:
        if self.population_size < 1:
            raise ConfigError("population_size must be >= 1")
        if self.max_generation < 1:
            raise ConfigError("max_generation must be >= 1")
        if self.phase_length_generations < 1:
            raise ConfigError("phase_length_generations must be >= 1")
        if not 0 <= self.alpha_count <= self.population_size:
            raise ConfigError("alpha_count must be in [0, population_size]")
        if self.tournament_size_k < 1:
            raise ConfigError("tournament_size_k must be >= 1")
        _require_probability(self.low_diversity_threshold, "low_diversity_threshold")
        _require_probability(self.low_diversity_culling_ratio, "low_diversity_culling_ratio")


@dataclass(frozen=True)
class SpeciationConfig:
    """Similarity blend weights and the same-species threshold."""

    species_similarity_threshold: float = 0.8
    fuel_layout_weight: float = 0.5
    components_layout_weight: float = 0.5

    def __post_init__(self) -> None:
        _require_probability(self.species_similarity_threshold, "species_similarity_threshold")
        if self.fuel_layout_weight < 0 or self.components_layout_weight < 0:
            raise ConfigError("speciation weights must be >= 0")
        if abs(self.fuel_layout_weight + self.components_layout_weight - 1.0) > 1e-9:
            raise ConfigError("fuel_layout_weight + components_layout_weight must equal 1.0")


@dataclass(frozen=True)
class FitnessConfig:
    """Weights of the fitness function and its hard safety ceiling."""

    eu_output_weight: float = 1.0
    fuel_efficiency_weight: float = 1.0
    meta_fuel_efficiency_target: float = 30.0
    component_broken_penalty: float = 0.5
    heat_penalty_multiplier: float = 0.0
    max_safe_temperature: float = MAX_SAFE_TEMPERATURE

    def __post_init__(self) -> None:
        if self.meta_fuel_efficiency_target <= 0:
            raise ConfigError("meta_fuel_efficiency_target must be > 0")
        _require_probability(self.component_broken_penalty, "component_broken_penalty")
        if self.heat_penalty_multiplier < 0:
            raise ConfigError("heat_penalty_multiplier must be >= 0")
        if self.max_safe_temperature <= 0:
            raise ConfigError("max_safe_temperature must be > 0")


@dataclass(frozen=True)
class MutationProbabilities:
    """Per-channel mutation probabilities for one search phase."""

    fuel: float = 0.05
    layout: float = 0.3
    layout_per_slot: float = 0.0

    def __post_init__(self) -> None:
        _require_probability(self.fuel, "probability_fuel_mutation")
        _require_probability(self.layout, "probability_layout_mutation")
        _require_probability(self.layout_per_slot, "probability_layout_per_slot_mutation")


@dataclass(frozen=True)
class MutationConfig:
    """Mutation profiles for the refinement and exploration phases."""

    refinement: MutationProbabilities = field(default_factory=MutationProbabilities)
    exploration: MutationProbabilities = field(
        default_factory=lambda: MutationProbabilities(fuel=0.2, layout=0.8, layout_per_slot=0.05)
    )


# ---------------------------------------------------------------------------
# Top-level config
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class GAConfig:
    """Complete search configuration.

    ``components`` is the per-cell pool and may contain ``EMPTY_CELL`` and
    ``FUEL_CELL``; ``fuels`` lists the fuel-rod ids a genome may select.
    """

    reactor: ReactorConfig = field(default_factory=ReactorConfig)
    evolution: EvolutionConfig = field(default_factory=EvolutionConfig)
    speciation: SpeciationConfig = field(default_factory=SpeciationConfig)
    fitness: FitnessConfig = field(default_factory=FitnessConfig)
    mutation: MutationConfig = field(default_factory=MutationConfig)
    components: tuple[int, ...] = (EMPTY_CELL, FUEL_CELL, 7, 9, 10, 11, 13, 14, 17)
    fuels: tuple[int, ...] = (1, 2, 3)
    ruleset: Ruleset = Ruleset.IC2

    def __post_init__(self) -> None:
        if not self.components:
            raise ConfigError("components.valid must not be empty")
        if not self.fuels:
            raise ConfigError("fuels.valid must not be empty")
        if FUEL_CELL in self.fuels or EMPTY_CELL in self.fuels:
            raise ConfigError("fuels.valid must contain real fuel-rod ids only")

    @property
    def layout_size(self) -> int:
        return self.reactor.layout_size

    @classmethod
    def from_dict(cls, raw: dict[str, Any], base_dir: Path | None = None) -> GAConfig:
        """Build a config from the camelCase JSON document structure.

        Relative ``seedFile`` paths resolve against ``base_dir``.
        """
        from reactor_evolution.config.loader import parse_config_document

        return parse_config_document(raw, base_dir)
