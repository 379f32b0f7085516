"""Configuration layer: constants, typed config dataclasses, and the JSON loader."""

from reactor_evolution.config.constants import (
    BASE_MAX_HEAT,
    EMPTY_CELL,
    FUEL_CELL,
    GRID_COLS,
    GRID_ROWS,
    MAX_COOLDOWN_TICKS,
    MAX_SAFE_TEMPERATURE,
    MAX_SIMULATION_TICKS,
)
from reactor_evolution.config.types import (
    EvolutionConfig,
    FitnessConfig,
    GAConfig,
    MutationConfig,
    MutationProbabilities,
    ReactorConfig,
    SpeciationConfig,
)
from reactor_evolution.config.loader import (
    load_config,
    load_default_config,
    strip_json_comments,
    validate_against_factory,
)

__all__ = [
    "BASE_MAX_HEAT",
    "EMPTY_CELL",
    "EvolutionConfig",
    "FUEL_CELL",
    "FitnessConfig",
    "GAConfig",
    "GRID_COLS",
    "GRID_ROWS",
    "MAX_COOLDOWN_TICKS",
    "MAX_SAFE_TEMPERATURE",
    "MAX_SIMULATION_TICKS",
    "MutationConfig",
    "MutationProbabilities",
    "ReactorConfig",
    "SpeciationConfig",
    "load_config",
    "load_default_config",
    "strip_json_comments",
    "validate_against_factory",
]
