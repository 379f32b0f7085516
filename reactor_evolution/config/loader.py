"""Load a :class:`GAConfig` from a commented JSON document.

The document uses camelCase keys grouped into sections::

    {
      // grid and mode applied to every candidate
      "reactor": {"rowCount": 6, "colCount": 9},
      "evolution": {"populationSize": 100, "maxGeneration": 50, ...},
      "speciation": {...}, "fitness": {...},
      "mutation": {"refinement": {...}, "exploration": {...}},
      "components": {"valid": [-1, 999, 9, 14]},
      "fuels": {"valid": [1, 2, 3]},
      "ruleset": "ic2"
    }

Both ``//`` line comments and ``/* */`` block comments are allowed. Missing
keys fall back to dataclass defaults; unknown keys are rejected.
"""

from __future__ import annotations

import json
import re
from importlib import resources
from pathlib import Path
from typing import Any

from reactor_evolution.config.constants import EMPTY_CELL, FUEL_CELL
from reactor_evolution.config.types import (
    EvolutionConfig,
    FitnessConfig,
    GAConfig,
    MutationConfig,
    MutationProbabilities,
    ReactorConfig,
    SpeciationConfig,
)
from reactor_evolution.domain.components import Ruleset
from reactor_evolution.domain.factory import ComponentFactory
from reactor_evolution.errors import ConfigError

DEFAULT_CONFIG_RESOURCE = "default_config.json"

# Strings are matched first so comment markers inside them survive.
_COMMENT_PATTERN = re.compile(r'"(?:\\.|[^"\\])*"|//[^\n]*|/\*.*?\*/', re.DOTALL)

_REACTOR_KEYS = {
    "rowCount": "row_count",
    "colCount": "col_count",
    "maxSimulationTicks": "max_simulation_ticks",
    "fluid": "fluid",
    "pulsed": "pulsed",
    "automated": "automated",
    "usingCoolantInjectors": "using_coolant_injectors",
    "onPulse": "on_pulse",
    "offPulse": "off_pulse",
    "suspendTemp": "suspend_temp",
    "resumeTemp": "resume_temp",
}
_EVOLUTION_KEYS = {
    "populationSize": "population_size",
    "maxGeneration": "max_generation",
    "phaseLengthGenerations": "phase_length_generations",
    "alphaCount": "alpha_count",
    "tournamentSizeK": "tournament_size_k",
    "lowDiversityThreshold": "low_diversity_threshold",
    "lowDiversityCullingRatio": "low_diversity_culling_ratio",
    "seedFile": "seed_file",
}
_SPECIATION_KEYS = {
    "speciesSimilarityThreshold": "species_similarity_threshold",
    "fuelLayoutWeight": "fuel_layout_weight",
    "componentsLayoutWeight": "components_layout_weight",
}
_FITNESS_KEYS = {
    "euOutputWeight": "eu_output_weight",
    "fuelEfficiencyWeight": "fuel_efficiency_weight",
    "metaFuelEfficiencyTarget": "meta_fuel_efficiency_target",
    "componentBrokenPenalty": "component_broken_penalty",
    "heatPenaltyMultiplier": "heat_penalty_multiplier",
    "maxSafeTemperature": "max_safe_temperature",
}
_MUTATION_KEYS = {
    "probabilityFuelMutation": "fuel",
    "probabilityLayoutMutation": "layout",
    "probabilityLayoutPerSlotMutation": "layout_per_slot",
}
_INT_FIELDS = {
    "row_count",
    "col_count",
    "max_simulation_ticks",
    "on_pulse",
    "off_pulse",
    "suspend_temp",
    "resume_temp",
    "population_size",
    "max_generation",
    "phase_length_generations",
    "alpha_count",
    "tournament_size_k",
}
_BOOL_FIELDS = {"fluid", "pulsed", "automated", "using_coolant_injectors"}
_TOP_LEVEL_KEYS = {
    "reactor",
    "evolution",
    "speciation",
    "fitness",
    "mutation",
    "components",
    "fuels",
    "ruleset",
}


def strip_json_comments(text: str) -> str:
    """Remove ``//`` and ``/* */`` comments outside of string literals."""

    def _keep_strings(match: re.Match[str]) -> str:
        token = match.group(0)
        return token if token.startswith('"') else ""

    return _COMMENT_PATTERN.sub(_keep_strings, text)


def _coerce(value: object, key: str, target: str) -> object:
    """Coerce a raw JSON value for ``target``; rejects booleans as numbers."""
    if target in _BOOL_FIELDS:
        if not isinstance(value, bool):
            raise ConfigError(f"{key} must be a boolean")
        return value
    if target == "seed_file":
        if value is None:
            return None
        if not isinstance(value, str) or not value:
            raise ConfigError(f"{key} must be a non-empty string")
        return Path(value)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"{key} must be a number")
    if target in _INT_FIELDS:
        if isinstance(value, float) and not value.is_integer():
            raise ConfigError(f"{key} must be an integer value")
        return int(value)
    return float(value)


def _section(raw: dict[str, Any], name: str) -> dict[str, Any]:
    value = raw.get(name, {})
    if not isinstance(value, dict):
        raise ConfigError(f"{name} must be an object")
    return value


def _map_keys(section: dict[str, Any], mapping: dict[str, str], where: str) -> dict[str, object]:
    unknown = sorted(set(section) - set(mapping))
    if unknown:
        raise ConfigError(f"unknown key(s) in {where}: {', '.join(unknown)}")
    return {
        mapping[key]: _coerce(value, f"{where}.{key}", mapping[key])
        for key, value in section.items()
    }


def _id_list(raw: dict[str, Any], name: str) -> tuple[int, ...]:
    section = _section(raw, name)
    values = section.get("valid")
    if not isinstance(values, list):
        raise ConfigError(f"{name}.valid must be a list of component ids")
    ids: list[int] = []
    for value in values:
        if isinstance(value, bool) or not isinstance(value, int):
            raise ConfigError(f"{name}.valid entries must be integers, got {value!r}")
        ids.append(value)
    return tuple(ids)


def parse_config_document(raw: dict[str, Any], base_dir: Path | None = None) -> GAConfig:
    """Validate a decoded JSON document and build a :class:`GAConfig`."""
    if not isinstance(raw, dict):
        raise ConfigError("configuration document must be a JSON object")
    unknown = sorted(set(raw) - _TOP_LEVEL_KEYS)
    if unknown:
        raise ConfigError(f"unknown top-level key(s): {', '.join(unknown)}")

    try:
        reactor = ReactorConfig(**_map_keys(_section(raw, "reactor"), _REACTOR_KEYS, "reactor"))  # type: ignore[arg-type]
        evolution_kwargs = _map_keys(_section(raw, "evolution"), _EVOLUTION_KEYS, "evolution")
        seed_file = evolution_kwargs.get("seed_file")
        if isinstance(seed_file, Path) and not seed_file.is_absolute() and base_dir is not None:
            evolution_kwargs["seed_file"] = base_dir / seed_file
        evolution = EvolutionConfig(**evolution_kwargs)  # type: ignore[arg-type]
        speciation = SpeciationConfig(
            **_map_keys(_section(raw, "speciation"), _SPECIATION_KEYS, "speciation")  # type: ignore[arg-type]
        )
        fitness = FitnessConfig(**_map_keys(_section(raw, "fitness"), _FITNESS_KEYS, "fitness"))  # type: ignore[arg-type]
        mutation_raw = _section(raw, "mutation")
        unknown_phases = sorted(set(mutation_raw) - {"refinement", "exploration"})
        if unknown_phases:
            raise ConfigError(f"unknown mutation phase(s): {', '.join(unknown_phases)}")
        defaults = MutationConfig()
        phases: dict[str, MutationProbabilities] = {}
        for phase in ("refinement", "exploration"):
            if phase in mutation_raw:
                phases[phase] = MutationProbabilities(
                    **_map_keys(_section(mutation_raw, phase), _MUTATION_KEYS, f"mutation.{phase}")  # type: ignore[arg-type]
                )
            else:
                phases[phase] = getattr(defaults, phase)
        mutation = MutationConfig(**phases)
        ruleset_raw = raw.get("ruleset", Ruleset.IC2.value)
        try:
            ruleset = Ruleset(ruleset_raw)
        except ValueError as exc:
            choices = ", ".join(r.value for r in Ruleset)
            raise ConfigError(f"ruleset must be one of: {choices}") from exc
        kwargs: dict[str, Any] = {}
        if "components" in raw:
            kwargs["components"] = _id_list(raw, "components")
        if "fuels" in raw:
            kwargs["fuels"] = _id_list(raw, "fuels")
        return GAConfig(
            reactor=reactor,
            evolution=evolution,
            speciation=speciation,
            fitness=fitness,
            mutation=mutation,
            ruleset=ruleset,
            **kwargs,
        )
    except TypeError as exc:
        raise ConfigError(f"invalid configuration: {exc}") from exc


def load_config(path: Path | str) -> GAConfig:
    """Read, strip comments from, and validate a JSON configuration file."""
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise ConfigError(f"config file not found: {path}") from exc
    except OSError as exc:
        raise ConfigError(f"cannot read config file {path}: {exc}") from exc
    try:
        raw = json.loads(strip_json_comments(text))
    except json.JSONDecodeError as exc:
        raise ConfigError(f"invalid JSON in {path}: {exc}") from exc
    return parse_config_document(raw, base_dir=path.parent)


def load_default_config() -> GAConfig:
    """Load the configuration document shipped with the package."""
    text = (
        resources.files("reactor_evolution.config")
        .joinpath(DEFAULT_CONFIG_RESOURCE)
        .read_text(encoding="utf-8")
    )
    return parse_config_document(json.loads(strip_json_comments(text)))


def validate_against_factory(config: GAConfig, factory: ComponentFactory) -> None:
    """Check that every configured id is known to ``factory``.

    Raises:
        ConfigError: an id is unknown, or a fuel id is not a fuel rod.
    """
    for component_id in config.components:
        if component_id in (EMPTY_CELL, FUEL_CELL):
            continue
        if not factory.has(component_id):
            raise ConfigError(f"components.valid contains unknown id {component_id}")
    for fuel_id in config.fuels:
        if not factory.is_fuel(fuel_id):
            raise ConfigError(f"fuels.valid id {fuel_id} is not a fuel rod")
