"""Reactor simulation and genetic layout search for IC2 Experimental reactors."""

from reactor_evolution.errors import (
    BlueprintDecodeError,
    BlueprintEncodeError,
    ConfigError,
    EvaluationError,
    ReactorEvolutionError,
    UnknownComponentError,
)

__all__ = [
    "BlueprintDecodeError",
    "BlueprintEncodeError",
    "ConfigError",
    "EvaluationError",
    "ReactorEvolutionError",
    "UnknownComponentError",
]

__version__ = "0.1.0"
