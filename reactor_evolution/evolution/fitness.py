"""Fitness function scoring one simulation result."""

from __future__ import annotations

import math
from dataclasses import dataclass

from reactor_evolution.config.types import FitnessConfig
from reactor_evolution.evolution.genome import ReactorGenome
from reactor_evolution.simulation.result import SimulationResult


@dataclass(frozen=True)
class EvaluatedGenome:
    """A genome with its simulation result and scalar fitness."""

    genome: ReactorGenome
    result: SimulationResult
    fitness: float


def fuel_efficiency(genome: ReactorGenome, result: SimulationResult) -> float:
    """Average output per fuel cell; 0.0 for layouts without fuel."""
    rods = genome.fuel_rod_count
    if rods == 0:
        return 0.0
    return result.average_output / rods


def compute_fitness(
    config: FitnessConfig, genome: ReactorGenome, result: SimulationResult
) -> float:
    """Score a result; exactly 0.0 once peak heat exceeds the safety ceiling.

    ``output * w_out + output * sqrt(per_rod / target) * w_eff``, scaled by
    the broken-component penalty when anything broke, minus
    ``peak_temp * heat_penalty``.
    """
    if result.max_temp > config.max_safe_temperature:
        return 0.0
    output = result.average_output
    per_rod = max(fuel_efficiency(genome, result), 0.0)
    fitness = output * config.eu_output_weight
    fitness += (
        output
        * math.sqrt(per_rod)
        / math.sqrt(config.meta_fuel_efficiency_target)
        * config.fuel_efficiency_weight
    )
    if result.any_component_broken:
        fitness *= config.component_broken_penalty
    fitness -= result.max_temp * config.heat_penalty_multiplier
    return fitness


def evaluate(
    config: FitnessConfig, genome: ReactorGenome, result: SimulationResult
) -> EvaluatedGenome:
    return EvaluatedGenome(genome, result, compute_fitness(config, genome, result))
