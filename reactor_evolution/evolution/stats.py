"""Per-generation summary statistics."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np

from reactor_evolution.evolution.fitness import EvaluatedGenome
from reactor_evolution.evolution.genome import MutationStats


@dataclass(frozen=True)
class GenerationSummary:
    """What one generation looked like before breeding the next."""

    generation: int
    phase: str
    population_size: int
    alpha_fitness: float
    alpha_code: str
    best_fitness_so_far: float
    total_fitness: float
    mean_fitness: float
    std_fitness: float
    p25_fitness: float
    median_fitness: float
    p75_fitness: float
    stable_count: int
    species_count: int
    diversity_ratio: float
    injected_random: int
    mutations: MutationStats
    elapsed_seconds: float

    @property
    def stable_ratio(self) -> float:
        return self.stable_count / self.population_size if self.population_size else 0.0

    def describe(self) -> str:
        return (
            f"Generation {self.generation} [{self.phase}] best fitness: {self.alpha_fitness:.2f}, "
            f"mean: {self.mean_fitness:.2f}, stable: {self.stable_count}/{self.population_size}, "
            f"species: {self.species_count}, took {self.elapsed_seconds * 1000:.1f}ms"
        )


def fitness_distribution(evaluated: Sequence[EvaluatedGenome]) -> dict[str, float]:
    """Mean, standard deviation, and quartiles of population fitness."""
    if not evaluated:
        return {"total": 0.0, "mean": 0.0, "std": 0.0, "p25": 0.0, "median": 0.0, "p75": 0.0}
    values = np.array([item.fitness for item in evaluated], dtype=np.float64)
    p25, median, p75 = np.percentile(values, [25, 50, 75])
    return {
        "total": float(values.sum()),
        "mean": float(values.mean()),
        "std": float(values.std()),
        "p25": float(p25),
        "median": float(median),
        "p75": float(p75),
    }
