"""Evolution layer: genome encoding, fitness, speciation, and the generational engine."""

from reactor_evolution.evolution.genome import MutationStats, ReactorGenome
from reactor_evolution.evolution.fitness import (
    EvaluatedGenome,
    compute_fitness,
    evaluate,
    fuel_efficiency,
)
from reactor_evolution.evolution.speciation import cluster_species, diversity_ratio, top_species
from reactor_evolution.evolution.stats import GenerationSummary, fitness_distribution
from reactor_evolution.evolution.engine import EvolutionEngine, Phase, simulate_genome

__all__ = [
    "EvaluatedGenome",
    "EvolutionEngine",
    "GenerationSummary",
    "MutationStats",
    "Phase",
    "ReactorGenome",
    "cluster_species",
    "compute_fitness",
    "diversity_ratio",
    "evaluate",
    "fitness_distribution",
    "fuel_efficiency",
    "simulate_genome",
    "top_species",
]
