"""Greedy species clustering and species-distinct reporting."""

from __future__ import annotations

from collections.abc import Sequence

from reactor_evolution.config.types import GAConfig
from reactor_evolution.evolution.fitness import EvaluatedGenome
from reactor_evolution.evolution.genome import ReactorGenome


def cluster_species(config: GAConfig, genomes: Sequence[ReactorGenome]) -> list[list[int]]:
    """Group genome indices into species.

    Genomes are visited in order. Each joins the first species whose
    representative (its first member) is at least as similar as the
    configured threshold; otherwise it founds a new species.
    """
    threshold = config.speciation.species_similarity_threshold
    species: list[list[int]] = []
    for index, genome in enumerate(genomes):
        for members in species:
            representative = genomes[members[0]]
            if ReactorGenome.similarity(config, genome, representative) >= threshold:
                members.append(index)
                break
        else:
            species.append([index])
    return species


def diversity_ratio(config: GAConfig, genomes: Sequence[ReactorGenome]) -> tuple[int, float]:
    """Return ``(species_count, species_count / population_size)``."""
    if not genomes:
        return 0, 0.0
    count = len(cluster_species(config, genomes))
    return count, count / len(genomes)


def top_species(
    config: GAConfig, evaluated: Sequence[EvaluatedGenome], limit: int
) -> list[EvaluatedGenome]:
    """Best ``limit`` genomes, skipping any too similar to one already chosen."""
    threshold = config.speciation.species_similarity_threshold
    ranked = sorted(evaluated, key=lambda item: item.fitness, reverse=True)
    chosen: list[EvaluatedGenome] = []
    for candidate in ranked:
        if len(chosen) >= limit:
            break
        if any(
            ReactorGenome.similarity(config, candidate.genome, kept.genome) >= threshold
            for kept in chosen
        ):
            continue
        chosen.append(candidate)
    return chosen
