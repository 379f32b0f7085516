"""JSON-ready summaries of simulation results and search outcomes."""

from __future__ import annotations

from dataclasses import asdict
from typing import Any

from reactor_evolution.config.types import GAConfig
from reactor_evolution.domain.factory import ComponentFactory
from reactor_evolution.evolution.fitness import EvaluatedGenome, fuel_efficiency
from reactor_evolution.evolution.stats import GenerationSummary
from reactor_evolution.simulation.result import ComponentEvent, SimulationResult


def _event_summary(event: ComponentEvent | None) -> dict[str, Any] | None:
    if event is None:
        return None
    return {
        "tick": event.tick,
        "row": event.row,
        "col": event.col,
        "component": event.description,
        "average_output": event.output.average,
    }


def build_result_summary(result: SimulationResult) -> dict[str, Any]:
    """Flatten the headline fields of one simulation run."""
    summary: dict[str, Any] = {
        "termination": result.termination.value,
        "output_unit": result.output_unit.value,
        "total_ticks": result.total_ticks,
        "total_rod_count": result.total_rod_count,
        "min_temp": result.min_temp,
        "max_temp": result.max_temp,
        "time_to_burn": result.time_to_burn,
        "time_to_evaporate": result.time_to_evaporate,
        "time_to_hurt": result.time_to_hurt,
        "time_to_lava": result.time_to_lava,
        "time_to_explode": result.time_to_explode,
        "output": asdict(result.output) if result.output is not None else None,
        "efficiency": asdict(result.efficiency) if result.efficiency is not None else None,
        "first_component_broken": _event_summary(result.first_component_broken),
        "first_rod_depleted": _event_summary(result.first_rod_depleted),
        "explosion_power": result.explosion_power,
        "cooldown_ticks": result.cooldown_ticks,
        "hull_cooldown_ticks": result.hull_cooldown_ticks,
        "remaining_heat": result.remaining_heat,
    }
    if result.replaced_components:
        summary["replaced_components"] = dict(result.replaced_components)
    if result.coolant_used:
        summary["coolant_used"] = dict(result.coolant_used)
    if result.pulse is not None:
        summary["pulse"] = asdict(result.pulse)
    return summary


def build_layout_summary(
    config: GAConfig, factory: ComponentFactory, rank: int, item: EvaluatedGenome
) -> dict[str, Any]:
    """Describe one ranked layout, including a blueprint code to share it."""
    return {
        "rank": rank,
        "fuel": factory.default_component(item.genome.fuel_type).name,
        "fuel_rods": item.genome.fuel_rod_count,
        "fitness": item.fitness,
        "average_output": item.result.average_output,
        "output_per_rod": fuel_efficiency(item.genome, item.result),
        "max_temp": item.result.max_temp,
        "termination": item.result.termination.value,
        "genome": item.genome.serialize(),
        "blueprint": item.genome.blueprint_code(config, factory),
    }


def build_search_summary(
    seed: int, history: list[GenerationSummary], layouts: list[dict[str, Any]]
) -> dict[str, Any]:
    last = history[-1] if history else None
    return {
        "seed": seed,
        "generations": len(history),
        "best_fitness": last.best_fitness_so_far if last is not None else None,
        "final_mean_fitness": last.mean_fitness if last is not None else None,
        "final_species_count": last.species_count if last is not None else None,
        "top_layouts": layouts,
    }
