"""CLI entrypoint for layout search and single-layout simulation.

This module owns argument parsing and mode dispatch. Domain logic lives in:

- ``reactor_evolution.config``            – configuration dataclasses and loader
- ``reactor_evolution.evolution.engine``  – the generational search engine
- ``reactor_evolution.simulation.engine`` – the tick-by-tick reactor simulator
- ``reactor_evolution.io.blueprint``      – shareable layout codes
"""

from __future__ import annotations

import argparse
import dataclasses
import json
import logging
from pathlib import Path
from typing import Any

from reactor_evolution.config.constants import TOP_REPORT_SIZE
from reactor_evolution.config.loader import load_config, load_default_config
from reactor_evolution.config.types import GAConfig
from reactor_evolution.domain.factory import ComponentFactory
from reactor_evolution.errors import ReactorEvolutionError
from reactor_evolution.evolution.engine import EvolutionEngine
from reactor_evolution.evolution.speciation import top_species
from reactor_evolution.experiments.summaries import (
    build_layout_summary,
    build_result_summary,
    build_search_summary,
)
from reactor_evolution.io.blueprint import decode_grid
from reactor_evolution.simulation.engine import ReactorSimulator

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Config resolution helpers
# ---------------------------------------------------------------------------


def _apply_overrides(config: GAConfig, args: argparse.Namespace) -> GAConfig:
    """CLI > file > default resolution for the flags that mirror config keys."""
    evolution_changes: dict[str, Any] = {}
    if args.generations is not None:
        evolution_changes["max_generation"] = args.generations
    if args.population is not None:
        evolution_changes["population_size"] = args.population
    if args.seed_file is not None:
        evolution_changes["seed_file"] = args.seed_file
    reactor_changes: dict[str, Any] = {}
    if args.max_ticks is not None:
        reactor_changes["max_simulation_ticks"] = args.max_ticks

    if not evolution_changes and not reactor_changes:
        return config
    return dataclasses.replace(
        config,
        evolution=dataclasses.replace(config.evolution, **evolution_changes),
        reactor=dataclasses.replace(config.reactor, **reactor_changes),
    )


def _positive_int(raw: str) -> int:
    """argparse type for strictly positive integers."""
    try:
        value = int(raw)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected an integer, got {raw!r}") from exc
    if value < 1:
        raise argparse.ArgumentTypeError(f"expected a value >= 1, got {value}")
    return value


def _build_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser."""
    parser = argparse.ArgumentParser(description="Evolve IC2 reactor layouts")
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="JSON config file, // and /* */ comments allowed (CLI args override file values)",
    )
    parser.add_argument("--seed", type=int, default=None, help="RNG seed for the search")
    parser.add_argument("--generations", type=_positive_int, default=None)
    parser.add_argument("--population", type=_positive_int, default=None)
    parser.add_argument("--max-ticks", type=_positive_int, default=None)
    parser.add_argument("--seed-file", type=Path, default=None)
    parser.add_argument("--workers", type=_positive_int, default=None)
    parser.add_argument(
        "--top",
        type=_positive_int,
        default=TOP_REPORT_SIZE,
        help="Number of species-distinct layouts to report",
    )
    parser.add_argument(
        "--simulate",
        metavar="CODE",
        default=None,
        help="Simulate one blueprint code instead of searching",
    )
    parser.add_argument(
        "--trace",
        action="store_true",
        help="With --simulate, include the simulator's diagnostic lines",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
    )
    return parser


# ---------------------------------------------------------------------------
# Modes
# ---------------------------------------------------------------------------


def _run_simulation(code: str, config: GAConfig, trace: bool) -> dict[str, Any]:
    factory = ComponentFactory(config.ruleset)
    grid = decode_grid(code, factory)
    lines: list[str] = []
    result = ReactorSimulator().run(
        grid, logging_enabled=trace, publisher=lines.append if trace else None
    )
    summary: dict[str, Any] = {"mode": "simulate", **build_result_summary(result)}
    if trace:
        summary["trace"] = lines
    return summary


def _run_search(
    config: GAConfig, seed: int | None, workers: int | None, top: int
) -> dict[str, Any]:
    factory = ComponentFactory(config.ruleset)
    with EvolutionEngine(config, seed=seed, factory=factory, max_workers=workers) as engine:
        final = engine.run()
    layouts = [
        build_layout_summary(config, factory, rank, item)
        for rank, item in enumerate(top_species(config, final, top), start=1)
    ]
    return {"mode": "search", **build_search_summary(engine.seed, engine.history, layouts)}


# ---------------------------------------------------------------------------
# Main CLI
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for search execution.

    Without ``--config`` the packaged default document is used. CLI
    arguments override config-file values; config-file values override
    built-in defaults.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = load_config(args.config) if args.config is not None else load_default_config()
        config = _apply_overrides(config, args)
        if args.simulate is not None:
            summary = _run_simulation(args.simulate, config, args.trace)
        else:
            summary = _run_search(config, args.seed, args.workers, args.top)
    except ReactorEvolutionError as exc:
        parser.error(str(exc))

    print(json.dumps(summary, ensure_ascii=False, indent=2))


if __name__ == "__main__":
    main()
