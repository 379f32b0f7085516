"""Generational search over reactor layouts.

Each generation is evaluated in parallel, one fresh :class:`ReactorSimulator`
per task, and joined before any selection happens. The single
``random.Random`` instance lives in the control loop only; worker tasks never
draw from it, so a seed replays the same decisions regardless of how the
pool schedules work.
"""

from __future__ import annotations

import logging
import math
import os
import random
import time
from collections.abc import Callable, Iterable
from concurrent.futures import Executor, Future, ProcessPoolExecutor, wait
from enum import Enum
from types import TracebackType

from reactor_evolution.config.constants import SHUTDOWN_TIMEOUT_SECONDS
from reactor_evolution.config.loader import validate_against_factory
from reactor_evolution.config.types import GAConfig, MutationProbabilities
from reactor_evolution.domain.factory import ComponentFactory
from reactor_evolution.errors import ConfigError, EvaluationError
from reactor_evolution.evolution.fitness import EvaluatedGenome, evaluate
from reactor_evolution.evolution.genome import MutationStats, ReactorGenome
from reactor_evolution.evolution.speciation import diversity_ratio
from reactor_evolution.evolution.stats import GenerationSummary, fitness_distribution
from reactor_evolution.io.seed_file import load_seed_genomes
from reactor_evolution.simulation.engine import ReactorSimulator
from reactor_evolution.simulation.result import SimulationResult

logger = logging.getLogger(__name__)

ProgressSink = Callable[[GenerationSummary], None]


class Phase(Enum):
    """Search phase selecting the mutation profile."""

    EXPLORATION = "exploratory"
    REFINEMENT = "refinement"


def simulate_genome(
    config: GAConfig, factory: ComponentFactory, genome: ReactorGenome
) -> SimulationResult:
    """Worker task: simulate one genome on a fresh grid and simulator."""
    simulator = ReactorSimulator()
    return simulator.run(genome.to_grid(config, factory))


class EvolutionEngine:
    """Runs ``config.evolution.max_generation`` generations of layout search.

    Args:
        config: Validated search configuration.
        seed: Seed for the control-loop RNG; drawn from the OS when omitted.
        factory: Component factory; defaults to one for ``config.ruleset``.
        max_workers: Worker pool size; defaults to ``os.cpu_count()``.
        executor: Externally owned executor to use instead of a private
            process pool. The engine never shuts it down.
        progress: Called with each generation's summary.
    """

    def __init__(
        self,
        config: GAConfig,
        seed: int | None = None,
        factory: ComponentFactory | None = None,
        max_workers: int | None = None,
        executor: Executor | None = None,
        progress: ProgressSink | None = None,
    ) -> None:
        self.config = config
        self.factory = factory or ComponentFactory(config.ruleset)
        validate_against_factory(config, self.factory)
        if max_workers is not None and max_workers < 1:
            raise ConfigError("max_workers must be >= 1")

        self.seed = seed if seed is not None else random.SystemRandom().randrange(2**63)
        self.rng = random.Random(self.seed)
        self.progress = progress

        self.generation = 0
        self.phase = Phase.EXPLORATION
        self.best_fitness = -math.inf
        self.population: list[ReactorGenome] = []
        self.evaluated: list[EvaluatedGenome] = []
        self.history: list[GenerationSummary] = []

        self._seeds: list[ReactorGenome] = []
        self._initialized = False
        self._executor = executor
        self._owns_executor = executor is None
        self._max_workers = max_workers or os.cpu_count() or 1
        self._in_flight: list[Future[SimulationResult]] = []

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def __enter__(self) -> EvolutionEngine:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.shutdown()

    def _get_executor(self) -> Executor:
        if self._executor is None:
            self._executor = ProcessPoolExecutor(max_workers=self._max_workers)
        return self._executor

    def shutdown(self, timeout: float = SHUTDOWN_TIMEOUT_SECONDS) -> None:
        """Drain in-flight work for up to ``timeout`` seconds, then cancel."""
        if self._executor is None or not self._owns_executor:
            return
        executor, self._executor = self._executor, None
        pending = [future for future in self._in_flight if not future.done()]
        self._in_flight = []
        if pending:
            _, not_done = wait(pending, timeout=timeout)
            if not_done:
                logger.warning(
                    "%d evaluations still running after %.0fs; cancelling",
                    len(not_done),
                    timeout,
                )
                executor.shutdown(wait=False, cancel_futures=True)
                return
        executor.shutdown(wait=True)

    # ------------------------------------------------------------------
    # Population setup
    # ------------------------------------------------------------------

    def pre_seed(self, genomes: Iterable[ReactorGenome]) -> None:
        """Queue known layouts for generation zero, ahead of random genomes."""
        if self._initialized:
            raise RuntimeError("pre_seed must be called before the first generation")
        for genome in genomes:
            if len(genome.layout) != self.config.layout_size:
                raise ConfigError(
                    f"seed genome has {len(genome.layout)} cells, "
                    f"expected {self.config.layout_size}"
                )
            self._seeds.append(genome.copy())

    def initialize(self) -> None:
        """Build generation zero: seeds first, then random genomes."""
        seed_file = self.config.evolution.seed_file
        if seed_file is not None:
            from_file = load_seed_genomes(seed_file, self.config, self.factory)
            logger.info("Loaded %d seed layouts from %s", len(from_file), seed_file)
            self.pre_seed(from_file)

        size = self.config.evolution.population_size
        if len(self._seeds) > size:
            logger.warning("Using %d of %d seed layouts", size, len(self._seeds))
        population = [genome.copy() for genome in self._seeds[:size]]
        while len(population) < size:
            population.append(ReactorGenome.random(self.config, self.rng))
        self.population = population
        self._initialized = True
        logger.info(
            "Starting search: population %d, %d generations, seed %d",
            size,
            self.config.evolution.max_generation,
            self.seed,
        )

    # ------------------------------------------------------------------
    # Generation loop
    # ------------------------------------------------------------------

    @property
    def finished(self) -> bool:
        return self.generation >= self.config.evolution.max_generation

    def run(self) -> list[EvaluatedGenome]:
        """Run every remaining generation and return the final evaluated population."""
        try:
            while not self.finished:
                self.step()
        finally:
            self.shutdown()
        return list(self.evaluated)

    def step(self) -> GenerationSummary:
        """Evaluate the current population and breed the next one."""
        if not self._initialized:
            self.initialize()
        if self.finished:
            raise RuntimeError("all configured generations have already run")

        started = time.perf_counter()
        evolution = self.config.evolution
        generation = self.generation
        if generation > 0 and generation % evolution.phase_length_generations == 0:
            self.phase = (
                Phase.REFINEMENT if self.phase is Phase.EXPLORATION else Phase.EXPLORATION
            )

        evaluated = self._evaluate_population(self.population)

        alpha = max(evaluated, key=lambda item: item.fitness)
        self.best_fitness = max(self.best_fitness, alpha.fitness)
        stable_count = sum(1 for item in evaluated if item.fitness > 0)
        logger.debug(
            "Stable designs in generation %d: %d/%d", generation, stable_count, len(evaluated)
        )

        species_count, ratio = diversity_ratio(self.config, [item.genome for item in evaluated])
        injected = 0
        if ratio < evolution.low_diversity_threshold:
            injected = math.floor(evolution.population_size * evolution.low_diversity_culling_ratio)
            logger.warning(
                "Low diversity in generation %d (%.2f); injecting %d random layouts",
                generation,
                ratio,
                injected,
            )

        mutations = MutationStats()
        if generation < evolution.max_generation - 1:
            self.population = self._breed(evaluated, injected, mutations)
            logger.debug("Mutations in generation %d: %s", generation, mutations)
        self.evaluated = evaluated

        distribution = fitness_distribution(evaluated)
        summary = GenerationSummary(
            generation=generation,
            phase=self.phase.value,
            population_size=len(evaluated),
            alpha_fitness=alpha.fitness,
            alpha_code=alpha.genome.serialize(),
            best_fitness_so_far=self.best_fitness,
            total_fitness=distribution["total"],
            mean_fitness=distribution["mean"],
            std_fitness=distribution["std"],
            p25_fitness=distribution["p25"],
            median_fitness=distribution["median"],
            p75_fitness=distribution["p75"],
            stable_count=stable_count,
            species_count=species_count,
            diversity_ratio=ratio,
            injected_random=injected,
            mutations=mutations,
            elapsed_seconds=time.perf_counter() - started,
        )
        self.history.append(summary)
        logger.info("%s", summary.describe())
        if self.progress is not None:
            self.progress(summary)
        self.generation += 1
        return summary

    def _evaluate_population(self, population: list[ReactorGenome]) -> list[EvaluatedGenome]:
        executor = self._get_executor()
        self._in_flight = [
            executor.submit(simulate_genome, self.config, self.factory, genome.copy())
            for genome in population
        ]
        evaluated: list[EvaluatedGenome] = []
        for genome, future in zip(population, self._in_flight):
            try:
                result = future.result()
            except Exception as exc:
                code = genome.serialize()
                logger.exception(
                    "Evaluation failed in generation %d for genome %s", self.generation, code
                )
                for pending in self._in_flight:
                    pending.cancel()
                raise EvaluationError(
                    f"evaluation failed in generation {self.generation} for genome {code}",
                    genome_code=code,
                ) from exc
            evaluated.append(evaluate(self.config.fitness, genome, result))
        self._in_flight = []
        return evaluated

    # ------------------------------------------------------------------
    # Breeding
    # ------------------------------------------------------------------

    def _mutation_probabilities(self) -> MutationProbabilities:
        if self.phase is Phase.EXPLORATION:
            return self.config.mutation.exploration
        return self.config.mutation.refinement

    def _tournament(self, evaluated: list[EvaluatedGenome]) -> EvaluatedGenome:
        """Sample k contestants with replacement; the fittest wins, first drawn on ties."""
        best = evaluated[self.rng.randrange(len(evaluated))]
        for _ in range(self.config.evolution.tournament_size_k - 1):
            contestant = evaluated[self.rng.randrange(len(evaluated))]
            if contestant.fitness > best.fitness:
                best = contestant
        return best

    def _breed(
        self, evaluated: list[EvaluatedGenome], injected: int, mutations: MutationStats
    ) -> list[ReactorGenome]:
        size = self.config.evolution.population_size
        ranked = sorted(evaluated, key=lambda item: item.fitness, reverse=True)
        next_population = [item.genome.copy() for item in ranked[: self.config.evolution.alpha_count]]

        probabilities = self._mutation_probabilities()
        while len(next_population) < size - injected:
            parent_a = self._tournament(evaluated)
            parent_b = self._tournament(evaluated)
            child = ReactorGenome.cross_breed(self.config, parent_a.genome, parent_b.genome, self.rng)
            child.try_mutation(self.config, probabilities, self.rng, mutations)
            next_population.append(child)

        while len(next_population) < size:
            next_population.append(ReactorGenome.random(self.config, self.rng))
        return next_population
