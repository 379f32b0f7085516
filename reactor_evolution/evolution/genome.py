"""Genome: compact candidate-layout representation for the optimizer.

A genome is one fuel-type id plus a per-cell code list of length
rows x cols. ``FUEL_CELL`` marks a cell holding the genome's fuel type and
``EMPTY_CELL`` an empty cell, so fuel choice and fuel placement mutate
independently.

Random draws use only ``rng.random()`` for rolls and ``rng.randrange(n)``
for choices. The draw order in :meth:`ReactorGenome.try_mutation` and
:meth:`ReactorGenome.cross_breed` is fixed; runs with the same seed replay
the same decisions.
"""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass, field
from random import Random

from reactor_evolution.config.constants import EMPTY_CELL, FUEL_CELL
from reactor_evolution.config.types import GAConfig, MutationProbabilities
from reactor_evolution.domain.factory import ComponentFactory
from reactor_evolution.domain.grid import ReactorGrid
from reactor_evolution.errors import BlueprintDecodeError
from reactor_evolution.io.blueprint import encode_grid


@dataclass
class MutationStats:
    """Counts of applied mutations per channel."""

    fuel: int = 0
    layout: int = 0
    layout_per_slot: int = 0

    @property
    def total(self) -> int:
        return self.fuel + self.layout + self.layout_per_slot

    def __str__(self) -> str:
        return f"fuel={self.fuel}, layout={self.layout}, per-slot={self.layout_per_slot}"


@dataclass
class ReactorGenome:
    """Fuel type plus per-cell layout codes; equal and hashed by value."""

    fuel_type: int
    layout: list[int] = field(default_factory=list)

    def __hash__(self) -> int:
        return hash((self.fuel_type, tuple(self.layout)))

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def random(cls, config: GAConfig, rng: Random) -> ReactorGenome:
        """Draw the fuel, then every cell, uniformly from the configured pools."""
        fuel_type = config.fuels[rng.randrange(len(config.fuels))]
        layout = [
            config.components[rng.randrange(len(config.components))]
            for _ in range(config.layout_size)
        ]
        return cls(fuel_type, layout)

    @classmethod
    def from_grid(
        cls, config: GAConfig, grid: ReactorGrid, factory: ComponentFactory | None = None
    ) -> ReactorGenome:
        """Read ``grid`` row-major; the first fuel rod fixes the fuel type."""
        if (grid.rows, grid.cols) != (config.reactor.row_count, config.reactor.col_count):
            raise ValueError(
                f"grid is {grid.rows}x{grid.cols}, config expects "
                f"{config.reactor.row_count}x{config.reactor.col_count}"
            )
        factory = factory or ComponentFactory(config.ruleset)
        fuel_type: int | None = None
        layout: list[int] = []
        for component_id in grid.cell_ids():
            if component_id is None:
                layout.append(EMPTY_CELL)
            elif factory.is_fuel(component_id):
                if fuel_type is None:
                    fuel_type = component_id
                layout.append(FUEL_CELL)
            else:
                layout.append(component_id)
        return cls(config.fuels[0] if fuel_type is None else fuel_type, layout)

    def to_grid(self, config: GAConfig, factory: ComponentFactory | None = None) -> ReactorGrid:
        """Instantiate a fresh grid with the configured reactor settings."""
        factory = factory or ComponentFactory(config.ruleset)
        settings = config.reactor
        grid = ReactorGrid(
            rows=settings.row_count,
            cols=settings.col_count,
            fluid=settings.fluid,
            pulsed=settings.pulsed,
            automated=settings.automated,
            using_coolant_injectors=settings.using_coolant_injectors,
            on_pulse=settings.on_pulse,
            off_pulse=settings.off_pulse,
            suspend_temp=settings.suspend_temp,
            resume_temp=settings.resume_temp,
            max_simulation_ticks=settings.max_simulation_ticks,
        )
        for index, code in enumerate(self.layout):
            if code == EMPTY_CELL:
                continue
            component_id = self.fuel_type if code == FUEL_CELL else code
            grid.set_component(
                index // settings.col_count,
                index % settings.col_count,
                factory.create(component_id),
            )
        return grid

    def blueprint_code(self, config: GAConfig, factory: ComponentFactory | None = None) -> str:
        return encode_grid(self.to_grid(config, factory))

    def copy(self) -> ReactorGenome:
        return ReactorGenome(self.fuel_type, list(self.layout))

    @property
    def fuel_rod_count(self) -> int:
        """Number of cells holding the genome's fuel type."""
        return sum(1 for code in self.layout if code == FUEL_CELL)

    # ------------------------------------------------------------------
    # Genetic operators
    # ------------------------------------------------------------------

    @classmethod
    def cross_breed(
        cls, config: GAConfig, parent_a: ReactorGenome, parent_b: ReactorGenome, rng: Random
    ) -> ReactorGenome:
        """Two-point crossover: ``[start, end)`` from parent B, the rest from A."""
        fuel_type = parent_a.fuel_type if rng.random() < 0.5 else parent_b.fuel_type
        size = config.layout_size
        first = rng.randrange(size)
        second = rng.randrange(size)
        start, end = min(first, second), max(first, second)
        layout = parent_a.layout[:start] + parent_b.layout[start:end] + parent_a.layout[end:]
        return cls(fuel_type, layout)

    def try_mutation(
        self,
        config: GAConfig,
        probabilities: MutationProbabilities,
        rng: Random,
        stats: MutationStats | None = None,
    ) -> None:
        """Mutate in place through three independently gated channels.

        Draw order: fuel roll (plus fuel draw), single-cell roll (plus index
        and value draws), then one roll per cell (plus a value draw when it
        fires). The sweep draws nothing when its probability is zero.
        """
        if rng.random() < probabilities.fuel:
            self.fuel_type = config.fuels[rng.randrange(len(config.fuels))]
            if stats is not None:
                stats.fuel += 1

        if rng.random() < probabilities.layout:
            index = rng.randrange(len(self.layout))
            self.layout[index] = config.components[rng.randrange(len(config.components))]
            if stats is not None:
                stats.layout += 1

        if probabilities.layout_per_slot > 0:
            for index in range(len(self.layout)):
                if rng.random() < probabilities.layout_per_slot:
                    self.layout[index] = config.components[rng.randrange(len(config.components))]
                    if stats is not None:
                        stats.layout_per_slot += 1

    # ------------------------------------------------------------------
    # Similarity
    # ------------------------------------------------------------------

    @staticmethod
    def similarity(config: GAConfig, genome_a: ReactorGenome, genome_b: ReactorGenome) -> float:
        """Weighted blend of fuel-placement overlap and component agreement.

        Returns 0.0 when fuel types differ.
        """
        if genome_a.fuel_type != genome_b.fuel_type:
            return 0.0
        weights = config.speciation
        return (
            _fuel_layout_similarity(genome_a, genome_b) * weights.fuel_layout_weight
            + _components_layout_similarity(genome_a, genome_b) * weights.components_layout_weight
        )

    # ------------------------------------------------------------------
    # Genome codes
    # ------------------------------------------------------------------

    def serialize(self) -> str:
        """Return a urlsafe base64 code of ``fuel|c0,c1,...``."""
        text = f"{self.fuel_type}|{','.join(str(code) for code in self.layout)}"
        return base64.urlsafe_b64encode(text.encode("ascii")).decode("ascii")

    @classmethod
    def deserialize(cls, config: GAConfig, code: str) -> ReactorGenome:
        """Parse a genome code; its layout must cover exactly rows x cols cells."""
        try:
            text = base64.urlsafe_b64decode(code.encode("ascii")).decode("ascii")
            fuel_text, _, layout_text = text.partition("|")
            layout = [int(part) for part in layout_text.split(",")] if layout_text else []
            genome = cls(int(fuel_text), layout)
        except (binascii.Error, UnicodeError, ValueError) as exc:
            raise BlueprintDecodeError(f"invalid genome code {code!r}: {exc}") from exc
        if len(genome.layout) != config.layout_size:
            raise BlueprintDecodeError(
                f"genome code has {len(genome.layout)} cells, expected {config.layout_size}"
            )
        return genome


def _fuel_layout_similarity(genome_a: ReactorGenome, genome_b: ReactorGenome) -> float:
    fuel_a = {i for i, code in enumerate(genome_a.layout) if code == FUEL_CELL}
    fuel_b = {i for i, code in enumerate(genome_b.layout) if code == FUEL_CELL}
    union = fuel_a | fuel_b
    if not union:
        return 1.0
    return len(fuel_a & fuel_b) / len(union)


def _components_layout_similarity(genome_a: ReactorGenome, genome_b: ReactorGenome) -> float:
    relevant = 0
    matches = 0
    for code_a, code_b in zip(genome_a.layout, genome_b.layout):
        if code_a == FUEL_CELL and code_b == FUEL_CELL:
            continue
        relevant += 1
        if code_a == code_b:
            matches += 1
    if relevant == 0:
        # Both layouts are all fuel in the same cells.
        return 1.0
    return matches / relevant
