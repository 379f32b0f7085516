"""Tests for ReactorGenome construction, genetic operators, and codes."""

from __future__ import annotations

import random

import pytest

from reactor_evolution.config.constants import (
    EMPTY_CELL,
    FUEL_CELL,
    MAX_BLUEPRINT_SETTING,
    MAX_GRID_DIMENSION,
)
from reactor_evolution.config.types import GAConfig, MutationProbabilities, ReactorConfig
from reactor_evolution.domain.factory import ComponentFactory
from reactor_evolution.domain.grid import ReactorGrid
from reactor_evolution.errors import BlueprintDecodeError
from reactor_evolution.evolution.genome import MutationStats, ReactorGenome
from reactor_evolution.io.blueprint import decode_grid, encode_grid


class ScriptedRandom(random.Random):
    """Random source replaying fixed rolls and choices in order."""

    def __init__(self, rolls: list[float] | None = None, choices: list[int] | None = None) -> None:
        super().__init__(0)
        self.rolls = list(rolls or [])
        self.choices = list(choices or [])

    def random(self) -> float:
        return self.rolls.pop(0)

    def randrange(self, start: int, stop: int | None = None, step: int = 1) -> int:  # type: ignore[override]
        return self.choices.pop(0)


def _config(**kwargs: object) -> GAConfig:
    return GAConfig(
        reactor=ReactorConfig(row_count=2, col_count=3, max_simulation_ticks=200),
        components=(EMPTY_CELL, FUEL_CELL, 9, 14),
        fuels=(1, 2, 3),
        **kwargs,  # type: ignore[arg-type]
    )


class TestConstruction:
    def test_random_draws_fuel_then_cells(self) -> None:
        rng = ScriptedRandom(choices=[1, 0, 1, 2, 3, 0, 1])
        genome = ReactorGenome.random(_config(), rng)
        assert genome.fuel_type == 2
        assert genome.layout == [EMPTY_CELL, FUEL_CELL, 9, 14, EMPTY_CELL, FUEL_CELL]
        assert rng.choices == []

    def test_random_stays_within_pools(self) -> None:
        config = _config()
        rng = random.Random(3)
        for _ in range(50):
            genome = ReactorGenome.random(config, rng)
            assert genome.fuel_type in config.fuels
            assert len(genome.layout) == config.layout_size
            assert set(genome.layout) <= set(config.components)

    def test_grid_round_trip(self) -> None:
        config = _config()
        genome = ReactorGenome(2, [FUEL_CELL, 9, EMPTY_CELL, 14, FUEL_CELL, EMPTY_CELL])
        grid = genome.to_grid(config)
        assert grid.cell_ids() == [2, 9, None, 14, 2, None]
        assert ReactorGenome.from_grid(config, grid) == genome

    def test_to_grid_applies_reactor_settings(self) -> None:
        config = GAConfig(
            reactor=ReactorConfig(row_count=1, col_count=2, fluid=True, max_simulation_ticks=77),
            components=(EMPTY_CELL, FUEL_CELL),
        )
        grid = ReactorGenome(1, [FUEL_CELL, EMPTY_CELL]).to_grid(config)
        assert grid.fluid
        assert grid.max_simulation_ticks == 77
        assert (grid.rows, grid.cols) == (1, 2)

    def test_from_grid_without_fuel_uses_first_fuel(self) -> None:
        config = _config()
        grid = ReactorGrid(rows=2, cols=3)
        grid.set_component(0, 0, ComponentFactory().create(9))
        genome = ReactorGenome.from_grid(config, grid)
        assert genome.fuel_type == 1
        assert genome.fuel_rod_count == 0

    def test_from_grid_rejects_other_dimensions(self) -> None:
        with pytest.raises(ValueError, match="config expects 2x3"):
            ReactorGenome.from_grid(_config(), ReactorGrid(rows=6, cols=9))

    def test_blueprint_code_decodes_to_same_layout(self) -> None:
        config = _config()
        genome = ReactorGenome(3, [FUEL_CELL, 14, 9, EMPTY_CELL, EMPTY_CELL, FUEL_CELL])
        assert decode_grid(genome.blueprint_code(config)).cell_ids() == [3, 14, 9, None, None, 3]

    def test_copy_is_independent(self) -> None:
        genome = ReactorGenome(1, [FUEL_CELL, 9])
        clone = genome.copy()
        clone.layout[0] = 14
        assert genome.layout == [FUEL_CELL, 9]

    def test_equal_genomes_hash_equal(self) -> None:
        a = ReactorGenome(1, [FUEL_CELL, 9])
        b = ReactorGenome(1, [FUEL_CELL, 9])
        assert a == b
        assert len({a, b}) == 1


class TestCrossBreed:
    def test_segment_comes_from_second_parent(self) -> None:
        config = _config()
        a = ReactorGenome(1, [9, 9, 9, 9, 9, 9])
        b = ReactorGenome(2, [14, 14, 14, 14, 14, 14])
        child = ReactorGenome.cross_breed(config, a, b, ScriptedRandom([0.3], [4, 1]))
        assert child.fuel_type == 1
        assert child.layout == [9, 14, 14, 14, 9, 9]

    def test_fuel_from_second_parent(self) -> None:
        config = _config()
        a = ReactorGenome(1, [9] * 6)
        b = ReactorGenome(2, [14] * 6)
        child = ReactorGenome.cross_breed(config, a, b, ScriptedRandom([0.7], [2, 2]))
        assert child.fuel_type == 2
        assert child.layout == [9] * 6

    def test_every_cell_comes_from_a_parent(self) -> None:
        config = _config()
        rng = random.Random(11)
        for _ in range(30):
            a = ReactorGenome.random(config, rng)
            b = ReactorGenome.random(config, rng)
            child = ReactorGenome.cross_breed(config, a, b, rng)
            assert child.fuel_type in (a.fuel_type, b.fuel_type)
            for index, code in enumerate(child.layout):
                assert code in (a.layout[index], b.layout[index])

    def test_parents_are_not_modified(self) -> None:
        config = _config()
        a = ReactorGenome(1, [9] * 6)
        b = ReactorGenome(2, [14] * 6)
        ReactorGenome.cross_breed(config, a, b, ScriptedRandom([0.1], [0, 6 - 1]))
        assert a.layout == [9] * 6
        assert b.layout == [14] * 6


class TestMutation:
    def test_fuel_channel(self) -> None:
        genome = ReactorGenome(1, [9] * 6)
        stats = MutationStats()
        probabilities = MutationProbabilities(fuel=0.5, layout=0.5, layout_per_slot=0.0)
        genome.try_mutation(_config(), probabilities, ScriptedRandom([0.1, 0.9], [2]), stats)
        assert genome.fuel_type == 3
        assert genome.layout == [9] * 6
        assert (stats.fuel, stats.layout, stats.layout_per_slot) == (1, 0, 0)

    def test_single_cell_channel(self) -> None:
        genome = ReactorGenome(1, [9] * 6)
        stats = MutationStats()
        probabilities = MutationProbabilities(fuel=0.5, layout=0.5, layout_per_slot=0.0)
        genome.try_mutation(_config(), probabilities, ScriptedRandom([0.9, 0.1], [5, 3]), stats)
        assert genome.fuel_type == 1
        assert genome.layout == [9, 9, 9, 9, 9, 14]
        assert stats.layout == 1
        assert stats.total == 1

    def test_zero_sweep_probability_draws_nothing(self) -> None:
        genome = ReactorGenome(1, [9] * 6)
        rng = ScriptedRandom([0.9, 0.9])
        genome.try_mutation(_config(), MutationProbabilities(0.0, 0.0, 0.0), rng)
        assert rng.rolls == []

    def test_per_slot_sweep(self) -> None:
        genome = ReactorGenome(1, [9] * 6)
        stats = MutationStats()
        rng = ScriptedRandom([0.9, 0.9] + [0.0] * 6, [0] * 6)
        genome.try_mutation(_config(), MutationProbabilities(0.5, 0.5, 1.0), rng, stats)
        assert genome.layout == [EMPTY_CELL] * 6
        assert stats.layout_per_slot == 6
        assert str(stats) == "fuel=0, layout=0, per-slot=6"

    def test_high_rolls_leave_genome_untouched(self) -> None:
        genome = ReactorGenome(1, [FUEL_CELL, 9, 14, EMPTY_CELL, 9, FUEL_CELL])
        before = genome.copy()
        stats = MutationStats()
        rng = ScriptedRandom([0.99] * 8)
        genome.try_mutation(_config(), MutationProbabilities(0.5, 0.5, 0.5), rng, stats)
        assert genome == before
        assert stats.total == 0
        assert rng.rolls == []
        assert rng.choices == []

    @pytest.mark.parametrize(
        ("rolls", "choices", "expected_fuel", "expected_cell", "expected_counts"),
        [
            ([0.0, 0.9, 0.9], [2], 3, 9, (1, 0, 0)),
            ([0.9, 0.0, 0.9], [0, 3], 1, 14, (0, 1, 0)),
            ([0.9, 0.9, 0.0], [1], 1, FUEL_CELL, (0, 0, 1)),
            ([0.0, 0.0, 0.0], [1, 0, 3, 0], 2, EMPTY_CELL, (1, 1, 1)),
        ],
        ids=["fuel", "single-cell", "per-slot", "all-channels"],
    )
    def test_channel_draw_order_on_one_cell(
        self,
        rolls: list[float],
        choices: list[int],
        expected_fuel: int,
        expected_cell: int,
        expected_counts: tuple[int, int, int],
    ) -> None:
        config = GAConfig(
            reactor=ReactorConfig(row_count=1, col_count=1, max_simulation_ticks=200),
            components=(EMPTY_CELL, FUEL_CELL, 9, 14),
            fuels=(1, 2, 3),
        )
        genome = ReactorGenome(1, [9])
        stats = MutationStats()
        rng = ScriptedRandom(rolls, choices)
        genome.try_mutation(config, MutationProbabilities(0.5, 0.5, 0.5), rng, stats)
        assert genome.fuel_type == expected_fuel
        assert genome.layout == [expected_cell]
        assert (stats.fuel, stats.layout, stats.layout_per_slot) == expected_counts
        assert rng.rolls == []
        assert rng.choices == []

    @pytest.mark.parametrize("slot", range(6))
    def test_sweep_rolls_follow_cell_order(self, slot: int) -> None:
        genome = ReactorGenome(1, [9] * 6)
        sweep = [0.9] * 6
        sweep[slot] = 0.0
        rng = ScriptedRandom([0.9, 0.9, *sweep], [3])
        genome.try_mutation(_config(), MutationProbabilities(0.5, 0.5, 0.5), rng)
        expected = [9] * 6
        expected[slot] = 14
        assert genome.layout == expected
        assert rng.rolls == []
        assert rng.choices == []

    def test_mutations_stay_within_pools(self) -> None:
        config = _config()
        rng = random.Random(5)
        genome = ReactorGenome.random(config, rng)
        for _ in range(100):
            genome.try_mutation(config, MutationProbabilities(0.5, 0.5, 0.5), rng)
            assert genome.fuel_type in config.fuels
            assert set(genome.layout) <= set(config.components)


class TestSimilarity:
    def test_identical_genomes(self) -> None:
        config = _config()
        genome = ReactorGenome(1, [FUEL_CELL, 9, 14, EMPTY_CELL, 9, FUEL_CELL])
        assert ReactorGenome.similarity(config, genome, genome.copy()) == 1.0

    def test_all_fuel_genomes(self) -> None:
        config = _config()
        genome = ReactorGenome(1, [FUEL_CELL] * 6)
        assert ReactorGenome.similarity(config, genome, genome.copy()) == 1.0

    def test_empty_genomes(self) -> None:
        config = _config()
        genome = ReactorGenome(1, [EMPTY_CELL] * 6)
        assert ReactorGenome.similarity(config, genome, genome.copy()) == 1.0

    def test_different_fuel_types(self) -> None:
        config = _config()
        a = ReactorGenome(1, [FUEL_CELL] * 6)
        b = ReactorGenome(2, [FUEL_CELL] * 6)
        assert ReactorGenome.similarity(config, a, b) == 0.0

    def test_weighted_blend(self) -> None:
        config = _config()
        a = ReactorGenome(1, [FUEL_CELL, FUEL_CELL, 9, 9, EMPTY_CELL, EMPTY_CELL])
        b = ReactorGenome(1, [FUEL_CELL, EMPTY_CELL, 9, 14, EMPTY_CELL, EMPTY_CELL])
        # fuel overlap 1/2, component agreement 3/5 over the non-shared-fuel cells
        assert ReactorGenome.similarity(config, a, b) == pytest.approx(0.55)

    def test_symmetric_and_bounded(self) -> None:
        config = _config()
        rng = random.Random(8)
        for _ in range(40):
            a = ReactorGenome.random(config, rng)
            b = ReactorGenome.random(config, rng)
            forward = ReactorGenome.similarity(config, a, b)
            assert forward == pytest.approx(ReactorGenome.similarity(config, b, a))
            assert 0.0 <= forward <= 1.0


class TestGenomeCodes:
    def test_round_trip_with_every_catalog_id(self) -> None:
        config = GAConfig(reactor=ReactorConfig(row_count=4, col_count=7))
        layout = [EMPTY_CELL, FUEL_CELL, *ComponentFactory().ids()]
        genome = ReactorGenome(6, layout)
        code = genome.serialize()
        assert code.isascii()
        assert ReactorGenome.deserialize(config, code) == genome

    @pytest.mark.parametrize("code", ["not a genome", "", "eHx5"])
    def test_rejects_garbage(self, code: str) -> None:
        with pytest.raises(BlueprintDecodeError):
            ReactorGenome.deserialize(_config(), code)

    @pytest.mark.parametrize("cells", [5, 7])
    def test_rejects_wrong_layout_length(self, cells: int) -> None:
        code = ReactorGenome(1, [9] * cells).serialize()
        with pytest.raises(BlueprintDecodeError, match=f"has {cells} cells, expected 6"):
            ReactorGenome.deserialize(_config(), code)


class TestBlueprintAgreement:
    """A grid read into a genome yields the grid's own blueprint code."""

    @staticmethod
    def _grid(*placements: tuple[int, int, int]) -> ReactorGrid:
        grid = ReactorGrid(rows=2, cols=3, max_simulation_ticks=200)
        factory = ComponentFactory()
        for row, col, component_id in placements:
            grid.set_component(row, col, factory.create(component_id))
        return grid

    @pytest.mark.parametrize(
        "placements",
        [
            (),
            ((0, 0, 9), (1, 2, 14)),
            ((0, 1, 2), (1, 1, 9)),
            ((0, 0, 3), (0, 2, 3), (1, 1, 3), (1, 0, 14)),
        ],
        ids=["empty", "no-fuel-falls-back", "one-fuel", "several-fuel"],
    )
    def test_genome_blueprint_matches_grid(
        self, placements: tuple[tuple[int, int, int], ...]
    ) -> None:
        config = _config()
        grid = self._grid(*placements)
        genome = ReactorGenome.from_grid(config, grid)
        assert genome.blueprint_code(config) == encode_grid(grid)

    def test_largest_encodable_reactor(self) -> None:
        config = GAConfig(
            reactor=ReactorConfig(
                row_count=MAX_GRID_DIMENSION,
                col_count=1,
                max_simulation_ticks=MAX_BLUEPRINT_SETTING,
                suspend_temp=MAX_BLUEPRINT_SETTING,
            ),
        )
        genome = ReactorGenome(1, [EMPTY_CELL] * MAX_GRID_DIMENSION)
        grid = decode_grid(genome.blueprint_code(config))
        assert (grid.rows, grid.cols) == (MAX_GRID_DIMENSION, 1)
        assert grid.suspend_temp == MAX_BLUEPRINT_SETTING
