"""Scenario tests for ReactorSimulator.

Golden values below are derived by hand from the catalog constants (uranium
cell: 4 heat and 100 EU per tick when alone; 10k coolant cell; heat vent
venting 6 per tick). Update these constants if physics change intentionally.
"""

from __future__ import annotations

import pytest

from reactor_evolution.domain.factory import ComponentFactory
from reactor_evolution.domain.grid import ReactorGrid
from reactor_evolution.simulation.engine import ReactorSimulator
from reactor_evolution.simulation.result import (
    OutputUnit,
    PulseStats,
    SimulationResult,
    Termination,
)

FACTORY = ComponentFactory()


def _grid(*placements: tuple[int, int, int], **kwargs: object) -> ReactorGrid:
    grid = ReactorGrid(**kwargs)  # type: ignore[arg-type]
    for row, col, component_id in placements:
        grid.set_component(row, col, FACTORY.create(component_id))
    return grid


def _run(grid: ReactorGrid) -> SimulationResult:
    return ReactorSimulator().run(grid)


class TestLoneRod:
    def test_explodes_on_schedule(self) -> None:
        result = _run(_grid((0, 0, 1)))
        assert result.termination is Termination.EXPLODED
        assert result.exploded
        assert result.total_ticks == 2_500
        assert (
            result.time_to_burn,
            result.time_to_evaporate,
            result.time_to_hurt,
            result.time_to_lava,
            result.time_to_explode,
        ) == (1_000, 1_250, 1_750, 2_125, 2_500)
        assert result.max_temp == 10_000
        assert result.min_temp == 0
        assert result.explosion_power == pytest.approx(12.0)
        assert result.output is None
        assert result.average_output == 0.0

    def test_plating_raises_capacity_and_dampens_explosion(self) -> None:
        result = _run(_grid((0, 0, 1), (5, 8, 21)))
        assert result.time_to_burn == 1_100
        assert result.total_ticks == 2_750
        assert result.explosion_power == pytest.approx(11.4)

    def test_starting_heat_skips_reached_thresholds(self) -> None:
        simulator = ReactorSimulator()
        simulator.initial_heat = 9_000
        result = simulator.run(_grid((0, 0, 1)))
        assert result.time_to_burn is None
        assert result.time_to_lava is None
        assert result.time_to_explode == 250
        assert result.min_temp == 9_000

    def test_publisher_and_component_notes(self) -> None:
        grid = _grid((0, 0, 1))
        lines: list[str] = []
        ReactorSimulator().run(grid, logging_enabled=True, publisher=lines.append)
        assert lines[0] == "Simulation started."
        assert "Explosion power: 12" in lines
        rod = grid.component_at(0, 0)
        assert rod is not None
        assert "Generated 4 to 4 heat per tick" in rod.info


class TestCoolantCellBreak:
    def test_first_break_records_pre_break_output(self) -> None:
        result = _run(_grid((0, 0, 1), (0, 1, 14)))
        event = result.first_component_broken
        assert event is not None
        assert (event.tick, event.row, event.col) == (2_500, 0, 1)
        assert event.description == "10k Coolant Cell"
        assert event.output.total == 250_000
        assert event.output.average == 5.0
        assert (event.output.minimum, event.output.maximum) == (5.0, 5.0)
        assert event.efficiency is not None
        assert event.efficiency.average == pytest.approx(1.0)
        assert result.any_component_broken

    def test_heating_snapshot_taken_at_first_break(self) -> None:
        result = _run(_grid((0, 0, 1), (0, 1, 14)))
        snapshot = result.heating_cooling
        assert snapshot is not None
        assert snapshot.component_heating == pytest.approx(4.0)
        assert snapshot.hull_heating == 0.0

    def test_hull_heats_after_break(self) -> None:
        result = _run(_grid((0, 0, 1), (0, 1, 14)))
        assert result.termination is Termination.EXPLODED
        assert result.time_to_burn == 3_500
        assert result.time_to_evaporate == 3_750
        assert result.time_to_hurt == 4_250
        assert result.time_to_lava == 4_625
        assert result.time_to_explode == 5_000
        assert result.max_temp == 10_000
        # broken cell contributes nothing; rod adds 2
        assert result.explosion_power == pytest.approx(12.0)


class TestStableVentedRod:
    def _result(self) -> SimulationResult:
        return _run(_grid((0, 0, 1), (0, 1, 9)))

    def test_runs_until_fuel_is_spent(self) -> None:
        result = self._result()
        assert result.termination is Termination.DEPLETED
        assert result.total_ticks == 20_001
        assert result.max_temp == 0
        assert result.first_component_broken is None
        depleted = result.first_rod_depleted
        assert depleted is not None
        assert (depleted.tick, depleted.row, depleted.col) == (20_000, 0, 0)
        assert depleted.description == "Uranium Cell"

    def test_output_statistics(self) -> None:
        result = self._result()
        assert result.output_unit is OutputUnit.EU
        assert result.output is not None
        assert result.output.total == 2_000_000
        assert result.output.maximum == 5.0
        assert result.output.minimum == 0.0
        assert result.output.average == pytest.approx(2_000_000 / (20_001 * 20))
        assert result.total_rod_count == 1

    def test_no_cooldown_needed(self) -> None:
        result = self._result()
        assert result.cooldown_ticks == 0
        assert result.hull_cooldown_ticks is None
        assert result.component_cooldown_ticks == {}
        assert result.explosion_power is None

    def test_heating_and_cooling_diagnostics(self) -> None:
        result = self._result()
        snapshot = result.heating_cooling
        assert snapshot is not None
        assert snapshot.component_heating == pytest.approx(4.0)
        assert snapshot.vent_cooling == pytest.approx(4.0)
        assert snapshot.vent_cooling_capacity == 6.0
        assert snapshot.hull_cooling_capacity == 0.0
        assert result.cooling is not None
        assert result.cooling.effective_vent_cooling == 4.0
        assert result.cooling.vent_cooling_capacity == 6.0
        assert result.cooling.max_generated_heat == 4.0
        assert result.cooling.excess_cooling == 0.0


class TestReuse:
    def test_reset_between_runs_gives_identical_results(self) -> None:
        grid = _grid((0, 0, 1), (0, 1, 9))
        simulator = ReactorSimulator()
        first = simulator.run(grid)
        simulator.reset_state()
        second = simulator.run(grid)
        assert first == second

    def test_reuse_without_reset_leaks_state(self) -> None:
        grid = _grid((0, 0, 1), (0, 1, 9))
        simulator = ReactorSimulator()
        first = simulator.run(grid)
        second = simulator.run(grid)
        assert first.total_rod_count == 1
        assert second.total_rod_count == 2
        assert second.total_ticks == 2 * first.total_ticks
        assert second.first_rod_depleted is None
        assert second.heating_cooling is None


class TestModes:
    def test_fluid_mode_reports_heat_units(self) -> None:
        result = _run(_grid((0, 0, 1), (0, 1, 9), fluid=True, max_simulation_ticks=100))
        assert result.termination is Termination.TICK_LIMIT
        assert result.output_unit is OutputUnit.HU
        assert result.output is not None
        assert result.output.total == 16_000
        assert result.output.average == 8.0
        assert (result.output.minimum, result.output.maximum) == (8.0, 8.0)
        assert result.efficiency is not None
        assert result.efficiency.average == 1.0

    def test_pulsed_duty_cycle(self) -> None:
        grid = _grid(
            (0, 0, 1),
            pulsed=True,
            on_pulse=10,
            off_pulse=10,
            resume_temp=100,
            max_simulation_ticks=40,
        )
        result = _run(grid)
        assert result.termination is Termination.TICK_LIMIT
        assert result.pulse == PulseStats(
            active_time=20,
            inactive_time=20,
            min_active_streak=10,
            max_active_streak=10,
            min_inactive_streak=10,
            max_inactive_streak=10,
        )
        assert result.output is not None
        assert result.output.total == 2_000
        assert result.output.minimum == 0.0
        assert result.max_temp == 80
        assert result.remaining_heat == 80
        assert result.hull_cooldown_ticks is None

    def test_unpulsed_reactor_has_no_pulse_stats(self) -> None:
        result = _run(_grid((0, 0, 1), (0, 1, 9), max_simulation_ticks=50))
        assert result.pulse is None

    def test_automation_replaces_hot_cells(self) -> None:
        result = _run(_grid((0, 0, 1), (0, 1, 14), automated=True, max_simulation_ticks=5_000))
        assert result.termination is Termination.TICK_LIMIT
        assert result.replaced_components == {"10k Coolant Cell": 2}
        assert result.first_component_broken is None
        assert result.max_temp == 0
        assert result.pulse is not None
        assert result.pulse.active_time == 5_000
        assert result.pulse.min_active_streak is None

    def test_replacement_pause_suspends_generation(self) -> None:
        grid = _grid((0, 0, 1), automated=True, max_simulation_ticks=3_000)
        cell = FACTORY.create(14)
        cell.reactor_pause = 5
        grid.set_component(0, 1, cell)
        result = _run(grid)
        assert result.replaced_components == {"10k Coolant Cell": 1}
        assert result.pulse is not None
        assert result.pulse.inactive_time == 6
        assert result.pulse.max_active_streak == 2_250
        assert result.pulse.min_inactive_streak == 6
        assert result.output is not None
        assert result.output.total == 299_400

    def test_coolant_injection(self) -> None:
        grid = _grid(
            (0, 0, 1), (0, 1, 24), using_coolant_injectors=True, max_simulation_ticks=9_000
        )
        result = _run(grid)
        assert result.coolant_used == {"redstone": 2}
        assert result.first_component_broken is None
        assert result.cooling is not None
        assert result.cooling.condensator_cooling == 4.0
