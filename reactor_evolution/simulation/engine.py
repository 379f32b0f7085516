"""Tick-by-tick reactor simulation.

One :class:`ReactorSimulator` runs one grid from its starting heat until it
explodes, runs out of fuel, or hits the tick ceiling, then lets it cool down
passively. The simulator keeps per-run scratch state on the instance: call
:meth:`ReactorSimulator.reset_state` between runs, and never share one
instance between concurrently executing runs.
"""

from __future__ import annotations

import logging
import math
import time
from collections import Counter
from collections.abc import Callable
from dataclasses import dataclass

from reactor_evolution.config.constants import (
    BURN_FRACTION,
    EU_EFFICIENCY_DIVISOR,
    EVAPORATE_FRACTION,
    EXPLOSION_BASE_POWER,
    HEATING_REPORT_MIN_TICKS,
    HEATING_WARMUP_TICKS,
    HU_EFFICIENCY_DIVISOR,
    HU_RATE_FACTOR,
    HU_TOTAL_FACTOR,
    HURT_FRACTION,
    LAVA_FRACTION,
    MAX_COOLDOWN_TICKS,
    TICKS_PER_SECOND,
)
from reactor_evolution.domain.component import ReactorComponent
from reactor_evolution.domain.grid import ReactorGrid
from reactor_evolution.simulation.result import (
    ComponentEvent,
    CoolingUtilization,
    EfficiencyStats,
    HeatingCooling,
    OutputStats,
    OutputUnit,
    PulseStats,
    SimulationResult,
    Termination,
)

logger = logging.getLogger(__name__)

Publisher = Callable[[str], None]


@dataclass
class _RunData:
    """Per-run findings that end up on the result record."""

    time_to_burn: int | None = None
    time_to_evaporate: int | None = None
    time_to_hurt: int | None = None
    time_to_lava: int | None = None
    time_to_explode: int | None = None
    time_to_below_50: int | None = None
    first_component_broken: ComponentEvent | None = None
    first_rod_depleted: ComponentEvent | None = None
    heating_cooling: HeatingCooling | None = None


def _finite(value: float) -> float:
    return 0.0 if math.isinf(value) else value


class ReactorSimulator:
    """Deterministic discrete-time simulator for one reactor grid."""

    def __init__(self) -> None:
        self.initial_heat = 0.0
        self.reset_state()

    def reset_state(self) -> None:
        """Clear all scratch state so the instance can run another grid."""
        self.initial_heat = 0.0
        self.active = True
        self.pause_timer = 0

        self._reached_below_50 = False
        self._reached_burn = False
        self._reached_evaporate = False
        self._reached_hurt = False
        self._reached_lava = False
        self._reached_explode = False

        self._active_time = 0
        self._inactive_time = 0
        self._current_active_time = 0
        self._min_active_time = math.inf
        self._max_active_time = 0
        self._current_inactive_time = 0
        self._min_inactive_time = math.inf
        self._max_inactive_time = 0

        self._min_eu_output = math.inf
        self._max_eu_output = 0.0
        self._min_heat_output = math.inf
        self._max_heat_output = 0.0

        self._all_fuel_rods_depleted = False
        self._components_intact = True
        self._any_rods_depleted = False
        self._heating_cooling_reported = False

        self._reactor_ticks = 0
        self._cooldown_ticks = 0
        self._total_rod_count = 0

        self._total_hull_heating = 0.0
        self._total_component_heating = 0.0
        self._total_hull_cooling = 0.0
        self._total_vent_cooling = 0.0

        self._replaced: Counter[str] = Counter()
        self._coolant_used: Counter[str] = Counter()
        self._already_broken: set[tuple[int, int]] = set()
        self._needs_cooldown: set[tuple[int, int]] = set()
        self._components: list[ReactorComponent] = []
        self._publisher: Publisher | None = None

    @property
    def reactor_ticks(self) -> int:
        return self._reactor_ticks

    @property
    def cooldown_ticks(self) -> int:
        return self._cooldown_ticks

    def _publish(self, message: str) -> None:
        if self._publisher is not None:
            self._publisher(message)

    # ------------------------------------------------------------------
    # Main loop
    # ------------------------------------------------------------------

    def run(
        self,
        grid: ReactorGrid,
        logging_enabled: bool = False,
        publisher: Publisher | None = None,
    ) -> SimulationResult:
        """Simulate ``grid`` to completion and return the result record.

        Args:
            grid: Grid to simulate. Its components are mutated in place.
            logging_enabled: Append human-readable notes to each component's
                ``info`` list.
            publisher: Optional sink for diagnostic text lines.
        """
        started = time.perf_counter()
        self._publisher = publisher
        data = _RunData()
        self._publish("Simulation started.")

        grid.set_current_heat(self.initial_heat)
        grid.clear_vented_heat()
        min_reactor_heat = grid.current_heat
        max_reactor_heat = grid.current_heat
        start_fraction = grid.current_heat / grid.max_heat
        self._reached_below_50 = False
        self._reached_burn = start_fraction >= BURN_FRACTION
        self._reached_evaporate = start_fraction >= EVAPORATE_FRACTION
        self._reached_hurt = start_fraction >= HURT_FRACTION
        self._reached_lava = start_fraction >= LAVA_FRACTION
        self._reached_explode = False

        self._components = list(grid.components())
        for component in self._components:
            component.clear_current_heat()
            component.clear_damage()
            if logging_enabled:
                component.info.clear()
            self._total_rod_count += component.rod_count
            component.cache_neighbors(grid)

        last_eu_output = 0.0
        last_heat_output = 0.0
        total_eu_output = 0.0
        total_heat_output = 0.0
        max_generated_heat = 0.0
        self._all_fuel_rods_depleted = False
        self._components_intact = True
        self._any_rods_depleted = False

        while True:
            self._reactor_ticks += 1
            tick = self._reactor_ticks
            grid.clear_eu_output()
            grid.clear_vented_heat()

            for component in self._components:
                component.pre_tick()

            if self.active:
                # Assume depleted until an intact rod shows up.
                self._all_fuel_rods_depleted = True

            generated_heat = 0.0
            for component in self._components:
                if component.is_broken():
                    continue
                if self._all_fuel_rods_depleted and component.rod_count > 0:
                    self._all_fuel_rods_depleted = False
                if self.active:
                    generated_heat += component.generate_heat()
                component.dissipate()
                component.transfer()

            max_reactor_heat = max(grid.current_heat, max_reactor_heat)
            min_reactor_heat = min(grid.current_heat, min_reactor_heat)
            self._check_temperature(grid, data, tick)
            max_generated_heat = max(generated_heat, max_generated_heat)

            if self.active:
                for component in self._components:
                    if not component.is_broken():
                        component.generate_energy()

            last_eu_output = grid.current_eu_output
            total_eu_output += last_eu_output
            last_heat_output = grid.vented_heat
            total_heat_output += last_heat_output

            if grid.current_heat <= grid.max_heat:
                if grid.pulsed or grid.automated:
                    self._update_pulse_state(grid, tick)
                self._min_eu_output = min(last_eu_output, self._min_eu_output)
                self._max_eu_output = max(last_eu_output, self._max_eu_output)
                self._min_heat_output = min(last_heat_output, self._min_heat_output)
                self._max_heat_output = max(last_heat_output, self._max_heat_output)

            self._accumulate_heating_cooling(tick)
            self._handle_automation(grid, tick, logging_enabled)
            self._handle_broken_components(
                grid,
                data,
                tick,
                total_eu_output,
                total_heat_output,
                min_reactor_heat,
                max_reactor_heat,
                logging_enabled,
            )

            if grid.current_heat >= grid.max_heat:
                termination = Termination.EXPLODED
                break
            if self._all_fuel_rods_depleted and last_eu_output <= 0 and last_heat_output <= 0:
                termination = Termination.DEPLETED
                break
            if tick >= grid.max_simulation_ticks:
                termination = Termination.TICK_LIMIT
                break

        ticks = self._reactor_ticks
        self._publish(f"Reactor minimum temperature: {min_reactor_heat:g}")
        self._publish(f"Reactor maximum temperature: {max_reactor_heat:g}")

        output: OutputStats | None = None
        efficiency: EfficiencyStats | None = None
        explosion_power: float | None = None
        hull_cooldown: int | None = None
        component_cooldown: dict[tuple[int, int], int] = {}

        if termination is not Termination.EXPLODED:
            self._publish(f"Reactor ran for {ticks} ticks without exploding.")
            output, efficiency = self._output_stats(
                grid.fluid, ticks, total_eu_output, total_heat_output
            )
            self._publish(
                f"{self._unit(grid).value} output: total {output.total:g}, "
                f"average {output.average:g}, min {output.minimum:g}, max {output.maximum:g}"
            )
            if self._replaced:
                self._publish(f"Components replaced: {dict(self._replaced)}")
            hull_cooldown = self._cool_down(grid, logging_enabled, component_cooldown)
        else:
            self._publish(f"Reactor overheated at tick {ticks}.")
            power = EXPLOSION_BASE_POWER
            multiplier = 1.0
            for component in self._components:
                power += component.explosion_power_offset()
                multiplier *= component.explosion_power_multiplier()
            explosion_power = power * multiplier
            self._publish(f"Explosion power: {explosion_power:g}")

        cooling = self._cooling_utilization(grid, max_generated_heat, logging_enabled)
        self._snapshot_heating_cooling(grid, data, ticks)
        if cooling.excess_cooling >= 0:
            self._publish(f"Excess cooling: {cooling.excess_cooling:g}")
        else:
            self._publish(f"Excess heating: {-cooling.excess_cooling:g}")

        logger.debug(
            "Simulation finished after %d ticks (%s), max temp %.1f",
            ticks,
            termination.value,
            max_reactor_heat,
        )
        return SimulationResult(
            termination=termination,
            output_unit=self._unit(grid),
            total_ticks=ticks,
            total_rod_count=self._total_rod_count,
            min_temp=min_reactor_heat,
            max_temp=max_reactor_heat,
            time_to_burn=data.time_to_burn,
            time_to_evaporate=data.time_to_evaporate,
            time_to_hurt=data.time_to_hurt,
            time_to_lava=data.time_to_lava,
            time_to_explode=data.time_to_explode,
            time_to_below_50=data.time_to_below_50,
            output=output,
            efficiency=efficiency,
            first_component_broken=data.first_component_broken,
            first_rod_depleted=data.first_rod_depleted,
            replaced_components=dict(self._replaced),
            coolant_used=dict(self._coolant_used),
            pulse=self._pulse_stats() if grid.pulsed or grid.automated else None,
            heating_cooling=data.heating_cooling,
            cooling=cooling,
            explosion_power=explosion_power,
            cooldown_ticks=self._cooldown_ticks,
            hull_cooldown_ticks=hull_cooldown,
            component_cooldown_ticks=component_cooldown,
            remaining_heat=grid.current_heat,
            elapsed_seconds=time.perf_counter() - started,
        )

    # ------------------------------------------------------------------
    # Per-tick helpers
    # ------------------------------------------------------------------

    def _check_temperature(self, grid: ReactorGrid, data: _RunData, tick: int) -> None:
        heat = grid.current_heat
        max_heat = grid.max_heat
        if heat < EVAPORATE_FRACTION * max_heat and not self._reached_below_50 and self._reached_evaporate:
            self._publish(f"Reactor dropped below 50% heat at tick {tick}.")
            self._reached_below_50 = True
            data.time_to_below_50 = tick
        if heat >= BURN_FRACTION * max_heat and not self._reached_burn:
            self._publish(f"Reactor reached burn temperature at tick {tick}.")
            self._reached_burn = True
            data.time_to_burn = tick
        if heat >= EVAPORATE_FRACTION * max_heat and not self._reached_evaporate:
            self._publish(f"Reactor reached evaporation temperature at tick {tick}.")
            self._reached_evaporate = True
            data.time_to_evaporate = tick
        if heat >= HURT_FRACTION * max_heat and not self._reached_hurt:
            self._publish(f"Reactor reached hurt temperature at tick {tick}.")
            self._reached_hurt = True
            data.time_to_hurt = tick
        if heat >= LAVA_FRACTION * max_heat and not self._reached_lava:
            self._publish(f"Reactor reached lava temperature at tick {tick}.")
            self._reached_lava = True
            data.time_to_lava = tick
        if heat >= max_heat and not self._reached_explode:
            self._publish(f"Reactor reached explosion temperature at tick {tick}.")
            self._reached_explode = True
            data.time_to_explode = tick

    def _close_active_streak(self) -> None:
        self._min_active_time = min(self._current_active_time, self._min_active_time)
        self._max_active_time = max(self._current_active_time, self._max_active_time)
        self._current_active_time = 0

    def _close_inactive_streak(self) -> None:
        self._min_inactive_time = min(self._current_inactive_time, self._min_inactive_time)
        self._max_inactive_time = max(self._current_inactive_time, self._max_inactive_time)
        self._current_inactive_time = 0

    def _update_pulse_state(self, grid: ReactorGrid, tick: int) -> None:
        if self.active:
            self._active_time += 1
            self._current_active_time += 1
            if grid.pulsed and (
                grid.current_heat >= grid.suspend_temp
                or tick % (grid.on_pulse + grid.off_pulse) >= grid.on_pulse
            ):
                self.active = False
                self._close_active_streak()
        else:
            self._inactive_time += 1
            self._current_inactive_time += 1
            if grid.automated and self.pause_timer > 0:
                self.pause_timer -= 1
            elif not grid.pulsed or (
                grid.current_heat <= grid.resume_temp
                and tick % (grid.on_pulse + grid.off_pulse) < grid.on_pulse
            ):
                self.active = True
                self._close_inactive_streak()

    def _accumulate_heating_cooling(self, tick: int) -> None:
        if tick <= HEATING_WARMUP_TICKS:
            return
        for component in self._components:
            self._total_hull_heating += component.current_hull_heating
            self._total_component_heating += component.current_component_heating
            self._total_hull_cooling += component.current_hull_cooling
            self._total_vent_cooling += component.current_vent_cooling

    def _handle_automation(self, grid: ReactorGrid, tick: int, logging_enabled: bool) -> None:
        for component in self._components:
            if grid.automated and self._needs_replacement(component):
                self._replaced[component.name] += 1
                if logging_enabled:
                    component.info.append(f"Replaced at tick {tick}")
                if component.reactor_pause > 0:
                    self.active = False
                    self.pause_timer = max(self.pause_timer, component.reactor_pause)
                    self._close_active_streak()

            if grid.using_coolant_injectors and component.needs_coolant_injected():
                coolant = component.inject_coolant()
                if coolant is not None:
                    self._coolant_used[coolant] += 1

    @staticmethod
    def _needs_replacement(component: ReactorComponent) -> bool:
        """Reset a component that crossed its automation threshold.

        Heat holders are replaced when heat rises to a threshold above their
        starting heat, or falls to a threshold below it. Damage holders are
        replaced when broken or when damage reaches the threshold.
        """
        threshold = component.automation_threshold
        if component.max_heat > 1:
            initial = component.initial_heat
            if (threshold > initial and component.current_heat >= threshold) or (
                threshold < initial and component.current_heat <= threshold
            ):
                component.clear_current_heat()
                return True
            return False
        if component.is_broken() or (
            component.max_damage > 1 and component.current_damage >= threshold
        ):
            component.clear_damage()
            return True
        return False

    def _handle_broken_components(
        self,
        grid: ReactorGrid,
        data: _RunData,
        tick: int,
        total_eu_output: float,
        total_heat_output: float,
        min_reactor_heat: float,
        max_reactor_heat: float,
        logging_enabled: bool,
    ) -> None:
        for component in self._components:
            position = (component.row, component.col)
            if not component.is_broken() or position in self._already_broken:
                continue
            self._already_broken.add(position)
            if component.rod_count == 0:
                self._publish(f"R{component.row}C{component.col} broke at tick {tick}.")
                if logging_enabled:
                    component.info.append(f"Broke after {tick} ticks")
                if self._components_intact:
                    self._components_intact = False
                    output, efficiency = self._output_stats(
                        grid.fluid, tick, total_eu_output, total_heat_output
                    )
                    data.first_component_broken = ComponentEvent(
                        tick=tick,
                        row=component.row,
                        col=component.col,
                        description=str(component),
                        output=output,
                        efficiency=efficiency,
                    )
            elif not self._any_rods_depleted:
                self._any_rods_depleted = True
                self._publish(
                    f"First rod depleted: {component} at R{component.row}C{component.col}, "
                    f"tick {tick}."
                )
                output, efficiency = self._output_stats(
                    grid.fluid, tick, total_eu_output, total_heat_output
                )
                data.first_rod_depleted = ComponentEvent(
                    tick=tick,
                    row=component.row,
                    col=component.col,
                    description=str(component),
                    output=output,
                    efficiency=efficiency,
                    min_temp=min_reactor_heat,
                    max_temp=max_reactor_heat,
                )
            self._snapshot_heating_cooling(grid, data, tick)

    # ------------------------------------------------------------------
    # Aggregation
    # ------------------------------------------------------------------

    @staticmethod
    def _unit(grid: ReactorGrid) -> OutputUnit:
        return OutputUnit.HU if grid.fluid else OutputUnit.EU

    def _output_stats(
        self,
        fluid: bool,
        ticks: int,
        total_eu_output: float,
        total_heat_output: float,
    ) -> tuple[OutputStats, EfficiencyStats | None]:
        rods = self._total_rod_count
        if fluid:
            min_heat = _finite(self._min_heat_output)
            output = OutputStats(
                total=HU_TOTAL_FACTOR * total_heat_output,
                average=HU_RATE_FACTOR * total_heat_output / ticks,
                minimum=HU_RATE_FACTOR * min_heat,
                maximum=HU_RATE_FACTOR * self._max_heat_output,
            )
            efficiency = None
            if rods > 0:
                efficiency = EfficiencyStats(
                    average=total_heat_output / ticks / HU_EFFICIENCY_DIVISOR / rods,
                    minimum=min_heat / HU_EFFICIENCY_DIVISOR / rods,
                    maximum=self._max_heat_output / HU_EFFICIENCY_DIVISOR / rods,
                )
            return output, efficiency

        min_eu = _finite(self._min_eu_output)
        output = OutputStats(
            total=total_eu_output,
            average=total_eu_output / (ticks * TICKS_PER_SECOND),
            minimum=min_eu / TICKS_PER_SECOND,
            maximum=self._max_eu_output / TICKS_PER_SECOND,
        )
        efficiency = None
        if rods > 0:
            efficiency = EfficiencyStats(
                average=total_eu_output / ticks / EU_EFFICIENCY_DIVISOR / rods,
                minimum=min_eu / EU_EFFICIENCY_DIVISOR / rods,
                maximum=self._max_eu_output / EU_EFFICIENCY_DIVISOR / rods,
            )
        return output, efficiency

    def _cool_down(
        self,
        grid: ReactorGrid,
        logging_enabled: bool,
        component_cooldown: dict[tuple[int, int], int],
    ) -> int | None:
        """Run dissipate/transfer only until nothing vents; return hull time-to-zero."""
        remaining_component_heat = 0.0
        for component in self._components:
            if component.is_broken() or component.current_heat <= 0.0:
                continue
            remaining_component_heat += component.current_heat
            self._needs_cooldown.add((component.row, component.col))
            if logging_enabled:
                component.info.append(f"Remaining heat: {component.current_heat:g}")

        if grid.current_heat == 0.0 and remaining_component_heat == 0.0:
            self._publish("No cooldown needed.")
            return None

        hull_cooldown: int | None = None
        while True:
            grid.clear_vented_heat()
            if grid.current_heat == 0.0 and hull_cooldown is None:
                hull_cooldown = self._cooldown_ticks
            for component in self._components:
                if not component.is_broken():
                    component.dissipate()
                    component.transfer()
            last_heat_output = grid.vented_heat
            self._cooldown_ticks += 1
            for component in self._components:
                position = (component.row, component.col)
                if (
                    not component.is_broken()
                    and component.current_heat == 0.0
                    and position in self._needs_cooldown
                ):
                    self._needs_cooldown.discard(position)
                    component_cooldown[position] = self._cooldown_ticks
                    if logging_enabled:
                        component.info.append(f"Cooled down after {self._cooldown_ticks} ticks")
            if last_heat_output <= 0 or self._cooldown_ticks >= MAX_COOLDOWN_TICKS:
                break

        if grid.current_heat == 0.0 and hull_cooldown is None:
            hull_cooldown = self._cooldown_ticks
        if grid.current_heat > 0.0:
            self._publish(f"Reactor keeps {grid.current_heat:g} residual heat.")
        self._publish(f"Total cooldown time: {self._cooldown_ticks} ticks.")
        return hull_cooldown

    def _cooling_utilization(
        self, grid: ReactorGrid, max_generated_heat: float, logging_enabled: bool
    ) -> CoolingUtilization:
        effective_vent = 0.0
        vent_capacity = 0.0
        cell = 0.0
        condensator = 0.0
        for component in self._components:
            capacity = component.vent_cooling_capacity()
            if capacity > 0:
                effective_vent += component.best_vent_cooling
                vent_capacity += capacity
                if logging_enabled:
                    component.info.append(
                        f"Used {component.best_vent_cooling:g} of {capacity:g} cooling"
                    )
            elif component.best_cell_cooling > 0:
                cell += component.best_cell_cooling
                if logging_enabled:
                    component.info.append(f"Received at most {component.best_cell_cooling:g} heat")
            elif component.best_condensator_cooling > 0:
                condensator += component.best_condensator_cooling
                if logging_enabled:
                    component.info.append(
                        f"Received at most {component.best_condensator_cooling:g} heat"
                    )
            elif component.max_heat_generated > 0 and logging_enabled:
                if not grid.fluid and component.max_eu_generated > 0:
                    component.info.append(
                        f"Generated {component.min_eu_generated:g} to "
                        f"{component.max_eu_generated:g} EU per tick"
                    )
                component.info.append(
                    f"Generated {component.min_heat_generated:g} to "
                    f"{component.max_heat_generated:g} heat per tick"
                )
            if component.max_reached_heat > 0 and logging_enabled:
                component.info.append(
                    f"Reached {component.max_reached_heat:g} of {component.max_heat:g} heat"
                )
        return CoolingUtilization(
            effective_vent_cooling=effective_vent,
            vent_cooling_capacity=vent_capacity,
            cell_cooling=cell,
            condensator_cooling=condensator,
            max_generated_heat=max_generated_heat,
        )

    def _snapshot_heating_cooling(self, grid: ReactorGrid, data: _RunData, tick: int) -> None:
        """Record average heating/cooling once, at the first break or at the end."""
        if self._heating_cooling_reported:
            return
        self._heating_cooling_reported = True
        if tick < HEATING_REPORT_MIN_TICKS:
            return
        window = tick - HEATING_WARMUP_TICKS
        components = list(grid.components())
        data.heating_cooling = HeatingCooling(
            hull_heating=self._total_hull_heating / window,
            component_heating=self._total_component_heating / window,
            hull_cooling=self._total_hull_cooling / window,
            hull_cooling_capacity=sum(c.hull_cooling_capacity() for c in components),
            vent_cooling=self._total_vent_cooling / window,
            vent_cooling_capacity=sum(c.vent_cooling_capacity() for c in components),
        )

    def _pulse_stats(self) -> PulseStats:
        return PulseStats(
            active_time=self._active_time,
            inactive_time=self._inactive_time,
            min_active_streak=None if math.isinf(self._min_active_time) else int(self._min_active_time),
            max_active_streak=self._max_active_time,
            min_inactive_streak=(
                None if math.isinf(self._min_inactive_time) else int(self._min_inactive_time)
            ),
            max_inactive_streak=self._max_inactive_time,
        )
