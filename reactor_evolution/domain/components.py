"""Reference component variants.

Each class captures one family of IC2 Experimental reactor components; the
per-item constants live in the factory catalog. Formulas follow the game's
``ItemReactor*`` classes closely enough for layout comparison, not for
bit-exact reproduction of every mod version.
"""

from __future__ import annotations

import math
from enum import Enum

from reactor_evolution.domain.component import ReactorComponent


class Ruleset(Enum):
    """Game ruleset that changes fuel-rod energy output."""

    IC2 = "ic2"
    GT5_09 = "gt5.09"
    GTNH = "gtnh"


def _round_half_up(value: float) -> float:
    return math.floor(value + 0.5)


def _round_tenths(value: float) -> float:
    return _round_half_up(value * 10.0) / 10.0


# ---------------------------------------------------------------------------
# Fuel
# ---------------------------------------------------------------------------


class FuelRod(ReactorComponent):
    """Single, dual, or quad fuel rod (uranium or MOX style)."""

    def __init__(
        self,
        component_id: int,
        base_name: str,
        name: str,
        max_damage: float,
        energy_mult: int,
        heat_mult: float,
        rod_count: int,
        mox_style: bool = False,
        ruleset: Ruleset = Ruleset.IC2,
    ) -> None:
        super().__init__(component_id, base_name, name, max_damage=max_damage, max_heat=1.0)
        self.energy_mult = energy_mult
        self.heat_mult = heat_mult
        self._rod_count = rod_count
        self.mox_style = mox_style
        self.ruleset = ruleset

    @property
    def rod_count(self) -> int:
        return self._rod_count

    def is_neutron_reflector(self) -> bool:
        return not self.is_broken()

    def _pulses(self) -> int:
        reflecting = sum(
            1 for neighbor in self.neighbors if neighbor is not None and neighbor.is_neutron_reflector()
        )
        own = 1 if self._rod_count == 1 else 2 if self._rod_count == 2 else 3
        return reflecting + own

    def _handle_heat(self, heat: int) -> None:
        grid = self._require_grid()
        acceptors = [n for n in self.neighbors if n is not None and n.is_heat_acceptor()]
        if not acceptors:
            grid.adjust_current_heat(heat)
            self.current_hull_heating = float(heat)
            return
        self.current_component_heating = float(heat)
        per_neighbor, remainder = divmod(heat, len(acceptors))
        for neighbor in acceptors:
            neighbor.adjust_current_heat(per_neighbor)
        if remainder > 0:
            acceptors[0].adjust_current_heat(remainder)

    def generate_heat(self) -> float:
        grid = self._require_grid()
        pulses = self._pulses()
        heat = int(self.heat_mult * pulses * (pulses + 1))
        if self.mox_style and grid.fluid and grid.current_heat / grid.max_heat > 0.5:
            heat *= 2
        self.current_heat_generated = float(heat)
        self.min_heat_generated = min(self.min_heat_generated, heat)
        self.max_heat_generated = max(self.max_heat_generated, heat)
        self._handle_heat(heat)
        return self.current_heat_generated

    def generate_energy(self) -> float:
        grid = self._require_grid()
        energy = float(self.energy_mult * self._pulses())
        heat_ratio = grid.current_heat / grid.max_heat
        if self.ruleset is Ruleset.GT5_09:
            energy *= 2
            if self.mox_style:
                energy *= 1 + 1.5 * heat_ratio
        elif self.ruleset is Ruleset.GTNH:
            energy *= 10
            if self.mox_style:
                energy *= 1 + 1.5 * heat_ratio
        elif self.mox_style:
            energy *= 1 + 4.0 * heat_ratio
        self.min_eu_generated = min(self.min_eu_generated, energy)
        self.max_eu_generated = max(self.max_eu_generated, energy)
        self.current_eu_generated = energy
        grid.add_eu_output(energy)
        self.apply_damage(1.0)
        return energy


# ---------------------------------------------------------------------------
# Neutron reflectors
# ---------------------------------------------------------------------------


class Reflector(ReactorComponent):
    """Neutron reflector; wears down by the rod count of its neighbors."""

    def is_neutron_reflector(self) -> bool:
        return not self.is_broken()

    def generate_heat(self) -> float:
        for neighbor in self.neighbors:
            if neighbor is not None:
                self.apply_damage(neighbor.rod_count)
        return 0.0


# ---------------------------------------------------------------------------
# Cooling
# ---------------------------------------------------------------------------


class Vent(ReactorComponent):
    """Heat vent: draws from the hull, vents itself, and cools neighbors."""

    def __init__(
        self,
        component_id: int,
        base_name: str,
        name: str,
        max_heat: float,
        self_vent: int,
        hull_draw: int = 0,
        side_vent: int = 0,
    ) -> None:
        super().__init__(component_id, base_name, name, max_heat=max_heat)
        self.self_vent = self_vent
        self.hull_draw = hull_draw
        self.side_vent = side_vent

    def dissipate(self) -> float:
        grid = self._require_grid()
        drawn = min(self.hull_draw, grid.current_heat)
        self.current_hull_cooling = drawn
        grid.adjust_current_heat(-drawn)
        self.adjust_current_heat(drawn)

        vented = min(self.self_vent, self.current_heat)
        self.current_vent_cooling = vented
        grid.vent_heat(vented)
        self.adjust_current_heat(-vented)

        if self.side_vent > 0:
            coolable = [n for n in self.neighbors if n is not None and n.is_coolable()]
            for neighbor in coolable:
                rejected = neighbor.adjust_current_heat(-self.side_vent)
                removed = self.side_vent + rejected
                grid.vent_heat(removed)
                self.current_vent_cooling += removed
        self.best_vent_cooling = max(self.best_vent_cooling, self.current_vent_cooling)
        return vented

    def vent_cooling_capacity(self) -> float:
        capacity = float(self.self_vent)
        if self.side_vent > 0:
            capacity += self.side_vent * sum(
                1 for n in self.neighbors if n is not None and n.is_coolable()
            )
        return capacity

    def hull_cooling_capacity(self) -> float:
        return float(self.hull_draw)


class Exchanger(ReactorComponent):
    """Heat exchanger balancing heat between itself, neighbors, and the hull."""

    def __init__(
        self,
        component_id: int,
        base_name: str,
        name: str,
        max_heat: float,
        switch_side: int,
        switch_reactor: int,
    ) -> None:
        super().__init__(component_id, base_name, name, max_heat=max_heat)
        self.switch_side = switch_side
        self.switch_reactor = switch_reactor

    def _scaled_step(self, add: float, combined: float) -> float:
        if combined < 1.0:
            add = self.switch_side // 2
        if combined < 0.75:
            add = self.switch_side // 4
        if combined < 0.5:
            add = self.switch_side // 8
        if combined < 0.25:
            add = 1
        return add

    def transfer(self) -> None:
        grid = self._require_grid()
        acceptors = [n for n in self.neighbors if n is not None and n.is_heat_acceptor()]
        my_heat = 0.0

        if self.switch_side > 0:
            for neighbor in acceptors:
                my_med = self.current_heat * 100.0 / self.max_heat
                their_med = neighbor.current_heat * 100.0 / neighbor.max_heat
                combined = their_med + my_med / 2.0
                add = float(int(neighbor.max_heat / 100.0 * combined))
                add = min(add, float(self.switch_side))
                add = self._scaled_step(add, combined)
                if _round_tenths(their_med) > _round_tenths(my_med):
                    add = -add
                elif _round_tenths(their_med) == _round_tenths(my_med):
                    add = 0.0
                my_heat -= add
                if add > 0:
                    self.current_component_heating += add
                my_heat += neighbor.adjust_current_heat(add)

        if self.switch_reactor > 0:
            my_med = self.current_heat * 100.0 / self.max_heat
            hull_med = grid.current_heat * 100.0 / grid.max_heat
            combined = hull_med + my_med / 2.0
            add = _round_half_up(grid.max_heat / 100.0 * combined)
            add = min(add, float(self.switch_reactor))
            add = self._scaled_step(add, combined)
            if _round_tenths(hull_med) > _round_tenths(my_med):
                add = -add
            elif _round_tenths(hull_med) == _round_tenths(my_med):
                add = 0.0
            my_heat -= add
            grid.adjust_current_heat(add)
            if add > 0:
                self.current_hull_heating = add
            else:
                self.current_hull_cooling = -add

        self.adjust_current_heat(my_heat)

    def hull_cooling_capacity(self) -> float:
        return float(self.switch_reactor)


class CoolantCell(ReactorComponent):
    """Passive heat sink; tracks how much heat it absorbed."""

    def adjust_current_heat(self, amount: float) -> float:
        self.current_cell_cooling += amount
        self.best_cell_cooling = max(self.current_cell_cooling, self.best_cell_cooling)
        return super().adjust_current_heat(amount)


class Condensator(ReactorComponent):
    """RSH/LZH condensator: absorbs heat, cannot be cooled, refilled by injection."""

    def __init__(
        self,
        component_id: int,
        base_name: str,
        name: str,
        max_heat: float,
        coolant: str,
    ) -> None:
        super().__init__(component_id, base_name, name, max_heat=max_heat)
        self.coolant = coolant

    def adjust_current_heat(self, amount: float) -> float:
        if amount < 0.0 or self.is_broken():
            return amount
        self.current_condensator_cooling += amount
        self.best_condensator_cooling = max(
            self.best_condensator_cooling, self.current_condensator_cooling
        )
        accepted = min(amount, self.max_heat - self.current_heat)
        self._current_heat += accepted
        self.max_reached_heat = max(self.max_reached_heat, self._current_heat)
        return amount - accepted

    def is_coolable(self) -> bool:
        return False

    def needs_coolant_injected(self) -> bool:
        return self.current_heat > 0.85 * self.max_heat

    def inject_coolant(self) -> str | None:
        self._current_heat = 0.0
        return self.coolant


class Plating(ReactorComponent):
    """Reactor plating: raises hull capacity and dampens explosions."""

    def __init__(
        self,
        component_id: int,
        base_name: str,
        name: str,
        heat_adjustment: float,
        explosion_multiplier: float,
    ) -> None:
        super().__init__(component_id, base_name, name)
        self.heat_adjustment = heat_adjustment
        self.explosion_multiplier = explosion_multiplier

    @property
    def hull_heat_adjustment(self) -> float:
        return self.heat_adjustment

    def explosion_power_multiplier(self) -> float:
        return self.explosion_multiplier
