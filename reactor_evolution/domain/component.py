"""Component capability contract and shared base behavior.

The simulator depends only on :class:`Component`. Concrete variants subclass
:class:`ReactorComponent` and override the hooks that apply to them; every
hook has a no-op default so a variant only states what it actually does.

Heat adjustment convention: ``adjust_current_heat`` returns the portion of
the requested change that was *not* applied, with the same sign as the
request. A component that cannot hold heat rejects the whole amount.
"""

from __future__ import annotations

import copy
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from reactor_evolution.domain.grid import ReactorGrid

# Neighbor order: up, right, down, left. Heat remainders go to the first
# accepting neighbor in this order.
NEIGHBOR_OFFSETS: tuple[tuple[int, int], ...] = ((-1, 0), (0, 1), (1, 0), (0, -1))


@runtime_checkable
class Component(Protocol):
    """Behavioral contract the simulation engine relies on."""

    component_id: int
    base_name: str
    name: str
    row: int
    col: int
    info: list[str]

    @property
    def max_heat(self) -> float: ...

    @property
    def max_damage(self) -> float: ...

    @property
    def current_heat(self) -> float: ...

    @property
    def current_damage(self) -> float: ...

    @property
    def initial_heat(self) -> float: ...

    @property
    def automation_threshold(self) -> float: ...

    @property
    def reactor_pause(self) -> int: ...

    def pre_tick(self) -> None: ...

    def generate_heat(self) -> float: ...

    def generate_energy(self) -> float: ...

    def dissipate(self) -> float: ...

    def transfer(self) -> None: ...

    def adjust_current_heat(self, amount: float) -> float: ...

    def clear_current_heat(self) -> None: ...

    def clear_damage(self) -> None: ...

    def apply_damage(self, amount: float) -> None: ...

    def is_broken(self) -> bool: ...

    def is_heat_acceptor(self) -> bool: ...

    def is_coolable(self) -> bool: ...

    def is_neutron_reflector(self) -> bool: ...

    @property
    def rod_count(self) -> int: ...

    def cache_neighbors(self, grid: ReactorGrid) -> None: ...

    def needs_coolant_injected(self) -> bool: ...

    def inject_coolant(self) -> str | None: ...

    def explosion_power_offset(self) -> float: ...

    def explosion_power_multiplier(self) -> float: ...

    def vent_cooling_capacity(self) -> float: ...

    def hull_cooling_capacity(self) -> float: ...


class ReactorComponent:
    """Base implementation of :class:`Component` with IC2 default semantics."""

    def __init__(
        self,
        component_id: int,
        base_name: str,
        name: str,
        max_damage: float = 1.0,
        max_heat: float = 1.0,
    ) -> None:
        self.component_id = component_id
        self.base_name = base_name
        self.name = name
        self._max_damage = float(max_damage)
        self._max_heat = float(max_heat)

        self._initial_heat = 0.0
        self._automation_threshold = self.default_automation_threshold()
        self._reactor_pause = 0

        self.grid: ReactorGrid | None = None
        self.row = -1
        self.col = -1
        self.neighbors: list[ReactorComponent | None] = []
        self.info: list[str] = []

        self._current_heat = 0.0
        self._current_damage = 0.0
        self.max_reached_heat = 0.0

        self.current_heat_generated = 0.0
        self.min_heat_generated = float("inf")
        self.max_heat_generated = 0.0
        self.current_eu_generated = 0.0
        self.min_eu_generated = float("inf")
        self.max_eu_generated = 0.0

        self.current_hull_heating = 0.0
        self.current_component_heating = 0.0
        self.current_hull_cooling = 0.0
        self.current_vent_cooling = 0.0
        self.best_vent_cooling = 0.0
        self.current_cell_cooling = 0.0
        self.best_cell_cooling = 0.0
        self.current_condensator_cooling = 0.0
        self.best_condensator_cooling = 0.0

    # ------------------------------------------------------------------
    # Identity and configuration
    # ------------------------------------------------------------------

    def copy(self) -> ReactorComponent:
        """Return a detached clone carrying the same automation settings."""
        clone = copy.copy(self)
        clone.grid = None
        clone.row = -1
        clone.col = -1
        clone.neighbors = []
        clone.info = []
        clone._current_heat = clone._initial_heat
        clone._current_damage = 0.0
        clone.max_reached_heat = clone._initial_heat
        return clone

    def __str__(self) -> str:
        if self._initial_heat > 0:
            return f"{self.name} (initial heat: {self._initial_heat:g})"
        return self.name

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.component_id}, {self.base_name!r})"

    @property
    def max_heat(self) -> float:
        return self._max_heat

    @property
    def max_damage(self) -> float:
        return self._max_damage

    @property
    def current_heat(self) -> float:
        return self._current_heat

    @property
    def current_damage(self) -> float:
        return self._current_damage

    @property
    def initial_heat(self) -> float:
        return self._initial_heat

    @initial_heat.setter
    def initial_heat(self, value: float) -> None:
        if value < 0 or (self._max_heat > 1 and value >= self._max_heat):
            raise ValueError(f"initial_heat for {self.name} must be in [0, {self._max_heat:g})")
        self._initial_heat = float(value)
        self._current_heat = float(value)

    @property
    def automation_threshold(self) -> float:
        return self._automation_threshold

    @automation_threshold.setter
    def automation_threshold(self, value: float) -> None:
        if value < 0:
            raise ValueError("automation_threshold must be >= 0")
        self._automation_threshold = float(value)

    @property
    def reactor_pause(self) -> int:
        return self._reactor_pause

    @reactor_pause.setter
    def reactor_pause(self, value: int) -> None:
        if value < 0:
            raise ValueError("reactor_pause must be >= 0")
        self._reactor_pause = int(value)

    def default_automation_threshold(self) -> float:
        """Replace heat holders at 90% capacity and damage holders when spent."""
        if self._max_heat > 1:
            return float(int(self._max_heat * 0.9))
        if self._max_damage > 1:
            return self._max_damage
        return 0.0

    def has_custom_settings(self) -> bool:
        return (
            self._initial_heat != 0
            or self._automation_threshold != self.default_automation_threshold()
            or self._reactor_pause != 0
        )

    # ------------------------------------------------------------------
    # Placement
    # ------------------------------------------------------------------

    def attach(self, grid: ReactorGrid, row: int, col: int) -> None:
        self.grid = grid
        self.row = row
        self.col = col

    def detach(self) -> None:
        self.grid = None
        self.row = -1
        self.col = -1
        self.neighbors = []

    def cache_neighbors(self, grid: ReactorGrid) -> None:
        self.neighbors = [
            grid.component_at(self.row + dr, self.col + dc) for dr, dc in NEIGHBOR_OFFSETS
        ]

    def _require_grid(self) -> ReactorGrid:
        if self.grid is None:
            raise RuntimeError(f"{self.name} is not placed in a reactor grid")
        return self.grid

    # ------------------------------------------------------------------
    # Heat and damage
    # ------------------------------------------------------------------

    def adjust_current_heat(self, amount: float) -> float:
        if not self.is_heat_acceptor():
            return amount
        rejected = 0.0
        heat = self._current_heat + amount
        if heat > self._max_heat:
            rejected = heat - self._max_heat
            heat = self._max_heat
        elif heat < 0.0:
            rejected = heat
            heat = 0.0
        self._current_heat = heat
        self.max_reached_heat = max(self.max_reached_heat, heat)
        return rejected

    def clear_current_heat(self) -> None:
        self._current_heat = self._initial_heat
        self.max_reached_heat = self._initial_heat
        self.best_vent_cooling = 0.0
        self.best_cell_cooling = 0.0
        self.best_condensator_cooling = 0.0

    def clear_damage(self) -> None:
        self._current_damage = 0.0

    def apply_damage(self, amount: float) -> None:
        if self._max_damage > 1 and amount > 0:
            self._current_damage += amount

    def is_broken(self) -> bool:
        return self._current_heat >= self._max_heat or self._current_damage >= self._max_damage

    def is_heat_acceptor(self) -> bool:
        return self._max_heat > 1 and not self.is_broken()

    def is_coolable(self) -> bool:
        return self._max_heat > 1 and not self.is_broken()

    def is_neutron_reflector(self) -> bool:
        return False

    @property
    def rod_count(self) -> int:
        return 0

    @property
    def hull_heat_adjustment(self) -> float:
        return 0.0

    # ------------------------------------------------------------------
    # Per-tick hooks
    # ------------------------------------------------------------------

    def pre_tick(self) -> None:
        self.current_hull_heating = 0.0
        self.current_component_heating = 0.0
        self.current_hull_cooling = 0.0
        self.current_vent_cooling = 0.0
        self.current_cell_cooling = 0.0
        self.current_condensator_cooling = 0.0

    def generate_heat(self) -> float:
        return 0.0

    def generate_energy(self) -> float:
        return 0.0

    def dissipate(self) -> float:
        return 0.0

    def transfer(self) -> None:
        return None

    # ------------------------------------------------------------------
    # Automation and diagnostics
    # ------------------------------------------------------------------

    def needs_coolant_injected(self) -> bool:
        return False

    def inject_coolant(self) -> str | None:
        """Refill coolant and return the consumed material, if any."""
        return None

    def explosion_power_offset(self) -> float:
        if self.is_broken():
            return 0.0
        if self.rod_count == 0 and self.is_neutron_reflector():
            return -1.0
        return 2.0 * self.rod_count

    def explosion_power_multiplier(self) -> float:
        return 1.0

    def vent_cooling_capacity(self) -> float:
        return 0.0

    def hull_cooling_capacity(self) -> float:
        return 0.0
