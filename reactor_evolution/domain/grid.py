"""Reactor grid: component placement plus hull heat and per-tick output state."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field

from reactor_evolution.config.constants import (
    BASE_MAX_HEAT,
    DEFAULT_OFF_PULSE,
    DEFAULT_ON_PULSE,
    DEFAULT_RESUME_TEMP,
    DEFAULT_SUSPEND_TEMP,
    GRID_COLS,
    GRID_ROWS,
    MAX_SIMULATION_TICKS,
)
from reactor_evolution.domain.component import ReactorComponent


@dataclass(eq=False)
class ReactorGrid:
    """A rows x cols reactor with mode flags and hull state.

    Hull heat never goes below zero. It changes only through component hooks
    or :meth:`set_current_heat` from the simulator.
    """

    rows: int = GRID_ROWS
    cols: int = GRID_COLS
    fluid: bool = False
    pulsed: bool = False
    automated: bool = False
    using_coolant_injectors: bool = False
    on_pulse: int = DEFAULT_ON_PULSE
    off_pulse: int = DEFAULT_OFF_PULSE
    suspend_temp: int = DEFAULT_SUSPEND_TEMP
    resume_temp: int = DEFAULT_RESUME_TEMP
    max_simulation_ticks: int = MAX_SIMULATION_TICKS
    current_heat: float = field(default=0.0, init=False)
    current_eu_output: float = field(default=0.0, init=False)
    vented_heat: float = field(default=0.0, init=False)
    _cells: list[list[ReactorComponent | None]] = field(init=False, repr=False)
    _max_heat: float = field(default=BASE_MAX_HEAT, init=False, repr=False)

    def __post_init__(self) -> None:
        if self.rows < 1 or self.cols < 1:
            raise ValueError("rows and cols must be >= 1")
        if self.on_pulse < 0 or self.off_pulse < 0:
            raise ValueError("on_pulse and off_pulse must be >= 0")
        if self.pulsed and self.on_pulse + self.off_pulse < 1:
            raise ValueError("a pulsed reactor needs on_pulse + off_pulse >= 1")
        if self.max_simulation_ticks < 1:
            raise ValueError("max_simulation_ticks must be >= 1")
        self._cells = [[None] * self.cols for _ in range(self.rows)]

    # ------------------------------------------------------------------
    # Placement
    # ------------------------------------------------------------------

    def in_bounds(self, row: int, col: int) -> bool:
        return 0 <= row < self.rows and 0 <= col < self.cols

    def component_at(self, row: int, col: int) -> ReactorComponent | None:
        if not self.in_bounds(row, col):
            return None
        return self._cells[row][col]

    def set_component(self, row: int, col: int, component: ReactorComponent | None) -> None:
        if not self.in_bounds(row, col):
            raise IndexError(f"cell ({row}, {col}) is outside a {self.rows}x{self.cols} grid")
        previous = self._cells[row][col]
        if previous is not None:
            previous.detach()
        if component is not None:
            component.attach(self, row, col)
        self._cells[row][col] = component
        self._max_heat = BASE_MAX_HEAT + sum(c.hull_heat_adjustment for c in self.components())

    def components(self) -> Iterator[ReactorComponent]:
        """Yield placed components in row-major order."""
        for row in self._cells:
            for component in row:
                if component is not None:
                    yield component

    def cell_ids(self) -> list[int | None]:
        return [
            None if component is None else component.component_id
            for row in self._cells
            for component in row
        ]

    # ------------------------------------------------------------------
    # Hull state
    # ------------------------------------------------------------------

    @property
    def max_heat(self) -> float:
        return self._max_heat

    def set_current_heat(self, heat: float) -> None:
        self.current_heat = max(0.0, float(heat))

    def adjust_current_heat(self, amount: float) -> None:
        self.current_heat = max(0.0, self.current_heat + amount)

    def add_eu_output(self, amount: float) -> None:
        self.current_eu_output += amount

    def vent_heat(self, amount: float) -> None:
        self.vented_heat += amount

    def clear_eu_output(self) -> None:
        self.current_eu_output = 0.0

    def clear_vented_heat(self) -> None:
        self.vented_heat = 0.0
