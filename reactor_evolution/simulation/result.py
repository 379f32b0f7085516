"""Immutable records produced by one simulation run."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class OutputUnit(Enum):
    """Mutually exclusive output metric, chosen by the grid's fluid flag."""

    EU = "EU"
    HU = "HU"


class Termination(Enum):
    """Why the main simulation loop stopped."""

    EXPLODED = "exploded"
    DEPLETED = "depleted"
    TICK_LIMIT = "tick_limit"


@dataclass(frozen=True)
class OutputStats:
    """Total plus per-tick average/min/max output in the run's output unit."""

    total: float
    average: float
    minimum: float
    maximum: float


@dataclass(frozen=True)
class EfficiencyStats:
    """Output per rod per tick, normalized like the in-game planner."""

    average: float
    minimum: float
    maximum: float


@dataclass(frozen=True)
class ComponentEvent:
    """First structural break or first rod depletion during a run.

    ``output`` aggregates everything produced up to and including ``tick``.
    Temperature extremes are only recorded for depletion events.
    """

    tick: int
    row: int
    col: int
    description: str
    output: OutputStats
    efficiency: EfficiencyStats | None = None
    min_temp: float | None = None
    max_temp: float | None = None


@dataclass(frozen=True)
class HeatingCooling:
    """Average per-tick heating/cooling after the warm-up window."""

    hull_heating: float
    component_heating: float
    hull_cooling: float
    hull_cooling_capacity: float
    vent_cooling: float
    vent_cooling_capacity: float


@dataclass(frozen=True)
class CoolingUtilization:
    """Best observed cooling per category against peak generated heat."""

    effective_vent_cooling: float
    vent_cooling_capacity: float
    cell_cooling: float
    condensator_cooling: float
    max_generated_heat: float

    @property
    def total_cooling(self) -> float:
        return self.effective_vent_cooling + self.cell_cooling + self.condensator_cooling

    @property
    def excess_cooling(self) -> float:
        """Positive when cooling covers peak heat; negative is excess heating."""
        return self.total_cooling - self.max_generated_heat


@dataclass(frozen=True)
class PulseStats:
    """Active/inactive tick counts and streak extremes of pulsed operation."""

    active_time: int
    inactive_time: int
    min_active_streak: int | None
    max_active_streak: int
    min_inactive_streak: int | None
    max_inactive_streak: int


@dataclass(frozen=True)
class SimulationResult:
    """Everything one run measured.

    Threshold fields hold the first tick at which hull heat reached the given
    fraction of max heat: 40% burns, 50% evaporates water, 70% hurts, 85%
    turns blocks to lava, 100% explodes. ``time_to_below_50`` is the first
    tick back under 50% after evaporation was reached.
    """

    termination: Termination
    output_unit: OutputUnit
    total_ticks: int
    total_rod_count: int
    min_temp: float
    max_temp: float
    time_to_burn: int | None = None
    time_to_evaporate: int | None = None
    time_to_hurt: int | None = None
    time_to_lava: int | None = None
    time_to_explode: int | None = None
    time_to_below_50: int | None = None
    output: OutputStats | None = None
    efficiency: EfficiencyStats | None = None
    first_component_broken: ComponentEvent | None = None
    first_rod_depleted: ComponentEvent | None = None
    replaced_components: dict[str, int] = field(default_factory=dict)
    coolant_used: dict[str, int] = field(default_factory=dict)
    pulse: PulseStats | None = None
    heating_cooling: HeatingCooling | None = None
    cooling: CoolingUtilization | None = None
    explosion_power: float | None = None
    cooldown_ticks: int = 0
    hull_cooldown_ticks: int | None = None
    component_cooldown_ticks: dict[tuple[int, int], int] = field(default_factory=dict)
    remaining_heat: float = 0.0
    elapsed_seconds: float = field(default=0.0, compare=False)

    @property
    def exploded(self) -> bool:
        return self.termination is Termination.EXPLODED

    @property
    def any_component_broken(self) -> bool:
        return self.first_component_broken is not None

    @property
    def average_output(self) -> float:
        """Average output per tick, 0.0 when the run exploded."""
        return 0.0 if self.output is None else self.output.average
