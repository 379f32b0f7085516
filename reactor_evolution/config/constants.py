"""Centralized domain constants for reactor simulation and layout search.

All magic numbers shared between the simulator, the genome codec, and the
optimizer are defined here. Consuming modules should import from this module
rather than defining their own inline literals.
"""

from __future__ import annotations

GRID_ROWS = 6
"""Default reactor grid height in cells."""

GRID_COLS = 9
"""Default reactor grid width in cells."""

BASE_MAX_HEAT = 10_000.0
"""Hull heat capacity before plating adjustments."""

MAX_SIMULATION_TICKS = 5_000_000
"""Default tick ceiling for one simulation run."""

MAX_COOLDOWN_TICKS = 50_000
"""Ceiling on passive cooldown ticks after the main loop."""

HEATING_WARMUP_TICKS = 20
"""Ticks excluded from long-run heating/cooling diagnostics."""

HEATING_REPORT_MIN_TICKS = 40
"""Minimum ticks before a heating/cooling snapshot is meaningful."""

EXPLOSION_BASE_POWER = 10.0
"""Base explosion magnitude before component offsets and multipliers."""

BURN_FRACTION = 0.4
"""Hull heat fraction at which nearby flammables burn."""

EVAPORATE_FRACTION = 0.5
"""Hull heat fraction at which water evaporates."""

HURT_FRACTION = 0.7
"""Hull heat fraction at which nearby entities take damage."""

LAVA_FRACTION = 0.85
"""Hull heat fraction at which nearby blocks turn to lava."""

TICKS_PER_SECOND = 20
"""Game ticks per second; simulated ticks are reactor ticks of one second."""

EU_EFFICIENCY_DIVISOR = 100
"""Per-rod EU efficiency normalizer."""

HU_EFFICIENCY_DIVISOR = 4
"""Per-rod HU efficiency normalizer."""

HU_TOTAL_FACTOR = 40
"""Vented heat to total HU conversion in fluid mode."""

HU_RATE_FACTOR = 2
"""Vented heat to HU/t conversion in fluid mode."""

DEFAULT_ON_PULSE = 5_000_000
"""Default active ticks per pulse cycle."""

DEFAULT_OFF_PULSE = 0
"""Default inactive ticks per pulse cycle."""

DEFAULT_SUSPEND_TEMP = 120_000
"""Default hull heat at which a pulsed reactor suspends."""

DEFAULT_RESUME_TEMP = 0
"""Default hull heat at or below which a pulsed reactor resumes."""

FUEL_CELL = 999
"""Genome marker for a cell holding the genome's fuel type."""

EMPTY_CELL = -1
"""Genome marker for an empty cell."""

MAX_SAFE_TEMPERATURE = 5_000.0
"""Default peak hull heat above which fitness is forced to zero."""

SHUTDOWN_TIMEOUT_SECONDS = 60.0
"""Bounded wait for in-flight evaluations when the worker pool shuts down."""

TOP_REPORT_SIZE = 10
"""Default number of species-distinct layouts reported after a search."""

MAX_GRID_DIMENSION = 255
"""Largest row or column count a blueprint code can carry."""

MAX_BLUEPRINT_SETTING = 2**32 - 1
"""Largest pulse timing, temperature, or tick value a blueprint code can carry."""
