"""Simulation engine and its immutable result records."""

from reactor_evolution.simulation.engine import ReactorSimulator
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

__all__ = [
    "ComponentEvent",
    "CoolingUtilization",
    "EfficiencyStats",
    "HeatingCooling",
    "OutputStats",
    "OutputUnit",
    "PulseStats",
    "ReactorSimulator",
    "SimulationResult",
    "Termination",
]
