"""Domain layer: component contract, reference catalog, and reactor grid."""

from reactor_evolution.domain.component import Component, ReactorComponent
from reactor_evolution.domain.components import (
    Condensator,
    CoolantCell,
    Exchanger,
    FuelRod,
    Plating,
    Reflector,
    Ruleset,
    Vent,
)
from reactor_evolution.domain.factory import CATALOG, CatalogEntry, ComponentFactory
from reactor_evolution.domain.grid import ReactorGrid

__all__ = [
    "CATALOG",
    "CatalogEntry",
    "Component",
    "ComponentFactory",
    "Condensator",
    "CoolantCell",
    "Exchanger",
    "FuelRod",
    "Plating",
    "ReactorComponent",
    "ReactorGrid",
    "Reflector",
    "Ruleset",
    "Vent",
]
