"""Component catalog and factory.

Every component is built from a :class:`CatalogEntry`. The factory hands out
fresh instances so no two grids ever share mutable component state. Ids are
stable: blueprint codes, genomes, and configuration files refer to them.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass

from reactor_evolution.domain.component import ReactorComponent
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
from reactor_evolution.errors import UnknownComponentError

Builder = Callable[[int, str, str, Ruleset], ReactorComponent]


@dataclass(frozen=True)
class CatalogEntry:
    """One catalog row: stable id, names, and a constructor."""

    component_id: int
    base_name: str
    name: str
    build: Builder


def _fuel(energy_mult: int, heat_mult: float, rods: int, max_damage: float, mox: bool) -> Builder:
    def build(cid: int, base: str, name: str, ruleset: Ruleset) -> ReactorComponent:
        return FuelRod(cid, base, name, max_damage, energy_mult, heat_mult, rods, mox, ruleset)

    return build


def _reflector(max_damage: float) -> Builder:
    def build(cid: int, base: str, name: str, ruleset: Ruleset) -> ReactorComponent:
        return Reflector(cid, base, name, max_damage=max_damage)

    return build


def _vent(max_heat: float, self_vent: int, hull_draw: int = 0, side_vent: int = 0) -> Builder:
    def build(cid: int, base: str, name: str, ruleset: Ruleset) -> ReactorComponent:
        return Vent(cid, base, name, max_heat, self_vent, hull_draw, side_vent)

    return build


def _cell(max_heat: float) -> Builder:
    def build(cid: int, base: str, name: str, ruleset: Ruleset) -> ReactorComponent:
        return CoolantCell(cid, base, name, max_heat=max_heat)

    return build


def _exchanger(max_heat: float, switch_side: int, switch_reactor: int) -> Builder:
    def build(cid: int, base: str, name: str, ruleset: Ruleset) -> ReactorComponent:
        return Exchanger(cid, base, name, max_heat, switch_side, switch_reactor)

    return build


def _plating(heat_adjustment: float, explosion_multiplier: float) -> Builder:
    def build(cid: int, base: str, name: str, ruleset: Ruleset) -> ReactorComponent:
        return Plating(cid, base, name, heat_adjustment, explosion_multiplier)

    return build


def _condensator(max_heat: float, coolant: str) -> Builder:
    def build(cid: int, base: str, name: str, ruleset: Ruleset) -> ReactorComponent:
        return Condensator(cid, base, name, max_heat, coolant)

    return build


CATALOG: tuple[CatalogEntry, ...] = (
    CatalogEntry(1, "fuelRodUranium", "Uranium Cell", _fuel(100, 2, 1, 20_000, False)),
    CatalogEntry(2, "dualFuelRodUranium", "Dual Uranium Cell", _fuel(200, 4, 2, 20_000, False)),
    CatalogEntry(3, "quadFuelRodUranium", "Quad Uranium Cell", _fuel(400, 8, 4, 20_000, False)),
    CatalogEntry(4, "fuelRodMox", "MOX Cell", _fuel(100, 2, 1, 10_000, True)),
    CatalogEntry(5, "dualFuelRodMox", "Dual MOX Cell", _fuel(200, 4, 2, 10_000, True)),
    CatalogEntry(6, "quadFuelRodMox", "Quad MOX Cell", _fuel(400, 8, 4, 10_000, True)),
    CatalogEntry(7, "neutronReflector", "Neutron Reflector", _reflector(30_000)),
    CatalogEntry(8, "thickNeutronReflector", "Thick Neutron Reflector", _reflector(120_000)),
    CatalogEntry(9, "heatVent", "Heat Vent", _vent(1_000, 6)),
    CatalogEntry(10, "advancedHeatVent", "Advanced Heat Vent", _vent(1_000, 12)),
    CatalogEntry(11, "reactorHeatVent", "Reactor Heat Vent", _vent(1_000, 5, hull_draw=5)),
    CatalogEntry(12, "componentHeatVent", "Component Heat Vent", _vent(1, 0, side_vent=4)),
    CatalogEntry(13, "overclockedHeatVent", "Overclocked Heat Vent", _vent(1_000, 20, hull_draw=36)),
    CatalogEntry(14, "coolantCell10k", "10k Coolant Cell", _cell(10_000)),
    CatalogEntry(15, "coolantCell30k", "30k Coolant Cell", _cell(30_000)),
    CatalogEntry(16, "coolantCell60k", "60k Coolant Cell", _cell(60_000)),
    CatalogEntry(17, "heatExchanger", "Heat Exchanger", _exchanger(2_500, 12, 4)),
    CatalogEntry(18, "advancedHeatExchanger", "Advanced Heat Exchanger", _exchanger(10_000, 24, 8)),
    CatalogEntry(19, "reactorHeatExchanger", "Reactor Heat Exchanger", _exchanger(5_000, 0, 72)),
    CatalogEntry(20, "componentHeatExchanger", "Component Heat Exchanger", _exchanger(5_000, 36, 0)),
    CatalogEntry(21, "reactorPlating", "Reactor Plating", _plating(1_000, 0.95)),
    CatalogEntry(22, "heatCapacityReactorPlating", "Heat-Capacity Reactor Plating", _plating(1_700, 0.99)),
    CatalogEntry(23, "containmentReactorPlating", "Containment Reactor Plating", _plating(500, 0.9)),
    CatalogEntry(24, "rshCondensator", "RSH-Condensator", _condensator(20_000, "redstone")),
    CatalogEntry(25, "lzhCondensator", "LZH-Condensator", _condensator(100_000, "lapis")),
    CatalogEntry(26, "iridiumNeutronReflector", "Iridium Neutron Reflector", _reflector(1)),
)


@dataclass(frozen=True)
class ComponentFactory:
    """Builds fresh components by id or base name for a given ruleset."""

    ruleset: Ruleset = Ruleset.IC2

    def _entry(self, key: int | str) -> CatalogEntry:
        entry = _BY_ID.get(key) if isinstance(key, int) else _BY_NAME.get(key)
        if entry is None:
            raise UnknownComponentError(f"unknown component: {key!r}")
        return entry

    def create(self, key: int | str) -> ReactorComponent:
        """Return a new, unplaced component instance."""
        entry = self._entry(key)
        return entry.build(entry.component_id, entry.base_name, entry.name, self.ruleset)

    def default_component(self, key: int | str) -> ReactorComponent:
        """Return the shared prototype for read-only inspection."""
        entry = self._entry(key)
        cache_key = (self.ruleset, entry.component_id)
        prototype = _PROTOTYPES.get(cache_key)
        if prototype is None:
            prototype = self.create(entry.component_id)
            _PROTOTYPES[cache_key] = prototype
        return prototype

    def count(self) -> int:
        return len(CATALOG)

    def ids(self) -> Iterator[int]:
        return (entry.component_id for entry in CATALOG)

    def has(self, component_id: int) -> bool:
        return component_id in _BY_ID

    def is_fuel(self, component_id: int) -> bool:
        return self.has(component_id) and self.default_component(component_id).rod_count > 0


_BY_ID: dict[int, CatalogEntry] = {entry.component_id: entry for entry in CATALOG}
_BY_NAME: dict[str, CatalogEntry] = {entry.base_name: entry for entry in CATALOG}
_PROTOTYPES: dict[tuple[Ruleset, int], ReactorComponent] = {}
