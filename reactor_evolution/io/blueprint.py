"""Blueprint codes: compact printable text encoding of a reactor grid.

Layout of the binary payload (big-endian) before compression::

    version:u8 rows:u8 cols:u8 flags:u8
    on_pulse:u32 off_pulse:u32 suspend_temp:u32 resume_temp:u32
    max_simulation_ticks:u32
    rows*cols x cell_id:u16          (0 = empty)
    override_count:u16
    override_count x (cell_index:u16 initial_heat:f64 threshold:f64 pause:u32)

The payload is zlib-compressed, urlsafe-base64 encoded without padding, and
prefixed with ``rb1:``.
"""

from __future__ import annotations

import base64
import binascii
import math
import struct
import zlib

from reactor_evolution.domain.factory import ComponentFactory
from reactor_evolution.domain.grid import ReactorGrid
from reactor_evolution.errors import BlueprintDecodeError, BlueprintEncodeError

PREFIX = "rb1:"
FORMAT_VERSION = 1

_HEADER = struct.Struct(">BBBBIIIII")
_CELL = struct.Struct(">H")
_OVERRIDE = struct.Struct(">HddI")

_FLAG_FLUID = 1
_FLAG_PULSED = 2
_FLAG_AUTOMATED = 4
_FLAG_COOLANT_INJECTORS = 8


def _flags(grid: ReactorGrid) -> int:
    flags = 0
    if grid.fluid:
        flags |= _FLAG_FLUID
    if grid.pulsed:
        flags |= _FLAG_PULSED
    if grid.automated:
        flags |= _FLAG_AUTOMATED
    if grid.using_coolant_injectors:
        flags |= _FLAG_COOLANT_INJECTORS
    return flags


def encode_grid(grid: ReactorGrid) -> str:
    """Return the blueprint code for ``grid``.

    Raises:
        BlueprintEncodeError: a grid setting is outside the range the format
            can carry.
    """
    try:
        parts = [
            _HEADER.pack(
                FORMAT_VERSION,
                grid.rows,
                grid.cols,
                _flags(grid),
                grid.on_pulse,
                grid.off_pulse,
                grid.suspend_temp,
                grid.resume_temp,
                grid.max_simulation_ticks,
            )
        ]
        overrides: list[bytes] = []
        for index, component_id in enumerate(grid.cell_ids()):
            parts.append(_CELL.pack(component_id or 0))
            component = grid.component_at(index // grid.cols, index % grid.cols)
            if component is not None and component.has_custom_settings():
                overrides.append(
                    _OVERRIDE.pack(
                        index,
                        component.initial_heat,
                        component.automation_threshold,
                        component.reactor_pause,
                    )
                )
        parts.append(_CELL.pack(len(overrides)))
    except struct.error as exc:
        raise BlueprintEncodeError(f"grid cannot be stored as a blueprint code: {exc}") from exc
    parts.extend(overrides)
    payload = zlib.compress(b"".join(parts), 9)
    return PREFIX + base64.urlsafe_b64encode(payload).decode("ascii").rstrip("=")


def _unpack_payload(code: str) -> bytes:
    code = code.strip()
    if not code.startswith(PREFIX):
        raise BlueprintDecodeError(f"blueprint code must start with {PREFIX!r}")
    body = code[len(PREFIX) :]
    padded = body + "=" * (-len(body) % 4)
    try:
        compressed = base64.b64decode(padded, altchars=b"-_", validate=True)
        return zlib.decompress(compressed)
    except (binascii.Error, zlib.error, ValueError) as exc:
        raise BlueprintDecodeError(f"corrupt blueprint code: {exc}") from exc


def decode_grid(code: str, factory: ComponentFactory | None = None) -> ReactorGrid:
    """Rebuild a grid from a blueprint code with fresh component instances.

    Raises:
        BlueprintDecodeError: the code is malformed or truncated.
        UnknownComponentError: the code names an id ``factory`` lacks.
    """
    factory = factory or ComponentFactory()
    payload = _unpack_payload(code)
    try:
        (version, rows, cols, flags, on_pulse, off_pulse, suspend, resume, max_ticks) = (
            _HEADER.unpack_from(payload, 0)
        )
        if version != FORMAT_VERSION:
            raise BlueprintDecodeError(f"unsupported blueprint version {version}")
        offset = _HEADER.size
        cell_ids = []
        for _ in range(rows * cols):
            (cell_id,) = _CELL.unpack_from(payload, offset)
            cell_ids.append(cell_id)
            offset += _CELL.size
        (override_count,) = _CELL.unpack_from(payload, offset)
        offset += _CELL.size
        overrides = []
        for _ in range(override_count):
            overrides.append(_OVERRIDE.unpack_from(payload, offset))
            offset += _OVERRIDE.size
    except struct.error as exc:
        raise BlueprintDecodeError(f"truncated blueprint code: {exc}") from exc
    if offset != len(payload):
        raise BlueprintDecodeError("blueprint code has trailing data")

    try:
        grid = ReactorGrid(
            rows=rows,
            cols=cols,
            fluid=bool(flags & _FLAG_FLUID),
            pulsed=bool(flags & _FLAG_PULSED),
            automated=bool(flags & _FLAG_AUTOMATED),
            using_coolant_injectors=bool(flags & _FLAG_COOLANT_INJECTORS),
            on_pulse=on_pulse,
            off_pulse=off_pulse,
            suspend_temp=suspend,
            resume_temp=resume,
            max_simulation_ticks=max_ticks,
        )
    except ValueError as exc:
        raise BlueprintDecodeError(f"invalid reactor settings: {exc}") from exc

    for index, cell_id in enumerate(cell_ids):
        if cell_id:
            grid.set_component(index // cols, index % cols, factory.create(cell_id))
    for index, initial_heat, threshold, pause in overrides:
        component = grid.component_at(index // cols, index % cols)
        if component is None:
            raise BlueprintDecodeError(f"settings override for empty cell {index}")
        if not (math.isfinite(initial_heat) and math.isfinite(threshold)):
            raise BlueprintDecodeError(f"non-finite settings for cell {index}")
        try:
            component.initial_heat = initial_heat
            component.automation_threshold = threshold
            component.reactor_pause = pause
        except ValueError as exc:
            raise BlueprintDecodeError(f"invalid settings for cell {index}: {exc}") from exc
    return grid
