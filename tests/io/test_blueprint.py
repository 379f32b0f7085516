"""Tests for blueprint code encoding and decoding."""

from __future__ import annotations

import base64
import struct
import zlib

import pytest

from reactor_evolution.domain.factory import ComponentFactory
from reactor_evolution.domain.grid import ReactorGrid
from reactor_evolution.errors import (
    BlueprintDecodeError,
    BlueprintEncodeError,
    UnknownComponentError,
)
from reactor_evolution.io.blueprint import PREFIX, decode_grid, encode_grid


def _code(payload: bytes) -> str:
    return PREFIX + base64.urlsafe_b64encode(zlib.compress(payload)).decode("ascii").rstrip("=")


def _header(version: int = 1, rows: int = 1, cols: int = 1, flags: int = 0) -> bytes:
    return struct.pack(">BBBBIIIII", version, rows, cols, flags, 10, 0, 120_000, 0, 1_000)


def _sample_grid() -> ReactorGrid:
    factory = ComponentFactory()
    grid = ReactorGrid(
        rows=2,
        cols=3,
        pulsed=True,
        automated=True,
        on_pulse=300,
        off_pulse=100,
        suspend_temp=8_000,
        resume_temp=2_000,
        max_simulation_ticks=12_345,
    )
    grid.set_component(0, 0, factory.create(3))
    grid.set_component(0, 1, factory.create(18))
    grid.set_component(1, 2, factory.create(24))
    vent = factory.create(13)
    vent.initial_heat = 150
    vent.automation_threshold = 800
    vent.reactor_pause = 20
    grid.set_component(1, 0, vent)
    return grid


class TestEncodeDecode:
    def test_code_is_printable_and_prefixed(self) -> None:
        code = encode_grid(_sample_grid())
        assert code.startswith(PREFIX)
        assert code.isascii()
        assert "=" not in code
        assert code == code.strip()

    def test_restores_layout_and_settings(self) -> None:
        original = _sample_grid()
        restored = decode_grid(encode_grid(original))
        assert restored.cell_ids() == original.cell_ids()
        assert (restored.rows, restored.cols) == (2, 3)
        assert restored.pulsed and restored.automated
        assert not restored.fluid and not restored.using_coolant_injectors
        assert (restored.on_pulse, restored.off_pulse) == (300, 100)
        assert (restored.suspend_temp, restored.resume_temp) == (8_000, 2_000)
        assert restored.max_simulation_ticks == 12_345

        vent = restored.component_at(1, 0)
        assert vent is not None
        assert vent.initial_heat == 150
        assert vent.automation_threshold == 800
        assert vent.reactor_pause == 20
        untouched = restored.component_at(0, 1)
        assert untouched is not None
        assert not untouched.has_custom_settings()

    def test_decoded_components_are_fresh(self) -> None:
        original = _sample_grid()
        restored = decode_grid(encode_grid(original))
        assert restored.component_at(0, 0) is not original.component_at(0, 0)

    def test_empty_grid(self) -> None:
        restored = decode_grid(encode_grid(ReactorGrid()))
        assert restored.cell_ids() == [None] * 54

    def test_surrounding_whitespace_is_ignored(self) -> None:
        code = encode_grid(_sample_grid())
        assert decode_grid(f"  {code}\n").cell_ids() == _sample_grid().cell_ids()


class TestDecodeErrors:
    def test_missing_prefix(self) -> None:
        with pytest.raises(BlueprintDecodeError, match="must start with"):
            decode_grid("xyz")

    def test_corrupt_base64(self) -> None:
        with pytest.raises(BlueprintDecodeError):
            decode_grid(PREFIX + "!!!!")

    def test_not_zlib(self) -> None:
        with pytest.raises(BlueprintDecodeError, match="corrupt"):
            decode_grid(PREFIX + base64.urlsafe_b64encode(b"plain").decode("ascii"))

    def test_unsupported_version(self) -> None:
        payload = _header(version=9) + struct.pack(">HH", 0, 0)
        with pytest.raises(BlueprintDecodeError, match="version"):
            decode_grid(_code(payload))

    def test_truncated_payload(self) -> None:
        with pytest.raises(BlueprintDecodeError, match="truncated"):
            decode_grid(_code(_header(rows=2, cols=2) + struct.pack(">H", 9)))

    def test_trailing_data(self) -> None:
        payload = _header() + struct.pack(">HH", 9, 0) + b"\x00"
        with pytest.raises(BlueprintDecodeError, match="trailing"):
            decode_grid(_code(payload))

    def test_override_for_empty_cell(self) -> None:
        payload = _header() + struct.pack(">HH", 0, 1) + struct.pack(">HddI", 0, 5.0, 5.0, 0)
        with pytest.raises(BlueprintDecodeError, match="empty cell"):
            decode_grid(_code(payload))

    def test_invalid_override_value(self) -> None:
        payload = _header() + struct.pack(">HH", 9, 1) + struct.pack(">HddI", 0, 5_000.0, 5.0, 0)
        with pytest.raises(BlueprintDecodeError, match="invalid settings"):
            decode_grid(_code(payload))

    def test_unknown_component_id(self) -> None:
        payload = _header() + struct.pack(">HH", 404, 0)
        with pytest.raises(UnknownComponentError):
            decode_grid(_code(payload))

    def test_non_finite_override_value(self) -> None:
        payload = _header() + struct.pack(">HH", 9, 1) + struct.pack(">HddI", 0, float("nan"), 5.0, 0)
        with pytest.raises(BlueprintDecodeError, match="non-finite"):
            decode_grid(_code(payload))


class TestFractionalSettings:
    def test_fractional_heat_settings_survive_round_trip(self) -> None:
        grid = ReactorGrid(rows=1, cols=2)
        cell = ComponentFactory().create(14)
        cell.initial_heat = 2.5
        cell.automation_threshold = 8_999.5
        grid.set_component(0, 1, cell)
        restored = decode_grid(encode_grid(grid)).component_at(0, 1)
        assert restored is not None
        assert restored.initial_heat == 2.5
        assert restored.automation_threshold == 8_999.5


class TestEncodeErrors:
    @pytest.mark.parametrize(
        "kwargs",
        [
            {"rows": 256},
            {"suspend_temp": -1},
            {"resume_temp": -1},
            {"max_simulation_ticks": 2**32},
        ],
    )
    def test_out_of_range_settings_raise_package_error(self, kwargs: dict[str, int]) -> None:
        grid = ReactorGrid(**kwargs)  # type: ignore[arg-type]
        with pytest.raises(BlueprintEncodeError, match="cannot be stored"):
            encode_grid(grid)
