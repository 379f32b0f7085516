"""Seed files: known-good layouts injected into generation zero.

One blueprint code per line. Blank lines and ``//`` or ``#`` comments
(full-line or trailing) are ignored.
"""

from __future__ import annotations

import re
from pathlib import Path

from reactor_evolution.config.types import GAConfig
from reactor_evolution.domain.factory import ComponentFactory
from reactor_evolution.errors import BlueprintDecodeError, ConfigError
from reactor_evolution.evolution.genome import ReactorGenome
from reactor_evolution.io.blueprint import decode_grid

_COMMENT = re.compile(r"\s*(//|#).*$")


def read_seed_codes(path: Path) -> list[str]:
    """Return the blueprint codes listed in ``path``, in file order."""
    try:
        lines = Path(path).read_text(encoding="utf-8").splitlines()
    except OSError as exc:
        raise ConfigError(f"cannot read seed file {path}: {exc}") from exc
    codes = []
    for line in lines:
        code = _COMMENT.sub("", line).strip()
        if code:
            codes.append(code)
    return codes


def load_seed_genomes(
    path: Path, config: GAConfig, factory: ComponentFactory | None = None
) -> list[ReactorGenome]:
    """Decode every code in the seed file into a genome.

    Raises:
        ConfigError: the file cannot be read.
        BlueprintDecodeError: a code is malformed or has the wrong grid size.
        UnknownComponentError: a code names a component the factory lacks.
    """
    factory = factory or ComponentFactory(config.ruleset)
    genomes = []
    for line_number, code in enumerate(read_seed_codes(path), start=1):
        grid = decode_grid(code, factory)
        try:
            genomes.append(ReactorGenome.from_grid(config, grid, factory))
        except ValueError as exc:
            raise BlueprintDecodeError(f"{path} entry {line_number}: {exc}") from exc
    return genomes
