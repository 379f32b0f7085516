"""Exception hierarchy shared by the simulator, optimizer, and their collaborators.

Physical terminal states (explosion, depletion, cooldown ceiling) are never
raised; they are reported as data on :class:`SimulationResult`.
"""

from __future__ import annotations


class ReactorEvolutionError(Exception):
    """Base for all reactor_evolution exceptions."""


class ConfigError(ReactorEvolutionError, ValueError):
    """Configuration is missing, malformed, or inconsistent.

    Raised before any simulation or evolution starts.
    """


class UnknownComponentError(ReactorEvolutionError, LookupError):
    """The component factory has no entry for the requested id or name."""


class BlueprintDecodeError(ReactorEvolutionError, ValueError):
    """A blueprint code or genome code could not be parsed."""


class EvaluationError(ReactorEvolutionError, RuntimeError):
    """A fitness-evaluation task failed; the generation cannot be ranked."""

    def __init__(self, message: str, genome_code: str | None = None) -> None:
        super().__init__(message)
        self.genome_code = genome_code


class BlueprintEncodeError(ReactorEvolutionError, ValueError):
    """A grid holds settings outside the ranges a blueprint code can carry."""
