"""Tagged results for convergence state output lookups.

A lookup either found every requested output, found none of them (no prior
successful apply), or failed to query the engine at all. Callers match on
the result type instead of inspecting error text.
"""

from dataclasses import dataclass, field
from typing import Union

from errors import ConvergenceFailure, NotFoundStateError


@dataclass(frozen=True)
class Found:
    """All requested outputs are present."""
    values: dict = field(default_factory=dict)

    def __getitem__(self, name: str) -> str:
        return self.values[name]


@dataclass(frozen=True)
class NotFound:
    """No prior output exists for the requested names."""
    missing: tuple = ()


@dataclass(frozen=True)
class Failed:
    """The state query mechanism itself failed."""
    cause: str


StateLookup = Union[Found, NotFound, Failed]


def require_outputs(result: StateLookup) -> dict:
    """Unwrap a lookup, treating absence as fatal.

    Raises:
        NotFoundStateError: If the outputs are absent
        ConvergenceFailure: If the lookup itself failed
    """
    if isinstance(result, Found):
        return dict(result.values)
    if isinstance(result, NotFound):
        raise NotFoundStateError(result.missing)
    raise ConvergenceFailure(f"state output query failed: {result.cause}", stage="output")
