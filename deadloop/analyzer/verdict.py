"""Liveness verdicts, candidate units and the per-query verdict cache."""
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Optional, Union


@dataclass(frozen=True, eq=False)
class Unit:
    """A named function that is a candidate for liveness analysis.

    Units compare by identity: two units are the same only if they are the
    same object, which the UnitIndex guarantees per function node.
    """
    name: str
    node: Any = None  # function node (declaration, expression or arrow)
    identifier: Any = None  # binding identifier node
    kind: str = 'function'
    line: int = 0
    column: int = 0

    def __repr__(self) -> str:
        return f"Unit({self.name!r}, line={self.line})"


@dataclass(frozen=True)
class Used:
    """An externally observable use was proven."""


@dataclass(frozen=True)
class Unused:
    """No use can reach this unit."""


@dataclass(frozen=True)
class Depends:
    """Live if and only if at least one of `units` is live."""
    units: FrozenSet[Unit]


USED = Used()
UNUSED = Unused()

Verdict = Union[Used, Unused, Depends]


def is_terminal(verdict: Verdict) -> bool:
    return isinstance(verdict, (Used, Unused))


class VerdictCache:
    """Unit -> Verdict table owned by exactly one top-level query.

    Terminal verdicts are final: once a unit is Used or Unused, later stores
    for it are ignored and the terminal verdict is returned instead.
    """

    def __init__(self):
        self._verdicts: Dict[Unit, Verdict] = {}

    def get(self, unit: Unit) -> Optional[Verdict]:
        return self._verdicts.get(unit)

    def store(self, unit: Unit, verdict: Verdict) -> Verdict:
        """Record a verdict for a unit.

        Args:
            unit: Unit the verdict belongs to
            verdict: Freshly computed verdict

        Returns:
            The verdict now held by the cache for this unit
        """
        existing = self._verdicts.get(unit)
        if existing is not None and is_terminal(existing):
            return existing
        self._verdicts[unit] = verdict
        return verdict

    def __contains__(self, unit: Unit) -> bool:
        return unit in self._verdicts

    def __len__(self) -> int:
        return len(self._verdicts)
