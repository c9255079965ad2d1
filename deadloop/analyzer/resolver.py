"""Liveness resolution for single units and for clusters of mutually referencing units.

The single-unit resolver turns the read references of one function into a
verdict: used, unused, or "live only if one of these other functions is".
The cluster resolver follows those conditional verdicts as a worklist until
it proves a use, runs out of units to look at, or hits its step bound.
"""
import logging
from typing import Dict, Iterable, Optional, Protocol, Set, assert_never

from .classifier import UsageKind
from .verdict import UNUSED, USED, Depends, Unit, Unused, Used, Verdict, VerdictCache

logger = logging.getLogger(__name__)


class ReferenceOracle(Protocol):
    """Read-only view of a file's references, as needed by the resolvers."""

    @property
    def unit_count(self) -> int: ...

    def is_exported(self, unit: Unit) -> bool: ...

    def read_references(self, unit: Unit) -> Iterable: ...

    def enclosing_unit(self, site) -> Optional[Unit]: ...

    def classify(self, site) -> UsageKind: ...


class UnitResolver:
    """Compute the direct verdict for one unit from its read references."""

    def __init__(self, oracle: ReferenceOracle):
        self.oracle = oracle

    def resolve(self, unit: Unit) -> Verdict:
        """Resolve one unit without looking past its direct referrers.

        Args:
            unit: Unit to resolve

        Returns:
            USED if exported or used from module-level code, UNUSED if no
            other function refers to it, otherwise Depends on its referrers
        """
        if self.oracle.is_exported(unit):
            return USED

        referrers: Dict[Unit, None] = {}
        for site in self.oracle.read_references(unit):
            enclosing = self.oracle.enclosing_unit(site)
            if enclosing is None:
                if self.oracle.classify(site) is UsageKind.DEFINITELY_USED:
                    return USED
                continue
            if enclosing is unit:
                continue
            referrers[enclosing] = None

        if not referrers:
            return UNUSED
        return Depends(frozenset(referrers))


class ClusterResolver:
    """Decide whether a unit is reachable from any externally observable use.

    Every call to `is_unused` owns a fresh VerdictCache, so queries never
    share state and can run in any order.
    """

    def __init__(self, oracle: ReferenceOracle, exhausted_is_unused: bool = True):
        """Initialize the resolver.

        Args:
            oracle: Reference data for the file
            exhausted_is_unused: Answer to return when the step bound runs out
        """
        self.oracle = oracle
        self.units = UnitResolver(oracle)
        self.exhausted_is_unused = exhausted_is_unused

    def resolve_cached(self, unit: Unit, cache: VerdictCache) -> Verdict:
        verdict = cache.get(unit)
        if verdict is None:
            verdict = cache.store(unit, self.units.resolve(unit))
        return verdict

    def is_unused(self, root: Unit) -> bool:
        """Check whether a unit is dead, following mutual references.

        Args:
            root: Unit to check

        Returns:
            True if no externally observable use reaches the unit
        """
        cache = VerdictCache()
        verdict = self.resolve_cached(root, cache)
        if isinstance(verdict, Used):
            return False
        if isinstance(verdict, Unused):
            return True

        # Insertion-ordered so results never depend on hash order
        frontier: Dict[Unit, None] = dict.fromkeys(_ordered(verdict.units))
        dead: Set[Unit] = set()
        budget = max(self.oracle.unit_count, 1)

        while frontier:
            changed = False
            for unit in list(frontier):
                current = self.resolve_cached(unit, cache)
                if isinstance(current, Used):
                    logger.debug("`%s` is reachable through `%s`", root.name, unit.name)
                    return False
                elif isinstance(current, Unused):
                    del frontier[unit]
                    dead.add(unit)
                    changed = True
                elif isinstance(current, Depends):
                    for dependency in _ordered(current.units):
                        if dependency not in frontier and dependency not in dead:
                            frontier[dependency] = None
                            changed = True
                else:
                    assert_never(current)

            if not changed:
                break

            budget -= 1
            if budget < 0:
                logger.warning(
                    "Gave up resolving `%s` (line %d) after %d passes with %d functions still pending",
                    root.name, root.line, max(self.oracle.unit_count, 1), len(frontier)
                )
                return self.exhausted_is_unused

        return True


def _ordered(units: Iterable[Unit]):
    return sorted(units, key=lambda unit: (unit.line, unit.column, unit.name))
