"""Enclosing-unit lookup for reference sites."""
import logging
from typing import Optional

from .scope import FUNCTION_NODE_TYPES, Reference
from .units import UnitIndex
from .verdict import Unit

logger = logging.getLogger(__name__)


class EnclosingUnitLocator:
    """Find the function a reference is written in.

    The walk climbs the parent chain to the nearest function boundary of any
    kind. If that function is not an identifiable unit (an anonymous
    callback, a method) the reference is treated as module-level code.
    """

    def __init__(self, units: UnitIndex, budget: Optional[int] = None):
        """Initialize the locator.

        Args:
            units: Unit index of the file
            budget: Maximum number of parent steps per lookup. Defaults to the
                    number of syntax nodes in the file, which no ancestor chain
                    can exceed.
        """
        self.units = units
        self.budget = budget if budget is not None else units.analysis.node_count + 1

    def locate(self, site: Reference) -> Optional[Unit]:
        """Get the unit enclosing a reference.

        Args:
            site: Reference to locate

        Returns:
            The enclosing Unit, or None for module-level (or unidentifiable) code
        """
        node = site.identifier
        steps = self.budget
        while node is not None and steps > 0:
            steps -= 1
            if node.type in FUNCTION_NODE_TYPES:
                return self.units.identify(node)
            node = node.parent

        if node is not None:
            logger.warning(
                "Ran out of steps (%d) climbing from `%s` at line %d; treating the reference as module-level",
                self.budget, site.name, site.line
            )
        return None
