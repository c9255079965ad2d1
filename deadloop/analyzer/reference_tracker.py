"""Reference tracker binding one file's scope analysis to the liveness resolvers."""
import logging
from typing import List, Optional

from tree_sitter import Tree

from .classifier import ReferenceClassifier, UsageKind
from .locator import EnclosingUnitLocator
from .scope import Reference, ScopeAnalysis
from .units import UnitIndex
from .verdict import Unit

logger = logging.getLogger(__name__)


class ReferenceTracker:
    """Answers reference questions about the named functions of one file.

    Wraps the scope analysis, unit index, enclosing-unit locator and
    reference classifier behind the interface the resolvers consume. All
    data is computed once up front and never mutated afterwards, so any
    number of liveness queries can share one tracker.
    """

    def __init__(self, tree: Tree, file_path: str = ""):
        """Analyze a parsed file.

        Args:
            tree: Parsed tree-sitter Tree
            file_path: Path of the file, used in log messages
        """
        self.file_path = file_path
        self.analysis = ScopeAnalysis(tree)
        self.index = UnitIndex(self.analysis, file_path)
        self.locator = EnclosingUnitLocator(self.index)
        self.classifier = ReferenceClassifier(self.analysis)
        logger.debug(
            "%s: %d scopes, %d references, %d functions",
            file_path or "<source>", len(self.analysis.scopes),
            len(self.analysis.references), len(self.index.units)
        )

    @property
    def units(self) -> List[Unit]:
        return self.index.units

    @property
    def unit_count(self) -> int:
        return len(self.index.units)

    def is_exported(self, unit: Unit) -> bool:
        return self.index.is_exported(unit)

    def read_references(self, unit: Unit) -> List[Reference]:
        """Get every read of a unit's binding; a unit with no binding has none."""
        variable = self.index.binding(unit)
        if variable is None:
            return []
        return variable.read_references()

    def enclosing_unit(self, site: Reference) -> Optional[Unit]:
        return self.locator.locate(site)

    def classify(self, site: Reference) -> UsageKind:
        return self.classifier.classify(site)
