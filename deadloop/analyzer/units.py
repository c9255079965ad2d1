"""Candidate unit discovery: which functions have a name we can track."""
import logging
from typing import Dict, List, Optional, Tuple

from tree_sitter import Node

from .scope import (
    FUNCTION_DECLARATION_TYPES,
    FUNCTION_EXPRESSION_TYPES,
    FUNCTION_NODE_TYPES,
    ScopeAnalysis,
    Variable,
    character_column,
    node_key,
    node_text,
    outermost_parentheses,
)
from .verdict import Unit

logger = logging.getLogger(__name__)


class UnitIndex:
    """Identifies named functions in one file and hands out stable Unit objects.

    A function is a unit when it is:
    - a function (or generator) declaration with a name, or
    - a function expression / arrow function that initializes a variable
      declarator whose target is a plain identifier (`const f = () => ...`).

    Anonymous callbacks, methods and class-field arrows are not units.
    """

    def __init__(self, analysis: ScopeAnalysis, file_path: str = ""):
        """Initialize the index and discover all units in document order.

        Args:
            analysis: Scope analysis of the file
            file_path: File the tree was parsed from (for reporting only)
        """
        self.analysis = analysis
        self.file_path = file_path
        self._by_node: Dict[Tuple[int, int, str], Optional[Unit]] = {}
        self.units: List[Unit] = self._discover()

    def _discover(self) -> List[Unit]:
        units = []
        stack = [self.analysis.root]
        while stack:
            node = stack.pop()
            if node.type in FUNCTION_NODE_TYPES:
                unit = self.identify(node)
                if unit is not None:
                    units.append(unit)
            stack.extend(reversed(node.named_children))
        logger.debug("Discovered %d candidate functions in %s", len(units), self.file_path or "<source>")
        return units

    def identify(self, node: Node) -> Optional[Unit]:
        """Get the unit for a function node, if the function is identifiable.

        Args:
            node: Any function-like node

        Returns:
            The Unit (same object on every call for the same node) or None
        """
        key = node_key(node)
        if key in self._by_node:
            return self._by_node[key]

        identifier = self._binding_identifier(node)
        unit = None
        if identifier is not None:
            unit = Unit(
                name=node_text(identifier),
                node=node,
                identifier=identifier,
                kind=node.type,
                line=node.start_point[0] + 1,
                column=character_column(node, self.analysis.root),
            )
        self._by_node[key] = unit
        return unit

    @staticmethod
    def _binding_identifier(node: Node) -> Optional[Node]:
        if node.type in FUNCTION_DECLARATION_TYPES:
            return node.child_by_field_name('name')

        if node.type in FUNCTION_EXPRESSION_TYPES:
            # const f = (() => 1)
            outer = outermost_parentheses(node)
            parent = outer.parent
            if parent is None or parent.type != 'variable_declarator':
                return None
            value = parent.child_by_field_name('value')
            name = parent.child_by_field_name('name')
            if value is None or node_key(value) != node_key(outer):
                return None
            if name is None or name.type != 'identifier':
                return None
            return name

        return None

    def binding(self, unit: Unit) -> Optional[Variable]:
        """Get the variable a unit's name declares."""
        if unit.identifier is None:
            return None
        return self.analysis.variable_for_declaration(unit.identifier)

    def is_exported(self, unit: Unit) -> bool:
        """Check whether a unit is part of the module's export surface.

        Declarations count when they sit directly in an export statement
        (`export function f`, `export default function f`). Function
        expressions count when any enclosing statement is a named export
        (`export const f = () => ...`).

        Args:
            unit: Unit to check

        Returns:
            True if the unit is exported
        """
        node = unit.node
        if node is None:
            return False

        if node.type in FUNCTION_DECLARATION_TYPES:
            parent = node.parent
            return parent is not None and parent.type == 'export_statement'

        steps = self.analysis.node_count + 1
        current = node.parent
        while current is not None and steps > 0:
            steps -= 1
            if current.type == 'export_statement' and not _is_default_export(current):
                return True
            current = current.parent

        if current is not None:
            logger.warning(
                "Ran out of steps looking for an export around `%s` (%s:%d); treating it as not exported",
                unit.name, self.file_path or "<source>", unit.line
            )
        return False


def _is_default_export(node: Node) -> bool:
    return any(child.type == 'default' for child in node.children)
