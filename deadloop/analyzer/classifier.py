"""Syntactic classification of module-level references."""
from enum import Enum

from .scope import Reference, ScopeAnalysis, node_key, outermost_parentheses


class UsageKind(Enum):
    DEFINITELY_USED = 'DEFINITELY_USED'
    DEFINITELY_UNUSED = 'DEFINITELY_UNUSED'


# Parents that make the identifier part of the module's export surface
EXPORT_CONTEXTS = {'export_specifier', 'export_statement'}

# Parents that evaluate (call, construct or render) the identifier
EVALUATING_CONTEXTS = {
    'call_expression', 'new_expression',
    'jsx_opening_element', 'jsx_self_closing_element',
}


class ReferenceClassifier:
    """Decide whether a reference outside any unit counts as a use.

    Rules, first match wins:
    1. Export list / default export target -> used.
    2. Callee of a call or `new`, JSX tag name -> used.
    3. Bare expression statement (`foo;`) -> unused.
    4. Initializer of a new identifier binding (`const alias = foo`) -> used
       only if the alias is read somewhere; destructuring initializers -> used.
    5. Anything else -> used.
    """

    def __init__(self, analysis: ScopeAnalysis):
        self.analysis = analysis

    def classify(self, site: Reference) -> UsageKind:
        """Classify one reference that has no enclosing unit.

        Args:
            site: Read reference at module level

        Returns:
            DEFINITELY_USED or DEFINITELY_UNUSED
        """
        node = outermost_parentheses(site.identifier)
        parent = node.parent
        if parent is None:
            return UsageKind.DEFINITELY_USED

        if parent.type in EXPORT_CONTEXTS:
            return UsageKind.DEFINITELY_USED

        if parent.type in EVALUATING_CONTEXTS:
            return UsageKind.DEFINITELY_USED

        if parent.type == 'expression_statement':
            return UsageKind.DEFINITELY_UNUSED

        if parent.type == 'variable_declarator':
            return self._classify_initializer(node, parent)

        return UsageKind.DEFINITELY_USED

    def _classify_initializer(self, node, declarator) -> UsageKind:
        name = declarator.child_by_field_name('name')
        if name is None:
            return UsageKind.DEFINITELY_USED

        if node_key(name) != node_key(node):
            if name.type != 'identifier':
                # const { length } = foo
                return UsageKind.DEFINITELY_USED
            node = name

        # The alias is live if anything reads it
        variable = self.analysis.variable_for_declaration(node)
        if variable is None or not variable.read_references():
            return UsageKind.DEFINITELY_UNUSED
        return UsageKind.DEFINITELY_USED
