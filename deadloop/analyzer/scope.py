"""Lexical scope and binding resolution for JavaScript/TypeScript syntax trees.

Builds a scope tree for one parsed file and resolves every identifier
reference to the variable it reads or writes. The walk is stack-based so
deeply nested expressions (hundreds of nested calls) never hit the Python
recursion limit.
"""
import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

from tree_sitter import Node, Tree

logger = logging.getLogger(__name__)

FUNCTION_DECLARATION_TYPES = {'function_declaration', 'generator_function_declaration'}
FUNCTION_EXPRESSION_TYPES = {'function_expression', 'function', 'generator_function', 'arrow_function'}
FUNCTION_NODE_TYPES = FUNCTION_DECLARATION_TYPES | FUNCTION_EXPRESSION_TYPES | {'method_definition'}

# Type-only syntax: identifiers in here are never value references, except
# under a `typeof` query.
TYPE_CONTEXT_TYPES = {
    'type_annotation', 'type_arguments', 'type_parameters', 'type_alias_declaration',
    'interface_declaration', 'implements_clause', 'ambient_declaration',
    'function_signature', 'abstract_method_signature', 'method_signature',
    'index_signature', 'property_signature', 'asserts_annotation',
    'type_predicate_annotation', 'opting_type_annotation', 'omitting_type_annotation',
    'adding_type_annotation', 'nested_type_identifier', 'type_predicate',
}

# Subtrees that hold neither declarations nor references
SKIPPED_TYPES = {'jsx_closing_element', 'jsx_namespace_name', 'nested_identifier', 'comment'}

Walker = List[Tuple[Node, 'Scope']]


def node_key(node: Node) -> Tuple[int, int, str]:
    """Stable identity for a syntax node within one tree."""
    return (node.start_byte, node.end_byte, node.type)


def node_text(node: Node) -> str:
    return node.text.decode('utf-8', errors='replace')


def outermost_parentheses(node: Node) -> Node:
    """Climb through `( ... )` wrappers: `(foo)` and `foo` sit in the same position."""
    while node.parent is not None and node.parent.type == 'parenthesized_expression':
        node = node.parent
    return node


def character_column(node: Node, root: Node) -> int:
    """1-based column of a node counted in characters, not bytes.

    Args:
        node: Node to locate
        root: Root node of the same tree (its text is the source)

    Returns:
        Column of the node's first character
    """
    line_start = node.start_byte - node.start_point[1]
    # The root node starts after leading whitespace, never mid-token
    skipped = max(root.start_byte - line_start, 0)
    begin = max(line_start, root.start_byte) - root.start_byte
    prefix = root.text[begin:node.start_byte - root.start_byte]
    return skipped + len(prefix.decode('utf-8', errors='replace')) + 1


@dataclass(eq=False)
class Reference:
    """One identifier occurrence that reads and/or writes a binding."""
    identifier: Node
    from_scope: 'Scope'
    is_read: bool = True
    is_write: bool = False
    resolved: Optional['Variable'] = None

    @property
    def name(self) -> str:
        return node_text(self.identifier)

    @property
    def line(self) -> int:
        return self.identifier.start_point[0] + 1


@dataclass(eq=False)
class Variable:
    """A named binding and every reference that resolves to it."""
    name: str
    scope: 'Scope'
    identifiers: List[Node] = field(default_factory=list)
    references: List[Reference] = field(default_factory=list)

    def read_references(self) -> List[Reference]:
        return [ref for ref in self.references if ref.is_read]


@dataclass(eq=False)
class Scope:
    """A lexical scope: module, function, block, catch, for, class or function-name."""
    kind: str
    node: Node
    parent: Optional['Scope'] = None
    variables: Dict[str, Variable] = field(default_factory=dict)

    def declare(self, identifier: Node) -> Variable:
        name = node_text(identifier)
        variable = self.variables.get(name)
        if variable is None:
            variable = Variable(name=name, scope=self)
            self.variables[name] = variable
        variable.identifiers.append(identifier)
        return variable

    def lookup(self, name: str) -> Optional[Variable]:
        scope = self
        while scope is not None:
            variable = scope.variables.get(name)
            if variable is not None:
                return variable
            scope = scope.parent
        return None

    @property
    def function_scope(self) -> 'Scope':
        """Nearest enclosing scope that hoists `var` declarations."""
        scope = self
        while scope.kind not in ('function', 'module') and scope.parent is not None:
            scope = scope.parent
        return scope


class ScopeAnalysis:
    """Scope tree and resolved references for a single syntax tree.

    Declarations follow ES module semantics: `let`, `const`, `class` and
    function declarations are block scoped, `var` is hoisted to the nearest
    function. References are resolved only after the whole tree is walked,
    so uses that precede their declaration still bind.
    """

    def __init__(self, tree: Tree):
        """Walk the tree and resolve all references.

        Args:
            tree: Parsed tree-sitter Tree (javascript, typescript or tsx)
        """
        self.tree = tree
        self.root = tree.root_node
        self.module_scope = Scope('module', self.root)
        self.scopes: List[Scope] = [self.module_scope]
        self.references: List[Reference] = []
        self.through: List[Reference] = []  # unresolved, i.e. globals
        # Number of syntax nodes visited; the upper bound for any ancestor walk
        self.node_count = 0
        self._declarations: Dict[Tuple[int, int, str], Variable] = {}

        self._handlers: Dict[str, Callable[[Node, Scope, Walker], None]] = {
            'identifier': self._visit_identifier,
            'shorthand_property_identifier': self._visit_identifier,
            'function_declaration': self._visit_function_declaration,
            'generator_function_declaration': self._visit_function_declaration,
            'function_expression': self._visit_function_expression,
            'function': self._visit_function_expression,
            'generator_function': self._visit_function_expression,
            'arrow_function': self._visit_arrow_function,
            'method_definition': self._visit_method_definition,
            'lexical_declaration': self._visit_variable_declaration,
            'variable_declaration': self._visit_variable_declaration,
            'class_declaration': self._visit_class_declaration,
            'abstract_class_declaration': self._visit_class_declaration,
            'class': self._visit_class_expression,
            'enum_declaration': self._visit_enum_declaration,
            'internal_module': self._visit_namespace,
            'module': self._visit_namespace,
            'statement_block': self._visit_block,
            'switch_body': self._visit_block,
            'for_statement': self._visit_block,
            'for_in_statement': self._visit_for_in,
            'catch_clause': self._visit_catch,
            'assignment_expression': self._visit_assignment,
            'augmented_assignment_expression': self._visit_read_write,
            'update_expression': self._visit_read_write,
            'import_statement': self._visit_import,
            'export_statement': self._visit_export,
            'jsx_opening_element': self._visit_jsx_tag,
            'jsx_self_closing_element': self._visit_jsx_tag,
            'type_query': self._visit_type_query,
        }

        self._walk()
        self._resolve()

    # ------------------------------------------------------------------
    # Public lookups
    # ------------------------------------------------------------------

    def variable_for_declaration(self, identifier: Node) -> Optional[Variable]:
        """Get the variable declared by a binding identifier.

        Args:
            identifier: Identifier node in declaration position

        Returns:
            The declared Variable, or None if the node declares nothing
        """
        return self._declarations.get(node_key(identifier))

    # ------------------------------------------------------------------
    # Walk
    # ------------------------------------------------------------------

    def _walk(self):
        stack: Walker = [(self.root, self.module_scope)]
        while stack:
            node, scope = stack.pop()
            self.node_count += 1

            if node.type in SKIPPED_TYPES:
                continue
            if node.type in TYPE_CONTEXT_TYPES or node.type.endswith('_type'):
                self._scan_type(node, scope)
                continue

            handler = self._handlers.get(node.type)
            if handler is not None:
                handler(node, scope, stack)
            else:
                self._push_children(node, scope, stack)

    def _resolve(self):
        for reference in self.references:
            variable = reference.from_scope.lookup(reference.name)
            if variable is None:
                self.through.append(reference)
                continue
            reference.resolved = variable
            variable.references.append(reference)
        logger.debug(
            "Resolved %d references (%d global) across %d scopes",
            len(self.references) - len(self.through), len(self.through), len(self.scopes)
        )

    @staticmethod
    def _push_children(node: Node, scope: Scope, stack: Walker, skip: Optional[Node] = None):
        skip_key = node_key(skip) if skip is not None else None
        for child in reversed(node.named_children):
            if skip_key is not None and node_key(child) == skip_key:
                continue
            stack.append((child, scope))

    def _new_scope(self, kind: str, node: Node, parent: Scope) -> Scope:
        scope = Scope(kind, node, parent)
        self.scopes.append(scope)
        return scope

    def _declare(self, scope: Scope, identifier: Node):
        self._declarations[node_key(identifier)] = scope.declare(identifier)

    def _add_reference(self, identifier: Node, scope: Scope, read: bool = True, write: bool = False):
        self.references.append(
            Reference(identifier=identifier, from_scope=scope, is_read=read, is_write=write)
        )

    # ------------------------------------------------------------------
    # Patterns (parameters, declarators, destructuring assignment)
    # ------------------------------------------------------------------

    def _bind_pattern(self, pattern: Node, scope: Scope, stack: Walker,
                      on_identifier: Callable[[Node], None]):
        """Walk a binding pattern, reporting each bound name.

        Default values and computed keys are expressions evaluated in `scope`
        and are pushed back onto the main walk.
        """
        pending = [pattern]
        while pending:
            node = pending.pop()
            self.node_count += 1
            kind = node.type

            if kind in ('identifier', 'shorthand_property_identifier_pattern'):
                on_identifier(node)
            elif kind in ('object_pattern', 'array_pattern', 'rest_pattern'):
                pending.extend(node.named_children)
            elif kind == 'pair_pattern':
                key = node.child_by_field_name('key')
                value = node.child_by_field_name('value')
                if key is not None and key.type == 'computed_property_name':
                    stack.append((key, scope))
                if value is not None:
                    pending.append(value)
            elif kind in ('assignment_pattern', 'object_assignment_pattern'):
                left = node.child_by_field_name('left')
                right = node.child_by_field_name('right')
                if left is not None:
                    pending.append(left)
                if right is not None:
                    stack.append((right, scope))
            elif kind in ('required_parameter', 'optional_parameter'):
                self._bind_parameter(node, scope, stack, on_identifier)
            elif kind in ('member_expression', 'subscript_expression', 'parenthesized_expression',
                          'non_null_expression'):
                # Destructuring assignment into an existing object: `[obj.x] = ...`
                stack.append((node, scope))
            elif kind in TYPE_CONTEXT_TYPES:
                self._scan_type(node, scope)

    def _bind_parameter(self, param: Node, scope: Scope, stack: Walker,
                        on_identifier: Callable[[Node], None]):
        pattern = param.child_by_field_name('pattern')
        value = param.child_by_field_name('value')
        type_node = param.child_by_field_name('type')
        if pattern is not None:
            self._bind_pattern(pattern, scope, stack, on_identifier)
        if value is not None:
            stack.append((value, scope))
        if type_node is not None:
            self._scan_type(type_node, scope)

    # ------------------------------------------------------------------
    # Node handlers
    # ------------------------------------------------------------------

    def _visit_identifier(self, node: Node, scope: Scope, stack: Walker):
        self._add_reference(node, scope)

    def _visit_function_declaration(self, node: Node, scope: Scope, stack: Walker):
        name = node.child_by_field_name('name')
        if name is not None:
            self._declare(scope, name)
        self._enter_function(node, scope, stack)

    def _visit_function_expression(self, node: Node, scope: Scope, stack: Walker):
        name = node.child_by_field_name('name')
        if name is not None:
            # The name of a function expression is only visible inside it
            scope = self._new_scope('function-name', node, scope)
            self._declare(scope, name)
        self._enter_function(node, scope, stack)

    def _visit_arrow_function(self, node: Node, scope: Scope, stack: Walker):
        self._enter_function(node, scope, stack)

    def _visit_method_definition(self, node: Node, scope: Scope, stack: Walker):
        name = node.child_by_field_name('name')
        if name is not None and name.type == 'computed_property_name':
            stack.append((name, scope))
        self._enter_function(node, scope, stack)

    def _enter_function(self, node: Node, scope: Scope, stack: Walker):
        """Open a function scope holding the parameters and the body."""
        function_scope = self._new_scope('function', node, scope)

        name = node.child_by_field_name('name')
        single_param = node.child_by_field_name('parameter')
        params = node.child_by_field_name('parameters')
        body = node.child_by_field_name('body')

        own_parts = {node_key(part) for part in (name, single_param, params, body) if part is not None}
        for child in node.named_children:
            # decorators, return type, type parameters
            if node_key(child) not in own_parts:
                stack.append((child, scope))

        def declare_param(identifier: Node):
            self._declare(function_scope, identifier)

        if single_param is not None:
            self._bind_pattern(single_param, function_scope, stack, declare_param)
        if params is not None:
            for param in params.named_children:
                self._bind_pattern(param, function_scope, stack, declare_param)

        if body is None:
            return
        if body.type == 'statement_block':
            # The body block shares the function scope with the parameters
            self.node_count += 1
            self._push_children(body, function_scope, stack)
        else:
            stack.append((body, function_scope))

    def _visit_variable_declaration(self, node: Node, scope: Scope, stack: Walker):
        target = scope.function_scope if node.type == 'variable_declaration' else scope

        def declare(identifier: Node):
            self._declare(target, identifier)

        for declarator in reversed(node.named_children):
            if declarator.type != 'variable_declarator':
                stack.append((declarator, scope))
                continue
            self.node_count += 1
            name = declarator.child_by_field_name('name')
            value = declarator.child_by_field_name('value')
            type_node = declarator.child_by_field_name('type')
            if value is not None:
                stack.append((value, scope))
            if type_node is not None:
                self._scan_type(type_node, scope)
            if name is not None:
                self._bind_pattern(name, scope, stack, declare)

    def _visit_class_declaration(self, node: Node, scope: Scope, stack: Walker):
        name = node.child_by_field_name('name')
        if name is not None:
            self._declare(scope, name)
        self._push_children(node, scope, stack, skip=name)

    def _visit_class_expression(self, node: Node, scope: Scope, stack: Walker):
        name = node.child_by_field_name('name')
        if name is not None:
            scope = self._new_scope('class', node, scope)
            self._declare(scope, name)
        self._push_children(node, scope, stack, skip=name)

    def _visit_enum_declaration(self, node: Node, scope: Scope, stack: Walker):
        name = node.child_by_field_name('name')
        if name is not None and name.type == 'identifier':
            self._declare(scope, name)
        # Member initializers are expressions: `enum E { A = compute() }`
        self._push_children(node, scope, stack, skip=name)

    def _visit_namespace(self, node: Node, scope: Scope, stack: Walker):
        name = node.child_by_field_name('name')
        if name is not None and name.type == 'identifier':
            self._declare(scope, name)
        body = node.child_by_field_name('body')
        if body is not None:
            namespace_scope = self._new_scope('block', node, scope)
            self._push_children(body, namespace_scope, stack)

    def _visit_block(self, node: Node, scope: Scope, stack: Walker):
        block_scope = self._new_scope('block', node, scope)
        self._push_children(node, block_scope, stack)

    def _visit_for_in(self, node: Node, scope: Scope, stack: Walker):
        loop_scope = self._new_scope('for', node, scope)
        left = node.child_by_field_name('left')
        kind = node.child_by_field_name('kind')

        self._push_children(node, loop_scope, stack, skip=left)
        if left is None:
            return

        if kind is not None:
            target = scope.function_scope if node_text(kind) == 'var' else loop_scope

            def declare(identifier: Node):
                self._declare(target, identifier)

            self._bind_pattern(left, loop_scope, stack, declare)
        elif left.type == 'identifier':
            self._add_reference(left, loop_scope, read=False, write=True)
        else:
            self._bind_pattern(left, loop_scope, stack, self._write_reference(loop_scope))

    def _visit_catch(self, node: Node, scope: Scope, stack: Walker):
        catch_scope = self._new_scope('catch', node, scope)
        param = node.child_by_field_name('parameter')
        body = node.child_by_field_name('body')

        def declare(identifier: Node):
            self._declare(catch_scope, identifier)

        if param is not None:
            self._bind_pattern(param, catch_scope, stack, declare)
        if body is not None:
            self.node_count += 1
            self._push_children(body, catch_scope, stack)

    def _write_reference(self, scope: Scope) -> Callable[[Node], None]:
        def write(identifier: Node):
            self._add_reference(identifier, scope, read=False, write=True)
        return write

    def _visit_assignment(self, node: Node, scope: Scope, stack: Walker):
        left = node.child_by_field_name('left')
        right = node.child_by_field_name('right')
        if right is not None:
            stack.append((right, scope))
        if left is None:
            return
        if left.type == 'identifier':
            self._add_reference(left, scope, read=False, write=True)
        elif left.type in ('object_pattern', 'array_pattern'):
            self._bind_pattern(left, scope, stack, self._write_reference(scope))
        else:
            stack.append((left, scope))

    def _visit_read_write(self, node: Node, scope: Scope, stack: Walker):
        target = node.child_by_field_name('left') or node.child_by_field_name('argument')
        if target is not None and target.type == 'identifier':
            self._add_reference(target, scope, read=True, write=True)
            self._push_children(node, scope, stack, skip=target)
        else:
            self._push_children(node, scope, stack)

    def _visit_import(self, node: Node, scope: Scope, stack: Walker):
        for clause in node.named_children:
            if clause.type == 'import_require_clause':
                for child in clause.named_children:
                    if child.type == 'identifier':
                        self._declare(self.module_scope, child)
                        break
                continue
            if clause.type != 'import_clause':
                continue

            for child in clause.named_children:
                if child.type == 'identifier':
                    # import x from 'mod'
                    self._declare(self.module_scope, child)
                elif child.type == 'namespace_import':
                    # import * as ns from 'mod'
                    for ns_child in child.named_children:
                        if ns_child.type == 'identifier':
                            self._declare(self.module_scope, ns_child)
                elif child.type == 'named_imports':
                    # import { x, y as z } from 'mod'
                    for specifier in child.named_children:
                        if specifier.type != 'import_specifier':
                            continue
                        local = specifier.child_by_field_name('alias') or specifier.child_by_field_name('name')
                        if local is not None and local.type == 'identifier':
                            self._declare(self.module_scope, local)

    def _visit_export(self, node: Node, scope: Scope, stack: Walker):
        if node.child_by_field_name('source') is not None:
            # Re-exports name bindings of another module
            return

        for child in reversed(node.named_children):
            if child.type != 'export_clause':
                stack.append((child, scope))
                continue
            for specifier in child.named_children:
                if specifier.type != 'export_specifier':
                    continue
                local = specifier.child_by_field_name('name')
                if local is not None and local.type == 'identifier':
                    self._add_reference(local, scope)

    def _visit_jsx_tag(self, node: Node, scope: Scope, stack: Walker):
        name = node.child_by_field_name('name')
        self._push_children(node, scope, stack, skip=name)
        if name is None:
            return
        if name.type == 'identifier':
            # Lower-case tags are intrinsic elements (<div>), not bindings
            if node_text(name)[:1].isupper():
                self._add_reference(name, scope)
        elif name.type == 'member_expression':
            stack.append((name, scope))

    def _visit_type_query(self, node: Node, scope: Scope, stack: Walker):
        target = self._type_query_target(node)
        if target is not None:
            self._add_reference(target, scope)

    def _scan_type(self, node: Node, scope: Scope):
        """Collect `typeof x` value references from a type-only subtree."""
        pending = [node]
        while pending:
            current = pending.pop()
            self.node_count += 1
            if current.type == 'type_query':
                target = self._type_query_target(current)
                if target is not None:
                    self._add_reference(target, scope)
                continue
            pending.extend(current.named_children)

    @staticmethod
    def _type_query_target(node: Node) -> Optional[Node]:
        """Leftmost identifier of a `typeof` operand (`typeof a.b.c` reads `a`)."""
        current = node.named_children[0] if node.named_child_count else None
        while current is not None:
            if current.type == 'identifier':
                return current
            if current.type == 'member_expression':
                current = current.child_by_field_name('object')
            elif current.type in ('call_expression', 'instantiation_expression', 'subscript_expression'):
                current = current.named_children[0] if current.named_child_count else None
            else:
                return None
        return None
