"""Free-identifier analysis over esprima ASTs.

Scoping is flat: any name bound anywhere inside the analysed tree (variable,
function, parameter, class or catch binding) is treated as local to the whole
tree. That over-approximates shadowing, which is good enough to decide what a
notebook cell needs from other cells.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

_SKIP_KEYS = frozenset({"type", "range", "loc", "leadingComments", "trailingComments", "innerComments"})
_FUNCTION_TYPES = frozenset({"FunctionDeclaration", "FunctionExpression", "ArrowFunctionExpression"})
_CLASS_TYPES = frozenset({"ClassDeclaration", "ClassExpression"})
_LABEL_PARENTS = frozenset({"LabeledStatement", "BreakStatement", "ContinueStatement", "MetaProperty"})
_IGNORED_NAMES = frozenset({"arguments"})


@dataclass(frozen=True)
class Reference:
    name: str
    start: int
    end: int


@dataclass
class Analysis:
    references: list[Reference] = field(default_factory=list)
    bindings: set[str] = field(default_factory=set)
    functions: list[tuple[int, int]] = field(default_factory=list)
    literals: list[tuple[int, int]] = field(default_factory=list)

    def opaque(self, offset: int) -> bool:
        """True if `offset` is inside a nested function, string or template chunk."""
        return any(start <= offset < end for start, end in self.functions + self.literals)


def is_node(value: Any) -> bool:
    return isinstance(getattr(value, "type", None), str)


def children(node: Any) -> Iterator[tuple[str, Any]]:
    for key, value in vars(node).items():
        if key in _SKIP_KEYS:
            continue
        if isinstance(value, list):
            for item in value:
                if is_node(item):
                    yield key, item
        elif is_node(value):
            yield key, value


def pattern_names(pattern: Any) -> list[str]:
    """Names bound by an identifier or destructuring pattern."""
    if pattern is None:
        return []
    kind = pattern.type
    if kind == "Identifier":
        return [pattern.name]
    if kind == "ObjectPattern":
        names: list[str] = []
        for prop in pattern.properties:
            names.extend(pattern_names(prop.argument if prop.type == "RestElement" else prop.value))
        return names
    if kind == "ArrayPattern":
        return [name for element in pattern.elements for name in pattern_names(element)]
    if kind == "AssignmentPattern":
        return pattern_names(pattern.left)
    if kind == "RestElement":
        return pattern_names(pattern.argument)
    return []


def _is_reference(parent: Any, key: str | None) -> bool:
    if parent is None:
        return True
    kind = parent.type
    if kind == "MemberExpression" and key == "property" and not parent.computed:
        return False
    if kind in ("Property", "MethodDefinition") and key == "key" and not parent.computed:
        return False
    return kind not in _LABEL_PARENTS


def analyze(root: Any) -> Analysis:
    """Collect free identifier references of `root`, in source order."""
    analysis = Analysis()
    found: list[Reference] = []
    stack: list[tuple[Any, Any, str | None]] = [(root, None, None)]
    while stack:
        node, parent, key = stack.pop()
        kind = node.type
        if kind == "Identifier":
            if _is_reference(parent, key):
                found.append(Reference(node.name, node.range[0], node.range[1]))
            continue
        if kind in ("Literal", "TemplateElement"):
            analysis.literals.append((node.range[0], node.range[1]))
            continue
        if kind in _FUNCTION_TYPES:
            analysis.functions.append((node.range[0], node.range[1]))
            analysis.bindings.update(pattern_names(node.id))
            for param in node.params:
                analysis.bindings.update(pattern_names(param))
        elif kind in _CLASS_TYPES:
            analysis.bindings.update(pattern_names(node.id))
        elif kind == "VariableDeclarator":
            analysis.bindings.update(pattern_names(node.id))
        elif kind == "CatchClause":
            analysis.bindings.update(pattern_names(node.param))
        for child_key, child in children(node):
            stack.append((child, node, child_key))

    excluded = analysis.bindings | _IGNORED_NAMES
    analysis.references = sorted((r for r in found if r.name not in excluded), key=lambda r: r.start)
    return analysis
