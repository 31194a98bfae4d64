from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, Optional, Tuple

from .values import Value


class Node:
    """Base class for JMESPath AST nodes."""

    def children(self) -> Tuple["Node", ...]:
        return ()


@dataclass(frozen=True)
class Identity(Node):
    """The implicit current value, e.g. the right side of ``foo[*]``."""

    offset: int = field(default=0, compare=False)


@dataclass(frozen=True)
class CurrentNode(Node):
    """``@``"""

    offset: int = field(default=0, compare=False)


@dataclass(frozen=True)
class Field(Node):
    name: str
    offset: int = field(default=0, compare=False)


@dataclass(frozen=True)
class Index(Node):
    index: int
    offset: int = field(default=0, compare=False)


@dataclass(frozen=True)
class Slice(Node):
    start: Optional[int]
    stop: Optional[int]
    step: Optional[int]
    offset: int = field(default=0, compare=False)


@dataclass(frozen=True)
class Literal(Node):
    value: Value
    offset: int = field(default=0, compare=False)


@dataclass(frozen=True)
class Flatten(Node):
    node: Node
    offset: int = field(default=0, compare=False)

    def children(self) -> Tuple[Node, ...]:
        return (self.node,)


@dataclass(frozen=True)
class ListProjection(Node):
    left: Node
    right: Node
    offset: int = field(default=0, compare=False)

    def children(self) -> Tuple[Node, ...]:
        return (self.left, self.right)


@dataclass(frozen=True)
class ObjectProjection(Node):
    left: Node
    right: Node
    offset: int = field(default=0, compare=False)

    def children(self) -> Tuple[Node, ...]:
        return (self.left, self.right)


@dataclass(frozen=True)
class FilterProjection(Node):
    left: Node
    right: Node
    predicate: Node
    offset: int = field(default=0, compare=False)

    def children(self) -> Tuple[Node, ...]:
        return (self.left, self.predicate, self.right)


@dataclass(frozen=True)
class Pipe(Node):
    left: Node
    right: Node
    offset: int = field(default=0, compare=False)

    def children(self) -> Tuple[Node, ...]:
        return (self.left, self.right)


@dataclass(frozen=True)
class Subexpr(Node):
    left: Node
    right: Node
    offset: int = field(default=0, compare=False)

    def children(self) -> Tuple[Node, ...]:
        return (self.left, self.right)


@dataclass(frozen=True)
class MultiSelectList(Node):
    elements: Tuple[Node, ...]
    offset: int = field(default=0, compare=False)

    def children(self) -> Tuple[Node, ...]:
        return self.elements


@dataclass(frozen=True)
class KeyValuePair:
    key: str
    value: Node


@dataclass(frozen=True)
class MultiSelectHash(Node):
    pairs: Tuple[KeyValuePair, ...]
    offset: int = field(default=0, compare=False)

    def children(self) -> Tuple[Node, ...]:
        return tuple(pair.value for pair in self.pairs)


@dataclass(frozen=True)
class Comparison(Node):
    comparator: str  # "==", "!=", "<", "<=", ">", ">="
    left: Node
    right: Node
    offset: int = field(default=0, compare=False)

    def children(self) -> Tuple[Node, ...]:
        return (self.left, self.right)


@dataclass(frozen=True)
class And(Node):
    left: Node
    right: Node
    offset: int = field(default=0, compare=False)

    def children(self) -> Tuple[Node, ...]:
        return (self.left, self.right)


@dataclass(frozen=True)
class Or(Node):
    left: Node
    right: Node
    offset: int = field(default=0, compare=False)

    def children(self) -> Tuple[Node, ...]:
        return (self.left, self.right)


@dataclass(frozen=True)
class Not(Node):
    node: Node
    offset: int = field(default=0, compare=False)

    def children(self) -> Tuple[Node, ...]:
        return (self.node,)


@dataclass(frozen=True)
class FunctionCall(Node):
    name: str
    args: Tuple[Node, ...]
    offset: int = field(default=0, compare=False)

    def children(self) -> Tuple[Node, ...]:
        return self.args


@dataclass(frozen=True)
class ExpressionRef(Node):
    """``&expr``; evaluates to an expression reference value."""

    node: Node
    offset: int = field(default=0, compare=False)

    def children(self) -> Tuple[Node, ...]:
        return (self.node,)


def walk(node: Node) -> Iterator[Node]:
    """Yield ``node`` and every descendant, parents before children."""
    yield node
    for child in node.children():
        yield from walk(child)


def format_tree(node: Node, indent: int = 0) -> str:
    """Render the tree one node per line, used by ``haifa-jp --ast``."""
    pad = "  " * indent
    name = type(node).__name__
    if isinstance(node, Field):
        line = f"{pad}{name} {node.name!r}"
    elif isinstance(node, Index):
        line = f"{pad}{name} {node.index}"
    elif isinstance(node, Slice):
        line = f"{pad}{name} {node.start}:{node.stop}:{node.step}"
    elif isinstance(node, Literal):
        line = f"{pad}{name} {node.value!r}"
    elif isinstance(node, Comparison):
        line = f"{pad}{name} {node.comparator}"
    elif isinstance(node, FunctionCall):
        line = f"{pad}{name} {node.name}()"
    else:
        line = f"{pad}{name}"
    lines = [line]
    if isinstance(node, MultiSelectHash):
        for pair in node.pairs:
            lines.append(f"{pad}  {pair.key!r}:")
            lines.append(format_tree(pair.value, indent + 2))
    else:
        for child in node.children():
            lines.append(format_tree(child, indent + 1))
    return "\n".join(lines)


__all__ = [
    "Node",
    "Identity",
    "CurrentNode",
    "Field",
    "Index",
    "Slice",
    "Literal",
    "Flatten",
    "ListProjection",
    "ObjectProjection",
    "FilterProjection",
    "Pipe",
    "Subexpr",
    "MultiSelectList",
    "KeyValuePair",
    "MultiSelectHash",
    "Comparison",
    "And",
    "Or",
    "Not",
    "FunctionCall",
    "ExpressionRef",
    "walk",
    "format_tree",
]
