"""
directive_lint/template_ast.py
══════════════════════════════

Read-only node model consumed by the directive checkers.

Nodes are produced once by a front-end (``directive_lint.parser`` or any
other template parser) and never mutated afterwards.

  HostElement ──owns──▶ DirectiveBinding ──▶ DirectiveValue ──▶ Expression
       │                                                          │
       └── scope ──▶ ScopeFrame ──parent──▶ ScopeFrame ...        └── VariableReference*
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, Optional, Tuple


# ═════════════════════════════════════════════════════════════════════════
#  PART 1 — LOCATIONS
# ═════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class SourceLocation:
    """A specific point in a template source."""
    file: str = ""
    line: int = 0
    column: int = 0

    def __str__(self) -> str:
        if self.column:
            return f"{self.file}:{self.line}:{self.column}"
        return f"{self.file}:{self.line}"


# ═════════════════════════════════════════════════════════════════════════
#  PART 2 — SCOPES
# ═════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Variable:
    """A name introduced by an enclosing construct (``v-for``, ``slot-scope``)."""
    name: str
    kind: str = "v-for"


@dataclass(frozen=True)
class ScopeFrame:
    """
    One lexical frame of the template scope chain.

    Frames link outward through ``parent``; the chain is built by the
    front-end and only ever read.
    """
    variables: Tuple[Variable, ...] = ()
    parent: Optional[ScopeFrame] = None
    kind: str = "block"

    def lookup_local(self, name: str) -> Optional[Variable]:
        """Look up a variable in this frame only (no parent lookup)."""
        for variable in self.variables:
            if variable.name == name:
                return variable
        return None

    def frames(self) -> Iterator[ScopeFrame]:
        """Iterate this frame and its ancestors, innermost first."""
        frame: Optional[ScopeFrame] = self
        while frame is not None:
            yield frame
            frame = frame.parent


# ═════════════════════════════════════════════════════════════════════════
#  PART 3 — EXPRESSIONS
# ═════════════════════════════════════════════════════════════════════════

class ExpressionKind(Enum):
    """Shape of a bound expression's root node."""
    IDENTIFIER = "Identifier"
    MEMBER = "MemberExpression"
    CALL = "CallExpression"
    LITERAL = "Literal"
    OTHER = "Other"
    EMPTY = "Empty"
    INVALID = "Invalid"


@dataclass(frozen=True)
class VariableReference:
    """
    A free identifier inside a bound expression.

    ``parent_kind`` is the kind of the node that directly contains the
    identifier; ``MEMBER`` means the identifier is the object (or computed
    property) of a member access such as ``item.done`` or ``list[item]``.
    """
    name: str
    parent_kind: Optional[ExpressionKind] = None


@dataclass(frozen=True)
class Expression:
    kind: ExpressionKind
    text: str = ""
    references: Tuple[VariableReference, ...] = ()


# ═════════════════════════════════════════════════════════════════════════
#  PART 4 — ELEMENTS AND BINDINGS
# ═════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class DirectiveValue:
    """The ``="..."`` part of a directive attribute."""
    text: str
    expression: Expression


@dataclass(frozen=True)
class DirectiveBinding:
    """
    A parsed directive attribute such as ``v-model.lazy="form.name"``.

    ``value`` is ``None`` only when the attribute carried no ``="..."``
    part at all; an empty string still produces a value.
    """
    name: str
    argument: Optional[str] = None
    modifiers: Tuple[str, ...] = ()
    value: Optional[DirectiveValue] = None
    location: SourceLocation = field(default_factory=SourceLocation)
    raw_name: str = ""

    @property
    def expression(self) -> Optional[Expression]:
        return self.value.expression if self.value is not None else None


@dataclass(frozen=True)
class HostElement:
    """A template element with its static attributes and directive bindings."""
    tag_name: str
    bindings: Tuple[DirectiveBinding, ...] = ()
    attributes: Dict[str, Optional[str]] = field(default_factory=dict)
    scope: Optional[ScopeFrame] = None
    children: Tuple[HostElement, ...] = ()
    namespace: str = "html"
    location: SourceLocation = field(default_factory=SourceLocation)

    def get_binding(
        self, name: str, argument: Optional[str] = None
    ) -> Optional[DirectiveBinding]:
        """First binding with directive ``name`` (and ``argument`` if given)."""
        for binding in self.bindings:
            if binding.name != name:
                continue
            if argument is not None and binding.argument != argument:
                continue
            return binding
        return None

    def walk(self) -> Iterator[HostElement]:
        """Depth-first, document-order traversal starting at this element."""
        yield self
        for child in self.children:
            yield from child.walk()


__all__ = [
    "SourceLocation",
    "Variable",
    "ScopeFrame",
    "ExpressionKind",
    "VariableReference",
    "Expression",
    "DirectiveValue",
    "DirectiveBinding",
    "HostElement",
]
