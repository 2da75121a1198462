"""
directive_lint/parser.py — template front-end
==============================================

Builds the read-only node model (``directive_lint.template_ast``) from a
single-file-component source.  Only the first top-level ``<template>``
block is returned; ``<script>`` and ``<style>`` bodies are skipped as raw
text.

Usage::

    from directive_lint.parser import parse_template

    roots = parse_template(
        '<template><li v-for="item in items">'
        '<input v-model="item.name"></li></template>',
        file="TodoList.vue",
    )

Directive attributes are recognised in long form (``v-bind:type``) and in
the ``:``, ``@`` and ``#`` shorthands.  ``v-for``, ``slot-scope`` /
``scope`` and ``v-slot`` values introduce a :class:`ScopeFrame` on their
element that is visible to the element itself and to its descendants.

Depends on:
    - parsimonious (PEG parser)
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from parsimonious.exceptions import ParseError
from parsimonious.grammar import Grammar
from parsimonious.nodes import NodeVisitor

from directive_lint.errors import TemplateSyntaxError
from directive_lint.expressions import parse_expression
from directive_lint.rules import HTML_ELEMENT_NAMES
from directive_lint.template_ast import (
    DirectiveBinding,
    DirectiveValue,
    HostElement,
    ScopeFrame,
    SourceLocation,
    Variable,
)

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════
#  PART 1 — MARKUP GRAMMAR (Parsimonious PEG)
# ═══════════════════════════════════════════════════════════════════

VOID_ELEMENTS = frozenset({
    "area", "base", "br", "col", "embed", "hr", "img", "input", "link",
    "meta", "param", "source", "track", "wbr",
})

_VOID_ALTERNATION = "|".join(sorted(VOID_ELEMENTS))

TEMPLATE_GRAMMAR = Grammar(r'''
    document        = node*
    node            = comment / doctype / raw_element / element / text

    element         = self_closing / void_element / normal_element
    self_closing    = "<" tag_name attributes _ "/>"
    void_element    = "<" void_name attributes _ ">" void_end?
    void_end        = _ "</" void_name _ ">"
    normal_element  = start_tag node* end_tag
    start_tag       = "<" tag_name attributes _ ">"
    end_tag         = "</" tag_name _ ">"

    raw_element     = "<" raw_name attributes _ ">" raw_body "</" raw_name _ ">"
    raw_body        = ~r"(?:(?!</(?:script|style)\b)[\s\S])*"i

    attributes      = attribute*
    attribute       = ~r"\s+" attr_name attr_value?
    attr_value      = _ "=" _ attr_text
    attr_text       = ~r'"[^"]*"' / ~r"'[^']*'" / ~r"[^\s\"'=<>`]+"
    attr_name       = ~r"[^\s\"'<>/=]+"

    tag_name        = ~r"[A-Za-z][A-Za-z0-9\-_.:]*"
    void_name       = ~r"(?:''' + _VOID_ALTERNATION + r''')(?![A-Za-z0-9\-_.:])"i
    raw_name        = ~r"(?:script|style)(?![A-Za-z0-9\-_.:])"i

    comment         = ~r"<!--[\s\S]*?-->"
    doctype         = ~r"<![^>]*>"
    text            = ~r"(?:\{\{[\s\S]*?\}\}|[^<{]|\{(?!\{))+"

    _               = ~r"\s*"
''')

_DIRECTIVE_PREFIXES = {":": "bind", "@": "on", "#": "slot"}

_FOR_ALIAS = re.compile(r"^\s*(\(.*?\)|\{.*?\}|\[.*?\]|[^\s]+?)\s+(?:in|of)\s+(.*)$", re.S)
_DIRECTIVE_NAME = re.compile(r"[^:.]*")
_IDENT = re.compile(r"[A-Za-z_$][A-Za-z0-9_$]*")
_DEFAULT = re.compile(r"=[^,}\]]*")


# ═══════════════════════════════════════════════════════════════════
#  PART 2 — PARSE TREE → RAW ELEMENTS
# ═══════════════════════════════════════════════════════════════════

@dataclass
class _RawAttribute:
    name: str
    value: Optional[str]
    offset: int


@dataclass
class _RawElement:
    tag: str
    attributes: List[_RawAttribute]
    offset: int
    children: List[_RawElement] = field(default_factory=list)


class _MarkupBuilder(NodeVisitor):
    """Collects elements from the parse tree; text and comments are dropped."""

    unwrapped_exceptions = (TemplateSyntaxError,)

    def __init__(self, source: str, file: str) -> None:
        self.source = source
        self.file = file

    def generic_visit(self, node, visited_children):
        return visited_children or node

    def _elements(self, visited) -> List[_RawElement]:
        if not isinstance(visited, list):
            return []
        return [item for item in visited if isinstance(item, _RawElement)]

    def visit_document(self, node, visited_children):
        return self._elements(visited_children)

    def visit_node(self, node, visited_children):
        child = visited_children[0]
        return child if isinstance(child, _RawElement) else None

    def visit_element(self, node, visited_children):
        return visited_children[0]

    def visit_self_closing(self, node, visited_children):
        _, tag, attributes, _, _ = visited_children
        return _RawElement(tag.text, attributes, node.start)

    def visit_void_element(self, node, visited_children):
        _, tag, attributes, _, _, _ = visited_children
        return _RawElement(tag.text, attributes, node.start)

    def visit_normal_element(self, node, visited_children):
        (tag, attributes, offset), children, end = visited_children
        if end.lower() != tag.lower():
            line, column = _position(self.source, node.children[2].start)
            raise TemplateSyntaxError(
                f"unexpected end tag </{end}>, expected </{tag}>",
                SourceLocation(self.file, line, column),
            )
        return _RawElement(tag, attributes, offset, self._elements(children))

    def visit_start_tag(self, node, visited_children):
        _, tag, attributes, _, _ = visited_children
        return (tag.text, attributes, node.start)

    def visit_end_tag(self, node, visited_children):
        _, tag, _, _ = visited_children
        return tag.text

    def visit_raw_element(self, node, visited_children):
        return None

    def visit_attributes(self, node, visited_children):
        return [a for a in visited_children if isinstance(a, _RawAttribute)]

    def visit_attribute(self, node, visited_children):
        _, name, value = visited_children
        text = value[0] if isinstance(value, list) else None
        return _RawAttribute(name.text, text, name.start)

    def visit_attr_value(self, node, visited_children):
        _, _, _, text = visited_children
        return text

    def visit_attr_text(self, node, visited_children):
        raw = node.text
        if raw[:1] in ("'", '"'):
            return raw[1:-1]
        return raw


def _position(source: str, offset: int) -> Tuple[int, int]:
    """1-based (line, column) of ``offset`` in ``source``."""
    line = source.count("\n", 0, offset) + 1
    column = offset - (source.rfind("\n", 0, offset) + 1) + 1
    return line, column


# ═══════════════════════════════════════════════════════════════════
#  PART 3 — RAW ELEMENTS → NODE MODEL
# ═══════════════════════════════════════════════════════════════════

def split_directive_name(
    raw: str,
) -> Optional[Tuple[str, Optional[str], Tuple[str, ...]]]:
    """
    Split a directive attribute name into ``(name, argument, modifiers)``.

    Returns ``None`` for plain attributes.

    >>> split_directive_name("v-model.lazy.trim")
    ('model', None, ('lazy', 'trim'))
    >>> split_directive_name(":type")
    ('bind', 'type', ())
    """
    if raw.startswith("v-"):
        body = raw[2:]
        match = _DIRECTIVE_NAME.match(body)
        name, tail = match.group(0), body[match.end():]
        if not tail.startswith(":"):
            return name, None, tuple(tail.split(".")[1:])
        tail = tail[1:]
    elif raw[:1] in _DIRECTIVE_PREFIXES:
        name = _DIRECTIVE_PREFIXES[raw[0]]
        tail = raw[1:]
    else:
        return None
    if tail.startswith("["):
        # dynamic argument: v-bind:[key].prop
        close = tail.find("]")
        if close != -1:
            argument = tail[:close + 1]
            modifiers = tuple(m for m in tail[close + 1:].split(".") if m)
            return name, argument, modifiers
    argument, *modifiers = tail.split(".")
    return name, argument, tuple(modifiers)


def _pattern_variables(pattern: str, kind: str) -> Tuple[Variable, ...]:
    """Names bound by an alias pattern such as ``(item, index)`` or ``{ a: b }``."""
    stripped = _DEFAULT.sub("", pattern)
    names: List[str] = []
    for match in _IDENT.finditer(stripped):
        after = stripped[match.end():].lstrip()
        if after.startswith(":"):
            continue  # property key in a destructuring pattern
        if match.group(0) not in names:
            names.append(match.group(0))
    return tuple(Variable(name, kind) for name in names)


def iteration_variables(value: str) -> Tuple[Variable, ...]:
    """Variables introduced by a ``v-for`` value; empty when malformed."""
    match = _FOR_ALIAS.match(value)
    if match is None:
        return ()
    return _pattern_variables(match.group(1), "v-for")


class _TreeBuilder:
    """Turns raw elements into ``HostElement`` nodes with their scope chain."""

    def __init__(self, source: str, file: str) -> None:
        self.source = source
        self.file = file

    def _location(self, offset: int) -> SourceLocation:
        line, column = _position(self.source, offset)
        return SourceLocation(self.file, line, column)

    def _binding(self, attr: _RawAttribute) -> Optional[DirectiveBinding]:
        parts = split_directive_name(attr.name)
        if parts is None:
            return None
        name, argument, modifiers = parts
        value = None
        if attr.value is not None:
            text = attr.value
            if name == "for":
                match = _FOR_ALIAS.match(text)
                expression = parse_expression(match.group(2) if match else text)
            else:
                expression = parse_expression(text)
            value = DirectiveValue(text=text, expression=expression)
        return DirectiveBinding(
            name=name,
            argument=argument,
            modifiers=modifiers,
            value=value,
            location=self._location(attr.offset),
            raw_name=attr.name,
        )

    def build(
        self,
        raw: _RawElement,
        parent_scope: Optional[ScopeFrame],
        namespace: str,
    ) -> HostElement:
        tag = raw.tag
        if tag.lower() in HTML_ELEMENT_NAMES or tag.lower() in ("svg", "math"):
            tag = tag.lower()
        if tag == "svg":
            namespace = "svg"
        elif tag == "math":
            namespace = "mathml"

        bindings: List[DirectiveBinding] = []
        attributes: Dict[str, Optional[str]] = {}
        variables: List[Variable] = []
        for attr in raw.attributes:
            binding = self._binding(attr)
            if binding is None:
                attributes[attr.name] = attr.value
                if attr.name in ("slot-scope", "scope") and attr.value:
                    variables.extend(_pattern_variables(attr.value, "scope"))
                continue
            bindings.append(binding)
            if binding.value is None:
                continue
            if binding.name == "for":
                variables.extend(iteration_variables(binding.value.text))
            elif binding.name == "slot":
                variables.extend(_pattern_variables(binding.value.text, "scope"))

        scope = parent_scope
        if variables:
            scope = ScopeFrame(tuple(variables), parent_scope, kind="element")
            logger.debug(
                "<%s> introduces %s", tag, ", ".join(v.name for v in variables)
            )

        children = tuple(
            self.build(child, scope, namespace) for child in raw.children
        )
        return HostElement(
            tag_name=tag,
            bindings=tuple(bindings),
            attributes=attributes,
            scope=scope,
            children=children,
            namespace=namespace,
            location=self._location(raw.offset),
        )


# ═══════════════════════════════════════════════════════════════════
#  PART 4 — PUBLIC API
# ═══════════════════════════════════════════════════════════════════

def parse_template(source: str, file: str = "") -> List[HostElement]:
    """
    Parse ``source`` and return the root elements of its ``<template>`` block.

    Returns ``[]`` when there is no ``<template>`` block.  Raises
    :class:`TemplateSyntaxError` for markup that cannot be parsed.
    """
    try:
        tree = TEMPLATE_GRAMMAR.parse(source)
    except ParseError as exc:
        line, column = _position(source, exc.pos)
        raise TemplateSyntaxError(
            f"cannot parse markup near {source[exc.pos:exc.pos + 20]!r}",
            SourceLocation(file, line, column),
            cause=exc,
        ) from exc

    raw_roots = _MarkupBuilder(source, file).visit(tree)
    template = next(
        (r for r in raw_roots if r.tag.lower() == "template"), None
    )
    if template is None:
        logger.debug("no <template> block in %s", file or "<string>")
        return []

    builder = _TreeBuilder(source, file)
    return [builder.build(child, None, "html") for child in template.children]


def parse_template_file(path: str) -> List[HostElement]:
    """Read ``path`` as UTF-8 and parse it with :func:`parse_template`."""
    with open(path, encoding="utf-8") as handle:
        source = handle.read()
    return parse_template(source, file=path)


__all__ = [
    "TEMPLATE_GRAMMAR",
    "VOID_ELEMENTS",
    "split_directive_name",
    "iteration_variables",
    "parse_template",
    "parse_template_file",
]
