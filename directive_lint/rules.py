"""
directive_lint/rules.py
═══════════════════════

Stateless predicates over the template node model.

None of these raise: an unmatched lookup is a normal ``False`` / ``None``
result that the checkers in ``directive_lint.checkers`` turn into findings.
"""

from __future__ import annotations

import re
from typing import FrozenSet, Optional

from directive_lint.template_ast import (
    Expression,
    ExpressionKind,
    HostElement,
    ScopeFrame,
    Variable,
)

# ═════════════════════════════════════════════════════════════════════════
#  PART 1 — FIXED TABLES
# ═════════════════════════════════════════════════════════════════════════

VALID_MODIFIERS: FrozenSet[str] = frozenset({"lazy", "number", "trim"})

FORM_CONTROL_TAGS: FrozenSet[str] = frozenset({"input", "select", "textarea"})

# Framework built-ins that manage their own content and cannot own a
# two-way binding even though they look like components.
NON_BINDABLE_BUILTINS: FrozenSet[str] = frozenset({
    "keep-alive",
    "slot",
    "transition",
    "transition-group",
})

HTML_ELEMENT_NAMES: FrozenSet[str] = frozenset({
    "html", "body", "base", "head", "link", "meta", "style", "title",
    "address", "article", "aside", "footer", "header", "h1", "h2", "h3",
    "h4", "h5", "h6", "hgroup", "nav", "section", "div", "dd", "dl", "dt",
    "figcaption", "figure", "hr", "img", "li", "main", "ol", "p", "pre",
    "ul", "a", "b", "abbr", "bdi", "bdo", "br", "cite", "code", "data",
    "dfn", "em", "i", "kbd", "mark", "q", "rp", "rt", "rtc", "ruby", "s",
    "samp", "small", "span", "strong", "sub", "sup", "time", "u", "var",
    "wbr", "area", "audio", "map", "track", "video", "embed", "object",
    "param", "source", "canvas", "script", "noscript", "del", "ins",
    "caption", "col", "colgroup", "table", "thead", "tbody", "tfoot", "td",
    "th", "tr", "button", "datalist", "fieldset", "form", "input", "label",
    "legend", "meter", "optgroup", "option", "output", "progress", "select",
    "textarea", "details", "dialog", "menu", "menuitem", "summary",
    "content", "element", "shadow", "template", "blockquote", "iframe",
    "picture", "search",
})

TEXT_INPUT_TAG = "input"
FILE_INPUT_TYPE = "file"

_CASE_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


# ═════════════════════════════════════════════════════════════════════════
#  PART 2 — HOST PREDICATES
# ═════════════════════════════════════════════════════════════════════════

def is_custom_component(element: HostElement) -> bool:
    """
    Whether ``element`` refers to a user component rather than a native tag.

    An element is a component when it lives in the HTML namespace under a
    name HTML does not define, or when it is retargeted with ``is`` /
    ``v-bind:is``.
    """
    if element.namespace == "html" and element.tag_name not in HTML_ELEMENT_NAMES:
        return True
    if "is" in element.attributes:
        return True
    return element.get_binding("bind", "is") is not None


def normalize_tag_name(name: str) -> str:
    """``KeepAlive`` / ``KEEP-ALIVE`` / ``keep-alive`` all become ``keep-alive``."""
    return _CASE_BOUNDARY.sub("-", name).lower()


def is_eligible_host(element: HostElement) -> bool:
    """Native form controls and user components can hold bindable state."""
    name = normalize_tag_name(element.tag_name)
    if name in FORM_CONTROL_TAGS:
        return True
    return name not in NON_BINDABLE_BUILTINS and is_custom_component(element)


def has_dynamic_type_binding(element: HostElement) -> bool:
    """An ``<input :type="...">`` whose type is unknown until runtime."""
    if element.tag_name != TEXT_INPUT_TAG:
        return False
    return element.get_binding("bind", "type") is not None


def has_literal_file_type(element: HostElement) -> bool:
    """An ``<input type="file">``; its value cannot be written back."""
    if element.tag_name != TEXT_INPUT_TAG:
        return False
    return element.attributes.get("type") == FILE_INPUT_TYPE


# ═════════════════════════════════════════════════════════════════════════
#  PART 3 — EXPRESSION AND SCOPE PREDICATES
# ═════════════════════════════════════════════════════════════════════════

def is_assignment_target(expression: Optional[Expression]) -> bool:
    """Only identifiers and member accesses can receive a writeback."""
    return expression is not None and expression.kind in (
        ExpressionKind.IDENTIFIER,
        ExpressionKind.MEMBER,
    )


def resolve_variable(name: str, scope: Optional[ScopeFrame]) -> Optional[Variable]:
    """Walk ``scope`` outward and return the first variable called ``name``."""
    if scope is None:
        return None
    for frame in scope.frames():
        variable = frame.lookup_local(name)
        if variable is not None:
            return variable
    return None


__all__ = [
    "VALID_MODIFIERS",
    "FORM_CONTROL_TAGS",
    "NON_BINDABLE_BUILTINS",
    "HTML_ELEMENT_NAMES",
    "normalize_tag_name",
    "is_custom_component",
    "is_eligible_host",
    "has_dynamic_type_binding",
    "has_literal_file_type",
    "is_assignment_target",
    "resolve_variable",
]
