"""
directive_lint/expressions.py — bound-expression front-end
===========================================================

Parses the JavaScript expression subset that appears inside directive
values into an :class:`~directive_lint.template_ast.Expression`: the kind
of the root node plus every free identifier with the kind of the node
that encloses it.

Supported: identifiers, ``this``, member access (``a.b``, ``a[b]``),
calls, ``new``, string / number / boolean / ``null`` literals, array and
object literals, template literals, spread, arrow functions with plain
parameter names, prefix operators, binary and assignment operators,
``?:``, comma sequences and parentheses.  Arrow parameters are not free
references inside the arrow body.

Not supported: ``function`` expressions, destructuring arrow parameters,
regular expression literals, postfix ``++`` / ``--`` and compound
assignment.  These parse as ``ExpressionKind.INVALID`` with no
references; this module never raises on bad input.

Depends on:
    - parsimonious (PEG parser)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple

from parsimonious.exceptions import ParseError
from parsimonious.grammar import Grammar
from parsimonious.nodes import NodeVisitor

from directive_lint.template_ast import (
    Expression,
    ExpressionKind,
    VariableReference,
)

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════
#  PART 1 — EXPRESSION GRAMMAR (Parsimonious PEG)
# ═══════════════════════════════════════════════════════════════════

EXPRESSION_GRAMMAR = Grammar(r'''
    expression      = _ sequence _
    sequence        = conditional sequence_tail*
    sequence_tail   = _ "," _ conditional

    conditional     = arrow / ternary
    ternary         = binary conditional_tail?
    conditional_tail = _ "?" _ conditional _ ":" _ conditional

    arrow           = arrow_params _ "=>" _ conditional
    arrow_params    = param_list / name
    param_list      = "(" _ param_names? _ ")"
    param_names     = name param_names_tail*
    param_names_tail = _ "," _ name

    binary          = unary binary_tail*
    binary_tail     = _ binary_op _ unary
    binary_op       = "===" / "!==" / "==" / "!=" / "<=" / ">=" / "&&" / "||"
                    / "??" / "<" / ">" / "+" / "-" / "*" / "/" / "%" / "="

    unary           = prefixed / new_expr / postfix
    prefixed        = unary_op _ unary
    unary_op        = "!" / "-" / "+" / ~r"typeof\b" / ~r"void\b"
    new_expr        = ~r"new\b" _ postfix

    postfix         = primary accessor*
    accessor        = dot_access / index_access / call_args
    dot_access      = _ "." _ name
    index_access    = _ "[" _ sequence _ "]"
    call_args       = _ "(" _ arguments? _ ")"
    arguments       = argument arguments_tail*
    arguments_tail  = _ "," _ argument
    argument        = spread / conditional
    spread          = "..." _ conditional

    primary         = literal / template / paren / array / object / this / identifier
    paren           = "(" _ sequence _ ")"
    array           = "[" _ arguments? _ "]"
    this            = ~r"this\b"

    object          = "{" _ properties? _ "}"
    properties      = property properties_tail* trailing_comma?
    properties_tail = _ "," _ property
    trailing_comma  = _ ","
    property        = spread / keyed / identifier
    keyed           = prop_key _ ":" _ conditional
    prop_key        = computed_key / name / string / number
    computed_key    = "[" _ conditional _ "]"

    template        = "`" template_part* "`"
    template_part   = template_sub / template_chars
    template_sub    = "${" _ sequence _ "}"
    template_chars  = ~r"(?:[^`\\$]|\\[\s\S]|\$(?!\{))+"

    literal         = number / string / boolean / null
    number          = ~r"\d+(\.\d+)?([eE][+-]?\d+)?" / ~r"\.\d+([eE][+-]?\d+)?"
    string          = ~r"'(?:[^'\\]|\\.)*'" / ~r'"(?:[^"\\]|\\.)*"'
    boolean         = ~r"(true|false)\b"
    null            = ~r"null\b"

    identifier      = !keyword name
    name            = ~r"[A-Za-z_$][A-Za-z0-9_$]*"
    keyword         = ~r"(true|false|null|this|typeof|void|new|function)\b"

    _               = ~r"\s*"
''')


# ═══════════════════════════════════════════════════════════════════
#  PART 2 — PARSE TREE → EXPRESSION
# ═══════════════════════════════════════════════════════════════════

@dataclass
class _Sub:
    """A sub-expression while folding: its kind and the references below it."""
    kind: ExpressionKind
    name: Optional[str] = None
    refs: List[VariableReference] = field(default_factory=list)


def _absorb(child: _Sub, parent_kind: Optional[ExpressionKind]) -> List[VariableReference]:
    """References contributed by ``child`` once it is nested under ``parent_kind``."""
    if child.kind is ExpressionKind.IDENTIFIER and child.name is not None:
        return [VariableReference(child.name, parent_kind)]
    return list(child.refs)


def _matched(visited: Any) -> List[Any]:
    """Children of an optional / repeated rule, or ``[]`` when it matched nothing."""
    return visited if isinstance(visited, list) else []


class ExpressionBuilder(NodeVisitor):
    """Folds a parsimonious parse tree into ``_Sub`` values."""

    grammar = EXPRESSION_GRAMMAR

    def generic_visit(self, node, visited_children):
        return visited_children or node

    def visit_expression(self, node, visited_children):
        _, sequence, _ = visited_children
        return sequence

    def visit_sequence(self, node, visited_children):
        first, tail = visited_children
        tail = _matched(tail)
        if not tail:
            return first
        refs = _absorb(first, ExpressionKind.OTHER)
        for _, _, _, item in tail:
            refs += _absorb(item, ExpressionKind.OTHER)
        return _Sub(ExpressionKind.OTHER, refs=refs)

    def visit_conditional(self, node, visited_children):
        return visited_children[0]

    def visit_arrow(self, node, visited_children):
        params, _, _, _, body = visited_children
        # Parameters are bound inside the body, not free references.
        refs = [
            r for r in _absorb(body, ExpressionKind.OTHER) if r.name not in params
        ]
        return _Sub(ExpressionKind.OTHER, refs=refs)

    def visit_arrow_params(self, node, visited_children):
        child = visited_children[0]
        return child if isinstance(child, list) else [child.text]

    def visit_param_list(self, node, visited_children):
        _, _, names, _, _ = visited_children
        names = _matched(names)
        return names[0] if names else []

    def visit_param_names(self, node, visited_children):
        first, tail = visited_children
        return [first.text] + [item[3].text for item in _matched(tail)]

    def visit_ternary(self, node, visited_children):
        test, tail = visited_children
        tail = _matched(tail)
        if not tail:
            return test
        _, _, _, consequent, _, _, _, alternate = tail[0]
        refs = _absorb(test, ExpressionKind.OTHER)
        refs += _absorb(consequent, ExpressionKind.OTHER)
        refs += _absorb(alternate, ExpressionKind.OTHER)
        return _Sub(ExpressionKind.OTHER, refs=refs)

    def visit_binary(self, node, visited_children):
        first, tail = visited_children
        tail = _matched(tail)
        if not tail:
            return first
        refs = _absorb(first, ExpressionKind.OTHER)
        for _, _, _, operand in tail:
            refs += _absorb(operand, ExpressionKind.OTHER)
        return _Sub(ExpressionKind.OTHER, refs=refs)

    def visit_unary(self, node, visited_children):
        return visited_children[0]

    def visit_prefixed(self, node, visited_children):
        _, _, operand = visited_children
        return _Sub(ExpressionKind.OTHER, refs=_absorb(operand, ExpressionKind.OTHER))

    def visit_new_expr(self, node, visited_children):
        _, _, target = visited_children
        return _Sub(ExpressionKind.OTHER, refs=_absorb(target, ExpressionKind.OTHER))

    def visit_spread(self, node, visited_children):
        _, _, operand = visited_children
        return _Sub(ExpressionKind.OTHER, refs=_absorb(operand, ExpressionKind.OTHER))

    def visit_argument(self, node, visited_children):
        return visited_children[0]

    def visit_postfix(self, node, visited_children):
        current, accessors = visited_children
        for kind, payload in _matched(accessors):
            if kind == "call":
                refs = _absorb(current, ExpressionKind.CALL)
                for argument in payload:
                    refs += _absorb(argument, ExpressionKind.CALL)
                current = _Sub(ExpressionKind.CALL, refs=refs)
            elif kind == "index":
                refs = _absorb(current, ExpressionKind.MEMBER)
                refs += _absorb(payload, ExpressionKind.MEMBER)
                current = _Sub(ExpressionKind.MEMBER, refs=refs)
            else:
                current = _Sub(
                    ExpressionKind.MEMBER,
                    refs=_absorb(current, ExpressionKind.MEMBER),
                )
        return current

    def visit_accessor(self, node, visited_children):
        return visited_children[0]

    def visit_dot_access(self, node, visited_children):
        return ("member", None)

    def visit_index_access(self, node, visited_children):
        _, _, _, index, _, _ = visited_children
        return ("index", index)

    def visit_call_args(self, node, visited_children):
        _, _, _, arguments, _, _ = visited_children
        args = _matched(arguments)
        return ("call", args[0] if args else [])

    def visit_arguments(self, node, visited_children):
        first, tail = visited_children
        return [first] + [item[3] for item in _matched(tail)]

    def visit_primary(self, node, visited_children):
        return visited_children[0]

    def visit_paren(self, node, visited_children):
        _, _, inner, _, _ = visited_children
        return inner

    def visit_array(self, node, visited_children):
        _, _, elements, _, _ = visited_children
        refs: List[VariableReference] = []
        for group in _matched(elements):
            for element in group:
                refs += _absorb(element, ExpressionKind.OTHER)
        return _Sub(ExpressionKind.OTHER, refs=refs)

    def visit_object(self, node, visited_children):
        _, _, properties, _, _ = visited_children
        refs: List[VariableReference] = []
        for group in _matched(properties):
            for prop in group:
                refs += _absorb(prop, ExpressionKind.OTHER)
        return _Sub(ExpressionKind.OTHER, refs=refs)

    def visit_properties(self, node, visited_children):
        first, tail, _ = visited_children
        return [first] + [item[3] for item in _matched(tail)]

    def visit_property(self, node, visited_children):
        return visited_children[0]

    def visit_keyed(self, node, visited_children):
        key_refs, _, _, _, value = visited_children
        return _Sub(
            ExpressionKind.OTHER,
            refs=key_refs + _absorb(value, ExpressionKind.OTHER),
        )

    def visit_prop_key(self, node, visited_children):
        key = visited_children[0]
        if isinstance(key, _Sub):
            return _absorb(key, ExpressionKind.OTHER)
        return []

    def visit_computed_key(self, node, visited_children):
        _, _, inner, _, _ = visited_children
        return inner

    def visit_template(self, node, visited_children):
        _, parts, _ = visited_children
        refs: List[VariableReference] = []
        for part in _matched(parts):
            if isinstance(part, _Sub):
                refs += _absorb(part, ExpressionKind.OTHER)
        return _Sub(ExpressionKind.OTHER, refs=refs)

    def visit_template_part(self, node, visited_children):
        return visited_children[0]

    def visit_template_sub(self, node, visited_children):
        _, _, inner, _, _ = visited_children
        return inner

    def visit_this(self, node, visited_children):
        return _Sub(ExpressionKind.OTHER)

    def visit_literal(self, node, visited_children):
        return _Sub(ExpressionKind.LITERAL)

    def visit_identifier(self, node, visited_children):
        return _Sub(ExpressionKind.IDENTIFIER, name=node.text)


# ═══════════════════════════════════════════════════════════════════
#  PART 3 — PUBLIC API
# ═══════════════════════════════════════════════════════════════════

def parse_expression(text: str) -> Expression:
    """
    Parse a directive value into an :class:`Expression`.

    >>> parse_expression("todo.done").kind
    <ExpressionKind.MEMBER: 'MemberExpression'>
    >>> parse_expression("").kind
    <ExpressionKind.EMPTY: 'Empty'>
    """
    if not text.strip():
        return Expression(kind=ExpressionKind.EMPTY, text=text)
    try:
        tree = EXPRESSION_GRAMMAR.parse(text)
    except ParseError as exc:
        logger.debug("unparsable expression %r: %s", text, exc)
        return Expression(kind=ExpressionKind.INVALID, text=text)
    root = ExpressionBuilder().visit(tree)
    references: Tuple[VariableReference, ...] = tuple(_absorb(root, None))
    return Expression(kind=root.kind, text=text, references=references)


__all__ = [
    "EXPRESSION_GRAMMAR",
    "ExpressionBuilder",
    "parse_expression",
]
