"""
directive_lint — structural checks for template directive bindings
===================================================================

Validates directive attributes such as ``v-model`` and ``v-html`` on
template elements and reports one diagnostic per violation.

Core modules
------------
template_ast
    Read-only node model: elements, bindings, expressions, scope frames.
rules
    Stateless predicates (host eligibility, LHS shape, scope lookup).
checkers
    Per-directive checkers composed from ordered binding checks, plus the
    registry, suppression manager and runner.
findings
    Finding / Diagnostic model and the verbatim message templates.

Front-end and tooling
---------------------
expressions
    parsimonious grammar for the bound JavaScript expression subset.
parser
    parsimonious grammar for the ``<template>`` block of a component file.
config
    JSON rule configuration.
main
    ``directive-lint`` command line.

Quick start
-----------
>>> from directive_lint import CheckerRunner, parse_template
>>> roots = parse_template('<template><div v-html:aaa="foo"></div></template>')
>>> [d.message for d in CheckerRunner().run(roots).diagnostics]
["'v-html' directives require no argument."]
"""

from __future__ import annotations

import logging
from typing import List

__version__ = "0.1.0"

_log = logging.getLogger(__name__)
_log.addHandler(logging.NullHandler())

from directive_lint.checkers import (  # noqa: E402
    CheckerRegistry,
    CheckerRunner,
    CheckerRunResults,
    DirectiveChecker,
    SuppressionManager,
    VHtmlChecker,
    VModelChecker,
    default_registry,
)
from directive_lint.errors import (  # noqa: E402
    ConfigError,
    DirectiveLintError,
    TemplateSyntaxError,
)
from directive_lint.findings import Diagnostic, Finding, RuleId  # noqa: E402
from directive_lint.parser import parse_template  # noqa: E402

__all__: List[str] = [
    "__version__",
    "CheckerRegistry",
    "CheckerRunner",
    "CheckerRunResults",
    "DirectiveChecker",
    "SuppressionManager",
    "VHtmlChecker",
    "VModelChecker",
    "default_registry",
    "ConfigError",
    "DirectiveLintError",
    "TemplateSyntaxError",
    "Diagnostic",
    "Finding",
    "RuleId",
    "parse_template",
]
