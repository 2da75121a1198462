"""
directive_lint/findings.py
══════════════════════════

Finding and diagnostic model.

A :class:`Finding` is what a single check computes: a rule id, a message
template and the data to interpolate into it.  The runner translates
each finding 1:1 into a :class:`Diagnostic` by attaching the binding's
source location, the reporting rule and a severity.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping

from directive_lint.template_ast import SourceLocation


# ═════════════════════════════════════════════════════════════════════════
#  PART 1 — RULE IDS AND MESSAGES
# ═════════════════════════════════════════════════════════════════════════

class RuleId(Enum):
    UNSUPPORTED_HOST = "UnsupportedHost"
    DYNAMIC_INPUT_TYPE = "DynamicInputType"
    FILE_INPUT_TYPE = "FileInputType"
    UNEXPECTED_ARGUMENT = "UnexpectedArgument"
    UNSUPPORTED_MODIFIER = "UnsupportedModifier"
    UNEXPECTED_MODIFIER = "UnexpectedModifier"
    MISSING_VALUE = "MissingValue"
    INVALID_LHS = "InvalidLhs"
    SELF_ALIASING = "SelfAliasing"


# Templates are kept verbatim for output compatibility.  ``{directive}``
# is filled with the directive's attribute name (``v-html``, ``v-text``).
MESSAGES: Dict[RuleId, str] = {
    RuleId.UNSUPPORTED_HOST:
        "'v-model' directives aren't supported on <{name}> elements.",
    RuleId.DYNAMIC_INPUT_TYPE:
        "'v-model' directives don't support dynamic input types.",
    RuleId.FILE_INPUT_TYPE:
        "'v-model' directives don't support 'file' input type.",
    RuleId.UNEXPECTED_ARGUMENT:
        "'{directive}' directives require no argument.",
    RuleId.UNSUPPORTED_MODIFIER:
        "'v-model' directives don't support the modifier '{name}'.",
    RuleId.UNEXPECTED_MODIFIER:
        "'{directive}' directives require no modifier.",
    RuleId.MISSING_VALUE:
        "'{directive}' directives require that attribute value.",
    RuleId.INVALID_LHS:
        "'v-model' directives require the attribute value which is valid as LHS.",
    RuleId.SELF_ALIASING:
        "'v-model' directives cannot update the iteration variable 'x' itself.",
}

_PLACEHOLDER = re.compile(r"\{(\w+)\}")


def format_message(template: str, data: Mapping[str, str]) -> str:
    """Fill ``{key}`` placeholders from ``data``; unknown keys are left as-is."""
    return _PLACEHOLDER.sub(
        lambda m: str(data.get(m.group(1), m.group(0))), template
    )


@dataclass(frozen=True)
class Finding:
    """One violation computed for one binding."""
    rule_id: RuleId
    message: str
    data: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def of(cls, rule_id: RuleId, **data: str) -> Finding:
        return cls(rule_id=rule_id, message=MESSAGES[rule_id], data=dict(data))

    def render(self) -> str:
        return format_message(self.message, self.data)


# ═════════════════════════════════════════════════════════════════════════
#  PART 2 — DIAGNOSTICS
# ═════════════════════════════════════════════════════════════════════════

class DiagnosticSeverity(Enum):
    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class Diagnostic:
    """
    A rendered finding attached to a source location.

    Attributes
    ----------
    error_id : rule id of the finding (e.g. ``"InvalidLhs"``)
    message  : fully interpolated message text
    severity : DiagnosticSeverity
    location : location of the directive binding
    rule     : name of the checker that produced it (e.g. ``"valid-v-model"``)
    data     : interpolation data, kept for downstream tooling
    """
    error_id: str
    message: str
    severity: DiagnosticSeverity
    location: SourceLocation
    rule: str = ""
    data: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_finding(
        cls,
        finding: Finding,
        location: SourceLocation,
        rule: str,
        severity: DiagnosticSeverity = DiagnosticSeverity.ERROR,
    ) -> Diagnostic:
        return cls(
            error_id=finding.rule_id.value,
            message=finding.render(),
            severity=severity,
            location=location,
            rule=rule,
            data=dict(finding.data),
        )

    def to_json(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "file": self.location.file,
            "line": self.location.line,
            "column": self.location.column,
            "severity": self.severity.value,
            "message": self.message,
            "rule": self.rule,
            "errorId": self.error_id,
        }
        if self.data:
            result["data"] = dict(self.data)
        return result

    def to_json_str(self) -> str:
        """Single-line JSON string."""
        return json.dumps(self.to_json())

    def to_gcc_format(self) -> str:
        """GCC-style diagnostic string: file:line:col: severity: message."""
        return (
            f"{self.location}: {self.severity.value}: {self.message} "
            f"[{self.rule}/{self.error_id}]"
        )

    def __str__(self) -> str:
        return self.to_gcc_format()


__all__ = [
    "RuleId",
    "MESSAGES",
    "format_message",
    "Finding",
    "DiagnosticSeverity",
    "Diagnostic",
]
