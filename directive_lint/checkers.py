"""
directive_lint/checkers.py
══════════════════════════

Directive checker framework.

Architecture
────────────

  ┌─────────────────────────────────────────────────────────┐
  │                   CheckerRunner                         │
  │   walks HostElement trees, dispatches each binding by   │
  │   its directive name through the CheckerRegistry        │
  │                                                         │
  │  ┌──────────────┐  ┌──────────────┐  ┌──────────────┐   │
  │  │ valid-v-model│  │ valid-v-html │  │ valid-v-text │   │
  │  └──────┬───────┘  └──────┬───────┘  └──────┬───────┘   │
  │         │ ordered tuple of BindingCheck objects          │
  │  ┌──────▼─────────────────▼──────────────────▼───────┐  │
  │  │  HostEligibility │ InputType │ NoArgument │ ...   │  │
  │  │          (predicates from directive_lint.rules)   │  │
  │  └──────────────────────────┬────────────────────────┘  │
  │  ┌──────────────────────────▼────────────────────────┐  │
  │  │     SuppressionManager → Diagnostic (JSON / gcc)  │  │
  │  └───────────────────────────────────────────────────┘  │
  └─────────────────────────────────────────────────────────┘

Every check of a checker runs; a binding with several problems gets one
finding per problem in a single pass.
"""

from __future__ import annotations

import dataclasses
import logging
import time
from abc import ABC, abstractmethod
from collections import defaultdict
from dataclasses import dataclass, field
from fnmatch import fnmatch
from typing import (
    ClassVar,
    Dict,
    FrozenSet,
    Iterable,
    List,
    Optional,
    Sequence,
    Set,
    Tuple,
    Type,
)

from directive_lint import rules
from directive_lint.findings import (
    Diagnostic,
    DiagnosticSeverity,
    Finding,
    RuleId,
)
from directive_lint.template_ast import (
    DirectiveBinding,
    ExpressionKind,
    HostElement,
)

logger = logging.getLogger(__name__)


# ═════════════════════════════════════════════════════════════════════════
#  PART 1 — BINDING CHECKS
# ═════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class CheckContext:
    """What a check may look at besides the binding itself."""
    host: HostElement
    directive: str  # attribute spelling used in messages, e.g. "v-model"


class BindingCheck(ABC):
    """A single independent legality predicate over one binding."""

    @abstractmethod
    def check(
        self, binding: DirectiveBinding, context: CheckContext
    ) -> List[Finding]:
        ...

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}>"


class HostEligibility(BindingCheck):
    def check(
        self, binding: DirectiveBinding, context: CheckContext
    ) -> List[Finding]:
        if rules.is_eligible_host(context.host):
            return []
        return [Finding.of(RuleId.UNSUPPORTED_HOST, name=context.host.tag_name)]


class InputType(BindingCheck):
    """``<input>`` hosts must have a statically known, non-file type."""

    def check(
        self, binding: DirectiveBinding, context: CheckContext
    ) -> List[Finding]:
        host = context.host
        if host.tag_name != rules.TEXT_INPUT_TAG:
            return []
        findings: List[Finding] = []
        if rules.has_dynamic_type_binding(host):
            findings.append(Finding.of(RuleId.DYNAMIC_INPUT_TYPE, name=host.tag_name))
        if rules.has_literal_file_type(host):
            findings.append(Finding.of(RuleId.FILE_INPUT_TYPE, name=host.tag_name))
        return findings


class NoArgument(BindingCheck):
    def check(
        self, binding: DirectiveBinding, context: CheckContext
    ) -> List[Finding]:
        if binding.argument is None:
            return []
        return [Finding.of(RuleId.UNEXPECTED_ARGUMENT, directive=context.directive)]


class AllowedModifiers(BindingCheck):
    """One finding per modifier outside ``allowed``, in source order."""

    def __init__(self, allowed: FrozenSet[str]) -> None:
        self.allowed = allowed

    def check(
        self, binding: DirectiveBinding, context: CheckContext
    ) -> List[Finding]:
        return [
            Finding.of(RuleId.UNSUPPORTED_MODIFIER, name=modifier)
            for modifier in binding.modifiers
            if modifier not in self.allowed
        ]

    def __repr__(self) -> str:
        return f"<AllowedModifiers {sorted(self.allowed)}>"


class NoModifiers(BindingCheck):
    """A single finding when any modifier is present."""

    def check(
        self, binding: DirectiveBinding, context: CheckContext
    ) -> List[Finding]:
        if not binding.modifiers:
            return []
        return [Finding.of(RuleId.UNEXPECTED_MODIFIER, directive=context.directive)]


class RequiredValue(BindingCheck):
    def check(
        self, binding: DirectiveBinding, context: CheckContext
    ) -> List[Finding]:
        # An empty ``=""`` still counts as a value.
        if binding.value is not None:
            return []
        return [Finding.of(RuleId.MISSING_VALUE, directive=context.directive)]


class AssignmentTarget(BindingCheck):
    def check(
        self, binding: DirectiveBinding, context: CheckContext
    ) -> List[Finding]:
        if binding.value is None:
            return []
        if rules.is_assignment_target(binding.value.expression):
            return []
        return [Finding.of(RuleId.INVALID_LHS)]


class NoIterationAlias(BindingCheck):
    """
    Reject writes straight into an enclosing iteration variable.

    ``v-model="item"`` inside ``v-for="item in items"`` only rebinds the
    per-iteration cursor; ``v-model="item.done"`` writes through it and is
    fine, so references used as the object of a member access are skipped.
    """

    def check(
        self, binding: DirectiveBinding, context: CheckContext
    ) -> List[Finding]:
        if binding.value is None:
            return []
        findings: List[Finding] = []
        for reference in binding.value.expression.references:
            if reference.parent_kind is ExpressionKind.MEMBER:
                continue
            variable = rules.resolve_variable(reference.name, context.host.scope)
            if variable is not None:
                logger.debug(
                    "%s writes to iteration variable %r", context.directive,
                    variable.name,
                )
                findings.append(Finding.of(RuleId.SELF_ALIASING, name=variable.name))
        return findings


# ═════════════════════════════════════════════════════════════════════════
#  PART 2 — DIRECTIVE CHECKERS
# ═════════════════════════════════════════════════════════════════════════

class DirectiveChecker:
    """
    Validates bindings of one directive by running an ordered list of
    :class:`BindingCheck` objects and concatenating their findings.

    Subclass Contract
    ─────────────────
      - Override ``name`` (rule name), ``directive`` (directive name
        without the ``v-`` prefix), ``description`` and ``checks``
      - ``error_ids`` lists the rule ids the checks can produce
    """

    name: ClassVar[str] = "base-directive"
    directive: ClassVar[str] = ""
    description: ClassVar[str] = ""
    error_ids: ClassVar[FrozenSet[RuleId]] = frozenset()
    checks: ClassVar[Tuple[BindingCheck, ...]] = ()

    @property
    def attribute_name(self) -> str:
        return f"v-{self.directive}"

    def applies_to(self, binding: DirectiveBinding) -> bool:
        return binding.name == self.directive

    def check(
        self, binding: DirectiveBinding, host: HostElement
    ) -> List[Finding]:
        """Return every finding for ``binding`` on ``host``; never raises."""
        context = CheckContext(host=host, directive=self.attribute_name)
        findings: List[Finding] = []
        for check in self.checks:
            findings.extend(check.check(binding, context))
        return findings

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} '{self.name}'>"


class VModelChecker(DirectiveChecker):
    name: ClassVar[str] = "valid-v-model"
    directive: ClassVar[str] = "model"
    description: ClassVar[str] = "disallow invalid `v-model` directives"
    error_ids: ClassVar[FrozenSet[RuleId]] = frozenset({
        RuleId.UNSUPPORTED_HOST,
        RuleId.DYNAMIC_INPUT_TYPE,
        RuleId.FILE_INPUT_TYPE,
        RuleId.UNEXPECTED_ARGUMENT,
        RuleId.UNSUPPORTED_MODIFIER,
        RuleId.MISSING_VALUE,
        RuleId.INVALID_LHS,
        RuleId.SELF_ALIASING,
    })
    checks: ClassVar[Tuple[BindingCheck, ...]] = (
        HostEligibility(),
        InputType(),
        NoArgument(),
        AllowedModifiers(rules.VALID_MODIFIERS),
        RequiredValue(),
        AssignmentTarget(),
        NoIterationAlias(),
    )


_CONTENT_CHECKS: Tuple[BindingCheck, ...] = (
    NoArgument(),
    NoModifiers(),
    RequiredValue(),
)
_CONTENT_ERROR_IDS: FrozenSet[RuleId] = frozenset({
    RuleId.UNEXPECTED_ARGUMENT,
    RuleId.UNEXPECTED_MODIFIER,
    RuleId.MISSING_VALUE,
})


class VHtmlChecker(DirectiveChecker):
    name: ClassVar[str] = "valid-v-html"
    directive: ClassVar[str] = "html"
    description: ClassVar[str] = "disallow invalid `v-html` directives"
    error_ids: ClassVar[FrozenSet[RuleId]] = _CONTENT_ERROR_IDS
    checks: ClassVar[Tuple[BindingCheck, ...]] = _CONTENT_CHECKS


class VTextChecker(DirectiveChecker):
    name: ClassVar[str] = "valid-v-text"
    directive: ClassVar[str] = "text"
    description: ClassVar[str] = "disallow invalid `v-text` directives"
    error_ids: ClassVar[FrozenSet[RuleId]] = _CONTENT_ERROR_IDS
    checks: ClassVar[Tuple[BindingCheck, ...]] = _CONTENT_CHECKS


class VShowChecker(DirectiveChecker):
    name: ClassVar[str] = "valid-v-show"
    directive: ClassVar[str] = "show"
    description: ClassVar[str] = "disallow invalid `v-show` directives"
    error_ids: ClassVar[FrozenSet[RuleId]] = _CONTENT_ERROR_IDS
    checks: ClassVar[Tuple[BindingCheck, ...]] = _CONTENT_CHECKS


# ═════════════════════════════════════════════════════════════════════════
#  PART 3 — SUPPRESSION MANAGER
# ═════════════════════════════════════════════════════════════════════════

class SuppressionManager:
    """
    Drops diagnostics by rule id (``"InvalidLhs"``) or rule name
    (``"valid-v-html"``), globally or for files matching a pattern.

    >>> sm = SuppressionManager()
    >>> sm.add_global_suppression("SelfAliasing")
    >>> sm.add_file_suppression("valid-v-html", "legacy/*.vue")
    """

    def __init__(self) -> None:
        self._global: Set[str] = set()
        self._file_level: Dict[str, Set[str]] = defaultdict(set)

    def add_global_suppression(self, key: str) -> None:
        self._global.add(key)

    def add_file_suppression(self, key: str, file_pattern: str) -> None:
        self._file_level[file_pattern].add(key)

    def is_suppressed(self, diag: Diagnostic) -> bool:
        keys = {diag.error_id, diag.rule, "*"}
        if keys & self._global:
            return True
        path = diag.location.file
        for pattern, ids in self._file_level.items():
            if not keys & ids:
                continue
            if pattern == path or path.endswith(pattern) or fnmatch(path, pattern):
                return True
        return False

    def filter_diagnostics(
        self, diagnostics: Iterable[Diagnostic]
    ) -> List[Diagnostic]:
        """Return only non-suppressed diagnostics."""
        return [d for d in diagnostics if not self.is_suppressed(d)]


# ═════════════════════════════════════════════════════════════════════════
#  PART 4 — CHECKER REGISTRY
# ═════════════════════════════════════════════════════════════════════════

class CheckerRegistry:
    """
    Registry of directive checkers with enable/disable and per-rule severity.

    >>> registry = CheckerRegistry()
    >>> registry.register(VModelChecker)
    >>> registry.disable("valid-v-model")
    """

    def __init__(self) -> None:
        self._checkers: Dict[str, Type[DirectiveChecker]] = {}
        self._instances: Dict[str, DirectiveChecker] = {}
        self._disabled: Set[str] = set()
        self._severity: Dict[str, DiagnosticSeverity] = {}

    def register(self, checker_cls: Type[DirectiveChecker]) -> None:
        self._checkers[checker_cls.name] = checker_cls
        self._instances[checker_cls.name] = checker_cls()

    def unregister(self, name: str) -> None:
        self._checkers.pop(name, None)
        self._instances.pop(name, None)

    def disable(self, name: str) -> None:
        self._disabled.add(name)

    def enable(self, name: str) -> None:
        self._disabled.discard(name)

    def is_enabled(self, name: str) -> bool:
        return name in self._checkers and name not in self._disabled

    def set_severity(self, name: str, severity: DiagnosticSeverity) -> None:
        self._severity[name] = severity

    def severity_of(self, name: str) -> DiagnosticSeverity:
        return self._severity.get(name, DiagnosticSeverity.ERROR)

    def get_by_name(self, name: str) -> Optional[Type[DirectiveChecker]]:
        return self._checkers.get(name)

    def get_enabled(self) -> List[DirectiveChecker]:
        return [
            checker for name, checker in self._instances.items()
            if name not in self._disabled
        ]

    def for_binding(self, binding: DirectiveBinding) -> List[DirectiveChecker]:
        """Enabled checkers responsible for ``binding``'s directive name."""
        return [c for c in self.get_enabled() if c.applies_to(binding)]

    def copy(self) -> CheckerRegistry:
        clone = CheckerRegistry()
        clone._checkers = dict(self._checkers)
        clone._instances = dict(self._instances)
        clone._disabled = set(self._disabled)
        clone._severity = dict(self._severity)
        return clone

    @property
    def names(self) -> List[str]:
        return sorted(self._checkers.keys())


def default_registry() -> CheckerRegistry:
    """A fresh registry holding every built-in checker, all enabled."""
    registry = CheckerRegistry()
    for cls in (VModelChecker, VHtmlChecker, VTextChecker, VShowChecker):
        registry.register(cls)
    return registry


# ═════════════════════════════════════════════════════════════════════════
#  PART 5 — CHECKER RUNNER
# ═════════════════════════════════════════════════════════════════════════

@dataclass
class CheckerRunResults:
    """
    Aggregate results of one run.

    Attributes
    ----------
    diagnostics         : all diagnostics in document order
    diagnostics_by_rule : diagnostics grouped by checker name
    stats               : timing and counting statistics
    """
    diagnostics: List[Diagnostic] = field(default_factory=list)
    diagnostics_by_rule: Dict[str, List[Diagnostic]] = field(
        default_factory=lambda: defaultdict(list)
    )
    stats: Dict[str, float] = field(default_factory=dict)

    @property
    def error_count(self) -> int:
        return sum(
            1 for d in self.diagnostics
            if d.severity == DiagnosticSeverity.ERROR
        )

    @property
    def warning_count(self) -> int:
        return sum(
            1 for d in self.diagnostics
            if d.severity == DiagnosticSeverity.WARNING
        )

    @property
    def total_count(self) -> int:
        return len(self.diagnostics)

    def by_file(self, file: str) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.location.file == file]

    def extend(self, other: CheckerRunResults) -> None:
        self.diagnostics.extend(other.diagnostics)
        for name, diags in other.diagnostics_by_rule.items():
            self.diagnostics_by_rule[name].extend(diags)
        for key, value in other.stats.items():
            self.stats[key] = self.stats.get(key, 0) + value

    def to_json_lines(self) -> str:
        return "\n".join(d.to_json_str() for d in self.diagnostics)

    def to_gcc_format(self) -> str:
        return "\n".join(d.to_gcc_format() for d in self.diagnostics)

    def summary(self) -> str:
        lines = [
            f"Directive check complete: {self.total_count} diagnostics "
            f"({self.error_count} errors, {self.warning_count} warnings)",
        ]
        for name in sorted(self.diagnostics_by_rule):
            lines.append(f"  {name}: {len(self.diagnostics_by_rule[name])} findings")
        return "\n".join(lines)


class CheckerRunner:
    """
    Runs the registered directive checkers over template element trees.

    >>> runner = CheckerRunner()
    >>> results = runner.run(parse_template(source, file="App.vue"))
    >>> print(results.summary())
    """

    def __init__(
        self,
        registry: Optional[CheckerRegistry] = None,
        suppressions: Optional[SuppressionManager] = None,
    ) -> None:
        self.registry = registry or default_registry()
        self.suppressions = suppressions or SuppressionManager()

    def check_binding(
        self, binding: DirectiveBinding, host: HostElement, file: str = ""
    ) -> List[Diagnostic]:
        """Diagnostics for one binding from every checker that handles it."""
        location = binding.location
        if file and not location.file:
            location = dataclasses.replace(location, file=file)
        diagnostics: List[Diagnostic] = []
        for checker in self.registry.for_binding(binding):
            severity = self.registry.severity_of(checker.name)
            for finding in checker.check(binding, host):
                diagnostics.append(Diagnostic.from_finding(
                    finding, location, checker.name, severity,
                ))
        return self.suppressions.filter_diagnostics(diagnostics)

    def run(
        self, elements: Sequence[HostElement], file: str = ""
    ) -> CheckerRunResults:
        results = CheckerRunResults()
        t0 = time.monotonic()
        binding_count = 0
        for root in elements:
            for element in root.walk():
                for binding in element.bindings:
                    binding_count += 1
                    for diag in self.check_binding(binding, element, file):
                        results.diagnostics.append(diag)
                        results.diagnostics_by_rule[diag.rule].append(diag)
        results.stats["bindings"] = binding_count
        results.stats["elapsed_ms"] = (time.monotonic() - t0) * 1000.0
        logger.info(
            "checked %d binding(s) in %s: %d diagnostic(s)",
            binding_count, file or "<template>", results.total_count,
        )
        return results


__all__ = [
    "CheckContext",
    "BindingCheck",
    "HostEligibility",
    "InputType",
    "NoArgument",
    "AllowedModifiers",
    "NoModifiers",
    "RequiredValue",
    "AssignmentTarget",
    "NoIterationAlias",
    "DirectiveChecker",
    "VModelChecker",
    "VHtmlChecker",
    "VTextChecker",
    "VShowChecker",
    "SuppressionManager",
    "CheckerRegistry",
    "default_registry",
    "CheckerRunResults",
    "CheckerRunner",
]
