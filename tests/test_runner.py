# tests/test_runner.py
"""
Tests for the checker framework around the directive checkers:
Diagnostic output, SuppressionManager, CheckerRegistry and CheckerRunner.
"""

import dataclasses
import json
import logging

import pytest
from unittest.mock import MagicMock

from directive_lint.checkers import (
    BindingCheck,
    CheckerRegistry,
    CheckerRunner,
    CheckerRunResults,
    DirectiveChecker,
    SuppressionManager,
    VHtmlChecker,
    VModelChecker,
    default_registry,
)
from directive_lint.findings import (
    Diagnostic,
    DiagnosticSeverity,
    Finding,
    RuleId,
    format_message,
)
from directive_lint.parser import parse_template
from directive_lint.template_ast import SourceLocation
from tests.conftest import BROKEN_VUE, make_binding, make_element


def _diag(error_id="InvalidLhs", rule="valid-v-model", file="a.vue",
          severity=DiagnosticSeverity.ERROR):
    return Diagnostic(
        error_id=error_id,
        message="msg",
        severity=severity,
        location=SourceLocation(file, 3, 7),
        rule=rule,
    )


class TestFindings:
    """Test message interpolation and the Finding → Diagnostic mapping."""

    def test_format_message(self):
        assert format_message("<{name}> {n}", {"name": "div"}) == "<div> {n}"

    def test_finding_of_uses_template(self):
        finding = Finding.of(RuleId.UNSUPPORTED_MODIFIER, name="foo")
        assert finding.render() == (
            "'v-model' directives don't support the modifier 'foo'."
        )

    def test_from_finding(self):
        finding = Finding.of(RuleId.SELF_ALIASING, name="item")
        loc = SourceLocation("App.vue", 4, 12)
        diag = Diagnostic.from_finding(finding, loc, "valid-v-model")
        assert diag.error_id == "SelfAliasing"
        assert diag.severity is DiagnosticSeverity.ERROR
        assert diag.location is loc
        assert diag.data == {"name": "item"}

    def test_to_json(self):
        diag = Diagnostic.from_finding(
            Finding.of(RuleId.UNSUPPORTED_HOST, name="div"),
            SourceLocation("App.vue", 2, 5), "valid-v-model",
            DiagnosticSeverity.WARNING,
        )
        assert json.loads(diag.to_json_str()) == {
            "file": "App.vue",
            "line": 2,
            "column": 5,
            "severity": "warning",
            "message": "'v-model' directives aren't supported on <div> elements.",
            "rule": "valid-v-model",
            "errorId": "UnsupportedHost",
            "data": {"name": "div"},
        }

    def test_to_json_without_data(self):
        assert "data" not in _diag().to_json()

    def test_gcc_format(self):
        assert _diag().to_gcc_format() == (
            "a.vue:3:7: error: msg [valid-v-model/InvalidLhs]"
        )
        assert str(_diag()) == _diag().to_gcc_format()


class TestSuppressionManager:
    """Test global and file-scoped suppressions."""

    def test_global_by_error_id(self):
        sm = SuppressionManager()
        sm.add_global_suppression("InvalidLhs")
        assert sm.is_suppressed(_diag())
        assert not sm.is_suppressed(_diag(error_id="MissingValue"))

    def test_global_by_rule_name(self):
        sm = SuppressionManager()
        sm.add_global_suppression("valid-v-html")
        assert sm.is_suppressed(_diag(rule="valid-v-html"))
        assert not sm.is_suppressed(_diag())

    def test_wildcard(self):
        sm = SuppressionManager()
        sm.add_global_suppression("*")
        assert sm.is_suppressed(_diag(error_id="Anything"))

    @pytest.mark.parametrize("pattern", ["src/a.vue", "a.vue", "src/*.vue"])
    def test_file_level(self, pattern):
        sm = SuppressionManager()
        sm.add_file_suppression("InvalidLhs", pattern)
        assert sm.is_suppressed(_diag(file="src/a.vue"))
        assert not sm.is_suppressed(_diag(file="lib/b.vue"))

    def test_filter_diagnostics(self):
        sm = SuppressionManager()
        sm.add_global_suppression("MissingValue")
        kept = sm.filter_diagnostics(
            [_diag(), _diag(error_id="MissingValue"), _diag()]
        )
        assert [d.error_id for d in kept] == ["InvalidLhs", "InvalidLhs"]


class TestCheckerRegistry:
    """Test registration, enabling and severity overrides."""

    def test_default_registry(self):
        assert default_registry().names == [
            "valid-v-html", "valid-v-model", "valid-v-show", "valid-v-text",
        ]

    def test_disable_enable(self):
        registry = default_registry()
        registry.disable("valid-v-html")
        assert not registry.is_enabled("valid-v-html")
        assert all(c.name != "valid-v-html" for c in registry.get_enabled())
        registry.enable("valid-v-html")
        assert registry.is_enabled("valid-v-html")

    def test_unregister(self):
        registry = default_registry()
        registry.unregister("valid-v-model")
        assert registry.get_by_name("valid-v-model") is None
        assert not registry.is_enabled("valid-v-model")

    def test_severity(self):
        registry = CheckerRegistry()
        registry.register(VModelChecker)
        assert registry.severity_of("valid-v-model") is DiagnosticSeverity.ERROR
        registry.set_severity("valid-v-model", DiagnosticSeverity.WARNING)
        assert registry.severity_of("valid-v-model") is DiagnosticSeverity.WARNING

    def test_for_binding(self):
        registry = default_registry()
        (checker,) = registry.for_binding(make_binding("html"))
        assert isinstance(checker, VHtmlChecker)
        assert registry.for_binding(make_binding("on", argument="click")) == []

    def test_copy_is_independent(self):
        registry = default_registry()
        clone = registry.copy()
        clone.disable("valid-v-model")
        assert registry.is_enabled("valid-v-model")


class TestCheckerRunner:
    """Test tree walking, severity, suppression and result aggregation."""

    def test_document_order(self, runner):
        results = runner.run(parse_template(BROKEN_VUE, file="Broken.vue"))
        lines = [d.location.line for d in results.diagnostics]
        assert lines == sorted(lines)
        assert results.total_count == 7
        assert results.error_count == 7

    def test_grouped_by_rule(self, runner):
        results = runner.run(parse_template(BROKEN_VUE))
        assert len(results.diagnostics_by_rule["valid-v-model"]) == 4
        assert len(results.diagnostics_by_rule["valid-v-html"]) == 3

    def test_stats(self, runner):
        results = runner.run(parse_template(BROKEN_VUE))
        # v-for, three v-model, :type, v-html
        assert results.stats["bindings"] == 6
        assert results.stats["elapsed_ms"] >= 0

    def test_file_fills_missing_location(self, runner):
        binding = dataclasses.replace(
            make_binding(value=None), location=SourceLocation("", 2, 3),
        )
        (diag,) = runner.check_binding(binding, make_element("input", [binding]),
                                       file="x.vue")
        assert diag.location == SourceLocation("x.vue", 2, 3)

    def test_file_keeps_existing_location(self, runner):
        binding = make_binding(value=None)
        (diag,) = runner.check_binding(binding, make_element("input", [binding]),
                                       file="other.vue")
        assert diag.location.file == "test.vue"

    def test_disabled_rule_is_skipped(self):
        registry = default_registry()
        registry.disable("valid-v-model")
        results = CheckerRunner(registry=registry).run(parse_template(BROKEN_VUE))
        assert {d.rule for d in results.diagnostics} == {"valid-v-html"}

    def test_warning_severity(self):
        registry = default_registry()
        registry.set_severity("valid-v-html", DiagnosticSeverity.WARNING)
        results = CheckerRunner(registry=registry).run(parse_template(BROKEN_VUE))
        assert results.warning_count == 3
        assert results.error_count == 4

    def test_suppression(self):
        sm = SuppressionManager()
        sm.add_global_suppression("SelfAliasing")
        sm.add_global_suppression("valid-v-html")
        results = CheckerRunner(suppressions=sm).run(parse_template(BROKEN_VUE))
        assert [d.error_id for d in results.diagnostics] == [
            "UnsupportedHost", "DynamicInputType", "UnsupportedModifier",
        ]

    def test_custom_checker(self):
        probe = MagicMock(spec=BindingCheck)
        probe.check.return_value = [Finding.of(RuleId.INVALID_LHS)]

        class ProbeChecker(DirectiveChecker):
            name = "probe"
            directive = "model"
            checks = (probe,)

        registry = CheckerRegistry()
        registry.register(ProbeChecker)
        binding = make_binding()
        host = make_element("input", [binding])
        (diag,) = CheckerRunner(registry=registry).check_binding(binding, host)
        probe.check.assert_called_once()
        assert probe.check.call_args.args[0] is binding
        assert diag.rule == "probe"
        assert diag.error_id == "InvalidLhs"

    def test_logs_summary(self, runner, caplog):
        with caplog.at_level(logging.INFO, logger="directive_lint"):
            runner.run(parse_template(BROKEN_VUE), file="Broken.vue")
        assert "7 diagnostic(s)" in caplog.text


class TestCheckerRunResults:
    """Test the aggregate results container."""

    def test_empty(self):
        results = CheckerRunResults()
        assert results.total_count == 0
        assert results.summary().startswith("Directive check complete: 0 ")

    def test_extend_and_by_file(self, runner):
        combined = CheckerRunResults()
        combined.extend(runner.run(parse_template(BROKEN_VUE, file="a.vue")))
        combined.extend(runner.run(
            parse_template('<template><div v-html></div></template>', file="b.vue")
        ))
        assert combined.total_count == 8
        assert len(combined.by_file("b.vue")) == 1
        assert combined.stats["bindings"] == 7

    def test_summary_lists_rules(self, runner):
        summary = runner.run(parse_template(BROKEN_VUE)).summary()
        assert "7 diagnostics (7 errors, 0 warnings)" in summary
        assert "  valid-v-html: 3 findings" in summary
        assert "  valid-v-model: 4 findings" in summary

    def test_json_lines(self, runner):
        text = runner.run(parse_template(BROKEN_VUE)).to_json_lines()
        rows = [json.loads(line) for line in text.splitlines()]
        assert [r["errorId"] for r in rows][:2] == ["SelfAliasing", "UnsupportedHost"]
