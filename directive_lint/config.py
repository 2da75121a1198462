"""
directive_lint/config.py
========================

Rule configuration, loaded from a JSON file and merged with CLI flags.

File format::

    {
        "rules": {
            "valid-v-model": "error",
            "valid-v-show": "off"
        },
        "suppress": ["SelfAliasing"]
    }

Rule levels are ``"error"``, ``"warning"`` or ``"off"``.  Rules not
mentioned keep their default level (``"error"``).
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from directive_lint.checkers import (
    CheckerRegistry,
    SuppressionManager,
    default_registry,
)
from directive_lint.errors import ConfigError
from directive_lint.findings import DiagnosticSeverity

logger = logging.getLogger(__name__)

RULE_LEVELS = ("error", "warning", "off")


@dataclass
class LintConfig:
    rules: Dict[str, str] = field(default_factory=dict)
    suppress: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any, source: str = "<config>") -> LintConfig:
        if not isinstance(data, dict):
            raise ConfigError(f"{source}: top level must be a JSON object")
        unknown = set(data) - {"rules", "suppress"}
        if unknown:
            raise ConfigError(
                f"{source}: unknown key(s): {', '.join(sorted(unknown))}"
            )
        rules = data.get("rules", {})
        suppress = data.get("suppress", [])
        if not isinstance(rules, dict):
            raise ConfigError(f"{source}: 'rules' must be an object")
        if not isinstance(suppress, list) or not all(
            isinstance(s, str) for s in suppress
        ):
            raise ConfigError(f"{source}: 'suppress' must be a list of strings")
        return cls(rules=dict(rules), suppress=list(suppress))

    @classmethod
    def load(cls, path: str) -> LintConfig:
        p = Path(path)
        try:
            data = json.loads(p.read_text(encoding="utf-8"))
        except OSError as exc:
            raise ConfigError(f"cannot read config {p}: {exc}", cause=exc) from exc
        except json.JSONDecodeError as exc:
            raise ConfigError(f"{p}: invalid JSON: {exc}", cause=exc) from exc
        logger.info("loaded configuration from %s", p)
        return cls.from_dict(data, source=str(p))

    def merge_cli(
        self,
        disable: Optional[Sequence[str]] = None,
        suppress: Optional[Sequence[str]] = None,
    ) -> LintConfig:
        """Return a copy with ``--disable`` / ``--suppress`` flags applied."""
        rules = dict(self.rules)
        for name in disable or ():
            rules[name] = "off"
        return LintConfig(
            rules=rules, suppress=list(self.suppress) + list(suppress or ())
        )

    def build_registry(
        self, base: Optional[CheckerRegistry] = None
    ) -> CheckerRegistry:
        registry = (base or default_registry()).copy()
        for name, level in self.rules.items():
            if registry.get_by_name(name) is None:
                raise ConfigError(f"unknown rule {name!r}")
            if level not in RULE_LEVELS:
                raise ConfigError(
                    f"rule {name!r}: level must be one of "
                    f"{', '.join(RULE_LEVELS)}, got {level!r}"
                )
            if level == "off":
                registry.disable(name)
            else:
                registry.enable(name)
                registry.set_severity(name, DiagnosticSeverity(level))
        return registry

    def build_suppressions(self) -> SuppressionManager:
        sm = SuppressionManager()
        for key in self.suppress:
            sm.add_global_suppression(key)
        return sm


__all__ = ["RULE_LEVELS", "LintConfig"]
