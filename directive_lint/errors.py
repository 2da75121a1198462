"""
directive_lint/errors.py
========================

Exception hierarchy for the front-end, configuration and CLI layers.

Checkers never raise: every directive violation is a Finding.  These
exceptions cover problems *before* checking starts (unreadable markup,
a bad configuration file), which the CLI maps to exit code 2.

    DirectiveLintError (base)
    ├── TemplateSyntaxError   - markup the template front-end cannot parse
    └── ConfigError           - invalid configuration file or option
"""

from __future__ import annotations

from typing import Optional

from directive_lint.template_ast import SourceLocation


class DirectiveLintError(Exception):
    """Base exception for all directive_lint errors."""

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        cause: Optional[Exception] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.location = location or SourceLocation()
        self.cause = cause

    def to_gcc_format(self) -> str:
        if self.location.line:
            return f"{self.location}: error: {self.message}"
        if self.location.file:
            return f"{self.location.file}: error: {self.message}"
        return f"error: {self.message}"

    def __str__(self) -> str:
        return self.to_gcc_format()


class TemplateSyntaxError(DirectiveLintError):
    """Markup the template front-end could not parse."""

    @property
    def line(self) -> int:
        return self.location.line

    @property
    def column(self) -> int:
        return self.location.column


class ConfigError(DirectiveLintError):
    """Invalid configuration file contents or CLI option."""


__all__ = [
    "DirectiveLintError",
    "TemplateSyntaxError",
    "ConfigError",
]
