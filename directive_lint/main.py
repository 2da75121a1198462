#!/usr/bin/env python3
"""directive_lint/main.py — CLI entry-point.

Usage examples
--------------
    # Check single-file components, GCC-style output
    python -m directive_lint check src/App.vue src/components/*.vue

    # JSON lines, with a rule configuration file
    python -m directive_lint check App.vue --format json --config lint.json

    # Turn a rule off and drop one finding kind for this run
    python -m directive_lint check App.vue --disable valid-v-show \\
        --suppress SelfAliasing

    # List available rules
    python -m directive_lint rules

Exit codes
----------
    0   Success (no ERROR diagnostics).
    1   One or more diagnostics with severity ERROR were emitted.
    2   Infrastructure failure (missing file, unparsable markup, bad config).

The module doubles as ``python -m directive_lint`` via the companion
``directive_lint/__main__.py`` which simply calls :func:`main`.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence, TextIO

from directive_lint import __version__
from directive_lint.checkers import CheckerRunner, CheckerRunResults, default_registry
from directive_lint.config import LintConfig
from directive_lint.errors import DirectiveLintError
from directive_lint.parser import parse_template_file

_log = logging.getLogger("directive_lint")

# Exit codes ----------------------------------------------------------------

EXIT_OK: int = 0
EXIT_ERROR: int = 1
EXIT_INFRA: int = 2


# ===========================================================================
# Utility helpers
# ===========================================================================

def _configure_logging(verbosity: int) -> None:
    """Set up the ``directive_lint`` logger.

    Parameters
    ----------
    verbosity:
        0 → WARNING, 1 → INFO, 2+ → DEBUG.
    """
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s [%(levelname)-5.5s] %(name)s: %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    root = logging.getLogger("directive_lint")
    # One stderr handler per process, however often main() runs.
    for old in [h for h in root.handlers if isinstance(h, logging.StreamHandler)]:
        root.removeHandler(old)
    root.setLevel(level)
    root.addHandler(handler)


def _open_output(dest: Optional[str]) -> TextIO:
    """``None`` or ``"-"`` → ``sys.stdout``; otherwise open the path for writing."""
    if dest is None or dest == "-":
        return sys.stdout
    p = Path(dest).expanduser().resolve()
    p.parent.mkdir(parents=True, exist_ok=True)
    return open(p, "w", encoding="utf-8")


def _emit_results(results: CheckerRunResults, fmt: str, stream: TextIO) -> None:
    if fmt == "json":
        for diag in results.diagnostics:
            stream.write(diag.to_json_str() + "\n")
    elif fmt == "gcc":
        for diag in results.diagnostics:
            stream.write(diag.to_gcc_format() + "\n")
    else:
        for diag in results.diagnostics:
            stream.write(str(diag) + "\n")
        stream.write(results.summary() + "\n")


# ===========================================================================
# Sub-command implementations
# ===========================================================================

def cmd_check(args: argparse.Namespace) -> int:
    """Parse each file, run the enabled rules and emit diagnostics."""
    try:
        config = LintConfig.load(args.config) if args.config else LintConfig()
        config = config.merge_cli(disable=args.disable, suppress=args.suppress)
        runner = CheckerRunner(
            registry=config.build_registry(),
            suppressions=config.build_suppressions(),
        )
    except DirectiveLintError as exc:
        _log.error("%s", exc)
        return EXIT_INFRA

    combined = CheckerRunResults()
    for raw in args.files:
        path = Path(raw)
        if not path.is_file():
            _log.error("file not found: %s", path)
            return EXIT_INFRA
        _log.info("checking %s", path)
        try:
            roots = parse_template_file(str(path))
        except DirectiveLintError as exc:
            _log.error("%s", exc)
            return EXIT_INFRA
        except (OSError, UnicodeDecodeError) as exc:
            _log.error("cannot read %s: %s", path, exc)
            return EXIT_INFRA
        combined.extend(runner.run(roots, file=str(path)))

    stream = _open_output(args.output)
    try:
        _emit_results(combined, args.format, stream)
    finally:
        if stream is not sys.stdout:
            stream.close()
    return EXIT_ERROR if combined.error_count > 0 else EXIT_OK


def cmd_rules(args: argparse.Namespace) -> int:
    """List the built-in rules and the finding ids each can produce."""
    registry = default_registry()
    for name in registry.names:
        cls = registry.get_by_name(name)
        if cls is None:
            continue
        ids = ", ".join(sorted(r.value for r in cls.error_ids))
        print(f"  {name:16s} {cls.description}")
        print(f"  {'':16s} IDs: {ids}")
    return EXIT_OK


# ===========================================================================
# Argument parser
# ===========================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="directive-lint",
        description="Validate template directive bindings (v-model, v-html, ...).",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="count", default=0,
        help="Increase log verbosity (-v info, -vv debug)",
    )
    sub = parser.add_subparsers(dest="command", metavar="COMMAND")
    sub.required = True

    check = sub.add_parser("check", help="Check template files")
    check.add_argument("files", nargs="+", metavar="FILE")
    check.add_argument(
        "--format", choices=["json", "gcc", "summary"], default="gcc",
        help="Output format (default: gcc)",
    )
    check.add_argument("--config", help="JSON rule configuration file")
    check.add_argument(
        "--disable", action="append", default=[], metavar="RULE",
        help="Turn a rule off (repeatable)",
    )
    check.add_argument(
        "--suppress", action="append", default=[], metavar="ID",
        help="Drop diagnostics with this rule id or rule name (repeatable)",
    )
    check.add_argument("-o", "--output", help="Write diagnostics to a file")
    check.set_defaults(func=cmd_check)

    rules = sub.add_parser("rules", help="List available rules")
    rules.set_defaults(func=cmd_rules)
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Entry point for ``directive-lint`` and ``python -m directive_lint``.

    Returns
    -------
    int
        Exit code (see module docstring for semantics).
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    try:
        return args.func(args)
    except KeyboardInterrupt:
        _log.info("Interrupted by user.")
        return 130
    except Exception as exc:
        _log.error("Unhandled exception: %s", exc, exc_info=True)
        return EXIT_INFRA


if __name__ == "__main__":
    sys.exit(main())
