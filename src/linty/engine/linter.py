# linty:domain=engine
"""Linter orchestrator: walk candidates, evaluate rules, aggregate violations."""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from linty.engine.rule_engine import Severity, Violation, evaluate_rule
from linty.engine.selector import SelectionOptions, in_scope, iter_candidates
from linty.infrastructure.git_files import unignored_files

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Sequence
    from pathlib import Path

    from linty.engine.rule_engine import CompiledRule

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass
class LintResult:
    """Result of a scan, before any policy is applied."""

    violations: list[Violation] = field(default_factory=list)
    rules_evaluated: int = 0
    files_scanned: int = 0
    read_errors: int = 0
    elapsed_ms: float = 0.0


@dataclass
class Report:
    """Violations partitioned by severity, then grouped by rule id."""

    warnings: dict[str, list[Violation]] = field(default_factory=dict)
    errors: dict[str, list[Violation]] = field(default_factory=dict)

    @property
    def has_warnings(self) -> bool:
        return bool(self.warnings)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)


# ---------------------------------------------------------------------------
# Scanning
# ---------------------------------------------------------------------------


def _log_error(message: str) -> None:
    logger.warning("%s", message)


def lint(
    root: Path,
    rules: Sequence[CompiledRule],
    *,
    options: SelectionOptions | None = None,
    on_error: Callable[[str], None] = _log_error,
    list_unignored: Callable[[Path], set[Path] | None] = unignored_files,
) -> LintResult:
    """Scan *root* with *rules* and collect violations in traversal order.

    Each file is read at most once, and only when some rule is in scope for
    it.

    Parameters
    ----------
    root:
        Directory to walk.  Display paths are relative to it.
    rules:
        Compiled rules, evaluated in order for every candidate file.
    options:
        Hidden/ignored switches and the optional explicit-file restriction.
        Defaults to :class:`SelectionOptions` with everything off.
    on_error:
        Receives one message per traversal error and per file that cannot
        be read or decoded.  Such a file is skipped for all remaining rules
        and the scan continues.  Defaults to a logger warning.
    list_unignored:
        Returns the paths git does not ignore under *root*, or *None* to
        apply no VCS filtering.  Not called when ``options.include_ignored``
        is set.

    Returns
    -------
    LintResult
        Violations in discovery order, counts, and timing.  Unreadable
        files are counted in ``read_errors`` rather than raised.
    """
    start = time.monotonic()
    opts = options or SelectionOptions()

    violations: list[Violation] = []
    files_scanned = 0
    read_errors = 0

    candidates = iter_candidates(root, opts, on_error=on_error, list_unignored=list_unignored)
    for candidate in candidates:
        files_scanned += 1
        for rule in rules:
            if not in_scope(rule, candidate.display):
                continue
            try:
                text = candidate.read_text()
            except (OSError, UnicodeDecodeError) as exc:
                on_error(f"Error: cannot read {candidate.display}: {exc}")
                read_errors += 1
                break
            violation = evaluate_rule(rule, candidate.display, text)
            if violation is not None:
                violations.append(violation)

    elapsed = (time.monotonic() - start) * 1000
    logger.debug(
        "Scanned %d files with %d rules in %.1fms", files_scanned, len(rules), elapsed
    )
    return LintResult(
        violations=violations,
        rules_evaluated=len(rules),
        files_scanned=files_scanned,
        read_errors=read_errors,
        elapsed_ms=elapsed,
    )


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------


def partition_by_severity(
    violations: Iterable[Violation],
) -> tuple[list[Violation], list[Violation]]:
    """Split violations into ``(warnings, errors)``, keeping discovery order.

    Raises ``ValueError`` for a severity outside :class:`Severity`.
    """
    warnings: list[Violation] = []
    errors: list[Violation] = []
    for violation in violations:
        if violation.severity is Severity.WARNING:
            warnings.append(violation)
        elif violation.severity is Severity.ERROR:
            errors.append(violation)
        else:
            msg = f"Unhandled severity: {violation.severity!r}"
            raise ValueError(msg)
    return warnings, errors


def group_by_rule(violations: Iterable[Violation]) -> dict[str, list[Violation]]:
    """Group violations by rule id; keys appear in first-seen order."""
    grouped: dict[str, list[Violation]] = {}
    for violation in violations:
        grouped.setdefault(violation.rule_id, []).append(violation)
    return grouped


def build_report(violations: Iterable[Violation]) -> Report:
    warnings, errors = partition_by_severity(violations)
    return Report(warnings=group_by_rule(warnings), errors=group_by_rule(errors))


# ---------------------------------------------------------------------------
# Formatters
# ---------------------------------------------------------------------------


def format_json(result: LintResult, report: Report, *, passed: bool) -> str:
    """Format a scan as structured JSON.

    Returns a JSON string with ``warnings`` and ``errors`` mappings keyed by
    rule id, plus a ``summary`` object.
    """

    def _group(groups: dict[str, list[Violation]]) -> dict[str, list[dict[str, object]]]:
        return {
            rule_id: [{"file": v.file, "lines": list(v.lines)} for v in items]
            for rule_id, items in groups.items()
        }

    output: dict[str, object] = {
        "warnings": _group(report.warnings),
        "errors": _group(report.errors),
        "summary": {
            "rules_evaluated": result.rules_evaluated,
            "files_scanned": result.files_scanned,
            "violations_count": len(result.violations),
            "read_errors": result.read_errors,
            "elapsed_ms": result.elapsed_ms,
            "passed": passed,
        },
    }
    return json.dumps(output, indent=2)
