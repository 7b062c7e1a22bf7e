# linty:domain=engine
"""Reporter and policy engine: render grouped violations and decide the outcome."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import click

from linty.engine.rule_engine import Severity

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from linty.engine.linter import Report
    from linty.engine.rule_engine import CompiledRule, Violation

CONFIRM_QUESTION = "Ignore warning? (y/n)"


@dataclass(frozen=True)
class Verdict:
    """Final outcome of a run; ``reason`` is set only on failure."""

    passed: bool
    reason: str | None = None

    @property
    def exit_code(self) -> int:
        return 0 if self.passed else 1


PASSED = Verdict(passed=True)
FAILED_ERRORS = Verdict(passed=False, reason="Failing due to errors")
FAILED_WARNINGS = Verdict(passed=False, reason="Failing due to warnings")


def evaluate_policy(report: Report, *, error_on_warning: bool) -> Verdict:
    """Apply the severity policy to a report.

    Errors always fail; warnings fail only with *error_on_warning*.
    """
    if report.has_errors:
        return FAILED_ERRORS
    if error_on_warning and report.has_warnings:
        return FAILED_WARNINGS
    return PASSED


def format_violation(violation: Violation) -> str:
    lines = ", ".join(str(line) for line in violation.lines)
    return f"{violation.severity.label} present in file: {violation.file}, lines: {lines}"


def _ask_terminal(question: str) -> str:
    return str(click.prompt(question, default="", show_default=False))


class Reporter:
    """Prints a :class:`Report` and runs the interactive warning confirmation.

    *echo* and *ask* default to the terminal; tests pass scripted callables.
    """

    def __init__(
        self,
        rules: Iterable[CompiledRule],
        *,
        interactive: bool = True,
        error_on_warning: bool = False,
        echo: Callable[[str], None] = click.echo,
        ask: Callable[[str], str] | None = None,
    ) -> None:
        self._messages = {rule.id: rule.message for rule in rules}
        self._interactive = interactive
        self._error_on_warning = error_on_warning
        self._echo = echo
        self._ask = ask or _ask_terminal

    def _print_group(self, severity: Severity, rule_id: str, violations: list[Violation]) -> None:
        message = self._messages[rule_id]
        self._echo(f"Found {severity.value} {rule_id}: {message}")
        for violation in violations:
            self._echo(format_violation(violation))

    def _confirm(self) -> bool:
        """Ask until the answer is exactly ``y`` or ``n``; True means ignore."""
        while True:
            answer = self._ask(CONFIRM_QUESTION)
            if answer == "y":
                return True
            if answer == "n":
                return False

    def run(self, report: Report) -> Verdict:
        """Render warnings (with confirmation), then errors, and return the verdict.

        Declining a warning stops reporting immediately.
        """
        for rule_id, violations in report.warnings.items():
            self._print_group(Severity.WARNING, rule_id, violations)
            if self._interactive and not self._confirm():
                return FAILED_WARNINGS

        for rule_id, violations in report.errors.items():
            self._print_group(Severity.ERROR, rule_id, violations)

        return evaluate_policy(report, error_on_warning=self._error_on_warning)
