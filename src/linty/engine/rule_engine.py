# linty:domain=engine
"""Rule engine: compile rule definitions into matchers and locate matches in text."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from wcmatch import fnmatch as wcfnmatch

from linty.errors import RuleCompileError

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# ``*`` crosses ``/`` and dot-files are not special, like a plain globset.
# ``**/`` segments also match zero directories; see ``_expand_globstars``.
GLOB_FLAGS: int = wcfnmatch.BRACE | wcfnmatch.DOTMATCH

# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


class Severity(Enum):
    """Closed set of rule severities."""

    WARNING = "warning"
    ERROR = "error"

    @property
    def label(self) -> str:
        """Capitalized name used in report lines (``Warning`` / ``Error``)."""
        return self.value.capitalize()


@dataclass(frozen=True)
class RuleDefinition:
    """A rule exactly as declared in the config file."""

    id: str
    message: str
    regex: str
    severity: Severity
    includes: tuple[str, ...] | None = None
    excludes: tuple[str, ...] | None = None


@dataclass(frozen=True)
class GlobSet:
    """A compiled set of shell-style globs matched against display paths.

    An empty set matches nothing; callers decide what emptiness means
    (``includes`` treats it as "no restriction").
    """

    patterns: tuple[str, ...] = ()
    _regexes: tuple[re.Pattern[str], ...] = field(default=(), repr=False, compare=False)

    @classmethod
    def build(cls, patterns: Iterable[str]) -> GlobSet:
        """Compile *patterns*; raises ``ValueError`` on invalid glob syntax."""
        pats = tuple(patterns)
        regexes: list[re.Pattern[str]] = []
        for pattern in pats:
            _check_glob_syntax(pattern)
            for variant in _expand_globstars(pattern):
                included, _excluded = wcfnmatch.translate(variant, flags=GLOB_FLAGS)
                regexes.extend(re.compile(expr) for expr in included)
        return cls(patterns=pats, _regexes=tuple(regexes))

    def is_empty(self) -> bool:
        return not self.patterns

    def is_match(self, path: str) -> bool:
        return any(regex.match(path) for regex in self._regexes)


@dataclass(frozen=True)
class CompiledRule:
    """Executable form of a :class:`RuleDefinition`."""

    id: str
    message: str
    pattern: re.Pattern[str]
    severity: Severity
    includes: GlobSet
    excludes: GlobSet


@dataclass(frozen=True)
class Violation:
    """All matches of one rule in one file."""

    rule_id: str
    severity: Severity
    file: str
    lines: tuple[int, ...]


# ---------------------------------------------------------------------------
# Compilation
# ---------------------------------------------------------------------------


def _find_globstar_segment(pattern: str) -> int:
    """Index of the first ``**/`` that starts a path segment, or -1."""
    start = 0
    while True:
        idx = pattern.find("**/", start)
        if idx < 0 or idx == 0 or pattern[idx - 1] == "/":
            return idx
        start = idx + 1


def _expand_globstars(pattern: str) -> list[str]:
    """Spell out the zero-directory forms of every ``**/`` segment.

    Since ``*`` already crosses ``/``, a ``**/`` segment matches one or more
    directories as written; dropping it adds the zero-directory case, so
    ``src/**/*.py`` also matches ``src/app.py`` and ``**/*.md`` matches
    ``README.md``.
    """
    idx = _find_globstar_segment(pattern)
    if idx < 0:
        return [pattern]
    head = pattern[:idx]
    tails = _expand_globstars(pattern[idx + 3 :])
    variants = [head + "**/" + tail for tail in tails] + [head + tail for tail in tails]
    return list(dict.fromkeys(variants))


def _check_glob_syntax(pattern: str) -> None:
    """Reject unterminated character classes and unbalanced alternation groups."""
    depth = 0
    i = 0
    n = len(pattern)
    while i < n:
        ch = pattern[i]
        if ch == "\\":
            i += 2
            continue
        if ch == "[":
            j = i + 1
            if j < n and pattern[j] in "!^":
                j += 1
            # A leading ``]`` is a literal member of the class.
            if j < n and pattern[j] == "]":
                j += 1
            while j < n and pattern[j] != "]":
                j += 1
            if j >= n:
                msg = f"unclosed character class in glob '{pattern}'"
                raise ValueError(msg)
            i = j + 1
            continue
        if ch == "{":
            if depth:
                msg = f"nested alternate groups are not allowed in glob '{pattern}'"
                raise ValueError(msg)
            depth += 1
        elif ch == "}":
            if not depth:
                msg = f"unopened alternate group in glob '{pattern}'"
                raise ValueError(msg)
            depth -= 1
        i += 1
    if depth:
        msg = f"unclosed alternate group in glob '{pattern}'"
        raise ValueError(msg)


def compile_rule(definition: RuleDefinition) -> CompiledRule:
    """Compile a single rule definition.

    Raises ``RuleCompileError`` naming the rule when its regex or any of its
    globs is invalid.
    """
    try:
        pattern = re.compile(definition.regex)
    except re.error as exc:
        msg = f"Rule '{definition.id}': invalid regex '{definition.regex}': {exc}"
        raise RuleCompileError(msg) from exc

    try:
        includes = GlobSet.build(definition.includes or ())
        excludes = GlobSet.build(definition.excludes or ())
    except ValueError as exc:
        msg = f"Rule '{definition.id}': {exc}"
        raise RuleCompileError(msg) from exc

    return CompiledRule(
        id=definition.id,
        message=definition.message,
        pattern=pattern,
        severity=definition.severity,
        includes=includes,
        excludes=excludes,
    )


def compile_rules(definitions: Sequence[RuleDefinition]) -> list[CompiledRule]:
    """Compile every definition, preserving order.

    The whole set fails if any rule fails; duplicate ids are rejected so that
    report groups can never merge unrelated rules.
    """
    seen_ids: set[str] = set()
    rules: list[CompiledRule] = []
    for definition in definitions:
        if definition.id in seen_ids:
            msg = f"Duplicate rule id '{definition.id}'"
            raise RuleCompileError(msg)
        seen_ids.add(definition.id)
        rules.append(compile_rule(definition))
    logger.debug("Compiled %d rules", len(rules))
    return rules


# ---------------------------------------------------------------------------
# Matching
# ---------------------------------------------------------------------------


def find_match_lines(pattern: re.Pattern[str], text: str) -> list[int]:
    """Return the 1-based line of every match start, one entry per match.

    Only ``\\n`` counts as a line break, so CRLF files number the same as LF.
    """
    lines: list[int] = []
    line = 1
    pos = 0
    for match in pattern.finditer(text):
        start = match.start()
        line += text.count("\n", pos, start)
        pos = start
        lines.append(line)
    return lines


def evaluate_rule(rule: CompiledRule, file: str, text: str) -> Violation | None:
    """Run *rule* over *text*; ``None`` when nothing matched."""
    lines = find_match_lines(rule.pattern, text)
    if not lines:
        return None
    return Violation(
        rule_id=rule.id,
        severity=rule.severity,
        file=file,
        lines=tuple(lines),
    )
