"""Engine domain: rule compiler, file selector, matcher, aggregator, reporter."""

# linty:domain=engine

from linty.engine.linter import (
    LintResult,
    Report,
    build_report,
    format_json,
    group_by_rule,
    lint,
    partition_by_severity,
)
from linty.engine.reporter import Reporter, Verdict, evaluate_policy
from linty.engine.rule_engine import (
    CompiledRule,
    GlobSet,
    RuleDefinition,
    Severity,
    Violation,
    compile_rules,
    find_match_lines,
)
from linty.engine.selector import (
    CandidateFile,
    SelectionOptions,
    in_scope,
    iter_candidates,
    resolve_paths,
)

__all__ = [
    "CandidateFile",
    "CompiledRule",
    "GlobSet",
    "LintResult",
    "Report",
    "Reporter",
    "RuleDefinition",
    "SelectionOptions",
    "Severity",
    "Verdict",
    "Violation",
    "build_report",
    "compile_rules",
    "evaluate_policy",
    "find_match_lines",
    "format_json",
    "group_by_rule",
    "in_scope",
    "iter_candidates",
    "lint",
    "partition_by_severity",
    "resolve_paths",
]
