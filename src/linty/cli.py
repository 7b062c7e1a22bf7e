"""linty CLI entry point."""

# linty:service=cli

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click

from linty import __version__
from linty.config import DEFAULT_CONFIG_NAME


def _configure_logging(*, verbose: bool, quiet: bool) -> None:
    level = logging.WARNING
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    logging.basicConfig(
        level=level,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _echo_err(message: str) -> None:
    click.echo(message, err=True)


def _config_file(config_path: Path | None, project_root: Path) -> Path:
    return config_path or project_root / DEFAULT_CONFIG_NAME


# linty:service=cli
@click.group()
@click.version_option(version=__version__, prog_name="linty")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Minimal output (errors only).")
@click.pass_context
def main(ctx: click.Context, *, verbose: bool, quiet: bool) -> None:
    """linty - simple, language-agnostic regex linter."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    _configure_logging(verbose=verbose, quiet=quiet)


# linty:domain=engine
@main.command()
@click.argument("files", nargs=-1, type=click.Path(path_type=Path))
@click.option("--error-on-warning", "-e", is_flag=True, help="Treat warnings as errors.")
@click.option(
    "--config-path",
    "-c",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help=f"Path to the config file (default: {DEFAULT_CONFIG_NAME}).",
)
@click.option(
    "--no-confirm",
    is_flag=True,
    help="Do not ask for confirmation before ignoring warnings.",
)
@click.option("--include-ignored", is_flag=True, help="Also scan files ignored by git.")
@click.option("--include-hidden", is_flag=True, help="Also scan hidden files and directories.")
@click.option("--staged", is_flag=True, help="Only scan files staged for commit.")
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format (json never prompts).",
)
@click.option(
    "--project",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Directory to scan (default: current directory).",
)
@click.pass_context
def lint(
    ctx: click.Context,
    files: tuple[Path, ...],
    *,
    error_on_warning: bool,
    config_path: Path | None,
    no_confirm: bool,
    include_ignored: bool,
    include_hidden: bool,
    staged: bool,
    fmt: str,
    project: Path | None,
) -> None:
    """Scan files for rule violations.

    Restrict the scan with FILES or --staged (not both).
    Exit codes: 0 = clean or warnings only, 1 = errors, warnings with
    --error-on-warning, a declined warning, or a configuration error.
    """
    from linty.config import load_config
    from linty.engine.linter import build_report, format_json
    from linty.engine.linter import lint as run_lint
    from linty.engine.reporter import Reporter, evaluate_policy
    from linty.engine.rule_engine import compile_rules
    from linty.engine.selector import SelectionOptions, canonical_path, resolve_paths
    from linty.errors import LintyError
    from linty.infrastructure.git_files import staged_files

    if staged and files:
        msg = "--staged cannot be combined with explicit FILES"
        raise click.UsageError(msg)

    project_root = project or Path.cwd()
    list_staged = ctx.obj.get("list_staged", staged_files)

    try:
        rules = compile_rules(load_config(_config_file(config_path, project_root)))
        only: frozenset[Path] | None = None
        if staged:
            only = frozenset(canonical_path(p) for p in list_staged(project_root))
        elif files:
            only = resolve_paths(files)
    except LintyError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    options = SelectionOptions(
        include_ignored=include_ignored,
        include_hidden=include_hidden,
        only=only,
    )
    result = run_lint(project_root, rules, options=options, on_error=_echo_err)
    report = build_report(result.violations)

    if fmt == "json":
        verdict = evaluate_policy(report, error_on_warning=error_on_warning)
        click.echo(format_json(result, report, passed=verdict.passed))
    else:
        reporter = Reporter(
            rules,
            interactive=not no_confirm,
            error_on_warning=error_on_warning,
            ask=ctx.obj.get("ask"),
        )
        verdict = reporter.run(report)

    if not verdict.passed:
        click.echo(verdict.reason, err=True)
        sys.exit(verdict.exit_code)


# linty:domain=config
@main.command()
@click.option(
    "--config-path",
    "-c",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help=f"Where to write the config (default: {DEFAULT_CONFIG_NAME}).",
)
@click.option(
    "--project",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Project root (default: current directory).",
)
def init(*, config_path: Path | None, project: Path | None) -> None:
    """Write an example config unless one already exists."""
    from linty.config import write_example_config

    path = _config_file(config_path, project or Path.cwd())
    if write_example_config(path):
        click.echo(f"Created example config at {path}")
    else:
        click.echo(f"Config already exists at {path}")


# linty:domain=config
@main.command("rules")
@click.option(
    "--config-path",
    "-c",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help=f"Path to the config file (default: {DEFAULT_CONFIG_NAME}).",
)
@click.option(
    "--project",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Project root (default: current directory).",
)
def rules_cmd(*, config_path: Path | None, project: Path | None) -> None:
    """Validate the config and list its rules."""
    from rich.console import Console
    from rich.table import Table
    from rich.text import Text

    from linty.config import load_config
    from linty.engine.rule_engine import Severity, compile_rules
    from linty.errors import LintyError

    try:
        rules = compile_rules(load_config(_config_file(config_path, project or Path.cwd())))
    except LintyError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    table = Table(title=f"{len(rules)} rules")
    table.add_column("ID", style="bold")
    table.add_column("Severity")
    table.add_column("Regex")
    table.add_column("Includes")
    table.add_column("Excludes")
    for rule in rules:
        color = "red" if rule.severity is Severity.ERROR else "yellow"
        table.add_row(
            Text(rule.id),
            Text(rule.severity.value, style=color),
            Text(rule.pattern.pattern),
            Text(", ".join(rule.includes.patterns) or "*"),
            Text(", ".join(rule.excludes.patterns) or "-"),
        )

    console = Console()
    console.print(table)


# linty:service=cli
@main.command()
@click.argument("shell", type=click.Choice(["bash", "zsh", "fish"]))
def completions(shell: str) -> None:
    """Print a shell completion script for SHELL."""
    from click.shell_completion import get_completion_class

    comp_cls = get_completion_class(shell)
    if comp_cls is None:
        click.echo(f"Error: unsupported shell {shell}", err=True)
        sys.exit(1)
    comp = comp_cls(main, {}, "linty", "_LINTY_COMPLETE")
    click.echo(comp.source())
