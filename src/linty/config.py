"""Config loading: locate, deserialize (JSON/TOML/YAML), and validate rule definitions."""

# linty:domain=config

from __future__ import annotations

import json
import logging
import sys
from typing import TYPE_CHECKING, Any

import yaml

from linty.engine.rule_engine import RuleDefinition, Severity
from linty.errors import ConfigError

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

DEFAULT_CONFIG_NAME = ".lintyconfig.json"

TOML_SUFFIXES: frozenset[str] = frozenset({".toml"})
YAML_SUFFIXES: frozenset[str] = frozenset({".yml", ".yaml"})

VALID_SEVERITIES: frozenset[str] = frozenset(s.value for s in Severity)

EXAMPLE_RULE: dict[str, str] = {
    "id": "no-todo",
    "message": "Are you sure you want to leave a TODO?",
    "regex": "TODO|todo",
    "severity": "warning",
}

_EXAMPLE_TOML = """\
[[rules]]
id = "no-todo"
message = "Are you sure you want to leave a TODO?"
regex = "TODO|todo"
severity = "warning"
"""


# ---------------------------------------------------------------------------
# Deserialization
# ---------------------------------------------------------------------------


def _load_toml(text: str) -> Any:
    if sys.version_info >= (3, 11):
        import tomllib
    else:
        import tomli as tomllib  # Python <3.11

    return tomllib.loads(text)


def _deserialize(path: Path, text: str) -> Any:
    """Parse *text* in the format implied by *path*'s extension (JSON by default)."""
    suffix = path.suffix.lower()
    if suffix in TOML_SUFFIXES:
        return _load_toml(text)
    if suffix in YAML_SUFFIXES:
        return yaml.safe_load(text)
    return json.loads(text)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def _parse_globs(value: object, field_name: str, context: str) -> tuple[str, ...] | None:
    if value is None:
        return None
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        msg = f"{context}: '{field_name}' must be a list of strings"
        raise ConfigError(msg)
    return tuple(value)


def _parse_rule(data: object, idx: int) -> RuleDefinition:
    if not isinstance(data, dict):
        msg = f"rule at index {idx} must be a mapping"
        raise ConfigError(msg)

    for key in ("id", "message", "regex", "severity"):
        if key not in data:
            msg = f"rule at index {idx} missing required '{key}' field"
            raise ConfigError(msg)
        if not isinstance(data[key], str):
            msg = f"rule at index {idx}: '{key}' must be a string"
            raise ConfigError(msg)

    rule_id: str = data["id"]
    context = f"rule '{rule_id}'"

    severity_raw: str = data["severity"]
    if severity_raw not in VALID_SEVERITIES:
        msg = (
            f"{context} has invalid severity '{severity_raw}', "
            f"must be one of {sorted(VALID_SEVERITIES)}"
        )
        raise ConfigError(msg)

    return RuleDefinition(
        id=rule_id,
        message=data["message"],
        regex=data["regex"],
        severity=Severity(severity_raw),
        includes=_parse_globs(data.get("includes"), "includes", context),
        excludes=_parse_globs(data.get("excludes"), "excludes", context),
    )


def parse_config(data: object) -> list[RuleDefinition]:
    """Validate a deserialized config document and return its rule definitions.

    Raises ``ConfigError`` naming the offending rule index or id.
    """
    if not isinstance(data, dict):
        msg = "config must be a mapping with a 'rules' list"
        raise ConfigError(msg)

    rules_data = data.get("rules")
    if not isinstance(rules_data, list):
        msg = "config: 'rules' must be a list"
        raise ConfigError(msg)

    return [_parse_rule(rule_data, idx) for idx, rule_data in enumerate(rules_data)]


def load_config(path: Path) -> list[RuleDefinition]:
    """Read, deserialize, and validate the config file at *path*."""
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        msg = f"Config file not found: {path}. Run `linty init` to create one."
        raise ConfigError(msg) from exc
    except (OSError, UnicodeDecodeError) as exc:
        msg = f"Cannot read config file {path}: {exc}"
        raise ConfigError(msg) from exc

    try:
        data = _deserialize(path, text)
    except (ValueError, yaml.YAMLError) as exc:
        # json.JSONDecodeError and tomllib.TOMLDecodeError are ValueErrors.
        msg = f"Cannot parse config file {path}: {exc}"
        raise ConfigError(msg) from exc

    try:
        definitions = parse_config(data)
    except ConfigError as exc:
        msg = f"{path}: {exc}"
        raise ConfigError(msg) from exc

    logger.debug("Loaded %d rule definitions from %s", len(definitions), path)
    return definitions


# ---------------------------------------------------------------------------
# Example config
# ---------------------------------------------------------------------------


def example_config_text(path: Path) -> str:
    """Render the example config in the format implied by *path*."""
    suffix = path.suffix.lower()
    if suffix in TOML_SUFFIXES:
        return _EXAMPLE_TOML
    document = {"rules": [dict(EXAMPLE_RULE)]}
    if suffix in YAML_SUFFIXES:
        return yaml.safe_dump(document, sort_keys=False)
    return json.dumps(document, indent=2) + "\n"


def write_example_config(path: Path) -> bool:
    """Create the example config at *path*.

    Returns False without touching the file if it already exists.
    """
    if path.exists():
        return False
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(example_config_text(path), encoding="utf-8")
    return True
