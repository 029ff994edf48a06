#!/usr/bin/env python3
# arepl/config.py
from __future__ import annotations

"""
REPL configuration.

Sources, later ones winning:
  1) built-in defaults (DEFAULTS)
  2) files in the base directory: .env, arepl.json, arepl.toml
  3) environment variables AREPL_<KEY>
  4) keyword overrides passed to load_config()

Nested tables in JSON/TOML flatten to KEY_SUBKEY, so `[log] level = "debug"`
sets LOG_LEVEL. .env files and the environment only contribute AREPL_ keys.
Invalid values raise ValueError naming the key.
"""

import json
import os
import shlex
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Mapping

from arepl.commands import Strictness
from arepl.interface.dispatch import InterruptPolicy

ENV_PREFIX = "AREPL_"
CONFIG_FILES = (".env", "arepl.json", "arepl.toml")

DEFAULTS: dict[str, Any] = {
    "PROMPT": "> ",
    "DESCRIPTION": "",
    "LOG_LEVEL": "WARNING",
    "LOG_FILE_PATH": None,
    "HISTORY_FILE_PATH": None,
    "ENABLE_COMPLETION": True,
    "ENABLE_HINTS": True,
    "ENABLE_FILENAME_COMPLETION": False,
    "PREFIX_RESOLUTION": True,
    "STRICT_PREFIXES": False,
    "INTERRUPT_POLICY": InterruptPolicy.REPROMPT.value,
    "FRONTEND": "auto",
    "BUILTINS": True,
    "COMMANDS_PACKAGE": None,
}

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
FRONTENDS = ("auto", "prompt_toolkit", "readline", "plain")


@dataclass(slots=True)
class ReplConfig:
    prompt: str = "> "
    description: str = ""
    log_level: str = "WARNING"
    log_file_path: Path | None = None
    history_file_path: Path | None = None
    enable_completion: bool = True
    enable_hints: bool = True
    enable_filename_completion: bool = False
    prefix_resolution: bool = True
    strictness: Strictness = Strictness.LENIENT
    interrupt_policy: InterruptPolicy = InterruptPolicy.REPROMPT
    frontend: str = "auto"
    builtins: bool = True
    commands_package: str | None = None
    # keys no field consumes, kept for host-specific settings
    extra: dict[str, Any] = field(default_factory=dict)


# ---------- readers ----------

def _read_dotenv(path: Path) -> dict[str, Any]:
    values: dict[str, Any] = {}
    for line in path.read_text(encoding="utf-8").splitlines():
        words = shlex.split(line, comments=True)
        if words[:1] == ["export"]:
            words = words[1:]
        if len(words) == 1 and "=" in words[0]:
            key, _, value = words[0].partition("=")
            values[key.strip()] = value
    return _prefixed(values)


def _read_json(path: Path) -> dict[str, Any]:
    return _flatten(json.loads(path.read_text(encoding="utf-8")))


def _read_toml(path: Path) -> dict[str, Any]:
    with path.open("rb") as fh:
        return _flatten(tomllib.load(fh))


_READERS: dict[str, Callable[[Path], dict[str, Any]]] = {
    ".env": _read_dotenv,
    "arepl.json": _read_json,
    "arepl.toml": _read_toml,
}


def _flatten(table: Mapping[str, Any], prefix: str = "") -> dict[str, Any]:
    """{'log': {'level': 'debug'}} -> {'LOG_LEVEL': 'debug'}"""
    flat: dict[str, Any] = {}
    for key, value in table.items():
        name = f"{prefix}_{key}".upper() if prefix else str(key).upper()
        if isinstance(value, Mapping):
            flat.update(_flatten(value, name))
        else:
            flat[name] = value
    return flat


def _prefixed(values: Mapping[str, Any]) -> dict[str, Any]:
    return {k[len(ENV_PREFIX):]: v for k, v in values.items() if k.startswith(ENV_PREFIX)}


# ---------- coercion ----------

_TRUE = frozenset({"1", "true", "yes", "y", "on"})
_FALSE = frozenset({"0", "false", "no", "n", "off"})


def _to_bool(key: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE or text in _FALSE:
        return text in _TRUE
    raise ValueError(f"{key}: expected a boolean, got {value!r}")


def _to_optional(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return None if text.lower() in ("", "none") else text


def _to_path(key: str, value: Any) -> Path | None:
    text = _to_optional(value)
    return None if text is None else Path(os.path.expandvars(text)).expanduser().resolve()


def _choice(options: tuple[str, ...], *, upper: bool = False) -> Callable[[str, Any], str]:
    def coerce(key: str, value: Any) -> str:
        text = str(value).strip()
        text = text.upper() if upper else text.lower()
        if text not in options:
            raise ValueError(f"{key} must be one of {', '.join(options)}; got {value!r}")
        return text
    return coerce


def _strictness(key: str, value: Any) -> Strictness:
    return Strictness.STRICT if _to_bool(key, value) else Strictness.LENIENT


def _policy(key: str, value: Any) -> InterruptPolicy:
    return InterruptPolicy(_choice(tuple(p.value for p in InterruptPolicy))(key, value))


# KEY -> (ReplConfig field, coercion)
_FIELDS: dict[str, tuple[str, Callable[[str, Any], Any]]] = {
    "PROMPT": ("prompt", lambda key, value: str(value)),
    "DESCRIPTION": ("description", lambda key, value: _to_optional(value) or ""),
    "LOG_LEVEL": ("log_level", _choice(LOG_LEVELS, upper=True)),
    "LOG_FILE_PATH": ("log_file_path", _to_path),
    "HISTORY_FILE_PATH": ("history_file_path", _to_path),
    "ENABLE_COMPLETION": ("enable_completion", _to_bool),
    "ENABLE_HINTS": ("enable_hints", _to_bool),
    "ENABLE_FILENAME_COMPLETION": ("enable_filename_completion", _to_bool),
    "PREFIX_RESOLUTION": ("prefix_resolution", _to_bool),
    "STRICT_PREFIXES": ("strictness", _strictness),
    "INTERRUPT_POLICY": ("interrupt_policy", _policy),
    "FRONTEND": ("frontend", _choice(FRONTENDS)),
    "BUILTINS": ("builtins", _to_bool),
    "COMMANDS_PACKAGE": ("commands_package", lambda key, value: _to_optional(value)),
}


# ---------- public API ----------

def merge_sources(base: Path, environ: Mapping[str, str]) -> dict[str, Any]:
    """Raw KEY -> value mapping after layering every source over DEFAULTS."""
    merged = dict(DEFAULTS)
    for name in CONFIG_FILES:
        path = base / name
        if path.is_file():
            merged.update(_READERS[name](path))
    merged.update(_prefixed(environ))
    return merged


def load_config(
    base: Path | None = None,
    *,
    environ: Mapping[str, str] | None = None,
    **overrides: Any,
) -> ReplConfig:
    """
    Build a validated ReplConfig.

    `base` defaults to the working directory and `environ` to os.environ.
    Keyword overrides use lower-case keys (prompt="$ ", builtins=False).
    """
    raw = merge_sources(base or Path.cwd(), os.environ if environ is None else environ)
    raw.update({key.upper(): value for key, value in overrides.items()})

    values = {attr: coerce(key, raw[key]) for key, (attr, coerce) in _FIELDS.items()}
    extra = {key: value for key, value in raw.items() if key not in _FIELDS}
    return ReplConfig(**values, extra=extra)
