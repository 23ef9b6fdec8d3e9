"""Settings resolution for the filestore console.

Layers, highest precedence first:

1) CLI params (``None`` means "not given" and is skipped)
2) ``FILESTORE_*`` environment variables, ``__`` separating nested keys,
   e.g. ``FILESTORE_STORE__BASE_URL=http://store:8000`` sets ``store.base_url``
3) ``~/.config/filestore/filestore.yml``
4) ``BUILTIN_DEFAULTS``
"""

from __future__ import annotations

import copy
import json
import os
from functools import reduce
from pathlib import Path
from typing import Any, Mapping

import yaml

from .defaults import BUILTIN_DEFAULTS
from .models import FileStoreSettings

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "filestore" / "filestore.yml"
ENV_PREFIX = "FILESTORE_"
ENV_NESTING = "__"

_BOOLEAN_WORDS = {"true": True, "false": False}
_NULL_WORDS = frozenset({"null", "none"})


def load_settings(
    *,
    cli_params: Mapping[str, Any] | None = None,
    environ: Mapping[str, str] | None = None,
    config_path: str | Path | None = None,
    env_prefix: str = ENV_PREFIX,
) -> FileStoreSettings:
    """Resolve every layer and validate the result as ``FileStoreSettings``."""
    return FileStoreSettings.model_validate(
        load_config(
            cli_params=cli_params,
            environ=environ,
            config_path=config_path,
            env_prefix=env_prefix,
        )
    )


def load_config(
    *,
    cli_params: Mapping[str, Any] | None = None,
    environ: Mapping[str, str] | None = None,
    config_path: str | Path | None = None,
    defaults: Mapping[str, Any] | None = None,
    env_prefix: str = ENV_PREFIX,
) -> dict[str, Any]:
    """Return the raw merged settings mapping, before model validation."""
    layers = (
        BUILTIN_DEFAULTS if defaults is None else defaults,
        read_yaml_layer(Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH),
        read_env_layer(os.environ if environ is None else environ, prefix=env_prefix),
        _without_unset(cli_params or {}),
    )
    return reduce(_overlay, layers, {})


def read_yaml_layer(path: Path) -> dict[str, Any]:
    """Read one YAML settings file; a missing or empty file contributes nothing."""
    if not path.is_file():
        return {}
    with path.open("r", encoding="utf-8") as handle:
        document = yaml.safe_load(handle)
    if document is None:
        return {}
    if not isinstance(document, Mapping):
        raise ValueError(f"Config file must contain a top-level mapping: {path}")
    return _overlay({}, document)


def read_env_layer(environ: Mapping[str, str], *, prefix: str = ENV_PREFIX) -> dict[str, Any]:
    """Collect ``prefix``-ed variables into a nested settings mapping."""
    layer: dict[str, Any] = {}
    for name, raw in environ.items():
        if not name.startswith(prefix):
            continue
        keys = [part.strip().lower() for part in name[len(prefix) :].split(ENV_NESTING)]
        keys = [key for key in keys if key]
        if not keys:
            continue
        node = layer
        for key in keys[:-1]:
            if not isinstance(node.get(key), dict):
                node[key] = {}
            node = node[key]
        node[keys[-1]] = parse_env_value(raw)
    return layer


def parse_env_value(raw: str) -> Any:
    """Interpret one environment string as bool, null, number, JSON or text."""
    text = raw.strip()
    word = text.lower()
    if word in _BOOLEAN_WORDS:
        return _BOOLEAN_WORDS[word]
    if word in _NULL_WORDS:
        return None
    if text[:1] in ("{", "["):
        try:
            return json.loads(text)
        except json.JSONDecodeError:
            return raw
    for number in (int, float):
        try:
            return number(text)
        except ValueError:
            continue
    return raw


def _overlay(base: Mapping[str, Any], top: Mapping[str, Any]) -> dict[str, Any]:
    """Deep-merge ``top`` onto a copy of ``base``; nested mappings merge key-wise."""
    merged = {str(key): copy.deepcopy(value) for key, value in base.items()}
    for key, value in top.items():
        below = merged.get(str(key))
        if isinstance(value, Mapping):
            merged[str(key)] = _overlay(below if isinstance(below, Mapping) else {}, value)
        else:
            merged[str(key)] = copy.deepcopy(value)
    return merged


def _without_unset(params: Mapping[str, Any]) -> dict[str, Any]:
    """Drop ``None`` CLI params, and sections left empty by doing so."""
    kept: dict[str, Any] = {}
    for key, value in params.items():
        if isinstance(value, Mapping):
            value = _without_unset(value)
            if not value:
                continue
        elif value is None:
            continue
        kept[str(key)] = value
    return kept
