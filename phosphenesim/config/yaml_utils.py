"""YAML loading for simulator configs, rejecting duplicate keys.

A duplicated ``input_effect`` in a hand-edited config silently keeps the
last value with the stock loader, so mappings are constructed here instead.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, TextIO

import yaml


class UniqueKeyLoader(yaml.SafeLoader):
    """YAML loader that rejects duplicate keys."""


def _construct_mapping(loader: UniqueKeyLoader, node: yaml.Node, deep: bool = False) -> dict:
    mapping = {}
    for key_node, value_node in node.value:
        key = loader.construct_object(key_node, deep=deep)
        if key in mapping:
            raise ValueError(
                f"Duplicate key '{key}' detected in YAML (line {key_node.start_mark.line + 1})."
            )
        mapping[key] = loader.construct_object(value_node, deep=deep)
    return mapping


UniqueKeyLoader.add_constructor(
    yaml.resolver.BaseResolver.DEFAULT_MAPPING_TAG,
    _construct_mapping,
)


def load_yaml(stream: TextIO | str) -> Any:
    """Parse YAML from a stream or string with duplicate-key validation.

    Raises:
        ValueError: If a mapping repeats a key.
    """
    return yaml.load(stream, Loader=UniqueKeyLoader)


def load_config_file(config_path: str | Path) -> Dict[str, Any]:
    """Read a simulator config file into a dict.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file is empty, not a mapping, or repeats a key.
    """
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(path, "r", encoding="utf-8") as f:
        config = load_yaml(f)

    if not isinstance(config, dict) or not config:
        raise ValueError(f"Empty or invalid config file: {config_path}")
    return config
