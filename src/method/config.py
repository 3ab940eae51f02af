"""Loading documents, inputs, datasets and patches from files.

Item files are YAML:

    text: |
      30 (mph)
      44 (fps)
      SUM speed
    checks:
      speed: 88
    silent: false

Any other file (or a YAML file that is just a string) is taken as the
document text. Input files map labels to numbers or to
``{value, units, from}`` mappings; dataset files map captions to rows.
"""

import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import yaml

from .datasets import StaticDatasets
from .interpreter import Item
from .values import Value, to_value

logger = logging.getLogger(__name__)

YAML_SUFFIXES = {".yaml", ".yml"}


class ConfigError(Exception):
    pass


def _read_yaml(path: Path) -> Any:
    with open(path) as f:
        return yaml.safe_load(f)


def load_item(path: str | Path) -> Item:
    """Load a document from a YAML item file or a plain text file."""
    path = Path(path)
    if path.suffix not in YAML_SUFFIXES:
        return Item(text=path.read_text().rstrip("\n"))

    data = _read_yaml(path)
    if isinstance(data, str):
        return Item(text=data.rstrip("\n"))
    if not isinstance(data, dict) or "text" not in data:
        raise ConfigError(f"{path}: item needs a 'text' field")

    data["text"] = str(data["text"]).rstrip("\n")
    item = Item.model_validate(data)
    logger.info("loaded %s: %d lines, %d checks", path, len(item.text.split("\n")), len(item.checks))
    return item


def load_input(path: str | Path) -> dict[str, Value]:
    """Load named input values (including conversion constants)."""
    path = Path(path)
    data = _read_yaml(path) or {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: input must map labels to values")

    values = {str(label): to_value(raw) for label, raw in data.items()}
    logger.info("loaded %d input values from %s", len(values), path)
    return values


def load_datasets(path: str | Path) -> StaticDatasets:
    """Load datasets keyed by caption, each a list of rows."""
    path = Path(path)
    data = _read_yaml(path) or {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: datasets must map captions to rows")

    for caption, rows in data.items():
        if not isinstance(rows, list):
            raise ConfigError(f"{path}: dataset '{caption}' must be a list of rows")
        for index, row in enumerate(rows, start=1):
            if not isinstance(row, dict):
                raise ConfigError(f"{path}: row {index} of dataset '{caption}' must be a mapping")
    logger.info("loaded %d datasets from %s", len(data), path)
    return StaticDatasets({str(caption): rows for caption, rows in data.items()})


def parse_patch(specs: Iterable[str]) -> dict[int, float]:
    """Parse LINE=VALUE overrides, e.g. ['1=1.5', '2=3.3']."""
    patch = {}
    for spec in specs:
        linenum, sep, value = spec.partition("=")
        try:
            if not sep:
                raise ValueError(spec)
            patch[int(linenum)] = float(value)
        except ValueError:
            raise ConfigError(f"bad patch {spec!r}, expected LINE=VALUE") from None
    return patch
