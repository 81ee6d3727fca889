"""YAML serialization of module maps."""

from __future__ import annotations

from pathlib import Path

import yaml

from .errors import SerializationError
from .models import ModuleMap

YAML_INDENT = 2
YAML_WIDTH = 100


def dump_map(module_map: ModuleMap) -> str:
    """Render *module_map* as YAML text.

    Key order is taken from the map itself, which the assembler already
    sorts, so equal maps always render to identical text.
    """
    return yaml.safe_dump(
        module_map.to_dict(),
        indent=YAML_INDENT,
        width=YAML_WIDTH,
        default_flow_style=False,
        sort_keys=False,
        allow_unicode=True,
    )


def save_map_as_yaml(module_map: ModuleMap, output_path: Path) -> Path:
    """Write *module_map* to *output_path*, creating parent directories.

    Raises:
        SerializationError: If the destination cannot be written.
    """
    output_path = Path(output_path)
    text = dump_map(module_map)
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(text, encoding="utf-8")
    except OSError as exc:
        raise SerializationError(f"Cannot write module map to {output_path}: {exc}") from exc
    return output_path


def load_map_from_yaml(path: Path) -> ModuleMap:
    """Read a module map written by :func:`save_map_as_yaml`."""
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    return ModuleMap.from_dict(data)
