"""Configuration for ModuleMap runs and the LLM provider."""

from __future__ import annotations

import os
from pathlib import Path

from .config_manager import BASE_DIR, CONFIG_FILE, load_config, load_map_config

# Load configuration from TOML file (if available)
_llm_config = load_config()
_map_config = load_map_config()

# LLM Provider Configuration, loaded from ~/.modulemap/config.toml (set via `modmap set-llm`)
LLM_PROVIDER = _llm_config.get("provider", "openai")
LLM_MODEL = _llm_config.get("model", "")
LLM_ENDPOINT = _llm_config.get("endpoint", "")
LLM_API_KEY = (
    _llm_config.get("api_key")
    or os.environ.get("MODULEMAP_API_KEY")
    or os.environ.get("OPENAI_API_KEY", "")
)

# Map generation settings, loaded from the [map] section
PROJECT_ROOT = Path(_map_config["root"]).expanduser()
OUTPUT_PATH = Path(_map_config["output"]).expanduser()
SOURCE_EXTENSIONS = tuple(_map_config["extensions"])
EXCLUDE_MARKERS = tuple(_map_config["exclude_markers"])
SKIP_DIRS = frozenset(_map_config["skip_dirs"])
ON_ERROR = _map_config["on_error"]
WORKERS = int(_map_config["workers"])
MAX_TOOL_ROUNDS = int(_map_config["max_tool_rounds"])

ON_ERROR_CHOICES = ("abort", "skip")
