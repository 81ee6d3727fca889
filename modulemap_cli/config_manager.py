"""Configuration manager for ModuleMap CLI using TOML files."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict

import toml

BASE_DIR = Path(os.environ.get("MODULEMAP_HOME", str(Path.home() / ".modulemap"))).expanduser()
CONFIG_FILE = BASE_DIR / "config.toml"


# Default configurations for each provider. Every endpoint speaks the
# OpenAI chat-completions dialect so tool calls and JSON mode work the same.
DEFAULT_CONFIGS = {
    "openai": {
        "provider": "openai",
        "model": "gpt-4.1-mini",
        "api_key": "",
        "endpoint": "https://api.openai.com/v1/chat/completions",
    },
    "groq": {
        "provider": "groq",
        "model": "llama-3.3-70b-versatile",
        "api_key": "",
        "endpoint": "https://api.groq.com/openai/v1/chat/completions",
    },
    "openrouter": {
        "provider": "openrouter",
        "model": "openai/gpt-4o-mini",
        "api_key": "",
        "endpoint": "https://openrouter.ai/api/v1/chat/completions",
    },
    "gemini": {
        "provider": "gemini",
        "model": "gemini-2.0-flash",
        "api_key": "",
        "endpoint": "https://generativelanguage.googleapis.com/v1beta/openai/chat/completions",
    },
    "anthropic": {
        "provider": "anthropic",
        "model": "claude-3-5-sonnet-20241022",
        "api_key": "",
        "endpoint": "https://api.anthropic.com/v1/chat/completions",
    },
    "ollama": {
        "provider": "ollama",
        "model": "qwen2.5-coder:7b",
        "endpoint": "http://127.0.0.1:11434/v1/chat/completions",
    },
}

DEFAULT_PROVIDER = "openai"

DEFAULT_MAP_CONFIG: Dict[str, Any] = {
    "root": ".",
    "output": "map.yml",
    "extensions": [".ts", ".tsx"],
    "exclude_markers": ["d", "test", "config"],
    "skip_dirs": ["node_modules"],
    "on_error": "abort",
    "workers": 1,
    "max_tool_rounds": 5,
}


def _config_file() -> Path:
    return CONFIG_FILE


def load_full_config() -> Dict[str, Any]:
    """Load the entire TOML config (all sections)."""
    path = _config_file()
    if not path.exists():
        return {}
    with open(path, "r", encoding="utf-8") as f:
        return toml.load(f)


def _save_full_config(config: Dict[str, Any]) -> None:
    """Write entire config dict to TOML file, preserving all sections."""
    path = _config_file()
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        toml.dump(config, f)


def load_config() -> Dict[str, Any]:
    """Load the ``[llm]`` section.

    Falls back to the default provider when the file or section is missing.
    """
    llm = load_full_config().get("llm")
    if not llm:
        return get_provider_config(DEFAULT_PROVIDER)
    return dict(llm)


def save_config(provider: str, model: str, api_key: str = "", endpoint: str = "") -> None:
    """Save LLM configuration, keeping the ``[map]`` section intact."""
    config = load_full_config()

    config["llm"] = {
        "provider": provider,
        "model": model,
    }
    if api_key:
        config["llm"]["api_key"] = api_key
    if endpoint:
        config["llm"]["endpoint"] = endpoint

    _save_full_config(config)


def clear_llm_config() -> None:
    config = load_full_config()
    config.pop("llm", None)
    _save_full_config(config)


def load_map_config() -> Dict[str, Any]:
    """Load the ``[map]`` section merged over the built-in defaults."""
    merged = {key: (list(value) if isinstance(value, list) else value)
              for key, value in DEFAULT_MAP_CONFIG.items()}
    merged.update(load_full_config().get("map", {}))
    return merged


def get_provider_config(provider: str) -> Dict[str, Any]:
    """Get default configuration for a specific provider.

    Raises:
        ValueError: If the provider is unknown.
    """
    if provider not in DEFAULT_CONFIGS:
        raise ValueError(
            f"Unknown provider '{provider}'. Choose from: {', '.join(DEFAULT_CONFIGS)}"
        )
    return DEFAULT_CONFIGS[provider].copy()
