"""Configuration management for docmap."""

import copy
import os
from pathlib import Path
from typing import Any

import yaml


DEFAULT_CONFIG = {
    "store_path": "~/.docmap/documents.json",
    "embedding_model": "intfloat/e5-large-v2",
    "chunking": {
        "chunk_size": 500,
        "chunk_overlap": 100,
        "separators": ["\n\n", "\n", ". ", " ", ""],
    },
    "admission": {"max_documents": 5, "max_total_bytes": 50 * 1024 * 1024},
    "llm": {
        "model": "claude",
        "claude_model": "claude-sonnet-4-20250514",
        "deepseek_model": "deepseek/deepseek-chat-v3-0324:free",
        "openrouter_base_url": "https://openrouter.ai/api/v1",
        "max_tokens": 2000,
    },
    "summarize": True,
    "summary_max_chars": 30000,
    "qa": {"max_context_chars": 12000},
}


def _find_config_file() -> Path | None:
    """Look for config.yaml in standard locations."""
    candidates = [
        Path.cwd() / "config" / "config.yaml",
        Path.cwd() / "config.yaml",
        Path.home() / ".docmap" / "config.yaml",
    ]
    for p in candidates:
        if p.exists():
            return p
    return None


def load_config(config_path: str | Path | None = None) -> dict[str, Any]:
    """Load configuration, merging defaults with file and env vars."""
    cfg = copy.deepcopy(DEFAULT_CONFIG)

    path = Path(config_path) if config_path else _find_config_file()
    if path and path.exists():
        with open(path) as f:
            file_cfg = yaml.safe_load(f) or {}
        _deep_merge(cfg, file_cfg)

    # Env overrides
    if api_key := os.environ.get("ANTHROPIC_API_KEY"):
        cfg["claude_api_key"] = api_key
    if api_key := os.environ.get("OPENROUTER_API_KEY"):
        cfg["openrouter_api_key"] = api_key
    if model := os.environ.get("DOCMAP_MODEL"):
        cfg["llm"]["model"] = model

    cfg["store_path"] = str(Path(cfg["store_path"]).expanduser().resolve())

    return cfg


def _deep_merge(base: dict, override: dict) -> None:
    """Merge override into base in-place."""
    for k, v in override.items():
        if k in base and isinstance(base[k], dict) and isinstance(v, dict):
            _deep_merge(base[k], v)
        else:
            base[k] = v
