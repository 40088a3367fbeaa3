"""Configuration loading and layering for the form population engine."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from .models import RewriteConfig


def load_config(path: Path) -> Dict[str, Any]:
    """Read a YAML mapping of engine options."""

    data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path} must contain a mapping of options.")
    return data


def resolve_config(*layers: Optional[Mapping[str, Any]]) -> RewriteConfig:
    """Merge option layers over the defaults; later layers win."""

    merged: Dict[str, Any] = {}
    for layer in layers:
        if layer:
            merged.update(layer)
    return RewriteConfig.model_validate(merged)


__all__ = ["load_config", "resolve_config"]
