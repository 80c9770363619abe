"""Build list loading utilities (JSON/YAML)."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict

try:  # Optional YAML support
    import yaml  # type: ignore
except ImportError:  # pragma: no cover
    yaml = None  # type: ignore

__all__ = ["load_build_list"]


def load_build_list(path: str | Path) -> Dict[str, Any]:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(p)
    text = p.read_text(encoding="utf-8")
    if p.suffix.lower() in {".yaml", ".yml"}:
        if yaml is None:
            raise RuntimeError("YAML build list provided but PyYAML not installed")
        data: Any = yaml.safe_load(text)
    else:
        data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError("Root of build list must be an object")
    return data
