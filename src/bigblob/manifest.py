"""Manifest generation for built archives.

The manifest is an optional JSON artifact summarising a freshly written
archive. It is only produced when the caller asks for it.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from .codec.planner import ArchivePlan, to_plan_dict

__all__ = ["build_manifest", "manifest_dict"]


def manifest_dict(
    plan: ArchivePlan,
    *,
    file_sha256: str | None = None,
    list_hash: str | None = None,
    codec: str | None = None,
    warnings: list[str] | None = None,
) -> dict[str, Any]:
    d: dict[str, Any] = {
        "version": 1,
        **to_plan_dict(plan),
        "codec": codec,
        "list_hash": list_hash,
        "sha256": file_sha256,
    }
    if warnings:
        d["warnings"] = warnings
    return d


def build_manifest(
    plan: ArchivePlan,
    output_path: str | Path,
    **kwargs: Any,
) -> Path:
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    data = manifest_dict(plan, **kwargs)
    with output_path.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, sort_keys=True)
        f.write("\n")
    return output_path
