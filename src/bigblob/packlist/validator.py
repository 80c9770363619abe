"""Build list validation.

Phases:
 1. schema: structural & type checks
 2. semantic: per-kind geometry rules, name limits

Returns a list of ValidationErrorRecord; empty list means success.
"""

from __future__ import annotations

from typing import Any, Dict, List

from ..codec.constants import U32_MAX
from .models import KIND_NAMES

__all__ = ["ValidationErrorRecord", "run_validation_pipeline"]

_GEOMETRY_PAIRS = ("canvas_size", "canvas_offset", "crop_size")
_DATA_KEYS = ("data_hex", "file", "path", "data")


class ValidationErrorRecord:
    def __init__(self, code: str, message: str, path: str = "") -> None:
        self.code = code
        self.message = message
        self.path = path

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message, "path": self.path}

    def __repr__(self) -> str:
        return f"ValidationErrorRecord(code={self.code}, path={self.path}, message={self.message})"


def _err(errors: List[ValidationErrorRecord], code: str, message: str, path: str):
    errors.append(ValidationErrorRecord(code, message, path))


def _is_u32(v: Any) -> bool:
    return isinstance(v, int) and not isinstance(v, bool) and 0 <= v <= U32_MAX


def _schema_phase(doc: Dict[str, Any]) -> List[ValidationErrorRecord]:
    errors: List[ValidationErrorRecord] = []
    entries = doc.get("entries", [])
    if not isinstance(entries, list):
        _err(errors, "E_TYPE", "'entries' must be a list", "entries")
        return errors
    for i, e in enumerate(entries):
        path = f"entries[{i}]"
        if not isinstance(e, dict):
            _err(errors, "E_TYPE", "Entry must be object", path)
            continue
        name = e.get("name")
        if not isinstance(name, str) or not name:
            _err(errors, "E_FIELD", "Missing or invalid name", path + ".name")
        kind = e.get("type")
        if not isinstance(kind, str) or kind.lower() not in KIND_NAMES:
            _err(
                errors,
                "E_KIND",
                f"type must be one of {sorted(KIND_NAMES)}, got {kind!r}",
                path + ".type",
            )
        if sum(1 for k in _DATA_KEYS if e.get(k) is not None) != 1:
            _err(
                errors,
                "E_DATA",
                "Exactly one of data_hex|file|path|data required",
                path,
            )
        for key in ("width", "height"):
            if key in e and not _is_u32(e[key]):
                _err(errors, "E_RANGE", f"{key} must be a u32", f"{path}.{key}")
        for key in _GEOMETRY_PAIRS:
            if key not in e:
                continue
            v = e[key]
            if not (isinstance(v, (list, tuple)) and len(v) == 2 and all(_is_u32(x) for x in v)):
                _err(errors, "E_RANGE", f"{key} must be a pair of u32", f"{path}.{key}")
    return errors


def _semantic_phase(doc: Dict[str, Any]) -> List[ValidationErrorRecord]:
    errors: List[ValidationErrorRecord] = []
    for i, e in enumerate(doc.get("entries", [])):
        path = f"entries[{i}]"
        kind = str(e.get("type", "")).lower()
        name = e.get("name", "")
        if isinstance(name, str) and len(name.encode("utf-8")) > U32_MAX:
            _err(errors, "E_NAME_LEN", "Name too long", path + ".name")
        if kind == "sound":
            geom_keys = [k for k in ("width", "height", *_GEOMETRY_PAIRS) if k in e]
            nonzero = [
                k
                for k in geom_keys
                if (e[k] if k in ("width", "height") else any(e[k]))
            ]
            if nonzero:
                _err(
                    errors,
                    "E_GEOMETRY",
                    f"Sound entries carry no geometry: {nonzero}",
                    path,
                )
        elif kind == "image":
            for key in ("width", "height"):
                if key not in e:
                    _err(errors, "E_FIELD", f"Image entry missing {key}", f"{path}.{key}")
    return errors


def run_validation_pipeline(doc: Dict[str, Any]) -> List[ValidationErrorRecord]:
    errors = _schema_phase(doc)
    if errors:
        return errors
    return _semantic_phase(doc)
