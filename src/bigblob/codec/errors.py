"""Error and warning definitions for the bigblob codec.

Fatal conditions are exceptions derived from :class:`BigblobError`; non-fatal
findings are :class:`ArchiveWarning` records that parsing and reconstruction
collect and hand back alongside their results.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Optional

E_OUT_OF_BOUNDS = "E_OUT_OF_BOUNDS"
E_MALFORMED_TOC = "E_MALFORMED_TOC"
E_OFFSET_RANGE = "E_OFFSET_RANGE"
E_SIZE_MISMATCH = "E_SIZE_MISMATCH"
E_DECOMPRESS = "E_DECOMPRESS"
E_MIP_CHAIN = "E_MIP_CHAIN"
E_OUTPUT_PATH = "E_OUTPUT_PATH"
E_OUTPUT_WRITE = "E_OUTPUT_WRITE"
E_PIXEL_DECODE = "E_PIXEL_DECODE"

W_SUSPICIOUS_ENTRY = "W_SUSPICIOUS_ENTRY"
W_MIP_CHAIN = "W_MIP_CHAIN"
W_TRAILING_DATA = "W_TRAILING_DATA"


@dataclass
class BigblobError(Exception):
    code: str
    message: str
    context: Optional[Dict[str, Any]] = None

    def __str__(self) -> str:
        return f"{self.code}: {self.message}" + (
            f" | ctx={self.context}" if self.context else ""
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "context": self.context or {},
        }


class OutOfBounds(BigblobError):
    pass


class MalformedToc(BigblobError):
    pass


class EntryError(BigblobError):
    """Failure confined to a single entry; the rest of the archive is usable."""


class OffsetOutOfRange(EntryError):
    pass


class SizeMismatch(EntryError):
    pass


class DecompressionError(EntryError):
    pass


class MipChainMismatch(BigblobError):
    pass


class CodecError(RuntimeError):
    """Raised by a compression transform on invalid input."""


@dataclass(frozen=True, slots=True)
class ArchiveWarning:
    code: str
    message: str
    context: Optional[Dict[str, Any]] = None

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "context": self.context or {},
        }


def entry_context(index: int, name: str, **extra: Any) -> Dict[str, Any]:
    return {"index": index, "name": name, **extra}


__all__ = [
    "BigblobError",
    "OutOfBounds",
    "MalformedToc",
    "EntryError",
    "OffsetOutOfRange",
    "SizeMismatch",
    "DecompressionError",
    "MipChainMismatch",
    "CodecError",
    "ArchiveWarning",
    "entry_context",
    "E_OUT_OF_BOUNDS",
    "E_MALFORMED_TOC",
    "E_OFFSET_RANGE",
    "E_SIZE_MISMATCH",
    "E_DECOMPRESS",
    "E_MIP_CHAIN",
    "E_OUTPUT_PATH",
    "E_OUTPUT_WRITE",
    "E_PIXEL_DECODE",
    "W_SUSPICIOUS_ENTRY",
    "W_MIP_CHAIN",
    "W_TRAILING_DATA",
]
