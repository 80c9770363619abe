"""High-level API for reading, building and extracting bigblob archives."""

from __future__ import annotations

import hashlib
import io
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence, Set, Tuple, Union

from .codec.compression import Codec, Lz4BlockCodec, default_codec
from .codec.dds import to_dds
from .codec.errors import (
    BigblobError,
    E_MIP_CHAIN,
    E_OUTPUT_PATH,
    E_OUTPUT_WRITE,
    E_PIXEL_DECODE,
    MipChainMismatch,
    entry_context,
)
from .codec.extract import ExtractionResult, extract_entries, extract_payload
from .codec.image import (
    ImageAsset,
    SoundAsset,
    decode_mip_rgba,
    mip_chain_size,
    reconstruct_image,
)
from .codec.inspector import (
    describe_entries,
    inspect_archive as _inspect_archive_impl,
    validate_archive as _validate_archive_impl,
)
from .codec.models import Archive, Entry, FileType
from .codec.toc import load_archive
from .codec.writer import write_archive_planned
from .logging import get_logger
from .manifest import build_manifest
from .packlist.loader import load_build_list
from .packlist.models import BuildList
from .packlist.validator import run_validation_pipeline
from .reporting import get_reporter, task
from .utils.paths import entry_output_path

__all__ = [
    "Asset",
    "BuildOptions",
    "BuildResult",
    "ExtractOptions",
    "ExtractResult",
    "open_archive",
    "load_asset",
    "load_assets",
    "build_archive",
    "extract_archive",
    "inspect_archive",
    "validate_archive",
    "list_entries",
]

Asset = Union[ImageAsset, SoundAsset]
IMAGE_FORMATS = ("dds", "png", "raw")


@dataclass(slots=True)
class BuildOptions:
    input_list: Path
    output_path: Path
    # Optional path; when provided a manifest JSON is written next to the archive
    manifest_path: str | Path | None = None
    # None selects LZ4 fast mode; an int selects high-compression at that level
    compression_level: int | None = None


@dataclass(slots=True)
class BuildResult:
    output_file: Path
    bytes_written: int
    entries: int


@dataclass(slots=True)
class ExtractOptions:
    archive_path: Path
    output_dir: Path
    image_format: str = "dds"
    names: Optional[Sequence[str]] = None
    max_workers: Optional[int] = None
    strict: bool = False


@dataclass(slots=True)
class ExtractResult:
    written: List[Path] = field(default_factory=list)
    failed: List[Tuple[Entry, BigblobError]] = field(default_factory=list)


def open_archive(path: str | Path) -> Archive:
    return load_archive(Path(path).read_bytes())


def _to_asset(entry: Entry, data: bytes, strict: bool) -> Asset:
    if entry.file_type is FileType.IMAGE:
        return reconstruct_image(entry, data, strict=strict)
    return SoundAsset(name=entry.name, data=data)


def load_asset(
    archive: Archive,
    entry: Entry | str,
    codec: Optional[Codec] = None,
    *,
    strict: bool = False,
) -> Asset:
    """Decompress one entry into an :class:`ImageAsset` or :class:`SoundAsset`."""
    if isinstance(entry, str):
        found = archive.find(entry)
        if found is None:
            raise KeyError(f"No entry named {entry!r}")
        entry = found
    data = extract_payload(entry, archive.data_region, codec)
    return _to_asset(entry, data, strict)


def load_assets(
    archive: Archive,
    codec: Optional[Codec] = None,
    *,
    max_workers: Optional[int] = None,
    strict: bool = False,
) -> List[tuple[Entry, Asset | BigblobError]]:
    """Every entry as an asset, or the error that stopped it, in TOC order."""
    out: List[tuple[Entry, Asset | BigblobError]] = []
    for res in extract_entries(archive, codec, max_workers=max_workers):
        if res.error is not None:
            out.append((res.entry, res.error))
            continue
        try:
            out.append((res.entry, _to_asset(res.entry, res.data or b"", strict)))
        except MipChainMismatch as e:
            out.append((res.entry, e))
    return out


def build_archive(options: BuildOptions) -> BuildResult:
    logger = get_logger()
    rep = get_reporter()
    doc = load_build_list(options.input_list)
    val_errors = run_validation_pipeline(doc)
    if val_errors:
        raise ValueError(
            "Build list validation failed: "
            + "; ".join(f"{e.code}:{e.path}:{e.message}" for e in val_errors)
        )
    build_list = BuildList.from_dict(doc)
    base_dir = Path(options.input_list).parent
    with task("read", "Read payloads"):
        sources = [e.to_source(base_dir) for e in build_list.entries]
    warnings: List[str] = []
    for src in sources:
        if src.file_type is FileType.IMAGE:
            expected = mip_chain_size(src.geometry.width, src.geometry.height)
            if expected != len(src.data):
                msg = (
                    f"Image '{src.name}' has {len(src.data)} bytes, "
                    f"a {src.geometry.width}x{src.geometry.height} BC7 mip chain "
                    f"needs {expected}"
                )
                warnings.append(msg)
                logger.warning("%s", msg)
    codec = Lz4BlockCodec(options.compression_level)
    data, plan = write_archive_planned(sources, codec)
    out = Path(options.output_path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_bytes(data)
    if options.manifest_path is not None:
        manifest_path = Path(options.manifest_path)
        list_hash = hashlib.sha256(
            json.dumps(doc, sort_keys=True, separators=(",", ":")).encode("utf-8")
        ).hexdigest()
        build_manifest(
            plan,
            manifest_path,
            file_sha256=hashlib.sha256(data).hexdigest(),
            list_hash=list_hash,
            codec=repr(codec),
            warnings=warnings or None,
        )
        logger.info("Emitted manifest: %s", manifest_path.name)
    rep.status(
        f"Build summary: file={out.name} bytes={len(data)} "
        f"entries={len(plan.entries)} data_region={plan.data_region_length}"
    )
    return BuildResult(output_file=out, bytes_written=len(data), entries=len(plan.entries))


def _output_path(entry: Entry, output_dir: Path, image_format: str) -> Path:
    if entry.file_type is FileType.SOUND or image_format == "raw":
        return entry_output_path(output_dir, entry.name)
    return entry_output_path(output_dir, entry.name, f".{image_format}")


def _encode_entry(res: ExtractionResult, image_format: str, strict: bool) -> bytes:
    entry = res.entry
    data = res.data or b""
    if entry.file_type is FileType.SOUND or image_format == "raw":
        return data
    image = reconstruct_image(entry, data, strict=strict)
    if image_format == "dds":
        return to_dds(image)
    if not image.mips:
        raise MipChainMismatch(
            E_MIP_CHAIN,
            f"Image '{entry.name}' has no complete mip level to decode",
            entry_context(entry.index, entry.name),
        )
    buf = io.BytesIO()
    try:
        decode_mip_rgba(image.mips[0]).save(buf, format="PNG")
    except (ValueError, RuntimeError, OSError) as e:
        raise BigblobError(
            E_PIXEL_DECODE,
            f"Image '{entry.name}' could not be decoded to PNG: {e}",
            entry_context(entry.index, entry.name),
        ) from e
    return buf.getvalue()


def _unclaimed(path: Path, entry: Entry, claimed: Set[Path]) -> Path:
    # Entry names need not be unique; later duplicates get the TOC index
    while path in claimed:
        path = path.with_name(f"{path.stem}.{entry.index}{path.suffix}")
    return path


def extract_archive(options: ExtractOptions) -> ExtractResult:
    """Dump entries under ``output_dir``; one bad entry never stops the rest."""
    if options.image_format not in IMAGE_FORMATS:
        raise ValueError(
            f"image_format must be one of {IMAGE_FORMATS}, got {options.image_format!r}"
        )
    logger = get_logger()
    rep = get_reporter()
    archive = open_archive(options.archive_path)
    output_dir = Path(options.output_dir)
    result = ExtractResult()
    claimed: Set[Path] = set()
    results = extract_entries(
        archive,
        default_codec(),
        max_workers=options.max_workers,
        names=options.names,
    )
    for res in results:
        entry = res.entry
        if res.error is not None:
            result.failed.append((entry, res.error))
            continue
        try:
            wanted = _output_path(entry, output_dir, options.image_format)
            payload = _encode_entry(res, options.image_format, options.strict)
            path = _unclaimed(wanted, entry, claimed)
            if path != wanted:
                logger.warning(
                    "Entry %d '%s' duplicates an earlier output path, writing %s",
                    entry.index,
                    entry.name,
                    path.name,
                )
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(payload)
        except BigblobError as e:
            logger.error("%s", e)
            result.failed.append((entry, e))
            continue
        except ValueError as e:
            err = BigblobError(
                E_OUTPUT_PATH, str(e), entry_context(entry.index, entry.name)
            )
            logger.error("%s", err)
            result.failed.append((entry, err))
            continue
        except OSError as e:
            err = BigblobError(
                E_OUTPUT_WRITE,
                f"Cannot write entry '{entry.name}': {e}",
                entry_context(entry.index, entry.name),
            )
            logger.error("%s", err)
            result.failed.append((entry, err))
            continue
        claimed.add(path)
        result.written.append(path)
    rep.status(
        f"Extract summary: written={len(result.written)} failed={len(result.failed)}"
    )
    return result


def inspect_archive(path: str | Path) -> dict:
    return _inspect_archive_impl(Path(path))


def validate_archive(path: str | Path) -> List[str]:
    return _validate_archive_impl(open_archive(path))


def list_entries(path: str | Path) -> List[str]:
    return describe_entries(open_archive(path))
