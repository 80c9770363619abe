import json
import struct

import lz4.block
import pytest
import yaml

from bigblob import api
from bigblob.api import (
    BuildOptions,
    ExtractOptions,
    build_archive,
    extract_archive,
    inspect_archive,
    list_entries,
    load_asset,
    load_assets,
    open_archive,
    validate_archive,
)
from bigblob.codec.compression import PassthroughCodec
from bigblob.codec.constants import DDS_TOTAL_HEADER_SIZE
from bigblob.codec.errors import (
    E_MIP_CHAIN,
    E_OUTPUT_PATH,
    E_OUTPUT_WRITE,
    E_PIXEL_DECODE,
    BigblobError,
)
from bigblob.codec.image import ImageAsset, SoundAsset
from bigblob.codec.models import CanvasGeometry, EntrySource, FileType
from bigblob.codec.writer import write_archive_file
from bigblob.logging import configure_logging
from bigblob.reporting import SilentReporter, set_reporter

from archive_helper import image_geometry, raw_archive, raw_record

ICON = bytes(range(48))  # 4x4 BC7 chain: three 16-byte levels


@pytest.fixture(autouse=True)
def _quiet():
    set_reporter(SilentReporter())


def _write_build_list(tmp_path, entries, name="assets.yaml"):
    p = tmp_path / name
    doc = {"version": 1, "entries": entries}
    if name.endswith((".yaml", ".yml")):
        p.write_text(yaml.safe_dump(doc), encoding="utf-8")
    else:
        p.write_text(json.dumps(doc), encoding="utf-8")
    return p


def _standard_build(tmp_path, **opts):
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "icon.bc7").write_bytes(ICON)
    (tmp_path / "src" / "beep.wav").write_bytes(b"RIFF" + b"\x01" * 60)
    build_list = _write_build_list(
        tmp_path,
        [
            {
                "name": "ui/icon.png",
                "type": "image",
                "file": "src/icon.bc7",
                "width": 4,
                "height": 4,
                "canvas_size": [512, 512],
                "canvas_offset": [32, 64],
            },
            {"name": "sfx/beep.wav", "type": "sound", "path": "src/beep.wav"},
            {"name": "sfx/tiny.wav", "type": "sound", "data_hex": "00 01 02"},
        ],
    )
    out = tmp_path / "out" / "game.bigblob"
    result = build_archive(BuildOptions(build_list, out, **opts))
    return result, out


def test_build_from_yaml_and_reopen(tmp_path):
    result, out = _standard_build(tmp_path)
    assert result.output_file == out
    assert result.entries == 3
    assert result.bytes_written == out.stat().st_size

    archive = open_archive(out)
    assert [e.name for e in archive.entries] == [
        "ui/icon.png",
        "sfx/beep.wav",
        "sfx/tiny.wav",
    ]
    icon = archive.entries[0]
    assert icon.geometry == CanvasGeometry(
        canvas_size=(512, 512),
        canvas_offset=(32, 64),
        crop_size=(4, 4),
        width=4,
        height=4,
    )
    assert validate_archive(out) == []

    asset = load_asset(archive, "ui/icon.png")
    assert isinstance(asset, ImageAsset)
    assert asset.raw == ICON
    assert [m.data for m in asset.mips] == [ICON[0:16], ICON[16:32], ICON[32:48]]
    tiny = load_asset(archive, archive.entries[2])
    assert isinstance(tiny, SoundAsset)
    assert tiny.data == b"\x00\x01\x02"
    with pytest.raises(KeyError):
        load_asset(archive, "missing.wav")


def test_build_writes_manifest(tmp_path):
    manifest = tmp_path / "out" / "game.manifest.json"
    _, out = _standard_build(tmp_path, manifest_path=manifest)
    doc = json.loads(manifest.read_text(encoding="utf-8"))
    archive = open_archive(out)
    assert doc["version"] == 1
    assert doc["toc_offset"] == archive.toc_offset
    assert doc["file_size"] == out.stat().st_size
    assert [e["name"] for e in doc["entries"]] == [e.name for e in archive.entries]
    assert len(doc["sha256"]) == 64
    assert "warnings" not in doc


def test_build_is_reproducible(tmp_path):
    _, out = _standard_build(tmp_path)
    first = out.read_bytes()
    out.unlink()
    build_archive(BuildOptions(tmp_path / "assets.yaml", out))
    assert out.read_bytes() == first


def test_build_high_compression_level(tmp_path):
    _, out = _standard_build(tmp_path, compression_level=9)
    asset = load_asset(open_archive(out), "sfx/beep.wav")
    assert asset.data == b"RIFF" + b"\x01" * 60


def test_build_rejects_invalid_list(tmp_path):
    build_list = _write_build_list(
        tmp_path,
        [
            {"name": "", "type": "image", "data": "x", "width": 1, "height": 1},
            {"name": "a.wav", "type": "music", "data": "x"},
            {"name": "b.wav", "type": "sound"},
        ],
        name="bad.json",
    )
    with pytest.raises(ValueError) as exc:
        build_archive(BuildOptions(build_list, tmp_path / "x.bigblob"))
    msg = str(exc.value)
    assert "E_FIELD:entries[0].name" in msg
    assert "E_KIND:entries[1].type" in msg
    assert "E_DATA:entries[2]" in msg
    assert not (tmp_path / "x.bigblob").exists()


def test_build_rejects_sound_geometry(tmp_path):
    build_list = _write_build_list(
        tmp_path,
        [{"name": "a.wav", "type": "sound", "data": "x", "width": 4}],
        name="geo.json",
    )
    with pytest.raises(ValueError, match="E_GEOMETRY"):
        build_archive(BuildOptions(build_list, tmp_path / "x.bigblob"))


def test_build_warns_on_mip_chain_mismatch(tmp_path):
    rep = SilentReporter()
    set_reporter(rep)
    configure_logging(0)
    build_list = _write_build_list(
        tmp_path,
        [{"name": "odd.png", "type": "image", "data_hex": "00" * 10, "width": 4, "height": 4}],
    )
    manifest = tmp_path / "m.json"
    build_archive(BuildOptions(build_list, tmp_path / "x.bigblob", manifest))
    assert any("odd.png" in m for kind, m in rep.messages if kind == "warning")
    assert len(json.loads(manifest.read_text())["warnings"]) == 1


def test_extract_dds_and_sounds(tmp_path):
    _, out = _standard_build(tmp_path)
    dest = (tmp_path / "dump").resolve()
    result = extract_archive(ExtractOptions(out, dest, max_workers=2))
    assert result.failed == []
    assert sorted(p.relative_to(dest).as_posix() for p in result.written) == [
        "sfx/beep.wav",
        "sfx/tiny.wav",
        "ui/icon.dds",
    ]
    dds = (dest / "ui" / "icon.dds").read_bytes()
    assert dds[:4] == b"DDS "
    assert struct.unpack_from("<II", dds, 12) == (4, 4)
    assert dds[DDS_TOTAL_HEADER_SIZE:] == ICON
    assert (dest / "sfx" / "tiny.wav").read_bytes() == b"\x00\x01\x02"


def test_extract_raw_and_by_name(tmp_path):
    _, out = _standard_build(tmp_path)
    dest = (tmp_path / "dump").resolve()
    result = extract_archive(
        ExtractOptions(out, dest, image_format="raw", names=["ui/icon.png"])
    )
    assert result.written == [dest / "ui" / "icon.png"]
    assert (dest / "ui" / "icon.png").read_bytes() == ICON


def test_extract_rejects_unknown_format(tmp_path):
    _, out = _standard_build(tmp_path)
    with pytest.raises(ValueError):
        extract_archive(ExtractOptions(out, tmp_path / "d", image_format="tga"))


def test_extract_isolates_failures(tmp_path):
    archive_path = tmp_path / "mixed.bigblob"
    write_archive_file(
        [
            EntrySource("../escape.wav", FileType.SOUND, b"nope"),
            EntrySource("ok.wav", FileType.SOUND, b"fine"),
        ],
        archive_path,
        PassthroughCodec(),
    )
    dest = (tmp_path / "dump").resolve()
    result = extract_archive(ExtractOptions(archive_path, dest, max_workers=1))
    assert result.written == [dest / "ok.wav"]
    assert len(result.failed) == 1
    entry, err = result.failed[0]
    assert entry.name == "../escape.wav"
    assert isinstance(err, BigblobError)
    assert err.code == E_OUTPUT_PATH
    assert not (tmp_path / "escape.wav").exists()


def test_extract_reports_corrupt_entry_and_continues(tmp_path):
    # "bad.wav" is not a valid LZ4 block; its match offset points before the output
    blob = raw_archive(
        b"\x40hello" + b"\x00",
        [
            raw_record(1, 50, 6, 0, b"bad.wav"),
            raw_record(1, 0, 0, 6, b"silence.wav"),
        ],
    )
    archive_path = tmp_path / "c.bigblob"
    archive_path.write_bytes(blob)
    result = extract_archive(ExtractOptions(archive_path, tmp_path / "d"))
    assert [p.name for p in result.written] == ["silence.wav"]
    assert [e.name for e, _ in result.failed] == ["bad.wav"]
    assert isinstance(result.failed[0][1], BigblobError)


def test_strict_extract_fails_short_images(tmp_path):
    payload = lz4.block.compress(b"\x00" * 40, store_size=False)
    blob = raw_archive(
        payload,
        [raw_record(0, 40, len(payload), 0, b"short.png", image_geometry(4, 4))],
    )
    archive_path = tmp_path / "s.bigblob"
    archive_path.write_bytes(blob)

    lenient = extract_archive(ExtractOptions(archive_path, tmp_path / "a"))
    assert [p.name for p in lenient.written] == ["short.dds"]

    strict = extract_archive(ExtractOptions(archive_path, tmp_path / "b", strict=True))
    assert strict.written == []
    assert strict.failed[0][1].code == E_MIP_CHAIN


def test_load_assets_pairs_errors_with_entries(tmp_path):
    _, out = _standard_build(tmp_path)
    archive = open_archive(out)
    pairs = load_assets(archive, max_workers=1)
    assert [e.name for e, _ in pairs] == [e.name for e in archive.entries]
    assert all(not isinstance(a, BigblobError) for _, a in pairs)


def test_inspect_and_list_by_path(tmp_path):
    _, out = _standard_build(tmp_path)
    info = inspect_archive(out)
    assert info["entry_count"] == 3
    assert info["counts"] == {"Image": 1, "Sound": 2}
    lines = list_entries(out)
    assert lines[0].startswith("ui/icon.png (Image) (")
    assert "    canvas1: 32x64" in lines


def test_build_accepts_string_paths(tmp_path):
    (tmp_path / "a.wav").write_bytes(b"abc")
    build_list = _write_build_list(
        tmp_path, [{"name": "a.wav", "type": "sound", "file": "a.wav"}]
    )
    manifest = tmp_path / "meta" / "a.json"
    result = build_archive(
        BuildOptions(str(build_list), str(tmp_path / "a.bigblob"), str(manifest))
    )
    assert result.entries == 1
    assert json.loads(manifest.read_text(encoding="utf-8"))["file_size"] == (
        result.bytes_written
    )


def _sound_archive(tmp_path, names):
    archive_path = tmp_path / "sounds.bigblob"
    write_archive_file(
        [EntrySource(n, FileType.SOUND, n.encode("utf-8")) for n in names],
        archive_path,
        PassthroughCodec(),
    )
    return archive_path


def test_extract_write_error_does_not_stop_later_entries(tmp_path):
    # "a.wav" lands as a file, so "a.wav/b.wav" cannot get its directory
    archive_path = _sound_archive(tmp_path, ["a.wav", "a.wav/b.wav", "c.wav"])
    dest = (tmp_path / "dump").resolve()
    result = extract_archive(ExtractOptions(archive_path, dest, max_workers=1))
    assert result.written == [dest / "a.wav", dest / "c.wav"]
    assert (dest / "c.wav").read_bytes() == b"c.wav"
    assert len(result.failed) == 1
    entry, err = result.failed[0]
    assert entry.name == "a.wav/b.wav"
    assert err.code == E_OUTPUT_WRITE
    assert err.context == {"index": 1, "name": "a.wav/b.wav"}


def test_extract_duplicate_names_get_distinct_files(tmp_path):
    archive_path = _sound_archive(tmp_path, ["dup.wav", "dup.wav", "other.wav"])
    dest = (tmp_path / "dump").resolve()
    result = extract_archive(ExtractOptions(archive_path, dest, max_workers=1))
    assert result.failed == []
    assert result.written == [dest / "dup.wav", dest / "dup.1.wav", dest / "other.wav"]
    assert len(set(result.written)) == 3


def test_extract_png_decode_failure_is_per_entry(tmp_path, monkeypatch):
    def _broken_decoder(mip):
        raise ValueError("not enough image data")

    monkeypatch.setattr(api, "decode_mip_rgba", _broken_decoder)
    archive_path = tmp_path / "mixed.bigblob"
    write_archive_file(
        [
            EntrySource(
                "icon.png",
                FileType.IMAGE,
                ICON,
                CanvasGeometry(crop_size=(4, 4), width=4, height=4),
            ),
            EntrySource("after.wav", FileType.SOUND, b"ok"),
        ],
        archive_path,
    )
    dest = (tmp_path / "dump").resolve()
    result = extract_archive(ExtractOptions(archive_path, dest, image_format="png"))
    assert result.written == [dest / "after.wav"]
    entry, err = result.failed[0]
    assert entry.name == "icon.png"
    assert err.code == E_PIXEL_DECODE
    assert not (dest / "icon.png").exists()
