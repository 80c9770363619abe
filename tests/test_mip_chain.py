import pytest

from bigblob.codec.errors import E_MIP_CHAIN, MipChainMismatch, W_MIP_CHAIN
from bigblob.codec.image import (
    mip_chain,
    mip_chain_size,
    mip_count,
    reconstruct_image,
)
from bigblob.codec.models import CanvasGeometry, Entry, FileType

# Hand-computed: sum over levels of ceil(w/4) * ceil(h/4) * 16
EXPECTED_SIZES = {
    (1, 1): 16,
    (4, 4): 48,
    (7, 9): 144,
    (256, 256): 87408,
    (1024, 512): 699088,
}


def _image_entry(width: int, height: int, size_decompressed: int) -> Entry:
    return Entry(
        index=3,
        file_type=FileType.IMAGE,
        size_decompressed=size_decompressed,
        size=size_decompressed,
        offset=0,
        raw_name=b"atlas/icon.png",
        geometry=CanvasGeometry((512, 512), (32, 64), (width, height), width, height),
    )


@pytest.mark.parametrize("dims", sorted(EXPECTED_SIZES))
def test_chain_sizes(dims):
    width, height = dims
    assert mip_chain_size(width, height) == EXPECTED_SIZES[dims]
    entry = _image_entry(width, height, EXPECTED_SIZES[dims])
    data = bytes(i & 0xFF for i in range(entry.size_decompressed))
    image = reconstruct_image(entry, data)
    assert image.warnings == ()
    assert sum(len(m.data) for m in image.mips) == entry.size_decompressed
    assert b"".join(m.data for m in image.mips) == data


def test_chain_shape_non_square():
    chain = mip_chain(7, 9)
    assert [(m.width, m.height) for m in chain] == [(7, 9), (3, 4), (1, 2), (1, 1)]
    assert [m.size for m in chain] == [96, 16, 16, 16]
    assert [m.offset for m in chain] == [0, 96, 112, 128]
    assert mip_count(1024, 512) == 11
    assert mip_chain(1024, 512)[-1].width == 1
    assert mip_chain(1024, 512)[-1].height == 1


def test_zero_dimensions_have_empty_chain():
    assert mip_chain(0, 16) == []
    assert mip_chain_size(0, 0) == 0


def test_one_byte_short_warns_and_keeps_raw_bytes():
    full = mip_chain_size(7, 9)
    entry = _image_entry(7, 9, full - 1)
    data = b"\x5a" * (full - 1)
    image = reconstruct_image(entry, data)
    assert image.raw == data
    assert [w.code for w in image.warnings] == [W_MIP_CHAIN]
    assert image.warnings[0].context["expected"] == full
    assert image.warnings[0].context["actual"] == full - 1
    assert not image.complete
    # the 1x1 tail no longer fits
    assert [m.level for m in image.mips] == [0, 1, 2]


def test_strict_mismatch_raises():
    full = mip_chain_size(4, 4)
    entry = _image_entry(4, 4, full - 1)
    with pytest.raises(MipChainMismatch) as exc:
        reconstruct_image(entry, b"\x00" * (full - 1), strict=True)
    assert exc.value.code == E_MIP_CHAIN
    assert exc.value.context["index"] == 3
    assert exc.value.context["name"] == "atlas/icon.png"


def test_geometry_is_passed_through_verbatim():
    entry = _image_entry(4, 4, 48)
    image = reconstruct_image(entry, b"\x00" * 48)
    assert image.geometry is entry.geometry
    assert image.geometry.canvas_size == (512, 512)
    assert image.geometry.canvas_offset == (32, 64)
    assert (image.width, image.height) == (4, 4)
