"""Binary layout constants for the bigblob container."""

from __future__ import annotations

# File header: a single u32 pointing at the TOC.
TOC_OFFSET_SIZE = 4
DATA_REGION_START = TOC_OFFSET_SIZE

# TOC
ENTRY_COUNT_SIZE = 4
# file_type(4) size_decompressed(4) size(4) geometry(32) offset(4) name_len(4),
# followed by name_len name bytes
ENTRY_RECORD_SIZE = 52
GEOMETRY_SIZE = 32  # canvas_size(8) canvas_offset(8) crop_size(8) width(4) height(4)

U32_MAX = 0xFFFFFFFF

# BC7
BC7_BLOCK_DIM = 4
BC7_BLOCK_BYTES = 16

# DDS export
DDS_MAGIC = b"DDS "
DDS_HEADER_SIZE = 124
DDS_DX10_HEADER_SIZE = 20
DDS_TOTAL_HEADER_SIZE = len(DDS_MAGIC) + DDS_HEADER_SIZE + DDS_DX10_HEADER_SIZE
DXGI_FORMAT_BC7_UNORM = 98
