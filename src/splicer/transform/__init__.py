"""
Immutable text transformer keyed by original-content offsets, and the
source maps it produces.
"""

from .source_map import SourceMap, decode_mappings, decode_vlq, encode_mappings, encode_vlq
from .transformer import (
    Chunk,
    ChunkKind,
    Edit,
    EditKind,
    Position,
    Transformer,
    append,
    create_transformer,
    insert_at,
    overwrite,
    pipe,
    prepend,
    prepend_at,
    remove,
    replace,
    replace_all,
    wrap_with,
)

__all__ = [
    "Transformer",
    "Edit",
    "EditKind",
    "Position",
    "Chunk",
    "ChunkKind",
    "create_transformer",
    "insert_at",
    "prepend_at",
    "remove",
    "overwrite",
    "append",
    "prepend",
    "replace",
    "replace_all",
    "wrap_with",
    "pipe",
    "SourceMap",
    "encode_vlq",
    "decode_vlq",
    "encode_mappings",
    "decode_mappings",
]
