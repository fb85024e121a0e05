"""
Source map encoding.

Base64 VLQ codec and the version 3 source map model produced by
Transformer.generate_map(). Segments are (generated_column, source_index,
original_line, original_column), all zero-based.
"""

import base64
import json
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

Segment = Tuple[int, int, int, int]
DecodedMappings = List[List[Segment]]

_BASE64_CHARS = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/"
_BASE64_VALUES = {char: index for index, char in enumerate(_BASE64_CHARS)}

_VLQ_SHIFT = 5
_VLQ_CONTINUATION = 1 << _VLQ_SHIFT
_VLQ_MASK = _VLQ_CONTINUATION - 1


def encode_vlq(value: int) -> str:
    """Encode one signed integer as Base64 VLQ."""
    # Sign goes in the least significant bit
    vlq = (-value << 1) | 1 if value < 0 else value << 1
    encoded = ""
    while True:
        digit = vlq & _VLQ_MASK
        vlq >>= _VLQ_SHIFT
        if vlq:
            digit |= _VLQ_CONTINUATION
        encoded += _BASE64_CHARS[digit]
        if not vlq:
            return encoded


def decode_vlq(encoded: str) -> List[int]:
    """Decode a run of Base64 VLQ digits into the integers it holds."""
    values = []
    shift = 0
    value = 0
    for char in encoded:
        if char not in _BASE64_VALUES:
            raise ValueError(f"Invalid base64 VLQ character: {char!r}")
        digit = _BASE64_VALUES[char]
        value += (digit & _VLQ_MASK) << shift
        if digit & _VLQ_CONTINUATION:
            shift += _VLQ_SHIFT
            continue
        negative = value & 1
        value >>= 1
        values.append(-value if negative else value)
        shift = 0
        value = 0
    if shift:
        raise ValueError("Truncated base64 VLQ sequence")
    return values


def encode_mappings(decoded: DecodedMappings) -> str:
    """
    Encode decoded segments into the `mappings` string.

    Generated columns are relative within a line; source index, original
    line and original column are relative across the whole map.
    """
    previous_source = 0
    previous_line = 0
    previous_column = 0
    lines = []

    for segments in decoded:
        previous_generated = 0
        encoded_segments = []
        for generated_column, source, line, column in segments:
            encoded_segments.append(
                encode_vlq(generated_column - previous_generated)
                + encode_vlq(source - previous_source)
                + encode_vlq(line - previous_line)
                + encode_vlq(column - previous_column)
            )
            previous_generated = generated_column
            previous_source = source
            previous_line = line
            previous_column = column
        lines.append(",".join(encoded_segments))

    return ";".join(lines)


def decode_mappings(mappings: str) -> DecodedMappings:
    """Inverse of encode_mappings()."""
    previous_source = 0
    previous_line = 0
    previous_column = 0
    decoded: DecodedMappings = []

    for encoded_line in mappings.split(";"):
        previous_generated = 0
        segments: List[Segment] = []
        for encoded_segment in filter(None, encoded_line.split(",")):
            fields = decode_vlq(encoded_segment)
            if len(fields) != 4:
                raise ValueError(f"Unsupported segment with {len(fields)} fields: {encoded_segment}")
            previous_generated += fields[0]
            previous_source += fields[1]
            previous_line += fields[2]
            previous_column += fields[3]
            segments.append((previous_generated, previous_source, previous_line, previous_column))
        decoded.append(segments)

    return decoded


class SourceMap(BaseModel):
    """
    Version 3 source map attributing output positions to one source file.
    """
    model_config = ConfigDict(populate_by_name=True)

    version: int = 3
    file: Optional[str] = None
    sources: List[Optional[str]] = Field(default_factory=list)
    sources_content: Optional[List[Optional[str]]] = Field(default=None, alias="sourcesContent")
    names: List[str] = Field(default_factory=list)
    mappings: str = ""

    @classmethod
    def from_decoded(
        cls,
        decoded: DecodedMappings,
        source: Optional[str] = None,
        file: Optional[str] = None,
        content: Optional[str] = None,
    ) -> "SourceMap":
        return cls(
            file=file,
            sources=[source],
            sources_content=[content] if content is not None else None,
            mappings=encode_mappings(decoded),
        )

    def decoded(self) -> DecodedMappings:
        return decode_mappings(self.mappings)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(",", ":"))

    def to_url(self) -> str:
        """Inline form for a sourceMappingURL comment."""
        payload = base64.b64encode(self.to_json().encode("utf-8")).decode("ascii")
        return f"data:application/json;charset=utf-8;base64,{payload}"

    def __str__(self) -> str:
        return self.to_json()
