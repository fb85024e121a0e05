"""
Injection package: positional and anchor-based edits to text files.

Requests are validated, resolved to offsets in the original content and
applied through one Transformer per file, so they can be reverted and
mapped back to the original.
"""

from .facade import (
    InjectionFacade,
    create_injection,
    get_facade,
    inject_at_location,
    inject_multiple,
    preview_injection,
    preview_multiple_injections,
    preview_multiple_reverts,
    preview_revert,
)
from .expect_error import (
    build_expect_error_injections,
    inject_expect_errors,
    is_within,
    parse_lines_file,
    parse_tsc_output,
)
from .filesystem import LocalFileSystem, TransformResult, read_and_transform
from .positions import (
    AnchorMatch,
    application_order,
    find_anchor_offsets,
    line_column_offset,
)
from .validation import validate_injection, validate_multiple_injections

__all__ = [
    # Main facade
    "InjectionFacade",
    "get_facade",

    # Operations
    "inject_at_location",
    "inject_multiple",
    "preview_injection",
    "preview_multiple_injections",
    "preview_revert",
    "preview_multiple_reverts",
    "create_injection",
    "validate_injection",
    "validate_multiple_injections",

    # Expect-error comments
    "parse_lines_file",
    "parse_tsc_output",
    "is_within",
    "build_expect_error_injections",
    "inject_expect_errors",

    # Components
    "LocalFileSystem",
    "TransformResult",
    "read_and_transform",
    "AnchorMatch",
    "application_order",
    "find_anchor_offsets",
    "line_column_offset",
]
