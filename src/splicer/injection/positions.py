"""
Coordinate resolution for injection requests.

Pure functions over file content: line/column to offset, anchor search,
revert ranges, and the ordering rules edits are applied in.
"""

import re
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Tuple, TypeVar, Union

from splicer.exceptions import (
    ColumnOutOfRangeError,
    ContentMismatchError,
    LineNotFoundError,
    NothingToRevertError,
)
from splicer.schemas import AnchorMode, ArrayBeforeAfter, Based

T = TypeVar("T")

_LINE_BREAK = re.compile(r"\r?\n")


@dataclass(frozen=True)
class AnchorMatch:
    """An insertion site next to one occurrence of an anchor."""
    offset: int
    target: str


def count_newlines(text: str) -> int:
    return text.count("\n")


def normalize_content(content: Union[str, List[str]]) -> str:
    """A list of strings is joined with newlines; a string is used as-is."""
    if isinstance(content, list):
        return "\n".join(content)
    return content


def normalize_targets(
    target: Union[str, List[str]],
    array_before_after: ArrayBeforeAfter = ArrayBeforeAfter.MULTILINE,
) -> List[str]:
    """Expand an anchor into the literal strings to search for."""
    if isinstance(target, str):
        return [target]
    if ArrayBeforeAfter(array_before_after) is ArrayBeforeAfter.MULTILINE:
        return ["\n".join(target)]
    return list(target)


def application_order(items: Iterable[T], offset: Callable[[T], int], revert: bool) -> List[T]:
    """
    Order edits for application.

    Insertions go rightmost first (descending offset), removals leftmost first
    (ascending offset). Equal offsets keep their incoming order. The
    transformer is order-independent for non-overlapping edits; this order
    fixes the sequence of reported results and match counts.
    """
    return sorted(items, key=offset, reverse=not revert)


def line_column_offset(
    content: str,
    line: int,
    column: Optional[int] = None,
    based: Based = Based.ONE,
) -> int:
    """
    Absolute offset of a line/column pair.

    Without a column, the offset is the end of the line (before its line
    break). When the content contains any CRLF, every line before the target
    is counted as two break characters wide.

    Raises:
        LineNotFoundError: line past the end of content
        ColumnOutOfRangeError: column past the end of the line
    """
    based = Based(based)
    lines = _LINE_BREAK.split(content)
    zero_line = based.to_zero_based(line)

    if zero_line < 0 or zero_line >= len(lines):
        raise LineNotFoundError(line, len(lines), based.value)

    break_width = 2 if "\r\n" in content else 1
    offset = sum(len(text) + break_width for text in lines[:zero_line])

    target_line = lines[zero_line]
    if column is None:
        return offset + len(target_line)

    zero_column = based.to_zero_based(column)
    if zero_column > len(target_line):
        raise ColumnOutOfRangeError(line, column, len(target_line), based.value)
    return offset + zero_column


def find_anchor_offsets(content: str, targets: List[str], mode: AnchorMode) -> List[AnchorMatch]:
    """
    Every occurrence of every target, scanning left to right and advancing
    past each match. Returned in insertion order.
    """
    mode = AnchorMode(mode)
    matches = []
    for target in targets:
        for index in _occurrences(content, target):
            offset = index if mode is AnchorMode.BEFORE else index + len(target)
            matches.append(AnchorMatch(offset, target))
    return application_order(matches, lambda match: match.offset, revert=False)


def location_removal_range(
    content: str,
    line: int,
    column: Optional[int],
    expected: str,
    based: Based = Based.ONE,
    strict: bool = False,
) -> Optional[Tuple[int, int]]:
    """
    Range holding previously injected content at a line/column.

    Returns None in non-strict mode when the content there differs.

    Raises:
        ContentMismatchError: strict mode and the content differs
    """
    start = line_column_offset(content, line, column, based)
    end = start + len(expected)
    actual = content[start:end]

    if actual != expected:
        if not strict:
            return None
        where = f"at line {line}"
        if column is not None:
            where += f", column {column}"
        raise ContentMismatchError(f"{where} ({Based(based).value})", expected, actual)

    return start, end


def anchor_removal_ranges(
    content: str,
    targets: List[str],
    injected: str,
    mode: AnchorMode,
    strict: bool = False,
) -> Optional[List[Tuple[int, int]]]:
    """
    Ranges of injected content found immediately before/after each anchor
    occurrence, in removal order.

    Occurrences without the injected content next to them are skipped in
    non-strict mode. Returns None when nothing is found (non-strict).

    Raises:
        ContentMismatchError: strict mode and an occurrence lacks the content
        NothingToRevertError: strict mode and no occurrence has it
    """
    mode = AnchorMode(mode)
    ranges = []

    for target in targets:
        for index in _occurrences(content, target):
            if mode is AnchorMode.BEFORE:
                end = index
                start = end - len(injected)
            else:
                start = index + len(target)
                end = start + len(injected)

            if start < 0 or end > len(content):
                if strict:
                    raise NothingToRevertError(f'Injected content not found {mode.value} target "{target}"')
                continue

            actual = content[start:end]
            if actual == injected:
                ranges.append((start, end))
            elif strict:
                raise ContentMismatchError(f'near target "{target}"', injected, actual)

    if not ranges:
        if strict:
            raise NothingToRevertError()
        return None

    return application_order(ranges, lambda span: span[0], revert=True)


def _occurrences(content: str, target: str):
    """Start indexes of non-overlapping occurrences of target."""
    if not target:
        return
    index = content.find(target)
    while index != -1:
        yield index
        index = content.find(target, index + len(target))
