"""
Transformer: immutable edit buffer over one file's original content.

Every edit is keyed by offsets into the untouched original text, so edits at
non-overlapping original ranges compose the same way regardless of the order
they were registered in. Operations never mutate a Transformer; they return a
new one with the edit appended.

Edit semantics:
- Insertions at the same offset are emitted in registration order
  (insert_at), or ahead of earlier ones (prepend_at).
- Removals may overlap each other; the union is removed.
- Insertions strictly inside a removed or overwritten range are dropped,
  insertions on its boundary are kept.
- Overwrite replacement text follows the insertions placed at its start.
- prepend()/append() text sits outside all offset-keyed edits.
- Text inserted at a position inside an earlier insertion is spliced into
  that insertion.
"""

import bisect
import re
from dataclasses import dataclass
from enum import Enum
from functools import cached_property
from typing import Callable, Dict, List, Optional, Pattern, Tuple, TypeVar, Union

from splicer.exceptions import EditConflictError, TransformRangeError
from .source_map import DecodedMappings, SourceMap

T = TypeVar("T")

Replacement = Union[str, Callable[..., str]]


class EditKind(str, Enum):
    INSERT = "insert"
    REMOVE = "remove"
    OVERWRITE = "overwrite"


class ChunkKind(str, Enum):
    SOURCE = "source"
    INSERT = "insert"
    OVERWRITE = "overwrite"
    INTRO = "intro"
    OUTRO = "outro"


@dataclass(frozen=True)
class Edit:
    """One pending primitive edit, in original-content coordinates."""
    kind: EditKind
    start: int
    end: int
    text: str = ""
    order: int = 0  # Sort key among insertions sharing an offset


@dataclass(frozen=True)
class Chunk:
    """A run of materialized output and the original offset it belongs to."""
    kind: ChunkKind
    text: str
    offset: int
    order: int = 0  # Order of the insertion that produced an INSERT chunk


@dataclass(frozen=True)
class Position:
    """
    An offset of current() expressed in edit coordinates.

    order is set when the position falls inside inserted text; index is then
    the position within that insertion.
    """
    offset: int
    left_biased: bool = False
    order: Optional[int] = None
    index: int = 0


@dataclass(frozen=True)
class Transformer:
    """
    Original text plus a tuple of pending edits.

    The materialized output is computed lazily, once per instance.
    """
    original: str
    edits: Tuple[Edit, ...] = ()
    intro: str = ""
    outro: str = ""

    # ------------------------------------------------------------------
    # Edit registration
    # ------------------------------------------------------------------

    def insert_at(self, offset: int, text: str) -> "Transformer":
        """Insert text at an original offset, after earlier insertions there."""
        self._check_offset(offset)
        order = len(self.edits) + 1
        return self._with_edit(Edit(EditKind.INSERT, offset, offset, text, order))

    def prepend_at(self, offset: int, text: str) -> "Transformer":
        """Insert text at an original offset, before earlier insertions there."""
        self._check_offset(offset)
        order = -(len(self.edits) + 1)
        return self._with_edit(Edit(EditKind.INSERT, offset, offset, text, order))

    def remove(self, start: int, end: int) -> "Transformer":
        """Remove the half-open original range [start, end)."""
        self._check_range(start, end)
        if start == end:
            return self
        return self._with_edit(Edit(EditKind.REMOVE, start, end))

    def overwrite(self, start: int, end: int, text: str) -> "Transformer":
        """Replace the original range [start, end) with text."""
        self._check_range(start, end)
        if start == end:
            raise TransformRangeError(
                f"Cannot overwrite an empty range ({start}, {end})", start, end, len(self.original)
            )
        for edit in self.edits:
            if edit.kind is EditKind.OVERWRITE and start < edit.end and edit.start < end:
                raise EditConflictError(
                    f"Range [{start}, {end}) overlaps overwritten range [{edit.start}, {edit.end})"
                )
        return self._with_edit(Edit(EditKind.OVERWRITE, start, end, text))

    def insert_at_position(self, position: Position, text: str) -> "Transformer":
        """
        Insert text at a position obtained from locate().

        Positions inside inserted text rewrite that insertion's text.
        """
        if position.order is None:
            if position.left_biased:
                return self.prepend_at(position.offset, text)
            return self.insert_at(position.offset, text)

        for index, edit in enumerate(self.edits):
            if edit.kind is EditKind.INSERT and edit.start == position.offset and edit.order == position.order:
                spliced = edit.text[:position.index] + text + edit.text[position.index:]
                edits = self.edits[:index] + (Edit(edit.kind, edit.start, edit.end, spliced, edit.order),) + self.edits[index + 1:]
                return Transformer(self.original, edits, self.intro, self.outro)
        raise EditConflictError(f"No insertion at offset {position.offset} to insert into")

    def append(self, text: str) -> "Transformer":
        return Transformer(self.original, self.edits, self.intro, self.outro + text)

    def prepend(self, text: str) -> "Transformer":
        return Transformer(self.original, self.edits, text + self.intro, self.outro)

    def replace(self, pattern: Union[str, Pattern[str]], replacement: Replacement) -> "Transformer":
        """Overwrite the first match of pattern in the original content."""
        return self._replace(pattern, replacement, first_only=True)

    def replace_all(self, pattern: Union[str, Pattern[str]], replacement: Replacement) -> "Transformer":
        """Overwrite every non-overlapping match of pattern in the original content."""
        return self._replace(pattern, replacement, first_only=False)

    def wrap_with(self, prefix: str, suffix: str) -> "Transformer":
        return self.prepend(prefix).append(suffix)

    # ------------------------------------------------------------------
    # Materialization
    # ------------------------------------------------------------------

    def current(self) -> str:
        """The content with every pending edit applied."""
        return self._current

    def has_changed(self) -> bool:
        """True if at least one edit is pending."""
        return bool(self.edits or self.intro or self.outro)

    def is_empty(self) -> bool:
        return not self._current.strip()

    def slice_current(self, start: int = 0, end: Optional[int] = None) -> str:
        return self._current[start:end]

    def chunks(self) -> Tuple[Chunk, ...]:
        return self._chunks

    @cached_property
    def _current(self) -> str:
        return "".join(chunk.text for chunk in self._chunks)

    @cached_property
    def _chunks(self) -> Tuple[Chunk, ...]:
        original = self.original
        length = len(original)

        removed = [
            (edit.start, edit.end)
            for edit in self.edits
            if edit.kind in (EditKind.REMOVE, EditKind.OVERWRITE)
        ]

        def strictly_removed(offset: int) -> bool:
            return any(start < offset < end for start, end in removed)

        def covered(start: int, end: int) -> bool:
            return any(r_start <= start and end <= r_end for r_start, r_end in removed)

        insertions: Dict[int, List[Tuple[int, str]]] = {}
        replacements: Dict[int, str] = {}
        for edit in self.edits:
            if strictly_removed(edit.start):
                continue
            if edit.kind is EditKind.INSERT:
                insertions.setdefault(edit.start, []).append((edit.order, edit.text))
            elif edit.kind is EditKind.OVERWRITE:
                replacements[edit.start] = edit.text

        cuts = {0, length}
        cuts.update(insertions)
        for start, end in removed:
            cuts.add(start)
            cuts.add(end)
        cuts = sorted(cuts)

        chunks: List[Chunk] = []
        if self.intro:
            chunks.append(Chunk(ChunkKind.INTRO, self.intro, -1))

        for index, cut in enumerate(cuts):
            for order, text in sorted(insertions.get(cut, [])):
                if text:
                    chunks.append(Chunk(ChunkKind.INSERT, text, cut, order))
            if replacements.get(cut):
                chunks.append(Chunk(ChunkKind.OVERWRITE, replacements[cut], cut))
            if index + 1 < len(cuts):
                next_cut = cuts[index + 1]
                if not covered(cut, next_cut):
                    chunks.append(Chunk(ChunkKind.SOURCE, original[cut:next_cut], cut))

        if self.outro:
            chunks.append(Chunk(ChunkKind.OUTRO, self.outro, length + 1))

        return tuple(chunks)

    # ------------------------------------------------------------------
    # Position mapping
    # ------------------------------------------------------------------

    def map_offset(self, original_offset: int) -> int:
        """
        Output offset of an original offset.

        An original offset maps to where its character ends up, after any
        insertions placed at it. Removed offsets map to where the removed
        text used to be.
        """
        self._check_offset(original_offset)
        position = 0
        for chunk in self._chunks:
            if chunk.kind is ChunkKind.SOURCE:
                if chunk.offset <= original_offset < chunk.offset + len(chunk.text):
                    return position + original_offset - chunk.offset
                if chunk.offset + len(chunk.text) > original_offset:
                    return position
            elif chunk.kind is ChunkKind.OUTRO or chunk.offset > original_offset:
                return position
            position += len(chunk.text)
        return position

    def resolve_offset(self, current_offset: int) -> Tuple[int, bool]:
        """
        Map an offset of current() back to original coordinates.

        Returns (original_offset, left_biased). When left_biased is True the
        position sits before the insertions already placed at that offset,
        so new text must go in with prepend_at(); otherwise insert_at().

        Raises:
            EditConflictError: the offset falls inside inserted text
        """
        self._check_current(current_offset)

        position = 0
        previous = None
        for chunk in self._chunks:
            end = position + len(chunk.text)
            if position < current_offset < end:
                if chunk.kind is ChunkKind.SOURCE:
                    return chunk.offset + current_offset - position, False
                raise EditConflictError(f"Offset {current_offset} falls inside inserted text")
            if current_offset == position:
                return self._resolve_boundary(previous, chunk, current_offset)
            previous = chunk
            position = end
        return self._resolve_boundary(previous, None, current_offset)

    def locate(self, current_offset: int) -> Position:
        """
        Map an offset of current() to a Position for insert_at_position().

        Unlike resolve_offset(), offsets inside inserted text, or between two
        insertions at the same original offset, are accepted: they point into
        the inserted text (the earlier insertion, for the in-between case).
        """
        self._check_current(current_offset)

        position = 0
        previous = None
        for chunk in self._chunks:
            end = position + len(chunk.text)
            if chunk.kind is ChunkKind.INSERT:
                if position < current_offset < end:
                    return Position(chunk.offset, order=chunk.order, index=current_offset - position)
                if (
                    current_offset == position and previous is not None
                    and previous.kind is ChunkKind.INSERT and previous.offset == chunk.offset
                ):
                    return Position(previous.offset, order=previous.order, index=len(previous.text))
            if end > current_offset:
                break
            previous = chunk
            position = end

        offset, left_biased = self.resolve_offset(current_offset)
        return Position(offset, left_biased)

    def resolve_range(self, start: int, end: int) -> Tuple[int, int]:
        """
        Map a range of current() back to an original range.

        Raises:
            EditConflictError: the range covers inserted text
        """
        if not 0 <= start <= end <= len(self._current):
            raise TransformRangeError(
                f"Range ({start}, {end}) is outside the current content (0-{len(self._current)})",
                start, end, len(self._current)
            )
        if start == end:
            offset, _ = self.resolve_offset(start)
            return offset, offset

        original_start = original_end = None
        position = 0
        for chunk in self._chunks:
            chunk_end = position + len(chunk.text)
            low, high = max(position, start), min(chunk_end, end)
            if low < high:
                if chunk.kind is not ChunkKind.SOURCE:
                    raise EditConflictError(
                        f"Range [{start}, {end}) covers text inserted by an earlier edit"
                    )
                if original_start is None:
                    original_start = chunk.offset + low - position
                original_end = chunk.offset + high - position
            position = chunk_end
        return original_start, original_end

    def _resolve_boundary(self, before: Optional[Chunk], after: Optional[Chunk], offset: int) -> Tuple[int, bool]:
        if before is not None and before.kind is ChunkKind.SOURCE:
            return before.offset + len(before.text), True
        if after is not None and after.kind is ChunkKind.SOURCE:
            return after.offset, False
        if (
            before is not None and after is not None
            and before.kind is ChunkKind.INSERT and after.kind is ChunkKind.INSERT
            and before.offset == after.offset
        ):
            raise EditConflictError(f"Offset {offset} falls between two insertions at the same position")
        if after is not None and after.kind is ChunkKind.INSERT:
            return after.offset, True
        if before is not None and before.kind is ChunkKind.INSERT:
            return before.offset, False
        if before is None and after is None:
            return 0, False
        raise EditConflictError(f"Offset {offset} cannot be expressed in original coordinates")

    # ------------------------------------------------------------------
    # Source maps
    # ------------------------------------------------------------------

    def generate_decoded_map(self, hires: bool = False) -> DecodedMappings:
        """
        Segments per generated line, attributing retained original text.

        A segment is emitted at the start of every retained chunk and at every
        generated line start inside one; with hires, at every retained character.
        """
        line_starts = [0] + [match.end() for match in re.finditer("\n", self.original)]
        decoded: DecodedMappings = [[]]
        generated_column = 0

        for chunk in self._chunks:
            parts = chunk.text.split("\n")
            if chunk.kind is not ChunkKind.SOURCE:
                for index, part in enumerate(parts):
                    if index:
                        decoded.append([])
                        generated_column = 0
                    generated_column += len(part)
                continue

            original_line = bisect.bisect_right(line_starts, chunk.offset) - 1
            original_column = chunk.offset - line_starts[original_line]
            for index, part in enumerate(parts):
                if index:
                    decoded.append([])
                    generated_column = 0
                    original_line += 1
                    original_column = 0
                if hires:
                    for step in range(len(part)):
                        decoded[-1].append((generated_column + step, 0, original_line, original_column + step))
                elif index == 0 or part:
                    decoded[-1].append((generated_column, 0, original_line, original_column))
                generated_column += len(part)
                original_column += len(part)

        return decoded

    def generate_map(
        self,
        source: Optional[str] = None,
        file: Optional[str] = None,
        include_content: bool = False,
        hires: bool = False,
    ) -> SourceMap:
        """Version 3 source map from the pending edits and the original content."""
        return SourceMap.from_decoded(
            self.generate_decoded_map(hires=hires),
            source=source,
            file=file,
            content=self.original if include_content else None,
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _with_edit(self, edit: Edit) -> "Transformer":
        return Transformer(self.original, self.edits + (edit,), self.intro, self.outro)

    def _check_offset(self, offset: int) -> None:
        length = len(self.original)
        if not isinstance(offset, int) or isinstance(offset, bool) or not 0 <= offset <= length:
            raise TransformRangeError(
                f"Offset {offset!r} is outside the original content (0-{length})", offset, offset, length
            )

    def _check_current(self, offset: int) -> None:
        if offset < 0 or offset > len(self._current):
            raise TransformRangeError(
                f"Offset {offset} is outside the current content (0-{len(self._current)})",
                offset, offset, len(self._current)
            )

    def _check_range(self, start: int, end: int) -> None:
        length = len(self.original)
        self._check_offset(start)
        self._check_offset(end)
        if start > end:
            raise TransformRangeError(f"Range start {start} is after end {end}", start, end, length)

    def _replace(self, pattern: Union[str, Pattern[str]], replacement: Replacement, first_only: bool) -> "Transformer":
        transformer = self
        for start, end, text in _find_replacements(self.original, pattern, replacement):
            if start == end:
                transformer = transformer.insert_at(start, text)
            else:
                transformer = transformer.overwrite(start, end, text)
            if first_only:
                break
        return transformer


def _find_replacements(original: str, pattern: Union[str, Pattern[str]], replacement: Replacement):
    if isinstance(pattern, str):
        if not pattern:
            raise ValueError("Cannot replace an empty string")
        start = original.find(pattern)
        while start != -1:
            end = start + len(pattern)
            text = replacement(pattern) if callable(replacement) else replacement
            yield start, end, text
            start = original.find(pattern, end)
        return

    for match in pattern.finditer(original):
        text = replacement(match) if callable(replacement) else match.expand(replacement)
        yield match.start(), match.end(), text


# ----------------------------------------------------------------------
# Functional API
# ----------------------------------------------------------------------

def create_transformer(content: str) -> Transformer:
    """Wrap original content with zero pending edits."""
    return Transformer(content)


def insert_at(transformer: Transformer, offset: int, text: str) -> Transformer:
    return transformer.insert_at(offset, text)


def prepend_at(transformer: Transformer, offset: int, text: str) -> Transformer:
    return transformer.prepend_at(offset, text)


def remove(transformer: Transformer, start: int, end: int) -> Transformer:
    return transformer.remove(start, end)


def overwrite(transformer: Transformer, start: int, end: int, text: str) -> Transformer:
    return transformer.overwrite(start, end, text)


def append(transformer: Transformer, text: str) -> Transformer:
    return transformer.append(text)


def prepend(transformer: Transformer, text: str) -> Transformer:
    return transformer.prepend(text)


def replace(transformer: Transformer, pattern: Union[str, Pattern[str]], replacement: Replacement) -> Transformer:
    return transformer.replace(pattern, replacement)


def replace_all(transformer: Transformer, pattern: Union[str, Pattern[str]], replacement: Replacement) -> Transformer:
    return transformer.replace_all(pattern, replacement)


def wrap_with(transformer: Transformer, prefix: str, suffix: str) -> Transformer:
    return transformer.wrap_with(prefix, suffix)


def pipe(value: T, *operations: Callable[[T], T]) -> T:
    """Thread value through operations left to right."""
    for operation in operations:
        value = operation(value)
    return value
