"""
Suppression comments above compiler error lines.

Error references come from a saved `path:line` list or from saved tsc
output. Each referenced line gets one comment line inserted above it; the
batch cascade handles the shift from earlier insertions.
"""

import re
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from splicer.config import EXPECT_ERROR_COMMENT
from splicer.logging_config import logger
from splicer.schemas import InjectionLocation, InjectionResult, LineReference, SingleInjection

from .facade import OptionsLike, get_facade

# "12  src/a.ts:40" (counted list) or "src/a.ts:40"
_LINES_ENTRY = re.compile(r"^\s*(?:\d+\s+)?(?P<path>.+?):(?P<line>\d+)\s*$")

# "src/a.ts(40,7): error TS2322: ..."
_TSC_ERROR = re.compile(r"^(.+?)\((\d+),(\d+)\): error TS\d+: ")


def parse_lines_file(text: str) -> List[LineReference]:
    """Parse `path:line` entries, optionally prefixed with a count column."""
    refs = []
    for raw in text.splitlines():
        match = _LINES_ENTRY.match(raw)
        if not match:
            if raw.strip():
                logger.warning(f"Skipping unparsable line: {raw!r}")
            continue
        line_number = int(match.group("line"))
        if line_number > 0:
            refs.append(LineReference(file_path=match.group("path").strip(), line_number=line_number))
    return refs


def parse_tsc_output(text: str) -> List[LineReference]:
    """Parse error lines from tsc output. Backslashes become forward slashes."""
    refs = []
    for raw in text.splitlines():
        match = _TSC_ERROR.match(raw)
        if not match:
            continue
        line_number = int(match.group(2))
        if line_number > 0:
            refs.append(LineReference(file_path=match.group(1).replace("\\", "/"), line_number=line_number))
    return refs


def is_within(file_path: str, directories: Optional[Sequence[str]]) -> bool:
    """True when file_path lies under any of directories (always true for none)."""
    if not directories:
        return True
    resolved = Path(file_path).resolve()
    for directory in directories:
        try:
            resolved.relative_to(Path(directory).resolve())
            return True
        except ValueError:
            continue
    return False


def build_expect_error_injections(
    refs: Iterable[LineReference],
    comment: str = EXPECT_ERROR_COMMENT,
) -> List[SingleInjection]:
    """
    One request per distinct (file, line), inserting comment above the line.

    Lines are sorted per file and shifted by the number of comments placed
    above them already, matching what the batch expects for sequential
    inserts.
    """
    by_file = {}
    for ref in refs:
        by_file.setdefault(ref.file_path, set()).add(ref.line_number)

    injections = []
    for file_path, lines in by_file.items():
        for shift, line in enumerate(sorted(lines)):
            injections.append(SingleInjection(
                file_path=file_path,
                content=comment + "\n",
                location=InjectionLocation(line=line + shift, column=1),
            ))
    return injections


def inject_expect_errors(
    refs: Iterable[LineReference],
    comment: str = EXPECT_ERROR_COMMENT,
    options: OptionsLike = None,
    directories: Optional[Sequence[str]] = None,
) -> List[InjectionResult]:
    """Insert comment above every referenced line, filtered to directories."""
    selected = [ref for ref in refs if is_within(ref.file_path, directories)]
    injections = build_expect_error_injections(selected, comment)
    logger.info(f"Placing {len(injections)} comment(s) across {len({i.file_path for i in injections})} file(s)")
    return get_facade().inject_multiple(injections, options)
