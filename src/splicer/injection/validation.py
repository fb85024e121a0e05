"""
Request validation. Pure, no file access.

Each check returns an error message or None.
"""

from typing import List, Optional, Sequence

from splicer.schemas import Based, SingleInjection, ValidationIssue


def validate_line_column(line: int, column: Optional[int], based: Based = Based.ONE) -> Optional[str]:
    """Line (and column, when given) must be integers at or above the mode's minimum."""
    based = Based(based)
    kind = "non-negative" if based is Based.ZERO else "positive"

    if not _is_integer(line) or line < based.minimum:
        return f"Line number must be a {kind} integer ({based.value})"

    if column is not None and (not _is_integer(column) or column < based.minimum):
        return f"Column number must be a {kind} integer when provided ({based.value})"

    return None


def validate_positioning(injection: SingleInjection) -> Optional[str]:
    """Exactly one of location, inject_before, inject_after must be set."""
    methods = injection.positioning_methods()

    if not methods:
        return "Must specify exactly one of: location, injectBefore, or injectAfter"

    if len(methods) > 1:
        return f"Cannot use multiple positioning methods. Found: {', '.join(methods)}"

    return None


def validate_injection(injection: SingleInjection, based: Based = Based.ONE) -> Optional[str]:
    """Validate a single injection request."""
    if not injection.file_path:
        return "File path is required"

    content = injection.content
    if not content:
        return "Content is required"
    if isinstance(content, list) and not all(isinstance(item, str) for item in content):
        return "All content array items must be strings"

    positioning_error = validate_positioning(injection)
    if positioning_error:
        return positioning_error

    if injection.location:
        return validate_line_column(injection.location.line, injection.location.column, based)

    for name, target in (("injectBefore", injection.inject_before), ("injectAfter", injection.inject_after)):
        if isinstance(target, list):
            if not all(isinstance(item, str) for item in target):
                return f"All {name} array items must be strings"
            if not any(target):
                return f"{name} array cannot be empty"

    return None


def validate_multiple_injections(
    injections: Sequence[SingleInjection],
    based: Based = Based.ONE,
) -> List[ValidationIssue]:
    """Validate a batch; one issue per invalid request, keyed by its index."""
    issues = []
    for index, injection in enumerate(injections):
        error = validate_injection(injection, based)
        if error:
            issues.append(ValidationIssue(index=index, error=error))
    return issues


def _is_integer(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)
