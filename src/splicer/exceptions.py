# Custom exceptions for Splicer

class SplicerError(Exception):
    """Base exception for all application-specific errors."""
    pass


class InjectionValidationError(SplicerError):
    """Raised when an injection request is malformed."""
    pass


class FileAccessError(SplicerError):
    """Raised when a target file cannot be edited."""
    def __init__(self, file_path: str, message: str):
        self.file_path = file_path
        super().__init__(message)


class MissingFileError(FileAccessError):
    """Raised when the target file does not exist."""
    def __init__(self, file_path: str):
        super().__init__(file_path, f"File does not exist: {file_path}")


class BinaryFileError(FileAccessError):
    """Raised when the target file is classified as binary."""
    def __init__(self, file_path: str):
        super().__init__(file_path, f"Cannot inject into binary file: {file_path}")


class ContentError(SplicerError):
    """Raised when a request resolves against content that does not fit it."""
    pass


class LineNotFoundError(ContentError):
    """Raised when a line number is past the end of the content."""
    def __init__(self, line: int, total_lines: int, based: str):
        self.line = line
        self.total_lines = total_lines
        self.based = based
        super().__init__(
            f"Line {line} does not exist (file has {total_lines} lines, {based})"
        )


class ColumnOutOfRangeError(ContentError):
    """Raised when a column is past the end of its line."""
    def __init__(self, line: int, column: int, line_length: int, based: str):
        self.line = line
        self.column = column
        self.line_length = line_length
        self.based = based
        super().__init__(
            f"Column {column} does not exist in line {line} "
            f"(line has {line_length} characters, {based})"
        )


class ContentMismatchError(ContentError):
    """Raised in strict mode when the content to revert is not where it should be."""
    def __init__(self, where: str, expected: str, actual: str):
        self.where = where
        self.expected = expected
        self.actual = actual
        super().__init__(
            f'Content mismatch {where}. Expected: "{expected}", Found: "{actual}"'
        )


class NothingToRevertError(ContentError):
    """Raised in strict mode when no injected content is found at all."""
    def __init__(self, message: str = "No injected content found to remove"):
        super().__init__(message)


class AnchorNotFoundError(ContentError):
    """Raised in strict mode when no anchor occurrence exists for an insert."""
    def __init__(self, targets: list):
        self.targets = list(targets)
        shown = ", ".join(f'"{t}"' for t in self.targets)
        super().__init__(f"Anchor not found: {shown}")


class TransformRangeError(SplicerError, ValueError):
    """Raised when a transformer offset or range falls outside the original content."""
    def __init__(self, message: str, start: int, end: int, length: int):
        self.start = start
        self.end = end
        self.length = length
        super().__init__(message)


class EditConflictError(SplicerError):
    """Raised when an edit cannot be expressed against the pending edits."""
    pass


class ConfigError(SplicerError):
    """Raised for configuration-related problems."""
    pass
