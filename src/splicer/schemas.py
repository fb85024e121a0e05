from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictInt
from pydantic.alias_generators import to_camel


class Based(str, Enum):
    """Indexing convention for line and column numbers."""
    ZERO = "0-based"
    ONE = "1-based"

    @property
    def minimum(self) -> int:
        return 0 if self is Based.ZERO else 1

    def to_zero_based(self, value: int) -> int:
        return value if self is Based.ZERO else value - 1


class ArrayBeforeAfter(str, Enum):
    """How an anchor supplied as a list of strings is matched."""
    MULTILINE = "array-means-multiline"  # join into one multi-line anchor
    EACH_ELEMENT = "append-to-each-element"  # every element is its own anchor


class AnchorMode(str, Enum):
    BEFORE = "before"
    AFTER = "after"


class _Model(BaseModel):
    # Accept both snake_case and the camelCase keys used in request files
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class InjectionLocation(_Model):
    """
    Line/column coordinate of an injection.
    Without a column the insertion point is the end of the line.
    Booleans and numeric strings are rejected, not coerced.
    """
    line: StrictInt
    column: Optional[StrictInt] = None


class SingleInjection(_Model):
    """
    One edit request: content plus exactly one positioning method.
    """
    file_path: str
    content: Union[str, List[str]]
    location: Optional[InjectionLocation] = None
    inject_before: Optional[Union[str, List[str]]] = None
    inject_after: Optional[Union[str, List[str]]] = None

    def positioning_methods(self) -> List[str]:
        """Names of the positioning methods set on this request."""
        methods = []
        if self.location:
            methods.append("location")
        if self.inject_before:
            methods.append("injectBefore")
        if self.inject_after:
            methods.append("injectAfter")
        return methods

    @property
    def anchor(self) -> Optional[Union[str, List[str]]]:
        return self.inject_before or self.inject_after

    @property
    def anchor_mode(self) -> Optional[AnchorMode]:
        if self.inject_before:
            return AnchorMode.BEFORE
        if self.inject_after:
            return AnchorMode.AFTER
        return None


class InjectionResult(_Model):
    """
    Outcome of one injection request.
    matches_found is 1 at most for location requests.
    """
    success: bool
    file_path: str
    location: Optional[InjectionLocation] = None
    inject_before: Optional[Union[str, List[str]]] = None
    inject_after: Optional[Union[str, List[str]]] = None
    error: Optional[str] = None
    code: Optional[str] = None  # Materialized content when log_code is set
    has_changed: Optional[bool] = None
    matches_found: Optional[int] = None
    source_map: Optional[Dict[str, Any]] = None


class InjectionOptions(_Model):
    """
    Options shared by single and batch injection.
    """
    based: Based = Based.ONE
    revert: bool = False
    strict: bool = False
    write_to_file: bool = True
    log_code: bool = False
    generate_source_map: bool = False
    source_map_path: Optional[str] = None
    array_before_after: ArrayBeforeAfter = ArrayBeforeAfter.MULTILINE
    max_workers: int = Field(default=1, ge=1)


class ValidationIssue(_Model):
    """A validation error for the request at index in a batch."""
    index: int
    error: str


class LineReference(_Model):
    """A file/line pair, as found in reference lists and compiler output."""
    file_path: str
    line_number: int
