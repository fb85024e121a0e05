"""
InjectionFacade: resolve injection requests and apply them through a Transformer.

Single requests resolve against the file as read. Batches are grouped per
file; each file is read once, edited through one transformer and written
once. Failures never cross file boundaries.
"""

from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from splicer.config import SOURCE_MAP_SUFFIX
from splicer.exceptions import (
    AnchorNotFoundError,
    BinaryFileError,
    InjectionValidationError,
    MissingFileError,
    SplicerError,
)
from splicer.logging_config import logger
from splicer.schemas import (
    InjectionLocation,
    InjectionOptions,
    InjectionResult,
    SingleInjection,
    ValidationIssue,
)
from splicer.transform import Transformer, create_transformer

from .filesystem import LocalFileSystem, read_and_transform
from .positions import (
    anchor_removal_ranges,
    application_order,
    count_newlines,
    find_anchor_offsets,
    line_column_offset,
    location_removal_range,
    normalize_content,
    normalize_targets,
)
from .validation import validate_injection, validate_multiple_injections

OptionsLike = Union[InjectionOptions, Mapping[str, Any], None]


@dataclass(frozen=True)
class _PlannedEdit:
    """A location request resolved against the original buffer."""
    injection: SingleInjection
    start: int
    end: int
    content: str


class InjectionFacade:
    """
    Main facade for injection operations.

    Pipeline per request:
    1. Validate request shape (validation)
    2. Check the file exists and is text (filesystem)
    3. Resolve offsets (positions)
    4. Insert or remove (Transformer)
    5. Write content and optional position map (filesystem)
    """

    def __init__(self, fs: Optional[LocalFileSystem] = None, defaults: OptionsLike = None):
        """
        Initialize injection facade.

        Args:
            fs: File access; defaults to the local disk
            defaults: Options used when a call does not override them
        """
        self.fs = fs or LocalFileSystem()
        self.defaults = _coerce_options(defaults, InjectionOptions())

    # ------------------------------------------------------------------
    # Single request
    # ------------------------------------------------------------------

    def inject_at_location(self, injection: SingleInjection, options: OptionsLike = None) -> InjectionResult:
        """
        Inject (or revert) one request in one file.

        Never raises: every failure comes back as an unsuccessful result.
        """
        opts = self.resolve_options(options)
        file_path = injection.file_path

        try:
            error = validate_injection(injection, opts.based)
            if error:
                return _result(False, injection, error=error)

            self._check_file(file_path)

            content = normalize_content(injection.content)
            matches = 0

            def transform(transformer: Transformer) -> Transformer:
                nonlocal matches
                try:
                    transformer, matches = self._apply_request(transformer, injection, content, opts)
                except SplicerError as e:
                    operation = "Revert" if opts.revert else "Injection"
                    raise _Failed(f"{operation} failed: {e}") from e
                return transformer

            outcome = read_and_transform(self.fs, file_path, transform)
            has_changed = outcome.code != outcome.transformer.original

            if has_changed and opts.write_to_file:
                self.fs.write_file(file_path, outcome.code)
                logger.info(f"{'Reverted' if opts.revert else 'Injected'} {matches} edit(s) in {file_path}")
            elif not has_changed:
                logger.debug(f"No changes for {file_path}")

            source_map = None
            if opts.generate_source_map:
                map_path = opts.source_map_path or f"{file_path}{SOURCE_MAP_SUFFIX}"
                source_map = self._emit_map(outcome.transformer, file_path, map_path, opts)

            return _result(
                True,
                injection,
                code=outcome.code if opts.log_code else None,
                has_changed=has_changed,
                matches_found=matches,
                source_map=source_map,
            )

        except Exception as e:
            logger.warning(f"Injection into {file_path} failed: {e}")
            return _result(False, injection, error=str(e))

    # ------------------------------------------------------------------
    # Batch
    # ------------------------------------------------------------------

    def inject_multiple(self, injections: Sequence[SingleInjection], options: OptionsLike = None) -> List[InjectionResult]:
        """
        Inject (or revert) many requests across many files.

        Location requests in one file are written as if applied one at a
        time: every newline added by an earlier request is subtracted from
        later line numbers, then all are resolved against the original buffer.
        """
        opts = self.resolve_options(options)

        groups: Dict[str, List[SingleInjection]] = {}
        for injection in injections:
            groups.setdefault(injection.file_path, []).append(injection)

        if not groups:
            return []

        group_items = list(groups.items())
        group_results: List[List[InjectionResult]] = [[] for _ in group_items]

        if opts.max_workers > 1 and len(group_items) > 1:
            with ThreadPoolExecutor(max_workers=min(opts.max_workers, len(group_items))) as executor:
                futures = {
                    executor.submit(self._process_file, file_path, file_injections, opts): idx
                    for idx, (file_path, file_injections) in enumerate(group_items)
                }
                for future in as_completed(futures):
                    group_results[futures[future]] = future.result()
        else:
            for idx, (file_path, file_injections) in enumerate(group_items):
                group_results[idx] = self._process_file(file_path, file_injections, opts)

        return [result for results in group_results for result in results]

    def _process_file(
        self,
        file_path: str,
        injections: List[SingleInjection],
        opts: InjectionOptions,
    ) -> List[InjectionResult]:
        """Apply every request for one file; any unexpected error fails the whole file."""
        results: List[InjectionResult] = []

        try:
            valid = []
            for injection in injections:
                error = validate_injection(injection, opts.based)
                if error:
                    results.append(_result(False, injection, error=error))
                else:
                    valid.append(injection)

            if not valid:
                return results

            try:
                self._check_file(file_path)
            except SplicerError as e:
                results.extend(_result(False, injection, error=str(e)) for injection in valid)
                return results

            original = self.fs.read_file(file_path)
            transformer = create_transformer(original)
            # Results in report order, and the subset that succeeded
            ordered: List[InjectionResult] = []
            applied: List[InjectionResult] = []

            # Anchor requests first, each searching the content as edited so far
            for injection in valid:
                if injection.location:
                    continue
                try:
                    transformer, matches = self._apply_request(
                        transformer, injection, normalize_content(injection.content), opts
                    )
                    applied.append(_result(True, injection, has_changed=matches > 0, matches_found=matches))
                    ordered.append(applied[-1])
                except SplicerError as e:
                    ordered.append(_result(False, injection, error=str(e)))

            # Location requests, all resolved against the untouched original
            planned = []
            for injection, resolved in self._plan_locations(original, valid, opts):
                if isinstance(resolved, _PlannedEdit):
                    planned.append(resolved)
                elif resolved is None:
                    applied.append(_result(True, injection, has_changed=False, matches_found=0))
                    ordered.append(applied[-1])
                else:
                    ordered.append(_result(False, injection, error=resolved))

            for edit in application_order(planned, lambda item: item.start, revert=opts.revert):
                if opts.revert:
                    transformer = transformer.remove(edit.start, edit.end)
                else:
                    transformer = transformer.insert_at(edit.start, edit.content)
                applied.append(_result(True, edit.injection, has_changed=True, matches_found=1))
                ordered.append(applied[-1])

            code = transformer.current()
            if opts.log_code:
                for result in applied:
                    result.code = code
            results.extend(ordered)

            if code != original and opts.write_to_file:
                self.fs.write_file(file_path, code)
                logger.info(f"Wrote {len(applied)} request(s) to {file_path}")

            if code != original and opts.generate_source_map:
                map_dir = Path(opts.source_map_path).parent if opts.source_map_path else Path(file_path).parent
                map_path = str(map_dir / f"{Path(file_path).stem}{SOURCE_MAP_SUFFIX}")
                source_map = self._emit_map(transformer, file_path, map_path, opts)
                for result in applied:
                    result.source_map = source_map

            return results

        except Exception as e:
            logger.warning(f"Batch for {file_path} failed: {e}")
            return [_result(False, injection, error=str(e)) for injection in injections]

    def _plan_locations(
        self,
        original: str,
        injections: List[SingleInjection],
        opts: InjectionOptions,
    ) -> List[Tuple[SingleInjection, Union[_PlannedEdit, str, None]]]:
        """
        Resolve location requests against the original buffer, in caller order.

        Each request gets a planned edit, None for a non-strict revert that found
        nothing, or an error message. The newline counter only grows after
        a request is resolved, and only for inserts: removals add no lines.
        Newlines added by anchor requests earlier in the batch are not
        counted; anchor edits are treated as line-count neutral.
        """
        planned = []
        newline_offset = 0

        for injection in injections:
            location = injection.location
            if not location:
                continue

            content = normalize_content(injection.content)
            line = max(opts.based.minimum, location.line - newline_offset)

            try:
                if opts.revert:
                    span = location_removal_range(original, line, location.column, content, opts.based, opts.strict)
                    if span is None:
                        logger.warning(f"{injection.file_path}: nothing to revert at line {line}")
                        resolved = None
                    else:
                        resolved = _PlannedEdit(injection, span[0], span[1], content)
                else:
                    offset = line_column_offset(original, line, location.column, opts.based)
                    resolved = _PlannedEdit(injection, offset, offset, content)
                    newline_offset += count_newlines(content)
                logger.debug(f"{injection.file_path}: line {location.line} resolved to line {line}")
            except SplicerError as e:
                resolved = str(e)

            planned.append((injection, resolved))

        return planned

    # ------------------------------------------------------------------
    # Shared steps
    # ------------------------------------------------------------------

    def _apply_request(
        self,
        transformer: Transformer,
        injection: SingleInjection,
        content: str,
        opts: InjectionOptions,
    ) -> Tuple[Transformer, int]:
        """
        Apply one request to transformer; returns it with the match count.

        Positions are searched in transformer.current() and mapped back to
        original offsets, so earlier edits in the same transformer are seen.
        """
        current = transformer.current()

        if injection.location:
            location = injection.location
            if opts.revert:
                span = location_removal_range(
                    current, location.line, location.column, content, opts.based, opts.strict
                )
                if span is None:
                    logger.warning(f"{injection.file_path}: nothing to revert at line {location.line}")
                    return transformer, 0
                return transformer.remove(*transformer.resolve_range(*span)), 1

            offset = line_column_offset(current, location.line, location.column, opts.based)
            return _insert(transformer, transformer, offset, content), 1

        targets = normalize_targets(injection.anchor, opts.array_before_after)
        mode = injection.anchor_mode

        if opts.revert:
            spans = anchor_removal_ranges(current, targets, content, mode, opts.strict)
            if spans is None:
                logger.warning(f"{injection.file_path}: nothing to revert next to {targets}")
                return transformer, 0
            edited = transformer
            for start, end in spans:
                edited = edited.remove(*transformer.resolve_range(start, end))
            return edited, len(spans)

        matches = find_anchor_offsets(current, targets, mode)
        if not matches:
            if opts.strict:
                raise AnchorNotFoundError(targets)
            logger.warning(f"{injection.file_path}: anchor not found: {targets}")

        edited = transformer
        for match in matches:
            edited = _insert(edited, transformer, match.offset, content)
        return edited, len(matches)

    def _check_file(self, file_path: str) -> None:
        if not self.fs.file_exists(file_path):
            raise MissingFileError(file_path)
        if self.fs.is_binary(file_path):
            raise BinaryFileError(file_path)

    def _emit_map(self, transformer: Transformer, file_path: str, map_path: str, opts: InjectionOptions) -> Dict[str, Any]:
        source_map = transformer.generate_map(source=file_path, file=map_path, include_content=True)
        if opts.write_to_file:
            self.fs.write_file(map_path, source_map.to_json())
            logger.debug(f"Wrote position map {map_path}")
        return source_map.to_dict()

    def resolve_options(self, options: OptionsLike = None) -> InjectionOptions:
        """Merge call options over the facade defaults."""
        return _coerce_options(options, self.defaults)

    # ------------------------------------------------------------------
    # Previews and validation
    # ------------------------------------------------------------------

    def preview_injection(self, injection: SingleInjection, options: OptionsLike = None) -> InjectionResult:
        return self.inject_at_location(injection, self._preview(options))

    def preview_multiple_injections(self, injections: Sequence[SingleInjection], options: OptionsLike = None) -> List[InjectionResult]:
        return self.inject_multiple(injections, self._preview(options))

    def preview_revert(self, injection: SingleInjection, options: OptionsLike = None) -> InjectionResult:
        return self.inject_at_location(injection, self._preview(options, revert=True))

    def preview_multiple_reverts(self, injections: Sequence[SingleInjection], options: OptionsLike = None) -> List[InjectionResult]:
        return self.inject_multiple(injections, self._preview(options, revert=True))

    def validate(self, injections: Sequence[SingleInjection], options: OptionsLike = None) -> List[ValidationIssue]:
        return validate_multiple_injections(injections, self.resolve_options(options).based)

    def _preview(self, options: OptionsLike, **forced: Any) -> InjectionOptions:
        return self.resolve_options(options).model_copy(update={"write_to_file": False, **forced})


class _Failed(SplicerError):
    """Resolution failure, carrying the operation-prefixed message."""


def _insert(edited: Transformer, base: Transformer, offset: int, content: str) -> Transformer:
    """Insert content at an offset of base.current(), recording it on edited."""
    return edited.insert_at_position(base.locate(offset), content)


def _coerce_options(options: OptionsLike, base: InjectionOptions) -> InjectionOptions:
    if options is None:
        return base
    if isinstance(options, InjectionOptions):
        return options
    merged = base.model_dump()
    merged.update(InjectionOptions.model_validate(dict(options)).model_dump(exclude_unset=True))
    return InjectionOptions.model_validate(merged)


def _result(
    success: bool,
    injection: SingleInjection,
    error: Optional[str] = None,
    code: Optional[str] = None,
    has_changed: Optional[bool] = None,
    matches_found: Optional[int] = None,
    source_map: Optional[Dict[str, Any]] = None,
) -> InjectionResult:
    """Result echoing whichever positioning the request used."""
    return InjectionResult(
        success=success,
        file_path=injection.file_path,
        location=InjectionLocation(line=injection.location.line, column=injection.location.column)
        if injection.location else None,
        inject_before=injection.inject_before or None,
        inject_after=injection.inject_after or None,
        error=error,
        code=code,
        has_changed=has_changed,
        matches_found=matches_found,
        source_map=source_map,
    )


# ----------------------------------------------------------------------
# Module-level API over a default facade
# ----------------------------------------------------------------------

_default_facade: Optional[InjectionFacade] = None


def get_facade() -> InjectionFacade:
    global _default_facade
    if _default_facade is None:
        _default_facade = InjectionFacade()
    return _default_facade


def inject_at_location(injection: SingleInjection, options: OptionsLike = None) -> InjectionResult:
    """Inject or revert content for one request."""
    return get_facade().inject_at_location(injection, options)


def inject_multiple(injections: Sequence[SingleInjection], options: OptionsLike = None) -> List[InjectionResult]:
    """Inject or revert content for many requests, grouped per file."""
    return get_facade().inject_multiple(injections, options)


def preview_injection(injection: SingleInjection, options: OptionsLike = None) -> InjectionResult:
    return get_facade().preview_injection(injection, options)


def preview_multiple_injections(injections: Sequence[SingleInjection], options: OptionsLike = None) -> List[InjectionResult]:
    return get_facade().preview_multiple_injections(injections, options)


def preview_revert(injection: SingleInjection, options: OptionsLike = None) -> InjectionResult:
    return get_facade().preview_revert(injection, options)


def preview_multiple_reverts(injections: Sequence[SingleInjection], options: OptionsLike = None) -> List[InjectionResult]:
    return get_facade().preview_multiple_reverts(injections, options)


def create_injection(
    file_path: str,
    content: Union[str, List[str]],
    line: Optional[int] = None,
    column: Optional[int] = None,
    inject_before: Optional[Union[str, List[str]]] = None,
    inject_after: Optional[Union[str, List[str]]] = None,
) -> SingleInjection:
    """
    Build a request from one positioning method: a line (and optional
    column), an inject_before anchor, or an inject_after anchor.
    """
    if line is not None:
        return SingleInjection(
            file_path=file_path,
            content=content,
            location=InjectionLocation(line=line, column=column),
        )
    if column is not None:
        raise InjectionValidationError("column requires line")
    return SingleInjection(
        file_path=file_path,
        content=content,
        inject_before=inject_before,
        inject_after=inject_after,
    )
