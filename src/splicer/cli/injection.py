"""
CLI Injection Commands

inject, revert, batch, validate, expect-error
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import typer
from pydantic import ValidationError
from rich.table import Table

from splicer.exceptions import ConfigError
from splicer.injection import (
    InjectionFacade,
    inject_expect_errors,
    parse_lines_file,
    parse_tsc_output,
    validate_injection,
)
from splicer.logging_config import logger
from splicer.schemas import (
    ArrayBeforeAfter,
    Based,
    InjectionLocation,
    InjectionOptions,
    InjectionResult,
    SingleInjection,
    ValidationIssue,
)
from splicer.user_config import get_user_config

from .config import CLIConfig
from .output import get_console, print_error, print_json

console = get_console()


def inject_cmd(
    file: Path = typer.Argument(..., help="Path to the file to edit"),
    content: Optional[List[str]] = typer.Option(None, "--content", "-c", help="Content to inject (repeat for multiple lines)"),
    content_file: Optional[Path] = typer.Option(None, "--content-file", "-f", help="Read content from this file", exists=True),
    line: Optional[int] = typer.Option(None, "--line", "-l", help="Target line"),
    column: Optional[int] = typer.Option(None, "--column", help="Target column (end of line when omitted)"),
    before: Optional[List[str]] = typer.Option(None, "--before", "-b", help="Inject before every occurrence of this anchor"),
    after: Optional[List[str]] = typer.Option(None, "--after", "-a", help="Inject after every occurrence of this anchor"),
    based: Optional[Based] = typer.Option(None, "--based", help="Line/column numbering"),
    strict: bool = typer.Option(False, "--strict", help="Fail when anchors or injected content are missing"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Compute the result without writing"),
    log_code: bool = typer.Option(False, "--log-code", help="Include the resulting content in the output"),
    source_map: Optional[Path] = typer.Option(None, "--source-map", help="Write a position map to this path"),
    array_mode: Optional[ArrayBeforeAfter] = typer.Option(None, "--array-mode", help="How repeated anchors are matched"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    Inject content at a line/column or next to an anchor string.
    """
    _run_single(file, content, content_file, line, column, before, after, based, strict, dry_run,
                log_code, source_map, array_mode, json_output, revert=False)


def revert_cmd(
    file: Path = typer.Argument(..., help="Path to the file to edit"),
    content: Optional[List[str]] = typer.Option(None, "--content", "-c", help="Previously injected content (repeat for multiple lines)"),
    content_file: Optional[Path] = typer.Option(None, "--content-file", "-f", help="Read content from this file", exists=True),
    line: Optional[int] = typer.Option(None, "--line", "-l", help="Line the content was injected at"),
    column: Optional[int] = typer.Option(None, "--column", help="Column the content was injected at"),
    before: Optional[List[str]] = typer.Option(None, "--before", "-b", help="Anchor the content was injected before"),
    after: Optional[List[str]] = typer.Option(None, "--after", "-a", help="Anchor the content was injected after"),
    based: Optional[Based] = typer.Option(None, "--based", help="Line/column numbering"),
    strict: bool = typer.Option(False, "--strict", help="Fail when the injected content is not found"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Compute the result without writing"),
    log_code: bool = typer.Option(False, "--log-code", help="Include the resulting content in the output"),
    source_map: Optional[Path] = typer.Option(None, "--source-map", help="Write a position map to this path"),
    array_mode: Optional[ArrayBeforeAfter] = typer.Option(None, "--array-mode", help="How repeated anchors are matched"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    Remove previously injected content.
    """
    _run_single(file, content, content_file, line, column, before, after, based, strict, dry_run,
                log_code, source_map, array_mode, json_output, revert=True)


def batch_cmd(
    requests_file: Path = typer.Argument(..., help="JSON file with injection requests", exists=True),
    revert: Optional[bool] = typer.Option(None, "--revert/--no-revert", help="Remove the requested content instead"),
    based: Optional[Based] = typer.Option(None, "--based", help="Line/column numbering"),
    strict: bool = typer.Option(False, "--strict", help="Fail requests whose anchors or content are missing"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Compute results without writing"),
    log_code: bool = typer.Option(False, "--log-code", help="Include resulting content in the output"),
    source_map: bool = typer.Option(False, "--source-map", help="Write a position map next to each changed file"),
    workers: Optional[int] = typer.Option(None, "--workers", "-w", min=1, help="Files processed in parallel"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    Apply many requests, grouped per file.

    REQUESTS FILE FORMAT (JSON), a list of requests or:
    {
      "injections": [
        {"filePath": "src/a.ts", "content": "// hi", "location": {"line": 3}},
        {"filePath": "src/a.ts", "content": "log();", "injectAfter": "start();"}
      ],
      "options": {"based": "1-based", "strict": false}
    }
    """
    raw_items, file_options = _load_requests(requests_file, json_output)

    # Malformed requests fail on their own; the rest still run
    injections: List[SingleInjection] = []
    rejected: List[InjectionResult] = []
    for item in raw_items:
        try:
            injections.append(SingleInjection.model_validate(item))
        except ValidationError as e:
            logger.warning(f"Skipping malformed request: {e.errors()[0]['msg']}")
            rejected.append(InjectionResult(
                success=False,
                file_path=_raw_file_path(item),
                error=f"Invalid request format: {e.errors()[0]['msg']}",
            ))

    overrides = dict(file_options)
    overrides.update(_overrides(
        based=based, strict=strict, dry_run=dry_run, log_code=log_code,
        generate_source_map=source_map, max_workers=workers,
    ))
    if revert is not None:
        overrides["revert"] = revert
    options = _resolve_options(overrides, json_output)

    results = rejected + InjectionFacade().inject_multiple(injections, options)
    _print_results(results, json_output, "Reverted" if options.revert else "Injected")

    if not all(result.success for result in results):
        raise typer.Exit(code=1)


def validate_cmd(
    requests_file: Path = typer.Argument(..., help="JSON file with injection requests", exists=True),
    based: Optional[Based] = typer.Option(None, "--based", help="Line/column numbering"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    Validate a requests file without touching any target file.
    """
    raw_items, file_options = _load_requests(requests_file, json_output)
    options = _resolve_options({**file_options, **_overrides(based=based)}, json_output)

    issues: List[ValidationIssue] = []
    for index, item in enumerate(raw_items):
        try:
            error = validate_injection(SingleInjection.model_validate(item), options.based)
        except ValidationError as e:
            error = f"Invalid request format: {e.errors()[0]['msg']}"
        if error:
            issues.append(ValidationIssue(index=index, error=error))

    if CLIConfig.is_machine_mode() or json_output:
        print_json({
            "valid": not issues,
            "total": len(raw_items),
            "issues": [issue.model_dump(by_alias=True) for issue in issues],
        }, minified=True)
    elif issues:
        table = Table(title=f"{len(issues)} invalid request(s)")
        table.add_column("Index", justify="right")
        table.add_column("Error", style="red")
        for issue in issues:
            table.add_row(str(issue.index), issue.error)
        console.print(table)
    else:
        console.print(f"[green]✓[/green] All {len(raw_items)} request(s) are valid")

    if issues:
        raise typer.Exit(code=1)


def expect_error_cmd(
    lines_file: Optional[List[Path]] = typer.Option(None, "--lines-file", "-l", help="File of 'path:line' entries", exists=True),
    tsc_output: Optional[Path] = typer.Option(None, "--tsc-output", "-t", help="Saved tsc output", exists=True),
    within: Optional[List[str]] = typer.Option(None, "--within", help="Only touch files under this directory"),
    comment: Optional[str] = typer.Option(None, "--comment", help="Comment line to insert"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Compute results without writing"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    Insert a suppression comment above every reported error line.
    """
    if not lines_file and not tsc_output:
        print_error("MISSING_ARGUMENT", "Must provide --lines-file or --tsc-output", json_output,
                    suggestions=["--lines-file errors.txt", "--tsc-output tsc.log"])
        raise typer.Exit(code=1)

    refs = []
    for path in lines_file or []:
        refs.extend(parse_lines_file(path.read_text(encoding="utf-8")))
    if tsc_output:
        refs.extend(parse_tsc_output(tsc_output.read_text(encoding="utf-8")))
    logger.debug(f"Collected {len(refs)} error reference(s)")

    config = get_user_config()
    comment = comment or config.get("expectError.comment")
    options = _resolve_options(_overrides(dry_run=dry_run), json_output)

    results = inject_expect_errors(refs, comment, options, directories=within)
    _print_results(results, json_output, "Commented")

    if not all(result.success for result in results):
        raise typer.Exit(code=1)


def _run_single(
    file: Path,
    content: Optional[List[str]],
    content_file: Optional[Path],
    line: Optional[int],
    column: Optional[int],
    before: Optional[List[str]],
    after: Optional[List[str]],
    based: Optional[Based],
    strict: bool,
    dry_run: bool,
    log_code: bool,
    source_map: Optional[Path],
    array_mode: Optional[ArrayBeforeAfter],
    json_output: bool,
    revert: bool,
) -> None:
    if content_file:
        text = content_file.read_text(encoding="utf-8")
    elif content:
        text = content[0] if len(content) == 1 else list(content)
    else:
        print_error("MISSING_ARGUMENT", "Must provide --content or --content-file", json_output,
                    suggestions=["--content '// note'", "--content-file snippet.txt"])
        raise typer.Exit(code=1)

    injection = SingleInjection(
        file_path=str(file),
        content=text,
        location=InjectionLocation(line=line, column=column) if line is not None else None,
        inject_before=_anchor(before),
        inject_after=_anchor(after),
    )
    overrides = _overrides(
        based=based, strict=strict, dry_run=dry_run, log_code=log_code,
        array_before_after=array_mode,
        generate_source_map=source_map is not None,
        source_map_path=str(source_map) if source_map else None,
    )
    # The command decides the direction, never the config
    overrides["revert"] = revert
    options = _resolve_options(overrides, json_output)

    result = InjectionFacade().inject_at_location(injection, options)
    _print_results([result], json_output, "Reverted" if revert else "Injected")

    if not result.success:
        raise typer.Exit(code=1)


def _anchor(values: Optional[List[str]]):
    if not values:
        return None
    return values[0] if len(values) == 1 else list(values)


def _raw_file_path(item: Any) -> str:
    if not isinstance(item, dict):
        return ""
    value = item.get("filePath", item.get("file_path"))
    return value if isinstance(value, str) else ""


def _overrides(dry_run: bool = False, **flags: Any) -> Dict[str, Any]:
    """CLI flags as option overrides; unset flags defer to the user config."""
    overrides = {key: value for key, value in flags.items() if value not in (None, False)}
    if dry_run:
        overrides["write_to_file"] = False
    return overrides


def _resolve_options(overrides: Dict[str, Any], json_output: bool) -> InjectionOptions:
    try:
        return get_user_config().injection_options(**overrides)
    except ConfigError as e:
        print_error("CONFIG_ERROR", str(e), json_output, actionable_fix="Check .splicer/config.json")
        raise typer.Exit(code=1)


def _load_requests(path: Path, json_output: bool) -> Tuple[List[Any], Dict[str, Any]]:
    """Read a requests file: a bare list, or an object with injections and options."""
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        print_error("JSON_PARSE_ERROR", f"Failed to parse requests file: {e}", json_output,
                    actionable_fix="Ensure the file is valid JSON")
        raise typer.Exit(code=1)

    if isinstance(data, list):
        return data, {}

    if isinstance(data, dict) and isinstance(data.get("injections"), list):
        try:
            # Normalize camelCase keys to field names; only keys present in the file
            options = InjectionOptions.model_validate(data.get("options") or {}).model_dump(exclude_unset=True)
        except ValidationError as e:
            print_error("SCHEMA_VALIDATION_ERROR", f"Invalid options: {e}", json_output)
            raise typer.Exit(code=1)
        return data["injections"], options

    print_error("SCHEMA_VALIDATION_ERROR", "Requests file must be a list or an object with 'injections'",
                json_output)
    raise typer.Exit(code=1)


def _print_results(results: List[InjectionResult], json_output: bool, verb: str) -> None:
    if CLIConfig.is_machine_mode() or json_output:
        print_json({
            "success": all(result.success for result in results),
            "results": [result.model_dump(by_alias=True, exclude_none=True) for result in results],
        }, minified=True)
        return

    if not results:
        console.print("[yellow]Nothing to do[/yellow]")
        return

    table = Table(title=f"{verb}: {sum(r.success for r in results)}/{len(results)} succeeded")
    table.add_column("File")
    table.add_column("Position")
    table.add_column("Matches", justify="right")
    table.add_column("Status")
    for result in results:
        status = "[green]changed[/green]" if result.has_changed else "[dim]unchanged[/dim]"
        if not result.success:
            status = f"[red]{result.error}[/red]"
        table.add_row(result.file_path, _describe_position(result), str(result.matches_found or 0), status)
    console.print(table)

    # Every result for a file carries the same final content
    shown = set()
    for result in results:
        if result.code is not None and result.file_path not in shown:
            shown.add(result.file_path)
            console.print(f"\n[bold]{result.file_path}[/bold]")
            console.print(result.code, markup=False, highlight=False)


def _describe_position(result: InjectionResult) -> str:
    if result.location:
        if result.location.column is None:
            return f"line {result.location.line}"
        return f"{result.location.line}:{result.location.column}"
    if result.inject_before:
        return f"before {result.inject_before!r}"
    if result.inject_after:
        return f"after {result.inject_after!r}"
    return ""
