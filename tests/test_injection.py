"""
Tests for single-request injection, revert and preview.
"""

import json
from pathlib import Path

import pytest

from splicer.exceptions import InjectionValidationError
from splicer.injection import (
    InjectionFacade,
    LocalFileSystem,
    create_injection,
    inject_at_location,
    preview_injection,
    preview_revert,
)
from splicer.schemas import ArrayBeforeAfter, InjectionOptions


class TestInjectAtLocation:

    def test_line_and_column(self, write_file, read_file):
        path = write_file("a.txt", "a\nb\nc\n")
        result = inject_at_location(create_injection(path, "X", line=2, column=1))

        assert result.success
        assert result.has_changed
        assert result.matches_found == 1
        assert result.location.line == 2
        assert read_file(path) == "a\nXb\nc\n"

    def test_without_column_appends_to_line(self, write_file, read_file):
        path = write_file("a.txt", "a\nb\n")
        inject_at_location(create_injection(path, ";", line=1))
        assert read_file(path) == "a;\nb\n"

    def test_zero_based(self, write_file, read_file):
        path = write_file("a.txt", "a\nb\nc\n")
        result = inject_at_location(create_injection(path, "X", line=1, column=0), {"based": "0-based"})
        assert result.success
        assert read_file(path) == "a\nXb\nc\n"

    def test_list_content_is_joined(self, write_file, read_file):
        path = write_file("a.txt", "b\n")
        inject_at_location(create_injection(path, ["x", "y", ""], line=1, column=1))
        assert read_file(path) == "x\ny\nb\n"

    def test_crlf_file(self, write_file, read_file):
        path = write_file("a.txt", "a\r\nb\r\n")
        inject_at_location(create_injection(path, "X", line=2, column=1))
        assert read_file(path) == "a\r\nXb\r\n"

    def test_line_out_of_range(self, write_file, read_file):
        path = write_file("a.txt", "a\nb\nc\n")
        result = inject_at_location(create_injection(path, "X", line=10, column=1))

        assert not result.success
        assert result.error == "Injection failed: Line 10 does not exist (file has 4 lines, 1-based)"
        assert read_file(path) == "a\nb\nc\n"

    def test_log_code(self, write_file):
        path = write_file("a.txt", "a\n")
        result = inject_at_location(create_injection(path, "X", line=1, column=1), {"logCode": True})
        assert result.code == "Xa\n"

    def test_code_omitted_by_default(self, write_file):
        path = write_file("a.txt", "a\n")
        assert inject_at_location(create_injection(path, "X", line=1, column=1)).code is None


class TestAnchors:

    def test_inject_after_every_occurrence(self, write_file, read_file):
        path = write_file("a.ts", "foo();\nbar();\nfoo();\n")
        result = inject_at_location(create_injection(path, " // x", inject_after="foo();"))

        assert result.success
        assert result.matches_found == 2
        assert read_file(path) == "foo(); // x\nbar();\nfoo(); // x\n"

    def test_inject_before(self, write_file, read_file):
        path = write_file("a.ts", "a\nreturn;\n")
        inject_at_location(create_injection(path, "log();\n", inject_before="return;"))
        assert read_file(path) == "a\nlog();\nreturn;\n"

    def test_multiline_anchor(self, write_file, read_file):
        path = write_file("a.txt", "a\nb\nb\n")
        result = inject_at_location(create_injection(path, "!", inject_after=["a", "b"]))
        assert result.matches_found == 1
        assert read_file(path) == "a\nb!\nb\n"

    def test_each_element_anchor(self, write_file, read_file):
        path = write_file("a.txt", "x y\n")
        options = InjectionOptions(array_before_after=ArrayBeforeAfter.EACH_ELEMENT)
        result = inject_at_location(create_injection(path, "!", inject_after=["x", "y"]), options)
        assert result.matches_found == 2
        assert read_file(path) == "x! y!\n"

    def test_missing_anchor_non_strict(self, write_file, read_file):
        path = write_file("a.txt", "abc\n")
        result = inject_at_location(create_injection(path, "!", inject_after="zzz"))

        assert result.success
        assert result.matches_found == 0
        assert result.has_changed is False
        assert read_file(path) == "abc\n"

    def test_missing_anchor_strict(self, write_file):
        path = write_file("a.txt", "abc\n")
        result = inject_at_location(create_injection(path, "!", inject_after="zzz"), {"strict": True})

        assert not result.success
        assert result.error == 'Injection failed: Anchor not found: "zzz"'


class TestRevert:

    def test_location_round_trip(self, write_file, read_file):
        path = write_file("a.txt", "a\nb\nc\n")
        injection = create_injection(path, "X", line=2, column=1)

        inject_at_location(injection)
        result = inject_at_location(injection, {"revert": True})

        assert result.success
        assert result.has_changed
        assert read_file(path) == "a\nb\nc\n"

    def test_anchor_round_trip(self, write_file, read_file):
        path = write_file("a.ts", "foo();\nbar();\nfoo();\n")
        injection = create_injection(path, " // x", inject_after="foo();")

        inject_at_location(injection)
        result = inject_at_location(injection, {"revert": True})

        assert result.matches_found == 2
        assert read_file(path) == "foo();\nbar();\nfoo();\n"

    def test_revert_twice_is_noop(self, write_file, read_file):
        path = write_file("a.txt", "a\nb\n")
        injection = create_injection(path, "X", line=2, column=1)
        inject_at_location(injection)
        inject_at_location(injection, {"revert": True})

        result = inject_at_location(injection, {"revert": True})

        assert result.success
        assert result.has_changed is False
        assert result.matches_found == 0
        assert read_file(path) == "a\nb\n"

    def test_location_mismatch_strict(self, write_file, read_file):
        path = write_file("a.txt", "a\nb\n")
        result = inject_at_location(create_injection(path, "X", line=2, column=1), {"revert": True, "strict": True})

        assert not result.success
        assert result.error.startswith("Revert failed: Content mismatch at line 2, column 1")
        assert read_file(path) == "a\nb\n"

    def test_anchor_nothing_to_revert_strict(self, write_file):
        path = write_file("a.txt", "foo\n")
        result = inject_at_location(create_injection(path, "X", inject_after="zzz"), {"revert": True, "strict": True})

        assert not result.success
        assert result.error == "Revert failed: No injected content found to remove"


class TestFileChecks:

    def test_missing_file(self, tmp_path):
        path = str(tmp_path / "nope.txt")
        result = inject_at_location(create_injection(path, "X", line=1))

        assert not result.success
        assert result.error == f"File does not exist: {path}"

    def test_validation_before_file_check(self, tmp_path):
        path = str(tmp_path / "nope.txt")
        result = inject_at_location(create_injection(path, "X", line=0))
        assert result.error == "Line number must be a positive integer (1-based)"

    def test_binary_extension(self, write_file):
        path = write_file("img.png", "not really a png")
        result = inject_at_location(create_injection(path, "X", line=1))

        assert not result.success
        assert result.error == f"Cannot inject into binary file: {path}"

    def test_binary_content(self, write_file):
        path = write_file("data.txt", "a\x00b")
        result = inject_at_location(create_injection(path, "X", line=1))
        assert result.error.startswith("Cannot inject into binary file")


class TestPreview:

    def test_preview_does_not_write(self, write_file, read_file):
        path = write_file("a.txt", "a\n")
        result = preview_injection(create_injection(path, "X", line=1, column=1), {"logCode": True, "writeToFile": True})

        assert result.success
        assert result.has_changed
        assert result.code == "Xa\n"
        assert read_file(path) == "a\n"

    def test_preview_revert(self, write_file, read_file):
        path = write_file("a.txt", "Xa\n")
        result = preview_revert(create_injection(path, "X", line=1, column=1), {"logCode": True})

        assert result.code == "a\n"
        assert read_file(path) == "Xa\n"


class TestSourceMap:

    def test_map_written_next_to_file(self, write_file):
        path = write_file("a.txt", "a\nb\n")
        result = inject_at_location(
            create_injection(path, "X\n", line=2, column=1),
            {"generateSourceMap": True},
        )

        map_path = Path(path + ".map")
        assert map_path.exists()
        data = json.loads(map_path.read_text(encoding="utf-8"))
        assert data["version"] == 3
        assert data["sources"] == [path]
        assert data["mappings"] == "AAAA;;AACA;"
        assert result.source_map == data

    def test_map_custom_path(self, write_file, tmp_path):
        path = write_file("a.txt", "a\n")
        map_path = tmp_path / "maps.json"
        inject_at_location(
            create_injection(path, "X", line=1, column=1),
            {"generateSourceMap": True, "sourceMapPath": str(map_path)},
        )
        assert map_path.exists()

    def test_preview_returns_map_without_writing(self, write_file):
        path = write_file("a.txt", "a\n")
        result = preview_injection(create_injection(path, "X", line=1, column=1), {"generateSourceMap": True})

        assert result.source_map["version"] == 3
        assert not Path(path + ".map").exists()


class TestFacade:

    def test_defaults_apply_to_every_call(self, write_file, read_file):
        path = write_file("a.txt", "a\n")
        facade = InjectionFacade(defaults={"writeToFile": False})

        result = facade.inject_at_location(create_injection(path, "X", line=1, column=1))

        assert result.has_changed
        assert read_file(path) == "a\n"

    def test_call_options_override_defaults(self, write_file, read_file):
        path = write_file("a.txt", "a\n")
        facade = InjectionFacade(defaults={"writeToFile": False})

        facade.inject_at_location(create_injection(path, "X", line=1, column=1), {"writeToFile": True})

        assert read_file(path) == "Xa\n"

    def test_custom_file_system(self, write_file):
        written = {}

        class RecordingFileSystem(LocalFileSystem):
            def write_file(self, path, content):
                written[path] = content

        path = write_file("a.txt", "a\n")
        InjectionFacade(fs=RecordingFileSystem()).inject_at_location(create_injection(path, "X", line=1, column=1))

        assert written == {path: "Xa\n"}


class TestCreateInjection:

    def test_location(self):
        injection = create_injection("a.txt", "x", line=2, column=3)
        assert (injection.location.line, injection.location.column) == (2, 3)
        assert injection.inject_before is None

    def test_anchor(self):
        injection = create_injection("a.txt", "x", inject_before="y")
        assert injection.location is None
        assert injection.inject_before == "y"

    def test_column_without_line(self):
        with pytest.raises(InjectionValidationError):
            create_injection("a.txt", "x", column=1)
