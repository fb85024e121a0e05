"""
Tests for request validation.
"""

import pytest
from pydantic import ValidationError

from splicer.injection import validate_injection, validate_multiple_injections
from splicer.injection.validation import validate_line_column
from splicer.schemas import Based, InjectionLocation, SingleInjection


def at_line(line, column=None, **kwargs):
    return SingleInjection(
        file_path=kwargs.pop("file_path", "a.txt"),
        content=kwargs.pop("content", "x"),
        location=InjectionLocation(line=line, column=column),
        **kwargs,
    )


class TestValidateInjection:

    def test_valid_location(self):
        assert validate_injection(at_line(1, 1)) is None

    def test_valid_anchor(self):
        assert validate_injection(SingleInjection(file_path="a", content="x", inject_after="y")) is None

    def test_missing_file_path(self):
        assert validate_injection(at_line(1, file_path="")) == "File path is required"

    @pytest.mark.parametrize("content", ["", []])
    def test_missing_content(self, content):
        assert validate_injection(at_line(1, content=content)) == "Content is required"

    def test_no_positioning(self):
        error = validate_injection(SingleInjection(file_path="a", content="x"))
        assert error == "Must specify exactly one of: location, injectBefore, or injectAfter"

    def test_empty_anchor_list_is_no_positioning(self):
        error = validate_injection(SingleInjection(file_path="a", content="x", inject_before=[]))
        assert error.startswith("Must specify exactly one of")

    def test_multiple_positioning(self):
        error = validate_injection(at_line(1, inject_after="y"))
        assert error == "Cannot use multiple positioning methods. Found: location, injectAfter"

    def test_anchor_list_of_empty_strings(self):
        error = validate_injection(SingleInjection(file_path="a", content="x", inject_before=[""]))
        assert error == "injectBefore array cannot be empty"

    def test_line_zero_one_based(self):
        assert validate_injection(at_line(0)) == "Line number must be a positive integer (1-based)"

    def test_line_zero_zero_based(self):
        assert validate_injection(at_line(0, 0), Based.ZERO) is None

    def test_negative_line_zero_based(self):
        assert validate_injection(at_line(-1), Based.ZERO) == "Line number must be a non-negative integer (0-based)"

    def test_column_zero_one_based(self):
        error = validate_injection(at_line(1, 0))
        assert error == "Column number must be a positive integer when provided (1-based)"

    def test_line_column_accepts_based_string(self):
        assert validate_line_column(0, None, "0-based") is None


class TestValidateMultiple:

    def test_issues_carry_request_index(self):
        issues = validate_multiple_injections([at_line(1), at_line(0), at_line(2, content="")])
        assert [(issue.index, issue.error) for issue in issues] == [
            (1, "Line number must be a positive integer (1-based)"),
            (2, "Content is required"),
        ]

    def test_all_valid(self):
        assert validate_multiple_injections([at_line(1), at_line(2)]) == []


class TestRequestParsing:

    def test_camel_case_keys(self):
        injection = SingleInjection.model_validate({
            "filePath": "a.ts",
            "content": ["x", "y"],
            "injectAfter": "start();",
        })
        assert injection.file_path == "a.ts"
        assert injection.inject_after == "start();"
        assert injection.positioning_methods() == ["injectAfter"]

    def test_location_from_json(self):
        injection = SingleInjection.model_validate({
            "filePath": "a.ts", "content": "x", "location": {"line": 3},
        })
        assert injection.location.line == 3
        assert injection.location.column is None

    @pytest.mark.parametrize("location", [
        {"line": True},
        {"line": "2"},
        {"line": 1, "column": True},
        {"line": 1.5},
    ])
    def test_location_rejects_non_integers(self, location):
        with pytest.raises(ValidationError):
            SingleInjection.model_validate({"filePath": "a.ts", "content": "x", "location": location})
