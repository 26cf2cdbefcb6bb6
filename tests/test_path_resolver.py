"""Tests for destination template resolution."""

from pathlib import Path

import pytest

from filo.core.path_resolver import expand_template, resolve_destination, sanitize_capture
from filo.domain.result import ErrorKind, TemplateUnresolvedError


class TestSanitize:
    """Test reserved character replacement."""

    @pytest.mark.parametrize("raw, expected", [
        ("plain", "plain"),
        ("a/b", "a_b"),
        ("a\\b", "a_b"),
        ('x:*?"<>|y', "x_______y"),
        ("..", "_"),
        (".", "_"),
        ("...", "_"),
        ("..a", "..a"),
    ])
    def test_sanitize(self, raw, expected):
        assert sanitize_capture(raw) == expected


class TestExpandTemplate:
    """Test raw placeholder expansion."""

    def test_multiple_placeholders(self):
        assert expand_template("/out/{a}/{b}", {"a": "x", "b": "y"}) == "/out/x/y"

    def test_repeated_placeholder(self):
        assert expand_template("/{a}/{a}", {"a": "x"}) == "/x/x"

    def test_missing_capture(self):
        with pytest.raises(TemplateUnresolvedError, match="no capture named 'b'"):
            expand_template("/{a}/{b}", {"a": "x"})

    def test_empty_capture(self):
        with pytest.raises(TemplateUnresolvedError, match="capture 'a' is empty"):
            expand_template("/{a}", {"a": ""})


class TestResolveDestination:
    """Test per-file destination resolution."""

    def test_plain_destination_verbatim(self):
        result = resolve_destination("/out/sorted", None, is_regex=False)
        assert result.is_success()
        assert result.value() == Path("/out/sorted")

    def test_plain_destination_ignores_captures(self):
        result = resolve_destination("/out", {"id": "1"}, is_regex=True)
        assert result.value() == Path("/out")

    def test_templated(self):
        result = resolve_destination("/out/{label}/{id}", {"label": "INV", "id": "42"}, is_regex=True)
        assert result.value() == Path("/out/INV/42")

    def test_capture_sanitized(self):
        result = resolve_destination("/out/{name}", {"name": "a/b:c"}, is_regex=True)
        assert result.value() == Path("/out/a_b_c")

    def test_templated_without_regex(self):
        result = resolve_destination("/out/{label}", None, is_regex=False)
        assert result.is_failure()
        assert result.error().kind == ErrorKind.TEMPLATE_UNRESOLVED
        assert "not a regex" in result.error().message

    def test_missing_capture_is_failure(self):
        result = resolve_destination("/out/{label}", {"id": "1"}, is_regex=True)
        assert result.is_failure()
        assert isinstance(result.error(), TemplateUnresolvedError)

    def test_parent_capture_stays_inside_destination(self):
        result = resolve_destination("/out/sorted/{d}", {"d": ".."}, is_regex=True)
        assert result.value() == Path("/out/sorted/_")
