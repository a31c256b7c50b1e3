"""Tests for oatui.parser.loader."""

from __future__ import annotations

import io
import json
import textwrap
from pathlib import Path
from unittest.mock import patch

import httpx
import pytest

from oatui.exceptions import SpecParseError
from oatui.parser.loader import load_document, parse_document, validate_openapi_version

FIXTURES_DIR = Path(__file__).parent.parent / "fixtures"


# ---------------------------------------------------------------------------
# load_document dispatch
# ---------------------------------------------------------------------------


class TestLoadDocument:
    """Test load_document for every supported source."""

    def test_loads_json_file(self) -> None:
        result = load_document(str(FIXTURES_DIR / "petstore.json"))
        assert result["openapi"] == "3.0.3"
        assert result["info"]["title"] == "Petstore API"

    def test_loads_yaml_file(self) -> None:
        result = load_document(str(FIXTURES_DIR / "users.yaml"))
        assert result["info"]["title"] == "Users API"
        assert list(result["paths"]) == ["/users", "/users/{id}"]

    def test_loads_yml_extension(self, tmp_path: Path) -> None:
        yml_file = tmp_path / "spec.yml"
        yml_file.write_text(
            textwrap.dedent("""\
                openapi: "3.1.0"
                info:
                  title: YML Extension
                  version: "2.0.0"
                paths: {}
            """),
            encoding="utf-8",
        )
        assert load_document(str(yml_file))["openapi"] == "3.1.0"

    def test_unknown_extension_sniffs_content(self, tmp_path: Path) -> None:
        spec_file = tmp_path / "spec.txt"
        spec_file.write_text("openapi: '3.0.0'\npaths: {}\n", encoding="utf-8")
        assert load_document(str(spec_file))["openapi"] == "3.0.0"

    def test_loads_from_stdin(self) -> None:
        spec_json = json.dumps({"openapi": "3.0.3", "info": {"title": "stdin test"}})
        with patch("oatui.parser.loader.sys") as mock_sys:
            mock_sys.stdin = io.StringIO(spec_json)
            result = load_document("-")
        assert result["info"]["title"] == "stdin test"

    def test_empty_stdin_raises(self) -> None:
        with patch("oatui.parser.loader.sys") as mock_sys:
            mock_sys.stdin = io.StringIO("  \n")
            with pytest.raises(SpecParseError, match="No input"):
                load_document("-")

    def test_loads_json_from_url(self) -> None:
        spec = {"openapi": "3.0.3", "info": {"title": "Remote", "version": "1.0"}}
        mock_response = httpx.Response(
            status_code=200,
            json=spec,
            request=httpx.Request("GET", "https://example.com/spec.json"),
        )
        with patch("oatui.parser.loader.httpx.get", return_value=mock_response):
            result = load_document("https://example.com/spec.json")
        assert result["info"]["title"] == "Remote"

    def test_loads_yaml_from_url(self) -> None:
        mock_response = httpx.Response(
            status_code=200,
            text="openapi: '3.0.0'\ninfo:\n  title: YAML Remote\n",
            headers={"content-type": "application/x-yaml"},
            request=httpx.Request("GET", "https://example.com/spec.yaml"),
        )
        with patch("oatui.parser.loader.httpx.get", return_value=mock_response):
            result = load_document("https://example.com/spec.yaml")
        assert result["info"]["title"] == "YAML Remote"

    def test_http_error_raises(self) -> None:
        mock_response = httpx.Response(
            status_code=404,
            request=httpx.Request("GET", "https://example.com/missing.json"),
        )
        with patch("oatui.parser.loader.httpx.get", return_value=mock_response):
            with pytest.raises(SpecParseError, match="HTTP 404"):
                load_document("https://example.com/missing.json")

    def test_connection_error_raises(self) -> None:
        with patch(
            "oatui.parser.loader.httpx.get",
            side_effect=httpx.ConnectError("Connection refused"),
        ):
            with pytest.raises(SpecParseError, match="Failed to fetch"):
                load_document("https://unreachable.example.com/spec.json")

    def test_file_not_found_raises(self) -> None:
        with pytest.raises(SpecParseError, match="not found"):
            load_document("/nonexistent/path/to/spec.json")

    def test_empty_file_raises(self, tmp_path: Path) -> None:
        empty = tmp_path / "empty.yaml"
        empty.write_text("", encoding="utf-8")
        with pytest.raises(SpecParseError, match="empty"):
            load_document(str(empty))


# ---------------------------------------------------------------------------
# parse_document
# ---------------------------------------------------------------------------


class TestParseDocument:
    """Test content parsing with format detection."""

    def test_parses_json(self) -> None:
        assert parse_document('{"key": "value"}') == {"key": "value"}

    def test_parses_yaml(self) -> None:
        assert parse_document("key: value\nnested:\n  a: 1") == {
            "key": "value",
            "nested": {"a": 1},
        }

    def test_json_hint_forces_json_only(self) -> None:
        with pytest.raises(SpecParseError, match="Invalid JSON"):
            parse_document("key: value", hint="json")

    def test_yaml_hint_skips_json(self) -> None:
        assert parse_document("key: value", hint="yaml") == {"key": "value"}

    def test_invalid_content_raises(self) -> None:
        with pytest.raises(SpecParseError, match="Failed to parse"):
            parse_document("}{not valid at all][")

    def test_non_mapping_raises(self) -> None:
        with pytest.raises(SpecParseError, match="must be a JSON/YAML object"):
            parse_document("[1, 2, 3]")

    def test_null_yaml_raises(self) -> None:
        with pytest.raises(SpecParseError, match="empty document"):
            parse_document("---\n", hint="yaml")

    def test_keeps_declaration_order(self) -> None:
        result = parse_document("paths:\n  /b: {}\n  /a: {}\n  /c: {}\n")
        assert list(result["paths"]) == ["/b", "/a", "/c"]


# ---------------------------------------------------------------------------
# validate_openapi_version
# ---------------------------------------------------------------------------


class TestValidateOpenAPIVersion:
    """Test OpenAPI version validation."""

    @pytest.mark.parametrize("version", ["3.0.0", "3.0.3", "3.1.0", "3.2.0"])
    def test_accepts_3x(self, version: str) -> None:
        assert validate_openapi_version({"openapi": version}) == version

    def test_rejects_swagger_2_0(self) -> None:
        with pytest.raises(SpecParseError, match="Swagger 2.0.*not supported"):
            validate_openapi_version({"swagger": "2.0"})

    def test_rejects_missing_openapi_field(self) -> None:
        with pytest.raises(SpecParseError, match="Missing 'openapi' field"):
            validate_openapi_version({"info": {"title": "test"}})

    def test_rejects_unsupported_version(self) -> None:
        with pytest.raises(SpecParseError, match="Unsupported OpenAPI version"):
            validate_openapi_version({"openapi": "4.0.0"})

    def test_version_as_number(self) -> None:
        assert validate_openapi_version({"openapi": 3.0}) == "3.0"
