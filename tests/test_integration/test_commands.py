"""End-to-end tests for the list, show and view commands."""

from __future__ import annotations

import json
import re
from pathlib import Path

import pytest
from typer.testing import CliRunner

from oatui import __version__
from oatui.app import app

runner = CliRunner()

_ANSI_RE = re.compile(r"\x1b\[[0-9;]*m")

FIXTURES_DIR = Path(__file__).parent.parent / "fixtures"
USERS = str(FIXTURES_DIR / "users.yaml")
PETSTORE = str(FIXTURES_DIR / "petstore.json")
TREE = str(FIXTURES_DIR / "tree.yaml")


def _strip_ansi(text: str) -> str:
    return _ANSI_RE.sub("", text)


@pytest.fixture(autouse=True)
def _isolated(isolated_config: Path) -> None:
    """Every command runs without user or project config."""


# ---------------------------------------------------------------------------
# Root options
# ---------------------------------------------------------------------------


class TestRoot:
    def test_version(self) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"oatui {__version__}" in result.stdout

    def test_help_lists_commands(self) -> None:
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        text = _strip_ansi(result.output)
        for command in ("list", "show", "view"):
            assert command in text

    def test_invalid_project_config_exits_1(self, isolated_config: Path) -> None:
        (isolated_config / "oatui.json").write_text(
            json.dumps({"output": {"format": "html"}}), encoding="utf-8"
        )
        result = runner.invoke(app, ["list", USERS])
        assert result.exit_code == 1
        assert "Unknown output format" in result.output


# ---------------------------------------------------------------------------
# list
# ---------------------------------------------------------------------------


class TestList:
    def test_plain(self) -> None:
        result = runner.invoke(app, ["--plain", "list", USERS])
        assert result.exit_code == 0
        assert result.stdout.splitlines() == [
            "Method\tPath\tSummary\tDeprecated",
            "GET\t/users\tList users\t",
            "POST\t/users\tCreate a user\t",
            "GET\t/users/{id}\tFetch a user by id\t",
        ]

    def test_json(self) -> None:
        result = runner.invoke(app, ["--json", "list", PETSTORE])
        assert result.exit_code == 0
        rows = json.loads(result.stdout)
        assert [row["Method"] for row in rows] == ["GET", "POST", "GET", "DELETE", "PATCH"]
        assert rows[3]["Deprecated"] == "Yes"
        assert rows[4]["Summary"] == "Change the owner"

    def test_stdin(self) -> None:
        text = (FIXTURES_DIR / "tree.yaml").read_text(encoding="utf-8")
        result = runner.invoke(app, ["--json", "list", "-"], input=text)
        assert result.exit_code == 0
        assert json.loads(result.stdout)[0]["Path"] == "/nodes/{id}"

    def test_empty_document(self, isolated_config: Path) -> None:
        empty = isolated_config / "empty.yaml"
        empty.write_text("openapi: 3.0.3\ninfo: {title: E, version: '1'}\npaths: {}\n")
        result = runner.invoke(app, ["--plain", "list", str(empty)])
        assert result.exit_code == 0
        assert "No endpoints defined" in result.output

    def test_swagger_exits_7(self) -> None:
        result = runner.invoke(app, ["list", str(FIXTURES_DIR / "swagger2.json")])
        assert result.exit_code == 7
        assert "Swagger 2.0" in result.output

    def test_malformed_document_names_operation(self) -> None:
        result = runner.invoke(app, ["list", str(FIXTURES_DIR / "missing_responses.yaml")])
        assert result.exit_code == 7
        assert "POST /orders" in result.output
        assert "no responses" in result.output

    def test_missing_file_exits_7(self, isolated_config: Path) -> None:
        result = runner.invoke(app, ["list", str(isolated_config / "nope.yaml")])
        assert result.exit_code == 7
        assert "not found" in result.output

    def test_unresolved_reference_exits_7(self, isolated_config: Path) -> None:
        broken = isolated_config / "broken.yaml"
        broken.write_text(
            "openapi: 3.0.3\n"
            "paths:\n"
            "  /x:\n"
            "    get:\n"
            "      responses:\n"
            "        '200':\n"
            "          $ref: '#/components/responses/Gone'\n"
        )
        result = runner.invoke(app, ["list", str(broken)])
        assert result.exit_code == 7
        assert "GET /x" in result.output
        assert "#/components/responses/Gone" in result.output

    def test_external_reference_suggests_bundling(self, isolated_config: Path) -> None:
        external = isolated_config / "external.yaml"
        external.write_text(
            "openapi: 3.0.3\n"
            "paths: {}\n"
            "components:\n"
            "  schemas:\n"
            "    Pet:\n"
            "      $ref: 'pets.yaml#/Pet'\n"
        )
        result = runner.invoke(app, ["list", str(external)])
        assert result.exit_code == 7
        assert "External $ref not supported" in result.output
        assert "Bundle the document" in result.output


# ---------------------------------------------------------------------------
# show
# ---------------------------------------------------------------------------


class TestShow:
    def test_plain(self) -> None:
        result = runner.invoke(app, ["--plain", "show", USERS, "get", "/users/{id}"])
        assert result.exit_code == 0
        lines = result.stdout.splitlines()
        assert lines[0] == "GET /users/{id}"
        assert "      id* (integer<int64>)" in lines
        assert "    ▸ application/json (User object {3 properties})" in lines

    def test_expand_all(self) -> None:
        result = runner.invoke(app, ["--plain", "show", TREE, "GET", "/nodes/{id}", "--expand-all"])
        assert result.exit_code == 0
        assert "        ↻ items Node (recursive)" in result.stdout.splitlines()

    def test_json(self) -> None:
        result = runner.invoke(app, ["--json", "show", USERS, "GET", "/users/{id}"])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["path"] == "/users/{id}"
        assert data["method"] == "get"
        assert data["parameters"][0]["schema"]["type"] == "integer"
        assert list(data["responses"]) == ["200", "404"]

    def test_json_recursive_schema_is_finite(self) -> None:
        result = runner.invoke(app, ["--json", "show", TREE, "GET", "/nodes/{id}"])
        assert result.exit_code == 0
        schema = json.loads(result.stdout)["responses"]["200"]["content"]["application/json"]
        assert schema["properties"]["children"]["items"] == {
            "title": "Node",
            "description": None,
            "nullable": False,
            "enum_values": None,
            "kind": "reference",
            "target": "#/components/schemas/Node",
        }

    def test_unknown_method_exits_2(self) -> None:
        result = runner.invoke(app, ["show", USERS, "fetch", "/users"])
        assert result.exit_code == 2
        assert "Unknown HTTP method" in result.output

    def test_unknown_endpoint_exits_2(self) -> None:
        result = runner.invoke(app, ["show", USERS, "DELETE", "/users"])
        assert result.exit_code == 2
        assert "Endpoint not found: DELETE /users" in result.output
        assert "Run: oatui list" in result.output


# ---------------------------------------------------------------------------
# view
# ---------------------------------------------------------------------------


class TestView:
    def _view(self, *args: str) -> list[str]:
        return ["--plain", "view", USERS, "--width", "100", "--height", "20", *args]

    def test_single_frame_without_terminal(self) -> None:
        result = runner.invoke(app, self._view())
        assert result.exit_code == 0
        lines = result.stdout.splitlines()
        assert lines[0] == "Users API v1.2.0"
        assert lines[1] == "> GET     /users"
        assert "Details" in lines

    def test_replay_keys(self) -> None:
        result = runner.invoke(app, self._view("--keys", "down down down"))
        assert result.exit_code == 0
        assert "> GET     /users/{id}" in result.stdout.splitlines()

    def test_replay_search(self) -> None:
        result = runner.invoke(app, self._view("--keys", "/ useid enter"))
        assert result.exit_code == 0
        lines = result.stdout.splitlines()
        assert lines[0] == "Users API v1.2.0 [useid] (1/3)"
        assert lines[1] == "> GET     /users/{id}"

    def test_endpoint_option(self) -> None:
        result = runner.invoke(app, self._view("--endpoint", "POST /users"))
        assert result.exit_code == 0
        assert "> POST    /users" in result.stdout.splitlines()

    def test_missing_endpoint_warns_and_continues(self) -> None:
        result = runner.invoke(app, self._view("--endpoint", "GET /nope"))
        assert result.exit_code == 0
        assert "Warning: Endpoint not found: GET /nope" in result.output
        assert "> GET     /users" in result.output

    def test_bad_endpoint_exits_2(self) -> None:
        result = runner.invoke(app, self._view("--endpoint", "users"))
        assert result.exit_code == 2
        assert "Endpoint must look like 'GET /path'" in result.output

    def test_empty_key_script_exits_2(self) -> None:
        result = runner.invoke(app, self._view("--keys", "  "))
        assert result.exit_code == 2
        assert "contains no keys" in result.output

    def test_json_frame(self) -> None:
        result = runner.invoke(
            app,
            ["--json", "view", USERS, "--width", "100", "--height", "20", "--keys", "down enter"],
        )
        assert result.exit_code == 0
        frame = json.loads(result.stdout)
        assert frame["width"] == 100
        assert frame["detail_focused"] is True
        assert frame["list_lines"][1]["selected"] is True
        assert frame["detail_lines"][0]["spans"][0] == {"text": "POST", "style": "bold blue"}

    def test_list_width_option(self) -> None:
        result = runner.invoke(
            app,
            ["--json", "view", USERS, "--width", "100", "--height", "20", "--list-width", "90"],
        )
        assert result.exit_code == 0
        assert json.loads(result.stdout)["list_width"] == 80

    def test_list_width_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("OATUI_LIST_WIDTH", "30")
        args = ["--json", "view", USERS, "--width", "100", "--height", "20"]
        assert json.loads(runner.invoke(app, args).stdout)["list_width"] == 30
        flagged = runner.invoke(app, [*args, "--list-width", "50"])
        assert json.loads(flagged.stdout)["list_width"] == 50

    def test_too_small_width_is_rejected(self) -> None:
        result = runner.invoke(app, ["view", USERS, "--width", "5"])
        assert result.exit_code == 2

    def test_rich_frame(self, isolated_config: Path) -> None:
        (isolated_config / "oatui.json").write_text(
            json.dumps({"output": {"format": "rich", "no_color": True}}), encoding="utf-8"
        )
        result = runner.invoke(app, ["view", USERS, "--width", "100", "--height", "20"])
        assert result.exit_code == 0
        lines = _strip_ansi(result.stdout).splitlines()
        assert len(lines) == 20
        assert "Users API v1.2.0" in lines[0]
        assert lines[0].startswith("╭")
        assert "> GET     /users" in lines[1]
