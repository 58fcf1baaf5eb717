"""Tests for the gateway command line."""

from __future__ import annotations

import json
import logging

import pytest

from tellescope_mcp.gateway.catalog import build_catalog
from tellescope_mcp.gateway.cli import build_arg_parser, main
from tellescope_mcp.logger import LOGGER_NAME


@pytest.fixture(autouse=True)
def isolated(tmp_path, monkeypatch):
    """Run from an empty directory with no API key and restore logging afterwards."""
    monkeypatch.chdir(tmp_path)
    for name in ("TELLESCOPE_API_KEY", "MCP_TRANSPORT", "PORT", "HOST", "TELLESCOPE_PAGE_ENVELOPE"):
        # setenv first so values loaded from env files are undone on teardown
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    yield tmp_path
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)


def _main(*argv: str) -> None:
    main(["--no-file-log", *argv])


class TestArgParser:
    def test_defaults(self) -> None:
        args = build_arg_parser().parse_args([])

        assert args.transport is None
        assert args.port is None
        assert args.call is None
        assert args.call_args == "{}"
        assert args.list_tools is False

    def test_http_transport_choice(self) -> None:
        assert build_arg_parser().parse_args(["--transport", "http"]).transport == "http"

    def test_rejects_unknown_transport(self) -> None:
        with pytest.raises(SystemExit):
            build_arg_parser().parse_args(["--transport", "websocket"])


class TestMain:
    def test_list_tools_needs_no_api_key(self, capsys) -> None:
        _main("--list-tools")

        listed = json.loads(capsys.readouterr().out)
        assert listed == build_catalog().to_list()

    def test_missing_api_key_is_fatal(self, isolated, capsys) -> None:
        with pytest.raises(SystemExit) as exc_info:
            _main("--env-file", str(isolated / "missing.env"), "--call", "templates_get_one")

        assert exc_info.value.code == 1
        assert "Error: TELLESCOPE_API_KEY environment variable is required" in capsys.readouterr().err

    def test_env_file_supplies_api_key(self, isolated, capsys) -> None:
        env_file = isolated / "gateway.env"
        env_file.write_text("TELLESCOPE_API_KEY=from-file\n")

        with pytest.raises(SystemExit) as exc_info:
            _main("--env-file", str(env_file), "--call", "bogus_tool_name")

        assert exc_info.value.code == 1
        envelope = json.loads(capsys.readouterr().out)
        assert envelope["isError"] is True
        assert envelope["content"][0]["text"] == "Error: Invalid tool name format: bogus_tool_name"

    def test_call_rejects_invalid_json_args(self, monkeypatch, capsys) -> None:
        monkeypatch.setenv("TELLESCOPE_API_KEY", "test-key")

        with pytest.raises(SystemExit):
            _main("--call", "templates_get_one", "--args", "{not json")

        envelope = json.loads(capsys.readouterr().out)
        assert envelope["content"][0]["text"].startswith("Error: --args is not valid JSON")

    def test_call_rejects_non_object_args(self, monkeypatch, capsys) -> None:
        monkeypatch.setenv("TELLESCOPE_API_KEY", "test-key")

        with pytest.raises(SystemExit):
            _main("--call", "templates_get_one", "--args", "[1, 2]")

        envelope = json.loads(capsys.readouterr().out)
        assert envelope["isError"] is True
        assert "must be an object" in envelope["content"][0]["text"]

    def test_call_validates_before_contacting_api(self, monkeypatch, capsys) -> None:
        monkeypatch.setenv("TELLESCOPE_API_KEY", "test-key")

        with pytest.raises(SystemExit):
            _main("--call", "templates_get_page", "--args", '{"limit": 0}')

        envelope = json.loads(capsys.readouterr().out)
        assert "limit" in envelope["content"][0]["text"]

    def test_serves_configured_transport(self, monkeypatch) -> None:
        monkeypatch.setenv("TELLESCOPE_API_KEY", "test-key")
        runs = []

        class FakeServer:
            def run(self, **kwargs):
                runs.append(kwargs)

        monkeypatch.setattr("tellescope_mcp.gateway.cli.create_gateway", lambda config: FakeServer())

        _main("--transport", "http", "--port", "8123")
        _main()

        assert runs == [
            {"transport": "sse", "host": "127.0.0.1", "port": 8123},
            {"transport": "stdio"},
        ]
