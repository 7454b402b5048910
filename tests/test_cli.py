"""Tests for sap.cli: ``sap run`` and ``sap check``."""

import json
import logging
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import pytest

from sap.cli import main
from sap.cli._load import JsonFormatter, configure_logging
from sap.config import ServerConfig
from sap.server.mem import MemServer

SETTINGS = (
    "ROOT_DIR",
    "ADDR",
    "MODE",
    "MAX_FILE_SIZE",
    "ROOT_AS_NOT_FOUND",
    "NOT_FOUND_STATUS",
    "NO_ROOT_TEMPLATING",
    "TEMPLATE_TAG_PRESENCE",
    "CONFIG_JSON_TEMPLATING",
    "CFG_ENV_PREFIX",
    "CFG_SCRIPT_TYPE",
    "STRICT_HTML",
    "LOG_LEVEL",
    "LOG_FORMAT",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Start every test without any sap setting in the environment."""
    for name in SETTINGS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def restore_root_logger() -> Iterator[None]:
    """``configure_logging`` replaces the root handlers; put them back."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def site(tmp_path: Path) -> Path:
    (tmp_path / "index.html").write_bytes(
        b'<html><script type="application/spa-cfg">{"apiUrl": ""}</script></html>'
    )
    (tmp_path / "app.js").write_bytes(b"run()")
    return tmp_path


@pytest.fixture
def fake_server(monkeypatch: pytest.MonkeyPatch) -> list[dict[str, Any]]:
    """Replace ``run_server`` so ``sap run`` returns instead of serving."""
    calls: list[dict[str, Any]] = []

    def run_server(app: MemServer, host: str, port: int, **kwargs: Any) -> None:
        calls.append({"app": app, "host": host, "port": port, **kwargs})

    monkeypatch.setattr("sap.server.run.run_server", run_server)
    return calls


class TestHelp:
    def test_help_exits_zero(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["--help"])
        assert exc_info.value.code == 0
        assert "run" in capsys.readouterr().out

    def test_unknown_command(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["serve"])
        assert exc_info.value.code == 2


class TestCheck:
    def test_success(self, site: Path, capsys: pytest.CaptureFixture[str]) -> None:
        main(["check", "--root", str(site)])
        out = capsys.readouterr().out
        assert out.startswith(f"OK: 2 routes loaded from {site}")
        assert "(root as not found)" in out

    def test_root_dir_from_environment(
        self, site: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        monkeypatch.setenv("ROOT_DIR", str(site))
        main(["check"])
        assert "OK: 2 routes" in capsys.readouterr().out

    def test_mode_selects_command(
        self,
        site: Path,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
        fake_server: list[dict[str, Any]],
    ) -> None:
        monkeypatch.setenv("ROOT_DIR", str(site))
        monkeypatch.setenv("MODE", "check")
        main([])
        assert "OK: 2 routes" in capsys.readouterr().out
        assert fake_server == []

    def test_missing_root_dir(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["check"])
        assert exc_info.value.code == 1
        assert "Error: ROOT_DIR must be set" in capsys.readouterr().err

    def test_bad_setting(
        self, site: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        monkeypatch.setenv("MAX_FILE_SIZE", "huge")
        with pytest.raises(SystemExit) as exc_info:
            main(["check", "--root", str(site)])
        assert exc_info.value.code == 1
        assert "Error: MAX_FILE_SIZE" in capsys.readouterr().err

    def test_unknown_log_level_flag(self, site: Path, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["check", "--root", str(site), "--log-level", "verbose"])
        assert exc_info.value.code == 1
        assert "Error: LOG_LEVEL: unknown log level 'verbose'" in capsys.readouterr().err

    def test_unknown_log_level_env(
        self, site: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        monkeypatch.setenv("LOG_LEVEL", "verbose")
        with pytest.raises(SystemExit) as exc_info:
            main(["check", "--root", str(site)])
        assert exc_info.value.code == 1
        assert "Error: LOG_LEVEL" in capsys.readouterr().err

    def test_load_failure(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["check", "--root", str(tmp_path / "missing")])
        assert exc_info.value.code == 1
        assert "Error: reading dir" in capsys.readouterr().err

    def test_missing_template_tag(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        (tmp_path / "index.html").write_bytes(b"<html></html>")
        with pytest.raises(SystemExit) as exc_info:
            main(["check", "--root", str(tmp_path)])
        assert exc_info.value.code == 1
        assert "template element not found" in capsys.readouterr().err

    def test_max_file_size_flag(self, site: Path, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit):
            main(["check", "--root", str(site), "--max-file-size", "1"])
        assert "max file size 1 exceeded" in capsys.readouterr().err


class TestRun:
    def test_loads_then_serves(self, site: Path, fake_server: list[dict[str, Any]]) -> None:
        main(["run", "--root", str(site), "--host", "127.0.0.1", "--port", "3000"])
        [call] = fake_server
        assert isinstance(call["app"], MemServer)
        assert len(call["app"].table) == 2
        assert call["host"] == "127.0.0.1"
        assert call["port"] == 3000
        assert call["log_format"] == "text"
        assert call["log_level"] == "info"

    def test_addr_and_status_from_environment(
        self, site: Path, monkeypatch: pytest.MonkeyPatch, fake_server: list[dict[str, Any]]
    ) -> None:
        monkeypatch.setenv("ROOT_DIR", str(site))
        monkeypatch.setenv("ADDR", "0.0.0.0:9000")
        monkeypatch.setenv("NOT_FOUND_STATUS", "404")
        main(["run"])
        [call] = fake_server
        assert call["port"] == 9000
        assert call["app"].not_found_status == 404

    def test_templating_applied_before_serving(
        self, site: Path, monkeypatch: pytest.MonkeyPatch, fake_server: list[dict[str, Any]]
    ) -> None:
        monkeypatch.setenv("APP_API_URL", "https://api.example.com")
        main(["run", "--root", str(site)])
        body = fake_server[0]["app"].handle("GET", "/").body
        assert b'{"apiUrl":"https://api.example.com"}' in body

    def test_default_mode_is_run(
        self, site: Path, monkeypatch: pytest.MonkeyPatch, fake_server: list[dict[str, Any]]
    ) -> None:
        monkeypatch.setenv("ROOT_DIR", str(site))
        main([])
        assert len(fake_server) == 1

    def test_broken_bundle_never_serves(
        self, tmp_path: Path, fake_server: list[dict[str, Any]]
    ) -> None:
        (tmp_path / "index.html").write_bytes(b"<html></html>")
        with pytest.raises(SystemExit):
            main(["run", "--root", str(tmp_path)])
        assert fake_server == []


class TestLogging:
    def test_text_format(self) -> None:
        configure_logging(ServerConfig(log_level="debug"))
        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert not isinstance(root.handlers[0].formatter, JsonFormatter)

    def test_json_format(self) -> None:
        configure_logging(ServerConfig(log_format="json"))
        assert isinstance(logging.getLogger().handlers[0].formatter, JsonFormatter)

    def test_json_formatter_output(self) -> None:
        record = logging.LogRecord("sap.loader", logging.INFO, __file__, 1, "Loaded %d", (3,), None)
        payload = json.loads(JsonFormatter().format(record))
        assert payload["level"] == "info"
        assert payload["logger"] == "sap.loader"
        assert payload["message"] == "Loaded 3"
