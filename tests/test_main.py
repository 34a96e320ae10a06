"""Tests for settings loading and the command-line entry point."""

from __future__ import annotations

import logging

import pytest

import main
from core.config import DEFAULT_LOG_LEVEL, DEFAULT_PORT, load_settings


class TestLoadSettings:
    def test_defaults(self):
        settings = load_settings({})
        assert settings.log_level == DEFAULT_LOG_LEVEL
        assert settings.port == DEFAULT_PORT

    def test_reads_environment(self):
        settings = load_settings({"LOG_LEVEL": " debug ", "PORT": "8080"})
        assert settings.log_level == "DEBUG"
        assert settings.port == 8080

    @pytest.mark.parametrize("port", ["eighty", "0", "70000"])
    def test_bad_port_falls_back(self, port, caplog):
        with caplog.at_level(logging.WARNING):
            assert load_settings({"PORT": port}).port == DEFAULT_PORT
        assert "PORT" in caplog.text

    def test_unknown_level_falls_back(self):
        assert load_settings({"LOG_LEVEL": "chatty"}).log_level == DEFAULT_LOG_LEVEL

    @pytest.mark.parametrize(("alias", "canonical"), [("warn", "WARNING"), ("FATAL", "CRITICAL")])
    def test_level_aliases_are_canonicalised(self, alias, canonical):
        assert load_settings({"LOG_LEVEL": alias}).log_level == canonical


class TestRunHttp:
    @pytest.mark.parametrize(
        ("env_level", "expected"),
        [("WARN", logging.WARNING), ("fatal", logging.CRITICAL), ("debug", logging.DEBUG)],
    )
    def test_uvicorn_accepts_every_configured_level(self, registry, monkeypatch, env_level, expected):
        import uvicorn

        started = []

        def fake_run(self, sockets=None):
            self.started = True
            started.append(self.config)

        monkeypatch.setattr(uvicorn.Server, "run", fake_run)
        settings = load_settings({"LOG_LEVEL": env_level, "PORT": "3456"})

        main.run_http(registry, settings)

        assert len(started) == 1
        config = started[0]
        assert config.port == 3456
        assert config.log_level == expected
        assert logging.getLogger("uvicorn.error").level == expected


class TestParser:
    def test_default_command_is_stdio(self):
        assert main.build_parser().parse_args([]).command == "stdio"

    def test_unknown_command_rejected(self):
        with pytest.raises(SystemExit):
            main.build_parser().parse_args(["serve"])


@pytest.mark.anyio
class TestCheckStation:
    async def test_success(self, registry, capsys):
        assert await main.check_station(registry) == 0
        out = capsys.readouterr().out
        assert "18.5°C" in out
        assert "3 (Moderate)" in out

    async def test_failure(self, failing_registry, capsys):
        assert await main.check_station(failing_registry) == 1
        assert "503" in capsys.readouterr().out


def test_main_dispatches_check(monkeypatch, registry):
    monkeypatch.setattr(main, "load_dotenv", lambda: None)
    monkeypatch.setattr(main, "configure_logging", lambda settings: None)
    monkeypatch.setattr(main, "create_registry", lambda: registry)
    assert main.main(["check"]) == 0


def test_main_dispatches_stdio(monkeypatch, registry):
    served = []
    monkeypatch.setattr(main, "load_dotenv", lambda: None)
    monkeypatch.setattr(main, "configure_logging", lambda settings: None)
    monkeypatch.setattr(main, "create_registry", lambda: registry)
    monkeypatch.setattr("transports.mcp_server.run_stdio", served.append)
    assert main.main([]) == 0
    assert served == [registry]
