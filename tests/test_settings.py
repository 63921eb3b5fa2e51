import logging
from pathlib import Path

import pytest

from onboard import settings
from onboard.errors import ConfigError
from onboard.logs import setup_logging


def test_install_root_falls_back_to_tmp(monkeypatch):
    monkeypatch.delenv("DEVCADE_PATH", raising=False)
    assert settings.install_root() == Path("/tmp/devcade")
    monkeypatch.setenv("DEVCADE_PATH", "/srv/games")
    assert settings.install_root() == Path("/srv/games")


def test_api_url_is_required(monkeypatch):
    monkeypatch.delenv("DEVCADE_API_URL", raising=False)
    with pytest.raises(ConfigError):
        settings.api_url()
    monkeypatch.setenv("DEVCADE_API_URL", "https://devcade.example/api/")
    assert settings.api_url() == "https://devcade.example/api"


def test_numeric_settings(monkeypatch):
    monkeypatch.delenv("ONBOARD_HTTP_TIMEOUT", raising=False)
    monkeypatch.delenv("ONBOARD_LAUNCH_COOLDOWN_MS", raising=False)
    assert settings.http_timeout() == 30.0
    assert settings.launch_cooldown() == 0.2

    monkeypatch.setenv("ONBOARD_LAUNCH_COOLDOWN_MS", "soon")
    with pytest.raises(ConfigError):
        settings.launch_cooldown()
    monkeypatch.setenv("ONBOARD_HTTP_TIMEOUT", "5")
    assert settings.http_timeout() == 5.0


def test_setup_logging_is_repeatable(tmp_path):
    logger = setup_logging("debug", str(tmp_path))
    logger = setup_logging("debug", str(tmp_path))
    try:
        assert len(logger.handlers) == 2
        assert logger.level == logging.DEBUG
        logger.info("hello from the cabinet")
        for h in logger.handlers:
            h.flush()
        assert "hello from the cabinet" in (tmp_path / "onboard.log").read_text("utf-8")
    finally:
        for h in logger.handlers:
            h.close()
        logger.handlers.clear()
        logger.propagate = True
        logger.setLevel(logging.NOTSET)
