# Tests for settings and logging setup.
# Created: 2026-10-06

import logging

import pytest

from pashuai.config import Settings, get_config_dir
from pashuai.logging_setup import setup_logging


class TestSettings:
    def test_defaults(self):
        settings = Settings(_env_file=None)
        assert settings.stream_inactivity_timeout == 15.0
        assert settings.generation_timeout == 60.0
        assert settings.max_upload_bytes == 10 * 1024 * 1024
        assert settings.default_weather_location == "New Delhi,IN"

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("PASHUAI_PORT", "9123")
        monkeypatch.setenv("PASHUAI_STREAM_INACTIVITY_TIMEOUT", "30")
        monkeypatch.setenv("PASHUAI_LLM_PROVIDER", "ollama")
        settings = Settings(_env_file=None)
        assert settings.port == 9123
        assert settings.stream_inactivity_timeout == 30.0
        assert settings.llm_provider == "ollama"

    def test_config_dir_created(self, tmp_path):
        target = tmp_path / "nested" / "data"
        assert get_config_dir(Settings(data_dir=target)) == target
        assert target.is_dir()


@pytest.fixture
def fresh_root_logger():
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    yield root
    for handler in root.handlers:
        if handler not in saved_handlers:
            handler.close()
    root.handlers[:] = saved_handlers
    root.setLevel(saved_level)


def _ours(root):
    return [h for h in root.handlers if h.get_name() == "pashuai"]


def test_setup_logging_replaces_its_own_handlers(fresh_root_logger, tmp_path):
    log_file = tmp_path / "logs" / "pashuai.log"
    setup_logging("DEBUG", log_file=log_file)
    setup_logging("INFO", log_file=log_file)

    ours = _ours(fresh_root_logger)
    assert len(ours) == 2
    assert any(isinstance(h, logging.FileHandler) for h in ours)
    assert fresh_root_logger.level == logging.INFO
    assert logging.getLogger("httpx").level == logging.WARNING

    logging.getLogger("pashuai.test").info("hello from the test")
    for handler in ours:
        handler.flush()
    assert "hello from the test" in log_file.read_text(encoding="utf-8")


def test_setup_logging_keeps_foreign_handlers(fresh_root_logger):
    foreign = logging.NullHandler()
    fresh_root_logger.addHandler(foreign)
    setup_logging("WARNING")
    assert foreign in fresh_root_logger.handlers
    assert len(_ours(fresh_root_logger)) == 1
