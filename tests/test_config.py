import logging
from pathlib import Path

import pytest

from cloud_logging_utils.config import LoggingSettings


@pytest.fixture
def env_file(tmp_path):
    path = tmp_path / ".env"
    path.write_text(
        "GOOGLE_LOGGING_LEVEL=debug\n"
        "GOOGLE_LOGGING_PROGNAME=from-file\n"
        f"GOOGLE_LOGGING_FILE={tmp_path / 'logs' / 'app.log'}\n"
        "GOOGLE_LOGGING_MAX_BYTES=1024\n"
        "GOOGLE_LOGGING_BACKUP_COUNT=2\n"
    )
    return path


class TestLoggingSettings:

    def test_defaults(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        settings = LoggingSettings.from_env(environ={})
        assert settings == LoggingSettings()
        assert settings.level == logging.INFO
        assert settings.progname is None
        assert settings.log_file is None

    def test_reads_env_file(self, env_file, tmp_path):
        settings = LoggingSettings.from_env(env_file=env_file, environ={})
        assert settings.level == logging.DEBUG
        assert settings.progname == "from-file"
        assert settings.log_file == tmp_path / "logs" / "app.log"
        assert settings.max_bytes == 1024
        assert settings.backup_count == 2

    def test_environment_wins_over_file(self, env_file):
        environ = {"GOOGLE_LOGGING_PROGNAME": "from-env", "GOOGLE_LOGGING_LEVEL": "40"}
        settings = LoggingSettings.from_env(env_file=env_file, environ=environ)
        assert settings.progname == "from-env"
        assert settings.level == logging.ERROR

    def test_finds_env_file_in_working_directory(self, env_file, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        assert LoggingSettings.from_env(environ={}).progname == "from-file"

    def test_uses_process_environment(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("GOOGLE_LOGGING_PROGNAME", "process")
        assert LoggingSettings.from_env().progname == "process"

    def test_empty_values_are_unset(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        settings = LoggingSettings.from_env(environ={"GOOGLE_LOGGING_FILE": ""})
        assert settings.log_file is None

    def test_expands_user_in_log_file(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        settings = LoggingSettings.from_env(environ={"GOOGLE_LOGGING_FILE": "~/app.log"})
        assert settings.log_file == Path("~/app.log").expanduser()

    def test_bad_level(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        with pytest.raises(ValueError, match="GOOGLE_LOGGING_LEVEL"):
            LoggingSettings.from_env(environ={"GOOGLE_LOGGING_LEVEL": "loud"})

    def test_bad_integer(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        with pytest.raises(ValueError, match="GOOGLE_LOGGING_MAX_BYTES"):
            LoggingSettings.from_env(environ={"GOOGLE_LOGGING_MAX_BYTES": "lots"})
