import logging
from pathlib import Path

import pytest

from fintrack.core import settings
from fintrack.logger import ColourizedFormatter, get_logging_config
from fintrack.storage.unit_of_work import RetryPolicy


def test_read_config_file_parses_flat_values(tmp_path: Path) -> None:
    config = tmp_path / "config.yaml"
    config.write_text(
        "\n".join(
            [
                "# comment",
                "LOG_LEVEL: DEBUG",
                'DATABASE_URL: "sqlite:///data/#1.db"  # quoted hash survives',
                "SEED_CATEGORIES: false # inline comment",
                "EMPTY:",
                "not a pair",
            ]
        ),
        encoding="utf-8",
    )

    assert settings.read_config_file(str(config)) == {
        "LOG_LEVEL": "DEBUG",
        "DATABASE_URL": "sqlite:///data/#1.db",
        "SEED_CATEGORIES": "false",
    }


def test_read_config_file_missing_path() -> None:
    assert settings.read_config_file(None) == {}
    assert settings.read_config_file("/nonexistent/config.yaml") == {}


def test_get_env_bool(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("FLAG", "Yes")
    assert settings.get_env_bool("FLAG") is True
    monkeypatch.setenv("FLAG", "off")
    assert settings.get_env_bool("FLAG", True) is False
    monkeypatch.setenv("FLAG", "maybe")
    assert settings.get_env_bool("FLAG", True) is True
    monkeypatch.delenv("FLAG")
    assert settings.get_env_bool("FLAG") is False


def test_get_env_int_falls_back_on_bad_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ATTEMPTS", "5")
    assert settings.get_env_int("ATTEMPTS", 3, min_value=1) == 5
    monkeypatch.setenv("ATTEMPTS", "zero")
    assert settings.get_env_int("ATTEMPTS", 3, min_value=1) == 3
    monkeypatch.setenv("ATTEMPTS", "0")
    assert settings.get_env_int("ATTEMPTS", 3, min_value=1) == 3


def test_get_env_float(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("WAIT", "0.25")
    assert settings.get_env_float("WAIT", 0.1, min_value=0.0) == 0.25
    monkeypatch.setenv("WAIT", "-1")
    assert settings.get_env_float("WAIT", 0.1, min_value=0.0) == 0.1


def test_mask_database_url() -> None:
    assert settings.mask_database_url("postgresql://app:s3cret@db:5432/fintrack") == (
        "postgresql://app:****@db:5432/fintrack"
    )
    assert settings.mask_database_url("sqlite:///data/fintrack.db") == "sqlite:///data/fintrack.db"
    assert settings.mask_database_url("postgresql://app@db/fintrack") == "postgresql://app@db/fintrack"


def test_get_database_url(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("DATABASE_URL", "postgresql://app@db/fintrack")
    assert settings.get_database_url() == "postgresql://app@db/fintrack"

    monkeypatch.delenv("DATABASE_URL")
    monkeypatch.setenv("DATA_DIR", str(tmp_path))
    assert settings.get_database_url() == f"sqlite:///{tmp_path / 'fintrack.db'}"


def test_retry_policy_from_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings, "STORAGE_RETRY_ATTEMPTS", 7)
    monkeypatch.setattr(settings, "STORAGE_RETRY_WAIT", 0.5)
    monkeypatch.setattr(settings, "STORAGE_RETRY_MAX_WAIT", 4.0)

    assert RetryPolicy.from_settings() == RetryPolicy(attempts=7, wait=0.5, max_wait=4.0)


def test_logging_config_routes_sql_echo(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("LOG_DIR", str(tmp_path / "logs"))

    quiet = get_logging_config()
    echo = get_logging_config(db_echo=True)

    assert quiet["loggers"]["sqlalchemy.engine"]["level"] == "WARNING"
    assert echo["loggers"]["sqlalchemy.engine"]["level"] == "INFO"
    assert quiet["handlers"]["file"]["filename"] == str(tmp_path / "logs" / "fintrack.log")
    assert quiet["loggers"]["uvicorn.access"]["handlers"] == ["console", "file"]


def test_colourized_formatter_leaves_record_untouched() -> None:
    formatter = ColourizedFormatter("%(levelname)s %(message)s")
    record = logging.LogRecord("fintrack", logging.WARNING, __file__, 1, "drift on %s", ("acct",), None)

    output = formatter.format(record)

    assert output == "\x1b[33mWARNING\x1b[0m drift on acct"
    assert record.levelname == "WARNING"
