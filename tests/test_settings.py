import pytest

from todo_api.settings import get_settings

ENV_VARS = [
    "MONGODB_URI",
    "DB_NAME",
    "COLLECTION_NAME",
    "HOST",
    "PORT",
    "READ_TIMEOUT",
    "WRITE_TIMEOUT",
    "CONNECT_TIMEOUT",
    "CORS_ALLOW_ORIGINS",
    "LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    # Keep a developer's .env out of these tests
    monkeypatch.chdir(tmp_path)
    for name in ENV_VARS:
        # setenv first so values loaded from .env are removed again on teardown
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)


def test_defaults():
    s = get_settings()
    assert s.mongodb_uri == "mongodb://localhost:27017"
    assert s.db_name == "todos"
    assert s.collection_name == "todos"
    assert s.port == 9000
    assert s.read_timeout == 10.0
    assert s.write_timeout == 5.0
    assert s.connect_timeout == 10.0
    assert s.cors_allow_origins == ["*"]
    assert s.log_level == "INFO"


def test_overrides(monkeypatch):
    monkeypatch.setenv("MONGODB_URI", "mongodb://db:27017")
    monkeypatch.setenv("DB_NAME", "app")
    monkeypatch.setenv("PORT", "8080")
    monkeypatch.setenv("WRITE_TIMEOUT", "2.5")
    monkeypatch.setenv("CORS_ALLOW_ORIGINS", "http://a.test, http://b.test")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    s = get_settings()
    assert s.mongodb_uri == "mongodb://db:27017"
    assert s.db_name == "app"
    assert s.port == 8080
    assert s.write_timeout == 2.5
    assert s.cors_allow_origins == ["http://a.test", "http://b.test"]
    assert s.log_level == "DEBUG"


def test_invalid_values_fall_back(monkeypatch):
    monkeypatch.setenv("PORT", "eighty")
    monkeypatch.setenv("READ_TIMEOUT", "-1")
    monkeypatch.setenv("LOG_LEVEL", "LOUD")
    s = get_settings()
    assert s.port == 9000
    assert s.read_timeout == 10.0
    assert s.log_level == "INFO"


def test_dotenv_file(tmp_path):
    (tmp_path / ".env").write_text("DB_NAME=from_file\n")
    assert get_settings().db_name == "from_file"
