import pytest

from goldmaze.config import Settings


def test_defaults():
    settings = Settings.from_env({})
    assert settings.port == 8000
    assert settings.store_backend == "memory"
    assert settings.tick_seconds == 1.0
    assert settings.seed_sample_scores is False
    assert settings.log_level == "INFO"


def test_environment_overrides():
    settings = Settings.from_env({
        "GOLDMAZE_PORT": "9000",
        "GOLDMAZE_STORE": "SQLite",
        "GOLDMAZE_DB_PATH": "/tmp/scores.db",
        "GOLDMAZE_TICK_SECONDS": "0.5",
        "GOLDMAZE_SEED_SAMPLE_SCORES": "yes",
        "GOLDMAZE_LOG_LEVEL": "debug",
    })
    assert settings.port == 9000
    assert settings.store_backend == "sqlite"
    assert settings.db_path == "/tmp/scores.db"
    assert settings.tick_seconds == 0.5
    assert settings.seed_sample_scores is True
    assert settings.log_level == "DEBUG"


@pytest.mark.parametrize("env", [
    {"GOLDMAZE_STORE": "redis"},
    {"GOLDMAZE_TICK_SECONDS": "0"},
])
def test_invalid_settings(env):
    with pytest.raises(ValueError):
        Settings.from_env(env)
