"""
Unit tests for application settings.
"""

from app.core.config import Settings


def test_settings_read_env_file(tmp_path, monkeypatch):
    """Test that a .env file in the working directory is picked up."""
    (tmp_path / ".env").write_text("WFS_MAX_FEATURES=42\nW3W_DEFAULT_LANGUAGE=de\n")
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("WFS_MAX_FEATURES", raising=False)
    monkeypatch.delenv("W3W_DEFAULT_LANGUAGE", raising=False)

    config = Settings()

    assert config.WFS_MAX_FEATURES == 42
    assert config.W3W_DEFAULT_LANGUAGE == "de"


def test_settings_ignore_unknown_keys(tmp_path, monkeypatch):
    (tmp_path / ".env").write_text("SOME_OTHER_SERVICE_KEY=abc\n")
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("WFS_MAX_FEATURES", raising=False)

    config = Settings()

    assert not hasattr(config, "SOME_OTHER_SERVICE_KEY")
    assert config.WFS_MAX_FEATURES == 1000
