"""Tests for pantryscan config loading."""

from pantryscan.config import AppConfig, ScanConfig, load_config


def test_load_config_defaults(monkeypatch):
    """Loading with no path returns all defaults."""
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    config = load_config()
    assert isinstance(config, AppConfig)
    assert config.database.path == "~/.config/pantryscan/inventory.db"
    assert config.vision.backend == "claude"
    assert config.vision.max_retries == 3
    assert config.vision.min_confidence == "low"
    assert config.vision.claude.api_key == ""
    assert config.scan.rematch_delay == 0.3
    assert config.scan.purchase_note == "From kitchen scan"
    assert config.scan.receipt_note == "From receipt scan"
    assert config.scan.default_area_label == "refrigerator"
    assert config.scan.quick_scan_min_items == 12


def test_load_config_nonexistent_file():
    """Loading a nonexistent file returns defaults."""
    config = load_config("/nonexistent/path.toml")
    assert config.scan == ScanConfig()


def test_load_config_from_toml(tmp_path):
    """Loading a valid TOML file populates config."""
    path = tmp_path / "config.toml"
    path.write_bytes(b"""\
[database]
path = "/var/pantry/inventory.db"

[vision]
backend = "gemini"
max_retries = 5
min_confidence = "medium"

[vision.gemini]
api_key = "test-key-123"
model = "gemini-pro"

[scan]
rematch_delay = 0.05
purchase_note = "Scanned"
quick_scan_min_items = 20
""")
    config = load_config(path)
    assert config.database.path == "/var/pantry/inventory.db"
    assert config.vision.backend == "gemini"
    assert config.vision.max_retries == 5
    assert config.vision.min_confidence == "medium"
    assert config.vision.gemini.api_key == "test-key-123"
    assert config.vision.gemini.model == "gemini-pro"
    assert config.scan.rematch_delay == 0.05
    assert config.scan.purchase_note == "Scanned"
    assert config.scan.quick_scan_min_items == 20
    # Unset values keep their defaults
    assert config.scan.receipt_note == "From receipt scan"
    assert config.vision.claude.model == "claude-sonnet-4-5-20250929"


def test_api_key_from_environment(monkeypatch):
    """API keys fall back to environment variables."""
    monkeypatch.setenv("ANTHROPIC_API_KEY", "env-claude")
    monkeypatch.setenv("GEMINI_API_KEY", "env-gemini")
    config = load_config()
    assert config.vision.claude.api_key == "env-claude"
    assert config.vision.gemini.api_key == "env-gemini"


def test_config_file_key_wins_over_environment(tmp_path, monkeypatch):
    monkeypatch.setenv("ANTHROPIC_API_KEY", "env-claude")
    path = tmp_path / "config.toml"
    path.write_bytes(b'[vision.claude]\napi_key = "file-key"\n')
    config = load_config(path)
    assert config.vision.claude.api_key == "file-key"
