from importlib import resources

import pytest

from fitscan.config import InterpreterSettings, resolve_settings
from fitscan.constants import DEFAULT_MODEL, MAX_TEXT_SIZE, MAX_TRANSPORT_ATTEMPTS
from fitscan.core.exceptions import ConfigurationError
from fitscan.tables import default_tables

pytestmark = pytest.mark.unit


def test_defaults():
    settings = resolve_settings()
    assert settings.enable_diagnostics is False
    assert settings.max_text_size == MAX_TEXT_SIZE
    assert settings.tables_path is None
    assert settings.max_transport_attempts == MAX_TRANSPORT_ATTEMPTS
    assert settings.model == DEFAULT_MODEL


def test_environment_variables_are_read(monkeypatch):
    monkeypatch.setenv("FITSCAN_ENABLE_DIAGNOSTICS", "true")
    monkeypatch.setenv("FITSCAN_MAX_TEXT_SIZE", "2048")
    monkeypatch.setenv("FITSCAN_MAX_TRANSPORT_ATTEMPTS", "5")
    settings = resolve_settings()
    assert settings.enable_diagnostics is True
    assert settings.max_text_size == 2048
    assert settings.max_transport_attempts == 5


def test_overrides_beat_environment(monkeypatch):
    monkeypatch.setenv("FITSCAN_MAX_TEXT_SIZE", "2048")
    assert resolve_settings(max_text_size=64).max_text_size == 64


def test_unrelated_environment_is_ignored(monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "k")
    monkeypatch.setenv("FITSCAN_UNKNOWN_OPTION", "x")
    assert resolve_settings().model == DEFAULT_MODEL


@pytest.mark.parametrize(
    "overrides",
    [{"max_text_size": 0}, {"max_transport_attempts": 0}, {"max_transport_attempts": 11}],
)
def test_invalid_values_raise_configuration_error(overrides):
    with pytest.raises(ConfigurationError, match="Invalid fitscan settings"):
        resolve_settings(**overrides)


def test_empty_tables_path_means_bundled(monkeypatch):
    monkeypatch.setenv("FITSCAN_TABLES_PATH", "  ")
    settings = resolve_settings()
    assert settings.tables_path is None
    assert settings.load_tables() is default_tables()


def test_tables_path_loads_custom_file(tmp_path):
    text = resources.files("fitscan.tables").joinpath("fallback_tables.toml").read_text(
        encoding="utf-8"
    )
    path = tmp_path / "custom.toml"
    path.write_text(text.replace('name = "Apple"', 'name = "Pear"', 1), encoding="utf-8")
    settings = InterpreterSettings(tables_path=path)
    assert settings.load_tables().meals["snack"].name == "Pear"


def test_to_dict_lists_every_field():
    assert set(resolve_settings().to_dict()) == {
        "enable_diagnostics",
        "max_text_size",
        "tables_path",
        "max_transport_attempts",
        "retry_base_delay",
        "model",
    }
