from __future__ import annotations

import pytest

from arplan.exceptions import ConfigurationError
from arplan.settings import FloorPlanSettings, Settings, get_settings


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path):
    monkeypatch.delenv("ARPLAN_CONFIG", raising=False)
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_defaults_without_config_file():
    settings = Settings.load()
    assert settings.floorplan.snap_threshold == 0.5
    assert settings.floorplan.proximity_join_threshold == 0.3
    assert settings.perspective.cache_capacity == 20
    assert settings.depth.mode == "nearest"
    assert settings.logging.level == "INFO"


def test_yaml_overrides_defaults(tmp_path):
    config = tmp_path / "arplan.yaml"
    config.write_text(
        "floorplan:\n  bounds_padding: 1.0\nperspective:\n  cache_capacity: 5\nlogging:\n  level: debug\n",
        encoding="utf-8",
    )
    settings = Settings.load(config)
    assert settings.floorplan.bounds_padding == 1.0
    assert settings.floorplan.snap_threshold == 0.5
    assert settings.perspective.cache_capacity == 5
    assert settings.logging.level == "DEBUG"


def test_environment_variable_selects_file(monkeypatch, tmp_path):
    config = tmp_path / "env.yaml"
    config.write_text("depth:\n  mode: bilinear\n", encoding="utf-8")
    monkeypatch.setenv("ARPLAN_CONFIG", str(config))
    assert Settings.load().depth.mode == "bilinear"


def test_missing_explicit_file_is_an_error(tmp_path, monkeypatch):
    with pytest.raises(ConfigurationError):
        Settings.load(tmp_path / "absent.yaml")
    monkeypatch.setenv("ARPLAN_CONFIG", str(tmp_path / "absent.yaml"))
    with pytest.raises(ConfigurationError):
        Settings.load()


@pytest.mark.parametrize(
    "text",
    [
        "floorplan:\n  join_epsilon: 0.5\n  proximity_join_threshold: 0.3\n",
        "measurement:\n  rotation_degrees: 180\n",
        "perspective:\n  cache_capacity: 0\n",
        "depth:\n  min_depth: 6.0\n",
        "- just\n- a list\n",
        "floorplan: [unclosed\n",
    ],
)
def test_invalid_payload_is_a_configuration_error(tmp_path, text):
    config = tmp_path / "bad.yaml"
    config.write_text(text, encoding="utf-8")
    with pytest.raises(ConfigurationError) as excinfo:
        Settings.load(config)
    assert excinfo.value.details["path"] == str(config)


def test_join_window_validation():
    with pytest.raises(ValueError):
        FloorPlanSettings(join_epsilon=0.3, proximity_join_threshold=0.3)


def test_get_settings_is_cached(tmp_path):
    config = tmp_path / "cached.yaml"
    config.write_text("perspective:\n  cache_capacity: 3\n", encoding="utf-8")
    first = get_settings(str(config))
    assert first is get_settings(str(config))
    assert first.perspective.cache_capacity == 3
