"""
Tests for configuration loading and overrides.

Run with: python -m pytest tests/test_config.py
"""

import json

import pytest

from logic import config as config_module
from logic.config import (
    apply_gbif_env_overrides,
    ensure_config_fields,
    get_data_dir,
    get_default_config,
    get_default_gbif_config,
    load_config,
    save_config,
)


@pytest.fixture
def config_path(tmp_path, monkeypatch):
    path = tmp_path / "config.json"
    monkeypatch.setattr(config_module, "CONFIG_PATH", str(path))
    return path


def test_missing_file_gives_defaults(config_path):
    assert load_config() == get_default_config()


def test_partial_file_is_completed(config_path):
    config_path.write_text(json.dumps({"cluster_radius": 70, "gbif": {"country": "CA"}}))

    config = load_config()

    assert config["cluster_radius"] == 70
    assert config["cluster_max_zoom"] == 14
    assert config["gbif"]["country"] == "CA"
    assert config["gbif"]["retries"] == 3


def test_save_then_load(config_path):
    config = get_default_config()
    config["fit_bounds_on_load"] = True

    save_config(config)

    assert load_config()["fit_bounds_on_load"] is True


def test_state_wires_toggle_is_migrated():
    config = ensure_config_fields({"default_layers": {"bears": True, "state_wires": False}})

    assert config["default_layers"] == {"bears": True, "habitat": True, "states": False}


def test_gbif_env_overrides(monkeypatch):
    monkeypatch.setenv("GBIF_LIMIT", "100")
    monkeypatch.setenv("GBIF_MAX", "500")
    monkeypatch.setenv("GBIF_BBOX", "-125,24,-66,49")

    gbif = apply_gbif_env_overrides(get_default_gbif_config())

    assert gbif["limit"] == 100
    assert gbif["max"] == 500
    assert gbif["bbox"] == "-125,24,-66,49"


def test_data_dir_from_environment(tmp_path, monkeypatch):
    monkeypatch.setenv("URSUS_DATA_DIR", str(tmp_path))
    assert get_data_dir() == str(tmp_path)
