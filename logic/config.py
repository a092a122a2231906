"""
Configuration management module.

This module provides utilities for loading, saving, and managing the map
configuration stored in config.json, with environment overrides for the
data directory and the GBIF fetch script.

Author: Matthew Picone (mail@matthewpicone.com)
Date: 2025-12-17
"""

import json
import os
from typing import Dict, Any

BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
CONFIG_PATH = os.path.join(BASE_DIR, "config.json")

STATES_GEOJSON_URL = (
    "https://raw.githubusercontent.com/datasets/geo-boundaries-us-110m/"
    "master/states.geojson"
)
TERRAIN_TILES_URL = "https://demotiles.maplibre.org/terrain-tiles/{z}/{x}/{y}.png"


def get_data_dir() -> str:
    """Directory holding the fetched datasets and overlays.

    Returns:
        Absolute path, taken from URSUS_DATA_DIR when set.
    """
    return os.path.abspath(os.getenv("URSUS_DATA_DIR", os.path.join(BASE_DIR, "data")))


def load_config() -> Dict[str, Any]:
    """Load configuration from config.json.

    Returns:
        Configuration dictionary with all required fields ensured.
    """
    try:
        with open(CONFIG_PATH, "r", encoding="utf-8") as f:
            config = json.load(f)
    except FileNotFoundError:
        config = get_default_config()

    # Ensure all required fields are present
    config = ensure_config_fields(config)
    return config


def save_config(config: Dict[str, Any]):
    """Save configuration to config.json.

    Args:
        config: Configuration dictionary to save.
    """
    with open(CONFIG_PATH, "w", encoding="utf-8") as f:
        json.dump(config, f, indent=2, ensure_ascii=False)


def get_default_config() -> Dict[str, Any]:
    """Get default configuration structure.

    Returns:
        Default configuration dictionary.
    """
    return {
        "observations_url": "/data/gbif/bear_observations.geojson",
        "habitat_url": "/data/overlays/habitat.geojson",
        "states_url": STATES_GEOJSON_URL,
        "terrain_tiles": [TERRAIN_TILES_URL],
        "terrain_exaggeration": 1.5,
        "cluster_max_zoom": 14,
        "cluster_radius": 50,
        "expansion_zoom_increment": 0.5,
        "animation_duration_ms": 1200,
        "fit_bounds_on_load": False,
        "default_layers": {"bears": True, "habitat": True, "states": True},
        "gbif": get_default_gbif_config(),
    }


def get_default_gbif_config() -> Dict[str, Any]:
    """Get default settings for the GBIF fetch script.

    Returns:
        GBIF settings dictionary.
    """
    return {
        "limit": 300,
        "max": 20000,
        "bbox": None,
        "country": "US",
        "retries": 3,
        "backoff_seconds": 1.0,
    }


def ensure_config_fields(config: Dict[str, Any]) -> Dict[str, Any]:
    """Ensure all required fields are present in the configuration.

    Args:
        config: Configuration dictionary to update.

    Returns:
        Updated configuration dictionary.
    """
    for key, default in get_default_config().items():
        config.setdefault(key, default)

    layers = config["default_layers"]
    for key in ("bears", "habitat", "states"):
        layers.setdefault(key, True)

    # Older configs stored the state outline toggle as "state_wires"
    if "state_wires" in layers:
        layers["states"] = bool(layers.pop("state_wires"))

    for key, default in get_default_gbif_config().items():
        config["gbif"].setdefault(key, default)

    return config


def apply_gbif_env_overrides(gbif: Dict[str, Any]) -> Dict[str, Any]:
    """Overlay GBIF_LIMIT, GBIF_MAX and GBIF_BBOX environment variables.

    Args:
        gbif: GBIF settings dictionary to update.

    Returns:
        Updated GBIF settings dictionary.
    """
    limit = os.getenv("GBIF_LIMIT")
    if limit:
        gbif["limit"] = int(limit)

    maximum = os.getenv("GBIF_MAX")
    if maximum:
        gbif["max"] = int(maximum)

    bbox = (os.getenv("GBIF_BBOX") or "").strip()
    if bbox:
        gbif["bbox"] = bbox

    return gbif
