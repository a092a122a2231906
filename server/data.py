"""
Dataset routes.

Serves the files written by scripts/fetch_gbif_bears.py and the optional
map overlays. Only known file names are served.

Author: Matthew Picone (mail@matthewpicone.com)
Date: 2026-01-10
"""

import json
import os
from typing import Any, Dict

from fastapi import APIRouter, HTTPException
from fastapi.responses import FileResponse

from logic.config import get_data_dir

router = APIRouter()

GBIF_FILES = {
    "bear_observations.geojson": "application/geo+json",
    "bear_observations.csv": "text/csv",
}

OVERLAY_FILES = {
    "habitat.geojson": "application/geo+json",
    "states.geojson": "application/geo+json",
}

OBSERVATIONS_FILE = os.path.join("gbif", "bear_observations.geojson")


def dataset_path(folder: str, name: str, allowed: Dict[str, str]) -> str:
    """Resolve a served file name to a path under the data directory.

    Raises:
        HTTPException: If the name is not served or the file is missing.
    """
    if name not in allowed:
        raise HTTPException(status_code=404, detail="Unknown dataset")
    path = os.path.join(get_data_dir(), folder, name)
    if not os.path.isfile(path):
        raise HTTPException(status_code=404, detail=f"Dataset not available: {name}")
    return path


def load_observations() -> Dict[str, Any]:
    """Read the sightings feature collection from disk.

    Raises:
        FileNotFoundError: If the fetch script has not been run.
    """
    path = os.path.join(get_data_dir(), OBSERVATIONS_FILE)
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


@router.get("/data/gbif/{name}")
def get_gbif_dataset(name: str):
    """Serve the sightings GeoJSON or CSV."""
    path = dataset_path("gbif", name, GBIF_FILES)
    return FileResponse(path, media_type=GBIF_FILES[name])


@router.get("/data/overlays/{name}")
def get_overlay(name: str):
    """Serve a habitat or state boundary overlay."""
    path = dataset_path("overlays", name, OVERLAY_FILES)
    return FileResponse(path, media_type=OVERLAY_FILES[name])
