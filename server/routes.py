"""
Basic API routes.

This module contains the catalog and species map pages and the JSON
endpoints the map page reads on load.

Author: Matthew Picone (mail@matthewpicone.com)
Date: 2025-12-17
"""

import os

from fastapi import APIRouter, HTTPException
from fastapi.responses import FileResponse, HTMLResponse

from logic.catalog import BEARS, get_bear_by_slug, initial_view
from logic.config import load_config
from logic.map_style import LAYER_GROUPS, base_style
from logic.species import legend_entries

router = APIRouter()

BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
TEMPLATE_DIR = os.path.join(BASE_DIR, "templates")


def require_bear(slug: str) -> dict:
    """Get a species entry or fail with 404.

    Raises:
        HTTPException: If the slug is unknown.
    """
    bear = get_bear_by_slug(slug)
    if bear is None:
        raise HTTPException(status_code=404, detail=f"Unknown bear: {slug}")
    return bear


@router.get("/", response_class=HTMLResponse)
def index():
    """Serve the catalog page.

    Returns:
        HTML page from templates/index.html.
    """
    return FileResponse(os.path.join(TEMPLATE_DIR, "index.html"))


@router.get("/bears/{slug}", response_class=HTMLResponse)
def bear_page(slug: str):
    """Serve the map page of one species.

    Returns:
        HTML page from templates/bear.html.
    """
    require_bear(slug)
    return FileResponse(os.path.join(TEMPLATE_DIR, "bear.html"))


@router.get("/api/bears")
def list_bears():
    """List the species in the catalog."""
    return [
        {"slug": b["slug"], "name": b["name"], "scientific": b["scientific"], "blurb": b["blurb"]}
        for b in BEARS
    ]


@router.get("/api/bears/{slug}")
def get_bear(slug: str):
    """Get one species with its initial camera and region chips."""
    bear = require_bear(slug)
    return {**bear, "initial_view": initial_view(bear).to_dict()}


@router.get("/api/map/style")
def get_map_style():
    """Get the satellite base style."""
    return base_style()


@router.get("/api/map/config")
def get_map_config():
    """Get the client-side map settings.

    Returns:
        Dictionary with the default layer toggles, legend and layer groups.
    """
    config = load_config()
    return {
        "default_layers": config["default_layers"],
        "legend": legend_entries(),
        "layer_groups": LAYER_GROUPS,
        "terrain_exaggeration": config["terrain_exaggeration"],
    }
