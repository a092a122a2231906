"""
Map style, source and layer definitions.

Declarative MapLibre objects for the satellite base map and the bear
overlays. Nothing here talks to the engine; logic.layers installs these
definitions on a live map.

Author: Matthew Picone (mail@matthewpicone.com)
Date: 2026-01-07
"""

from typing import Any, Dict, List

from .species import CLUSTER_COLOR, species_color_expression

BASE_LAYER_ID = "esri-world-imagery"

# Satellite basemap, no key required
URSUS_SATELLITE_STYLE: Dict[str, Any] = {
    "version": 8,
    "glyphs": "https://demotiles.maplibre.org/font/{fontstack}/{range}.pbf",
    "sources": {
        "esri": {
            "type": "raster",
            "tiles": [
                "https://services.arcgisonline.com/ArcGIS/rest/services/"
                "World_Imagery/MapServer/tile/{z}/{y}/{x}"
            ],
            "tileSize": 256,
            "attribution": (
                "Tiles © Esri — Source: Esri, Maxar, Earthstar Geographics, "
                "and the GIS User Community"
            ),
        },
    },
    "layers": [
        {"id": BASE_LAYER_ID, "type": "raster", "source": "esri"},
    ],
}

# Source ids
BEARS_SOURCE = "bears"
HABITAT_SOURCE = "habitat"
STATES_SOURCE = "states"
TERRAIN_SOURCE = "terrain-dem"

# Layer ids
CLUSTER_LAYER = "bear-clusters"
CLUSTER_COUNT_LAYER = "bear-cluster-count"
POINT_LAYER = "bear-points"
HABITAT_FILL_LAYER = "habitat-fill"
HABITAT_OUTLINE_LAYER = "habitat-outline"
STATE_LINES_LAYER = "state-lines"

# Toggle name -> layers it controls
LAYER_GROUPS: Dict[str, List[str]] = {
    "bears": [CLUSTER_LAYER, CLUSTER_COUNT_LAYER, POINT_LAYER],
    "habitat": [HABITAT_FILL_LAYER, HABITAT_OUTLINE_LAYER],
    "states": [STATE_LINES_LAYER],
}

ALL_TOGGLED_LAYERS: List[str] = [
    layer_id for group in LAYER_GROUPS.values() for layer_id in group
]


def base_style() -> Dict[str, Any]:
    """Get a copy of the satellite base style."""
    return {
        "version": URSUS_SATELLITE_STYLE["version"],
        "glyphs": URSUS_SATELLITE_STYLE["glyphs"],
        "sources": {k: dict(v) for k, v in URSUS_SATELLITE_STYLE["sources"].items()},
        "layers": [dict(layer) for layer in URSUS_SATELLITE_STYLE["layers"]],
    }


def observations_source(config: Dict[str, Any]) -> Dict[str, Any]:
    """Clustered point source for the sightings dataset."""
    return {
        "type": "geojson",
        "data": config["observations_url"],
        "cluster": True,
        "clusterMaxZoom": config["cluster_max_zoom"],
        "clusterRadius": config["cluster_radius"],
    }


def habitat_source(config: Dict[str, Any]) -> Dict[str, Any]:
    return {"type": "geojson", "data": config["habitat_url"]}


def states_source(config: Dict[str, Any]) -> Dict[str, Any]:
    return {"type": "geojson", "data": config["states_url"]}


def terrain_source(config: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "type": "raster-dem",
        "tiles": list(config["terrain_tiles"]),
        "tileSize": 256,
    }


def observation_layers() -> List[Dict[str, Any]]:
    """Cluster circles, cluster counts and single sightings, in draw order."""
    return [
        {
            "id": CLUSTER_LAYER,
            "type": "circle",
            "source": BEARS_SOURCE,
            "filter": ["has", "point_count"],
            "paint": {
                "circle-color": [
                    "step", ["get", "point_count"],
                    CLUSTER_COLOR, 25, "#16a34a", 100, "#15803d",
                ],
                "circle-radius": ["step", ["get", "point_count"], 16, 25, 22, 100, 30],
                "circle-opacity": 0.85,
                "circle-stroke-width": 2,
                "circle-stroke-color": "rgba(255,255,255,0.7)",
            },
        },
        {
            "id": CLUSTER_COUNT_LAYER,
            "type": "symbol",
            "source": BEARS_SOURCE,
            "filter": ["has", "point_count"],
            "layout": {
                "text-field": ["get", "point_count_abbreviated"],
                "text-font": ["Open Sans Semibold"],
                "text-size": 12,
            },
            "paint": {"text-color": "#0b1220"},
        },
        {
            "id": POINT_LAYER,
            "type": "circle",
            "source": BEARS_SOURCE,
            "filter": ["!", ["has", "point_count"]],
            "paint": {
                "circle-color": species_color_expression(),
                "circle-radius": 6,
                "circle-stroke-width": 1.5,
                "circle-stroke-color": "#0b1220",
            },
        },
    ]


def habitat_layers() -> List[Dict[str, Any]]:
    return [
        {
            "id": HABITAT_FILL_LAYER,
            "type": "fill",
            "source": HABITAT_SOURCE,
            "paint": {"fill-color": "#facc15", "fill-opacity": 0.25},
        },
        {
            "id": HABITAT_OUTLINE_LAYER,
            "type": "line",
            "source": HABITAT_SOURCE,
            "paint": {"line-color": "rgba(253,224,71,0.85)", "line-width": 1.5},
        },
    ]


def state_layers() -> List[Dict[str, Any]]:
    return [
        {
            "id": STATE_LINES_LAYER,
            "type": "line",
            "source": STATES_SOURCE,
            "paint": {"line-color": "rgba(255,255,255,0.55)", "line-width": 1.2},
        },
    ]
