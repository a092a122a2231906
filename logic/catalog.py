"""
Bear species catalog.

Camera defaults and region shortcuts for each species page.

Author: Matthew Picone (mail@matthewpicone.com)
Date: 2026-01-09
"""

from typing import Any, Dict, List, Optional

from .view_state import ViewState

BEARS: List[Dict[str, Any]] = [
    {
        "slug": "black-bear",
        "name": "American Black Bear",
        "scientific": "Ursus americanus",
        "blurb": (
            "Highly adaptable omnivore found in forests and wild edges across "
            "much of the U.S. and Canada."
        ),
        "view": {"center": [-98, 39], "zoom": 3.7, "pitch": 45, "bearing": 0},
        "regions": [
            {"id": "upper-midwest", "label": "Upper Midwest", "center": [-93, 46], "zoom": 5.2},
            {"id": "appalachians", "label": "Appalachians", "center": [-82.5, 36.5], "zoom": 5.7},
            {"id": "pacific-nw", "label": "Pacific NW", "center": [-122.5, 47.5], "zoom": 5.4},
        ],
    },
    {
        "slug": "grizzly-bear",
        "name": "Grizzly Bear",
        "scientific": "Ursus arctos horribilis",
        "blurb": (
            "North American brown bear of the northern Rockies, with strongholds "
            "in Greater Yellowstone and the Northern Continental Divide."
        ),
        "view": {"center": [-110.5, 45.5], "zoom": 5.2, "pitch": 50, "bearing": -10},
        "regions": [
            {"id": "yellowstone", "label": "Greater Yellowstone", "center": [-110.6, 44.6], "zoom": 6.2},
            {"id": "ncde", "label": "Northern Continental Divide", "center": [-113.7, 48.7], "zoom": 5.8},
        ],
    },
    {
        "slug": "polar-bear",
        "name": "Polar Bear",
        "scientific": "Ursus maritimus",
        "blurb": "Sea-ice specialist; in the U.S. found along Alaska's Arctic coast.",
        "view": {"center": [-156, 71], "zoom": 4.7, "pitch": 50, "bearing": 10},
        "regions": [
            {"id": "north-slope", "label": "North Slope", "center": [-150.2, 70.3], "zoom": 6.0},
            {"id": "chukchi", "label": "Chukchi Sea", "center": [-164, 70.8], "zoom": 5.6},
        ],
    },
    {
        "slug": "kodiak-bear",
        "name": "Kodiak Bear",
        "scientific": "Ursus arctos middendorffi",
        "blurb": "Brown bear subspecies of the Kodiak Archipelago, among the largest bears alive.",
        "view": {"center": [-153.5, 57.4], "zoom": 6.6, "pitch": 55, "bearing": -15},
        "regions": [
            {"id": "kodiak-island", "label": "Kodiak Island", "center": [-153.4, 57.6], "zoom": 7.3},
        ],
    },
]


def get_bear_by_slug(slug: str) -> Optional[Dict[str, Any]]:
    """Look up a species entry.

    Args:
        slug: URL slug, e.g. "grizzly-bear".

    Returns:
        Species dictionary, or None if unknown.
    """
    for bear in BEARS:
        if bear["slug"] == slug:
            return bear
    return None


def initial_view(bear: Dict[str, Any]) -> ViewState:
    """Default camera for a species page (pitch 45, bearing 0 if unset)."""
    view = dict(bear["view"])
    view.setdefault("pitch", 45)
    view.setdefault("bearing", 0)
    return ViewState.from_dict(view)
