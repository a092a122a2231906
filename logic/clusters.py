"""
Cluster and sighting interaction.

Clicking a hotspot zooms the camera to where the cluster breaks apart;
clicking a single sighting opens a detail popup.

Author: Matthew Picone (mail@matthewpicone.com)
Date: 2026-01-08
"""

import logging
from typing import Any, Callable, Dict, Optional

from .engine import HandlerRegistry, LngLat, MapEngine
from .map_style import BEARS_SOURCE, CLUSTER_LAYER, POINT_LAYER
from .observations import render_popup_html

logger = logging.getLogger(__name__)

DEFAULT_EXPANSION_INCREMENT = 0.5


def first_feature(event: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """First feature under the pointer, if any."""
    features = event.get("features") or []
    return features[0] if features else None


def feature_coordinate(feature: Dict[str, Any], event: Dict[str, Any]) -> Optional[LngLat]:
    """Point coordinate of a feature, falling back to the click location."""
    coords = (feature.get("geometry") or {}).get("coordinates")
    if not coords:
        coords = event.get("lngLat")
    if not coords or len(coords) < 2:
        return None
    return float(coords[0]), float(coords[1])


class ClusterInteractionHandler:
    """Click and hover behaviour for the sightings layers."""

    def __init__(
        self,
        engine: MapEngine,
        config: Dict[str, Any],
        on_camera_moved: Optional[Callable[[], None]] = None,
    ):
        self.engine = engine
        self.on_camera_moved = on_camera_moved
        self.source_id = BEARS_SOURCE
        self.zoom_increment = config.get("expansion_zoom_increment", DEFAULT_EXPANSION_INCREMENT)

    async def on_cluster_click(self, event: Dict[str, Any]):
        """Zoom to the level at which the clicked cluster expands.

        A failed or empty expansion query leaves the camera where it is.

        Args:
            event: Click payload with the clicked features.
        """
        feature = first_feature(event)
        if feature is None:
            return
        cluster_id = (feature.get("properties") or {}).get("cluster_id")
        center = feature_coordinate(feature, event)
        if cluster_id is None or center is None:
            return

        try:
            zoom = await self.engine.get_cluster_expansion_zoom(self.source_id, cluster_id)
        except Exception as e:
            logger.warning("Cluster %s expansion query failed: %s", cluster_id, e)
            return

        if zoom is None:
            logger.warning("Cluster %s has no expansion zoom", cluster_id)
            return

        self.engine.fly_to({"center": list(center), "zoom": zoom + self.zoom_increment})
        if self.on_camera_moved is not None:
            self.on_camera_moved()

    def on_point_click(self, event: Dict[str, Any]):
        """Show the detail popup for a single sighting."""
        feature = first_feature(event)
        if feature is None:
            return
        coordinate = feature_coordinate(feature, event)
        if coordinate is None:
            return
        self.engine.show_popup(coordinate, render_popup_html(feature.get("properties")))

    def on_pointer_enter(self, event: Dict[str, Any]):
        self.engine.set_cursor("pointer")

    def on_pointer_leave(self, event: Dict[str, Any]):
        self.engine.set_cursor("")

    def register(self, registry: HandlerRegistry):
        """Subscribe click and hover handlers on the interactive layers."""
        registry.register("click", CLUSTER_LAYER, self.on_cluster_click)
        registry.register("click", POINT_LAYER, self.on_point_click)
        for layer_id in (CLUSTER_LAYER, POINT_LAYER):
            registry.register("mouseenter", layer_id, self.on_pointer_enter)
            registry.register("mouseleave", layer_id, self.on_pointer_leave)
