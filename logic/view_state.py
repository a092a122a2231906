"""
View-state controller.

Owns the single map instance of a mounted view. Camera requests from the
page, the layer toggles and the interaction handlers all go through here as
incremental updates to that instance; the map is never torn down and
rebuilt while the view is mounted.

Author: Matthew Picone (mail@matthewpicone.com)
Date: 2026-01-09
"""

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

from .clusters import ClusterInteractionHandler
from .engine import HandlerRegistry, MapEngine
from .layers import (
    LayerFlags,
    LayerVisibilitySynchronizer,
    install_observations,
    install_overlays,
)
from .observations import bounds_of

logger = logging.getLogger(__name__)

DatasetLoader = Callable[[], Awaitable[Dict[str, Any]]]

FIT_BOUNDS_PADDING = 40


@dataclass(frozen=True)
class ViewState:
    """Camera position. Pitch and bearing are optional."""

    center: Tuple[float, float]
    zoom: float
    pitch: Optional[float] = None
    bearing: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ViewState":
        """Build a view from a {center, zoom, pitch?, bearing?} dictionary.

        Raises:
            ValueError: If center is not a [lng, lat] pair.
        """
        center = data.get("center")
        if not center or len(center) != 2:
            raise ValueError("center must be a [lng, lat] pair")
        pitch = data.get("pitch")
        bearing = data.get("bearing")
        return cls(
            center=(float(center[0]), float(center[1])),
            zoom=float(data["zoom"]),
            pitch=None if pitch is None else float(pitch),
            bearing=None if bearing is None else float(bearing),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Camera options with unspecified fields left out."""
        options: Dict[str, Any] = {"center": list(self.center), "zoom": self.zoom}
        if self.pitch is not None:
            options["pitch"] = self.pitch
        if self.bearing is not None:
            options["bearing"] = self.bearing
        return options


class ViewStateController:
    """Composes camera, visibility and interaction logic over one map."""

    def __init__(
        self,
        engine: MapEngine,
        config: Dict[str, Any],
        initial_view: Optional[ViewState] = None,
        flags: Optional[LayerFlags] = None,
        dataset_loader: Optional[DatasetLoader] = None,
    ):
        self.engine = engine
        self.config = config
        self.registry = HandlerRegistry(engine)
        self.visibility = LayerVisibilitySynchronizer(engine)
        self.clusters = ClusterInteractionHandler(engine, config, on_camera_moved=self.forget_view)
        self.dataset_loader = dataset_loader

        # Last view requested by the page, compared by value
        self.view = initial_view
        self.flags = flags or LayerFlags.from_dict(config.get("default_layers"))

        self.mounted = False
        self.disposed = False
        self._fitted = False

    def mount(self):
        """Subscribe to the map's load and error events.

        Raises:
            RuntimeError: If the view is already mounted or disposed.
        """
        if self.mounted or self.disposed:
            raise RuntimeError("Map view can only be mounted once")
        self.mounted = True
        self.registry.register("load", None, self.on_ready)
        self.registry.register("error", None, self.on_engine_error)

    async def on_ready(self, event: Optional[Dict[str, Any]] = None):
        """Install layers and handlers once the base map has loaded.

        Safe to call again, every step checks what already exists.
        """
        if self.disposed:
            return
        added = install_overlays(self.engine, self.config)
        added.extend(install_observations(self.engine, self.config))
        self.visibility.forget(added)
        self.clusters.register(self.registry)
        self.visibility.sync(self.flags)

        if self.config.get("fit_bounds_on_load") and self.dataset_loader is not None:
            await self.fit_to_observations()

    def on_engine_error(self, event: Dict[str, Any]):
        """Log engine errors. Missing tiles or overlays are not fatal."""
        logger.warning(
            "Map engine error (source=%s): %s",
            event.get("sourceId"),
            event.get("message", "unknown error"),
        )

    def set_view(self, view: ViewState, animate: bool = False) -> bool:
        """Move the camera to a requested view.

        Nothing happens when the request equals the last one, so repeated
        identical requests cause no redundant camera motion.

        Args:
            view: Requested camera position.
            animate: Fly there over a fixed duration instead of jumping.

        Returns:
            True if a camera command was issued.
        """
        if self.disposed or view == self.view:
            return False
        self.view = view

        options = view.to_dict()
        if animate:
            options["duration"] = self.config.get("animation_duration_ms", 1200)
            options["essential"] = True
            self.engine.fly_to(options)
        else:
            # Unspecified pitch/bearing keep their current values
            self.engine.jump_to(options)
        return True

    def on_user_camera(self, view: ViewState):
        """Record a camera move made by direct interaction with the map.

        A later request for the previous view is then applied again, since
        the camera is no longer there.
        """
        self.view = view

    def forget_view(self):
        """Drop the last requested view after the camera moved elsewhere.

        The next request is applied even if it equals the previous one.
        """
        self.view = None

    def set_layer_flags(self, flags: LayerFlags) -> bool:
        """Apply new layer toggles.

        Returns:
            True if the flags differed from the current ones.
        """
        if self.disposed or flags == self.flags:
            return False
        self.flags = flags
        self.visibility.sync(flags)
        return True

    async def fit_to_observations(self) -> bool:
        """Fit the camera to the sightings dataset, once per view.

        Returns:
            True if the camera was moved.
        """
        if self._fitted or self.dataset_loader is None:
            return False
        self._fitted = True

        try:
            dataset = await self.dataset_loader()
        except Exception as e:
            logger.warning("Could not load sightings for fit-to-bounds: %s", e)
            return False

        if self.disposed:
            return False
        bounds = bounds_of(dataset.get("features") or [])
        if bounds is None:
            return False
        self.engine.fit_bounds(bounds, {"padding": FIT_BOUNDS_PADDING, "duration": 0})
        self.forget_view()
        return True

    def dispose(self):
        """Detach every handler and release the map. Idempotent."""
        if self.disposed:
            return
        self.disposed = True
        self.registry.clear()
        self.engine.remove()
