"""
Rendering engine boundary.

The map itself is drawn by MapLibre GL in the browser. Everything on this
side talks to it through the MapEngine protocol: declarative source and
layer commands, camera commands, and named event subscriptions. Handlers
are tracked in an explicit registry keyed by (event type, layer id) so that
registering again replaces the previous handler instead of stacking up.

Author: Matthew Picone (mail@matthewpicone.com)
Date: 2026-01-07
"""

import inspect
import logging
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple, runtime_checkable

logger = logging.getLogger(__name__)

LngLat = Tuple[float, float]
Handler = Callable[[Dict[str, Any]], Any]
HandlerKey = Tuple[str, Optional[str]]


class MapEngineError(Exception):
    """Base error raised by a map engine."""


class SourceLoadError(MapEngineError):
    """A source could not be added or its data failed to load."""


class ClusterExpansionError(MapEngineError):
    """The spatial index could not answer a cluster expansion query."""


@runtime_checkable
class MapEngine(Protocol):
    """Commands and queries understood by the rendering engine."""

    def add_source(self, source_id: str, source: Dict[str, Any]) -> None: ...

    def has_source(self, source_id: str) -> bool: ...

    def add_layer(self, layer: Dict[str, Any], before_id: Optional[str] = None) -> None: ...

    def has_layer(self, layer_id: str) -> bool: ...

    def set_layout_property(self, layer_id: str, name: str, value: Any) -> None: ...

    def set_terrain(self, source_id: str, exaggeration: float) -> None: ...

    def jump_to(self, options: Dict[str, Any]) -> None: ...

    def fly_to(self, options: Dict[str, Any]) -> None: ...

    def fit_bounds(self, bounds: List[List[float]], options: Dict[str, Any]) -> None: ...

    def show_popup(self, lng_lat: LngLat, html: str) -> None: ...

    def set_cursor(self, cursor: str) -> None: ...

    def on(self, event_type: str, layer_id: Optional[str] = None) -> None: ...

    def off(self, event_type: str, layer_id: Optional[str] = None) -> None: ...

    def remove(self) -> None: ...

    async def get_cluster_expansion_zoom(self, source_id: str, cluster_id: int) -> Optional[float]: ...


class HandlerRegistry:
    """Event handlers of one map view, keyed by (event type, layer id)."""

    def __init__(self, engine: MapEngine):
        self.engine = engine
        self._handlers: Dict[HandlerKey, Handler] = {}

    def __contains__(self, key: HandlerKey) -> bool:
        return key in self._handlers

    def __len__(self) -> int:
        return len(self._handlers)

    def keys(self) -> List[HandlerKey]:
        return list(self._handlers)

    def register(self, event_type: str, layer_id: Optional[str], handler: Handler):
        """Subscribe a handler, replacing any handler already on the key.

        Args:
            event_type: Engine event name (load, error, click, ...).
            layer_id: Layer the event is scoped to, or None for map events.
            handler: Callable receiving the event payload. May be async.
        """
        key = (event_type, layer_id)
        if key in self._handlers:
            self.unregister(event_type, layer_id)
        self._handlers[key] = handler
        self.engine.on(event_type, layer_id)

    def unregister(self, event_type: str, layer_id: Optional[str] = None):
        """Remove the handler on a key, if any."""
        if self._handlers.pop((event_type, layer_id), None) is not None:
            self.engine.off(event_type, layer_id)

    def clear(self):
        """Detach every handler."""
        for event_type, layer_id in list(self._handlers):
            self.unregister(event_type, layer_id)

    async def dispatch(self, event_type: str, layer_id: Optional[str], payload: Dict[str, Any]) -> bool:
        """Invoke the handler registered for an engine event.

        Args:
            event_type: Engine event name.
            layer_id: Layer the event fired on, or None.
            payload: Event data forwarded by the engine.

        Returns:
            True if a handler ran, False if nothing was registered.
        """
        handler = self._handlers.get((event_type, layer_id))
        if handler is None:
            logger.debug("No handler for %s on %s", event_type, layer_id)
            return False

        result = handler(payload)
        if inspect.isawaitable(result):
            await result
        return True
