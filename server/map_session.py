"""
WebSocket map sessions.

Each species map page opens one WebSocket. The browser draws the map with
MapLibre GL and a small bridge script (static/map_bridge.js) that executes
the commands sent from here and forwards map events back. One engine and
one view-state controller live for the lifetime of the connection.

Author: Matthew Picone (mail@matthewpicone.com)
Date: 2026-01-12
"""

import asyncio
import itertools
import json
import logging
from typing import Any, Dict, List, Literal, Optional, Set, Tuple

import aiohttp
from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import BaseModel, ValidationError

from logic.catalog import get_bear_by_slug, initial_view
from logic.config import load_config
from logic.engine import ClusterExpansionError, LngLat, MapEngineError
from logic.layers import LayerFlags
from logic.map_style import base_style
from logic.view_state import ViewState, ViewStateController
from server.data import load_observations

logger = logging.getLogger(__name__)

router = APIRouter()

QUERY_TIMEOUT_SECONDS = 5.0
UNKNOWN_BEAR_CLOSE_CODE = 4404


# ==========================
# Engine
# ==========================
class RemoteMapEngine:
    """MapEngine that drives a MapLibre map in the browser.

    Commands are queued in order on ``outbox`` for the connection to send.
    Sources and layers are mirrored locally so existence checks do not
    need a round trip; cluster expansion queries do.
    """

    def __init__(self, style: Dict[str, Any], query_timeout: float = QUERY_TIMEOUT_SECONDS):
        self.outbox: asyncio.Queue = asyncio.Queue()
        self.sources: Set[str] = set(style.get("sources", {}))
        self.layers: Set[str] = {layer["id"] for layer in style.get("layers", [])}
        self.removed = False
        self.query_timeout = query_timeout
        self._pending: Dict[int, asyncio.Future] = {}
        self._ids = itertools.count(1)

    def _send(self, op: str, **payload: Any):
        if self.removed:
            raise MapEngineError("Map has been removed")
        self.outbox.put_nowait({"op": op, **payload})

    # --------------------------
    # Sources and layers
    # --------------------------
    def add_source(self, source_id: str, source: Dict[str, Any]):
        if source_id in self.sources:
            raise MapEngineError(f"Source {source_id} already exists")
        self._send("addSource", id=source_id, source=source)
        self.sources.add(source_id)

    def has_source(self, source_id: str) -> bool:
        return source_id in self.sources

    def add_layer(self, layer: Dict[str, Any], before_id: Optional[str] = None):
        if layer["id"] in self.layers:
            raise MapEngineError(f"Layer {layer['id']} already exists")
        source = layer.get("source")
        if source is not None and source not in self.sources:
            raise MapEngineError(f"Layer {layer['id']} references missing source {source}")
        self._send("addLayer", layer=layer, beforeId=before_id)
        self.layers.add(layer["id"])

    def has_layer(self, layer_id: str) -> bool:
        return layer_id in self.layers

    def set_layout_property(self, layer_id: str, name: str, value: Any):
        self._send("setLayoutProperty", layer=layer_id, name=name, value=value)

    def set_terrain(self, source_id: str, exaggeration: float):
        self._send("setTerrain", source=source_id, exaggeration=exaggeration)

    # --------------------------
    # Camera
    # --------------------------
    def jump_to(self, options: Dict[str, Any]):
        self._send("jumpTo", options=options)

    def fly_to(self, options: Dict[str, Any]):
        self._send("flyTo", options=options)

    def fit_bounds(self, bounds: List[List[float]], options: Dict[str, Any]):
        self._send("fitBounds", bounds=bounds, options=options)

    # --------------------------
    # UI
    # --------------------------
    def show_popup(self, lng_lat: LngLat, html: str):
        self._send("popup", lngLat=list(lng_lat), html=html)

    def set_cursor(self, cursor: str):
        self._send("cursor", cursor=cursor)

    # --------------------------
    # Events
    # --------------------------
    def on(self, event_type: str, layer_id: Optional[str] = None):
        self._send("on", event=event_type, layer=layer_id)

    def off(self, event_type: str, layer_id: Optional[str] = None):
        self._send("off", event=event_type, layer=layer_id)

    # --------------------------
    # Queries
    # --------------------------
    async def get_cluster_expansion_zoom(self, source_id: str, cluster_id: int) -> Optional[float]:
        """Ask the browser's spatial index for a cluster's expansion zoom.

        Raises:
            ClusterExpansionError: If the browser reports an error or does
                not answer in time.
        """
        query_id = next(self._ids)
        future = asyncio.get_running_loop().create_future()
        self._pending[query_id] = future
        try:
            self._send(
                "query",
                id=query_id,
                query="getClusterExpansionZoom",
                source=source_id,
                clusterId=cluster_id,
            )
            return await asyncio.wait_for(future, self.query_timeout)
        except asyncio.TimeoutError:
            raise ClusterExpansionError(f"No answer for cluster {cluster_id}")
        finally:
            self._pending.pop(query_id, None)

    def resolve(self, query_id: int, result: Optional[float] = None, error: Optional[str] = None):
        """Complete a pending query with the browser's answer."""
        future = self._pending.get(query_id)
        if future is None or future.done():
            logger.debug("Dropping answer for unknown query %s", query_id)
            return
        if error:
            future.set_exception(ClusterExpansionError(error))
        else:
            future.set_result(result)

    def cancel_pending(self):
        """Cancel every query still waiting for an answer."""
        for future in self._pending.values():
            if not future.done():
                future.cancel()
        self._pending.clear()

    def remove(self):
        """Tell the browser to dispose of the map."""
        if self.removed:
            return
        self._send("remove")
        self.removed = True
        self.cancel_pending()


# ==========================
# Messages
# ==========================
class ViewModel(BaseModel):
    """Camera position sent by the page."""

    center: Tuple[float, float]
    zoom: float
    pitch: Optional[float] = None
    bearing: Optional[float] = None

    def to_view(self) -> ViewState:
        return ViewState(
            center=self.center, zoom=self.zoom, pitch=self.pitch, bearing=self.bearing
        )


class EventMessage(BaseModel):
    """Map event forwarded by the bridge."""

    type: Literal["event"]
    event: str
    layer: Optional[str] = None
    payload: Dict[str, Any] = {}


class ResponseMessage(BaseModel):
    """Answer to a query."""

    type: Literal["response"]
    id: int
    result: Optional[float] = None
    error: Optional[str] = None


class NavigateMessage(BaseModel):
    """Reset-view or region chip request."""

    type: Literal["navigate"]
    view: ViewModel
    animate: bool = True


class LayersMessage(BaseModel):
    """Layer toggle change."""

    type: Literal["layers"]
    bears: bool = True
    habitat: bool = True
    states: bool = True


class CameraMessage(BaseModel):
    """Camera moved by direct interaction with the map."""

    type: Literal["camera"]
    view: ViewModel


MESSAGE_MODELS = {
    "event": EventMessage,
    "response": ResponseMessage,
    "navigate": NavigateMessage,
    "layers": LayersMessage,
    "camera": CameraMessage,
}


def parse_message(data: Dict[str, Any]) -> Optional[BaseModel]:
    """Validate an incoming message.

    Returns:
        Parsed message, or None if the type is unknown or the body invalid.
    """
    model = MESSAGE_MODELS.get(data.get("type")) if isinstance(data, dict) else None
    if model is None:
        logger.warning("Ignoring message of unknown type: %r", data)
        return None
    try:
        return model.model_validate(data)
    except ValidationError as e:
        logger.warning("Ignoring malformed %s message: %s", data.get("type"), e)
        return None


# ==========================
# Session
# ==========================
async def fetch_dataset(url: str) -> Dict[str, Any]:
    """Load the sightings collection the page is showing.

    Args:
        url: Absolute URL, or a path served by this app.

    Returns:
        GeoJSON feature collection.
    """
    if url.startswith(("http://", "https://")):
        async with aiohttp.ClientSession() as session:
            async with session.get(url) as resp:
                resp.raise_for_status()
                return await resp.json(content_type=None)
    return await asyncio.to_thread(load_observations)


class MapSession:
    """One mounted map view bound to a WebSocket connection."""

    def __init__(self, controller: ViewStateController, engine: RemoteMapEngine):
        self.controller = controller
        self.engine = engine
        self.tasks: Set[asyncio.Task] = set()

    def _spawn(self, coro):
        # Handlers may await query answers, which arrive through the same
        # receive loop, so they must not block it.
        task = asyncio.create_task(coro)
        self.tasks.add(task)
        task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task):
        self.tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error("Map event handler failed: %s", error, exc_info=error)

    async def handle(self, message: BaseModel):
        """Apply one validated message to the view."""
        if isinstance(message, EventMessage):
            self._spawn(
                self.controller.registry.dispatch(message.event, message.layer, message.payload)
            )
        elif isinstance(message, ResponseMessage):
            self.engine.resolve(message.id, message.result, message.error)
        elif isinstance(message, NavigateMessage):
            self.controller.set_view(message.view.to_view(), animate=message.animate)
        elif isinstance(message, LayersMessage):
            self.controller.set_layer_flags(
                LayerFlags(bears=message.bears, habitat=message.habitat, states=message.states)
            )
        elif isinstance(message, CameraMessage):
            self.controller.on_user_camera(message.view.to_view())

    def close(self):
        """Tear down the view: handlers, queries, then the map."""
        for task in list(self.tasks):
            task.cancel()
        self.engine.cancel_pending()
        self.controller.dispose()


async def pump_commands(ws: WebSocket, outbox: asyncio.Queue):
    """Send queued engine commands to the browser in order."""
    while True:
        command = await outbox.get()
        await ws.send_json(command)


def _sender_done(task: asyncio.Task):
    if task.cancelled():
        return
    error = task.exception()
    if error is not None:
        logger.warning("Map command sender stopped: %s", error)


def start_sender(ws: WebSocket, outbox: asyncio.Queue) -> asyncio.Task:
    """Run pump_commands in the background, logging how it ended."""
    task = asyncio.create_task(pump_commands(ws, outbox))
    task.add_done_callback(_sender_done)
    return task


@router.websocket("/ws/map/{slug}")
async def map_websocket(ws: WebSocket, slug: str):
    await ws.accept()

    bear = get_bear_by_slug(slug)
    if bear is None:
        await ws.close(code=UNKNOWN_BEAR_CLOSE_CODE)
        return

    config = load_config()
    engine = RemoteMapEngine(base_style())
    controller = ViewStateController(
        engine,
        config,
        initial_view=initial_view(bear),
        flags=LayerFlags.from_dict(config["default_layers"]),
        dataset_loader=lambda: fetch_dataset(config["observations_url"]),
    )
    session = MapSession(controller, engine)
    sender = start_sender(ws, engine.outbox)

    controller.mount()
    logger.info("Map session opened for %s", slug)

    try:
        while True:
            text = await ws.receive_text()
            try:
                data = json.loads(text)
            except ValueError as e:
                logger.warning("Ignoring non-JSON message: %s", e)
                continue
            message = parse_message(data)
            if message is not None:
                await session.handle(message)
    except WebSocketDisconnect:
        logger.info("Map session closed for %s", slug)
    finally:
        session.close()
        sender.cancel()
