"""
Layer installation and visibility.

Installs the observation and overlay layers on a live map and keeps their
visibility in line with the three page toggles. Every add is checked for
existence first so installing twice is harmless, and the optional overlays
are installed independently of each other.

Author: Matthew Picone (mail@matthewpicone.com)
Date: 2026-01-08
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from .engine import MapEngine, MapEngineError, SourceLoadError
from .map_style import (
    BEARS_SOURCE,
    HABITAT_SOURCE,
    LAYER_GROUPS,
    STATES_SOURCE,
    TERRAIN_SOURCE,
    habitat_layers,
    habitat_source,
    observation_layers,
    observations_source,
    state_layers,
    states_source,
    terrain_source,
)

logger = logging.getLogger(__name__)

VISIBLE = "visible"
HIDDEN = "none"


@dataclass(frozen=True)
class LayerFlags:
    """The three layer toggles owned by the page."""

    bears: bool = True
    habitat: bool = True
    states: bool = True

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "LayerFlags":
        data = data or {}
        return cls(
            bears=bool(data.get("bears", True)),
            habitat=bool(data.get("habitat", True)),
            states=bool(data.get("states", True)),
        )

    def to_dict(self) -> Dict[str, bool]:
        return {"bears": self.bears, "habitat": self.habitat, "states": self.states}


def expected_visibility(flags: LayerFlags) -> Dict[str, str]:
    """Map every toggled layer to its visibility value.

    Args:
        flags: Current toggles.

    Returns:
        Layer id -> "visible" or "none".
    """
    enabled = flags.to_dict()
    return {
        layer_id: VISIBLE if enabled[group] else HIDDEN
        for group, layer_ids in LAYER_GROUPS.items()
        for layer_id in layer_ids
    }


class LayerVisibilitySynchronizer:
    """Applies the toggles to the map without recreating anything."""

    def __init__(self, engine: MapEngine):
        self.engine = engine
        # layer id -> visibility last set by us
        self._applied: Dict[str, str] = {}

    def sync(self, flags: LayerFlags) -> List[str]:
        """Set each layer's visibility independently.

        Layers the map does not have (an optional overlay that failed to
        load) are skipped. Layers already showing the wanted value are
        left alone, so repeating the same flags issues no engine calls.

        Args:
            flags: Current toggles.

        Returns:
            Ids of the layers whose visibility was changed.
        """
        changed = []
        for layer_id, visibility in expected_visibility(flags).items():
            if self._applied.get(layer_id) == visibility:
                continue
            if not self.engine.has_layer(layer_id):
                continue
            self.engine.set_layout_property(layer_id, "visibility", visibility)
            self._applied[layer_id] = visibility
            changed.append(layer_id)
        return changed

    def forget(self, layer_ids: List[str]):
        """Drop cached state for layers that were (re)created."""
        for layer_id in layer_ids:
            self._applied.pop(layer_id, None)


def _ensure_source(engine: MapEngine, source_id: str, source: Dict[str, Any]):
    if engine.has_source(source_id):
        return
    try:
        engine.add_source(source_id, source)
    except MapEngineError:
        raise
    except Exception as e:
        raise SourceLoadError(f"Could not add source {source_id}: {e}") from e


def _ensure_layers(engine: MapEngine, layers: List[Dict[str, Any]]) -> List[str]:
    added = []
    for layer in layers:
        if engine.has_layer(layer["id"]):
            continue
        engine.add_layer(layer)
        added.append(layer["id"])
    return added


def install_observations(engine: MapEngine, config: Dict[str, Any]) -> List[str]:
    """Add the clustered sightings source and its layers.

    Args:
        engine: Live map.
        config: Map configuration.

    Returns:
        Ids of the layers added by this call.
    """
    _ensure_source(engine, BEARS_SOURCE, observations_source(config))
    return _ensure_layers(engine, observation_layers())


def _install_terrain(engine: MapEngine, config: Dict[str, Any]) -> List[str]:
    _ensure_source(engine, TERRAIN_SOURCE, terrain_source(config))
    engine.set_terrain(TERRAIN_SOURCE, config["terrain_exaggeration"])
    return []


def _install_habitat(engine: MapEngine, config: Dict[str, Any]) -> List[str]:
    if not config.get("habitat_url"):
        return []
    _ensure_source(engine, HABITAT_SOURCE, habitat_source(config))
    return _ensure_layers(engine, habitat_layers())


def _install_states(engine: MapEngine, config: Dict[str, Any]) -> List[str]:
    if not config.get("states_url"):
        return []
    _ensure_source(engine, STATES_SOURCE, states_source(config))
    return _ensure_layers(engine, state_layers())


OVERLAY_INSTALLERS: Dict[str, Callable[[MapEngine, Dict[str, Any]], List[str]]] = {
    "terrain": _install_terrain,
    "habitat": _install_habitat,
    "states": _install_states,
}


def install_overlays(engine: MapEngine, config: Dict[str, Any]) -> List[str]:
    """Add terrain, habitat and state overlays, each best-effort.

    A failure in one overlay is logged and does not stop the others or the
    base map.

    Args:
        engine: Live map.
        config: Map configuration.

    Returns:
        Ids of the layers added by this call.
    """
    added = []
    for name, installer in OVERLAY_INSTALLERS.items():
        try:
            added.extend(installer(engine, config))
        except Exception as e:
            logger.warning("Optional %s overlay unavailable: %s", name, e)
    return added
