"""
Shared fixtures.

FakeMapEngine stands in for the browser map: it keeps the sources and
layers it was given and records every call so tests can count engine
traffic.
"""

import pytest

from logic.config import get_default_config
from logic.map_style import base_style


class FakeMapEngine:
    def __init__(self, expansion_zoom=8.0, fail_sources=()):
        style = base_style()
        self.sources = set(style["sources"])
        self.layers = {layer["id"] for layer in style["layers"]}
        self.visibility = {}
        self.calls = []
        self.expansion_zoom = expansion_zoom
        self.expansion_error = None
        self.fail_sources = set(fail_sources)
        self.removed = False

    def _record(self, name, *args):
        self.calls.append((name,) + args)

    def calls_named(self, name):
        return [c for c in self.calls if c[0] == name]

    def add_source(self, source_id, source):
        self._record("add_source", source_id)
        if source_id in self.fail_sources:
            raise RuntimeError(f"cannot load {source_id}")
        if source_id in self.sources:
            raise RuntimeError(f"duplicate source {source_id}")
        self.sources.add(source_id)

    def has_source(self, source_id):
        self._record("has_source", source_id)
        return source_id in self.sources

    def add_layer(self, layer, before_id=None):
        self._record("add_layer", layer["id"])
        if layer["id"] in self.layers:
            raise RuntimeError(f"duplicate layer {layer['id']}")
        self.layers.add(layer["id"])

    def has_layer(self, layer_id):
        self._record("has_layer", layer_id)
        return layer_id in self.layers

    def set_layout_property(self, layer_id, name, value):
        self._record("set_layout_property", layer_id, name, value)
        if name == "visibility":
            self.visibility[layer_id] = value

    def set_terrain(self, source_id, exaggeration):
        self._record("set_terrain", source_id, exaggeration)

    def jump_to(self, options):
        self._record("jump_to", options)

    def fly_to(self, options):
        self._record("fly_to", options)

    def fit_bounds(self, bounds, options):
        self._record("fit_bounds", bounds, options)

    def show_popup(self, lng_lat, html):
        self._record("show_popup", lng_lat, html)

    def set_cursor(self, cursor):
        self._record("set_cursor", cursor)

    def on(self, event_type, layer_id=None):
        self._record("on", event_type, layer_id)

    def off(self, event_type, layer_id=None):
        self._record("off", event_type, layer_id)

    def remove(self):
        self._record("remove")
        self.removed = True

    async def get_cluster_expansion_zoom(self, source_id, cluster_id):
        self._record("get_cluster_expansion_zoom", source_id, cluster_id)
        if self.expansion_error is not None:
            raise self.expansion_error
        return self.expansion_zoom

    def visible_layers(self):
        return {layer_id for layer_id, value in self.visibility.items() if value == "visible"}


@pytest.fixture
def engine():
    return FakeMapEngine()


@pytest.fixture
def map_config():
    return get_default_config()


@pytest.fixture
def make_engine():
    return FakeMapEngine
