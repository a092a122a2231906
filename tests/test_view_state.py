"""
Tests for the view-state controller.

Run with: python -m pytest tests/test_view_state.py
"""

from unittest.mock import AsyncMock

import pytest

from logic.catalog import get_bear_by_slug, initial_view
from logic.layers import LayerFlags
from logic.map_style import BEARS_SOURCE, CLUSTER_LAYER, LAYER_GROUPS, POINT_LAYER
from logic.view_state import ViewState, ViewStateController

GRIZZLY_VIEW = ViewState(center=(-110.5, 45.5), zoom=5.2)


def camera_calls(engine):
    return [c for c in engine.calls if c[0] in ("jump_to", "fly_to", "fit_bounds")]


class TestViewState:
    def test_value_equality(self):
        assert ViewState((-110.5, 45.5), 5.2) == ViewState.from_dict({"center": [-110.5, 45.5], "zoom": 5.2})
        assert ViewState((-110.5, 45.5), 5.2) != ViewState((-110.5, 45.5), 5.2, pitch=50)

    def test_to_dict_omits_unspecified_fields(self):
        assert GRIZZLY_VIEW.to_dict() == {"center": [-110.5, 45.5], "zoom": 5.2}
        assert ViewState((0, 0), 1, pitch=30, bearing=0).to_dict() == {
            "center": [0, 0], "zoom": 1, "pitch": 30, "bearing": 0,
        }

    def test_bad_center_rejected(self):
        with pytest.raises(ValueError):
            ViewState.from_dict({"center": [1], "zoom": 3})

    def test_catalog_initial_view_defaults(self):
        view = initial_view({"view": {"center": [-98, 39], "zoom": 3.7}})
        assert view.pitch == 45
        assert view.bearing == 0
        assert initial_view(get_bear_by_slug("grizzly-bear")).bearing == -10


class TestSetView:
    def test_jump_issues_one_call_with_exact_values(self, engine, map_config):
        controller = ViewStateController(engine, map_config)

        moved = controller.set_view(GRIZZLY_VIEW, animate=False)

        assert moved is True
        assert camera_calls(engine) == [("jump_to", {"center": [-110.5, 45.5], "zoom": 5.2})]

    def test_repeated_identical_view_is_ignored(self, engine, map_config):
        controller = ViewStateController(engine, map_config)
        controller.set_view(GRIZZLY_VIEW, animate=False)

        for _ in range(3):
            assert controller.set_view(ViewState((-110.5, 45.5), 5.2), animate=False) is False

        assert len(camera_calls(engine)) == 1

    def test_initial_view_counts_as_current(self, engine, map_config):
        controller = ViewStateController(engine, map_config, initial_view=GRIZZLY_VIEW)

        assert controller.set_view(GRIZZLY_VIEW) is False
        assert camera_calls(engine) == []

    def test_animate_flies_with_fixed_duration(self, engine, map_config):
        map_config["animation_duration_ms"] = 900
        controller = ViewStateController(engine, map_config)

        controller.set_view(ViewState((-113.7, 48.7), 5.8, pitch=50), animate=True)

        assert camera_calls(engine) == [
            ("fly_to", {"center": [-113.7, 48.7], "zoom": 5.8, "pitch": 50, "duration": 900, "essential": True})
        ]

    def test_user_move_allows_returning_to_previous_view(self, engine, map_config):
        controller = ViewStateController(engine, map_config, initial_view=GRIZZLY_VIEW)

        controller.on_user_camera(ViewState((-100.0, 40.0), 4.0, pitch=20, bearing=5))

        assert controller.set_view(GRIZZLY_VIEW, animate=True) is True
        assert len(engine.calls_named("fly_to")) == 1


class TestCameraMovedElsewhere:
    CLUSTER_CLICK = {
        "features": [
            {
                "geometry": {"type": "Point", "coordinates": [-110.6, 44.6]},
                "properties": {"cluster_id": 3, "point_count": 40},
            }
        ],
    }

    @pytest.mark.asyncio
    async def test_same_chip_after_cluster_zoom_moves_again(self, engine, map_config):
        chip = ViewState((-110.6, 44.6), 6.2)
        controller = ViewStateController(engine, map_config)
        controller.mount()
        await controller.on_ready()

        assert controller.set_view(chip, animate=True) is True
        await controller.registry.dispatch("click", CLUSTER_LAYER, self.CLUSTER_CLICK)
        moved = controller.set_view(chip, animate=True)

        assert moved is True
        assert len(engine.calls_named("fly_to")) == 3

    @pytest.mark.asyncio
    async def test_failed_cluster_zoom_keeps_last_view(self, engine, map_config):
        engine.expansion_zoom = None
        controller = ViewStateController(engine, map_config, initial_view=GRIZZLY_VIEW)
        controller.mount()
        await controller.on_ready()

        await controller.registry.dispatch("click", CLUSTER_LAYER, self.CLUSTER_CLICK)

        assert controller.set_view(GRIZZLY_VIEW) is False
        assert camera_calls(engine) == []


class TestLifecycle:
    def test_mount_registers_load_and_error(self, engine, map_config):
        controller = ViewStateController(engine, map_config)

        controller.mount()

        assert ("load", None) in controller.registry
        assert ("error", None) in controller.registry
        assert engine.calls_named("on") == [("on", "load", None), ("on", "error", None)]

    def test_mount_only_once(self, engine, map_config):
        controller = ViewStateController(engine, map_config)
        controller.mount()

        with pytest.raises(RuntimeError):
            controller.mount()

    @pytest.mark.asyncio
    async def test_ready_installs_layers_and_handlers(self, engine, map_config):
        map_config["default_layers"] = {"bears": True, "habitat": False, "states": True}
        controller = ViewStateController(engine, map_config)
        controller.mount()

        await controller.registry.dispatch("load", None, {})

        assert BEARS_SOURCE in engine.sources
        assert ("click", CLUSTER_LAYER) in controller.registry
        assert ("click", POINT_LAYER) in controller.registry
        for layer_id in LAYER_GROUPS["habitat"]:
            assert engine.visibility[layer_id] == "none"
        assert engine.visibility[POINT_LAYER] == "visible"

    @pytest.mark.asyncio
    async def test_ready_twice_adds_nothing_new(self, engine, map_config):
        controller = ViewStateController(engine, map_config)
        controller.mount()
        await controller.on_ready()
        adds = len(engine.calls_named("add_source")) + len(engine.calls_named("add_layer"))
        handlers = len(controller.registry)

        await controller.on_ready()

        assert len(engine.calls_named("add_source")) + len(engine.calls_named("add_layer")) == adds
        assert len(controller.registry) == handlers

    @pytest.mark.asyncio
    async def test_layer_flags_are_incremental(self, engine, map_config):
        controller = ViewStateController(engine, map_config)
        controller.mount()
        await controller.on_ready()
        adds = len(engine.calls_named("add_layer"))

        assert controller.set_layer_flags(LayerFlags(bears=False)) is True
        assert controller.set_layer_flags(LayerFlags(bears=False)) is False

        assert engine.visibility[CLUSTER_LAYER] == "none"
        assert len(engine.calls_named("add_layer")) == adds
        assert engine.calls_named("remove") == []

    @pytest.mark.asyncio
    async def test_dispose_detaches_every_handler(self, engine, map_config):
        controller = ViewStateController(engine, map_config)
        controller.mount()
        await controller.on_ready()
        subscribed = {c[1:] for c in engine.calls_named("on")}

        controller.dispose()
        controller.dispose()

        assert len(controller.registry) == 0
        assert {c[1:] for c in engine.calls_named("off")} == subscribed
        assert engine.calls_named("remove") == [("remove",)]
        assert engine.calls[-1] == ("remove",)

    def test_disposed_controller_ignores_requests(self, engine, map_config):
        controller = ViewStateController(engine, map_config)
        controller.dispose()

        assert controller.set_view(GRIZZLY_VIEW) is False
        assert controller.set_layer_flags(LayerFlags(False, False, False)) is False

    def test_engine_error_is_logged_not_raised(self, engine, map_config, caplog):
        controller = ViewStateController(engine, map_config)

        controller.on_engine_error({"message": "404 habitat.geojson", "sourceId": "habitat"})

        assert "404 habitat.geojson" in caplog.text


class TestFitToObservations:
    DATASET = {
        "type": "FeatureCollection",
        "features": [
            {"type": "Feature", "geometry": {"type": "Point", "coordinates": [-111.0, 44.0]}},
            {"type": "Feature", "geometry": {"type": "Point", "coordinates": [-109.0, 46.0]}},
        ],
    }

    @pytest.mark.asyncio
    async def test_disabled_by_default(self, engine, map_config):
        loader = AsyncMock(return_value=self.DATASET)
        controller = ViewStateController(engine, map_config, dataset_loader=loader)

        await controller.on_ready()

        loader.assert_not_awaited()
        assert engine.calls_named("fit_bounds") == []

    @pytest.mark.asyncio
    async def test_fits_once_when_enabled(self, engine, map_config):
        map_config["fit_bounds_on_load"] = True
        loader = AsyncMock(return_value=self.DATASET)
        controller = ViewStateController(engine, map_config, dataset_loader=loader)

        await controller.on_ready()
        await controller.on_ready()

        loader.assert_awaited_once()
        fits = engine.calls_named("fit_bounds")
        assert len(fits) == 1
        assert fits[0][1] == [[-111.0, 44.0], [-109.0, 46.0]]

    @pytest.mark.asyncio
    async def test_loader_failure_is_not_fatal(self, engine, map_config):
        map_config["fit_bounds_on_load"] = True
        loader = AsyncMock(side_effect=OSError("offline"))
        controller = ViewStateController(engine, map_config, dataset_loader=loader)

        await controller.on_ready()

        assert engine.calls_named("fit_bounds") == []
        assert BEARS_SOURCE in engine.sources
