"""Unit tests for the interactive authoring state machine."""

import pytest

from libreanvil.atlas.authoring import (
    NEW_MARKER_DESCRIPTION,
    NEW_MARKER_TITLE,
    NEW_POLYGON_TITLE,
    AuthoringMode,
    AuthoringStateMachine,
    normalize_ring,
)
from libreanvil.atlas.surface import DrawCreatedEvent
from libreanvil.data.schemas.models import LatLng


@pytest.fixture
def updates():
    """Collects callback payloads."""
    return {"markers": [], "polygons": []}


@pytest.fixture
def machine(updates) -> AuthoringStateMachine:
    """A state machine wired to the updates collector."""
    return AuthoringStateMachine(
        on_update_markers=updates["markers"].append,
        on_update_polygons=updates["polygons"].append,
    )


def _ring(n):
    return [{"lat": float(i), "lng": float(i * 2)} for i in range(n)]


class TestModes:
    """Test mode transitions and derived UI state."""

    def test_starts_idle(self, machine):
        """Test the initial state."""
        assert machine.mode == AuthoringMode.IDLE
        assert machine.cursor == ""
        assert machine.draw_control_visible is False

    def test_marker_toggle(self, machine):
        """Test toggling placement on and off."""
        assert machine.toggle_marker_placement() == AuthoringMode.PLACING_MARKER
        assert machine.cursor == "crosshair"
        assert machine.toggle_marker_placement() == AuthoringMode.IDLE
        assert machine.cursor == ""

    def test_polygon_toggle(self, machine):
        """Test toggling drawing shows and hides the draw control."""
        machine.toggle_polygon_drawing()
        assert machine.draw_control_visible is True
        machine.toggle_polygon_drawing()
        assert machine.draw_control_visible is False

    def test_modes_are_mutually_exclusive(self, machine):
        """Test entering one mode leaves the other."""
        machine.toggle_marker_placement()
        machine.toggle_polygon_drawing()
        assert machine.mode == AuthoringMode.DRAWING_POLYGON
        assert machine.cursor == ""

        machine.toggle_marker_placement()
        assert machine.mode == AuthoringMode.PLACING_MARKER
        assert machine.draw_control_visible is False

    def test_cancel(self, machine):
        """Test cancel returns to idle."""
        machine.toggle_polygon_drawing()
        machine.cancel()
        assert machine.mode == AuthoringMode.IDLE


class TestMarkerPlacement:
    """Test click handling."""

    def test_click_places_marker_on_first_active_layer(self, machine, updates, sample_map, sample_layers):
        """Test with active layers [A, B] the marker belongs to A."""
        machine.toggle_marker_placement()
        marker = machine.handle_click(LatLng(lat=5, lng=6), sample_map, sample_layers[:2])

        assert marker.layer_id == "layer-a"
        assert marker.title == NEW_MARKER_TITLE
        assert marker.description == NEW_MARKER_DESCRIPTION
        assert marker.icon_color == "#ff0000"
        assert (marker.lat, marker.lng) == (5, 6)
        assert machine.mode == AuthoringMode.IDLE

    def test_click_sends_full_marker_list(self, machine, updates, sample_map, sample_layers):
        """Test the callback receives existing markers plus the new one."""
        machine.toggle_marker_placement()
        marker = machine.handle_click(LatLng(lat=0, lng=0), sample_map, sample_layers)

        assert len(updates["markers"]) == 1
        sent = updates["markers"][0]
        assert [m.id for m in sent] == ["marker-a", "marker-b", marker.id]
        # Input data is untouched
        assert len(sample_map.markers) == 2

    def test_click_without_active_layer_is_noop(self, machine, updates, sample_map):
        """Test a click with no active layer changes nothing."""
        machine.toggle_marker_placement()
        assert machine.handle_click(LatLng(lat=0, lng=0), sample_map, []) is None
        assert updates["markers"] == []
        assert machine.mode == AuthoringMode.PLACING_MARKER

    def test_click_when_idle_is_noop(self, machine, updates, sample_map, sample_layers):
        """Test clicks outside placing mode are ignored."""
        assert machine.handle_click(LatLng(lat=0, lng=0), sample_map, sample_layers) is None
        assert updates["markers"] == []

    def test_single_shot(self, machine, updates, sample_map, sample_layers):
        """Test a second click after placing does nothing."""
        machine.toggle_marker_placement()
        machine.handle_click(LatLng(lat=0, lng=0), sample_map, sample_layers)
        machine.handle_click(LatLng(lat=1, lng=1), sample_map, sample_layers)
        assert len(updates["markers"]) == 1


class TestPolygonDrawing:
    """Test draw-created handling."""

    def test_creates_polygon_in_input_order(self, machine, updates, sample_map, sample_layers):
        """Test a three-vertex ring is accepted in order."""
        machine.toggle_polygon_drawing()
        polygon = machine.handle_draw_created(
            DrawCreatedEvent(layer_type="polygon", latlngs=[_ring(3)]),
            sample_map,
            sample_layers[1:],
        )

        assert polygon.layer_id == "layer-b"
        assert polygon.title == NEW_POLYGON_TITLE
        assert polygon.fill_color == "#00ff00"
        assert polygon.stroke_color == "#00ff00"
        assert polygon.fill_opacity == pytest.approx(0.3)
        assert polygon.stroke_width == pytest.approx(2)
        assert [(c.lat, c.lng) for c in polygon.coordinates] == [(0, 0), (1, 2), (2, 4)]
        assert [p.id for p in updates["polygons"][0]] == ["polygon-a", polygon.id]
        assert machine.mode == AuthoringMode.IDLE
        assert machine.draw_control_visible is False

    def test_two_vertices_rejected(self, machine, updates, sample_map, sample_layers):
        """Test a two-vertex ring is discarded without mutation."""
        machine.toggle_polygon_drawing()
        result = machine.handle_draw_created(
            DrawCreatedEvent(layer_type="polygon", latlngs=[_ring(2)]),
            sample_map,
            sample_layers,
        )
        assert result is None
        assert updates["polygons"] == []
        assert machine.mode == AuthoringMode.DRAWING_POLYGON

    def test_non_polygon_ignored(self, machine, updates, sample_map, sample_layers):
        """Test other draw types are ignored."""
        machine.toggle_polygon_drawing()
        result = machine.handle_draw_created(
            DrawCreatedEvent(layer_type="polyline", latlngs=_ring(4)),
            sample_map,
            sample_layers,
        )
        assert result is None
        assert updates["polygons"] == []

    def test_no_active_layer(self, machine, updates, sample_map):
        """Test a drawn polygon without an owner is discarded."""
        machine.toggle_polygon_drawing()
        result = machine.handle_draw_created(
            DrawCreatedEvent(layer_type="polygon", latlngs=[_ring(4)]),
            sample_map,
            [],
        )
        assert result is None
        assert updates["polygons"] == []

    def test_draw_ignored_outside_drawing_mode(self, machine, updates, sample_map, sample_layers):
        """Test a draw finishing after drawing mode was left creates nothing."""
        machine.toggle_polygon_drawing()
        machine.toggle_marker_placement()
        result = machine.handle_draw_created(
            DrawCreatedEvent(layer_type="polygon", latlngs=[_ring(4)]),
            sample_map,
            sample_layers,
        )
        assert result is None
        assert updates["polygons"] == []
        assert machine.mode == AuthoringMode.PLACING_MARKER

    def test_draw_ignored_when_idle(self, machine, updates, sample_map, sample_layers):
        """Test a stray draw while idle creates nothing."""
        result = machine.handle_draw_created(
            DrawCreatedEvent(layer_type="polygon", latlngs=[_ring(4)]),
            sample_map,
            sample_layers,
        )
        assert result is None
        assert updates["polygons"] == []


class TestCallbackOrdering:
    """Test callbacks observe the post-gesture mode."""

    def test_marker_callback_sees_idle(self, sample_map, sample_layers):
        """Test the marker callback runs after the machine returned to idle."""
        seen = []
        machine = AuthoringStateMachine(
            on_update_markers=lambda markers: seen.append(machine.mode),
            on_update_polygons=lambda polygons: None,
        )
        machine.toggle_marker_placement()
        machine.handle_click(LatLng(lat=0, lng=0), sample_map, sample_layers)
        assert seen == [AuthoringMode.IDLE]

    def test_polygon_callback_sees_idle(self, sample_map, sample_layers):
        """Test the polygon callback runs after the machine returned to idle."""
        seen = []
        machine = AuthoringStateMachine(
            on_update_markers=lambda markers: None,
            on_update_polygons=lambda polygons: seen.append(machine.mode),
        )
        machine.toggle_polygon_drawing()
        machine.handle_draw_created(
            DrawCreatedEvent(layer_type="polygon", latlngs=[_ring(3)]),
            sample_map,
            sample_layers,
        )
        assert seen == [AuthoringMode.IDLE]


class TestNormalizeRing:
    """Test normalize_ring."""

    def test_flat_mappings(self):
        """Test a flat list of lat/lng mappings."""
        assert [p.as_tuple() for p in normalize_ring(_ring(3))] == [(0, 0), (1, 2), (2, 4)]

    def test_ring_of_rings(self):
        """Test a ring nested in an outer list is unwrapped."""
        assert len(normalize_ring([_ring(4)])) == 4
        assert len(normalize_ring([[_ring(4)]])) == 4

    def test_pairs(self):
        """Test [lat, lng] pairs, flat and nested."""
        pairs = [[0, 0], [0, 1], [1, 1]]
        assert [p.as_tuple() for p in normalize_ring(pairs)] == [(0, 0), (0, 1), (1, 1)]
        assert len(normalize_ring([pairs])) == 3

    def test_latlng_objects(self):
        """Test LatLng instances pass through."""
        ring = [LatLng(lat=1, lng=1), LatLng(lat=2, lng=2)]
        assert normalize_ring(ring) == ring

    def test_empty_and_junk(self):
        """Test empty input and non-vertex entries."""
        assert normalize_ring([]) == []
        assert normalize_ring([[]]) == []
        assert len(normalize_ring([{"lat": 1, "lng": 2}, "junk", {"x": 1}])) == 1
