"""
Interactive Authoring - Turn pointer gestures into map data.

The state machine has three mutually exclusive modes. Each placing or
drawing activation is single-shot: after one successful marker or polygon
it returns to IDLE. New items always belong to the first active layer.
"""

from enum import Enum
from typing import Any, Callable, List, Optional, Sequence

from libreanvil.architect.factories import (
    InvalidGeometryError,
    create_new_marker,
    create_new_polygon,
)
from libreanvil.atlas.surface import DrawCreatedEvent
from libreanvil.data.schemas.models import LatLng, Layer, MapData, Marker, Polygon
from libreanvil.utils.logger import get_logger

logger = get_logger(__name__)

NEW_MARKER_TITLE = "New Marker"
NEW_MARKER_DESCRIPTION = "Click to edit this marker"
NEW_POLYGON_TITLE = "New Polygon"
NEW_POLYGON_DESCRIPTION = "Click to edit this polygon"


class AuthoringMode(str, Enum):
    """Authoring modes."""
    IDLE = "idle"
    PLACING_MARKER = "placing_marker"
    DRAWING_POLYGON = "drawing_polygon"


def _to_latlng(point: Any) -> Optional[LatLng]:
    if isinstance(point, LatLng):
        return point
    if isinstance(point, dict) and "lat" in point and "lng" in point:
        return LatLng(lat=point["lat"], lng=point["lng"])
    if isinstance(point, (list, tuple)) and len(point) == 2 and all(
        isinstance(v, (int, float)) for v in point
    ):
        return LatLng(lat=point[0], lng=point[1])
    return None


def normalize_ring(latlngs: Sequence[Any]) -> List[LatLng]:
    """
    Flatten a draw backend's vertex output into an ordered ring.

    Accepts a flat ring or a ring nested in outer lists (ring-of-rings),
    with vertices as LatLng, ``{"lat", "lng"}`` mappings or ``[lat, lng]``
    pairs. Entries that are not vertices are dropped.

    Args:
        latlngs: Raw vertex output

    Returns:
        Vertices in input order
    """
    ring: Any = latlngs
    # Unwrap [[ring]] until the first element is itself a vertex
    while (
        isinstance(ring, (list, tuple))
        and ring
        and _to_latlng(ring[0]) is None
        and isinstance(ring[0], (list, tuple))
    ):
        ring = ring[0]

    if not isinstance(ring, (list, tuple)):
        return []

    points = []
    for item in ring:
        point = _to_latlng(item)
        if point is not None:
            points.append(point)
    return points


class AuthoringStateMachine:
    """
    Idle / placing-marker / drawing-polygon state machine.

    The machine owns the draw-control visibility and the cursor so that the
    surface is told explicitly what to show.
    """

    def __init__(
        self,
        on_update_markers: Callable[[List[Marker]], None],
        on_update_polygons: Callable[[List[Polygon]], None],
    ):
        """
        Initialize the state machine.

        Args:
            on_update_markers: Receives the full replacement marker list
            on_update_polygons: Receives the full replacement polygon list
        """
        self._on_update_markers = on_update_markers
        self._on_update_polygons = on_update_polygons
        self._mode = AuthoringMode.IDLE

    @property
    def mode(self) -> AuthoringMode:
        return self._mode

    @property
    def draw_control_visible(self) -> bool:
        return self._mode == AuthoringMode.DRAWING_POLYGON

    @property
    def cursor(self) -> str:
        return "crosshair" if self._mode == AuthoringMode.PLACING_MARKER else ""

    def toggle_marker_placement(self) -> AuthoringMode:
        """Enter placing mode, or leave it if already placing."""
        if self._mode == AuthoringMode.PLACING_MARKER:
            return self._set_mode(AuthoringMode.IDLE)
        return self._set_mode(AuthoringMode.PLACING_MARKER)

    def toggle_polygon_drawing(self) -> AuthoringMode:
        """Enter drawing mode, or leave it if already drawing."""
        if self._mode == AuthoringMode.DRAWING_POLYGON:
            return self._set_mode(AuthoringMode.IDLE)
        return self._set_mode(AuthoringMode.DRAWING_POLYGON)

    def cancel(self) -> None:
        self._set_mode(AuthoringMode.IDLE)

    def handle_click(
        self,
        latlng: LatLng,
        map_data: MapData,
        active_layers: Sequence[Layer]
    ) -> Optional[Marker]:
        """
        Place a marker at a clicked position.

        Args:
            latlng: Clicked geographic position
            map_data: Current canonical map data
            active_layers: Active layers in layer-list order

        Returns:
            The new marker, or None if the click did nothing
        """
        if self._mode != AuthoringMode.PLACING_MARKER:
            return None
        if not active_layers:
            logger.info("Ignoring click: no active layer to own a marker")
            return None

        owner = active_layers[0]
        marker = create_new_marker(
            layer_id=owner.id,
            title=NEW_MARKER_TITLE,
            lat=latlng.lat,
            lng=latlng.lng,
            icon_color=owner.color,
            description=NEW_MARKER_DESCRIPTION,
        )
        self._set_mode(AuthoringMode.IDLE)
        logger.info(f"Placed marker {marker.id} on layer {owner.id}")
        self._on_update_markers([*map_data.markers, marker])
        return marker

    def handle_draw_created(
        self,
        event: DrawCreatedEvent,
        map_data: MapData,
        active_layers: Sequence[Layer]
    ) -> Optional[Polygon]:
        """
        Turn a completed draw into a polygon.

        Args:
            event: Draw tool payload
            map_data: Current canonical map data
            active_layers: Active layers in layer-list order

        Returns:
            The new polygon, or None if the draw was discarded
        """
        if self._mode != AuthoringMode.DRAWING_POLYGON:
            logger.debug(f"Ignoring draw completed while {self._mode.value}")
            return None
        if event.layer_type != "polygon":
            logger.debug(f"Ignoring drawn {event.layer_type}")
            return None
        if not active_layers:
            logger.info("Discarding drawn polygon: no active layer to own it")
            return None

        owner = active_layers[0]
        try:
            polygon = create_new_polygon(
                layer_id=owner.id,
                title=NEW_POLYGON_TITLE,
                coordinates=normalize_ring(event.latlngs),
                fill_color=owner.color,
                description=NEW_POLYGON_DESCRIPTION,
            )
        except InvalidGeometryError as e:
            logger.error(f"Discarding drawn polygon: {e}")
            return None

        self._set_mode(AuthoringMode.IDLE)
        logger.info(f"Drew polygon {polygon.id} with {len(polygon.coordinates)} vertices on layer {owner.id}")
        self._on_update_polygons([*map_data.polygons, polygon])
        return polygon

    def _set_mode(self, mode: AuthoringMode) -> AuthoringMode:
        if mode != self._mode:
            logger.debug(f"Authoring mode: {self._mode.value} -> {mode.value}")
            self._mode = mode
        return self._mode
