"""
Factories - Creation helpers for LibreAnvil map data.

Every authored item gets an ID derived from its creation timestamp
(``"marker-1718000000000"``). IDs are strictly increasing within a process.
"""

import threading
import time
from typing import Iterable, List, Optional, Sequence

from libreanvil.data.schemas.models import (
    CustomTileLayer,
    LatLng,
    Layer,
    MapData,
    Marker,
    Polygon,
    TimelineEvent,
)

MIN_POLYGON_VERTICES = 3

_id_lock = threading.Lock()
_last_stamp = 0


class InvalidGeometryError(ValueError):
    """Raised when a polygon ring cannot form an area."""


def new_id(prefix: str) -> str:
    """
    Mint a creation-timestamp identifier.

    Args:
        prefix: Item kind, e.g. "marker"

    Returns:
        ID of the form "{prefix}-{epoch millis}"
    """
    global _last_stamp
    with _id_lock:
        stamp = int(time.time() * 1000)
        if stamp <= _last_stamp:
            stamp = _last_stamp + 1
        _last_stamp = stamp
    return f"{prefix}-{stamp}"


def create_new_map(name: str, custom_tile_layer: Optional[CustomTileLayer] = None) -> MapData:
    """Create an empty map centered on (0, 0) at zoom 3."""
    return MapData(
        id=new_id("map"),
        name=name,
        center_lat=0.0,
        center_lng=0.0,
        zoom=3,
        custom_tile_layer=custom_tile_layer,
        use_custom_tile_layer=custom_tile_layer is not None,
    )


def create_new_layer(name: str, color: str) -> Layer:
    return Layer(id=new_id("layer"), name=name, color=color, is_visible=True)


def create_new_marker(
    layer_id: str,
    title: str,
    lat: float,
    lng: float,
    icon_color: Optional[str] = "#ff0000",
    description: str = "",
) -> Marker:
    return Marker(
        id=new_id("marker"),
        layer_id=layer_id,
        title=title,
        description=description,
        lat=lat,
        lng=lng,
        icon_color=icon_color,
    )


def validate_ring(coordinates: Sequence[LatLng]) -> List[LatLng]:
    """
    Check that a vertex ring can form a polygon.

    Args:
        coordinates: Ordered vertices

    Returns:
        The vertices as a new list, in input order

    Raises:
        InvalidGeometryError: If fewer than three vertices are given
    """
    ring = list(coordinates)
    if len(ring) < MIN_POLYGON_VERTICES:
        raise InvalidGeometryError(
            f"A polygon needs at least {MIN_POLYGON_VERTICES} vertices, got {len(ring)}"
        )
    return ring


def create_new_polygon(
    layer_id: str,
    title: str,
    coordinates: Sequence[LatLng],
    fill_color: str,
    description: str = "",
) -> Polygon:
    """
    Create a polygon styled from a single color.

    Raises:
        InvalidGeometryError: If the ring has fewer than three vertices
    """
    return Polygon(
        id=new_id("polygon"),
        layer_id=layer_id,
        title=title,
        description=description,
        coordinates=validate_ring(coordinates),
        fill_color=fill_color,
        stroke_color=fill_color,
        fill_opacity=0.3,
        stroke_width=2,
    )


def create_new_timeline_event(
    name: str,
    year: Optional[str] = None,
    description: Optional[str] = None,
    layer_ids: Iterable[str] = (),
) -> TimelineEvent:
    return TimelineEvent(
        id=new_id("event"),
        name=name,
        year=year,
        description=description,
        layer_ids=list(layer_ids),
    )
