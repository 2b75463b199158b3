"""
Editing - Collection-level mutations for LibreAnvil.

The editor never patches nested data. Every change produces a new MapData
which replaces the old one by ID inside the persisted collection.
"""

from typing import List, Optional, Sequence

from libreanvil.data.schemas.models import MapData, Marker, Polygon
from libreanvil.utils.logger import get_logger

logger = get_logger(__name__)


def add_map(maps: Sequence[MapData], new_map: MapData) -> List[MapData]:
    return [*maps, new_map]


def replace_map(maps: Sequence[MapData], updated: MapData) -> List[MapData]:
    """
    Replace a map by ID.

    Args:
        maps: Current collection
        updated: New version of one of the maps

    Returns:
        New collection; unchanged if no map has the updated ID
    """
    return [updated if m.id == updated.id else m for m in maps]


def remove_map(maps: Sequence[MapData], map_id: str) -> List[MapData]:
    return [m for m in maps if m.id != map_id]


def select_default_map_id(
    maps: Sequence[MapData],
    current_id: Optional[str] = None
) -> Optional[str]:
    """Keep the current selection if it still exists, else pick the first map."""
    if current_id is not None and any(m.id == current_id for m in maps):
        return current_id
    return maps[0].id if maps else None


def with_markers(map_data: MapData, markers: Sequence[Marker]) -> MapData:
    return map_data.model_copy(update={"markers": list(markers)})


def with_polygons(map_data: MapData, polygons: Sequence[Polygon]) -> MapData:
    return map_data.model_copy(update={"polygons": list(polygons)})


def remove_layer(map_data: MapData, layer_id: str, cascade: bool = True) -> MapData:
    """
    Delete a layer from a map.

    With ``cascade`` the layer's markers and polygons are deleted too and the
    layer is removed from every timeline event. Without it the content keeps
    its now-dangling layer reference and is simply not rendered.

    Args:
        map_data: Map to edit
        layer_id: Layer to delete
        cascade: Also delete content owned by the layer

    Returns:
        The edited copy of the map
    """
    update = {"layers": [layer for layer in map_data.layers if layer.id != layer_id]}

    if cascade:
        markers = [m for m in map_data.markers if m.layer_id != layer_id]
        polygons = [p for p in map_data.polygons if p.layer_id != layer_id]
        events = [
            e.model_copy(update={"layer_ids": [lid for lid in e.layer_ids if lid != layer_id]})
            for e in map_data.timeline_events
        ]
        removed = (len(map_data.markers) - len(markers)) + (len(map_data.polygons) - len(polygons))
        logger.info(f"Removed layer {layer_id} with {removed} owned items")
        update.update(markers=markers, polygons=polygons, timeline_events=events)
    else:
        logger.info(f"Removed layer {layer_id} without cascading")

    return map_data.model_copy(update=update)
