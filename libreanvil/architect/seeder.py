"""
Seeder - Default map collection for LibreAnvil.

An empty store is seeded with a small fantasy world so the editor has
layers, markers, a polygon and a timeline to show on first start.
"""

from typing import List

from libreanvil.data.schemas.models import (
    LatLng,
    Layer,
    MapData,
    Marker,
    Polygon,
    TimelineEvent,
)
from libreanvil.utils.logger import get_logger

logger = get_logger(__name__)


def default_maps() -> List[MapData]:
    """
    Build the default map collection.

    Returns:
        A fresh list containing the "Fantasy World" map
    """
    fantasy_world = MapData(
        id="default-map",
        name="Fantasy World",
        center_lat=0.0,
        center_lng=0.0,
        zoom=3,
        layers=[
            Layer(id="layer-1", name="Kingdoms", color="#ff0000", is_visible=True),
            Layer(id="layer-2", name="Landmarks", color="#00ff00", is_visible=True),
            Layer(id="layer-3", name="Routes", color="#0000ff", is_visible=True),
        ],
        markers=[
            Marker(
                id="marker-1",
                layer_id="layer-1",
                title="Kingdom of Eldoria",
                description="The central kingdom of the realm",
                lat=10,
                lng=5,
                icon_color="#ff0000",
            ),
            Marker(
                id="marker-2",
                layer_id="layer-2",
                title="Ancient Tower",
                description="A mysterious tower from a forgotten age",
                lat=-5,
                lng=15,
                icon_color="#00ff00",
            ),
            Marker(
                id="marker-3",
                layer_id="layer-3",
                title="Trade Route",
                description="Main trade route between kingdoms",
                lat=0,
                lng=0,
                icon_color="#0000ff",
            ),
        ],
        polygons=[
            Polygon(
                id="polygon-1",
                layer_id="layer-1",
                title="Kingdom Territory",
                description="The territory of the Kingdom of Eldoria",
                coordinates=[
                    LatLng(lat=8, lng=3),
                    LatLng(lat=12, lng=3),
                    LatLng(lat=12, lng=7),
                    LatLng(lat=8, lng=7),
                ],
                fill_color="#ff0000",
                stroke_color="#ff0000",
                fill_opacity=0.3,
                stroke_width=2,
            ),
        ],
        timeline_events=[
            TimelineEvent(
                id="event-1",
                name="Age of Foundation",
                year="1000 BE",
                description="The founding of the first kingdoms",
                layer_ids=["layer-1"],
            ),
            TimelineEvent(
                id="event-2",
                name="Age of Discovery",
                year="500 BE",
                description="Explorers discover ancient landmarks",
                layer_ids=["layer-1", "layer-2"],
            ),
            TimelineEvent(
                id="event-3",
                name="Age of Trade",
                year="Present",
                description="Trade routes established between kingdoms",
                layer_ids=["layer-1", "layer-2", "layer-3"],
            ),
        ],
        use_custom_tile_layer=False,
    )
    logger.debug("Built default map collection")
    return [fantasy_world]
