"""
Pydantic Models for LibreAnvil.

This module defines the canonical, serializable map data:
- MapData: A complete authored map (basemap choice, layers, content, timeline)
- Layer: A named, colored grouping of markers and polygons
- Marker / Polygon: Authored geometry owned by a layer
- TimelineEvent: A point on the timeline that activates a subset of layers
- CustomTileLayer: A single georeferenced image used as the basemap
"""

from typing import List, Optional
from pydantic import BaseModel, Field


class LatLng(BaseModel):
    """Geographic position in degrees."""
    lat: float = Field(..., description="Latitude in degrees")
    lng: float = Field(..., description="Longitude in degrees")

    def as_tuple(self) -> tuple:
        return (self.lat, self.lng)


class ImageBounds(BaseModel):
    """
    Geographic bounding box of a georeferenced image.
    """
    south_west: LatLng = Field(..., description="South-west corner")
    north_east: LatLng = Field(..., description="North-east corner")

    @property
    def lat_span(self) -> float:
        return self.north_east.lat - self.south_west.lat

    @property
    def lng_span(self) -> float:
        return self.north_east.lng - self.south_west.lng

    def to_leaflet(self) -> List[List[float]]:
        """Convert to Leaflet's [[south, west], [north, east]] form."""
        return [
            [self.south_west.lat, self.south_west.lng],
            [self.north_east.lat, self.north_east.lng],
        ]


class CustomTileLayer(BaseModel):
    """
    A custom raster image used as the basemap.

    The bounds are derived data: they are recomputed from the map center,
    zoom and the image's natural size whenever one of those changes.
    """
    image_url: str = Field(..., description="Image source (usually a data URL)")
    image_bounds: ImageBounds = Field(..., description="Computed geographic bounds")
    image_width: int = Field(..., gt=0, description="Natural pixel width")
    image_height: int = Field(..., gt=0, description="Natural pixel height")


class ImageInput(BaseModel):
    """An already-decoded image handed over by the upload widget."""
    data_url: str = Field(..., description="Image as a data URL")
    width: int = Field(..., gt=0, description="Pixel width")
    height: int = Field(..., gt=0, description="Pixel height")


class Layer(BaseModel):
    """
    A user-defined grouping of markers and polygons.

    ``is_visible`` is advisory only; rendering visibility is decided by the
    active-layer set derived from the timeline.
    """
    id: str = Field(..., description="Unique identifier")
    name: str = Field(..., description="Display name")
    color: str = Field(..., description="Display color (CSS color)")
    is_visible: Optional[bool] = Field(True, description="Advisory visibility flag")


class Marker(BaseModel):
    """A point of interest owned by a layer."""
    id: str = Field(..., description="Unique identifier")
    layer_id: str = Field(..., description="Owning layer ID")
    title: str = Field(..., description="Popup title")
    description: Optional[str] = Field("", description="Popup body")
    lat: float = Field(..., description="Latitude in degrees")
    lng: float = Field(..., description="Longitude in degrees")
    icon_color: Optional[str] = Field(None, description="Icon color, layer color if unset")
    link: Optional[str] = Field(None, description="Internal navigation link")

    @property
    def position(self) -> LatLng:
        return LatLng(lat=self.lat, lng=self.lng)


class Polygon(BaseModel):
    """
    An area owned by a layer.

    Rings shorter than three vertices are accepted here so that stored data
    always loads, but they are never rendered.
    """
    id: str = Field(..., description="Unique identifier")
    layer_id: str = Field(..., description="Owning layer ID")
    title: str = Field(..., description="Popup title")
    description: Optional[str] = Field("", description="Popup body")
    coordinates: List[LatLng] = Field(default_factory=list, description="Ordered vertex ring")
    fill_color: Optional[str] = Field(None, description="Fill color, layer color if unset")
    stroke_color: Optional[str] = Field(None, description="Stroke color, fill color if unset")
    fill_opacity: float = Field(0.3, ge=0.0, le=1.0, description="Fill opacity")
    stroke_width: float = Field(2.0, gt=0.0, description="Stroke width in pixels")
    link: Optional[str] = Field(None, description="Internal navigation link")

    @property
    def is_renderable(self) -> bool:
        return len(self.coordinates) >= 3


class TimelineEvent(BaseModel):
    """
    A timeline entry activating a set of layers.

    ``year`` is a free-text label ("1000 BE", "Present"); ordering uses a
    best-effort integer parse of it.
    """
    id: str = Field(..., description="Unique identifier")
    name: str = Field(..., description="Display name")
    year: Optional[str] = Field(None, description="Year or era label")
    description: Optional[str] = Field(None, description="Event description")
    layer_ids: List[str] = Field(default_factory=list, description="Layers visible during this event")


class MapData(BaseModel):
    """
    A complete authored map.

    This is the canonical state that the map engine renders. It is always
    replaced wholesale, never patched in place.
    """
    id: str = Field(..., description="Unique identifier")
    name: str = Field(..., description="Display name")
    center_lat: float = Field(0.0, description="Initial center latitude")
    center_lng: float = Field(0.0, description="Initial center longitude")
    zoom: int = Field(3, description="Initial zoom level")
    layers: List[Layer] = Field(default_factory=list, description="Ordered layers")
    markers: List[Marker] = Field(default_factory=list, description="Markers")
    polygons: List[Polygon] = Field(default_factory=list, description="Polygons")
    timeline_events: List[TimelineEvent] = Field(default_factory=list, description="Timeline events")
    custom_tile_layer: Optional[CustomTileLayer] = Field(None, description="Custom image basemap")
    use_custom_tile_layer: bool = Field(False, description="Use the custom image instead of tiles")

    @property
    def center(self) -> LatLng:
        return LatLng(lat=self.center_lat, lng=self.center_lng)

    def get_layer(self, layer_id: str) -> Optional[Layer]:
        """Look up a layer by ID."""
        for layer in self.layers:
            if layer.id == layer_id:
                return layer
        return None
