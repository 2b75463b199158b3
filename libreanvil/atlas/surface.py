"""
Map Surface Interface - The imperative rendering surface driven by the engine.

The engine never talks to a widget toolkit directly. It builds plain render
primitives and hands them to a MapSurface, which owns the real objects
(Leaflet layers in the NiceGUI implementation, recorded calls in tests).
Every handle returned by a surface must be released through the same
surface before ``dispose`` is called or as part of it.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Tuple

from libreanvil.data.schemas.models import ImageBounds, LatLng

CLICK_EVENT = "click"
DRAW_CREATED_EVENT = "draw:created"


@dataclass(frozen=True)
class SurfaceOptions:
    """Creation options for a map surface."""
    center: LatLng
    zoom: int
    min_zoom: Optional[int] = None
    max_zoom: Optional[int] = None
    world_copy_jump: bool = True


@dataclass(frozen=True)
class DivIcon:
    """An HTML marker icon."""
    html: str
    class_name: str = "custom-marker-icon"
    icon_size: Tuple[int, int] = (24, 24)
    icon_anchor: Tuple[int, int] = (12, 12)


@dataclass(frozen=True)
class PathStyle:
    """Stroke and fill options for vector shapes."""
    color: str
    weight: float
    fill_color: str
    fill_opacity: float


@dataclass(frozen=True)
class MarkerPrimitive:
    """Everything needed to draw one marker."""
    source_id: str
    latlng: Tuple[float, float]
    popup_html: str
    icon: Optional[DivIcon] = None


@dataclass(frozen=True)
class PolygonPrimitive:
    """Everything needed to draw one polygon."""
    source_id: str
    latlngs: Tuple[Tuple[float, float], ...]
    style: PathStyle
    popup_html: str


@dataclass
class DrawCreatedEvent:
    """
    Payload of the draw tool's "shape created" event.

    ``latlngs`` is whatever the draw backend produced: a flat ring, or a
    ring nested inside another list.
    """
    layer_type: str
    latlngs: List[Any] = field(default_factory=list)


class MapSurface(ABC):
    """
    Abstract imperative map surface.

    Handles returned by the ``add_*`` and ``create_group`` methods are opaque
    to the engine.
    """

    @abstractmethod
    async def when_ready(self) -> None:
        """Wait until the surface can accept layers."""

    @abstractmethod
    def set_view(self, center: LatLng, zoom: int) -> None:
        """Move the viewport."""

    @abstractmethod
    def fit_bounds(self, bounds: ImageBounds) -> None:
        """Fit the viewport to a bounding box."""

    @abstractmethod
    def add_tile_layer(self, url_template: str, attribution: str) -> Any:
        """Attach a remote tile layer and return its handle."""

    @abstractmethod
    def add_image_overlay(self, image_url: str, bounds: ImageBounds) -> Any:
        """Attach a single image scoped to bounds and return its handle."""

    @abstractmethod
    def remove_layer(self, handle: Any) -> None:
        """Remove a basemap layer."""

    @abstractmethod
    def create_group(self) -> Any:
        """Create an empty, detached layer group."""

    @abstractmethod
    def attach_group(self, group: Any) -> None:
        """Show a group and its children on the surface."""

    @abstractmethod
    def detach_group(self, group: Any) -> None:
        """Remove a group from the surface, keeping its children."""

    @abstractmethod
    def add_to_group(self, group: Any, primitive: Any) -> Any:
        """Add a marker or polygon primitive to a group."""

    @abstractmethod
    def clear_group(self, group: Any) -> None:
        """Remove every child of a group."""

    @abstractmethod
    def on(self, event: str, handler: Callable[[Any], Any]) -> None:
        """Register an event handler ("click" or "draw:created")."""

    @abstractmethod
    def off(self, event: Optional[str] = None) -> None:
        """Remove handlers for one event, or all of them."""

    @abstractmethod
    def set_draw_control_visible(self, visible: bool) -> None:
        """Show or hide the draw toolbar."""

    @abstractmethod
    def start_polygon_draw(self) -> None:
        """Start capturing a polygon, one vertex per click."""

    @abstractmethod
    def stop_polygon_draw(self) -> None:
        """Abandon a polygon capture in progress, if any."""

    @abstractmethod
    def set_cursor(self, cursor: str) -> None:
        """Set the pointer cursor over the map ("" resets it)."""

    @abstractmethod
    def dispose(self) -> None:
        """Destroy the surface and everything attached to it."""


SurfaceFactory = Callable[[SurfaceOptions], MapSurface]
