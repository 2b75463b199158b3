"""
Leaflet Surface - MapSurface implementation on NiceGUI's ui.leaflet.

NiceGUI exposes Leaflet layers one by one, so layer groups are kept on the
Python side: a group remembers its primitives and only creates real Leaflet
layers for them while it is attached.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from nicegui import ui
from nicegui.events import GenericEventArguments

from libreanvil.atlas.authoring import normalize_ring
from libreanvil.atlas.surface import (
    CLICK_EVENT,
    DRAW_CREATED_EVENT,
    DivIcon,
    DrawCreatedEvent,
    MapSurface,
    MarkerPrimitive,
    PolygonPrimitive,
    SurfaceOptions,
)
from libreanvil.data.schemas.models import ImageBounds, LatLng
from libreanvil.utils.logger import get_logger

logger = get_logger(__name__)

HIDE_DRAW_CONTROL_CLASS = "hide-draw-control"

SURFACE_CSS = f"""
    .{HIDE_DRAW_CONTROL_CLASS} .leaflet-draw {{
        display: none;
    }}
    .custom-marker-icon {{
        background: transparent;
        border: none;
    }}
"""

DRAW_CONTROL = {
    "draw": {
        "polygon": True,
        "marker": False,
        "circle": False,
        "rectangle": False,
        "polyline": False,
        "circlemarker": False,
    },
    "edit": {
        "edit": False,
        "remove": False,
    },
}


@dataclass
class _Group:
    """Python-side stand-in for L.layerGroup."""
    primitives: List[Any] = field(default_factory=list)
    layers: List[Any] = field(default_factory=list)
    attached: bool = False


def _icon_js(icon: DivIcon) -> str:
    options = {
        "className": icon.class_name,
        "html": icon.html,
        "iconSize": list(icon.icon_size),
        "iconAnchor": list(icon.icon_anchor),
    }
    return f"L.divIcon({json.dumps(options)})"


class LeafletSurface(MapSurface):
    """
    A NiceGUI leaflet element driven by the map engine.
    """

    def __init__(self, options: SurfaceOptions):
        """
        Create the leaflet element in the current NiceGUI container.

        Args:
            options: Center, zoom and zoom limits of the new map
        """
        map_options: Dict[str, Any] = {"worldCopyJump": options.world_copy_jump}
        if options.min_zoom is not None:
            map_options["minZoom"] = options.min_zoom
        if options.max_zoom is not None:
            map_options["maxZoom"] = options.max_zoom

        self._map = ui.leaflet(
            center=options.center.as_tuple(),
            zoom=options.zoom,
            options=map_options,
            draw_control=DRAW_CONTROL,
            hide_drawn_items=True,
        ).classes(f"w-full h-full {HIDE_DRAW_CONTROL_CLASS}")
        # ui.leaflet ships with a default tile layer; basemaps are attached explicitly
        self._map.clear_layers()

        self._handlers: Dict[str, List[Callable[[Any], Any]]] = {}
        self._cursor = ""
        self._disposed = False

        self._map.on("map-click", self._on_map_click)
        self._map.on("draw:created", self._on_draw_created)

    @property
    def element(self) -> ui.leaflet:
        return self._map

    async def when_ready(self) -> None:
        await self._map.initialized()

    def set_view(self, center: LatLng, zoom: int) -> None:
        self._map.run_map_method("setView", list(center.as_tuple()), zoom)

    def fit_bounds(self, bounds: ImageBounds) -> None:
        self._map.run_map_method("fitBounds", bounds.to_leaflet())

    def add_tile_layer(self, url_template: str, attribution: str) -> Any:
        return self._map.tile_layer(url_template=url_template, options={"attribution": attribution})

    def add_image_overlay(self, image_url: str, bounds: ImageBounds) -> Any:
        return self._map.generic_layer(name="imageOverlay", args=[image_url, bounds.to_leaflet()])

    def remove_layer(self, handle: Any) -> None:
        self._map.remove_layer(handle)

    def create_group(self) -> _Group:
        return _Group()

    def attach_group(self, group: _Group) -> None:
        if group.attached:
            return
        group.attached = True
        group.layers = [self._render(primitive) for primitive in group.primitives]

    def detach_group(self, group: _Group) -> None:
        if not group.attached:
            return
        self._remove_group_layers(group)
        group.attached = False

    def add_to_group(self, group: _Group, primitive: Any) -> Any:
        group.primitives.append(primitive)
        if group.attached:
            group.layers.append(self._render(primitive))
        return primitive

    def clear_group(self, group: _Group) -> None:
        self._remove_group_layers(group)
        group.primitives = []

    def on(self, event: str, handler: Callable[[Any], Any]) -> None:
        self._handlers.setdefault(event, []).append(handler)

    def off(self, event: Optional[str] = None) -> None:
        if event is None:
            self._handlers.clear()
        else:
            self._handlers.pop(event, None)

    def set_draw_control_visible(self, visible: bool) -> None:
        if visible:
            self._map.classes(remove=HIDE_DRAW_CONTROL_CLASS)
        else:
            self._map.classes(add=HIDE_DRAW_CONTROL_CLASS)

    def start_polygon_draw(self) -> None:
        ui.run_javascript(
            f"const map = getElement({self._map.id}).map; "
            f"if (map.polygonDrawer) {{ map.polygonDrawer.disable(); }} "
            f"map.polygonDrawer = new L.Draw.Polygon(map, {{allowIntersection: false, showArea: true}}); "
            f"map.polygonDrawer.enable();"
        )

    def stop_polygon_draw(self) -> None:
        if self._disposed:
            return
        ui.run_javascript(
            f"const map = getElement({self._map.id}).map; "
            f"if (map.polygonDrawer) {{ map.polygonDrawer.disable(); map.polygonDrawer = null; }}"
        )

    def set_cursor(self, cursor: str) -> None:
        if self._cursor:
            self._map.style(remove=f"cursor: {self._cursor}")
        if cursor:
            self._map.style(f"cursor: {cursor}")
        self._cursor = cursor

    def dispose(self) -> None:
        if self._disposed:
            return
        self._disposed = True
        self._handlers.clear()
        self._map.delete()

    def _render(self, primitive: Any) -> Any:
        if isinstance(primitive, MarkerPrimitive):
            layer = self._map.marker(latlng=primitive.latlng)
            if primitive.icon is not None:
                layer.run_method(":setIcon", _icon_js(primitive.icon))
        elif isinstance(primitive, PolygonPrimitive):
            style = primitive.style
            layer = self._map.generic_layer(
                name="polygon",
                args=[
                    [list(point) for point in primitive.latlngs],
                    {
                        "color": style.color,
                        "weight": style.weight,
                        "fillColor": style.fill_color,
                        "fillOpacity": style.fill_opacity,
                    },
                ],
            )
        else:
            raise TypeError(f"Unsupported primitive: {type(primitive).__name__}")
        layer.run_method("bindPopup", primitive.popup_html)
        return layer

    def _remove_group_layers(self, group: _Group) -> None:
        for layer in group.layers:
            self._map.remove_layer(layer)
        group.layers = []

    def _dispatch(self, event: str, payload: Any) -> None:
        for handler in list(self._handlers.get(event, [])):
            try:
                handler(payload)
            except Exception as e:
                logger.error(f"Error in {event} handler: {e}", exc_info=True)
                ui.notify(f"Error: {e}", type="negative")

    def _on_map_click(self, e: GenericEventArguments) -> None:
        latlng = e.args.get("latlng") or {}
        if "lat" not in latlng or "lng" not in latlng:
            return
        self._dispatch(CLICK_EVENT, LatLng(lat=latlng["lat"], lng=latlng["lng"]))

    def _on_draw_created(self, e: GenericEventArguments) -> None:
        layer = e.args.get("layer") or {}
        event = DrawCreatedEvent(
            layer_type=e.args.get("layerType", ""),
            latlngs=layer.get("_latlngs") or [],
        )
        logger.debug(f"Draw created: {event.layer_type} with {len(normalize_ring(event.latlngs))} vertices")
        self._dispatch(DRAW_CREATED_EVENT, event)
