"""
Content Reconciler - Rebuild rendered markers and polygons from map data.

Every pass is a full rebuild: all groups are cleared and detached, the
active ones are re-attached, and a primitive is created for every marker
and polygon that belongs to an existing, active layer. Rendered state can
therefore never drift from the canonical data.
"""

import html
from dataclasses import dataclass, field
from typing import Any, Collection, Dict, List, Optional

from libreanvil.atlas.layer_groups import LayerGroupRegistry
from libreanvil.atlas.surface import (
    DivIcon,
    MarkerPrimitive,
    PathStyle,
    PolygonPrimitive,
)
from libreanvil.data.schemas.models import Layer, MapData, Marker, Polygon
from libreanvil.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_PATH_COLOR = "#3388ff"


@dataclass
class ReconcileReport:
    """Outcome of one reconciliation pass."""
    active_layer_ids: List[str] = field(default_factory=list)
    markers_rendered: int = 0
    polygons_rendered: int = 0
    skipped: Dict[str, str] = field(default_factory=dict)


def build_popup_html(title: str, description: Optional[str], link: Optional[str]) -> str:
    """
    Popup body for a marker or polygon.

    User text is escaped; the optional link becomes an in-app anchor.
    """
    parts = [
        "<div>",
        f'<h3 style="font-weight: bold; margin-bottom: 5px;">{html.escape(title)}</h3>',
        f"<p>{html.escape(description or '')}</p>",
    ]
    if link:
        parts.append(
            f'<a href="#{html.escape(link, quote=True)}" '
            f'style="color: blue; text-decoration: underline;">View Details</a>'
        )
    parts.append("</div>")
    return "".join(parts)


def marker_icon(color: str) -> DivIcon:
    return DivIcon(
        html=(
            f'<div style="background-color: {html.escape(color, quote=True)}; width: 24px; height: 24px; '
            f'border-radius: 50%; border: 2px solid white;"></div>'
        )
    )


def marker_primitive(marker: Marker, layer: Layer) -> MarkerPrimitive:
    return MarkerPrimitive(
        source_id=marker.id,
        latlng=(marker.lat, marker.lng),
        popup_html=build_popup_html(marker.title, marker.description, marker.link),
        icon=marker_icon(marker.icon_color or layer.color),
    )


def polygon_primitive(polygon: Polygon, layer: Layer) -> PolygonPrimitive:
    fill = polygon.fill_color or layer.color or DEFAULT_PATH_COLOR
    return PolygonPrimitive(
        source_id=polygon.id,
        latlngs=tuple((c.lat, c.lng) for c in polygon.coordinates),
        style=PathStyle(
            color=polygon.stroke_color or fill,
            weight=polygon.stroke_width,
            fill_color=fill,
            fill_opacity=polygon.fill_opacity,
        ),
        popup_html=build_popup_html(polygon.title, polygon.description, polygon.link),
    )


class ContentReconciler:
    """
    Rebuilds render primitives inside the layer groups of one surface.
    """

    def __init__(self, registry: LayerGroupRegistry):
        """
        Initialize the reconciler.

        Args:
            registry: Layer groups of the surface being rendered
        """
        self._registry = registry
        self._rendered: Dict[str, Any] = {}

    @property
    def rendered_ids(self) -> List[str]:
        """IDs of markers and polygons currently on the surface."""
        return list(self._rendered)

    def reconcile(self, map_data: MapData, active_layer_ids: Collection[str]) -> ReconcileReport:
        """
        Rebuild all rendered content.

        Args:
            map_data: Canonical map data
            active_layer_ids: Layers allowed to render

        Returns:
            ReconcileReport with counts and skipped item ids
        """
        registry = self._registry
        registry.sync(map_data.layers)

        for layer_id in registry.layer_ids:
            registry.clear(layer_id)
        for layer_id in registry.layer_ids:
            registry.detach(layer_id)
        self._rendered = {}

        layers = {layer.id: layer for layer in map_data.layers}
        active = [layer.id for layer in map_data.layers if layer.id in active_layer_ids]
        for layer_id in active:
            registry.attach(layer_id)

        report = ReconcileReport(active_layer_ids=active)
        active_set = set(active)

        for marker in map_data.markers:
            layer = layers.get(marker.layer_id)
            if layer is None:
                self._skip(report, marker.id, f"unknown layer {marker.layer_id}")
                continue
            if layer.id not in active_set:
                continue
            if self._add(layer.id, marker.id, marker_primitive(marker, layer)):
                report.markers_rendered += 1

        for polygon in map_data.polygons:
            layer = layers.get(polygon.layer_id)
            if layer is None:
                self._skip(report, polygon.id, f"unknown layer {polygon.layer_id}")
                continue
            if layer.id not in active_set:
                continue
            if not polygon.is_renderable:
                self._skip(report, polygon.id, f"only {len(polygon.coordinates)} vertices")
                continue
            if self._add(layer.id, polygon.id, polygon_primitive(polygon, layer)):
                report.polygons_rendered += 1

        logger.debug(
            f"Reconciled map {map_data.id}: {report.markers_rendered} markers, "
            f"{report.polygons_rendered} polygons, {len(report.skipped)} skipped"
        )
        return report

    def render_polygon(self, polygon: Polygon, layer: Layer) -> bool:
        """
        Render a freshly drawn polygon ahead of the next full pass.

        Returns:
            True if the polygon was added to its layer's group
        """
        if not polygon.is_renderable:
            logger.warning(f"Not rendering polygon {polygon.id}: fewer than 3 vertices")
            return False
        return self._add(layer.id, polygon.id, polygon_primitive(polygon, layer))

    def reset(self) -> None:
        self._rendered = {}

    def _add(self, layer_id: str, source_id: str, primitive: Any) -> bool:
        handle = self._registry.add(layer_id, primitive)
        if handle is None:
            return False
        self._rendered[source_id] = handle
        return True

    def _skip(self, report: ReconcileReport, item_id: str, reason: str) -> None:
        report.skipped[item_id] = reason
        logger.warning(f"Skipping {item_id}: {reason}")
