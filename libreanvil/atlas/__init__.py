"""
Atlas module - The map synchronization engine.

Keeps an imperative map surface in sync with the declarative map data:
- georeference: Place a custom image on the geographic plane
- basemap: Attach the tile service or the custom image
- layer_groups: One render group per layer
- timeline: Resolve the active layers from the selected event
- reconciler: Rebuild markers and polygons from the data
- authoring: Marker placement and polygon drawing state machine
- lifecycle: Mount, update and tear down a surface
"""

from libreanvil.atlas.georeference import (
    GeoreferenceError,
    compute_image_bounds,
    build_custom_tile_layer,
    refresh_custom_tile_layer,
)
from libreanvil.atlas.surface import (
    MapSurface,
    SurfaceFactory,
    SurfaceOptions,
    DrawCreatedEvent,
    MarkerPrimitive,
    PolygonPrimitive,
)
from libreanvil.atlas.basemap import (
    BasemapKind,
    BasemapLoadError,
    BasemapSelector,
    decode_image_dimensions,
    surface_options_for,
)
from libreanvil.atlas.layer_groups import LayerGroupRegistry
from libreanvil.atlas.timeline import (
    resolve_active_layer_ids,
    resolve_active_layers,
    sort_timeline_events,
    default_active_event_id,
)
from libreanvil.atlas.reconciler import ContentReconciler, ReconcileReport
from libreanvil.atlas.authoring import AuthoringMode, AuthoringStateMachine, normalize_ring
from libreanvil.atlas.lifecycle import LifecycleState, MapLifecycleController

__all__ = [
    # Georeference
    "GeoreferenceError",
    "compute_image_bounds",
    "build_custom_tile_layer",
    "refresh_custom_tile_layer",
    # Surface
    "MapSurface",
    "SurfaceFactory",
    "SurfaceOptions",
    "DrawCreatedEvent",
    "MarkerPrimitive",
    "PolygonPrimitive",
    # Basemap
    "BasemapKind",
    "BasemapLoadError",
    "BasemapSelector",
    "decode_image_dimensions",
    "surface_options_for",
    # Layer groups
    "LayerGroupRegistry",
    # Timeline
    "resolve_active_layer_ids",
    "resolve_active_layers",
    "sort_timeline_events",
    "default_active_event_id",
    # Reconciler
    "ContentReconciler",
    "ReconcileReport",
    # Authoring
    "AuthoringMode",
    "AuthoringStateMachine",
    "normalize_ring",
    # Lifecycle
    "LifecycleState",
    "MapLifecycleController",
]
