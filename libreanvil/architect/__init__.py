"""
Architect module - Authoring-time tools for LibreAnvil.

This module contains:
- factories: Create new maps, layers, markers, polygons and timeline events
- seeder: The default map collection used to seed an empty store
- editing: Replace-by-id collection mutations and layer deletion
"""

from libreanvil.architect.factories import (
    InvalidGeometryError,
    new_id,
    create_new_map,
    create_new_layer,
    create_new_marker,
    create_new_polygon,
    create_new_timeline_event,
    validate_ring,
)
from libreanvil.architect.seeder import default_maps
from libreanvil.architect.editing import (
    add_map,
    replace_map,
    remove_map,
    select_default_map_id,
    with_markers,
    with_polygons,
    remove_layer,
)

__all__ = [
    # Factories
    "InvalidGeometryError",
    "new_id",
    "create_new_map",
    "create_new_layer",
    "create_new_marker",
    "create_new_polygon",
    "create_new_timeline_event",
    "validate_ring",
    # Seeder
    "default_maps",
    # Editing
    "add_map",
    "replace_map",
    "remove_map",
    "select_default_map_id",
    "with_markers",
    "with_polygons",
    "remove_layer",
]
