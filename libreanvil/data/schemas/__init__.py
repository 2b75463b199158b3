"""
Data Schemas for LibreAnvil.

This module exports the Pydantic models that make up a map.
"""

from libreanvil.data.schemas.models import (
    LatLng,
    ImageBounds,
    CustomTileLayer,
    ImageInput,
    Layer,
    Marker,
    Polygon,
    TimelineEvent,
    MapData,
)

__all__ = [
    'LatLng',
    'ImageBounds',
    'CustomTileLayer',
    'ImageInput',
    'Layer',
    'Marker',
    'Polygon',
    'TimelineEvent',
    'MapData',
]
