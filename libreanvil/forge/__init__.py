"""
Forge module - UI layer for LibreAnvil.

This module provides the NiceGUI-based map editor and the Leaflet-backed
rendering surface driven by the map engine.
"""

from libreanvil.forge.ui import (
    LibreAnvilUI,
    create_app,
    run_app,
)
from libreanvil.forge.leaflet_surface import LeafletSurface

__all__ = [
    'LibreAnvilUI',
    'LeafletSurface',
    'create_app',
    'run_app',
]
