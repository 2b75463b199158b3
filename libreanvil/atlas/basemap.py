"""
Base-Layer Selector - Attach exactly one basemap to a surface.

A map uses either the remote tile service or its custom image. The image is
decoded asynchronously to learn its natural size, georeferenced around the
map center and attached as an image overlay. Only one basemap handle is ever
retained; the previous one is removed before a new one is attached.
"""

import asyncio
from enum import Enum
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional, Tuple

from libreanvil.atlas.georeference import GeoreferenceError, compute_image_bounds
from libreanvil.atlas.surface import MapSurface, SurfaceOptions
from libreanvil.config import get_config
from libreanvil.data.schemas.models import MapData
from libreanvil.utils.converters import (
    ImageInputError,
    data_url_to_bytes,
    read_image_size,
)
from libreanvil.utils.logger import get_logger

logger = get_logger(__name__)

CUSTOM_MIN_ZOOM = 1
CUSTOM_MAX_ZOOM = 8

ImageLoader = Callable[[str], Awaitable[Tuple[int, int]]]


class BasemapKind(str, Enum):
    """Which basemap is attached."""
    NONE = "none"
    TILES = "tiles"
    CUSTOM_IMAGE = "custom_image"


class BasemapLoadError(RuntimeError):
    """Raised when a custom basemap image cannot be loaded or decoded."""


def _read_image_source(image_url: str) -> Tuple[int, int]:
    if image_url.startswith("data:"):
        content = data_url_to_bytes(image_url)
    else:
        content = Path(image_url).read_bytes()
    return read_image_size(content)


async def decode_image_dimensions(image_url: str) -> Tuple[int, int]:
    """
    Decode an image source in a worker thread.

    Args:
        image_url: Data URL or local file path

    Returns:
        (width, height) in pixels

    Raises:
        BasemapLoadError: If the source cannot be read or decoded
    """
    try:
        return await asyncio.to_thread(_read_image_source, image_url)
    except (ImageInputError, ValueError, OSError) as e:
        raise BasemapLoadError(f"Failed to load basemap image: {e}") from e


def uses_custom_image(map_data: MapData) -> bool:
    return map_data.use_custom_tile_layer and map_data.custom_tile_layer is not None


def surface_options_for(map_data: MapData) -> SurfaceOptions:
    """
    Surface creation options for a map.

    Custom-image maps are limited to zoom [1, 8] without world wrap; tile
    maps keep the surface's default zoom range and wrap around the world.
    """
    if uses_custom_image(map_data):
        return SurfaceOptions(
            center=map_data.center,
            zoom=map_data.zoom,
            min_zoom=CUSTOM_MIN_ZOOM,
            max_zoom=CUSTOM_MAX_ZOOM,
            world_copy_jump=False,
        )
    return SurfaceOptions(center=map_data.center, zoom=map_data.zoom, world_copy_jump=True)


def basemap_signature(map_data: MapData) -> tuple:
    """Everything that requires re-attaching the basemap when it changes."""
    if not uses_custom_image(map_data):
        return (BasemapKind.TILES,)
    return (
        BasemapKind.CUSTOM_IMAGE,
        map_data.custom_tile_layer.image_url,
        map_data.center_lat,
        map_data.center_lng,
        map_data.zoom,
    )


class BasemapSelector:
    """
    Attaches and removes the basemap of one surface.
    """

    def __init__(
        self,
        surface: MapSurface,
        image_loader: Optional[ImageLoader] = None,
        tile_url: Optional[str] = None,
        tile_attribution: Optional[str] = None
    ):
        """
        Initialize the selector.

        Args:
            surface: Surface to attach the basemap to
            image_loader: Async (width, height) loader for custom images
            tile_url: Tile URL template (defaults to config)
            tile_attribution: Tile attribution HTML (defaults to config)
        """
        config = get_config()
        self._surface = surface
        self._image_loader = image_loader or decode_image_dimensions
        self._tile_url = tile_url or config.basemap.tile_url
        self._tile_attribution = tile_attribution or config.basemap.tile_attribution
        self._handle: Optional[Any] = None
        self._kind = BasemapKind.NONE

    @property
    def kind(self) -> BasemapKind:
        return self._kind

    @property
    def handle(self) -> Optional[Any]:
        return self._handle

    async def attach(
        self,
        map_data: MapData,
        is_current: Callable[[], bool] = lambda: True
    ) -> BasemapKind:
        """
        Replace the current basemap with the one the map asks for.

        Args:
            map_data: Map whose basemap should be shown
            is_current: Returns False once the surface has been torn down;
                checked after the image load resumes

        Returns:
            The attached basemap kind (NONE if the custom image failed)
        """
        self.detach()

        if not uses_custom_image(map_data):
            if map_data.use_custom_tile_layer:
                logger.warning(
                    f"Map {map_data.id} asks for a custom basemap but has no image; using tiles"
                )
            self._handle = self._surface.add_tile_layer(self._tile_url, self._tile_attribution)
            self._kind = BasemapKind.TILES
            return self._kind

        image_url = map_data.custom_tile_layer.image_url
        try:
            width, height = await self._image_loader(image_url)
        except Exception as e:
            logger.error(f"Custom basemap for map {map_data.id} failed to load: {e}")
            return BasemapKind.NONE

        if not is_current():
            logger.debug(f"Surface for map {map_data.id} is gone; dropping loaded image")
            return BasemapKind.NONE

        stored = map_data.custom_tile_layer
        if (width, height) != (stored.image_width, stored.image_height):
            logger.warning(
                f"Image is {width}x{height}, map {map_data.id} recorded "
                f"{stored.image_width}x{stored.image_height}; using the decoded size"
            )

        try:
            bounds = compute_image_bounds(map_data.center, map_data.zoom, width, height)
        except GeoreferenceError as e:
            logger.error(f"Cannot georeference basemap for map {map_data.id}: {e}")
            return BasemapKind.NONE

        # Another attach may have run while the image was loading
        self.detach()
        self._handle = self._surface.add_image_overlay(image_url, bounds)
        self._kind = BasemapKind.CUSTOM_IMAGE
        self._surface.fit_bounds(bounds)
        return self._kind

    def detach(self) -> None:
        """Remove the current basemap, if any."""
        if self._handle is not None:
            self._surface.remove_layer(self._handle)
            logger.debug(f"Removed {self._kind.value} basemap")
        self._handle = None
        self._kind = BasemapKind.NONE
