"""
Georeferencing - Place a custom raster image on the geographic plane.

Zoom levels are log2-scaled like standard tile maps, so the image's
geographic footprint halves with every zoom step:

    base_size = 0.2 * 2 ** (8 - zoom)

The longer image side spans ``base_size`` degrees and the shorter side is
scaled by the aspect ratio. The box is centered on the map center.
"""

from libreanvil.data.schemas.models import (
    CustomTileLayer,
    ImageBounds,
    ImageInput,
    LatLng,
    MapData,
)
from libreanvil.utils.logger import get_logger

logger = get_logger(__name__)

MIN_ZOOM = 1
MAX_ZOOM = 18
BASE_SPAN_DEGREES = 0.2
REFERENCE_ZOOM = 8


class GeoreferenceError(ValueError):
    """Raised for zoom levels or image sizes that cannot be georeferenced."""


def base_size(zoom: int) -> float:
    """Span in degrees of the image's longer side at a zoom level."""
    return BASE_SPAN_DEGREES * 2 ** (REFERENCE_ZOOM - zoom)


def compute_image_bounds(center: LatLng, zoom: int, width: int, height: int) -> ImageBounds:
    """
    Compute the geographic bounding box of an image.

    Args:
        center: Geographic center of the image
        zoom: Integer zoom level in [1, 18]
        width: Image width in pixels
        height: Image height in pixels

    Returns:
        ImageBounds whose lng/lat span ratio equals width/height

    Raises:
        GeoreferenceError: If zoom is out of range or a dimension is not positive
    """
    if int(zoom) != zoom or not MIN_ZOOM <= zoom <= MAX_ZOOM:
        raise GeoreferenceError(f"Zoom must be an integer in [{MIN_ZOOM}, {MAX_ZOOM}], got {zoom}")
    if width <= 0 or height <= 0:
        raise GeoreferenceError(f"Image dimensions must be positive, got {width}x{height}")

    size = base_size(int(zoom))
    aspect_ratio = width / height

    if aspect_ratio >= 1:
        box_width = size
        box_height = size / aspect_ratio
    else:
        box_width = size * aspect_ratio
        box_height = size

    half_w = box_width / 2
    half_h = box_height / 2
    return ImageBounds(
        south_west=LatLng(lat=center.lat - half_h, lng=center.lng - half_w),
        north_east=LatLng(lat=center.lat + half_h, lng=center.lng + half_w),
    )


def build_custom_tile_layer(image: ImageInput, center: LatLng, zoom: int) -> CustomTileLayer:
    """
    Georeference an uploaded image around a center point.

    Raises:
        GeoreferenceError: If the zoom or image size is rejected
    """
    bounds = compute_image_bounds(center, zoom, image.width, image.height)
    return CustomTileLayer(
        image_url=image.data_url,
        image_bounds=bounds,
        image_width=image.width,
        image_height=image.height,
    )


def refresh_custom_tile_layer(map_data: MapData) -> MapData:
    """
    Recompute the custom layer bounds after the center or zoom changed.

    Maps without a custom layer are returned unchanged.

    Raises:
        GeoreferenceError: If the map's zoom is out of range
    """
    layer = map_data.custom_tile_layer
    if layer is None:
        return map_data

    bounds = compute_image_bounds(map_data.center, map_data.zoom, layer.image_width, layer.image_height)
    if bounds == layer.image_bounds:
        return map_data

    logger.debug(f"Recomputed image bounds for map {map_data.id}")
    return map_data.model_copy(
        update={"custom_tile_layer": layer.model_copy(update={"image_bounds": bounds})}
    )
