"""Shared fixtures and configuration for LibreAnvil tests."""

import asyncio
from typing import Any, Callable, Dict, Generator, List, Optional, Tuple

import pytest

from libreanvil.architect.seeder import default_maps
from libreanvil.atlas.surface import MapSurface, SurfaceOptions
from libreanvil.data.schemas.models import (
    CustomTileLayer,
    ImageBounds,
    LatLng,
    Layer,
    MapData,
    Marker,
    Polygon,
    TimelineEvent,
)
from libreanvil.data.store import DuckDBMapStore


class FakeGroup:
    """Recorded layer group."""

    def __init__(self, index: int):
        self.index = index
        self.children: List[Any] = []
        self.attached = False
        self.attach_count = 0


class FakeSurface(MapSurface):
    """
    MapSurface that records every call instead of drawing.

    ``ready_gate`` (if set) must be released before ``when_ready`` returns.
    """

    def __init__(self, options: SurfaceOptions, ready_gate: Optional[asyncio.Event] = None):
        self.options = options
        self.ready_gate = ready_gate
        self.groups: List[FakeGroup] = []
        self.basemaps: Dict[int, Tuple] = {}
        self.removed_basemaps: List[Tuple] = []
        self.handlers: Dict[str, List[Callable[[Any], Any]]] = {}
        self.views: List[Tuple[LatLng, int]] = []
        self.fitted: List[ImageBounds] = []
        self.cursor = ""
        self.draw_control_visible = False
        self.draw_started = 0
        self.draw_stopped = 0
        self.disposed = False
        self._next_handle = 0

    async def when_ready(self) -> None:
        if self.ready_gate is not None:
            await self.ready_gate.wait()

    def set_view(self, center: LatLng, zoom: int) -> None:
        self.views.append((center, zoom))

    def fit_bounds(self, bounds: ImageBounds) -> None:
        self.fitted.append(bounds)

    def add_tile_layer(self, url_template: str, attribution: str) -> Any:
        return self._add_basemap(("tiles", url_template))

    def add_image_overlay(self, image_url: str, bounds: ImageBounds) -> Any:
        return self._add_basemap(("image", image_url, bounds))

    def remove_layer(self, handle: Any) -> None:
        self.removed_basemaps.append(self.basemaps.pop(handle))

    def create_group(self) -> FakeGroup:
        group = FakeGroup(len(self.groups))
        self.groups.append(group)
        return group

    def attach_group(self, group: FakeGroup) -> None:
        group.attached = True
        group.attach_count += 1

    def detach_group(self, group: FakeGroup) -> None:
        group.attached = False

    def add_to_group(self, group: FakeGroup, primitive: Any) -> Any:
        group.children.append(primitive)
        return primitive

    def clear_group(self, group: FakeGroup) -> None:
        group.children = []

    def on(self, event: str, handler: Callable[[Any], Any]) -> None:
        self.handlers.setdefault(event, []).append(handler)

    def off(self, event: Optional[str] = None) -> None:
        if event is None:
            self.handlers.clear()
        else:
            self.handlers.pop(event, None)

    def set_draw_control_visible(self, visible: bool) -> None:
        self.draw_control_visible = visible

    def start_polygon_draw(self) -> None:
        self.draw_started += 1

    def stop_polygon_draw(self) -> None:
        self.draw_stopped += 1

    def set_cursor(self, cursor: str) -> None:
        self.cursor = cursor

    def dispose(self) -> None:
        self.disposed = True

    # Test helpers

    def emit(self, event: str, payload: Any) -> None:
        for handler in list(self.handlers.get(event, [])):
            handler(payload)

    @property
    def visible_primitives(self) -> List[Any]:
        return [child for group in self.groups if group.attached for child in group.children]

    @property
    def visible_ids(self) -> List[str]:
        return [primitive.source_id for primitive in self.visible_primitives]

    @property
    def active_basemaps(self) -> List[Tuple]:
        return list(self.basemaps.values())

    def _add_basemap(self, entry: Tuple) -> int:
        self._next_handle += 1
        self.basemaps[self._next_handle] = entry
        return self._next_handle


class SurfaceRecorder:
    """Surface factory that keeps every surface it created."""

    def __init__(self):
        self.surfaces: List[FakeSurface] = []
        self.ready_gate: Optional[asyncio.Event] = None

    def __call__(self, options: SurfaceOptions) -> FakeSurface:
        surface = FakeSurface(options, ready_gate=self.ready_gate)
        self.surfaces.append(surface)
        return surface

    @property
    def last(self) -> FakeSurface:
        return self.surfaces[-1]


class FakeImageLoader:
    """
    Async image loader returning fixed dimensions.

    With ``gate`` set, loads wait until the gate is released.
    """

    def __init__(self, width: int = 2048, height: int = 1024):
        self.width = width
        self.height = height
        self.gate: Optional[asyncio.Event] = None
        self.error: Optional[Exception] = None
        self.calls: List[str] = []

    async def __call__(self, image_url: str) -> Tuple[int, int]:
        self.calls.append(image_url)
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.width, self.height


@pytest.fixture
def surface_factory() -> SurfaceRecorder:
    """Recording surface factory."""
    return SurfaceRecorder()


@pytest.fixture
def fake_surface() -> FakeSurface:
    """A single ready fake surface."""
    return FakeSurface(SurfaceOptions(center=LatLng(lat=0, lng=0), zoom=3))


@pytest.fixture
def image_loader() -> FakeImageLoader:
    """Fake 2048x1024 image loader."""
    return FakeImageLoader()


@pytest.fixture
def sample_layers() -> List[Layer]:
    """Three layers A, B, C."""
    return [
        Layer(id="layer-a", name="A", color="#ff0000"),
        Layer(id="layer-b", name="B", color="#00ff00"),
        Layer(id="layer-c", name="C", color="#0000ff"),
    ]


@pytest.fixture
def sample_map(sample_layers: List[Layer]) -> MapData:
    """A tile-basemap map with one marker and one polygon per layer A and B."""
    return MapData(
        id="map-test",
        name="Test Map",
        center_lat=0.0,
        center_lng=0.0,
        zoom=3,
        layers=sample_layers,
        markers=[
            Marker(id="marker-a", layer_id="layer-a", title="Castle", lat=1.0, lng=1.0),
            Marker(id="marker-b", layer_id="layer-b", title="Ruins", lat=2.0, lng=2.0,
                   icon_color="#123456", link="ruins"),
        ],
        polygons=[
            Polygon(
                id="polygon-a",
                layer_id="layer-a",
                title="Kingdom",
                coordinates=[
                    LatLng(lat=0, lng=0),
                    LatLng(lat=0, lng=1),
                    LatLng(lat=1, lng=1),
                ],
            ),
        ],
        timeline_events=[
            TimelineEvent(id="event-1", name="Founding", year="1000 BE", layer_ids=["layer-a"]),
            TimelineEvent(id="event-2", name="Empty Age", year="500 BE", layer_ids=[]),
            TimelineEvent(id="event-3", name="Present", year="Present",
                          layer_ids=["layer-a", "layer-b"]),
        ],
    )


@pytest.fixture
def custom_map(sample_map: MapData) -> MapData:
    """The sample map on a 2048x1024 custom image basemap."""
    return sample_map.model_copy(update={
        "id": "map-custom",
        "use_custom_tile_layer": True,
        "custom_tile_layer": CustomTileLayer(
            image_url="data:image/png;base64,AAAA",
            image_bounds=ImageBounds(
                south_west=LatLng(lat=-1.6, lng=-3.2),
                north_east=LatLng(lat=1.6, lng=3.2),
            ),
            image_width=2048,
            image_height=1024,
        ),
    })


@pytest.fixture
def fantasy_map() -> MapData:
    """The default "Fantasy World" map."""
    return default_maps()[0]


@pytest.fixture
def map_store(tmp_path) -> Generator[DuckDBMapStore, None, None]:
    """A map store backed by a temporary DuckDB file."""
    store = DuckDBMapStore(db_path=str(tmp_path / "test_libreanvil.duckdb"), storage_key="maps")
    yield store
    store.close()
