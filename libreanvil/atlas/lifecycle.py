"""
Map Lifecycle Controller - Own one rendering surface from mount to teardown.

The controller is the only component that holds the surface. It creates it
through an injected factory, waits for it to become ready, attaches the
basemap, builds the layer groups, wires pointer events into the authoring
state machine and keeps the rendered content reconciled with the latest
map data.

Initialization can suspend twice (surface readiness and the basemap image
load). Updates that arrive meanwhile are stored and applied once the surface
is READY. Every mount gets a generation number; continuations from an older
generation resolve into no-ops, which makes teardown during a pending load
safe.
"""

from enum import Enum
from typing import Any, Callable, List, Optional, Set, Tuple

from libreanvil.atlas.authoring import AuthoringMode, AuthoringStateMachine
from libreanvil.atlas.basemap import (
    BasemapKind,
    BasemapSelector,
    ImageLoader,
    basemap_signature,
    surface_options_for,
)
from libreanvil.atlas.layer_groups import LayerGroupRegistry
from libreanvil.atlas.reconciler import ContentReconciler, ReconcileReport
from libreanvil.atlas.surface import (
    CLICK_EVENT,
    DRAW_CREATED_EVENT,
    DrawCreatedEvent,
    MapSurface,
    SurfaceFactory,
    SurfaceOptions,
)
from libreanvil.atlas.timeline import resolve_active_layer_ids, resolve_active_layers
from libreanvil.data.schemas.models import LatLng, Layer, MapData, Marker, Polygon
from libreanvil.utils.logger import get_logger

logger = get_logger(__name__)

_UNSET: Any = object()


class LifecycleState(str, Enum):
    """Lifecycle states of a mounted map."""
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"
    TORN_DOWN = "torn_down"


def _surface_limits(options: SurfaceOptions) -> Tuple[Optional[int], Optional[int], bool]:
    return options.min_zoom, options.max_zoom, options.world_copy_jump


class MapLifecycleController:
    """
    Mounts, updates and tears down the rendering of one map.
    """

    def __init__(
        self,
        surface_factory: SurfaceFactory,
        on_update_markers: Callable[[List[Marker]], None],
        on_update_polygons: Callable[[List[Polygon]], None],
        image_loader: Optional[ImageLoader] = None
    ):
        """
        Initialize the controller.

        Args:
            surface_factory: Creates a surface from creation options
            on_update_markers: Receives the full new marker list after authoring
            on_update_polygons: Receives the full new polygon list after authoring
            image_loader: Async (width, height) loader for custom basemap images
        """
        self._surface_factory = surface_factory
        self._image_loader = image_loader
        self._authoring = AuthoringStateMachine(on_update_markers, on_update_polygons)

        self._state = LifecycleState.UNINITIALIZED
        self._generation = 0
        self._basemap_request = 0

        self._surface: Optional[MapSurface] = None
        self._registry: Optional[LayerGroupRegistry] = None
        self._reconciler: Optional[ContentReconciler] = None
        self._basemap: Optional[BasemapSelector] = None

        self._map_data: Optional[MapData] = None
        self._active_event_id: Optional[str] = None
        self._pending: Optional[Tuple[MapData, Optional[str]]] = None
        self._basemap_signature: Optional[tuple] = None
        self._surface_limits: Optional[Tuple[Optional[int], Optional[int], bool]] = None
        self._drawing = False

        self.last_report: Optional[ReconcileReport] = None

    @property
    def state(self) -> LifecycleState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state == LifecycleState.READY

    @property
    def surface(self) -> Optional[MapSurface]:
        return self._surface

    @property
    def map_data(self) -> Optional[MapData]:
        return self._map_data

    @property
    def active_event_id(self) -> Optional[str]:
        return self._active_event_id

    @property
    def mode(self) -> AuthoringMode:
        return self._authoring.mode

    @property
    def basemap_kind(self) -> BasemapKind:
        return self._basemap.kind if self._basemap else BasemapKind.NONE

    @property
    def rendered_ids(self) -> List[str]:
        return self._reconciler.rendered_ids if self._reconciler else []

    @property
    def active_layer_ids(self) -> Set[str]:
        if self._map_data is None:
            return set()
        return resolve_active_layer_ids(
            self._map_data.layers, self._map_data.timeline_events, self._active_event_id
        )

    @property
    def active_layers(self) -> List[Layer]:
        if self._map_data is None:
            return []
        return resolve_active_layers(
            self._map_data.layers, self._map_data.timeline_events, self._active_event_id
        )

    async def mount(self, map_data: MapData, active_event_id: Optional[str] = None) -> bool:
        """
        Create the surface for a map and bring it to READY.

        Mounting the map that is already initializing or ready does nothing;
        mounting a different map tears the current one down first.

        Args:
            map_data: Map to render
            active_event_id: Selected timeline event, or None

        Returns:
            True if this call brought the surface to READY
        """
        if self._state in (LifecycleState.INITIALIZING, LifecycleState.READY):
            if self._map_data is not None and self._map_data.id == map_data.id:
                logger.debug(f"Map {map_data.id} is already {self._state.value}; ignoring mount")
                return False
            self.teardown()

        self._generation += 1
        generation = self._generation
        self._state = LifecycleState.INITIALIZING
        self._map_data = map_data
        self._active_event_id = active_event_id
        self._pending = None

        options = surface_options_for(map_data)
        surface = self._surface_factory(options)
        self._surface = surface
        self._surface_limits = _surface_limits(options)
        logger.info(f"Mounting map {map_data.id} ({map_data.name})")

        try:
            await surface.when_ready()
        except Exception as e:
            logger.error(f"Surface for map {map_data.id} failed to initialize: {e}", exc_info=True)
            if self._is_current(generation):
                self.teardown()
            return False

        if not self._is_current(generation):
            logger.debug(f"Mount of map {map_data.id} superseded while waiting for the surface")
            return False

        try:
            if not await self._build_ready_surface(map_data, surface, generation):
                return False
        except Exception as e:
            logger.error(f"Failed to initialize map {map_data.id}: {e}", exc_info=True)
            if self._is_current(generation):
                self.teardown()
            raise

        if self._pending is not None:
            pending_data, pending_event = self._pending
            self._pending = None
            logger.debug(f"Applying update deferred during initialization of map {map_data.id}")
            await self._apply(pending_data, pending_event)
        return True

    async def update(
        self,
        map_data: Optional[MapData] = None,
        active_event_id: Optional[str] = _UNSET
    ) -> bool:
        """
        Apply new props to the mounted map.

        Omitted arguments keep their current value. While initializing, the
        latest props are stored and applied once the surface is ready.

        Returns:
            True if the update was applied now
        """
        if self._state == LifecycleState.INITIALIZING:
            base_data, base_event = self._pending or (self._map_data, self._active_event_id)
            self._pending = (
                map_data if map_data is not None else base_data,
                base_event if active_event_id is _UNSET else active_event_id,
            )
            logger.debug("Surface still initializing; deferring update")
            return False

        if self._state != LifecycleState.READY:
            logger.debug(f"Ignoring update while {self._state.value}")
            return False

        await self._apply(
            map_data if map_data is not None else self._map_data,
            self._active_event_id if active_event_id is _UNSET else active_event_id,
        )
        return True

    def teardown(self) -> None:
        """
        Release the surface and everything attached to it.

        Safe to call in any state; pending loads of the torn-down generation
        finish as no-ops.
        """
        self._generation += 1
        self._pending = None
        self._authoring.cancel()

        surface = self._surface
        if surface is not None:
            surface.off()
            if self._basemap is not None:
                self._basemap.detach()
            if self._registry is not None:
                self._registry.destroy()
            surface.dispose()
            logger.info(f"Tore down map {self._map_data.id if self._map_data else '?'}")

        self._surface = None
        self._registry = None
        self._reconciler = None
        self._basemap = None
        self._basemap_signature = None
        self._surface_limits = None
        self._drawing = False
        self._state = LifecycleState.TORN_DOWN

    def toggle_marker_placement(self) -> AuthoringMode:
        mode = self._authoring.toggle_marker_placement()
        self._push_authoring_state()
        return mode

    def toggle_polygon_drawing(self) -> AuthoringMode:
        """Toggle polygon drawing; entering it starts the draw tool."""
        mode = self._authoring.toggle_polygon_drawing()
        self._push_authoring_state()
        if mode == AuthoringMode.DRAWING_POLYGON and self.is_ready:
            self._surface.start_polygon_draw()
        return mode

    def cancel_authoring(self) -> None:
        self._authoring.cancel()
        self._push_authoring_state()

    async def _build_ready_surface(self, map_data: MapData, surface: MapSurface, generation: int) -> bool:
        self._registry = LayerGroupRegistry(surface)
        self._reconciler = ContentReconciler(self._registry)
        self._basemap = BasemapSelector(surface, image_loader=self._image_loader)

        await self._attach_basemap(map_data, generation)
        if not self._is_current(generation):
            logger.debug(f"Mount of map {map_data.id} superseded while loading the basemap")
            return False

        self._registry.build(map_data.layers)
        surface.on(CLICK_EVENT, self._handle_click)
        surface.on(DRAW_CREATED_EVENT, self._handle_draw_created)
        self._push_authoring_state()

        self._state = LifecycleState.READY
        self._reconcile()
        logger.info(f"Map {map_data.id} ready with {len(map_data.layers)} layers")
        return True

    async def _apply(self, map_data: MapData, active_event_id: Optional[str]) -> None:
        if _surface_limits(surface_options_for(map_data)) != self._surface_limits:
            # Zoom limits and world wrap are fixed at surface creation
            logger.info(f"Basemap mode of map {map_data.id} changed; rebuilding the surface")
            self.teardown()
            await self.mount(map_data, active_event_id)
            return

        previous = self._map_data
        self._map_data = map_data
        self._active_event_id = active_event_id

        if previous is None or (previous.center, previous.zoom) != (map_data.center, map_data.zoom):
            self._surface.set_view(map_data.center, map_data.zoom)

        if basemap_signature(map_data) != self._basemap_signature:
            generation = self._generation
            await self._attach_basemap(map_data, generation)
            if not self._is_current(generation):
                return

        self._reconcile()

    async def _attach_basemap(self, map_data: MapData, generation: int) -> None:
        self._basemap_request += 1
        request = self._basemap_request
        self._basemap_signature = basemap_signature(map_data)
        kind = await self._basemap.attach(
            map_data,
            is_current=lambda: self._is_current(generation) and request == self._basemap_request,
        )
        logger.debug(f"Basemap for map {map_data.id}: {kind.value}")

    def _reconcile(self) -> None:
        self.last_report = self._reconciler.reconcile(self._map_data, self.active_layer_ids)

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation and self._state != LifecycleState.TORN_DOWN

    def _push_authoring_state(self) -> None:
        if self._surface is None:
            return
        drawing = self._authoring.mode == AuthoringMode.DRAWING_POLYGON
        if self._drawing and not drawing:
            self._surface.stop_polygon_draw()
        self._drawing = drawing
        self._surface.set_cursor(self._authoring.cursor)
        self._surface.set_draw_control_visible(self._authoring.draw_control_visible)

    def _handle_click(self, latlng: LatLng) -> None:
        if not self.is_ready:
            return
        marker = self._authoring.handle_click(latlng, self._map_data, self.active_layers)
        if marker is not None:
            self._push_authoring_state()

    def _handle_draw_created(self, event: DrawCreatedEvent) -> None:
        if not self.is_ready:
            return
        polygon = self._authoring.handle_draw_created(event, self._map_data, self.active_layers)
        if polygon is None:
            return
        layer = self._map_data.get_layer(polygon.layer_id)
        if layer is not None:
            self._reconciler.render_polygon(polygon, layer)
        self._push_authoring_state()
