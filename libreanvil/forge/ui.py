"""
NiceGUI App - Editor shell for LibreAnvil.

A thin NiceGUI page around the map engine: pick or create a map, scrub the
timeline, place markers, draw polygons and switch between the tile service
and a custom uploaded image. Every change replaces the map in the collection,
persists the collection and pushes the new map into the lifecycle controller.
"""

from typing import Dict, List, Optional

from nicegui import background_tasks, ui
from nicegui.events import UploadEventArguments, ValueChangeEventArguments

from libreanvil.architect.editing import (
    add_map,
    remove_map,
    replace_map,
    select_default_map_id,
    with_markers,
    with_polygons,
)
from libreanvil.architect.factories import create_new_map
from libreanvil.atlas.authoring import AuthoringMode
from libreanvil.atlas.georeference import (
    GeoreferenceError,
    build_custom_tile_layer,
    refresh_custom_tile_layer,
)
from libreanvil.atlas.lifecycle import MapLifecycleController
from libreanvil.atlas.surface import MapSurface, SurfaceOptions
from libreanvil.atlas.timeline import (
    default_active_event_id,
    resolve_active_layer_ids,
    sort_timeline_events,
)
from libreanvil.config import get_config
from libreanvil.data.schemas.models import MapData, Marker, Polygon
from libreanvil.data.store import DuckDBMapStore, get_map_store
from libreanvil.forge.leaflet_surface import SURFACE_CSS, LeafletSurface
from libreanvil.utils.converters import ImageInputError, image_input_from_bytes
from libreanvil.utils.logger import get_logger

logger = get_logger(__name__)


class LibreAnvilUI:
    """
    Main editor UI component.

    Holds the map collection, the selected map and timeline event, and the
    lifecycle controller that renders the selected map.
    """

    def __init__(self, store: Optional[DuckDBMapStore] = None):
        """
        Initialize the UI state.

        Args:
            store: Map store (defaults to the global store)
        """
        self.config = get_config()
        self.store = store or get_map_store()

        self.maps: List[MapData] = []
        self.current_map_id: Optional[str] = None
        self.active_event_id: Optional[str] = None
        self.controller: Optional[MapLifecycleController] = None

        # UI element references
        self.map_select = None
        self.event_select = None
        self.map_container = None
        self.layers_container = None
        self.mode_label = None
        self.marker_btn = None
        self.polygon_btn = None
        self.lat_input = None
        self.lng_input = None
        self.zoom_input = None
        self.custom_switch = None

    @property
    def current_map(self) -> Optional[MapData]:
        for map_data in self.maps:
            if map_data.id == self.current_map_id:
                return map_data
        return None

    def build(self) -> None:
        """Build the main UI layout."""
        if self.config.ui.dark_mode:
            ui.dark_mode().enable()

        ui.add_css(SURFACE_CSS)

        self.maps = self.store.load_maps()
        self.current_map_id = select_default_map_id(self.maps, self.current_map_id)
        current = self.current_map
        self.active_event_id = default_active_event_id(current.timeline_events) if current else None

        self.controller = MapLifecycleController(
            surface_factory=self._create_surface,
            on_update_markers=self._on_update_markers,
            on_update_polygons=self._on_update_polygons,
        )

        with ui.header().classes('items-center justify-between'):
            ui.label(self.config.ui.title).classes('text-2xl font-bold')
            self.mode_label = ui.label('Mode: idle').classes('text-lg')

        with ui.row().classes('w-full gap-4 p-4 no-wrap'):
            with ui.column().classes('w-1/4 gap-4'):
                self._build_maps_panel()
                self._build_timeline_panel()
                self._build_tools_panel()
                self._build_settings_panel()

            with ui.column().classes('w-3/4 gap-4'):
                with ui.card().classes('w-full'):
                    self.map_container = ui.element('div').classes('w-full').style('height: 75vh')

        ui.timer(0.1, self._mount_current, once=True)

    def _build_maps_panel(self) -> None:
        with ui.card().classes('w-full'):
            ui.label('Maps').classes('text-xl font-bold mb-2')
            self.map_select = ui.select(
                options=self._map_options(),
                value=self.current_map_id,
                on_change=self._on_map_selected,
            ).classes('w-full')

            with ui.row().classes('w-full items-center gap-2'):
                name_input = ui.input('New map name').classes('flex-grow')
                ui.button('Create', on_click=lambda: self._on_create_map(name_input))
            ui.button('Delete Map', on_click=self._on_delete_map).props('flat color=negative')

    def _build_timeline_panel(self) -> None:
        with ui.card().classes('w-full'):
            ui.label('Timeline').classes('text-xl font-bold mb-2')
            self.event_select = ui.select(
                options=self._event_options(),
                value=self.active_event_id,
                label='All layers when cleared',
                on_change=self._on_event_selected,
            ).props('clearable').classes('w-full')
            self.layers_container = ui.column().classes('w-full gap-1')
        self._refresh_layers()

    def _build_tools_panel(self) -> None:
        with ui.card().classes('w-full'):
            ui.label('Tools').classes('text-xl font-bold mb-2')
            with ui.row().classes('w-full gap-2'):
                self.marker_btn = ui.button('Add Marker', on_click=self._on_toggle_marker)
                self.polygon_btn = ui.button('Draw Polygon', on_click=self._on_toggle_polygon)

    def _build_settings_panel(self) -> None:
        current = self.current_map
        with ui.card().classes('w-full'):
            ui.label('Map Settings').classes('text-xl font-bold mb-2')
            with ui.row().classes('w-full gap-2'):
                self.lat_input = ui.number('Center lat', value=current.center_lat if current else 0.0)
                self.lng_input = ui.number('Center lng', value=current.center_lng if current else 0.0)
            self.zoom_input = ui.number(
                'Zoom', value=current.zoom if current else 3, min=1, max=18, step=1, precision=0
            )
            ui.button('Apply View', on_click=self._on_apply_view)

            ui.separator()
            ui.label('Custom map image').classes('font-bold')
            ui.upload(
                label='Upload image',
                on_upload=self._on_image_uploaded,
                auto_upload=True,
                max_file_size=self.config.basemap.max_image_bytes,
            ).props('accept=image/*').classes('w-full')
            self.custom_switch = ui.switch(
                'Use custom image',
                value=current.use_custom_tile_layer if current else False,
                on_change=self._on_custom_toggled,
            )

    # Surface and controller wiring

    def _create_surface(self, options: SurfaceOptions) -> MapSurface:
        with self.map_container:
            return LeafletSurface(options)

    async def _mount_current(self) -> None:
        current = self.current_map
        if current is None:
            return
        try:
            await self.controller.mount(current, self.active_event_id)
        except Exception as e:
            logger.error(f"Failed to mount map {current.id}: {e}", exc_info=True)
            ui.notify(f'Error: {e}', type='negative')
        self._refresh_mode()

    def _commit(self, updated: MapData) -> None:
        """Replace a map in the collection, persist it and re-render it."""
        self.maps = replace_map(self.maps, updated)
        self.store.save_maps(self.maps)
        if updated.id == self.current_map_id:
            background_tasks.create(
                self.controller.update(updated, self.active_event_id),
                name='libreanvil-update',
            )

    def _on_update_markers(self, markers: List[Marker]) -> None:
        current = self.current_map
        if current is None:
            return
        self._commit(with_markers(current, markers))
        self._refresh_mode()
        ui.notify('Marker added', type='positive')

    def _on_update_polygons(self, polygons: List[Polygon]) -> None:
        current = self.current_map
        if current is None:
            return
        self._commit(with_polygons(current, polygons))
        self._refresh_mode()
        ui.notify('Polygon added', type='positive')

    # Event handlers

    async def _on_map_selected(self, e: ValueChangeEventArguments) -> None:
        if not e.value or e.value == self.current_map_id:
            return
        self.current_map_id = e.value
        current = self.current_map
        self.active_event_id = default_active_event_id(current.timeline_events)
        self._refresh_selects()
        self._refresh_settings()
        self._refresh_layers()
        await self._mount_current()

    async def _on_create_map(self, name_input) -> None:
        name = (name_input.value or '').strip()
        if not name:
            ui.notify('Please enter a map name', type='warning')
            return
        new_map = create_new_map(name)
        self.maps = add_map(self.maps, new_map)
        self.store.save_maps(self.maps)
        name_input.set_value('')
        logger.info(f"Created map {new_map.id} ({name})")
        self.map_select.set_options(self._map_options(), value=new_map.id)

    async def _on_delete_map(self) -> None:
        current = self.current_map
        if current is None:
            return
        self.maps = remove_map(self.maps, current.id)
        self.store.save_maps(self.maps)
        logger.info(f"Deleted map {current.id}")
        self.controller.teardown()

        self.current_map_id = select_default_map_id(self.maps)
        remaining = self.current_map
        self.active_event_id = default_active_event_id(remaining.timeline_events) if remaining else None
        self._refresh_selects()
        self._refresh_settings()
        self._refresh_layers()
        await self._mount_current()

    async def _on_event_selected(self, e: ValueChangeEventArguments) -> None:
        self.active_event_id = e.value
        self._refresh_layers()
        await self.controller.update(active_event_id=self.active_event_id)

    def _on_toggle_marker(self) -> None:
        self.controller.toggle_marker_placement()
        self._refresh_mode()

    def _on_toggle_polygon(self) -> None:
        self.controller.toggle_polygon_drawing()
        self._refresh_mode()

    def _on_apply_view(self) -> None:
        current = self.current_map
        if current is None:
            return
        try:
            updated = current.model_copy(update={
                'center_lat': float(self.lat_input.value or 0.0),
                'center_lng': float(self.lng_input.value or 0.0),
                'zoom': int(self.zoom_input.value or 3),
            })
            updated = refresh_custom_tile_layer(updated)
        except GeoreferenceError as e:
            logger.warning(f"Rejected view for map {current.id}: {e}")
            ui.notify(str(e), type='warning')
            return
        self._commit(updated)

    async def _on_image_uploaded(self, e: UploadEventArguments) -> None:
        current = self.current_map
        if current is None:
            return
        try:
            image = image_input_from_bytes(e.content.read(), e.type)
            layer = build_custom_tile_layer(image, current.center, current.zoom)
        except (ImageInputError, GeoreferenceError) as err:
            logger.warning(f"Rejected upload {e.name}: {err}")
            ui.notify(str(err), type='negative')
            return

        logger.info(f"Custom image {e.name} ({image.width}x{image.height}) set on map {current.id}")
        self._commit(current.model_copy(update={
            'custom_tile_layer': layer,
            'use_custom_tile_layer': True,
        }))
        self.custom_switch.set_value(True)
        ui.notify('Custom map image uploaded', type='positive')

    def _on_custom_toggled(self, e: ValueChangeEventArguments) -> None:
        current = self.current_map
        if current is None or e.value == current.use_custom_tile_layer:
            return
        if e.value and current.custom_tile_layer is None:
            ui.notify('Upload a custom image first', type='warning')
            self.custom_switch.set_value(False)
            return
        self._commit(current.model_copy(update={'use_custom_tile_layer': bool(e.value)}))

    # Refresh helpers

    def _map_options(self) -> Dict[str, str]:
        return {m.id: m.name for m in self.maps}

    def _event_options(self) -> Dict[str, str]:
        current = self.current_map
        if current is None:
            return {}
        return {
            event.id: f"{event.name} ({event.year})" if event.year else event.name
            for event in sort_timeline_events(current.timeline_events)
        }

    def _refresh_selects(self) -> None:
        self.map_select.set_options(self._map_options(), value=self.current_map_id)
        self.event_select.set_options(self._event_options(), value=self.active_event_id)

    def _refresh_settings(self) -> None:
        current = self.current_map
        if current is None:
            return
        self.lat_input.set_value(current.center_lat)
        self.lng_input.set_value(current.center_lng)
        self.zoom_input.set_value(current.zoom)
        self.custom_switch.set_value(current.use_custom_tile_layer)

    def _refresh_layers(self) -> None:
        if self.layers_container is None:
            return
        self.layers_container.clear()
        current = self.current_map
        if current is None:
            return
        active_ids = resolve_active_layer_ids(current.layers, current.timeline_events, self.active_event_id)
        with self.layers_container:
            for layer in current.layers:
                active = layer.id in active_ids
                with ui.row().classes('items-center gap-2'):
                    ui.element('div').style(
                        f'width: 12px; height: 12px; border-radius: 50%; background: {layer.color}'
                    )
                    ui.label(layer.name).classes('' if active else 'text-gray-400 line-through')

    def _refresh_mode(self) -> None:
        if self.controller is None or self.mode_label is None:
            return
        mode = self.controller.mode
        self.mode_label.set_text(f'Mode: {mode.value.replace("_", " ")}')
        self.marker_btn.set_text('Cancel Marker' if mode == AuthoringMode.PLACING_MARKER else 'Add Marker')
        self.polygon_btn.set_text('Cancel Drawing' if mode == AuthoringMode.DRAWING_POLYGON else 'Draw Polygon')


def create_app(store: Optional[DuckDBMapStore] = None) -> LibreAnvilUI:
    """
    Create and configure the NiceGUI application.

    Args:
        store: Map store (defaults to the global store)

    Returns:
        LibreAnvilUI instance
    """
    editor_ui = LibreAnvilUI(store=store)

    @ui.page('/')
    def main_page():
        editor_ui.build()

    return editor_ui


def run_app(
    host: Optional[str] = None,
    port: Optional[int] = None,
    reload: bool = False
) -> None:
    """
    Run the NiceGUI application.

    Args:
        host: Host to bind to
        port: Port to bind to
        reload: Enable auto-reload for development
    """
    config = get_config()

    host = host or config.ui.host
    port = port or config.ui.port
    reload = reload or config.ui.reload

    logger.info(f"Starting LibreAnvil at http://{host}:{port}")

    ui.run(
        host=host,
        port=port,
        title=config.ui.title,
        reload=reload,
        dark=config.ui.dark_mode
    )
