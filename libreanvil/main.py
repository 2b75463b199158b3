"""
LibreAnvil - Main Entry Point

Offline editor for layered, timeline-driven world maps.
- Architect: factories, default collection and collection editing
- Atlas: the map synchronization engine
- Forge: NiceGUI-based editor

Usage:
    python -m libreanvil.main [--host HOST] [--port PORT] [--db-path PATH] [--reset] [--list]
"""

import argparse
from dotenv import load_dotenv

from libreanvil.config import get_config
from libreanvil.utils.logger import get_logger

# Load environment variables
load_dotenv()

logger = get_logger("libreanvil.main")


def reset_store(db_path: str) -> None:
    """
    Replace the stored map collection with the default one.

    Args:
        db_path: Path to the DuckDB database
    """
    from libreanvil.data.store import DuckDBMapStore

    with DuckDBMapStore(db_path=db_path) as store:
        maps = store.reset()
    logger.info(f"Map store reset with {len(maps)} default map(s)")


def list_maps(db_path: str) -> None:
    """
    Print a summary of every stored map.

    Args:
        db_path: Path to the DuckDB database
    """
    from libreanvil.data.store import DuckDBMapStore

    with DuckDBMapStore(db_path=db_path) as store:
        maps = store.load_maps()

    for map_data in maps:
        basemap = "custom image" if map_data.use_custom_tile_layer else "tiles"
        print(
            f"{map_data.id}  {map_data.name}  [{basemap}]  "
            f"layers={len(map_data.layers)} markers={len(map_data.markers)} "
            f"polygons={len(map_data.polygons)} events={len(map_data.timeline_events)}"
        )


def run_ui(host: str, port: int, db_path: str) -> None:
    """
    Run the NiceGUI-based editor.

    Args:
        host: Host to bind to
        port: Port to bind to
        db_path: Path to the DuckDB database
    """
    from libreanvil.data.store import get_map_store
    from libreanvil.forge.ui import create_app, run_app

    create_app(store=get_map_store(db_path=db_path))
    run_app(host=host, port=port)


def main():
    """Main entry point."""
    config = get_config()

    parser = argparse.ArgumentParser(
        description="LibreAnvil - Offline layered world map editor"
    )
    parser.add_argument(
        "--host",
        default=config.ui.host,
        help="Host to bind the UI server"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=config.ui.port,
        help="Port to bind the UI server"
    )
    parser.add_argument(
        "--db-path",
        default=config.storage.path,
        help="Path to the DuckDB map store"
    )
    parser.add_argument(
        "--reset",
        action="store_true",
        help="Replace the stored maps with the default collection"
    )
    parser.add_argument(
        "--list",
        action="store_true",
        help="List stored maps, then exit"
    )

    args = parser.parse_args()

    if args.reset:
        reset_store(args.db_path)

    if args.list:
        list_maps(args.db_path)
        return

    run_ui(args.host, args.port, args.db_path)


if __name__ == "__main__":
    main()
