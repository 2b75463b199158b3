"""
Configuration module for LibreAnvil.

Centralizes configuration management and environment variable handling.
Map collections are persisted in a DuckDB key-value table.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


@dataclass
class StorageConfig:
    """DuckDB configuration for the map collection store."""
    path: str = field(
        default_factory=lambda: os.getenv(
            "LIBREANVIL_DB_PATH",
            str(Path(__file__).parent / "database" / "libreanvil.duckdb")
        )
    )
    storage_key: str = field(
        default_factory=lambda: os.getenv("LIBREANVIL_STORAGE_KEY", "maps")
    )


@dataclass
class BasemapConfig:
    """Tile service and custom image settings."""
    tile_url: str = field(
        default_factory=lambda: os.getenv(
            "TILE_URL", "https://{s}.tile.openstreetmap.org/{z}/{x}/{y}.png"
        )
    )
    tile_attribution: str = field(
        default_factory=lambda: os.getenv(
            "TILE_ATTRIBUTION",
            '&copy; <a href="https://www.openstreetmap.org/copyright">OpenStreetMap</a> contributors'
        )
    )
    max_image_bytes: int = field(
        default_factory=lambda: int(os.getenv("MAX_IMAGE_BYTES", str(10 * 1024 * 1024)))
    )


@dataclass
class UIConfig:
    """NiceGUI configuration."""
    host: str = field(default_factory=lambda: os.getenv("HOST", "127.0.0.1"))
    port: int = field(default_factory=lambda: int(os.getenv("PORT", "8080")))
    title: str = field(default_factory=lambda: os.getenv("UI_TITLE", "LibreAnvil"))
    dark_mode: bool = field(default_factory=lambda: os.getenv("UI_DARK_MODE", "false").lower() == "true")
    reload: bool = field(default_factory=lambda: os.getenv("UI_RELOAD", "false").lower() == "true")


@dataclass
class LibreAnvilConfig:
    """Main configuration class for LibreAnvil."""
    storage: StorageConfig = field(default_factory=StorageConfig)
    basemap: BasemapConfig = field(default_factory=BasemapConfig)
    ui: UIConfig = field(default_factory=UIConfig)

    def ensure_directories(self) -> None:
        """Ensure the database directory exists."""
        Path(self.storage.path).parent.mkdir(parents=True, exist_ok=True)


# Global configuration instance
config = LibreAnvilConfig()


def get_config() -> LibreAnvilConfig:
    """Get the global configuration instance."""
    return config


def reload_config() -> LibreAnvilConfig:
    """Reload configuration from environment variables."""
    global config
    load_dotenv(override=True)
    config = LibreAnvilConfig()
    return config
