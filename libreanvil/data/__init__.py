"""
Data module - Storage layer for LibreAnvil.

This module contains:
- schemas: Pydantic models for maps, layers, markers, polygons and timelines
- store: DuckDB key-value store for the map collection
"""
