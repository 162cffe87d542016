"""Simulation core of a tile-based dungeon crawler: map generation, fog of war
and per-entity field of view."""
