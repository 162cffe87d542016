# fogcrawl/world/fov.py
"""
Field of View (FOV) calculation.
Uses Numba-accelerated symmetric shadowcasting with exact integer slopes, so
the result for a given origin, radius and transparency map is reproducible and
symmetric between any two floor tiles.
"""

import time
from typing import Iterable, Set, TypeAlias

import numba
import numpy as np
import structlog

# --- Type Aliases ---
Point: TypeAlias = tuple[int, int]

log = structlog.get_logger(__name__)


@numba.njit(cache=True)
def _compute_fov_core(
    origin_x: int, origin_y: int, radius: int, transparent: np.ndarray
) -> list:
    """Scan the four quadrants row by row.

    A row is ``(depth, start_num, start_den, end_num, end_den)``; slopes are
    kept as fractions ``num / den`` with a positive denominator.  Tiles outside
    the array block light and are reported like any other wall.
    """
    height, width = transparent.shape
    visible = [(origin_x, origin_y)]
    if radius < 1:
        return visible
    radius_sq = radius * radius

    for quadrant in range(4):
        rows = [(1, -1, 1, 1, 1)]
        while len(rows) > 0:
            depth, s_num, s_den, e_num, e_den = rows.pop()
            if depth > radius:
                continue

            # round_ties_up(depth * start) and round_ties_down(depth * end)
            min_col = (2 * depth * s_num + s_den) // (2 * s_den)
            max_col = -((e_den - 2 * depth * e_num) // (2 * e_den))

            prev = -1  # -1: none yet, 0: floor, 1: wall
            for col in range(min_col, max_col + 1):
                if quadrant == 0:  # north
                    x, y = origin_x + col, origin_y - depth
                elif quadrant == 1:  # east
                    x, y = origin_x + depth, origin_y + col
                elif quadrant == 2:  # south
                    x, y = origin_x + col, origin_y + depth
                else:  # west
                    x, y = origin_x - depth, origin_y + col

                if x < 0 or y < 0 or x >= width or y >= height:
                    wall = True
                else:
                    wall = not transparent[y, x]

                symmetric = (
                    col * s_den >= depth * s_num and col * e_den <= depth * e_num
                )
                if (wall or symmetric) and depth * depth + col * col <= radius_sq:
                    visible.append((x, y))

                if prev == 1 and not wall:
                    s_num = 2 * col - 1
                    s_den = 2 * depth
                if prev == 0 and wall:
                    rows.append((depth + 1, s_num, s_den, 2 * col - 1, 2 * depth))
                prev = 1 if wall else 0

            if prev == 0:
                rows.append((depth + 1, s_num, s_den, e_num, e_den))

    return visible


def compute_fov(origin_xy: Point, radius: int, transparent: np.ndarray) -> Set[Point]:
    """
    Public interface for FOV computation.

    Returns every tile visible from ``origin_xy`` within Euclidean ``radius``.
    The set may contain coordinates outside the map when the origin is near an
    edge; callers clamp with :func:`clamp_to_bounds`.
    Attempts the Numba-compiled core first, falls back to running the same
    function as plain Python.
    """
    if not isinstance(transparent, np.ndarray) or transparent.ndim != 2:
        raise TypeError("transparent must be a 2D NumPy array")
    if not np.issubdtype(transparent.dtype, np.bool_):
        transparent = transparent.astype(np.bool_)

    height, width = transparent.shape
    ox, oy = int(origin_xy[0]), int(origin_xy[1])
    if not (0 <= ox < width and 0 <= oy < height):
        raise ValueError("Origin coordinates out of bounds")

    func_log = log.bind(origin=(ox, oy), radius=radius, grid_shape=transparent.shape)
    start_time = time.perf_counter()
    try:
        tiles = _compute_fov_core(ox, oy, int(radius), transparent)
    except Exception as e:
        func_log.warning("Numba FOV failed, falling back to Python", error=str(e))
        tiles = _compute_fov_core.py_func(ox, oy, int(radius), transparent)

    visible = {(int(x), int(y)) for x, y in tiles}
    duration_ms = (time.perf_counter() - start_time) * 1000
    func_log.debug(
        "FOV computation finished",
        duration_ms=f"{duration_ms:.2f}",
        visible_count=len(visible),
    )
    return visible


def clamp_to_bounds(tiles: Iterable[Point], width: int, height: int) -> Set[Point]:
    """Only keep the tiles inside ``[0, width) x [0, height)``."""
    return {(x, y) for x, y in tiles if 0 <= x < width and 0 <= y < height}


__all__ = ["compute_fov", "clamp_to_bounds"]
