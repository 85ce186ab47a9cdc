"""
Terrain System - 2D grid of tiles generated from Perlin noise.

Each cell is a Tile: water (non-arable) or land carrying fertility, a food
type (hue) and a food level driven by the Climate. Creatures eat from and
return energy to the tile under them.
"""

from typing import List
import numpy as np
from scipy.ndimage import gaussian_filter

from ..core.constants import (
    FERTILITY_SCALE, FERTILITY_OFFSET, FOOD_TYPE_SCALE, FOOD_TYPE_OFFSET,
    FOOD_TYPE_MAX, TERRAIN_SMOOTHING,
)
from ..core.utils import BoardSize, BoardCoordinate, is_on_board
from ..events.console_log import console_log
from .climate import Climate
from .tile import Tile, ArableTile, NonArableTile


# =============================================================================
# PERLIN NOISE GENERATOR
# =============================================================================

class PerlinNoise:
    """Simple 2D Perlin noise, evaluated on whole numpy grids at once."""

    def __init__(self, seed: int = None):
        # Own RandomState when seeded so terrain does not disturb the global stream
        rng = np.random.RandomState(seed) if seed is not None else np.random
        # Permutation table
        self.perm = np.arange(256, dtype=np.int32)
        rng.shuffle(self.perm)
        self.perm = np.tile(self.perm, 2)

        # Gradients
        self.gradients = np.array([
            [1, 1], [-1, 1], [1, -1], [-1, -1],
            [1, 0], [-1, 0], [0, 1], [0, -1]
        ], dtype=np.float64)

    def _fade(self, t):
        """Smoothstep fade function."""
        return t * t * t * (t * (t * 6 - 15) + 10)

    def _lerp(self, a, b, t):
        return a + t * (b - a)

    def _dot_grid_gradient(self, ix, iy, x, y):
        """Compute dot product of distance and gradient vectors."""
        idx = self.perm[self.perm[ix % 256] + iy % 256] % 8
        gradient = self.gradients[idx]
        dx, dy = x - ix, y - iy
        return dx * gradient[..., 0] + dy * gradient[..., 1]

    def noise(self, x, y):
        """Noise in roughly [-1, 1] at every (x, y) of two same-shaped arrays."""
        x = np.asarray(x, dtype=np.float64)
        y = np.asarray(y, dtype=np.float64)
        x0 = np.floor(x).astype(np.int64)
        y0 = np.floor(y).astype(np.int64)
        x1, y1 = x0 + 1, y0 + 1

        sx = self._fade(x - x0)
        sy = self._fade(y - y0)

        n0 = self._dot_grid_gradient(x0, y0, x, y)
        n1 = self._dot_grid_gradient(x1, y0, x, y)
        ix0 = self._lerp(n0, n1, sx)

        n0 = self._dot_grid_gradient(x0, y1, x, y)
        n1 = self._dot_grid_gradient(x1, y1, x, y)
        ix1 = self._lerp(n0, n1, sx)

        return self._lerp(ix0, ix1, sy)

    def octave_noise(self, x, y, octaves: int = 4, persistence: float = 0.5):
        """Multi-octave noise for more natural terrain."""
        total = 0.0
        frequency = 1.0
        amplitude = 1.0
        max_value = 0.0

        for _ in range(octaves):
            total = total + self.noise(x * frequency, y * frequency) * amplitude
            max_value += amplitude
            amplitude *= persistence
            frequency *= 2.0

        return total / max_value

    def unit_noise(self, x, y, octaves: int = 4):
        """Octave noise remapped to [0, 1]."""
        return np.clip((self.octave_noise(x, y, octaves=octaves) + 1.0) / 2.0, 0.0, 1.0)


# =============================================================================
# TERRAIN CLASS
# =============================================================================

class Terrain:
    """
    Grid of tiles indexed as tiles[x][y].

    Tile food levels are updated lazily: a tile is brought up to date when a
    creature touches it, or all at once with `update_all`.
    """

    def __init__(self, board_size: BoardSize, tiles: List[List[Tile]]):
        self.board_size = board_size
        self.tiles = tiles

    @classmethod
    def generate_perlin(cls, board_size: BoardSize, noise_step_size: float,
                        seed: int = None) -> 'Terrain':
        """
        Generate terrain from layered Perlin noise.

        Fertility mixes a coarse and a fine noise layer, weighted by row so
        that one edge of the board is patchier than the other. Cells whose
        fertility exceeds 1.0 become water.
        """
        width, height = board_size
        perlin = PerlinNoise(seed)

        xs = np.arange(width, dtype=np.float64) * noise_step_size
        ys = np.arange(height, dtype=np.float64) * noise_step_size
        gx, gy = np.meshgrid(xs, ys, indexing='ij')

        big_force = np.sqrt(np.arange(height, dtype=np.float64) / max(height, 1))[np.newaxis, :]
        fine = perlin.unit_noise(gx * 3.0, gy * 3.0)
        coarse = perlin.unit_noise(gx * 0.5, gy * 0.5)
        fertility = (fine * (1.0 - big_force) * FERTILITY_SCALE
                     + coarse * big_force * FERTILITY_SCALE
                     - FERTILITY_OFFSET)
        fertility = gaussian_filter(fertility, sigma=TERRAIN_SMOOTHING)

        food_type = perlin.unit_noise(gx * 0.2 + 100.0, gy * 0.2 + 100.0)
        food_type = np.clip(food_type * FOOD_TYPE_SCALE - FOOD_TYPE_OFFSET, 0.0, FOOD_TYPE_MAX)

        tiles = [[Tile.new(float(fertility[x, y]), float(food_type[x, y]))
                  for y in range(height)]
                 for x in range(width)]

        terrain = cls(board_size, tiles)
        terrain._print_terrain_stats()
        return terrain

    def _print_terrain_stats(self):
        """Print terrain composition."""
        width, height = self.board_size
        total = max(width * height, 1)
        land = self.count_arable()
        console_log().log(
            f"[Terrain] Generated {width}x{height} terrain: "
            f"land {100 * land / total:.1f}%, water {100 * (total - land) / total:.1f}%"
        )

    def get_tile(self, coordinate: BoardCoordinate) -> Tile:
        """Tile at an integer board coordinate; IndexError when off the board."""
        if not is_on_board(coordinate, self.board_size):
            raise IndexError(f"coordinate {coordinate} outside board {self.board_size}")
        x, y = coordinate
        return self.tiles[x][y]

    def update_all(self, time: float, climate: Climate):
        """Bring every tile's food level up to `time`."""
        for column in self.tiles:
            for tile in column:
                tile.update(time, climate)

    def count_arable(self) -> int:
        return sum(1 for column in self.tiles for tile in column if tile.arable)

    def total_food(self) -> float:
        return float(sum(tile.get_food_level() for column in self.tiles for tile in column))

    def to_dict(self) -> dict:
        """Serialize for persistence as dense per-cell arrays."""
        width, height = self.board_size
        arable = np.zeros((width, height), dtype=bool)
        fertility = np.zeros((width, height))
        food_level = np.zeros((width, height))
        food_type = np.zeros((width, height))
        last_update = np.zeros((width, height))

        for x, column in enumerate(self.tiles):
            for y, tile in enumerate(column):
                if tile.arable:
                    arable[x, y] = True
                    fertility[x, y] = tile.fertility
                    food_level[x, y] = tile.food_level
                    food_type[x, y] = tile.food_type
                    last_update[x, y] = tile.last_update_time

        return {
            'board_size': [width, height],
            'arable': arable,
            'fertility': fertility,
            'food_level': food_level,
            'food_type': food_type,
            'last_update': last_update,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'Terrain':
        """Deserialize from persistence."""
        width, height = (int(v) for v in data['board_size'])
        arable = np.asarray(data['arable'], dtype=bool)
        fertility = np.asarray(data['fertility'], dtype=np.float64)
        food_level = np.asarray(data['food_level'], dtype=np.float64)
        food_type = np.asarray(data['food_type'], dtype=np.float64)
        last_update = np.asarray(data['last_update'], dtype=np.float64)

        if arable.shape != (width, height):
            raise ValueError(f"terrain arrays have shape {arable.shape}, expected {(width, height)}")

        tiles = []
        for x in range(width):
            column = []
            for y in range(height):
                if arable[x, y]:
                    column.append(ArableTile(float(fertility[x, y]), float(food_type[x, y]),
                                             food_level=float(food_level[x, y]),
                                             last_update_time=float(last_update[x, y])))
                else:
                    column.append(NonArableTile())
            tiles.append(column)

        return cls((width, height), tiles)
