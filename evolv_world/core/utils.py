"""
Utility functions for the evolv_world simulation.

Board coordinate types, clamping and small numeric helpers shared by the
terrain, the spatial index and the creatures.
"""

from typing import NamedTuple, Tuple
import numpy as np


BoardSize = Tuple[int, int]
BoardCoordinate = Tuple[int, int]


class BoardPreciseCoordinate(NamedTuple):
    """Continuous (x, y) position on the board."""
    x: float
    y: float

    def to_board_coordinate(self) -> BoardCoordinate:
        """Floor both components to get the tile this position lies on."""
        return (int(np.floor(self.x)), int(np.floor(self.y)))


def is_on_board(coordinate: BoardCoordinate, board_size: BoardSize) -> bool:
    """
    Check whether a grid coordinate lies inside the board.

    Args:
        coordinate: (column, row)
        board_size: (width, height)

    Returns:
        True if 0 <= column < width and 0 <= row < height
    """
    x, y = coordinate
    return 0 <= x < board_size[0] and 0 <= y < board_size[1]


def clamp_to_board(x: float, y: float, margin: float,
                   board_size: BoardSize) -> Tuple[float, float]:
    """
    Clamp a precise position so a body of radius `margin` stays on the board.

    The result always floors to a valid grid coordinate.
    """
    width, height = board_size
    margin = min(margin, width / 2, height / 2)
    x = min(max(x, margin), width - margin)
    y = min(max(y, margin), height - margin)
    # Guard against landing exactly on the far edge
    x = min(x, np.nextafter(width, 0))
    y = min(y, np.nextafter(height, 0))
    return float(x), float(y)



def hue_distance(a: float, b: float) -> float:
    """Absolute distance between two hues in [0, 1] (not wrapped)."""
    return abs(a - b)
