"""
Spatial index - which creatures occupy which board cell.

One set of creature ids per grid cell. Between ticks every live creature is
in exactly one cell: the one under its current position.
"""

from typing import Dict, List, Set

import numpy as np

from ..core.utils import BoardSize, BoardCoordinate, is_on_board


class SoftBodiesInPositions:
    """Grid of id sets, indexed as cells[x][y]."""

    def __init__(self, board_size: BoardSize):
        self.board_size = board_size
        width, height = board_size
        self.cells: List[List[Set[int]]] = [[set() for _ in range(height)] for _ in range(width)]
        # Cell each id was last inserted into
        self.locations: Dict[int, BoardCoordinate] = {}

    @classmethod
    def new_allocated(cls, board_size: BoardSize) -> 'SoftBodiesInPositions':
        return cls(board_size)

    def _check(self, coordinate: BoardCoordinate):
        if not is_on_board(coordinate, self.board_size):
            raise IndexError(
                f"spatial index coordinate {coordinate} outside board {self.board_size}"
            )

    def set_sbip(self, creature, board_size: BoardSize = None):
        """
        Move a creature's id into the cell under its current position.

        Removes it from the previously recorded cell if that differs. Calling
        this twice without motion leaves the index unchanged.
        """
        coordinate = creature.get_position().to_board_coordinate()
        if board_size is not None and not is_on_board(coordinate, board_size):
            raise IndexError(f"creature {creature.id} at {coordinate} outside board {board_size}")
        self._check(coordinate)

        previous = self.locations.get(creature.id)
        if previous is not None and previous != coordinate:
            self.cells[previous[0]][previous[1]].discard(creature.id)

        self.cells[coordinate[0]][coordinate[1]].add(creature.id)
        self.locations[creature.id] = coordinate
        creature.sbip_cell = coordinate

    def remove(self, creature):
        """Drop a creature's id from the index."""
        previous = self.locations.pop(creature.id, None)
        if previous is not None:
            self.cells[previous[0]][previous[1]].discard(creature.id)
        creature.sbip_cell = None

    def get_soft_bodies_at(self, x: int, y: int) -> Set[int]:
        self._check((x, y))
        return self.cells[x][y]

    def query_radius(self, x: float, y: float, radius: float) -> List[int]:
        """
        Ids in every cell touched by the square of half-width `radius`
        around (x, y), clipped to the board. Sorted by id.
        """
        width, height = self.board_size
        min_x = max(int(np.floor(x - radius)), 0)
        max_x = min(int(np.floor(x + radius)), width - 1)
        min_y = max(int(np.floor(y - radius)), 0)
        max_y = min(int(np.floor(y + radius)), height - 1)

        results = set()
        for cx in range(min_x, max_x + 1):
            for cy in range(min_y, max_y + 1):
                results.update(self.cells[cx][cy])
        return sorted(results)

    def cell_of(self, creature_id: int):
        """Recorded cell of an id, or None if it is not indexed."""
        return self.locations.get(creature_id)

    def find_cells(self, creature_id: int) -> List[BoardCoordinate]:
        """Every cell containing the id (full scan, for consistency checks)."""
        return [(x, y)
                for x, column in enumerate(self.cells)
                for y, cell in enumerate(column)
                if creature_id in cell]

    def clear(self):
        for column in self.cells:
            for cell in column:
                cell.clear()
        self.locations.clear()

    def __len__(self):
        return sum(len(cell) for column in self.cells for cell in column)

    def __contains__(self, creature_id: int):
        return creature_id in self.locations
