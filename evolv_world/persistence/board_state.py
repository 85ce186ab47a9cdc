"""
Board Persistence - Save/load of the complete board state.

A single compressed .npz file holds:
- Terrain as dense per-cell arrays
- Everything else (climate, clock, creatures with their genomes, registry
  counters and innovation maps, selection, population history) as one JSON
  document

The spatial index is not stored; it is rebuilt from creature positions on
load. Nothing is pickled.
"""

import json
import os
import time
import zipfile
from typing import Optional, TYPE_CHECKING

import numpy as np

from ..core.constants import BOARD_STATE_FILE
from ..events.console_log import console_log

if TYPE_CHECKING:
    from ..manager.board import Board


TERRAIN_ARRAYS = ('arable', 'fertility', 'food_level', 'food_type', 'last_update')

LOAD_ERRORS = (OSError, ValueError, KeyError, TypeError, IndexError, zipfile.BadZipFile)


class BoardPersistence:
    """Static save/load helpers around Board.to_dict / Board.from_dict."""

    @staticmethod
    def save_board(board: 'Board', filepath: str = None) -> bool:
        """
        Save complete board state to a single file.

        The file is written next to its destination and moved into place, so
        an interrupted save never leaves a truncated board behind.

        Returns:
            True if successful
        """
        if filepath is None:
            filepath = BOARD_STATE_FILE

        try:
            state = board.to_dict()
            terrain = state.pop('terrain')

            arrays = {f'terrain_{name}': np.asarray(terrain[name]) for name in TERRAIN_ARRAYS}
            state['terrain_board_size'] = terrain['board_size']
            state['save_time'] = time.time()

            directory = os.path.dirname(filepath)
            if directory:
                os.makedirs(directory, exist_ok=True)

            tmp_path = filepath + '.tmp'
            with open(tmp_path, 'wb') as f:
                np.savez_compressed(f, state=np.array(json.dumps(state)), **arrays)
            os.replace(tmp_path, filepath)

            file_size = os.path.getsize(filepath)
            console_log().log(f"[Persistence] Saved {len(state['creatures'])} creatures "
                              f"at year {board.get_time():.3f} to {filepath} ({file_size:,} bytes)")
            return True

        except (OSError, ValueError, TypeError) as e:
            console_log().log(f"[Persistence] Save failed: {e}", force=True)
            return False

    @staticmethod
    def load_state(filepath: str = None) -> Optional[dict]:
        """Read the board IR from file, or None if it is missing or unreadable."""
        if filepath is None:
            filepath = BOARD_STATE_FILE

        if not os.path.exists(filepath):
            console_log().log(f"[Persistence] No save file found at {filepath}")
            return None

        try:
            with np.load(filepath, allow_pickle=False) as d:
                state = json.loads(str(d['state']))
                state['terrain'] = {
                    'board_size': state.pop('terrain_board_size'),
                    **{name: d[f'terrain_{name}'] for name in TERRAIN_ARRAYS},
                }
            return state

        except LOAD_ERRORS as e:
            console_log().log(f"[Persistence] Load failed: {e}", force=True)
            return None

    @staticmethod
    def load_board(filepath: str = None, parallel_brains: bool = False) -> Optional['Board']:
        """
        Rebuild a Board from file.

        Returns:
            The restored Board, or None if the file is missing or corrupt
        """
        from ..manager.board import Board

        state = BoardPersistence.load_state(filepath)
        if state is None:
            return None

        try:
            board = Board.from_dict(state, parallel_brains=parallel_brains)
        except LOAD_ERRORS as e:
            console_log().log(f"[Persistence] Load failed: {e}", force=True)
            return None

        console_log().log(f"[Persistence] Loaded {board.get_population_size()} creatures "
                          f"at year {board.get_time():.3f}")
        return board

    @staticmethod
    def exists(filepath: str = None) -> bool:
        """Check if save file exists."""
        if filepath is None:
            filepath = BOARD_STATE_FILE
        return os.path.exists(filepath)
