"""Shared fixtures: isolate the logging singletons and seed the global RNG."""

import numpy as np
import pytest

from evolv_world.core.utils import BoardPreciseCoordinate
from evolv_world.events.console_log import ConsoleLogger
from evolv_world.events.logger import EventLogger
from evolv_world.world.climate import Climate
from evolv_world.world.terrain import Terrain
from evolv_world.world.tile import ArableTile, NonArableTile


@pytest.fixture(autouse=True)
def isolated_logs(tmp_path):
    """Every test writes events to its own file and starts at MINIMAL verbosity."""
    ConsoleLogger.reset()
    logger = EventLogger.reset(str(tmp_path / "events.jsonl"))
    np.random.seed(1234)
    yield logger
    EventLogger.reset()
    ConsoleLogger.reset()


@pytest.fixture
def climate():
    c = Climate(-0.5, 1.0)
    c.update(0.0)
    return c


def make_terrain(board_size, fertility=0.5, food_type=0.4, water=()):
    """Uniform land terrain, with the given cells turned into water."""
    width, height = board_size
    tiles = [[NonArableTile() if (x, y) in water else ArableTile(fertility, food_type)
              for y in range(height)]
             for x in range(width)]
    return Terrain(board_size, tiles)


@pytest.fixture
def land():
    return make_terrain((10, 10))


class Dot:
    """Minimal body for spatial index tests."""

    def __init__(self, creature_id, px, py):
        self.id = creature_id
        self.px = px
        self.py = py
        self.sbip_cell = None

    def get_position(self):
        return BoardPreciseCoordinate(self.px, self.py)
