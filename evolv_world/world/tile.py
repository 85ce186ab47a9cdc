"""
Tiles - The unit cells of the terrain.

A tile is either non-arable (water, never holds food) or arable, in which
case it carries a fixed fertility, a food type (hue) and a food level that
grows and decays with the climate.
"""

from typing import Optional
import numpy as np

from ..core.constants import FOOD_GROWTH_RATE, MAX_GROWTH_LEVEL, FOOD_SENSITIVITY
from ..core.utils import hue_distance
from .climate import Climate


class Tile:
    """Base tile interface. Use `Tile.new` to build the right variant."""

    arable = False

    @staticmethod
    def new(fertility: float, food_type: float) -> 'Tile':
        """
        Build a tile from raw terrain noise.

        A fertility above 1.0 means the tile is water (non-arable); otherwise
        the tile is arable with fertility clamped to >= 0.
        """
        if fertility > 1.0:
            return NonArableTile()
        return ArableTile(max(fertility, 0.0), food_type)

    def is_water(self) -> bool:
        return not self.arable

    def get_food_level(self) -> float:
        return 0.0

    def get_fertility(self) -> float:
        return 0.0

    def get_food_type(self) -> float:
        return 0.0

    def update(self, time: float, climate: Climate):
        pass

    def add_food_or_nothing(self, food_to_add: float):
        pass

    def remove_food(self, food_to_remove: float):
        raise NotImplementedError

    def get_food_multiplier(self, hue: float) -> Optional[float]:
        return None


class NonArableTile(Tile):
    """Water. Holds no food and must never be eaten from."""

    arable = False

    def remove_food(self, food_to_remove: float):
        if food_to_remove > 0.0:
            raise ValueError(
                "remove_food called on a non-arable tile; "
                "water tiles hold no food and should not be eaten"
            )

    def __repr__(self):
        return "NonArableTile()"


class ArableTile(Tile):
    """Land tile whose food level follows the climate's growth integral."""

    arable = True

    def __init__(self, fertility: float, food_type: float,
                 food_level: float = None, last_update_time: float = 0.0):
        self.fertility = fertility
        self.food_type = food_type
        # Fresh tiles start with food equal to their fertility
        self.food_level = fertility if food_level is None else food_level
        self.last_update_time = last_update_time

    def get_food_level(self) -> float:
        return self.food_level

    def get_fertility(self) -> float:
        return self.fertility

    def get_food_type(self) -> float:
        return self.food_type

    def update(self, time: float, climate: Climate):
        """
        Bring the food level up to date with the climate.

        Growth asymptotically approaches MAX_GROWTH_LEVEL at a rate scaled by
        fertility; negative growth decays food exponentially.
        """
        if time - self.last_update_time <= 0.00001:
            return

        growth_change = climate.get_growth_over_time_range(time, self.last_update_time)

        if growth_change <= 0.0:
            food_to_remove = self.food_level - self.food_level * np.exp(growth_change * FOOD_GROWTH_RATE)
            self.remove_food(food_to_remove)
        elif self.food_level < MAX_GROWTH_LEVEL:
            new_dist_to_max = ((MAX_GROWTH_LEVEL - self.food_level)
                               * np.exp(-growth_change * self.fertility * FOOD_GROWTH_RATE))
            food_to_add = MAX_GROWTH_LEVEL - new_dist_to_max - self.food_level
            self.add_food(food_to_add)

        self.last_update_time = time

    def get_food_multiplier(self, hue: float) -> float:
        """How nutritious this tile's food is for a mouth of the given hue."""
        return 1.0 - hue_distance(self.food_type, hue) / FOOD_SENSITIVITY

    def add_food(self, food_to_add: float):
        self.food_level = max(0.0, self.food_level + food_to_add)

    def add_food_or_nothing(self, food_to_add: float):
        self.add_food(food_to_add)

    def remove_food(self, food_to_remove: float):
        self.food_level = max(0.0, self.food_level - food_to_remove)

    def __repr__(self):
        return (f"ArableTile(fertility={self.fertility:.3f}, "
                f"food_level={self.food_level:.3f}, food_type={self.food_type:.3f})")
