"""
Season System - Yearly quarters derived from the simulation clock.

A year is 1.0 time units. Each quarter of the year is one season,
starting with Winter (the coldest point of the climate curve).
"""

from typing import Optional

import numpy as np

from ..core.constants import SEASON_NAMES


def get_season_index(year: float) -> int:
    """Index into SEASON_NAMES for a point in time."""
    return int(np.floor((year % 1.0) * 4.0)) % 4


def get_season(year: float) -> str:
    """Season name for a point in time."""
    return SEASON_NAMES[get_season_index(year)]


def get_year_progress(year: float) -> float:
    """Fraction (0-1) of the current year already elapsed."""
    return year % 1.0


class SeasonTracker:
    """
    Detects season transitions as the board clock advances.

    Keeps only the last observed season, so it can be rebuilt from the clock
    at any time.
    """

    def __init__(self, year: float = 0.0):
        self.current_index = get_season_index(year)
        self.current_year = int(np.floor(year))

    @property
    def season_name(self) -> str:
        return SEASON_NAMES[self.current_index]

    def update(self, year: float) -> Optional[str]:
        """
        Observe the clock.

        Returns:
            Message string if season changed, None otherwise
        """
        index = get_season_index(year)
        whole_year = int(np.floor(year))
        if index == self.current_index and whole_year == self.current_year:
            return None

        old_season = self.season_name
        self.current_index = index
        self.current_year = whole_year
        return f"[Season] {old_season} -> {self.season_name} (Year {whole_year})"
