"""
Climate - Seasonal temperature driving food growth.

Temperature doubles as the food growth rate. It follows a cosine over one
year, coldest at the start of the year and warmest halfway through.
"""

import numpy as np


class Climate:
    """
    Periodic temperature model with period 1.0 (one year).

    growth_rate(t) = mid - range/2 * cos(2π t), where mid is the midpoint of
    [min_temp, max_temp].
    """

    def __init__(self, min_temp: float, max_temp: float):
        self.min_temperature = min_temp
        self.max_temperature = max_temp
        self.temperature = min_temp

    @property
    def temperature_range(self) -> float:
        return self.max_temperature - self.min_temperature

    def update(self, time: float):
        """Recompute the cached temperature for `time`."""
        self.temperature = self.get_growth_rate(time)

    def get_temperature(self) -> float:
        return self.temperature

    def get_growth_rate(self, time: float) -> float:
        """Instantaneous growth rate (temperature) at `time`."""
        temp_range = self.temperature_range
        return (self.min_temperature + temp_range * 0.5
                - temp_range * 0.5 * np.cos((time % 1.0) * 2.0 * np.pi))

    def get_growth_over_time_range(self, time: float, last_updated: float) -> float:
        """
        Integrated growth between `last_updated` and `time`.

        Negative when `time < last_updated`, and also whenever the average
        temperature over the window is below zero (food decays).
        """
        temp_range = self.temperature_range
        mid = self.min_temperature + temp_range * 0.5
        return ((time - last_updated) * mid
                + (temp_range / np.pi / 4.0)
                * (np.sin(2.0 * np.pi * last_updated) - np.sin(2.0 * np.pi * time)))

    def to_dict(self) -> dict:
        """Serialize for persistence."""
        return {
            'min_temperature': self.min_temperature,
            'max_temperature': self.max_temperature,
            'temperature': self.temperature,
        }

    @classmethod
    def from_dict(cls, d: dict) -> 'Climate':
        """Deserialize from persistence."""
        climate = cls(d['min_temperature'], d['max_temperature'])
        climate.temperature = d.get('temperature', climate.min_temperature)
        return climate
