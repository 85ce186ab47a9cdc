"""
Event Logger for the evolv_world simulation.

Logs key simulation events to a JSONL file for easy parsing.
Each line is a self-contained JSON object.
"""

import json
import os
import time
from typing import Optional

from ..core.constants import EVENT_LOG_FILE
from .console_log import console_log


class EventLogger:
    """
    Logs key simulation events to a JSONL file for easy parsing.
    Each line is a self-contained JSON object.

    Event types:
    - birth: Creature born (reproduction or random spawn)
    - death: Creature removed by the viability test
    - season: Season changed
    - population: Periodic population snapshot
    - refill: Random creatures added to keep the population floor
    - session_start / session_end: Driver lifecycle
    """

    _instance: Optional['EventLogger'] = None

    def __init__(self, filepath: str = None):
        """
        Initialize event logger.

        Args:
            filepath: Path to JSONL log file (default: EVENT_LOG_FILE from constants)
        """
        self.filepath = filepath or EVENT_LOG_FILE
        self.enabled = True
        self.buffer = []
        self.buffer_size = 50  # Flush every N events

    @classmethod
    def get(cls) -> 'EventLogger':
        """Get singleton instance."""
        if cls._instance is None:
            cls._instance = EventLogger()
        return cls._instance

    @classmethod
    def reset(cls, filepath: str = None) -> 'EventLogger':
        """Replace the singleton (useful for testing)."""
        cls._instance = EventLogger(filepath) if filepath else None
        return cls._instance

    def log(self, event_type: str, sim_time: float = 0.0, **data):
        """
        Log an event.

        Args:
            event_type: Type of event (e.g., 'birth', 'death', 'season')
            sim_time: Simulation time (years) when the event occurred
            **data: Additional event data
        """
        if not self.enabled:
            return

        event = {
            'type': event_type,
            'sim_time': round(float(sim_time), 6),
            'time': time.strftime('%Y-%m-%d %H:%M:%S'),
            **data
        }

        self.buffer.append(event)

        if len(self.buffer) >= self.buffer_size:
            self.flush()

    def flush(self):
        """Write buffered events to file."""
        if not self.buffer:
            return

        try:
            directory = os.path.dirname(self.filepath)
            if directory:
                os.makedirs(directory, exist_ok=True)
            with open(self.filepath, 'a') as f:
                for event in self.buffer:
                    f.write(json.dumps(event) + '\n')
            self.buffer.clear()
        except OSError as e:
            console_log().log(f"[EventLog] Write failed: {e}", force=True)

    # === Convenience methods for specific event types ===

    def log_birth(self, sim_time: float, creature_id: int, generation: int,
                  parents: tuple = None, pos: tuple = None, energy: float = 0.0,
                  genome_size: int = 0):
        """Log a birth event with lineage and genome size."""
        self.log('birth', sim_time,
                 creature_id=creature_id,
                 generation=generation,
                 parents=list(parents) if parents else None,
                 pos=[round(float(p), 3) for p in pos] if pos is not None else None,
                 energy=round(float(energy), 4),
                 genome_size=genome_size)

    def log_death(self, sim_time: float, creature_id: int, cause: str,
                  generation: int, age: float = 0.0, pos: tuple = None,
                  offspring: int = 0):
        """Log a death event."""
        self.log('death', sim_time, creature_id=creature_id, cause=cause,
                 generation=generation, age=round(float(age), 6),
                 pos=[round(float(p), 3) for p in pos] if pos is not None else None,
                 offspring=offspring)

    def log_season(self, sim_time: float, season: str, year: int):
        """Log a season change."""
        self.log('season', sim_time, season=season, year=year)

    def log_refill(self, sim_time: float, added: int, population: int):
        """Log a population-floor refill."""
        self.log('refill', sim_time, added=added, population=population)

    def log_population(self, sim_time: float, population: int,
                       mean_energy: float = 0.0, max_generation: int = 0):
        """Log periodic population snapshot."""
        self.log('population', sim_time, population=population,
                 mean_energy=round(float(mean_energy), 4),
                 max_generation=max_generation)


# Global accessor function
def event_log() -> EventLogger:
    """Get the singleton EventLogger instance."""
    return EventLogger.get()
