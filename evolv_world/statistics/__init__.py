"""
Statistics Tracking - Creature lifetime and population analytics.

Contains:
- LifetimeRecord: Complete record of one creature's life, emitted on death
- EvolutionHistory: Collection of lifetime records with aggregate stats
- PopulationHistory: Bounded time series of population samples
"""

from dataclasses import dataclass, field
from datetime import datetime
from collections import deque
from typing import Dict, List, Optional
import json
import numpy as np

from ..core.constants import POPULATION_HISTORY_LENGTH


@dataclass
class LifetimeRecord:
    """Complete record of one creature's life."""
    # Identity
    creature_id: int = 0
    generation: int = 0
    parent_ids: List[int] = field(default_factory=list)

    # Temporal (simulation years)
    birth_time: float = 0.0
    death_time: float = 0.0
    age: float = 0.0

    # Cause of death
    cause_of_death: str = ""

    # Life
    offspring_count: int = 0
    total_eaten: float = 0.0
    distance_travelled: float = 0.0
    peak_energy: float = 0.0
    final_energy: float = 0.0
    mouth_hue: float = 0.0

    # Genome size at death
    genome_nodes: int = 0
    genome_connections: int = 0

    def to_dict(self) -> dict:
        """Serialize to dictionary."""
        result = {}
        for k, v in self.__dict__.items():
            if isinstance(v, np.ndarray):
                result[k] = v.tolist()
            elif isinstance(v, np.generic):
                result[k] = v.item()
            else:
                result[k] = v
        return result

    @classmethod
    def from_dict(cls, d: dict) -> 'LifetimeRecord':
        """Deserialize from dictionary."""
        record = cls()
        for k, v in d.items():
            if hasattr(record, k):
                setattr(record, k, v)
        return record

    def fitness_score(self) -> float:
        """Composite fitness metric."""
        survival = self.age
        feeding = self.total_eaten
        reproduction = self.offspring_count * 2
        return survival + feeding + reproduction


# =============================================================================
# EVOLUTION HISTORY
# =============================================================================

class EvolutionHistory:
    """Lifetime records of dead creatures and their lineages."""

    def __init__(self, max_records: int = 10000):
        self.records: deque = deque(maxlen=max_records)
        self.lineages: Dict[int, List[int]] = {}  # parent_id -> [child_ids]
        self.total_recorded = 0

    def add(self, record: LifetimeRecord):
        """Add a lifetime record."""
        self.records.append(record)
        self.total_recorded += 1

        for parent_id in record.parent_ids:
            self.lineages.setdefault(parent_id, []).append(record.creature_id)

    def compute_global_stats(self) -> dict:
        """Compute statistics across all records."""
        if not self.records:
            return {}

        return {
            'total_creatures': self.total_recorded,
            'total_generations': max(r.generation for r in self.records) + 1,
            'mean_lifespan': float(np.mean([r.age for r in self.records])),
            'max_lifespan': float(max(r.age for r in self.records)),
            'total_offspring': sum(r.offspring_count for r in self.records),
            'mean_eaten': float(np.mean([r.total_eaten for r in self.records])),
            'mean_fitness': float(np.mean([r.fitness_score() for r in self.records])),
            'causes_of_death': self._count_causes(),
        }

    def _count_causes(self) -> dict:
        """Count causes of death."""
        causes = {}
        for r in self.records:
            causes[r.cause_of_death] = causes.get(r.cause_of_death, 0) + 1
        return causes

    def get_generation_stats(self) -> dict:
        """Statistics grouped by generation."""
        gens: Dict[int, List[LifetimeRecord]] = {}
        for r in self.records:
            gens.setdefault(r.generation, []).append(r)

        return {
            g: {
                'count': len(recs),
                'mean_lifespan': float(np.mean([r.age for r in recs])),
                'mean_eaten': float(np.mean([r.total_eaten for r in recs])),
                'mean_offspring': float(np.mean([r.offspring_count for r in recs])),
                'mean_genome_connections': float(np.mean([r.genome_connections for r in recs])),
            }
            for g, recs in sorted(gens.items())
        }

    def save(self, filepath: str) -> bool:
        """Write records and aggregate statistics as JSON."""
        try:
            with open(filepath, 'w') as f:
                json.dump({
                    'records': [r.to_dict() for r in self.records],
                    'last_updated': datetime.now().isoformat(),
                    'total_lifetimes': self.total_recorded,
                    'statistics': self.compute_global_stats(),
                }, f, indent=2)
            return True
        except OSError as e:
            print(f"[Evolution] Save failed: {e}")
            return False


# =============================================================================
# POPULATION HISTORY
# =============================================================================

@dataclass
class PopulationSample:
    time: float
    population: int
    mean_energy: float
    max_generation: int


class PopulationHistory:
    """Most recent POPULATION_HISTORY_LENGTH population samples."""

    def __init__(self, maxlen: int = POPULATION_HISTORY_LENGTH):
        self.samples: deque = deque(maxlen=maxlen)

    def record(self, time: float, creatures) -> PopulationSample:
        """Sample an iterable of creatures."""
        creatures = list(creatures)
        sample = PopulationSample(
            time=float(time),
            population=len(creatures),
            mean_energy=float(np.mean([c.energy for c in creatures])) if creatures else 0.0,
            max_generation=max((c.generation for c in creatures), default=0),
        )
        self.samples.append(sample)
        return sample

    def latest(self) -> Optional[PopulationSample]:
        return self.samples[-1] if self.samples else None

    def populations(self) -> np.ndarray:
        return np.array([s.population for s in self.samples], dtype=np.int64)

    def times(self) -> np.ndarray:
        return np.array([s.time for s in self.samples])

    def __len__(self):
        return len(self.samples)

    def to_dict(self) -> dict:
        return {
            'maxlen': self.samples.maxlen,
            'samples': [[s.time, s.population, s.mean_energy, s.max_generation]
                        for s in self.samples],
        }

    @classmethod
    def from_dict(cls, d: dict) -> 'PopulationHistory':
        history = cls(int(d.get('maxlen', POPULATION_HISTORY_LENGTH)))
        for t, population, mean_energy, max_generation in d.get('samples', []):
            history.samples.append(PopulationSample(float(t), int(population),
                                                    float(mean_energy), int(max_generation)))
        return history
