"""
Board - Main simulation orchestration.

The board owns the terrain, the climate, the creature arena, the spatial
index and the genome registry, and advances them one tick at a time.

Tick pipeline (order is fixed):
    advance clock -> climate -> terrain refresh when the growth trend flips
    -> update creatures (collide, record energy, metabolize, sense, act)
    -> remove dead -> reproduce -> refill to the minimum -> move
"""

from concurrent.futures import ThreadPoolExecutor
from typing import Dict, List, Optional

import numpy as np

from ..core.constants import (
    DEFAULT_BOARD_SIZE, DEFAULT_NOISE_STEP_SIZE, DEFAULT_CREATURE_MINIMUM,
    DEFAULT_MIN_TEMP, DEFAULT_MAX_TEMP, OBJECT_TIMESTEPS_PER_YEAR,
)
from ..core.utils import BoardSize, is_on_board
from ..creature.brain import Environment, EnvironmentMut
from ..creature.creature import Creature, largest_radius
from ..neat.registry import GenomeRegistry
from ..statistics import EvolutionHistory, PopulationHistory
from ..world.climate import Climate
from ..world.seasons import SeasonTracker, get_season
from ..world.spatial_index import SoftBodiesInPositions
from ..world.terrain import Terrain
from ..events.logger import event_log
from ..events.console_log import console_log


BOARD_STATE_VERSION = 1


class SelectedCreature:
    """Id of the creature a viewer is following, if any."""

    def __init__(self, creature_id: Optional[int] = None):
        self.creature_id = creature_id

    def select(self, creature_id: int):
        self.creature_id = creature_id

    def deselect(self):
        self.creature_id = None

    def unselect_if_dead(self, creature_id: int):
        if self.creature_id == creature_id:
            self.creature_id = None

    @property
    def is_selected(self) -> bool:
        return self.creature_id is not None


class Board:
    """
    The world and everything living on it.

    Creatures live in an insertion-ordered arena keyed by id; the spatial
    index and the selection refer to creatures by id only.
    """

    def __init__(
        self,
        board_size: BoardSize,
        terrain: Terrain,
        climate: Climate,
        creature_minimum: int,
        creatures: Dict[int, Creature] = None,
        creature_id_up_to: int = 0,
        year: float = 0.0,
        registry: GenomeRegistry = None,
        selected_creature: SelectedCreature = None,
        population_history: PopulationHistory = None,
        parallel_brains: bool = False,
    ):
        self.board_width, self.board_height = board_size
        self.terrain = terrain
        self.climate = climate
        self.creature_minimum = creature_minimum
        self.creatures: Dict[int, Creature] = creatures if creatures is not None else {}
        self.creature_id_up_to = creature_id_up_to
        self.year = year
        self.registry = registry or GenomeRegistry()
        self.selected_creature = selected_creature or SelectedCreature()
        self.population_history = population_history if population_history is not None else PopulationHistory()
        self.evolution_history = EvolutionHistory()
        self.season_tracker = SeasonTracker(year)

        self.parallel_brains = parallel_brains
        self._executor: Optional[ThreadPoolExecutor] = None

        # Index every creature we were handed
        self.soft_bodies_in_positions = SoftBodiesInPositions.new_allocated(board_size)
        for creature in self.creatures.values():
            self.soft_bodies_in_positions.set_sbip(creature, board_size)
            self.soft_bodies_in_positions.set_sbip(creature, board_size)

    @classmethod
    def new_random(
        cls,
        board_size: BoardSize,
        noise_step_size: float,
        creature_minimum: int,
        min_temp: float,
        max_temp: float,
        seed: int = None,
        parallel_brains: bool = False,
    ) -> 'Board':
        """Generate terrain, start the climate at t=0 and seed the population."""
        if seed is not None:
            np.random.seed(seed)

        climate = Climate(min_temp, max_temp)
        climate.update(0.0)

        board = cls(
            board_size=tuple(board_size),
            terrain=Terrain.generate_perlin(board_size, noise_step_size, seed=seed),
            climate=climate,
            creature_minimum=creature_minimum,
            parallel_brains=parallel_brains,
        )

        added = board.maintain_creature_minimum(log=False)
        console_log().log(
            f"[Board] New {board_size[0]}x{board_size[1]} board with {added} creatures "
            f"(minimum {creature_minimum}, temperature {min_temp:.2f}..{max_temp:.2f})"
        )
        return board

    @classmethod
    def default(cls) -> 'Board':
        return cls.new_random(
            DEFAULT_BOARD_SIZE,
            DEFAULT_NOISE_STEP_SIZE,
            DEFAULT_CREATURE_MINIMUM,
            DEFAULT_MIN_TEMP,
            DEFAULT_MAX_TEMP,
        )

    # =========================================================================
    # TICK
    # =========================================================================

    def update(self, time_step: float):
        """Advance the simulation by `time_step` years."""
        if time_step <= 0.0:
            raise ValueError(f"time_step must be positive, got {time_step}")

        previous_year = self.year
        self.year += time_step
        self.climate.update(self.year)

        temp_change_into_frame = (self.climate.get_temperature()
                                  - self.climate.get_growth_rate(self.year - time_step))
        temp_change_out_of_frame = (self.climate.get_growth_rate(self.year + time_step)
                                    - self.climate.get_temperature())
        if temp_change_into_frame * temp_change_out_of_frame < 0.0:
            # Growth trend flipped direction
            self.terrain.update_all(self.year, self.climate)
            console_log().log(f"[Terrain] Full refresh at year {self.year:.3f}")

        self.update_creatures(time_step)

        # Kill weak creatures
        self.remove_dead_creatures()

        # Let creatures reproduce
        self.creatures_reproduce()

        # Always keep the creature minimum
        self.maintain_creature_minimum()

        # Move the creatures around on the board
        self.move_creatures(time_step)

        self._record_history(previous_year)
        self._check_season()

    def update_creatures(self, time_step: float):
        time = self.year
        board_size = self.get_board_size()
        sbip = self.soft_bodies_in_positions
        # Metabolism only shrinks bodies, so the bound holds for the whole pass
        neighbour_radius = largest_radius(self.creatures)

        for creature in self.creatures.values():
            creature.collide(sbip, self.creatures, neighbour_radius)
            creature.record_energy()
            creature.metabolize(time_step, time)

        self.update_brains()

        for creature in self.creatures.values():
            env = EnvironmentMut(self.terrain, creature, board_size, time, self.climate, sbip)
            creature.brain.use_output(env, time_step)

    def update_brains(self):
        """Sensing phase: every brain reads the world, nothing is written to it."""
        creatures = list(self.creatures.values())

        def run(creature: Creature):
            env = Environment(self.terrain, creature, self.climate, self.year,
                              self.soft_bodies_in_positions)
            creature.brain.run_with(env)

        if self.parallel_brains and len(creatures) > 1:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(thread_name_prefix='brains')
            # list() joins the phase and re-raises worker exceptions
            list(self._executor.map(run, creatures))
        else:
            for creature in creatures:
                run(creature)

    def remove_dead_creatures(self) -> List[int]:
        """Cull creatures failing the viability test; returns their ids."""
        time = self.get_time()
        board_size = self.get_board_size()
        dead = [c for c in self.creatures.values() if c.should_die(time)]

        for creature in dead:
            cause = creature.death_cause()
            creature.return_to_earth(time, board_size, self.terrain, self.climate,
                                     self.soft_bodies_in_positions)
            self.selected_creature.unselect_if_dead(creature.id)
            del self.creatures[creature.id]

            self.evolution_history.add(creature.to_lifetime_record(time, cause))
            event_log().log_death(time, creature.id, cause, creature.generation,
                                  age=creature.get_age(time), pos=creature.get_position(),
                                  offspring=creature.offspring_count)
            console_log().log(
                f"[Death] #{creature.id} (gen {creature.generation}) {cause} "
                f"at age {creature.get_age(time):.3f}"
            )

        return [c.id for c in dead]

    def creatures_reproduce(self) -> List[Creature]:
        """Let every willing creature try to mate; babies join after the pass."""
        time = self.get_time()
        board_size = self.get_board_size()
        babies = []
        neighbour_radius = largest_radius(self.creatures)

        for creature in self.creatures.values():
            baby = creature.try_reproduce(time, self.soft_bodies_in_positions, board_size,
                                          self.creatures, self.registry, self._next_creature_id,
                                          neighbour_radius)
            if baby is not None:
                babies.append(baby)

        for baby in babies:
            self.creatures[baby.id] = baby
            event_log().log_birth(time, baby.id, baby.generation, parents=baby.parent_ids,
                                  pos=baby.get_position(), energy=baby.energy,
                                  genome_size=len(baby.brain.genome.connections))
            console_log().log(
                f"[Birth] #{baby.id} (gen {baby.generation}) from "
                f"#{baby.parent_ids[0]} x #{baby.parent_ids[1]}"
            )

        return babies

    def maintain_creature_minimum(self, log: bool = True) -> int:
        """Add random (never cloned) creatures until the minimum is reached."""
        board_size = self.get_board_size()
        added = 0

        while len(self.creatures) < self.creature_minimum:
            creature = Creature.new_random(board_size, self.year, self._next_creature_id())

            self.soft_bodies_in_positions.set_sbip(creature, board_size)
            # Just to set the previous cell
            self.soft_bodies_in_positions.set_sbip(creature, board_size)

            self.creatures[creature.id] = creature
            event_log().log_birth(self.year, creature.id, 0, pos=creature.get_position(),
                                  energy=creature.energy,
                                  genome_size=len(creature.brain.genome.connections))
            added += 1

        if added and log:
            event_log().log_refill(self.year, added, len(self.creatures))
            console_log().log(f"[Refill] Added {added} random creatures "
                              f"(population {len(self.creatures)})")
        return added

    def move_creatures(self, time_step: float):
        board_size = self.get_board_size()
        for creature in self.creatures.values():
            creature.apply_motions(time_step * OBJECT_TIMESTEPS_PER_YEAR, board_size,
                                   self.terrain, self.soft_bodies_in_positions)

    def _next_creature_id(self) -> int:
        creature_id = self.creature_id_up_to
        self.creature_id_up_to += 1
        return creature_id

    def _record_history(self, previous_year: float):
        # One sample per object timestep
        if (int(self.year * OBJECT_TIMESTEPS_PER_YEAR)
                != int(previous_year * OBJECT_TIMESTEPS_PER_YEAR)) or len(self.population_history) == 0:
            self.population_history.record(self.year, self.creatures.values())

    def _check_season(self):
        message = self.season_tracker.update(self.year)
        if message:
            console_log().log(message)
            event_log().log_season(self.year, self.season_tracker.season_name, int(self.year))

    def close(self):
        """Shut down the brain worker pool, if one was started."""
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    # =========================================================================
    # SELECTION
    # =========================================================================

    def select_oldest(self) -> bool:
        """Select the creature with the earliest birth time."""
        if not self.creatures:
            return False
        oldest = None
        for creature in self.creatures.values():
            if oldest is None or creature.birth_time < oldest.birth_time:
                oldest = creature
        self.selected_creature.select(oldest.id)
        console_log().log(f"[Select] Oldest creature #{oldest.id}")
        return True

    def select_biggest(self) -> bool:
        """Select the creature with the most energy."""
        if not self.creatures:
            return False
        biggest = None
        for creature in self.creatures.values():
            if biggest is None or creature.energy > biggest.energy:
                biggest = creature
        self.selected_creature.select(biggest.id)
        console_log().log(f"[Select] Biggest creature #{biggest.id}")
        return True

    def deselect(self):
        self.selected_creature.deselect()

    def get_selected_creature(self) -> Optional[Creature]:
        if self.selected_creature.creature_id is None:
            return None
        return self.creatures.get(self.selected_creature.creature_id)

    # =========================================================================
    # ACCESSORS
    # =========================================================================

    def get_time(self) -> float:
        return self.year

    def get_board_size(self) -> BoardSize:
        return (self.board_width, self.board_height)

    def get_board_width(self) -> int:
        return self.board_width

    def get_board_height(self) -> int:
        return self.board_height

    def get_population_size(self) -> int:
        return len(self.creatures)

    def get_creature_id_up_to(self) -> int:
        return self.creature_id_up_to

    def get_creature_minimum(self) -> int:
        return self.creature_minimum

    def get_creature(self, creature_id: int) -> Optional[Creature]:
        return self.creatures.get(creature_id)

    def get_season(self) -> str:
        return get_season(self.year)

    def get_growth_since(self, last_updated: float) -> float:
        return self.climate.get_growth_over_time_range(self.year, last_updated)

    def get_current_growth_rate(self) -> float:
        return self.climate.get_growth_rate(self.year)

    def prepare_for_drawing(self):
        """Bring every tile up to date for an external viewer."""
        self.terrain.update_all(self.year, self.climate)

    def get_statistics(self) -> dict:
        creatures = list(self.creatures.values())
        return {
            'year': self.year,
            'season': self.get_season(),
            'population': len(creatures),
            'mean_energy': float(np.mean([c.energy for c in creatures])) if creatures else 0.0,
            'max_generation': max((c.generation for c in creatures), default=0),
            'total_food': self.terrain.total_food(),
            'innovations': self.registry.innovation_number,
            'deaths_recorded': self.evolution_history.total_recorded,
        }

    # =========================================================================
    # PERSISTENCE
    # =========================================================================

    def save_to(self, path: str) -> bool:
        from ..persistence.board_state import BoardPersistence
        return BoardPersistence.save_board(self, path)

    @classmethod
    def load_from(cls, path: str) -> Optional['Board']:
        from ..persistence.board_state import BoardPersistence
        return BoardPersistence.load_board(path)

    def to_dict(self) -> dict:
        """Intermediate representation of the whole board (spatial index excluded)."""
        return {
            'version': BOARD_STATE_VERSION,
            'board_size': [self.board_width, self.board_height],
            'creature_minimum': self.creature_minimum,
            'creature_id_up_to': self.creature_id_up_to,
            'year': self.year,
            'terrain': self.terrain.to_dict(),
            'climate': self.climate.to_dict(),
            'registry': self.registry.to_dict(),
            'creatures': [c.to_dict() for c in self.creatures.values()],
            'selected_creature': self.selected_creature.creature_id,
            'population_history': self.population_history.to_dict(),
        }

    @classmethod
    def from_dict(cls, d: dict, parallel_brains: bool = False) -> 'Board':
        version = int(d.get('version', 0))
        if version != BOARD_STATE_VERSION:
            raise ValueError(f"unsupported board state version {version}")

        board_size = tuple(int(v) for v in d['board_size'])
        creatures = {}
        for cd in d.get('creatures', []):
            creature = Creature.from_dict(cd)
            coordinate = creature.get_board_coordinate()
            if not is_on_board(coordinate, board_size):
                raise ValueError(f"creature {creature.id} at {coordinate} outside board {board_size}")
            creatures[creature.id] = creature

        selected = d.get('selected_creature')
        return cls(
            board_size=board_size,
            terrain=Terrain.from_dict(d['terrain']),
            climate=Climate.from_dict(d['climate']),
            creature_minimum=int(d['creature_minimum']),
            creatures=creatures,
            creature_id_up_to=int(d['creature_id_up_to']),
            year=float(d['year']),
            registry=GenomeRegistry.from_dict(d['registry']),
            selected_creature=SelectedCreature(int(selected) if selected is not None else None),
            population_history=PopulationHistory.from_dict(d.get('population_history', {})),
            parallel_brains=parallel_brains,
        )
