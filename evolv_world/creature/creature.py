"""
Creature - A soft body on the board driven by a NEAT brain.

A creature is a disc whose area is proportional to its energy. It senses the
tile under it and its neighbours, accelerates and turns at an energy cost,
eats the food of the tile it stands on, mates with nearby creatures and,
when it dies, returns its remaining energy to the soil.
"""

from typing import Callable, Dict, Optional, Tuple, TYPE_CHECKING
import numpy as np

from ..core.constants import (
    ENERGY_DENSITY, CREATURE_MIN_ENERGY, CREATURE_MAX_ENERGY,
    MINIMUM_SURVIVABLE_SIZE, SAFE_SIZE, BABY_SIZE, MATURE_AGE, CREATURE_MAX_AGE,
    MATING_COOLDOWN, MATING_REACH, REPRODUCTION_FAILURE_COST,
    METABOLISM_ENERGY, AGE_FACTOR, OBJECT_TIMESTEPS_PER_YEAR,
    ACCELERATION_ENERGY, ACCELERATION_BACK_ENERGY, TURN_ENERGY,
    EAT_ENERGY, EAT_WHILE_MOVING_INEFFICIENCY,
    FRICTION, COLLISION_FORCE, MOUTH_HUE_DRIFT, SWIM_ENERGY,
)
from ..core.utils import BoardSize, BoardCoordinate, BoardPreciseCoordinate, clamp_to_board
from ..neat.mutation import mutate
from ..neat.recombination import crossover
from ..neat.registry import GenomeRegistry
from ..statistics import LifetimeRecord
from .brain import Brain

if TYPE_CHECKING:
    from ..world.climate import Climate
    from ..world.terrain import Terrain
    from ..world.tile import Tile
    from ..world.spatial_index import SoftBodiesInPositions


Population = Dict[int, 'Creature']


class Creature:
    """
    One creature: body state, energy, lineage and brain.

    Ids are assigned by the board and never reused.
    """

    def __init__(
        self,
        creature_id: int,
        px: float,
        py: float,
        energy: float,
        birth_time: float,
        brain: Brain,
        mouth_hue: float = 0.0,
        rotation: float = 0.0,
        generation: int = 0,
        parent_ids: Tuple[int, ...] = (),
    ):
        self.id = creature_id
        self.px = px
        self.py = py
        self.vx = 0.0
        self.vy = 0.0
        self.rotation = rotation
        self.vr = 0.0

        self.energy = energy
        self.previous_energy = energy
        self.birth_time = birth_time
        self.mouth_hue = mouth_hue
        self.brain = brain

        # Lineage
        self.generation = generation
        self.parent_ids = tuple(parent_ids)
        self.offspring_count = 0
        self.last_reproduction_time: Optional[float] = None
        self.wants_to_reproduce = False

        # Cell last recorded by the spatial index
        self.sbip_cell: Optional[BoardCoordinate] = None

        # Lifetime statistics
        self.total_eaten = 0.0
        self.distance_travelled = 0.0
        self.peak_energy = energy
        self.collisions = 0

    @classmethod
    def new_random(cls, board_size: BoardSize, time: float, creature_id: int) -> 'Creature':
        """A founder creature with a fresh fully linked brain at a random spot."""
        width, height = board_size
        energy = np.random.uniform(CREATURE_MIN_ENERGY, CREATURE_MAX_ENERGY)
        px, py = clamp_to_board(np.random.uniform(0, width), np.random.uniform(0, height),
                                radius_for_energy(energy), board_size)
        return cls(
            creature_id=creature_id,
            px=px,
            py=py,
            energy=float(energy),
            birth_time=time,
            brain=Brain.new_random(),
            mouth_hue=float(np.random.uniform(0.0, 1.0)),
            rotation=float(np.random.uniform(0.0, 2 * np.pi)),
        )

    # === Body ===

    def get_position(self) -> BoardPreciseCoordinate:
        return BoardPreciseCoordinate(self.px, self.py)

    def get_board_coordinate(self) -> BoardCoordinate:
        return self.get_position().to_board_coordinate()

    def get_radius(self) -> float:
        return radius_for_energy(self.energy)

    def get_mass(self) -> float:
        return max(self.energy, MINIMUM_SURVIVABLE_SIZE) / ENERGY_DENSITY

    def get_speed(self) -> float:
        return float(np.hypot(self.vx, self.vy))

    def get_age(self, time: float) -> float:
        return time - self.birth_time

    def get_energy(self) -> float:
        return self.energy

    def get_birth_time(self) -> float:
        return self.birth_time

    def lose_energy(self, amount: float):
        if amount > 0.0:
            self.energy -= amount

    # === Per-tick hooks ===

    def collide(self, sbip: 'SoftBodiesInPositions', population: Population,
                neighbour_radius: Optional[float] = None):
        """
        Push this creature away from every neighbour it overlaps.

        Each creature handles its own side of a contact, so after the board's
        pass both bodies of an overlapping pair have been pushed apart.

        `neighbour_radius` bounds the radius of any other body; it defaults to
        the largest radius in `population`.
        """
        radius = self.get_radius()
        mass = self.get_mass()
        if neighbour_radius is None:
            neighbour_radius = largest_radius(population)
        for other_id in sbip.query_radius(self.px, self.py, radius + neighbour_radius):
            if other_id == self.id:
                continue
            other = population.get(other_id)
            if other is None:
                continue

            dx = other.px - self.px
            dy = other.py - self.py
            distance = float(np.hypot(dx, dy))
            combined = radius + other.get_radius()
            if distance >= combined:
                continue

            if distance < 1e-9:
                # Stacked exactly: separate along x, lower id to the left
                dx, dy, distance = (1.0 if self.id < other.id else -1.0), 0.0, 1.0

            force = COLLISION_FORCE * (combined - distance) / combined
            self.vx -= dx / distance * force / mass
            self.vy -= dy / distance * force / mass
            self.collisions += 1

    def record_energy(self):
        self.previous_energy = self.energy
        self.peak_energy = max(self.peak_energy, self.energy)

    def metabolize(self, time_step: float, time: float):
        age = self.get_age(time)
        self.lose_energy(METABOLISM_ENERGY * (1.0 + AGE_FACTOR * age)
                         * time_step * OBJECT_TIMESTEPS_PER_YEAR)

    def accelerate(self, amount: float, scaled_time_step: float):
        multiplied = amount * scaled_time_step / self.get_mass()
        self.vx += np.cos(self.rotation) * multiplied
        self.vy += np.sin(self.rotation) * multiplied
        cost = ACCELERATION_ENERGY if amount >= 0 else ACCELERATION_BACK_ENERGY
        self.lose_energy(abs(amount) * cost * scaled_time_step)

    def turn(self, amount: float, scaled_time_step: float):
        self.vr += amount * scaled_time_step / self.get_mass()
        self.lose_energy(abs(amount) * TURN_ENERGY * scaled_time_step)

    def eat(self, attempted_amount: float, scaled_time_step: float, time: float,
            climate: 'Climate', tile: 'Tile'):
        """
        Take food from `tile`.

        Moving creatures eat less. Food of a badly matching hue costs energy
        instead of providing it. Eating from water only pays the effort.
        """
        self.lose_energy(attempted_amount * EAT_ENERGY * scaled_time_step)
        if tile.is_water():
            return

        amount = attempted_amount / (1.0 + self.get_speed() * EAT_WHILE_MOVING_INEFFICIENCY)
        tile.update(time, climate)
        food_to_eat = min(tile.get_food_level(), amount * scaled_time_step)
        if food_to_eat <= 0.0:
            return

        tile.remove_food(food_to_eat)
        multiplier = tile.get_food_multiplier(self.mouth_hue)
        if multiplier < 0.0:
            self.lose_energy(food_to_eat * -multiplier)
        else:
            self.energy += food_to_eat * multiplier
            self.total_eaten += food_to_eat * multiplier

    # === Death ===

    def should_die(self, time: float = None) -> bool:
        if self.energy <= MINIMUM_SURVIVABLE_SIZE:
            return True
        return time is not None and self.get_age(time) > CREATURE_MAX_AGE

    def death_cause(self) -> str:
        return 'starvation' if self.energy <= MINIMUM_SURVIVABLE_SIZE else 'old_age'

    def return_to_earth(self, time: float, board_size: BoardSize, terrain: 'Terrain',
                        climate: 'Climate', sbip: 'SoftBodiesInPositions'):
        """Deposit remaining energy as food on the current tile and leave the index."""
        tile = terrain.get_tile(self.get_board_coordinate())
        tile.update(time, climate)
        tile.add_food_or_nothing(max(self.energy, 0.0))
        sbip.remove(self)

    # === Reproduction ===

    def can_reproduce(self, time: float) -> bool:
        if not self.wants_to_reproduce:
            return False
        if self.energy < SAFE_SIZE or self.get_age(time) < MATURE_AGE:
            return False
        if self.last_reproduction_time is not None:
            return time - self.last_reproduction_time >= MATING_COOLDOWN
        return True

    def find_partner(self, time: float, sbip: 'SoftBodiesInPositions',
                     population: Population,
                     neighbour_radius: Optional[float] = None) -> Optional['Creature']:
        """Nearest eligible creature within reach; ties go to the lowest id."""
        radius = self.get_radius()
        if neighbour_radius is None:
            neighbour_radius = largest_radius(population)
        best = None
        best_distance = None
        for other_id in sbip.query_radius(self.px, self.py,
                                          radius + MATING_REACH + neighbour_radius):
            if other_id == self.id:
                continue
            other = population.get(other_id)
            if other is None or not other.can_reproduce(time):
                continue

            distance = float(np.hypot(other.px - self.px, other.py - self.py))
            if distance > radius + other.get_radius() + MATING_REACH:
                continue
            # Ids arrive sorted, so strict < keeps the lowest id on ties
            if best is None or distance < best_distance:
                best, best_distance = other, distance
        return best

    def try_reproduce(self, time: float, sbip: 'SoftBodiesInPositions', board_size: BoardSize,
                      population: Population, registry: GenomeRegistry,
                      next_id: Callable[[], int],
                      neighbour_radius: Optional[float] = None) -> Optional['Creature']:
        """
        Mate with the nearest willing neighbour.

        Each parent pays half of BABY_SIZE. The child is placed between its
        parents and inserted into the spatial index. A willing creature that
        finds no partner pays REPRODUCTION_FAILURE_COST.
        """
        if not self.can_reproduce(time):
            return None

        partner = self.find_partner(time, sbip, population, neighbour_radius)
        if partner is None:
            self.lose_energy(REPRODUCTION_FAILURE_COST)
            return None

        if (self.energy, -self.id) >= (partner.energy, -partner.id):
            primary, secondary = self, partner
        else:
            primary, secondary = partner, self

        genome = mutate(crossover(primary.brain.genome, secondary.brain.genome), registry)

        for parent in (self, partner):
            parent.lose_energy(BABY_SIZE / 2.0)
            parent.last_reproduction_time = time
            parent.offspring_count += 1

        px, py = clamp_to_board((self.px + partner.px) / 2.0, (self.py + partner.py) / 2.0,
                                radius_for_energy(BABY_SIZE), board_size)
        hue = primary.mouth_hue + np.random.uniform(-MOUTH_HUE_DRIFT, MOUTH_HUE_DRIFT)

        baby = Creature(
            creature_id=next_id(),
            px=px,
            py=py,
            energy=BABY_SIZE,
            birth_time=time,
            brain=Brain(genome),
            mouth_hue=float(np.clip(hue, 0.0, 1.0)),
            rotation=float(np.random.uniform(0.0, 2 * np.pi)),
            generation=max(self.generation, partner.generation) + 1,
            parent_ids=(primary.id, secondary.id),
        )

        sbip.set_sbip(baby, board_size)
        # Second call records the previous cell
        sbip.set_sbip(baby, board_size)
        return baby

    # === Motion ===

    def apply_motions(self, scaled_time_step: float, board_size: BoardSize,
                      terrain: 'Terrain', sbip: 'SoftBodiesInPositions'):
        """Integrate motion, apply friction, keep on the board, re-index."""
        self.rotation = float((self.rotation + self.vr * scaled_time_step) % (2 * np.pi))

        target_x = self.px + self.vx * scaled_time_step
        target_y = self.py + self.vy * scaled_time_step
        new_x, new_y = clamp_to_board(target_x, target_y, self.get_radius(), board_size)
        if new_x != target_x:
            self.vx = 0.0
        if new_y != target_y:
            self.vy = 0.0

        self.distance_travelled += float(np.hypot(new_x - self.px, new_y - self.py))
        self.px, self.py = new_x, new_y

        friction = max(0.0, 1.0 - FRICTION / self.get_mass())
        self.vx *= friction
        self.vy *= friction
        self.vr *= friction

        if terrain.get_tile(self.get_board_coordinate()).is_water():
            self.lose_energy(SWIM_ENERGY * self.energy * scaled_time_step)

        sbip.set_sbip(self, board_size)

    # === Records & persistence ===

    def to_lifetime_record(self, time: float, cause: str) -> LifetimeRecord:
        return LifetimeRecord(
            creature_id=self.id,
            generation=self.generation,
            parent_ids=list(self.parent_ids),
            birth_time=self.birth_time,
            death_time=time,
            age=self.get_age(time),
            cause_of_death=cause,
            offspring_count=self.offspring_count,
            total_eaten=self.total_eaten,
            distance_travelled=self.distance_travelled,
            peak_energy=self.peak_energy,
            final_energy=self.energy,
            mouth_hue=self.mouth_hue,
            genome_nodes=len(self.brain.genome.nodes),
            genome_connections=len(self.brain.genome.connections),
        )

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'px': self.px, 'py': self.py,
            'vx': self.vx, 'vy': self.vy,
            'rotation': self.rotation, 'vr': self.vr,
            'energy': self.energy,
            'previous_energy': self.previous_energy,
            'birth_time': self.birth_time,
            'mouth_hue': self.mouth_hue,
            'generation': self.generation,
            'parent_ids': list(self.parent_ids),
            'offspring_count': self.offspring_count,
            'last_reproduction_time': self.last_reproduction_time,
            'wants_to_reproduce': self.wants_to_reproduce,
            'total_eaten': self.total_eaten,
            'distance_travelled': self.distance_travelled,
            'peak_energy': self.peak_energy,
            'brain': self.brain.to_dict(),
        }

    @classmethod
    def from_dict(cls, d: dict) -> 'Creature':
        creature = cls(
            creature_id=int(d['id']),
            px=float(d['px']),
            py=float(d['py']),
            energy=float(d['energy']),
            birth_time=float(d['birth_time']),
            brain=Brain.from_dict(d['brain']),
            mouth_hue=float(d.get('mouth_hue', 0.0)),
            rotation=float(d.get('rotation', 0.0)),
            generation=int(d.get('generation', 0)),
            parent_ids=tuple(d.get('parent_ids', ())),
        )
        creature.vx = float(d.get('vx', 0.0))
        creature.vy = float(d.get('vy', 0.0))
        creature.vr = float(d.get('vr', 0.0))
        creature.previous_energy = float(d.get('previous_energy', creature.energy))
        creature.offspring_count = int(d.get('offspring_count', 0))
        creature.last_reproduction_time = d.get('last_reproduction_time')
        creature.wants_to_reproduce = bool(d.get('wants_to_reproduce', False))
        creature.total_eaten = float(d.get('total_eaten', 0.0))
        creature.distance_travelled = float(d.get('distance_travelled', 0.0))
        creature.peak_energy = float(d.get('peak_energy', creature.energy))
        return creature

    def __repr__(self):
        return (f"Creature(id={self.id}, pos=({self.px:.2f}, {self.py:.2f}), "
                f"energy={self.energy:.3f}, gen={self.generation})")


def radius_for_energy(energy: float) -> float:
    """Radius of a disc holding `energy` at ENERGY_DENSITY."""
    return float(np.sqrt(max(energy, MINIMUM_SURVIVABLE_SIZE) / ENERGY_DENSITY / np.pi))


def largest_radius(population: Population) -> float:
    """Radius of the biggest body in `population`, 0.0 when it is empty."""
    return max((c.get_radius() for c in population.values()), default=0.0)
