"""
Brain - Genome-backed neural controller.

A brain runs in two phases each tick:
- run_with(env): read-only sensing, safe to run for many creatures in parallel
- use_output(env_mut, time_step): apply the stored outputs to the creature
  and the tile under it

Sensors (in order):
    food level here, food match for the mouth hue, energy, growth rate, crowding
Outputs (in order):
    accelerate, turn, eat, reproduce
"""

from typing import List, Optional, TYPE_CHECKING

from ..core.constants import (
    MAX_GROWTH_LEVEL, CREATURE_MAX_ENERGY, CROWDING_NORMALIZER,
    MAX_ACCELERATION, MAX_TURN, EAT_SPEED, OBJECT_TIMESTEPS_PER_YEAR,
)
from ..core.utils import BoardSize
from ..neat.genome import Genome
from ..neat.network import FeedForwardNetwork

if TYPE_CHECKING:
    from ..world.terrain import Terrain
    from ..world.climate import Climate
    from ..world.spatial_index import SoftBodiesInPositions
    from .creature import Creature


class Environment:
    """Read-only view of the world around one creature."""

    def __init__(self, terrain: 'Terrain', creature: 'Creature', climate: 'Climate',
                 time: float, sbip: 'SoftBodiesInPositions'):
        self.terrain = terrain
        self.creature = creature
        self.climate = climate
        self.time = time
        self.sbip = sbip

    def sense(self) -> List[float]:
        creature = self.creature
        tile = self.terrain.get_tile(creature.get_board_coordinate())

        food_multiplier = tile.get_food_multiplier(creature.mouth_hue)
        neighbours = len(self.sbip.query_radius(creature.px, creature.py, creature.get_radius())) - 1

        return [
            tile.get_food_level() / MAX_GROWTH_LEVEL,
            -1.0 if food_multiplier is None else food_multiplier,
            creature.energy / CREATURE_MAX_ENERGY,
            self.climate.get_growth_rate(self.time),
            min(max(neighbours, 0) / CROWDING_NORMALIZER, 1.0),
        ]


class EnvironmentMut:
    """Mutable view: the creature plus the terrain it can eat from."""

    def __init__(self, terrain: 'Terrain', creature: 'Creature', board_size: BoardSize,
                 time: float, climate: 'Climate', sbip: 'SoftBodiesInPositions'):
        self.terrain = terrain
        self.creature = creature
        self.board_size = board_size
        self.time = time
        self.climate = climate
        self.sbip = sbip


class NeuralNet:
    """Controller interface used by creatures."""

    def run_with(self, env: Environment):
        raise NotImplementedError

    def use_output(self, env: EnvironmentMut, time_step: float):
        raise NotImplementedError

    def to_dict(self) -> dict:
        raise NotImplementedError


class Brain(NeuralNet):
    """NEAT genome compiled to a feed-forward network."""

    def __init__(self, genome: Genome):
        self.genome = genome
        self.network = FeedForwardNetwork.from_genome(genome)
        self.inputs: List[float] = []
        self.outputs: Optional[List[float]] = None

    @classmethod
    def new_random(cls) -> 'Brain':
        return cls(Genome.new_fully_linked())

    def run_with(self, env: Environment):
        self.inputs = env.sense()
        self.outputs = self.network.activate(self.inputs)

    def use_output(self, env: EnvironmentMut, time_step: float):
        if self.outputs is None:
            return

        accelerate, turn, eat, reproduce = self.outputs[:4]
        creature = env.creature
        scaled = time_step * OBJECT_TIMESTEPS_PER_YEAR

        creature.accelerate(accelerate * MAX_ACCELERATION, scaled)
        creature.turn(turn * MAX_TURN, scaled)
        if eat > 0.0:
            tile = env.terrain.get_tile(creature.get_board_coordinate())
            creature.eat(eat * EAT_SPEED, scaled, env.time, env.climate, tile)
        creature.wants_to_reproduce = reproduce > 0.0

    def to_dict(self) -> dict:
        return {'genome': self.genome.to_dict()}

    @classmethod
    def from_dict(cls, d: dict) -> 'Brain':
        return cls(Genome.from_dict(d['genome']))
