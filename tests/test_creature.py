import numpy as np
import pytest

from evolv_world.core.constants import (
    BABY_SIZE, ENERGY_DENSITY, METABOLISM_ENERGY, EAT_ENERGY, SWIM_ENERGY,
    MINIMUM_SURVIVABLE_SIZE,
)
from evolv_world.creature.brain import Brain
from evolv_world.creature.creature import Creature, largest_radius, radius_for_energy
from evolv_world.neat.registry import GenomeRegistry
from evolv_world.world.climate import Climate
from evolv_world.world.spatial_index import SoftBodiesInPositions
from evolv_world.world.tile import ArableTile, NonArableTile
from conftest import make_terrain


def make_creature(creature_id=0, px=5.5, py=5.5, energy=1.0, birth_time=0.0, **kwargs):
    return Creature(creature_id, px, py, energy, birth_time, Brain.new_random(), **kwargs)


def indexed(*creatures, board_size=(10, 10)):
    sbip = SoftBodiesInPositions(board_size)
    for c in creatures:
        sbip.set_sbip(c)
    return sbip, {c.id: c for c in creatures}


def test_body_size_follows_energy():
    assert radius_for_energy(1.0) == pytest.approx(0.2)
    assert radius_for_energy(0.0) == radius_for_energy(MINIMUM_SURVIVABLE_SIZE)
    creature = make_creature(energy=1.0)
    assert creature.get_radius() == pytest.approx(0.2)
    assert creature.get_mass() == pytest.approx(1.0 / ENERGY_DENSITY)


def test_new_random_creature():
    creature = Creature.new_random((10, 10), 0.5, 7)
    assert creature.id == 7
    assert 1.2 <= creature.energy <= 2.0
    assert 0.0 <= creature.px < 10.0 and 0.0 <= creature.py < 10.0
    assert creature.get_birth_time() == 0.5
    assert creature.generation == 0
    assert creature.parent_ids == ()
    assert len(creature.brain.genome) == 20


def test_metabolism_grows_with_age():
    young = make_creature(energy=1.0, birth_time=1.0)
    old = make_creature(energy=1.0, birth_time=0.0)
    young.metabolize(0.01, 1.0)
    old.metabolize(0.01, 1.0)
    assert young.energy == pytest.approx(1.0 - METABOLISM_ENERGY)
    assert old.energy == pytest.approx(1.0 - 2 * METABOLISM_ENERGY)


def test_accelerate_pushes_along_rotation():
    creature = make_creature(energy=1.0, rotation=0.0)
    creature.accelerate(0.04, 1.0)
    assert creature.vx == pytest.approx(0.04 / creature.get_mass())
    assert creature.vy == pytest.approx(0.0, abs=1e-12)
    assert creature.energy == pytest.approx(1.0 - 0.04 * 0.18)

    backwards = make_creature(energy=1.0)
    backwards.accelerate(-0.04, 1.0)
    assert backwards.energy == pytest.approx(1.0 - 0.04 * 0.24)


def test_eating_from_water_only_costs_effort():
    creature = make_creature(energy=1.0)
    creature.eat(0.5, 1.0, 0.0, Climate(-0.5, 1.0), NonArableTile())
    assert creature.energy == pytest.approx(1.0 - 0.5 * EAT_ENERGY)


def test_eating_matching_food():
    tile = ArableTile(0.5, 0.4, food_level=2.0)
    creature = make_creature(energy=1.0, mouth_hue=0.4)
    creature.eat(0.5, 1.0, 0.0, Climate(-0.5, 1.0), tile)
    assert tile.get_food_level() == pytest.approx(1.5)
    assert creature.energy == pytest.approx(1.0 - 0.5 * EAT_ENERGY + 0.5)
    assert creature.total_eaten == pytest.approx(0.5)


def test_eating_mismatched_food_hurts():
    tile = ArableTile(0.5, 0.4, food_level=2.0)
    creature = make_creature(energy=2.0, mouth_hue=1.0)
    creature.eat(0.5, 1.0, 0.0, Climate(-0.5, 1.0), tile)
    assert creature.energy == pytest.approx(2.0 - 0.5 * EAT_ENERGY - 0.5)


def test_moving_creatures_eat_less():
    still = make_creature(mouth_hue=0.4)
    moving = make_creature(mouth_hue=0.4)
    moving.vx = 1.0
    tiles = [ArableTile(0.5, 0.4, food_level=2.0) for _ in range(2)]
    still.eat(0.5, 1.0, 0.0, Climate(-0.5, 1.0), tiles[0])
    moving.eat(0.5, 1.0, 0.0, Climate(-0.5, 1.0), tiles[1])
    assert tiles[1].get_food_level() > tiles[0].get_food_level()


def test_death_conditions():
    assert make_creature(energy=0.05).should_die()
    assert make_creature(energy=0.05).death_cause() == 'starvation'
    old = make_creature(energy=1.0, birth_time=0.0)
    assert not old.should_die()
    assert old.should_die(7.0)
    assert old.death_cause() == 'old_age'


def test_return_to_earth_feeds_the_tile():
    terrain = make_terrain((10, 10), fertility=0.5)
    creature = make_creature(px=2.5, py=3.5, energy=0.8)
    sbip, _ = indexed(creature)
    creature.return_to_earth(0.0, (10, 10), terrain, Climate(-0.5, 1.0), sbip)
    assert terrain.get_tile((2, 3)).get_food_level() == pytest.approx(1.3)
    assert creature.id not in sbip
    assert len(sbip) == 0


def test_overlapping_creatures_push_apart():
    a = make_creature(0, px=5.0, py=5.0)
    b = make_creature(1, px=5.1, py=5.0)
    sbip, population = indexed(a, b)
    a.collide(sbip, population)
    b.collide(sbip, population)
    assert a.vx < 0.0 < b.vx
    assert a.collisions == b.collisions == 1


def test_distant_creatures_do_not_collide():
    a = make_creature(0, px=2.0, py=2.0)
    b = make_creature(1, px=7.0, py=7.0)
    sbip, population = indexed(a, b)
    a.collide(sbip, population)
    assert a.vx == 0.0 and a.vy == 0.0


def test_small_creature_feels_a_big_neighbour_cells_away():
    big = make_creature(0, px=3.9, py=5.0, energy=50.0)
    small = make_creature(1, px=5.45, py=5.0, energy=1.0)
    sbip, population = indexed(big, small)
    assert largest_radius(population) == pytest.approx(big.get_radius())
    small.collide(sbip, population)
    big.collide(sbip, population)
    assert big.vx < 0.0 < small.vx
    assert small.collisions == big.collisions == 1


def test_largest_radius_of_nobody_is_zero():
    assert largest_radius({}) == 0.0


def test_motion_is_clamped_to_board():
    terrain = make_terrain((10, 10))
    creature = make_creature(px=0.5, py=5.5)
    sbip, _ = indexed(creature)
    creature.vx = -10.0
    creature.vy = 0.5
    creature.apply_motions(1.0, (10, 10), terrain, sbip)
    assert creature.px == pytest.approx(creature.get_radius())
    assert creature.vx == 0.0
    assert creature.vy > 0.0
    assert sbip.cell_of(creature.id) == creature.get_board_coordinate()


def test_swimming_costs_energy():
    terrain = make_terrain((10, 10), water={(5, 5)})
    creature = make_creature(px=5.5, py=5.5, energy=1.0)
    sbip, _ = indexed(creature)
    creature.apply_motions(1.0, (10, 10), terrain, sbip)
    assert creature.energy == pytest.approx(1.0 - SWIM_ENERGY)


def willing_pair():
    a = make_creature(0, px=5.0, py=5.0, energy=2.0, mouth_hue=0.5)
    b = make_creature(1, px=5.4, py=5.0, energy=1.5, mouth_hue=0.2, generation=3)
    a.wants_to_reproduce = b.wants_to_reproduce = True
    return a, b


def test_reproduction_makes_a_baby():
    a, b = willing_pair()
    sbip, population = indexed(a, b)
    ids = iter([100, 101])
    baby = a.try_reproduce(1.0, sbip, (10, 10), population, GenomeRegistry(), lambda: next(ids))

    assert baby is not None
    assert baby.id == 100
    assert baby.energy == BABY_SIZE
    assert baby.generation == 4
    assert baby.parent_ids == (0, 1)
    assert baby.get_birth_time() == 1.0
    assert abs(baby.mouth_hue - a.mouth_hue) <= 0.02 + 1e-12
    assert baby.px == pytest.approx(5.2)
    assert a.energy == pytest.approx(2.0 - BABY_SIZE / 2)
    assert b.energy == pytest.approx(1.5 - BABY_SIZE / 2)
    assert a.offspring_count == b.offspring_count == 1
    assert sbip.cell_of(100) == (5, 5)
    baby.brain.genome.validate()


def test_richer_parent_is_primary():
    a, b = willing_pair()
    sbip, population = indexed(a, b)
    baby = b.try_reproduce(1.0, sbip, (10, 10), population, GenomeRegistry(), lambda: 9)
    assert baby.parent_ids == (0, 1)


def test_mating_cooldown():
    a, b = willing_pair()
    sbip, population = indexed(a, b)
    a.try_reproduce(1.0, sbip, (10, 10), population, GenomeRegistry(), lambda: 9)
    assert not a.can_reproduce(1.005)
    a.energy = 2.0
    assert a.can_reproduce(1.02)


def test_reproduction_needs_a_willing_partner():
    a, b = willing_pair()
    b.wants_to_reproduce = False
    sbip, population = indexed(a, b)
    assert a.try_reproduce(1.0, sbip, (10, 10), population, GenomeRegistry(), lambda: 9) is None
    assert a.energy == 2.0


def test_partner_choice_prefers_nearest():
    a, b = willing_pair()
    c = make_creature(2, px=5.2, py=5.0, energy=2.0)
    c.wants_to_reproduce = True
    sbip, population = indexed(a, b, c)
    assert a.find_partner(1.0, sbip, population) is c


def test_equally_near_partners_go_to_the_lowest_id():
    a = make_creature(0, px=5.0, py=5.0, energy=2.0)
    higher = make_creature(4, px=5.0, py=4.5, energy=2.0)
    lower = make_creature(2, px=5.0, py=5.5, energy=2.0)
    for creature in (a, higher, lower):
        creature.wants_to_reproduce = True
    sbip, population = indexed(a, higher, lower)
    assert a.find_partner(1.0, sbip, population) is lower


def test_babies_and_youngsters_cannot_mate():
    a, _ = willing_pair()
    assert not a.can_reproduce(0.001)
    a.energy = 1.0
    assert not a.can_reproduce(1.0)


def test_dict_form_restores_creature():
    a, _ = willing_pair()
    a.vx, a.offspring_count, a.last_reproduction_time = 0.3, 2, 0.7
    restored = Creature.from_dict(a.to_dict())
    assert restored.id == a.id
    assert (restored.px, restored.py, restored.vx) == (a.px, a.py, a.vx)
    assert restored.offspring_count == 2
    assert restored.last_reproduction_time == 0.7
    assert restored.brain.genome == a.brain.genome


def test_lifetime_record():
    creature = make_creature(3, energy=0.05, birth_time=0.5, generation=2, parent_ids=(1, 2))
    record = creature.to_lifetime_record(1.5, 'starvation')
    assert record.creature_id == 3
    assert record.age == pytest.approx(1.0)
    assert record.parent_ids == [1, 2]
    assert record.genome_connections == 20
    assert record.to_dict()['cause_of_death'] == 'starvation'
