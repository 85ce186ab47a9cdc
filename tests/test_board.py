import json

import numpy as np
import pytest

from evolv_world.creature.brain import Brain
from evolv_world.creature.creature import Creature
from evolv_world.events.logger import event_log
from evolv_world.manager.board import Board, SelectedCreature
from evolv_world.world.climate import Climate
from conftest import make_terrain


def small_board(seed=5, minimum=10, parallel_brains=False):
    return Board.new_random((50, 50), 0.1, minimum, -0.5, 1.0, seed=seed,
                            parallel_brains=parallel_brains)


def empty_board(size=(10, 10)):
    return Board(size, make_terrain(size), Climate(-0.5, 1.0), 0)


def assert_index_consistent(board):
    sbip = board.soft_bodies_in_positions
    assert len(sbip) == board.get_population_size()
    for creature_id, creature in board.creatures.items():
        assert creature.id == creature_id
        assert sbip.find_cells(creature_id) == [creature.get_board_coordinate()]


def test_new_board_is_filled_to_the_minimum():
    board = small_board()
    assert board.get_population_size() == 10
    assert board.get_creature_id_up_to() == 10
    assert sorted(board.creatures) == list(range(10))
    assert board.get_board_size() == (50, 50)
    assert board.get_time() == 0.0
    assert board.get_season() == "Winter"
    assert_index_consistent(board)


def test_a_year_of_ticks():
    board = small_board()
    seen_ids = set(board.creatures)
    for _ in range(100):
        board.update(0.01)
        assert board.get_population_size() >= board.get_creature_minimum()
        seen_ids.update(board.creatures)
        assert_index_consistent(board)

    assert board.get_time() == pytest.approx(1.0)
    # Every id handed out was used exactly once
    assert seen_ids == set(range(board.get_creature_id_up_to()))
    assert 0 < len(board.population_history) <= 200


def test_season_labels_follow_the_clock():
    board = small_board()
    for _ in range(30):
        board.update(0.01)
    assert board.get_season() == "Spring"
    for _ in range(25):
        board.update(0.01)
    assert board.get_season() == "Summer"


def test_season_changes_are_logged(isolated_logs):
    board = small_board()
    for _ in range(30):
        board.update(0.01)
    event_log().flush()
    with open(isolated_logs.filepath) as f:
        events = [json.loads(line) for line in f]
    seasons = [e for e in events if e['type'] == 'season']
    assert seasons[0]['season'] == "Spring"
    births = [e for e in events if e['type'] == 'birth']
    assert len(births) >= 10


def test_dead_creatures_are_removed_and_recorded():
    board = small_board()
    victim = board.get_creature(3)
    victim.energy = 0.0
    board.selected_creature.select(3)

    removed = board.remove_dead_creatures()
    assert removed == [3]
    assert board.get_creature(3) is None
    assert 3 not in board.soft_bodies_in_positions
    assert board.get_selected_creature() is None
    assert board.evolution_history.records[-1].cause_of_death == 'starvation'

    assert board.maintain_creature_minimum() == 1
    assert board.get_creature(10) is not None


def test_growth_accessors():
    board = small_board()
    board.update(0.25)
    assert board.get_current_growth_rate() == pytest.approx(board.climate.get_growth_rate(0.25))
    assert board.get_growth_since(0.0) == pytest.approx(
        board.climate.get_growth_over_time_range(0.25, 0.0))


def test_non_positive_time_step_is_rejected():
    board = empty_board()
    with pytest.raises(ValueError):
        board.update(0.0)
    with pytest.raises(ValueError):
        board.update(-0.01)


def test_selection():
    board = empty_board()
    assert not board.select_oldest()
    assert not board.select_biggest()
    assert board.get_selected_creature() is None

    for creature_id, (birth, energy) in enumerate([(0.3, 1.0), (0.1, 1.5), (0.1, 0.5), (0.2, 1.5)]):
        creature = Creature(creature_id, 5.5, 5.5, energy, birth, Brain.new_random())
        board.creatures[creature_id] = creature

    assert board.select_oldest()
    assert board.get_selected_creature().id == 1
    assert board.select_biggest()
    assert board.get_selected_creature().id == 1
    board.deselect()
    assert board.get_selected_creature() is None


def test_selected_creature_helper():
    selected = SelectedCreature()
    assert not selected.is_selected
    selected.select(4)
    selected.unselect_if_dead(5)
    assert selected.creature_id == 4
    selected.unselect_if_dead(4)
    assert not selected.is_selected


def test_boards_built_from_creatures_index_them():
    creatures = {i: Creature(i, 1.5 + i, 2.5, 1.0, 0.0, Brain.new_random()) for i in range(3)}
    board = Board((10, 10), make_terrain((10, 10)), Climate(-0.5, 1.0), 2,
                  creatures=creatures, creature_id_up_to=3)
    assert_index_consistent(board)
    board.update(0.01)
    assert_index_consistent(board)
    assert board.get_population_size() >= 2


def test_parallel_sensing_matches_serial():
    serial = small_board(seed=9)
    parallel = small_board(seed=9, parallel_brains=True)
    try:
        for _ in range(10):
            np.random.seed(42)
            serial.update(0.01)
            np.random.seed(42)
            parallel.update(0.01)
        assert sorted(serial.creatures) == sorted(parallel.creatures)
        for creature_id, creature in serial.creatures.items():
            twin = parallel.creatures[creature_id]
            assert (creature.px, creature.py) == (twin.px, twin.py)
            assert creature.energy == twin.energy
    finally:
        parallel.close()


def test_statistics():
    board = small_board()
    stats = board.get_statistics()
    assert stats['population'] == 10
    assert stats['season'] == "Winter"
    assert stats['max_generation'] == 0
    assert stats['innovations'] == 20
    assert stats['total_food'] > 0.0
