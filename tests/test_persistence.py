import json

import numpy as np
import pytest

from evolv_world.manager.board import Board
from evolv_world.persistence.board_state import BoardPersistence


@pytest.fixture
def board():
    board = Board.new_random((20, 20), 0.1, 8, -0.5, 1.0, seed=3)
    for _ in range(20):
        board.update(0.01)
    board.select_biggest()
    return board


def test_save_and_load_restore_the_board(board, tmp_path):
    path = str(tmp_path / "saves" / "board.npz")
    assert board.save_to(path)
    assert BoardPersistence.exists(path)

    restored = Board.load_from(path)
    assert restored is not None
    assert restored.get_time() == pytest.approx(board.get_time())
    assert restored.get_creature_id_up_to() == board.get_creature_id_up_to()
    assert restored.get_creature_minimum() == 8
    assert sorted(restored.creatures) == sorted(board.creatures)
    assert restored.selected_creature.creature_id == board.selected_creature.creature_id
    assert restored.registry.to_dict() == board.registry.to_dict()
    assert restored.terrain.total_food() == pytest.approx(board.terrain.total_food())
    assert len(restored.population_history) == len(board.population_history)

    for creature_id, creature in board.creatures.items():
        twin = restored.get_creature(creature_id)
        assert (twin.px, twin.py, twin.energy) == (creature.px, creature.py, creature.energy)
        assert twin.brain.genome == creature.brain.genome
        assert restored.soft_bodies_in_positions.cell_of(creature_id) == creature.get_board_coordinate()


def test_restored_board_keeps_running(board, tmp_path):
    path = str(tmp_path / "board.npz")
    board.save_to(path)
    restored = BoardPersistence.load_board(path)
    for _ in range(10):
        restored.update(0.01)
    assert restored.get_population_size() >= 8
    assert min(restored.creatures) >= 0


def test_saves_contain_no_pickled_objects(board, tmp_path):
    path = str(tmp_path / "board.npz")
    board.save_to(path)
    with np.load(path, allow_pickle=False) as d:
        assert 'state' in d.files
        assert d['terrain_arable'].shape == (20, 20)


def test_missing_file_loads_nothing(tmp_path):
    path = str(tmp_path / "nothing.npz")
    assert not BoardPersistence.exists(path)
    assert BoardPersistence.load_board(path) is None


def test_corrupt_file_loads_nothing(tmp_path):
    path = tmp_path / "board.npz"
    path.write_bytes(b"not a zip file")
    assert BoardPersistence.load_board(str(path)) is None


def test_unknown_version_is_rejected(board):
    state = board.to_dict()
    state['version'] = 99
    with pytest.raises(ValueError):
        Board.from_dict(state)


def test_save_does_not_leave_temporary_files(board, tmp_path):
    path = tmp_path / "saves" / "board.npz"
    board.save_to(str(path))
    board.save_to(str(path))
    assert sorted(p.name for p in path.parent.iterdir()) == ["board.npz"]


def test_creature_stored_off_the_board_loads_nothing(board, tmp_path):
    path = str(tmp_path / "board.npz")
    board.save_to(path)
    with np.load(path, allow_pickle=False) as d:
        arrays = {name: d[name] for name in d.files}
    state = json.loads(str(arrays.pop('state')))
    state['creatures'][0]['px'] = 42.0
    np.savez_compressed(path, state=np.array(json.dumps(state)), **arrays)

    assert BoardPersistence.load_board(path) is None


def test_off_board_creature_is_a_value_error(board):
    state = board.to_dict()
    state['creatures'][0]['py'] = -3.0
    with pytest.raises(ValueError):
        Board.from_dict(state)
