import importlib

import pytest

from evolv_world.persistence.board_state import BoardPersistence

# The package re-exports main(), which hides the module attribute
driver = importlib.import_module("evolv_world.main")


PARAMS = {
    'board_size': (20, 20),
    'creature_minimum': 6,
    'min_temp': -0.5,
    'max_temp': 1.0,
    'noise_step_size': 0.1,
    'time_step': 0.01,
    'seed': 2,
}


@pytest.fixture
def sandbox(tmp_path, monkeypatch):
    monkeypatch.setattr(driver, 'LIFETIMES_FILE', str(tmp_path / "lifetimes.json"))
    monkeypatch.setattr(driver, 'ensure_dirs', lambda: None)
    return tmp_path


def test_launch_params_from_environment():
    params = driver.read_launch_params({
        'EVOLV_BOARD_SIZE': '40', 'EVOLV_CREATURE_MINIMUM': '12',
        'EVOLV_MIN_TEMP': '-1', 'EVOLV_SEED': '7',
    })
    assert params['board_size'] == (40, 40)
    assert params['creature_minimum'] == 12
    assert params['min_temp'] == -1.0
    assert params['seed'] == 7


def test_launch_params_defaults():
    params = driver.read_launch_params({})
    assert params['seed'] is None
    assert params['board_size'] == (100, 100)


def test_parse_years():
    assert driver.parse_years([]) is None
    assert driver.parse_years(['--fresh', '--years', '2.5']) == 2.5
    with pytest.raises(ValueError):
        driver.parse_years(['--years'])
    with pytest.raises(ValueError):
        driver.parse_years(['--years', '0'])


def test_bounded_overnight_run_saves_and_resumes(sandbox):
    state_file = str(sandbox / "board.npz")
    board = driver.main_overnight(years=0.05, state_file=state_file, fresh=True, params=PARAMS)
    assert board.get_time() == pytest.approx(0.05)
    assert BoardPersistence.exists(state_file)
    assert (sandbox / "lifetimes.json").exists()

    resumed = driver.main_overnight(years=0.05, state_file=state_file, params=PARAMS)
    assert resumed.get_time() == pytest.approx(0.10)
    assert resumed.get_creature_id_up_to() >= board.get_creature_id_up_to()


def test_help(capsys):
    driver.main(['--help'])
    assert "python -m evolv_world" in capsys.readouterr().out


def test_bad_years_exits(capsys):
    with pytest.raises(SystemExit):
        driver.main(['--years', 'soon'])
