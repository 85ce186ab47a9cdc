#!/usr/bin/env python3
"""
evolv_world - Evolving NEAT creatures on a seasonal board
=========================================================

Creatures with NEAT-encoded brains graze a Perlin-noise terrain whose food
regrows with a seasonal climate. They mate (crossover + mutation), starve
or die of old age, and return their energy to the soil.

Usage:
    python -m evolv_world                  # Headless run until Ctrl+C
    python -m evolv_world --years 5        # Stop after 5 simulated years
    python -m evolv_world --fresh          # Ignore any saved board
    python -m evolv_world --verbose        # Also print births and deaths
    python -m evolv_world --parallel       # Evaluate brains on a thread pool
    python -m evolv_world --help           # Show help

Launch parameters are read from the environment:
    EVOLV_BOARD_SIZE, EVOLV_CREATURE_MINIMUM, EVOLV_MIN_TEMP, EVOLV_MAX_TEMP,
    EVOLV_NOISE_STEP, EVOLV_TIME_STEP, EVOLV_SEED
"""

import os
import sys
import time
from typing import List, Optional

from .core.constants import (
    DATA_DIR, BOARD_STATE_FILE, LIFETIMES_FILE, ensure_dirs,
    DEFAULT_BOARD_SIZE, DEFAULT_CREATURE_MINIMUM, DEFAULT_MIN_TEMP, DEFAULT_MAX_TEMP,
    DEFAULT_NOISE_STEP_SIZE, DEFAULT_TIME_STEP,
)
from .manager.board import Board
from .persistence.board_state import BoardPersistence
from .events.logger import event_log
from .events.console_log import console_log, Verbosity


# Status line every N ticks
STATUS_INTERVAL = 100
# Population snapshot every N ticks
SNAPSHOT_INTERVAL = 250
# Full board save every N ticks
SAVE_INTERVAL = 5000


def read_launch_params(environ=None) -> dict:
    """Launch parameters from environment variables, falling back to defaults."""
    environ = os.environ if environ is None else environ
    seed = environ.get('EVOLV_SEED')
    size = int(environ.get('EVOLV_BOARD_SIZE', str(DEFAULT_BOARD_SIZE[0])))
    return {
        'board_size': (size, size),
        'creature_minimum': int(environ.get('EVOLV_CREATURE_MINIMUM', str(DEFAULT_CREATURE_MINIMUM))),
        'min_temp': float(environ.get('EVOLV_MIN_TEMP', str(DEFAULT_MIN_TEMP))),
        'max_temp': float(environ.get('EVOLV_MAX_TEMP', str(DEFAULT_MAX_TEMP))),
        'noise_step_size': float(environ.get('EVOLV_NOISE_STEP', str(DEFAULT_NOISE_STEP_SIZE))),
        'time_step': float(environ.get('EVOLV_TIME_STEP', str(DEFAULT_TIME_STEP))),
        'seed': int(seed) if seed else None,
    }


# === READ LAUNCHER PARAMETERS ===
LAUNCH_PARAMS = read_launch_params()


def print_banner(params: dict):
    """Print startup banner."""
    print("=" * 72)
    print("EVOLV WORLD - NEAT creatures on a seasonal board")
    print("=" * 72)
    print("Running headless. Press Ctrl+C to stop gracefully.")
    console_log().log(
        f"[Params] board {params['board_size'][0]}x{params['board_size'][1]}, "
        f"minimum {params['creature_minimum']}, "
        f"temperature {params['min_temp']}..{params['max_temp']}, "
        f"time step {params['time_step']}, seed {params['seed']}"
    )
    print("=" * 72)


def create_or_restore_board(params: dict, state_file: str, fresh: bool = False,
                            parallel_brains: bool = False) -> Board:
    """Load the saved board unless told not to; otherwise generate a new one."""
    board = None
    if not fresh and BoardPersistence.exists(state_file):
        board = BoardPersistence.load_board(state_file, parallel_brains=parallel_brains)
        if board is None:
            console_log().log("[Overnight] Restore failed, starting fresh")

    if board is None:
        console_log().log("[Overnight] Creating new board...")
        board = Board.new_random(
            params['board_size'],
            params['noise_step_size'],
            params['creature_minimum'],
            params['min_temp'],
            params['max_temp'],
            seed=params['seed'],
            parallel_brains=parallel_brains,
        )
    return board


def print_status(board: Board, tick: int, started: float):
    stats = board.get_statistics()
    elapsed = time.time() - started
    print(f"[{tick:7d}] Y{stats['year']:8.3f} {stats['season'][:3]} | "
          f"Pop:{stats['population']:4d} | E:{stats['mean_energy']:.2f} | "
          f"Gen:{stats['max_generation']:3d} | Food:{stats['total_food']:.0f} | {elapsed:.1f}s")


def main_overnight(years: Optional[float] = None, state_file: str = None,
                   fresh: bool = False, parallel_brains: bool = False,
                   params: dict = None) -> Board:
    """Headless run. Returns the board at the end of the session."""
    params = params or LAUNCH_PARAMS
    state_file = state_file or BOARD_STATE_FILE

    print_banner(params)
    console_log().log(f"[Persistence] Data directory: {DATA_DIR}")
    console_log().log(f"[Persistence] Board state file: {state_file}")
    ensure_dirs()

    board = create_or_restore_board(params, state_file, fresh, parallel_brains)
    time_step = params['time_step']
    end_year = board.get_time() + years if years is not None else None

    console_log().log(f"[Overnight] Starting at year {board.get_time():.3f} "
                      f"with {board.get_population_size()} creatures")
    event_log().log('session_start', board.get_time(), mode='overnight',
                    population=board.get_population_size())

    tick = 0
    started = time.time()
    try:
        while end_year is None or board.get_time() < end_year - time_step / 2:
            board.update(time_step)
            tick += 1

            if tick % STATUS_INTERVAL == 0:
                print_status(board, tick, started)
                summary = console_log().get_summary(board.get_time())
                if summary:
                    console_log().log(summary)

            if tick % SNAPSHOT_INTERVAL == 0:
                stats = board.get_statistics()
                event_log().log_population(board.get_time(), stats['population'],
                                           stats['mean_energy'], stats['max_generation'])
                event_log().flush()

            if tick % SAVE_INTERVAL == 0:
                board.save_to(state_file)

    except KeyboardInterrupt:
        print("\n[Overnight] Shutting down gracefully...")
    finally:
        console_log().log("[Overnight] Saving final state...")
        board.save_to(state_file)
        board.evolution_history.save(LIFETIMES_FILE)
        event_log().log('session_end', board.get_time(), mode='overnight', ticks=tick,
                        population=board.get_population_size())
        event_log().flush()
        board.close()
        print("[Overnight] Goodbye!")

    return board


def parse_years(argv: List[str]) -> Optional[float]:
    if '--years' not in argv:
        return None
    index = argv.index('--years')
    if index + 1 >= len(argv):
        raise ValueError("--years needs a value")
    years = float(argv[index + 1])
    if years <= 0:
        raise ValueError("--years must be positive")
    return years


def main(argv: List[str] = None):
    """Entry point - read flags and run headless."""
    argv = sys.argv[1:] if argv is None else argv

    if '--help' in argv or '-h' in argv:
        print(__doc__)
        return

    try:
        years = parse_years(argv)
    except ValueError as e:
        print(f"[Error] {e}")
        sys.exit(2)

    if '--verbose' in argv:
        console_log().set_verbosity(Verbosity.LIFECYCLE)

    main_overnight(years=years, fresh='--fresh' in argv, parallel_brains='--parallel' in argv)


if __name__ == "__main__":
    main()
