"""
Core constants for the evolv_world simulation.

This module contains the board defaults, food growth parameters, the
creature energy economy and the NEAT mutation/speciation parameters used
throughout the simulation. Values are plain module-level constants so the
driver and tests can read them without constructing anything.
"""

import os
import numpy as np

# =============================================================================
# PATHS
# =============================================================================
try:
    SCRIPT_DIR = os.path.dirname(os.path.abspath(__file__))
    # Go up two levels from core/ to the project directory
    SCRIPT_DIR = os.path.dirname(os.path.dirname(SCRIPT_DIR))
except NameError:
    SCRIPT_DIR = os.getcwd()

DATA_DIR = os.path.join(SCRIPT_DIR, "data")
BOARD_STATE_FILE = os.path.join(DATA_DIR, "board_state.npz")
EVENT_LOG_FILE = os.path.join(DATA_DIR, "event_log.jsonl")
LIFETIMES_FILE = os.path.join(DATA_DIR, "lifetimes.json")
REPORT_FILE = os.path.join(DATA_DIR, "simulation_report.txt")
FIGURE_FILE = os.path.join(DATA_DIR, "simulation_analysis.png")


def ensure_dirs():
    """Create necessary directories if they don't exist."""
    os.makedirs(DATA_DIR, exist_ok=True)


# =============================================================================
# BOARD DEFAULTS
# =============================================================================
DEFAULT_BOARD_SIZE = (100, 100)
DEFAULT_NOISE_STEP_SIZE = 0.1
DEFAULT_CREATURE_MINIMUM = 60
DEFAULT_MIN_TEMP = -0.5
DEFAULT_MAX_TEMP = 1.0
DEFAULT_TIME_STEP = 0.001   # One tick, in years

# Creature physics runs in "object time", this many units per year
OBJECT_TIMESTEPS_PER_YEAR = 100.0
POPULATION_HISTORY_LENGTH = 200

SEASON_NAMES = ["Winter", "Spring", "Summer", "Autumn"]


# =============================================================================
# TERRAIN / FOOD
# =============================================================================
FOOD_GROWTH_RATE = 1.0
MAX_GROWTH_LEVEL = 3.0
FOOD_SENSITIVITY = 0.3

# Fertility noise mixing (large features vs. small features)
FERTILITY_SCALE = 5.0
FERTILITY_OFFSET = 1.5
FOOD_TYPE_SCALE = 1.63
FOOD_TYPE_OFFSET = 0.4
FOOD_TYPE_MAX = 0.8
TERRAIN_SMOOTHING = 0.6   # Gaussian sigma in tiles


# =============================================================================
# CREATURE ENERGY ECONOMY
# =============================================================================
ENERGY_DENSITY = 1.0 / (0.2 * 0.2 * np.pi)   # Energy per unit of body area
CREATURE_MIN_ENERGY = 1.2
CREATURE_MAX_ENERGY = 2.0
MINIMUM_SURVIVABLE_SIZE = 0.06
SAFE_SIZE = 1.25
BABY_SIZE = 0.6
MATURE_AGE = 0.01
CREATURE_MAX_AGE = 6.0
MATING_COOLDOWN = 0.01
MATING_REACH = 0.5
REPRODUCTION_FAILURE_COST = 0.0

METABOLISM_ENERGY = 0.004
AGE_FACTOR = 1.0
ACCELERATION_ENERGY = 0.18
ACCELERATION_BACK_ENERGY = 0.24
TURN_ENERGY = 0.06
EAT_ENERGY = 0.05
EAT_SPEED = 0.5
EAT_WHILE_MOVING_INEFFICIENCY = 2.0
FRICTION = 0.004
COLLISION_FORCE = 0.01
MAX_ACCELERATION = 0.04
MAX_TURN = 0.2
MOUTH_HUE_DRIFT = 0.02
SWIM_ENERGY = 0.008                # Fraction of energy lost per scaled step on water
CROWDING_NORMALIZER = 8.0          # Neighbour count mapped to a crowding sensor of 1.0


# =============================================================================
# NEAT GENOME
# =============================================================================
# Sensors: food here, food match, energy, growth rate, crowding
SENSOR_COUNT = 5
# Outputs: accelerate, turn, eat, reproduce
OUTPUT_COUNT = 4

WEIGHT_MULTIPLIER_RANGE = (0.8, 1.2)

MUTATION_RATES = {
    'add_node': 0.03,
    'add_connection': 0.05,
    'perturb_weight': 0.8,
    'reset_weight': 0.1,
}
ADD_CONNECTION_TRIES = 20
DISABLED_GENE_INHERIT_PROB = 0.75

# Compatibility distance: c1 * E / N + c2 * D / N + c3 * W
SPECIATION_COEFFICIENTS = {
    'excess': 1.0,
    'disjoint': 1.0,
    'weight': 0.4,
}
SPECIATION_THRESHOLD = 3.0
SPECIATION_SMALL_GENOME = 20   # Below this gene count N is taken as 1
