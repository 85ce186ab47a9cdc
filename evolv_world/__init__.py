"""
evolv_world - Evolving NEAT creatures on a seasonal board

Creatures driven by NEAT-encoded neural networks graze a Perlin-noise
terrain whose food follows a seasonal climate, reproduce sexually and die
back into the soil.

Usage:
    python -m evolv_world              # Headless run
    python -m evolv_world --years 5    # Bounded run
    python -m evolv_world --analyze    # Analyze the event log

Package structure:
- core/: Constants, board coordinates and small helpers
- world/: Climate, tiles, terrain, seasons, spatial index
- neat/: Genomes, innovation registry, mutation, crossover, speciation
- creature/: Creature bodies and genome-backed brains
- manager/: Board orchestration (the tick pipeline)
- persistence/: Save/load board state
- events/: Console and JSONL event logging
- statistics/: Lifetime records, population history
"""

__version__ = "0.3.0"

from .main import main, main_overnight

# Submodule imports
from . import (
    core, world, neat, creature, manager, persistence, events, statistics
)
