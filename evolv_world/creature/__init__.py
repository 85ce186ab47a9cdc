"""Creature systems - soft bodies and their genome-backed brains."""

from .brain import Brain, NeuralNet, Environment, EnvironmentMut
from .creature import Creature, radius_for_energy
