"""Simulation orchestration."""

from .board import Board, SelectedCreature
