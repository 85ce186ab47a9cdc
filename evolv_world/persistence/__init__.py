"""Board persistence."""

from .board_state import BoardPersistence
