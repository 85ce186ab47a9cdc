"""
Console output with a verbosity switch.

Every message starts with a "[Tag]". The tag decides the lowest verbosity at
which the message is shown:
- MINIMAL: board lifecycle, seasons, persistence, refills, summaries
- LIFECYCLE: births, deaths and selection changes as well
- FULL: any other tagged message (genome dumps, terrain refreshes, ...)

Untagged lines such as status lines are always printed. Hidden messages are
tallied per tag and reported in a periodic "[Summary]" line.
"""

from collections import Counter
from enum import IntEnum
from typing import Dict, Optional


class Verbosity(IntEnum):
    MINIMAL = 0
    LIFECYCLE = 1
    FULL = 2


# Lowest verbosity showing each known tag; unknown tags need FULL
TAG_LEVELS: Dict[str, Verbosity] = {
    'Board': Verbosity.MINIMAL,
    'Season': Verbosity.MINIMAL,
    'Persistence': Verbosity.MINIMAL,
    'Refill': Verbosity.MINIMAL,
    'Overnight': Verbosity.MINIMAL,
    'Params': Verbosity.MINIMAL,
    'Terrain': Verbosity.MINIMAL,
    'Summary': Verbosity.MINIMAL,
    'Birth': Verbosity.LIFECYCLE,
    'Death': Verbosity.LIFECYCLE,
    'Select': Verbosity.LIFECYCLE,
}

VERBOSITY_LABELS = {
    Verbosity.MINIMAL: "MINIMAL (board, seasons, saves)",
    Verbosity.LIFECYCLE: "LIFECYCLE (plus births and deaths)",
    Verbosity.FULL: "FULL (every tagged message)",
}


def message_tag(message: str) -> Optional[str]:
    """Tag name without brackets, or None for untagged text."""
    if not message.startswith('['):
        return None
    end = message.find(']')
    return message[1:end] if end > 0 else None


class ConsoleLogger:
    """Process-wide console filter. Use `console_log()` to reach it."""

    _instance: Optional['ConsoleLogger'] = None

    def __init__(self):
        self.verbosity = Verbosity.MINIMAL
        self.enabled = True
        self.hidden = Counter()
        self.last_summary_time = 0.0
        self.summary_interval = 0.25  # years

    @classmethod
    def get(cls) -> 'ConsoleLogger':
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset(cls):
        """Forget the shared instance (tests start from a clean logger)."""
        cls._instance = None

    def cycle_verbosity(self) -> str:
        self.verbosity = Verbosity((self.verbosity + 1) % len(Verbosity))
        return VERBOSITY_LABELS[self.verbosity]

    def set_verbosity(self, level: Verbosity):
        self.verbosity = level

    def should_print(self, message: str) -> bool:
        if not self.enabled:
            return False
        tag = message_tag(message)
        if tag is None:
            return True
        return self.verbosity >= TAG_LEVELS.get(tag, Verbosity.FULL)

    def count_event(self, message: str):
        tag = message_tag(message)
        if tag is not None:
            self.hidden[tag] += 1

    def get_summary(self, time: float) -> Optional[str]:
        """
        One line tallying hidden messages, at most every `summary_interval`
        years. None when nothing was hidden or the interval has not passed.
        """
        if time - self.last_summary_time < self.summary_interval or not self.hidden:
            return None

        self.last_summary_time = time
        parts = [f"{tag}:{count}" for tag, count in self.hidden.most_common(8)]
        self.hidden.clear()
        return f"[Summary] {', '.join(parts)}"

    def log(self, message: str, force: bool = False) -> bool:
        """Print `message` if its tag is visible (or `force`); returns whether it printed."""
        if force or self.should_print(message):
            print(message)
            return True
        self.count_event(message)
        return False


def console_log() -> ConsoleLogger:
    return ConsoleLogger.get()
