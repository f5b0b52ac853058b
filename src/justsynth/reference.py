"""
Reference-note selection.

At any moment one sounding voice is the reference that new notes are tuned
against. Which one is decided by a ReferenceSelector chosen from the
ReferenceMode:

- LOWEST_NOTE: the lowest active note (the bass)
- STICKY_RANDOM: a randomly chosen active note, kept while it sounds
- HARMONIC_CENTER: the note most consonant with all others (the chord
  root), kept while it sounds

ReferenceMemory is the state shared across calls: the sticky slot and the
last reference frequency, which outlives the voices so that a new phrase
starts where the previous one left off.

Copyright (c) 2026 justsynth contributors

MIT License
"""

from __future__ import annotations

import random
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

from justsynth.config import coerce_enum
from justsynth.intervals import SEMITONES_PER_OCTAVE, note_name
from justsynth.logger import get_logger
from justsynth.voice import Voice

logger = get_logger(__name__)


class ReferenceMode(Enum):
    LOWEST_NOTE = "lowest"
    STICKY_RANDOM = "random"
    HARMONIC_CENTER = "harmonic"


REFERENCE_MODE_ALIASES = {
    "bass": ReferenceMode.LOWEST_NOTE,
    "lowest_note": ReferenceMode.LOWEST_NOTE,
    "sticky": ReferenceMode.STICKY_RANDOM,
    "sticky_random": ReferenceMode.STICKY_RANDOM,
    "harmonic_center": ReferenceMode.HARMONIC_CENTER,
    "root": ReferenceMode.HARMONIC_CENTER,
}

# Consonance weight per interval class (semitones mod 12)
CONSONANCE = {
    0: 10,
    7: 9,
    5: 8,
    4: 7,
    3: 7,
    9: 6,
    8: 6,
    2: 3,
    10: 3,
    11: 2,
    1: 1,
    6: 1,
}


def parse_reference_mode(mode) -> ReferenceMode:
    """Resolve a selector to a ReferenceMode; unknown names give LOWEST_NOTE."""
    return coerce_enum(mode, ReferenceMode, ReferenceMode.LOWEST_NOTE, REFERENCE_MODE_ALIASES)


def consonance(interval: int) -> int:
    """Consonance weight of a signed interval, folded to its interval class."""
    return CONSONANCE[interval % SEMITONES_PER_OCTAVE]


@dataclass
class ReferenceMemory:
    """
    Reference state that persists while no voice sounds.

    Attributes:
        sticky_slot: Slot of the sticky reference voice (random/harmonic modes)
        last_reference_note: Note of the last reference anchor
        last_reference_frequency: Its sounding frequency, pitch bend included
    """

    sticky_slot: Optional[int] = None
    last_reference_note: Optional[int] = None
    last_reference_frequency: Optional[float] = None

    def remember(self, note: int, frequency: float) -> None:
        self.last_reference_note = note
        self.last_reference_frequency = frequency

    @property
    def has_reference(self) -> bool:
        return self.last_reference_note is not None and self.last_reference_frequency is not None

    def clear(self) -> None:
        self.sticky_slot = None
        self.last_reference_note = None
        self.last_reference_frequency = None


class ReferenceSelector(ABC):
    """Strategy that picks the reference among the active voices."""

    mode: ReferenceMode

    @abstractmethod
    def select(self, active_voices: Sequence[Voice], memory: ReferenceMemory) -> Optional[Voice]:
        """
        Return the reference voice, or None if nothing is sounding.

        active_voices must be in ascending slot order. Sticky strategies
        update memory.sticky_slot.
        """

    def peek(self, active_voices: Sequence[Voice], memory: ReferenceMemory) -> Optional[Voice]:
        """Return what select() would pick, without changing any state."""
        return self.select(active_voices, memory)


class LowestNoteSelector(ReferenceSelector):
    mode = ReferenceMode.LOWEST_NOTE

    def select(self, active_voices: Sequence[Voice], memory: ReferenceMemory) -> Optional[Voice]:
        if not active_voices:
            return None
        return min(active_voices, key=lambda v: v.note)


class _StickySelector(ReferenceSelector):
    """Keeps the remembered voice while it stays active."""

    def select(self, active_voices: Sequence[Voice], memory: ReferenceMemory) -> Optional[Voice]:
        if not active_voices:
            memory.sticky_slot = None
            return None
        for voice in active_voices:
            if voice.slot == memory.sticky_slot:
                return voice
        chosen = self._choose(active_voices)
        memory.sticky_slot = chosen.slot
        logger.debug("new %s reference: %s", self.mode.value, note_name(chosen.note))
        return chosen

    def peek(self, active_voices: Sequence[Voice], memory: ReferenceMemory) -> Optional[Voice]:
        if not active_voices:
            return None
        for voice in active_voices:
            if voice.slot == memory.sticky_slot:
                return voice
        return self._preview(active_voices)

    def _preview(self, active_voices: Sequence[Voice]) -> Voice:
        return self._choose(active_voices)

    @abstractmethod
    def _choose(self, active_voices: Sequence[Voice]) -> Voice:
        pass


class StickyRandomSelector(_StickySelector):
    mode = ReferenceMode.STICKY_RANDOM

    def __init__(self, seed: int | None = None, rng: random.Random | None = None):
        self._rng = rng if rng is not None else random.Random(seed)

    def _choose(self, active_voices: Sequence[Voice]) -> Voice:
        return self._rng.choice(list(active_voices))

    def _preview(self, active_voices: Sequence[Voice]) -> Voice:
        # The next select() must draw the same choice
        state = self._rng.getstate()
        try:
            return self._choose(active_voices)
        finally:
            self._rng.setstate(state)


class HarmonicCenterSelector(_StickySelector):
    """
    Picks the chord root by pairwise consonance scoring.

    Each voice scores the sum of consonance(other.note - voice.note) over
    all other voices; the highest score wins and ties go to the lowest slot.
    Weights depend on the direction of the interval (a fifth above scores
    9, a fifth below folds to a fourth and scores 8), which is what makes
    the root of C-E-G win in any inversion.
    """

    mode = ReferenceMode.HARMONIC_CENTER

    def _choose(self, active_voices: Sequence[Voice]) -> Voice:
        if len(active_voices) == 1:
            return active_voices[0]
        best, best_score = active_voices[0], None
        for voice in active_voices:
            score = self.score(voice.note, [v.note for v in active_voices if v is not voice])
            if best_score is None or score > best_score:
                best, best_score = voice, score
        return best

    @staticmethod
    def score(note: int, others: Sequence[int]) -> int:
        return sum(consonance(other - note) for other in others)


def make_selector(mode: ReferenceMode, seed: int | None = None) -> ReferenceSelector:
    """Build the selector strategy for mode."""
    if mode == ReferenceMode.STICKY_RANDOM:
        return StickyRandomSelector(seed=seed)
    if mode == ReferenceMode.HARMONIC_CENTER:
        return HarmonicCenterSelector()
    return LowestNoteSelector()
