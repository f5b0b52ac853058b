"""
Fixed-capacity voice pool with retrigger and oldest-first stealing.

Copyright (c) 2026 justsynth contributors

MIT License
"""

from __future__ import annotations

import itertools
from collections.abc import Sequence
from typing import Iterator, NamedTuple, Optional

from justsynth.logger import get_logger
from justsynth.voice import Voice, VoiceOutput, VoiceState

logger = get_logger(__name__)


class Allocation(NamedTuple):
    voice: Voice
    stolen_note: Optional[int]


class VoicePool:
    """
    Owns a fixed number of Voice slots.

    Voices are created once and never replaced; slot indices are stable for
    the lifetime of the pool.
    """

    def __init__(self, output: VoiceOutput, capacity: int = 8) -> None:
        self._voices: list[Voice] = [Voice(slot, output) for slot in range(capacity)]
        self._order = itertools.count()

    def allocate(self, note: int) -> Allocation:
        """
        Pick the voice that should play note.

        1. An active voice already playing note is reused (retrigger).
        2. Otherwise the first free slot.
        3. Otherwise the active voice with the smallest start_order is
           stolen; it is stopped here and its note reported.

        Every allocation takes a fresh start_order, so the order is strictly
        increasing and stealing never ties.
        """
        stolen_note = None
        voice = self.find_active(note)
        if voice is None:
            voice = next((v for v in self._voices if not v.is_active), None)
        if voice is None:
            voice = min(self._voices, key=lambda v: v.start_order)
            stolen_note = voice.note
            logger.debug("stealing slot %d (note %s)", voice.slot, stolen_note)
            voice.stop()

        voice.start_order = next(self._order)
        return Allocation(voice, stolen_note)

    def find_active(self, note: int) -> Optional[Voice]:
        for voice in self._voices:
            if voice.is_active and voice.note == note:
                return voice
        return None

    def active_voices(self) -> list[Voice]:
        """Active voices in ascending slot order."""
        return [v for v in self._voices if v.is_active]

    def stop_all(self) -> None:
        for voice in self._voices:
            voice.stop()

    @property
    def voices(self) -> Sequence[Voice]:
        return tuple(self._voices)

    @property
    def capacity(self) -> int:
        return len(self._voices)

    @property
    def active_voice_count(self) -> int:
        return sum(1 for v in self._voices if v.state == VoiceState.ACTIVE)

    def __getitem__(self, slot: int) -> Voice:
        return self._voices[slot]

    def __iter__(self) -> Iterator[Voice]:
        return iter(self._voices)

    def __len__(self) -> int:
        return len(self._voices)
