"""
Retuning of sounding voices when the reference changes.

Copyright (c) 2026 justsynth contributors

MIT License
"""

from __future__ import annotations

from typing import NamedTuple, Optional, Sequence

from justsynth.config import coerce_enum
from justsynth.intervals import just_frequency, note_name
from justsynth.logger import get_logger
from justsynth.reference import ReferenceMemory
from justsynth.voice import RetuneMode, Voice

logger = get_logger(__name__)


class RetunedNote(NamedTuple):
    note: int
    new_frequency: float


def parse_retune_mode(mode) -> RetuneMode:
    """Resolve a selector to a RetuneMode; unknown names give STATIC."""
    return coerce_enum(mode, RetuneMode, RetuneMode.STATIC)


class RetuneEngine:
    """
    Applies the configured RetuneMode after the reference voice is released.

    Args:
        mode: STATIC, SMOOTH or INSTANT
        glide_seconds: Glide duration used by SMOOTH
    """

    def __init__(self, mode: RetuneMode = RetuneMode.STATIC, glide_seconds: float = 0.2):
        self.mode = mode
        self.glide_seconds = glide_seconds

    @property
    def enabled(self) -> bool:
        return self.mode != RetuneMode.STATIC

    def retune_all(
        self,
        new_reference: Optional[Voice],
        active_voices: Sequence[Voice],
    ) -> list[RetunedNote]:
        """
        Retune every active voice to a pure interval from new_reference.

        Voices sharing the reference's note are left alone. In STATIC mode,
        or without a reference, nothing changes and the list is empty.

        Returns:
            One RetunedNote per retuned voice, in slot order
        """
        if not self.enabled or new_reference is None:
            return []

        ref_note = new_reference.note
        ref_freq = new_reference.frequency
        glide = self.glide_seconds if self.mode == RetuneMode.SMOOTH else 0.0
        retuned = []
        for voice in active_voices:
            if voice.note == ref_note:
                continue
            new_freq = just_frequency(ref_freq, ref_note, voice.note)
            voice.retune(new_freq, self.mode, glide)
            voice.tuned_reference_note = ref_note
            voice.tuned_reference_frequency = ref_freq
            retuned.append(RetunedNote(voice.note, new_freq))

        logger.debug(
            "reference now %s, %s-retuned %d voice(s)",
            note_name(ref_note), self.mode.value, len(retuned),
        )
        return retuned

    @staticmethod
    def capture_reference(
        reference: Voice,
        bend_ratio: float,
        memory: ReferenceMemory,
    ) -> float:
        """
        Store the reference's sounding frequency before it is released.

        The captured value includes the current pitch bend, so the next
        phrase continues from what was actually heard.

        Returns:
            The stored frequency
        """
        frequency = reference.frequency * bend_ratio
        memory.remember(reference.note, frequency)
        logger.debug(
            "storing last reference %s at %.2f Hz", note_name(reference.note), frequency
        )
        return frequency
