"""
Voice slots and the audio output interface they drive.

A Voice is bookkeeping only: which note it plays, at what base frequency,
and which reference it was tuned against. Sound is produced by a
VoiceOutput, addressed by the voice's slot index. Every VoiceOutput call is
fire-and-forget; envelopes, glides and fades run in the output's own time
domain and the core never waits for them.

Copyright (c) 2026 justsynth contributors

MIT License
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum, IntEnum
from typing import Optional

from justsynth.intervals import note_name
from justsynth.logger import get_logger

logger = get_logger(__name__)


class RetuneMode(Enum):
    """
    How sounding voices follow a change of reference.

    STATIC: Voices keep their frequency until released or retriggered
    SMOOTH: Voices glide to the new frequency over the glide time
    INSTANT: Voices jump to the new frequency
    """
    STATIC = "static"
    SMOOTH = "smooth"
    INSTANT = "instant"


class VoiceState(IntEnum):
    IDLE = 0
    ACTIVE = 1
    RELEASING = 2


class VoiceOutput(ABC):
    """
    Audio side of the voice pool.

    Implementations own oscillators, envelopes and timing. The slot argument
    is the stable index of the voice in its pool.
    """

    @abstractmethod
    def start(self, slot: int, frequency: float, velocity: int) -> None:
        """Start (or restart) a note. velocity is 0..127."""

    @abstractmethod
    def retune(self, slot: int, frequency: float, glide_seconds: float) -> None:
        """
        Move a sounding note to a new frequency.

        glide_seconds == 0 means jump immediately; otherwise ramp the pitch
        (linear in log-frequency), reaching the target after glide_seconds.
        """

    @abstractmethod
    def set_frequency(self, slot: int, frequency: float) -> None:
        """Set the sounding frequency right away (pitch bend)."""

    @abstractmethod
    def release(self, slot: int, release_seconds: float) -> None:
        """Apply the release envelope; silent after release_seconds."""

    @abstractmethod
    def stop(self, slot: int) -> None:
        """Silence immediately with a short click-free fade (voice stealing)."""

    def set_vibrato(self, slot: int, amount: float) -> None:
        """Set the vibrato depth, normalized 0..1."""


class NullVoiceOutput(VoiceOutput):
    """
    A VoiceOutput that discards every command.

    Use cases:
    - Driving the tuning core headless (tests, analysis)
    - Benchmarking the core without an audio backend
    """

    def start(self, slot: int, frequency: float, velocity: int) -> None:
        pass

    def retune(self, slot: int, frequency: float, glide_seconds: float) -> None:
        pass

    def set_frequency(self, slot: int, frequency: float) -> None:
        pass

    def release(self, slot: int, release_seconds: float) -> None:
        pass

    def stop(self, slot: int) -> None:
        pass


class LoggingVoiceOutput(VoiceOutput):
    """A VoiceOutput that logs every command at INFO level."""

    def __init__(self, name: str = "justsynth.output"):
        self._log = get_logger(name)

    def start(self, slot: int, frequency: float, velocity: int) -> None:
        self._log.info("voice %d start %.3f Hz vel %d", slot, frequency, velocity)

    def retune(self, slot: int, frequency: float, glide_seconds: float) -> None:
        self._log.info("voice %d retune %.3f Hz glide %.3fs", slot, frequency, glide_seconds)

    def set_frequency(self, slot: int, frequency: float) -> None:
        self._log.info("voice %d bend to %.3f Hz", slot, frequency)

    def release(self, slot: int, release_seconds: float) -> None:
        self._log.info("voice %d release %.3fs", slot, release_seconds)

    def stop(self, slot: int) -> None:
        self._log.info("voice %d stop", slot)

    def set_vibrato(self, slot: int, amount: float) -> None:
        self._log.info("voice %d vibrato %.3f", slot, amount)


class Voice:
    """
    One slot of the voice pool.

    Attributes:
        slot: Stable index in the pool
        note: Note number, None when idle
        frequency: Base (unbent) frequency in Hz, None when idle
        start_order: Allocation counter value, larger is newer
        tuned_reference_note: Reference note this voice was tuned against
        tuned_reference_frequency: Frequency of that reference at tuning time
    """

    def __init__(self, slot: int, output: VoiceOutput):
        self.slot = slot
        self._output = output
        self.state = VoiceState.IDLE
        self.note: Optional[int] = None
        self.frequency: Optional[float] = None
        self.velocity = 0
        self.start_order = -1
        self.tuned_reference_note: Optional[int] = None
        self.tuned_reference_frequency: Optional[float] = None
        self._bend_ratio = 1.0

    @property
    def is_active(self) -> bool:
        return self.state == VoiceState.ACTIVE

    @property
    def sounding_frequency(self) -> Optional[float]:
        """Base frequency with the current pitch bend applied."""
        if self.frequency is None:
            return None
        return self.frequency * self._bend_ratio

    def start(
        self,
        note: int,
        frequency: float,
        velocity: int,
        reference_note: int,
        reference_frequency: float,
        bend_ratio: float = 1.0,
    ) -> None:
        """Start playing note at frequency; a retrigger restarts the envelope."""
        self.note = note
        self.frequency = frequency
        self.velocity = velocity
        self.tuned_reference_note = reference_note
        self.tuned_reference_frequency = reference_frequency
        self._bend_ratio = bend_ratio
        self.state = VoiceState.ACTIVE
        self._output.start(self.slot, frequency * bend_ratio, velocity)

    def retune(self, frequency: float, mode: RetuneMode, glide_seconds: float = 0.0) -> None:
        """Move to a new base frequency. STATIC and inactive voices ignore this."""
        if not self.is_active or mode == RetuneMode.STATIC:
            return
        glide = glide_seconds if mode == RetuneMode.SMOOTH else 0.0
        self.frequency = frequency
        self._output.retune(self.slot, frequency * self._bend_ratio, glide)

    def apply_bend(self, bend_ratio: float) -> None:
        """Re-derive the sounding frequency from the base frequency."""
        self._bend_ratio = bend_ratio
        if self.is_active:
            self._output.set_frequency(self.slot, self.frequency * bend_ratio)

    def set_vibrato(self, amount: float) -> None:
        if self.is_active:
            self._output.set_vibrato(self.slot, amount)

    def release(self, release_seconds: float) -> None:
        """Start the release envelope. The slot is free for allocation at once."""
        if self.state != VoiceState.ACTIVE:
            return
        self.state = VoiceState.RELEASING
        self._output.release(self.slot, release_seconds)
        self._clear()

    def stop(self) -> None:
        """Silence now, preempting any release in progress."""
        if self.state != VoiceState.IDLE:
            self._output.stop(self.slot)
        self.state = VoiceState.IDLE
        self._clear()

    def _clear(self) -> None:
        self.note = None
        self.frequency = None
        self.tuned_reference_note = None
        self.tuned_reference_frequency = None

    def __repr__(self) -> str:
        if self.note is None:
            return f"Voice(slot={self.slot}, {self.state.name.lower()})"
        return (
            f"Voice(slot={self.slot}, note={note_name(self.note)}, "
            f"frequency={self.frequency:.3f}, order={self.start_order})"
        )
