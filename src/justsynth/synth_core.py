"""
SynthCore - polyphonic just-intonation tuning core.

Each new note is tuned as a pure interval from the current reference note.
When the reference is released, the remaining voices can be retuned to the
next reference (RetuneMode). When nothing sounds, the last reference
frequency is remembered so the next phrase continues from it instead of
snapping back to equal temperament.

All methods run to completion on the caller's thread; audio timing is the
VoiceOutput's business.

Example:
    >>> core = SynthCore(settings=SynthSettings(retune_mode="instant"))
    >>> core.note_on(60, 100).frequency          # equal temperament
    261.6255653...
    >>> core.note_on(64, 100).frequency          # 5:4 above C
    327.0319566...
    >>> core.note_off(60)                        # E becomes the reference
    []

Copyright (c) 2026 justsynth contributors

MIT License
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

from justsynth.config import ErrorMode, SynthSettings, clamp
from justsynth.intervals import (
    equal_temperament_frequency,
    interval_name,
    just_frequency,
    note_name,
    ratio_string,
)
from justsynth.logger import get_logger
from justsynth.reference import (
    ReferenceMemory,
    ReferenceMode,
    make_selector,
    parse_reference_mode,
)
from justsynth.retune import RetuneEngine, RetunedNote, parse_retune_mode
from justsynth.sustain import SustainController
from justsynth.voice import NullVoiceOutput, RetuneMode, Voice, VoiceOutput
from justsynth.voice_pool import VoicePool

logger = get_logger(__name__)


@dataclass(frozen=True)
class IntervalInfo:
    """How a note was tuned relative to its reference."""

    interval: int
    ratio: str
    name: str
    reference_note: int
    reference_frequency: float

    @property
    def reference_name(self) -> str:
        return note_name(self.reference_note)


@dataclass(frozen=True)
class NoteOnResult:
    note: int
    note_name: str
    frequency: float
    velocity: int
    voice: int
    interval_info: Optional[IntervalInfo]
    used_stored_reference: bool
    stolen_note: Optional[int]
    active_voice_count: int


@dataclass(frozen=True)
class ActiveNote:
    note: int
    note_name: str
    frequency: float


@dataclass(frozen=True)
class SynthState:
    active_voice_count: int
    max_voices: int
    active_notes: list[ActiveNote] = field(default_factory=list)
    reference_mode: ReferenceMode = ReferenceMode.LOWEST_NOTE
    retune_mode: RetuneMode = RetuneMode.STATIC
    reference_note: Optional[int] = None
    reference_frequency: Optional[float] = None
    bass_note: Optional[int] = None
    bass_frequency: Optional[float] = None
    pitch_bend_amount: float = 0.0
    mod_wheel_amount: float = 0.0
    sustain_pedal_down: bool = False


class SynthCore:
    """
    Composition root: voice pool, reference selection, retuning and sustain.

    Args:
        output: Audio collaborator (default: NullVoiceOutput)
        settings: SynthSettings (default: SynthSettings())
        seed: Seed for the sticky-random reference choice
        error_mode: Error policy for invalid numeric settings
    """

    def __init__(
        self,
        output: Optional[VoiceOutput] = None,
        settings: Optional[SynthSettings] = None,
        seed: Optional[int] = None,
        error_mode: Optional[ErrorMode] = None,
    ):
        settings = (settings or SynthSettings()).validated(error_mode)
        self._settings = settings
        self._seed = seed
        self._output = output if output is not None else NullVoiceOutput()
        self._pool = VoicePool(self._output, int(settings.polyphony))
        self._memory = ReferenceMemory()
        self._reference_mode = parse_reference_mode(settings.reference_mode)
        self._selector = make_selector(self._reference_mode, seed)
        self._retune = RetuneEngine(parse_retune_mode(settings.retune_mode), settings.glide_seconds)
        self._sustain = SustainController()
        self._pitch_bend_range = float(settings.pitch_bend_range_cents)
        self._release_seconds = float(settings.release_seconds)
        self._concert_pitch = float(settings.concert_pitch)
        self._bend_amount = 0.0
        self._mod_amount = 0.0

    # ------------------------------------------------------------------
    # Note events
    # ------------------------------------------------------------------

    def note_on(self, note: int, velocity: int = 100) -> NoteOnResult:
        """
        Start a note tuned from the current reference.

        Without a sounding reference the note is tuned from the remembered
        reference, or in equal temperament if there is none, and becomes the
        new reference anchor.
        """
        self._sustain.key_down(note)
        reference = self._selector.select(self._pool.active_voices(), self._memory)
        interval_info = None
        used_stored = False

        if reference is None:
            if self._memory.has_reference:
                used_stored = True
                last_note = self._memory.last_reference_note
                # Memory holds what was heard; voices take an unbent base
                last_freq = self._memory.last_reference_frequency / self.bend_ratio
                if note == last_note:
                    frequency = last_freq
                else:
                    frequency = just_frequency(last_freq, last_note, note)
                    interval_info = self._interval_info(note, last_note, last_freq)
            else:
                frequency = float(equal_temperament_frequency(note, self._concert_pitch))
            self._memory.remember(note, frequency * self.bend_ratio)
            ref_note, ref_freq = note, frequency
            logger.debug(
                "first note %s at %.2f Hz (%s)", note_name(note), frequency,
                "stored reference" if used_stored else "equal temperament",
            )
        else:
            ref_note, ref_freq = reference.note, reference.frequency
            frequency = just_frequency(ref_freq, ref_note, note)
            interval_info = self._interval_info(note, ref_note, ref_freq)
            logger.debug(
                "playing %s at %.2f Hz: %s (%s) from %s [%s]",
                note_name(note), frequency, interval_info.name, interval_info.ratio,
                note_name(ref_note), self._reference_mode.value,
            )

        voice, stolen_note = self._pool.allocate(note)
        if stolen_note is not None:
            self._forget(voice)
        voice.start(note, frequency, velocity, ref_note, ref_freq, self.bend_ratio)
        if self._mod_amount > 0:
            voice.set_vibrato(self._mod_amount)

        return NoteOnResult(
            note=note,
            note_name=note_name(note),
            frequency=frequency,
            velocity=velocity,
            voice=voice.slot,
            interval_info=interval_info,
            used_stored_reference=used_stored,
            stolen_note=stolen_note,
            active_voice_count=self._pool.active_voice_count,
        )

    def note_off(self, note: int) -> list[RetunedNote]:
        """
        Release a note, or defer it while the sustain pedal is down.

        Returns:
            The voices retuned because the reference changed (may be empty)
        """
        voice = self._pool.find_active(note)
        slots = [voice.slot] if voice is not None else []
        if not self._sustain.key_up(note, slots):
            return []
        return self._release_note(note)

    def sustain_down(self) -> list[RetunedNote]:
        self._sustain.press_pedal()
        return []

    def sustain_up(self) -> list[RetunedNote]:
        """Release deferred voices whose keys are up; returns the retuned voices."""
        notes, slots = self._sustain.lift_pedal()
        retuned: list[RetunedNote] = []
        for note in notes:
            retuned.extend(self._release_note(note, slots))
        return retuned

    def _release_note(self, note: int, only_slots: Optional[Iterable[int]] = None) -> list[RetunedNote]:
        allowed = None if only_slots is None else set(only_slots)
        active = self._pool.active_voices()
        releasing = [
            v for v in active
            if v.note == note and (allowed is None or v.slot in allowed)
        ]
        if not releasing:
            return []

        reference = self._selector.select(active, self._memory)
        was_reference = reference is not None and any(v is reference for v in releasing)
        if was_reference:
            # Must happen while the reference is still active
            RetuneEngine.capture_reference(reference, self.bend_ratio, self._memory)

        for voice in releasing:
            self._forget(voice)
            voice.release(self._release_seconds)

        if not was_reference or not self._retune.enabled:
            return []
        remaining = self._pool.active_voices()
        if not remaining:
            return []
        new_reference = self._selector.select(remaining, self._memory)
        return self._retune.retune_all(new_reference, remaining)

    def _forget(self, voice: Voice) -> None:
        self._sustain.forget_slot(voice.slot)
        if self._memory.sticky_slot == voice.slot:
            self._memory.sticky_slot = None

    def _interval_info(self, note: int, ref_note: int, ref_freq: float) -> IntervalInfo:
        interval = note - ref_note
        return IntervalInfo(
            interval=interval,
            ratio=ratio_string(interval),
            name=interval_name(interval),
            reference_note=ref_note,
            reference_frequency=ref_freq,
        )

    # ------------------------------------------------------------------
    # Controllers
    # ------------------------------------------------------------------

    def pitch_bend(self, amount: float) -> None:
        """
        Bend all voices by amount * pitch_bend_range cents.

        amount is -1..1. The bend is re-derived from each voice's base
        frequency every time, never accumulated.
        """
        self._bend_amount = clamp(float(amount), -1.0, 1.0, "pitch bend")
        ratio = self.bend_ratio
        for voice in self._pool:
            voice.apply_bend(ratio)

    def mod_wheel(self, amount: float) -> None:
        """Pass a 0..1 vibrato depth to every sounding voice."""
        self._mod_amount = clamp(float(amount), 0.0, 1.0, "mod wheel")
        for voice in self._pool.active_voices():
            voice.set_vibrato(self._mod_amount)

    @property
    def bend_ratio(self) -> float:
        return 2.0 ** (self.pitch_bend_cents / 1200.0)

    @property
    def pitch_bend_cents(self) -> float:
        return self._bend_amount * self._pitch_bend_range

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def set_reference_mode(self, mode: Any) -> ReferenceMode:
        """Switch reference selection; unknown names fall back to LOWEST_NOTE."""
        self._reference_mode = parse_reference_mode(mode)
        self._selector = make_selector(self._reference_mode, self._seed)
        self._memory.sticky_slot = None
        logger.info("reference mode set to %s", self._reference_mode.value)
        return self._reference_mode

    def set_retune_mode(self, mode: Any, glide_seconds: Optional[float] = None) -> RetuneMode:
        """Switch retuning; unknown names fall back to STATIC."""
        self._retune.mode = parse_retune_mode(mode)
        if glide_seconds is not None:
            self.set_glide_time(glide_seconds)
        logger.info("retune mode set to %s", self._retune.mode.value)
        return self._retune.mode

    def set_glide_time(self, seconds: float) -> None:
        if seconds < 0:
            logger.warning("glide time %s is negative; keeping %s", seconds, self._retune.glide_seconds)
            return
        self._retune.glide_seconds = float(seconds)

    def set_release_time(self, seconds: float) -> None:
        if seconds < 0:
            logger.warning("release time %s is negative; keeping %s", seconds, self._release_seconds)
            return
        self._release_seconds = float(seconds)

    def set_pitch_bend_range(self, cents: float) -> None:
        if cents <= 0:
            logger.warning("pitch bend range %s must be positive; keeping %s", cents, self._pitch_bend_range)
            return
        self._pitch_bend_range = float(cents)
        self.pitch_bend(self._bend_amount)

    def reset_reference(self) -> None:
        """Stop every voice, clear pitch bend and forget all reference state."""
        self._pool.stop_all()
        self._bend_amount = 0.0
        for voice in self._pool:
            voice.apply_bend(1.0)
        self._memory.clear()
        self._sustain.clear()
        logger.info("all voices stopped, reference cleared")

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    def reference_voice(self) -> Optional[Voice]:
        """The current reference voice. Read-only: a sticky reference is not chosen here."""
        return self._selector.peek(self._pool.active_voices(), self._memory)

    def get_state(self) -> SynthState:
        active = self._pool.active_voices()
        reference = self._selector.peek(active, self._memory)
        bass = min(active, key=lambda v: v.note) if active else None
        return SynthState(
            active_voice_count=len(active),
            max_voices=self._pool.capacity,
            active_notes=[ActiveNote(v.note, note_name(v.note), v.frequency) for v in active],
            reference_mode=self._reference_mode,
            retune_mode=self._retune.mode,
            reference_note=reference.note if reference else None,
            reference_frequency=reference.frequency if reference else None,
            bass_note=bass.note if bass else None,
            bass_frequency=bass.frequency if bass else None,
            pitch_bend_amount=self._bend_amount,
            mod_wheel_amount=self._mod_amount,
            sustain_pedal_down=self._sustain.pedal_is_down,
        )

    @property
    def memory(self) -> ReferenceMemory:
        return self._memory

    @property
    def pool(self) -> VoicePool:
        return self._pool

    @property
    def sustain(self) -> SustainController:
        return self._sustain

    @property
    def reference_mode(self) -> ReferenceMode:
        return self._reference_mode

    @property
    def retune_mode(self) -> RetuneMode:
        return self._retune.mode

    @property
    def glide_seconds(self) -> float:
        return self._retune.glide_seconds

    @property
    def release_seconds(self) -> float:
        return self._release_seconds

    @property
    def settings(self) -> SynthSettings:
        return self._settings

    def __repr__(self) -> str:
        return (
            f"SynthCore(voices={self._pool.active_voice_count}/{self._pool.capacity}, "
            f"reference_mode={self._reference_mode.value}, retune_mode={self._retune.mode.value})"
        )
