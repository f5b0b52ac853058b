"""
Sustain-pedal bookkeeping.

Three things are tracked separately because they diverge under the pedal:

- which keys are physically down,
- which note numbers had their note-off deferred,
- which voice slots had their note-off deferred.

A deferred voice is released on pedal-up if and only if its key is not
held at that moment. A note that was retriggered and is still held keeps
sounding, even though an earlier instance of the same note was deferred.

Copyright (c) 2026 justsynth contributors

MIT License
"""

from __future__ import annotations

from typing import Iterable

from justsynth.logger import get_logger

logger = get_logger(__name__)


class SustainController:
    """
    Decides whether a note-off releases now or waits for the pedal.

    Slots identify voice instances, so that a later voice on the same note
    number is never released on behalf of an earlier one.
    """

    def __init__(self) -> None:
        self.pedal_is_down = False
        self.sustained_notes: set[int] = set()
        self.sustained_slots: set[int] = set()
        self.keys_held: set[int] = set()

    def key_down(self, note: int) -> None:
        self.keys_held.add(note)

    def key_up(self, note: int, slots: Iterable[int] = ()) -> bool:
        """
        Register a note-off.

        Args:
            note: Note number of the released key
            slots: Slots of the voices currently playing that note

        Returns:
            True if the caller should release now, False if deferred
        """
        self.keys_held.discard(note)
        if not self.pedal_is_down:
            return True
        self.sustained_notes.add(note)
        self.sustained_slots.update(slots)
        logger.debug("note %d held by sustain pedal", note)
        return False

    def press_pedal(self) -> None:
        self.pedal_is_down = True
        logger.debug("sustain pedal down")

    def lift_pedal(self) -> tuple[list[int], set[int]]:
        """
        Lift the pedal and clear both sustained sets.

        Returns:
            (notes, slots): the sustained notes whose keys are no longer
            held, ascending, and the deferred slots. Only a slot that is
            still playing one of those notes should be released.
        """
        self.pedal_is_down = False
        notes = sorted(self.sustained_notes - self.keys_held)
        slots = set(self.sustained_slots)
        self.sustained_notes.clear()
        self.sustained_slots.clear()
        logger.debug(
            "sustain pedal up; held=%s releasing=%s", sorted(self.keys_held), notes
        )
        return notes, slots

    def forget_slot(self, slot: int) -> None:
        """Drop a slot whose voice was stolen or stopped."""
        self.sustained_slots.discard(slot)

    def is_sustained(self, slot: int) -> bool:
        return slot in self.sustained_slots

    def clear(self) -> None:
        """Drop deferred releases. Pedal and key state are physical and stay."""
        self.sustained_notes.clear()
        self.sustained_slots.clear()
