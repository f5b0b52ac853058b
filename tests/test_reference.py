"""
Tests for reference-note selection.

Copyright (c) 2026 justsynth contributors

MIT License
"""

import itertools
import random

import pytest

from justsynth.reference import (
    CONSONANCE,
    HarmonicCenterSelector,
    LowestNoteSelector,
    ReferenceMemory,
    ReferenceMode,
    StickyRandomSelector,
    consonance,
    make_selector,
    parse_reference_mode,
)
from justsynth.voice import NullVoiceOutput
from justsynth.voice_pool import VoicePool


def sounding(notes, capacity=8):
    """Pool with the given notes active, in allocation order."""
    pool = VoicePool(NullVoiceOutput(), capacity)
    for note in notes:
        voice, _ = pool.allocate(note)
        voice.start(note, float(note), 100, note, float(note))
    return pool


def release(pool, note):
    pool.find_active(note).release(0.1)


class TestLowestNote:
    """Tests for LOWEST_NOTE selection."""

    def test_picks_lowest(self):
        pool = sounding([64, 60, 67])
        assert LowestNoteSelector().select(pool.active_voices(), ReferenceMemory()).note == 60

    def test_follows_release(self):
        pool = sounding([60, 64, 67])
        selector, memory = LowestNoteSelector(), ReferenceMemory()
        release(pool, 60)
        assert selector.select(pool.active_voices(), memory).note == 64

    def test_empty(self):
        assert LowestNoteSelector().select([], ReferenceMemory()) is None

    def test_keeps_no_state(self):
        memory = ReferenceMemory()
        LowestNoteSelector().select(sounding([60]).active_voices(), memory)
        assert memory.sticky_slot is None


class TestStickyRandom:
    """Tests for STICKY_RANDOM selection."""

    def test_is_stable(self):
        pool = sounding([60, 64, 67, 71])
        selector, memory = StickyRandomSelector(seed=7), ReferenceMemory()
        first = selector.select(pool.active_voices(), memory)
        for _ in range(20):
            assert selector.select(pool.active_voices(), memory) is first
        assert memory.sticky_slot == first.slot

    def test_stays_when_other_notes_change(self):
        pool = sounding([60, 64])
        selector, memory = StickyRandomSelector(seed=3), ReferenceMemory()
        first = selector.select(pool.active_voices(), memory)
        other = 64 if first.note == 60 else 60
        release(pool, other)
        voice, _ = pool.allocate(70)
        voice.start(70, 70.0, 100, 70, 70.0)
        assert selector.select(pool.active_voices(), memory) is first

    def test_changes_after_release(self):
        pool = sounding([60, 64, 67])
        selector, memory = StickyRandomSelector(seed=11), ReferenceMemory()
        first = selector.select(pool.active_voices(), memory)
        release(pool, first.note)
        second = selector.select(pool.active_voices(), memory)
        assert second is not None
        assert second.note != first.note
        assert memory.sticky_slot == second.slot

    def test_peek_leaves_state_alone(self):
        pool = sounding([60, 64, 67, 71])
        selector, memory = StickyRandomSelector(seed=5), ReferenceMemory()
        previews = {selector.peek(pool.active_voices(), memory).slot for _ in range(10)}
        assert memory.sticky_slot is None
        assert len(previews) == 1
        assert selector.select(pool.active_voices(), memory).slot in previews

    def test_empty_clears_memory(self):
        memory = ReferenceMemory(sticky_slot=2)
        assert StickyRandomSelector(seed=1).select([], memory) is None
        assert memory.sticky_slot is None

    def test_uses_given_rng(self):
        pool = sounding([60, 64, 67])
        picks = {
            StickyRandomSelector(rng=random.Random(s)).select(pool.active_voices(), ReferenceMemory()).note
            for s in range(50)
        }
        assert picks == {60, 64, 67}


class TestHarmonicCenter:
    """Tests for HARMONIC_CENTER root finding."""

    def test_consonance_table_covers_all_classes(self):
        assert sorted(CONSONANCE) == list(range(12))
        assert consonance(0) == 10
        assert consonance(7) == 9
        assert consonance(-7) == consonance(5) == 8
        assert consonance(19) == 9

    @pytest.mark.parametrize("order", list(itertools.permutations([60, 64, 67])))
    def test_root_position_triad(self, order):
        pool = sounding(order)
        assert HarmonicCenterSelector().select(pool.active_voices(), ReferenceMemory()).note == 60

    def test_first_inversion(self):
        pool = sounding([64, 67, 72])
        assert HarmonicCenterSelector().select(pool.active_voices(), ReferenceMemory()).note == 72

    def test_second_inversion(self):
        pool = sounding([67, 72, 76])
        assert HarmonicCenterSelector().select(pool.active_voices(), ReferenceMemory()).note == 72

    def test_minor_triad(self):
        # A C E: A scores 7 + 9 = 16
        pool = sounding([57, 60, 64])
        assert HarmonicCenterSelector().select(pool.active_voices(), ReferenceMemory()).note == 57

    def test_single_voice(self):
        pool = sounding([65])
        assert HarmonicCenterSelector().select(pool.active_voices(), ReferenceMemory()).note == 65

    def test_tie_goes_to_lowest_slot(self):
        # A tritone scores 1 from either side
        pool = sounding([66, 60])
        voice = HarmonicCenterSelector().select(pool.active_voices(), ReferenceMemory())
        assert voice.slot == 0
        assert voice.note == 66

    def test_scores(self):
        assert HarmonicCenterSelector.score(60, [64, 67]) == 16
        assert HarmonicCenterSelector.score(64, [60, 67]) == 13
        assert HarmonicCenterSelector.score(67, [60, 64]) == 14

    def test_is_sticky(self):
        pool = sounding([64, 67])
        selector, memory = HarmonicCenterSelector(), ReferenceMemory()
        center = selector.select(pool.active_voices(), memory)
        assert center.note == 64
        # Adding the root would move the center, but the sticky choice holds
        voice, _ = pool.allocate(60)
        voice.start(60, 60.0, 100, 60, 60.0)
        assert selector.select(pool.active_voices(), memory) is center

    def test_rescores_after_release(self):
        pool = sounding([64, 67])
        selector, memory = HarmonicCenterSelector(), ReferenceMemory()
        selector.select(pool.active_voices(), memory)
        voice, _ = pool.allocate(60)
        voice.start(60, 60.0, 100, 60, 60.0)
        release(pool, 64)
        # C-G: C scores 9, G scores 8
        assert selector.select(pool.active_voices(), memory).note == 60


class TestModes:
    """Tests for mode parsing and selector construction."""

    @pytest.mark.parametrize("selector, expected", [
        ("lowest", ReferenceMode.LOWEST_NOTE),
        ("bass", ReferenceMode.LOWEST_NOTE),
        ("random", ReferenceMode.STICKY_RANDOM),
        ("Sticky", ReferenceMode.STICKY_RANDOM),
        ("harmonic", ReferenceMode.HARMONIC_CENTER),
        (ReferenceMode.HARMONIC_CENTER, ReferenceMode.HARMONIC_CENTER),
    ])
    def test_parse(self, selector, expected):
        assert parse_reference_mode(selector) == expected

    def test_unknown_falls_back_with_warning(self, caplog):
        with caplog.at_level("WARNING"):
            assert parse_reference_mode("loudest") == ReferenceMode.LOWEST_NOTE
        assert "loudest" in caplog.text

    def test_non_string_falls_back(self):
        assert parse_reference_mode(42) == ReferenceMode.LOWEST_NOTE

    @pytest.mark.parametrize("mode, cls", [
        (ReferenceMode.LOWEST_NOTE, LowestNoteSelector),
        (ReferenceMode.STICKY_RANDOM, StickyRandomSelector),
        (ReferenceMode.HARMONIC_CENTER, HarmonicCenterSelector),
    ])
    def test_make_selector(self, mode, cls):
        selector = make_selector(mode)
        assert isinstance(selector, cls)
        assert selector.mode == mode


class TestReferenceMemory:
    """Tests for ReferenceMemory."""

    def test_remember_and_clear(self):
        memory = ReferenceMemory()
        assert not memory.has_reference
        memory.remember(60, 261.6)
        memory.sticky_slot = 4
        assert memory.has_reference
        memory.clear()
        assert memory == ReferenceMemory()
