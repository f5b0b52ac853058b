"""
Tests for MIDI dispatch.

Copyright (c) 2026 justsynth contributors

MIT License
"""

import mido
import pytest

from justsynth.__main__ import build_parser
from justsynth.midi_input import MidiDispatcher, MidiInput, pitchwheel_to_bend
from justsynth.synth_core import NoteOnResult


class TestPitchwheel:
    def test_center(self):
        assert pitchwheel_to_bend(0) == 0.0

    def test_extremes(self):
        assert pitchwheel_to_bend(-8192) == -1.0
        assert pitchwheel_to_bend(8191) == pytest.approx(1.0, abs=2e-4)


class TestMidiDispatcher:
    """Mapping of mido messages to core calls."""

    def test_note_on_and_off(self, core):
        dispatcher = MidiDispatcher(core)
        result = dispatcher.handle_message(mido.Message("note_on", note=60, velocity=90))
        assert isinstance(result, NoteOnResult)
        assert result.velocity == 90
        assert dispatcher.handle_message(mido.Message("note_off", note=60)) == []
        assert core.get_state().active_voice_count == 0

    def test_zero_velocity_is_note_off(self, core):
        dispatcher = MidiDispatcher(core)
        dispatcher.handle_message(mido.Message("note_on", note=60, velocity=90))
        dispatcher.handle_message(mido.Message("note_on", note=60, velocity=0))
        assert core.get_state().active_voice_count == 0

    def test_sustain_pedal(self, core):
        dispatcher = MidiDispatcher(core)
        dispatcher.handle_message(mido.Message("note_on", note=60, velocity=90))
        dispatcher.handle_message(mido.Message("control_change", control=64, value=127))
        dispatcher.handle_message(mido.Message("note_off", note=60))
        assert core.get_state().active_voice_count == 1
        # Repeated pedal-down values are not new presses
        dispatcher.handle_message(mido.Message("control_change", control=64, value=100))
        dispatcher.handle_message(mido.Message("control_change", control=64, value=0))
        assert core.get_state().active_voice_count == 0

    def test_pedal_up_returns_retuned(self, make_core):
        core = make_core(retune_mode="instant")
        dispatcher = MidiDispatcher(core)
        for note in (60, 62, 69):
            dispatcher.handle_message(mido.Message("note_on", note=note, velocity=90))
        dispatcher.handle_message(mido.Message("control_change", control=64, value=127))
        dispatcher.handle_message(mido.Message("note_off", note=60))
        retuned = dispatcher.handle_message(mido.Message("control_change", control=64, value=0))
        assert [r.note for r in retuned] == [69]

    def test_mod_wheel(self, core):
        dispatcher = MidiDispatcher(core)
        dispatcher.handle_message(mido.Message("control_change", control=1, value=127))
        assert core.get_state().mod_wheel_amount == 1.0

    def test_pitchwheel(self, core):
        dispatcher = MidiDispatcher(core)
        dispatcher.handle_message(mido.Message("pitchwheel", pitch=-8192))
        assert core.get_state().pitch_bend_amount == -1.0

    def test_channel_filter(self, core):
        dispatcher = MidiDispatcher(core, channel=2)
        assert dispatcher.handle_message(mido.Message("note_on", channel=0, note=60, velocity=90)) is None
        assert dispatcher.handle_message(mido.Message("note_on", channel=2, note=60, velocity=90)) is not None
        assert core.get_state().active_voice_count == 1

    def test_ignored_messages(self, core):
        dispatcher = MidiDispatcher(core)
        assert dispatcher.handle_message(mido.Message("program_change", program=5)) is None
        assert dispatcher.handle_message(mido.Message("control_change", control=7, value=100)) is None

    def test_listener(self, core):
        seen = []
        dispatcher = MidiDispatcher(core, listener=lambda msg, result: seen.append((msg.type, result)))
        dispatcher.handle_message(mido.Message("note_on", note=64, velocity=80))
        dispatcher.handle_message(mido.Message("clock"))
        assert len(seen) == 1
        assert seen[0][0] == "note_on"
        assert seen[0][1].note == 64


class TestMidiInput:
    """Queue draining without a real port."""

    def test_poll_drains_queue(self, core):
        midi_in = MidiInput(MidiDispatcher(core))
        midi_in.feed(mido.Message("note_on", note=60, velocity=90))
        midi_in.feed(mido.Message("note_on", note=67, velocity=90))
        assert midi_in.poll() == 2
        assert midi_in.poll() == 0
        assert core.get_state().active_voice_count == 2

    def test_callback_enqueues(self, core):
        midi_in = MidiInput(MidiDispatcher(core))
        midi_in._mido_callback(mido.Message("note_on", note=60, velocity=90))
        assert core.get_state().active_voice_count == 0
        midi_in.poll()
        assert core.get_state().active_voice_count == 1

    def test_close_without_open(self, core):
        midi_in = MidiInput(MidiDispatcher(core), port_name="Nowhere")
        midi_in.close()
        assert repr(midi_in) == "MidiInput(port_name='Nowhere')"


class TestCommandLine:
    def test_parser_defaults(self):
        args = build_parser().parse_args([])
        assert args.reference == "lowest"
        assert args.retune == "static"
        assert args.glide == 0.2
        assert args.polyphony == 8
        assert not args.list

    def test_parser_options(self):
        args = build_parser().parse_args(
            ["--port", "Keys", "--reference", "harmonic", "--retune", "smooth", "--glide", "0.5"]
        )
        assert args.port == "Keys"
        assert args.reference == "harmonic"
        assert args.glide == 0.5
